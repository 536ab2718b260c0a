#!/usr/bin/env python3
"""
Sample Supplement Script.
Demonstrates usage of the Scope Reconciliation Engine.

Set SCOPE_ENGINE_GEMINI_API_KEY to generate argument prose and a
negotiation script; without it all figures are still computed.
"""

import asyncio
from decimal import Decimal

from scope_engine import (
    ClaimScopeEngine,
    DamageZone,
    Jurisdiction,
    LineItem,
    NegotiationTone,
    get_settings,
)
from scope_engine.utils import PIIRedactor, configure_package_logging


def create_contractor_scope() -> list[LineItem]:
    """Contractor scope for a 24 square hail replacement."""
    return [
        LineItem(
            code="RFG220",
            description="Architectural shingles",
            quantity=24,
            unit="SQ",
            unit_price=Decimal("365.00"),  # Above most carrier limits
        ),
        LineItem(
            code="RFG210",
            description="Underlayment - synthetic",
            quantity=24,
            unit="SQ",
            unit_price=Decimal("32.00"),
        ),
        LineItem(
            code="RFG220W",
            description="Shingle waste",
            quantity=3,  # 12.5% waste
            unit="SQ",
            unit_price=Decimal("365.00"),
        ),
        LineItem(
            code="RFG215",
            description="Ice & water shield",
            quantity=6,
            unit="SQ",
            unit_price=Decimal("145.00"),
        ),
        LineItem(
            code="RFG140",
            description="Steep roof charge",
            quantity=24,
            unit="SQ",
            unit_price=Decimal("28.00"),
        ),
        LineItem(
            code="O&P",
            description="Overhead and profit",
            quantity=1,
            unit="EA",
            unit_price=Decimal("1850.00"),
        ),
    ]


def create_carrier_scope() -> list[LineItem]:
    """What the carrier actually paid for."""
    return [
        LineItem(
            code="RFG220",
            description="Architectural shingles",
            quantity=22,
            unit="SQ",
            unit_price=Decimal("310.00"),
        ),
        LineItem(
            code="RFG210",
            description="Underlayment - synthetic",
            quantity=24,
            unit="SQ",
            unit_price=Decimal("32.00"),
        ),
    ]


def create_damage_zones() -> list[DamageZone]:
    return [
        DamageZone(
            name="North slope",
            damage_type=["hail", "granule loss"],
            coverage_percent=65,
            material_condition="poor",
            structural_impact=False,
            urgency="high",
        ),
        DamageZone(
            name="Garage",
            damage_type=["wind"],
            coverage_percent=15,
            material_condition="fair",
            urgency="medium",
        ),
    ]


async def main() -> None:
    """Run sample reconciliation demonstration."""
    print("=" * 70)
    print("SCOPE RECONCILIATION ENGINE - SAMPLE SUPPLEMENT")
    print("=" * 70)
    print()

    settings = get_settings()
    configure_package_logging(settings.log_level)
    if settings.gemini_api_key:
        engine = ClaimScopeEngine.with_gemini(settings)
    else:
        print("No Gemini API key set; prose will be left empty.")
        engine = ClaimScopeEngine(settings=settings)

    # Identify the carrier
    detection = engine.detect_carrier(
        adjuster_email="k.ramirez@claims.allstate.com",
        notes="Adjuster inspected on 5/14, Allstate claim",
    )
    print(
        f"Detected Carrier: {detection.carrier_name} "
        f"({detection.detected_from.value}, confidence {detection.confidence:.2f})"
    )
    print()

    # Compliance against the carrier's rules
    contractor_scope = create_contractor_scope()
    report = engine.compliance_report(contractor_scope, detection.carrier_name)
    print(report.to_text())
    print()

    # Supplement against the carrier's scope
    print("Building supplement packet...")
    packet = await engine.build_supplement(
        contractor_scope,
        carrier_scope=create_carrier_scope(),
        jurisdiction=Jurisdiction(city="Prescott", state="AZ"),
        carrier_name=detection.carrier_name,
        tone=NegotiationTone.FIRM,
    )
    severity = engine.score_severity(create_damage_zones())

    formatter = engine.packet_report(packet, severity)
    print()
    print(formatter.to_text())

    # Strip identifiers before the packet is stored
    print()
    print("-" * 70)
    print("REDACTED JSON (first 500 chars)")
    print("-" * 70)
    redactor = PIIRedactor()
    redacted = engine.packet_report(redactor.redact_model(packet), severity)
    json_output = redacted.to_json()
    print(json_output[:500] + "..." if len(json_output) > 500 else json_output)
    print(f"Redactions: {redactor.get_redaction_summary() or 'none'}")


if __name__ == "__main__":
    asyncio.run(main())
