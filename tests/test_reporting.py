"""
Tests for compliance report and supplement packet formatting.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from scope_engine.core.models import (
    CarrierRule,
    ComplianceResult,
    DamageZone,
    Jurisdiction,
    LineItem,
    NegotiationScript,
    NegotiationTone,
    ScopeComparison,
    SupplementArgument,
    SupplementPacket,
    SupplementTotals,
)
from scope_engine.modules.compliance import ComplianceEngine
from scope_engine.modules.severity import SeverityEngine
from scope_engine.reporting import ComplianceReportFormatter, SupplementPacketFormatter

GENERATED_AT = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def compliance_result(limit_rule: CarrierRule) -> ComplianceResult:
    scope = [
        LineItem(code="RFG220", description="Architectural shingles", quantity=10, unit="SQ", unit_price=400)
    ]
    return ComplianceEngine().evaluate(scope, limit_rule)


@pytest.fixture
def packet() -> SupplementPacket:
    return SupplementPacket(
        carrier_name="Farmers",
        jurisdiction=Jurisdiction(city="Tucson", state="AZ"),
        comparison=ScopeComparison(
            missing_items=[
                LineItem(code="RFG410", description="Drip edge", quantity=90, unit="LF", unit_price=7)
            ]
        ),
        arguments=[
            SupplementArgument(
                item_code="RFG410",
                item_description="Drip edge",
                claim_amount=Decimal("630"),
                carrier_amount=Decimal("0"),
                difference=Decimal("630"),
                argument="Drip edge is required at eaves.\nIt was omitted.",
                evidence=["Required for code-compliant roof system"],
            )
        ],
        negotiation_script=NegotiationScript(
            tone=NegotiationTone.FIRM,
            total_requested=Decimal("630"),
            item_count=1,
            script="Opening: We are requesting $630.00.",
        ),
        totals=SupplementTotals(
            subtotal=Decimal("630.00"),
            tax=Decimal("56.07"),
            total=Decimal("686.07"),
            tax_rate=Decimal("0.089"),
        ),
    )


class TestComplianceReportFormatter:
    """Tests for compliance report output."""

    def test_text_report(self, compliance_result: ComplianceResult) -> None:
        text = ComplianceReportFormatter(compliance_result, GENERATED_AT).to_text()

        assert "CARRIER COMPLIANCE REPORT" in text
        assert "Carrier: Test Mutual" in text
        assert "Generated: 2024-06-01 15:30:00 UTC" in text
        assert "Exceeds Price Limit (RFG220)" in text
        assert "@ $350.00 = $3,500.00" in text
        assert text.endswith("=" * 70)
        assert "END OF REPORT" in text

    def test_text_without_details(self, compliance_result: ComplianceResult) -> None:
        text = ComplianceReportFormatter(compliance_result, GENERATED_AT).to_text(include_details=False)

        assert "SUMMARY" in text
        assert "CONFLICTS" not in text
        assert "ADJUSTMENTS" not in text

    def test_no_checks_performed(self) -> None:
        scope = [LineItem(code="RFG220", description="Shingles", quantity=10, unit="SQ", unit_price=400)]
        result = ComplianceEngine().evaluate(scope, None)

        text = ComplianceReportFormatter(result, GENERATED_AT).to_text()

        assert "Carrier: Unknown" in text
        assert "no compliance checks performed" in text
        assert "SUMMARY" not in text

    def test_json_uses_camel_case(self, compliance_result: ComplianceResult) -> None:
        data = json.loads(ComplianceReportFormatter(compliance_result, GENERATED_AT).to_json())

        assert data["generatedAt"] == "2024-06-01T15:30:00+00:00"
        assert data["carrierName"] == "Test Mutual"
        assert data["checksPerformed"] is True
        assert data["adjustedScope"][0]["unitPrice"] == "350"
        assert "estimatedApprovalChance" in data["summary"]


class TestSupplementPacketFormatter:
    """Tests for supplement packet output."""

    def test_text_packet(self, packet: SupplementPacket) -> None:
        text = SupplementPacketFormatter(packet, generated_at=GENERATED_AT).to_text()

        assert "Jurisdiction: Tucson, AZ" in text
        assert "Missing Items: 1" in text
        assert "RFG410: Drip edge (claimed $630.00, carrier $0.00, difference $630.00)" in text
        assert "   - Required for code-compliant roof system" in text
        assert "   It was omitted." in text
        assert "Tax (8.9%): $56.07" in text
        assert "Total: $686.07" in text
        assert "NEGOTIATION SCRIPT (FIRM)" in text
        assert "END OF PACKET" in text
        assert "DAMAGE SEVERITY" not in text

    def test_script_omitted(self, packet: SupplementPacket) -> None:
        text = SupplementPacketFormatter(packet, generated_at=GENERATED_AT).to_text(include_script=False)
        assert "NEGOTIATION SCRIPT" not in text

    def test_severity_section(self, packet: SupplementPacket) -> None:
        severity = SeverityEngine().assess(
            [
                DamageZone(
                    name="North slope",
                    damage_type=["hail"],
                    coverage_percent=60,
                    material_condition="poor",
                    structural_impact=False,
                    urgency="high",
                )
            ]
        )
        formatter = SupplementPacketFormatter(packet, severity, GENERATED_AT)

        assert "Repair Priority: North slope" in formatter.to_text()
        data = formatter.to_dict()
        assert data["severity"]["zoneScores"][0]["zoneName"] == "North slope"
        assert data["negotiationScript"]["totalRequested"] == "630"
        assert data["totals"]["total"] == "686.07"
