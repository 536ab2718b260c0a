"""
Scope Reconciliation Reporting Module.
Formats compliance results and supplement packets for output and persistence.
"""

import json
from datetime import datetime, timezone
from typing import Any

from ..core.models import (
    ComplianceResult,
    ConflictSeverity,
    ConflictType,
    SeverityAssessment,
    SupplementPacket,
)

RULE = "=" * 70
SECTION = "-" * 70


class ComplianceReportFormatter:
    """
    Formats a compliance result as text, a dictionary or JSON.
    """

    SEVERITY_ICONS = {
        ConflictSeverity.INFO: "ℹ️",
        ConflictSeverity.WARNING: "⚠️",
        ConflictSeverity.CRITICAL: "🚨",
    }

    TYPE_LABELS = {
        ConflictType.MISSING_REQUIRED: "Missing Required Item",
        ConflictType.DENIED_ITEM: "Denied Item",
        ConflictType.EXCEEDS_LIMIT: "Exceeds Price Limit",
        ConflictType.WASTE_VIOLATION: "Waste Violation",
        ConflictType.OP_DENIED: "O&P Denied",
        ConflictType.CODE_UPGRADE_ISSUE: "Code Upgrade Issue",
    }

    def __init__(self, result: ComplianceResult, generated_at: datetime | None = None) -> None:
        self.result = result
        self.generated_at = generated_at or datetime.now(timezone.utc)

    def to_text(self, include_details: bool = True) -> str:
        """
        Format the compliance result as a plain text report.

        Args:
            include_details: Whether to list individual conflicts and adjustments

        Returns:
            Formatted text report
        """
        result = self.result
        lines: list[str] = [RULE, "CARRIER COMPLIANCE REPORT", RULE, ""]

        lines.append(f"Carrier: {result.carrier_name or 'Unknown'}")
        lines.append(f"Generated: {self.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        lines.append("")

        if not result.checks_performed or result.summary is None:
            lines.append("No carrier rules available; no compliance checks performed.")
            lines.extend(["", RULE])
            return "\n".join(lines)

        summary = result.summary
        lines.extend([SECTION, "SUMMARY", SECTION])
        lines.append(f"Overall: {summary.overall_compliance.value.replace('_', ' ').upper()}")
        lines.append(f"Critical Issues: {summary.critical_issues}")
        lines.append(f"Warnings: {summary.warnings}")
        lines.append(f"Estimated Approval Chance: {summary.estimated_approval_chance}%")
        lines.append(f"Confidence: {summary.confidence_score}%")
        lines.append("")

        if include_details and result.conflicts:
            lines.extend([SECTION, "CONFLICTS", SECTION])
            for conflict in result.conflicts:
                lines.append("")
                lines.append(
                    f"{self.SEVERITY_ICONS.get(conflict.severity, '•')} "
                    f"[{conflict.severity.value.upper()}] {self.TYPE_LABELS[conflict.type]}"
                    + (f" ({conflict.item_code})" if conflict.item_code else "")
                )
                lines.append(f"   {conflict.reason}")
                lines.append(f"   Recommendation: {conflict.recommendation}")
                if conflict.carrier_note:
                    lines.append(f"   Carrier Note: {conflict.carrier_note}")
            lines.append("")

        if include_details and result.adjustments:
            lines.extend([SECTION, "ADJUSTMENTS", SECTION])
            for adjustment in result.adjustments:
                item = adjustment.adjusted_item
                lines.append(
                    f"  {item.code:<8} {item.quantity:>8g} {item.unit.value:<3} "
                    f"@ ${item.unit_price:,.2f} = ${item.total:,.2f}"
                )
                lines.append(f"           {adjustment.change_reason}")
            lines.append("")

        if summary.carrier_notes:
            lines.extend([SECTION, "CARRIER NOTES", SECTION])
            lines.extend(f"  - {note}" for note in summary.carrier_notes)
            lines.append("")

        lines.extend([RULE, "END OF REPORT", RULE])
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a JSON-ready dictionary with camelCase keys."""
        return {
            "generatedAt": self.generated_at.isoformat(),
            **self.result.model_dump(mode="json", by_alias=True),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert the result to JSON."""
        return json.dumps(self.to_dict(), indent=indent)


class SupplementPacketFormatter:
    """
    Formats a supplement packet as text, a dictionary or JSON.
    """

    def __init__(
        self,
        packet: SupplementPacket,
        severity: SeverityAssessment | None = None,
        generated_at: datetime | None = None,
    ) -> None:
        self.packet = packet
        self.severity = severity
        self.generated_at = generated_at or datetime.now(timezone.utc)

    def to_text(self, include_script: bool = True) -> str:
        """
        Format the packet as a plain text report.

        Args:
            include_script: Whether to append the negotiation script

        Returns:
            Formatted text report
        """
        packet = self.packet
        comparison = packet.comparison
        lines: list[str] = [RULE, "SUPPLEMENT PACKET", RULE, ""]

        lines.append(f"Carrier: {packet.carrier_name or 'Unknown'}")
        if packet.jurisdiction.label:
            lines.append(f"Jurisdiction: {packet.jurisdiction.label}")
        lines.append(f"Generated: {self.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        lines.append("")

        lines.extend([SECTION, "SCOPE COMPARISON", SECTION])
        lines.append(f"Missing Items: {len(comparison.missing_items)}")
        lines.append(f"Underpaid Items: {len(comparison.underpaid_items)}")
        lines.append(f"Overpaid Items: {len(comparison.overpaid_items)}")
        lines.append(f"Code Mismatches: {len(comparison.mismatched_codes)}")
        lines.append("")

        if packet.code_upgrades:
            lines.extend([SECTION, "CODE UPGRADES", SECTION])
            for upgrade in packet.code_upgrades:
                status = "REQUIRED" if upgrade.required else "RECOMMENDED"
                lines.append(
                    f"  [{status}] {upgrade.item_code} {upgrade.description} "
                    f"(${upgrade.estimated_cost:,.2f}, {upgrade.code_section})"
                )
            lines.append("")

        if packet.arguments:
            lines.extend([SECTION, "SUPPLEMENT ITEMS", SECTION])
            for argument in packet.arguments:
                lines.append("")
                lines.append(
                    f"{argument.item_code}: {argument.item_description} "
                    f"(claimed ${argument.claim_amount:,.2f}, carrier ${argument.carrier_amount:,.2f}, "
                    f"difference ${argument.difference:,.2f})"
                )
                for evidence in argument.evidence:
                    lines.append(f"   - {evidence}")
                if argument.argument:
                    lines.append("")
                    lines.extend(f"   {line}" for line in argument.argument.splitlines())
            lines.append("")

        if self.severity is not None and self.severity.zone_scores:
            lines.extend([SECTION, "DAMAGE SEVERITY", SECTION])
            lines.append(
                f"Overall: {self.severity.overall_score:.1f}/10 "
                f"({self.severity.overall_category.value})"
            )
            for score in self.severity.zone_scores:
                lines.append(f"  {score.zone_name}: {score.score:.1f} ({score.category.value})")
            lines.append(f"Repair Priority: {', '.join(self.severity.repair_priority)}")
            lines.append("")

        totals = packet.totals
        lines.extend([SECTION, "TOTALS", SECTION])
        lines.append(f"Subtotal: ${totals.subtotal:,.2f}")
        lines.append(f"Tax ({totals.tax_rate * 100:.1f}%): ${totals.tax:,.2f}")
        lines.append(f"Total: ${totals.total:,.2f}")
        lines.append("")

        script = packet.negotiation_script
        if include_script and script is not None and script.script:
            lines.extend([SECTION, f"NEGOTIATION SCRIPT ({script.tone.value.upper()})", SECTION])
            lines.append(script.script)
            lines.append("")

        lines.extend([RULE, "END OF PACKET", RULE])
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert the packet to a JSON-ready dictionary with camelCase keys."""
        data: dict[str, Any] = {
            "generatedAt": self.generated_at.isoformat(),
            **self.packet.model_dump(mode="json", by_alias=True),
        }
        if self.severity is not None:
            data["severity"] = self.severity.model_dump(mode="json", by_alias=True)
        return data

    def to_json(self, indent: int = 2) -> str:
        """Convert the packet to JSON."""
        return json.dumps(self.to_dict(), indent=indent)
