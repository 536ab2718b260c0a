"""
Carrier Compliance Module.
Checks a scope against carrier rules and produces a carrier-friendly adjusted scope.
"""

import math
from decimal import Decimal

from ..core.models import (
    CarrierRule,
    ComplianceConflict,
    ComplianceResult,
    ComplianceSummary,
    ConflictSeverity,
    ConflictType,
    LineItem,
    OverallCompliance,
    ScopeAdjustment,
    Unit,
)
from ..core.rule_engine import ComplianceCheck, RuleEngine
from ..core.xactimate_parser import get_parser
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


# Fixed lookup for synthesising missing required items
REQUIRED_ITEM_CATALOG: dict[str, tuple[str, Unit, Decimal]] = {
    "RFG330": ("Starter strip shingles", Unit.LF, Decimal("10")),
    "RFG410": ("Drip edge", Unit.LF, Decimal("7")),
    "RFG210": ("Underlayment (felt)", Unit.SQ, Decimal("25")),
    "RFG215": ("Ice and water shield", Unit.SQ, Decimal("40")),
    "RFG220": ("Architectural shingles", Unit.SQ, Decimal("325")),
    "RFG110": ("3-tab shingles", Unit.SQ, Decimal("225")),
}

PERIMETER_ITEMS = frozenset({"RFG330", "RFG410"})
LF_PER_SQUARE = 4.5
DEFAULT_QUANTITY = 10.0


def get_item_description(code: str) -> str:
    """Catalog description for a code."""
    entry = REQUIRED_ITEM_CATALOG.get(code)
    return entry[0] if entry else "Unknown item"


def estimate_quantity(code: str, scope: list[LineItem]) -> float:
    """Estimate the quantity of a missing item from the roof area on the scope."""
    total_sq = sum(item.quantity for item in scope if item.unit == Unit.SQ)

    if code in PERIMETER_ITEMS:
        # Starter and drip edge run the perimeter
        return float(math.ceil(total_sq * LF_PER_SQUARE))

    return total_sq or DEFAULT_QUANTITY


def effective_limits(rule: CarrierRule) -> dict[str, Decimal]:
    """Lowest max price per code; merged rules may list a code more than once."""
    limits: dict[str, Decimal] = {}
    for limit in rule.line_item_limits:
        current = limits.get(limit.code)
        if current is None or limit.max_price < current:
            limits[limit.code] = limit.max_price
    return limits


def _find_note(rule: CarrierRule, *needles: str) -> str | None:
    for note in rule.notes:
        lowered = note.lower()
        if any(needle.lower() in lowered for needle in needles):
            return note
    return None


class ComplianceEngine:
    """
    Evaluates a scope against a carrier rule record.

    Conflicts are produced in a fixed order: missing required items, denied
    items, price limits, waste factor, O&P, ice and water shield.
    """

    CRITICAL_PENALTY = 20
    WARNING_PENALTY = 5
    BASE_CONFIDENCE = 60
    CONFIDENCE_PER_LIMIT = 5
    MAX_CONFIDENCE = 95

    def __init__(self, rule_engine: RuleEngine | None = None) -> None:
        self.engine = rule_engine or RuleEngine()
        self.parser = get_parser()
        self._register_checks()

    def _register_checks(self) -> None:
        """Register all compliance checks in evaluation order."""
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-001",
                name="Required Items",
                description="Flag carrier-required items missing from the scope",
                conflict_type=ConflictType.MISSING_REQUIRED,
                severity=ConflictSeverity.CRITICAL,
                validator=self._check_required_items,
            )
        )
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-002",
                name="Denied Items",
                description="Flag items the carrier commonly denies",
                conflict_type=ConflictType.DENIED_ITEM,
                severity=ConflictSeverity.CRITICAL,
                validator=self._check_denied_items,
            )
        )
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-003",
                name="Price Limits",
                description="Flag unit prices above the carrier's maximum",
                conflict_type=ConflictType.EXCEEDS_LIMIT,
                severity=ConflictSeverity.WARNING,
                validator=self._check_price_limits,
            )
        )
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-004",
                name="Waste Factor",
                description="Flag waste factors above the carrier limit",
                conflict_type=ConflictType.WASTE_VIOLATION,
                severity=ConflictSeverity.CRITICAL,
                validator=self._check_waste,
            )
        )
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-005",
                name="Overhead & Profit",
                description="Flag O&P for carriers that deny it",
                conflict_type=ConflictType.OP_DENIED,
                severity=ConflictSeverity.CRITICAL,
                validator=self._check_overhead_profit,
            )
        )
        self.engine.add_check(
            ComplianceCheck(
                check_id="CMP-006",
                name="Ice and Water Shield",
                description="Flag ice and water shield for carriers that deny it",
                conflict_type=ConflictType.DENIED_ITEM,
                severity=ConflictSeverity.WARNING,
                validator=self._check_ice_and_water,
            )
        )

    def _check_required_items(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        present = {item.code for item in scope}
        conflicts: list[ComplianceConflict] = []

        for code in rule.required_items:
            if code in present:
                continue
            description = get_item_description(code)
            conflicts.append(
                ComplianceConflict(
                    type=ConflictType.MISSING_REQUIRED,
                    severity=ConflictSeverity.CRITICAL,
                    item_code=code,
                    item_description=description,
                    reason=f"{rule.carrier_name} requires this item on all claims",
                    recommendation=f"Add {description} to scope",
                    carrier_note=_find_note(rule, code),
                )
            )
        return conflicts

    def _check_denied_items(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        return [
            ComplianceConflict(
                type=ConflictType.DENIED_ITEM,
                severity=ConflictSeverity.CRITICAL,
                item_code=item.code,
                item_description=item.description,
                reason=f"{rule.carrier_name} commonly denies this item",
                recommendation=f"Remove {item.description} or provide exceptional justification",
                carrier_note=_find_note(rule, item.description),
            )
            for item in scope
            if item.code in rule.denied_items
        ]

    def _check_price_limits(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        limits = effective_limits(rule)
        units = {limit.code: limit.unit.value for limit in rule.line_item_limits}
        conflicts: list[ComplianceConflict] = []

        for code, max_price in limits.items():
            for item in scope:
                if item.code != code or item.unit_price <= max_price:
                    continue
                unit = units[code]
                conflicts.append(
                    ComplianceConflict(
                        type=ConflictType.EXCEEDS_LIMIT,
                        severity=ConflictSeverity.WARNING,
                        item_code=item.code,
                        item_description=item.description,
                        reason=(
                            f"Unit price ${item.unit_price}/{item.unit.value} exceeds "
                            f"{rule.carrier_name} limit of ${max_price}/{unit}"
                        ),
                        recommendation=(
                            f"Reduce unit price to ${max_price}/{unit} "
                            "or provide market rate justification"
                        ),
                    )
                )
        return conflicts

    def waste_percent(self, scope: list[LineItem]) -> float:
        """Waste quantity as a percentage of the total scope quantity."""
        waste_item = self.parser.find_first(scope, "waste")
        if waste_item is None:
            return 0.0
        total_quantity = sum(item.quantity for item in scope)
        if total_quantity <= 0:
            return 0.0
        return waste_item.quantity / total_quantity * 100

    def _check_waste(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        waste_item = self.parser.find_first(scope, "waste")
        if waste_item is None or rule.waste_limit_percent is None:
            return []

        percent = self.waste_percent(scope)
        if percent <= rule.waste_limit_percent:
            return []

        return [
            ComplianceConflict(
                type=ConflictType.WASTE_VIOLATION,
                severity=ConflictSeverity.CRITICAL,
                item_code=waste_item.code,
                item_description="Waste factor",
                reason=(
                    f"Waste factor {percent:.1f}% exceeds {rule.carrier_name} "
                    f"limit of {rule.waste_limit_percent:g}%"
                ),
                recommendation=f"Reduce waste factor to {rule.waste_limit_percent:g}% or less",
                carrier_note=_find_note(rule, "waste"),
            )
        ]

    def _check_overhead_profit(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        if rule.overhead_profit_allowed:
            return []
        op_item = self.parser.find_first(scope, "overhead_profit")
        if op_item is None:
            return []

        return [
            ComplianceConflict(
                type=ConflictType.OP_DENIED,
                severity=ConflictSeverity.CRITICAL,
                item_code=op_item.code,
                item_description="Overhead & Profit",
                reason=(
                    f"{rule.carrier_name} denies O&P without proof of "
                    "general contractor supervision"
                ),
                recommendation=(
                    "Remove O&P or provide subcontractor agreements "
                    "and supervision documentation"
                ),
                carrier_note=_find_note(rule, "o&p", "profit"),
            )
        ]

    def _check_ice_and_water(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        if rule.allows_ice_and_water:
            return []
        item = self.parser.find_first(scope, "ice_and_water")
        if item is None:
            return []

        return [
            ComplianceConflict(
                type=ConflictType.DENIED_ITEM,
                severity=ConflictSeverity.WARNING,
                item_code=item.code,
                item_description="Ice and water shield",
                reason=(
                    f"{rule.carrier_name} often denies ice and water shield "
                    "without proof of necessity"
                ),
                recommendation="Provide documentation of wind-driven rain damage or remove item",
                carrier_note=_find_note(rule, "ice"),
            )
        ]

    def analyze_conflicts(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ComplianceConflict]:
        """Run every compliance check against the scope."""
        return self.engine.execute_all(scope, rule)

    def _adjust(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> tuple[list[ScopeAdjustment], list[LineItem]]:
        limits = effective_limits(rule)
        adjustments: list[ScopeAdjustment] = []
        adjusted_scope: list[LineItem] = []

        for item in scope:
            updates: dict[str, object] = {}
            reasons: list[str] = []

            max_price = limits.get(item.code)
            if max_price is not None and item.unit_price > max_price:
                updates["unit_price"] = max_price
                updates["total_price"] = max_price * Decimal(str(item.quantity))
                reasons.append(
                    f"Adjusted to {rule.carrier_name} maximum allowable price of "
                    f"${max_price}/{item.unit.value}"
                )

            if item.code in rule.denied_items:
                reasons.append(f"Removed - commonly denied by {rule.carrier_name}")
                updates.update(quantity=0.0, total_price=Decimal("0"))
            elif not rule.overhead_profit_allowed and self.parser.has_feature(
                item, "overhead_profit"
            ):
                reasons.append(
                    f"Removed - {rule.carrier_name} denies O&P without GC supervision proof"
                )
                updates.update(quantity=0.0, total_price=Decimal("0"))

            if not reasons:
                adjusted_scope.append(item)
                continue

            adjusted_item = item.model_copy(update=updates)
            adjusted_scope.append(adjusted_item)
            adjustments.append(
                ScopeAdjustment(
                    original_item=item,
                    adjusted_item=adjusted_item,
                    change_reason="; ".join(reasons),
                )
            )

        present = {item.code for item in scope}
        for code in rule.required_items:
            if code in present:
                continue
            description, unit, price = REQUIRED_ITEM_CATALOG.get(
                code, ("Unknown item", Unit.EA, Decimal("0"))
            )
            max_price = limits.get(code)
            if max_price is not None and price > max_price:
                price = max_price
            new_item = LineItem(
                code=code,
                description=description,
                quantity=estimate_quantity(code, scope),
                unit=unit,
                unit_price=price,
            )
            adjusted_scope.append(new_item)
            adjustments.append(
                ScopeAdjustment(
                    original_item=new_item.model_copy(
                        update={"quantity": 0.0, "total_price": Decimal("0")}
                    ),
                    adjusted_item=new_item,
                    change_reason=f"Added - required by {rule.carrier_name}",
                )
            )

        return adjustments, adjusted_scope

    def generate_adjustments(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[ScopeAdjustment]:
        """
        Build the changes needed to make a scope carrier-friendly.

        Over-limit prices are clamped, denied and disallowed O&P items are
        zeroed, and missing required items are added.
        """
        return self._adjust(scope, rule)[0]

    def build_adjusted_scope(
        self, scope: list[LineItem], rule: CarrierRule
    ) -> list[LineItem]:
        """Full corrected scope: adjusted items in place, added items at the end."""
        return self._adjust(scope, rule)[1]

    def summarize(
        self, conflicts: list[ComplianceConflict], rule: CarrierRule
    ) -> ComplianceSummary:
        """Score a list of conflicts into a compliance summary."""
        critical = [c for c in conflicts if c.severity == ConflictSeverity.CRITICAL]
        optional = [c for c in conflicts if c.severity != ConflictSeverity.CRITICAL]
        warnings = sum(1 for c in conflicts if c.severity == ConflictSeverity.WARNING)

        approval = 100 - self.CRITICAL_PENALTY * len(critical) - self.WARNING_PENALTY * warnings
        approval = max(0, min(100, approval))

        if not critical and warnings <= 1:
            overall = OverallCompliance.APPROVED
        elif len(critical) <= 2:
            overall = OverallCompliance.NEEDS_REVISION
        else:
            overall = OverallCompliance.LIKELY_DENIED

        confidence = min(
            self.MAX_CONFIDENCE,
            self.BASE_CONFIDENCE + self.CONFIDENCE_PER_LIMIT * len(rule.line_item_limits),
        )

        return ComplianceSummary(
            overall_compliance=overall,
            confidence_score=confidence,
            critical_issues=len(critical),
            warnings=warnings,
            required_corrections=critical,
            optional_enhancements=optional,
            carrier_notes=list(rule.notes),
            estimated_approval_chance=approval,
        )

    def evaluate(
        self, scope: list[LineItem], rule: CarrierRule | None
    ) -> ComplianceResult:
        """Run conflicts, adjustments and summary for one scope."""
        if rule is None:
            LOGGER.info("No carrier rule resolved; compliance checks skipped")
            return ComplianceResult(
                carrier_name=None,
                checks_performed=False,
                adjusted_scope=list(scope),
            )

        conflicts = self.analyze_conflicts(scope, rule)
        adjustments, adjusted_scope = self._adjust(scope, rule)
        summary = self.summarize(conflicts, rule)
        LOGGER.debug(
            "Compliance for %s: %s (%d critical, %d warnings)",
            rule.carrier_name,
            summary.overall_compliance.value,
            summary.critical_issues,
            summary.warnings,
        )

        return ComplianceResult(
            carrier_name=rule.carrier_name,
            conflicts=conflicts,
            adjustments=adjustments,
            adjusted_scope=adjusted_scope,
            summary=summary,
        )
