"""
Scope Comparison Module.
Diffs a contractor scope against the carrier-issued scope.
"""

from decimal import Decimal

from ..core.models import (
    CodeMismatch,
    LineItem,
    PriceVariance,
    ScopeComparison,
)


def find_matching_item(item: LineItem, candidates: list[LineItem]) -> LineItem | None:
    """
    Find the carrier line that corresponds to a contractor line.

    Codes identify items; a case-insensitive description match is the
    fallback when no code matches.
    """
    if item.code:
        for candidate in candidates:
            if candidate.code == item.code:
                return candidate

    description = item.description.strip().lower()
    for candidate in candidates:
        if candidate.description.strip().lower() == description:
            return candidate
    return None


def compare_scopes(
    contractor_scope: list[LineItem],
    carrier_scope: list[LineItem],
    threshold: Decimal = Decimal("50"),
) -> ScopeComparison:
    """
    Compare contractor and carrier scopes.

    Args:
        contractor_scope: Line items proposed by the contractor
        carrier_scope: Line items issued by the carrier
        threshold: Total-price difference above which a line is under/overpaid

    Returns:
        Missing, underpaid and overpaid items plus code mismatches
    """
    comparison = ScopeComparison()

    for contractor_item in contractor_scope:
        carrier_item = find_matching_item(contractor_item, carrier_scope)

        if carrier_item is None:
            comparison.missing_items.append(contractor_item)
            continue

        contractor_total = contractor_item.total
        carrier_total = carrier_item.total
        difference = contractor_total - carrier_total

        if difference > threshold:
            comparison.underpaid_items.append(
                PriceVariance(
                    item=contractor_item,
                    contractor_amount=contractor_total,
                    carrier_amount=carrier_total,
                    difference=difference,
                )
            )
        elif difference < -threshold:
            comparison.overpaid_items.append(
                PriceVariance(
                    item=contractor_item,
                    contractor_amount=contractor_total,
                    carrier_amount=carrier_total,
                    difference=abs(difference),
                )
            )

        if carrier_item.code != contractor_item.code:
            comparison.mismatched_codes.append(
                CodeMismatch(
                    contractor_code=contractor_item.code,
                    carrier_code=carrier_item.code,
                    description=contractor_item.description,
                )
            )

    return comparison
