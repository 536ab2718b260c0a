"""
Tests for core data models.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from scope_engine.core.models import (
    CarrierRule,
    ComplianceConflict,
    ConflictSeverity,
    ConflictType,
    DamageZone,
    Jurisdiction,
    LineItem,
    LineItemLimit,
    Unit,
    parse_limit,
)


class TestLineItem:
    """Tests for LineItem model."""

    def test_total_calculation(self) -> None:
        """Test automatic total calculation."""
        item = LineItem(
            code="RFG220",
            description="Architectural shingles",
            quantity=10,
            unit=Unit.SQ,
            unit_price=Decimal("325.00"),
        )
        assert item.total == Decimal("3250.00")

    def test_explicit_total(self) -> None:
        """Test explicit total is kept."""
        item = LineItem(
            code="RFG220",
            description="Architectural shingles",
            quantity=10,
            unit=Unit.SQ,
            unit_price=Decimal("325.00"),
            total_price=Decimal("3000.00"),
        )
        assert item.total == Decimal("3000.00")

    def test_code_and_unit_normalized(self) -> None:
        """Codes and units are stripped and upper-cased."""
        item = LineItem(code=" rfg410 ", description="Drip edge", quantity=5, unit="lf", unit_price=7)
        assert item.code == "RFG410"
        assert item.unit == Unit.LF

    def test_camel_case_aliases(self) -> None:
        """Records accept and emit camelCase keys."""
        item = LineItem.model_validate(
            {
                "code": "RFG220",
                "description": "Shingles",
                "quantity": 10,
                "unit": "SQ",
                "unitPrice": 400,
                "totalPrice": 4000,
            }
        )
        assert item.unit_price == Decimal("400")

        dumped = item.model_dump(by_alias=True)
        assert "unitPrice" in dumped
        assert "totalPrice" in dumped

    def test_negative_quantity_rejected(self) -> None:
        """Quantities must be non-negative."""
        with pytest.raises(ValidationError):
            LineItem(code="RFG220", description="Shingles", quantity=-1, unit_price=10)

    def test_unknown_unit_rejected(self) -> None:
        """Units outside SQ/LF/EA/SF/HR are rejected."""
        with pytest.raises(ValidationError):
            LineItem(code="RFG220", description="Shingles", quantity=1, unit="BOX", unit_price=10)


class TestLineItemLimit:
    """Tests for line item limit parsing."""

    def test_parse_limit(self) -> None:
        limit = parse_limit("RFG220 <= 350/SQ")
        assert limit == LineItemLimit(code="RFG220", max_price=Decimal("350"), unit=Unit.SQ)

    def test_parse_limit_with_decimal_price(self) -> None:
        limit = parse_limit("rfg410 <= 7.5/lf")
        assert limit.code == "RFG410"
        assert limit.max_price == Decimal("7.5")
        assert limit.unit == Unit.LF

    def test_str_round_trip(self) -> None:
        assert str(parse_limit("RFG330 <= 12/LF")) == "RFG330 <= 12/LF"

    @pytest.mark.parametrize(
        "text",
        ["RFG220 < 350/SQ", "RFG220 <= /SQ", "RFG220 <= 350", "RFG220 <= 350/BOX", ""],
    )
    def test_malformed_limit_raises(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_limit(text)


class TestCarrierRule:
    """Tests for CarrierRule model."""

    def test_legacy_limit_strings_parsed(self) -> None:
        rule = CarrierRule(carrier_name="Test", line_item_limits=["RFG220 <= 350/SQ"])
        assert rule.line_item_limits[0].max_price == Decimal("350")

    def test_malformed_limit_is_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            CarrierRule(carrier_name="Test", line_item_limits=["RFG220 costs 350"])

    def test_codes_upper_cased(self) -> None:
        rule = CarrierRule(carrier_name="Test", required_items=["rfg410"], denied_items=[" rfg140"])
        assert rule.required_items == ("RFG410",)
        assert rule.denied_items == ("RFG140",)

    def test_rule_is_immutable(self) -> None:
        rule = CarrierRule(carrier_name="Test")
        with pytest.raises(ValidationError):
            rule.waste_limit_percent = 5


class TestJurisdiction:
    """Tests for Jurisdiction model."""

    def test_state_name_normalized(self) -> None:
        jurisdiction = Jurisdiction(city="Prescott", state="Arizona", zip_code="86301")
        assert jurisdiction.state == "AZ"
        assert jurisdiction.label == "Prescott, AZ"

    def test_abbreviation_upper_cased(self) -> None:
        assert Jurisdiction(state="fl").state == "FL"

    def test_empty_label(self) -> None:
        assert Jurisdiction().label == ""


class TestDamageZone:
    """Tests for DamageZone model."""

    def test_coverage_bounds(self) -> None:
        with pytest.raises(ValidationError):
            DamageZone(
                name="North slope",
                coverage_percent=120,
                material_condition="poor",
                urgency="high",
            )


class TestComplianceConflict:
    """Tests for ComplianceConflict model."""

    def test_serializes_type_value(self) -> None:
        conflict = ComplianceConflict(
            type=ConflictType.EXCEEDS_LIMIT,
            severity=ConflictSeverity.WARNING,
            item_code="RFG220",
            item_description="Shingles",
            reason="Too expensive",
            recommendation="Reduce price",
        )
        data = conflict.model_dump(mode="json", by_alias=True)
        assert data["type"] == "exceeds_limit"
        assert data["itemCode"] == "RFG220"
