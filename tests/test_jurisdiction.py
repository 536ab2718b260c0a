"""
Tests for jurisdiction code upgrade detection.
"""

from decimal import Decimal

import pytest

from scope_engine.core.models import Jurisdiction, LineItem
from scope_engine.modules.jurisdiction import detect_code_upgrades, requirements_for


def _codes(jurisdiction: Jurisdiction, scope: list[LineItem]) -> list[str]:
    return [u.item_code for u in detect_code_upgrades(jurisdiction, scope)]


class TestArizona:
    """Tests for Arizona requirements."""

    def test_base_requirements(self) -> None:
        upgrades = detect_code_upgrades(Jurisdiction(city="Tucson", state="AZ"), [])

        assert [u.item_code for u in upgrades] == ["RFG920", "RFG410"]
        ventilation = upgrades[0]
        assert ventilation.code_section == "IRC 2021 R806.2"
        assert ventilation.estimated_cost == Decimal("1200")
        assert ventilation.required is True
        assert ventilation.jurisdiction == "Tucson, AZ"

    def test_satisfied_by_keyword(self, roof_scope: list[LineItem]) -> None:
        scope = roof_scope + [
            LineItem(code="RFG999", description="Ridge vent", quantity=40, unit="LF", unit_price=12),
            LineItem(code="RFG998", description="Drip edge - aluminum", quantity=90, unit="LF", unit_price=7),
        ]
        assert _codes(Jurisdiction(city="Tucson", state="Arizona"), scope) == []

    def test_satisfied_by_code(self) -> None:
        scope = [LineItem(code="RFG410", description="Metal edging", quantity=90, unit="LF", unit_price=7)]
        assert _codes(Jurisdiction(city="Tucson", state="AZ"), scope) == ["RFG920"]

    def test_prescott_wind_recommended(self) -> None:
        upgrades = detect_code_upgrades(Jurisdiction(city="Prescott Valley", state="AZ"), [])

        wind = [u for u in upgrades if u.item_code == "RFG225"]
        assert len(wind) == 1
        assert wind[0].required is False
        assert wind[0].estimated_cost == Decimal("600")

    def test_phoenix_reflective_gated(self) -> None:
        phoenix = Jurisdiction(city="Phoenix", state="AZ")
        assert "RFG230" in _codes(phoenix, [])

        cool_roof = [LineItem(code="RFG999", description="Cool roof shingles", quantity=20, unit="SQ", unit_price=360)]
        assert "RFG230" not in _codes(phoenix, cool_roof)


class TestOtherStates:
    """Tests for ice barrier, wind and Florida requirements."""

    def test_ice_barrier_state(self) -> None:
        upgrades = detect_code_upgrades(Jurisdiction(city="Duluth", state="MN"), [])

        assert [u.item_code for u in upgrades] == ["RFG215"]
        assert upgrades[0].code_section == "IRC R905.1.2"
        assert upgrades[0].required is True

    def test_florida(self) -> None:
        codes = _codes(Jurisdiction(city="Tampa", state="Florida"), [])
        assert codes == ["RFG212", "RFG225"]

    def test_high_wind_recommended(self) -> None:
        upgrades = detect_code_upgrades(Jurisdiction(city="Wilmington", state="NC"), [])
        assert [(u.item_code, u.required) for u in upgrades] == [("RFG225", False)]

    @pytest.mark.parametrize("state", ["TX", "", "CA"])
    def test_no_requirements(self, state: str) -> None:
        assert requirements_for(Jurisdiction(city="Anywhere", state=state)) == []
