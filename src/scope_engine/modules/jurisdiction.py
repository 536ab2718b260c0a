"""
Jurisdiction Code Upgrade Module.
Detects building code upgrades a scope is missing for a given state and city.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..core.models import CodeUpgrade, Jurisdiction, LineItem
from ..core.xactimate_parser import get_parser


@dataclass(frozen=True)
class CodeRequirement:
    """A code-driven item a jurisdiction expects on a roof replacement."""

    item_code: str
    description: str
    code_section: str
    reasoning: str
    estimated_cost: Decimal
    required: bool
    feature: str  # xactimate_parser feature that satisfies the requirement
    city: str | None = None  # Restrict to cities containing this text


VENTILATION = CodeRequirement(
    item_code="RFG920",
    description="Roof ventilation upgrade (IRC 2021 compliant)",
    code_section="IRC 2021 R806.2",
    reasoning="IRC 2021 requires balanced ventilation with 1:150 or 1:300 ratio for attic spaces",
    estimated_cost=Decimal("1200"),
    required=True,
    feature="ventilation",
)

DRIP_EDGE = CodeRequirement(
    item_code="RFG410",
    description="Drip edge installation",
    code_section="IRC 2021 R905.2.8.5",
    reasoning="IRC 2021 mandates drip edge at eaves and gables for asphalt shingle roofs",
    estimated_cost=Decimal("800"),
    required=True,
    feature="drip_edge",
)

ICE_BARRIER = CodeRequirement(
    item_code="RFG215",
    description="Ice barrier (ice and water shield) at eaves",
    code_section="IRC R905.1.2",
    reasoning=(
        "Ice barrier is required from the eave edge to 24 inches inside the exterior "
        "wall where there has been a history of ice forming along the eaves"
    ),
    estimated_cost=Decimal("950"),
    required=True,
    feature="ice_and_water",
)

HURRICANE_WIND = CodeRequirement(
    item_code="RFG225",
    description="High wind-rated shingles (ASTM D7158 Class H)",
    code_section="IRC R905.2.4.1",
    reasoning="Shingles in hurricane-prone regions must be tested and labeled for the design wind speed",
    estimated_cost=Decimal("900"),
    required=True,
    feature="high_wind",
)

HIGH_WIND = CodeRequirement(
    item_code="RFG225",
    description="High wind-rated shingles (ASTM D7158 Class H)",
    code_section="IRC R905.2.4.1",
    reasoning="Coastal wind maps place parts of the state above the basic design wind speed",
    estimated_cost=Decimal("700"),
    required=False,
    feature="high_wind",
)

FL_SECONDARY_BARRIER = CodeRequirement(
    item_code="RFG212",
    description="Secondary water barrier (self-adhered underlayment)",
    code_section="FBC 2023 R905.1.1",
    reasoning="Florida requires a sealed roof deck or secondary water barrier on re-roofs",
    estimated_cost=Decimal("1500"),
    required=True,
    feature="secondary_barrier",
)

PRESCOTT_WIND = CodeRequirement(
    item_code="RFG225",
    description="High wind-rated shingles (Class H)",
    code_section="Prescott Building Code 2021",
    reasoning="Prescott requires Class H wind-rated shingles for exposed locations",
    estimated_cost=Decimal("600"),
    required=False,
    feature="high_wind",
    city="prescott",
)

PHOENIX_COOL_ROOF = CodeRequirement(
    item_code="RFG230",
    description="Cool roof / reflective shingles",
    code_section="Title 24 Energy Efficiency (recommended)",
    reasoning="Reflective roofing reduces cooling costs in Phoenix heat",
    estimated_cost=Decimal("400"),
    required=False,
    feature="reflective",
    city="phoenix",
)

ICE_BARRIER_STATES = frozenset(
    {"CT", "IL", "IN", "IA", "ME", "MA", "MI", "MN", "MT", "NH", "NJ", "NY", "ND", "OH"}
)
HURRICANE_STATES = frozenset({"AL", "FL", "HI", "LA", "MS"})
HIGH_WIND_STATES = frozenset({"GA", "NC"})

STATE_REQUIREMENTS: dict[str, list[CodeRequirement]] = {
    "AZ": [VENTILATION, DRIP_EDGE, PRESCOTT_WIND, PHOENIX_COOL_ROOF],
    "FL": [FL_SECONDARY_BARRIER],
}


def requirements_for(jurisdiction: Jurisdiction) -> list[CodeRequirement]:
    """All code requirements that apply to a jurisdiction, in table order."""
    state = jurisdiction.state
    city = jurisdiction.city.strip().lower()

    requirements = list(STATE_REQUIREMENTS.get(state, []))
    if state in ICE_BARRIER_STATES:
        requirements.append(ICE_BARRIER)
    if state in HURRICANE_STATES:
        requirements.append(HURRICANE_WIND)
    elif state in HIGH_WIND_STATES:
        requirements.append(HIGH_WIND)

    return [r for r in requirements if r.city is None or r.city in city]


def detect_code_upgrades(
    jurisdiction: Jurisdiction, existing_scope: list[LineItem]
) -> list[CodeUpgrade]:
    """
    Detect code upgrades the existing scope does not already cover.

    A requirement is satisfied when any scope line matches its feature by
    code or description keyword.
    """
    parser = get_parser()
    label = jurisdiction.label

    return [
        CodeUpgrade(
            item_code=req.item_code,
            description=req.description,
            code_section=req.code_section,
            jurisdiction=label,
            reasoning=req.reasoning,
            estimated_cost=req.estimated_cost,
            required=req.required,
        )
        for req in requirements_for(jurisdiction)
        if parser.find_first(existing_scope, req.feature) is None
    ]
