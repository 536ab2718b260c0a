"""
Core data models for the Scope Reconciliation Engine.
Uses Pydantic for validation and serialization.
"""

import re
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ScopeModel(BaseModel):
    """Base model accepting and emitting camelCase field aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Unit(str, Enum):
    """Units of measure used on line items."""

    SQ = "SQ"  # Roofing square (100 sq ft)
    LF = "LF"  # Linear feet
    EA = "EA"  # Each
    SF = "SF"  # Square feet
    HR = "HR"  # Hour


class LineItem(ScopeModel):
    """Individual priced line item from a repair scope."""

    code: str = Field(description="Xactimate or proprietary code")
    description: str
    quantity: float = Field(ge=0)
    unit: Unit = Unit.EA
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal | None = None
    category: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def _normalize_unit(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def model_post_init(self, __context: Any) -> None:
        """Calculate total if not provided."""
        if self.total_price is None:
            self.total_price = Decimal(str(self.quantity)) * self.unit_price

    @property
    def total(self) -> Decimal:
        """Total price, never None after construction."""
        return self.total_price if self.total_price is not None else Decimal("0")


LIMIT_PATTERN = re.compile(
    r"^\s*(?P<code>[A-Za-z0-9&_\-]+)\s*<=\s*\$?(?P<price>\d+(?:\.\d+)?)\s*/\s*(?P<unit>[A-Za-z]+)\s*$"
)


class LineItemLimit(ScopeModel):
    """Maximum unit price a carrier will pay for a line item code."""

    model_config = ConfigDict(frozen=True)

    code: str
    max_price: Decimal = Field(ge=0)
    unit: Unit

    def __str__(self) -> str:
        return f"{self.code} <= {self.max_price}/{self.unit.value}"


def parse_limit(text: str) -> LineItemLimit:
    """
    Parse a legacy ``"<CODE> <= <PRICE>/<UNIT>"`` limit string.

    Raises:
        ValueError: If the string does not match the expected shape
    """
    match = LIMIT_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Malformed line item limit: {text!r}")
    unit = match.group("unit").upper()
    if unit not in Unit.__members__:
        raise ValueError(f"Unknown unit {unit!r} in line item limit: {text!r}")
    return LineItemLimit(
        code=match.group("code").upper(),
        max_price=Decimal(match.group("price")),
        unit=Unit(unit),
    )


class CarrierRule(ScopeModel):
    """Underwriting rules for a single carrier (or a merged set of carriers)."""

    model_config = ConfigDict(frozen=True)

    carrier_name: str
    requires_starter_rake: bool = False
    allows_ice_and_water: bool = True
    drip_edge_required: bool = False
    overhead_profit_allowed: bool = True
    waste_limit_percent: float | None = None
    line_item_limits: tuple[LineItemLimit, ...] = ()
    required_items: tuple[str, ...] = ()
    denied_items: tuple[str, ...] = ()
    code_upgrade_rules: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    documentation_requirements: tuple[str, ...] = ()

    @field_validator("line_item_limits", mode="before")
    @classmethod
    def _parse_legacy_limits(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(parse_limit(v) if isinstance(v, str) else v for v in value)
        return value

    @field_validator("required_items", "denied_items", mode="before")
    @classmethod
    def _normalize_codes(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(v.strip().upper() if isinstance(v, str) else v for v in value)
        return value


class ConflictType(str, Enum):
    """Kinds of carrier compliance conflicts."""

    MISSING_REQUIRED = "missing_required"
    DENIED_ITEM = "denied_item"
    EXCEEDS_LIMIT = "exceeds_limit"
    WASTE_VIOLATION = "waste_violation"
    OP_DENIED = "op_denied"
    CODE_UPGRADE_ISSUE = "code_upgrade_issue"


class ConflictSeverity(str, Enum):
    """Severity levels for compliance conflicts."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ComplianceConflict(ScopeModel):
    """A single disagreement between a scope and a carrier rule."""

    model_config = ConfigDict(frozen=True)

    type: ConflictType
    severity: ConflictSeverity
    item_code: str | None = None
    item_description: str
    reason: str
    recommendation: str
    carrier_note: str | None = None


class ScopeAdjustment(ScopeModel):
    """A change applied to make a scope line carrier-friendly."""

    original_item: LineItem
    adjusted_item: LineItem
    change_reason: str
    carrier_compliant: bool = True


class OverallCompliance(str, Enum):
    """Overall compliance verdict."""

    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"
    LIKELY_DENIED = "likely_denied"


class ComplianceSummary(ScopeModel):
    """Aggregate view of the conflicts found for a scope."""

    overall_compliance: OverallCompliance
    confidence_score: int = Field(ge=0, le=100)
    critical_issues: int = 0
    warnings: int = 0
    required_corrections: list[ComplianceConflict] = Field(default_factory=list)
    optional_enhancements: list[ComplianceConflict] = Field(default_factory=list)
    carrier_notes: list[str] = Field(default_factory=list)
    estimated_approval_chance: int = Field(ge=0, le=100)


class ComplianceResult(ScopeModel):
    """Complete output of one compliance evaluation."""

    carrier_name: str | None = None
    checks_performed: bool = True
    conflicts: list[ComplianceConflict] = Field(default_factory=list)
    adjustments: list[ScopeAdjustment] = Field(default_factory=list)
    adjusted_scope: list[LineItem] = Field(default_factory=list)
    summary: ComplianceSummary | None = None


class PriceVariance(ScopeModel):
    """Matched line item whose contractor and carrier totals differ."""

    item: LineItem
    contractor_amount: Decimal
    carrier_amount: Decimal
    difference: Decimal


class CodeMismatch(ScopeModel):
    """Same work described under different codes."""

    contractor_code: str
    carrier_code: str
    description: str


class ScopeComparison(ScopeModel):
    """Result of diffing a contractor scope against a carrier scope."""

    missing_items: list[LineItem] = Field(default_factory=list)
    underpaid_items: list[PriceVariance] = Field(default_factory=list)
    overpaid_items: list[PriceVariance] = Field(default_factory=list)
    mismatched_codes: list[CodeMismatch] = Field(default_factory=list)


STATE_ABBREVIATIONS: dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "florida": "FL", "georgia": "GA", "hawaii": "HI",
    "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME",
    "maryland": "MD", "massachusetts": "MA", "michigan": "MI", "minnesota": "MN",
    "mississippi": "MS", "missouri": "MO", "montana": "MT", "nebraska": "NE",
    "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM",
    "new york": "NY", "north carolina": "NC", "north dakota": "ND", "ohio": "OH",
    "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI",
    "south carolina": "SC", "south dakota": "SD", "tennessee": "TN", "texas": "TX",
    "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
}


class Jurisdiction(ScopeModel):
    """Location of the insured property."""

    city: str = ""
    state: str = ""
    zip_code: str = ""

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        return STATE_ABBREVIATIONS.get(cleaned.lower(), cleaned.upper())

    @property
    def label(self) -> str:
        """Human readable ``City, ST`` label."""
        parts = [p for p in (self.city.strip(), self.state) if p]
        return ", ".join(parts)


class CodeUpgrade(ScopeModel):
    """Jurisdiction-specific building code requirement."""

    item_code: str
    description: str
    code_section: str
    jurisdiction: str
    reasoning: str
    estimated_cost: Decimal
    required: bool  # True = code mandated, False = recommended


class SupplementArgument(ScopeModel):
    """One supplement line with its deterministic figures and generated prose."""

    item_code: str
    item_description: str
    claim_amount: Decimal
    carrier_amount: Decimal
    difference: Decimal
    argument: str = ""
    evidence: list[str] = Field(default_factory=list)
    code_references: list[str] = Field(default_factory=list)
    photo_references: list[str] = Field(default_factory=list)


class NegotiationTone(str, Enum):
    """Tone presets for negotiation scripts."""

    PROFESSIONAL = "professional"
    FIRM = "firm"
    LEGAL = "legal"


class NegotiationScript(ScopeModel):
    """Negotiation script and the locally computed amount it requests."""

    tone: NegotiationTone
    total_requested: Decimal
    item_count: int
    script: str = ""


class SupplementTotals(ScopeModel):
    """Supplement subtotal, tax and total."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    tax_rate: Decimal


class SupplementPacket(ScopeModel):
    """Everything produced by a full scope reconciliation."""

    carrier_name: str | None = None
    jurisdiction: Jurisdiction = Field(default_factory=Jurisdiction)
    comparison: ScopeComparison
    code_upgrades: list[CodeUpgrade] = Field(default_factory=list)
    arguments: list[SupplementArgument] = Field(default_factory=list)
    negotiation_script: NegotiationScript | None = None
    totals: SupplementTotals


class DetectionSource(str, Enum):
    """Signal a carrier identity was detected from."""

    EMAIL = "email"
    DOCUMENT = "document"
    NOTES = "notes"
    MANUAL = "manual"
    NONE = "none"


class CarrierDetection(ScopeModel):
    """Outcome of a carrier detection strategy."""

    carrier_name: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detected_from: DetectionSource = DetectionSource.NONE
    rule: CarrierRule | None = None
    alternatives: list[str] = Field(default_factory=list)


class MaterialCondition(str, Enum):
    """Observed condition of the roofing material in a zone."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class Urgency(str, Enum):
    """Repair urgency for a damage zone."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SeverityCategory(str, Enum):
    """Severity bands for a 1-10 score."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    CATASTROPHIC = "catastrophic"


class DamageZone(ScopeModel):
    """Observed damage on one area of a property."""

    name: str
    damage_type: list[str] = Field(default_factory=list)
    coverage_percent: float = Field(ge=0, le=100)
    material_condition: MaterialCondition
    structural_impact: bool = False
    urgency: Urgency


class SeverityScore(ScopeModel):
    """Derived severity for a damage zone."""

    zone_name: str
    score: float
    category: SeverityCategory
    extent_score: int
    condition_score: int
    structural_score: int
    urgency_score: int


class SeverityAssessment(ScopeModel):
    """Per-zone and overall severity with repair priority."""

    zone_scores: list[SeverityScore] = Field(default_factory=list)
    overall_score: float = 0.0
    overall_category: SeverityCategory = SeverityCategory.MINOR
    critical_zones: list[str] = Field(default_factory=list)
    repair_priority: list[str] = Field(default_factory=list)
