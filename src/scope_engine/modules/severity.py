"""
Damage Severity Scoring Module.
Scores damage zones on a 1-10 scale and orders them for repair.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..core.models import (
    DamageZone,
    MaterialCondition,
    SeverityAssessment,
    SeverityCategory,
    SeverityScore,
    Urgency,
)


class SeverityEngine:
    """Weighted blend of extent, condition, structural and urgency sub-scores."""

    # (minimum coverage percent, score), checked in order
    EXTENT_BANDS: tuple[tuple[float, int], ...] = (
        (75, 10),
        (50, 8),
        (25, 6),
        (10, 4),
    )
    EXTENT_FLOOR = 2

    CONDITION_SCORES: dict[MaterialCondition, int] = {
        MaterialCondition.EXCELLENT: 1,
        MaterialCondition.GOOD: 3,
        MaterialCondition.FAIR: 5,
        MaterialCondition.POOR: 8,
        MaterialCondition.CRITICAL: 10,
    }

    STRUCTURAL_IMPACT_SCORE = 10
    NO_STRUCTURAL_IMPACT_SCORE = 2

    URGENCY_SCORES: dict[Urgency, int] = {
        Urgency.LOW: 2,
        Urgency.MEDIUM: 5,
        Urgency.HIGH: 8,
        Urgency.CRITICAL: 10,
    }

    WEIGHTS = {
        "extent": Decimal("0.30"),
        "condition": Decimal("0.25"),
        "structural": Decimal("0.30"),
        "urgency": Decimal("0.15"),
    }

    # (minimum score, category), checked in order
    CATEGORY_BANDS: tuple[tuple[float, SeverityCategory], ...] = (
        (8.5, SeverityCategory.CATASTROPHIC),
        (6.5, SeverityCategory.SEVERE),
        (4.0, SeverityCategory.MODERATE),
    )

    CRITICAL_ZONE_THRESHOLD = 7.0

    URGENCY_RANK: dict[Urgency, int] = {
        Urgency.CRITICAL: 0,
        Urgency.HIGH: 1,
        Urgency.MEDIUM: 2,
        Urgency.LOW: 3,
    }

    @classmethod
    def extent_score(cls, coverage_percent: float) -> int:
        for minimum, score in cls.EXTENT_BANDS:
            if coverage_percent >= minimum:
                return score
        return cls.EXTENT_FLOOR

    @classmethod
    def categorize(cls, score: float) -> SeverityCategory:
        for minimum, category in cls.CATEGORY_BANDS:
            if score >= minimum:
                return category
        return SeverityCategory.MINOR

    @staticmethod
    def _round(value: Decimal) -> float:
        return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    def score_zone(self, zone: DamageZone) -> SeverityScore:
        """Score one damage zone."""
        extent = self.extent_score(zone.coverage_percent)
        condition = self.CONDITION_SCORES[zone.material_condition]
        structural = (
            self.STRUCTURAL_IMPACT_SCORE if zone.structural_impact else self.NO_STRUCTURAL_IMPACT_SCORE
        )
        urgency = self.URGENCY_SCORES[zone.urgency]

        weighted = (
            extent * self.WEIGHTS["extent"]
            + condition * self.WEIGHTS["condition"]
            + structural * self.WEIGHTS["structural"]
            + urgency * self.WEIGHTS["urgency"]
        )
        score = self._round(weighted)

        return SeverityScore(
            zone_name=zone.name,
            score=score,
            category=self.categorize(score),
            extent_score=extent,
            condition_score=condition,
            structural_score=structural,
            urgency_score=urgency,
        )

    def assess(self, zones: list[DamageZone]) -> SeverityAssessment:
        """
        Score all zones and derive the overall assessment.

        The overall score is the unweighted mean of zone scores; zones are
        not weighted by area.
        """
        if not zones:
            return SeverityAssessment()

        scores = [self.score_zone(zone) for zone in zones]
        mean = sum(Decimal(str(s.score)) for s in scores) / len(scores)
        overall = self._round(mean)

        # Stable sort keeps input order for equal urgency and score
        ordered = sorted(
            zip(zones, scores),
            key=lambda pair: (self.URGENCY_RANK[pair[0].urgency], -pair[1].score),
        )

        return SeverityAssessment(
            zone_scores=scores,
            overall_score=overall,
            overall_category=self.categorize(overall),
            critical_zones=[s.zone_name for s in scores if s.score >= self.CRITICAL_ZONE_THRESHOLD],
            repair_priority=[zone.name for zone, _ in ordered],
        )
