"""
Tests for damage severity scoring.
"""

import pytest

from scope_engine.core.models import (
    DamageZone,
    MaterialCondition,
    SeverityCategory,
    Urgency,
)
from scope_engine.modules.severity import SeverityEngine


@pytest.fixture
def engine() -> SeverityEngine:
    return SeverityEngine()


def _zone(
    name: str,
    coverage: float = 30,
    condition: MaterialCondition = MaterialCondition.FAIR,
    structural: bool = False,
    urgency: Urgency = Urgency.MEDIUM,
) -> DamageZone:
    return DamageZone(
        name=name,
        damage_type=["hail"],
        coverage_percent=coverage,
        material_condition=condition,
        structural_impact=structural,
        urgency=urgency,
    )


class TestScoreZone:
    """Tests for per-zone scoring."""

    def test_catastrophic_zone(self, engine: SeverityEngine) -> None:
        score = engine.score_zone(
            _zone("North slope", 80, MaterialCondition.CRITICAL, True, Urgency.CRITICAL)
        )

        assert score.score == 10.0
        assert score.category == SeverityCategory.CATASTROPHIC
        assert (score.extent_score, score.condition_score) == (10, 10)

    def test_minimal_zone(self, engine: SeverityEngine) -> None:
        score = engine.score_zone(_zone("Garage", 5, MaterialCondition.EXCELLENT, False, Urgency.LOW))

        # 2*0.30 + 1*0.25 + 2*0.30 + 2*0.15 = 1.75
        assert score.score == 1.8
        assert score.category == SeverityCategory.MINOR

    @pytest.mark.parametrize(
        ("coverage", "expected"),
        [(75, 10), (74.9, 8), (50, 8), (25, 6), (10, 4), (9.99, 2), (0, 2)],
    )
    def test_extent_bands(self, coverage: float, expected: int) -> None:
        assert SeverityEngine.extent_score(coverage) == expected

    @pytest.mark.parametrize(
        ("score", "category"),
        [
            (8.5, SeverityCategory.CATASTROPHIC),
            (8.4, SeverityCategory.SEVERE),
            (6.5, SeverityCategory.SEVERE),
            (4.0, SeverityCategory.MODERATE),
            (3.9, SeverityCategory.MINOR),
        ],
    )
    def test_category_thresholds(self, score: float, category: SeverityCategory) -> None:
        assert SeverityEngine.categorize(score) == category


class TestAssess:
    """Tests for multi-zone assessment."""

    def test_empty_input(self, engine: SeverityEngine) -> None:
        assessment = engine.assess([])

        assert assessment.overall_score == 0.0
        assert assessment.overall_category == SeverityCategory.MINOR
        assert assessment.zone_scores == []

    def test_overall_is_unweighted_mean(self, engine: SeverityEngine) -> None:
        zones = [
            _zone("Main roof", 90, MaterialCondition.CRITICAL, True, Urgency.CRITICAL),
            _zone("Shed", 5, MaterialCondition.EXCELLENT, False, Urgency.LOW),
        ]
        assessment = engine.assess(zones)

        # (10.0 + 1.8) / 2, regardless of zone size
        assert assessment.overall_score == 5.9
        assert assessment.overall_category == SeverityCategory.MODERATE

    def test_critical_zones(self, engine: SeverityEngine) -> None:
        zones = [
            _zone("A", 80, MaterialCondition.POOR, True, Urgency.HIGH),
            _zone("B", 10, MaterialCondition.GOOD, False, Urgency.LOW),
        ]
        assessment = engine.assess(zones)
        assert assessment.critical_zones == ["A"]

    def test_repair_priority(self, engine: SeverityEngine) -> None:
        zones = [
            _zone("Low", 80, MaterialCondition.CRITICAL, True, Urgency.LOW),
            _zone("High small", 10, MaterialCondition.FAIR, False, Urgency.HIGH),
            _zone("High large", 80, MaterialCondition.POOR, True, Urgency.HIGH),
            _zone("Critical", 10, MaterialCondition.GOOD, False, Urgency.CRITICAL),
        ]
        assessment = engine.assess(zones)

        assert assessment.repair_priority == ["Critical", "High large", "High small", "Low"]

    def test_repair_priority_ties_keep_input_order(self, engine: SeverityEngine) -> None:
        zones = [_zone("First"), _zone("Second"), _zone("Third")]
        assert engine.assess(zones).repair_priority == ["First", "Second", "Third"]
