"""
Tests for carrier identity detection.
"""

import pytest

from scope_engine.core.models import DetectionSource
from scope_engine.core.policy_store import PolicyStore
from scope_engine.modules.carrier_detector import CarrierDetector


@pytest.fixture
def detector(store: PolicyStore) -> CarrierDetector:
    return CarrierDetector(store)


class TestEmailDetection:
    """Tests for adjuster email detection."""

    def test_exact_domain(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_email("j.doe@statefarm.com")

        assert result.carrier_name == "State Farm"
        assert result.confidence == 1.0
        assert result.detected_from == DetectionSource.EMAIL
        assert result.rule is not None

    def test_subdomain_is_discounted(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_email("adjuster@claims.statefarm.com")

        assert result.carrier_name == "State Farm"
        assert result.confidence == pytest.approx(0.8)

    def test_unknown_domain(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_email("someone@gmail.com")

        assert result.carrier_name is None
        assert result.confidence == 0.0
        assert result.rule is None

    @pytest.mark.parametrize("email", ["", "   ", None])
    def test_empty_email(self, detector: CarrierDetector, email: str | None) -> None:
        assert detector.detect_from_email(email).detected_from == DetectionSource.NONE


class TestTextDetection:
    """Tests for document and notes detection."""

    def test_document_header_boost(self, detector: CarrierDetector) -> None:
        text = "State Farm Fire and Casualty Company\nClaim estimate\nState Farm policy holder"
        result = detector.detect_from_document(text)

        assert result.carrier_name == "State Farm"
        assert result.confidence == pytest.approx(0.95)
        assert result.detected_from == DetectionSource.DOCUMENT

    def test_document_mention_outside_header(self, detector: CarrierDetector) -> None:
        text = "x" * 600 + " Allstate"
        result = detector.detect_from_document(text)

        assert result.carrier_name == "Allstate"
        assert result.confidence == pytest.approx(0.7)

    def test_word_boundaries(self, detector: CarrierDetector) -> None:
        """Aliases only match as whole words."""
        result = detector.detect_from_document("Call the AAAA hotline about the progressively worse leak")
        assert result.carrier_name is None

    def test_notes_tie_keeps_table_order(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_notes("allstate adjuster said usaa handled the neighbor")

        assert result.carrier_name == "Allstate"
        assert result.confidence == pytest.approx(0.65)
        assert result.alternatives == ["USAA"]

    def test_alternatives_capped(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_notes("travelers, nationwide, progressive and usaa all quoted")
        assert len(result.alternatives) == 2


class TestManualDetection:
    """Tests for manual carrier input."""

    def test_alias_resolves_with_full_confidence(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_manual_input("safeco")

        assert result.carrier_name == "Liberty Mutual"
        assert result.confidence == 1.0
        assert result.detected_from == DetectionSource.MANUAL

    def test_unresolved_input(self, detector: CarrierDetector) -> None:
        result = detector.detect_from_manual_input("Acme Insurance")

        assert result.carrier_name == "Acme Insurance"
        assert result.confidence == 0.5
        assert result.rule is None


class TestAggregateDetection:
    """Tests for multi-signal detection."""

    def test_manual_wins(self, detector: CarrierDetector) -> None:
        result = detector.detect(adjuster_email="a@allstate.com", manual_carrier="USAA")
        assert result.carrier_name == "USAA"

    def test_email_short_circuits(self, detector: CarrierDetector) -> None:
        result = detector.detect(
            adjuster_email="a@allstate.com",
            notes="progressive progressive progressive",
        )
        assert result.carrier_name == "Allstate"
        assert result.detected_from == DetectionSource.EMAIL

    def test_best_candidate_when_no_short_circuit(self, detector: CarrierDetector) -> None:
        result = detector.detect(
            adjuster_email="someone@gmail.com",
            document_text="x" * 600 + " Allstate",
            notes="Progressive adjuster, Progressive claim number pending",
        )

        assert result.carrier_name == "Progressive"
        assert result.detected_from == DetectionSource.NOTES
        assert result.confidence == pytest.approx(0.8)

    def test_unknown_carrier_is_null_detection(self, detector: CarrierDetector) -> None:
        result = detector.detect(manual_carrier="Acme Insurance", notes="nothing useful here")

        assert result.carrier_name is None
        assert result.confidence == 0.0
        assert result.rule is None

    def test_confidence_always_bounded(self, detector: CarrierDetector) -> None:
        text = " ".join(["State Farm"] * 50)
        for result in (
            detector.detect_from_document(text),
            detector.detect_from_notes(text),
            detector.detect_from_email("x@statefarm.com"),
            detector.detect(document_text=text, notes=text),
        ):
            assert 0.0 <= result.confidence <= 1.0


class TestMergeRules:
    """Tests for merging carrier rules."""

    def test_most_restrictive_union(self, detector: CarrierDetector, store: PolicyStore) -> None:
        merged = detector.merge_rules(["State Farm", "Allstate"])
        state_farm = store.get_rule("State Farm")
        allstate = store.get_rule("Allstate")

        assert merged.carrier_name == "State Farm + Allstate"
        assert merged.waste_limit_percent <= min(
            state_farm.waste_limit_percent, allstate.waste_limit_percent
        )
        assert merged.overhead_profit_allowed is False
        assert merged.allows_ice_and_water is False
        assert merged.requires_starter_rake is True
        assert merged.required_items == ("RFG330", "RFG410")
        assert "RFG140" in merged.denied_items
        assert len(merged.line_item_limits) == len(state_farm.line_item_limits) + len(
            allstate.line_item_limits
        )

    def test_op_allowed_only_if_all_allow(self, detector: CarrierDetector) -> None:
        assert detector.merge_rules(["State Farm", "USAA"]).overhead_profit_allowed is True

    def test_unknown_names_skipped(self, detector: CarrierDetector) -> None:
        merged = detector.merge_rules(["State Farm", "Acme Insurance"])
        assert merged.carrier_name == "State Farm"

    def test_no_known_names(self, detector: CarrierDetector) -> None:
        assert detector.merge_rules(["Acme Insurance"]) is None
