"""
Carrier Identity Detection Module.
Detects the insurance carrier from adjuster email, documents, notes or manual input.
"""

import re
from collections.abc import Iterable

from ..core.models import CarrierDetection, CarrierRule, DetectionSource, LineItemLimit
from ..core.policy_store import PolicyStore, get_policy_store
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class CarrierDetector:
    """
    Detects carrier identity from heterogeneous, noisy signals.

    Every strategy returns a CarrierDetection whose confidence lies in [0, 1];
    a detection without a rule means the carrier could not be resolved.
    """

    # Document text scoring
    DOCUMENT_BASE = 0.6
    DOCUMENT_STEP = 0.1
    DOCUMENT_CAP = 0.95
    HEADER_WINDOW = 500
    HEADER_BOOST = 0.15

    # Informal notes scoring
    NOTES_BASE = 0.5
    NOTES_STEP = 0.15
    NOTES_CAP = 0.9

    # Substring email matches are discounted
    EMAIL_PARTIAL_FACTOR = 0.8

    MANUAL_UNRESOLVED_CONFIDENCE = 0.5
    MAX_ALTERNATIVES = 2
    DEFAULT_WASTE_LIMIT = 15.0

    def __init__(
        self,
        policy_store: PolicyStore | None = None,
        short_circuit_threshold: float = 0.7,
    ) -> None:
        self.store = policy_store or get_policy_store()
        self.short_circuit_threshold = short_circuit_threshold
        self._alias_patterns: dict[str, list[re.Pattern[str]]] = {
            carrier: [self._compile_alias(alias) for alias in self.store.aliases_for(carrier)]
            for carrier in self.store.list_carriers()
        }

    @staticmethod
    def _compile_alias(alias: str) -> re.Pattern[str]:
        words = [re.escape(w) for w in alias.split()]
        return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)

    @staticmethod
    def _none() -> CarrierDetection:
        return CarrierDetection(
            carrier_name=None, confidence=0.0, detected_from=DetectionSource.NONE, rule=None
        )

    def _resolved(
        self,
        carrier_name: str,
        confidence: float,
        source: DetectionSource,
        alternatives: list[str] | None = None,
    ) -> CarrierDetection:
        return CarrierDetection(
            carrier_name=carrier_name,
            confidence=round(min(max(confidence, 0.0), 1.0), 4),
            detected_from=source,
            rule=self.store.get_rule(carrier_name),
            alternatives=alternatives or [],
        )

    def detect_from_email(self, email: str | None) -> CarrierDetection:
        """Detect carrier from an adjuster email address domain."""
        if not email or not email.strip():
            return self._none()

        domain = email.strip().lower().rsplit("@", 1)[-1]
        domains = self.store.email_domains

        if domain in domains:
            carrier, confidence = domains[domain]
            return self._resolved(carrier, confidence, DetectionSource.EMAIL)

        domain_root = domain.rsplit(".", 1)[0] if "." in domain else domain
        best: tuple[str, float] | None = None
        for known_domain, (carrier, confidence) in domains.items():
            known_root = known_domain.rsplit(".", 1)[0]
            if known_root and known_root in domain_root:
                partial = confidence * self.EMAIL_PARTIAL_FACTOR
                if best is None or partial > best[1]:
                    best = (carrier, partial)

        if best is None:
            return self._none()
        return self._resolved(best[0], best[1], DetectionSource.EMAIL)

    def _rank_text(
        self, text: str | None, source: DetectionSource
    ) -> CarrierDetection:
        if not text or not text.strip():
            return self._none()

        is_document = source == DetectionSource.DOCUMENT
        candidates: list[tuple[str, float]] = []

        for carrier, patterns in self._alias_patterns.items():
            best = 0.0
            for pattern in patterns:
                matches = list(pattern.finditer(text))
                if not matches:
                    continue
                count = len(matches)
                if is_document:
                    confidence = min(self.DOCUMENT_BASE + self.DOCUMENT_STEP * count, self.DOCUMENT_CAP)
                    if matches[0].start() < self.HEADER_WINDOW:
                        confidence = min(confidence + self.HEADER_BOOST, 1.0)
                else:
                    confidence = min(self.NOTES_BASE + self.NOTES_STEP * count, self.NOTES_CAP)
                best = max(best, confidence)
            if best > 0:
                candidates.append((carrier, best))

        if not candidates:
            return self._none()

        # Stable sort keeps table order for ties
        candidates.sort(key=lambda c: c[1], reverse=True)
        winner, confidence = candidates[0]
        alternatives = [name for name, _ in candidates[1 : 1 + self.MAX_ALTERNATIVES]]
        return self._resolved(winner, confidence, source, alternatives)

    def detect_from_document(self, text: str | None) -> CarrierDetection:
        """Detect carrier from policy or estimate document text."""
        return self._rank_text(text, DetectionSource.DOCUMENT)

    def detect_from_notes(self, text: str | None) -> CarrierDetection:
        """Detect carrier from informal notes."""
        return self._rank_text(text, DetectionSource.NOTES)

    def detect_from_manual_input(self, value: str | None) -> CarrierDetection:
        """Resolve a carrier name typed or selected by the user."""
        if not value or not value.strip():
            return self._none()

        carrier = self.store.resolve_alias(value)
        if carrier is not None:
            return self._resolved(carrier, 1.0, DetectionSource.MANUAL)

        return CarrierDetection(
            carrier_name=value,
            confidence=self.MANUAL_UNRESOLVED_CONFIDENCE,
            detected_from=DetectionSource.MANUAL,
            rule=None,
        )

    def detect(
        self,
        adjuster_email: str | None = None,
        document_text: str | None = None,
        notes: str | None = None,
        manual_carrier: str | None = None,
    ) -> CarrierDetection:
        """
        Detect the carrier from all available signals.

        Manual input wins when it resolves. Email and document detections
        return immediately above the short-circuit threshold; otherwise the
        best resolved candidate is returned.
        """
        candidates: list[CarrierDetection] = []

        if manual_carrier:
            manual = self.detect_from_manual_input(manual_carrier)
            if manual.rule is not None:
                LOGGER.info("Carrier %s set manually", manual.carrier_name)
                return manual

        for source, detect in (
            (adjuster_email, self.detect_from_email),
            (document_text, self.detect_from_document),
        ):
            if not source:
                continue
            result = detect(source)
            if result.rule is None:
                continue
            if result.confidence > self.short_circuit_threshold:
                LOGGER.info(
                    "Carrier %s detected from %s (confidence %.2f)",
                    result.carrier_name,
                    result.detected_from.value,
                    result.confidence,
                )
                return result
            candidates.append(result)

        if notes:
            result = self.detect_from_notes(notes)
            if result.rule is not None:
                candidates.append(result)

        if not candidates:
            LOGGER.info("No carrier could be detected")
            return self._none()

        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.confidence > best.confidence:
                best = candidate
        LOGGER.info(
            "Carrier %s detected from %s (confidence %.2f)",
            best.carrier_name,
            best.detected_from.value,
            best.confidence,
        )
        return best

    def merge_rules(self, carrier_names: Iterable[str]) -> CarrierRule | None:
        """
        Build the most restrictive union of several carriers' rules.

        Unknown names are skipped. Returns None when no name resolves.
        """
        rules: list[CarrierRule] = []
        for name in carrier_names:
            carrier = self.store.resolve_alias(name) or name
            rule = self.store.get_rule(carrier)
            if rule is None:
                LOGGER.warning("Skipping unknown carrier %r in rule merge", name)
                continue
            if rule not in rules:
                rules.append(rule)

        if not rules:
            return None

        def union(values: Iterable[Iterable[str]]) -> tuple[str, ...]:
            return tuple(dict.fromkeys(v for group in values for v in group))

        limits: list[LineItemLimit] = [limit for r in rules for limit in r.line_item_limits]

        return CarrierRule(
            carrier_name=" + ".join(r.carrier_name for r in rules),
            requires_starter_rake=any(r.requires_starter_rake for r in rules),
            allows_ice_and_water=all(r.allows_ice_and_water for r in rules),
            drip_edge_required=any(r.drip_edge_required for r in rules),
            overhead_profit_allowed=all(r.overhead_profit_allowed for r in rules),
            waste_limit_percent=min(
                r.waste_limit_percent if r.waste_limit_percent is not None else self.DEFAULT_WASTE_LIMIT
                for r in rules
            ),
            line_item_limits=tuple(limits),
            required_items=union(r.required_items for r in rules),
            denied_items=union(r.denied_items for r in rules),
            code_upgrade_rules=union(r.code_upgrade_rules for r in rules),
            notes=union(r.notes for r in rules),
            documentation_requirements=union(r.documentation_requirements for r in rules),
        )
