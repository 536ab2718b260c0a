"""
Scope Reconciliation Engine - Main Orchestrator.
Coordinates carrier detection, compliance, supplements and severity scoring.
"""

from pathlib import Path
from typing import Any, BinaryIO

from pydantic import ValidationError

from .config import EngineSettings, get_settings
from .core.models import (
    CarrierDetection,
    CarrierRule,
    ComplianceResult,
    DamageZone,
    Jurisdiction,
    LineItem,
    NegotiationTone,
    SeverityAssessment,
    SupplementPacket,
)
from .core.policy_store import PolicyStore, get_policy_store
from .exceptions import ScopeValidationError
from .llm.base import ScopeExtractor, TextGenerator
from .modules.carrier_detector import CarrierDetector
from .modules.compliance import ComplianceEngine
from .modules.severity import SeverityEngine
from .modules.supplement import SupplementEngine
from .reporting.reports import ComplianceReportFormatter, SupplementPacketFormatter
from .utils.logging import configure_package_logging, get_logger
from .utils.pdf_text import read_pdf_text

LOGGER = get_logger(__name__)


def coerce_scope(scope: list[LineItem] | list[dict[str, Any]]) -> list[LineItem]:
    """
    Validate caller-supplied line items.

    Raises:
        ScopeValidationError: If any item is malformed
    """
    items: list[LineItem] = []
    errors: list[dict] = []
    for index, raw in enumerate(scope):
        if isinstance(raw, LineItem):
            items.append(raw)
            continue
        try:
            items.append(LineItem.model_validate(raw))
        except ValidationError as exc:
            errors.extend({"index": index, **error} for error in exc.errors(include_url=False))

    if errors:
        raise ScopeValidationError(f"{len(errors)} invalid line item field(s)", errors)
    return items


def coerce_zones(zones: list[DamageZone] | list[dict[str, Any]]) -> list[DamageZone]:
    """Validate caller-supplied damage zones."""
    try:
        return [z if isinstance(z, DamageZone) else DamageZone.model_validate(z) for z in zones]
    except ValidationError as exc:
        raise ScopeValidationError("Invalid damage zone", exc.errors(include_url=False)) from exc


class ClaimScopeEngine:
    """
    Main orchestrator for carrier scope reconciliation.

    Language services are optional; without a text generator, supplement
    arguments and scripts carry empty prose but all amounts are computed.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        policy_store: PolicyStore | None = None,
        text_generator: TextGenerator | None = None,
        script_generator: TextGenerator | None = None,
        scope_extractor: ScopeExtractor | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Engine settings (defaults to environment settings)
            policy_store: Carrier rule table (defaults to the built-in table)
            text_generator: Generator for supplement arguments
            script_generator: Generator for negotiation scripts
                (defaults to text_generator)
            scope_extractor: Extractor for carrier scope documents
        """
        self.settings = settings or get_settings()
        self.policy_store = policy_store or get_policy_store()
        self.text_generator = text_generator
        self.script_generator = script_generator
        self.scope_extractor = scope_extractor

        # Initialize components lazily
        self._carrier_detector: CarrierDetector | None = None
        self._compliance_engine: ComplianceEngine | None = None
        self._supplement_engine: SupplementEngine | None = None
        self._severity_engine: SeverityEngine | None = None

    @classmethod
    def with_gemini(cls, settings: EngineSettings | None = None, **kwargs: Any) -> "ClaimScopeEngine":
        """Build an engine wired to Gemini for text generation and extraction."""
        from .llm.gemini import GeminiScopeExtractor, GeminiTextGenerator

        settings = settings or get_settings()
        configure_package_logging(settings.log_level)
        arguments = GeminiTextGenerator(settings=settings)
        return cls(
            settings=settings,
            text_generator=arguments,
            script_generator=arguments.with_temperature(settings.script_temperature),
            scope_extractor=GeminiScopeExtractor(client=arguments.client, settings=settings),
            **kwargs,
        )

    @property
    def carrier_detector(self) -> CarrierDetector:
        """Get or create the carrier detector."""
        if self._carrier_detector is None:
            self._carrier_detector = CarrierDetector(
                self.policy_store, self.settings.detection_short_circuit
            )
        return self._carrier_detector

    @property
    def compliance_engine(self) -> ComplianceEngine:
        """Get or create the compliance engine."""
        if self._compliance_engine is None:
            self._compliance_engine = ComplianceEngine()
        return self._compliance_engine

    @property
    def supplement_engine(self) -> SupplementEngine:
        """Get or create the supplement engine."""
        if self._supplement_engine is None:
            settings = self.settings
            if self.text_generator is None:
                # No external calls to pace
                settings = settings.model_copy(update={"argument_batch_delay_seconds": 0})
            self._supplement_engine = SupplementEngine(
                self.text_generator or _SilentGenerator(),
                settings,
                script_generator=self.script_generator,
            )
        return self._supplement_engine

    @property
    def severity_engine(self) -> SeverityEngine:
        """Get or create the severity engine."""
        if self._severity_engine is None:
            self._severity_engine = SeverityEngine()
        return self._severity_engine

    def detect_carrier(
        self,
        adjuster_email: str | None = None,
        document_text: str | None = None,
        notes: str | None = None,
        manual_carrier: str | None = None,
    ) -> CarrierDetection:
        """Detect the carrier from any available signals."""
        return self.carrier_detector.detect(
            adjuster_email=adjuster_email,
            document_text=document_text,
            notes=notes,
            manual_carrier=manual_carrier,
        )

    def resolve_rule(self, carrier: str | list[str] | None) -> CarrierRule | None:
        """Rule for one carrier name, or the merged rule for several."""
        if carrier is None:
            return None
        if isinstance(carrier, str):
            name = self.policy_store.resolve_alias(carrier) or carrier
            return self.policy_store.get_rule(name)
        return self.carrier_detector.merge_rules(carrier)

    def check_compliance(
        self,
        scope: list[LineItem] | list[dict[str, Any]],
        carrier: str | list[str] | CarrierRule | None = None,
    ) -> ComplianceResult:
        """
        Check a scope against a carrier's rules.

        Args:
            scope: Contractor line items (models or camelCase dicts)
            carrier: Carrier name, several names to merge, or a rule record

        Returns:
            Compliance result; an unknown carrier yields no checks performed
        """
        items = coerce_scope(scope)
        rule = carrier if isinstance(carrier, CarrierRule) else self.resolve_rule(carrier)
        return self.compliance_engine.evaluate(items, rule)

    def compliance_report(
        self,
        scope: list[LineItem] | list[dict[str, Any]],
        carrier: str | list[str] | CarrierRule | None = None,
    ) -> ComplianceReportFormatter:
        """Check compliance and return a formatter for output."""
        return ComplianceReportFormatter(self.check_compliance(scope, carrier))

    def load_carrier_scope_pdf(self, source: str | Path | BinaryIO) -> str:
        """Read the text of a carrier scope PDF."""
        return read_pdf_text(source)

    async def extract_carrier_scope(self, raw_text: str) -> list[LineItem]:
        """Turn carrier scope text into line items; empty without an extractor."""
        if self.scope_extractor is None:
            LOGGER.warning("No scope extractor configured; carrier scope treated as empty")
            return []
        try:
            return await self.scope_extractor.extract_line_items(raw_text)
        except Exception as exc:
            LOGGER.error("Carrier scope extraction failed: %s", exc)
            return []

    async def build_supplement(
        self,
        contractor_scope: list[LineItem] | list[dict[str, Any]],
        carrier_scope: list[LineItem] | list[dict[str, Any]] | None = None,
        carrier_scope_text: str | None = None,
        jurisdiction: Jurisdiction | dict[str, Any] | None = None,
        carrier_name: str | None = None,
        tone: NegotiationTone | str | None = NegotiationTone.PROFESSIONAL,
    ) -> SupplementPacket:
        """
        Build a supplement packet.

        The carrier scope is taken from ``carrier_scope`` when given,
        otherwise extracted from ``carrier_scope_text``.
        """
        contractor_items = coerce_scope(contractor_scope)
        if carrier_scope is not None:
            carrier_items = coerce_scope(carrier_scope)
        elif carrier_scope_text:
            carrier_items = await self.extract_carrier_scope(carrier_scope_text)
        else:
            carrier_items = []

        if isinstance(jurisdiction, dict):
            jurisdiction = Jurisdiction.model_validate(jurisdiction)

        return await self.supplement_engine.build_packet(
            contractor_items,
            carrier_items,
            jurisdiction=jurisdiction,
            carrier_name=carrier_name,
            tone=tone,
        )

    def score_severity(
        self, zones: list[DamageZone] | list[dict[str, Any]]
    ) -> SeverityAssessment:
        """Score damage zones and order them for repair."""
        return self.severity_engine.assess(coerce_zones(zones))

    def packet_report(
        self, packet: SupplementPacket, severity: SeverityAssessment | None = None
    ) -> SupplementPacketFormatter:
        """Formatter for a supplement packet."""
        return SupplementPacketFormatter(packet, severity)


class _SilentGenerator:
    """Stand-in used when no text generator is configured."""

    async def generate(self, system_instruction: str, user_payload: str) -> str:
        return ""


# Convenience function for quick compliance checks
def check_compliance(
    scope: list[LineItem] | list[dict[str, Any]],
    carrier: str | list[str] | None,
) -> ComplianceResult:
    """
    Convenience function for a one-off compliance check.

    Args:
        scope: Contractor line items
        carrier: Carrier name or names

    Returns:
        Compliance result
    """
    engine = ClaimScopeEngine()
    return engine.check_compliance(scope, carrier)
