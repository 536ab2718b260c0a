"""
Carrier Scope Reconciliation Engine.

Reconciles a contractor's repair scope against carrier underwriting rules
and the carrier's issued scope, producing compliance verdicts, corrected
scopes, supplement packets and damage severity scores.
"""

from .config import EngineSettings, get_settings
from .core.models import (
    CarrierDetection,
    CarrierRule,
    CodeUpgrade,
    ComplianceResult,
    DamageZone,
    Jurisdiction,
    LineItem,
    NegotiationTone,
    ScopeComparison,
    SeverityAssessment,
    SupplementArgument,
    SupplementPacket,
)
from .core.policy_store import PolicyStore, get_policy_store
from .engine import ClaimScopeEngine, check_compliance
from .exceptions import (
    PolicyStoreError,
    ScopeEngineError,
    ScopeExtractionError,
    ScopeValidationError,
    TextGenerationError,
)
from .reporting.reports import ComplianceReportFormatter, SupplementPacketFormatter

__version__ = "0.1.0"

__all__ = [
    # Main Engine
    "ClaimScopeEngine",
    "check_compliance",
    # Configuration
    "EngineSettings",
    "get_settings",
    # Models
    "CarrierDetection",
    "CarrierRule",
    "CodeUpgrade",
    "ComplianceResult",
    "DamageZone",
    "Jurisdiction",
    "LineItem",
    "NegotiationTone",
    "ScopeComparison",
    "SeverityAssessment",
    "SupplementArgument",
    "SupplementPacket",
    # Policy Store
    "PolicyStore",
    "get_policy_store",
    # Reporting
    "ComplianceReportFormatter",
    "SupplementPacketFormatter",
    # Errors
    "PolicyStoreError",
    "ScopeEngineError",
    "ScopeExtractionError",
    "ScopeValidationError",
    "TextGenerationError",
]
