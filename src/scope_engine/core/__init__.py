"""
Core components for the Scope Reconciliation Engine.
"""

from .models import (
    CarrierDetection,
    CarrierRule,
    CodeMismatch,
    CodeUpgrade,
    ComplianceConflict,
    ComplianceResult,
    ComplianceSummary,
    ConflictSeverity,
    ConflictType,
    DamageZone,
    DetectionSource,
    Jurisdiction,
    LineItem,
    LineItemLimit,
    MaterialCondition,
    NegotiationScript,
    NegotiationTone,
    OverallCompliance,
    PriceVariance,
    ScopeAdjustment,
    ScopeComparison,
    SeverityAssessment,
    SeverityCategory,
    SeverityScore,
    SupplementArgument,
    SupplementPacket,
    SupplementTotals,
    Unit,
    Urgency,
    parse_limit,
)
from .policy_store import PolicyStore, get_policy_store
from .rule_engine import ComplianceCheck, RuleEngine
from .xactimate_parser import XactimateParser, get_parser

__all__ = [
    # Models
    "CarrierDetection",
    "CarrierRule",
    "CodeMismatch",
    "CodeUpgrade",
    "ComplianceConflict",
    "ComplianceResult",
    "ComplianceSummary",
    "ConflictSeverity",
    "ConflictType",
    "DamageZone",
    "DetectionSource",
    "Jurisdiction",
    "LineItem",
    "LineItemLimit",
    "MaterialCondition",
    "NegotiationScript",
    "NegotiationTone",
    "OverallCompliance",
    "PriceVariance",
    "ScopeAdjustment",
    "ScopeComparison",
    "SeverityAssessment",
    "SeverityCategory",
    "SeverityScore",
    "SupplementArgument",
    "SupplementPacket",
    "SupplementTotals",
    "Unit",
    "Urgency",
    "parse_limit",
    # Policy Store
    "PolicyStore",
    "get_policy_store",
    # Rule Engine
    "ComplianceCheck",
    "RuleEngine",
    # Xactimate Parser
    "XactimateParser",
    "get_parser",
]
