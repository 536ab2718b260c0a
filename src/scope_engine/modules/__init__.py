"""
Reconciliation modules for the Scope Reconciliation Engine.
"""

from .carrier_detector import CarrierDetector
from .compliance import ComplianceEngine
from .jurisdiction import detect_code_upgrades
from .scope_diff import compare_scopes
from .severity import SeverityEngine
from .supplement import SupplementEngine

__all__ = [
    "CarrierDetector",
    "ComplianceEngine",
    "SeverityEngine",
    "SupplementEngine",
    "compare_scopes",
    "detect_code_upgrades",
]
