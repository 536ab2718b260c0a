"""
Reporting modules for the Scope Reconciliation Engine.
"""

from .reports import ComplianceReportFormatter, SupplementPacketFormatter

__all__ = [
    "ComplianceReportFormatter",
    "SupplementPacketFormatter",
]
