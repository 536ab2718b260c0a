"""
Utility modules for the Scope Reconciliation Engine.
"""

from .logging import configure_package_logging, get_logger
from .pdf_text import read_pdf_text
from .redaction import PIIRedactor, RedactionResult, redact_text

__all__ = [
    "PIIRedactor",
    "RedactionResult",
    "configure_package_logging",
    "get_logger",
    "read_pdf_text",
    "redact_text",
]
