"""
Exception hierarchy for the Scope Reconciliation Engine.
"""


class ScopeEngineError(Exception):
    """Base exception for all engine errors."""


class PolicyStoreError(ScopeEngineError):
    """Raised when the carrier policy table fails validation at load time."""

    def __init__(self, carrier_name: str, message: str) -> None:
        self.carrier_name = carrier_name
        super().__init__(f"Invalid policy record for {carrier_name!r}: {message}")


class ScopeValidationError(ScopeEngineError):
    """Raised when caller-supplied line items are malformed."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class TextGenerationError(ScopeEngineError):
    """Raised when the text generation service fails for a single call."""


class ScopeExtractionError(ScopeEngineError):
    """Raised when a carrier scope document cannot be turned into line items."""
