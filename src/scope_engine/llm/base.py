"""
Interfaces for the external language services.
"""

from typing import Protocol, runtime_checkable

from ..core.models import LineItem


@runtime_checkable
class TextGenerator(Protocol):
    """Produces prose from a system instruction and a structured payload."""

    async def generate(self, system_instruction: str, user_payload: str) -> str:
        """Return generated text; raise TextGenerationError on failure."""
        ...


@runtime_checkable
class ScopeExtractor(Protocol):
    """Turns an unstructured carrier scope document into line items."""

    async def extract_line_items(self, raw_text: str) -> list[LineItem]:
        """Return extracted line items; failures yield an empty list."""
        ...
