"""Language service interfaces and their Gemini implementations."""

from .base import ScopeExtractor, TextGenerator
from .gemini import GeminiScopeExtractor, GeminiTextGenerator, strip_code_fences

__all__ = [
    "TextGenerator",
    "ScopeExtractor",
    "GeminiTextGenerator",
    "GeminiScopeExtractor",
    "strip_code_fences",
]
