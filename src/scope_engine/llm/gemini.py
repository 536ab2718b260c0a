"""
Google Gemini implementations of the language service interfaces.
"""

import json
from typing import Any

from google import genai
from google.genai import types
from pydantic import ValidationError

from ..config import EngineSettings, get_settings
from ..core.models import LineItem
from ..exceptions import ScopeExtractionError, TextGenerationError
from ..utils.logging import get_logger
from ..utils.redaction import PIIRedactor

LOGGER = get_logger(__name__)


EXTRACTION_INSTRUCTION = """You are an expert at parsing insurance carrier scope of work documents. Extract line items from the provided text and return a JSON object.

Return format:
{"lineItems": [
  {"code": "RFG220", "description": "...", "quantity": 10, "unit": "SQ", "unitPrice": 325.0, "totalPrice": 3250.0}
]}

Each line item should have:
- code: item code (e.g., "RFG220")
- description: item description
- quantity: numeric quantity
- unit: unit of measure ("SQ", "LF", "EA", "SF", "HR")
- unitPrice: price per unit
- totalPrice: total price for the line item

Return ONLY valid JSON, no other text."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block from a model response."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    return text


class GeminiTextGenerator:
    """TextGenerator backed by the Gemini async client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        client: genai.Client | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.model = model or settings.gemini_model
        self.temperature = temperature if temperature is not None else settings.argument_temperature
        self.max_output_tokens = max_output_tokens
        self.client = client or genai.Client(api_key=api_key or settings.gemini_api_key)

    def with_temperature(self, temperature: float) -> "GeminiTextGenerator":
        """A generator sharing this client with a different temperature."""
        return GeminiTextGenerator(
            model=self.model,
            temperature=temperature,
            max_output_tokens=self.max_output_tokens,
            client=self.client,
        )

    async def generate(self, system_instruction: str, user_payload: str) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=user_payload,
                config=config,
            )
        except Exception as exc:
            raise TextGenerationError(f"Gemini generation failed: {exc}") from exc

        if not response.text:
            LOGGER.warning("Empty response from Gemini")
            return ""
        return response.text.strip()


class GeminiScopeExtractor:
    """ScopeExtractor that asks Gemini for JSON line items."""

    MIN_TEXT_LENGTH = 50
    MAX_TEXT_LENGTH = 4000

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
        settings: EngineSettings | None = None,
        redactor: PIIRedactor | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.model = model or settings.gemini_model
        self.temperature = settings.extraction_temperature
        self.client = client or genai.Client(api_key=api_key or settings.gemini_api_key)
        if redactor is None and settings.redact_outbound_text:
            redactor = PIIRedactor()
        self.redactor = redactor

    def prepare_text(self, raw_text: str) -> str:
        """Truncate and redact document text before it is sent."""
        text = raw_text[: self.MAX_TEXT_LENGTH]
        if self.redactor is not None:
            text = self.redactor.redact_string(text, field_path="carrier_scope")
        return text

    @staticmethod
    def parse_response(response_text: str) -> list[LineItem]:
        """
        Parse a JSON response into line items.

        Accepts either a bare list or an object with a ``lineItems`` list.
        Invalid items are dropped with a warning.

        Raises:
            ScopeExtractionError: If the response is not usable JSON
        """
        try:
            payload: Any = json.loads(strip_code_fences(response_text))
        except json.JSONDecodeError as exc:
            raise ScopeExtractionError(f"Response is not valid JSON: {exc}") from exc

        if isinstance(payload, dict):
            payload = payload.get("lineItems", payload.get("line_items", []))
        if not isinstance(payload, list):
            raise ScopeExtractionError("Response does not contain a line item list")

        items: list[LineItem] = []
        for index, raw_item in enumerate(payload):
            try:
                items.append(LineItem.model_validate(raw_item))
            except ValidationError as exc:
                LOGGER.warning(
                    "Dropping extracted item %d: %d validation errors", index, exc.error_count()
                )
        return items

    async def extract_line_items(self, raw_text: str) -> list[LineItem]:
        if not raw_text or len(raw_text) < self.MIN_TEXT_LENGTH:
            return []

        user_payload = (
            "Parse this carrier scope into structured line items:\n\n"
            f"{self.prepare_text(raw_text)}"
        )
        config = types.GenerateContentConfig(
            system_instruction=EXTRACTION_INSTRUCTION,
            temperature=self.temperature,
            response_mime_type="application/json",
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=user_payload,
                config=config,
            )
            items = self.parse_response(response.text or "")
        except ScopeExtractionError as exc:
            LOGGER.error("Failed to parse carrier scope: %s", exc)
            return []
        except Exception as exc:
            LOGGER.error("Carrier scope extraction failed: %s", exc)
            return []

        LOGGER.info("Extracted %d line items from carrier scope", len(items))
        return items
