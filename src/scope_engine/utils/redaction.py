"""
Personal Identifier Redaction Module.
Strips personal identifiers from scope text and records before they leave the process.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

from .logging import get_logger

LOGGER = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class RedactionResult:
    """One identifier removed from a value."""

    original_value: str
    redacted_value: str
    pii_type: str
    field_path: str


class PIIRedactor:
    """
    Redacts personal identifiers from carrier scopes, notes and packets.

    Always applied:
    - SSNs, phone numbers and email addresses
    - Policy and claim numbers
    - Street addresses and titled names (each can be switched off)

    Opt-in (``include_numeric``): card, account, license, birth date and
    ZIP patterns. These also match quantities and prices on an estimate.
    """

    REDACTED = "[REDACTED]"

    PATTERNS: dict[str, re.Pattern[str]] = {
        "ssn": re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
        # Punctuated forms only; bare digit runs are estimate figures
        "phone": re.compile(
            r"(?<![\d.])(?:\+?1[-.\s]?)?(?:\(\d{3}\)\s?|\d{3}[-.])\d{3}[-.]\d{4}\b"
        ),
        "email": re.compile(r"\b[\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}\b"),
        "policy_number": re.compile(
            r"\b(?:policy|claim)\s*(?:no\.?|number|#)\s*:?\s*[A-Z0-9-]{5,}",
            re.IGNORECASE,
        ),
        "credit_card": re.compile(r"\b\d{4}(?:[-\s]?\d{4}){3}\b"),
        "bank_account": re.compile(r"\b\d{8,17}\b"),
        "drivers_license": re.compile(r"\b[A-Z]{1,2}\d{5,8}\b"),
        "date_of_birth": re.compile(
            r"\b(?:0?[1-9]|1[0-2])[/-](?:0?[1-9]|[12]\d|3[01])[/-](?:19|20)\d{2}\b"
        ),
        "zip_code": re.compile(r"\b\d{5}(?:-\d{4})?\b"),
    }

    NUMERIC_TYPES = frozenset(
        {"credit_card", "bank_account", "drivers_license", "date_of_birth", "zip_code"}
    )

    STREET_ADDRESS = re.compile(
        r"\b\d+\s+(?:[A-Za-z]+\s+){1,4}(?:street|st|avenue|ave|road|rd|boulevard|blvd|"
        r"drive|dr|court|ct|lane|ln|way|circle|cir|place|pl)\b\.?",
        re.IGNORECASE,
    )

    TITLED_NAME = re.compile(r"\b(?:Mr|Mrs|Ms|Dr|Prof)\.?\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?")

    # Record keys whose string values are replaced outright (compared lowercased)
    PII_FIELDS: frozenset[str] = frozenset(
        {
            "insured_name",
            "insuredname",
            "claimant_name",
            "policyholder",
            "homeowner",
            "phone",
            "email",
            "adjuster_email",
            "adjusteremail",
            "address",
            "street_address",
            "property_address",
            "propertyaddress",
            "ssn",
            "date_of_birth",
        }
    )

    def __init__(
        self,
        redact_names: bool = True,
        redact_addresses: bool = True,
        include_numeric: bool = False,
        custom_patterns: dict[str, re.Pattern[str]] | None = None,
    ) -> None:
        """
        Args:
            redact_names: Remove names preceded by a title (Mr., Dr., ...)
            redact_addresses: Remove street addresses
            include_numeric: Also apply the numeric patterns
            custom_patterns: Extra patterns, logged as ``custom_<name>``
        """
        self.patterns: list[tuple[str, re.Pattern[str]]] = [
            (name, pattern)
            for name, pattern in self.PATTERNS.items()
            if include_numeric or name not in self.NUMERIC_TYPES
        ]
        self.patterns.extend(
            (f"custom_{name}", pattern) for name, pattern in (custom_patterns or {}).items()
        )
        if redact_addresses:
            self.patterns.append(("address", self.STREET_ADDRESS))
        if redact_names:
            self.patterns.append(("name", self.TITLED_NAME))
        self._log: list[RedactionResult] = []

    def _record(self, original: str, pii_type: str, field_path: str) -> str:
        self._log.append(RedactionResult(original, self.REDACTED, pii_type, field_path))
        return self.REDACTED

    def redact_string(self, value: str, field_path: str = "") -> str:
        """
        Remove identifiers from free text.

        Args:
            value: Text to redact
            field_path: Location of the text, recorded in the log

        Returns:
            The text with each match replaced by ``[REDACTED]``
        """
        if not value or not isinstance(value, str):
            return value

        for pii_type, pattern in self.patterns:
            value = pattern.sub(lambda m: self._record(m.group(0), pii_type, field_path), value)
        return value

    def _redact_value(self, value: Any, field_path: str, key: str | None = None) -> Any:
        if isinstance(value, dict):
            return self.redact_dict(value, field_path)
        if isinstance(value, list):
            return self.redact_list(value, field_path)
        if not isinstance(value, str):
            return value
        if key is not None and key.lower() in self.PII_FIELDS:
            return self._record(value, "pii_field", field_path)
        return self.redact_string(value, field_path)

    def redact_dict(self, data: dict[str, Any], path_prefix: str = "") -> dict[str, Any]:
        """Redact a mapping recursively; known identifier keys are blanked whole."""
        return {
            key: self._redact_value(value, f"{path_prefix}.{key}" if path_prefix else key, key)
            for key, value in data.items()
        }

    def redact_list(self, data: list[Any], path_prefix: str = "") -> list[Any]:
        """Redact every element of a list."""
        return [self._redact_value(item, f"{path_prefix}[{index}]") for index, item in enumerate(data)]

    def redact_model(self, model: ModelT) -> ModelT:
        """
        Redact a pydantic record and rebuild it.

        Generated prose (arguments, scripts) is the usual source of leaked
        identifiers in persisted packets.
        """
        redacted = self.redact_dict(model.model_dump(mode="json"))
        LOGGER.debug("Redacted %s: %s", type(model).__name__, self.get_redaction_summary())
        return type(model).model_validate(redacted)

    def get_redaction_log(self) -> list[RedactionResult]:
        return list(self._log)

    def clear_redaction_log(self) -> None:
        self._log.clear()

    def get_redaction_summary(self) -> dict[str, int]:
        """Count of redactions per identifier type."""
        return dict(Counter(entry.pii_type for entry in self._log))


def redact_text(text: str) -> str:
    """Redact personal identifiers from free text, keeping numbers intact."""
    return PIIRedactor().redact_string(text)
