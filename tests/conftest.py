"""
Shared fixtures for the Scope Reconciliation Engine tests.
"""

from decimal import Decimal

import pytest

from scope_engine.config import EngineSettings
from scope_engine.core.models import CarrierRule, LineItem, Unit
from scope_engine.core.policy_store import PolicyStore, get_policy_store
from scope_engine.exceptions import TextGenerationError


class FakeTextGenerator:
    """Returns canned text and records every request."""

    def __init__(self, text: str = "Generated argument.") -> None:
        self.text = text
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system_instruction: str, user_payload: str) -> str:
        self.calls.append((system_instruction, user_payload))
        return self.text


class FailingTextGenerator(FakeTextGenerator):
    """Fails for payloads containing any of the given markers."""

    def __init__(self, fail_on: tuple[str, ...] = ("",)) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def generate(self, system_instruction: str, user_payload: str) -> str:
        self.calls.append((system_instruction, user_payload))
        if any(marker in user_payload for marker in self.fail_on):
            raise TextGenerationError("service unavailable")
        return self.text


@pytest.fixture
def settings() -> EngineSettings:
    """Settings with no inter-batch delay."""
    return EngineSettings(
        gemini_api_key="test-key",
        argument_batch_delay_seconds=0,
        redact_outbound_text=True,
    )


@pytest.fixture
def store() -> PolicyStore:
    """The built-in carrier policy store."""
    return get_policy_store()


@pytest.fixture
def fake_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def roof_scope() -> list[LineItem]:
    """A typical 20 square architectural shingle replacement."""
    return [
        LineItem(
            code="RFG220",
            description="Architectural shingles",
            quantity=20,
            unit=Unit.SQ,
            unit_price=Decimal("340"),
        ),
        LineItem(
            code="RFG210",
            description="Underlayment (felt)",
            quantity=20,
            unit=Unit.SQ,
            unit_price=Decimal("25"),
        ),
        LineItem(
            code="RFG330",
            description="Starter strip shingles",
            quantity=90,
            unit=Unit.LF,
            unit_price=Decimal("10"),
        ),
    ]


@pytest.fixture
def limit_rule() -> CarrierRule:
    """A minimal rule with a single shingle price limit."""
    return CarrierRule(
        carrier_name="Test Mutual",
        line_item_limits=["RFG220 <= 350/SQ"],
    )
