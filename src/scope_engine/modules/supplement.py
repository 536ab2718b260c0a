"""
Supplement Generation Module.
Builds supplement arguments, negotiation scripts and totals from a scope comparison.
"""

import asyncio
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from ..config import EngineSettings, get_settings
from ..core.models import (
    CodeUpgrade,
    Jurisdiction,
    LineItem,
    NegotiationScript,
    NegotiationTone,
    ScopeComparison,
    SupplementArgument,
    SupplementPacket,
    SupplementTotals,
)
from ..llm.base import TextGenerator
from ..utils.logging import get_logger
from .jurisdiction import detect_code_upgrades
from .scope_diff import compare_scopes

LOGGER = get_logger(__name__)

CENTS = Decimal("0.01")

MISSING_ITEM_INSTRUCTION = """You are an expert insurance claim negotiator writing supplement arguments for {carrier}.

Write a professional, persuasive argument for why this line item should be included. Focus on:
- Code requirements
- Industry standards
- Necessity for proper repair
- Consequences of omission
- Fair market value

Be firm but professional. Cite specific code sections when applicable. Keep it concise (2-3 paragraphs)."""

UNDERPAID_ITEM_INSTRUCTION = (
    "You are an expert insurance claim negotiator writing for {carrier}. "
    "Write a professional argument for why the carrier's valuation is insufficient."
)

CODE_UPGRADE_INSTRUCTION = (
    "You are an expert insurance claim negotiator writing for {carrier}. "
    "Write a concise argument that this item is a building code requirement, citing the "
    "code section and explaining why the roof would fail inspection without it."
)

TONE_INSTRUCTIONS: dict[NegotiationTone, str] = {
    NegotiationTone.PROFESSIONAL: (
        "Write in a cooperative, professional tone. Express willingness to work together."
    ),
    NegotiationTone.FIRM: (
        "Write in a confident, assertive tone. Be clear about your position without being aggressive."
    ),
    NegotiationTone.LEGAL: (
        "Write in a formal, legal tone. Reference relevant statutes and policy language. "
        "Mention potential for appraisal or legal action if necessary."
    ),
}

SCRIPT_INSTRUCTION = """You are an expert insurance negotiator writing a script for a phone call or meeting with {carrier}.

{tone}

The script should:
- Open professionally
- Clearly state the supplement amount and key items
- Present 2-3 strongest arguments
- Address likely objections
- Close with next steps

Format as a conversational script with clear talking points."""


def _money(value: Decimal) -> str:
    return f"${value.quantize(CENTS, rounding=ROUND_HALF_UP):,.2f}"


def _quantity(item: LineItem) -> str:
    return f"{item.quantity:g} {item.unit.value}"


@dataclass
class _PendingArgument:
    """A deterministic argument record and the request for its prose."""

    argument: SupplementArgument
    system_instruction: str
    user_payload: str
    text: str = field(default="")


class SupplementEngine:
    """
    Generates supplement arguments and negotiation scripts.

    All amounts, codes and evidence are computed locally. Only the prose
    comes from the injected text generator, and a failed call leaves that
    argument's text empty.
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        settings: EngineSettings | None = None,
        script_generator: TextGenerator | None = None,
    ) -> None:
        self.text_generator = text_generator
        self.script_generator = script_generator or text_generator
        self.settings = settings or get_settings()

    def _missing_item(self, item: LineItem, carrier: str) -> _PendingArgument:
        total = item.total
        return _PendingArgument(
            argument=SupplementArgument(
                item_code=item.code,
                item_description=item.description,
                claim_amount=total,
                carrier_amount=Decimal("0"),
                difference=total,
                evidence=[
                    "Required for code-compliant roof system",
                    f"Industry standard for {item.description}",
                    f"Fair market value: {_money(item.unit_price)}/{item.unit.value}",
                ],
            ),
            system_instruction=MISSING_ITEM_INSTRUCTION.format(carrier=carrier),
            user_payload=(
                "Write a supplement argument for:\n\n"
                f"Item: {item.description}\n"
                f"Code: {item.code}\n"
                f"Amount: {_money(total)}\n"
                f"Quantity: {_quantity(item)}"
            ),
        )

    def _underpaid_items(self, comparison: ScopeComparison, carrier: str) -> list[_PendingArgument]:
        # Stable sort keeps comparison order among equal differences
        ranked = sorted(comparison.underpaid_items, key=lambda v: v.difference, reverse=True)
        pending = []
        for variance in ranked[: self.settings.max_underpaid_arguments]:
            item = variance.item
            pending.append(
                _PendingArgument(
                    argument=SupplementArgument(
                        item_code=item.code,
                        item_description=item.description,
                        claim_amount=variance.contractor_amount,
                        carrier_amount=variance.carrier_amount,
                        difference=variance.difference,
                        evidence=[
                            f"Current market rate: {_money(item.unit_price)}/{item.unit.value}",
                            f"Quantity verified: {_quantity(item)}",
                        ],
                    ),
                    system_instruction=UNDERPAID_ITEM_INSTRUCTION.format(carrier=carrier),
                    user_payload=(
                        f"Carrier paid {_money(variance.carrier_amount)} but actual cost is "
                        f"{_money(variance.contractor_amount)} for {item.description} "
                        f"(code {item.code}, {_quantity(item)}). Write a brief argument for "
                        f"the difference of {_money(variance.difference)}."
                    ),
                )
            )
        return pending

    def _code_upgrade(self, upgrade: CodeUpgrade, carrier: str) -> _PendingArgument:
        return _PendingArgument(
            argument=SupplementArgument(
                item_code=upgrade.item_code,
                item_description=upgrade.description,
                claim_amount=upgrade.estimated_cost,
                carrier_amount=Decimal("0"),
                difference=upgrade.estimated_cost,
                evidence=[
                    f"Required by {upgrade.code_section}",
                    f"Jurisdiction: {upgrade.jurisdiction}",
                    upgrade.reasoning,
                ],
                code_references=[upgrade.code_section],
            ),
            system_instruction=CODE_UPGRADE_INSTRUCTION.format(carrier=carrier),
            user_payload=(
                f"Item: {upgrade.description}\n"
                f"Code: {upgrade.item_code}\n"
                f"Amount: {_money(upgrade.estimated_cost)}\n"
                f"Code section: {upgrade.code_section}\n"
                f"Jurisdiction: {upgrade.jurisdiction}\n"
                f"Reasoning: {upgrade.reasoning}"
            ),
        )

    async def _generate_batch(self, batch: list[_PendingArgument]) -> None:
        results = await asyncio.gather(
            *(self.text_generator.generate(p.system_instruction, p.user_payload) for p in batch),
            return_exceptions=True,
        )
        for pending, result in zip(batch, results):
            if isinstance(result, BaseException):
                LOGGER.error(
                    "Argument generation failed for %s: %s", pending.argument.item_code, result
                )
                continue
            pending.text = result

    async def generate_arguments(
        self,
        comparison: ScopeComparison,
        code_upgrades: list[CodeUpgrade],
        carrier_name: str | None = None,
    ) -> list[SupplementArgument]:
        """
        Build supplement arguments.

        Covers every missing item, the largest underpaid items (capped by
        ``max_underpaid_arguments``) and every required code upgrade, in
        that order. Text requests go out in batches with a delay between
        batches.
        """
        carrier = carrier_name or "the insurance carrier"

        pending = [self._missing_item(item, carrier) for item in comparison.missing_items]
        pending.extend(self._underpaid_items(comparison, carrier))
        pending.extend(self._code_upgrade(u, carrier) for u in code_upgrades if u.required)

        batch_size = self.settings.argument_batch_size
        for start in range(0, len(pending), batch_size):
            if start:
                await asyncio.sleep(self.settings.argument_batch_delay_seconds)
            await self._generate_batch(pending[start : start + batch_size])

        LOGGER.info("Generated %d supplement arguments", len(pending))
        return [p.argument.model_copy(update={"argument": p.text}) for p in pending]

    async def generate_negotiation_script(
        self,
        arguments: list[SupplementArgument],
        tone: NegotiationTone | str = NegotiationTone.PROFESSIONAL,
        carrier_name: str | None = None,
    ) -> NegotiationScript:
        """Generate a negotiation script in one of the tone presets."""
        tone = NegotiationTone(tone)
        total_requested = sum((a.difference for a in arguments), Decimal("0"))

        system_instruction = SCRIPT_INSTRUCTION.format(
            carrier=carrier_name or "the insurance adjuster",
            tone=TONE_INSTRUCTIONS[tone],
        )
        item_lines = "\n".join(
            f"- {a.item_description}: {_money(a.difference)}" for a in arguments
        )
        user_payload = (
            f"Generate a negotiation script for a supplement of {_money(total_requested)} "
            f"covering {len(arguments)} items:\n\n{item_lines}"
        )

        try:
            script = await self.script_generator.generate(system_instruction, user_payload)
        except Exception as exc:
            LOGGER.error("Negotiation script generation failed: %s", exc)
            script = ""

        return NegotiationScript(
            tone=tone,
            total_requested=total_requested,
            item_count=len(arguments),
            script=script,
        )

    def calculate_totals(
        self, arguments: list[SupplementArgument], tax_rate: Decimal | None = None
    ) -> SupplementTotals:
        """Subtotal of argument differences plus tax, rounded to cents."""
        rate = self.settings.tax_rate if tax_rate is None else tax_rate
        subtotal = sum((a.difference for a in arguments), Decimal("0"))
        tax = subtotal * rate
        return SupplementTotals(
            subtotal=subtotal.quantize(CENTS, rounding=ROUND_HALF_UP),
            tax=tax.quantize(CENTS, rounding=ROUND_HALF_UP),
            total=(subtotal + tax).quantize(CENTS, rounding=ROUND_HALF_UP),
            tax_rate=rate,
        )

    async def build_packet(
        self,
        contractor_scope: list[LineItem],
        carrier_scope: list[LineItem],
        jurisdiction: Jurisdiction | None = None,
        carrier_name: str | None = None,
        tone: NegotiationTone | str | None = NegotiationTone.PROFESSIONAL,
    ) -> SupplementPacket:
        """
        Run the full supplement pipeline.

        Compares scopes, detects code upgrades, generates arguments and
        (unless ``tone`` is None) a negotiation script, then totals.
        """
        jurisdiction = jurisdiction or Jurisdiction()
        comparison = compare_scopes(
            contractor_scope, carrier_scope, self.settings.price_variance_threshold
        )
        upgrades = detect_code_upgrades(jurisdiction, contractor_scope)
        arguments = await self.generate_arguments(comparison, upgrades, carrier_name)

        script = None
        if tone is not None:
            script = await self.generate_negotiation_script(arguments, tone, carrier_name)

        return SupplementPacket(
            carrier_name=carrier_name,
            jurisdiction=jurisdiction,
            comparison=comparison,
            code_upgrades=upgrades,
            arguments=arguments,
            negotiation_script=script,
            totals=self.calculate_totals(arguments),
        )
