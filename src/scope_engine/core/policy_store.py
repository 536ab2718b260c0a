"""
Carrier Policy Store.
In-memory table of per-carrier underwriting rules, aliases and adjuster email domains.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from ..exceptions import PolicyStoreError
from ..utils.logging import get_logger
from .models import CarrierRule

LOGGER = get_logger(__name__)

DEFAULT_STRICTNESS = 5
MAX_STRICTNESS = 10


CARRIER_RECORDS: list[dict[str, Any]] = [
    {
        "carrier_name": "State Farm",
        "requires_starter_rake": True,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 15,
        "line_item_limits": ["RFG220 <= 350/SQ", "RFG330 <= 12/LF", "RFG410 <= 8/LF"],
        "required_items": ["RFG330", "RFG410"],
        "denied_items": [],
        "code_upgrade_rules": [
            "Code upgrades paid under Ordinance or Law coverage once permit is pulled",
        ],
        "notes": [
            "RFG330 starter strip required at eaves and rakes",
            "RFG410 drip edge required on all re-roofs",
            "Waste up to 15% accepted with roof diagram",
        ],
        "documentation_requirements": [
            "Roof diagram with slope measurements",
            "Photos of each elevation",
        ],
    },
    {
        "carrier_name": "Allstate",
        "requires_starter_rake": True,
        "allows_ice_and_water": False,
        "drip_edge_required": True,
        "overhead_profit_allowed": False,
        "waste_limit_percent": 10,
        "line_item_limits": [
            "RFG220 <= 325/SQ",
            "RFG215 <= 35/SQ",
            "RFG330 <= 10/LF",
            "RFG410 <= 7/LF",
        ],
        "required_items": ["RFG410"],
        "denied_items": ["RFG140"],
        "code_upgrade_rules": [
            "Code upgrades denied unless Ordinance or Law endorsement is on the policy",
        ],
        "notes": [
            "O&P denied without proof of general contractor supervision",
            "Ice and water shield only in valleys with documented leak history",
            "Steep charge commonly denied below 10/12 pitch",
        ],
        "documentation_requirements": [
            "Brittle test results",
            "Manufacturer repair limitations",
            "Subcontractor agreements for O&P",
        ],
    },
    {
        "carrier_name": "Farmers",
        "requires_starter_rake": False,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": False,
        "waste_limit_percent": 12,
        "line_item_limits": ["RFG220 <= 330/SQ", "RFG410 <= 7.5/LF"],
        "required_items": ["RFG410"],
        "denied_items": [],
        "code_upgrade_rules": [
            "Code upgrades reviewed against A.R.S. 20-461 ordinance or law provisions",
        ],
        "notes": [
            "O&P not paid without three or more trades",
            "Matching claims require discontinuation proof",
        ],
        "documentation_requirements": [
            "Manufacturer technical bulletins",
            "Discontinuation notice for matching claims",
        ],
    },
    {
        "carrier_name": "USAA",
        "requires_starter_rake": True,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 15,
        "line_item_limits": ["RFG220 <= 375/SQ"],
        "required_items": ["RFG330", "RFG410"],
        "denied_items": [],
        "code_upgrade_rules": [
            "Code upgrades paid when required by local building department",
        ],
        "notes": ["Starter strip and drip edge expected on every roof replacement"],
        "documentation_requirements": ["Permit copy for code upgrades"],
    },
    {
        "carrier_name": "Liberty Mutual",
        "requires_starter_rake": False,
        "allows_ice_and_water": False,
        "drip_edge_required": False,
        "overhead_profit_allowed": False,
        "waste_limit_percent": 8,
        "line_item_limits": ["RFG220 <= 310/SQ", "RFG300 <= 9/LF"],
        "required_items": [],
        "denied_items": ["RFG140", "RFG150"],
        "code_upgrade_rules": ["Code upgrades denied on ACV policies"],
        "notes": [
            "Waste factor above 8% requires hip/valley count",
            "Ice and water shield denied outside code-mandated eaves",
        ],
        "documentation_requirements": [
            "Hip and valley measurements",
            "Code citation for each upgrade",
        ],
    },
    {
        "carrier_name": "Nationwide",
        "requires_starter_rake": True,
        "allows_ice_and_water": True,
        "drip_edge_required": False,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 12,
        "line_item_limits": ["RFG220 <= 340/SQ", "RFG330 <= 11/LF"],
        "required_items": ["RFG330"],
        "denied_items": [],
        "code_upgrade_rules": [],
        "notes": ["RFG330 starter course required at eaves"],
        "documentation_requirements": ["Storm date verification"],
    },
    {
        "carrier_name": "Travelers",
        "requires_starter_rake": False,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 10,
        "line_item_limits": ["RFG220 <= 345/SQ"],
        "required_items": ["RFG410"],
        "denied_items": ["RFG150"],
        "code_upgrade_rules": [
            "Code upgrades limited to 10% of dwelling coverage",
        ],
        "notes": ["High roof charge denied for single story homes"],
        "documentation_requirements": ["Photos showing stories and pitch"],
    },
    {
        "carrier_name": "American Family",
        "requires_starter_rake": True,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 14,
        "line_item_limits": ["RFG220 <= 355/SQ", "RFG410 <= 8/LF"],
        "required_items": ["RFG410"],
        "denied_items": [],
        "code_upgrade_rules": [
            "Code upgrades require moisture mapping and collateral damage photos",
        ],
        "notes": ["Minimum 8 hits per 100 sq ft test square"],
        "documentation_requirements": [
            "Test squares on every slope",
            "Collateral damage photos",
        ],
    },
    {
        "carrier_name": "Progressive",
        "requires_starter_rake": False,
        "allows_ice_and_water": False,
        "drip_edge_required": False,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 10,
        "line_item_limits": ["RFG220 <= 320/SQ", "RFG215 <= 38/SQ"],
        "required_items": [],
        "denied_items": [],
        "code_upgrade_rules": [],
        "notes": ["Ice and water shield requires documented ice dam history"],
        "documentation_requirements": ["Contractor license on estimate"],
    },
    {
        "carrier_name": "AAA",
        "requires_starter_rake": False,
        "allows_ice_and_water": True,
        "drip_edge_required": True,
        "overhead_profit_allowed": True,
        "waste_limit_percent": 15,
        "line_item_limits": ["RFG220 <= 340/SQ"],
        "required_items": ["RFG410"],
        "denied_items": [],
        "code_upgrade_rules": [],
        "notes": ["Minimum 10 labeled photos per claim"],
        "documentation_requirements": [
            "NOAA weather verification",
            "6-10 labeled photos per slope",
        ],
    },
]


CARRIER_ALIASES: dict[str, list[str]] = {
    "State Farm": ["state farm", "statefarm", "state farm fire and casualty"],
    "Allstate": ["allstate", "all state", "allstate insurance"],
    "Farmers": ["farmers", "farmers insurance", "farmers insurance group"],
    "USAA": ["usaa", "united services automobile association"],
    "Liberty Mutual": ["liberty mutual", "libertymutual", "safeco"],
    "Nationwide": ["nationwide", "nationwide mutual"],
    "Travelers": ["travelers", "the travelers", "travelers insurance"],
    "American Family": ["american family", "amfam", "american family insurance"],
    "Progressive": ["progressive", "progressive insurance"],
    "AAA": ["aaa", "csaa", "auto club", "automobile club"],
}


EMAIL_DOMAINS: dict[str, tuple[str, float]] = {
    "statefarm.com": ("State Farm", 1.0),
    "allstate.com": ("Allstate", 1.0),
    "farmersinsurance.com": ("Farmers", 1.0),
    "farmers.com": ("Farmers", 0.95),
    "usaa.com": ("USAA", 1.0),
    "libertymutual.com": ("Liberty Mutual", 1.0),
    "safeco.com": ("Liberty Mutual", 0.9),
    "nationwide.com": ("Nationwide", 1.0),
    "travelers.com": ("Travelers", 1.0),
    "amfam.com": ("American Family", 1.0),
    "progressive.com": ("Progressive", 1.0),
    "csaa.com": ("AAA", 0.95),
    "aaa.com": ("AAA", 0.9),
}


def _normalize_name(name: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    cleaned = re.sub(r"[^a-z0-9&\s]", " ", name.lower())
    return " ".join(cleaned.split())


class PolicyStore:
    """
    Read-only lookup of carrier underwriting rules.

    Lookups are case-insensitive exact matches on the canonical carrier
    name. Alias handling is exposed separately for the carrier detector.
    """

    def __init__(
        self,
        rules: Iterable[CarrierRule],
        aliases: Mapping[str, Iterable[str]] | None = None,
        email_domains: Mapping[str, tuple[str, float]] | None = None,
    ) -> None:
        self._rules: dict[str, CarrierRule] = {}
        for rule in rules:
            self._rules[rule.carrier_name.lower()] = rule

        self._aliases: dict[str, tuple[str, ...]] = {}
        self._alias_index: dict[str, str] = {}
        for rule in self._rules.values():
            names = [rule.carrier_name, *(aliases or {}).get(rule.carrier_name, [])]
            normalized = tuple(dict.fromkeys(_normalize_name(n) for n in names))
            self._aliases[rule.carrier_name] = normalized
            for alias in normalized:
                self._alias_index.setdefault(alias, rule.carrier_name)

        self._email_domains: dict[str, tuple[str, float]] = {
            domain.lower(): (carrier, confidence)
            for domain, (carrier, confidence) in (email_domains or {}).items()
            if carrier.lower() in self._rules
        }

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        aliases: Mapping[str, Iterable[str]] | None = None,
        email_domains: Mapping[str, tuple[str, float]] | None = None,
    ) -> "PolicyStore":
        """
        Build a store from raw records, validating each one.

        Raises:
            PolicyStoreError: If a record (e.g. a line item limit) is malformed
        """
        rules: list[CarrierRule] = []
        for record in records:
            name = str(record.get("carrier_name", "<unnamed>"))
            try:
                rules.append(CarrierRule.model_validate(record))
            except ValidationError as e:
                raise PolicyStoreError(name, str(e)) from e
        LOGGER.debug("Loaded %d carrier rule records", len(rules))
        return cls(rules, aliases=aliases, email_domains=email_domains)

    def get_rule(self, name: str | None) -> CarrierRule | None:
        """Get the rule record for a canonical carrier name."""
        if not name:
            return None
        return self._rules.get(name.strip().lower())

    def list_carriers(self) -> list[str]:
        """List canonical carrier names."""
        return [rule.carrier_name for rule in self._rules.values()]

    def is_supported(self, name: str | None) -> bool:
        """Check whether a carrier has a rule record."""
        return self.get_rule(name) is not None

    def strictness_score(self, name: str | None) -> int:
        """
        Score how restrictive a carrier is (0-10).

        Unknown carriers get a neutral default of 5.
        """
        rule = self.get_rule(name)
        if rule is None:
            return DEFAULT_STRICTNESS

        score = 0
        if not rule.overhead_profit_allowed:
            score += 3
        if not rule.allows_ice_and_water:
            score += 2
        if rule.waste_limit_percent is not None and rule.waste_limit_percent < 10:
            score += 2
        if rule.denied_items:
            score += 1
        if any("denied" in entry.lower() for entry in rule.code_upgrade_rules):
            score += 2
        return min(score, MAX_STRICTNESS)

    def aliases_for(self, name: str) -> tuple[str, ...]:
        """Normalised aliases (including the canonical name) for a carrier."""
        rule = self.get_rule(name)
        if rule is None:
            return ()
        return self._aliases.get(rule.carrier_name, ())

    def resolve_alias(self, text: str | None) -> str | None:
        """Resolve free-form carrier input to a canonical carrier name."""
        if not text:
            return None
        return self._alias_index.get(_normalize_name(text))

    @property
    def email_domains(self) -> dict[str, tuple[str, float]]:
        """Known adjuster email domains mapped to (carrier, confidence)."""
        return dict(self._email_domains)


_default_store: PolicyStore | None = None


def get_policy_store() -> PolicyStore:
    """Get the built-in policy store, validating the static table on first use."""
    global _default_store
    if _default_store is None:
        _default_store = PolicyStore.from_records(
            CARRIER_RECORDS, aliases=CARRIER_ALIASES, email_domains=EMAIL_DOMAINS
        )
    return _default_store
