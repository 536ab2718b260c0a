"""
Xactimate Line Item Feature Parser using Regular Expressions.
Recognises roofing scope features (waste, O&P, ice & water, ...) by code and description.
"""

import re
from collections.abc import Iterable

from .models import LineItem


class XactimateParser:
    """
    Parser for roofing line items.
    Each feature has code patterns (matched against the code) and
    description patterns (matched against the description).
    """

    CODE_PATTERNS: dict[str, re.Pattern[str]] = {
        "waste": re.compile(r"WASTE", re.IGNORECASE),
        "overhead_profit": re.compile(r"(?:^|[^A-Z])O&?P(?:[^A-Z]|$)", re.IGNORECASE),
        "ice_and_water": re.compile(r"^RFG215$", re.IGNORECASE),
        "drip_edge": re.compile(r"^RFG410$", re.IGNORECASE),
        "starter": re.compile(r"^RFG330$", re.IGNORECASE),
        "ventilation": re.compile(r"^RFG920$", re.IGNORECASE),
        "high_wind": re.compile(r"^RFG225$", re.IGNORECASE),
        "reflective": re.compile(r"^RFG230$", re.IGNORECASE),
        "secondary_barrier": re.compile(r"^RFG212$", re.IGNORECASE),
    }

    DESCRIPTION_PATTERNS: dict[str, re.Pattern[str]] = {
        "waste": re.compile(r"waste", re.IGNORECASE),
        "overhead_profit": re.compile(r"(overhead|profit)", re.IGNORECASE),
        "ice_and_water": re.compile(r"ice\s*(and|&)\s*water|ice\s*barrier", re.IGNORECASE),
        "drip_edge": re.compile(r"drip\s*edge", re.IGNORECASE),
        "starter": re.compile(r"starter", re.IGNORECASE),
        "ventilation": re.compile(r"vent", re.IGNORECASE),
        "high_wind": re.compile(r"high\s*wind|class\s*h\b", re.IGNORECASE),
        "reflective": re.compile(r"cool\s*roof|reflective", re.IGNORECASE),
        "secondary_barrier": re.compile(
            r"secondary\s*water\s*barrier|self[-\s]*adhered", re.IGNORECASE
        ),
    }

    def has_feature(self, item: LineItem, feature: str) -> bool:
        """Check whether a line item matches a named feature."""
        code_pattern = self.CODE_PATTERNS.get(feature)
        desc_pattern = self.DESCRIPTION_PATTERNS.get(feature)
        if code_pattern is None and desc_pattern is None:
            raise KeyError(f"Unknown feature: {feature}")
        if code_pattern is not None and code_pattern.search(item.code):
            return True
        return bool(desc_pattern is not None and desc_pattern.search(item.description))

    def find_first(self, items: Iterable[LineItem], feature: str) -> LineItem | None:
        """Return the first item matching a feature, if any."""
        for item in items:
            if self.has_feature(item, feature):
                return item
        return None


# Stateless, safe to share
_parser_instance = XactimateParser()


def get_parser() -> XactimateParser:
    """Get the shared parser instance."""
    return _parser_instance
