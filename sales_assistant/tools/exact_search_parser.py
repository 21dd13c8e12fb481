"""
Exact model/year parsing for direct inventory lookups.

Understands "Onix 2019", "2019 Onix", "Onix 19", "Onix 2018 to 2020" and
"Onix 2019/2020". A year range suppresses the single year so that only
precise requests take the exact-search fast path.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sales_assistant.tools.vehicle_catalog import find_model_in_text

logger = logging.getLogger(__name__)

MIN_VALID_YEAR = 1950

# Common misspellings and speech-to-text slips
MODEL_CORRECTIONS: dict[str, str] = {
    "onyx": "onix",
    "corola": "corolla", "carola": "corolla",
    "sivic": "civic", "civick": "civic",
    "hrv": "hr-v", "crv": "cr-v", "wrv": "wr-v",
    "tcross": "t-cross",
    "santafe": "santa fe",
    "hb 20": "hb20",
    "ecosports": "ecosport",
}

TRADE_IN_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bi\s+(?:have|own)\s+an?\s+\w+.*\b(?:want|would like|looking)\s+to\s+(?:trade|swap)"),
    re.compile(r"\bi\s+(?:have|own)\s+an?\s+\w+\s*,"),
    re.compile(r"\bi\s+(?:have|own|got)\s+(?:an?|my)\b"),
    re.compile(r"\bi've\s+got\s+an?\b"),
    re.compile(r"\b(?:want|like)\s+to\s+(?:trade|swap)\s+(?:in\s+)?my\b"),
    re.compile(r"\btrade[-\s]?in\b"),
    re.compile(r"\bmy\s+(?:current\s+)?(?:car|vehicle)\s+is\b"),
    re.compile(r"\b(?:trade|swap)\s+my\s+\w+.*\s+for\s+an?\b"),
    re.compile(r"\b\w+\s+\d{4}\s*,\s*(?:i\s+)?want\s+to\s+(?:trade|swap)"),
]

_RANGE_RE = re.compile(r"\b(\d{4})\s*(?:to|-|until|through)\s*(\d{4})\b")
_SLASH_RE = re.compile(r"\b(\d{4})/(\d{4})\b")
_ABBREV_SLASH_RE = re.compile(r"\b(\d{2})/(\d{2})\b")
_FULL_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")
_ABBREV_YEAR_RE = re.compile(r"(?:^|\s)'?(\d{2})(?=\s|$)")


@dataclass
class ExactMatch:
    """Model and year parsed from a customer message."""
    model: Optional[str] = None
    year: Optional[int] = None
    year_range: Optional[tuple[int, int]] = None
    raw_query: str = ""

    @property
    def is_exact(self) -> bool:
        return self.model is not None and self.year is not None


def _current_year() -> int:
    return datetime.now().year


def _is_valid_year(year: int) -> bool:
    return MIN_VALID_YEAR <= year <= _current_year() + 1


def _expand_abbreviated_year(value: int) -> Optional[int]:
    """00-30 -> 2000s, 31-99 -> 1900s."""
    if not 0 <= value <= 99:
        return None
    year = 2000 + value if value <= 30 else 1900 + value
    return year if _is_valid_year(year) else None


def _normalize(query: str) -> str:
    text = query.lower().strip()
    for wrong, right in MODEL_CORRECTIONS.items():
        text = re.sub(r"\b" + re.escape(wrong) + r"\b", right, text)
    return text


def _extract_year_range(text: str) -> Optional[tuple[int, int]]:
    for pattern in (_RANGE_RE, _SLASH_RE):
        match = pattern.search(text)
        if match:
            first, second = int(match.group(1)), int(match.group(2))
            if _is_valid_year(first) and _is_valid_year(second):
                return min(first, second), max(first, second)

    match = _ABBREV_SLASH_RE.search(text)
    if match:
        first = _expand_abbreviated_year(int(match.group(1)))
        second = _expand_abbreviated_year(int(match.group(2)))
        if first and second:
            return min(first, second), max(first, second)
    return None


def _extract_year(text: str) -> Optional[int]:
    match = _FULL_YEAR_RE.search(text)
    if match and _is_valid_year(int(match.group(1))):
        return int(match.group(1))

    match = _ABBREV_YEAR_RE.search(text)
    if match:
        return _expand_abbreviated_year(int(match.group(1)))
    return None


def parse_exact_query(query: str) -> ExactMatch:
    """Parse a message into model and year filters."""
    text = _normalize(query)
    model = find_model_in_text(text)
    year_range = _extract_year_range(text)
    year = None if year_range else _extract_year(text)
    result = ExactMatch(model=model, year=year, year_range=year_range, raw_query=query)
    logger.debug("Exact search parse: %r -> %s", query, result)
    return result


def is_trade_in_context(query: str) -> bool:
    """Check whether the message talks about a car the customer owns."""
    text = query.lower().strip()
    return any(pattern.search(text) for pattern in TRADE_IN_PATTERNS)
