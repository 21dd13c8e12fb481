"""Rule-based preference extraction for offline runs and tests."""

import re
from typing import Any, Optional

from sales_assistant.conversation.intent_detector import detect_category
from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile
from sales_assistant.tools.exact_search_parser import is_trade_in_context, parse_exact_query
from sales_assistant.tools.vehicle_catalog import find_brand_in_text
from sales_assistant.utils import parse_money

KEYWORD_CONFIDENCE = 0.85

_BUDGET_RE = re.compile(
    r"(?:budget(?: is| of)?|up to|under|below|max(?:imum)?|around|about|spend|afford)"
    r"\s*\$?\s*(\d[\d.,]*\s*(?:k|thousand|grand)?)"
)
_MONEY_RE = re.compile(
    r"\$\s*\d[\d.,]*\s*(?:k|thousand)?"
    r"|\b\d[\d.,]*\s*(?:k|thousand|grand)\b(?!\s*(?:km|kms|kilometers|miles|down))"
)
_PEOPLE_RE = re.compile(r"\b(?:for|family of|we are|we're)\s+(\d{1,2})\s*(?:people|persons|of us)?\b")
_SEATS_RE = re.compile(r"\b(\d)\s*(?:seats?|seater|passengers)\b")
_MIN_YEAR_RE = re.compile(r"\b(?:from|after|since|newer than|at least)\s+((?:19|20)\d{2})\b"
                          r"|\b((?:19|20)\d{2})\s+or\s+(?:newer|later|up)\b")
_MAX_KM_RE = re.compile(r"\b(?:under|less than|below|up to|max)\s+(\d[\d.,]*)\s*(k)?\s*(?:km|kms|miles)\b")
_DISTANCE_RE = re.compile(r"\d[\d.,]*\s*(?:k|thousand)?\s*(?:km|kms|kilometers|miles)\b")

USAGE_KEYWORDS: dict[str, str] = {
    "city": "city", "commute": "city", "commuting": "city", "downtown": "city",
    "road trip": "trip", "trips": "trip", "travel": "trip", "highway": "trip",
    "work": "work", "deliveries": "work", "business": "work",
}

MAIN_USE_KEYWORDS: dict[str, str] = {
    "uber": "ride_hail", "lyft": "ride_hail", "ride-hail": "ride_hail", "ride hail": "ride_hail",
    "rideshare": "ride_hail", "ride share": "ride_hail",
    "family": "family", "kids": "family", "children": "family",
}

PRIORITY_KEYWORDS: dict[str, str] = {
    "economical": "economical", "fuel efficient": "economical", "cheap to run": "economical",
    "comfortable": "comfort", "comfort": "comfort",
    "spacious": "space", "big trunk": "space", "large trunk": "space",
    "safe": "safety", "safety": "safety",
}

DEAL_BREAKER_RE = re.compile(r"\b(?:no|not an?|don't want an?|hate)\s+(manual|automatic|sedan|suv|hatch|pickup|minivan)\b")


def _first_match(text: str, table: dict[str, str]) -> Optional[str]:
    for keyword in sorted(table, key=len, reverse=True):
        if re.search(r"\b" + re.escape(keyword) + r"\b", text):
            return table[keyword]
    return None


def _budget(text: str) -> Optional[int]:
    match = _BUDGET_RE.search(text)
    if match:
        return parse_money(match.group(1))
    match = _MONEY_RE.search(text)
    if match:
        return parse_money(match.group(0).replace("$", ""))
    return None


def extract_keywords(message: str) -> dict[str, Any]:
    """Pull the preference fields a keyword scan can recognise."""
    text = message.lower()
    found: dict[str, Any] = {}

    if not re.search(r"\bdown\b|down ?payment", text):
        budget = _budget(_DISTANCE_RE.sub(" ", text))
        if budget:
            found["budget"] = budget

    match = _PEOPLE_RE.search(text)
    if match:
        found["people"] = int(match.group(1))
    match = _SEATS_RE.search(text)
    if match:
        found["minSeats"] = int(match.group(1))

    usage = _first_match(text, USAGE_KEYWORDS)
    if usage:
        found["usage"] = usage
    main_use = _first_match(text, MAIN_USE_KEYWORDS)
    if main_use:
        found["mainUse"] = main_use
        if main_use == "ride_hail":
            tier = re.search(r"\b(black|premium|comfort|x)\b", text)
            if tier:
                found["rideHailTier"] = tier.group(1)

    body_type = detect_category(text)
    if body_type:
        found["bodyType"] = body_type

    match = _MIN_YEAR_RE.search(text)
    if match:
        found["minYear"] = int(match.group(1) or match.group(2))
    match = _MAX_KM_RE.search(text)
    if match:
        km = int(re.sub(r"[.,]", "", match.group(1)))
        found["maxKm"] = km * 1000 if match.group(2) else km

    if re.search(r"\bautomatic\b|\bauto\b", text) and not re.search(r"\bno automatic\b", text):
        found["transmission"] = "automatic"
    elif re.search(r"\bmanual\b|\bstick\b", text):
        found["transmission"] = "manual"

    if not is_trade_in_context(text):
        exact = parse_exact_query(message)
        if exact.model:
            found["model"] = exact.model
        if exact.year and "minYear" not in found:
            found["minYear"] = exact.year
        brand = find_brand_in_text(text)
        if brand:
            found["brand"] = brand

    priorities = sorted({v for k, v in PRIORITY_KEYWORDS.items() if re.search(r"\b" + re.escape(k) + r"\b", text)})
    if priorities:
        found["priorities"] = priorities
    deal_breakers = sorted(set(DEAL_BREAKER_RE.findall(text)))
    if deal_breakers:
        found["dealBreakers"] = deal_breakers

    if re.search(r"financ|instal(?:l)?ments?", text):
        found["wantsFinancing"] = True
    if re.search(r"\btrade[-\s]?in\b|\btrade (?:in )?my\b", text):
        found["hasTradeIn"] = True

    return found


class KeywordExtractor:
    """Implements the NLU port with keyword tables and regular expressions."""

    async def extract(
        self, message: str, profile: CustomerProfile, history: list[str]
    ) -> ExtractionResult:
        found = extract_keywords(message)
        return ExtractionResult(
            extracted=found,
            confidence=KEYWORD_CONFIDENCE if found else 0.0,
            reasoning="keyword scan",
            fields_extracted=list(found),
        )
