"""
Validation and clamping of extracted preference fields.

Whatever the NLU capability returns passes through ``sanitize_extracted``
before it can touch the profile: numbers are clamped to their documented
ranges, enum values outside the allow-lists are dropped, strings are
trimmed and lower-cased, and pickup models force the pickup body type.
Control state is never accepted from extraction.
"""

import logging
from typing import Any, Optional

from sales_assistant.config import settings
from sales_assistant.schemas.profile_schema import CONTROL_FIELDS, PREFERENCE_FIELDS
from sales_assistant.tools.vehicle_catalog import PICKUP_MODELS, normalize_brand

logger = logging.getLogger(__name__)

ALLOWED_VALUES: dict[str, frozenset[str]] = {
    "usage": frozenset({"city", "trip", "work", "mixed"}),
    "main_use": frozenset({"ride_hail", "family", "work", "trip", "other"}),
    "ride_hail_tier": frozenset({"standard", "comfort", "premium"}),
    "body_type": frozenset({"sedan", "suv", "hatch", "pickup", "minivan"}),
    "transmission": frozenset({"manual", "automatic"}),
    "fuel_type": frozenset({"flex", "gasoline", "ethanol", "diesel", "hybrid", "electric"}),
}

VALUE_SYNONYMS: dict[str, dict[str, str]] = {
    "body_type": {"hatchback": "hatch", "truck": "pickup", "pick-up": "pickup", "van": "minivan"},
    "transmission": {"auto": "automatic", "stick": "manual", "cvt": "automatic"},
    "main_use": {"uber": "ride_hail", "rideshare": "ride_hail", "ride-hail": "ride_hail"},
    "ride_hail_tier": {"x": "standard", "black": "premium"},
    "fuel_type": {"petrol": "gasoline", "gas": "gasoline"},
}

# (min, max) per integer field; the max year is configurable
INT_RANGES: dict[str, tuple[int, int]] = {
    "people": (1, 10),
    "min_seats": (2, 9),
    "max_km": (0, 500_000),
    "trade_in_km": (0, 1_000_000),
}

MONEY_FIELDS: tuple[str, ...] = ("budget", "budget_min", "budget_max", "financing_down_payment")
BOOL_FIELDS: tuple[str, ...] = ("wants_financing", "has_trade_in")
LIST_FIELDS: tuple[str, ...] = ("priorities", "deal_breakers")

CAMEL_CASE_ALIASES: dict[str, str] = {
    "customerName": "customer_name",
    "budgetMin": "budget_min",
    "budgetMax": "budget_max",
    "minSeats": "min_seats",
    "usoPrincipal": "main_use",
    "mainUse": "main_use",
    "tipoUber": "ride_hail_tier",
    "rideHailTier": "ride_hail_tier",
    "bodyType": "body_type",
    "minYear": "min_year",
    "maxKm": "max_km",
    "fuelType": "fuel_type",
    "dealBreakers": "deal_breakers",
    "wantsFinancing": "wants_financing",
    "financingDownPayment": "financing_down_payment",
    "hasTradeIn": "has_trade_in",
    "tradeInBrand": "trade_in_brand",
    "tradeInModel": "trade_in_model",
    "tradeInYear": "trade_in_year",
    "tradeInKm": "trade_in_km",
}

MIN_YEAR = 1950
MIN_TRADE_IN_YEAR = 1990


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return None
    return None


def _clamp(value: float, low: int, high: int) -> int:
    return int(max(low, min(high, value)))


def _enum_value(field_name: str, value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    normalized = VALUE_SYNONYMS.get(field_name, {}).get(normalized, normalized)
    return normalized if normalized in ALLOWED_VALUES[field_name] else None


def _clean_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    cleaned: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            tag = item.strip().lower()
            if tag not in cleaned:
                cleaned.append(tag)
    return cleaned


def canonical_key(key: str) -> str:
    return CAMEL_CASE_ALIASES.get(key, key)


def sanitize_extracted(raw: dict[str, Any]) -> dict[str, Any]:
    """Return only valid, clamped preference fields from a raw extraction."""
    clean: dict[str, Any] = {}
    max_year = settings.extraction.max_year

    for raw_key, value in raw.items():
        key = canonical_key(raw_key)
        if key in CONTROL_FIELDS or key not in PREFERENCE_FIELDS:
            if key in CONTROL_FIELDS:
                logger.warning("Dropping control field '%s' from extraction", key)
            continue
        if value is None:
            continue

        if key in MONEY_FIELDS:
            number = _to_number(value)
            if number is not None:
                clean[key] = max(0.0, number)
        elif key in INT_RANGES:
            number = _to_number(value)
            if number is not None:
                clean[key] = _clamp(number, *INT_RANGES[key])
        elif key == "min_year":
            number = _to_number(value)
            if number is not None:
                clean[key] = _clamp(number, MIN_YEAR, max_year)
        elif key == "trade_in_year":
            number = _to_number(value)
            if number is not None:
                clean[key] = _clamp(number, MIN_TRADE_IN_YEAR, max_year)
        elif key in ALLOWED_VALUES:
            enum_value = _enum_value(key, value)
            if enum_value is not None:
                clean[key] = enum_value
        elif key in BOOL_FIELDS:
            if isinstance(value, bool):
                clean[key] = value
        elif key in LIST_FIELDS:
            items = _clean_list(value)
            if items:
                clean[key] = items
        elif key in ("brand", "trade_in_brand"):
            brand = normalize_brand(value) if isinstance(value, str) else None
            if brand:
                clean[key] = brand
        elif key in ("model", "trade_in_model", "color"):
            if isinstance(value, str) and value.strip():
                clean[key] = value.strip().lower()
        elif key == "customer_name":
            if isinstance(value, str) and value.strip():
                clean[key] = value.strip().title()

    _apply_pickup_rules(clean)
    return clean


def _apply_pickup_rules(clean: dict[str, Any]) -> None:
    """A known pickup model implies the pickup body type and its brand."""
    model = clean.get("model")
    if not model:
        return
    for pickup, brand in PICKUP_MODELS.items():
        if pickup in model.split() or model == pickup:
            clean["body_type"] = "pickup"
            priorities = clean.setdefault("priorities", [])
            if "pickup" not in priorities:
                priorities.append("pickup")
            clean.setdefault("brand", brand)
            logger.debug("Pickup model '%s' detected, forcing body type pickup", model)
            return
