"""Model, brand and body-type reference tables for the used-car inventory."""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

BRAND_ALIASES: dict[str, str] = {
    "vw": "volkswagen", "volks": "volkswagen",
    "gm": "chevrolet", "chevy": "chevrolet", "chev": "chevrolet",
    "mercedes": "mercedes-benz", "benz": "mercedes-benz",
    "caoa chery": "chery", "land rover": "land rover", "landrover": "land rover",
}

KNOWN_BRANDS: list[str] = [
    "chevrolet", "volkswagen", "fiat", "ford", "toyota", "honda", "hyundai",
    "renault", "nissan", "jeep", "peugeot", "citroen", "mitsubishi", "kia",
    "chery", "dodge", "land rover", "mercedes-benz", "bmw", "audi",
]

SEDAN_MODELS: dict[str, str] = {
    "prisma": "chevrolet", "onix plus": "chevrolet", "cruze": "chevrolet", "cobalt": "chevrolet",
    "virtus": "volkswagen", "voyage": "volkswagen", "jetta": "volkswagen",
    "hb20s": "hyundai", "elantra": "hyundai",
    "corolla": "toyota", "yaris sedan": "toyota", "etios sedan": "toyota",
    "civic": "honda", "city": "honda",
    "cronos": "fiat", "grand siena": "fiat", "siena": "fiat",
    "versa": "nissan", "sentra": "nissan",
    "logan": "renault", "fusion": "ford", "cerato": "kia", "arrizo 5": "chery",
}

HATCH_MODELS: dict[str, str] = {
    "onix": "chevrolet", "celta": "chevrolet",
    "gol": "volkswagen", "polo": "volkswagen", "fox": "volkswagen", "golf": "volkswagen",
    "hb20": "hyundai",
    "argo": "fiat", "mobi": "fiat", "uno": "fiat", "palio": "fiat",
    "ka": "ford", "fiesta": "ford", "focus": "ford",
    "yaris": "toyota", "etios": "toyota",
    "fit": "honda", "march": "nissan",
    "sandero": "renault", "kwid": "renault",
    "208": "peugeot", "c3": "citroen",
}

SUV_MODELS: dict[str, str] = {
    "tracker": "chevrolet", "trailblazer": "chevrolet", "captiva": "chevrolet",
    "t-cross": "volkswagen", "nivus": "volkswagen", "taos": "volkswagen", "tiguan": "volkswagen",
    "tiguan allspace": "volkswagen",
    "creta": "hyundai", "tucson": "hyundai", "santa fe": "hyundai", "vera cruz": "hyundai",
    "ix35": "hyundai",
    "corolla cross": "toyota", "sw4": "toyota", "rav4": "toyota", "prado": "toyota",
    "hr-v": "honda", "wr-v": "honda", "cr-v": "honda",
    "pulse": "fiat", "fastback": "fiat",
    "ecosport": "ford", "territory": "ford",
    "kicks": "nissan",
    "renegade": "jeep", "compass": "jeep", "commander": "jeep",
    "duster": "renault", "captur": "renault",
    "2008": "peugeot", "3008": "peugeot", "c4 cactus": "citroen", "aircross": "citroen",
    "pajero": "mitsubishi", "outlander": "mitsubishi", "asx": "mitsubishi",
    "tiggo 5x": "chery", "tiggo 7": "chery", "tiggo 8": "chery",
    "sportage": "kia", "sorento": "kia",
    "journey": "dodge", "discovery": "land rover", "discovery sport": "land rover",
}

PICKUP_MODELS: dict[str, str] = {
    "strada": "fiat", "toro": "fiat",
    "s10": "chevrolet", "montana": "chevrolet",
    "hilux": "toyota",
    "ranger": "ford", "maverick": "ford",
    "saveiro": "volkswagen", "amarok": "volkswagen",
    "l200": "mitsubishi", "triton": "mitsubishi",
    "frontier": "nissan",
    "oroch": "renault",
}

MINIVAN_MODELS: dict[str, str] = {
    "spin": "chevrolet", "zafira": "chevrolet",
    "livina": "nissan", "grand livina": "nissan",
    "freemont": "fiat",
}

_BODY_TYPE_TABLES: list[tuple[str, dict[str, str]]] = [
    ("sedan", SEDAN_MODELS),
    ("hatch", HATCH_MODELS),
    ("suv", SUV_MODELS),
    ("pickup", PICKUP_MODELS),
    ("minivan", MINIVAN_MODELS),
]

MODEL_BODY_TYPES: dict[str, str] = {
    model: body_type for body_type, table in _BODY_TYPE_TABLES for model in table
}

MODEL_BRANDS: dict[str, str] = {
    model: brand for _, table in _BODY_TYPE_TABLES for model, brand in table.items()
}

# Model names that are also everyday English words; only matched in free text
# next to their brand or a year.
AMBIGUOUS_MODEL_NAMES: frozenset[str] = frozenset({
    "city", "fit", "focus", "golf", "polo", "ka", "spin", "compass", "commander",
    "journey", "discovery", "pulse", "ranger", "frontier", "kicks", "march",
    "fusion", "territory", "voyage", "captur", "208", "2008", "3008",
})

SEVEN_SEAT_MODELS: list[str] = [
    "spin", "grand livina", "zafira", "sw4", "pajero", "outlander", "commander",
    "tiggo 8", "captiva", "journey", "freemont", "vera cruz", "tiguan allspace",
    "discovery", "discovery sport", "sorento", "santa fe", "prado", "trailblazer",
]

_FIVE_SEAT_MARKER = re.compile(r"\b5\s*(?:seats?|seater|lugares)\b")


def _model_pattern(model: str) -> str:
    return r"\b" + re.escape(model).replace(r"\-", "[-\\s]?").replace(r"\ ", r"\s+") + r"\b"


_MODELS_LONGEST_FIRST: list[str] = sorted(MODEL_BRANDS, key=len, reverse=True)


def normalize_brand(raw: Optional[str]) -> Optional[str]:
    """Map brand spellings and nicknames onto the canonical brand name."""
    if not raw:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    return BRAND_ALIASES.get(value, value)


def infer_brand_from_model(model: Optional[str]) -> Optional[str]:
    """Return the brand of a known model name, or None."""
    if not model:
        return None
    return MODEL_BRANDS.get(model.strip().lower())


def detect_body_type_from_model(model: Optional[str]) -> Optional[str]:
    """Infer the body type from the model tables, longest model name first."""
    if not model:
        return None
    lower = model.lower()
    for name in _MODELS_LONGEST_FIRST:
        if re.search(_model_pattern(name), lower):
            return MODEL_BODY_TYPES[name]
    return None


def find_model_in_text(text: str) -> Optional[str]:
    """Find the longest known model mentioned in free text.

    Ambiguous names (ordinary English words) count only when preceded by
    their brand or followed by a year.
    """
    lower = text.lower()
    for name in _MODELS_LONGEST_FIRST:
        pattern = _model_pattern(name)
        if not re.search(pattern, lower):
            continue
        if name in AMBIGUOUS_MODEL_NAMES:
            brand = MODEL_BRANDS[name]
            with_brand = re.search(r"\b" + re.escape(brand) + r"\s+" + pattern[2:], lower)
            with_year = re.search(pattern + r"\s+(?:19|20)?\d{2}\b", lower)
            if not (with_brand or with_year):
                continue
        return name
    return None


def find_brand_in_text(text: str) -> Optional[str]:
    """Find a brand or brand nickname mentioned in free text."""
    lower = text.lower()
    for alias in sorted(BRAND_ALIASES, key=len, reverse=True):
        if re.search(r"\b" + re.escape(alias) + r"\b", lower):
            return BRAND_ALIASES[alias]
    for brand in KNOWN_BRANDS:
        if re.search(r"\b" + re.escape(brand) + r"\b", lower):
            return brand
    return None


def is_seven_seater(model: Optional[str]) -> bool:
    """Check whether a model name belongs to the seven-seat allow-list."""
    if not model:
        return False
    lower = model.lower()
    if _FIVE_SEAT_MARKER.search(lower):
        return False
    if "livina" in lower and "grand" not in lower:
        return False
    return any(re.search(_model_pattern(name), lower) for name in SEVEN_SEAT_MODELS)
