"""Parse the customer's current car (the trade-in) from a free-text reply."""

import re
from dataclasses import dataclass
from typing import Optional

from sales_assistant.config import settings
from sales_assistant.tools.vehicle_catalog import (
    find_brand_in_text,
    find_model_in_text,
    infer_brand_from_model,
)

MIN_TRADE_IN_YEAR = 2000

_YEAR_RE = re.compile(r"\b(20[0-2]\d)\b")

# An odometer reading needs a unit marker, otherwise "150k" is a down payment
_KM_SUFFIXED_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:k|thousand)\s*(?:km|kms|kilometers|miles)\b")
_KM_SEPARATED_RE = re.compile(r"(\d{1,3}(?:[.,]\d{3})+)\s*(?:km|kms|kilometers|miles)\b")
_KM_PLAIN_RE = re.compile(r"(\d+)\s*(?:km|kms|kilometers|miles)\b")


@dataclass
class TradeInInfo:
    """What we could read about the trade-in vehicle."""
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    km: Optional[int] = None

    @property
    def has_details(self) -> bool:
        return self.model is not None or self.km is not None


def extract_km(text: str) -> Optional[int]:
    """Read an odometer value, only when a distance unit is present.

    Examples:
        >>> extract_km("about 150k km")
        150000
        >>> extract_km("150.000 km")
        150000
        >>> extract_km("150k down payment") is None
        True
    """
    lower = text.lower()
    match = _KM_SUFFIXED_RE.search(lower)
    if match:
        return int(float(match.group(1).replace(",", ".")) * 1000)
    match = _KM_SEPARATED_RE.search(lower)
    if match:
        return int(re.sub(r"[.,]", "", match.group(1)))
    match = _KM_PLAIN_RE.search(lower)
    if match:
        return int(match.group(1))
    return None


def extract_trade_in_info(text: str) -> TradeInInfo:
    """Extract brand, model, year and odometer of the customer's car."""
    model = find_model_in_text(text)
    brand = find_brand_in_text(text) or infer_brand_from_model(model)

    year = None
    for match in _YEAR_RE.finditer(text):
        candidate = int(match.group(1))
        if MIN_TRADE_IN_YEAR <= candidate <= settings.extraction.max_year:
            year = candidate
            break

    return TradeInInfo(brand=brand, model=model, year=year, km=extract_km(text))
