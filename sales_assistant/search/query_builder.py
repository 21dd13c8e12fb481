"""Pure mapping from a customer profile to a structured search query."""

from datetime import datetime
from typing import Optional

from sales_assistant.config import SearchConfig, settings
from sales_assistant.schemas.profile_schema import CustomerProfile
from sales_assistant.schemas.vehicle_schema import SearchFilters, SearchQuery

DEFAULT_SEARCH_TEXT = "used car"

PREMIUM_TAGS = ("premium", "black")
CARGO_TAGS = ("pickup", "cargo", "load")


def _has_tag(tags: list[str], markers: tuple[str, ...]) -> bool:
    return any(marker in tag.lower() for tag in tags for marker in markers)


def wants_cargo(profile: CustomerProfile) -> bool:
    """Pickup or commercial intent."""
    return profile.body_type == "pickup" or _has_tag(profile.priorities, CARGO_TAGS)


def build_search_query(
    profile: CustomerProfile,
    config: Optional[SearchConfig] = None,
    current_year: Optional[int] = None,
) -> SearchQuery:
    """Build the search request for a profile.

    The search text joins model, year, body type, usage and priorities in
    that order. Ride-hail tiers raise the year floor to the tier's maximum
    vehicle age. Family suitability is never requested together with
    pickup or commercial intent.
    """
    config = config or settings.search
    year = current_year or datetime.now().year

    parts: list[str] = []
    if profile.model:
        parts.append(profile.model)
    if profile.min_year:
        parts.append(str(profile.min_year))
    if profile.body_type:
        parts.append(profile.body_type)
    if profile.usage:
        parts.append(profile.usage)
    parts.extend(profile.priorities)

    is_ride_hail = profile.main_use == "ride_hail"
    is_premium = profile.ride_hail_tier == "premium" or (
        is_ride_hail and _has_tag(profile.priorities, PREMIUM_TAGS)
    )

    min_year = profile.min_year
    if is_premium:
        floor = year - config.ride_hail_premium_max_age
        min_year = max(min_year, floor) if min_year else floor
    elif is_ride_hail:
        floor = year - config.ride_hail_standard_max_age
        min_year = max(min_year, floor) if min_year else floor

    cargo = wants_cargo(profile)

    filters = SearchFilters(
        max_price=profile.budget or profile.budget_max,
        min_price=profile.budget_min,
        min_year=min_year,
        max_km=profile.max_km,
        min_seats=profile.min_seats,
        body_type=profile.body_type,
        transmission=profile.transmission,
        brand=profile.brand,
        model=profile.model,
        ride_hail_standard=is_ride_hail,
        ride_hail_premium=is_premium,
        family_friendly=profile.main_use == "family" and not cargo,
        work_ready=cargo or profile.main_use == "work",
        limit=config.result_limit,
    )

    return SearchQuery(
        search_text=" ".join(parts) or DEFAULT_SEARCH_TEXT,
        filters=filters,
        people=profile.people,
        priorities=list(profile.priorities),
        deal_breakers=list(profile.deal_breakers),
        min_match_score=config.min_match_score,
    )
