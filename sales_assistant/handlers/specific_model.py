"""Brand or model mentions that did not take the exact-search fast path."""

from typing import Optional

from sales_assistant.conversation.intent_detector import mentions_similarity
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import body_type_name, format_matches, join_years
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import (
    AwaitingSimilarApproval,
    AwaitingSuggestionAnswer,
    CustomerProfile,
    SearchType,
)
from sales_assistant.schemas.vehicle_schema import SearchFilters, VehicleMatch
from sales_assistant.search.query_builder import build_search_query
from sales_assistant.tools.vehicle_catalog import detect_body_type_from_model, infer_brand_from_model
from sales_assistant.utils import capitalize_words

logger = get_conversation_logger(__name__)

MAX_SIMILAR = 5


def requested_brand_model(turn: Turn) -> tuple[Optional[str], Optional[str]]:
    """Brand and model named in this message."""
    model = turn.exact.model or turn.extracted.get("model")
    brand = turn.extracted.get("brand")
    return brand, model


def _forget_previous_request(turn: Turn, brand: Optional[str], model: Optional[str],
                             year: Optional[int]) -> None:
    """Drop a model, year or brand asked for on an earlier turn that this message replaces."""
    prior = turn.context.profile
    if prior.model and prior.model != model:
        turn.clear(model=model, min_year=year)
    if model and not brand and prior.brand and prior.brand != infer_brand_from_model(model):
        turn.clear(brand=None)


def _request_profile(turn: Turn, brand: Optional[str], model: Optional[str],
                     year: Optional[int]) -> CustomerProfile:
    """The profile with brand, model and year taken from this message only."""
    return turn.profile.model_copy(update={"brand": brand, "model": model, "min_year": year})


def _squash(value: str) -> str:
    return value.lower().replace("-", "").replace(" ", "")


def _wanted(match: VehicleMatch, brand: Optional[str], model: Optional[str],
            year: Optional[int], year_range: Optional[tuple[int, int]]) -> bool:
    vehicle = match.vehicle
    if brand and vehicle.brand.lower() != brand.lower():
        return False
    if model and _squash(model) not in _squash(vehicle.model):
        return False
    if year and vehicle.year != year:
        return False
    if year_range and not year_range[0] <= vehicle.year <= year_range[1]:
        return False
    return True


async def handle_specific_model(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    if mentions_similarity(turn.message):
        return None
    brand, model = requested_brand_model(turn)
    if not brand and not model:
        return None

    year, year_range = turn.exact.year, turn.exact.year_range
    requested_year = year or turn.extracted.get("min_year")
    _forget_previous_request(turn, brand, model, requested_year)

    search_config = services.config.search
    query = build_search_query(_request_profile(turn, brand, model, requested_year), search_config)
    results = await services.search.search(query)
    found = [r for r in results if _wanted(r, brand, model, year, year_range)]

    label = capitalize_words(" ".join(str(p) for p in (brand, model, year) if p))
    if found:
        found = found[:search_config.result_limit]
        return turn.respond(
            f"Here's what we have for {label}:\n{format_matches(found)}\n"
            "Would you like to know more about any of them?",
            PhaseTrigger.RESULTS_SHOWN,
            {
                "shown_vehicles": snapshots(found),
                "showed_recommendation": True,
                "last_search_type": SearchType.SPECIFIC,
                "pending": None,
            },
            can_recommend=True,
            recommendations=found,
            extra={"search_type": SearchType.SPECIFIC.value},
        )

    if model:
        wide = await services.search.search_text(
            model, SearchFilters(model=model, limit=search_config.wide_limit)
        )
        years = sorted({r.vehicle.year for r in wide if _wanted(r, brand, model, None, None)}, reverse=True)
        if years:
            return turn.respond(
                f"We don't have the {label} with those criteria right now, but we do have the "
                f"{capitalize_words(model)} from {join_years(years[:5])}. Want to see one of those?",
                PhaseTrigger.OFFER_ALTERNATIVES,
                {"pending": AwaitingSuggestionAnswer(searched_item=model, years=years[:5])},
            )

        body_type = detect_body_type_from_model(model)
        if body_type:
            similar = await services.search.search_category(body_type, turn.profile.budget)
            similar.sort(key=lambda r: r.vehicle.price)
            if similar:
                logger.debug("Offering %d similar %s for %s", len(similar), body_type, model)
                return turn.respond(
                    f"We don't have the {label} in stock, but I found some similar "
                    f"{body_type_name(body_type, plural=True)}. Would you like to see them?",
                    PhaseTrigger.OFFER_ALTERNATIVES,
                    {"pending": AwaitingSimilarApproval(candidates=snapshots(similar[:MAX_SIMILAR]))},
                )

    return turn.respond(
        f"We don't have {label} in stock right now. Would you like me to suggest similar options?",
        PhaseTrigger.OFFER_ALTERNATIVES,
        {"pending": AwaitingSuggestionAnswer(searched_item=label.lower())},
    )
