"""Exact model+year lookups and the seven-seat fail-fast check."""

from typing import Optional

from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import format_matches, join_years
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import AwaitingSuggestionAnswer, SearchType
from sales_assistant.tools.vehicle_catalog import infer_brand_from_model
from sales_assistant.utils import capitalize_words

logger = get_conversation_logger(__name__)

SEVEN_SEATS_ITEM = "7 seats"
MAX_OFFERED_YEARS = 5


def requested_model_year(turn: Turn) -> tuple[Optional[str], Optional[int]]:
    """Model and year to look up, from the message first and the profile second.

    Values coming only from the profile are ignored once a recommendation has
    been shown, or when the message asks for another brand, so an old request
    does not keep re-running.
    """
    if turn.exact.year_range:
        return None, None
    model = turn.exact.model or turn.extracted.get("model")
    year = turn.exact.year or turn.extracted.get("min_year")
    if model and year:
        return model, year
    brand = turn.extracted.get("brand")
    if not model and brand and brand != infer_brand_from_model(turn.profile.model):
        return None, None
    if turn.profile.showed_recommendation:
        return None, None
    return model or turn.profile.model, year or turn.profile.min_year


async def handle_exact_search(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    model, year = requested_model_year(turn)
    if not model or not year:
        return None

    result = await services.search.find_exact_match(model, year)
    label = capitalize_words(f"{model} {year}")

    if result.found:
        matches = result.matches[:services.config.search.result_limit]
        noun = "it" if len(matches) == 1 else "these"
        return turn.respond(
            f"Yes! We have the {label}:\n{format_matches(matches)}\n"
            f"Would you like to know more about {noun} or schedule a visit?",
            PhaseTrigger.RESULTS_SHOWN,
            {
                "model": model,
                "shown_vehicles": snapshots(matches),
                "showed_recommendation": True,
                "last_search_type": SearchType.SPECIFIC,
                "pending": None,
            },
            can_recommend=True,
            recommendations=matches,
            extra={"search_type": SearchType.SPECIFIC.value},
        )

    if not result.model_exists:
        logger.debug("Model %s not in stock in any year", model)
        return None

    years = result.available_years[:MAX_OFFERED_YEARS]
    return turn.respond(
        f"We don't have the {label} right now, but we do have the "
        f"{capitalize_words(model)} from {join_years(years)}. Would you like to see one of those?",
        PhaseTrigger.OFFER_ALTERNATIVES,
        {"pending": AwaitingSuggestionAnswer(searched_item=f"{model} {year}", years=years)},
    )


async def handle_seven_seats(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """Tell the customer straight away when no seven-seater fits."""
    if await services.search.has_seven_seaters(turn.profile.budget):
        return None

    within = " within your budget" if turn.profile.budget else ""
    return turn.respond(
        f"Unfortunately we don't have any 7-seat vehicles{within} in stock right now. "
        "Would you like to see roomy 5-seat options instead, like an SUV or a sedan?",
        PhaseTrigger.OFFER_ALTERNATIVES,
        {"pending": AwaitingSuggestionAnswer(searched_item=SEVEN_SEATS_ITEM)},
    )
