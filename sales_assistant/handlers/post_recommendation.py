"""
Reactions to a recommendation we already showed.

Trade-in and financing mentions win over everything else. Questions go to
the knowledge capability, a newly named model reopens the search, and the
remaining replies are routed by ``detect_post_recommendation_intent``.
"""

from typing import Any, Optional

from sales_assistant.conversation.intent_detector import (
    PostRecommendationIntent,
    PriceIntent,
    detect_availability_question,
    detect_post_recommendation_intent,
    detect_price_intent,
    is_question,
    mentions_shown_model,
    mentions_trade_in,
    parse_ordinal,
)
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import body_type_name, format_matches, format_shown, vehicle_name
from sales_assistant.handlers.questions import knowledge_answer
from sales_assistant.handlers.trade_in import build_deal_summary, trade_in_label, trade_in_updates
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import (
    AwaitingFinancing,
    AwaitingSuggestionAnswer,
    AwaitingTradeIn,
    SearchType,
    ShownVehicle,
)
from sales_assistant.schemas.vehicle_schema import SearchFilters
from sales_assistant.tools.trade_in_parser import extract_trade_in_info
from sales_assistant.tools.vehicle_catalog import detect_body_type_from_model
from sales_assistant.utils import format_price

logger = get_conversation_logger(__name__)

# Price band around the reference vehicle, as fractions of its price
DEFAULT_BAND = (0.7, 1.3)
CHEAPER_FLOOR = 0.5
PRICIER_CEILING = 1.8
MAX_YEARS_OLDER = 5

_NOT_KNOWLEDGE_INTENTS = frozenset({
    PostRecommendationIntent.WANT_OTHERS,
    PostRecommendationIntent.WANT_FINANCING,
    PostRecommendationIntent.WANT_TRADEIN,
    PostRecommendationIntent.WANT_SCHEDULE,
})

_NEW_SEARCH_INTENTS = frozenset({
    PostRecommendationIntent.NONE,
    PostRecommendationIntent.WANT_OTHERS,
    PostRecommendationIntent.WANT_INTEREST,
})


def price_band(reference: float, budget: Optional[float], intent: Optional[PriceIntent]) -> tuple[float, float]:
    """(min, max) price for "show me other options".

    Examples:
        >>> price_band(20000, None, None)
        (14000.0, 26000.0)
        >>> price_band(20000, 18000, PriceIntent.CHEAPER)
        (10000.0, 18000)
        >>> price_band(20000, None, PriceIntent.MORE_EXPENSIVE)
        (20000, 36000.0)
    """
    if intent == PriceIntent.CHEAPER:
        return reference * CHEAPER_FLOOR, min(reference, budget or reference)
    if intent == PriceIntent.MORE_EXPENSIVE:
        ceiling = budget if budget and budget > reference else reference * PRICIER_CEILING
        return reference, ceiling
    low, high = DEFAULT_BAND
    return reference * low, budget or reference * high


def _selected_vehicle(message: str, shown: list[ShownVehicle]) -> Optional[ShownVehicle]:
    index = parse_ordinal(message)
    if index is not None and index < len(shown):
        return shown[index]
    text = message.lower()
    for vehicle in shown:
        if vehicle.model.lower() in text:
            return vehicle
    return shown[0] if len(shown) == 1 else None


async def _want_others(turn: Turn, services: TurnServices) -> ConversationResponse:
    reference = turn.shown[0]
    price_intent = detect_price_intent(turn.message)
    low, high = price_band(reference.price, turn.profile.budget, price_intent)
    body_type = detect_body_type_from_model(reference.model) or reference.body_type
    search_config = services.config.search

    filters = SearchFilters(
        min_price=low,
        max_price=high,
        min_year=reference.year - MAX_YEARS_OLDER,
        body_type=body_type,
        limit=search_config.wide_limit,
    )
    results = await services.search.search_text(body_type or "used car", filters)

    shown_ids = {v.vehicle_id for v in turn.shown}
    results = [r for r in results if r.vehicle_id not in shown_ids]
    if body_type:
        results = [r for r in results if r.vehicle.body_type == body_type]
    if price_intent == PriceIntent.CHEAPER:
        results.sort(key=lambda r: r.vehicle.price)
    elif price_intent == PriceIntent.MORE_EXPENSIVE:
        results.sort(key=lambda r: r.vehicle.price, reverse=True)
    results = results[:search_config.result_limit]

    if results:
        return turn.respond(
            f"Sure! Here are some other options:\n{format_matches(results)}\n"
            "Did any of them catch your eye?",
            PhaseTrigger.RESULTS_SHOWN,
            {
                "shown_vehicles": snapshots(results),
                "showed_recommendation": True,
                "last_search_type": SearchType.RECOMMENDATION,
            },
            can_recommend=True,
            recommendations=results,
        )

    logger.debug("No other options between %.0f and %.0f", low, high)
    if turn.profile.budget is None:
        text = ("I couldn't find other options close to those. "
                "What's your budget, so I can look again?")
    else:
        kind = body_type_name(body_type, plural=True) if body_type else "options"
        text = (f"I couldn't find other {kind} in that range. "
                "Would you consider another body type or brand?")
    return turn.respond(
        text,
        PhaseTrigger.RESTART_DISCOVERY,
        {
            "pending": AwaitingSuggestionAnswer(searched_item=body_type),
            "exclude_vehicle_ids": sorted(shown_ids),
            "showed_recommendation": False,
        },
    )


async def _trade_in_mention(turn: Turn, services: TurnServices) -> ConversationResponse:
    info = extract_trade_in_info(turn.message)
    if info.model in {v.model for v in turn.shown}:
        info.brand = info.model = info.year = None
    if info.has_details:
        turn.clear(**trade_in_updates(info))
    if turn.profile.trade_in_model or turn.profile.trade_in_km is not None:
        turn.clear(has_trade_in=True, pending=None)
        anchor = vehicle_name(turn.shown[0]) if turn.shown else "the car"
        return turn.respond(
            f"Great, we'll use your {trade_in_label(turn.profile)} as a trade-in for the {anchor}. "
            "Would you like to finance the difference or pay in full?",
            PhaseTrigger.NEGOTIATION_STARTED,
        )
    return turn.respond(
        "We do accept trade-ins! What's your car's model and year, and about how many km does it have?",
        PhaseTrigger.NEGOTIATION_STARTED,
        {"has_trade_in": True, "pending": AwaitingTradeIn()},
    )


async def _financing(turn: Turn, services: TurnServices) -> ConversationResponse:
    profile = turn.profile
    turn.clear(wants_financing=True)
    if profile.financing_down_payment is not None or (profile.has_trade_in and profile.trade_in_model):
        turn.clear(pending=None)
        return turn.respond(build_deal_summary(turn.profile), PhaseTrigger.HANDOFF_REQUESTED)

    anchor = f" for the {vehicle_name(turn.shown[0])}" if len(turn.shown) == 1 else ""
    return turn.respond(
        f"Great, we can simulate financing{anchor}! How much would you put down? "
        "You can also use a car as a trade-in.",
        PhaseTrigger.NEGOTIATION_STARTED,
        {"pending": AwaitingFinancing()},
    )


def _details(turn: Turn) -> ConversationResponse:
    if len(turn.shown) == 1:
        vehicle = turn.shown[0]
        return turn.respond(
            f"The {vehicle_name(vehicle)} goes for {format_price(vehicle.price)}. "
            "A consultant can send you photos, the full history and the inspection report. "
            "Would you like to schedule a visit?",
            PhaseTrigger.FOLLOW_UP_ASKED,
        )
    return turn.respond(
        f"Sure! Which one would you like to know more about?\n{format_shown(turn.shown)}",
        PhaseTrigger.FOLLOW_UP_ASKED,
    )


def _interest(turn: Turn) -> ConversationResponse:
    selected = _selected_vehicle(turn.message, turn.shown)
    if selected is None:
        return turn.respond(
            f"Great! Which one caught your eye?\n{format_shown(turn.shown)}",
            PhaseTrigger.FOLLOW_UP_ASKED,
        )

    updates: dict[str, Any] = {"shown_vehicles": [selected]}
    intro = f"Excellent choice! The {vehicle_name(selected)} is {format_price(selected.price)}."
    if turn.profile.wants_financing and turn.profile.financing_down_payment is None:
        updates["pending"] = AwaitingFinancing()
        text = f"{intro} How much would you put down for the financing?"
    else:
        text = f"{intro} Would you like to finance it or pay in full? Do you have a car to trade in?"
    return turn.respond(text, PhaseTrigger.NEGOTIATION_STARTED, updates)


async def _answer_question(turn: Turn, services: TurnServices) -> ConversationResponse:
    answer = await knowledge_answer(turn, services)
    return turn.respond(answer, PhaseTrigger.QUESTION_ANSWERED, source="knowledge", confidence=0.8)


async def handle_post_recommendation(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    message = turn.message
    intent = detect_post_recommendation_intent(message, turn.shown)
    logger.debug("Post-recommendation intent: %s", intent.value)

    if (
        intent == PostRecommendationIntent.WANT_TRADEIN
        or mentions_trade_in(message)
        or turn.extracted.get("has_trade_in") is True
    ):
        return await _trade_in_mention(turn, services)
    if intent == PostRecommendationIntent.WANT_FINANCING or turn.extracted.get("wants_financing") is True:
        return await _financing(turn, services)

    if is_question(message):
        if detect_availability_question(message):
            return None
        if intent not in _NOT_KNOWLEDGE_INTENTS:
            return await _answer_question(turn, services)

    new_model = turn.exact.model or turn.extracted.get("model")
    if new_model and not mentions_shown_model(message, turn.shown) and intent in _NEW_SEARCH_INTENTS:
        turn.clear(showed_recommendation=False)
        return None

    if intent == PostRecommendationIntent.WANT_OTHERS:
        return await _want_others(turn, services)
    if intent == PostRecommendationIntent.WANT_SCHEDULE:
        return turn.respond(
            "Great! To schedule your visit, could you tell me your full name?",
            PhaseTrigger.HANDOFF_REQUESTED,
            {"showed_recommendation": False},
        )
    if intent == PostRecommendationIntent.WANT_DETAILS:
        return _details(turn)
    if intent == PostRecommendationIntent.WANT_INTEREST:
        return _interest(turn)
    if intent == PostRecommendationIntent.ACKNOWLEDGMENT:
        return turn.respond(
            "Anything else you'd like to know about these cars? "
            "I can also show you other options or schedule a visit.",
            PhaseTrigger.FOLLOW_UP_ASKED,
        )

    turn.clear(showed_recommendation=False)
    return None
