"""
Ordered intent-interception cascade.

Each step pairs a cheap predicate with an async handler. Steps are tried
top to bottom; the first handler that returns a response claims the turn.
A handler may return ``None`` after changing control state through
``Turn.clear`` so that later steps see the updated profile.

Order matters:
    1. ride-hail eligibility question    7. ride-hail alternatives answer
    2. trade-in vs desired vehicle       8. post-recommendation reaction
    3. exact model+year search           9. alternative-year selection
    4. seven-seat fail-fast             10. suggestion answer
    5. similar-vehicle approval         11. specific brand/model mention
    6. awaiting trade-in / financing    12. customer question
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sales_assistant.conversation.intent_detector import (
    is_post_recommendation_response,
    is_question,
    is_ride_hail_question,
    mentions_trade_in,
)
from sales_assistant.handlers.base import HandlerFn, Turn, TurnServices
from sales_assistant.handlers.exact_search import handle_exact_search, handle_seven_seats
from sales_assistant.handlers.post_recommendation import handle_post_recommendation
from sales_assistant.handlers.questions import handle_question
from sales_assistant.handlers.ride_hail import handle_ride_hail_alternatives, handle_ride_hail_question
from sales_assistant.handlers.specific_model import handle_specific_model
from sales_assistant.handlers.suggestion import (
    handle_alternative_year,
    handle_similar_approval,
    handle_suggestion_answer,
    offered_year_in,
)
from sales_assistant.handlers.trade_in import (
    handle_awaiting_financing,
    handle_awaiting_trade_in,
    handle_trade_in_disambiguation,
)
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import (
    AwaitingFinancing,
    AwaitingRideHailAlternatives,
    AwaitingSimilarApproval,
    AwaitingSuggestionAnswer,
    AwaitingTradeIn,
)
from sales_assistant.tools.exact_search_parser import is_trade_in_context

logger = get_conversation_logger(__name__)


@dataclass(frozen=True)
class InterceptionStep:
    """One entry of the cascade."""
    name: str
    applies: Callable[[Turn], bool]
    handle: HandlerFn


def _trade_in_vehicle_mentioned(turn: Turn) -> bool:
    return turn.exact.is_exact and is_trade_in_context(turn.message)


def _exact_search_applies(turn: Turn) -> bool:
    if turn.pending is not None:
        return False
    if is_trade_in_context(turn.message) or mentions_trade_in(turn.message):
        return False
    if turn.profile.showed_recommendation and is_post_recommendation_response(turn.message, turn.extracted):
        return False
    return True


def _needs_seven_seats(turn: Turn) -> bool:
    return turn.pending is None and (turn.profile.min_seats or 0) >= 7


def _showed_recommendation(turn: Turn) -> bool:
    return turn.profile.showed_recommendation and bool(turn.shown)


def _mentions_brand_or_model(turn: Turn) -> bool:
    return bool(turn.exact.model or turn.extracted.get("model") or turn.extracted.get("brand"))


INTERCEPTION_STEPS: list[InterceptionStep] = [
    InterceptionStep(
        "ride_hail_question",
        lambda turn: is_ride_hail_question(turn.message),
        handle_ride_hail_question,
    ),
    InterceptionStep("trade_in_disambiguation", _trade_in_vehicle_mentioned, handle_trade_in_disambiguation),
    InterceptionStep("exact_search", _exact_search_applies, handle_exact_search),
    InterceptionStep("seven_seat_check", _needs_seven_seats, handle_seven_seats),
    InterceptionStep(
        "similar_approval",
        lambda turn: isinstance(turn.pending, AwaitingSimilarApproval),
        handle_similar_approval,
    ),
    InterceptionStep(
        "awaiting_trade_in",
        lambda turn: isinstance(turn.pending, AwaitingTradeIn),
        handle_awaiting_trade_in,
    ),
    InterceptionStep(
        "awaiting_financing",
        lambda turn: isinstance(turn.pending, AwaitingFinancing),
        handle_awaiting_financing,
    ),
    InterceptionStep(
        "ride_hail_alternatives",
        lambda turn: isinstance(turn.pending, AwaitingRideHailAlternatives),
        handle_ride_hail_alternatives,
    ),
    InterceptionStep("post_recommendation", _showed_recommendation, handle_post_recommendation),
    InterceptionStep("alternative_year", lambda turn: offered_year_in(turn) is not None, handle_alternative_year),
    InterceptionStep(
        "suggestion_answer",
        lambda turn: isinstance(turn.pending, AwaitingSuggestionAnswer),
        handle_suggestion_answer,
    ),
    InterceptionStep("specific_model", _mentions_brand_or_model, handle_specific_model),
    InterceptionStep("question", lambda turn: is_question(turn.message), handle_question),
]


async def run_cascade(
    turn: Turn,
    services: TurnServices,
    steps: Optional[list[InterceptionStep]] = None,
) -> Optional[ConversationResponse]:
    """Run the steps in order and return the first claimed response."""
    for step in steps if steps is not None else INTERCEPTION_STEPS:
        if not step.applies(turn):
            continue
        response = await step.handle(turn, services)
        if response is None:
            logger.debug("Step %s declined", step.name)
            continue
        logger.info("Turn claimed by %s -> %s", step.name, response.next_phase.value)
        response.metadata.handled_by = step.name
        return response
    return None
