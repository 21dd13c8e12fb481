"""
Answers to offers we made on an earlier turn.

Covers "would you like to see similar options?", "we have it in 2019 and
2020" and the generic "would you like to see something else?".
"""

import re
from typing import Any, Optional

from sales_assistant.conversation.intent_detector import is_affirmative, is_negative, is_question
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.exact_search import SEVEN_SEATS_ITEM
from sales_assistant.handlers.formatting import format_matches, format_shown, join_years
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import (
    AwaitingSimilarApproval,
    AwaitingSuggestionAnswer,
    SearchType,
)
from sales_assistant.schemas.vehicle_schema import VehicleMatch
from sales_assistant.tools.exact_search_parser import parse_exact_query
from sales_assistant.utils import capitalize_words

logger = get_conversation_logger(__name__)

NEW_PREFERENCE_KEYS = ("body_type", "brand", "model", "budget")

_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")


def _offered_model(turn: Turn, pending: AwaitingSuggestionAnswer) -> Optional[str]:
    if pending.searched_item:
        model = parse_exact_query(pending.searched_item).model
        if model:
            return model
    return turn.profile.model


def _show_year(turn: Turn, model: str, year: int, matches: list[VehicleMatch], limit: int) -> ConversationResponse:
    shown = matches[:limit]
    return turn.respond(
        f"Here's the {capitalize_words(f'{model} {year}')}:\n{format_matches(shown)}\n"
        "Would you like to know more or schedule a visit?",
        PhaseTrigger.RESULTS_SHOWN,
        {
            "model": model,
            "min_year": year,
            "shown_vehicles": snapshots(shown),
            "showed_recommendation": True,
            "last_search_type": SearchType.SPECIFIC,
            "pending": None,
        },
        can_recommend=True,
        recommendations=shown,
    )


async def handle_similar_approval(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    pending = turn.pending
    if not isinstance(pending, AwaitingSimilarApproval):
        return None

    if is_affirmative(turn.message) and not is_negative(turn.message) and pending.candidates:
        return turn.respond(
            f"Here are some similar options:\n{format_shown(pending.candidates)}\n"
            "Did any of them catch your eye?",
            PhaseTrigger.RESULTS_SHOWN,
            {
                "shown_vehicles": list(pending.candidates),
                "showed_recommendation": True,
                "last_search_type": SearchType.RECOMMENDATION,
                "pending": None,
            },
            can_recommend=True,
        )

    turn.clear(pending=None)
    return None


def offered_year_in(turn: Turn) -> Optional[int]:
    """A year from the offered list named in the message."""
    pending = turn.pending
    if not isinstance(pending, AwaitingSuggestionAnswer) or not pending.years:
        return None
    for match in _YEAR_RE.finditer(turn.message):
        year = int(match.group(1))
        if year in pending.years:
            return year
    return None


async def handle_alternative_year(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    pending = turn.pending
    if not isinstance(pending, AwaitingSuggestionAnswer):
        return None
    year = offered_year_in(turn)
    model = _offered_model(turn, pending)
    if year is None or not model:
        return None

    matches = await services.search.search_model_year(model, year)
    if matches:
        return _show_year(turn, model, year, matches, services.config.search.result_limit)

    remaining = [y for y in pending.years if y != year]
    if not remaining:
        turn.clear(pending=None)
        return None
    return turn.respond(
        f"Sorry, the {capitalize_words(f'{model} {year}')} was just sold. "
        f"We still have it from {join_years(remaining)}. Want to see one of those?",
        PhaseTrigger.OFFER_ALTERNATIVES,
        {"pending": AwaitingSuggestionAnswer(searched_item=pending.searched_item, years=remaining)},
    )


async def _seven_seat_substitute(turn: Turn, services: TurnServices) -> ConversationResponse:
    """Swap an unmet seven-seat request for roomy five-seat SUVs."""
    relax = {"min_seats": None, "people": None, "body_type": "suv", "pending": None}
    budget = turn.profile.budget
    matches = await services.search.search_category("suv", budget) if budget else []
    if not matches:
        question = (
            "I couldn't find SUVs within your budget. How far could you stretch it?"
            if budget else "Great, let's look at SUVs then! What's your budget?"
        )
        return turn.respond(
            question,
            PhaseTrigger.NEED_MORE_INFO,
            relax,
            needs_more_info=["budget"],
        )
    return turn.respond(
        f"Great! Here are some roomy SUVs:\n{format_matches(matches)}\n"
        "Did any of them catch your eye?",
        PhaseTrigger.RESULTS_SHOWN,
        {
            **relax,
            "shown_vehicles": snapshots(matches),
            "showed_recommendation": True,
            "last_search_type": SearchType.RECOMMENDATION,
        },
        can_recommend=True,
        recommendations=matches,
    )


async def handle_suggestion_answer(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """Yes or no to the alternative we offered.

    A new question or new preferences drop the offer and let the rest of
    the cascade handle the message.
    """
    pending = turn.pending
    if not isinstance(pending, AwaitingSuggestionAnswer):
        return None
    message = turn.message

    if is_question(message) or any(turn.extracted.get(key) is not None for key in NEW_PREFERENCE_KEYS):
        if pending.searched_item == SEVEN_SEATS_ITEM and not turn.extracted.get("min_seats"):
            turn.clear(pending=None, min_seats=None, people=None)
        else:
            turn.clear(pending=None)
        return None

    if is_affirmative(message):
        model = _offered_model(turn, pending)
        if pending.years and model:
            newest = pending.years[0]
            matches = await services.search.search_model_year(model, newest)
            if matches:
                return _show_year(turn, model, newest, matches, services.config.search.result_limit)
        if pending.searched_item == SEVEN_SEATS_ITEM:
            return await _seven_seat_substitute(turn, services)

        turn.clear(pending=None)
        question = services.readiness.next_question(turn.profile)
        return turn.respond(f"Great! {question}", PhaseTrigger.RESTART_DISCOVERY)

    if is_negative(message):
        logger.debug("Offer declined: %s", pending.searched_item)
        forget: dict[str, Any] = {"pending": None}
        if pending.years:
            forget.update(model=None, min_year=None)
        if pending.searched_item == SEVEN_SEATS_ITEM:
            forget.update(min_seats=None, people=None)
        return turn.respond(
            "No problem! If you change your mind, just tell me what you're looking for.",
            PhaseTrigger.RESTART_DISCOVERY,
            forget,
        )

    return None
