"""
Ride-hail eligibility questions.

Answers "does the Corolla work for Uber Black?" from the inventory's
ride-hail flags, lists the cars that fit a category, and offers
standard-category cars when nothing fits the premium one.
"""

import re
from typing import Optional

from sales_assistant.conversation.intent_detector import (
    is_affirmative,
    is_negative,
    is_question,
    requested_ride_hail_tier,
)
from sales_assistant.conversation.readiness import identify_missing_info
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import format_matches, vehicle_name
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import AwaitingRideHailAlternatives, SearchType, ShownVehicle
from sales_assistant.schemas.vehicle_schema import Vehicle, VehicleMatch
from sales_assistant.utils import capitalize_words

logger = get_conversation_logger(__name__)

TIER_NAMES: dict[str, str] = {
    "standard": "the standard category (X)",
    "comfort": "the Comfort category",
    "premium": "the premium category (Black)",
}

# Comfort has the newer-car rules of the premium categories.
PREMIUM_FLAG_TIERS = ("comfort", "premium")

CITY_CAVEAT = "Rules vary by city and change over time, so confirm with the app before you buy."

_THIS_ONE_RE = re.compile(r"\b(?:it|this|that)\b")


def qualifies(vehicle: Vehicle, tier: str) -> bool:
    if tier in PREMIUM_FLAG_TIERS:
        return vehicle.ride_hail_premium
    return vehicle.ride_hail_standard


def _named_shown(turn: Turn) -> Optional[ShownVehicle]:
    text = turn.lower
    for vehicle in turn.shown:
        for name in (vehicle.model, vehicle.brand):
            if re.search(r"\b" + re.escape(name.lower()) + r"\b", text):
                return vehicle
    if len(turn.shown) == 1 and _THIS_ONE_RE.search(text):
        return turn.shown[0]
    return None


async def _asked_vehicle(turn: Turn, services: TurnServices) -> Optional[Vehicle]:
    """The vehicle the question is about: a shown one first, then a model in stock."""
    named = _named_shown(turn)
    if named is not None:
        return await services.search.find_vehicle(named.model, named.year)
    model = turn.exact.model or turn.extracted.get("model")
    if model:
        return await services.search.find_vehicle(model, turn.exact.year)
    return None


def _vehicle_answer(turn: Turn, vehicle: Vehicle, tier: Optional[str]) -> ConversationResponse:
    name = vehicle_name(vehicle)
    if tier is None:
        if vehicle.ride_hail_premium:
            text = f"Yes, the {name} qualifies for both the standard (X) and the premium (Black) categories."
        elif vehicle.ride_hail_standard:
            text = f"Yes, the {name} qualifies for {TIER_NAMES['standard']}, but not for premium ones like Black."
        else:
            text = f"The {name} doesn't meet the ride-hail requirements, so I wouldn't pick it for app driving."
    elif qualifies(vehicle, tier):
        text = f"Yes, the {name} qualifies for {TIER_NAMES[tier]}."
    elif vehicle.ride_hail_standard:
        text = f"The {name} doesn't qualify for {TIER_NAMES[tier]}, but it does qualify for {TIER_NAMES['standard']}."
    else:
        text = f"No, the {name} doesn't qualify for {TIER_NAMES[tier]}."

    logger.info("Ride-hail question about %s (tier=%s)", vehicle.id, tier)
    return turn.respond(
        f"{text} {CITY_CAVEAT}",
        PhaseTrigger.QUESTION_ANSWERED,
        extra={"vehicle_id": vehicle.id},
    )


def _show_eligible(turn: Turn, matches: list[VehicleMatch], tier: str, intro: str) -> ConversationResponse:
    return turn.respond(
        f"{intro}\n{format_matches(matches)}\n{CITY_CAVEAT} Would you like to know more about any of them?",
        PhaseTrigger.RESULTS_SHOWN,
        {
            "main_use": "ride_hail",
            "ride_hail_tier": tier,
            "shown_vehicles": snapshots(matches),
            "showed_recommendation": True,
            "last_search_type": SearchType.RECOMMENDATION,
            "pending": None,
        },
        can_recommend=True,
        recommendations=matches,
        extra={"search_type": SearchType.RECOMMENDATION.value},
    )


async def _eligible_stock(turn: Turn, services: TurnServices, tier: str) -> ConversationResponse:
    premium = tier in PREMIUM_FLAG_TIERS
    matches = await services.search.ride_hail_eligible(premium=premium)
    if matches:
        return _show_eligible(turn, matches, tier, f"These cars qualify for {TIER_NAMES[tier]}:")

    if premium:
        logger.info("No vehicles for ride-hail tier %s; offering standard", tier)
        return turn.respond(
            f"We don't have any cars that qualify for {TIER_NAMES[tier]} right now, but we do have "
            f"cars for {TIER_NAMES['standard']}. Would you like to see them?",
            PhaseTrigger.OFFER_ALTERNATIVES,
            {"main_use": "ride_hail", "pending": AwaitingRideHailAlternatives(tier=tier)},
        )

    return turn.respond(
        f"We don't have any cars that qualify for {TIER_NAMES[tier]} right now. "
        "Can I help you find another kind of car?",
        PhaseTrigger.RESTART_DISCOVERY,
        needs_more_info=identify_missing_info(turn.profile),
    )


async def handle_ride_hail_question(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """Whether a car, or which cars, can be used on a ride-hail app."""
    tier = requested_ride_hail_tier(turn.message) or turn.profile.ride_hail_tier
    vehicle = await _asked_vehicle(turn, services)
    if vehicle is not None:
        return _vehicle_answer(turn, vehicle, tier)

    model = turn.exact.model or turn.extracted.get("model")
    if model:
        return turn.respond(
            f"We don't have the {capitalize_words(model)} in stock right now. Whether it qualifies "
            "depends on your city and on the category. Which city will you drive in, "
            "and which category: X, Comfort or Black?",
            PhaseTrigger.QUESTION_ANSWERED,
            confidence=0.9,
        )
    if tier is None:
        return turn.respond(
            "It depends on your city and on the category, since the rules change with the "
            "car's age and size. Which city will you drive in, and which category: X, Comfort or Black?",
            PhaseTrigger.QUESTION_ANSWERED,
            confidence=0.9,
        )
    return await _eligible_stock(turn, services, tier)


async def handle_ride_hail_alternatives(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """Yes or no to standard-category cars after the premium category came up empty."""
    pending = turn.pending
    if not isinstance(pending, AwaitingRideHailAlternatives):
        return None
    message = turn.message

    if not is_question(message) and is_affirmative(message):
        matches = await services.search.ride_hail_eligible(premium=False)
        if matches:
            return _show_eligible(turn, matches, "standard",
                                  f"Great! These cars qualify for {TIER_NAMES['standard']}:")
        return turn.respond(
            f"Sorry, we don't have cars for {TIER_NAMES['standard']} right now either. "
            "Can I help you find another kind of car?",
            PhaseTrigger.RESTART_DISCOVERY,
            {"pending": None},
            needs_more_info=["budget", "usage"],
        )

    turn.clear(pending=None)
    if is_negative(message):
        return turn.respond(
            "No problem! If you change your mind, just tell me what you're looking for.",
            PhaseTrigger.RESTART_DISCOVERY,
        )
    return None
