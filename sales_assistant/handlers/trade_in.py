"""
Trade-in and financing sub-flows.

These handlers run while the customer is telling us about the car they
already own or how they want to pay. The pending sub-flow on the profile
says which answer we are waiting for.
"""

import re
from typing import Any, Optional

from sales_assistant.conversation.intent_detector import (
    NO_DOWN_PAYMENT_RE,
    ONLY_TRADE_IN_RE,
    is_affirmative,
    is_cash_payment,
    is_financing_response,
    is_negative,
    is_no_down_payment,
)
from sales_assistant.conversation.readiness import identify_missing_info
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices
from sales_assistant.handlers.formatting import body_type_name, vehicle_name
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import AwaitingFinancing, CustomerProfile
from sales_assistant.tools.trade_in_parser import TradeInInfo, extract_trade_in_info
from sales_assistant.utils import capitalize_words, format_price, parse_money

logger = get_conversation_logger(__name__)

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_DISTANCE_RE = re.compile(
    r"\d+(?:[.,]\d+)*\s*(?:k|thousand)?\s*(?:km|kms|kilometers|miles)\b", re.IGNORECASE
)
_NO_TRADE_IN_RE = re.compile(
    r"^(?:no|nope|nah)\b|\b(?:don't|dont|do not) (?:have|own)\b|\bno (?:car|trade)", re.IGNORECASE
)


def declines_trade_in(message: str) -> bool:
    """True when the customer says there is no car to trade in."""
    return is_negative(message) or bool(_NO_TRADE_IN_RE.search(message.strip()))


def down_payment_amount(message: str) -> Optional[int]:
    """Money amount in a financing reply, ignoring model years and odometer readings.

    Examples:
        >>> down_payment_amount("5k down, my car is a 2015 gol with 90k km")
        5000
        >>> down_payment_amount("gol 2015, 90k km") is None
        True
    """
    text = _DISTANCE_RE.sub(" ", message)
    text = _YEAR_RE.sub(" ", text)
    return parse_money(text)


def trade_in_label(profile: CustomerProfile) -> str:
    parts = [profile.trade_in_brand, profile.trade_in_model, profile.trade_in_year]
    label = capitalize_words(" ".join(str(p) for p in parts if p))
    if profile.trade_in_km is not None:
        label += f" with {profile.trade_in_km:,} km"
    return label or "your car"


def trade_in_updates(info: TradeInInfo, model: Optional[str] = None, year: Optional[int] = None) -> dict[str, Any]:
    """Profile updates for a parsed trade-in, only for the parts that were read."""
    updates: dict[str, Any] = {"has_trade_in": True}
    for key, value in (
        ("trade_in_brand", info.brand),
        ("trade_in_model", model or info.model),
        ("trade_in_year", year or info.year),
        ("trade_in_km", info.km),
    ):
        if value is not None:
            updates[key] = value
    return updates


def build_deal_summary(profile: CustomerProfile) -> str:
    """Hand-off summary of the vehicle, trade-in and payment the customer settled on."""
    lines = ["Perfect, here's a summary for our consultant:"]
    if profile.shown_vehicles:
        chosen = profile.shown_vehicles[0]
        lines.append(f"- Vehicle: {vehicle_name(chosen)} ({format_price(chosen.price)})")
    if profile.has_trade_in and (profile.trade_in_model or profile.trade_in_km is not None):
        lines.append(f"- Trade-in: {trade_in_label(profile)}")
    if profile.wants_financing is False:
        lines.append("- Payment: in full")
    elif profile.financing_down_payment is not None:
        down = profile.financing_down_payment
        lines.append(f"- Financing with {format_price(down)} down" if down else "- Financing with no down payment")
    elif profile.wants_financing:
        lines.append("- Financing: to be simulated")
    lines.append("A consultant will contact you shortly to finish the deal.")
    return "\n".join(lines)


async def handle_trade_in_disambiguation(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """A model and year mentioned as the customer's own car, not the one they want.

    Any model or year the extractor read from the message is rolled back to
    what the profile held before this turn.
    """
    prior = turn.context.profile
    info = extract_trade_in_info(turn.message)
    updates = trade_in_updates(info, model=turn.exact.model, year=turn.exact.year)

    if turn.extracted.get("model") == turn.exact.model or turn.profile.model == turn.exact.model:
        updates["model"] = prior.model
    if turn.extracted.get("min_year") == turn.exact.year or turn.profile.min_year == turn.exact.year:
        updates["min_year"] = prior.min_year
    if info.brand and turn.profile.brand == info.brand and prior.brand != info.brand:
        updates["brand"] = prior.brand

    turn.clear(**updates)
    label = trade_in_label(turn.profile)

    if turn.profile.showed_recommendation and turn.shown:
        anchor = turn.shown[0]
        return turn.respond(
            f"Great, your {label} can go in as a trade-in for the {vehicle_name(anchor)}. "
            "A consultant will evaluate it in person. "
            "Would you like to finance the difference or pay in full?",
            PhaseTrigger.NEGOTIATION_STARTED,
        )

    missing = identify_missing_info(turn.profile)
    if turn.profile.body_type and "budget" in missing:
        ask = (f"You're looking for a {body_type_name(turn.profile.body_type)}, great. "
               "What's your budget?")
    elif turn.profile.body_type:
        ask = f"You're looking for a {body_type_name(turn.profile.body_type)}, great."
    else:
        ask = "What kind of car are you looking for now, and what's your budget?"
    return turn.respond(
        f"Got it, we can take your {label} as a trade-in. {ask}".strip(),
        PhaseTrigger.NEED_MORE_INFO,
        needs_more_info=missing,
    )


async def handle_awaiting_trade_in(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """The reply to "which car would you trade in?"."""
    info = extract_trade_in_info(turn.message)
    if not info.has_details:
        if not declines_trade_in(turn.message):
            return None
        turn.clear(has_trade_in=False, pending=None)
        if turn.profile.wants_financing and turn.profile.financing_down_payment is None:
            return turn.respond(
                "No problem! How much would you put down in cash?",
                PhaseTrigger.NEGOTIATION_STARTED,
                {"pending": AwaitingFinancing()},
            )
        return turn.respond(
            "No problem! Would you like to finance it or pay in full?",
            PhaseTrigger.NEGOTIATION_STARTED,
        )

    turn.clear(**trade_in_updates(info), pending=None)
    label = trade_in_label(turn.profile)
    if turn.profile.wants_financing and turn.profile.financing_down_payment is None:
        return turn.respond(
            f"Thanks! I noted your {label}. Would you add a cash down payment as well, "
            "or use only the trade-in?",
            PhaseTrigger.NEGOTIATION_STARTED,
            {"pending": AwaitingFinancing()},
        )
    return turn.respond(
        f"Thanks! I noted your {label}. A consultant will evaluate it in person. "
        "Would you like to finance the rest or pay in full?",
        PhaseTrigger.NEGOTIATION_STARTED,
    )


async def handle_awaiting_financing(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """The reply to "how much would you put down?"."""
    message = turn.message
    if is_cash_payment(message):
        turn.clear(wants_financing=False, pending=None)
        return turn.respond(build_deal_summary(turn.profile), PhaseTrigger.HANDOFF_REQUESTED)

    amount = down_payment_amount(message)
    stripped = _YEAR_RE.sub(" ", _DISTANCE_RE.sub(" ", message))
    if turn.profile.has_trade_in and amount is None:
        # Answer to "would you add any extra cash?"
        if is_negative(message):
            turn.clear(wants_financing=True, financing_down_payment=0, pending=None)
            return turn.respond(build_deal_summary(turn.profile), PhaseTrigger.HANDOFF_REQUESTED)
        if is_affirmative(message):
            return turn.respond("Great! How much would you put down in cash?",
                                PhaseTrigger.NEGOTIATION_STARTED)

    if not is_financing_response(stripped):
        info = extract_trade_in_info(message)
        if info.model is None:
            return None
        turn.clear(**trade_in_updates(info))
        return turn.respond(
            f"Got it, your {trade_in_label(turn.profile)} goes in as a trade-in. "
            "Would you add a cash down payment too, or use only the car?",
            PhaseTrigger.NEGOTIATION_STARTED,
        )

    lower = turn.lower
    down = 0 if is_no_down_payment(message) else (amount or 0)
    if ONLY_TRADE_IN_RE.search(lower) and not NO_DOWN_PAYMENT_RE.search(lower) and not amount:
        turn.clear(wants_financing=True, financing_down_payment=0)
        return turn.respond(
            "Understood, the trade-in as the down payment. Would you add any extra cash, "
            "or finance the whole difference?",
            PhaseTrigger.NEGOTIATION_STARTED,
        )

    turn.clear(wants_financing=True, financing_down_payment=down, pending=None)
    logger.debug("Financing down payment recorded: %s", down)
    return turn.respond(build_deal_summary(turn.profile), PhaseTrigger.HANDOFF_REQUESTED)
