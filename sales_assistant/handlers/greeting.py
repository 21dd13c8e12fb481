"""Opening of the conversation: welcome, then the customer's name."""

from typing import Optional

from sales_assistant.conversation.intent_detector import extract_customer_name, is_greeting, is_question
from sales_assistant.conversation.readiness import identify_missing_info
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices
from sales_assistant.schemas.conversation_schema import ConversationResponse, GraphState

OPENING_QUESTION = "What kind of car are you looking for?"


def _has_preferences(turn: Turn) -> bool:
    if turn.exact.model:
        return True
    return any(key != "customer_name" for key in turn.extracted)


async def handle_greeting(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    """Welcome and name capture for the START and GREETING phases.

    A first message that already carries preferences skips the welcome and
    is processed like any other turn.
    """
    name = extract_customer_name(turn.message)
    if _has_preferences(turn):
        if name:
            turn.clear(customer_name=name)
        return None

    phase = turn.context.phase
    if name:
        trigger = PhaseTrigger.NAME_RECEIVED if phase == GraphState.GREETING else PhaseTrigger.NEED_MORE_INFO
        turn.clear(customer_name=name)
        return turn.respond(
            f"Nice to meet you, {name}! {OPENING_QUESTION}",
            trigger,
            needs_more_info=identify_missing_info(turn.profile),
        )

    if is_question(turn.message):
        return None
    if phase == GraphState.START or is_greeting(turn.message):
        business = services.config.business
        return turn.respond(
            f"Hi! I'm {business.assistant_name} from {business.name}. "
            "I'll help you find the right car. What's your name?",
            PhaseTrigger.GREETED,
        )
    return None
