"""Customer questions: category availability or a free-form answer."""

from typing import Optional

from sales_assistant.conversation.intent_detector import detect_availability_question
from sales_assistant.conversation.readiness import identify_missing_info, summarize_context
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import body_type_name, format_matches
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import AwaitingSuggestionAnswer, SearchType
from sales_assistant.tools.knowledge import FALLBACK_ANSWER

logger = get_conversation_logger(__name__)


async def answer_availability(turn: Turn, services: TurnServices, body_type: str) -> ConversationResponse:
    """List what we have in one category, straight from inventory."""
    budget = turn.profile.budget
    matches = await services.search.search_category(body_type, budget)
    plural = body_type_name(body_type, plural=True)

    if not matches:
        within = " within your budget" if budget else ""
        return turn.respond(
            f"We don't have any {plural}{within} in stock right now. "
            "Would you like to see other options?",
            PhaseTrigger.OFFER_ALTERNATIVES,
            {"pending": AwaitingSuggestionAnswer(searched_item=body_type)},
        )

    return turn.respond(
        f"Yes! Here are the {plural} we have:\n{format_matches(matches)}\n"
        "Would you like to know more about any of them?",
        PhaseTrigger.RESULTS_SHOWN,
        {
            "body_type": body_type,
            "shown_vehicles": snapshots(matches),
            "showed_recommendation": True,
            "last_search_type": SearchType.CATEGORY,
        },
        can_recommend=True,
        recommendations=matches,
        extra={"search_type": SearchType.CATEGORY.value},
    )


async def knowledge_answer(turn: Turn, services: TurnServices) -> str:
    """Free-form answer, or a fixed fallback when the knowledge capability fails."""
    try:
        return await services.knowledge.answer(turn.message, turn.shown, summarize_context(turn.context))
    except Exception:
        logger.warning("Knowledge answer failed; using fallback", exc_info=True)
        return FALLBACK_ANSWER


async def handle_question(turn: Turn, services: TurnServices) -> Optional[ConversationResponse]:
    body_type = detect_availability_question(turn.message)
    if body_type:
        return await answer_availability(turn, services, body_type)

    return turn.respond(
        await knowledge_answer(turn, services),
        PhaseTrigger.QUESTION_ANSWERED,
        needs_more_info=identify_missing_info(turn.profile),
        confidence=0.8,
        source="knowledge",
    )
