"""
Fallback when no interception step claims the turn.

Either the profile is ready and we search with the profile-derived query,
or we ask the single most useful next question.
"""

from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.handlers.base import Turn, TurnServices, snapshots
from sales_assistant.handlers.formatting import format_matches
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.schemas.profile_schema import SearchType
from sales_assistant.search.query_builder import build_search_query

logger = get_conversation_logger(__name__)

NO_RESULTS_MESSAGE = (
    "I couldn't find anything available with those criteria right now. "
    "Would you like to adjust something, like the budget or the model year?"
)


async def recommend_or_ask(turn: Turn, services: TurnServices) -> ConversationResponse:
    profile = turn.profile
    assessment = services.readiness.assess(profile, turn.context.metadata.message_count)

    if not assessment.can_recommend:
        question = services.readiness.next_question(profile)
        text = f"Got it! {question}" if turn.extracted else question
        return turn.respond(
            text,
            PhaseTrigger.NEED_MORE_INFO,
            needs_more_info=assessment.missing_required,
            confidence=assessment.confidence / 100,
        )

    query = build_search_query(profile, services.config.search)
    results = await services.search.search(query)

    excluded = set(profile.exclude_vehicle_ids) | {v.vehicle_id for v in profile.shown_vehicles}
    kept = [r for r in results if r.vehicle_id not in excluded] or results
    kept = kept[:services.config.search.result_limit]

    if not kept:
        logger.info("No vehicles for query %r", query.search_text)
        return turn.respond(
            NO_RESULTS_MESSAGE,
            PhaseTrigger.NO_RESULTS,
            {"exclude_vehicle_ids": []},
            needs_more_info=assessment.missing_required,
        )

    return turn.respond(
        f"Based on what you told me, here are my suggestions:\n{format_matches(kept)}\n"
        "Did any of them catch your eye?",
        PhaseTrigger.RESULTS_SHOWN,
        {
            "shown_vehicles": snapshots(kept),
            "showed_recommendation": True,
            "last_search_type": SearchType.RECOMMENDATION,
            "exclude_vehicle_ids": [],
            "pending": None,
        },
        can_recommend=True,
        needs_more_info=assessment.missing_required,
        recommendations=kept,
        extra={"search_type": SearchType.RECOMMENDATION.value, "readiness": assessment.reasoning},
    )
