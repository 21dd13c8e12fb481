"""
Turn-level entry point of the sales assistant.

Per turn:
    1. absorbing phases (HANDOFF, END) answer with a fixed message
    2. preferences are extracted and merged into the profile
    3. the greeting step runs in START and GREETING
    4. the interception cascade runs in priority order
    5. otherwise the readiness path recommends or asks the next question

``process_turn`` is total: any internal error becomes an apology response
with the phase left unchanged.

Usage:
    orchestrator = SalesOrchestrator(KeywordExtractor(), InMemoryInventory(), CannedKnowledgeAnswerer())
    response = await orchestrator.process_turn("Onix 2019", context)
"""

import time
from typing import Optional

from sales_assistant.config import AppConfig, settings
from sales_assistant.conversation.cascade import run_cascade
from sales_assistant.conversation.profile_merge import merge_profile
from sales_assistant.conversation.readiness import ReadinessAssessor
from sales_assistant.extraction.extractor import PreferenceExtractor
from sales_assistant.handlers.base import Turn, TurnServices
from sales_assistant.handlers.greeting import handle_greeting
from sales_assistant.handlers.recommend import recommend_or_ask
from sales_assistant.logging_context import get_conversation_logger, set_conversation_id
from sales_assistant.schemas.conversation_schema import (
    ConversationContext,
    ConversationResponse,
    GraphState,
    ResponseMetadata,
    Role,
)
from sales_assistant.tools.exact_search_parser import parse_exact_query
from sales_assistant.tools.ports import KnowledgePort, PreferenceNLU, VehicleSearchPort
from sales_assistant.tools.vehicle_search import VehicleSearchService

logger = get_conversation_logger(__name__)

APOLOGY_MESSAGE = "Sorry, I had a problem processing your message. Could you rephrase?"

ABSORBING_MESSAGES: dict[GraphState, str] = {
    GraphState.HANDOFF: "A consultant will continue with you from here. Thanks for your patience!",
    GraphState.END: "This conversation is closed. Thanks for talking to us!",
}


def _elapsed_ms(started_at: float) -> float:
    return (time.perf_counter() - started_at) * 1000


class SalesOrchestrator:
    """Turns one customer message plus the conversation state into a response."""

    def __init__(
        self,
        nlu: PreferenceNLU,
        search_port: VehicleSearchPort,
        knowledge: KnowledgePort,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._config = config or settings
        self._extractor = PreferenceExtractor(nlu, self._config.extraction)
        self._services = TurnServices(
            search=VehicleSearchService(search_port, self._config.search),
            knowledge=knowledge,
            readiness=ReadinessAssessor(self._config.readiness),
            config=self._config,
        )

    @property
    def services(self) -> TurnServices:
        return self._services

    async def process_turn(self, message: str, context: ConversationContext) -> ConversationResponse:
        """Process one customer message. Never raises."""
        set_conversation_id(context.conversation_id)
        started_at = time.perf_counter()
        try:
            return await self._process(message, context, started_at)
        except Exception:
            logger.exception("Failed to process turn in phase %s", context.phase.value)
            return ConversationResponse(
                response=APOLOGY_MESSAGE,
                next_phase=context.phase,
                metadata=ResponseMetadata(
                    processing_time_ms=_elapsed_ms(started_at),
                    confidence=0.0,
                    source="error",
                ),
            )

    async def _process(self, message: str, context: ConversationContext, started_at: float) -> ConversationResponse:
        if context.phase in ABSORBING_MESSAGES:
            return ConversationResponse(
                response=ABSORBING_MESSAGES[context.phase],
                next_phase=context.phase,
                metadata=ResponseMetadata(
                    processing_time_ms=_elapsed_ms(started_at),
                    confidence=1.0,
                    handled_by="absorbing_phase",
                ),
            )

        history = [
            f"{'Customer' if m.role == Role.USER else 'Assistant'}: {m.content}"
            for m in context.messages
        ]
        extraction = await self._extractor.extract(message, context.profile, history)
        turn = Turn(
            message=message,
            context=context,
            profile=merge_profile(context.profile, extraction.extracted),
            extraction=extraction,
            exact=parse_exact_query(message),
            started_at=started_at,
        )

        if context.phase in (GraphState.START, GraphState.GREETING):
            response = await handle_greeting(turn, self._services)
            if response is not None:
                response.metadata.handled_by = "greeting"
                return response

        response = await run_cascade(turn, self._services)
        if response is not None:
            return response

        response = await recommend_or_ask(turn, self._services)
        response.metadata.handled_by = "readiness"
        logger.info("Readiness path -> %s", response.next_phase.value)
        return response
