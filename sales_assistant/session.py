"""
In-memory conversation session.

Plays the caller's role around ``SalesOrchestrator.process_turn``: counts the
user message, folds the returned profile delta into the stored profile,
records both messages and advances the phase. Turns for one session must
not run concurrently.
"""

import uuid
from typing import Optional

from sales_assistant.conversation.profile_merge import apply_delta
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.orchestrator import SalesOrchestrator
from sales_assistant.schemas.conversation_schema import (
    ChatMessage,
    ConversationContext,
    ConversationResponse,
    GraphState,
    Role,
)
from sales_assistant.schemas.profile_schema import CustomerProfile

logger = get_conversation_logger(__name__)


class ConversationSession:
    """One customer's conversation held in memory."""

    def __init__(self, orchestrator: SalesOrchestrator, conversation_id: Optional[str] = None) -> None:
        self._orchestrator = orchestrator
        self._context = ConversationContext(conversation_id=conversation_id or f"CONV-{uuid.uuid4().hex[:8]}")

    @property
    def context(self) -> ConversationContext:
        return self._context

    @property
    def profile(self) -> CustomerProfile:
        return self._context.profile

    @property
    def phase(self) -> GraphState:
        return self._context.phase

    async def send(self, message: str) -> ConversationResponse:
        """Process one customer message and persist its outcome."""
        context = self._context
        context.metadata.message_count += 1

        response = await self._orchestrator.process_turn(message, context)

        context.messages.append(ChatMessage(role=Role.USER, content=message))
        context.messages.append(ChatMessage(role=Role.ASSISTANT, content=response.response))
        context.profile = apply_delta(context.profile, response.profile_delta)
        if response.needs_more_info:
            context.metadata.questions_asked += 1
        if response.next_phase != context.phase:
            logger.debug("Session phase %s -> %s", context.phase.value, response.next_phase.value)
        context.phase = response.next_phase
        return response

    def reset(self) -> None:
        """Start over with an empty profile, keeping the conversation id."""
        self._context = ConversationContext(conversation_id=self._context.conversation_id)
