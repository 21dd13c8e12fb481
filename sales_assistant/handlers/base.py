"""
Shared turn model for the interception handlers.

A ``Turn`` bundles everything a handler may look at for one customer
message. Handlers return a ``ConversationResponse`` built with
``Turn.respond`` to claim the turn, or ``None`` to let the cascade continue.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from sales_assistant.config import AppConfig
from sales_assistant.conversation.profile_merge import apply_delta, combine_deltas
from sales_assistant.conversation.readiness import ReadinessAssessor
from sales_assistant.conversation.state_machine import PhaseTrigger, next_phase
from sales_assistant.schemas.conversation_schema import (
    ConversationContext,
    ConversationResponse,
    ResponseMetadata,
)
from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile, PendingFlow, ShownVehicle
from sales_assistant.schemas.vehicle_schema import VehicleMatch
from sales_assistant.tools.exact_search_parser import ExactMatch
from sales_assistant.tools.ports import KnowledgePort
from sales_assistant.tools.vehicle_search import VehicleSearchService


@dataclass
class TurnServices:
    """Collaborators the handlers may call."""
    search: VehicleSearchService
    knowledge: KnowledgePort
    readiness: ReadinessAssessor
    config: AppConfig


@dataclass
class Turn:
    """One customer message and the state it is interpreted against."""
    message: str
    context: ConversationContext
    profile: CustomerProfile
    extraction: ExtractionResult
    exact: ExactMatch
    started_at: float = field(default_factory=time.perf_counter)
    carry: dict[str, Any] = field(default_factory=dict)

    @property
    def lower(self) -> str:
        return self.message.lower().strip()

    @property
    def extracted(self) -> dict[str, Any]:
        return self.extraction.extracted

    @property
    def pending(self) -> Optional[PendingFlow]:
        return self.profile.pending

    @property
    def shown(self) -> list[ShownVehicle]:
        return self.profile.shown_vehicles

    def clear(self, **updates: Any) -> None:
        """Change control state and keep falling through the cascade.

        The updates are applied to the working profile right away and ride
        along in whichever response finally claims the turn.
        """
        self.carry.update(updates)
        self.profile = apply_delta(self.profile, updates)

    def respond(
        self,
        text: str,
        trigger: Optional[PhaseTrigger],
        updates: Optional[dict[str, Any]] = None,
        *,
        can_recommend: bool = False,
        needs_more_info: Optional[list[str]] = None,
        recommendations: Optional[list[VehicleMatch]] = None,
        confidence: float = 0.95,
        source: str = "rule-based",
        handled_by: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> ConversationResponse:
        """Build the response that claims this turn.

        A ``None`` trigger keeps the current phase.
        """
        delta = combine_deltas(combine_deltas(self.extracted, self.carry), updates or {})
        phase = self.context.phase if trigger is None else next_phase(self.context.phase, trigger)
        return ConversationResponse(
            response=text,
            profile_delta=delta,
            needs_more_info=needs_more_info or [],
            can_recommend=can_recommend,
            recommendations=recommendations or [],
            next_phase=phase,
            metadata=ResponseMetadata(
                processing_time_ms=(time.perf_counter() - self.started_at) * 1000,
                confidence=confidence,
                source=source,
                handled_by=handled_by,
                extra=extra or {},
            ),
        )


HandlerFn = Callable[[Turn, TurnServices], Awaitable[Optional[ConversationResponse]]]


def snapshots(matches: list[VehicleMatch]) -> list[ShownVehicle]:
    return [m.vehicle.snapshot() for m in matches]
