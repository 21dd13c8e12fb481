"""Per-turn conversation context and the response contract."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from sales_assistant.schemas.profile_schema import CustomerProfile
from sales_assistant.schemas.vehicle_schema import VehicleMatch


class GraphState(str, Enum):
    """Turn-level conversational phase."""

    START = "START"
    GREETING = "GREETING"
    DISCOVERY = "DISCOVERY"
    CLARIFICATION = "CLARIFICATION"
    SEARCH = "SEARCH"
    RECOMMENDATION = "RECOMMENDATION"
    NEGOTIATION = "NEGOTIATION"
    FOLLOW_UP = "FOLLOW_UP"
    HANDOFF = "HANDOFF"
    END = "END"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single message in the conversation history."""

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TurnMetadata(BaseModel):
    message_count: int = 0
    questions_asked: int = 0
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationContext(BaseModel):
    """Read-mostly bundle handed to the core for the duration of one turn."""

    conversation_id: str
    phase: GraphState = GraphState.START
    profile: CustomerProfile = Field(default_factory=CustomerProfile)
    messages: list[ChatMessage] = Field(default_factory=list)
    metadata: TurnMetadata = Field(default_factory=TurnMetadata)


class ResponseMetadata(BaseModel):
    processing_time_ms: float = 0.0
    confidence: float = 0.0
    source: str = "rule-based"
    handled_by: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)


class ConversationResponse(BaseModel):
    """What every path through the core returns."""

    response: str
    profile_delta: dict[str, Any] = Field(default_factory=dict)
    needs_more_info: list[str] = Field(default_factory=list)
    can_recommend: bool = False
    recommendations: list[VehicleMatch] = Field(default_factory=list)
    next_phase: GraphState
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)
