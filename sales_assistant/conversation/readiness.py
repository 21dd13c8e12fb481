"""
Readiness assessment: is the profile good enough to run a recommendation?

Decision rule, in order:
    1. every required slot known                      -> recommend
    2. one required slot missing after N user messages -> recommend
    3. M user messages regardless of completeness     -> recommend
    4. otherwise                                       -> ask the next question

Usage:
    assessor = ReadinessAssessor()
    result = assessor.assess(profile, message_count=3)
    if not result.can_recommend:
        question = assessor.next_question(profile)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from sales_assistant.config import ReadinessConfig, settings
from sales_assistant.schemas.conversation_schema import ConversationContext, Role
from sales_assistant.schemas.profile_schema import CustomerProfile

logger = logging.getLogger(__name__)

REQUIRED_WEIGHT = 100
OPTIONAL_WEIGHT = 30


class ReadinessAction(str, Enum):
    CONTINUE_ASKING = "continue_asking"
    RECOMMEND_NOW = "recommend_now"


@dataclass(frozen=True)
class SlotDefinition:
    """A profile slot the assistant may ask about."""

    name: str
    display_name: str
    required: bool = True
    question: str = ""

    def known_in(self, profile: CustomerProfile) -> bool:
        return getattr(profile, self.name) is not None


@dataclass
class ReadinessAssessment:
    """Outcome of a readiness check."""

    can_recommend: bool
    confidence: float
    action: ReadinessAction
    reasoning: str
    missing_required: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)


PROFILE_SLOTS: list[SlotDefinition] = [
    SlotDefinition(
        name="budget",
        display_name="budget",
        question="What's the most you'd like to spend on the car?",
    ),
    SlotDefinition(
        name="usage",
        display_name="main use",
        question="What will you mainly use the car for? City driving, road trips, work?",
    ),
    SlotDefinition(
        name="body_type",
        display_name="body style",
        required=False,
        question="Do you have a body style in mind? Hatch, sedan, SUV or pickup?",
    ),
    SlotDefinition(
        name="min_year",
        display_name="oldest model year",
        required=False,
        question="What's the oldest model year you'd consider?",
    ),
    SlotDefinition(
        name="transmission",
        display_name="transmission",
        required=False,
        question="Do you prefer manual or automatic?",
    ),
]

FALLBACK_QUESTION = "Tell me a bit more about the car you have in mind?"


class ReadinessAssessor:
    """Decides between recommending now and asking another question."""

    def __init__(self, config: Optional[ReadinessConfig] = None) -> None:
        self._config = config or settings.readiness
        self._required = [s for s in PROFILE_SLOTS if s.required]
        self._optional = [s for s in PROFILE_SLOTS if not s.required]

    def assess(self, profile: CustomerProfile, message_count: int) -> ReadinessAssessment:
        missing_required = [s.name for s in self._required if not s.known_in(profile)]
        missing_optional = [s.name for s in self._optional if not s.known_in(profile)]

        required_score = (
            (len(self._required) - len(missing_required)) / len(self._required) * REQUIRED_WEIGHT
        )
        optional_score = (
            (len(self._optional) - len(missing_optional)) / len(self._optional) * OPTIONAL_WEIGHT
        )
        confidence = min(100.0, required_score + optional_score)

        if not missing_required:
            action, reasoning = ReadinessAction.RECOMMEND_NOW, "Essential information collected"
        elif (
            len(missing_required) == 1
            and message_count >= self._config.partial_info_messages
        ):
            action, reasoning = (
                ReadinessAction.RECOMMEND_NOW,
                "Enough information after several messages",
            )
        elif message_count >= self._config.force_recommend_messages:
            action, reasoning = (
                ReadinessAction.RECOMMEND_NOW,
                "Long conversation, recommending with partial information",
            )
        else:
            action = ReadinessAction.CONTINUE_ASKING
            reasoning = f"Missing essential fields: {', '.join(missing_required)}"

        logger.debug("Readiness: %s (%s)", action.value, reasoning)
        return ReadinessAssessment(
            can_recommend=action == ReadinessAction.RECOMMEND_NOW,
            confidence=confidence,
            action=action,
            reasoning=reasoning,
            missing_required=missing_required,
            missing_optional=missing_optional,
        )

    def next_question(self, profile: CustomerProfile) -> str:
        """One question for the most important unknown slot."""
        for slot in PROFILE_SLOTS:
            if not slot.known_in(profile):
                return slot.question
        return FALLBACK_QUESTION


def identify_missing_info(profile: CustomerProfile) -> list[str]:
    """The slots worth mentioning when a flow restarts discovery."""
    important = [s for s in PROFILE_SLOTS if s.name in ("budget", "usage", "body_type")]
    return [s.name for s in important if not s.known_in(profile)]


def summarize_context(context: ConversationContext, last: int = 4) -> str:
    """Short conversation summary for the knowledge-answering capability."""
    lines = [
        f"{'Customer' if m.role == Role.USER else 'Assistant'}: {m.content}"
        for m in context.messages[-last:]
    ]
    return (
        f"Phase: {context.phase.value}\n"
        f"Messages exchanged: {context.metadata.message_count}\n\n"
        "Last messages:\n" + "\n".join(lines)
    )
