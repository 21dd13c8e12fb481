from sales_assistant.conversation.profile_merge import apply_delta, combine_deltas, merge_profile
from sales_assistant.conversation.readiness import ReadinessAction, ReadinessAssessor
from sales_assistant.conversation.state_machine import (
    ConversationStateMachine,
    InvalidTransitionError,
    PhaseTrigger,
    next_phase,
)

__all__ = [
    "ConversationStateMachine",
    "InvalidTransitionError",
    "PhaseTrigger",
    "next_phase",
    "ReadinessAssessor",
    "ReadinessAction",
    "merge_profile",
    "apply_delta",
    "combine_deltas",
]
