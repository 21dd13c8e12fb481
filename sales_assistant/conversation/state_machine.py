"""
Finite state machine for the turn-level conversational phase.

Defines the GraphState phases and explicit transitions with triggers.
Every turn advances the phase exactly once; HANDOFF and END are absorbing
until an explicit reset.

Usage:
    sm = ConversationStateMachine(GraphState.DISCOVERY)
    sm.transition(PhaseTrigger.RESULTS_SHOWN)
    assert sm.current_state == GraphState.RECOMMENDATION
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sales_assistant.schemas.conversation_schema import GraphState

logger = logging.getLogger(__name__)


class PhaseTrigger(str, Enum):
    """Turn outcomes that move the conversation between phases."""
    GREETED = "greeted"
    NAME_RECEIVED = "name_received"
    NEED_MORE_INFO = "need_more_info"
    OFFER_ALTERNATIVES = "offer_alternatives"
    RESTART_DISCOVERY = "restart_discovery"
    RESULTS_SHOWN = "results_shown"
    NO_RESULTS = "no_results"
    QUESTION_ANSWERED = "question_answered"
    FOLLOW_UP_ASKED = "follow_up_asked"
    NEGOTIATION_STARTED = "negotiation_started"
    HANDOFF_REQUESTED = "handoff_requested"
    CONVERSATION_CLOSED = "conversation_closed"


ACTIVE_STATES: tuple[GraphState, ...] = (
    GraphState.START,
    GraphState.GREETING,
    GraphState.DISCOVERY,
    GraphState.CLARIFICATION,
    GraphState.SEARCH,
    GraphState.RECOMMENDATION,
    GraphState.NEGOTIATION,
    GraphState.FOLLOW_UP,
)

TERMINAL_STATES: frozenset[GraphState] = frozenset({GraphState.HANDOFF, GraphState.END})


@dataclass
class Transition:
    """A single valid phase transition."""
    from_state: GraphState
    to_state: GraphState
    trigger: PhaseTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a phase visit."""
    state: GraphState
    entered_at: datetime
    trigger: Optional[PhaseTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current phase."""


def _from_active(to_state: GraphState, trigger: PhaseTrigger) -> list[Transition]:
    return [Transition(state, to_state, trigger) for state in ACTIVE_STATES]


class ConversationStateMachine:
    """
    Deterministic phase machine driven by the outcome of each turn.

    Every transition must be explicitly defined. A handler outcome with no
    matching transition is rejected with the list of allowed triggers.
    """

    TRANSITIONS: list[Transition] = [
        # --- Greeting ---
        Transition(GraphState.START, GraphState.GREETING, PhaseTrigger.GREETED),
        Transition(GraphState.GREETING, GraphState.GREETING, PhaseTrigger.GREETED),
        Transition(GraphState.GREETING, GraphState.DISCOVERY, PhaseTrigger.NAME_RECEIVED),

        # --- Slot filling ---
        Transition(GraphState.START, GraphState.DISCOVERY, PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.GREETING, GraphState.DISCOVERY, PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.DISCOVERY, GraphState.CLARIFICATION, PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.CLARIFICATION, GraphState.CLARIFICATION,
                   PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.SEARCH, GraphState.CLARIFICATION, PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.RECOMMENDATION, GraphState.CLARIFICATION,
                   PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.NEGOTIATION, GraphState.CLARIFICATION,
                   PhaseTrigger.NEED_MORE_INFO),
        Transition(GraphState.FOLLOW_UP, GraphState.CLARIFICATION, PhaseTrigger.NEED_MORE_INFO),

        # --- Questions keep the phase, except before discovery started ---
        Transition(GraphState.START, GraphState.DISCOVERY, PhaseTrigger.QUESTION_ANSWERED),
        Transition(GraphState.GREETING, GraphState.DISCOVERY, PhaseTrigger.QUESTION_ANSWERED),
        *[
            Transition(state, state, PhaseTrigger.QUESTION_ANSWERED)
            for state in ACTIVE_STATES
            if state not in (GraphState.START, GraphState.GREETING)
        ],

        # --- Search outcomes ---
        *_from_active(GraphState.RECOMMENDATION, PhaseTrigger.RESULTS_SHOWN),
        *_from_active(GraphState.SEARCH, PhaseTrigger.NO_RESULTS),
        *_from_active(GraphState.CLARIFICATION, PhaseTrigger.OFFER_ALTERNATIVES),
        *_from_active(GraphState.DISCOVERY, PhaseTrigger.RESTART_DISCOVERY),

        # --- Post-recommendation ---
        *_from_active(GraphState.FOLLOW_UP, PhaseTrigger.FOLLOW_UP_ASKED),
        *_from_active(GraphState.NEGOTIATION, PhaseTrigger.NEGOTIATION_STARTED),
        *_from_active(GraphState.HANDOFF, PhaseTrigger.HANDOFF_REQUESTED),

        # --- Terminal ---
        *_from_active(GraphState.END, PhaseTrigger.CONVERSATION_CLOSED),
        Transition(GraphState.HANDOFF, GraphState.END, PhaseTrigger.CONVERSATION_CLOSED),
    ]

    def __init__(self, initial_state: GraphState = GraphState.START) -> None:
        self._current_state = initial_state
        self._history: list[StateEntry] = [
            StateEntry(state=initial_state, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> GraphState:
        return self._current_state

    def transition(self, trigger: PhaseTrigger) -> GraphState:
        """
        Execute a phase transition.

        Args:
            trigger: The turn outcome triggering the transition.

        Returns:
            The new conversational phase.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                logger.debug(
                    "Phase transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def reset(self) -> GraphState:
        """Explicit reset, the only way out of an absorbing phase."""
        self._current_state = GraphState.START
        self._history.append(StateEntry(state=GraphState.START, entered_at=datetime.now(timezone.utc)))
        logger.debug("Phase reset to %s", GraphState.START.value)
        return self._current_state

    def get_valid_triggers(self) -> list[PhaseTrigger]:
        """Return all triggers valid from the current phase."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full phase transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of phase names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the conversation has reached an absorbing phase."""
        return self._current_state in TERMINAL_STATES


def next_phase(current: GraphState, trigger: PhaseTrigger) -> GraphState:
    """Resolve the phase that follows ``current`` for one turn outcome."""
    return ConversationStateMachine(current).transition(trigger)
