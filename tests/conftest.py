"""Shared test fixtures, fake capabilities and helpers."""

from typing import Any, Optional

import pytest

from sales_assistant.conversation.profile_merge import merge_profile
from sales_assistant.conversation.state_machine import ConversationStateMachine
from sales_assistant.handlers.base import Turn, TurnServices
from sales_assistant.orchestrator import SalesOrchestrator
from sales_assistant.schemas.conversation_schema import ConversationContext, GraphState
from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile, ShownVehicle
from sales_assistant.schemas.vehicle_schema import SearchFilters, VehicleMatch
from sales_assistant.session import ConversationSession
from sales_assistant.tools.exact_search_parser import parse_exact_query
from sales_assistant.tools.inventory import SAMPLE_VEHICLES, InMemoryInventory
from sales_assistant.tools.keyword_extractor import KeywordExtractor
from sales_assistant.tools.knowledge import CannedKnowledgeAnswerer


class ScriptedNLU:
    """Returns a preset extraction per message and records every call."""

    def __init__(self, script: Optional[dict[str, dict[str, Any]]] = None, confidence: float = 0.9):
        self.script = script or {}
        self.confidence = confidence
        self.calls: list[tuple[str, list[str]]] = []

    async def extract(self, message: str, profile: CustomerProfile, history: list[str]) -> ExtractionResult:
        self.calls.append((message, list(history)))
        extracted = dict(self.script.get(message, {}))
        return ExtractionResult(
            extracted=extracted,
            confidence=self.confidence if extracted else 0.0,
            fields_extracted=list(extracted),
        )


class FailingNLU:
    async def extract(self, message: str, profile: CustomerProfile, history: list[str]) -> ExtractionResult:
        raise ConnectionError("extraction service unreachable")


class RecordingSearch:
    """Wraps the in-memory inventory and keeps the queries it was given."""

    def __init__(self, inventory: Optional[InMemoryInventory] = None):
        self.inventory = inventory or InMemoryInventory()
        self.calls: list[tuple[str, SearchFilters]] = []

    async def search(self, query: str, filters: SearchFilters) -> list[VehicleMatch]:
        self.calls.append((query, filters))
        return await self.inventory.search(query, filters)


class FailingSearch:
    async def search(self, query: str, filters: SearchFilters) -> list[VehicleMatch]:
        raise TimeoutError("inventory timed out")


class FailingKnowledge:
    async def answer(self, question: str, vehicles: list[ShownVehicle], conversation_summary: str) -> str:
        raise RuntimeError("knowledge service down")


def inventory_without(*vehicle_ids: str) -> InMemoryInventory:
    """Sample inventory minus the given vehicles."""
    return InMemoryInventory(v for v in SAMPLE_VEHICLES if v.id not in vehicle_ids)


def shown(vehicle_id: str) -> ShownVehicle:
    """Snapshot of a sample vehicle, as if it had been shown."""
    vehicle = next(v for v in SAMPLE_VEHICLES if v.id == vehicle_id)
    return vehicle.snapshot()


def make_context(phase: GraphState = GraphState.DISCOVERY, message_count: int = 1, **profile: Any) -> ConversationContext:
    context = ConversationContext(
        conversation_id="TEST-CONV",
        phase=phase,
        profile=CustomerProfile(**profile),
    )
    context.metadata.message_count = message_count
    return context


def make_turn(
    message: str,
    phase: GraphState = GraphState.DISCOVERY,
    extracted: Optional[dict[str, Any]] = None,
    message_count: int = 1,
    **profile: Any,
) -> Turn:
    """Build a turn the way the orchestrator does, with a preset extraction."""
    context = make_context(phase, message_count, **profile)
    extraction = ExtractionResult(extracted=extracted or {}, confidence=0.9 if extracted else 0.0)
    return Turn(
        message=message,
        context=context,
        profile=merge_profile(context.profile, extraction.extracted),
        extraction=extraction,
        exact=parse_exact_query(message),
    )


def make_orchestrator(nlu=None, search=None, knowledge=None) -> SalesOrchestrator:
    return SalesOrchestrator(
        nlu or KeywordExtractor(),
        search or InMemoryInventory(),
        knowledge or CannedKnowledgeAnswerer(),
    )


@pytest.fixture
def state_machine():
    return ConversationStateMachine()


@pytest.fixture
def orchestrator():
    return make_orchestrator()


@pytest.fixture
def services(orchestrator) -> TurnServices:
    return orchestrator.services


@pytest.fixture
def session(orchestrator):
    return ConversationSession(orchestrator, conversation_id="TEST-SESSION")
