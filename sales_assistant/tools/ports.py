"""Interfaces of the external capabilities the orchestrator depends on.

All three are asynchronous; the core only suspends while waiting on them.
"""

from typing import Awaitable, Callable, Protocol

from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile, ShownVehicle
from sales_assistant.schemas.vehicle_schema import SearchFilters, VehicleMatch


class PreferenceNLU(Protocol):
    """Turns a customer message into a candidate partial profile."""

    async def extract(
        self, message: str, profile: CustomerProfile, history: list[str]
    ) -> ExtractionResult: ...


class VehicleSearchPort(Protocol):
    """Turns a free-text query plus filters into ranked vehicles, best first."""

    async def search(self, query: str, filters: SearchFilters) -> list[VehicleMatch]: ...


class KnowledgePort(Protocol):
    """Answers a free-form customer question."""

    async def answer(
        self, question: str, vehicles: list[ShownVehicle], conversation_summary: str
    ) -> str: ...


# (system prompt, user message) -> completion text
CompletionFn = Callable[[str, str], Awaitable[str]]
