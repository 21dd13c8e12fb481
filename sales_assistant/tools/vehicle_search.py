"""
Fail-soft wrapper around the vehicle search capability.

Every lookup the cascade needs goes through here. A failing search port is
logged and reported as "nothing found" so that a turn never aborts because
inventory was unreachable.
"""

from dataclasses import dataclass, field
from typing import Optional

from sales_assistant.config import SearchConfig, settings
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.vehicle_schema import SearchFilters, SearchQuery, Vehicle, VehicleMatch
from sales_assistant.tools.ports import VehicleSearchPort
from sales_assistant.tools.vehicle_catalog import is_seven_seater

logger = get_conversation_logger(__name__)


@dataclass
class ExactSearchResult:
    """Outcome of a model+year lookup."""
    model: str
    year: int
    matches: list[VehicleMatch] = field(default_factory=list)
    available_years: list[int] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.matches)

    @property
    def model_exists(self) -> bool:
        return bool(self.available_years)


def _same_model(match: VehicleMatch, model: str) -> bool:
    wanted = model.lower().replace("-", "").replace(" ", "")
    actual = match.vehicle.model.lower().replace("-", "").replace(" ", "")
    return wanted in actual or actual in wanted


class VehicleSearchService:
    """Search operations used by the interception handlers and the recommend path."""

    def __init__(self, port: VehicleSearchPort, config: Optional[SearchConfig] = None) -> None:
        self._port = port
        self._config = config or settings.search

    @property
    def config(self) -> SearchConfig:
        return self._config

    async def search_text(self, text: str, filters: Optional[SearchFilters] = None) -> list[VehicleMatch]:
        """Run one search, returning an empty list if the port fails."""
        filters = filters or SearchFilters(limit=self._config.result_limit)
        try:
            results = await self._port.search(text, filters)
        except Exception:
            logger.error("Vehicle search failed for %r", text, exc_info=True)
            return []
        logger.debug("Search %r returned %d result(s)", text, len(results))
        return list(results)

    async def search(self, query: SearchQuery) -> list[VehicleMatch]:
        """Run a profile-derived query and drop results below the match floor."""
        results = await self.search_text(query.search_text, query.filters)
        return [r for r in results if r.match_score >= query.min_match_score]

    async def search_model_year(self, model: str, year: int) -> list[VehicleMatch]:
        """Vehicles of ``model`` from exactly ``year``."""
        filters = SearchFilters(model=model, min_year=year, limit=self._config.wide_limit)
        results = await self.search_text(f"{model} {year}", filters)
        return [r for r in results if r.vehicle.year == year and _same_model(r, model)]

    async def find_exact_match(self, model: str, year: int) -> ExactSearchResult:
        """Look up a model in a given year.

        When the top result is not from the requested year, the model is
        searched on its own to list the years that are in stock, newest
        first.
        """
        results = await self.search_text(
            f"{model} {year}",
            SearchFilters(model=model, limit=self._config.result_limit),
        )
        exact = [r for r in results if r.vehicle.year == year and _same_model(r, model)]
        if results and results[0].vehicle.year == year and exact:
            return ExactSearchResult(model=model, year=year, matches=exact,
                                     available_years=sorted({r.vehicle.year for r in exact}, reverse=True))

        wide = await self.search_text(model, SearchFilters(model=model, limit=self._config.wide_limit))
        years = sorted({r.vehicle.year for r in wide if _same_model(r, model)}, reverse=True)
        return ExactSearchResult(model=model, year=year, available_years=years)

    async def seven_seaters(self, max_price: Optional[float] = None) -> list[VehicleMatch]:
        """Vehicles on the seven-seat allow-list."""
        filters = SearchFilters(min_seats=7, max_price=max_price, limit=self._config.wide_limit)
        results = await self.search_text("7 seats", filters)
        return [r for r in results if is_seven_seater(r.vehicle.model)]

    async def has_seven_seaters(self, max_price: Optional[float] = None) -> bool:
        return bool(await self.seven_seaters(max_price))

    async def search_category(self, body_type: str, max_price: Optional[float] = None) -> list[VehicleMatch]:
        """Vehicles of one body type, limited to the normal result size."""
        filters = SearchFilters(body_type=body_type, max_price=max_price, limit=self._config.result_limit)
        results = await self.search_text(body_type, filters)
        return [r for r in results if (r.vehicle.body_type or "").lower() == body_type]

    async def find_vehicle(self, model: str, year: Optional[int] = None) -> Optional[Vehicle]:
        """Newest in-stock vehicle of ``model``, from ``year`` when given."""
        results = await self.search_text(model, SearchFilters(model=model, limit=self._config.wide_limit))
        candidates = [
            r.vehicle for r in results
            if _same_model(r, model) and (year is None or r.vehicle.year == year)
        ]
        return max(candidates, key=lambda v: v.year, default=None)

    async def ride_hail_eligible(self, premium: bool = False) -> list[VehicleMatch]:
        """Vehicles flagged for the standard or the premium ride-hail category."""
        filters = SearchFilters(
            ride_hail_standard=not premium,
            ride_hail_premium=premium,
            limit=self._config.result_limit,
        )
        return await self.search_text("ride hail", filters)
