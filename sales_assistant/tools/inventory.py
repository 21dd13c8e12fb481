"""
In-memory vehicle inventory implementing the search port.

Used by the console demo and the tests. A production deployment plugs a
database- or vector-backed search service into the same port.
"""

import logging
import re
from typing import Iterable, Optional

from sales_assistant.schemas.vehicle_schema import SearchFilters, Vehicle, VehicleMatch

logger = logging.getLogger(__name__)

BASE_SCORE = 70.0
TOKEN_BONUS = 10.0
MAX_SCORE = 100.0

SAMPLE_VEHICLES: list[Vehicle] = [
    Vehicle(id="onix-2019", brand="chevrolet", model="onix", year=2019, price=13900, mileage=62000,
            body_type="hatch", transmission="manual", fuel_type="flex", color="white", seats=5,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="onix-2020", brand="chevrolet", model="onix", year=2020, price=15400, mileage=41000,
            body_type="hatch", transmission="automatic", fuel_type="flex", color="silver", seats=5,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="hb20-2021", brand="hyundai", model="hb20", year=2021, price=16800, mileage=35000,
            body_type="hatch", transmission="automatic", fuel_type="flex", color="red", seats=5,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="civic-2018", brand="honda", model="civic", year=2018, price=21500, mileage=70000,
            body_type="sedan", transmission="automatic", fuel_type="gasoline", color="black", seats=5,
            ride_hail_standard=True, ride_hail_premium=False, family_friendly=True),
    Vehicle(id="corolla-2022", brand="toyota", model="corolla", year=2022, price=28900, mileage=22000,
            body_type="sedan", transmission="automatic", fuel_type="hybrid", color="gray", seats=5,
            ride_hail_standard=True, ride_hail_premium=True, family_friendly=True),
    Vehicle(id="virtus-2020", brand="volkswagen", model="virtus", year=2020, price=18200, mileage=48000,
            body_type="sedan", transmission="automatic", fuel_type="flex", color="white", seats=5,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="creta-2021", brand="hyundai", model="creta", year=2021, price=24500, mileage=39000,
            body_type="suv", transmission="automatic", fuel_type="flex", color="white", seats=5,
            ride_hail_standard=True, ride_hail_premium=True, family_friendly=True),
    Vehicle(id="compass-2019", brand="jeep", model="compass", year=2019, price=27900, mileage=58000,
            body_type="suv", transmission="automatic", fuel_type="flex", color="black", seats=5,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="tracker-2022", brand="chevrolet", model="tracker", year=2022, price=25900, mileage=18000,
            body_type="suv", transmission="automatic", fuel_type="flex", color="blue", seats=5,
            ride_hail_standard=True, ride_hail_premium=True, family_friendly=True),
    Vehicle(id="spin-2019", brand="chevrolet", model="spin", year=2019, price=17900, mileage=66000,
            body_type="minivan", transmission="manual", fuel_type="flex", color="silver", seats=7,
            ride_hail_standard=True, family_friendly=True),
    Vehicle(id="hilux-2017", brand="toyota", model="hilux", year=2017, price=39900, mileage=98000,
            body_type="pickup", transmission="manual", fuel_type="diesel", color="white", seats=5,
            work_ready=True),
    Vehicle(id="strada-2021", brand="fiat", model="strada", year=2021, price=19900, mileage=31000,
            body_type="pickup", transmission="manual", fuel_type="flex", color="red", seats=2,
            work_ready=True),
]

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9-]*")


def _squash(value: str) -> str:
    return value.lower().replace("-", "").replace(" ", "")


def _passes(vehicle: Vehicle, filters: SearchFilters) -> bool:
    if filters.max_price is not None and vehicle.price > filters.max_price:
        return False
    if filters.min_price is not None and vehicle.price < filters.min_price:
        return False
    if filters.min_year is not None and vehicle.year < filters.min_year:
        return False
    if filters.max_km is not None and vehicle.mileage > filters.max_km:
        return False
    if filters.min_seats is not None and vehicle.seats is not None and vehicle.seats < filters.min_seats:
        return False
    if filters.body_type and vehicle.body_type != filters.body_type:
        return False
    if filters.transmission and vehicle.transmission != filters.transmission:
        return False
    if filters.brand and vehicle.brand != filters.brand.lower():
        return False
    if filters.model and _squash(filters.model) not in _squash(vehicle.model):
        return False
    if filters.ride_hail_standard and not vehicle.ride_hail_standard:
        return False
    if filters.ride_hail_premium and not vehicle.ride_hail_premium:
        return False
    if filters.family_friendly and not vehicle.family_friendly:
        return False
    if filters.work_ready and not vehicle.work_ready:
        return False
    return True


def _score(vehicle: Vehicle, tokens: set[str]) -> tuple[float, list[str]]:
    fields = {
        vehicle.brand, vehicle.model, str(vehicle.year),
        vehicle.body_type or "", vehicle.transmission or "", vehicle.fuel_type or "",
    }
    hits = sorted(token for token in tokens if token in fields)
    return min(MAX_SCORE, BASE_SCORE + TOKEN_BONUS * len(hits)), hits


class InMemoryInventory:
    """Filters a fixed vehicle list, then ranks by query-token overlap."""

    def __init__(self, vehicles: Optional[Iterable[Vehicle]] = None) -> None:
        self._vehicles = list(vehicles) if vehicles is not None else list(SAMPLE_VEHICLES)

    @property
    def vehicles(self) -> list[Vehicle]:
        return list(self._vehicles)

    async def search(self, query: str, filters: SearchFilters) -> list[VehicleMatch]:
        tokens = set(_TOKEN_RE.findall(query.lower()))
        matches: list[VehicleMatch] = []
        for vehicle in self._vehicles:
            if not _passes(vehicle, filters):
                continue
            score, hits = _score(vehicle, tokens)
            matches.append(VehicleMatch(
                vehicle_id=vehicle.id,
                match_score=score,
                vehicle=vehicle,
                reasoning=f"matched {', '.join(hits)}" if hits else None,
            ))

        matches.sort(key=lambda m: (-m.match_score, m.vehicle.price))
        logger.debug("Inventory search %r: %d match(es)", query, len(matches))
        return matches[:filters.limit]
