"""Vehicle inventory records, ranked matches and structured search queries."""

from typing import Optional

from pydantic import BaseModel, Field

from sales_assistant.schemas.profile_schema import ShownVehicle


class Vehicle(BaseModel):
    """A vehicle record as returned by the search capability."""

    id: str
    brand: str
    model: str
    year: int
    price: float
    mileage: int = 0
    body_type: Optional[str] = None
    transmission: Optional[str] = None
    fuel_type: Optional[str] = None
    color: Optional[str] = None
    seats: Optional[int] = None
    ride_hail_standard: bool = False
    ride_hail_premium: bool = False
    family_friendly: bool = False
    work_ready: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model} {self.year}"

    def snapshot(self) -> ShownVehicle:
        """Freeze the fields later turns compare against."""
        return ShownVehicle(
            vehicle_id=self.id,
            brand=self.brand,
            model=self.model,
            year=self.year,
            price=self.price,
            body_type=self.body_type,
        )


class VehicleMatch(BaseModel):
    """One ranked search result, best first."""

    vehicle_id: str
    match_score: float = 0.0
    vehicle: Vehicle
    reasoning: Optional[str] = None


class SearchFilters(BaseModel):
    """Structured filters carried alongside the free-text query."""

    max_price: Optional[float] = None
    min_price: Optional[float] = None
    min_year: Optional[int] = None
    max_km: Optional[int] = None
    min_seats: Optional[int] = None
    body_type: Optional[str] = None
    transmission: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    ride_hail_standard: bool = False
    ride_hail_premium: bool = False
    family_friendly: bool = False
    work_ready: bool = False
    limit: int = 5


class SearchQuery(BaseModel):
    """Deterministic mapping of a profile into a search request."""

    search_text: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    people: Optional[int] = None
    priorities: list[str] = Field(default_factory=list)
    deal_breakers: list[str] = Field(default_factory=list)
    min_match_score: int = 60
