"""Customer profile, shown-vehicle snapshots and the pending sub-flow variant."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Usage = Literal["city", "trip", "work", "mixed"]
MainUse = Literal["ride_hail", "family", "work", "trip", "other"]
RideHailTier = Literal["standard", "comfort", "premium"]
BodyType = Literal["sedan", "suv", "hatch", "pickup", "minivan"]
Transmission = Literal["manual", "automatic"]
FuelType = Literal["flex", "gasoline", "ethanol", "diesel", "hybrid", "electric"]


class SearchType(str, Enum):
    """How the last shown vehicle list was produced."""

    SPECIFIC = "specific"
    RECOMMENDATION = "recommendation"
    CATEGORY = "category"


class ShownVehicle(BaseModel):
    """Immutable snapshot of a vehicle at the moment it was shown."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str
    brand: str
    model: str
    year: int
    price: float
    body_type: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model} {self.year}"


# ---- Pending sub-flow: at most one special conversation is in progress ---- #

class AwaitingTradeIn(BaseModel):
    """We asked for the customer's current car (model, year, odometer)."""

    kind: Literal["awaiting_trade_in"] = "awaiting_trade_in"


class AwaitingFinancing(BaseModel):
    """We asked for a down payment or trade-in to start financing."""

    kind: Literal["awaiting_financing"] = "awaiting_financing"


class AwaitingSuggestionAnswer(BaseModel):
    """We offered an alternative (other years, another category) and wait for yes/no."""

    kind: Literal["awaiting_suggestion_answer"] = "awaiting_suggestion_answer"
    searched_item: Optional[str] = None
    years: list[int] = Field(default_factory=list)


class AwaitingSimilarApproval(BaseModel):
    """We asked whether to show similar vehicles and hold the candidates."""

    kind: Literal["awaiting_similar_approval"] = "awaiting_similar_approval"
    candidates: list[ShownVehicle] = Field(default_factory=list)


class AwaitingRideHailAlternatives(BaseModel):
    """No car fit the ride-hail category asked about; we offered standard-category cars."""

    kind: Literal["awaiting_ride_hail_alternatives"] = "awaiting_ride_hail_alternatives"
    tier: RideHailTier = "premium"


PendingFlow = Annotated[
    Union[
        AwaitingTradeIn,
        AwaitingFinancing,
        AwaitingSuggestionAnswer,
        AwaitingSimilarApproval,
        AwaitingRideHailAlternatives,
    ],
    Field(discriminator="kind"),
]


class CustomerProfile(BaseModel):
    """
    Cumulative, partial record of everything learned about the customer.

    Scalars are last-write-wins; ``priorities`` and ``deal_breakers`` are
    unioned on merge. Control state (``pending`` and the shown-vehicle
    bookkeeping) is written only by the interception handlers.
    """

    customer_name: Optional[str] = None

    # Budget
    budget: Optional[float] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None

    # Usage
    people: Optional[int] = None
    min_seats: Optional[int] = None
    usage: Optional[Usage] = None
    main_use: Optional[MainUse] = None
    ride_hail_tier: Optional[RideHailTier] = None

    # Vehicle preferences
    body_type: Optional[BodyType] = None
    min_year: Optional[int] = None
    max_km: Optional[int] = None
    transmission: Optional[Transmission] = None
    fuel_type: Optional[FuelType] = None
    color: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    priorities: list[str] = Field(default_factory=list)
    deal_breakers: list[str] = Field(default_factory=list)

    # Financing
    wants_financing: Optional[bool] = None
    financing_down_payment: Optional[float] = None

    # Trade-in
    has_trade_in: Optional[bool] = None
    trade_in_brand: Optional[str] = None
    trade_in_model: Optional[str] = None
    trade_in_year: Optional[int] = None
    trade_in_km: Optional[int] = None

    # Control state
    pending: Optional[PendingFlow] = None
    shown_vehicles: list[ShownVehicle] = Field(default_factory=list)
    showed_recommendation: bool = False
    last_search_type: Optional[SearchType] = None
    exclude_vehicle_ids: list[str] = Field(default_factory=list)

    @property
    def awaiting_suggestion(self) -> bool:
        return isinstance(self.pending, AwaitingSuggestionAnswer)


ARRAY_UNION_FIELDS: frozenset[str] = frozenset({"priorities", "deal_breakers"})

CONTROL_FIELDS: frozenset[str] = frozenset({
    "pending",
    "shown_vehicles",
    "showed_recommendation",
    "last_search_type",
    "exclude_vehicle_ids",
})

PREFERENCE_FIELDS: frozenset[str] = frozenset(
    name for name in CustomerProfile.model_fields if name not in CONTROL_FIELDS
)
