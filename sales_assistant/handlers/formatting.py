"""Plain-text rendering of vehicle lists for chat replies."""

from typing import Sequence

from sales_assistant.schemas.profile_schema import ShownVehicle
from sales_assistant.schemas.vehicle_schema import Vehicle, VehicleMatch
from sales_assistant.utils import capitalize_words, format_price

BODY_TYPE_NAMES: dict[str, tuple[str, str]] = {
    "suv": ("SUV", "SUVs"),
    "sedan": ("sedan", "sedans"),
    "hatch": ("hatchback", "hatchbacks"),
    "pickup": ("pickup", "pickups"),
    "minivan": ("minivan", "minivans"),
}


def body_type_name(body_type: str, plural: bool = False) -> str:
    singular, many = BODY_TYPE_NAMES.get(body_type, (body_type, f"{body_type}s"))
    return many if plural else singular


def vehicle_name(vehicle: Vehicle | ShownVehicle) -> str:
    return capitalize_words(vehicle.display_name)


def _vehicle_line(index: int, vehicle: Vehicle) -> str:
    details = [format_price(vehicle.price)]
    if vehicle.mileage:
        details.append(f"{vehicle.mileage:,} km")
    if vehicle.transmission:
        details.append(vehicle.transmission)
    return f"{index}. {vehicle_name(vehicle)} - {', '.join(details)}"


def format_matches(matches: Sequence[VehicleMatch]) -> str:
    """Numbered list of search results, best first."""
    return "\n".join(_vehicle_line(i, m.vehicle) for i, m in enumerate(matches, start=1))


def format_shown(vehicles: Sequence[ShownVehicle]) -> str:
    """Numbered list of vehicle snapshots."""
    return "\n".join(
        f"{i}. {vehicle_name(v)} - {format_price(v.price)}" for i, v in enumerate(vehicles, start=1)
    )


def join_years(years: Sequence[int]) -> str:
    """ "2020", "2020 and 2019", "2021, 2020 and 2019". """
    labels = [str(y) for y in years]
    if len(labels) <= 1:
        return "".join(labels)
    return f"{', '.join(labels[:-1])} and {labels[-1]}"
