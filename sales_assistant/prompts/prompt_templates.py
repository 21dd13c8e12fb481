"""Dynamic prompt construction for the extraction and knowledge capabilities."""

import json
from typing import Optional

from sales_assistant.schemas.profile_schema import CustomerProfile, ShownVehicle
from sales_assistant.utils import format_price


def build_extraction_prompt(
    system_prompt: str,
    profile: Optional[CustomerProfile] = None,
    history: Optional[list[str]] = None,
) -> str:
    """Append the current profile and recent messages to the extraction prompt."""
    parts = [system_prompt.strip()]
    if profile is not None:
        known = profile.model_dump(
            exclude_none=True,
            exclude_defaults=True,
            exclude={"pending", "shown_vehicles", "showed_recommendation",
                     "last_search_type", "exclude_vehicle_ids"},
        )
        if known:
            parts.append("\nCURRENT CUSTOMER PROFILE:")
            parts.append(json.dumps(known, indent=2, default=str))
    if history:
        parts.append("\nRECENT MESSAGES:")
        parts.extend(history)
    return "\n".join(parts)


def build_extraction_user_message(message: str) -> str:
    return f'CUSTOMER MESSAGE: "{message}"\n\nReturn ONLY the extraction JSON:'


def build_knowledge_prompt(
    system_prompt: str,
    vehicles: list[ShownVehicle],
    conversation_summary: str,
) -> str:
    """Build the knowledge-answering instructions with the vehicles in view."""
    lines = [system_prompt.strip()]
    if vehicles:
        lines.append("\nVEHICLES SHOWN TO THE CUSTOMER:")
        for v in vehicles:
            body = f", {v.body_type}" if v.body_type else ""
            lines.append(f"  {v.display_name}{body}, {format_price(v.price)}")
    if conversation_summary:
        lines.append("\nCONVERSATION SO FAR:")
        lines.append(conversation_summary)
    return "\n".join(lines)
