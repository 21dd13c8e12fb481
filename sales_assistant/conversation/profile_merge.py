"""
Profile merge rules.

Scalars are last-write-wins, ``priorities`` and ``deal_breakers`` are
unioned without duplicates. ``merge_profile`` is what the extraction layer
uses and never touches control state; ``apply_delta`` is what the caller
uses to fold a turn's response back into the stored profile.
"""

from typing import Any, Iterable

from sales_assistant.schemas.profile_schema import (
    ARRAY_UNION_FIELDS,
    CONTROL_FIELDS,
    PREFERENCE_FIELDS,
    CustomerProfile,
)


def union_tags(existing: Iterable[str], incoming: Iterable[str]) -> list[str]:
    """Union two tag lists, keeping first-seen order and dropping duplicates."""
    result: list[str] = []
    for tag in [*existing, *incoming]:
        if tag not in result:
            result.append(tag)
    return result


def _rebuild(profile: CustomerProfile, updates: dict[str, Any]) -> CustomerProfile:
    if not updates:
        return profile
    data = profile.model_dump()
    data.update(updates)
    return CustomerProfile.model_validate(data)


def merge_profile(profile: CustomerProfile, extracted: dict[str, Any]) -> CustomerProfile:
    """Merge sanitized extraction output into the cumulative profile."""
    updates: dict[str, Any] = {}
    for key, value in extracted.items():
        if key in CONTROL_FIELDS or key not in PREFERENCE_FIELDS:
            continue
        if key in ARRAY_UNION_FIELDS:
            updates[key] = union_tags(getattr(profile, key), value or [])
        else:
            updates[key] = value
    return _rebuild(profile, updates)


def apply_delta(profile: CustomerProfile, delta: dict[str, Any]) -> CustomerProfile:
    """Fold a response's profile delta into the stored profile.

    An explicit ``None`` clears a scalar or the pending sub-flow. Lists other
    than the tag sets are replaced wholesale.
    """
    updates: dict[str, Any] = {}
    for key, value in delta.items():
        if key not in CustomerProfile.model_fields:
            continue
        if key in ARRAY_UNION_FIELDS:
            updates[key] = union_tags(getattr(profile, key), value or [])
        elif isinstance(value, list):
            updates[key] = list(value)
        else:
            updates[key] = value
    return _rebuild(profile, updates)


def combine_deltas(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Layer handler updates over the extraction delta for a single response."""
    combined = dict(base)
    for key, value in updates.items():
        if key in ARRAY_UNION_FIELDS and key in combined:
            combined[key] = union_tags(combined[key] or [], value or [])
        else:
            combined[key] = value
    return combined
