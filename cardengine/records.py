"""Conversion of round states into JSON-ready records."""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .cards import Card, serialize_card


def to_record(value: Any) -> Any:
    """Recursively convert ``value`` into plain dicts, lists and scalars.

    Cards become ``{"id", "rank", "suit"}``, enums their value, settings
    models their JSON dump. The input is never modified.
    """
    if isinstance(value, Card):
        return serialize_card(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: to_record(getattr(value, field.name)) for field in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(to_record(key)): to_record(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_record(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((to_record(item) for item in value), key=repr)
    return value


def record_json(value: Any) -> str:
    """Canonical JSON text of ``to_record(value)``; stable across calls."""
    return json.dumps(to_record(value), sort_keys=True)
