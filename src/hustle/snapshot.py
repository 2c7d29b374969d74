"""Canonical JSON form of a game snapshot.

Used for replay checks: two sessions that started from the same seed and
received the same commands produce the same :func:`snapshot_signature`.
There is no loader; snapshots are never restored from this form.
"""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from hashlib import sha256
from typing import Any, Mapping, Sequence

from .game_log import LogEntry
from .state import GameSnapshot

SNAPSHOT_SCHEMA_VERSION = "hustle_snapshot_v1"


def to_snapshot_dict(obj: Any, *, include_timestamps: bool = True) -> Any:
    if isinstance(obj, LogEntry) and not include_timestamps:
        return {
            "__type__": "LogEntry",
            "data": {
                "id": obj.id,
                "category": obj.category.value,
                "message": obj.message,
                "day": obj.day,
            },
        }

    if is_dataclass(obj) and not isinstance(obj, type):
        payload = {
            field.name: to_snapshot_dict(getattr(obj, field.name), include_timestamps=include_timestamps)
            for field in fields(obj)
        }
        return {"__type__": obj.__class__.__qualname__, "data": payload}

    if isinstance(obj, Enum):
        return {"__enum__": obj.__class__.__qualname__, "value": obj.value}

    if isinstance(obj, (set, frozenset)):
        return {"__set__": sorted((to_snapshot_dict(item, include_timestamps=include_timestamps) for item in obj), key=str)}

    if isinstance(obj, Mapping):
        return {
            _key(k): to_snapshot_dict(v, include_timestamps=include_timestamps)
            for k, v in sorted(obj.items(), key=lambda item: _key(item[0]))
        }

    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return [to_snapshot_dict(item, include_timestamps=include_timestamps) for item in obj]

    if isinstance(obj, float):
        return round(obj, 9)

    return obj


def _key(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def serialize_state(snapshot: GameSnapshot, *, include_timestamps: bool = True) -> str:
    payload = {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "snapshot": to_snapshot_dict(snapshot, include_timestamps=include_timestamps),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def snapshot_signature(snapshot: GameSnapshot) -> str:
    """Short sha256 digest of the snapshot, ignoring wall-clock timestamps."""

    blob = serialize_state(snapshot, include_timestamps=False)
    return sha256(blob.encode("utf-8")).hexdigest()[:16]


__all__ = ["SNAPSHOT_SCHEMA_VERSION", "serialize_state", "snapshot_signature", "to_snapshot_dict"]
