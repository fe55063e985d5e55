"""
Deterministic hashing utilities for the audit chain.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    """Serialize the non-JSON types that appear in audit payloads."""
    if isinstance(obj, Decimal):
        # Normalize so 10.50 and 10.5 hash identically
        return str(obj.normalize())
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """Sorted keys, no whitespace, stable rendering of special types."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def to_json_safe(data: dict) -> dict:
    """Round-trip through the canonical encoder so a payload fits a JSON column."""
    return json.loads(canonicalize_json(data))


def hash_payload(payload: dict) -> str:
    """SHA-256 of the canonical JSON form (64 hex characters)."""
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_audit_entry(
    entity_type: str,
    entity_id: str,
    event_type: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Hash for one audit entry.

    Includes the previous entry's hash, so altering any earlier entry
    breaks every hash after it.
    """
    components = [
        entity_type,
        str(entity_id),
        event_type,
        payload_hash,
        prev_hash or "GENESIS",
    ]
    return hashlib.sha256("|".join(components).encode("utf-8")).hexdigest()
