"""Content-hash change detection.

A record's fingerprint is the SHA-256 hex digest of its semantically
meaningful fields joined with ``|`` in a fixed order.  Missing values hash
as the empty string and booleans as ``"1"``/``"0"``.  Only the fields named
below participate; raw payloads, derived category data and enrichment
annotations can change freely without producing an "updated" decision.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from src.models.run import ChangeType

ARTIST_HASH_FIELDS: tuple[str, ...] = (
    "title",
    "subtitle",
    "country_label",
    "country_value",
    "url",
    "image_url",
)

EVENT_HASH_FIELDS: tuple[str, ...] = (
    "title",
    "subtitle",
    "start_date",
    "end_date",
    "venue_name",
    "categories",
    "url",
    "sold_out",
)


def _value(source: BaseModel | Mapping[str, Any], name: str) -> Any:
    if isinstance(source, BaseModel):
        return getattr(source, name, None)
    return source.get(name)


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def compute_hash(source: BaseModel | Mapping[str, Any], fields: Sequence[str]) -> str:
    """SHA-256 over the ``|``-joined *fields* of *source*."""
    joined = "|".join(_format(_value(source, name)) for name in fields)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def compute_artist_hash(source: BaseModel | Mapping[str, Any]) -> str:
    return compute_hash(source, ARTIST_HASH_FIELDS)


def compute_event_hash(source: BaseModel | Mapping[str, Any]) -> str:
    return compute_hash(source, EVENT_HASH_FIELDS)


def classify(existing_hash: str | None, new_hash: str, exists: bool = True) -> ChangeType:
    """Decide created / updated / unchanged for one incoming record.

    Args:
        existing_hash: Stored hash, or ``None`` (no record, or a stub that
            has never been hashed).
        new_hash: Hash of the incoming fields.
        exists: Whether a stored record was found at all.
    """
    if not exists:
        return ChangeType.CREATED
    if existing_hash != new_hash:
        return ChangeType.UPDATED
    return ChangeType.UNCHANGED


def diff_fields(old: Mapping[str, Any], new: Mapping[str, Any]) -> list[str]:
    """Names of keys in *new* whose value differs from *old*, in *new*'s order."""
    return [key for key, value in new.items() if old.get(key) != value]
