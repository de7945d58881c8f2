"""Identifier generation and the canonical edge key.

INVARIANT: the edge key is exactly ``f"{source_id}->{target_id}"``. Stored
edges are addressed by this string, so the format must never change.
"""

from __future__ import annotations

import uuid

from notegraph.domain.errors import ValidationError

EDGE_KEY_SEPARATOR = "->"


def new_id() -> str:
    """Return a fresh random identifier (UUID4, canonical string form)."""
    return str(uuid.uuid4())


def make_edge_key(source_id: str, target_id: str) -> str:
    """Build the canonical key for the directed pair ``source -> target``."""
    return f"{source_id}{EDGE_KEY_SEPARATOR}{target_id}"


def parse_edge_key(key: str) -> tuple[str, str]:
    """Split a canonical edge key back into ``(source_id, target_id)``."""
    source_id, sep, target_id = key.partition(EDGE_KEY_SEPARATOR)
    if not sep or not source_id or not target_id:
        raise ValidationError(f"Malformed edge key: {key!r}")
    return source_id, target_id
