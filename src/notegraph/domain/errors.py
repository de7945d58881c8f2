"""Domain error taxonomy.

Every failure raised by the graph core is a :class:`DomainError` carrying an
:class:`ErrorKind`. Callers classify errors by kind, not by concrete class;
the service layer maps kinds onto ``ServiceError`` codes.

Loader and repository failures surface as ``InternalError`` (or
``NotFoundError`` for missing rows) and propagate unchanged.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Classification shared by all domain errors."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class DomainError(Exception):
    """Base class for typed domain failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}


class ValidationError(DomainError):
    """Malformed input, self-loop, out-of-range value, or unknown type."""

    kind = ErrorKind.VALIDATION


class QuotaExceededError(ValidationError):
    """A configured maximum (nodes, edges, connections, tags) was reached."""


class ConflictError(DomainError):
    """Duplicate node or edge, or an optimistic-version mismatch."""

    kind = ErrorKind.CONFLICT


class NotFoundError(DomainError):
    """Missing node, edge, path, or graph."""

    kind = ErrorKind.NOT_FOUND


class InternalError(DomainError):
    """Collaborator (loader, storage) failure."""

    kind = ErrorKind.INTERNAL
