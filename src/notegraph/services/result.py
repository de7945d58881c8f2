"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI and any future interface consume this type; domain errors never
cross the service boundary as exceptions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from notegraph.domain.errors import DomainError, ErrorKind

# Error codes carried by ServiceError.code.
VALIDATION = "VALIDATION"
CONFLICT = "CONFLICT"
NOT_FOUND = "NOT_FOUND"
INTERNAL = "INTERNAL"
NO_PATH = "NO_PATH"
VERSION_CONFLICT = "VERSION_CONFLICT"

_CODES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: VALIDATION,
    ErrorKind.CONFLICT: CONFLICT,
    ErrorKind.NOT_FOUND: NOT_FOUND,
    ErrorKind.INTERNAL: INTERNAL,
}


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"add_node"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (graph version, paging, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None


def failure(
    op: str,
    exc: DomainError,
    *,
    code: str | None = None,
    warnings: list[str] | None = None,
) -> ServiceResult:
    """Convert a domain error into a failed result, keeping its detail."""
    return ServiceResult(
        ok=False,
        op=op,
        warnings=warnings or [],
        error=ServiceError(
            code=code or _CODES.get(exc.kind, INTERNAL),
            message=exc.message,
            detail=dict(exc.detail or {}),
        ),
    )
