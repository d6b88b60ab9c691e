"""Domain error taxonomy shared by the membership, roster and cascade services.

Every error subclasses ``ValueError`` so callers that only care about "the
request was bad" can keep catching that. The HTTP layer maps ``http_status``
directly.
"""

from __future__ import annotations

from typing import Any


class DomainError(ValueError):
    """Base class for errors surfaced to API callers."""

    code = "domain_error"
    http_status = 400

    def __init__(self, message: str, *, fields: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = fields or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.fields:
            payload["fields"] = self.fields
        return payload


class NotFoundError(DomainError):
    """An entity or join row required by the operation is absent."""

    code = "not_found"
    http_status = 404


class ConflictError(DomainError):
    """A duplicate row was detected on a path without an atomic upsert."""

    code = "conflict"


class ValidationFailed(DomainError):
    """A field is missing or out of range."""

    code = "validation_error"


class DependencyError(DomainError):
    """A join row would reference a season or entity that does not exist."""

    code = "dependency_error"
