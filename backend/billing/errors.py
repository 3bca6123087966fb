# Overview: Error types surfaced to API callers, mapped to HTTP status codes by the app factory.

from __future__ import annotations

from typing import Any


class BillingError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BillingError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(BillingError):
    """
    404-level missing entity.

    Also used for entities that exist but belong to another shop, so the
    response never reveals whether a foreign id is real.
    """
    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(BillingError):
    """409-level business rule conflict (e.g., invoice already paid)."""
    status_code = 409


class AuthenticationError(BillingError):
    """401-level credential problem."""
    status_code = 401
