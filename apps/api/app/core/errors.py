"""
Domain error taxonomy.

Services raise these; main.py maps them onto the error envelope
(error, message, request_id, details) with 404 / 400 / 409.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str, *, error: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        if error:
            self.error = error
        self.details: Dict[str, Any] = dict(details or {})


class NotFoundError(DomainError):
    status_code = 404
    error = "not_found"


class ValidationError(DomainError):
    status_code = 400
    error = "validation_error"


class ConflictError(DomainError):
    status_code = 409
    error = "conflict"


class TransactionError(ConflictError):
    """A multi-record unit of work failed and was rolled back; safe to retry."""

    error = "transaction_failed"


def not_found(kind: str, ident: Any) -> NotFoundError:
    return NotFoundError(f"{kind} not found", details={f"{kind}_id": ident})
