from __future__ import annotations

from typing import Any


class QuoteError(Exception):
    """Base class for quote workflow errors.

    Each subclass carries a stable ``code`` and the HTTP status the API layer
    maps it to.
    """

    code = "QUOTE_ERROR"
    status_code = 400

    def __init__(self, detail: str, **context: Any):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.detail, "code": self.code}
        payload.update({k: v for k, v in self.context.items() if v is not None})
        return payload


class Unauthenticated(QuoteError):
    code = "UNAUTHENTICATED"
    status_code = 401


class InvalidArgument(QuoteError):
    code = "INVALID_ARGUMENT"
    status_code = 400


class Forbidden(QuoteError):
    code = "FORBIDDEN"
    status_code = 403


class NotFound(QuoteError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidState(QuoteError):
    code = "INVALID_STATE"
    status_code = 400


class InvalidTransition(QuoteError):
    code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(self, from_status: str, to_status: str, detail: str | None = None):
        super().__init__(
            detail or f"Cannot move quote from {from_status} to {to_status}",
            from_status=from_status,
            to_status=to_status,
        )
        self.from_status = from_status
        self.to_status = to_status


class QuoteConflict(QuoteError):
    code = "CONFLICT"
    status_code = 409
