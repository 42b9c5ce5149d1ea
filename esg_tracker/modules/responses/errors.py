"""ESG response errors.

Each error says whether the caller should fix their input, re-authenticate,
or try again later. ``NotFound`` never reveals whether a record is absent or
simply belongs to someone else.
"""

from __future__ import annotations


class ESGResponseError(Exception):
    code = "esg_response_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(ESGResponseError):
    code = "invalid_input"
    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class Unauthorized(ESGResponseError):
    code = "unauthorized"
    status_code = 401


class NotFound(ESGResponseError):
    code = "not_found"
    status_code = 404

    def __init__(self, message: str = "ESG response not found") -> None:
        super().__init__(message)


class Conflict(ESGResponseError):
    code = "conflict"
    status_code = 409


class PartialOwnership(ESGResponseError):
    code = "partial_ownership"
    status_code = 403


class StoreUnavailable(ESGResponseError):
    code = "store_unavailable"
    status_code = 503
    retryable = True
