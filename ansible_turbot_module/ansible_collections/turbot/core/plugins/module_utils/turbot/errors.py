"""
Exception types raised by the Turbot client, helpers and runners.

Runners never call `fail_json` directly for these errors. They are raised at
the point of failure and converted into a module failure by the single
handler in `BaseRunner.run()`, so every module reports errors the same way.
"""

import re

NOT_FOUND_PATTERN = re.compile(r"not found", re.IGNORECASE)


class TurbotError(Exception):
    """Base class for all errors surfaced by the Turbot modules."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class TurbotApiError(TurbotError):
    """A transport or GraphQL failure reported by the Turbot API."""

    def __init__(
        self,
        message: str,
        status: int = 0,
        url: str = "",
        errors: list | None = None,
    ):
        super().__init__(
            message, details={"status": status, "url": url, "api_errors": errors}
        )
        self.status = status
        self.url = url
        self.errors = errors or []


class NotFoundError(TurbotApiError):
    """The requested entity does not exist in the workspace."""


class JsonFormatError(TurbotError):
    """A `data` or `metadata` payload is not a valid JSON object."""


class DataConflictError(TurbotError):
    """A field was given different values at top level and inside metadata."""


class InvalidIdentityError(TurbotError):
    """A composite identity string could not be decoded."""


def is_not_found(error) -> bool:
    """
    Checks whether an error, or an error message, represents a missing
    entity. The API reports these as a GraphQL error whose message contains
    "Not Found".
    """
    if isinstance(error, NotFoundError):
        return True
    return bool(NOT_FOUND_PATTERN.search(str(error)))
