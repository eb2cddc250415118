"""Exception hierarchy for the rollcall store layer.

This module defines custom exceptions for the failure modes of the
response cache and the deployment metrics ledger. Invalid domain input
(unknown status, empty label) is not an error: those calls are no-ops.
"""

from typing import Any


class RollcallError(Exception):
    """Base exception for all rollcall errors."""

    code: str = "ROLLCALL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotEnabledError(RollcallError):
    """Store is not configured. Only raised by explicit health checks."""

    code: str = "NOT_ENABLED"


class TransportError(RollcallError):
    """Redis unreachable, command rejected, or transaction aborted."""

    code: str = "TRANSPORT_ERROR"


class MalformedDataError(RollcallError):
    """Stored cache payload or counter value could not be decoded."""

    code: str = "MALFORMED_DATA"


class ConfigurationError(RollcallError):
    """Configuration error (invalid store settings, unknown codec)."""

    code: str = "CONFIGURATION_ERROR"
