"""
Errors for Workshop Coach
==========================

Every error that may cross the HTTP boundary carries the message shown to
the caller and the status code it is reported with. Server-side handlers
turn these into a JSON `{"error": ...}` envelope.
"""


class WorkshopCoachError(Exception):
    """Base error with a user-facing message and HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(WorkshopCoachError):
    """Malformed or missing request fields. Never reaches the provider."""

    status_code = 400


class ConfigurationError(WorkshopCoachError):
    """Server-side credential or provider setting is absent."""

    status_code = 500


class ProviderError(WorkshopCoachError):
    """The LLM call failed or returned an unexpected shape."""

    status_code = 502


class ParseError(WorkshopCoachError):
    """The provider returned text without an extractable JSON object."""

    status_code = 500


class StreamCancelled(Exception):
    """The user aborted a streaming exchange. Not shown as an error."""


def error_from_status(status_code: int, message: str) -> WorkshopCoachError:
    """Rebuild the matching error on the client side of the boundary."""
    if status_code == 400:
        return ValidationError(message)
    if status_code == 502:
        return ProviderError(message)
    return WorkshopCoachError(message, status_code=status_code)
