"""Error taxonomy shared by the API, services and Temporal activities."""

from typing import List, Optional, Type


class AppError(Exception):
    """Base exception for application errors.

    ``retryable`` tells the extraction workflow whether another activity
    attempt could succeed.
    """

    retryable = True

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """An LLM provider or Temporal call failed."""


class APITimeoutError(APIClientError):
    """An LLM provider call timed out on every attempt."""


class DatabaseError(AppError):
    """A read or write against Postgres failed."""


class ValidationError(AppError):
    """Request or job input is unusable as given."""

    retryable = False


class ConfigurationError(AppError):
    """A required setting such as the provider API key is missing."""

    retryable = False


class NotFoundError(AppError):
    """The record does not exist for the requesting user."""

    retryable = False


class ConflictError(AppError):
    """The request collides with an extraction already pending or running."""

    retryable = False


class ExtractionError(AppError):
    """The model returned an empty or unparseable extraction."""


def _non_retryable(base: Type[AppError]) -> List[str]:
    names = []
    for subclass in base.__subclasses__():
        if not subclass.retryable:
            names.append(subclass.__name__)
        names.extend(_non_retryable(subclass))
    return names


# Temporal activities fail immediately on these error types.
NON_RETRYABLE_ERROR_TYPES = _non_retryable(AppError)
