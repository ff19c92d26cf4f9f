"""Custom exception hierarchy for Reach."""

from __future__ import annotations

from typing import Mapping, Optional


class ReachError(Exception):
    """Base class for all custom errors raised by Reach."""


# --- 3-layer hierarchy ---

class DomainError(ReachError):
    """Base class for domain-level errors."""


class InfrastructureError(ReachError):
    """Base class for infrastructure-level errors."""


class ApplicationError(ReachError):
    """Base class for application-level errors."""


# --- Domain errors ---

class ValidationError(DomainError):
    """Raised when an edit payload carries malformed field values.

    ``field_errors`` maps each offending field to a user-facing message so the
    edit form can show the message next to the input that caused it.
    """

    def __init__(self, message: str, field_errors: Optional[Mapping[str, str]] = None) -> None:
        super().__init__(message)
        self.field_errors: dict[str, str] = dict(field_errors or {})


class NotFoundError(DomainError):
    """Raised when a row or node disappeared server-side between fetches."""


class RowNotFoundError(NotFoundError):
    """Raised when the customer row targeted by an update no longer exists."""


class NodeNotFoundError(NotFoundError):
    """Raised when a hierarchy node cannot be located."""


# --- Infrastructure errors ---

class TransientFetchError(InfrastructureError):
    """Raised when the backend is unreachable or failed; safe to retry."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConnectionPoolExhausted(InfrastructureError):
    """Raised when no connections are available in the pool."""


# --- DI-specific errors ---

class CircularDependencyError(ReachError):
    """Raised when a circular dependency is detected during resolution."""


class ResolutionError(ReachError):
    """Raised when a dependency cannot be resolved."""


# --- Settings ---

class SettingsError(ReachError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


def describe_error(error: BaseException) -> str:
    """Return the message shown to the user for *error*."""

    if isinstance(error, ValidationError):
        if error.field_errors:
            details = "; ".join(f"{k}: {v}" for k, v in sorted(error.field_errors.items()))
            return f"Please check your input and try again ({details})."
        return str(error) or "Please check your input and try again."
    if isinstance(error, NotFoundError):
        return "The requested item was not found."
    if isinstance(error, TransientFetchError):
        if error.status_code is not None and error.status_code >= 500:
            return "Server error. Please try again later."
        return "Unable to connect. Please check your connection and try again."
    return str(error) or "An unexpected error occurred. Please try again."


__all__ = [
    "ApplicationError",
    "CircularDependencyError",
    "ConnectionPoolExhausted",
    "DomainError",
    "InfrastructureError",
    "NodeNotFoundError",
    "NotFoundError",
    "ReachError",
    "ResolutionError",
    "RowNotFoundError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "TransientFetchError",
    "ValidationError",
    "describe_error",
]
