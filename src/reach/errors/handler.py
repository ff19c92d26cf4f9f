import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from reach.errors import (
    NotFoundError,
    TransientFetchError,
    ValidationError,
    describe_error,
)
from reach.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


def severity_for(error: Exception) -> ErrorSeverity:
    """Map an error to the severity used when no explicit one is given."""
    if isinstance(error, (ValidationError, NotFoundError)):
        return ErrorSeverity.WARNING
    if isinstance(error, TransientFetchError):
        return ErrorSeverity.ERROR
    return ErrorSeverity.CRITICAL


class ErrorHandler:
    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(
        self,
        error: Exception,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[dict] = None,
    ) -> str:
        """Log, publish and surface *error*; return the user-facing message."""
        severity = severity or severity_for(error)
        context = context or {}

        log_method = getattr(self._logger, severity.value, self._logger.error)
        log_method("%s: %s", error.__class__.__name__, error, extra={"context": context})

        self._events.publish(ErrorOccurredEvent(
            error=error,
            severity=severity,
            context=context,
        ))

        message = describe_error(error)
        if self._ui_callback and severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._ui_callback(message, severity)
        return message
