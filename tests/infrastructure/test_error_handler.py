import logging
from unittest.mock import Mock

from reach.errors import NotFoundError, TransientFetchError, ValidationError
from reach.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity, severity_for
from reach.events.bus import EventBus


def test_handle_error_logs_and_publishes():
    logger = Mock(spec=logging.Logger)
    event_bus = Mock(spec=EventBus)
    handler = ErrorHandler(logger, event_bus)

    error = ValueError("test error")
    handler.handle(error, ErrorSeverity.ERROR)

    logger.error.assert_called()
    event = event_bus.publish.call_args[0][0]
    assert isinstance(event, ErrorOccurredEvent)
    assert event.error == error
    assert event.severity == ErrorSeverity.ERROR


def test_ui_callback_receives_user_message():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))
    callback = Mock()
    handler.register_ui_callback(callback)

    message = handler.handle(TransientFetchError("timeout", status_code=503))

    callback.assert_called_once_with("Server error. Please try again later.", ErrorSeverity.ERROR)
    assert message == "Server error. Please try again later."


def test_warnings_do_not_reach_the_ui():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))
    callback = Mock()
    handler.register_ui_callback(callback)

    handler.handle(ValidationError("bad", {"name": "Customer name is required"}))

    callback.assert_not_called()
    logger.warning.assert_called()


def test_context_is_published():
    bus = EventBus()
    received = []
    bus.subscribe(ErrorOccurredEvent, received.append)
    handler = ErrorHandler(Mock(spec=logging.Logger), bus)

    handler.handle(RuntimeError("x"), context={"owner_id": "c1"})

    assert received[0].context == {"owner_id": "c1"}
    assert received[0].severity == ErrorSeverity.CRITICAL


def test_severity_mapping():
    assert severity_for(ValidationError("x")) is ErrorSeverity.WARNING
    assert severity_for(NotFoundError("x")) is ErrorSeverity.WARNING
    assert severity_for(TransientFetchError("x")) is ErrorSeverity.ERROR
    assert severity_for(RuntimeError("x")) is ErrorSeverity.CRITICAL
