from reach.errors import (
    CircularDependencyError,
    DomainError,
    InfrastructureError,
    NodeNotFoundError,
    NotFoundError,
    ReachError,
    ResolutionError,
    RowNotFoundError,
    SettingsLoadError,
    SettingsValidationError,
    TransientFetchError,
    ValidationError,
    describe_error,
)


def test_hierarchy():
    assert issubclass(DomainError, ReachError)
    assert issubclass(ValidationError, DomainError)
    assert issubclass(RowNotFoundError, NotFoundError)
    assert issubclass(NodeNotFoundError, NotFoundError)
    assert issubclass(TransientFetchError, InfrastructureError)
    assert issubclass(SettingsLoadError, ReachError)
    assert issubclass(SettingsValidationError, ReachError)
    assert issubclass(CircularDependencyError, ReachError)
    assert issubclass(ResolutionError, ReachError)


def test_transient_errors_are_retryable():
    error = TransientFetchError("down", status_code=502)
    assert error.retryable is True
    assert error.status_code == 502


def test_validation_error_carries_field_errors():
    error = ValidationError("bad", {"lat": "Invalid latitude (must be -90 to 90)"})
    assert error.field_errors == {"lat": "Invalid latitude (must be -90 to 90)"}
    assert ValidationError("bad").field_errors == {}


def test_describe_error():
    assert describe_error(TransientFetchError("x")) == (
        "Unable to connect. Please check your connection and try again."
    )
    assert describe_error(TransientFetchError("x", status_code=500)) == (
        "Server error. Please try again later."
    )
    assert describe_error(RowNotFoundError("gone")) == "The requested item was not found."
    assert "lat: bad" in describe_error(ValidationError("x", {"lat": "bad"}))
    assert describe_error(RuntimeError("")) == "An unexpected error occurred. Please try again."
    assert describe_error(RuntimeError("boom")) == "boom"
