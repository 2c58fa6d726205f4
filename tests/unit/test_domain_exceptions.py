"""Tests for domain exceptions (error_code, message, details) and their HTTP mapping."""

import pytest

from beatcrest.core.exception_handlers import status_for
from beatcrest.domain.exceptions import (
    BeatCrestException,
    ResourceNotFoundException,
    TenantAlreadyExistsException,
    UserAlreadyExistsException,
    ValidationException,
)


def test_beatcrest_exception_default_error_code() -> None:
    """Base BeatCrestException uses class name as error_code when not provided."""
    exc = BeatCrestException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "BeatCrestException"
    assert exc.details == {}


def test_beatcrest_exception_to_dict() -> None:
    exc = BeatCrestException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("price must be a non-negative number", field="price")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "price"}


def test_validation_exception_without_field() -> None:
    exc = ValidationException("Invalid")
    assert exc.details == {}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("beat", "b-456")
    assert "beat" in exc.message and "b-456" in exc.message
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.details == {"resource_type": "beat", "resource_id": "b-456"}


def test_user_already_exists_names_the_field() -> None:
    exc = UserAlreadyExistsException("email", "alice@example.com")
    assert "email" in exc.message
    assert exc.error_code == "USER_ALREADY_EXISTS"
    assert exc.details == {"field": "email", "value": "alice@example.com"}


def test_tenant_already_exists_exception() -> None:
    exc = TenantAlreadyExistsException("acme")
    assert "acme" in exc.message
    assert exc.error_code == "TENANT_ALREADY_EXISTS"
    assert exc.details == {"name": "acme"}


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ResourceNotFoundException("user", "u1"), 404),
        (UserAlreadyExistsException("username", "alice"), 409),
        (TenantAlreadyExistsException("acme"), 409),
        (ValidationException("bad"), 400),
        (BeatCrestException("other"), 400),
    ],
)
def test_status_mapping_never_5xx(exc: BeatCrestException, status: int) -> None:
    assert status_for(exc) == status


def test_exception_is_raiseable() -> None:
    """All exceptions can be raised and caught as BeatCrestException."""
    with pytest.raises(BeatCrestException) as exc_info:
        raise ValidationException("Bad input", field="x")
    assert exc_info.value.error_code == "VALIDATION_ERROR"
