"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from beatcrest.core.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.license_prefix == "BC"
    assert settings.default_page_size == 20
    assert settings.user_search_limit == 20
    assert settings.firestore_configured is False


def test_license_prefix_must_be_uppercase_alphanumeric() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, license_prefix="bc")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, license_prefix="TOO-LONG-PREFIX")


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_page_size=0)


def test_unknown_exporter_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, telemetry_exporter="jaeger")


def test_firestore_configured_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT_PATH", "/tmp/key.json")
    assert Settings(_env_file=None).firestore_configured is True
