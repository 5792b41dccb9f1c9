"""
tests/test_config.py -- Unit tests for core/config.py (Settings).

Settings is instantiated directly (not through the cached get_settings())
so each test controls its own environment via monkeypatch.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SECRET_KEY", "DEBUG", "TOKEN_LIFETIME_SECONDS", "BCRYPT_ROUNDS", "OPERATION_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir("/")  # keep any developer .env out of these tests


def test_debug_generates_secret_key() -> None:
    settings = Settings(debug=True)
    assert len(settings.secret_key) >= 32


def test_production_requires_secret_key() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False)


def test_short_secret_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(debug=True, secret_key="too-short")


def test_defaults() -> None:
    settings = Settings(secret_key="k" * 32)
    assert settings.token_lifetime_seconds == 86400
    assert settings.operation_timeout_seconds == 100.0
    assert settings.bcrypt_rounds == 12
    assert settings.unify_login_errors is True
    assert settings.database_url.startswith("sqlite:///")


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "e" * 40)
    monkeypatch.setenv("OPERATION_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    settings = Settings()
    assert settings.secret_key == "e" * 40
    assert settings.operation_timeout_seconds == 2.5
    assert settings.bcrypt_rounds == 4


@pytest.mark.parametrize(
    "overrides",
    [
        {"operation_timeout_seconds": 0},
        {"bcrypt_rounds": 3},
        {"token_lifetime_seconds": 10},
        {"database_url": "   "},
    ],
)
def test_out_of_range_values_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(secret_key="k" * 32, **overrides)
