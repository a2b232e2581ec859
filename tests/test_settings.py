"""
Tests for `services/settings.py` and `services/container.py`.

Covers contract rules:
- Settings come from environment variables with documented defaults.
- Invalid values fail fast with ConfigurationError.
- STORE_BACKEND=memory wires every service over one in-memory store.
"""

from __future__ import annotations

import os
from decimal import Decimal

import pytest

from domain.errors import ConfigurationError
from services.container import build_services
from services.settings import Settings

ENV_VARS = (
    "COMMISSION_RATE",
    "JWT_SECRET",
    "JWT_EXPIRES_HOURS",
    "BCRYPT_ROUNDS",
    "STORE_BACKEND",
    "CORS_ORIGINS",
    "MAX_PAGE_SIZE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # An empty .env so a developer's local file is not picked up
    env_file = tmp_path / ".env"
    env_file.write_text("")
    yield env_file
    # load_dotenv writes straight into os.environ
    for name in ENV_VARS:
        os.environ.pop(name, None)


def test_defaults(clean_env) -> None:
    settings = Settings.from_env(clean_env)

    assert settings.default_commission_rate == Decimal("0.10")
    assert settings.jwt_expires_in == "24h"
    assert settings.store_backend == "supabase"
    assert settings.cors_origins == ["*"]
    assert settings.max_page_size == 100


def test_values_from_environment(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("COMMISSION_RATE", "0.05")
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("STORE_BACKEND", "MEMORY")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    settings = Settings.from_env(clean_env)

    assert settings.default_commission_rate == Decimal("0.05")
    assert settings.require_jwt_secret() == "from-env"
    assert settings.store_backend == "memory"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_values_from_env_file(clean_env) -> None:
    clean_env.write_text("COMMISSION_RATE=0.2\nMAX_PAGE_SIZE=25\n")

    settings = Settings.from_env(clean_env)

    assert settings.default_commission_rate == Decimal("0.2")
    assert settings.max_page_size == 25


@pytest.mark.parametrize(
    "name, value",
    [
        ("COMMISSION_RATE", "1.5"),
        ("COMMISSION_RATE", "lots"),
        ("COMMISSION_RATE", "0.12345"),
        ("STORE_BACKEND", "sqlite"),
        ("BCRYPT_ROUNDS", "2"),
        ("MAX_PAGE_SIZE", "zero"),
    ],
)
def test_invalid_settings_fail_fast(clean_env, monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        Settings.from_env(clean_env)


def test_missing_jwt_secret() -> None:
    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        Settings().require_jwt_secret()


def test_memory_backend_shares_one_store() -> None:
    services = build_services(Settings(store_backend="memory", bcrypt_rounds=4))

    assert services.lands.get_land_plot_statistics().total_plots == 0
    assert services.transactions.default_commission_rate == Decimal("0.10")
