"""Tests for configuration loading."""

import pytest

from api.deps import clamp_limit
from chainhook_indexer.config import Config

ENV_VARS = (
    "DATABASE_URL",
    "DB_URL",
    "PORT",
    "HOST",
    "CHAINHOOK_AUTH_TOKEN",
    "EXPECTED_CONTRACT_IDENTIFIER",
    "MAX_PAYLOAD_BYTES",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://indexer@localhost/fundraising")

    config = Config.from_env()

    assert config.db_url == "postgresql://indexer@localhost/fundraising"
    assert config.port == 4001
    assert config.max_payload_bytes == 2 * 1024 * 1024
    assert config.cors_allow_origins == ("*",)
    assert config.chainhook_auth_token is None
    assert config.expected_contract_identifier is None
    assert config.auth_enabled is False
    config.validate()


def test_database_url_required():
    with pytest.raises(ValueError, match="DATABASE_URL"):
        Config.from_env()


def test_db_url_fallback(monkeypatch):
    monkeypatch.setenv("DB_URL", "sqlite://")

    assert Config.from_env().db_url == "sqlite://"


def test_blank_values_mean_unset(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("CHAINHOOK_AUTH_TOKEN", "   ")
    monkeypatch.setenv("EXPECTED_CONTRACT_IDENTIFIER", "")

    config = Config.from_env()

    assert config.chainhook_auth_token is None
    assert config.expected_contract_identifier is None


def test_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CHAINHOOK_AUTH_TOKEN", "s3cret")
    monkeypatch.setenv("EXPECTED_CONTRACT_IDENTIFIER", "SP1.fundraising")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example,")

    config = Config.from_env()

    assert config.port == 8080
    assert config.auth_enabled is True
    assert config.expected_contract_identifier == "SP1.fundraising"
    assert config.cors_allow_origins == ("https://a.example", "https://b.example")


@pytest.mark.parametrize(
    "field,value",
    [
        ("port", 0),
        ("max_payload_bytes", 0),
        ("db_pool_size", -1),
        ("db_pool_timeout_seconds", 0),
    ],
)
def test_validate_rejects(field, value):
    config = Config(db_url="sqlite://", **{field: value})

    with pytest.raises(ValueError):
        config.validate()


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 50),
        ("10", 10),
        ("1000", 100),
        ("0", 50),
        ("-3", 50),
        ("ten", 50),
    ],
)
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw, 50, 100) == expected
