import dataclasses

import pytest

from poolkeeper.core.config import (
    DEFAULT_DATABASE_URL,
    REDACTED_URL,
    ConnectionConfig,
    shutdown_timeout_ms,
)
from poolkeeper.core.errors import ConfigurationError


def test_defaults():
    config = ConnectionConfig(url="postgres://valid")
    assert config.max_connections == 20
    assert config.idle_timeout_seconds == 30
    assert config.connect_timeout_seconds == 10
    assert config.statement_timeout_seconds == 30


def test_config_is_immutable():
    config = ConnectionConfig(url="postgres://valid")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.max_connections = 5


@pytest.mark.parametrize("url", ["", "   "])
def test_url_is_required(url):
    with pytest.raises(ConfigurationError, match="url is required"):
        ConnectionConfig(url=url)


@pytest.mark.parametrize("field", ["max_connections", "idle_timeout_seconds", "connect_timeout_seconds"])
def test_non_positive_values_are_rejected(field):
    with pytest.raises(ValueError, match=field):
        ConnectionConfig(url="postgres://valid", **{field: 0})


def test_redacted_url_masks_password():
    config = ConnectionConfig(url="postgresql://app:s3cret@db:5432/blog")
    assert config.redacted_url == "postgresql://app:***@db:5432/blog"


def test_redacted_url_without_password_is_unchanged():
    config = ConnectionConfig(url="postgresql://db:5432/blog")
    assert config.redacted_url == "postgresql://db:5432/blog"


def test_malformed_url_is_rejected():
    with pytest.raises(ConfigurationError, match="not a valid URL"):
        ConnectionConfig(url="postgresql://u:pw@[::1/db")


def test_redacted_url_never_raises():
    config = ConnectionConfig(url="postgres://valid")
    object.__setattr__(config, "url", "postgresql://u:pw@[::1/db")
    assert config.redacted_url == REDACTED_URL


def test_from_env_reads_variables():
    config = ConnectionConfig.from_env({
        "DATABASE_URL": "postgresql://app@db/blog",
        "DB_MAX_CONNECTIONS": "8",
        "DB_IDLE_TIMEOUT": "60",
        "DB_CONNECT_TIMEOUT": "3",
        "DB_STATEMENT_TIMEOUT": "15",
    })
    assert config == ConnectionConfig(
        url="postgresql://app@db/blog",
        max_connections=8,
        idle_timeout_seconds=60,
        connect_timeout_seconds=3,
        statement_timeout_seconds=15,
    )


def test_from_env_falls_back_to_defaults():
    config = ConnectionConfig.from_env({})
    assert config.url == DEFAULT_DATABASE_URL
    assert config.max_connections == 20


def test_from_env_rejects_non_integer():
    with pytest.raises(ConfigurationError, match="DB_MAX_CONNECTIONS"):
        ConnectionConfig.from_env({"DB_MAX_CONNECTIONS": "many"})


def test_shutdown_timeout():
    assert shutdown_timeout_ms({}) == 30000
    assert shutdown_timeout_ms({"DB_SHUTDOWN_TIMEOUT_MS": "500"}) == 500
