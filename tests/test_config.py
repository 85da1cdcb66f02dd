"""Tests for settings resolution."""

import pytest

from coopledger.config import Settings


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))

    settings = Settings.from_env({})

    assert settings.database_url == f"sqlite:///{tmp_path / '.coopledger' / 'ledger.db'}"
    assert settings.lookup_strategy == "union"
    assert settings.pool_size == 5
    assert settings.pool_timeout == 30.0
    assert settings.log_level == "WARNING"


def test_database_url_precedence():
    env = {"COOPLEDGER_DATABASE_URL": "postgresql://ledger@db/coop", "COOPLEDGER_DB_PATH": "/tmp/x.db"}

    assert Settings.from_env(env).database_url == "postgresql://ledger@db/coop"
    assert Settings.from_env({"COOPLEDGER_DB_PATH": "/tmp/x.db"}).database_url == "sqlite:////tmp/x.db"
    assert Settings.from_env(env, database_path="/tmp/y.db").database_url == "sqlite:////tmp/y.db"


def test_lookup_strategy_and_pool():
    settings = Settings.from_env(
        {
            "COOPLEDGER_DB_PATH": "/tmp/x.db",
            "COOPLEDGER_LOOKUP_STRATEGY": "Sequential",
            "COOPLEDGER_POOL_SIZE": "10",
            "COOPLEDGER_POOL_TIMEOUT": "2.5",
            "COOPLEDGER_LOG_LEVEL": "debug",
        }
    )

    assert settings.lookup_strategy == "sequential"
    assert settings.pool_size == 10
    assert settings.pool_timeout == 2.5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"COOPLEDGER_LOOKUP_STRATEGY": "parallel"},
        {"COOPLEDGER_POOL_SIZE": "many"},
        {"COOPLEDGER_POOL_SIZE": "0"},
        {"COOPLEDGER_POOL_TIMEOUT": "-1"},
    ],
)
def test_invalid_settings(env):
    with pytest.raises(ValueError):
        Settings.from_env({"COOPLEDGER_DB_PATH": "/tmp/x.db", **env})
