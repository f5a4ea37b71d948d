"""Tests for settings and runtime information."""

import pytest

from pipeline_library.exceptions import ConfigurationError
from pipeline_library.runtime import ExecutionMode, RuntimeInfo
from pipeline_library.settings import DatabaseDriver, Settings, settings
from pipeline_library.utils.logger import logger, setup_logging


def test_runtime_from_settings():
    runtime = RuntimeInfo.from_settings(Settings(execution_mode="slave", host="0.0.0.0", port=9))

    assert runtime.execution_mode is ExecutionMode.SLAVE
    assert runtime.is_slave
    assert runtime.base_http_url == "http://0.0.0.0:9"


def test_runtime_unknown_mode():
    with pytest.raises(ConfigurationError, match="Unknown execution mode 'PRIMARY'"):
        RuntimeInfo.from_settings(Settings(execution_mode="PRIMARY"))


def test_default_runtime_is_standalone():
    assert not RuntimeInfo().is_slave


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PIPELINE_LIBRARY_EXECUTION_MODE", "CLUSTER")
    monkeypatch.setenv("PIPELINE_LIBRARY_DEFAULT_MEMORY_LIMIT_MB", "2048")

    config = Settings()

    assert config.execution_mode == "CLUSTER"
    assert config.default_memory_limit_mb == 2048


def test_database_url():
    assert Settings(database_name="lib").database_url == "sqlite+aiosqlite:///lib.db"
    postgres = Settings(
        database_driver=DatabaseDriver.POSTGRESQL,
        database_username="u",
        database_password="p",
        database_host="db",
        database_port=5433,
        database_name="lib",
    )
    assert postgres.database_url == "postgresql+asyncpg://u:p@db:5433/lib"


def test_settings_from_toml_files(tmp_path, monkeypatch):
    (tmp_path / "settings.toml").write_text('execution_mode = "SLAVE"\nport = 9999\n')
    (tmp_path / "settings.custom.toml").write_text("port = 9100\n")
    monkeypatch.chdir(tmp_path)

    config = Settings()

    assert config.execution_mode == "SLAVE"
    assert config.port == 9100
    assert RuntimeInfo.from_settings(config).is_slave


def test_environment_overrides_toml(tmp_path, monkeypatch):
    (tmp_path / "settings.toml").write_text("port = 9999\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PIPELINE_LIBRARY_PORT", "7000")

    assert Settings().port == 7000


def test_log_records_carry_execution_mode():
    messages: list[str] = []
    setup_logging(Settings(execution_mode="slave"))
    sink_id = logger.add(messages.append, format="{extra[mode]} {message}")
    try:
        logger.info("ready")
    finally:
        logger.remove(sink_id)
        setup_logging(settings)

    assert [message.strip() for message in messages] == ["SLAVE ready"]
