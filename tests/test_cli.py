"""
Tests for the storelink command-line tool.
"""

import logging
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from storelink.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures root logging; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def no_env_file(tmp_path):
    return ["--env-file", str(tmp_path / "missing.env")]


@pytest.fixture
def sqlite_env(tmp_path):
    return {
        "STORELINK_DBTYPE": "sqlite3",
        "STORELINK_DBNAME": str(tmp_path / "cli.sq3"),
    }


class TestSQLCommands:
    """Test SQL commands against SQLite."""

    def test_sql_ping(self, sqlite_env, no_env_file):
        """Test a reachable backend prints its details."""
        result = runner.invoke(app, ["sql-ping", *no_env_file], env=sqlite_env)

        assert result.exit_code == 0
        assert "sqlite3" in result.output
        assert "SQL connection OK" in result.output

    def test_sql_ping_from_env_file(self, tmp_path):
        """Test settings can come from a .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "STORELINK_DBTYPE=sqlite3\n"
            f"STORELINK_DBNAME={tmp_path / 'file.sq3'}\n"
        )
        with patch.dict("os.environ", {}, clear=True):
            result = runner.invoke(app, ["sql-ping", "--env-file", str(env_file)])

        assert result.exit_code == 0
        assert "SQL connection OK" in result.output

    def test_sql_ping_missing_settings(self, no_env_file):
        """Test typed errors exit with status 1."""
        with patch.dict("os.environ", {}, clear=True):
            result = runner.invoke(app, ["sql-ping", *no_env_file])

        assert result.exit_code == 1
        assert "CONNECTION_ARGS_ERROR" in result.output

    def test_invalid_settings(self, sqlite_env, no_env_file):
        """Test invalid values exit with status 1."""
        env = dict(sqlite_env, STORELINK_DBPORT="not-a-port")
        result = runner.invoke(app, ["sql-ping", *no_env_file], env=env)

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output

    def test_sql_fragment_index(self, sqlite_env, no_env_file):
        """Test index fragment for SQLite."""
        result = runner.invoke(app, ["sql-fragment", "index", *no_env_file], env=sqlite_env)

        assert result.exit_code == 0
        assert "INTEGER PRIMARY KEY AUTOINCREMENT" in result.output

    def test_sql_fragment_datetime(self, sqlite_env, no_env_file):
        """Test datetime fragment with a negative delta."""
        result = runner.invoke(
            app, ["sql-fragment", "datetime", "--delta=-60", *no_env_file], env=sqlite_env
        )

        assert result.exit_code == 0
        assert "(datetime('now', '-60 second'))" in result.output


class TestRedisCommands:
    """Test Redis commands with a mocked client."""

    @patch("storelink.kv.drivers.redis.Redis")
    def test_redis_ping(self, mock_redis, no_env_file):
        """Test a reachable server prints its details."""
        mock_redis.return_value.time.return_value = (1700000000, 5)
        env = {"STORELINK_REDISTYPE": "redis", "STORELINK_REDISHOST": "localhost"}

        result = runner.invoke(app, ["redis-ping", *no_env_file], env=env)

        assert result.exit_code == 0
        assert "1700000000.000005" in result.output
        assert "Redis connection OK" in result.output

    @patch("storelink.kv.drivers.redis.Redis")
    def test_redis_ping_refused(self, mock_redis, no_env_file):
        """Test connection failures exit with status 1."""
        import redis

        mock_redis.return_value.ping.side_effect = redis.exceptions.ConnectionError("refused")
        env = {"STORELINK_REDISTYPE": "redis", "STORELINK_REDISHOST": "localhost"}

        result = runner.invoke(app, ["redis-ping", *no_env_file], env=env)

        assert result.exit_code == 1
        assert "CONNECTION_ERROR" in result.output
