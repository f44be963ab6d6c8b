"""
Tests for the redbloom CLI.

Tests the typer-based commands against an in-process fakeredis server.
"""

import importlib

import fakeredis
import pytest
from typer.testing import CliRunner

import redbloom.cli
from redbloom.cli.main import app
from redbloom.core.errors import StorageError

runner = CliRunner()


@pytest.fixture
def fake_connect(monkeypatch, redis_server):
    """Route the CLI's connections to a shared fakeredis server."""

    async def connect(settings=None):
        return fakeredis.FakeAsyncRedis(server=redis_server)

    monkeypatch.setattr("redbloom.cli.main.connect", connect)
    return redis_server


class TestEntryPoint:
    def test_cli_main_is_the_module(self):
        """The console script target redbloom.cli.main:main must resolve."""
        module = importlib.import_module("redbloom.cli.main")

        assert redbloom.cli.main is module
        assert callable(module.main)
        assert module.app is app


class TestVersionCommand:
    def test_version_shows_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "redbloom v" in result.stdout


class TestConfigCommand:
    def test_config_shows_settings(self, monkeypatch):
        monkeypatch.setenv("REDBLOOM_REDIS_URL", "redis://shown:6379/0")
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "redis_url" in result.stdout
        assert "redis://shown:6379/0" in result.stdout


class TestFilterCommands:
    def test_create_add_check(self, fake_connect):
        result = runner.invoke(app, ["create", "users", "-n", "100", "-p", "0.02"])
        assert result.exit_code == 0, result.stdout
        assert "m=815" in result.stdout
        assert "k=6" in result.stdout

        result = runner.invoke(app, ["add", "users", "alice", "carol"])
        assert result.exit_code == 0, result.stdout
        assert "Added 2 value(s)" in result.stdout

        result = runner.invoke(app, ["check", "users", "alice", "bob"])
        assert result.exit_code == 0, result.stdout
        lines = result.stdout.splitlines()
        assert any("alice" in line and "probably" in line for line in lines)
        assert any("bob" in line and "no" in line for line in lines)

    def test_create_uses_configured_defaults(self, fake_connect, monkeypatch):
        monkeypatch.setenv("REDBLOOM_DEFAULT_CAPACITY", "4000")
        monkeypatch.setenv("REDBLOOM_DEFAULT_ERROR_RATE", "0.0000001")
        result = runner.invoke(app, ["create", "defaults"])
        assert result.exit_code == 0, result.stdout
        assert "m=134191" in result.stdout
        assert "k=23" in result.stdout

    def test_create_with_shard_bits(self, fake_connect):
        result = runner.invoke(app, ["create", "small", "-n", "100", "-p", "0.02", "--shard-bits", "512"])
        assert result.exit_code == 0, result.stdout
        assert "2 shard(s)" in result.stdout

        result = runner.invoke(app, ["info", "small"])
        assert result.exit_code == 0, result.stdout
        assert "small:0" in result.stdout
        assert "small:1" in result.stdout
        assert "303" in result.stdout

    def test_create_duplicate_fails(self, fake_connect):
        assert runner.invoke(app, ["create", "dup", "-n", "10", "-p", "0.1"]).exit_code == 0
        result = runner.invoke(app, ["create", "dup", "-n", "10", "-p", "0.1"])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_invalid_error_rate(self, fake_connect):
        result = runner.invoke(app, ["create", "bad", "-n", "10", "-p", "2"])
        assert result.exit_code == 1
        assert "p:" in result.stdout

    def test_add_empty_value(self, fake_connect):
        runner.invoke(app, ["create", "users", "-n", "10", "-p", "0.1"])
        result = runner.invoke(app, ["add", "users", ""])
        assert result.exit_code == 1
        assert "value:" in result.stdout

    def test_check_missing_filter(self, fake_connect):
        result = runner.invoke(app, ["check", "ghost", "x"])
        assert result.exit_code == 1
        assert "does not exist" in result.stdout

    def test_clear(self, fake_connect):
        runner.invoke(app, ["create", "tmp", "-n", "10", "-p", "0.1"])
        result = runner.invoke(app, ["clear", "tmp"], input="y\n")
        assert result.exit_code == 0, result.stdout
        assert "Cleared" in result.stdout

        result = runner.invoke(app, ["info", "tmp"])
        assert result.exit_code == 1

    def test_clear_aborted(self, fake_connect):
        runner.invoke(app, ["create", "keep", "-n", "10", "-p", "0.1"])
        result = runner.invoke(app, ["clear", "keep"], input="n\n")
        assert result.exit_code != 0
        assert runner.invoke(app, ["info", "keep"]).exit_code == 0

    def test_unreachable_redis(self, monkeypatch):
        async def connect(settings=None):
            raise StorageError("connect", "redis://nowhere:6379/0: Connection refused")

        monkeypatch.setattr("redbloom.cli.main.connect", connect)
        result = runner.invoke(app, ["info", "x"])
        assert result.exit_code == 1
        assert "connect failed" in result.stdout
