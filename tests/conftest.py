"""
Pytest configuration for redbloom tests.

Provides an in-process Redis (fakeredis) and settings isolation.
"""

import fakeredis
import pytest

from redbloom.core.config import reset_settings


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Give every test fresh settings.

    Runs from an empty directory (and home) so no stray redbloom.yaml or
    .env is read, and drops any REDBLOOM_* variables from the shell.
    """
    import os

    for key in list(os.environ):
        if key.startswith("REDBLOOM_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("REDBLOOM_ENVIRONMENT", "test")

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def redis_server():
    """Shared fakeredis server, for tests that need several clients."""
    return fakeredis.FakeServer()


@pytest.fixture
async def redis_client(redis_server):
    """Async Redis client backed by fakeredis."""
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    yield client
    await client.flushall()
    await client.aclose()
