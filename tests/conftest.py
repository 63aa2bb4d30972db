"""Root conftest — shared fixtures and markers."""

from __future__ import annotations

import logging
import os

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "postgres: requires running PostgreSQL container")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("SQLWARDEN_TEST_POSTGRES"):
        return

    skip_pg = pytest.mark.skip(reason="Postgres not available (set SQLWARDEN_TEST_POSTGRES=1)")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep audit files and saved connections out of the real home directory."""
    monkeypatch.setattr("sqlwarden.querylog._LOG_ROOT", tmp_path / "audit")
    monkeypatch.setattr(
        "sqlwarden.connections._CONNECTIONS_FILE", tmp_path / "connections.toml"
    )
    for var in (
        "SQLWARDEN_DB",
        "SQLWARDEN_ALLOW_WRITE",
        "SQLWARDEN_QUERY_TIMEOUT",
        "SQLWARDEN_CHARACTER_LIMIT",
        "SQLWARDEN_MAX_QUERY_LENGTH",
    ):
        monkeypatch.delenv(var, raising=False)
    yield
    # The CLI installs its own stderr handler; don't leak it into other tests.
    logger = logging.getLogger("sqlwarden")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
