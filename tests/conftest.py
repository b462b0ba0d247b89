"""Pytest hooks and fixtures."""

import os

import pytest
from loguru import logger


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "network: talks to a live RPC endpoint (skipped in CI)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip network tests when running in CI."""
    if os.environ.get("CI") != "true":
        return
    skip = pytest.mark.skip(reason="Requires a live RPC endpoint (skipped in CI)")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
def _loguru_enabled():
    """CLI tests may disable the package logger; restore it for the next test."""
    yield
    logger.enable("batchrelay")
