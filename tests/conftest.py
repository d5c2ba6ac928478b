"""Shared test configuration."""

from __future__ import annotations

import logging

import pytest

from fluxr.config import BoardConfig
from fluxr.store.memory import InMemoryStore


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="Run slow SDK tests"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="Need --run-slow to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def _reset_fluxr_logger():
    yield
    logger = logging.getLogger("fluxr")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def config():
    """Retries without sleeping."""
    return BoardConfig(retry_delay_seconds=0.0)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def product_id(store):
    return store.add_product("acme", "user-1")
