"""Pytest fixtures for tests that run against a Hardhat node.

Enable with ``pytest_plugins = ["hardhat_session.pytest_plugin"]`` in a
``conftest.py``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from .config import SessionConfig, load_config
from .coordinator import ConnectionCoordinator
from .identity import SigningIdentity

logger = logging.getLogger(__name__)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "specification(contract, function, code): contract requirement covered by a test",
    )


@pytest.fixture(scope="session")
def session_config() -> SessionConfig:
    return load_config()


@pytest.fixture(scope="session")
def coordinator(session_config: SessionConfig) -> Iterator[ConnectionCoordinator]:
    """Connected coordinator, reset to the configured fork when there is one."""

    conn = ConnectionCoordinator.from_config(session_config)
    conn.connect()

    fork = session_config.fork_spec()
    if fork is not None:
        assert conn.hardhat_reset(fork) is True

    yield conn
    conn.disconnect()


@pytest.fixture
def chain_snapshot(coordinator: ConnectionCoordinator) -> Iterator[str]:
    """Roll back every chain change the test makes."""

    snapshot = coordinator.make_snapshot()
    yield snapshot
    coordinator.restore_snapshot(snapshot)


@pytest.fixture
def funded_account(coordinator: ConnectionCoordinator, chain_snapshot: str) -> SigningIdentity:
    return coordinator.make_account_with_balance()
