from __future__ import annotations

from pathlib import Path

import pytest

from hardhat_session.config import SessionConfig, load_config
from hardhat_session.constants import DEFAULT_FORK_BLOCK, HARDHAT_PRIVATE_KEY, HARDHAT_URI
from hardhat_session.exceptions import ValidationError
from hardhat_session.types import ForkSpec

_ENV_VARS = (
    "HARDHAT_NODE_URI",
    "HARDHAT_PRIVATE_KEY",
    "FORK_URL",
    "ALCHEMY_KEY",
    "FORK_BLOCK",
    "RECEIPT_TIMEOUT",
)


@pytest.fixture
def empty_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for name in _ENV_VARS:
        # setenv first so monkeypatch also removes values load_dotenv adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    return env_file


def test_defaults(empty_env: Path) -> None:
    config = load_config(str(empty_env))

    assert config.node_uri == HARDHAT_URI
    assert config.private_key == HARDHAT_PRIVATE_KEY
    assert config.fork_url is None
    assert config.fork_block == DEFAULT_FORK_BLOCK
    assert config.fork_spec() is None


def test_alchemy_key_builds_fork_url(empty_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALCHEMY_KEY", "secret")
    monkeypatch.setenv("FORK_BLOCK", "100")

    config = load_config(str(empty_env))

    assert config.fork_spec() == ForkSpec(
        source_uri="https://eth-mainnet.alchemyapi.io/v2/secret", at_block=100
    )


def test_fork_url_wins_over_alchemy_key(empty_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALCHEMY_KEY", "secret")
    monkeypatch.setenv("FORK_URL", "https://archive.example")

    assert load_config(str(empty_env)).fork_url == "https://archive.example"


def test_values_read_from_env_file(empty_env: Path) -> None:
    empty_env.write_text("HARDHAT_NODE_URI=http://hardhat:8545\nRECEIPT_TIMEOUT=5\n")

    config = load_config(str(empty_env))

    assert config.node_uri == "http://hardhat:8545"
    assert config.receipt_timeout == 5.0


def test_malformed_block_raises(empty_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FORK_BLOCK", "latest")

    with pytest.raises(ValidationError) as excinfo:
        load_config(str(empty_env))
    assert excinfo.value.field == "FORK_BLOCK"


def test_session_config_defaults() -> None:
    config = SessionConfig()

    assert config.gas_limit == 9_500_000
    assert config.gas_price == 8_000_000_000
    assert config.transfer_gas_price == 1_000_000_000
