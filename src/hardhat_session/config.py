"""Configuration container and environment loading for hardhat-session."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import (
    ALCHEMY_MAINNET_URL,
    DEFAULT_FORK_BLOCK,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TRANSFER_GAS_PRICE,
    HARDHAT_PRIVATE_KEY,
    HARDHAT_URI,
)
from .exceptions import ValidationError
from .types import ForkSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """Everything a session needs, read once at construction."""

    node_uri: str = HARDHAT_URI
    private_key: str = HARDHAT_PRIVATE_KEY
    fork_url: str | None = None
    fork_block: int | None = None
    gas_limit: int = DEFAULT_GAS_LIMIT
    gas_price: int = DEFAULT_GAS_PRICE
    transfer_gas_price: int = DEFAULT_TRANSFER_GAS_PRICE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT

    def fork_spec(self) -> ForkSpec | None:
        """Return the fork to reset to, or ``None`` when no upstream is configured."""

        if not self.fork_url:
            return None
        return ForkSpec(source_uri=self.fork_url, at_block=self.fork_block)


def load_config(env_file: str | None = None) -> SessionConfig:
    """Build a :class:`SessionConfig` from ``.env`` and the process environment.

    Recognised variables: ``HARDHAT_NODE_URI``, ``HARDHAT_PRIVATE_KEY``,
    ``FORK_URL``, ``ALCHEMY_KEY`` (used when ``FORK_URL`` is unset),
    ``FORK_BLOCK`` and ``RECEIPT_TIMEOUT``.
    """

    load_dotenv(env_file)

    fork_url = os.getenv("FORK_URL")
    if not fork_url:
        alchemy_key = os.getenv("ALCHEMY_KEY")
        if alchemy_key:
            fork_url = ALCHEMY_MAINNET_URL.format(key=alchemy_key)

    config = SessionConfig(
        node_uri=os.getenv("HARDHAT_NODE_URI", HARDHAT_URI),
        private_key=os.getenv("HARDHAT_PRIVATE_KEY", HARDHAT_PRIVATE_KEY),
        fork_url=fork_url or None,
        fork_block=_int_env("FORK_BLOCK", DEFAULT_FORK_BLOCK),
        receipt_timeout=_float_env("RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
    )
    logger.debug(
        "Loaded session config node=%s fork=%s block=%s",
        config.node_uri,
        "yes" if config.fork_url else "no",
        config.fork_block,
    )
    return config


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer", field=name, value=raw) from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number", field=name, value=raw) from exc
