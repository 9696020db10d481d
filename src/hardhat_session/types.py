"""Type definitions and data models for hardhat-session."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hexbytes import HexBytes

from .exceptions import TransactionRejected

SnapshotHandle = str  # Opaque id issued by evm_snapshot, consumed by evm_revert
Address = str  # Ethereum address
Wei = int


class TransactionStatus(Enum):
    """Execution status reported by a transaction receipt."""

    SUCCESS = "success"
    FAILURE = "failure"


class SessionPhase(Enum):
    """Lifecycle of the coordinator's session state."""

    FRESH = "fresh"
    ACTIVE = "active"
    INVALIDATED = "invalidated"


@dataclass(frozen=True)
class ForkSpec:
    """Upstream chain and block height to reset the local node to."""

    source_uri: str
    at_block: int | None = None

    def as_reset_params(self) -> dict[str, Any]:
        """Return the ``hardhat_reset`` parameter object."""

        forking: dict[str, Any] = {"jsonRpcUrl": self.source_uri}
        if self.at_block is not None:
            forking["blockNumber"] = int(self.at_block)
        return {"forking": forking}


@dataclass
class TransactionOutcome:
    """Result of a state-mutating call.

    A failed outcome is a value, not an exception: inspect ``status`` or call
    :meth:`raise_for_status` when strict success is required.
    """

    status: TransactionStatus
    logs: list[Any] = field(default_factory=list)
    transaction_hash: str | None = None
    block_number: int | None = None
    receipt: Mapping[str, Any] | None = None
    rejection: TransactionRejected | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is TransactionStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status is TransactionStatus.FAILURE

    def raise_for_status(self) -> TransactionOutcome:
        """Raise the carried :class:`TransactionRejected` for failed outcomes."""

        if self.failed:
            raise self.rejection or TransactionRejected(
                "Transaction failed", transaction_hash=self.transaction_hash
            )
        return self

    @classmethod
    def from_receipt(cls, receipt: Mapping[str, Any]) -> TransactionOutcome:
        """Build an outcome from a web3 transaction receipt."""

        tx_hash = _hash_to_hex(receipt.get("transactionHash"))
        block_number = receipt.get("blockNumber")
        logs: Sequence[Any] = receipt.get("logs") or []

        if receipt.get("status", 0) == 1:
            return cls(
                status=TransactionStatus.SUCCESS,
                logs=list(logs),
                transaction_hash=tx_hash,
                block_number=block_number,
                receipt=receipt,
            )

        rejection = TransactionRejected(
            "Transaction mined with failure status",
            transaction_hash=tx_hash,
            receipt=receipt,
            details={"block_number": block_number},
        )
        return cls(
            status=TransactionStatus.FAILURE,
            logs=list(logs),
            transaction_hash=tx_hash,
            block_number=block_number,
            receipt=receipt,
            rejection=rejection,
        )

    @classmethod
    def rejected(cls, error: TransactionRejected) -> TransactionOutcome:
        """Build a failed outcome for a transaction the node refused outright."""

        return cls(
            status=TransactionStatus.FAILURE,
            transaction_hash=error.transaction_hash,
            rejection=error,
        )


def _hash_to_hex(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return HexBytes(value).to_0x_hex()
