"""Transaction submission and receipt handling."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3RPCError

from .constants import DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE, DEFAULT_RECEIPT_TIMEOUT
from .exceptions import ProtocolError, ReceiptTimeout, TransactionRejected, TransportError
from .types import TransactionOutcome

logger = logging.getLogger(__name__)

# Hardhat reports a sender without the balance for value plus gas with this code.
INSUFFICIENT_FUNDS_CODE = -32003


class TransactionSubmitter:
    """Submit prepared transactions through a borrowed web3 handle and wait for receipts."""

    def __init__(
        self,
        *,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        gas_price: int = DEFAULT_GAS_PRICE,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        self.gas_limit = gas_limit
        self.gas_price = gas_price
        self.receipt_timeout = receipt_timeout

    def submit(
        self,
        handle: Web3,
        tx: Mapping[str, Any],
        *,
        action: str,
        funds_refusal_as_outcome: bool = False,
    ) -> TransactionOutcome:
        """Send ``tx`` and block until it is mined.

        Node refusals raise :class:`ProtocolError`. With
        ``funds_refusal_as_outcome`` set, a refusal for lack of funds comes
        back as a failed outcome instead. A refusal for a transaction the node
        mined anyway (Hardhat reports reverts this way) is resolved through its
        receipt.
        """

        params: dict[str, Any] = dict(tx)
        params.setdefault("gas", self.gas_limit)
        if "maxFeePerGas" not in params:
            params.setdefault("gasPrice", self.gas_price)

        logger.info("Dispatching %s from %s", action, params.get("from"))

        try:
            tx_hash = handle.eth.send_transaction(params)  # type: ignore[arg-type]
        except Web3RPCError as exc:
            mined_hash = _mined_hash_from_error(exc)
            if mined_hash is not None:
                logger.info("Node reported %s reverted in %s", action, mined_hash)
                return self._wait(handle, HexBytes(mined_hash), action)

            reason = _rpc_error_message(exc)
            if funds_refusal_as_outcome and _is_insufficient_funds(exc):
                logger.warning("Node refused %s: %s", action, reason)
                return TransactionOutcome.rejected(
                    TransactionRejected(
                        f"Node refused transaction for {action}",
                        reason=reason,
                        details={"tx": _printable(params)},
                    )
                )
            raise ProtocolError(
                reason,
                method="eth_sendTransaction",
                code=_rpc_error_code(exc),
                details={"action": action, "tx": _printable(params)},
            ) from exc
        except (requests.exceptions.RequestException, OSError) as exc:
            raise TransportError(
                f"Failed to submit transaction for {action}",
                method="eth_sendTransaction",
                details={"error": str(exc)},
            ) from exc

        return self._wait(handle, HexBytes(tx_hash), action)

    def _wait(self, handle: Web3, tx_hash: HexBytes, action: str) -> TransactionOutcome:
        tx_hex = tx_hash.to_0x_hex()
        logger.info("Transaction sent for action=%s hash=%s", action, tx_hex)

        try:
            receipt = handle.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted as exc:
            raise ReceiptTimeout(tx_hex, self.receipt_timeout) from exc
        except (requests.exceptions.RequestException, OSError) as exc:
            raise TransportError(
                f"Failed to fetch receipt for {action}",
                method="eth_getTransactionReceipt",
                details={"tx_hash": tx_hex, "error": str(exc)},
            ) from exc

        outcome = TransactionOutcome.from_receipt(receipt)
        if outcome.succeeded:
            logger.info(
                "Transaction confirmed for action=%s hash=%s block=%s",
                action,
                tx_hex,
                outcome.block_number,
            )
        else:
            logger.warning(
                "Transaction failed for action=%s hash=%s block=%s",
                action,
                tx_hex,
                outcome.block_number,
            )
        return outcome


def _rpc_error(exc: Web3RPCError) -> Mapping[str, Any]:
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, Mapping):
        error = response.get("error")
        if isinstance(error, Mapping):
            return error
    return {}


def _rpc_error_message(exc: Web3RPCError) -> str:
    return str(_rpc_error(exc).get("message") or exc)


def _rpc_error_code(exc: Web3RPCError) -> int | None:
    return _rpc_error(exc).get("code")


def _is_insufficient_funds(exc: Web3RPCError) -> bool:
    if _rpc_error_code(exc) == INSUFFICIENT_FUNDS_CODE:
        return True
    message = _rpc_error_message(exc).lower()
    return "enough funds" in message or "insufficient funds" in message


def _mined_hash_from_error(exc: Web3RPCError) -> str | None:
    data = _rpc_error(exc).get("data")
    if isinstance(data, Mapping):
        tx_hash = data.get("txHash")
        if isinstance(tx_hash, str) and tx_hash:
            return tx_hash
    return None


def _printable(params: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: value.hex() if isinstance(value, bytes | bytearray) else value
        for key, value in params.items()
    }
