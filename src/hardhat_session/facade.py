"""Thin contract wrappers that borrow the coordinator's current send handles."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import requests
from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import Web3RPCError
from web3.logs import DISCARD

from .abi import DebugContract_abi
from .constants import ERROR_STRING_SELECTOR
from .exceptions import ProtocolError, TransportError, ValidationError
from .types import Address, TransactionOutcome, Wei
from .utils import checksum_address

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .coordinator import ConnectionCoordinator

logger = logging.getLogger(__name__)


class ContractFacade:
    """Call, transact and decode events against one deployed contract.

    No handle or bound contract is kept between calls; each call borrows the
    coordinator's current handle so a snapshot revert never leaves a stale
    binding behind.
    """

    def __init__(
        self,
        coordinator: ConnectionCoordinator,
        address: Address,
        abi: Sequence[Mapping[str, Any]],
    ) -> None:
        self._coordinator = coordinator
        self.address = checksum_address(address)
        self.abi = list(abi)

    def call(self, function_name: str, *args: Any) -> Any:
        contract = self._bind(self._coordinator.unsigned_send_handle())
        try:
            return getattr(contract.functions, function_name)(*args).call()
        except Web3RPCError as exc:
            raise ProtocolError(
                f"Call to {function_name} failed",
                method="eth_call",
                details={"contract": self.address, "error": str(exc)},
            ) from exc
        except (requests.exceptions.RequestException, OSError) as exc:
            raise TransportError(
                f"Call to {function_name} failed",
                method="eth_call",
                details={"contract": self.address, "error": str(exc)},
            ) from exc

    def transact(self, function_name: str, *args: Any, value: Wei = 0) -> TransactionOutcome:
        """Submit ``function_name(*args)`` signed by the current identity."""

        tx = self._build_tx(function_name, args, value)
        return self._coordinator.send_signed(tx, action=function_name)

    def transact_as(
        self, sender: Address, function_name: str, *args: Any, value: Wei = 0
    ) -> TransactionOutcome:
        """Submit ``function_name(*args)`` from ``sender`` through node impersonation."""

        tx = self._build_tx(function_name, args, value)
        tx["from"] = sender
        return self._coordinator.make_impersonated_call(tx)

    def decode_events(self, outcome: TransactionOutcome, event_name: str) -> list[Any]:
        """Return the arguments of every ``event_name`` log in ``outcome``, in order."""

        if outcome.receipt is None:
            return []
        contract = self._bind(self._coordinator.unsigned_send_handle())
        event = getattr(contract.events, event_name)()
        return [entry["args"] for entry in event.process_receipt(outcome.receipt, errors=DISCARD)]

    def decode_first_event(self, outcome: TransactionOutcome, event_name: str) -> Any:
        events = self.decode_events(outcome, event_name)
        if not events:
            raise ValidationError(
                f"No {event_name} event in transaction receipt",
                field="event_name",
                value=event_name,
                details={"transaction_hash": outcome.transaction_hash},
            )
        return events[0]

    def _bind(self, handle: Web3) -> Contract:
        return handle.eth.contract(address=self.address, abi=self.abi)

    def _build_tx(self, function_name: str, args: Sequence[Any], value: Wei) -> dict[str, Any]:
        contract = self._bind(self._coordinator.unsigned_send_handle())
        data = contract.encode_abi(function_name, args=list(args))
        return {"to": self.address, "data": data, "value": int(value)}


class DebugFacade(ContractFacade):
    """Wrapper for the debug contract that forwards calls and reports their results."""

    def __init__(self, coordinator: ConnectionCoordinator, address: Address) -> None:
        super().__init__(coordinator, address, DebugContract_abi)

    def forward(self, to_address: Address, data: str | bytes, value: Wei = 0) -> TransactionOutcome:
        return self.transact(
            "forward", checksum_address(to_address, "to_address"), HexBytes(data), value=value
        )

    def decode_forwarded_events(self, outcome: TransactionOutcome) -> list[Any]:
        return self.decode_events(outcome, "Forwarded")

    def block_timestamp(self) -> int:
        return int(self.call("blockTimestamp"))


def revert_message(success: bool, result_data: bytes | str) -> str | None:
    """Return the revert reason carried by ``result_data``, or ``None`` on success.

    ``Error(string)`` payloads are ABI-decoded; anything else is read as ASCII.
    An empty reason means the call reverted without a message.
    """

    if success:
        return None

    data = bytes(HexBytes(result_data))
    if data[:4] == ERROR_STRING_SELECTOR:
        try:
            (message,) = abi_decode(["string"], data[4:])
            return str(message)
        except DecodingError:
            logger.debug("Malformed Error(string) payload; falling back to raw bytes")

    return data.decode("ascii", errors="replace")


def forwarded_revert_message(event: Mapping[str, Any]) -> str | None:
    """Revert reason of a decoded ``Forwarded`` event (or its ``args``)."""

    args = event.get("args", event)
    return revert_message(bool(args["_success"]), args["_resultData"])
