from __future__ import annotations

from typing import Any, cast

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3

from dummies import (
    HARDHAT_ADDRESS,
    OTHER_ADDRESS,
    WHALE_ADDRESS,
    DummyChannel,
    DummyFactory,
    DummyHandle,
)
from hardhat_session.constants import ERROR_STRING_SELECTOR, HARDHAT_PRIVATE_KEY
from hardhat_session.coordinator import ConnectionCoordinator
from hardhat_session.exceptions import ValidationError
from hardhat_session.facade import DebugFacade, forwarded_revert_message, revert_message
from hardhat_session.identity import SigningIdentity
from hardhat_session.testing import (
    should_fail,
    should_revert_with_message,
    should_revert_with_unknown_message,
    should_succeed,
)

DEBUG_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
FORWARDED_TOPIC = Web3.keccak(text="Forwarded(address,bytes,uint256,bool,bytes)")


def _error_payload(message: str) -> bytes:
    return ERROR_STRING_SELECTOR + abi_encode(["string"], [message])


def _forwarded_log(success: bool, result_data: bytes, log_index: int = 0) -> dict[str, Any]:
    return {
        "address": DEBUG_ADDRESS,
        "topics": [
            FORWARDED_TOPIC,
            HexBytes(bytes(12) + bytes.fromhex(OTHER_ADDRESS[2:])),
        ],
        "data": HexBytes(
            abi_encode(["bytes", "uint256", "bool", "bytes"], [b"\x12\x34", 0, success, result_data])
        ),
        "logIndex": log_index,
        "transactionIndex": 0,
        "transactionHash": HexBytes(bytes(32)),
        "blockHash": HexBytes(bytes(32)),
        "blockNumber": 42,
    }


@pytest.fixture
def conn() -> ConnectionCoordinator:
    coordinator = ConnectionCoordinator(
        "http://localhost:8545",
        SigningIdentity.from_key(HARDHAT_PRIVATE_KEY),
        factory=DummyFactory(),
        channel=DummyChannel({"hardhat_impersonateAccount": True, "evm_revert": True}),
    )
    coordinator.connect()
    return coordinator


def _signed(conn: ConnectionCoordinator) -> DummyHandle:
    return cast(DummyHandle, conn.signed_send_handle())


class TestRevertMessage:
    def test_success_has_no_message(self) -> None:
        assert revert_message(True, _error_payload("nope")) is None

    def test_error_string_is_decoded(self) -> None:
        assert revert_message(False, _error_payload("Not enough collateral")) == (
            "Not enough collateral"
        )

    def test_hex_input_is_accepted(self) -> None:
        assert revert_message(False, HexBytes(_error_payload("paused")).to_0x_hex()) == "paused"

    def test_raw_bytes_read_as_ascii(self) -> None:
        assert revert_message(False, b"only owner") == "only owner"

    def test_empty_revert_is_empty_message(self) -> None:
        assert revert_message(False, b"") == ""

    def test_truncated_error_payload_falls_back_to_raw(self) -> None:
        message = revert_message(False, ERROR_STRING_SELECTOR + b"\x00\x01")
        assert message is not None
        assert len(message) == 6

    def test_forwarded_event_args(self) -> None:
        event = {"args": {"_success": False, "_resultData": _error_payload("denied")}}

        assert forwarded_revert_message(event) == "denied"
        assert forwarded_revert_message(event["args"]) == "denied"


class TestDebugFacade:
    def test_forward_encodes_call_and_signs(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS.lower())

        outcome = debug.forward(OTHER_ADDRESS, "0x1234", value=3)

        should_succeed(outcome)
        sent = _signed(conn).eth.sent[0]
        selector = "0x" + Web3.keccak(text="forward(address,bytes)").hex()[:8]
        assert sent["data"].startswith(selector)
        assert sent["to"] == DEBUG_ADDRESS
        assert sent["from"] == HARDHAT_ADDRESS
        assert sent["value"] == 3

    def test_transact_as_goes_through_impersonation(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)
        channel = cast(DummyChannel, conn._channel)

        debug.transact_as(WHALE_ADDRESS, "forward", OTHER_ADDRESS, b"")

        assert channel.calls[-1] == ("hardhat_impersonateAccount", [WHALE_ADDRESS])
        assert _signed(conn).eth.sent == []
        unsigned = cast(DummyHandle, conn.unsigned_send_handle())
        assert unsigned.eth.sent[0]["from"] == WHALE_ADDRESS

    def test_decode_forwarded_events(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)
        _signed(conn).eth.receipt_logs = [
            _forwarded_log(True, b""),
            _forwarded_log(False, _error_payload("Only owner"), log_index=1),
        ]

        outcome = debug.forward(OTHER_ADDRESS, b"\x12\x34")
        events = debug.decode_forwarded_events(outcome)

        assert [event["_success"] for event in events] == [True, False]
        assert events[0]["_to"] == OTHER_ADDRESS
        assert forwarded_revert_message(events[0]) is None
        should_revert_with_message("Only owner", events[1])
        should_revert_with_unknown_message(events[1])

    def test_decode_first_event_requires_match(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)

        outcome = debug.forward(OTHER_ADDRESS, b"")

        with pytest.raises(ValidationError):
            debug.decode_first_event(outcome, "Forwarded")

    def test_failed_outcome_is_not_raised(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)
        _signed(conn).eth.receipt_status = 0

        should_fail(debug.forward(OTHER_ADDRESS, b""))

    def test_facade_follows_rebuilt_handles(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)
        before = _signed(conn)

        conn.restore_snapshot("0x1")
        debug.forward(OTHER_ADDRESS, b"")

        assert before.eth.sent == []
        assert len(_signed(conn).eth.sent) == 1

    def test_malformed_contract_address_is_validation_error(
        self, conn: ConnectionCoordinator
    ) -> None:
        with pytest.raises(ValidationError):
            DebugFacade(conn, "0x1234")

    def test_forward_rejects_malformed_target(self, conn: ConnectionCoordinator) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)

        with pytest.raises(ValidationError) as excinfo:
            debug.forward("0x1234", b"")

        assert excinfo.value.field == "to_address"
        assert _signed(conn).eth.sent == []

    def test_block_timestamp(
        self, conn: ConnectionCoordinator, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        debug = DebugFacade(conn, DEBUG_ADDRESS)
        monkeypatch.setattr(debug, "call", lambda name, *args: 1_620_000_000)

        assert debug.block_timestamp() == 1_620_000_000
