"""Tests for the web3-backed RPC channel."""

from __future__ import annotations

from typing import Any, cast

import pytest
import requests
from web3.providers import BaseProvider

from hardhat_session.exceptions import ProtocolError, TransportError
from hardhat_session.rpc import Web3RpcChannel


class DummyProvider:
    endpoint_uri = "http://node:8545"

    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.requests: list[tuple[str, Any]] = []

    def make_request(self, method: str, params: Any) -> Any:
        self.requests.append((method, params))
        if self._error is not None:
            raise self._error
        return self._response


def _channel(provider: DummyProvider) -> Web3RpcChannel:
    return Web3RpcChannel(cast(BaseProvider, provider))


def test_call_returns_result() -> None:
    provider = DummyProvider({"jsonrpc": "2.0", "id": 1, "result": "0x5"})

    assert _channel(provider).call("evm_snapshot", ()) == "0x5"
    assert provider.requests == [("evm_snapshot", [])]


def test_params_are_positional_list() -> None:
    provider = DummyProvider({"jsonrpc": "2.0", "id": 1, "result": True})

    _channel(provider).call("evm_revert", ("0x1",))

    assert provider.requests == [("evm_revert", ["0x1"])]


def test_false_result_is_returned() -> None:
    provider = DummyProvider({"jsonrpc": "2.0", "id": 1, "result": False})

    assert _channel(provider).call("evm_revert", ["0x7"]) is False


def test_error_object_raises_protocol_error() -> None:
    provider = DummyProvider(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32602, "message": "invalid address", "data": {"x": 1}},
        }
    )

    with pytest.raises(ProtocolError) as excinfo:
        _channel(provider).call("eth_getBalance", ["0x12", "latest"])

    err = excinfo.value
    assert err.message == "invalid address"
    assert err.code == -32602
    assert err.data == {"x": 1}
    assert err.method == "eth_getBalance"


def test_string_error_raises_protocol_error() -> None:
    provider = DummyProvider({"jsonrpc": "2.0", "id": 1, "error": "boom"})

    with pytest.raises(ProtocolError, match="boom"):
        _channel(provider).call("evm_mine", [])


def test_response_without_result_is_protocol_error() -> None:
    provider = DummyProvider({"jsonrpc": "2.0", "id": 1})

    with pytest.raises(ProtocolError):
        _channel(provider).call("evm_mine", [])


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.Timeout("slow"),
        ConnectionResetError("reset"),
    ],
)
def test_network_failures_raise_transport_error(error: Exception) -> None:
    provider = DummyProvider(error=error)

    with pytest.raises(TransportError) as excinfo:
        _channel(provider).call("evm_snapshot", [])

    assert excinfo.value.endpoint == "http://node:8545"
    assert excinfo.value.method == "evm_snapshot"
    assert len(provider.requests) == 1


def test_from_uri_disables_provider_retries() -> None:
    channel = Web3RpcChannel.from_uri("http://localhost:8545", timeout=3.0)

    assert channel.endpoint == "http://localhost:8545"
    assert channel._provider.exception_retry_configuration is None  # type: ignore[attr-defined]
