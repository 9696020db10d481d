"""JSON-RPC channel used for node control and read-only queries."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import requests
from web3 import HTTPProvider
from web3.providers import BaseProvider
from web3.types import RPCEndpoint

from .exceptions import ProtocolError, TransportError

logger = logging.getLogger(__name__)


class RpcChannel(ABC):
    """Synchronous request/response sender for named JSON-RPC methods."""

    @abstractmethod
    def call(self, method: str, params: Sequence[Any]) -> Any:
        """Send ``method`` with positional ``params`` and return the result.

        Raises:
            TransportError: the request did not reach the node or no answer came back.
            ProtocolError: the node answered with a JSON-RPC error object.
        """


class Web3RpcChannel(RpcChannel):
    """RpcChannel backed by a web3 provider's raw ``make_request``."""

    def __init__(self, provider: BaseProvider, endpoint: str | None = None) -> None:
        self._provider = provider
        self.endpoint = endpoint or getattr(provider, "endpoint_uri", None)

    @classmethod
    def from_uri(cls, uri: str, *, timeout: float) -> Web3RpcChannel:
        provider = HTTPProvider(
            uri,
            request_kwargs={"timeout": timeout},
            exception_retry_configuration=None,
        )
        return cls(provider, endpoint=uri)

    def call(self, method: str, params: Sequence[Any]) -> Any:
        logger.debug("RPC %s %s", method, list(params))

        try:
            response = self._provider.make_request(RPCEndpoint(method), list(params))
        except (requests.exceptions.RequestException, OSError) as exc:
            raise TransportError(
                f"RPC request {method} failed",
                endpoint=self.endpoint,
                method=method,
                details={"error": str(exc)},
            ) from exc

        return _unwrap_response(method, response)


def _unwrap_response(method: str, response: Mapping[str, Any]) -> Any:
    error = response.get("error")
    if error is not None:
        if isinstance(error, Mapping):
            raise ProtocolError(
                str(error.get("message") or f"{method} returned an error"),
                method=method,
                code=error.get("code"),
                data=error.get("data"),
            )
        raise ProtocolError(str(error), method=method)

    if "result" not in response:
        raise ProtocolError(
            f"{method} response carries neither result nor error",
            method=method,
            details={"response": dict(response)},
        )

    return response["result"]
