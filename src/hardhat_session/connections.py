"""Construction of web3 send handles and the raw RPC channel."""

from __future__ import annotations

import logging

from eth_account.signers.local import LocalAccount
from web3 import HTTPProvider, Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .constants import DEFAULT_REQUEST_TIMEOUT
from .identity import SigningIdentity
from .rpc import RpcChannel, Web3RpcChannel

logger = logging.getLogger(__name__)


class HandleFactory:
    """Build fresh web3 handles bound to a node URI.

    Every call returns a new object so nothing cached by one handle (nonces,
    middleware state) survives into the next.
    """

    def __init__(self, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self.request_timeout = request_timeout

    def build_channel(self, node_uri: str) -> RpcChannel:
        return Web3RpcChannel.from_uri(node_uri, timeout=self.request_timeout)

    def build_unsigned(self, node_uri: str) -> Web3:
        logger.debug("Building unsigned handle for %s", node_uri)
        return self._build_web3(node_uri)

    def build_signed(self, node_uri: str, identity: SigningIdentity) -> Web3:
        logger.debug("Building signed handle for %s as %s", node_uri, identity.address)
        web3 = self._build_web3(node_uri)
        self._apply_account_middleware(web3, identity.account)
        return web3

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _build_web3(self, node_uri: str) -> Web3:
        provider = HTTPProvider(
            node_uri,
            request_kwargs={"timeout": self.request_timeout},
            exception_retry_configuration=None,
        )
        return Web3(provider)

    def _apply_account_middleware(self, web3: Web3, account: LocalAccount) -> None:
        web3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(account))  # type: ignore[arg-type]
        web3.eth.default_account = account.address
