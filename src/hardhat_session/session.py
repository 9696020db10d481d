"""Versioned bundle of identity and send handles."""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from .connections import HandleFactory
from .identity import SigningIdentity


@dataclass(frozen=True)
class SessionState:
    """Identity plus the handles derived from it and the node URI.

    States are replaced wholesale whenever node-side chain state is
    invalidated; ``version`` increases with every replacement.
    """

    identity: SigningIdentity
    unsigned_handle: Web3
    signed_handle: Web3
    version: int = 0

    @classmethod
    def build(
        cls,
        factory: HandleFactory,
        node_uri: str,
        identity: SigningIdentity,
        version: int = 0,
    ) -> SessionState:
        return cls(
            identity=identity,
            unsigned_handle=factory.build_unsigned(node_uri),
            signed_handle=factory.build_signed(node_uri, identity),
            version=version,
        )

    def with_signed_handle(
        self, factory: HandleFactory, node_uri: str, identity: SigningIdentity
    ) -> SessionState:
        """Return a successor state signing as ``identity``.

        The unsigned handle carries no identity, so it is reused.
        """

        return SessionState(
            identity=identity,
            unsigned_handle=self.unsigned_handle,
            signed_handle=factory.build_signed(node_uri, identity),
            version=self.version + 1,
        )
