"""Session coordinator keeping client handles in step with node chain state."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from web3 import Web3
from web3.types import ChecksumAddress

from .config import SessionConfig
from .connections import HandleFactory
from .constants import RpcMethod
from .exceptions import (
    NotConnectedError,
    PartialTimeTravelFailure,
    ProtocolError,
    StaleStateAccess,
    TransportError,
    ValidationError,
)
from .identity import SigningIdentity
from .rpc import RpcChannel
from .session import SessionState
from .transactions import TransactionSubmitter
from .types import Address, ForkSpec, SessionPhase, SnapshotHandle, TransactionOutcome, Wei
from .utils import checksum_address, hex_to_int

logger = logging.getLogger(__name__)


class ConnectionCoordinator:
    """Drive a Hardhat node for integration tests.

    The coordinator owns one RPC channel and one :class:`SessionState`. Any
    operation that can invalidate node-side account state (snapshot revert,
    chain reset, identity swap) rebuilds the state under ``self._lock`` in the
    same critical section as the RPC call, so no caller ever receives a handle
    that predates the latest rebuild.
    """

    def __init__(
        self,
        node_uri: str,
        identity: SigningIdentity,
        *,
        config: SessionConfig | None = None,
        factory: HandleFactory | None = None,
        channel: RpcChannel | None = None,
        submitter: TransactionSubmitter | None = None,
    ) -> None:
        self._config = config or SessionConfig(node_uri=node_uri)
        self._node_uri = node_uri
        self._initial_identity = identity
        self._factory = factory or HandleFactory(self._config.request_timeout)
        self._channel = channel
        self._submitter = submitter or TransactionSubmitter(
            gas_limit=self._config.gas_limit,
            gas_price=self._config.gas_price,
            receipt_timeout=self._config.receipt_timeout,
        )
        self._lock = threading.RLock()
        self._state: SessionState | None = None
        self._phase = SessionPhase.FRESH
        self._chain_id: int | None = None
        # Highest state version built so far; survives disconnect.
        self._last_version = -1

    @classmethod
    def from_config(cls, config: SessionConfig, **kwargs: Any) -> ConnectionCoordinator:
        return cls(
            config.node_uri,
            SigningIdentity.from_key(config.private_key),
            config=config,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Check the node answers and build the first session state."""

        with self._lock:
            if self._channel is None:
                self._channel = self._factory.build_channel(self._node_uri)

            self._chain_id = hex_to_int(self._channel.call(RpcMethod.CHAIN_ID, []))
            identity = self._state.identity if self._state else self._initial_identity
            self._install(
                SessionState.build(
                    self._factory, self._node_uri, identity, version=self._last_version + 1
                )
            )
            self._phase = SessionPhase.ACTIVE

        logger.info(
            "Connected to node at %s (chain id %s) as %s",
            self._node_uri,
            self._chain_id,
            identity.address,
        )

    def disconnect(self) -> None:
        with self._lock:
            self._state = None
            self._phase = SessionPhase.FRESH
            self._chain_id = None

    def is_connected(self) -> bool:
        return self._state is not None and self._phase is SessionPhase.ACTIVE

    def __enter__(self) -> ConnectionCoordinator:
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    @property
    def node_uri(self) -> str:
        return self._node_uri

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def version(self) -> int:
        with self._lock:
            return self._require_state().version

    @property
    def chain_id(self) -> int | None:
        return self._chain_id

    # ------------------------------------------------------------------
    # Handle accessors
    # ------------------------------------------------------------------
    def current_state(self) -> SessionState:
        """Return the active state, captured under the session lock."""

        with self._lock:
            state = self._require_state()
            if self._phase is not SessionPhase.ACTIVE:
                raise StaleStateAccess(
                    f"Session state is {self._phase.value}; handles are being rebuilt",
                    version=state.version,
                )
            return state

    def signed_send_handle(self) -> Web3:
        return self.current_state().signed_handle

    def unsigned_send_handle(self) -> Web3:
        return self.current_state().unsigned_handle

    def current_identity(self) -> SigningIdentity:
        return self.current_state().identity

    def current_address(self) -> ChecksumAddress:
        return self.current_state().identity.address

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------
    def get_ether_balance(self, address: Address) -> Wei:
        return hex_to_int(self._call(RpcMethod.GET_BALANCE, [address, "latest"]))

    def get_nonce(self, address: Address) -> int:
        return hex_to_int(self._call(RpcMethod.GET_TRANSACTION_COUNT, [address, "latest"]))

    def get_block_number(self) -> int:
        return hex_to_int(self._call(RpcMethod.BLOCK_NUMBER, []))

    def get_block_timestamp(self, block: int | str = "latest") -> int:
        tag = hex(block) if isinstance(block, int) else block
        result = self._call(RpcMethod.GET_BLOCK_BY_NUMBER, [tag, False])
        if not isinstance(result, Mapping):
            raise ProtocolError(f"Block {block} not found", method=RpcMethod.GET_BLOCK_BY_NUMBER)
        return hex_to_int(result["timestamp"])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def send_ether(self, to_address: Address, amount: Wei) -> TransactionOutcome:
        """Transfer ``amount`` wei from the current identity.

        Failure receipts and insufficient-funds refusals are returned as
        failed outcomes rather than raised.
        """

        if amount < 0:
            raise ValidationError("Amount cannot be negative", field="amount", value=amount)

        state = self.current_state()
        tx = {
            "from": state.identity.address,
            "to": checksum_address(to_address, "to_address"),
            "value": int(amount),
            "gas": self._config.gas_limit,
            "gasPrice": self._config.transfer_gas_price,
        }
        return self._submitter.submit(
            state.signed_handle,
            tx,
            action="send_ether",
            funds_refusal_as_outcome=True,
        )

    def send_signed(self, tx: Mapping[str, Any], *, action: str = "send_signed") -> TransactionOutcome:
        """Sign ``tx`` with the current identity and submit it."""

        state = self.current_state()
        params = _normalise_tx(tx)
        params.setdefault("from", state.identity.address)
        return self._submitter.submit(state.signed_handle, params, action=action)

    def send_unsigned(self, tx: Mapping[str, Any]) -> TransactionOutcome:
        """Submit ``tx`` through the unsigned handle without enabling impersonation."""

        handle = self.unsigned_send_handle()
        return self._submitter.submit(handle, _normalise_tx(tx), action="send_unsigned")

    def make_impersonated_call(self, tx: Mapping[str, Any]) -> TransactionOutcome:
        """Impersonate ``tx["from"]`` and submit ``tx`` unsigned.

        Impersonation is enabled first; the node refuses the unsigned send
        otherwise.
        """

        sender = tx.get("from")
        if not sender:
            raise ValidationError("Impersonated call requires a 'from' address", field="from")

        self.impersonate_account(sender)
        return self.send_unsigned(tx)

    def make_account_with_balance(self, amount: Wei | None = None) -> SigningIdentity:
        """Create a fresh identity funded from the current one.

        The default funding covers two transactions at the configured gas
        ceilings.
        """

        identity = SigningIdentity.generate()
        if amount is None:
            amount = self._config.gas_price * self._config.gas_limit * 2
        self.send_ether(identity.address, amount).raise_for_status()
        return identity

    # ------------------------------------------------------------------
    # Chain control
    # ------------------------------------------------------------------
    def time_travel(self, seconds: int) -> None:
        """Advance the node clock by ``seconds`` and mine a block.

        Session handles are left alone: clock changes do not touch identities
        or nonces.
        """

        self._call(RpcMethod.INCREASE_TIME, [int(seconds)])
        try:
            self._call(RpcMethod.MINE, [])
        except (TransportError, ProtocolError) as exc:
            raise PartialTimeTravelFailure(
                int(seconds), details={"error": exc.message}
            ) from exc
        logger.debug("Advanced node clock by %ss", seconds)

    def impersonate_account(self, address: Address) -> None:
        self._call(RpcMethod.IMPERSONATE_ACCOUNT, [checksum_address(address)])
        logger.debug("Impersonating %s", address)

    def stop_impersonating_account(self, address: Address) -> None:
        self._call(RpcMethod.STOP_IMPERSONATING_ACCOUNT, [checksum_address(address)])
        logger.debug("Stopped impersonating %s", address)

    def make_snapshot(self) -> SnapshotHandle:
        handle = self._call(RpcMethod.SNAPSHOT, [])
        logger.info("Took snapshot %s", handle)
        return handle

    def restore_snapshot(self, handle: SnapshotHandle) -> bool:
        """Revert the node to ``handle`` and rebuild the session handles.

        The rebuild is unconditional: a revert can roll back nonces that the
        previous signed handle has already observed.
        """

        with self._lock:
            self._require_state()
            acknowledged = self._call(RpcMethod.REVERT, [handle])
            self._rebuild()

        logger.info("Reverted to snapshot %s (ack=%s)", handle, acknowledged)
        return bool(acknowledged)

    def hardhat_reset(self, fork_spec: ForkSpec | None = None) -> bool:
        """Reset the node, forking ``fork_spec`` when given, and rebuild handles.

        Returns the node's acknowledgement; callers assert it is ``True``.
        """

        params = [fork_spec.as_reset_params()] if fork_spec is not None else []
        with self._lock:
            self._require_state()
            acknowledged = self._call(RpcMethod.RESET, params)
            self._rebuild()

        if fork_spec is not None:
            logger.info(
                "Reset node to fork of %s at block %s (ack=%s)",
                fork_spec.source_uri,
                fork_spec.at_block,
                acknowledged,
            )
        else:
            logger.info("Reset node to a fresh chain (ack=%s)", acknowledged)
        return bool(acknowledged)

    # ------------------------------------------------------------------
    # Identity swaps
    # ------------------------------------------------------------------
    def with_identity(self, identity: SigningIdentity) -> SessionState:
        """Sign as ``identity`` from now on. No RPC call is made."""

        with self._lock:
            state = self._require_state()
            self._phase = SessionPhase.INVALIDATED
            try:
                self._install(state.with_signed_handle(self._factory, self._node_uri, identity))
            finally:
                self._phase = SessionPhase.ACTIVE
            logger.info("Switched signing identity to %s", identity.address)
            return self._state

    @contextmanager
    def as_identity(self, identity: SigningIdentity) -> Iterator[ConnectionCoordinator]:
        """Temporarily sign as ``identity``, restoring the previous one on exit."""

        previous = self.current_identity()
        self.with_identity(identity)
        try:
            yield self
        finally:
            self.with_identity(previous)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_state(self) -> SessionState:
        if self._state is None:
            raise NotConnectedError("Session is not connected", endpoint=self._node_uri)
        return self._state

    def _require_channel(self) -> RpcChannel:
        if self._channel is None or self._state is None:
            raise NotConnectedError("Session is not connected", endpoint=self._node_uri)
        return self._channel

    def _call(self, method: str, params: list[Any]) -> Any:
        return self._require_channel().call(method, params)

    def _install(self, state: SessionState) -> None:
        self._state = state
        self._last_version = max(self._last_version, state.version)

    def _rebuild(self) -> None:
        # Caller holds self._lock. A failed build leaves the previous state in place.
        state = self._require_state()
        self._phase = SessionPhase.INVALIDATED
        try:
            self._install(
                SessionState.build(
                    self._factory,
                    self._node_uri,
                    state.identity,
                    version=self._last_version + 1,
                )
            )
        finally:
            self._phase = SessionPhase.ACTIVE
        logger.debug("Rebuilt session handles (version %s)", self._last_version)


def _normalise_tx(tx: Mapping[str, Any]) -> dict[str, Any]:
    params = dict(tx)
    for key in ("from", "to"):
        if params.get(key):
            params[key] = checksum_address(params[key], key)
    return params
