"""hardhat-session - Stateful Hardhat node client for contract integration tests.

The :class:`ConnectionCoordinator` keeps a signing identity and its web3 send
handles consistent with node-side chain state across snapshots, reverts,
fork resets, impersonation and time travel.
"""

from .config import SessionConfig, load_config
from .coordinator import ConnectionCoordinator
from .exceptions import (
    NotConnectedError,
    PartialTimeTravelFailure,
    ProtocolError,
    ReceiptTimeout,
    SessionError,
    StaleStateAccess,
    TransactionRejected,
    TransportError,
    ValidationError,
)
from .facade import ContractFacade, DebugFacade, forwarded_revert_message, revert_message
from .identity import SigningIdentity
from .rpc import RpcChannel, Web3RpcChannel
from .session import SessionState
from .types import (
    Address,
    ForkSpec,
    SessionPhase,
    SnapshotHandle,
    TransactionOutcome,
    TransactionStatus,
    Wei,
)

__version__ = "0.1.0"

__all__ = [
    # Session
    "ConnectionCoordinator",
    "SessionState",
    "SigningIdentity",
    "SessionConfig",
    "load_config",
    "RpcChannel",
    "Web3RpcChannel",
    # Contracts
    "ContractFacade",
    "DebugFacade",
    "revert_message",
    "forwarded_revert_message",
    # Types
    "ForkSpec",
    "SessionPhase",
    "SnapshotHandle",
    "TransactionOutcome",
    "TransactionStatus",
    "Address",
    "Wei",
    # Exceptions
    "SessionError",
    "TransportError",
    "ProtocolError",
    "TransactionRejected",
    "PartialTimeTravelFailure",
    "StaleStateAccess",
    "ReceiptTimeout",
    "ValidationError",
    "NotConnectedError",
]
