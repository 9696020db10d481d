"""Exception hierarchy for hardhat-session."""

from __future__ import annotations

from typing import Any


class SessionError(Exception):
    """Base exception for all session errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportError(SessionError):
    """Raised when the node cannot be reached or the connection fails."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        method: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.method = method


class ProtocolError(SessionError):
    """Raised when the node answers a request with a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        code: int | None = None,
        data: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.code = code
        self.data = data


class TransactionRejected(SessionError):
    """A transaction the node refused to execute or mined with a failure status.

    Instances travel on :class:`~hardhat_session.types.TransactionOutcome`
    so tests can assert on deliberate failures; they are raised only through
    ``TransactionOutcome.raise_for_status``.
    """

    def __init__(
        self,
        message: str,
        transaction_hash: str | None = None,
        receipt: Any | None = None,
        reason: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.transaction_hash = transaction_hash
        self.receipt = receipt
        self.reason = reason


class PartialTimeTravelFailure(SessionError):
    """Raised when the clock advanced but the follow-up block was not mined."""

    def __init__(self, seconds: int, details: dict | None = None):
        super().__init__(
            f"Simulated time advanced by {seconds}s but no block was mined",
            details,
        )
        self.seconds = seconds


class StaleStateAccess(SessionError):
    """Raised when a send handle is requested while the session is being rebuilt."""

    def __init__(self, message: str, version: int | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.version = version


class ReceiptTimeout(SessionError):
    """Raised when a submitted transaction is not mined within the receipt timeout."""

    def __init__(self, transaction_hash: str, timeout: float, details: dict | None = None):
        super().__init__(
            f"Transaction {transaction_hash} not mined within {timeout}s",
            details,
        )
        self.transaction_hash = transaction_hash
        self.timeout = timeout


class ValidationError(SessionError):
    """Raised when local input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class NotConnectedError(SessionError):
    """Raised when an operation needs a connected session and there is none."""

    def __init__(self, message: str, endpoint: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.endpoint = endpoint
