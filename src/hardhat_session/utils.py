"""Numeric and byte helpers for writing contract tests."""

import logging
import random
import time
from collections.abc import Callable, Iterator
from decimal import Decimal
from functools import wraps
from typing import Any, TypeVar

from web3 import Web3
from web3.types import ChecksumAddress

from .constants import E18
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def hex_to_int(value: Any) -> int:
    """Convert a JSON-RPC quantity (``"0x..."`` or int) to int."""
    if isinstance(value, bool):
        raise ValidationError("Expected a quantity, got a boolean", field="value", value=value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError as exc:
            raise ValidationError("Invalid quantity", field="value", value=value) from exc
    raise ValidationError("Invalid quantity", field="value", value=value)


def checksum_address(address: Any, field: str = "address") -> ChecksumAddress:
    """Checksum a caller-supplied address, rejecting malformed input."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid address for {field}", field=field, value=address
        ) from exc


def ensure_size(data: bytes, size: int) -> bytes:
    """Right-pad ``data`` with zero bytes, or truncate it, to exactly ``size`` bytes."""
    return (bytes(data) + bytes(size))[:size]


def pad_address(address: str) -> str:
    """Left-pad a 0x-prefixed address to a 32-byte hex word (no prefix)."""
    if not address.lower().startswith("0x"):
        raise ValidationError("Address must be 0x-prefixed", field="address", value=address)
    body = address[2:]
    return body.rjust(64, "0")


def str_to_bytes32(text: str) -> bytes:
    """Encode ``text`` as UTF-8 in a right-padded ``bytes32``."""
    return ensure_size(text.encode("utf-8"), 32)


def int_to_bytes(value: int, size: int) -> bytes:
    """Big-endian two's complement encoding of ``value``, keeping the low ``size`` bytes."""
    return (value % (1 << (8 * size))).to_bytes(size, byteorder="big")


def to_e18(value: float | Decimal | int) -> int:
    """Scale a token amount to 18 decimals."""
    if isinstance(value, float | int):
        value = Decimal(str(value))
    return int(value * E18)


def ratio(a: int, b: int, precision: int) -> Decimal:
    """Return ``a / b`` rounded to ``precision`` decimal places."""
    if b == 0:
        raise ValidationError("Division by zero", field="b", value=b)
    return round(Decimal(a) / Decimal(b), precision)


def random_range(minimum: int, maximum: int) -> Iterator[int]:
    """Yield random integers in ``[minimum, maximum)`` forever."""
    while True:
        yield random.randrange(minimum, maximum)


def do_times(count: int, action: Callable[[], Any]) -> None:
    for _ in range(count):
        action()


def profiled(func: Callable[..., T]) -> Callable[..., T]:
    """Log how long each call to ``func`` takes."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.info("%s took %.3fs", func.__qualname__, time.perf_counter() - start)

    return wrapper
