"""Assertion helpers for contract tests."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import pytest

from .facade import forwarded_revert_message
from .types import TransactionOutcome

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class Specification:
    """Which contract requirement a test covers."""

    contract_name: str
    function_name: str
    spec_code: int


def specification(contract_name: str, function_name: str, spec_code: int) -> Callable[[F], F]:
    """Tag a test with the contract requirement it verifies.

    May be stacked; tags accumulate on ``func.__specifications__``. Each tag
    is also applied as a ``specification`` pytest marker, so ``-m specification``
    selects tagged tests.
    """

    def decorator(func: F) -> F:
        tags = list(getattr(func, "__specifications__", ()))
        tags.append(Specification(contract_name, function_name, spec_code))
        func.__specifications__ = tags  # type: ignore[attr-defined]
        return pytest.mark.specification(contract_name, function_name, spec_code)(func)

    return decorator


def should_succeed(outcome: TransactionOutcome) -> TransactionOutcome:
    assert outcome.succeeded, (
        f"expected transaction {outcome.transaction_hash} to succeed: {outcome.rejection}"
    )
    return outcome


def should_fail(outcome: TransactionOutcome) -> TransactionOutcome:
    assert outcome.failed, f"expected transaction {outcome.transaction_hash} to fail"
    return outcome


def should_equal_ignoring_case(actual: Any, expected: Any) -> None:
    assert str(actual).lower() == str(expected).lower(), f"{actual!r} != {expected!r}"


def should_revert_with_message(expected_message: str, forwarded_event: Mapping[str, Any]) -> None:
    """Assert a forwarded call reverted with a reason containing ``expected_message``."""

    actual = forwarded_revert_message(forwarded_event)
    assert actual is not None, "not a revert message"
    assert expected_message in actual, f"{expected_message!r} not found in {actual!r}"


def should_revert_with_unknown_message(forwarded_event: Mapping[str, Any]) -> None:
    should_revert_with_message("", forwarded_event)
