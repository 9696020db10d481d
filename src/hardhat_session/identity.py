"""Signing identities used by the session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3.types import ChecksumAddress

from .exceptions import ValidationError


@dataclass(frozen=True)
class SigningIdentity:
    """A private key and the address derived from it.

    Identities are values: swapping accounts means building a new one.
    """

    private_key: str = field(repr=False)
    address: ChecksumAddress

    @classmethod
    def from_key(cls, private_key: str | bytes) -> SigningIdentity:
        try:
            account = cast(LocalAccount, Account.from_key(private_key))
        except Exception as exc:
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                details={"error": str(exc)},
            ) from exc

        return cls(private_key=account.key.to_0x_hex(), address=account.address)

    @classmethod
    def generate(cls) -> SigningIdentity:
        """Create an identity for a brand new random account."""

        account = cast(LocalAccount, Account.create())
        return cls(private_key=account.key.to_0x_hex(), address=account.address)

    @property
    def account(self) -> LocalAccount:
        return cast(LocalAccount, Account.from_key(self.private_key))
