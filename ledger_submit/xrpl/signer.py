"""
Signer protocol — the secrets boundary.

The coordinator passes an unsigned transaction dict and receives a signed
blob plus its hash. It never sees key material.

Concrete implementations:
    - WalletSigner (xrpl-py Wallet, local signing)
    - fake signers (tests)

``key_id`` is a public identifier (the public key hex) that is safe to
log or record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from xrpl.core.binarycodec import encode
from xrpl.models.exceptions import XRPLModelException
from xrpl.models.transactions.transaction import Transaction
from xrpl.transaction import sign
from xrpl.wallet import Wallet


@dataclass(frozen=True)
class SignResult:
    """Result of signing a transaction.

    Attributes:
        signed_tx_blob_hex: Hex-encoded signed blob, ready for
            LedgerClient.submit().
        tx_hash: Hash of the signed transaction (64 hex chars).
        key_id: Public identifier of the signing key. Never a secret.
    """

    signed_tx_blob_hex: str
    tx_hash: str
    key_id: str


@runtime_checkable
class Signer(Protocol):
    """Interface for transaction signing."""

    @property
    def account(self) -> str:
        """XRPL r-address associated with this signer."""
        ...

    @property
    def key_id(self) -> str:
        """Public identifier of the signing key (safe for logging)."""
        ...

    def sign(self, tx_dict: dict[str, object]) -> SignResult:
        """Sign a complete unsigned transaction dict.

        Raises:
            ValueError: If the transaction dict is malformed.
        """
        ...


class WalletSigner:
    """Signs locally with an xrpl-py Wallet.

    The tx dict must already carry Sequence, Fee and LastLedgerSequence
    (Operation.to_tx_dict() does this). Nothing is autofilled from the
    network.
    """

    def __init__(self, wallet: Wallet) -> None:
        self._wallet = wallet

    @classmethod
    def from_seed(cls, seed: str) -> WalletSigner:
        return cls(Wallet.from_seed(seed))

    @property
    def account(self) -> str:
        return self._wallet.classic_address

    @property
    def key_id(self) -> str:
        return self._wallet.public_key

    def sign(self, tx_dict: dict[str, object]) -> SignResult:
        if tx_dict.get("Account") != self.account:
            raise ValueError(
                f"tx Account {tx_dict.get('Account')!r} does not match signer {self.account!r}"
            )
        try:
            transaction = Transaction.from_xrpl(dict(tx_dict))
            signed = sign(transaction, self._wallet)
        except (XRPLModelException, TypeError) as exc:
            raise ValueError(f"malformed transaction: {exc}") from exc

        return SignResult(
            signed_tx_blob_hex=encode(signed.to_xrpl()),
            tx_hash=signed.get_hash(),
            key_id=self.key_id,
        )
