"""
Operation — an application payload plus the metadata needed to submit it.

The coordinator treats ``tx`` as opaque. It only reads the identity
(account, sequence), the expiration bound, and the fee bid, and it merges
those into the transaction dict handed to the signer.

Invariants:
    - account: non-empty.
    - sequence >= 0 (0 is used with tickets).
    - last_ledger_sequence >= 1.
    - fee_drops: decimal string of drops.
    - tx has a TransactionType and none of the reserved keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

RESERVED_TX_KEYS: frozenset[str] = frozenset({
    "Account",
    "Sequence",
    "LastLedgerSequence",
    "Fee",
})


def _validate_account(value: str) -> None:
    if not value:
        raise ValueError("account must be non-empty")


def _validate_sequence(value: int) -> None:
    if value < 0:
        raise ValueError(f"sequence must be >= 0, got: {value}")


def _validate_last_ledger_sequence(value: int) -> None:
    if value < 1:
        raise ValueError(f"last_ledger_sequence must be >= 1, got: {value}")


def _validate_fee_drops(value: str) -> None:
    if not value.isdigit():
        raise ValueError(f"fee_drops must be a decimal string of drops, got: {value!r}")


def _validate_tx(tx: Mapping[str, object]) -> None:
    if "TransactionType" not in tx:
        raise ValueError("tx must include TransactionType")
    reserved = sorted(RESERVED_TX_KEYS.intersection(tx))
    if reserved:
        raise ValueError(
            f"tx must not set {', '.join(reserved)}; pass them as Operation fields"
        )


@dataclass(frozen=True)
class Operation:
    """A signable ledger operation.

    Attributes:
        account: Originating account (XRPL r-address).
        sequence: Per-account sequence number. Caller-assigned.
        last_ledger_sequence: Expiration bound. The operation can't apply
            in any ledger above this height.
        fee_drops: Fee bid in drops.
        tx: Application fields (TransactionType, Destination, Amount...).
    """

    account: str
    sequence: int
    last_ledger_sequence: int
    fee_drops: str
    tx: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _validate_account(self.account)
        _validate_sequence(self.sequence)
        _validate_last_ledger_sequence(self.last_ledger_sequence)
        _validate_fee_drops(self.fee_drops)
        _validate_tx(self.tx)
        # Freeze the payload so the identity can't drift after construction.
        object.__setattr__(self, "tx", MappingProxyType(dict(self.tx)))

    @property
    def identity(self) -> tuple[str, int]:
        """(account, sequence) — confirmed at most once network-wide."""
        return (self.account, self.sequence)

    def to_tx_dict(self) -> dict[str, object]:
        """Unsigned transaction dict ready for a Signer."""
        tx: dict[str, object] = dict(self.tx)
        tx["Account"] = self.account
        tx["Sequence"] = self.sequence
        tx["LastLedgerSequence"] = self.last_ledger_sequence
        tx["Fee"] = self.fee_drops
        return tx

    def with_expiration(self, last_ledger_sequence: int) -> Operation:
        """Same identity and payload, new expiration bound."""
        return replace(self, last_ledger_sequence=last_ledger_sequence, tx=dict(self.tx))
