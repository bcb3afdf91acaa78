"""
Ledger client protocols — the network boundary.

Defines the interfaces the coordinator depends on, not a concrete
implementation. This keeps the coordinator testable with scripted fakes
and keeps HTTP out of the retry logic.

Concrete implementations:
    - JsonRpcClient (rippled JSON-RPC, implements both protocols)
    - scripted fakes (tests)

``LedgerClient`` has exactly two methods:
    - submit(signed_tx_blob_hex) → SubmitResult
    - get_tx(tx_hash) → TxStatusResult

``LedgerInfo`` is the sequence/height provider:
    - next_sequence(account) → int
    - current_ledger_index() → int
    - validated_ledger_index() → int

Results are frozen dataclasses. "Expected" ledger failures are captured
in the result objects; transport failures raise TransientTransportError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class SubmitResult:
    """Immediate response to submitting a signed blob.

    Attributes:
        accepted: The server's ``accepted`` flag. True does NOT mean
            validated, only that the tx entered the open ledger or queue.
        tx_hash: Transaction hash (64 hex chars) when the server reported one.
        engine_result: Preliminary engine result (e.g. "tesSUCCESS",
            "tefPAST_SEQ"). None when the server answered with an RPC error.
        error_code: rippled error token (e.g. "tooBusy", "invalidParams")
            when there is no engine result.
        detail: Human-readable diagnostics.
    """

    accepted: bool
    tx_hash: str | None = None
    engine_result: str | None = None
    error_code: str | None = None
    detail: str | None = None


@dataclass(frozen=True)
class TxStatusResult:
    """Status of a transaction looked up by hash.

    Attributes:
        found: Whether the server knows the transaction at all.
        validated: Whether it is in a validated ledger. Only meaningful
            when found is True.
        ledger_index: Validated ledger containing the tx, else None.
        engine_result: Result from the tx metadata (final once validated).
        error_code: rippled error token if the lookup itself failed.
        detail: Human-readable diagnostics.
    """

    found: bool
    validated: bool = False
    ledger_index: int | None = None
    engine_result: str | None = None
    error_code: str | None = None
    detail: str | None = None


# =========================================================================
# Protocols
# =========================================================================


@runtime_checkable
class LedgerClient(Protocol):
    """Submit and look up transactions."""

    async def submit(self, signed_tx_blob_hex: str) -> SubmitResult:
        """Submit a signed transaction blob.

        Raises:
            TransientTransportError: No usable answer from the server.
        """
        ...

    async def get_tx(self, tx_hash: str) -> TxStatusResult:
        """Look up a transaction by hash.

        Raises:
            TransientTransportError: No usable answer from the server.
        """
        ...


@runtime_checkable
class LedgerInfo(Protocol):
    """Sequence and ledger-height provider.

    The coordinator only reads heights. ``next_sequence`` is for callers
    building operations (see ``xrpl.tx.prepare_operation``).
    """

    async def next_sequence(self, account: str) -> int:
        """Next usable sequence number for ``account``."""
        ...

    async def current_ledger_index(self) -> int:
        """Index of the current open ledger."""
        ...

    async def validated_ledger_index(self) -> int:
        """Index of the most recent validated ledger."""
        ...
