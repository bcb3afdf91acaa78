"""
Caller-side operation preparation.

The coordinator never assigns sequence numbers. Callers do, right before
submitting, from live ledger state. ``prepare_operation`` is that step:
read the account's next sequence and the open ledger height, then set
the expiration bound ``ledger_offset`` ledgers ahead.

Callers submitting several operations for one account concurrently must
serialize calls to this function themselves.
"""

from __future__ import annotations

from collections.abc import Mapping

from ledger_submit.config import DEFAULT_EXPIRATION_OFFSET, DEFAULT_FEE_DROPS
from ledger_submit.operation import Operation
from ledger_submit.xrpl.client import LedgerInfo


async def prepare_operation(
    ledger_info: LedgerInfo,
    account: str,
    tx: Mapping[str, object],
    *,
    fee_drops: str = DEFAULT_FEE_DROPS,
    ledger_offset: int = DEFAULT_EXPIRATION_OFFSET,
) -> Operation:
    """Build an Operation with a live sequence number and expiration bound.

    Args:
        ledger_info: Sequence/height provider.
        account: Originating r-address.
        tx: Application fields (must include TransactionType).
        fee_drops: Fee bid in drops.
        ledger_offset: Ledgers between the open ledger and the bound.

    Returns:
        Operation ready for ``coordinator.submit()``.

    Raises:
        ValueError: If ledger_offset < 1 or the tx fields are invalid.
    """
    if ledger_offset < 1:
        raise ValueError(f"ledger_offset must be >= 1, got: {ledger_offset}")

    sequence = await ledger_info.next_sequence(account)
    height = await ledger_info.current_ledger_index()

    return Operation(
        account=account,
        sequence=sequence,
        last_ledger_sequence=height + ledger_offset,
        fee_drops=fee_drops,
        tx=tx,
    )
