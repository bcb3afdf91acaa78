"""Tests for prepare_operation."""

from __future__ import annotations

import pytest

from ledger_submit.config import DEFAULT_EXPIRATION_OFFSET, DEFAULT_FEE_DROPS
from ledger_submit.errors import TransientTransportError
from ledger_submit.xrpl.tx import prepare_operation

SAMPLE_ACCOUNT = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
PAYMENT = {
    "TransactionType": "Payment",
    "Destination": "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe",
    "Amount": "1000000",
}


class FakeLedgerInfo:
    def __init__(self, sequence: int = 42, current: int = 1000) -> None:
        self.sequence = sequence
        self.current = current
        self.sequence_queries: list[str] = []

    async def next_sequence(self, account: str) -> int:
        self.sequence_queries.append(account)
        return self.sequence

    async def current_ledger_index(self) -> int:
        return self.current

    async def validated_ledger_index(self) -> int:
        return self.current - 1


class UnreachableLedgerInfo(FakeLedgerInfo):
    async def next_sequence(self, account: str) -> int:
        raise TransientTransportError("connection refused", error_code="CONNECTION_FAILED")


class TestPrepareOperation:
    @pytest.mark.asyncio
    async def test_defaults(self) -> None:
        info = FakeLedgerInfo()
        op = await prepare_operation(info, SAMPLE_ACCOUNT, PAYMENT)

        assert op.identity == (SAMPLE_ACCOUNT, 42)
        assert op.last_ledger_sequence == 1000 + DEFAULT_EXPIRATION_OFFSET
        assert op.fee_drops == DEFAULT_FEE_DROPS
        assert dict(op.tx) == PAYMENT
        assert info.sequence_queries == [SAMPLE_ACCOUNT]

    @pytest.mark.asyncio
    async def test_custom_offset_and_fee(self) -> None:
        op = await prepare_operation(
            FakeLedgerInfo(current=50), SAMPLE_ACCOUNT, PAYMENT, fee_drops="15", ledger_offset=4
        )
        assert op.last_ledger_sequence == 54
        assert op.fee_drops == "15"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", [0, -3])
    async def test_offset_below_one(self, offset: int) -> None:
        info = FakeLedgerInfo()
        with pytest.raises(ValueError, match="ledger_offset"):
            await prepare_operation(info, SAMPLE_ACCOUNT, PAYMENT, ledger_offset=offset)
        assert info.sequence_queries == []

    @pytest.mark.asyncio
    async def test_invalid_fields(self) -> None:
        with pytest.raises(ValueError, match="must not set Sequence"):
            await prepare_operation(
                FakeLedgerInfo(), SAMPLE_ACCOUNT, {**PAYMENT, "Sequence": 1}
            )

    @pytest.mark.asyncio
    async def test_ledger_errors_propagate(self) -> None:
        with pytest.raises(TransientTransportError):
            await prepare_operation(UnreachableLedgerInfo(), SAMPLE_ACCOUNT, PAYMENT)
