"""
Tests for WalletSigner — local signing with a throwaway xrpl-py Wallet.

Test plan:
- Payment signs to a hex blob and a 64-char hash
- key_id is the public key, never the seed
- Same tx signs to the same hash; a new bound signs to a new hash
- Account mismatch and malformed fields → ValueError
"""

import re

import pytest
from xrpl.wallet import Wallet

from ledger_submit.operation import Operation
from ledger_submit.xrpl.signer import Signer, WalletSigner

HEX = re.compile(r"^[0-9A-Fa-f]+$")


@pytest.fixture
def signer() -> WalletSigner:
    return WalletSigner(Wallet.create())


@pytest.fixture
def destination() -> str:
    return Wallet.create().classic_address


def _payment(signer: WalletSigner, destination: str, bound: int = 500) -> dict[str, object]:
    return Operation(
        account=signer.account,
        sequence=7,
        last_ledger_sequence=bound,
        fee_drops="12",
        tx={"TransactionType": "Payment", "Destination": destination, "Amount": "1000000"},
    ).to_tx_dict()


class TestWalletSigner:
    def test_is_signer(self, signer: WalletSigner) -> None:
        assert isinstance(signer, Signer)

    def test_sign_payment(self, signer: WalletSigner, destination: str) -> None:
        result = signer.sign(_payment(signer, destination))
        assert HEX.match(result.signed_tx_blob_hex)
        assert len(result.tx_hash) == 64
        assert HEX.match(result.tx_hash)

    def test_key_id_is_public_key(self, signer: WalletSigner, destination: str) -> None:
        result = signer.sign(_payment(signer, destination))
        assert result.key_id == signer.key_id
        assert signer.key_id == signer._wallet.public_key
        assert signer._wallet.seed not in signer.key_id

    def test_same_tx_same_hash(self, signer: WalletSigner, destination: str) -> None:
        first = signer.sign(_payment(signer, destination))
        second = signer.sign(_payment(signer, destination))
        assert first.tx_hash == second.tx_hash

    def test_new_bound_new_hash(self, signer: WalletSigner, destination: str) -> None:
        first = signer.sign(_payment(signer, destination, bound=500))
        second = signer.sign(_payment(signer, destination, bound=520))
        assert first.tx_hash != second.tx_hash

    def test_from_seed(self) -> None:
        wallet = Wallet.create()
        assert WalletSigner.from_seed(wallet.seed).account == wallet.classic_address


class TestSignFailures:
    def test_account_mismatch(self, signer: WalletSigner, destination: str) -> None:
        tx = _payment(signer, destination)
        tx["Account"] = destination
        with pytest.raises(ValueError, match="does not match signer"):
            signer.sign(tx)

    def test_malformed_payment(self, signer: WalletSigner, destination: str) -> None:
        tx = _payment(signer, destination)
        del tx["Destination"]
        with pytest.raises(ValueError, match="malformed transaction"):
            signer.sign(tx)
