"""
XRPL backend for ledger-submit.

Protocols (for dependency injection):
    - ``LedgerClient`` — network boundary (submit blob, query tx status).
    - ``LedgerInfo`` — sequence and ledger-height provider.
    - ``Signer`` — secrets boundary (sign unsigned tx dict).

Result types:
    - ``SubmitResult``, ``TxStatusResult`` — client result types.
    - ``SignResult`` — signer result type.

Concrete implementations:
    - ``JsonRpcClient`` — rippled JSON-RPC client (both client protocols).
    - ``HttpxTransport`` — default httpx-based JSON-RPC transport.
    - ``WalletSigner`` — local signing with an xrpl-py Wallet.

Preparation:
    - ``prepare_operation()`` — Operation from live sequence and height.
"""

from ledger_submit.xrpl.client import (
    LedgerClient,
    LedgerInfo,
    SubmitResult,
    TxStatusResult,
)
from ledger_submit.xrpl.jsonrpc_client import JsonRpcClient
from ledger_submit.xrpl.signer import SignResult, Signer, WalletSigner
from ledger_submit.xrpl.transport import HttpxTransport, JsonRpcTransport
from ledger_submit.xrpl.tx import prepare_operation

__all__ = [
    "HttpxTransport",
    "JsonRpcClient",
    "JsonRpcTransport",
    "LedgerClient",
    "LedgerInfo",
    "SignResult",
    "Signer",
    "SubmitResult",
    "TxStatusResult",
    "WalletSigner",
    "prepare_operation",
]
