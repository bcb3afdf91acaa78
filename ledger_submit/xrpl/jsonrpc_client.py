"""
XRPL JSON-RPC client — real network implementation of LedgerClient and
LedgerInfo.

Translates rippled JSON-RPC responses into SubmitResult/TxStatusResult
and plain integers. Uses an injectable transport (JsonRpcTransport) so
the HTTP layer can be swapped for test fakes without changing parsing.

No retry loops. No secrets. No XRPL logic beyond response parsing.

Response parsing targets rippled JSON-RPC conventions:
    - Successful responses: {"result": {"status": "success", ...}}
    - Error responses: {"result": {"status": "error", "error": "...", ...}}
    - submit: engine_result, accepted, tx_json.hash
    - tx: validated, ledger_index, meta.TransactionResult
    - account_info: account_data.Sequence
    - ledger_current: ledger_current_index
    - ledger (validated): ledger_index
"""

from __future__ import annotations

import itertools
from typing import Any

from ledger_submit.errors import (
    Disposition,
    LedgerRequestError,
    TransientTransportError,
    classify_server_error,
)
from ledger_submit.xrpl.client import SubmitResult, TxStatusResult
from ledger_submit.xrpl.transport import HttpxTransport, JsonRpcTransport


class JsonRpcClient:
    """XRPL JSON-RPC client implementing LedgerClient and LedgerInfo.

    Args:
        url: rippled JSON-RPC endpoint (e.g. "http://localhost:5005").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {"method": method, "params": [params], "id": next(self._ids)}
        response = await self._transport.post_json(self._url, payload)
        result = response.get("result", {})
        return result if isinstance(result, dict) else {}

    # -----------------------------------------------------------------
    # LedgerClient
    # -----------------------------------------------------------------

    async def submit(self, signed_tx_blob_hex: str) -> SubmitResult:
        """Submit a signed blob with the ``submit`` method."""
        result = await self._call("submit", {"tx_blob": signed_tx_blob_hex})
        return _parse_submit_response(result)

    async def get_tx(self, tx_hash: str) -> TxStatusResult:
        """Look up a transaction with the ``tx`` method."""
        result = await self._call("tx", {"transaction": tx_hash, "binary": False})
        return _parse_tx_response(result)

    # -----------------------------------------------------------------
    # LedgerInfo
    # -----------------------------------------------------------------

    async def next_sequence(self, account: str) -> int:
        """Account's next sequence from ``account_info`` on the current ledger."""
        result = await self._call(
            "account_info", {"account": account, "ledger_index": "current"}
        )
        _raise_for_rpc_error("account_info", result)
        account_data = result.get("account_data")
        if not isinstance(account_data, dict) or "Sequence" not in account_data:
            raise LedgerRequestError(
                "account_info response has no account_data.Sequence",
                error_code="MALFORMED_RESPONSE",
                details={"account": account},
            )
        return int(account_data["Sequence"])

    async def current_ledger_index(self) -> int:
        """Open ledger index from ``ledger_current``."""
        result = await self._call("ledger_current", {})
        _raise_for_rpc_error("ledger_current", result)
        return _require_int(result, "ledger_current_index", "ledger_current")

    async def validated_ledger_index(self) -> int:
        """Latest validated ledger index from ``ledger``."""
        result = await self._call("ledger", {"ledger_index": "validated"})
        _raise_for_rpc_error("ledger", result)
        return _require_int(result, "ledger_index", "ledger")


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _raise_for_rpc_error(method: str, result: dict[str, Any]) -> None:
    """Raise for an RPC-level error on an info query."""
    if result.get("status") != "error":
        return
    error = result.get("error")
    message = result.get("error_message") or error or "unknown server error"
    details = {"method": method, "error": error}
    if classify_server_error(error) == Disposition.TRANSIENT:
        raise TransientTransportError(f"{method}: {message}", error_code=error, details=details)
    raise LedgerRequestError(f"{method}: {message}", error_code=error, details=details)


def _require_int(result: dict[str, Any], key: str, method: str) -> int:
    value = result.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise LedgerRequestError(
            f"{method} response has no integer {key}",
            error_code="MALFORMED_RESPONSE",
            details={"method": method, key: value},
        )
    return value


def _parse_submit_response(result: dict[str, Any]) -> SubmitResult:
    """Parse the ``result`` object of a submit response.

    Handles:
        - Engine result present (accepted or not)
        - Server-level errors (status == "error"), keeping the error token
        - Missing engine_result (treated as a server error)
    """
    if result.get("status") == "error":
        return SubmitResult(
            accepted=False,
            error_code=result.get("error") or "SERVER_ERROR",
            detail=result.get("error_message") or result.get("error", "unknown server error"),
        )

    engine_result = result.get("engine_result")
    if engine_result is None:
        return SubmitResult(
            accepted=False,
            error_code="SERVER_ERROR",
            detail="no engine_result in submit response",
        )

    tx_hash = None
    tx_json = result.get("tx_json")
    if isinstance(tx_json, dict):
        tx_hash = tx_json.get("hash")

    # Older servers omit "accepted"; infer it from the engine result.
    accepted = result.get("accepted")
    if accepted is None:
        accepted = engine_result == "tesSUCCESS" or engine_result.startswith("ter")

    return SubmitResult(
        accepted=bool(accepted),
        tx_hash=tx_hash,
        engine_result=engine_result,
        detail=result.get("engine_result_message"),
    )


def _parse_tx_response(result: dict[str, Any]) -> TxStatusResult:
    """Parse the ``result`` object of a tx response.

    Handles:
        - Found and validated
        - Found, not yet validated
        - txnNotFound
        - Other server errors
    """
    if result.get("status") == "error":
        error = result.get("error", "")
        if error == "txnNotFound":
            return TxStatusResult(found=False)
        return TxStatusResult(
            found=False,
            error_code=error or "SERVER_ERROR",
            detail=result.get("error_message") or error,
        )

    validated = bool(result.get("validated", False))
    ledger_index = result.get("ledger_index")

    engine_result = None
    meta = result.get("meta")
    if isinstance(meta, dict):
        engine_result = meta.get("TransactionResult")

    return TxStatusResult(
        found=True,
        validated=validated,
        ledger_index=ledger_index if validated else None,
        engine_result=engine_result,
    )
