"""
ledger-submit — reliable submission of signed operations to the XRP Ledger.

    operation = await prepare_operation(client, signer.account, tx_fields)
    outcome = await submit(operation, client, signer, ledger_info=client)
    if outcome.requires_reconciliation:
        outcome = await reconcile(outcome, client)
    outcome.raise_for_status()
"""

from ledger_submit.config import SubmitSettings
from ledger_submit.coordinator import reconcile, submit
from ledger_submit.errors import (
    ConfigurationError,
    DeterministicRejection,
    Disposition,
    ExpirationElapsed,
    IndeterminateOutcome,
    LedgerRequestError,
    SubmissionError,
    TransientTransportError,
    classify_submit,
)
from ledger_submit.operation import Operation
from ledger_submit.outcome import (
    AttemptStatus,
    Outcome,
    OutcomeStatus,
    SubmissionAttempt,
)
from ledger_submit.xrpl import (
    JsonRpcClient,
    WalletSigner,
    prepare_operation,
)

__version__ = "0.1.0"

__all__ = [
    "AttemptStatus",
    "ConfigurationError",
    "DeterministicRejection",
    "Disposition",
    "ExpirationElapsed",
    "IndeterminateOutcome",
    "JsonRpcClient",
    "LedgerRequestError",
    "Operation",
    "Outcome",
    "OutcomeStatus",
    "SubmissionAttempt",
    "SubmissionError",
    "SubmitSettings",
    "TransientTransportError",
    "WalletSigner",
    "classify_submit",
    "prepare_operation",
    "reconcile",
    "submit",
]
