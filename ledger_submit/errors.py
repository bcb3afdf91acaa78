"""
Error taxonomy and submit-response classification.

Two halves:

    - Exceptions raised across the package. Each carries a machine-readable
      ``error_code`` and a ``details`` dict for diagnostics.
    - ``classify_submit()`` — maps a structured SubmitResult to a
      Disposition the coordinator acts on. The mapping is table-driven over
      the engine result token and the server error token; messages are
      never inspected.

XRPL engine result prefixes:
    - tes: success — provisionally applied, final only once validated
    - ter: retry — held by the server, may still apply
    - tec: claimed cost — applied with a fee, outcome known at validation
    - tel: local error — this server refused it, another try may succeed
    - tef: failure — will not apply as signed
    - tem: malformed — will never apply

Reference:
    https://xrpl.org/docs/references/protocol/transactions/transaction-results
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ledger_submit.xrpl.client import SubmitResult


# =========================================================================
# Exceptions
# =========================================================================


class SubmissionError(Exception):
    """Base class for all ledger-submit errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(SubmissionError, ValueError):
    """The call itself is invalid (bad limits, expired bound, unsignable tx).

    Raised before any submission reaches the network.
    """


class TransientTransportError(SubmissionError):
    """The request did not get a usable answer. Safe to retry."""


class LedgerRequestError(SubmissionError):
    """The request reached the server and failed in a way retrying won't fix."""


class DeterministicRejection(SubmissionError):
    """The ledger deterministically refused the operation."""

    def __init__(self, reason_code: str, **kwargs: Any) -> None:
        super().__init__(f"operation rejected: {reason_code}", **kwargs)
        self.reason_code = reason_code


class IndeterminateOutcome(SubmissionError):
    """No definitive signal was observed.

    The operation may or may not have applied. Query authoritative
    ledger state before acting again.
    """


class ExpirationElapsed(IndeterminateOutcome):
    """The expiration bound ran out before a definitive signal was seen."""


# Exceptions from a client call that mean "no answer", not "bad answer".
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TransientTransportError,
    TimeoutError,
    ConnectionError,
)


# =========================================================================
# Submit classification
# =========================================================================


class Disposition(StrEnum):
    """What the coordinator should do with an immediate submit response."""

    ACCEPTED = "ACCEPTED"
    DUPLICATE = "DUPLICATE"
    SEQUENCE_CONSUMED = "SEQUENCE_CONSUMED"
    EXPIRED = "EXPIRED"
    TRANSIENT = "TRANSIENT"
    REJECTED = "REJECTED"


# Exact tokens first; they override the prefix table.
_EXACT_DISPOSITIONS: dict[str, Disposition] = {
    "tesSUCCESS": Disposition.ACCEPTED,
    "terQUEUED": Disposition.ACCEPTED,
    "tefALREADY": Disposition.DUPLICATE,
    "tefPAST_SEQ": Disposition.SEQUENCE_CONSUMED,
    "tefMAX_LEDGER": Disposition.EXPIRED,
}

_PREFIX_DISPOSITIONS: dict[str, Disposition] = {
    "tes": Disposition.ACCEPTED,
    "ter": Disposition.ACCEPTED,
    "tel": Disposition.TRANSIENT,
    "tef": Disposition.REJECTED,
    "tem": Disposition.REJECTED,
}

# rippled error tokens for a server that is up but can't serve right now.
_TRANSIENT_SERVER_ERRORS: frozenset[str] = frozenset({
    "tooBusy",
    "noNetwork",
    "noCurrent",
    "noClosed",
    "notReady",
    "notSynced",
    "slowDown",
})


def classify_engine_result(engine_result: str, *, accepted: bool = False) -> Disposition:
    """Map an engine result token to a Disposition.

    Args:
        engine_result: XRPL engine result (e.g. "tesSUCCESS", "tefPAST_SEQ").
        accepted: The server's ``accepted`` flag. Only consulted for tec*
            codes, which are applied when accepted and dead otherwise.

    Returns:
        Disposition. Unknown tokens are REJECTED rather than retried.
    """
    exact = _EXACT_DISPOSITIONS.get(engine_result)
    if exact is not None:
        return exact

    if engine_result.startswith("tec"):
        return Disposition.ACCEPTED if accepted else Disposition.REJECTED

    for prefix, disposition in _PREFIX_DISPOSITIONS.items():
        if engine_result.startswith(prefix):
            return disposition

    return Disposition.REJECTED


def classify_server_error(error_code: str | None) -> Disposition:
    """Map a server-level error token (no engine result) to a Disposition."""
    if error_code in _TRANSIENT_SERVER_ERRORS:
        return Disposition.TRANSIENT
    return Disposition.REJECTED


def classify_submit(result: SubmitResult) -> Disposition:
    """Classify a SubmitResult.

    Engine result wins when present. Without one the request failed at
    the server level and the error token decides.
    """
    if result.engine_result is not None:
        return classify_engine_result(result.engine_result, accepted=result.accepted)
    return classify_server_error(result.error_code)


def is_success(engine_result: str | None) -> bool:
    """True only for the final result that means the operation applied as intended."""
    return engine_result == "tesSUCCESS"
