"""
Submission outcome — the terminal record of an operation's fate.

An Outcome is what ``coordinator.submit()`` returns. It always carries the
full attempt history so a caller can audit what was tried, when, and what
the ledger said each time.

Design:
    - **Three terminal states**: CONFIRMED, REJECTED, INDETERMINATE.
      INDETERMINATE is not a failure: the operation may have applied.
    - **Attempt history**: one SubmissionAttempt per submission, 1-indexed,
      in order.
    - **Content-addressed**: outcome_digest = sha256(canonical_json(...)).

Invariants:
    - attempt >= 1 and attempts are numbered 1..N without gaps.
    - created_at: RFC3339 UTC (must end with "Z" or "+00:00").
    - If status == REJECTED, reason_code must be non-empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ledger_submit.digest import content_digest
from ledger_submit.errors import (
    DeterministicRejection,
    ExpirationElapsed,
    IndeterminateOutcome,
)

# Bump when the canonical dict shape changes.
OUTCOME_VERSION = "0.1"

# Reason codes for INDETERMINATE outcomes that have no engine result.
REASON_ATTEMPTS_EXHAUSTED = "ATTEMPTS_EXHAUSTED"
REASON_EXPIRATION_REACHED = "EXPIRATION_REACHED"
REASON_NO_FRESH_BOUND = "NO_FRESH_BOUND"
REASON_LOOKUP_FAILED = "LOOKUP_FAILED"
REASON_REQUEST_FAILED = "REQUEST_FAILED"

_EXPIRATION_REASONS = frozenset({
    "tefMAX_LEDGER",
    REASON_EXPIRATION_REACHED,
    REASON_NO_FRESH_BOUND,
})

_RFC3339_UTC_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|\+00:00)$"
)


# =========================================================================
# Enums
# =========================================================================


class OutcomeStatus(StrEnum):
    """Terminal classification of an operation."""

    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    INDETERMINATE = "INDETERMINATE"


class AttemptStatus(StrEnum):
    """How a single submission attempt ended."""

    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    DUPLICATE = "DUPLICATE"
    SEQUENCE_CONSUMED = "SEQUENCE_CONSUMED"
    EXPIRED = "EXPIRED"
    TRANSIENT = "TRANSIENT"
    INCONCLUSIVE = "INCONCLUSIVE"


# =========================================================================
# Validation helpers
# =========================================================================


def _validate_attempt(value: int) -> None:
    if value < 1:
        raise ValueError(f"attempt must be >= 1, got: {value}")


def _validate_created_at(value: str) -> None:
    if not _RFC3339_UTC_RE.match(value):
        raise ValueError(
            f"created_at must be RFC3339 UTC (ending Z or +00:00), got: {value!r}"
        )


def _validate_attempt_numbering(attempts: tuple[SubmissionAttempt, ...]) -> None:
    numbers = [a.attempt for a in attempts]
    if numbers != list(range(1, len(attempts) + 1)):
        raise ValueError(f"attempts must be numbered 1..N in order, got: {numbers}")


def _validate_reason_if_rejected(status: OutcomeStatus, reason_code: str | None) -> None:
    if status == OutcomeStatus.REJECTED and not reason_code:
        raise ValueError("reason_code must be non-empty when status is REJECTED")


# =========================================================================
# SubmissionAttempt
# =========================================================================


@dataclass(frozen=True)
class SubmissionAttempt:
    """One try at placing an operation on the ledger.

    Attributes:
        attempt: Attempt number (1-indexed).
        created_at: RFC3339 UTC timestamp of the submission.
        status: How the attempt ended.
        tx_hash: Hash of the signed blob submitted, when known.
        engine_result: Engine result seen last for this attempt (the
            validated result if polling reached one, else the submit one).
        detail: Diagnostics. Never contains signed blobs or secrets.
    """

    attempt: int
    created_at: str
    status: AttemptStatus
    tx_hash: str | None = None
    engine_result: str | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        _validate_attempt(self.attempt)
        _validate_created_at(self.created_at)

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "attempt": self.attempt,
            "created_at": self.created_at,
            "status": self.status.value,
        }
        if self.tx_hash is not None:
            result["tx_hash"] = self.tx_hash
        if self.engine_result is not None:
            result["engine_result"] = self.engine_result
        if self.detail is not None:
            result["detail"] = self.detail
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubmissionAttempt:
        return cls(
            attempt=int(data["attempt"]),
            created_at=data["created_at"],
            status=AttemptStatus(data["status"]),
            tx_hash=data.get("tx_hash"),
            engine_result=data.get("engine_result"),
            detail=data.get("detail"),
        )


# =========================================================================
# Outcome
# =========================================================================


@dataclass(frozen=True)
class Outcome:
    """Terminal result of submitting one operation.

    Required:
        status: CONFIRMED, REJECTED, or INDETERMINATE.
        account: Originating account of the operation.
        sequence: Sequence number of the operation.

    Optional:
        attempts: Attempt history, in order.
        reason_code: Verbatim reason (engine result or server error token).
            Required when REJECTED.
        tx_hash: Hash of the blob the outcome refers to.
        ledger_index: Validated ledger that included the operation.
    """

    # --- Required ---
    status: OutcomeStatus
    account: str
    sequence: int

    # --- Optional ---
    attempts: tuple[SubmissionAttempt, ...] = field(default_factory=tuple)
    reason_code: str | None = None
    tx_hash: str | None = None
    ledger_index: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attempts", tuple(self.attempts))
        _validate_attempt_numbering(self.attempts)
        _validate_reason_if_rejected(self.status, self.reason_code)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def requires_reconciliation(self) -> bool:
        """True when the caller must query ledger state before acting again."""
        return self.status == OutcomeStatus.INDETERMINATE

    def raise_for_status(self) -> None:
        """Raise unless the outcome is CONFIRMED.

        Raises:
            DeterministicRejection: status is REJECTED.
            ExpirationElapsed: status is INDETERMINATE because the
                expiration bound ran out.
            IndeterminateOutcome: status is INDETERMINATE otherwise.
        """
        details = {"account": self.account, "sequence": self.sequence}
        if self.status == OutcomeStatus.REJECTED:
            reason = str(self.reason_code)
            raise DeterministicRejection(reason, error_code=reason, details=details)
        if self.status == OutcomeStatus.INDETERMINATE:
            exc_type = (
                ExpirationElapsed
                if self.reason_code in _EXPIRATION_REASONS
                else IndeterminateOutcome
            )
            raise exc_type(
                f"outcome of {self.account} seq={self.sequence} is undetermined "
                f"after {self.attempt_count} attempt(s); reconcile before retrying",
                error_code=self.reason_code,
                details=details,
            )

    # --- Canonical representation ---

    def to_canonical_dict(self) -> dict[str, object]:
        """Dict used for digest computation. None-valued fields excluded."""
        d: dict[str, object] = {
            "outcome_version": OUTCOME_VERSION,
            "status": self.status.value,
            "account": self.account,
            "sequence": self.sequence,
            "attempts": [a.to_dict() for a in self.attempts],
        }
        if self.reason_code is not None:
            d["reason_code"] = self.reason_code
        if self.tx_hash is not None:
            d["tx_hash"] = self.tx_hash
        if self.ledger_index is not None:
            d["ledger_index"] = self.ledger_index
        return d

    def outcome_digest(self) -> str:
        """Prefixed SHA256 digest ("sha256:...") of the canonical outcome."""
        return content_digest(self.to_canonical_dict())

    # --- Serialization ---

    def to_dict(self) -> dict[str, object]:
        return self.to_canonical_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Outcome:
        return cls(
            status=OutcomeStatus(data["status"]),
            account=data["account"],
            sequence=int(data["sequence"]),
            attempts=tuple(SubmissionAttempt.from_dict(a) for a in data.get("attempts", [])),
            reason_code=data.get("reason_code"),
            tx_hash=data.get("tx_hash"),
            ledger_index=data.get("ledger_index"),
        )
