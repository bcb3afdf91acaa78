"""
Submission coordinator — submit, confirm, retry, resolve.

Takes a signable Operation and resolves it to exactly one Outcome:
CONFIRMED, REJECTED (reason code verbatim), or INDETERMINATE.

One call to submit() does, per attempt (at most ``max_attempts``):
    1. Submit the signed blob.
    2. Classify the immediate response (errors.classify_submit):
       - ACCEPTED → poll for finality.
       - DUPLICATE → CONFIRMED, no polling.
       - SEQUENCE_CONSUMED → one lookup of our hashes; validated → final,
         otherwise INDETERMINATE.
       - EXPIRED → re-sign with a fresh bound and retry if attempts remain
         and a height is available; otherwise INDETERMINATE.
       - TRANSIENT → next attempt.
       - REJECTED → REJECTED, no retry.
    3. Poll get_tx every ``poll_interval`` until validated, the attempt
       timeout elapses, or the validated ledger passes the bound.
    4. Validated → CONFIRMED (tesSUCCESS) or REJECTED (anything else).
    5. Attempt timeout → next attempt. Resubmitting the same signed blob
       is safe: the ledger applies an (account, sequence) at most once,
       and a repeat comes back as a duplicate.
    6. Attempts exhausted or bound reached → INDETERMINATE.

Once signing succeeded, every call ends in an Outcome. A non-retryable
request failure (LedgerRequestError) on submit or on a status/height
lookup stops the call with INDETERMINATE, since the blob may already be
on the network.

reconcile() is the follow-up for INDETERMINATE outcomes: look up every
hash that was submitted and settle the outcome if one was validated.

No shared state between calls. Sequence numbers are never assigned here.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from ledger_submit.config import SubmitSettings
from ledger_submit.errors import (
    TRANSIENT_ERRORS,
    ConfigurationError,
    Disposition,
    LedgerRequestError,
    classify_submit,
    is_success,
)
from ledger_submit.operation import Operation
from ledger_submit.outcome import (
    REASON_ATTEMPTS_EXHAUSTED,
    REASON_EXPIRATION_REACHED,
    REASON_LOOKUP_FAILED,
    REASON_NO_FRESH_BOUND,
    REASON_REQUEST_FAILED,
    AttemptStatus,
    Outcome,
    OutcomeStatus,
    SubmissionAttempt,
)
from ledger_submit.xrpl.client import LedgerClient, LedgerInfo, TxStatusResult
from ledger_submit.xrpl.signer import SignResult, Signer

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

# Failures that end a fresh-bound height lookup.
_LOOKUP_ERRORS = TRANSIENT_ERRORS + (LedgerRequestError,)


def _now_utc() -> str:
    """RFC3339 UTC timestamp for attempt records."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


@dataclass(frozen=True)
class _PollResult:
    status: TxStatusResult | None
    expired: bool = False
    error: LedgerRequestError | None = None


# =========================================================================
# Helpers
# =========================================================================


def _sign(operation: Operation, signer: Signer) -> SignResult:
    try:
        return signer.sign(operation.to_tx_dict())
    except ValueError as exc:
        raise ConfigurationError(
            f"operation could not be signed: {exc}",
            error_code="UNSIGNABLE",
            details={"account": operation.account, "sequence": operation.sequence},
        ) from exc


def _final_statuses(engine_result: str | None) -> tuple[OutcomeStatus, AttemptStatus]:
    if is_success(engine_result):
        return OutcomeStatus.CONFIRMED, AttemptStatus.CONFIRMED
    return OutcomeStatus.REJECTED, AttemptStatus.REJECTED


async def _lookup(
    client: LedgerClient, tx_hashes: Iterable[str]
) -> tuple[str, TxStatusResult] | None:
    """First validated status among ``tx_hashes``, or None.

    Failed lookups count as "not seen".
    """
    for tx_hash in tx_hashes:
        try:
            status = await client.get_tx(tx_hash)
        except TRANSIENT_ERRORS as exc:
            logger.debug("lookup of %s failed: %s", tx_hash, exc)
            continue
        except LedgerRequestError as exc:
            logger.warning("lookup of %s refused: %s", tx_hash, exc)
            continue
        if status.validated:
            return tx_hash, status
    return None


async def _bound_passed(ledger_info: LedgerInfo, last_ledger_sequence: int) -> bool:
    try:
        validated = await ledger_info.validated_ledger_index()
    except TRANSIENT_ERRORS as exc:
        logger.debug("validated ledger lookup failed: %s", exc)
        return False
    return validated > last_ledger_sequence


async def _poll(
    client: LedgerClient,
    tx_hash: str,
    *,
    last_ledger_sequence: int,
    deadline: float,
    poll_interval: float,
    ledger_info: LedgerInfo | None,
    clock: Clock,
    sleep: Sleep,
) -> _PollResult:
    status: TxStatusResult | None = None
    while True:
        await sleep(poll_interval)

        try:
            status = await client.get_tx(tx_hash)
        except TRANSIENT_ERRORS as exc:
            logger.debug("poll of %s failed: %s", tx_hash, exc)
            status = None
        except LedgerRequestError as exc:
            return _PollResult(None, error=exc)

        if status is not None and status.validated:
            return _PollResult(status)

        try:
            passed = ledger_info is not None and await _bound_passed(
                ledger_info, last_ledger_sequence
            )
        except LedgerRequestError as exc:
            return _PollResult(status, error=exc)

        if passed:
            # It may have landed in the last eligible ledger after the query above.
            found = await _lookup(client, [tx_hash])
            if found is not None:
                return _PollResult(found[1])
            return _PollResult(status, expired=True)

        if clock() >= deadline:
            return _PollResult(status)

        logger.debug("%s not validated yet", tx_hash)


# =========================================================================
# submit()
# =========================================================================


async def submit(
    operation: Operation,
    client: LedgerClient,
    signer: Signer,
    *,
    max_attempts: int | None = None,
    attempt_timeout: float | None = None,
    settings: SubmitSettings | None = None,
    ledger_info: LedgerInfo | None = None,
    current_ledger_index: int | None = None,
    clock: Clock | None = None,
    sleep: Sleep | None = None,
    now_fn: Callable[[], str] | None = None,
) -> Outcome:
    """Submit an operation and resolve it to a terminal Outcome.

    Args:
        operation: Operation with a caller-assigned sequence and an
            expiration bound ahead of the current ledger.
        client: Ledger client for submission and status lookups.
        signer: Signs the operation. Called again only when a fresh
            expiration bound is needed.
        max_attempts: Submission limit. Defaults to settings.max_attempts.
        attempt_timeout: Seconds to wait for a definitive signal per
            attempt, measured from the start of the submit call and
            covering both the submit and the polling that follows.
            Defaults to settings.attempt_timeout.
        settings: Poll interval and expiration offset source.
        ledger_info: Height provider. Enables the call-time bound check,
            the expiration check while polling, and bound refresh.
        current_ledger_index: Known current height. Skips the
            ledger_info lookup for the call-time check. With neither this
            nor ledger_info the call-time check is skipped, and an
            already-expired operation comes back INDETERMINATE
            (tefMAX_LEDGER) instead of raising.
        clock: Monotonic clock for attempt deadlines. Inject for tests.
        sleep: Async sleep used between polls. Inject for tests.
        now_fn: RFC3339 UTC timestamp source for attempt records.

    Returns:
        Outcome with the full attempt history.

    Raises:
        ConfigurationError: Invalid limits, an expiration bound that is not
            ahead of the current ledger, or an operation the signer
            refuses. Raised before any submission.
        TransientTransportError, LedgerRequestError: The call-time height
            lookup through ledger_info failed. Nothing was submitted.
    """
    settings = settings or SubmitSettings()
    if max_attempts is None:
        max_attempts = settings.max_attempts
    if attempt_timeout is None:
        attempt_timeout = settings.attempt_timeout
    if max_attempts < 1:
        raise ConfigurationError(
            f"max_attempts must be >= 1, got: {max_attempts}",
            error_code="INVALID_SETTING",
        )
    if attempt_timeout <= 0:
        raise ConfigurationError(
            f"attempt_timeout must be > 0, got: {attempt_timeout}",
            error_code="INVALID_SETTING",
        )
    clock = clock or time.monotonic
    sleep = sleep or asyncio.sleep
    now_fn = now_fn or _now_utc

    if current_ledger_index is None and ledger_info is not None:
        current_ledger_index = await ledger_info.current_ledger_index()
    if current_ledger_index is None:
        logger.debug(
            "%s seq=%d: no ledger height, skipping expiration bound check",
            operation.account, operation.sequence,
        )
    elif operation.last_ledger_sequence <= current_ledger_index:
        raise ConfigurationError(
            f"expiration bound {operation.last_ledger_sequence} is not ahead of "
            f"current ledger {current_ledger_index}",
            error_code="EXPIRED_BOUND",
            details={
                "account": operation.account,
                "sequence": operation.sequence,
                "last_ledger_sequence": operation.last_ledger_sequence,
                "current_ledger_index": current_ledger_index,
            },
        )

    signed = _sign(operation, signer)
    attempts: list[SubmissionAttempt] = []
    submitted_hashes: list[str] = []
    label = f"{operation.account} seq={operation.sequence}"

    def record(
        status: AttemptStatus,
        created_at: str,
        *,
        tx_hash: str | None = None,
        engine_result: str | None = None,
        detail: str | None = None,
    ) -> None:
        attempts.append(
            SubmissionAttempt(
                attempt=len(attempts) + 1,
                created_at=created_at,
                status=status,
                tx_hash=tx_hash,
                engine_result=engine_result,
                detail=detail,
            )
        )

    def finish(
        status: OutcomeStatus,
        *,
        reason_code: str | None = None,
        tx_hash: str | None = None,
        ledger_index: int | None = None,
    ) -> Outcome:
        outcome = Outcome(
            status=status,
            account=operation.account,
            sequence=operation.sequence,
            attempts=tuple(attempts),
            reason_code=reason_code,
            tx_hash=tx_hash,
            ledger_index=ledger_index,
        )
        log = logger.warning if status == OutcomeStatus.INDETERMINATE else logger.info
        log(
            "%s: %s (%s) after %d attempt(s)",
            label, status.value, reason_code, outcome.attempt_count,
        )
        return outcome

    for attempt in range(1, max_attempts + 1):
        created_at = now_fn()
        started = clock()
        if signed.tx_hash not in submitted_hashes:
            submitted_hashes.append(signed.tx_hash)

        try:
            result = await asyncio.wait_for(
                client.submit(signed.signed_tx_blob_hex), timeout=attempt_timeout
            )
        except TRANSIENT_ERRORS as exc:
            logger.warning(
                "%s: attempt %d/%d got no answer: %s", label, attempt, max_attempts, exc
            )
            record(
                AttemptStatus.TRANSIENT, created_at,
                tx_hash=signed.tx_hash, detail=f"submit failed: {exc!r}",
            )
            continue
        except LedgerRequestError as exc:
            logger.warning("%s: attempt %d/%d submit refused: %s", label, attempt, max_attempts, exc)
            record(
                AttemptStatus.INCONCLUSIVE, created_at,
                tx_hash=signed.tx_hash, engine_result=exc.error_code,
                detail=f"submit failed: {exc}",
            )
            return finish(
                OutcomeStatus.INDETERMINATE,
                reason_code=REASON_REQUEST_FAILED, tx_hash=signed.tx_hash,
            )

        tx_hash = result.tx_hash or signed.tx_hash
        reason = result.engine_result or result.error_code
        disposition = classify_submit(result)
        logger.debug("%s: attempt %d submit → %s (%s)", label, attempt, disposition, reason)

        if disposition == Disposition.DUPLICATE:
            record(AttemptStatus.DUPLICATE, created_at, tx_hash=tx_hash, engine_result=reason)
            return finish(OutcomeStatus.CONFIRMED, reason_code=reason, tx_hash=tx_hash)

        if disposition == Disposition.REJECTED:
            record(
                AttemptStatus.REJECTED, created_at,
                tx_hash=tx_hash, engine_result=reason, detail=result.detail,
            )
            return finish(OutcomeStatus.REJECTED, reason_code=reason, tx_hash=tx_hash)

        if disposition == Disposition.TRANSIENT:
            logger.warning(
                "%s: attempt %d/%d refused for now: %s", label, attempt, max_attempts, reason
            )
            record(
                AttemptStatus.TRANSIENT, created_at,
                tx_hash=tx_hash, engine_result=reason, detail=result.detail,
            )
            continue

        if disposition == Disposition.SEQUENCE_CONSUMED:
            found = await _lookup(client, submitted_hashes)
            if found is None:
                record(
                    AttemptStatus.SEQUENCE_CONSUMED, created_at,
                    tx_hash=tx_hash, engine_result=reason,
                    detail="sequence used by a transaction that was not found",
                )
                return finish(OutcomeStatus.INDETERMINATE, reason_code=reason, tx_hash=tx_hash)
            found_hash, status = found
            outcome_status, attempt_status = _final_statuses(status.engine_result)
            record(
                attempt_status, created_at,
                tx_hash=found_hash, engine_result=status.engine_result,
                detail=f"sequence consumed by {found_hash}",
            )
            return finish(
                outcome_status,
                reason_code=status.engine_result or reason,
                tx_hash=found_hash,
                ledger_index=status.ledger_index,
            )

        if disposition == Disposition.EXPIRED:
            record(AttemptStatus.EXPIRED, created_at, tx_hash=tx_hash, engine_result=reason)
            if attempt == max_attempts or ledger_info is None:
                return finish(OutcomeStatus.INDETERMINATE, reason_code=reason, tx_hash=tx_hash)
            try:
                height = await ledger_info.current_ledger_index()
            except _LOOKUP_ERRORS as exc:
                logger.warning("%s: no height for a fresh bound: %s", label, exc)
                return finish(
                    OutcomeStatus.INDETERMINATE,
                    reason_code=REASON_NO_FRESH_BOUND, tx_hash=tx_hash,
                )
            operation = operation.with_expiration(height + settings.expiration_offset)
            signed = _sign(operation, signer)
            logger.info(
                "%s: expired, re-signed with LastLedgerSequence=%d",
                label, operation.last_ledger_sequence,
            )
            continue

        # ACCEPTED
        deadline = started + attempt_timeout
        polled = await _poll(
            client,
            tx_hash,
            last_ledger_sequence=operation.last_ledger_sequence,
            deadline=deadline,
            poll_interval=settings.poll_interval,
            ledger_info=ledger_info,
            clock=clock,
            sleep=sleep,
        )

        if polled.status is not None and polled.status.validated:
            final = polled.status
            outcome_status, attempt_status = _final_statuses(final.engine_result)
            record(attempt_status, created_at, tx_hash=tx_hash, engine_result=final.engine_result)
            return finish(
                outcome_status,
                reason_code=final.engine_result or reason,
                tx_hash=tx_hash,
                ledger_index=final.ledger_index,
            )

        if polled.error is not None:
            logger.warning("%s: status lookup refused: %s", label, polled.error)
            record(
                AttemptStatus.INCONCLUSIVE, created_at,
                tx_hash=tx_hash, engine_result=reason,
                detail=f"status lookup failed ({polled.error.error_code}): {polled.error}",
            )
            return finish(
                OutcomeStatus.INDETERMINATE,
                reason_code=REASON_LOOKUP_FAILED, tx_hash=tx_hash,
            )

        if polled.expired:
            record(
                AttemptStatus.EXPIRED, created_at,
                tx_hash=tx_hash, engine_result=reason,
                detail="validated ledger passed the expiration bound",
            )
            return finish(
                OutcomeStatus.INDETERMINATE,
                reason_code=REASON_EXPIRATION_REACHED, tx_hash=tx_hash,
            )

        logger.warning(
            "%s: attempt %d/%d not validated within %ss",
            label, attempt, max_attempts, attempt_timeout,
        )
        record(
            AttemptStatus.INCONCLUSIVE, created_at,
            tx_hash=tx_hash, engine_result=reason,
            detail=f"not validated within {attempt_timeout}s",
        )

    return finish(
        OutcomeStatus.INDETERMINATE,
        reason_code=REASON_ATTEMPTS_EXHAUSTED,
        tx_hash=signed.tx_hash,
    )


# =========================================================================
# reconcile()
# =========================================================================


async def reconcile(outcome: Outcome, client: LedgerClient) -> Outcome:
    """Settle an INDETERMINATE outcome from authoritative ledger state.

    Looks up every hash recorded on the outcome. The first validated one
    decides CONFIRMED or REJECTED. If none is validated the outcome is
    returned unchanged and the caller still must not assume either way.

    Non-INDETERMINATE outcomes are returned as-is with no network call.
    """
    if outcome.status != OutcomeStatus.INDETERMINATE:
        return outcome

    hashes: list[str] = []
    for tx_hash in [a.tx_hash for a in outcome.attempts] + [outcome.tx_hash]:
        if tx_hash is not None and tx_hash not in hashes:
            hashes.append(tx_hash)

    found = await _lookup(client, hashes)
    if found is None:
        logger.info("%s seq=%d still undetermined", outcome.account, outcome.sequence)
        return outcome

    tx_hash, status = found
    outcome_status, _ = _final_statuses(status.engine_result)
    logger.info(
        "%s seq=%d reconciled: %s (%s)",
        outcome.account, outcome.sequence, outcome_status.value, status.engine_result,
    )
    return replace(
        outcome,
        status=outcome_status,
        reason_code=status.engine_result or "UNKNOWN",
        tx_hash=tx_hash,
        ledger_index=status.ledger_index,
    )
