"""
Tests for submit-response classification and the exception taxonomy.

Test plan:
- Engine results: exact tokens override prefixes, tec* depends on the
  accepted flag, unknown tokens are rejected
- Server errors: busy/unsynced tokens are transient, the rest rejected
- Exceptions carry error_code/details; ConfigurationError is a ValueError
"""

import pytest

from ledger_submit.errors import (
    TRANSIENT_ERRORS,
    ConfigurationError,
    DeterministicRejection,
    Disposition,
    ExpirationElapsed,
    IndeterminateOutcome,
    SubmissionError,
    TransientTransportError,
    classify_engine_result,
    classify_server_error,
    classify_submit,
    is_success,
)
from ledger_submit.xrpl.client import SubmitResult


class TestClassifyEngineResult:
    @pytest.mark.parametrize(
        ("engine_result", "expected"),
        [
            ("tesSUCCESS", Disposition.ACCEPTED),
            ("terQUEUED", Disposition.ACCEPTED),
            ("terPRE_SEQ", Disposition.ACCEPTED),
            ("tefALREADY", Disposition.DUPLICATE),
            ("tefPAST_SEQ", Disposition.SEQUENCE_CONSUMED),
            ("tefMAX_LEDGER", Disposition.EXPIRED),
            ("telCAN_NOT_QUEUE", Disposition.TRANSIENT),
            ("telINSUF_FEE_P", Disposition.TRANSIENT),
            ("temBAD_FEE", Disposition.REJECTED),
            ("temMALFORMED", Disposition.REJECTED),
            ("tefBAD_AUTH", Disposition.REJECTED),
        ],
    )
    def test_mapping(self, engine_result: str, expected: Disposition) -> None:
        assert classify_engine_result(engine_result) == expected

    def test_tec_accepted_is_polled(self) -> None:
        assert classify_engine_result("tecPATH_DRY", accepted=True) == Disposition.ACCEPTED

    def test_tec_not_accepted_is_rejected(self) -> None:
        assert (
            classify_engine_result("tecUNFUNDED_PAYMENT", accepted=False)
            == Disposition.REJECTED
        )

    def test_unknown_token_is_rejected(self) -> None:
        assert classify_engine_result("xyzSOMETHING") == Disposition.REJECTED


class TestClassifyServerError:
    @pytest.mark.parametrize("token", ["tooBusy", "noNetwork", "noCurrent", "slowDown"])
    def test_transient_tokens(self, token: str) -> None:
        assert classify_server_error(token) == Disposition.TRANSIENT

    @pytest.mark.parametrize("token", ["invalidParams", "invalidTransaction", None])
    def test_other_tokens_rejected(self, token: str | None) -> None:
        assert classify_server_error(token) == Disposition.REJECTED


class TestClassifySubmit:
    def test_engine_result_wins(self) -> None:
        result = SubmitResult(accepted=False, engine_result="tefALREADY", error_code="tooBusy")
        assert classify_submit(result) == Disposition.DUPLICATE

    def test_falls_back_to_error_code(self) -> None:
        result = SubmitResult(accepted=False, error_code="tooBusy")
        assert classify_submit(result) == Disposition.TRANSIENT

    def test_uses_accepted_flag(self) -> None:
        result = SubmitResult(accepted=True, engine_result="tecNO_DST_INSUF_XRP")
        assert classify_submit(result) == Disposition.ACCEPTED


class TestIsSuccess:
    def test_only_tes_success(self) -> None:
        assert is_success("tesSUCCESS") is True
        assert is_success("tecPATH_DRY") is False
        assert is_success(None) is False


class TestExceptions:
    def test_error_code_and_details(self) -> None:
        exc = TransientTransportError("timed out", error_code="TIMEOUT", details={"url": "x"})
        assert exc.error_code == "TIMEOUT"
        assert exc.details == {"url": "x"}
        assert str(exc) == "timed out"

    def test_details_default_empty(self) -> None:
        assert SubmissionError("boom").details == {}

    def test_configuration_error_is_value_error(self) -> None:
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(ConfigurationError, SubmissionError)

    def test_rejection_keeps_reason(self) -> None:
        exc = DeterministicRejection("temBAD_FEE")
        assert exc.reason_code == "temBAD_FEE"
        assert "temBAD_FEE" in str(exc)

    def test_expiration_is_indeterminate(self) -> None:
        assert issubclass(ExpirationElapsed, IndeterminateOutcome)

    def test_transient_errors_tuple(self) -> None:
        assert TransientTransportError in TRANSIENT_ERRORS
        assert TimeoutError in TRANSIENT_ERRORS
        assert ConnectionError in TRANSIENT_ERRORS
        assert DeterministicRejection not in TRANSIENT_ERRORS
