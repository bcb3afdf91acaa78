"""
Coordinator settings.

Defaults suit a public test network. Every field can be overridden from
the environment with ``SubmitSettings.from_env()``:

    LEDGER_SUBMIT_MAX_ATTEMPTS       int    (default 3)
    LEDGER_SUBMIT_ATTEMPT_TIMEOUT    float  seconds (default 30.0)
    LEDGER_SUBMIT_POLL_INTERVAL      float  seconds (default 1.0)
    LEDGER_SUBMIT_EXPIRATION_OFFSET  int    ledgers (default 20)
    LEDGER_SUBMIT_FEE_DROPS          str    drops (default "12")
    LEDGER_SUBMIT_HTTP_TIMEOUT       float  seconds (default 30.0)
    XRPL_URL                         str    (default http://127.0.0.1:5005)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from ledger_submit.errors import ConfigurationError

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_ATTEMPT_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 1.0
# Roughly a minute of ledger closes at ~3-4s each.
DEFAULT_EXPIRATION_OFFSET = 20
DEFAULT_FEE_DROPS = "12"
DEFAULT_RPC_URL = "http://127.0.0.1:5005"
DEFAULT_HTTP_TIMEOUT = 30.0

ENV_PREFIX = "LEDGER_SUBMIT_"


@dataclass(frozen=True)
class SubmitSettings:
    """Tunables for submission and confirmation.

    Attributes:
        max_attempts: Upper bound on submissions per operation.
        attempt_timeout: Seconds to wait for a definitive signal per attempt.
        poll_interval: Seconds between status queries.
        expiration_offset: Ledgers ahead of the current height used when a
            fresh expiration bound is computed.
        fee_drops: Default fee bid for prepared operations.
        rpc_url: rippled JSON-RPC endpoint.
        http_timeout: Per-request HTTP timeout in seconds.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    expiration_offset: int = DEFAULT_EXPIRATION_OFFSET
    fee_drops: str = DEFAULT_FEE_DROPS
    rpc_url: str = DEFAULT_RPC_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be >= 1, got: {self.max_attempts}",
                error_code="INVALID_SETTING",
                details={"max_attempts": self.max_attempts},
            )
        for name in ("attempt_timeout", "poll_interval", "http_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(
                    f"{name} must be > 0, got: {value}",
                    error_code="INVALID_SETTING",
                    details={name: value},
                )
        if self.expiration_offset < 1:
            raise ConfigurationError(
                f"expiration_offset must be >= 1, got: {self.expiration_offset}",
                error_code="INVALID_SETTING",
                details={"expiration_offset": self.expiration_offset},
            )
        if not self.fee_drops.isdigit():
            raise ConfigurationError(
                f"fee_drops must be a decimal string of drops, got: {self.fee_drops!r}",
                error_code="INVALID_SETTING",
                details={"fee_drops": self.fee_drops},
            )
        if not self.rpc_url:
            raise ConfigurationError("rpc_url must be non-empty", error_code="INVALID_SETTING")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SubmitSettings:
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        def _get(name: str, default: str) -> str:
            return env.get(f"{ENV_PREFIX}{name}", default)

        try:
            return cls(
                max_attempts=int(_get("MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS))),
                attempt_timeout=float(_get("ATTEMPT_TIMEOUT", str(DEFAULT_ATTEMPT_TIMEOUT))),
                poll_interval=float(_get("POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))),
                expiration_offset=int(
                    _get("EXPIRATION_OFFSET", str(DEFAULT_EXPIRATION_OFFSET))
                ),
                fee_drops=_get("FEE_DROPS", DEFAULT_FEE_DROPS),
                rpc_url=env.get("XRPL_URL", DEFAULT_RPC_URL),
                http_timeout=float(_get("HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))),
            )
        except ValueError as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(
                f"invalid {ENV_PREFIX}* environment value: {exc}",
                error_code="INVALID_SETTING",
            ) from exc
