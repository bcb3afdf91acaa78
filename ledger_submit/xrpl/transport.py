"""
Transport protocol for XRPL JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The
JSON-RPC client depends on this protocol, not on httpx directly, so the
transport can be swapped without editing parsing logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - fake transports (tests, return canned responses)

Failure mapping (HttpxTransport):
    - timeout, connect/read errors, HTTP 408, 425, 429 and 5xx → TransientTransportError
    - other HTTP 4xx, non-JSON body → LedgerRequestError
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from ledger_submit.errors import LedgerRequestError, TransientTransportError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({408, 425, 429, 502, 503, 504})


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Raises:
            TransientTransportError: Retryable transport failure.
            LedgerRequestError: Non-retryable request failure.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout: Per-request timeout in seconds.
        client: Optional shared AsyncClient. When omitted, a short-lived
            client is opened per request.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        method = payload.get("method")
        try:
            if self._client is not None:
                response = await self._post(self._client, url, payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._post(client, url, payload)
        except httpx.TimeoutException as e:
            logger.warning("JSON-RPC %s to %s timed out after %ss", method, url, self._timeout)
            raise TransientTransportError(
                f"request timed out after {self._timeout}s",
                error_code="TIMEOUT",
                details={"url": url, "method": method, "timeout_s": self._timeout},
            ) from e
        except httpx.TransportError as e:
            logger.warning("JSON-RPC %s to %s failed: %s", method, url, e)
            raise TransientTransportError(
                f"failed to reach {url}: {e}",
                error_code="CONNECTION_FAILED",
                details={"url": url, "method": method},
            ) from e

        if response.status_code >= 400:
            details = {
                "url": url,
                "method": method,
                "status_code": response.status_code,
                "reason": response.reason_phrase,
            }
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            if response.status_code in _RETRYABLE_STATUS or response.status_code >= 500:
                logger.warning("JSON-RPC %s to %s: %s", method, url, message)
                raise TransientTransportError(message, error_code="HTTP_ERROR", details=details)
            raise LedgerRequestError(message, error_code="HTTP_ERROR", details=details)

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise LedgerRequestError(
                "response was not valid JSON",
                error_code="INVALID_JSON",
                details={
                    "url": url,
                    "method": method,
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

        if not isinstance(result, dict):
            raise LedgerRequestError(
                "response JSON was not an object",
                error_code="INVALID_JSON",
                details={"url": url, "method": method},
            )
        return result

    async def _post(
        self, client: httpx.AsyncClient, url: str, payload: dict[str, Any]
    ) -> httpx.Response:
        return await client.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )
