"""Tests for HttpxTransport failure mapping."""

from __future__ import annotations

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from ledger_submit.errors import LedgerRequestError, TransientTransportError
from ledger_submit.xrpl.transport import HttpxTransport, JsonRpcTransport

URL = "http://localhost:5005/"
PAYLOAD = {"method": "ledger_current", "params": [{}], "id": 1}


class TestPostJson:
    """Successful round trips."""

    def test_is_transport(self) -> None:
        assert isinstance(HttpxTransport(), JsonRpcTransport)

    @pytest.mark.asyncio
    async def test_success(self, httpx_mock: HTTPXMock) -> None:
        """Parsed JSON object is returned as is."""
        httpx_mock.add_response(
            method="POST",
            url=URL,
            json={"result": {"status": "success", "ledger_current_index": 9001}},
        )

        result = await HttpxTransport().post_json(URL, PAYLOAD)

        assert result == {"result": {"status": "success", "ledger_current_index": 9001}}

    @pytest.mark.asyncio
    async def test_sends_json_body(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(method="POST", url=URL, json={"result": {}})

        await HttpxTransport().post_json(URL, PAYLOAD)

        requests = httpx_mock.get_requests()
        assert len(requests) == 1
        assert json.loads(requests[0].content) == PAYLOAD
        assert requests[0].headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_shared_client(self, httpx_mock: HTTPXMock) -> None:
        """A caller-owned AsyncClient is used and left open."""
        httpx_mock.add_response(method="POST", url=URL, json={"result": {}})

        async with httpx.AsyncClient() as client:
            transport = HttpxTransport(client=client)
            await transport.post_json(URL, PAYLOAD)
            assert not client.is_closed


class TestFailureMapping:
    """Transport failures split into transient and non-transient."""

    @pytest.mark.asyncio
    async def test_connection_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"), method="POST", url=URL)

        with pytest.raises(TransientTransportError) as exc:
            await HttpxTransport().post_json(URL, PAYLOAD)

        assert exc.value.error_code == "CONNECTION_FAILED"
        assert exc.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_timeout(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(
            httpx.TimeoutException("Request timed out"), method="POST", url=URL
        )

        with pytest.raises(TransientTransportError) as exc:
            await HttpxTransport(timeout=5.0).post_json(URL, PAYLOAD)

        assert exc.value.error_code == "TIMEOUT"
        assert exc.value.details["timeout_s"] == 5.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [408, 425, 429, 500, 503])
    async def test_retryable_status(self, httpx_mock: HTTPXMock, status_code: int) -> None:
        httpx_mock.add_response(method="POST", url=URL, status_code=status_code, text="busy")

        with pytest.raises(TransientTransportError) as exc:
            await HttpxTransport().post_json(URL, PAYLOAD)

        assert exc.value.error_code == "HTTP_ERROR"
        assert exc.value.details["status_code"] == status_code

    @pytest.mark.asyncio
    async def test_client_error_status(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(method="POST", url=URL, status_code=400, text="bad request")

        with pytest.raises(LedgerRequestError) as exc:
            await HttpxTransport().post_json(URL, PAYLOAD)

        assert not isinstance(exc.value, TransientTransportError)
        assert "400" in str(exc.value)

    @pytest.mark.asyncio
    async def test_invalid_json(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(method="POST", url=URL, text="not json")

        with pytest.raises(LedgerRequestError) as exc:
            await HttpxTransport().post_json(URL, PAYLOAD)

        assert exc.value.error_code == "INVALID_JSON"
        assert exc.value.details["body_preview"] == "not json"

    @pytest.mark.asyncio
    async def test_json_not_object(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(method="POST", url=URL, json=["not", "an", "object"])

        with pytest.raises(LedgerRequestError) as exc:
            await HttpxTransport().post_json(URL, PAYLOAD)

        assert exc.value.error_code == "INVALID_JSON"
        assert "not an object" in str(exc.value)
