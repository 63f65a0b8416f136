"""Tests for the JSON-RPC treasury balance reader."""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from agent_autopilot.domain.exceptions import BalanceUnavailableError
from agent_autopilot.infrastructure.balance_source import (
    BALANCE_OF_SELECTOR,
    RpcBalanceSource,
    encode_balance_of,
)

WALLET = "0x" + "ab" * 20
TOKEN = "0x" + "cd" * 20


def _source(handler, decimals: int = 18) -> RpcBalanceSource:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RpcBalanceSource(http, "https://rpc.test", TOKEN, decimals=decimals)


class TestEncodeBalanceOf:
    def test_pads_address(self) -> None:
        data = encode_balance_of(WALLET)
        assert data.startswith(BALANCE_OF_SELECTOR)
        assert len(data) == len(BALANCE_OF_SELECTOR) + 64
        assert data.endswith("ab" * 20)

    def test_rejects_bad_address(self) -> None:
        with pytest.raises(BalanceUnavailableError, match="Invalid wallet"):
            encode_balance_of("0x1234")


class TestGetBalance:
    @pytest.mark.asyncio
    async def test_scales_by_decimals(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": hex(1_500_000)})

        balance = await _source(handler, decimals=6).get_balance(WALLET)

        assert balance == Decimal("1.5")
        call = seen["body"]["params"][0]
        assert seen["body"]["method"] == "eth_call"
        assert call["to"] == TOKEN
        assert call["data"] == encode_balance_of(WALLET)

    @pytest.mark.asyncio
    async def test_empty_result_is_zero(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "0x"})

        assert await _source(handler).get_balance(WALLET) == Decimal(0)

    @pytest.mark.asyncio
    async def test_rpc_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": {"code": -32000, "message": "reverted"}})

        with pytest.raises(BalanceUnavailableError, match="returned an error"):
            await _source(handler).get_balance(WALLET)

    @pytest.mark.asyncio
    async def test_http_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        with pytest.raises(BalanceUnavailableError, match="RPC failed"):
            await _source(handler).get_balance(WALLET)

    @pytest.mark.asyncio
    async def test_garbage_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "0xZZ"})

        with pytest.raises(BalanceUnavailableError, match="Unparseable"):
            await _source(handler).get_balance(WALLET)
