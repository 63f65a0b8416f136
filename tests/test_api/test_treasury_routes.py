"""Tests for the treasury spend, oversight and balance routes."""

from __future__ import annotations

from decimal import Decimal

import pytest

from agent_autopilot.domain.exceptions import BalanceUnavailableError


async def _spend(client, amount: str, spend_type: str = "HIRE_SKILL"):
    return await client.post(
        "/api/v1/treasury/spend",
        json={"type": spend_type, "amount": amount, "recipient": "0xskill"},
    )


class TestSpend:
    @pytest.mark.asyncio
    async def test_small_spend_auto_approved(self, client) -> None:
        response = await _spend(client, "40000")

        body = response.json()
        assert response.status_code == 200
        assert body["approved"] is True
        assert body["oversight_request"] is None
        assert body["percentage"] == pytest.approx(0.04)

    @pytest.mark.asyncio
    async def test_large_spend_held(self, client) -> None:
        body = (await _spend(client, "60000")).json()

        assert body["approved"] is False
        request = body["oversight_request"]
        assert request["status"] == "PENDING"
        assert request["treasury_percentage"] == pytest.approx(0.06)
        assert request["spend"]["type"] == "HIRE_SKILL"

    @pytest.mark.asyncio
    async def test_zero_balance_reports_null_percentage(self, client, balance_source) -> None:
        balance_source.balance = Decimal("0")

        body = (await _spend(client, "1")).json()

        assert body["approved"] is False
        assert body["percentage"] is None
        assert body["oversight_request"]["treasury_percentage"] is None

    @pytest.mark.asyncio
    async def test_rejects_non_positive_amount(self, client) -> None:
        response = await _spend(client, "0")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rejects_unknown_type(self, client) -> None:
        response = await _spend(client, "10", spend_type="BUY_YACHT")
        assert response.status_code == 422


class TestOversight:
    @pytest.mark.asyncio
    async def test_list_and_approve(self, client) -> None:
        held = (await _spend(client, "60000")).json()["oversight_request"]

        listing = (await client.get("/api/v1/treasury/oversight")).json()
        assert [r["id"] for r in listing] == [held["id"]]

        response = await client.post(
            f"/api/v1/treasury/oversight/{held['id']}/approve", json={"approver": "pilot"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"
        assert response.json()["approved_by"] == "pilot"

        pending = (
            await client.get("/api/v1/treasury/oversight", params={"status": "PENDING"})
        ).json()
        assert pending == []

    @pytest.mark.asyncio
    async def test_reject_then_approve_conflicts(self, client) -> None:
        held = (await _spend(client, "60000")).json()["oversight_request"]
        url = f"/api/v1/treasury/oversight/{held['id']}"

        assert (await client.post(f"{url}/reject", json={"approver": "pilot"})).status_code == 200
        response = await client.post(f"{url}/approve", json={"approver": "pilot"})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_request(self, client) -> None:
        response = await client.post(
            "/api/v1/treasury/oversight/missing/approve", json={"approver": "pilot"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "OVERSIGHT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_approver_required(self, client) -> None:
        response = await client.post("/api/v1/treasury/oversight/x/approve", json={})
        assert response.status_code == 422


class TestBalance:
    @pytest.mark.asyncio
    async def test_balance(self, client) -> None:
        body = (await client.get("/api/v1/treasury/balance")).json()

        assert Decimal(body["balance"]) == Decimal("1000000")
        assert body["address"] == "0x" + "a" * 40
        assert body["token_address"] == "0xtoken"
        assert body["oversight_threshold"] == 0.05

    @pytest.mark.asyncio
    async def test_balance_unavailable(self, client, balance_source) -> None:
        balance_source.error = BalanceUnavailableError("rpc down")

        response = await client.get("/api/v1/treasury/balance")

        assert response.status_code == 503
        assert response.json()["error"] == "BALANCE_UNAVAILABLE"
