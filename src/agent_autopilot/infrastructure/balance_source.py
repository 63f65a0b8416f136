"""Read-only treasury balance via JSON-RPC.

Reads the ERC-20 `balanceOf(address)` of the treasury token with a plain
`eth_call`. Nothing here signs or sends transactions.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import httpx

from agent_autopilot.domain.exceptions import BalanceUnavailableError
from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from agent_autopilot.config import Settings

logger = get_logger(__name__)

BALANCE_OF_SELECTOR = "0x70a08231"


def encode_balance_of(address: str) -> str:
    """ABI-encode a balanceOf(address) call."""
    hex_address = address.lower().removeprefix("0x")
    if len(hex_address) != 40:
        raise BalanceUnavailableError(f"Invalid wallet address: {address}")
    return BALANCE_OF_SELECTOR + hex_address.rjust(64, "0")


class RpcBalanceSource:
    """BalanceSource backed by an EVM JSON-RPC endpoint."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        rpc_url: str,
        token_address: str,
        decimals: int = 18,
        timeout: float = 10.0,
    ) -> None:
        self._http = http
        self._rpc_url = rpc_url
        self._token_address = token_address
        self._decimals = decimals
        self._timeout = timeout

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> RpcBalanceSource:
        return cls(
            http,
            rpc_url=settings.treasury_rpc_url,
            token_address=settings.treasury_token_address,
            decimals=settings.treasury_token_decimals,
        )

    async def get_balance(self, address: str) -> Decimal:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [
                {"to": self._token_address, "data": encode_balance_of(address)},
                "latest",
            ],
        }
        try:
            response = await self._http.post(self._rpc_url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BalanceUnavailableError(f"Balance RPC failed: {exc}") from exc

        if not isinstance(body, dict) or body.get("error") or "result" not in body:
            raise BalanceUnavailableError(f"Balance RPC returned an error: {body!r}")

        try:
            raw = int(body["result"], 16) if body["result"] not in ("0x", "") else 0
        except (TypeError, ValueError) as exc:
            raise BalanceUnavailableError(f"Unparseable balance: {body['result']!r}") from exc

        balance = Decimal(raw).scaleb(-self._decimals)
        logger.debug("treasury.balance_read", address=address, balance=str(balance))
        return balance
