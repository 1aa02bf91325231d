"""Hathor full-node REST client.

Read-only access to nano contract state, history, blueprints and view
functions. Transport failures surface as NetworkFailure and malformed
payloads as DecodeError; nothing is retried.

API reference: https://docs.hathor.network/references/
"""

import asyncio
import logging
from typing import Any

import aiohttp

from ..config import REQUEST_TIMEOUT_SECONDS, get_settings
from ..core.exceptions import NetworkFailure
from ..core.models import ContractState, HistoryPage
from .parsing import (
    Params,
    history_params,
    parse_contract_state,
    parse_history,
    parse_view_value,
    state_params,
    view_params,
)

logger = logging.getLogger(__name__)


class HathorNodeClient:
    """Async client for one full node."""

    def __init__(
        self,
        network: str = "india-testnet",
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.network = network
        self.base_url = (base_url or get_settings().node_url(network)).rstrip("/")
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, path: str, params: Params | None = None, what: str = "data") -> Any:
        """GET path and decode JSON, raising NetworkFailure on any problem."""
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}

        try:
            async with session.get(url, params=params, headers=headers) as resp:
                if resp.status != 200:
                    raise NetworkFailure(f"Failed to {what}: {resp.status}", status=resp.status)
                try:
                    return await resp.json()
                except ValueError as exc:
                    raise NetworkFailure(f"Failed to {what}: invalid JSON response") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkFailure(f"Failed to {what}: timeout") from exc
        except aiohttp.ClientError as exc:
            raise NetworkFailure(f"Failed to {what}: {exc}") from exc

    async def get_blueprint_info(self, blueprint_id: str) -> dict[str, Any]:
        return await self._request(f"/nc_blueprint/{blueprint_id}", what="fetch blueprint info")

    async def get_contract_state(self, contract_id: str) -> ContractState:
        data = await self._request(
            "/nano_contract/state", state_params(contract_id), what="fetch contract state"
        )
        return parse_contract_state(data)

    async def get_contract_history(
        self,
        contract_id: str,
        count: int = 50,
        after: str | None = None,
    ) -> HistoryPage:
        """
        Fetch one page of a contract's transaction history, newest first.

        Pass the hash of the last entry of the previous page as ``after``
        to continue.
        """
        data = await self._request(
            "/nano_contract/history",
            history_params(contract_id, count, after),
            what="fetch contract history",
        )
        return parse_history(data)

    async def get_transaction(self, tx_id: str) -> dict[str, Any]:
        return await self._request("/transaction", [("id", tx_id)], what="fetch transaction")

    async def call_view_function(
        self,
        contract_id: str,
        method: str,
        args: list[Any] | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "/nano_contract/state",
            view_params(contract_id, method, args),
            what="call view function",
        )

    async def get_claimable_balance(self, contract_id: str, address: str) -> int:
        data = await self.call_view_function(contract_id, "get_address_balance", [address])
        return parse_view_value(data)

    async def get_maximum_liquidity_removal(self, contract_id: str, address: str) -> int:
        data = await self.call_view_function(
            contract_id, "calculate_address_maximum_liquidity_removal", [address]
        )
        return parse_view_value(data)
