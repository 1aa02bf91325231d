"""Canned full node for mock mode.

Serves two fixed dice contracts and a short history. Bets submitted
through the mock wallet can be fed back with :meth:`MockNodeClient.record_bet`
so they confirm on the next poll, like they would on a real ledger.
"""

import hashlib
import json
import logging
import time
from typing import Any

from ..core.math import calculate_payout
from ..core.models import Bet, ContractState, HistoryEntry, HistoryPage
from ..core.exceptions import NetworkFailure
from ..wallet.mock import MOCK_ADDRESS
from .parsing import parse_view_value, view_call

logger = logging.getLogger(__name__)

MOCK_CONTRACT_STATES: dict[str, ContractState] = {
    "mock-contract-htr": ContractState(
        token_id="00",
        max_bet_amount=10000,
        house_edge_basis_points=190,
        random_bit_length=16,
        available_liquidity=100000000,
        total_liquidity_provided=100000000,
    ),
    "mock-contract-usdc": ContractState(
        token_id="01",
        max_bet_amount=5000,
        house_edge_basis_points=250,
        random_bit_length=20,
        available_liquidity=50000000,
        total_liquidity_provided=50000000,
    ),
}

MOCK_BLUEPRINT = {
    "id": "mock-blueprint",
    "name": "HathorDice",
    "attributes": {
        "public_methods": ["place_bet", "add_liquidity", "remove_liquidity", "claim_balance"],
    },
}


def _canned_history() -> list[HistoryEntry]:
    now = int(time.time())
    return [
        HistoryEntry(
            hash="0000000000000001",
            timestamp=now - 60,
            nc_method="place_bet",
            nc_address=MOCK_ADDRESS,
            first_block="0000000000000abc",
            nc_args_decoded=[1000, 32768],
            nc_events=[{
                "type": "BetPlaced",
                "data": '{"amount":1000,"threshold":32768,"result":12345,"won":true,"payout":1962}',
            }],
        ),
        HistoryEntry(
            hash="0000000000000002",
            timestamp=now - 120,
            nc_method="place_bet",
            nc_address=MOCK_ADDRESS,
            first_block="0000000000000abd",
            nc_args_decoded=[500, 16384],
            nc_events=[{
                "type": "BetPlaced",
                "data": '{"amount":500,"threshold":16384,"result":50000,"won":false,"payout":0}',
            }],
        ),
    ]


class MockNodeClient:
    """In-memory stand-in for HathorNodeClient."""

    def __init__(self, network: str = "india-testnet"):
        self.network = network
        self.states = dict(MOCK_CONTRACT_STATES)
        self.histories: dict[str, list[HistoryEntry]] = {
            "mock-contract-htr": _canned_history(),
            "mock-contract-usdc": [],
        }
        self.claimable: dict[str, int] = {}

    async def close(self):
        pass

    def _history(self, contract_id: str) -> list[HistoryEntry]:
        if contract_id not in self.states:
            raise NetworkFailure("Failed to fetch contract history: 404", status=404)
        return self.histories.setdefault(contract_id, [])

    async def get_blueprint_info(self, blueprint_id: str) -> dict[str, Any]:
        if blueprint_id != MOCK_BLUEPRINT["id"]:
            raise NetworkFailure("Failed to fetch blueprint info: 404", status=404)
        return MOCK_BLUEPRINT

    async def get_contract_state(self, contract_id: str) -> ContractState:
        if contract_id not in self.states:
            raise NetworkFailure("Failed to fetch contract state: 404", status=404)
        return self.states[contract_id]

    async def get_contract_history(
        self,
        contract_id: str,
        count: int = 50,
        after: str | None = None,
    ) -> HistoryPage:
        entries = self._history(contract_id)
        start = 0
        if after:
            hashes = [entry.hash for entry in entries]
            start = hashes.index(after) + 1 if after in hashes else len(entries)
        page = entries[start:start + count]
        return HistoryPage(entries=page, has_more=start + count < len(entries))

    async def get_transaction(self, tx_id: str) -> dict[str, Any]:
        for entries in self.histories.values():
            for entry in entries:
                if entry.hash == tx_id:
                    return entry.model_dump()
        raise NetworkFailure("Failed to fetch transaction: 404", status=404)

    async def call_view_function(
        self,
        contract_id: str,
        method: str,
        args: list[Any] | None = None,
    ) -> dict[str, Any]:
        address = (args or [None])[0]
        if method == "get_address_balance":
            value = self.claimable.get(address, 5000)
        elif method == "calculate_address_maximum_liquidity_removal":
            value = 10000
        else:
            value = 0
        return {"calls": {view_call(method, args): {"value": value}}}

    async def get_claimable_balance(self, contract_id: str, address: str) -> int:
        data = await self.call_view_function(contract_id, "get_address_balance", [address])
        return parse_view_value(data)

    async def get_maximum_liquidity_removal(self, contract_id: str, address: str) -> int:
        data = await self.call_view_function(
            contract_id, "calculate_address_maximum_liquidity_removal", [address]
        )
        return parse_view_value(data)

    def record_bet(self, bet: Bet) -> HistoryEntry:
        """Confirm a submitted bet in the canned history.

        The draw is derived from the transaction hash so replays are stable.
        """
        contract_id = bet.contract_id or "mock-contract-htr"
        state = self.states.get(contract_id, MOCK_CONTRACT_STATES["mock-contract-htr"])
        lucky = int(hashlib.sha256(bet.id.encode()).hexdigest()[:8], 16) % state.draw_range
        won = lucky <= bet.threshold
        payout = (
            calculate_payout(bet.amount, bet.threshold, state.random_bit_length,
                             state.house_edge_basis_points)
            if won else 0
        )
        event = json.dumps({"lucky_number": lucky, "payout": payout}).encode().hex()
        entry = HistoryEntry(
            hash=bet.id,
            timestamp=int(time.time()),
            nc_method="place_bet",
            nc_address=bet.player,
            first_block=f"{lucky:016x}",
            nc_args_decoded=[bet.amount, bet.threshold],
            nc_events=[{"type": "BetPlaced", "data": event}],
        )
        self._history(contract_id).insert(0, entry)
        logger.debug("Mock node confirmed bet %s (lucky %s)", bet.id, lucky)
        return entry
