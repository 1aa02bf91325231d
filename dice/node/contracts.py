import logging
from typing import Any, Callable

from ..core.exceptions import ContractUnavailable
from ..core.models import ContractState

logger = logging.getLogger(__name__)

TOKEN_UID_MAP: dict[str, str] = {
    "00": "HTR",
    "01": "USDC",
}

# network -> node client (HathorNodeClient or MockNodeClient)
NodeFactory = Callable[[str], Any]


def token_symbol(uid: str) -> str:
    return TOKEN_UID_MAP.get(uid, uid)


def token_uid(symbol: str) -> str:
    for uid, known in TOKEN_UID_MAP.items():
        if known == symbol:
            return uid
    return symbol


class ContractDirectory:
    """
    Which dice contract serves which token, and its last observed state.

    ``refresh`` replaces both mappings in one step; readers never see a
    mix of old and new states.
    """

    def __init__(self, node: Any, contract_ids: list[str], node_factory: NodeFactory | None = None):
        self.node = node
        self.contract_ids = list(contract_ids)
        self._node_factory = node_factory
        self._states: dict[str, ContractState] = {}
        self._contracts: dict[str, str] = {}
        self._retired: dict[str, Any] = {}  # network -> node client from before a switch

    @property
    def network(self) -> str:
        return self.node.network

    @property
    def tokens(self) -> list[str]:
        return list(self._states)

    @property
    def states(self) -> dict[str, ContractState]:
        return dict(self._states)

    async def refresh(self) -> dict[str, ContractState]:
        """Fetch every configured contract's state."""
        states: dict[str, ContractState] = {}
        contracts: dict[str, str] = {}
        try:
            for contract_id in self.contract_ids:
                state = await self.node.get_contract_state(contract_id)
                symbol = token_symbol(state.token_id)
                states[symbol] = state
                contracts[symbol] = contract_id
        except Exception as e:
            logger.error("Failed to fetch contract states: %s", e)
            raise

        self._states, self._contracts = states, contracts
        logger.info("Loaded %d dice contracts on %s", len(states), self.network)
        return dict(states)

    def state_for(self, token: str) -> ContractState:
        state = self._states.get(token)
        if state is None:
            raise ContractUnavailable(f"Contract not found for token {token}")
        return state

    def contract_id_for(self, token: str) -> str:
        contract_id = self._contracts.get(token)
        if contract_id is None:
            raise ContractUnavailable(f"Contract not found for token {token}")
        return contract_id

    def token_for_contract(self, contract_id: str) -> str | None:
        for token, known in self._contracts.items():
            if known == contract_id:
                return token
        return None

    def node_for(self, network: str | None) -> Any:
        """Node client for network; bets submitted before a switch settle through it."""
        if network is None or network == self.network:
            return self.node
        node = self._retired.get(network)
        if node is None:
            if self._node_factory is None:
                raise RuntimeError("No node factory configured")
            node = self._retired[network] = self._node_factory(network)
        return node

    async def release(self, keep: set[str | None]) -> None:
        """Close retired node clients whose network is not in keep."""
        for network in [n for n in self._retired if n not in keep]:
            await self._retired.pop(network).close()
            logger.debug("Released node client for %s", network)

    async def switch_network(self, network: str) -> None:
        """Make network current and reload the contracts.

        The previous client stays open until ``release`` drops it.
        """
        if self._node_factory is None:
            raise RuntimeError("No node factory configured")
        if network == self.network:
            await self.refresh()
            return
        old = self.node
        self.node = self._retired.pop(network, None) or self._node_factory(network)
        self._retired[old.network] = old
        self._states, self._contracts = {}, {}
        await self.refresh()

    async def close(self) -> None:
        for node in [self.node, *self._retired.values()]:
            await node.close()
        self._retired.clear()
