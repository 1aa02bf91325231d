"""Explicit service wiring.

Everything the API needs is constructed here once and passed around;
there are no module-level service singletons.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .config import Settings, get_settings
from .core.models import Bet
from .engine.operations import ContractOperations
from .engine.tracker import BetSettlementTracker
from .node.client import HathorNodeClient
from .node.contracts import ContractDirectory, NodeFactory
from .node.mock import MOCK_CONTRACT_STATES, MockNodeClient
from .utils.cache import BalanceCache
from .utils.storage import LocalStorage
from .wallet.balance import BalanceService
from .wallet.mock import MockTransport
from .wallet.remote_session import RemoteSessionTransport, SignClient
from .wallet.session import WalletSession, wallet_network
from .wallet.snap import ProviderRequest, SnapTransport

logger = logging.getLogger(__name__)


@dataclass
class DiceContext:
    settings: Settings
    storage: LocalStorage
    directory: ContractDirectory
    session: WalletSession
    balances: BalanceService
    tracker: BetSettlementTracker
    operations: ContractOperations

    @property
    def network(self) -> str:
        return self.directory.network

    async def start(self):
        """Load contracts, restore the wallet and start settlement polling."""
        try:
            await self.directory.refresh()
        except Exception as e:
            logger.error("Contract states unavailable at startup: %s", e)

        try:
            await self.session.restore()
        except Exception as e:
            logger.warning("Could not restore wallet session: %s", e)

        self.tracker.start(self.settings.poll_interval_seconds)

    async def close(self):
        await self.tracker.stop()
        await self.directory.close()

    async def switch_network(self, network: str):
        await self.session.switch_network(network)
        self.balances.invalidate()
        await self.directory.switch_network(network)
        self.tracker.reset_feed()
        logger.info("Switched to %s", network)


def _node_factory(settings: Settings) -> NodeFactory:
    if settings.use_mock_wallet:
        return MockNodeClient

    def factory(network: str) -> HathorNodeClient:
        return HathorNodeClient(
            network,
            base_url=settings.node_url(network),
            timeout=settings.request_timeout_seconds,
        )

    return factory


def build_context(
    settings: Settings | None = None,
    sign_client: SignClient | None = None,
    snap_provider: ProviderRequest | None = None,
) -> DiceContext:
    """
    Build every service from settings.

    sign_client and snap_provider are the host's remote-signing client
    and extension bridge; without them only mock mode can connect.
    """
    settings = settings or get_settings()
    storage = LocalStorage(settings.storage_path)
    network = settings.default_network
    chain = wallet_network(network)

    factory = _node_factory(settings)
    contract_ids = list(MOCK_CONTRACT_STATES) if settings.use_mock_wallet else settings.contract_ids
    directory = ContractDirectory(factory(network), contract_ids, factory)

    session = WalletSession(
        storage,
        network=network,
        use_mock=settings.use_mock_wallet,
        mock=MockTransport(settings.mock_delay_seconds),
        snap=SnapTransport(
            snap_provider,
            snap_id=settings.snap_id,
            snap_version=settings.snap_version,
            network=chain,
        ),
        remote=RemoteSessionTransport(sign_client, network=chain),
    )
    balances = BalanceService(
        session, BalanceCache(storage, settings.balance_cache_ttl_seconds)
    )
    tracker = BetSettlementTracker(
        directory,
        page_size=settings.history_page_size,
        max_pages=settings.history_max_pages,
        interval_seconds=settings.poll_interval_seconds,
    )
    operations = ContractOperations(directory, session, tracker)

    if settings.use_mock_wallet:
        async def confirm_on_mock_node(bet: Bet):
            node: Any = directory.node_for(bet.network)
            if isinstance(node, MockNodeClient):
                node.record_bet(bet)

        operations.register_callback(confirm_on_mock_node)

    return DiceContext(
        settings=settings,
        storage=storage,
        directory=directory,
        session=session,
        balances=balances,
        tracker=tracker,
        operations=operations,
    )
