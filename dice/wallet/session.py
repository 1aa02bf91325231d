"""Owned wallet session.

Replaces the per-process singleton a browser app would keep: the
application constructs one ``WalletSession`` and hands it to whoever
needs the wallet. At most one transport is active; activating another
mode first tears the current one down completely.
"""

import logging
from typing import Any

from ..core.exceptions import TransportError, normalize_error
from ..core.models import TransportMode, TransportSession
from ..utils.storage import LAST_ADDRESS_KEY, WALLET_TYPE_KEY, LocalStorage
from .base import WalletTransport
from .mock import MockTransport
from .remote_session import RemoteSessionTransport
from .rpc import WalletRPC
from .snap import SnapTransport

logger = logging.getLogger(__name__)

# node networks -> names the wallets use
WALLET_NETWORKS = {
    "india-testnet": "testnet",
    "mainnet": "mainnet",
}


def wallet_network(network: str) -> str:
    return WALLET_NETWORKS.get(network, network)


class WalletSession:
    """Owns the active wallet transport and its persisted markers."""

    def __init__(
        self,
        storage: LocalStorage,
        network: str = "india-testnet",
        use_mock: bool = False,
        mock: MockTransport | None = None,
        snap: SnapTransport | None = None,
        remote: RemoteSessionTransport | None = None,
    ):
        self.storage = storage
        self.network = network
        self.use_mock = use_mock

        chain = wallet_network(network)
        self._transports: dict[TransportMode, WalletTransport] = {
            TransportMode.MOCK: mock or MockTransport(),
            TransportMode.SNAP: snap or SnapTransport(network=chain),
            TransportMode.REMOTE_SESSION: remote or RemoteSessionTransport(network=chain),
        }
        self._active: WalletTransport | None = None
        self.connected_network: str | None = None  # as reported by the wallet
        self._rpc = WalletRPC(
            network=chain,
            mock=self._transports[TransportMode.MOCK],
            remote=self._transports[TransportMode.REMOTE_SESSION],
        )

    @property
    def rpc(self) -> WalletRPC:
        return self._rpc

    @property
    def active_mode(self) -> TransportMode | None:
        return self._active.mode if self._active else None

    @property
    def address(self) -> str | None:
        return self._active.address if self._active else None

    @property
    def is_connected(self) -> bool:
        return self._active is not None and self._active.is_connected

    @property
    def state(self) -> TransportSession:
        return TransportSession(
            mode=self.active_mode,
            is_connected=self.is_connected,
            address=self.address,
            network=self.network,
            connected_network=self.connected_network,
        )

    def transport(self, mode: TransportMode) -> WalletTransport:
        return self._transports[mode]

    def _sync_rpc(self) -> None:
        mode = self.active_mode
        self._rpc.use_mock = mode is TransportMode.MOCK
        snap = self._transports[TransportMode.SNAP]
        self._rpc.custom_request = snap.request if mode is TransportMode.SNAP else None

    def _persist(self) -> None:
        if self._active is None:
            return
        self.storage.set(WALLET_TYPE_KEY, self._active.mode.value)
        if self._active.address:
            self.storage.set(LAST_ADDRESS_KEY, self._active.address)

    async def _check_network(self) -> None:
        """Record the wallet's network and warn when it is not the selected one."""
        try:
            info = await self._rpc.get_connected_network()
        except TransportError as e:
            logger.warning("Could not read the wallet network: %s", e.message)
            return
        if isinstance(info, dict) and isinstance(info.get("response"), dict):
            info = info["response"]
        reported = info.get("network") if isinstance(info, dict) else None
        self.connected_network = reported
        if reported and reported not in (self.network, wallet_network(self.network)):
            logger.warning("Wallet is on %s but %s is selected", reported, self.network)

    async def activate(self, mode: TransportMode | str, **options: Any) -> TransportSession:
        """
        Connect through mode, tearing down any other active mode first.

        Extra options are passed to the transport's ``connect`` (for
        instance ``pairing_topic`` for a remote session).
        """
        mode = TransportMode(mode)
        if self._active is not None:
            if self._active.mode is mode and self._active.is_connected:
                return self.state
            await self.teardown()

        transport = self._transports[mode]
        try:
            await transport.connect(**options)
        except TransportError:
            raise
        except Exception as exc:
            raise normalize_error(exc) from exc

        self._active = transport
        self._sync_rpc()
        self._persist()
        await self._check_network()
        logger.info("Wallet connected via %s (%s)", mode.value, transport.address)
        return self.state

    async def teardown(self) -> None:
        """Disconnect the active transport and forget the persisted markers."""
        active, self._active = self._active, None
        self.connected_network = None
        self._sync_rpc()
        if active is not None:
            try:
                await active.disconnect()
            finally:
                logger.info("Wallet %s disconnected", active.mode.value)
        self.storage.remove(WALLET_TYPE_KEY)
        self.storage.remove(LAST_ADDRESS_KEY)

    async def restore(self) -> TransportSession:
        """Reconnect the mode recorded by the last session, if possible."""
        if self.use_mock:
            return await self.activate(TransportMode.MOCK)

        marker = self.storage.get(WALLET_TYPE_KEY)
        if not marker:
            return self.state
        try:
            mode = TransportMode(marker)
        except ValueError:
            logger.warning("Unknown wallet type marker %r, clearing it", marker)
            self.storage.remove(WALLET_TYPE_KEY)
            return self.state

        transport = self._transports[mode]
        if mode is TransportMode.SNAP:
            restored = await transport.restore()
        elif mode is TransportMode.REMOTE_SESSION:
            restored = transport.restore()
        else:
            await transport.connect()
            restored = True

        if not restored:
            logger.info("Could not restore %s wallet session", mode.value)
            self.storage.remove(WALLET_TYPE_KEY)
            return self.state

        self._active = transport
        self._sync_rpc()
        self._persist()
        await self._check_network()
        return self.state

    async def switch_network(self, network: str) -> None:
        """Point every transport at network; the active connection is kept."""
        self.network = network
        chain = wallet_network(network)
        self._rpc.network = chain
        for transport in self._transports.values():
            if hasattr(transport, "network"):
                transport.network = chain
