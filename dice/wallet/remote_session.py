"""Remote-signing session transport (WalletConnect-style pairing).

The pairing client itself is external; this module only needs something
that satisfies :class:`SignClient`. Requests travel in the envelope
``{chainId: "hathor:<network>", topic, request: {method, params}}``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from ..core.exceptions import TransportNotConnected
from ..core.models import TransportMode
from .base import WalletTransport

logger = logging.getLogger(__name__)

CHAIN_NAMESPACE = "hathor"

USER_DISCONNECTED = {"code": 6000, "message": "User disconnected."}

REQUIRED_METHODS = (
    "htr_getAddress",
    "htr_getBalance",
    "htr_getUtxos",
    "htr_signWithAddress",
    "htr_sendNanoContractTx",
)


class SignClient(Protocol):
    """Subset of a remote-signing client used by the transport."""

    async def request(self, payload: dict[str, Any]) -> Any:
        ...

    async def connect(
        self, required_namespaces: dict[str, Any], pairing_topic: str | None = None
    ) -> dict[str, Any]:
        """Propose a pairing and wait for approval; returns {topic, namespaces}."""

    def sessions(self) -> list[dict[str, Any]]:
        """Sessions persisted by the client, oldest first."""

    async def disconnect(self, topic: str, reason: dict[str, Any]) -> None:
        ...

    def on(self, event: str, handler: Callable[[dict[str, Any]], None]) -> None:
        """Subscribe to a session event ("session_update", "session_delete")."""


@dataclass
class RemoteSession:
    """An approved pairing session."""
    topic: str
    namespaces: dict[str, Any] = field(default_factory=dict)

    def first_address(self) -> str | None:
        """Address of the first hathor account ("hathor:<chain>:<address>")."""
        accounts = self.namespaces.get(CHAIN_NAMESPACE, {}).get("accounts", [])
        if not accounts:
            return None
        parts = accounts[0].split(":")
        return parts[2] if len(parts) >= 3 else None

    def first_network(self) -> str | None:
        accounts = self.namespaces.get(CHAIN_NAMESPACE, {}).get("accounts", [])
        if not accounts:
            return None
        parts = accounts[0].split(":")
        return parts[1] if len(parts) >= 2 else None


def required_namespaces(network: str) -> dict[str, Any]:
    """Namespaces requested when proposing a new pairing."""
    return {
        CHAIN_NAMESPACE: {
            "methods": list(REQUIRED_METHODS),
            "chains": [f"{CHAIN_NAMESPACE}:{network}"],
            "events": [],
        }
    }


class RemoteSessionTransport(WalletTransport):
    """
    Routes requests through a remote-signing client and an active session.

    A request without both handles fails before any network call.
    """

    mode = TransportMode.REMOTE_SESSION

    def __init__(
        self,
        client: SignClient | None = None,
        session: RemoteSession | None = None,
        network: str = "testnet",
    ):
        self.client = client
        self.session = session
        self.network = network
        if client is not None:
            client.on("session_update", self.update_session)
            client.on("session_delete", self.handle_session_delete)

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.session is not None

    @property
    def address(self) -> str | None:
        return self.session.first_address() if self.session else None

    @property
    def chain_id(self) -> str:
        network = (self.session.first_network() if self.session else None) or self.network
        return f"{CHAIN_NAMESPACE}:{network}"

    def build_envelope(self, method: str, params: Any = None) -> dict[str, Any]:
        if self.session is None:
            raise TransportNotConnected()
        return {
            "chainId": self.chain_id,
            "topic": self.session.topic,
            "request": {"method": method, "params": params},
        }

    async def connect(self, pairing_topic: str | None = None) -> str | None:
        if self.client is None:
            raise TransportNotConnected("Remote signing client is not initialized")
        if self.session is not None:
            return self.address
        approved = await self.client.connect(required_namespaces(self.network), pairing_topic)
        self.session = RemoteSession(
            topic=approved["topic"], namespaces=approved.get("namespaces", {})
        )
        logger.info("Remote session approved (topic %s)", self.session.topic)
        return self.address

    def restore(self) -> bool:
        """Adopt the most recent session the client persisted, if any."""
        if self.client is None or self.session is not None:
            return self.session is not None
        persisted = self.client.sessions()
        if not persisted:
            return False
        latest = persisted[-1]
        self.session = RemoteSession(
            topic=latest["topic"], namespaces=latest.get("namespaces", {})
        )
        return True

    def update_session(self, event: dict[str, Any]) -> None:
        """Apply a session_update event: same topic, new namespaces."""
        if self.session is None or event.get("topic") != self.session.topic:
            return
        namespaces = (event.get("params") or {}).get("namespaces") or {}
        self.session = RemoteSession(topic=self.session.topic, namespaces=namespaces)
        logger.info("Remote session %s updated (%s)", self.session.topic, self.address)

    def handle_session_delete(self, event: dict[str, Any] | None = None) -> None:
        """The wallet ended the session remotely."""
        logger.info("Remote session deleted by wallet")
        self.session = None

    async def disconnect(self) -> None:
        if self.client is None or self.session is None:
            self.session = None
            return
        try:
            await self.client.disconnect(self.session.topic, USER_DISCONNECTED)
        except Exception as exc:
            logger.warning("Remote session disconnect failed: %s", exc)
        finally:
            self.session = None

    async def request(self, method: str, params: Any = None) -> Any:
        if self.client is None or self.session is None:
            raise TransportNotConnected()
        return await self.client.request(self.build_envelope(method, params))
