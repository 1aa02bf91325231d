"""Unified wallet RPC.

One ``request(method, params)`` contract over every transport. Routing
precedence is explicit:

1. the mock transport, when mock mode is on
2. a custom request function (the snap bridge), whenever one is set
3. the remote-signing session, when both client and session exist

A configured remote session stays dormant while a custom request
function is present. With none of the above the call fails with
TransportNotConnected before anything is sent.
"""

import logging
from typing import Any

from ..core.exceptions import TransportNotConnected, normalize_error
from ..core.models import NanoContractAction, TransportMode
from .base import RequestFunction
from .mock import MockTransport
from .remote_session import RemoteSession, RemoteSessionTransport, SignClient

logger = logging.getLogger(__name__)


class WalletRPC:
    """Routes wallet calls to the active transport and normalizes failures."""

    def __init__(
        self,
        use_mock: bool = False,
        client: SignClient | None = None,
        session: RemoteSession | None = None,
        custom_request: RequestFunction | None = None,
        network: str | None = None,
        mock: MockTransport | None = None,
        remote: RemoteSessionTransport | None = None,
    ):
        self.use_mock = use_mock
        self.network = network
        self.custom_request = custom_request
        self._mock = mock or MockTransport()
        self._remote = remote or RemoteSessionTransport(client, session, network or "testnet")

    @property
    def remote(self) -> RemoteSessionTransport:
        return self._remote

    def update_transports(
        self,
        client: SignClient | None = None,
        session: RemoteSession | None = None,
        custom_request: RequestFunction | None = None,
    ) -> None:
        """Replace every transport handle at once."""
        self._remote.client = client
        self._remote.session = session
        self.custom_request = custom_request

    def active_mode(self) -> TransportMode | None:
        if self.use_mock:
            return TransportMode.MOCK
        if self.custom_request is not None:
            return TransportMode.SNAP
        if self._remote.is_connected:
            return TransportMode.REMOTE_SESSION
        return None

    def _route(self) -> RequestFunction:
        mode = self.active_mode()
        if mode is TransportMode.MOCK:
            return self._mock.request
        if mode is TransportMode.SNAP:
            return self.custom_request
        if mode is TransportMode.REMOTE_SESSION:
            return self._remote.request
        raise TransportNotConnected()

    async def request(self, method: str, params: Any = None) -> Any:
        send = self._route()
        try:
            return await send(method, params)
        except Exception as exc:
            error = normalize_error(exc)
            logger.warning("Wallet request %s failed: %s", method, error.message)
            raise error from exc

    async def get_connected_network(self) -> dict[str, Any]:
        return await self.request("htr_getConnectedNetwork")

    async def get_balance(
        self,
        tokens: list[str],
        address_indexes: list[int] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"tokens": tokens}
        if self.network:
            params["network"] = self.network
        if address_indexes is not None:
            params["addressIndexes"] = address_indexes
        result = await self.request("htr_getBalance", params)
        # snaps wrap results as {"response": [...]}
        if isinstance(result, dict) and "response" in result:
            return result["response"]
        return result

    async def get_address(self, index: int = 0) -> dict[str, Any]:
        params: dict[str, Any] = {"type": "index", "index": index}
        if self.network:
            params["network"] = self.network
        result = await self.request("htr_getAddress", params)
        if isinstance(result, dict) and isinstance(result.get("response"), dict):
            return result["response"]
        return result

    async def send_nano_contract_tx(
        self,
        nc_id: str,
        method: str,
        args: list[Any],
        actions: list[NanoContractAction],
        push_tx: bool = True,
    ) -> dict[str, Any]:
        params = {
            "nc_id": nc_id,
            "method": method,
            "args": args,
            "actions": [action.model_dump(exclude_none=True) for action in actions],
            "push_tx": push_tx,
        }
        if self.network:
            params["network"] = self.network
        result = await self.request("htr_sendNanoContractTx", params)
        if isinstance(result, dict) and isinstance(result.get("response"), dict):
            return result["response"]
        return result
