"""Browser-extension snap transport.

Every call goes out as ``wallet_invokeSnap`` wrapping the real method:

    {"method": "wallet_invokeSnap",
     "params": {"snapId": ..., "request": {"method": ..., "params": ...}}}

Some extension hosts reject an explicit null ``params`` but accept its
absence, so the inner ``params`` key is dropped when there are none.
"""

import json
import logging
from typing import Any, Awaitable, Callable

from ..config import SNAP_ID, SNAP_VERSION
from ..core.exceptions import TransportError, TransportNotConnected
from ..core.models import TransportMode
from .base import WalletTransport

logger = logging.getLogger(__name__)

# provider.request(payload) as exposed by the extension bridge
ProviderRequest = Callable[[dict[str, Any]], Awaitable[Any]]


def build_snap_request(snap_id: str, method: str, params: Any = None) -> dict[str, Any]:
    """Wrap a wallet method in the invokeSnap envelope."""
    inner: dict[str, Any] = {"method": method}
    if params is not None:
        inner["params"] = params
    return {
        "method": "wallet_invokeSnap",
        "params": {"snapId": snap_id, "request": inner},
    }


def _parse_result(result: Any) -> Any:
    # the snap answers with a JSON string
    if isinstance(result, str):
        try:
            return json.loads(result)
        except json.JSONDecodeError:
            return result
    return result


def _address_from(result: Any) -> str | None:
    if not isinstance(result, dict):
        return None
    response = result.get("response", result)
    if isinstance(response, dict):
        return response.get("address")
    return None


class SnapTransport(WalletTransport):
    """Talks to the Hathor snap through an extension provider."""

    mode = TransportMode.SNAP

    def __init__(
        self,
        provider_request: ProviderRequest | None = None,
        snap_id: str = SNAP_ID,
        snap_version: str = SNAP_VERSION,
        network: str = "testnet",
    ):
        self.provider_request = provider_request
        self.snap_id = snap_id
        self.snap_version = snap_version
        self.network = network
        self._address: str | None = None

    @property
    def is_installed(self) -> bool:
        return self.provider_request is not None

    @property
    def is_connected(self) -> bool:
        return self._address is not None

    @property
    def address(self) -> str | None:
        return self._address

    def _require_provider(self) -> ProviderRequest:
        if self.provider_request is None:
            raise TransportNotConnected("MetaMask is not installed")
        return self.provider_request

    async def invoke(self, method: str, params: Any = None) -> Any:
        """Invoke a snap method without the connection check."""
        provider = self._require_provider()
        result = await provider(build_snap_request(self.snap_id, method, params))
        return _parse_result(result)

    async def _fetch_address(self) -> str | None:
        result = await self.invoke(
            "htr_getAddress", {"network": self.network, "type": "index", "index": 0}
        )
        return _address_from(result)

    async def connect(self) -> str | None:
        provider = self._require_provider()
        granted = await provider({
            "method": "wallet_requestSnaps",
            "params": {self.snap_id: {"version": self.snap_version}},
        })
        if not isinstance(granted, dict) or self.snap_id not in granted:
            raise TransportError("Failed to connect to Hathor Snap")

        address = await self._fetch_address()
        if not address:
            raise TransportError("Failed to get address from snap")

        self._address = address
        logger.info("Snap %s connected", self.snap_id)
        return address

    async def restore(self) -> bool:
        """Reconnect silently when the snap is already installed."""
        if self.provider_request is None:
            return False
        snaps = await self.provider_request({"method": "wallet_getSnaps"})
        if not isinstance(snaps, dict) or self.snap_id not in snaps:
            return False
        address = await self._fetch_address()
        if not address:
            return False
        self._address = address
        return True

    async def disconnect(self) -> None:
        # nothing to release beyond the extension's own registration
        self._address = None

    async def request(self, method: str, params: Any = None) -> Any:
        if not self.is_connected:
            raise TransportNotConnected("MetaMask Snap is not connected")
        return await self.invoke(method, params)
