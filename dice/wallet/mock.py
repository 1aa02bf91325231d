"""Simulated wallet used for local development and tests.

Answers a fixed set of methods after a fixed delay. Anything else fails
loudly with MethodNotImplemented.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable

from ..config import MOCK_DELAY_SECONDS
from ..core.exceptions import MethodNotImplemented
from ..core.models import TransportMode
from .base import WalletTransport

logger = logging.getLogger(__name__)

MOCK_ADDRESS = "WYBwT3xLpDnHNtYZiU52oanupVeDKhAvNp"
MOCK_NETWORK = "india-testnet"


def _connected_network(params: Any) -> dict:
    return {"network": MOCK_NETWORK, "genesisHash": "0x123..."}


def _balance(params: Any) -> list[dict]:
    tokens = (params or {}).get("tokens") or ["00"]
    return [
        {
            "token": {"id": token, "name": "Hathor", "symbol": "HTR"},
            "balance": {"unlocked": 125050, "locked": 0},
            "tokenAuthorities": {
                "unlocked": {"mint": False, "melt": False},
                "locked": {"mint": False, "melt": False},
            },
            "transactions": 42,
            "lockExpires": None,
        }
        for token in tokens
    ]


def _address(params: Any) -> dict:
    index = (params or {}).get("index", 0)
    return {
        "address": MOCK_ADDRESS,
        "index": index,
        "addressPath": f"m/44'/280'/0'/0/{index}",
    }


def _send_nano_contract_tx(params: Any) -> dict:
    # every submission needs its own id: it is the settlement join key
    return {
        "hash": f"00000000{uuid.uuid4().hex}",
        "success": True,
        "timestamp": int(time.time() * 1000),
    }


MOCK_HANDLERS: dict[str, Callable[[Any], Any]] = {
    "htr_getConnectedNetwork": _connected_network,
    "htr_getBalance": _balance,
    "htr_getAddress": _address,
    "htr_sendNanoContractTx": _send_nano_contract_tx,
}


class MockTransport(WalletTransport):
    """Canned-response wallet with simulated latency."""

    mode = TransportMode.MOCK

    def __init__(self, delay_seconds: float = MOCK_DELAY_SECONDS):
        self.delay_seconds = delay_seconds
        self._connected = False
        self._address: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self) -> str | None:
        result = await self.request("htr_getAddress", {"type": "index", "index": 0})
        self._address = result["address"]
        self._connected = True
        return self._address

    async def disconnect(self) -> None:
        self._connected = False
        self._address = None

    async def request(self, method: str, params: Any = None) -> Any:
        await asyncio.sleep(self.delay_seconds)

        handler = MOCK_HANDLERS.get(method)
        if handler is None:
            raise MethodNotImplemented(f"Mock not implemented for method: {method}")

        logger.debug("Mock wallet answered %s", method)
        return handler(params)
