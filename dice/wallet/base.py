"""Transport contract shared by every wallet connection mode."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from ..core.models import TransportMode

# request(method, params) -> result; the shape a snap bridge or test double exposes
RequestFunction = Callable[[str, Any], Awaitable[Any]]


class WalletTransport(ABC):
    """
    One way of reaching a wallet.

    Each adapter owns its own connection state. ``request`` performs
    exactly one call and never retries: a partially executed transaction
    must not be sent twice.
    """

    mode: TransportMode

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @property
    @abstractmethod
    def address(self) -> str | None:
        ...

    @abstractmethod
    async def connect(self) -> str | None:
        """Open the connection; returns the wallet address when known."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release every handle held by this transport."""

    @abstractmethod
    async def request(self, method: str, params: Any = None) -> Any:
        ...
