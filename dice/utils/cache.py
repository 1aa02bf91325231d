"""Balance caching utilities."""

from dataclasses import dataclass, field, asdict
from typing import Any

from ..config import BALANCE_CACHE_TTL_SECONDS
from .storage import LocalStorage
from .time import timestamp_ms

BALANCE_CACHE_PREFIX = "balance_cache:"


@dataclass(frozen=True)
class BalanceRecord:
    """Cached balance for one address and token."""
    balance: int
    address: str
    timestamp: int = field(default_factory=timestamp_ms)  # ms

    def is_expired(self, max_age_seconds: float, now_ms: int | None = None) -> bool:
        """Check if record is older than the freshness window."""
        now = now_ms if now_ms is not None else timestamp_ms()
        return (now - self.timestamp) > max_age_seconds * 1000


class BalanceCache:
    """
    Per-token balance cache with a fixed validity window.

    A read trusts a record only if it belongs to the requested address
    and is still fresh. A write replaces the previous record entirely.
    """

    def __init__(self, storage: LocalStorage, ttl_seconds: float = BALANCE_CACHE_TTL_SECONDS):
        self._storage = storage
        self._ttl = ttl_seconds

    @staticmethod
    def _key(token: str) -> str:
        return f"{BALANCE_CACHE_PREFIX}{token}"

    def _load(self, token: str) -> BalanceRecord | None:
        raw: Any = self._storage.get(self._key(token))
        if not isinstance(raw, dict):
            return None
        try:
            return BalanceRecord(
                balance=int(raw["balance"]),
                address=str(raw["address"]),
                timestamp=int(raw["timestamp"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def get(self, address: str, token: str, now_ms: int | None = None) -> int | None:
        """Get cached balance if it is fresh and belongs to address."""
        record = self._load(token)
        if record is None or record.address != address:
            return None
        if record.is_expired(self._ttl, now_ms):
            return None
        return record.balance

    def set(self, address: str, token: str, balance: int) -> BalanceRecord:
        """Replace the cached record for token."""
        record = BalanceRecord(balance=int(balance), address=address)
        self._storage.set(self._key(token), asdict(record))
        return record

    def clear(self) -> None:
        """Drop every cached balance."""
        for key in self._storage.keys():
            if key.startswith(BALANCE_CACHE_PREFIX):
                self._storage.remove(key)
