import logging

from ..core.exceptions import TransportNotConnected
from ..utils.cache import BalanceCache
from .session import WalletSession

logger = logging.getLogger(__name__)


def _unlocked(entries: object, token_uid: str) -> int:
    if not isinstance(entries, list):
        return 0
    for entry in entries:
        token = entry.get("token")
        token_id = token.get("id") if isinstance(token, dict) else token
        if token_id not in (None, token_uid):
            continue
        return int(entry.get("balance", {}).get("unlocked", 0))
    return 0


class BalanceService:
    """Unlocked token balances for the connected address, cached per token."""

    def __init__(self, session: WalletSession, cache: BalanceCache):
        self.session = session
        self.cache = cache

    async def get_balance(self, token_uid: str = "00", refresh: bool = False) -> int:
        address = self.session.address
        if not self.session.is_connected or not address:
            raise TransportNotConnected()

        if not refresh:
            cached = self.cache.get(address, token_uid)
            if cached is not None:
                return cached

        entries = await self.session.rpc.get_balance([token_uid])
        balance = _unlocked(entries, token_uid)
        self.cache.set(address, token_uid, balance)
        logger.debug("Balance for %s token %s: %s", address, token_uid, balance)
        return balance

    def invalidate(self) -> None:
        self.cache.clear()
