from .formatting import (
    format_address,
    format_token_amount,
    format_multiplier,
    format_win_chance,
)
from .cache import BalanceCache, BalanceRecord
from .storage import LocalStorage, WALLET_TYPE_KEY, LAST_ADDRESS_KEY
from .time import utc_now, timestamp_ms, from_unix_seconds, monotonic_ms

__all__ = [
    "format_address",
    "format_token_amount",
    "format_multiplier",
    "format_win_chance",
    "BalanceCache",
    "BalanceRecord",
    "LocalStorage",
    "WALLET_TYPE_KEY",
    "LAST_ADDRESS_KEY",
    "utc_now",
    "timestamp_ms",
    "from_unix_seconds",
    "monotonic_ms",
]
