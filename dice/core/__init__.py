from .models import (
    Bet,
    BetResult,
    ContractOperation,
    ContractState,
    HistoryEntry,
    HistoryPage,
    HistorySnapshot,
    NanoContractAction,
    OddsSpec,
    TransportMode,
    TransportSession,
)
from .exceptions import (
    DiceError,
    TransportError,
    TransportNotConnected,
    TransportRejected,
    MethodNotImplemented,
    NetworkFailure,
    DecodeError,
    ContractUnavailable,
    ValidationError,
    normalize_error,
)
from .math import (
    PayoutQuote,
    threshold_to_win_chance,
    win_chance_to_threshold,
    calculate_multiplier,
    calculate_payout,
    fair_payout,
    odds_from_threshold,
    odds_from_win_chance,
    odds_from_multiplier,
)
from .sizing import max_bet_for_threshold, quote_bet, validate_bet, validate_liquidity_amount

__all__ = [
    "Bet",
    "BetResult",
    "ContractOperation",
    "ContractState",
    "HistoryEntry",
    "HistoryPage",
    "HistorySnapshot",
    "NanoContractAction",
    "OddsSpec",
    "TransportMode",
    "TransportSession",
    "DiceError",
    "TransportError",
    "TransportNotConnected",
    "TransportRejected",
    "MethodNotImplemented",
    "NetworkFailure",
    "DecodeError",
    "ContractUnavailable",
    "ValidationError",
    "normalize_error",
    "PayoutQuote",
    "threshold_to_win_chance",
    "win_chance_to_threshold",
    "calculate_multiplier",
    "calculate_payout",
    "fair_payout",
    "odds_from_threshold",
    "odds_from_win_chance",
    "odds_from_multiplier",
    "max_bet_for_threshold",
    "quote_bet",
    "validate_bet",
    "validate_liquidity_amount",
]
