from .settlement import (
    Settlement,
    decode_event_data,
    decode_settlement,
    is_settled,
    settle,
    bet_from_entry,
    bets_from_history,
    order_bets,
    operations_from_history,
    player_stats,
)
from .tracker import BetSettlementTracker
from .operations import ContractOperations
from .presenters import (
    format_bet,
    format_bet_short,
    format_bet_json,
    format_quote_json,
    format_contract_json,
    format_operation_json,
    format_bets_table,
    format_stats_json,
)

__all__ = [
    "Settlement",
    "decode_event_data",
    "decode_settlement",
    "is_settled",
    "settle",
    "bet_from_entry",
    "bets_from_history",
    "order_bets",
    "operations_from_history",
    "player_stats",
    "BetSettlementTracker",
    "ContractOperations",
    "format_bet",
    "format_bet_short",
    "format_bet_json",
    "format_quote_json",
    "format_contract_json",
    "format_operation_json",
    "format_bets_table",
    "format_stats_json",
]
