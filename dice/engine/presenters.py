"""Human-readable and JSON views of bets, odds and contracts.

Used for API responses, WebSocket messages and log lines. Display
conversions here never feed back into payouts.
"""

from ..core.math import PayoutQuote
from ..core.models import Bet, BetResult, ContractOperation, ContractState, PlayerStats
from ..utils.formatting import (
    format_address,
    format_multiplier,
    format_token_amount,
    format_win_chance,
)

RESULT_LABELS = {
    BetResult.PENDING: "PENDING",
    BetResult.WIN: "WIN",
    BetResult.LOSE: "LOSE",
    BetResult.FAILED: "FAILED",
}

OPERATION_LABELS = {
    "claim_balance": "Withdraw",
    "remove_liquidity": "Remove Liquidity",
    "add_liquidity": "Add Liquidity",
}


def format_bet(bet: Bet) -> str:
    """
    Format a bet as a multi-line summary.

    Example output:
    ```
    WIN - 10.00 HTR on threshold 32768
    Player: WYBwT3...AvNp
    Lucky number: 12345
    Payout: 19.62 HTR
    ```
    """
    lines = [
        f"{RESULT_LABELS[bet.result]} - {format_token_amount(bet.amount)} {bet.token} "
        f"on threshold {bet.threshold}",
        f"Player: {format_address(bet.player)}",
    ]

    if bet.is_pending:
        if bet.potential_payout is not None:
            lines.append(f"Potential payout: {format_token_amount(bet.potential_payout)} {bet.token}")
        return "\n".join(lines)

    if bet.lucky_number is not None:
        lines.append(f"Lucky number: {bet.lucky_number}")
    lines.append(f"Payout: {format_token_amount(bet.payout)} {bet.token}")
    if bet.error:
        lines.append(f"Error: {bet.error}")
    return "\n".join(lines)


def format_bet_short(bet: Bet) -> str:
    """
    Format bet as single-line summary.

    Example: "WIN 10.00 HTR @32768 -> 19.62 | WYBwT3...AvNp"
    """
    return (
        f"{RESULT_LABELS[bet.result]} {format_token_amount(bet.amount)} {bet.token} "
        f"@{bet.threshold} -> {format_token_amount(bet.payout)} | {format_address(bet.player)}"
    )


def format_bet_json(bet: Bet) -> dict:
    """
    Format bet as JSON-serializable dict.

    Used for API responses and WebSocket messages.
    """
    return {
        "id": bet.id,
        "player": bet.player,
        "amount": bet.amount,
        "threshold": bet.threshold,
        "result": bet.result.value,
        "payout": bet.payout,
        "potential_payout": bet.potential_payout,
        "lucky_number": bet.lucky_number,
        "is_your_bet": bet.is_your_bet,
        "error": bet.error,
        "token": bet.token,
        "contract_id": bet.contract_id,
        "network": bet.network,
        "timestamp": bet.timestamp.isoformat(),
        "settled_at": bet.settled_at.isoformat() if bet.settled_at else None,
        "formatted_text": format_bet_short(bet),
    }


def format_quote_json(quote: PayoutQuote, token: str, amount: int) -> dict:
    odds = quote.odds
    return {
        "token": token,
        "amount": amount,
        "threshold": odds.threshold,
        "win_chance_percent": odds.win_chance_percent,
        "multiplier": odds.multiplier,
        "potential_payout": quote.potential_payout,
        "fair_payout": quote.fair_payout,
        "max_bet": quote.max_bet,
        "display": {
            "win_chance": format_win_chance(odds.win_chance_percent),
            "multiplier": format_multiplier(odds.multiplier),
            "potential_payout": format_token_amount(quote.potential_payout),
        },
    }


def format_contract_json(token: str, contract_id: str, state: ContractState) -> dict:
    return {
        "token": token,
        "contract_id": contract_id,
        **state.model_dump(),
        "max_threshold": state.draw_range - 1,
    }


def format_operation_json(op: ContractOperation) -> dict:
    return {
        "id": op.id,
        "method": op.method,
        "label": OPERATION_LABELS.get(op.method, op.method),
        "caller": op.caller,
        "status": op.status,
        "contract_id": op.contract_id,
        "timestamp": op.timestamp.isoformat(),
    }


def format_stats_json(stats: PlayerStats, token: str | None = None) -> dict:
    """
    Format profit and loss totals.

    Example display for a 2-bet history:
        {"profit_loss": "+4.62 HTR", "record": "1W / 1L", "win_rate": "50%"}
    """
    profit = stats.profit_loss
    sign = "+" if profit >= 0 else ""
    suffix = f" {token}" if token else ""
    return {
        "token": token,
        **stats.model_dump(),
        "profit_loss": profit,
        "win_rate": stats.win_rate,
        "display": {
            "profit_loss": f"{sign}{format_token_amount(profit)}{suffix}",
            "record": f"{stats.win_count}W / {stats.lose_count}L",
            "win_rate": f"{stats.win_rate:.0f}%",
        },
    }


def format_bets_table(bets: list[Bet]) -> str:
    """
    Format multiple bets as ASCII table.

    For logs and CLI output.
    """
    if not bets:
        return "No bets yet."

    lines = []
    header = f"{'Result':<8} {'Amount':>12} {'Threshold':>9} {'Lucky':>8} {'Payout':>12} {'Player'}"
    lines.append(header)
    lines.append("-" * len(header))

    for bet in bets[:20]:
        lucky = "-" if bet.lucky_number is None else str(bet.lucky_number)
        lines.append(
            f"{RESULT_LABELS[bet.result]:<8} {format_token_amount(bet.amount):>12} "
            f"{bet.threshold:>9} {lucky:>8} {format_token_amount(bet.payout):>12} "
            f"{format_address(bet.player)}"
        )

    return "\n".join(lines)
