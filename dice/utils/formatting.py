"""Display formatting.

Presentation only: nothing here feeds back into payouts or validation.
Amounts are integers in the token's smallest unit (Hathor tokens use
two decimal places).
"""

from decimal import Decimal

TOKEN_DECIMALS = 2


def format_address(address: str | None) -> str:
    """
    Shorten an address for display.

    Examples:
        WYBwT3xLpDnHNtYZiU52oanupVeDKhAvNp → WYBwT3...AvNp
        "" → ""
    """
    if not address:
        return ""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_token_amount(amount: int, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Format a smallest-unit amount as a decimal string.

    Examples:
        125050 → "1,250.50"
        5      → "0.05"
    """
    value = Decimal(int(amount)).scaleb(-decimals)
    return f"{value:,.{decimals}f}"


def format_multiplier(multiplier: float) -> str:
    """Format a multiplier, e.g. 1.96 → "1.96x"."""
    if multiplier == float("inf"):
        return "∞"
    return f"{multiplier:.2f}x"


def format_win_chance(percent: float) -> str:
    """Format a win chance, e.g. 49.9985 → "50.00%"."""
    return f"{percent:.2f}%"
