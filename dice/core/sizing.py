"""Bet sizing and pre-submission checks.

Key Formulas:
    payout(amount) = floor(amount * R * (10000 - e) / (10000 * threshold))
    max_bet        = floor(liquidity * 10000 * threshold / (R * (10000 - e)))

The contract enforces liquidity authoritatively; these checks run before
any wallet call so an obviously invalid bet never costs a round trip.
"""

from .exceptions import ValidationError
from .math import (
    BASIS_POINTS,
    PayoutQuote,
    calculate_payout,
    draw_range,
    fair_payout,
    max_threshold,
    odds_from_threshold,
)
from .models import ContractState


def max_bet_for_threshold(threshold: int, state: ContractState) -> int:
    """
    Largest stake whose payout the contract's liquidity can cover.

    Capped at the contract's max_bet_amount when one is set.
    """
    if threshold <= 0:
        return 0
    edge_factor = BASIS_POINTS - state.house_edge_basis_points
    if edge_factor == 0:
        by_liquidity = state.max_bet_amount
    else:
        by_liquidity = (
            state.available_liquidity * BASIS_POINTS * threshold
            // (draw_range(state.random_bit_length) * edge_factor)
        )
    if state.max_bet_amount > 0:
        return min(by_liquidity, state.max_bet_amount)
    return by_liquidity


def quote_bet(amount: int, threshold: int, state: ContractState) -> PayoutQuote:
    """Odds, advisory payout and limits for a prospective bet."""
    odds = odds_from_threshold(threshold, state)
    bits = state.random_bit_length
    return PayoutQuote(
        odds=odds,
        potential_payout=calculate_payout(
            amount, odds.threshold, bits, state.house_edge_basis_points
        ),
        fair_payout=fair_payout(amount, odds.threshold, bits),
        max_bet=max_bet_for_threshold(odds.threshold, state),
    )


def validate_bet(amount: int, threshold: int, state: ContractState) -> int:
    """
    Check a bet against the contract snapshot.

    Returns:
        The advisory payout for the bet

    Raises:
        ValidationError: amount non-positive, above max bet, threshold out
            of range, or payout not covered by available liquidity
    """
    if amount <= 0:
        raise ValidationError("Bet amount must be positive")
    if state.max_bet_amount > 0 and amount > state.max_bet_amount:
        raise ValidationError(
            f"Bet amount {amount} exceeds maximum bet {state.max_bet_amount}"
        )

    upper = max_threshold(state.random_bit_length)
    if threshold < 1 or threshold > upper:
        raise ValidationError(f"Threshold must be between 1 and {upper}, got {threshold}")

    payout = calculate_payout(
        amount, threshold, state.random_bit_length, state.house_edge_basis_points
    )
    if payout > state.available_liquidity:
        raise ValidationError(
            f"Potential payout {payout} exceeds available liquidity {state.available_liquidity}"
        )
    return payout


def validate_liquidity_amount(amount: int, limit: int | None = None) -> None:
    """Check a deposit/withdrawal amount, optionally against an upper limit."""
    if amount <= 0:
        raise ValidationError("Amount must be positive")
    if limit is not None and amount > limit:
        raise ValidationError(f"Amount {amount} exceeds available {limit}")
