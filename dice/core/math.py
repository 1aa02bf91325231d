"""Core odds and payout functions for the dice contract.

All functions are pure and have no side effects.

Key Formulas (R = 2^bit_length, e = house edge in basis points):
- Win chance %: threshold / R * 100
- Threshold:    floor(percent * R / 100)
- Multiplier:   (R / threshold) * (1 - e / 10000)
- Payout:       floor(amount * R * (10000 - e) / (10000 * threshold))

A bet wins when the contract's drawn number is <= threshold, so win
chance grows with the threshold. Payouts use integer arithmetic only so
the preview matches the contract's integer settlement exactly.
"""

from decimal import Decimal
from typing import NamedTuple

from .models import ContractState, OddsSpec

BASIS_POINTS = 10000


class PayoutQuote(NamedTuple):
    """Preview of a prospective bet."""
    odds: OddsSpec
    potential_payout: int
    fair_payout: int
    max_bet: int


def draw_range(bit_length: int) -> int:
    """Number of distinct random draws for a bit length (2^bit_length)."""
    if bit_length < 1:
        raise ValueError(f"Bit length must be >= 1, got {bit_length}")
    return 1 << bit_length


def max_threshold(bit_length: int) -> int:
    """Largest threshold a bet may use: 2^bit_length - 1."""
    return draw_range(bit_length) - 1


def clamp_threshold(threshold: int, bit_length: int) -> int:
    """Clamp a threshold into the placeable range [1, 2^bit_length - 1]."""
    return max(1, min(max_threshold(bit_length), int(threshold)))


def threshold_to_win_chance(threshold: int, bit_length: int) -> float:
    """
    Convert a threshold to a win chance percentage.

    Formula: threshold / 2^bit_length * 100

    Examples (16 bits):
        32768 → 50.0
        65536 → 100.0
        0     → 0.0
    """
    r = draw_range(bit_length)
    if threshold < 0 or threshold > r:
        raise ValueError(f"Threshold must be in [0, {r}], got {threshold}")
    return threshold / r * 100


def win_chance_to_threshold(percent: float, bit_length: int) -> int:
    """
    Convert a win chance percentage to a threshold (floored).

    Formula: floor(percent * 2^bit_length / 100)

    The floor makes the round trip lossy by at most 100 / 2^bit_length
    percentage points. The percentage is handled as a Decimal so values
    like 50 map to exactly 32768 at 16 bits.

    Examples (16 bits):
        50  → 32768
        100 → 65536
        0   → 0
    """
    if percent < 0 or percent > 100:
        raise ValueError(f"Win chance must be in [0, 100], got {percent}")
    r = draw_range(bit_length)
    return int(Decimal(str(percent)) * r // 100)


def calculate_multiplier(
    threshold: int,
    bit_length: int,
    house_edge_basis_points: int
) -> float:
    """
    Calculate the payout multiplier for a threshold, net of house edge.

    Formula: (2^bit_length / threshold) * (1 - edge / 10000)

    Returns infinity for threshold 0; callers clamp threshold >= 1.

    Example:
        (32768, 16, 200) → 1.96
    """
    if threshold < 0:
        raise ValueError(f"Threshold must be >= 0, got {threshold}")
    if threshold == 0:
        return float("inf")
    r = draw_range(bit_length)
    return (r / threshold) * (1 - house_edge_basis_points / BASIS_POINTS)


def multiplier_to_threshold(
    multiplier: float,
    bit_length: int,
    house_edge_basis_points: int
) -> int:
    """
    Convert a target multiplier back to a (clamped) threshold.

    Formula: floor(2^bit_length * (10000 - edge) / (10000 * multiplier))
    """
    if multiplier <= 0:
        raise ValueError(f"Multiplier must be > 0, got {multiplier}")
    r = draw_range(bit_length)
    numerator = Decimal(r) * (BASIS_POINTS - house_edge_basis_points)
    raw = int(numerator // (Decimal(BASIS_POINTS) * Decimal(str(multiplier))))
    return clamp_threshold(raw, bit_length)


def calculate_payout(
    bet_amount: int,
    threshold: int,
    bit_length: int,
    house_edge_basis_points: int
) -> int:
    """
    Calculate the payout of a winning bet in the token's smallest unit.

    Formula: floor(amount * 2^b * (10000 - edge) / (10000 * threshold))

    Integer arithmetic throughout; rounding always floors.

    Example:
        (1000, 32768, 16, 200) → 1960
    """
    if threshold <= 0:
        raise ValueError(f"Threshold must be >= 1, got {threshold}")
    if not 0 <= house_edge_basis_points <= BASIS_POINTS:
        raise ValueError(f"House edge must be in [0, 10000], got {house_edge_basis_points}")
    r = draw_range(bit_length)
    numerator = int(bet_amount) * r * (BASIS_POINTS - house_edge_basis_points)
    return numerator // (BASIS_POINTS * threshold)


def fair_payout(bet_amount: int, threshold: int, bit_length: int) -> int:
    """Payout with zero house edge: floor(amount * 2^b / threshold)."""
    if threshold <= 0:
        raise ValueError(f"Threshold must be >= 1, got {threshold}")
    return int(bet_amount) * draw_range(bit_length) // threshold


def odds_from_threshold(threshold: int, state: ContractState) -> OddsSpec:
    """Build the odds triple with threshold as the independent variable."""
    bits = state.random_bit_length
    t = clamp_threshold(threshold, bits)
    return OddsSpec(
        threshold=t,
        win_chance_percent=threshold_to_win_chance(t, bits),
        multiplier=calculate_multiplier(t, bits, state.house_edge_basis_points),
    )


def odds_from_win_chance(percent: float, state: ContractState) -> OddsSpec:
    """Build the odds triple with win chance as the independent variable."""
    return odds_from_threshold(
        win_chance_to_threshold(percent, state.random_bit_length), state
    )


def odds_from_multiplier(multiplier: float, state: ContractState) -> OddsSpec:
    """Build the odds triple with the multiplier as the independent variable."""
    threshold = multiplier_to_threshold(
        multiplier, state.random_bit_length, state.house_edge_basis_points
    )
    return odds_from_threshold(threshold, state)
