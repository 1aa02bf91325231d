"""Tests for the odds conversions and payout arithmetic."""

import math

import pytest

from dice.core.math import (
    calculate_multiplier,
    calculate_payout,
    clamp_threshold,
    draw_range,
    fair_payout,
    max_threshold,
    multiplier_to_threshold,
    odds_from_multiplier,
    odds_from_threshold,
    odds_from_win_chance,
    threshold_to_win_chance,
    win_chance_to_threshold,
)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("threshold, expected", [
    (32768, 50.0),
    (65536, 100.0),
    (0, 0.0),
    (16384, 25.0),
])
def test_threshold_to_win_chance(threshold, expected):
    assert threshold_to_win_chance(threshold, 16) == pytest.approx(expected)


@pytest.mark.parametrize("percent, expected", [
    (50, 32768),
    (100, 65536),
    (0, 0),
    (0.5, 327),    # 327.68 floors
    (25, 16384),
])
def test_win_chance_to_threshold(percent, expected):
    assert win_chance_to_threshold(percent, 16) == expected


@pytest.mark.parametrize("threshold", [1, 2, 327, 1000, 32767, 32768, 50000, 65535])
def test_round_trip_loses_at_most_one_step(threshold):
    percent = threshold_to_win_chance(threshold, 16)
    assert abs(win_chance_to_threshold(percent, 16) - threshold) <= 1


SWEEP_CHANCES = [i / 100 for i in range(0, 10001, 37)] + [33.33, 66.67, 99.99, 100.0]


@pytest.mark.parametrize("bits", [12, 16, 20])
def test_win_chance_round_trip_within_one_step(bits):
    step = 100 / 2 ** bits
    for chance in SWEEP_CHANCES:
        back = threshold_to_win_chance(win_chance_to_threshold(chance, bits), bits)
        assert back <= chance + 1e-9
        assert chance - back < step + 1e-9


@pytest.mark.parametrize("amount", [1, 500, 1000, 123457])
def test_even_odds_without_edge_doubles_the_stake(amount):
    assert calculate_payout(amount, win_chance_to_threshold(50, 16), 16, 0) == 2 * amount


def test_multiplier_at_even_odds():
    assert calculate_multiplier(32768, 16, 200) == pytest.approx(1.96)


def test_multiplier_for_zero_threshold_is_infinite():
    assert math.isinf(calculate_multiplier(0, 16, 200))


def test_multiplier_to_threshold_inverts_multiplier():
    assert multiplier_to_threshold(1.96, 16, 200) == 32768


def test_multiplier_to_threshold_clamps_to_placeable_range():
    # 1x with no edge would need the whole draw range
    assert multiplier_to_threshold(1.0, 16, 0) == 65535
    assert multiplier_to_threshold(1_000_000, 16, 200) == 1


@pytest.mark.parametrize("threshold, expected", [
    (0, 1),
    (-5, 1),
    (70000, 65535),
    (1234, 1234),
])
def test_clamp_threshold(threshold, expected):
    assert clamp_threshold(threshold, 16) == expected


def test_draw_range_and_max_threshold():
    assert draw_range(16) == 65536
    assert draw_range(20) == 1048576
    assert max_threshold(16) == 65535


# ---------------------------------------------------------------------------
# Payouts
# ---------------------------------------------------------------------------

def test_payout_at_even_odds():
    assert calculate_payout(1000, 32768, 16, 200) == 1960


def test_payout_floors():
    # 1000 * 65536 * 9810 / 70000 = 9184402.28...
    assert calculate_payout(1000, 7, 16, 190) == 9184402


@pytest.mark.parametrize("amount, threshold", [
    (1, 1),
    (1000, 32768),
    (777, 12345),
    (10000, 65535),
])
def test_zero_edge_payout_equals_fair_payout(amount, threshold):
    assert calculate_payout(amount, threshold, 16, 0) == fair_payout(amount, threshold, 16)


@pytest.mark.parametrize("threshold", [1024, 4096, 16384, 32768])
def test_house_edge_keeps_payout_below_fair(threshold):
    fair = fair_payout(1000, threshold, 16)
    assert calculate_payout(1000, threshold, 16, 200) < fair


def test_payout_decreases_as_threshold_grows():
    payouts = [calculate_payout(1000, t, 16, 200) for t in (100, 1000, 10000, 30000, 65535)]
    assert payouts == sorted(payouts, reverse=True)


def test_multiplier_decreases_as_threshold_grows():
    multipliers = [calculate_multiplier(t, 16, 200) for t in (1, 10, 1000, 65535)]
    assert multipliers == sorted(multipliers, reverse=True)


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("call", [
    lambda: threshold_to_win_chance(-1, 16),
    lambda: threshold_to_win_chance(65537, 16),
    lambda: win_chance_to_threshold(101, 16),
    lambda: win_chance_to_threshold(-0.1, 16),
    lambda: calculate_payout(1000, 0, 16, 200),
    lambda: calculate_payout(1000, 10, 16, 10001),
    lambda: fair_payout(1000, 0, 16),
    lambda: multiplier_to_threshold(0, 16, 200),
    lambda: calculate_multiplier(-1, 16, 200),
    lambda: draw_range(0),
])
def test_invalid_input_raises_value_error(call):
    with pytest.raises(ValueError):
        call()


# ---------------------------------------------------------------------------
# Odds triples
# ---------------------------------------------------------------------------

def test_odds_from_win_chance(state):
    odds = odds_from_win_chance(50, state)
    assert odds.threshold == 32768
    assert odds.win_chance_percent == pytest.approx(50.0)
    assert odds.multiplier == pytest.approx(1.96)


def test_odds_from_multiplier(state):
    odds = odds_from_multiplier(1.96, state)
    assert odds.threshold == 32768
    assert odds.win_chance_percent == pytest.approx(50.0)


def test_odds_from_threshold_clamps(state):
    assert odds_from_threshold(0, state).threshold == 1
    assert odds_from_threshold(99999, state).threshold == 65535
