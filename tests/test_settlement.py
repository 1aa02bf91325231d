"""Tests for settlement decoding and the bet views built from history."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import hex_event, make_entry
from dice.core.exceptions import DecodeError
from dice.core.models import Bet, BetResult
from dice.engine.settlement import (
    bet_from_entry,
    bets_from_history,
    decode_event_data,
    decode_settlement,
    is_settled,
    operations_from_history,
    order_bets,
    player_stats,
    settle,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _bet(tx_hash="aa01", threshold=32768, **kwargs) -> Bet:
    return Bet(id=tx_hash, player="WPlayer", amount=1000, threshold=threshold,
               is_your_bet=True, **kwargs)


# ---------------------------------------------------------------------------
# Event decoding
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("data", [
    '{"lucky_number": 12345, "payout": 1960}'.encode().hex(),
    '{"lucky_number": 12345, "payout": 1960}'.encode().hex().upper(),
    '{"lucky_number": 12345, "payout": 1960}',
    {"lucky_number": 12345, "payout": 1960},
])
def test_decode_event_data_formats(data):
    assert decode_event_data(data) == {"lucky_number": 12345, "payout": 1960}


@pytest.mark.parametrize("data", [
    "not json at all",
    "zz",
    "ffff",  # valid hex, not UTF-8
    "[1, 2]",
    42,
    None,
])
def test_decode_event_data_rejects(data):
    with pytest.raises(DecodeError):
        decode_event_data(data)


def test_decode_settlement_reads_result_alias():
    entry = make_entry(events=[{"type": "BetPlaced", "data": '{"result": 7, "payout": 0}'}])
    assert decode_settlement(entry) == (7, 0)


def test_decode_settlement_prefers_lucky_number():
    entry = make_entry(events=[hex_event('{"lucky_number": 3, "result": 9, "payout": 5}')])
    assert decode_settlement(entry).lucky_number == 3


@pytest.mark.parametrize("events", [
    [],
    [hex_event('{"lucky_number": 1}'), hex_event('{"lucky_number": 2}')],
])
def test_decode_settlement_requires_exactly_one_event(events):
    with pytest.raises(DecodeError, match="Expected exactly 1 event"):
        decode_settlement(make_entry(events=events))


def test_decode_settlement_reports_non_numeric_values_as_unknown(caplog):
    entry = make_entry(events=[hex_event('{"lucky_number": "seven", "payout": 1960}')])

    with caplog.at_level("WARNING"):
        assert decode_settlement(entry) == (None, 1960)

    assert "Invalid lucky_number" in caplog.text


def test_malformed_payout_keeps_the_draw():
    entry = make_entry(events=[hex_event('{"lucky_number": 12345, "payout": "lots"}')])

    assert decode_settlement(entry) == (12345, None)

    settled = settle(_bet(threshold=32768), entry, now=NOW)
    assert settled.result is BetResult.WIN
    assert settled.lucky_number == 12345
    assert settled.payout == 0


# ---------------------------------------------------------------------------
# settle
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("lucky, expected", [
    (0, BetResult.WIN),
    (32767, BetResult.WIN),
    (32768, BetResult.WIN),  # boundary is inclusive
    (32769, BetResult.LOSE),
    (65535, BetResult.LOSE),
])
def test_win_rule(lucky, expected):
    payout = 1960 if expected is BetResult.WIN else 0
    entry = make_entry(events=[hex_event(f'{{"lucky_number": {lucky}, "payout": {payout}}}')])

    settled = settle(_bet(), entry, now=NOW)

    assert settled.result is expected
    assert settled.lucky_number == lucky
    assert settled.payout == payout
    assert settled.settled_at == NOW


def test_payout_comes_from_event_not_recomputed():
    entry = make_entry(events=[hex_event('{"lucky_number": 10, "payout": 1234}')])
    assert settle(_bet(), entry, now=NOW).payout == 1234


def test_voided_transaction_fails():
    entry = make_entry(voided=True, first_block=None,
                       events=[hex_event('{"lucky_number": 10, "payout": 1960}')])

    settled = settle(_bet(), entry, now=NOW)

    assert settled.result is BetResult.FAILED
    assert settled.payout == 0
    assert settled.lucky_number is None


@pytest.mark.parametrize("events, expected", [
    ([{"type": "BetPlaced", "data": "garbage"}], BetResult.LOSE),
    ([], BetResult.LOSE),
    ([hex_event('{"payout": 1960}')], BetResult.WIN),
    ([hex_event('{"payout": 0}')], BetResult.LOSE),
])
def test_unknown_draw_falls_back_to_payout(events, expected):
    settled = settle(_bet(), make_entry(events=events), now=NOW)
    assert settled.lucky_number is None
    assert settled.result is expected


def test_settle_leaves_original_untouched():
    bet = _bet()
    entry = make_entry(events=[hex_event('{"lucky_number": 1, "payout": 1960}')])

    settle(bet, entry, now=NOW)

    assert bet.is_pending
    assert bet.lucky_number is None


def test_is_settled():
    assert is_settled(make_entry(first_block="b1"))
    assert is_settled(make_entry(first_block=None, voided=True))
    assert not is_settled(make_entry(first_block=None))


# ---------------------------------------------------------------------------
# History views
# ---------------------------------------------------------------------------

def test_bet_from_confirmed_entry():
    entry = make_entry(events=[hex_event('{"lucky_number": 40000, "payout": 0}')])

    bet = bet_from_entry(entry, address="wplayer", contract_id="nc-1", token="HTR")

    assert bet.amount == 1000
    assert bet.threshold == 32768
    assert bet.result is BetResult.LOSE
    assert bet.is_your_bet  # address match is case-insensitive
    assert bet.contract_id == "nc-1"
    assert bet.settled_at == bet.timestamp


def test_bet_from_unconfirmed_entry_is_pending():
    bet = bet_from_entry(make_entry(first_block=None), address="WSomeoneElse")
    assert bet.is_pending
    assert not bet.is_your_bet


def test_bet_with_undecoded_args_stays_pending():
    bet = bet_from_entry(make_entry(args={"unparsed": "00ff"}))
    assert bet.is_pending
    assert bet.amount == 0


def test_bet_args_as_mapping():
    bet = bet_from_entry(make_entry(args={"amount": 50, "threshold": 100}, first_block=None))
    assert (bet.amount, bet.threshold) == (50, 100)


def test_own_ids_mark_bets_as_yours():
    bet = bet_from_entry(make_entry(first_block=None), address=None, own_ids={"aa01"})
    assert bet.is_your_bet


def test_bets_from_history_skips_other_methods():
    entries = [
        make_entry("aa01"),
        make_entry("aa02", method="add_liquidity", args=[]),
        make_entry("aa03", first_block=None),
    ]
    assert [bet.id for bet in bets_from_history(entries)] == ["aa01", "aa03"]


def test_order_bets_pending_first():
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    old_pending = _bet("p1", timestamp=base)
    new_pending = _bet("p2", timestamp=base + timedelta(minutes=5))
    settled_early = _bet("s1", result=BetResult.WIN, timestamp=base,
                         settled_at=base + timedelta(minutes=1))
    settled_late = _bet("s2", result=BetResult.LOSE, timestamp=base,
                        settled_at=base + timedelta(minutes=9))

    ordered = order_bets([settled_early, old_pending, settled_late, new_pending])

    assert [bet.id for bet in ordered] == ["p2", "p1", "s2", "s1"]


def test_operations_from_history():
    entries = [
        make_entry("op1", method="add_liquidity", args=[], address="WLp"),
        make_entry("op2", method="claim_balance", args=[], first_block=None),
        make_entry("op3", method="remove_liquidity", args=[], voided=True),
        make_entry("bet", method="place_bet"),
    ]

    operations = operations_from_history(entries, "nc-1")

    assert [(op.id, op.status) for op in operations] == [
        ("op1", "executed"),
        ("op2", "pending"),
        ("op3", "failed"),
    ]
    assert operations[0].caller == "WLp"
    assert operations[0].contract_id == "nc-1"


# ---------------------------------------------------------------------------
# Player stats
# ---------------------------------------------------------------------------

def _history_bet(tx_hash, result, amount, payout, player="WPlayer", token="HTR", **kwargs) -> Bet:
    return Bet(id=tx_hash, player=player, amount=amount, threshold=32768,
               result=result, payout=payout, token=token, **kwargs)


def test_player_stats_totals():
    bets = [
        _history_bet("a", BetResult.WIN, 1000, 1962),
        _history_bet("b", BetResult.LOSE, 500, 0),
        _history_bet("c", BetResult.LOSE, 300, 0, player="wplayer"),
    ]

    stats = player_stats(bets, "WPlayer")

    assert stats.total_bets == 3
    assert stats.total_wagered == 1800
    assert stats.total_payout == 1962
    assert stats.profit_loss == 162
    assert (stats.win_count, stats.lose_count) == (1, 2)
    assert stats.win_rate == pytest.approx(100 / 3)


def test_player_stats_skips_pending_failed_and_other_players():
    bets = [
        _history_bet("a", BetResult.PENDING, 1000, 0),
        _history_bet("b", BetResult.FAILED, 1000, 0),
        _history_bet("c", BetResult.WIN, 1000, 1962, player="WSomeoneElse"),
        _history_bet("d", BetResult.WIN, 100, 196, player="WSomeoneElse", is_your_bet=True),
    ]

    stats = player_stats(bets, "WPlayer")

    assert stats.total_bets == 1
    assert stats.profit_loss == 96


def test_player_stats_per_token():
    bets = [
        _history_bet("a", BetResult.WIN, 1000, 1962),
        _history_bet("b", BetResult.LOSE, 700, 0, token="USDC"),
    ]

    assert player_stats(bets, "WPlayer", "USDC").profit_loss == -700
    assert player_stats(bets, "WPlayer", "HTR").total_bets == 1


def test_player_stats_without_address():
    stats = player_stats([_history_bet("a", BetResult.WIN, 1000, 1962)], None)
    assert stats.total_bets == 0
    assert stats.win_rate == 0.0
