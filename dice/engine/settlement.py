"""Settlement decoding and bet reconciliation helpers.

A ``place_bet`` transaction is settled once the ledger confirms it (it
has a first block) or voids it. The contract attaches exactly one event
whose data is UTF-8 JSON, usually hex encoded:

    {"lucky_number": 12345, "payout": 1962, ...}

Older contracts name the draw ``result`` instead of ``lucky_number``.
"""

import json
import logging
import string
from datetime import datetime
from typing import Any, Iterable, NamedTuple

from ..core.exceptions import DecodeError
from ..core.models import Bet, BetResult, ContractOperation, HistoryEntry, PlayerStats
from ..utils.time import from_unix_seconds, utc_now

logger = logging.getLogger(__name__)

PLACE_BET_METHOD = "place_bet"
OPERATION_METHODS = ("add_liquidity", "remove_liquidity", "claim_balance")

_HEX_DIGITS = frozenset(string.hexdigits)


class Settlement(NamedTuple):
    """Values decoded from a settlement event; either may be unknown."""
    lucky_number: int | None
    payout: int | None


def _looks_hex(text: str) -> bool:
    return bool(text) and len(text) % 2 == 0 and set(text) <= _HEX_DIGITS


def decode_event_data(data: Any) -> dict[str, Any]:
    """
    Decode one event's data into a dict.

    Accepts hex-encoded UTF-8 JSON (what the node returns), plain JSON
    text, or an already decoded mapping.
    """
    if isinstance(data, dict):
        return data
    if not isinstance(data, str):
        raise DecodeError(f"Unsupported event data type: {type(data).__name__}")

    text = data.strip()
    if _looks_hex(text):
        try:
            text = bytes.fromhex(text).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecodeError(f"Event data is not valid UTF-8 hex: {exc}") from exc

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Event data is not valid JSON: {exc}") from exc

    if not isinstance(decoded, dict):
        raise DecodeError("Event data is not a JSON object")
    return decoded


def _optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(f"Invalid {name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid {name}: {value!r}") from exc


def _field_or_none(value: Any, name: str, tx_hash: str) -> int | None:
    try:
        return _optional_int(value, name)
    except DecodeError as e:
        logger.warning("Ignoring %s of %s: %s", name, tx_hash, e.message)
        return None


def decode_settlement(entry: HistoryEntry) -> Settlement:
    """
    Read the draw and payout from the entry's single settlement event.

    The two values are read independently: a malformed one is reported
    as unknown and does not hide the other.
    """
    if len(entry.nc_events) != 1:
        raise DecodeError(
            f"Expected exactly 1 event for transaction {entry.hash}, got {len(entry.nc_events)}"
        )
    data = decode_event_data(entry.nc_events[0].data)
    lucky = data.get("lucky_number", data.get("result"))
    return Settlement(
        lucky_number=_field_or_none(lucky, "lucky_number", entry.hash),
        payout=_field_or_none(data.get("payout"), "payout", entry.hash),
    )


def is_settled(entry: HistoryEntry) -> bool:
    return entry.is_voided or entry.first_block is not None


def settle(bet: Bet, entry: HistoryEntry, now: datetime | None = None) -> Bet:
    """
    Return the terminal copy of bet for its confirmed history entry.

    The result is always terminal: an undecodable event only leaves the
    lucky number unknown. The payout is the contract's value, never a
    local recomputation.
    """
    settled_at = now or utc_now()

    if entry.is_voided:
        return bet.model_copy(update={
            "result": BetResult.FAILED,
            "payout": 0,
            "lucky_number": None,
            "settled_at": settled_at,
        })

    try:
        lucky, payout = decode_settlement(entry)
    except DecodeError as e:
        logger.warning("Could not decode settlement for %s: %s", entry.hash, e.message)
        lucky, payout = None, None

    if lucky is not None:
        result = BetResult.WIN if lucky <= bet.threshold else BetResult.LOSE
    else:
        result = BetResult.WIN if payout and payout > 0 else BetResult.LOSE

    return bet.model_copy(update={
        "result": result,
        "payout": payout or 0,
        "lucky_number": lucky,
        "settled_at": settled_at,
    })


def _bet_args(args: Any) -> tuple[int, int] | None:
    """(amount, threshold) from decoded place_bet args, None while undecoded."""
    try:
        if isinstance(args, (list, tuple)) and len(args) == 2:
            return int(args[0]), int(args[1])
        if isinstance(args, dict) and "threshold" in args:
            return int(args.get("amount", 0)), int(args["threshold"])
    except (TypeError, ValueError):
        return None
    return None


def bet_from_entry(
    entry: HistoryEntry,
    address: str | None = None,
    own_ids: Iterable[str] = (),
    contract_id: str | None = None,
    token: str = "HTR",
) -> Bet:
    """Read-only view of any player's place_bet transaction."""
    player = entry.nc_address or "Unknown"
    is_yours = entry.hash in set(own_ids) or bool(
        address and entry.nc_address and entry.nc_address.lower() == address.lower()
    )
    args = _bet_args(entry.nc_args_decoded)
    amount, threshold = args if args else (0, 0)
    timestamp = from_unix_seconds(entry.timestamp)

    bet = Bet(
        id=entry.hash,
        player=player,
        amount=amount,
        threshold=threshold,
        is_your_bet=is_yours,
        token=token,
        contract_id=contract_id,
        timestamp=timestamp,
    )

    if entry.is_voided or (args is not None and entry.first_block is not None):
        return settle(bet, entry, now=timestamp)
    return bet


def bets_from_history(
    entries: Iterable[HistoryEntry],
    address: str | None = None,
    own_ids: Iterable[str] = (),
    contract_id: str | None = None,
    token: str = "HTR",
) -> list[Bet]:
    own = set(own_ids)
    return [
        bet_from_entry(entry, address, own, contract_id, token)
        for entry in entries
        if entry.nc_method == PLACE_BET_METHOD
    ]


def order_bets(bets: Iterable[Bet]) -> list[Bet]:
    """Pending bets first (newest first), then settled bets by settlement time."""
    bets = list(bets)
    pending = sorted((b for b in bets if b.is_pending), key=lambda b: b.timestamp, reverse=True)
    settled = sorted(
        (b for b in bets if not b.is_pending),
        key=lambda b: b.settled_at or b.timestamp,
        reverse=True,
    )
    return pending + settled


def player_stats(
    bets: Iterable[Bet],
    address: str | None,
    token: str | None = None,
) -> PlayerStats:
    """
    Totals over the address's won and lost bets, optionally for one token.

    Pending and failed bets are not counted. Without an address every
    total is zero.
    """
    if not address:
        return PlayerStats()
    counted = [
        bet for bet in bets
        if (bet.is_your_bet or bet.player.lower() == address.lower())
        and bet.result in (BetResult.WIN, BetResult.LOSE)
        and (token is None or bet.token == token)
    ]
    return PlayerStats(
        total_bets=len(counted),
        total_wagered=sum(bet.amount for bet in counted),
        total_payout=sum(bet.payout for bet in counted),
        win_count=sum(1 for bet in counted if bet.result is BetResult.WIN),
        lose_count=sum(1 for bet in counted if bet.result is BetResult.LOSE),
    )


def operation_status(entry: HistoryEntry) -> str:
    if entry.is_voided:
        return "failed"
    if entry.first_block is None:
        return "pending"
    return "executed"


def operations_from_history(
    entries: Iterable[HistoryEntry],
    contract_id: str | None = None,
) -> list[ContractOperation]:
    """Liquidity and withdrawal transactions, in history order."""
    return [
        ContractOperation(
            id=entry.hash,
            method=entry.nc_method,
            caller=entry.nc_address,
            status=operation_status(entry),
            contract_id=contract_id,
            timestamp=from_unix_seconds(entry.timestamp),
        )
        for entry in entries
        if entry.nc_method in OPERATION_METHODS
    ]
