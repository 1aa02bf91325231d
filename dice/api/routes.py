"""API routes for the dice client.

Amounts are integers in the token's smallest unit.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from ..config import Network
from ..context import DiceContext
from ..core.exceptions import NetworkFailure, ValidationError
from ..core.math import odds_from_multiplier, odds_from_threshold, odds_from_win_chance
from ..core.models import ContractState, OddsSpec, TransportMode
from ..core.sizing import quote_bet
from ..engine import (
    format_bet_json,
    format_bets_table,
    format_contract_json,
    format_operation_json,
    format_quote_json,
    format_stats_json,
    player_stats,
)
from ..node.contracts import token_uid
from ..utils.formatting import format_address, format_token_amount


router = APIRouter(prefix="/api", tags=["dice"])


def get_context(request: Request) -> DiceContext:
    return request.app.state.context


class ConnectRequest(BaseModel):
    mode: TransportMode
    pairing_topic: str | None = None


class NetworkRequest(BaseModel):
    network: Network


class BetRequest(BaseModel):
    token: str = "HTR"
    amount: int
    threshold: int | None = None
    win_chance: float | None = None
    multiplier: float | None = None


class LiquidityRequest(BaseModel):
    token: str = "HTR"
    amount: int


class WithdrawRequest(BaseModel):
    token: str = "HTR"
    amount: int | None = Field(default=None, description="Defaults to the full claimable balance")


def resolve_odds(
    state: ContractState,
    threshold: int | None = None,
    win_chance: float | None = None,
    multiplier: float | None = None,
) -> OddsSpec:
    """Derive all three odds values from whichever one was given."""
    given = [value for value in (threshold, win_chance, multiplier) if value is not None]
    if len(given) != 1:
        raise ValidationError("Provide exactly one of threshold, win_chance or multiplier")
    try:
        if threshold is not None:
            return odds_from_threshold(threshold, state)
        if win_chance is not None:
            return odds_from_win_chance(win_chance, state)
        return odds_from_multiplier(multiplier, state)
    except ValueError as e:
        raise ValidationError(str(e)) from e


@router.get("/")
async def root():
    """API root - service info."""
    return {
        "status": "ok",
        "service": "Hathor Dice",
        "version": "1.0.0",
    }


@router.get("/health")
async def health_check(ctx: DiceContext = Depends(get_context)):
    """Health check endpoint."""
    tracker = ctx.tracker
    return {
        "status": "healthy",
        "network": ctx.network,
        "tracker_running": tracker.is_running,
        "last_poll": tracker.last_poll.isoformat() if tracker.last_poll else None,
        "last_poll_ms": round(tracker.last_poll_duration_ms, 1),
        "pending_bets": len(tracker.pending),
        "contracts_loaded": len(ctx.directory.tokens),
        "wallet_connected": ctx.session.is_connected,
    }


@router.get("/contracts")
async def get_contracts(
    refresh: bool = False,
    ctx: DiceContext = Depends(get_context),
):
    """Dice contracts per token with their current configuration."""
    if refresh:
        await ctx.directory.refresh()
    return {
        "network": ctx.network,
        "contracts": [
            format_contract_json(token, ctx.directory.contract_id_for(token), state)
            for token, state in ctx.directory.states.items()
        ],
    }


@router.get("/odds")
async def get_odds(
    token: str = "HTR",
    threshold: int | None = None,
    win_chance: float | None = None,
    multiplier: float | None = None,
    amount: int = Query(0, ge=0),
    ctx: DiceContext = Depends(get_context),
):
    """
    Preview odds and payout for a bet.

    Give exactly one of threshold, win_chance (percent) or multiplier;
    the other two are derived from the contract's current state.
    """
    state = ctx.directory.state_for(token)
    odds = resolve_odds(state, threshold, win_chance, multiplier)
    return format_quote_json(quote_bet(amount, odds.threshold, state), token, amount)


@router.get("/wallet")
async def get_wallet(ctx: DiceContext = Depends(get_context)):
    state = ctx.session.state
    return {
        **state.model_dump(mode="json"),
        "display_address": format_address(state.address),
    }


@router.post("/wallet/connect")
async def connect_wallet(body: ConnectRequest, ctx: DiceContext = Depends(get_context)):
    """Connect through a wallet mode, replacing any active one."""
    options = {}
    if body.mode is TransportMode.REMOTE_SESSION and body.pairing_topic:
        options["pairing_topic"] = body.pairing_topic
    state = await ctx.session.activate(body.mode, **options)
    return state.model_dump(mode="json")


@router.post("/wallet/disconnect")
async def disconnect_wallet(ctx: DiceContext = Depends(get_context)):
    await ctx.session.teardown()
    ctx.balances.invalidate()
    return ctx.session.state.model_dump(mode="json")


@router.get("/wallet/balance")
async def get_balance(
    token: str = "HTR",
    refresh: bool = False,
    ctx: DiceContext = Depends(get_context),
):
    """Unlocked wallet balance for token (cached briefly)."""
    uid = ctx.directory.state_for(token).token_id if token in ctx.directory.tokens else token_uid(token)
    balance = await ctx.balances.get_balance(uid, refresh=refresh)
    return {
        "token": token,
        "address": ctx.session.address,
        "balance": balance,
        "display": format_token_amount(balance),
    }


@router.get("/wallet/claimable")
async def get_claimable(token: str = "HTR", ctx: DiceContext = Depends(get_context)):
    """Winnings held by the contract for the connected address."""
    claimable = await ctx.operations.claimable_balance(token)
    max_removal = await ctx.operations.max_liquidity_removal(token)
    return {
        "token": token,
        "claimable": claimable,
        "max_liquidity_removal": max_removal,
    }


@router.post("/network")
async def switch_network(body: NetworkRequest, ctx: DiceContext = Depends(get_context)):
    await ctx.switch_network(body.network)
    return {"network": ctx.network, "contracts": ctx.directory.tokens}


@router.get("/bets")
async def get_bets(
    scope: Literal["all", "mine"] = "all",
    refresh: bool = False,
    limit: int = Query(50, ge=1, le=200),
    format: Literal["json", "text"] = "json",
    ctx: DiceContext = Depends(get_context),
):
    """
    Recent bets, pending first.

    - scope: all players seen in contract history, or only this client's bets
    - refresh: poll pending bets and fetch the newest history page first
    """
    if refresh:
        await ctx.tracker.poll_once()
        await ctx.tracker.refresh_feed()

    if scope == "mine":
        bets = ctx.tracker.bets
    else:
        bets = ctx.tracker.recent_feed(ctx.session.address)
    bets = bets[:limit]

    if format == "text":
        return {"text": format_bets_table(bets)}

    return {
        "count": len(bets),
        "bets": [format_bet_json(b) for b in bets],
    }


@router.get("/bets/{bet_id}")
async def get_bet(bet_id: str, ctx: DiceContext = Depends(get_context)):
    bet = ctx.tracker.get(bet_id)
    if bet is None:
        bet = next((b for b in ctx.tracker.recent_feed(ctx.session.address) if b.id == bet_id), None)
    if bet is None:
        raise HTTPException(status_code=404, detail="Bet not found")
    return format_bet_json(bet)


@router.post("/bets")
async def place_bet(body: BetRequest, ctx: DiceContext = Depends(get_context)):
    """Submit a bet; it is returned pending and settles through polling."""
    state = ctx.directory.state_for(body.token)
    odds = resolve_odds(state, body.threshold, body.win_chance, body.multiplier)
    # an explicit threshold is validated as given, not clamped
    threshold = body.threshold if body.threshold is not None else odds.threshold
    bet = await ctx.operations.place_bet(body.token, body.amount, threshold)
    return format_bet_json(bet)


@router.get("/stats")
async def get_stats(
    token: str = "HTR",
    refresh: bool = False,
    ctx: DiceContext = Depends(get_context),
):
    """Profit and loss of the connected wallet over its settled bets."""
    if refresh:
        await ctx.tracker.poll_once()
        await ctx.tracker.refresh_feed()
    address = ctx.session.address
    stats = player_stats(ctx.tracker.recent_feed(address), address, token)
    return {"address": address, **format_stats_json(stats, token)}


@router.get("/operations")
async def get_operations(
    token: str | None = None,
    ctx: DiceContext = Depends(get_context),
):
    """Recent liquidity and withdrawal transactions."""
    contract_id = ctx.directory.contract_id_for(token) if token else None
    operations = ctx.tracker.recent_operations(contract_id)
    return {
        "count": len(operations),
        "operations": [format_operation_json(op) for op in operations],
    }


@router.post("/liquidity/add")
async def add_liquidity(body: LiquidityRequest, ctx: DiceContext = Depends(get_context)):
    tx_hash = await ctx.operations.add_liquidity(body.token, body.amount)
    return {"success": True, "hash": tx_hash}


@router.post("/liquidity/remove")
async def remove_liquidity(body: LiquidityRequest, ctx: DiceContext = Depends(get_context)):
    tx_hash = await ctx.operations.remove_liquidity(body.token, body.amount)
    return {"success": True, "hash": tx_hash}


@router.post("/withdraw")
async def withdraw(body: WithdrawRequest, ctx: DiceContext = Depends(get_context)):
    tx_hash = await ctx.operations.claim_balance(body.token, body.amount)
    return {"success": True, "hash": tx_hash}


@router.get("/node/blueprints/{blueprint_id}")
async def get_blueprint(blueprint_id: str, ctx: DiceContext = Depends(get_context)):
    """Blueprint metadata as the full node reports it."""
    try:
        return await ctx.directory.node.get_blueprint_info(blueprint_id)
    except NetworkFailure as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Blueprint not found") from e
        raise


@router.get("/node/transactions/{tx_id}")
async def get_transaction(tx_id: str, ctx: DiceContext = Depends(get_context)):
    """Raw transaction from the full node of the current network."""
    try:
        return await ctx.directory.node.get_transaction(tx_id)
    except NetworkFailure as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Transaction not found") from e
        raise
