"""Bet settlement tracker.

Owns the authoritative copy of every bet this client submitted and
settles them against the contract's polled history:

1. ``track`` a bet in pending state right after the wallet accepts it
2. ``history_snapshots`` fetches history for contracts with pending bets
3. ``reconcile`` matches snapshot entries to pending bets by tx hash

A bet leaves pending exactly once; later observations are ignored.
"""

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable

from ..config import HISTORY_MAX_PAGES, HISTORY_PAGE_SIZE, POLL_INTERVAL_SECONDS
from ..core.models import Bet, ContractOperation, HistoryEntry, HistorySnapshot
from ..node.contracts import ContractDirectory
from ..utils.time import monotonic_ms, utc_now
from .settlement import bets_from_history, is_settled, operations_from_history, order_bets, settle

logger = logging.getLogger(__name__)

BetCallback = Callable[[Bet], Awaitable[None]]


class BetSettlementTracker:
    """
    Tracks submitted bets until the ledger settles them.

    Polling runs as a cancellable task; each cycle consumes a fresh
    sequence of history snapshots and never mutates them.
    """

    def __init__(
        self,
        directory: ContractDirectory,
        page_size: int = HISTORY_PAGE_SIZE,
        max_pages: int = HISTORY_MAX_PAGES,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
    ):
        self.directory = directory
        self.page_size = page_size
        self.max_pages = max_pages
        self.interval_seconds = interval_seconds
        self._bets: dict[str, Bet] = {}  # tx hash -> Bet
        self._snapshots: dict[str, HistorySnapshot] = {}  # contract id -> last snapshot
        self._callbacks: list[BetCallback] = []
        self._task: asyncio.Task | None = None
        self._last_poll: datetime | None = None
        self._poll_duration_ms: float = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def bets(self) -> list[Bet]:
        """Tracked bets, pending first."""
        return order_bets(self._bets.values())

    @property
    def pending(self) -> list[Bet]:
        return [bet for bet in self._bets.values() if bet.is_pending]

    @property
    def last_poll(self) -> datetime | None:
        return self._last_poll

    @property
    def last_poll_duration_ms(self) -> float:
        return self._poll_duration_ms

    def get(self, bet_id: str) -> Bet | None:
        return self._bets.get(bet_id)

    def register_callback(self, callback: BetCallback):
        """Register callback for terminal transitions."""
        self._callbacks.append(callback)

    def unregister_callback(self, callback: BetCallback):
        """Unregister callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def track(self, bet: Bet) -> Bet:
        """Start tracking a freshly submitted bet."""
        if bet.id in self._bets:
            raise ValueError(f"Bet {bet.id} is already tracked")
        if not bet.is_your_bet:
            bet = bet.model_copy(update={"is_your_bet": True})
        self._bets[bet.id] = bet
        logger.info("Tracking bet %s (%s on threshold %s)", bet.id, bet.amount, bet.threshold)
        return bet

    def _pending_targets(self) -> list[tuple[str, str]]:
        """(network, contract id) pairs that still have pending bets."""
        targets: list[tuple[str, str]] = []
        for bet in self.pending:
            target = (bet.network or self.directory.network, bet.contract_id)
            if bet.contract_id and target not in targets:
                targets.append(target)
        return targets

    def _on_current_network(self, network: str | None) -> bool:
        return network is None or network == self.directory.network

    async def _fetch_snapshot(
        self,
        contract_id: str,
        wanted: set[str] | None = None,
        max_pages: int | None = None,
        network: str | None = None,
    ) -> HistorySnapshot:
        """Follow the history cursor until every wanted hash was seen.

        Without wanted hashes only the newest page is fetched.
        """
        node = self.directory.node_for(network)
        network = network or self.directory.network
        entries: list[HistoryEntry] = []
        seen: set[str] = set()
        after: str | None = None

        for _ in range(max_pages or self.max_pages):
            page = await node.get_contract_history(contract_id, self.page_size, after)
            entries.extend(page.entries)
            seen.update(entry.hash for entry in page.entries)
            if wanted is None or wanted <= seen:
                break
            if not page.has_more or page.last_hash is None:
                break
            after = page.last_hash

        return HistorySnapshot(contract_id=contract_id, entries=tuple(entries), network=network)

    async def history_snapshots(
        self,
        contract_ids: list[str] | None = None,
    ) -> AsyncIterator[HistorySnapshot]:
        """
        Yield one snapshot per contract, fetched lazily.

        By default covers the contracts that still have pending bets, on
        the network each bet was submitted to. Explicit contract ids are
        read from the current network. Every call starts a new sequence.
        """
        if contract_ids is not None:
            targets = [(self.directory.network, contract_id) for contract_id in contract_ids]
        else:
            targets = self._pending_targets()
        for network, contract_id in targets:
            wanted = {
                bet.id for bet in self.pending
                if bet.contract_id == contract_id
                and (bet.network or self.directory.network) == network
            }
            yield await self._fetch_snapshot(contract_id, wanted or None, network=network)

    def reconcile(self, snapshot: HistorySnapshot, now: datetime | None = None) -> list[Bet]:
        """Settle pending bets found in snapshot. Returns the new terminal bets."""
        if self._on_current_network(snapshot.network):
            self._snapshots[snapshot.contract_id] = snapshot
        settled: list[Bet] = []
        for entry in snapshot.entries:
            bet = self._bets.get(entry.hash)
            # terminal bets never transition again
            if bet is None or not bet.is_pending or not is_settled(entry):
                continue
            if bet.network and snapshot.network and bet.network != snapshot.network:
                continue
            final = settle(bet, entry, now)
            self._bets[bet.id] = final
            settled.append(final)
            logger.info("Bet %s settled: %s (payout %s)", bet.id, final.result.value, final.payout)
        return settled

    async def _notify(self, bets: list[Bet]):
        for bet in bets:
            for callback in self._callbacks:
                try:
                    await callback(bet)
                except Exception as e:
                    logger.warning("Settlement callback error: %s", e)

    async def poll_once(self) -> list[Bet]:
        """Run one poll cycle and return the bets it settled."""
        started = monotonic_ms()
        fetched = 0
        settled: list[Bet] = []

        async for snapshot in self.history_snapshots():
            fetched += len(snapshot.entries)
            settled.extend(self.reconcile(snapshot))

        await self.directory.release({bet.network for bet in self.pending})
        self._last_poll = utc_now()
        self._poll_duration_ms = monotonic_ms() - started

        if fetched or settled:
            logger.info(
                "Poll complete: %d entries, %d bets settled, %.0fms",
                fetched, len(settled), self._poll_duration_ms,
            )
        await self._notify(settled)
        return settled

    async def refresh_feed(self) -> list[Bet]:
        """Fetch the newest history page of every known contract."""
        settled: list[Bet] = []
        async for snapshot in self.history_snapshots(list(self.directory.contract_ids)):
            settled.extend(self.reconcile(snapshot))
        await self._notify(settled)
        return settled

    def recent_feed(self, address: str | None = None) -> list[Bet]:
        """Every bet seen in the last snapshots, with tracked bets taking precedence."""
        views: dict[str, Bet] = {}
        for contract_id, snapshot in self._snapshots.items():
            token = self.directory.token_for_contract(contract_id) or "HTR"
            for bet in bets_from_history(
                snapshot.entries, address, self._bets, contract_id, token
            ):
                views[bet.id] = bet
        views.update(
            (bet.id, bet) for bet in self._bets.values() if self._on_current_network(bet.network)
        )
        return order_bets(views.values())

    def recent_operations(self, contract_id: str | None = None) -> list[ContractOperation]:
        """Liquidity and withdrawal transactions from the last snapshots, newest first."""
        operations: list[ContractOperation] = []
        for known_id, snapshot in self._snapshots.items():
            if contract_id is None or known_id == contract_id:
                operations.extend(operations_from_history(snapshot.entries, known_id))
        return sorted(operations, key=lambda op: op.timestamp, reverse=True)

    async def _run(self, interval_seconds: float):
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error("Poll cycle failed: %s", e)
            await asyncio.sleep(interval_seconds)

    def start(self, interval_seconds: float | None = None) -> asyncio.Task:
        """Start the polling task; returns the running task."""
        if self.is_running:
            return self._task
        interval = interval_seconds or self.interval_seconds
        self._task = asyncio.create_task(self._run(interval))
        logger.info("Settlement tracker started with %ss interval", interval)
        return self._task

    async def stop(self):
        """Cancel polling and wait for the task to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Settlement tracker stopped")

    def reset_feed(self):
        """Drop history cached for the previous network; tracked bets are kept."""
        self._snapshots.clear()

    def clear(self):
        """Forget every tracked bet and snapshot."""
        self._bets.clear()
        self._snapshots.clear()
