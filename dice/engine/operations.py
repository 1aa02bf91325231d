"""Contract operations submitted through the wallet.

Every operation validates against the current contract snapshot before
the wallet is contacted. A submission the wallet does not accept raises
and leaves no trace; an accepted bet is handed to the tracker at once.
"""

import logging
from typing import Any, Awaitable, Callable

from ..core.exceptions import TransportError, TransportNotConnected
from ..core.models import Bet, NanoContractAction
from ..core.sizing import validate_bet, validate_liquidity_amount
from ..node.contracts import ContractDirectory
from ..wallet.session import WalletSession
from .tracker import BetSettlementTracker

logger = logging.getLogger(__name__)

SubmitCallback = Callable[[Bet], Awaitable[None]]


def _tx_hash(result: Any, method: str) -> str:
    """Hash of an accepted submission, or TransportError."""
    if not isinstance(result, dict):
        raise TransportError(f"Unexpected response to {method}")
    if result.get("success") is False:
        raise TransportError(result.get("message") or f"{method} was not accepted")
    tx_hash = result.get("hash") or result.get("tx_id")
    if not tx_hash:
        raise TransportError(f"{method} returned no transaction hash")
    return tx_hash


class ContractOperations:
    """place_bet, add_liquidity, remove_liquidity and claim_balance."""

    def __init__(
        self,
        directory: ContractDirectory,
        session: WalletSession,
        tracker: BetSettlementTracker,
    ):
        self.directory = directory
        self.session = session
        self.tracker = tracker
        self._callbacks: list[SubmitCallback] = []

    def register_callback(self, callback: SubmitCallback):
        """Register callback for accepted bets."""
        self._callbacks.append(callback)

    def unregister_callback(self, callback: SubmitCallback):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _require_address(self) -> str:
        address = self.session.address
        if not self.session.is_connected or not address:
            raise TransportNotConnected()
        return address

    async def _submit(
        self,
        contract_id: str,
        method: str,
        args: list[Any],
        actions: list[NanoContractAction],
    ) -> str:
        result = await self.session.rpc.send_nano_contract_tx(contract_id, method, args, actions)
        tx_hash = _tx_hash(result, method)
        logger.info("Submitted %s to %s: %s", method, contract_id, tx_hash)
        return tx_hash

    async def place_bet(self, token: str, amount: int, threshold: int) -> Bet:
        """
        Validate and submit a bet, then track it as pending.

        Raises:
            ContractUnavailable: no contract serves token
            ValidationError: the bet fails the pre-submission checks
            TransportError: the wallet refused or failed the submission
        """
        state = self.directory.state_for(token)
        contract_id = self.directory.contract_id_for(token)
        potential_payout = validate_bet(amount, threshold, state)
        player = self._require_address()

        tx_hash = await self._submit(
            contract_id,
            "place_bet",
            [amount, threshold],
            [NanoContractAction(type="deposit", amount=str(amount), token=state.token_id)],
        )

        bet = self.tracker.track(Bet(
            id=tx_hash,
            player=player,
            amount=amount,
            threshold=threshold,
            potential_payout=potential_payout,
            is_your_bet=True,
            token=token,
            contract_id=contract_id,
            network=self.directory.network,
        ))

        for callback in self._callbacks:
            try:
                await callback(bet)
            except Exception as e:
                logger.warning("Bet submission callback error: %s", e)
        return bet

    async def add_liquidity(self, token: str, amount: int) -> str:
        state = self.directory.state_for(token)
        contract_id = self.directory.contract_id_for(token)
        validate_liquidity_amount(amount)
        self._require_address()
        return await self._submit(
            contract_id,
            "add_liquidity",
            [],
            [NanoContractAction(type="deposit", amount=str(amount), token=state.token_id)],
        )

    async def max_liquidity_removal(self, token: str) -> int:
        contract_id = self.directory.contract_id_for(token)
        address = self._require_address()
        return await self.directory.node.get_maximum_liquidity_removal(contract_id, address)

    async def remove_liquidity(self, token: str, amount: int) -> str:
        """Withdraw provided liquidity, at most what the contract allows."""
        state = self.directory.state_for(token)
        contract_id = self.directory.contract_id_for(token)
        validate_liquidity_amount(amount)
        address = self._require_address()
        limit = await self.directory.node.get_maximum_liquidity_removal(contract_id, address)
        validate_liquidity_amount(amount, limit)
        return await self._submit(
            contract_id,
            "remove_liquidity",
            [],
            [NanoContractAction(type="withdrawal", amount=str(amount), token=state.token_id,
                                address=address)],
        )

    async def claimable_balance(self, token: str) -> int:
        contract_id = self.directory.contract_id_for(token)
        address = self._require_address()
        return await self.directory.node.get_claimable_balance(contract_id, address)

    async def claim_balance(self, token: str, amount: int | None = None) -> str:
        """Withdraw winnings held by the contract; defaults to the full balance."""
        state = self.directory.state_for(token)
        contract_id = self.directory.contract_id_for(token)
        address = self._require_address()
        claimable = await self.directory.node.get_claimable_balance(contract_id, address)
        amount = claimable if amount is None else amount
        validate_liquidity_amount(amount, claimable)
        return await self._submit(
            contract_id,
            "claim_balance",
            [],
            [NanoContractAction(type="withdrawal", amount=str(amount), token=state.token_id,
                                address=address)],
        )
