from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils.time import utc_now


class BetResult(str, Enum):
    PENDING = "pending"
    WIN = "win"
    LOSE = "lose"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not BetResult.PENDING


class TransportMode(str, Enum):
    MOCK = "mock"
    REMOTE_SESSION = "remoteSession"
    SNAP = "snap"


class ContractState(BaseModel):
    """Snapshot of a dice contract's configuration. Replaced wholesale on refresh."""
    model_config = ConfigDict(frozen=True)

    token_id: str = "00"
    max_bet_amount: int = Field(default=0, ge=0)  # smallest unit, 0 = no cap
    house_edge_basis_points: int = Field(default=200, ge=0, le=10000)
    random_bit_length: int = Field(default=16, ge=1)
    available_liquidity: int = Field(default=0, ge=0)
    total_liquidity_provided: int = Field(default=0, ge=0)

    @property
    def draw_range(self) -> int:
        """Number of possible random draws (2^bits)."""
        return 1 << self.random_bit_length


class OddsSpec(BaseModel):
    """The three equivalent odds representations for one bet."""
    threshold: int = Field(ge=1)
    win_chance_percent: float
    multiplier: float = Field(gt=0)


class NanoContractAction(BaseModel):
    type: Literal["deposit", "withdrawal"]
    amount: str  # smallest unit, serialized as string for the wallet
    token: str
    address: str | None = None


class NanoContractEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    data: Any = None


class HistoryEntry(BaseModel):
    """One transaction from a contract's polled history feed."""
    model_config = ConfigDict(extra="allow", frozen=True)

    hash: str
    timestamp: int = 0  # seconds
    nc_method: str | None = None
    nc_address: str | None = None
    first_block: str | None = None
    is_voided: bool = False
    nc_args_decoded: Any = None
    nc_events: list[NanoContractEvent] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "hash" not in data and "tx_id" in data:
            data["hash"] = data["tx_id"]
        if not data.get("nc_address") and data.get("nc_caller"):
            data["nc_address"] = data["nc_caller"]
        if data.get("nc_events") is None:
            data["nc_events"] = []
        if data.get("is_voided") is None:
            data["is_voided"] = bool(data.get("voided", False))
        return data


class HistoryPage(BaseModel):
    entries: list[HistoryEntry]
    has_more: bool = False

    @property
    def last_hash(self) -> str | None:
        return self.entries[-1].hash if self.entries else None


class HistorySnapshot(BaseModel):
    """Everything fetched for one contract during a poll cycle."""
    model_config = ConfigDict(frozen=True)

    contract_id: str
    entries: tuple[HistoryEntry, ...]
    network: str | None = None
    fetched_at: datetime = Field(default_factory=utc_now)


class Bet(BaseModel):
    """One wager, from submission to settlement. Terminal copies are never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str  # settlement transaction hash
    player: str
    amount: int = Field(ge=0)
    threshold: int = Field(ge=0)
    result: BetResult = BetResult.PENDING
    payout: int = 0
    potential_payout: int | None = None
    lucky_number: int | None = None
    is_your_bet: bool = False
    error: str | None = None
    token: str = "HTR"
    contract_id: str | None = None
    network: str | None = None  # ledger the bet was submitted to
    timestamp: datetime = Field(default_factory=utc_now)
    settled_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.result is BetResult.PENDING


class TransportSession(BaseModel):
    """Public view of the active wallet connection."""
    mode: TransportMode | None = None
    is_connected: bool = False
    address: str | None = None
    network: str | None = None
    connected_network: str | None = None


class ContractOperation(BaseModel):
    """A liquidity or withdrawal transaction seen in contract history."""
    model_config = ConfigDict(frozen=True)

    id: str
    method: str
    caller: str | None = None
    status: Literal["pending", "executed", "failed"]
    contract_id: str | None = None
    timestamp: datetime


class PlayerStats(BaseModel):
    """Profit and loss over one player's won and lost bets."""
    total_bets: int = 0
    total_wagered: int = 0
    total_payout: int = 0
    win_count: int = 0
    lose_count: int = 0

    @property
    def profit_loss(self) -> int:
        return self.total_payout - self.total_wagered

    @property
    def win_rate(self) -> float:
        """Percentage of counted bets that won, 0 without bets."""
        if not self.total_bets:
            return 0.0
        return self.win_count / self.total_bets * 100
