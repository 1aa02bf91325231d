import pytest

from dice.config import Settings
from dice.core.models import ContractState, HistoryEntry
from dice.node.contracts import ContractDirectory
from dice.node.mock import MockNodeClient
from dice.utils.storage import LocalStorage
from dice.wallet.mock import MockTransport
from dice.wallet.session import WalletSession


@pytest.fixture
def state() -> ContractState:
    return ContractState(
        token_id="00",
        max_bet_amount=10000,
        house_edge_basis_points=200,
        random_bit_length=16,
        available_liquidity=1_000_000,
        total_liquidity_provided=1_000_000,
    )


@pytest.fixture
def storage() -> LocalStorage:
    return LocalStorage(None)


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport(delay_seconds=0)


@pytest.fixture
def session(storage, mock_transport) -> WalletSession:
    return WalletSession(storage, mock=mock_transport)


@pytest.fixture
def mock_node() -> MockNodeClient:
    return MockNodeClient()


@pytest.fixture
def directory(mock_node) -> ContractDirectory:
    return ContractDirectory(mock_node, ["mock-contract-htr", "mock-contract-usdc"], MockNodeClient)


@pytest.fixture
def mock_settings() -> Settings:
    return Settings(
        use_mock_wallet=True,
        mock_delay_seconds=0,
        storage_path="",
        poll_interval_seconds=60,
        contract_ids=[],
    )


def make_entry(
    tx_hash: str = "aa01",
    method: str = "place_bet",
    args=None,
    events=None,
    first_block: str | None = "b10c",
    voided: bool = False,
    address: str = "WPlayer",
    timestamp: int = 1_700_000_000,
) -> HistoryEntry:
    return HistoryEntry(
        hash=tx_hash,
        timestamp=timestamp,
        nc_method=method,
        nc_address=address,
        first_block=first_block,
        is_voided=voided,
        nc_args_decoded=[1000, 32768] if args is None else args,
        nc_events=[] if events is None else events,
    )


def hex_event(payload: str) -> dict:
    return {"type": "BetPlaced", "data": payload.encode().hex()}
