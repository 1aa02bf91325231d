"""Tests for the full-node client, its parsers and the contract directory."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from dice.core.exceptions import ContractUnavailable, DecodeError, NetworkFailure
from dice.core.math import calculate_payout
from dice.core.models import Bet
from dice.engine.settlement import decode_settlement
from dice.node.client import HathorNodeClient
from dice.node.contracts import ContractDirectory, token_symbol, token_uid
from dice.node.mock import MockNodeClient
from dice.node.parsing import (
    history_params,
    parse_contract_state,
    parse_history,
    parse_view_value,
    state_params,
    view_call,
    view_params,
)


# ---------------------------------------------------------------------------
# Query builders
# ---------------------------------------------------------------------------

def test_state_params():
    assert state_params("nc-1") == [
        ("id", "nc-1"),
        ("fields[]", "token_uid"),
        ("fields[]", "max_bet_amount"),
        ("fields[]", "house_edge_basis_points"),
        ("fields[]", "random_bit_length"),
        ("fields[]", "available_tokens"),
        ("fields[]", "total_liquidity_provided"),
    ]


def test_history_params():
    assert history_params("nc-1", 50) == [("id", "nc-1"), ("count", "50")]
    assert history_params("nc-1", 10, "00ff") == [
        ("id", "nc-1"), ("count", "10"), ("after", "00ff"),
    ]


@pytest.mark.parametrize("method, args, expected", [
    ("get_address_balance", ["WAddr"], 'get_address_balance("WAddr")'),
    ("quote", ["a", 1], 'quote("a", 1)'),
    ("total", None, "total()"),
])
def test_view_call(method, args, expected):
    assert view_call(method, args) == expected


def test_view_params():
    assert view_params("nc-1", "f", ["x"]) == [("id", "nc-1"), ("calls[]", 'f("x")')]


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def test_parse_contract_state_maps_fields():
    state = parse_contract_state({
        "nc_id": "nc-1",
        "fields": {
            "token_uid": {"value": "00"},
            "max_bet_amount": {"value": 10000},
            "house_edge_basis_points": {"value": 190},
            "random_bit_length": {"value": 20},
            "available_tokens": {"value": "500000"},
            "total_liquidity_provided": {"value": 0},
        },
    })
    assert state.token_id == "00"
    assert state.max_bet_amount == 10000
    assert state.house_edge_basis_points == 190
    assert state.random_bit_length == 20
    assert state.available_liquidity == 500000
    assert state.total_liquidity_provided == 0


def test_parse_contract_state_defaults_missing_fields():
    state = parse_contract_state({"fields": {"available_tokens": {"errmsg": "field not found"}}})
    assert state.token_id == "00"
    assert state.house_edge_basis_points == 200
    assert state.random_bit_length == 16
    assert state.available_liquidity == 0


def test_parse_contract_state_keeps_zero_edge():
    state = parse_contract_state({"fields": {"house_edge_basis_points": {"value": 0}}})
    assert state.house_edge_basis_points == 0


def test_parse_history_accepts_aliases():
    page = parse_history({
        "success": True,
        "history": [
            {"tx_id": "aa", "nc_caller": "WCaller", "timestamp": 10, "nc_events": None},
            {"hash": "bb", "nc_address": "WAddr", "voided": True},
        ],
        "has_more": True,
    })
    assert [entry.hash for entry in page.entries] == ["aa", "bb"]
    assert page.entries[0].nc_address == "WCaller"
    assert page.entries[0].nc_events == []
    assert page.entries[1].is_voided
    assert page.has_more
    assert page.last_hash == "bb"


def test_parse_empty_history():
    page = parse_history(None)
    assert page.entries == []
    assert page.last_hash is None
    assert not page.has_more


@pytest.mark.parametrize("data, expected", [
    ({"calls": {'get_address_balance("W")': {"value": 1234}}}, 1234),
    ({"calls": {'get_address_balance("W")': {"value": "77"}}}, 77),
    ({"calls": {'get_address_balance("W")': {"errmsg": "boom"}}}, 0),
    ({}, 0),
    (None, 0),
])
def test_parse_view_value(data, expected):
    assert parse_view_value(data) == expected


@pytest.mark.parametrize("parse, data", [
    (parse_contract_state, {"fields": {"max_bet_amount": {"value": "lots"}}}),
    (parse_contract_state, {"fields": {"random_bit_length": {"value": 0}}}),
    (parse_contract_state, ["not", "an", "object"]),
    (parse_history, {"history": [{"timestamp": 1}]}),
    (parse_history, "oops"),
    (parse_view_value, {"calls": {"x": {"value": "many"}}}),
])
def test_malformed_payloads_raise_decode_error(parse, data):
    with pytest.raises(DecodeError):
        parse(data)


# ---------------------------------------------------------------------------
# HathorNodeClient
# ---------------------------------------------------------------------------

class _FakeResponse:
    def __init__(self, status=200, payload=None, error=None):
        self.status = status
        self._payload = payload
        self._error = error

    async def json(self):
        if self._error is not None:
            raise self._error
        return self._payload


class _FakeGet:
    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, *args):
        return False


def _client_with_session(get_side_effect=None, response=None) -> tuple[HathorNodeClient, MagicMock]:
    client = HathorNodeClient("india-testnet", base_url="http://node.test/v1a/")
    session = MagicMock()
    if get_side_effect is not None:
        session.get.side_effect = get_side_effect
    else:
        session.get.return_value = _FakeGet(response)
    client._get_session = AsyncMock(return_value=session)
    return client, session


def test_client_strips_trailing_slash():
    client = HathorNodeClient("mainnet", base_url="http://node.test/v1a/")
    assert client.base_url == "http://node.test/v1a"


def test_client_get_contract_state():
    payload = {"fields": {"token_uid": {"value": "01"}, "available_tokens": {"value": 99}}}
    client, session = _client_with_session(response=_FakeResponse(200, payload))

    state = asyncio.run(client.get_contract_state("nc-1"))

    assert state.token_id == "01"
    assert state.available_liquidity == 99
    url = session.get.call_args.args[0]
    assert url == "http://node.test/v1a/nano_contract/state"
    assert session.get.call_args.kwargs["params"] == state_params("nc-1")


def test_client_non_200_raises():
    client, _ = _client_with_session(response=_FakeResponse(503))
    with pytest.raises(NetworkFailure) as exc_info:
        asyncio.run(client.get_contract_history("nc-1"))
    assert exc_info.value.status == 503
    assert exc_info.value.message == "Failed to fetch contract history: 503"


@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("refused"),
    asyncio.TimeoutError(),
])
def test_client_transport_errors_raise_network_failure(error):
    client, _ = _client_with_session(get_side_effect=error)
    with pytest.raises(NetworkFailure, match="Failed to fetch transaction") as exc_info:
        asyncio.run(client.get_transaction("aa"))
    assert exc_info.value.__cause__ is error


def test_client_invalid_json_raises_network_failure():
    error = json.JSONDecodeError("Expecting value", "<html>", 0)
    client, _ = _client_with_session(response=_FakeResponse(200, error=error))

    with pytest.raises(NetworkFailure, match="Failed to fetch contract state: invalid JSON response"):
        asyncio.run(client.get_contract_state("nc-1"))


def test_client_malformed_state_raises_decode_error():
    payload = {"fields": {"house_edge_basis_points": {"value": 20000}}}
    client, _ = _client_with_session(response=_FakeResponse(200, payload))

    with pytest.raises(DecodeError, match="Invalid contract state"):
        asyncio.run(client.get_contract_state("nc-1"))


def test_client_view_helpers():
    client = HathorNodeClient("india-testnet", base_url="http://node.test")
    client._request = AsyncMock(return_value={"calls": {"x": {"value": 321}}})

    assert asyncio.run(client.get_claimable_balance("nc-1", "WAddr")) == 321
    client._request.assert_awaited_once_with(
        "/nano_contract/state",
        view_params("nc-1", "get_address_balance", ["WAddr"]),
        what="call view function",
    )


def test_client_blueprint_path():
    client = HathorNodeClient("india-testnet", base_url="http://node.test")
    client._request = AsyncMock(return_value={"id": "bp"})

    asyncio.run(client.get_blueprint_info("bp"))

    client._request.assert_awaited_once_with("/nc_blueprint/bp", what="fetch blueprint info")


# ---------------------------------------------------------------------------
# MockNodeClient
# ---------------------------------------------------------------------------

def test_mock_node_unknown_contract(mock_node):
    with pytest.raises(NetworkFailure) as exc_info:
        asyncio.run(mock_node.get_contract_state("nope"))
    assert exc_info.value.status == 404


def test_mock_node_paginates(mock_node):
    async def pages():
        first = await mock_node.get_contract_history("mock-contract-htr", count=1)
        second = await mock_node.get_contract_history(
            "mock-contract-htr", count=1, after=first.last_hash
        )
        return first, second

    first, second = asyncio.run(pages())
    assert first.has_more
    assert [e.hash for e in first.entries] == ["0000000000000001"]
    assert not second.has_more
    assert [e.hash for e in second.entries] == ["0000000000000002"]


def test_mock_node_view_functions(mock_node):
    mock_node.claimable["WRich"] = 42

    async def read():
        return (
            await mock_node.get_claimable_balance("mock-contract-htr", "WRich"),
            await mock_node.get_claimable_balance("mock-contract-htr", "WOther"),
            await mock_node.get_maximum_liquidity_removal("mock-contract-htr", "WRich"),
        )

    assert asyncio.run(read()) == (42, 5000, 10000)


def test_mock_node_records_bet(mock_node):
    bet = Bet(id="00000000feedbeef", player="WPlayer", amount=1000, threshold=65535,
              contract_id="mock-contract-htr")

    entry = mock_node.record_bet(bet)
    lucky, payout = decode_settlement(entry)

    assert mock_node.histories["mock-contract-htr"][0] is entry
    assert entry.first_block is not None
    # every draw is <= the maximum threshold
    assert 0 <= lucky <= 65535
    assert payout == calculate_payout(1000, 65535, 16, 190)
    assert asyncio.run(mock_node.get_transaction(bet.id))["hash"] == bet.id


def test_mock_node_draw_is_stable():
    bet = Bet(id="tx-1", player="W", amount=10, threshold=1, contract_id="mock-contract-htr")
    first = decode_settlement(MockNodeClient().record_bet(bet))
    second = decode_settlement(MockNodeClient().record_bet(bet))
    assert first == second


# ---------------------------------------------------------------------------
# ContractDirectory
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("uid, symbol", [("00", "HTR"), ("01", "USDC")])
def test_token_mapping(uid, symbol):
    assert token_symbol(uid) == symbol
    assert token_uid(symbol) == uid


def test_unknown_tokens_map_to_themselves():
    assert token_symbol("abcd") == "abcd"
    assert token_uid("XYZ") == "XYZ"


def test_directory_refresh(directory):
    states = asyncio.run(directory.refresh())

    assert set(states) == {"HTR", "USDC"}
    assert directory.state_for("HTR").house_edge_basis_points == 190
    assert directory.contract_id_for("USDC") == "mock-contract-usdc"
    assert directory.token_for_contract("mock-contract-htr") == "HTR"
    assert directory.token_for_contract("other") is None


def test_directory_unknown_token(directory):
    asyncio.run(directory.refresh())
    with pytest.raises(ContractUnavailable, match="Contract not found for token BTC"):
        directory.state_for("BTC")
    with pytest.raises(ContractUnavailable):
        directory.contract_id_for("BTC")


def test_directory_refresh_failure_keeps_previous_states(directory):
    asyncio.run(directory.refresh())
    directory.contract_ids.append("missing-contract")

    with pytest.raises(NetworkFailure):
        asyncio.run(directory.refresh())

    assert directory.tokens == ["HTR", "USDC"]


def test_directory_switch_network(directory, mock_node):
    asyncio.run(directory.switch_network("mainnet"))

    assert directory.network == "mainnet"
    assert directory.node is not mock_node
    assert directory.tokens == ["HTR", "USDC"]


def test_directory_switch_network_needs_factory(mock_node):
    directory = ContractDirectory(mock_node, ["mock-contract-htr"])
    with pytest.raises(RuntimeError):
        asyncio.run(directory.switch_network("mainnet"))


def test_directory_keeps_previous_node_until_released(directory, mock_node):
    async def switch_and_back():
        await directory.switch_network("mainnet")
        assert directory.node_for("india-testnet") is mock_node
        await directory.switch_network("india-testnet")

    asyncio.run(switch_and_back())

    # switching back reuses the client that still holds that network's state
    assert directory.node is mock_node
    assert directory.network == "india-testnet"


def test_directory_release_closes_unused_nodes(directory, mock_node):
    mock_node.close = AsyncMock()

    async def switch_and_release():
        await directory.switch_network("mainnet")
        await directory.release({"mainnet"})

    asyncio.run(switch_and_release())

    mock_node.close.assert_awaited_once()
    assert directory.node_for("india-testnet") is not mock_node


def test_directory_node_for_current_network(directory, mock_node):
    assert directory.node_for(None) is mock_node
    assert directory.node_for("india-testnet") is mock_node


def test_directory_close_closes_every_node(directory, mock_node):
    mock_node.close = AsyncMock()

    async def switch_and_close():
        await directory.switch_network("mainnet")
        current = directory.node
        current.close = AsyncMock()
        await directory.close()
        return current

    current = asyncio.run(switch_and_close())

    mock_node.close.assert_awaited_once()
    current.close.assert_awaited_once()
