"""Query builders and payload parsers for the full-node REST API.

Kept free of I/O so the node client and the mock node share them.
"""

import json
from typing import Any

from ..core.exceptions import DecodeError
from ..core.models import ContractState, HistoryEntry, HistoryPage

# contract field name -> ContractState attribute
STATE_FIELDS: dict[str, str] = {
    "token_uid": "token_id",
    "max_bet_amount": "max_bet_amount",
    "house_edge_basis_points": "house_edge_basis_points",
    "random_bit_length": "random_bit_length",
    "available_tokens": "available_liquidity",
    "total_liquidity_provided": "total_liquidity_provided",
}

STATE_DEFAULTS: dict[str, Any] = {
    "token_uid": "00",
    "max_bet_amount": 0,
    "house_edge_basis_points": 200,
    "random_bit_length": 16,
    "available_tokens": 0,
    "total_liquidity_provided": 0,
}

Params = list[tuple[str, str]]


def state_params(contract_id: str) -> Params:
    params = [("id", contract_id)]
    params.extend(("fields[]", name) for name in STATE_FIELDS)
    return params


def history_params(contract_id: str, count: int, after: str | None = None) -> Params:
    params = [("id", contract_id), ("count", str(count))]
    if after:
        params.append(("after", after))
    return params


def view_call(method: str, args: list[Any] | None = None) -> str:
    """Render a view call the way the node expects it: ``method("arg", 1)``."""
    rendered = ", ".join(json.dumps(arg) for arg in (args or []))
    return f"{method}({rendered})"


def view_params(contract_id: str, method: str, args: list[Any] | None = None) -> Params:
    return [("id", contract_id), ("calls[]", view_call(method, args))]


def _field_value(fields: dict[str, Any], name: str) -> Any:
    raw = fields.get(name)
    if isinstance(raw, dict):
        raw = raw.get("value")
    return raw if raw not in (None, "") else STATE_DEFAULTS[name]


def parse_contract_state(data: dict[str, Any] | None) -> ContractState:
    """ContractState from a state response; malformed fields raise DecodeError."""
    if data is not None and not isinstance(data, dict):
        raise DecodeError("Contract state response is not an object")
    fields = (data or {}).get("fields") or {}
    values: dict[str, Any] = {}
    try:
        for name, attr in STATE_FIELDS.items():
            value = _field_value(fields, name)
            values[attr] = str(value) if name == "token_uid" else int(value)
        return ContractState(**values)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid contract state: {exc}") from exc


def parse_history(data: dict[str, Any] | None) -> HistoryPage:
    if data is not None and not isinstance(data, dict):
        raise DecodeError("Contract history response is not an object")
    data = data or {}
    try:
        entries = [HistoryEntry.model_validate(raw) for raw in data.get("history") or []]
    except ValueError as exc:
        raise DecodeError(f"Invalid contract history: {exc}") from exc
    return HistoryPage(entries=entries, has_more=bool(data.get("has_more", False)))


def parse_view_value(data: dict[str, Any] | None, default: int = 0) -> int:
    """Integer value of the first call in a view-function response."""
    calls = (data or {}).get("calls") or {}
    for result in calls.values():
        if isinstance(result, dict) and result.get("value") is not None:
            try:
                return int(result["value"])
            except (TypeError, ValueError) as exc:
                raise DecodeError(f"Invalid view value: {result['value']!r}") from exc
        break
    return default
