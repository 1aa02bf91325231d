"""Runtime configuration.

Values come from the environment (prefix ``DICE_``) or a local ``.env`` file.
Module-level constants mirror the settings for modules that only need
a single value.
"""

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Network = Literal["india-testnet", "mainnet"]

NETWORKS: tuple[str, ...] = ("india-testnet", "mainnet")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DICE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    use_mock_wallet: bool = Field(
        default=False,
        description="Serve wallet calls and node reads from canned data",
    )
    default_network: Network = Field(
        default="india-testnet",
        description="Network selected on startup",
    )
    node_url_testnet: str = Field(
        default="https://node1.india-testnet.hathor.network/v1a",
        description="Full node REST base URL for india-testnet",
    )
    node_url_mainnet: str = Field(
        default="https://node1.mainnet.hathor.network/v1a",
        description="Full node REST base URL for mainnet",
    )
    contract_ids: list[str] | str = Field(
        default_factory=list,
        description="Dice contract ids; JSON array or comma-separated string",
    )
    snap_id: str = Field(default="npm:@hathor/snap")
    snap_version: str = Field(default="*")
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Delay between history polls while bets are pending",
    )
    history_page_size: int = Field(default=50, ge=1, le=200)
    history_max_pages: int = Field(
        default=5,
        ge=1,
        description="Pages followed per contract in one poll cycle",
    )
    mock_delay_seconds: float = Field(default=0.5, ge=0)
    balance_cache_ttl_seconds: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    storage_path: str | None = Field(
        default=".dice_state.json",
        description="JSON file for local wallet state (blank disables persistence)",
    )
    log_level: str = Field(default="INFO")

    @field_validator("contract_ids", mode="after")
    @classmethod
    def _parse_contract_ids(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            candidate = value.strip()
            if candidate.startswith("["):
                try:
                    parsed = json.loads(candidate)
                except json.JSONDecodeError as exc:
                    raise ValueError("DICE_CONTRACT_IDS is not valid JSON") from exc
                return [str(item).strip() for item in parsed if str(item).strip()]
            return [part.strip() for part in candidate.split(",") if part.strip()]
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise ValueError("DICE_CONTRACT_IDS must be a list or comma-separated string")

    @field_validator("storage_path", mode="after")
    @classmethod
    def _blank_storage_path(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    def node_url(self, network: str) -> str:
        if network == "mainnet":
            return self.node_url_mainnet
        return self.node_url_testnet


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

POLL_INTERVAL_SECONDS = settings.poll_interval_seconds
HISTORY_PAGE_SIZE = settings.history_page_size
HISTORY_MAX_PAGES = settings.history_max_pages
MOCK_DELAY_SECONDS = settings.mock_delay_seconds
BALANCE_CACHE_TTL_SECONDS = settings.balance_cache_ttl_seconds
REQUEST_TIMEOUT_SECONDS = settings.request_timeout_seconds
SNAP_ID = settings.snap_id
SNAP_VERSION = settings.snap_version
