from .client import HathorNodeClient
from .contracts import TOKEN_UID_MAP, ContractDirectory, token_symbol, token_uid
from .mock import MOCK_CONTRACT_STATES, MockNodeClient

__all__ = [
    "HathorNodeClient",
    "TOKEN_UID_MAP",
    "ContractDirectory",
    "token_symbol",
    "token_uid",
    "MOCK_CONTRACT_STATES",
    "MockNodeClient",
]
