from .balance import BalanceService
from .base import RequestFunction, WalletTransport
from .mock import MOCK_ADDRESS, MockTransport
from .remote_session import RemoteSession, RemoteSessionTransport, SignClient
from .rpc import WalletRPC
from .session import WalletSession, wallet_network
from .snap import SnapTransport, build_snap_request

__all__ = [
    "BalanceService",
    "RequestFunction",
    "WalletTransport",
    "MOCK_ADDRESS",
    "MockTransport",
    "RemoteSession",
    "RemoteSessionTransport",
    "SignClient",
    "WalletRPC",
    "WalletSession",
    "wallet_network",
    "SnapTransport",
    "build_snap_request",
]
