"""Error taxonomy shared by the wallet, node and settlement layers.

Every error carries a human-readable ``message`` so callers can always
surface it without inspecting the underlying cause.
"""

from typing import Any

DEFAULT_RPC_ERROR = "RPC request failed"

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001


class DiceError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    default_message = "Unexpected error"


class TransportError(DiceError):
    """A wallet RPC call failed."""

    default_message = DEFAULT_RPC_ERROR

    def __init__(self, message: str | None = None, code: int | None = None):
        super().__init__(message)
        self.code = code


class TransportNotConnected(TransportError):
    """No active session, snap or client to route the request through."""

    default_message = "Wallet not connected"


class TransportRejected(TransportError):
    """The user declined the request in their wallet."""

    default_message = "User rejected the request"


class MethodNotImplemented(TransportError):
    """The mock transport has no canned response for the method."""


class NetworkFailure(DiceError):
    """The ledger node could not be reached or answered with an error."""

    default_message = "Network request failed"

    def __init__(self, message: str | None = None, status: int | None = None):
        super().__init__(message)
        self.status = status


class DecodeError(DiceError):
    """A settlement event payload could not be parsed."""

    default_message = "Could not decode settlement event"


class ContractUnavailable(DiceError):
    """No dice contract is mapped for the requested token."""

    default_message = "Contract not found for token"


class ValidationError(DiceError):
    """A bet or liquidity request failed local checks."""

    default_message = "Invalid request"


def _extract_message(error: Any) -> str | None:
    if isinstance(error, dict):
        message = error.get("message")
    else:
        message = getattr(error, "message", None)
        if message is None and isinstance(error, BaseException) and error.args:
            message = error.args[0]
    if message is None:
        return None
    message = str(message).strip()
    return message or None


def _extract_code(error: Any) -> int | None:
    code = error.get("code") if isinstance(error, dict) else getattr(error, "code", None)
    return code if isinstance(code, int) else None


def normalize_error(error: Any) -> TransportError:
    """
    Convert any failure raised by a transport into a TransportError.

    Existing TransportError instances pass through untouched. Dict-like
    JSON-RPC error objects are accepted as well as exceptions. When no
    message can be found the generic "RPC request failed" is used.
    """
    if isinstance(error, TransportError):
        return error

    message = _extract_message(error)
    code = _extract_code(error)

    if code == USER_REJECTED_CODE or (message and "reject" in message.lower()):
        return TransportRejected(message, code=code)
    return TransportError(message, code=code)
