from .errors import dice_error_handler, status_for
from .routes import router, get_context
from .websocket import websocket_endpoint, ConnectionManager

__all__ = [
    "dice_error_handler",
    "status_for",
    "router",
    "get_context",
    "websocket_endpoint",
    "ConnectionManager",
]
