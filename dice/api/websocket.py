"""WebSocket handler for real-time updates.

Pushes bet settlements to connected clients. A client may narrow the
pushes to some tokens with the ``subscribe`` command.
"""

import asyncio
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from ..context import DiceContext
from ..core.models import Bet
from ..engine import format_bet_json
from ..utils.time import utc_now

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections and the tokens each one follows."""

    def __init__(self):
        # websocket -> followed tokens, None follows every token
        self.subscriptions: dict[WebSocket, set[str] | None] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """Accept and register new connection."""
        await websocket.accept()
        async with self._lock:
            self.subscriptions[websocket] = None

    async def disconnect(self, websocket: WebSocket):
        """Remove connection."""
        async with self._lock:
            self.subscriptions.pop(websocket, None)

    def subscribe(self, websocket: WebSocket, tokens: list[str] | None = None) -> list[str] | None:
        """Follow only tokens; an empty or missing list follows everything."""
        if isinstance(tokens, str):
            tokens = [tokens]
        followed = set(tokens) if tokens else None
        self.subscriptions[websocket] = followed
        return sorted(followed) if followed else None

    async def broadcast(self, message: dict, token: str | None = None):
        """Send message to every client following token (all clients when token is None)."""
        if not self.subscriptions:
            return

        data = json.dumps(message)
        dropped = []

        for connection, tokens in list(self.subscriptions.items()):
            if token is not None and tokens is not None and token not in tokens:
                continue
            try:
                await connection.send_text(data)
            except Exception as e:
                logger.debug("Dropping websocket after send failure: %s", e)
                dropped.append(connection)

        for conn in dropped:
            await self.disconnect(conn)

    async def broadcast_settlement(self, bet: Bet):
        """Tracker callback: one message per terminal transition."""
        await self.broadcast({
            "type": "bet_settled",
            "timestamp": utc_now().isoformat(),
            "bet": format_bet_json(bet),
        }, token=bet.token)

    @property
    def connection_count(self) -> int:
        """Number of active connections."""
        return len(self.subscriptions)


async def websocket_endpoint(websocket: WebSocket, ctx: DiceContext, manager: ConnectionManager):
    """
    WebSocket endpoint handler.

    Sends initial state then listens for commands.
    Commands:
    - ping: Returns pong
    - subscribe: Follow settlements for {"tokens": [...]} only (all when omitted)
    - get_bets: Returns recent bets, pending first
    - get_wallet: Returns the wallet connection state
    """
    await manager.connect(websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "timestamp": utc_now().isoformat(),
            "network": ctx.network,
            "tracker_running": ctx.tracker.is_running,
            "pending_bets": len(ctx.tracker.pending),
        })

        while True:
            try:
                data = await websocket.receive_text()
                message = json.loads(data)

                cmd = message.get("command", "") if isinstance(message, dict) else ""

                if cmd == "ping":
                    await websocket.send_json({
                        "type": "pong",
                        "timestamp": utc_now().isoformat(),
                    })

                elif cmd == "subscribe":
                    tokens = manager.subscribe(websocket, message.get("tokens"))
                    await websocket.send_json({
                        "type": "subscribed",
                        "tokens": tokens,
                    })

                elif cmd == "get_bets":
                    bets = ctx.tracker.recent_feed(ctx.session.address)
                    await websocket.send_json({
                        "type": "bets",
                        "bets": [format_bet_json(b) for b in bets[:50]],
                    })

                elif cmd == "get_wallet":
                    await websocket.send_json({
                        "type": "wallet",
                        **ctx.session.state.model_dump(mode="json"),
                    })

                else:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Unknown command: {cmd}",
                    })

            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "error",
                    "message": "Invalid JSON",
                })

    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
