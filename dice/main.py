"""FastAPI application entrypoint.

Hathor Dice client: odds previews, wallet connection, bet submission
and settlement tracking against a Hathor full node.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .api import ConnectionManager, dice_error_handler, router, websocket_endpoint
from .config import Settings, get_settings
from .context import build_context
from .core.exceptions import DiceError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        context = build_context(settings)
        connections = ConnectionManager()
        context.tracker.register_callback(connections.broadcast_settlement)

        app.state.context = context
        app.state.connections = connections

        logger.info(
            "Hathor Dice starting on %s (mock wallet: %s)",
            settings.default_network, settings.use_mock_wallet,
        )
        await context.start()

        yield

        logger.info("Shutting down settlement tracker...")
        context.tracker.unregister_callback(connections.broadcast_settlement)
        await context.close()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="Hathor Dice",
        description="""
        Client for provably fair dice contracts on Hathor.

        Features:
        - Odds previews as threshold, win chance or multiplier
        - Mock, remote-session and snap wallet connections
        - Bet submission with settlement tracking
        - Liquidity provision and withdrawals
        """,
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # Must be False when using "*"
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DiceError, dice_error_handler)
    app.include_router(router)

    @app.websocket("/ws")
    async def websocket_route(websocket: WebSocket):
        """WebSocket endpoint for settlement updates."""
        await websocket_endpoint(websocket, app.state.context, app.state.connections)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Hathor Dice",
            "docs": "/docs",
            "api": "/api",
            "websocket": "/ws",
        }

    return app


configure_logging(get_settings().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dice.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
