import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from routes.chat_ws import router as chat_ws_router
from services.realtime.broadcaster import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry
from services.realtime.ws_session import ChatSessionHandler
from utils.config import RelayConfig
from utils.logging_config import configure_logging

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


async def close_live_sessions(registry: ConnectionRegistry) -> int:
    """Remove every session from the registry and close its websocket."""
    sessions = await registry.drain()
    for session in sessions:
        try:
            await session.websocket.close(code=status.WS_1001_GOING_AWAY, reason="Server shutting down")
        except Exception as exc:
            LOGGER.warning("Error closing session %s during shutdown: %s", session.session_id, exc)
    return len(sessions)


def create_app(config: Optional[RelayConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    config = config or RelayConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager that creates the connection registry and broadcast
        engine, attaches them to `app.state`, and closes every live session
        on shutdown.
        """
        registry = ConnectionRegistry()
        broadcaster = BroadcastEngine(registry, send_timeout=config.send_timeout)
        app.state.registry = registry
        app.state.chat_handler = ChatSessionHandler(registry, broadcaster)
        LOGGER.info("Chat relay ready")

        try:
            yield
        finally:
            LOGGER.info("Shutting down gracefully...")
            closed = await close_live_sessions(registry)
            app.state.chat_handler = None
            LOGGER.info("Closed %d websocket connections", closed)

    app = FastAPI(lifespan=lifespan)
    app.state.config = config
    public_dir = config.public_dir

    # Serve static assets from the public directory, if it exists.
    if public_dir.exists():
        app.mount("/public", StaticFiles(directory=public_dir), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the chat client index page from the public directory.
        """
        index_path = public_dir / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Report live connection and online user counts.
        """
        registry: Optional[ConnectionRegistry] = getattr(request.app.state, "registry", None)
        if registry is None:
            return {"ok": False, "connections": 0, "online": 0}
        return {
            "ok": True,
            "connections": await registry.session_count(),
            "online": await registry.online_count(),
        }

    app.include_router(chat_ws_router)

    return app


app = create_app()


def main() -> None:
    config = app.state.config
    configure_logging(config.log_level)
    LOGGER.info("Server running on http://%s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
