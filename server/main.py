"""FastAPI WebSocket server for the UNO card game."""

import json
import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
import redis.asyncio as redis

from config import config
from handlers import ConnectionContext, dispatch, handle_player_leave
from logging_config import player_id_var, setup_logging
from middleware.request_id import RequestIDMiddleware
from room import RoomManager
from routers.health import router as health_router, set_health_dependencies
from routers.rooms import router as rooms_router, set_room_manager
from services.game_logger import GameLogger
from services.ratelimit import ConnectionMessageLimiter, RateLimiter

# Initialize Sentry if configured
if config.SENTRY_DSN:
    import sentry_sdk

    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.ENVIRONMENT,
        traces_sample_rate=0.1 if config.ENVIRONMENT == "production" else 1.0,
    )

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)


# =============================================================================
# Process-wide services
# =============================================================================

game_logger = GameLogger()
room_manager = RoomManager(game_logger=game_logger)

_redis_client = None
_rate_limiter = None

INVALID_REQUEST = {
    "type": "error",
    "kind": "InvalidRequest",
    "message": "Messages must be JSON objects",
}


async def _init_redis():
    """Initialize Redis client and connect rate limiter."""
    global _redis_client, _rate_limiter
    try:
        _redis_client = redis.from_url(config.REDIS_URL, decode_responses=False)
        await _redis_client.ping()
        _rate_limiter = RateLimiter(_redis_client)
        logger.info("Redis connected, websocket connect limiting enabled")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e} - connect rate limiting disabled")
        _redis_client = None
        _rate_limiter = None


async def _close_all_websockets():
    """Close all active WebSocket connections gracefully."""
    for room in list(room_manager.rooms.values()):
        for websocket in list(room.connections.values()):
            try:
                await websocket.close(code=1001, reason="Server shutting down")
            except Exception as e:
                logger.debug(f"Close failed during shutdown: {e}")
    logger.info("All WebSocket connections closed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for async service initialization."""
    if config.REDIS_URL:
        await _init_redis()

    set_health_dependencies(
        redis_client=_redis_client,
        room_manager=room_manager,
        game_logger=game_logger,
    )
    set_room_manager(room_manager)

    logger.info(f"UNO server started (environment={config.ENVIRONMENT})")

    yield

    logger.info("Shutdown initiated...")
    await _close_all_websockets()
    room_manager.clear()
    if _redis_client:
        await _redis_client.close()
        logger.info("Redis connection closed")
    logger.info("Shutdown complete")


app = FastAPI(
    title="UNO Card Game",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)
app.include_router(health_router)
app.include_router(rooms_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    if _rate_limiter and not await _rate_limiter.allow_connection(websocket):
        await websocket.send_json({
            "type": "error",
            "kind": "RateLimited",
            "message": "Too many connections, try again shortly",
        })
        await websocket.close(code=1008, reason="Rate limited")
        return

    connection_id = str(uuid.uuid4())
    player_id_var.set(connection_id)
    logger.debug("WebSocket connected")

    ctx = ConnectionContext(
        websocket=websocket,
        connection_id=connection_id,
        player_id=connection_id,
    )
    limiter = ConnectionMessageLimiter(
        max_messages=config.WS_MESSAGES_PER_WINDOW,
        window_seconds=config.WS_MESSAGE_WINDOW_SECONDS,
    )

    # Shared dependencies passed to every handler
    handler_deps = dict(room_manager=room_manager)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text") or message.get("bytes") or ""
            if config.RATE_LIMIT_ENABLED and not limiter.check():
                await websocket.send_json({
                    "type": "error",
                    "kind": "RateLimited",
                    "message": "Slow down!",
                })
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                data = None
            if not isinstance(data, dict):
                logger.debug("Ignoring malformed message")
                await websocket.send_json(INVALID_REQUEST)
                continue
            await dispatch(data, ctx, **handler_deps)
    except WebSocketDisconnect:
        logger.debug("WebSocket disconnected")
    finally:
        await handle_player_leave(room_manager, ctx.player_id)


# Serve the web client if it is deployed next to the server
client_path = os.path.join(os.path.dirname(__file__), "..", "client")
if os.path.exists(client_path):
    @app.get("/")
    async def serve_index():
        return FileResponse(os.path.join(client_path, "index.html"))

    app.mount("/", StaticFiles(directory=client_path), name="static")


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting UNO server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
