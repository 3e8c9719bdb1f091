"""
Health check endpoints for production deployment.

Provides:
- /health - Basic liveness check (is the app running?)
- /ready - Readiness check (can the app handle requests?)
- /metrics - Room, player and game-event counts for monitoring
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Service references (set during app initialization)
_redis_client = None
_room_manager = None
_game_logger = None


def set_health_dependencies(
    redis_client=None,
    room_manager=None,
    game_logger=None,
):
    """Set dependencies for health checks."""
    global _redis_client, _room_manager, _game_logger
    _redis_client = redis_client
    _room_manager = room_manager
    _game_logger = game_logger


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - can the app handle requests?

    Redis is optional; when configured and unreachable the server still
    plays games but connect rate limiting is degraded, reported as 503.
    """
    checks = {}
    overall_healthy = True

    if _redis_client is not None:
        try:
            await _redis_client.ping()
            checks["redis"] = {"status": "ok"}
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            checks["redis"] = {"status": "error", "message": str(e)}
            overall_healthy = False
    else:
        checks["redis"] = {"status": "not_configured"}

    checks["rooms"] = {"status": "ok" if _room_manager is not None else "not_configured"}

    status_code = 200 if overall_healthy else 503
    return Response(
        content=json.dumps({
            "status": "ok" if overall_healthy else "degraded",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }),
        status_code=status_code,
        media_type="application/json",
    )


@router.get("/metrics")
async def metrics():
    """
    Expose application metrics for monitoring.

    Never includes room codes, player names or cards.
    """
    metrics_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if _room_manager is not None:
        rooms = _room_manager.rooms.values()
        metrics_data.update({
            "active_rooms": len(_room_manager.rooms),
            "total_players": sum(r.player_count() for r in rooms),
            "connected_websockets": sum(len(r.connections) for r in rooms),
            "games_in_progress": sum(1 for r in rooms if r.game.in_progress),
        })

    if _game_logger is not None:
        metrics_data["events"] = _game_logger.snapshot()

    return metrics_data
