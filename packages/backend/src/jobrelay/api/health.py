"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and dependencies (Postgres, Redis) are reachable. Reports how many
WebSockets are open and how many users are registered.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from jobrelay import __version__
from jobrelay.db.engine import engine
from jobrelay.dependencies import get_channel, get_presence
from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry

router = APIRouter()


@router.get("/health")
async def health_check(
    presence: PresenceRegistry = Depends(get_presence),
    channel: ConnectionManager = Depends(get_channel),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Postgres
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as e:
        checks["postgres"] = f"error: {e}"

    # Check Redis
    try:
        from jobrelay.realtime.redis_pool import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {
        "status": status,
        **checks,
        "connections": channel.active_count,
        "onlineUsers": len(await presence.online_users()),
    }
