"""Presence registry — who is online, and on which connection.

Learn: A presence entry maps a user identity (email) to the connection id
of that user's live WebSocket. The rules:

- register() always overwrites. A user who opens a second tab moves
  their entry to the new connection; the old tab stops receiving
  targeted notifications.
- resolve() returning None just means "offline" — not an error.
- unregister() is keyed by *connection id*, not user. When a superseded
  connection closes, it no longer owns any entry, so the newer entry
  for the same user survives.

Two implementations share the same async interface:
- PresenceRegistry: a dict in this process (default)
- RedisPresenceRegistry: a Redis hash, for running several app instances

Learn: The in-memory registry needs no lock. It is only touched from
event-loop coroutines and none of its methods await in the middle of a
mutation.
"""

from typing import Optional

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()


class PresenceRegistry:
    """Process-local presence map: user identity → connection id."""

    def __init__(self):
        self._entries: dict[str, str] = {}

    async def register(self, user_identity: str, connection_id: str) -> None:
        previous = self._entries.get(user_identity)
        self._entries[user_identity] = connection_id
        logger.info(
            "presence.registered",
            user=user_identity,
            connection_id=connection_id,
            replaced=previous if previous != connection_id else None,
        )

    async def resolve(self, user_identity: str) -> Optional[str]:
        return self._entries.get(user_identity)

    async def unregister(self, connection_id: str) -> Optional[str]:
        """Drop the entry owned by connection_id. Returns the user, if any."""
        for user_identity, owner in self._entries.items():
            if owner == connection_id:
                del self._entries[user_identity]
                logger.info(
                    "presence.unregistered",
                    user=user_identity,
                    connection_id=connection_id,
                )
                return user_identity
        return None

    async def online_users(self) -> list[str]:
        return sorted(self._entries)


class RedisPresenceRegistry:
    """Presence map stored in a Redis hash shared by all app instances.

    Learn: The hash field is the user identity and the value is the
    connection id, mirroring the in-memory dict. Connection ids are
    uuid4 hex, so they never collide across instances.

    unregister() scans the hash with HSCAN and deletes the first field
    whose value matches. The delete is guarded with a Lua compare-and-delete
    so a register() from another instance that lands between the scan and
    the delete is never removed.
    """

    _COMPARE_AND_DELETE = """
    if redis.call('HGET', KEYS[1], ARGV[1]) == ARGV[2] then
        return redis.call('HDEL', KEYS[1], ARGV[1])
    end
    return 0
    """

    def __init__(self, redis: aioredis.Redis, key: str = "jobrelay:presence"):
        self.redis = redis
        self.key = key

    async def register(self, user_identity: str, connection_id: str) -> None:
        await self.redis.hset(self.key, user_identity, connection_id)
        logger.info(
            "presence.registered",
            user=user_identity,
            connection_id=connection_id,
            backend="redis",
        )

    async def resolve(self, user_identity: str) -> Optional[str]:
        return await self.redis.hget(self.key, user_identity)

    async def unregister(self, connection_id: str) -> Optional[str]:
        async for user_identity, owner in self.redis.hscan_iter(self.key):
            if owner != connection_id:
                continue
            removed = await self.redis.eval(
                self._COMPARE_AND_DELETE, 1, self.key, user_identity, connection_id
            )
            if removed:
                logger.info(
                    "presence.unregistered",
                    user=user_identity,
                    connection_id=connection_id,
                    backend="redis",
                )
                return user_identity
            return None
        return None

    async def online_users(self) -> list[str]:
        return sorted(await self.redis.hkeys(self.key))
