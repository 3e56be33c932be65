"""Durable key/value store shared by every handler instance.

All state that must outlive a single interaction lives here: the admin's role
bindings, the configured spreadsheet id and live passcodes. Nothing is kept in
process memory, so any number of workers can serve the same conversation.

Keys:
    sheet               spreadsheet id
    vetted / private    Discord role id for each tier
    email:{address}     live passcode, expires after its TTL
"""

import logging
from typing import Protocol

import redis.asyncio as redis

from membership_bot.errors import ConfigurationError
from membership_bot.models.membership import RoleBindings, Tier

logger = logging.getLogger(__name__)

SHEET_KEY = "sheet"


class KeyValueStore(Protocol):
    """Minimal async key/value interface with optional per-key expiry."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisStore:
    """``KeyValueStore`` backed by Redis."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        return value if value else None

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


class ConfigurationStore:
    """Admin-configured state: the roster sheet and the role for each tier."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def save_role_bindings(self, bindings: RoleBindings) -> None:
        await self._store.put(Tier.VETTED.value, bindings.vetted_role_id)
        await self._store.put(Tier.PRIVATE.value, bindings.private_role_id)
        logger.info(
            "Stored role bindings: vetted=%s private=%s",
            bindings.vetted_role_id,
            bindings.private_role_id,
        )

    async def role_bindings(self) -> RoleBindings:
        """Return both role ids. Raises ConfigurationError naming the first one missing."""
        vetted = await self._store.get(Tier.VETTED.value)
        private = await self._store.get(Tier.PRIVATE.value)
        if not vetted:
            raise ConfigurationError("vetted role")
        if not private:
            raise ConfigurationError("private role")
        return RoleBindings(vetted_role_id=vetted, private_role_id=private)

    async def save_sheet_id(self, sheet_id: str) -> None:
        await self._store.put(SHEET_KEY, sheet_id)
        logger.info("Stored roster sheet id %s", sheet_id)

    async def sheet_id(self) -> str:
        """Return the configured spreadsheet id. Raises ConfigurationError if unset."""
        sheet_id = await self._store.get(SHEET_KEY)
        if not sheet_id:
            raise ConfigurationError("sheet")
        return sheet_id
