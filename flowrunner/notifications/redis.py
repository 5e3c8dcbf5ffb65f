"""Redis pub/sub notification sink."""

from __future__ import annotations

from typing import Any, Optional

import redis.asyncio as redis
from pydantic import BaseModel

from .base import NotificationSink


class RedisNotificationSink(NotificationSink):
    """Publish events on Redis channels named ``<prefix>:<topic>``."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        channel_prefix: str = "flowrunner",
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.channel_prefix = channel_prefix
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def channel(self, topic: str) -> str:
        return f"{self.channel_prefix}:{topic}"

    async def publish(self, topic: str, event: BaseModel) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.publish(self.channel(topic), event.model_dump_json())
