"""In-memory notification sinks."""

from __future__ import annotations

from collections import defaultdict
from typing import DefaultDict, List, Tuple

from pydantic import BaseModel

from .base import NotificationSink


class NullNotificationSink(NotificationSink):
    """Drops every event."""

    async def publish(self, topic: str, event: BaseModel) -> None:
        pass


class InMemoryNotificationSink(NotificationSink):
    """Records published events for unit tests."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, BaseModel]] = []
        self.topics: DefaultDict[str, List[BaseModel]] = defaultdict(list)

    async def publish(self, topic: str, event: BaseModel) -> None:
        self.events.append((topic, event))
        self.topics[topic].append(event)
