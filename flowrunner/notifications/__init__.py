"""Notification sink factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import FlowRunnerConfig, load_config
from .base import NotificationSink, notify_safely
from .events import ExecutionUpdate, FlowNotification, StepUpdate
from .inmemory import InMemoryNotificationSink, NullNotificationSink


def get_notifier(
    backend: Optional[str] = None, config: Optional[FlowRunnerConfig] = None
) -> NotificationSink:
    """Factory function to get the configured notification sink."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("FLOWRUNNER_NOTIFICATIONS")
        or config.notifications.backend
    ).lower()

    if backend == "none":
        return NullNotificationSink()
    elif backend == "inmemory":
        return InMemoryNotificationSink()
    elif backend == "redis":
        from .redis import RedisNotificationSink

        redis_conf = config.notifications.redis
        return RedisNotificationSink(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
            channel_prefix=config.notifications.channel_prefix,
        )
    else:
        raise ValueError(f"Unsupported notification backend: {backend}")


__all__ = [
    "ExecutionUpdate",
    "FlowNotification",
    "InMemoryNotificationSink",
    "NotificationSink",
    "NullNotificationSink",
    "StepUpdate",
    "get_notifier",
    "notify_safely",
]
