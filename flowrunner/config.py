from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel


class RedisConfig(BaseModel):
    """Configuration for the Redis notification sink."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class NotificationConfig(BaseModel):
    """Notification sink settings."""

    backend: Literal["none", "inmemory", "redis"] = "none"
    redis: RedisConfig = RedisConfig()
    channel_prefix: str = "flowrunner"


class EngineConfig(BaseModel):
    """Traversal engine limits."""

    max_steps: int = 1000


class FlowRunnerConfig(BaseModel):
    """Top-level configuration model."""

    notifications: NotificationConfig = NotificationConfig()
    engine: EngineConfig = EngineConfig()
    database_url: Optional[str] = None
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> FlowRunnerConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to FLOWRUNNER_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("FLOWRUNNER_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = FlowRunnerConfig(**data)
    else:
        config = FlowRunnerConfig()

    env_db_url = os.getenv("FLOWRUNNER_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
