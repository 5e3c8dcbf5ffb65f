"""Adapter dispatch: executors, registry and adapter catalog."""

from __future__ import annotations

from .base import AdapterDescriptor, AdapterDirection, AdapterExecutor
from .catalog import AdapterCatalog, InMemoryAdapterCatalog
from .registry import ADAPTERS, AdapterRegistry, register_adapter

__all__ = [
    "ADAPTERS",
    "AdapterCatalog",
    "AdapterDescriptor",
    "AdapterDirection",
    "AdapterExecutor",
    "AdapterRegistry",
    "InMemoryAdapterCatalog",
    "register_adapter",
]
