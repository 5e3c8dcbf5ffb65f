"""Lookup of adapter descriptors referenced by flow nodes."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Protocol

from .base import AdapterDescriptor


class AdapterCatalog(Protocol):
    """Protocol for adapter persistence backends."""

    async def get_adapter(self, adapter_id: str) -> AdapterDescriptor | None:
        """Return the adapter with ``adapter_id`` or ``None``."""


class InMemoryAdapterCatalog(AdapterCatalog):
    """Keep adapter descriptors in a dict keyed by id."""

    def __init__(self, adapters: Iterable[AdapterDescriptor] = ()) -> None:
        self._adapters: Dict[str, AdapterDescriptor] = {a.id: a for a in adapters}

    @classmethod
    def from_documents(cls, documents: Iterable[Mapping[str, Any]]) -> "InMemoryAdapterCatalog":
        """Build a catalog from raw adapter mappings (``adapterType`` keys allowed)."""
        adapters = []
        for doc in documents:
            data = dict(doc)
            if "adapterType" in data:
                data.setdefault("adapter_type", data.pop("adapterType"))
            adapters.append(AdapterDescriptor.model_validate(data))
        return cls(adapters)

    def add(self, adapter: AdapterDescriptor) -> None:
        self._adapters[adapter.id] = adapter

    async def get_adapter(self, adapter_id: str) -> AdapterDescriptor | None:
        return self._adapters.get(adapter_id)
