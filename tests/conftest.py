from typing import Any, Dict, Optional

import pytest

from flowrunner.adapters import AdapterDescriptor, AdapterExecutor, AdapterRegistry
from flowrunner.persistence import Execution, InMemoryExecutionRepository


class ScriptedNodeExecutor:
    """Node executor returning canned results and raising canned errors."""

    def __init__(
        self,
        results: Optional[Dict[str, Dict[str, Any]]] = None,
        failures: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.results = results or {}
        self.failures = failures or {}
        self.visited: list[str] = []
        self.seen_context: Dict[str, Dict[str, Any]] = {}

    async def execute_node(self, step, node, context):
        self.visited.append(node.id)
        self.seen_context[node.id] = dict(context)
        if node.id in self.failures:
            raise self.failures[node.id]
        return self.results.get(node.id, {"visited": node.id})


class RecordingAdapterExecutor(AdapterExecutor):
    """Adapter executor that records calls and returns a fixed result."""

    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.result = result or {"filesProcessed": 1}
        self.error = error
        self.calls: list[tuple[AdapterDescriptor, Dict[str, Any]]] = []

    async def execute(self, adapter, context, step):
        self.calls.append((adapter, dict(context)))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def repository() -> InMemoryExecutionRepository:
    return InMemoryExecutionRepository()


@pytest.fixture
def registry() -> AdapterRegistry:
    return AdapterRegistry()


@pytest.fixture
def execution() -> Execution:
    return Execution(
        flow_id="flow-1",
        payload={"orderId": 42},
        correlation_id="corr-1",
        triggered_by="tester",
    )


@pytest.fixture
def scripted():
    return ScriptedNodeExecutor


@pytest.fixture
def recording_adapter():
    return RecordingAdapterExecutor
