"""Resolve adapter executors by type and direction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Tuple, Union

from ..errors import UnsupportedAdapterCombination
from .base import AdapterDescriptor, AdapterExecutor

if TYPE_CHECKING:
    from ..persistence.models import ExecutionStep

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[[], AdapterExecutor]
AdapterKey = Tuple[str, str]


def _key(adapter_type: Any, direction: Any) -> AdapterKey:
    direction = getattr(direction, "value", direction)
    return str(adapter_type).upper(), str(direction).upper()


class AdapterRegistry:
    """Maps ``(adapter_type, direction)`` onto an executor.

    Factories are instantiated on first resolution and the instance is
    reused afterwards; executors are expected to be stateless.
    """

    def __init__(self) -> None:
        self._factories: Dict[AdapterKey, ExecutorFactory] = {}
        self._instances: Dict[AdapterKey, AdapterExecutor] = {}

    def register(
        self,
        adapter_type: str,
        direction: str,
        executor: Union[AdapterExecutor, ExecutorFactory],
    ) -> None:
        """Register an executor instance or a zero-argument factory."""
        key = _key(adapter_type, direction)
        self._instances.pop(key, None)
        if isinstance(executor, AdapterExecutor):
            self._instances[key] = executor
            self._factories[key] = lambda: executor
        else:
            self._factories[key] = executor
        logger.debug(f"Registered adapter executor for {key[0]} {key[1]}")

    def unregister(self, adapter_type: str, direction: str) -> None:
        key = _key(adapter_type, direction)
        self._factories.pop(key, None)
        self._instances.pop(key, None)

    def clear(self) -> None:
        self._factories.clear()
        self._instances.clear()

    def is_supported(self, adapter_type: str, direction: str) -> bool:
        return _key(adapter_type, direction) in self._factories

    def supported_combinations(self) -> List[AdapterKey]:
        return sorted(self._factories)

    def resolve(self, adapter: AdapterDescriptor) -> AdapterExecutor:
        """Return the executor for ``adapter``.

        Raises:
            UnsupportedAdapterCombination: If nothing is registered for the
                adapter's type and direction.
        """
        key = _key(adapter.adapter_type, adapter.direction)
        executor = self._instances.get(key)
        if executor is not None:
            return executor
        factory = self._factories.get(key)
        if factory is None:
            raise UnsupportedAdapterCombination(*key)
        executor = factory()
        self._instances[key] = executor
        logger.debug(f"Created adapter executor for {key[0]} {key[1]}")
        return executor

    async def dispatch(
        self,
        adapter: AdapterDescriptor,
        context: Mapping[str, Any],
        step: "ExecutionStep",
    ) -> Dict[str, Any]:
        """Resolve, validate and execute. Executor errors propagate as-is."""
        executor = self.resolve(adapter)
        executor.validate_configuration(adapter)
        return await executor.execute(adapter, context, step)


# Process-wide default registry. Adapter plugins register themselves here
# through ``register_adapter``.
ADAPTERS = AdapterRegistry()


def register_adapter(adapter_type: str, direction: str):
    """Class decorator registering an executor class on ``ADAPTERS``."""

    def decorator(cls):
        ADAPTERS.register(adapter_type, direction, cls)
        return cls

    return decorator
