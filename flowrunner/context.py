"""Mutable key/value state threaded through one execution."""

from __future__ import annotations

import itertools
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Mapping, Optional

from .persistence.models import Execution


class ExecutionContext(MutableMapping):
    """Ordered, additive mapping shared by every node of one execution.

    Keys may be added or overwritten but never removed. The context also
    hands out step order numbers, so ordering never depends on a
    read-then-write against storage.
    """

    def __init__(
        self, initial: Optional[Mapping[str, Any]] = None, step_offset: int = 0
    ) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self._order = itertools.count(step_offset + 1)
        self._opened = 0

    @classmethod
    def from_execution(
        cls, execution: Execution, step_offset: int = 0
    ) -> "ExecutionContext":
        """Seed a context from the execution payload and identifiers.

        ``step_offset`` is the number of steps already recorded for the
        execution; the first step opened through this context gets
        ``step_offset + 1``.
        """
        context = cls(execution.payload, step_offset=step_offset)
        context["executionId"] = execution.id
        context["flowId"] = execution.flow_id
        context["triggeredBy"] = execution.triggered_by
        return context

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        raise TypeError("Execution context keys cannot be removed")

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"ExecutionContext({self._data!r})"

    def merge(self, result: Optional[Mapping[str, Any]]) -> None:
        """Merge a node result into the context; later keys win."""
        if result:
            self._data.update(result)

    def snapshot(self) -> Dict[str, Any]:
        """Return a shallow copy of the current state."""
        return dict(self._data)

    def next_step_order(self) -> int:
        self._opened += 1
        return next(self._order)

    @property
    def steps_opened(self) -> int:
        """Number of steps opened through this context."""
        return self._opened
