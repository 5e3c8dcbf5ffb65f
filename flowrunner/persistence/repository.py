"""Repository abstraction for execution state persistence."""

from __future__ import annotations

from typing import Protocol

from .models import Execution, ExecutionStep


class ExecutionRepository(Protocol):
    """Protocol for execution and step persistence backends."""

    async def create_execution(self, execution: Execution) -> None:
        """Persist a new execution record."""

    async def update_execution(self, execution: Execution) -> None:
        """Persist status and timing changes of an execution."""

    async def get_execution(self, execution_id: str) -> Execution | None:
        """Retrieve an execution by id."""

    async def list_executions(self) -> list[Execution]:
        """Return all persisted executions."""

    async def save_step(self, step: ExecutionStep) -> str:
        """Persist a newly opened step and return its id."""

    async def update_step(self, step: ExecutionStep) -> None:
        """Persist the updated state of an existing step."""

    async def find_steps_by_execution_id(
        self, execution_id: str
    ) -> list[ExecutionStep]:
        """Return the steps of an execution ordered by ``step_order``."""
