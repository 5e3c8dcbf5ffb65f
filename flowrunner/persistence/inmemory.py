"""In-memory implementation of the execution repository."""

from __future__ import annotations

from typing import Dict, List

from .models import Execution, ExecutionStep
from .repository import ExecutionRepository


class InMemoryExecutionRepository(ExecutionRepository):
    """Store execution state in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._executions: Dict[str, Execution] = {}
        self._steps: Dict[str, List[ExecutionStep]] = {}

    # ------------------------------------------------------------------
    async def create_execution(self, execution: Execution) -> None:
        self._executions[execution.id] = execution.model_copy(deep=True)

    async def update_execution(self, execution: Execution) -> None:
        if execution.id in self._executions:
            self._executions[execution.id] = execution.model_copy(deep=True)

    async def get_execution(self, execution_id: str) -> Execution | None:
        execution = self._executions.get(execution_id)
        return execution.model_copy(deep=True) if execution else None

    async def list_executions(self) -> list[Execution]:
        return [e.model_copy(deep=True) for e in self._executions.values()]

    async def save_step(self, step: ExecutionStep) -> str:
        self._steps.setdefault(step.execution_id, []).append(step.model_copy(deep=True))
        return step.id

    async def update_step(self, step: ExecutionStep) -> None:
        steps = self._steps.get(step.execution_id, [])
        for index, existing in enumerate(steps):
            if existing.id == step.id:
                steps[index] = step.model_copy(deep=True)
                return

    async def find_steps_by_execution_id(
        self, execution_id: str
    ) -> list[ExecutionStep]:
        steps = self._steps.get(execution_id, [])
        return [s.model_copy(deep=True) for s in sorted(steps, key=lambda s: s.step_order)]
