"""Run executions end to end and keep their status up to date."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from .context import ExecutionContext
from .engine import FlowStepExecutor
from .graph import FlowDefinition
from .notifications import NotificationSink, NullNotificationSink, notify_safely
from .persistence import ExecutionRepository
from .persistence.models import Execution, ExecutionStatus

logger = logging.getLogger(__name__)


class FlowExecutionService:
    """Owns the execution record around a traversal.

    Marks the execution RUNNING before the engine starts and COMPLETED or
    FAILED afterwards, publishing an execution update for each change.
    """

    def __init__(
        self,
        repository: ExecutionRepository,
        executor: FlowStepExecutor,
        notifier: Optional[NotificationSink] = None,
    ) -> None:
        self._repository = repository
        self._executor = executor
        self._notifier = notifier or NullNotificationSink()

    async def create_execution(
        self,
        flow_id: str,
        payload: Optional[Dict[str, Any]] = None,
        triggered_by: Optional[str] = None,
        correlation_id: Optional[str] = None,
        flow_name: Optional[str] = None,
    ) -> Execution:
        execution = Execution(
            flow_id=flow_id,
            flow_name=flow_name,
            payload=payload or {},
            triggered_by=triggered_by,
            correlation_id=correlation_id,
        )
        await self._repository.create_execution(execution)
        await notify_safely(self._notifier.execution_update(execution))
        return execution

    async def run(
        self,
        execution: Execution,
        flow_definition: Union[FlowDefinition, Mapping[str, Any], None],
    ) -> ExecutionContext:
        """Drive ``execution`` through ``flow_definition``.

        Any exception from the traversal, including storage errors and
        cancellation, is re-raised after the execution is marked FAILED.
        """
        execution.mark_running()
        await self._repository.update_execution(execution)
        await notify_safely(self._notifier.execution_update(execution))

        try:
            context = await self._executor.execute_flow_steps(execution, flow_definition)
        except (Exception, asyncio.CancelledError) as exc:
            execution.mark_finished(
                ExecutionStatus.FAILED, error_message=str(exc) or type(exc).__name__
            )
            await self._repository.update_execution(execution)
            await notify_safely(self._notifier.execution_update(execution))
            logger.error(
                f"Execution {execution.id} of flow {execution.flow_id} failed: {exc}"
            )
            raise

        execution.mark_finished(ExecutionStatus.COMPLETED)
        await self._repository.update_execution(execution)
        await notify_safely(self._notifier.execution_update(execution))
        logger.info(
            f"Execution {execution.id} of flow {execution.flow_id} completed in {execution.duration_ms}ms"
        )
        return context
