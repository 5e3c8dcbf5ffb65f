"""Step lifecycle: open, complete and fail step records."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from .context import ExecutionContext
from .graph import Node, step_type_for
from .notifications import NotificationSink, NullNotificationSink, notify_safely
from .persistence import ExecutionRepository
from .persistence.models import Execution, ExecutionStep

logger = logging.getLogger(__name__)


class StepLifecycleTracker:
    """Creates and closes one ``ExecutionStep`` per node visit.

    Every transition is persisted through the repository and then
    published to the notification sink. Sink failures are logged and
    never reach the caller.
    """

    def __init__(
        self,
        repository: ExecutionRepository,
        notifier: Optional[NotificationSink] = None,
    ) -> None:
        self._repository = repository
        self._notifier = notifier or NullNotificationSink()

    async def open_step(
        self, execution: Execution, node: Node, context: ExecutionContext
    ) -> ExecutionStep:
        step = ExecutionStep(
            execution_id=execution.id,
            step_id=node.id,
            step_name=node.display_name,
            step_type=step_type_for(node.type),
            step_order=context.next_step_order(),
            input_data=context.snapshot(),
            correlation_id=execution.correlation_id or str(uuid.uuid4()),
        )
        step.id = await self._repository.save_step(step) or step.id
        logger.debug(
            f"Opened step {step.step_order} ({node.id}) for execution={execution.id}"
        )
        await notify_safely(self._notifier.step_update(step))
        return step

    async def complete_step(
        self, step: ExecutionStep, result: Optional[Mapping[str, Any]]
    ) -> None:
        step.mark_completed(dict(result) if result else {})
        await self._repository.update_step(step)
        logger.debug(
            f"Completed step {step.step_order} ({step.step_id}) in {step.duration_ms}ms"
        )
        await notify_safely(self._notifier.step_update(step))

    async def fail_step(self, step: ExecutionStep, error: BaseException | str) -> None:
        message = str(error) or type(error).__name__
        step.mark_failed(message)
        await self._repository.update_step(step)
        logger.debug(f"Failed step {step.step_order} ({step.step_id}): {message}")
        await notify_safely(self._notifier.step_update(step))
