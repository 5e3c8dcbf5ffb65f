"""Base notification sink interface."""

from __future__ import annotations

import abc
import logging
from typing import Awaitable

from pydantic import BaseModel

from ..persistence.models import Execution, ExecutionStep
from .events import ExecutionUpdate, FlowNotification, StepUpdate

logger = logging.getLogger(__name__)


class NotificationSink(metaclass=abc.ABCMeta):
    """Fire-and-forget fan-out of execution and step updates."""

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    @abc.abstractmethod
    async def publish(self, topic: str, event: BaseModel) -> None:
        """Send an event to a topic."""
        raise NotImplementedError

    async def execution_update(self, execution: Execution) -> None:
        event = ExecutionUpdate.from_execution(execution)
        await self.publish("flow-executions", event)
        await self.publish(f"flow/{execution.flow_id}/executions", event)
        await self.publish(f"execution/{execution.id}", event)

    async def step_update(self, step: ExecutionStep) -> None:
        event = StepUpdate.from_step(step)
        await self.publish(f"execution/{step.execution_id}/steps", event)
        await self.publish("flow-steps", event)

    async def notify(self, notification: FlowNotification) -> None:
        await self.publish("flow-notifications", notification)
        if notification.execution_id:
            await self.publish(f"execution/{notification.execution_id}", notification)


async def notify_safely(pending: Awaitable[None]) -> bool:
    """Await a sink call, logging instead of raising on failure."""
    try:
        await pending
    except Exception:
        logger.error("Notification sink failed", exc_info=True)
        return False
    return True
