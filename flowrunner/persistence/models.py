"""Data models for persisted execution state."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..errors import InvalidStepTransition


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: Optional[datetime], finished: datetime) -> int:
    if started is None:
        return 0
    return int((finished - started).total_seconds() * 1000)


class StepType(str, Enum):
    ADAPTER_SENDER = "ADAPTER_SENDER"
    ADAPTER_RECEIVER = "ADAPTER_RECEIVER"
    UTILITY = "UTILITY"
    DECISION = "DECISION"
    SPLIT = "SPLIT"
    MERGE = "MERGE"
    WAIT = "WAIT"
    NOTIFICATION = "NOTIFICATION"


class StepStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not StepStatus.RUNNING


class ExecutionStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Execution(BaseModel):
    """One run of a flow definition."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    flow_id: str
    flow_name: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    correlation_id: Optional[str] = None
    triggered_by: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None

    def mark_running(self) -> None:
        self.status = ExecutionStatus.RUNNING
        self.started_at = utcnow()

    def mark_finished(
        self, status: ExecutionStatus, error_message: Optional[str] = None
    ) -> None:
        self.status = status
        self.completed_at = utcnow()
        self.duration_ms = _elapsed_ms(self.started_at, self.completed_at)
        self.error_message = error_message


class ExecutionStep(BaseModel):
    """Record of a single node visit within an execution."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    execution_id: str
    step_id: str
    step_name: str
    step_type: StepType
    step_order: int
    step_status: StepStatus = StepStatus.RUNNING
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: Optional[dict[str, Any]] = None
    error_message: Optional[str] = None
    correlation_id: Optional[str] = None

    def _finish(self, status: StepStatus) -> None:
        if self.step_status.is_terminal:
            raise InvalidStepTransition(
                f"Step {self.id} is already {self.step_status.value}, cannot move to {status.value}"
            )
        self.step_status = status
        self.completed_at = utcnow()
        self.duration_ms = _elapsed_ms(self.started_at, self.completed_at)

    def mark_completed(self, output: Optional[dict[str, Any]] = None) -> None:
        """Move ``RUNNING -> COMPLETED`` and record the output."""
        self._finish(StepStatus.COMPLETED)
        self.output_data = output or {}

    def mark_failed(self, error_message: str) -> None:
        """Move ``RUNNING -> FAILED`` and record the error."""
        self._finish(StepStatus.FAILED)
        self.error_message = error_message
