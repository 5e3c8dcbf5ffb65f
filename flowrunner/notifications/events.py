"""Update events published while a flow runs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..persistence.models import Execution, ExecutionStep, utcnow

_SUMMARY_KEYS = (
    "filesProcessed",
    "bytesProcessed",
    "recordsProcessed",
    "status",
    "message",
)


def summarize_output(output: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce step output to a small summary safe to broadcast."""
    summary: Dict[str, Any] = {"keys": len(output)}
    for key in _SUMMARY_KEYS:
        if key in output:
            summary[key] = output[key]
    return summary


class ExecutionUpdate(BaseModel):
    type: Literal["FLOW_EXECUTION_UPDATE"] = "FLOW_EXECUTION_UPDATE"
    execution_id: str
    flow_id: str
    flow_name: Optional[str] = None
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    triggered_by: Optional[str] = None
    correlation_id: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_execution(cls, execution: Execution) -> "ExecutionUpdate":
        return cls(
            execution_id=execution.id,
            flow_id=execution.flow_id,
            flow_name=execution.flow_name,
            status=execution.status.value,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            duration_ms=execution.duration_ms,
            triggered_by=execution.triggered_by,
            correlation_id=execution.correlation_id,
            error_message=execution.error_message,
        )


class StepUpdate(BaseModel):
    type: Literal["FLOW_STEP_UPDATE"] = "FLOW_STEP_UPDATE"
    id: str
    execution_id: str
    step_id: str
    step_name: str
    step_type: str
    status: str
    step_order: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None
    output_summary: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_step(cls, step: ExecutionStep) -> "StepUpdate":
        return cls(
            id=step.id,
            execution_id=step.execution_id,
            step_id=step.step_id,
            step_name=step.step_name,
            step_type=step.step_type.value,
            status=step.step_status.value,
            step_order=step.step_order,
            started_at=step.started_at,
            completed_at=step.completed_at,
            duration_ms=step.duration_ms,
            error_message=step.error_message,
            output_summary=summarize_output(step.output_data)
            if step.output_data
            else None,
        )


class FlowNotification(BaseModel):
    """Message emitted by a ``notification`` node."""

    type: Literal["FLOW_NOTIFICATION"] = "FLOW_NOTIFICATION"
    execution_id: Optional[str] = None
    node_id: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
