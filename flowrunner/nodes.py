"""Execution of non-adapter node types."""

from __future__ import annotations

import asyncio
import logging
import time
from string import Template
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol

from .graph import Node
from .notifications import NotificationSink, notify_safely
from .notifications.events import FlowNotification
from .persistence.models import ExecutionStep

logger = logging.getLogger(__name__)

UtilityHandler = Callable[
    [Mapping[str, Any], Mapping[str, Any], ExecutionStep], Awaitable[Dict[str, Any]]
]


class NodeExecutor(Protocol):
    """Executes a node that is not backed by an adapter."""

    async def execute_node(
        self, step: ExecutionStep, node: Node, context: Mapping[str, Any]
    ) -> Dict[str, Any]:
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


def render_template(template: Optional[str], context: Mapping[str, Any]) -> str:
    """Replace ``${key}`` placeholders with context values."""
    if template is None:
        return ""
    return Template(template).safe_substitute({k: str(v) for k, v in context.items()})


def _compare_numbers(a: Any, b: Any) -> int:
    if a is None or b is None:
        return 0
    try:
        left, right = float(a), float(b)
    except (TypeError, ValueError):
        return 0
    return (left > right) - (left < right)


def evaluate_condition(condition: Optional[Mapping[str, Any]], context: Mapping[str, Any]) -> bool:
    """Evaluate a ``{field, operator, value}`` condition against the context."""
    if not condition:
        return False
    field = condition.get("field")
    operator = condition.get("operator")
    value = condition.get("value")
    if not field or not operator:
        return False

    actual = context.get(field)
    op = operator.lower()
    if op == "equals":
        return actual == value
    if op == "not_equals":
        return actual != value
    if op == "contains":
        return actual is not None and str(value) in str(actual)
    if op == "greater_than":
        return _compare_numbers(actual, value) > 0
    if op == "less_than":
        return _compare_numbers(actual, value) < 0
    if op == "exists":
        return actual is not None
    if op == "not_exists":
        return actual is None
    logger.warning(f"Unknown condition operator: {operator}")
    return False


class BuiltinNodeExecutor:
    """Default behaviour for start, end, decision, split, utility, wait and
    notification nodes.

    Utility nodes are delegated to handlers registered by ``utilityType``.
    Unknown node types produce a generic result instead of failing.
    """

    def __init__(
        self,
        utilities: Optional[Dict[str, UtilityHandler]] = None,
        notifier: Optional[NotificationSink] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._utilities: Dict[str, UtilityHandler] = dict(utilities or {})
        self._notifier = notifier
        self._sleep = sleep
        self._handlers = {
            "start": self._start,
            "end": self._end,
            "messageend": self._message_end,
            "utility": self._utility,
            "condition": self._decision,
            "decision": self._decision,
            "parallel": self._parallel_split,
            "parallelsplit": self._parallel_split,
            "wait": self._wait,
            "notification": self._notification,
        }

    def register_utility(self, utility_type: str, handler: UtilityHandler) -> None:
        self._utilities[utility_type] = handler

    async def execute_node(
        self, step: ExecutionStep, node: Node, context: Mapping[str, Any]
    ) -> Dict[str, Any]:
        handler = self._handlers.get(node.type.lower())
        if handler is None:
            logger.warning(f"Unknown node type: {node.type} for node: {node.id}")
            return self._custom(node)
        return await handler(step, node, context)

    # ------------------------------------------------------------------
    async def _start(self, step, node, context):
        result: Dict[str, Any] = {
            "startTime": _now_ms(),
            "nodeId": node.id,
            "status": "STARTED",
        }
        if "payload" in context:
            result["payload"] = context["payload"]
        logger.info(f"Flow execution started at node: {node.id}")
        return result

    async def _end(self, step, node, context):
        end_time = _now_ms()
        result: Dict[str, Any] = {
            "endTime": end_time,
            "nodeId": node.id,
            "status": "COMPLETED",
            "finalPayload": dict(context),
        }
        start_time = context.get("startTime")
        if isinstance(start_time, (int, float)):
            result["executionDuration"] = end_time - int(start_time)
        logger.info(f"Flow execution completed at end node: {node.id}")
        return result

    async def _message_end(self, step, node, context):
        result: Dict[str, Any] = {
            "endTime": _now_ms(),
            "nodeId": node.id,
            "status": "MESSAGE_COMPLETED",
        }
        if node.message_config:
            result["message"] = render_template(
                node.message_config.get("template"), context
            )
            result["messageData"] = node.message_config.get("data")
        logger.info(f"Message flow execution completed at node: {node.id}")
        return result

    async def _utility(self, step, node, context):
        if not node.utility_type:
            raise ValueError(f"Utility type not specified for utility node: {node.id}")
        handler = self._utilities.get(node.utility_type)
        if handler is None:
            raise LookupError(f"No handler registered for utility type: {node.utility_type}")
        utility_context = dict(context)
        utility_context.update(
            nodeId=node.id, stepId=step.id, configuration=node.configuration
        )
        result = await handler(node.configuration, utility_context, step)
        logger.info(f"Utility execution completed for node: {node.id} utility: {node.utility_type}")
        return result

    async def _decision(self, step, node, context):
        result: Dict[str, Any] = {"nodeId": node.id}
        for name, condition in node.conditions.items():
            if evaluate_condition(condition, context):
                logger.info(f"Decision node {node.id} evaluated to: {name}")
                result.update(decision=name, path=name, conditionMet=True)
                return result
        if not node.conditions:
            logger.warning(f"No conditions defined for decision node: {node.id}")
            result.update(decision="default", path="default")
            return result
        logger.info(f"Decision node {node.id} evaluated to default path")
        result.update(decision="default", path="default", conditionMet=False)
        return result

    async def _parallel_split(self, step, node, context):
        # Branches still run one after another; this only records the split.
        result: Dict[str, Any] = {
            "nodeId": node.id,
            "parallelPaths": list(node.parallel_paths),
        }
        for path in node.parallel_paths:
            path_context = dict(context)
            path_context["parallelPath"] = path
            result[f"parallelPath_{path}_context"] = path_context
        logger.info(
            f"Parallel split node {node.id} prepared {len(node.parallel_paths)} paths"
        )
        return result

    async def _wait(self, step, node, context):
        delay = float(node.configuration.get("delaySeconds", 0) or 0)
        if delay > 0:
            await self._sleep(delay)
        return {"nodeId": node.id, "waitedSeconds": delay}

    async def _notification(self, step, node, context):
        message = render_template(node.configuration.get("message"), context)
        delivered = False
        if self._notifier is not None:
            delivered = await notify_safely(
                self._notifier.notify(
                    FlowNotification(
                        execution_id=step.execution_id, node_id=node.id, message=message
                    )
                )
            )
        return {"nodeId": node.id, "notificationMessage": message, "notified": delivered}

    def _custom(self, node: Node) -> Dict[str, Any]:
        return {
            "nodeId": node.id,
            "nodeType": node.type,
            "status": "COMPLETED",
            "message": "Custom node executed with default behavior",
        }
