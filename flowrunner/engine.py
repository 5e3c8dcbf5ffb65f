"""Flow traversal engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from .adapters import (
    ADAPTERS,
    AdapterCatalog,
    AdapterDirection,
    AdapterRegistry,
    InMemoryAdapterCatalog,
)
from .context import ExecutionContext
from .errors import (
    AdapterUnavailable,
    ExecutionLimitExceeded,
    FlowExecutionError,
    MissingStartNode,
    NodeExecutionFailed,
    UnsupportedAdapterCombination,
)
from .graph import FlowDefinition, Node, SuccessorProvider, successor_provider_for
from .nodes import BuiltinNodeExecutor, NodeExecutor
from .notifications import NotificationSink, NullNotificationSink
from .persistence import ExecutionRepository
from .persistence.models import Execution, ExecutionStep
from .tracker import StepLifecycleTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1000


class FlowStepExecutor:
    """Walks a flow definition node by node for one execution.

    Traversal is depth-first and pre-order: a successor's whole
    sub-traversal finishes before the next sibling edge is followed.
    The first failing node aborts the execution.
    """

    def __init__(
        self,
        repository: ExecutionRepository,
        node_executor: Optional[NodeExecutor] = None,
        adapters: Optional[AdapterRegistry] = None,
        catalog: Optional[AdapterCatalog] = None,
        notifier: Optional[NotificationSink] = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> None:
        self._repository = repository
        self._notifier = notifier or NullNotificationSink()
        self._tracker = StepLifecycleTracker(repository, self._notifier)
        self._node_executor = node_executor or BuiltinNodeExecutor(notifier=self._notifier)
        self._adapters = adapters if adapters is not None else ADAPTERS
        self._catalog = catalog or InMemoryAdapterCatalog()
        self._max_steps = max_steps

    async def execute_flow_steps(
        self,
        execution: Execution,
        flow_definition: Union[FlowDefinition, Mapping[str, Any], None],
    ) -> ExecutionContext:
        """Run ``execution`` from the start node to every terminal node.

        Returns the final execution context.

        Raises:
            InvalidFlowDefinition: If the definition is missing or malformed.
            MissingStartNode: If no start node exists; no step is created.
            FlowExecutionError: The first node failure, after its step was
                marked FAILED.
        """
        definition = (
            flow_definition
            if isinstance(flow_definition, FlowDefinition)
            else FlowDefinition.from_document(flow_definition)
        )
        start = definition.start_node()
        if start is None:
            raise MissingStartNode(
                f"Start node not found in flow definition for flow {execution.flow_id}"
            )

        existing = await self._repository.find_steps_by_execution_id(execution.id)
        context = ExecutionContext.from_execution(execution, step_offset=len(existing))
        successors = successor_provider_for(definition)

        logger.info(
            f"Starting step execution for flow={execution.flow_id} execution={execution.id}"
        )
        await self.execute_node(execution, start, context, successors)
        logger.info(
            f"Completed step execution for flow={execution.flow_id} execution={execution.id}"
        )
        return context

    async def execute_node(
        self,
        execution: Execution,
        node: Node,
        context: ExecutionContext,
        successors: SuccessorProvider,
    ) -> None:
        """Execute ``node`` and then, unless it is terminal, its successors."""
        self._check_step_limit(execution, context)
        logger.debug(f"Executing node {node.id} type={node.type} execution={execution.id}")

        step = await self._tracker.open_step(execution, node, context)
        try:
            result = await self._run_node(step, node, context)
        except asyncio.CancelledError as exc:
            logger.warning(f"Node {node.id} cancelled execution={execution.id}")
            await self._tracker.fail_step(step, exc)
            raise
        except Exception as exc:
            logger.error(
                f"Node execution failed for node={node.id} execution={execution.id}: {exc}"
            )
            await self._tracker.fail_step(step, exc)
            if isinstance(exc, FlowExecutionError):
                raise
            raise NodeExecutionFailed(node.id, str(exc), step_id=step.id) from exc

        await self._tracker.complete_step(step, result)
        context.merge(result)

        if node.is_terminal:
            return
        for successor in successors.successors(node):
            await self.execute_node(execution, successor, context, successors)

    # ------------------------------------------------------------------
    def _check_step_limit(self, execution: Execution, context: ExecutionContext) -> None:
        if context.steps_opened >= self._max_steps:
            raise ExecutionLimitExceeded(
                f"Execution {execution.id} exceeded {self._max_steps} steps"
            )

    async def _run_node(
        self, step: ExecutionStep, node: Node, context: ExecutionContext
    ) -> Dict[str, Any]:
        if node.bears_adapter:
            result = await self._run_adapter_node(step, node, context)
        else:
            result = await self._node_executor.execute_node(step, node, context)
        if result is None:
            return {}
        if not isinstance(result, Mapping):
            raise TypeError(
                f"Node {node.id} returned {type(result).__name__}, expected a mapping"
            )
        return dict(result)

    async def _run_adapter_node(
        self, step: ExecutionStep, node: Node, context: ExecutionContext
    ) -> Dict[str, Any]:
        if not node.adapter_id:
            raise AdapterUnavailable(f"Adapter ID not specified for adapter node: {node.id}")
        adapter = await self._catalog.get_adapter(node.adapter_id)
        if adapter is None:
            raise AdapterUnavailable(f"Adapter not found: {node.adapter_id}")
        if not adapter.active:
            raise AdapterUnavailable(f"Adapter is inactive: {node.adapter_id}")
        if node.direction:
            try:
                direction = AdapterDirection(node.direction.upper())
            except ValueError:
                raise UnsupportedAdapterCombination(adapter.adapter_type, node.direction)
            adapter = adapter.model_copy(update={"direction": direction})

        logger.info(
            f"Executing {adapter.adapter_type} {adapter.direction.value} adapter "
            f"{adapter.name or adapter.id} for node={node.id}"
        )
        adapter_context = context.snapshot()
        adapter_context.update(nodeId=node.id, stepId=step.id)
        return await self._adapters.dispatch(adapter, adapter_context, step)
