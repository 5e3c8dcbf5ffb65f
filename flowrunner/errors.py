"""Error taxonomy for flow execution."""

from __future__ import annotations

from typing import Optional


class FlowExecutionError(Exception):
    """Base class for every error raised by the execution core."""


class InvalidFlowDefinition(FlowExecutionError):
    """The flow definition document is missing or malformed."""


class MissingStartNode(FlowExecutionError):
    """The flow definition has no node of type ``start``."""


class UnsupportedAdapterCombination(FlowExecutionError):
    """No executor is registered for an adapter's type and direction."""

    def __init__(self, adapter_type: Optional[str], direction: Optional[str]) -> None:
        self.adapter_type = adapter_type
        self.direction = direction
        super().__init__(
            f"No adapter executor registered for type '{adapter_type}' "
            f"and direction '{direction}'"
        )


class ConfigurationInvalid(FlowExecutionError):
    """An adapter's configuration failed validation."""


class AdapterUnavailable(FlowExecutionError):
    """The adapter referenced by a node is missing or inactive."""


class InvalidStepTransition(FlowExecutionError):
    """A step was asked to leave a terminal state."""


class ExecutionLimitExceeded(FlowExecutionError):
    """An execution tried to open more steps than allowed."""


class NodeExecutionFailed(FlowExecutionError):
    """Wraps an unexpected exception raised while executing a node.

    The original exception is kept as ``__cause__``.
    """

    def __init__(
        self, node_id: str, message: str, step_id: Optional[str] = None
    ) -> None:
        self.node_id = node_id
        self.step_id = step_id
        super().__init__(f"Node execution failed for node '{node_id}': {message}")


__all__ = [
    "FlowExecutionError",
    "InvalidFlowDefinition",
    "MissingStartNode",
    "UnsupportedAdapterCombination",
    "ConfigurationInvalid",
    "AdapterUnavailable",
    "InvalidStepTransition",
    "ExecutionLimitExceeded",
    "NodeExecutionFailed",
]
