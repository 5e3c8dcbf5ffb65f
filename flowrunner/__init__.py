"""flowrunner: execution core for integration flow definitions."""

from .adapters import ADAPTERS, AdapterDescriptor, AdapterExecutor, register_adapter
from .context import ExecutionContext
from .engine import FlowStepExecutor
from .graph import FlowDefinition, load_flow_definition
from .nodes import BuiltinNodeExecutor
from .notifications import get_notifier
from .persistence import Execution, ExecutionStep, get_repository
from .service import FlowExecutionService

__version__ = "0.1.0"
__all__ = [
    "ADAPTERS",
    "AdapterDescriptor",
    "AdapterExecutor",
    "BuiltinNodeExecutor",
    "Execution",
    "ExecutionContext",
    "ExecutionStep",
    "FlowDefinition",
    "FlowExecutionService",
    "FlowStepExecutor",
    "get_notifier",
    "get_repository",
    "load_flow_definition",
    "register_adapter",
]
