"""Flow graph model: nodes, edges and successor resolution."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .errors import InvalidFlowDefinition
from .persistence.models import StepType

logger = logging.getLogger(__name__)

START_NODE_TYPE = "start"
TERMINAL_NODE_TYPES = frozenset({"end", "messageend"})
ADAPTER_NODE_TYPES = frozenset({"adapter", "sender", "receiver"})

_STEP_TYPES: Dict[str, StepType] = {
    "start": StepType.ADAPTER_SENDER,
    "adapter": StepType.ADAPTER_SENDER,
    "sender": StepType.ADAPTER_SENDER,
    "end": StepType.ADAPTER_RECEIVER,
    "messageend": StepType.ADAPTER_RECEIVER,
    "receiver": StepType.ADAPTER_RECEIVER,
    "utility": StepType.UTILITY,
    "condition": StepType.DECISION,
    "decision": StepType.DECISION,
    "parallel": StepType.SPLIT,
    "parallelsplit": StepType.SPLIT,
    "wait": StepType.WAIT,
    "notification": StepType.NOTIFICATION,
}


class Node(BaseModel):
    """A unit of work in a flow definition."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    type: str
    name: Optional[str] = None
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    adapter_id: Optional[str] = Field(default=None, alias="adapterId")
    direction: Optional[str] = None
    utility_type: Optional[str] = Field(default=None, alias="utilityType")
    configuration: Dict[str, Any] = Field(default_factory=dict)
    conditions: Dict[str, Any] = Field(default_factory=dict)
    message_config: Optional[Dict[str, Any]] = Field(
        default=None, alias="messageConfig"
    )
    parallel_paths: List[str] = Field(default_factory=list, alias="parallelPaths")

    @property
    def is_terminal(self) -> bool:
        return self.type.lower() in TERMINAL_NODE_TYPES

    @property
    def bears_adapter(self) -> bool:
        return self.type.lower() in ADAPTER_NODE_TYPES or bool(self.adapter_id)

    @property
    def display_name(self) -> str:
        return self.name or f"{self.type}_{self.id}"


class Edge(BaseModel):
    """Directed connection from ``source`` to ``target``."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    source: str
    target: str


class FlowDefinition(BaseModel):
    """Nodes and edges of a flow, with an id index built on construction."""

    nodes: List[Node]
    edges: Optional[List[Edge]] = None

    _index: Dict[str, Node] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        index: Dict[str, Node] = {}
        for node in self.nodes:
            if node.id in index:
                raise InvalidFlowDefinition(f"Duplicate node id '{node.id}'")
            index[node.id] = node
        self._index = index

        starts = [n for n in self.nodes if n.type == START_NODE_TYPE]
        if len(starts) > 1:
            raise InvalidFlowDefinition(
                f"Flow definition has {len(starts)} start nodes, expected one"
            )

    @classmethod
    def from_document(cls, document: Optional[Mapping[str, Any]]) -> "FlowDefinition":
        """Parse a flow definition document.

        Raises:
            InvalidFlowDefinition: If the document is missing, has no ``nodes``
                list, or any node or edge is malformed.
        """
        if document is None or not isinstance(document, Mapping):
            raise InvalidFlowDefinition("Flow definition is missing or invalid")
        if not isinstance(document.get("nodes"), list):
            raise InvalidFlowDefinition("Flow definition has no node list")
        edges = document.get("edges")
        if edges is not None and not isinstance(edges, list):
            raise InvalidFlowDefinition("Flow definition edges must be a list")
        try:
            return cls.model_validate({"nodes": document["nodes"], "edges": edges})
        except ValidationError as exc:
            raise InvalidFlowDefinition(f"Malformed flow definition: {exc}") from exc

    @property
    def has_edges(self) -> bool:
        return bool(self.edges)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._index.get(node_id)

    def start_node(self) -> Optional[Node]:
        return find_node_by_type(self.nodes, START_NODE_TYPE)


def find_node_by_type(nodes: Sequence[Node], node_type: str) -> Optional[Node]:
    """Return the first node of ``node_type`` or ``None``."""
    return next((n for n in nodes if n.type == node_type), None)


def find_node_by_id(nodes: Sequence[Node], node_id: str) -> Optional[Node]:
    """Return the first node whose id is ``node_id`` or ``None``."""
    return next((n for n in nodes if n.id == node_id), None)


def step_type_for(node_type: Optional[str]) -> StepType:
    """Map a node type onto the step type recorded in the trace.

    Unrecognised node types map to ``UTILITY``.
    """
    return _STEP_TYPES.get((node_type or "").lower(), StepType.UTILITY)


def load_flow_definition(path: str | Path) -> FlowDefinition:
    """Load a YAML or JSON flow definition file."""
    with open(path) as f:
        document = yaml.safe_load(f)
    return FlowDefinition.from_document(document)


# ----------------------------------------------------------------------
# Successor resolution


class SuccessorProvider(Protocol):
    """Yields the nodes that follow ``node`` in traversal order."""

    def successors(self, node: Node) -> Iterator[Node]:
        ...


class EdgeSuccessorProvider:
    """Follow outgoing edges in edge-list order."""

    def __init__(self, definition: FlowDefinition) -> None:
        self._definition = definition

    def successors(self, node: Node) -> Iterator[Node]:
        for edge in self._definition.edges or []:
            if edge.source != node.id:
                continue
            target = self._definition.get_node(edge.target)
            if target is None:
                logger.warning(
                    f"Edge {edge.source} -> {edge.target} points to an unknown node, skipping"
                )
                continue
            yield target


class ParentSuccessorProvider:
    """Follow nodes whose ``parentId`` references the current node."""

    def __init__(self, definition: FlowDefinition) -> None:
        self._definition = definition

    def successors(self, node: Node) -> Iterator[Node]:
        for candidate in self._definition.nodes:
            if candidate.parent_id == node.id:
                yield candidate


def successor_provider_for(definition: FlowDefinition) -> SuccessorProvider:
    """Pick the successor strategy once for the whole definition."""
    if definition.has_edges:
        return EdgeSuccessorProvider(definition)
    return ParentSuccessorProvider(definition)


def validate_definition(definition: FlowDefinition) -> List[str]:
    """Return structural warnings that do not prevent execution."""
    warnings: List[str] = []
    if definition.start_node() is None:
        warnings.append("No start node defined")

    for edge in definition.edges or []:
        for endpoint in (edge.source, edge.target):
            if definition.get_node(endpoint) is None:
                warnings.append(
                    f"Edge {edge.source} -> {edge.target} references unknown node '{endpoint}'"
                )

    start = definition.start_node()
    if start is not None:
        provider = successor_provider_for(definition)
        seen = {start.id}
        pending = [start]
        while pending:
            for nxt in provider.successors(pending.pop()):
                if nxt.id not in seen:
                    seen.add(nxt.id)
                    pending.append(nxt)
        for node in definition.nodes:
            if node.id not in seen:
                warnings.append(f"Node '{node.id}' is not reachable from the start node")
    return warnings


__all__ = [
    "Node",
    "Edge",
    "FlowDefinition",
    "SuccessorProvider",
    "EdgeSuccessorProvider",
    "ParentSuccessorProvider",
    "find_node_by_type",
    "find_node_by_id",
    "step_type_for",
    "successor_provider_for",
    "load_flow_definition",
    "validate_definition",
    "START_NODE_TYPE",
    "TERMINAL_NODE_TYPES",
]
