import pytest

from flowrunner.errors import InvalidFlowDefinition
from flowrunner.graph import (
    EdgeSuccessorProvider,
    FlowDefinition,
    Node,
    ParentSuccessorProvider,
    find_node_by_id,
    find_node_by_type,
    load_flow_definition,
    step_type_for,
    successor_provider_for,
    validate_definition,
)
from flowrunner.persistence import StepType


def test_node_aliases_and_extra_fields():
    definition = FlowDefinition.from_document(
        {
            "nodes": [
                {"id": "s", "type": "start", "label": "Begin"},
                {
                    "id": "a",
                    "type": "adapter",
                    "parentId": "s",
                    "adapterId": "sftp-1",
                    "utilityType": "ignored",
                },
            ]
        }
    )
    node = definition.get_node("a")
    assert node.parent_id == "s"
    assert node.adapter_id == "sftp-1"
    assert node.bears_adapter
    assert node.display_name == "adapter_a"
    assert definition.get_node("s").model_extra == {"label": "Begin"}


def test_duplicate_node_ids_rejected():
    with pytest.raises(InvalidFlowDefinition):
        FlowDefinition.from_document(
            {"nodes": [{"id": "x", "type": "start"}, {"id": "x", "type": "end"}]}
        )


def test_multiple_start_nodes_rejected():
    with pytest.raises(InvalidFlowDefinition):
        FlowDefinition.from_document(
            {"nodes": [{"id": "a", "type": "start"}, {"id": "b", "type": "start"}]}
        )


def test_edges_must_be_a_list():
    with pytest.raises(InvalidFlowDefinition):
        FlowDefinition.from_document({"nodes": [], "edges": {"a": "b"}})


def test_find_helpers_return_first_match():
    definition = FlowDefinition.from_document(
        {
            "nodes": [
                {"id": "u1", "type": "utility"},
                {"id": "u2", "type": "utility"},
            ]
        }
    )
    assert find_node_by_type(definition.nodes, "utility").id == "u1"
    assert find_node_by_type(definition.nodes, "start") is None
    assert find_node_by_id(definition.nodes, "u2").id == "u2"
    assert find_node_by_id(definition.nodes, "nope") is None


@pytest.mark.parametrize(
    "node_type, expected",
    [
        ("start", StepType.ADAPTER_SENDER),
        ("end", StepType.ADAPTER_RECEIVER),
        ("messageEnd", StepType.ADAPTER_RECEIVER),
        ("condition", StepType.DECISION),
        ("parallelSplit", StepType.SPLIT),
        ("wait", StepType.WAIT),
        ("notification", StepType.NOTIFICATION),
        ("somethingElse", StepType.UTILITY),
        (None, StepType.UTILITY),
    ],
)
def test_step_type_for(node_type, expected):
    assert step_type_for(node_type) == expected


def test_empty_edge_list_falls_back_to_parent_ids():
    definition = FlowDefinition.from_document(
        {
            "nodes": [
                {"id": "s", "type": "start"},
                {"id": "e", "type": "end", "parentId": "s"},
            ],
            "edges": [],
        }
    )
    provider = successor_provider_for(definition)
    assert isinstance(provider, ParentSuccessorProvider)
    assert [n.id for n in provider.successors(definition.get_node("s"))] == ["e"]


def test_edges_take_precedence_over_parent_ids():
    definition = FlowDefinition.from_document(
        {
            "nodes": [
                {"id": "s", "type": "start"},
                {"id": "a", "type": "utility", "parentId": "s"},
                {"id": "b", "type": "utility"},
            ],
            "edges": [{"source": "s", "target": "b"}],
        }
    )
    provider = successor_provider_for(definition)
    assert isinstance(provider, EdgeSuccessorProvider)
    assert [n.id for n in provider.successors(definition.get_node("s"))] == ["b"]


def test_validate_definition_reports_problems():
    definition = FlowDefinition.from_document(
        {
            "nodes": [
                {"id": "s", "type": "start"},
                {"id": "e", "type": "end"},
                {"id": "orphan", "type": "utility"},
            ],
            "edges": [
                {"source": "s", "target": "e"},
                {"source": "s", "target": "ghost"},
            ],
        }
    )
    warnings = validate_definition(definition)
    assert any("ghost" in w for w in warnings)
    assert any("orphan" in w for w in warnings)
    assert not any("'e'" in w for w in warnings)


def test_validate_definition_without_start():
    definition = FlowDefinition.from_document({"nodes": [{"id": "e", "type": "end"}]})
    assert "No start node defined" in validate_definition(definition)


def test_load_flow_definition_from_yaml(tmp_path):
    path = tmp_path / "flow.yaml"
    path.write_text(
        """
nodes:
  - id: s
    type: start
  - id: e
    type: end
edges:
  - source: s
    target: e
"""
    )
    definition = load_flow_definition(path)
    assert [n.id for n in definition.nodes] == ["s", "e"]
    assert definition.has_edges


@pytest.mark.parametrize("node_type", ["end", "End", "messageEnd", "MESSAGEEND"])
def test_terminal_node_types(node_type):
    assert Node(id="n", type=node_type).is_terminal


def test_non_terminal_node_type():
    assert not Node(id="n", type="utility").is_terminal
