import pytest

from flowrunner.context import ExecutionContext
from flowrunner.persistence import Execution


def test_seeded_from_execution():
    execution = Execution(flow_id="f", payload={"a": 1}, triggered_by="me")
    context = ExecutionContext.from_execution(execution)
    assert context["a"] == 1
    assert context["executionId"] == execution.id
    assert context["flowId"] == "f"
    assert context["triggeredBy"] == "me"


def test_payload_is_copied():
    payload = {"a": 1}
    context = ExecutionContext(payload)
    context["a"] = 2
    assert payload == {"a": 1}


def test_keys_cannot_be_removed():
    context = ExecutionContext({"a": 1})
    with pytest.raises(TypeError):
        del context["a"]
    with pytest.raises(TypeError):
        context.pop("a")


def test_merge_overwrites_and_preserves_order():
    context = ExecutionContext({"a": 1, "b": 2})
    context.merge({"a": 3, "c": 4})
    context.merge(None)
    assert list(context) == ["a", "b", "c"]
    assert context.snapshot() == {"a": 3, "b": 2, "c": 4}


def test_snapshot_is_detached():
    context = ExecutionContext({"a": 1})
    snap = context.snapshot()
    context["b"] = 2
    assert "b" not in snap


def test_step_order_counter():
    context = ExecutionContext(step_offset=3)
    assert context.steps_opened == 0
    assert [context.next_step_order() for _ in range(3)] == [4, 5, 6]
    assert context.steps_opened == 3
