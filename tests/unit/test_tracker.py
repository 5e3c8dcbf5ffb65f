import pytest

from flowrunner.context import ExecutionContext
from flowrunner.errors import InvalidStepTransition
from flowrunner.graph import Node
from flowrunner.notifications import InMemoryNotificationSink
from flowrunner.persistence import StepStatus, StepType
from flowrunner.tracker import StepLifecycleTracker


@pytest.mark.asyncio
async def test_open_step_persists_running_step(repository, execution):
    sink = InMemoryNotificationSink()
    tracker = StepLifecycleTracker(repository, sink)
    context = ExecutionContext.from_execution(execution)
    node = Node(id="d1", type="decision", name="Route order")

    step = await tracker.open_step(execution, node, context)

    assert step.step_status == StepStatus.RUNNING
    assert step.step_type == StepType.DECISION
    assert step.step_name == "Route order"
    assert step.step_order == 1
    assert step.correlation_id == "corr-1"
    assert step.input_data["orderId"] == 42
    stored = await repository.find_steps_by_execution_id(execution.id)
    assert [s.id for s in stored] == [step.id]
    assert sink.topics["flow-steps"][0].status == "RUNNING"


@pytest.mark.asyncio
async def test_complete_step(repository, execution):
    tracker = StepLifecycleTracker(repository)
    context = ExecutionContext.from_execution(execution)
    step = await tracker.open_step(execution, Node(id="u", type="utility"), context)

    await tracker.complete_step(step, {"done": True})

    (stored,) = await repository.find_steps_by_execution_id(execution.id)
    assert stored.step_status == StepStatus.COMPLETED
    assert stored.output_data == {"done": True}
    assert stored.completed_at >= stored.started_at
    assert stored.duration_ms >= 0


@pytest.mark.asyncio
async def test_fail_step_uses_type_name_for_empty_message(repository, execution):
    tracker = StepLifecycleTracker(repository)
    context = ExecutionContext.from_execution(execution)
    step = await tracker.open_step(execution, Node(id="u", type="utility"), context)

    await tracker.fail_step(step, KeyError())

    (stored,) = await repository.find_steps_by_execution_id(execution.id)
    assert stored.step_status == StepStatus.FAILED
    assert stored.error_message == "KeyError"
    assert stored.output_data is None


@pytest.mark.asyncio
async def test_terminal_step_cannot_transition(repository, execution):
    tracker = StepLifecycleTracker(repository)
    context = ExecutionContext.from_execution(execution)
    step = await tracker.open_step(execution, Node(id="u", type="utility"), context)
    await tracker.complete_step(step, {})

    with pytest.raises(InvalidStepTransition):
        await tracker.fail_step(step, "late failure")


@pytest.mark.asyncio
async def test_correlation_id_generated_when_missing(repository, execution):
    execution.correlation_id = None
    tracker = StepLifecycleTracker(repository)
    context = ExecutionContext.from_execution(execution)
    step = await tracker.open_step(execution, Node(id="u", type="utility"), context)
    assert step.correlation_id
