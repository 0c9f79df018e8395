"""
Pipeline graph: ordering and per-step failure policy
"""
import pytest

from dma_admin.errors import PipelineError
from dma_admin.graph import PipelineStep, create_workflow, run_pipeline
from dma_admin.schemas import FailurePolicy


def _recorder(log, name, error=None):
    def action(config):
        log.append(name)
        if error is not None:
            raise error
    action.__name__ = name
    return action


def test_steps_run_once_in_order(config):
    log = []
    steps = [PipelineStep(n, _recorder(log, n)) for n in ("first", "second", "third")]

    state = run_pipeline("demo", steps, config)

    assert log == ["first", "second", "third"]
    assert state["completed_steps"] == ["first", "second", "third"]
    assert state["errors"] == []
    assert state["pipeline"] == "demo"
    assert state["current_step"] == "third"
    assert state["end_time"] is not None


def test_continue_policy_records_error_and_moves_on(config):
    log = []
    steps = [
        PipelineStep("flaky", _recorder(log, "flaky", RuntimeError("adapter busy")), FailurePolicy.CONTINUE),
        PipelineStep("after", _recorder(log, "after")),
    ]

    state = run_pipeline("demo", steps, config)

    assert log == ["flaky", "after"]
    assert state["failed_steps"] == ["flaky"]
    assert state["completed_steps"] == ["after"]
    assert state["errors"] == ["flaky: adapter busy"]


def test_propagate_policy_stops_the_run(config):
    log = []
    steps = [
        PipelineStep("ok", _recorder(log, "ok")),
        PipelineStep("broken", _recorder(log, "broken", ValueError("bad xml")), FailurePolicy.PROPAGATE),
        PipelineStep("never", _recorder(log, "never")),
    ]

    with pytest.raises(ValueError, match="bad xml"):
        run_pipeline("demo", steps, config)

    assert log == ["ok", "broken"]


def test_steps_receive_the_config(config):
    seen = []
    run_pipeline("demo", [PipelineStep("only", seen.append)], config)

    assert seen == [config]


@pytest.mark.parametrize("names", [
    [],
    ["same", "same"],
    ["errors"],
])
def test_invalid_definitions_rejected(config, names):
    steps = [PipelineStep(n, lambda c: None) for n in names]

    with pytest.raises(PipelineError):
        create_workflow(steps, config)
