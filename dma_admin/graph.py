"""
LangGraph workflow for admin pipelines
管理流水线的 LangGraph 工作流
A pipeline is an ordered list of steps, compiled into a linear StateGraph
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Sequence

from langgraph.graph import StateGraph, END

from .errors import PipelineError
from .schemas import AdminConfig, FailurePolicy
from .state import PipelineState, create_initial_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineStep:
    """One named action and what happens when it fails"""
    name: str
    action: Callable[[AdminConfig], Any]
    on_error: FailurePolicy = FailurePolicy.PROPAGATE
    description: str = ""


def make_step_node(step: PipelineStep, config: AdminConfig) -> Callable[[PipelineState], PipelineState]:
    """
    Wrap a step as a graph node

    'propagate' re-raises and ends the run; 'continue' records the error in
    state and lets the next step run.
    """
    def node(state: PipelineState) -> PipelineState:
        print(f"▶️  [{step.name}] {step.description or step.action.__name__}")
        try:
            step.action(config)
        except Exception as e:
            if step.on_error is FailurePolicy.PROPAGATE:
                print(f"❌ [{step.name}] failed: {e}")
                raise
            print(f"⚠️  [{step.name}] failed, continuing: {e}")
            logger.warning("Step %s failed under 'continue' policy: %s", step.name, e)
            return {
                **state,
                "current_step": step.name,
                "failed_steps": state["failed_steps"] + [step.name],
                "errors": state["errors"] + [f"{step.name}: {e}"],
            }
        print(f"✅ [{step.name}] done")
        return {
            **state,
            "current_step": step.name,
            "completed_steps": state["completed_steps"] + [step.name],
        }
    node.__name__ = step.name
    return node


def validate_steps(steps: Sequence[PipelineStep]) -> None:
    if not steps:
        raise PipelineError("A pipeline needs at least one step")
    names = [s.name for s in steps]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise PipelineError(f"Duplicate step names: {', '.join(duplicates)}")
    reserved = set(PipelineState.__annotations__)
    clashes = sorted(reserved.intersection(names))
    if clashes:
        raise PipelineError(f"Step names clash with state keys: {', '.join(clashes)}")


def create_workflow(steps: Sequence[PipelineStep], config: AdminConfig):
    """
    Create the pipeline graph

    Returns:
        Compiled StateGraph running the steps in order
    """
    validate_steps(steps)
    workflow = StateGraph(PipelineState)

    for step in steps:
        workflow.add_node(step.name, make_step_node(step, config))

    workflow.set_entry_point(steps[0].name)
    for current, following in zip(steps, steps[1:]):
        workflow.add_edge(current.name, following.name)
    workflow.add_edge(steps[-1].name, END)

    return workflow.compile()


def run_pipeline(name: str, steps: List[PipelineStep], config: AdminConfig) -> PipelineState:
    """
    Run the steps in order, once each

    Returns:
        Final state; tolerated failures are listed in 'errors'

    Raises:
        Whatever a 'propagate' step raised
    """
    workflow = create_workflow(steps, config)
    initial_state = create_initial_state(name)
    logger.info("Running pipeline %s (%d steps)", name, len(steps))
    final_state = workflow.invoke(initial_state)
    return {**final_state, "end_time": datetime.now().isoformat()}
