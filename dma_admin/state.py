"""
LangGraph State Definition for admin pipelines
定义管理流水线的状态
"""
from typing import TypedDict, Optional, List


class PipelineState(TypedDict):
    """
    State carried from step to step of one pipeline run
    """
    pipeline: str
    """Name of the pipeline being run (e.g. 'isolate')"""

    completed_steps: List[str]
    """Steps that finished without error, in run order"""

    failed_steps: List[str]
    """Steps that failed under the 'continue' policy"""

    errors: List[str]
    """'<step>: <message>' for every tolerated failure"""

    current_step: Optional[str]
    """Last step entered"""

    start_time: Optional[str]
    end_time: Optional[str]


def create_initial_state(pipeline: str) -> PipelineState:
    """
    Create initial state for a pipeline run

    Args:
        pipeline: pipeline name, for reporting

    Returns:
        Initial PipelineState
    """
    from datetime import datetime

    return PipelineState(
        pipeline=pipeline,
        completed_steps=[],
        failed_steps=[],
        errors=[],
        current_step="initialized",
        start_time=datetime.now().isoformat(),
        end_time=None,
    )
