"""
Named pipelines
Fixed step sequences with their failure policy spelled out per step
"""
from __future__ import annotations
from typing import Dict, List

from .adapters import disable_adapters, enable_adapters
from .errors import PipelineError
from .graph import PipelineStep, run_pipeline
from .launcher import restart_agent
from .pruner import prune_dms, prune_slcloud
from .schemas import AdminConfig, FailurePolicy
from .state import PipelineState


def _disable_configured_adapters(config: AdminConfig):
    return disable_adapters(config.adapter_names, config)


def _enable_configured_adapters(config: AdminConfig):
    return enable_adapters(config.adapter_names, config)


ISOLATE_STEPS: List[PipelineStep] = [
    PipelineStep("disable_adapters", _disable_configured_adapters, FailurePolicy.CONTINUE,
                 "Disable network adapters"),
    PipelineStep("prune_dms", prune_dms, FailurePolicy.PROPAGATE,
                 "Remove DMA entries from DMS.xml"),
    PipelineStep("prune_slcloud", prune_slcloud, FailurePolicy.PROPAGATE,
                 "Remove NATSServer entries from SLCloud.xml"),
    PipelineStep("restart_agent", restart_agent, FailurePolicy.PROPAGATE,
                 "Launch the restart script"),
]

RECONNECT_STEPS: List[PipelineStep] = [
    PipelineStep("enable_adapters", _enable_configured_adapters, FailurePolicy.CONTINUE,
                 "Enable network adapters"),
    PipelineStep("restart_agent", restart_agent, FailurePolicy.PROPAGATE,
                 "Launch the restart script"),
]

PIPELINES: Dict[str, List[PipelineStep]] = {
    "isolate": ISOLATE_STEPS,
    "reconnect": RECONNECT_STEPS,
}


def run_named_pipeline(name: str, config: AdminConfig) -> PipelineState:
    steps = PIPELINES.get(name)
    if steps is None:
        raise PipelineError(f"Unknown pipeline {name!r} (available: {', '.join(sorted(PIPELINES))})")
    return run_pipeline(name, steps, config)
