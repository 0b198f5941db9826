"""Data-driven workflow engine for package transactions."""

from __future__ import annotations

__all__ = [
    "BusinessFlowStep",
    "FlowConfig",
    "FlowRegistry",
    "WorkflowEngine",
    "active_step_for",
    "get_flow_registry",
    "set_flow_registry",
]

from .engine import WorkflowEngine, active_step_for  # noqa: E402
from .registry import BusinessFlowStep, FlowConfig, FlowRegistry, get_flow_registry, set_flow_registry  # noqa: E402
