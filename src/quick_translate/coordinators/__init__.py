"""Coordinators - Orchestration layer connecting triggers, resolution and display."""

from .trigger_monitor import SelectionTriggerMonitor, TriggerAction, TriggerEvent, TriggerOrigin
from .resolution_pipeline import PipelineState, ResolutionPipeline
from .review_coordinator import ReviewCoordinator, ReviewMode

__all__ = [
    "ResolutionPipeline",
    "PipelineState",
    "SelectionTriggerMonitor",
    "TriggerAction",
    "TriggerEvent",
    "TriggerOrigin",
    "ReviewCoordinator",
    "ReviewMode",
]
