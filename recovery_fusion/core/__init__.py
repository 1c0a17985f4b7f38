"""
recovery_fusion.core: Wave scheduling and evaluation pipeline.

This package provides the stages a plan request moves through:
- Command catalog construction and duplicate suppression
- Wave dependency inference and window overlap
- Scheduling of healthy waves
- Readiness profiling and SLO verdicts
- Bundle evaluation and the coordination entry point
"""

from .coordinator import (
    CoordinationReport,
    CoordinatorState,
    coordinate_fusion_bundle,
)
from .planner import build_bundle, plan_fusion_bundle

__all__ = [
    "CoordinationReport",
    "CoordinatorState",
    "build_bundle",
    "coordinate_fusion_bundle",
    "plan_fusion_bundle",
]
