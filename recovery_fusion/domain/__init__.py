"""
Recovery Fusion Domain Model Package.

This package contains the typed domain objects of the engine:
- Identifiers: Opaque per-kind identifier wrappers
- FusionSignal, FusionCommand, FusionWave, FusionBundle: Immutable model
- FusionTopology: Derived workload graph
- Ok / Fail: Result union returned by fallible operations
- FusionPlanRequest: Validated plan intake
"""

from recovery_fusion.domain.errors import (
    DecodeError,
    FusionError,
    RequestValidationError,
    StructuralError,
)
from recovery_fusion.domain.models import (
    CommandAction,
    FusionBundle,
    FusionCommand,
    FusionSession,
    FusionSignal,
    FusionWave,
    PlanBudget,
    RiskBand,
    WaveState,
)
from recovery_fusion.domain.results import Fail, FusionPlanResult, Ok, Result, fail, ok

__all__ = [
    "CommandAction",
    "DecodeError",
    "Fail",
    "FusionBundle",
    "FusionCommand",
    "FusionError",
    "FusionPlanResult",
    "FusionSession",
    "FusionSignal",
    "FusionWave",
    "Ok",
    "PlanBudget",
    "RequestValidationError",
    "Result",
    "RiskBand",
    "StructuralError",
    "WaveState",
    "fail",
    "ok",
]
