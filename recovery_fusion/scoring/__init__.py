"""
Scoring modules for the recovery fusion engine.

This package provides the risk vector calculation and the wave priority
matrix.
"""

from recovery_fusion.scoring.priority import (
    PriorityBand,
    WavePriorityEntry,
    WavePriorityMatrix,
    build_priority_matrix,
)
from recovery_fusion.scoring.risk import RiskVector, calculate_risk_vector

__all__ = [
    "PriorityBand",
    "RiskVector",
    "WavePriorityEntry",
    "WavePriorityMatrix",
    "build_priority_matrix",
    "calculate_risk_vector",
]
