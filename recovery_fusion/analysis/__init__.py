"""
Analysis modules for recovery fusion bundles.

This package provides the topology analyzer and the derivation of a
bundle's workload topology from its command catalog.
"""

from recovery_fusion.analysis.topology_analysis import (
    TopologyAnalyzer,
    TopologySummary,
    derive_topology,
)

__all__ = ["TopologyAnalyzer", "TopologySummary", "derive_topology"]
