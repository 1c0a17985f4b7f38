"""
Topology model for affected workloads.

The topology is derived per evaluation from the command catalog and is
never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TopologyNode:
    """
    Workload node in the fusion topology.

    Attributes:
        id: Node identifier
        label: Display label
        weight: Relative importance in [0, 1] after normalization
        parents: Ids of upstream nodes
        children: Ids of downstream nodes
    """

    id: str
    label: str = ""
    weight: float = 0.5
    parents: tuple[str, ...] = ()
    children: tuple[str, ...] = ()


@dataclass(frozen=True)
class TopologyEdge:
    """
    Directed edge between two topology nodes.

    Attributes:
        source: Upstream node id
        target: Downstream node id
        latency_ms: Propagation latency, at least 1 after normalization
        risk_penalty: Non-negative penalty for routing through the edge
    """

    source: str
    target: str
    latency_ms: float = 1.0
    risk_penalty: float = 0.0


@dataclass(frozen=True)
class FusionTopology:
    """Directed node/edge graph of affected workloads."""

    nodes: tuple[TopologyNode, ...] = ()
    edges: tuple[TopologyEdge, ...] = ()

    @property
    def node_ids(self) -> tuple[str, ...]:
        """Node ids in declaration order."""
        return tuple(node.id for node in self.nodes)

    def with_edge(self, edge: TopologyEdge) -> FusionTopology:
        """Return a copy with one more edge appended."""
        return FusionTopology(nodes=self.nodes, edges=self.edges + (edge,))
