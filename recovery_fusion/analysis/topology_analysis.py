"""
Topology analysis for recovery fusion bundles.

Provides normalization of the workload topology and the graph metrics used
to weigh risk: density, diameter, centrality hotspots, average latency and
a best-effort dependency ordering.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from recovery_fusion.domain.topology import FusionTopology, TopologyEdge, TopologyNode
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp, safe_mean

if TYPE_CHECKING:
    from recovery_fusion.core.catalog import CommandCatalog
    from recovery_fusion.core.coordination import WaveDependency
    from recovery_fusion.domain.models import FusionBundle

logger = get_logger(__name__)

HOTSPOT_COUNT = 3
SOURCE_NODE_PREFIX = "source:"


@dataclass(frozen=True)
class TopologySummary:
    """
    Graph metrics of a normalized topology.

    Attributes:
        diameter: Longest finite shortest-path hop count
        density: Directed edge density in [0, 1]
        centrality_hotspots: Up to three most connected node ids
        average_latency_ms: Mean edge latency, 0.0 without edges
        dependency_order: Best-effort linearization containing every node once
        node_count: Number of nodes after normalization
        edge_count: Number of edges after normalization
    """

    diameter: int
    density: float
    centrality_hotspots: tuple[str, ...]
    average_latency_ms: float
    dependency_order: tuple[str, ...]
    node_count: int
    edge_count: int

    def describe(self) -> str:
        """One-line summary used in decision reasons."""
        return (
            f"topology:nodes={self.node_count},edges={self.edge_count},"
            f"density={self.density:.2f},diameter={self.diameter}"
        )


class TopologyAnalyzer:
    """
    Analyzes workload topologies.

    All methods are pure; the analyzer holds no state between calls.
    """

    @staticmethod
    def normalize_topology(topology: FusionTopology) -> FusionTopology:
        """
        Normalize a raw topology.

        Labels are trimmed (falling back to the id), parent/child lists are
        deduplicated in order, weights clamped to [0, 1], edges referencing
        unknown nodes dropped, latency clamped to at least 1 ms and risk
        penalty to at least 0. Duplicate edges are kept.

        :param topology: Raw topology
        :type topology: FusionTopology
        :return: Normalized topology
        :rtype: FusionTopology
        """
        nodes = []
        seen_ids: set[str] = set()
        for node in topology.nodes:
            if node.id in seen_ids:
                continue
            seen_ids.add(node.id)
            nodes.append(
                TopologyNode(
                    id=node.id,
                    label=node.label.strip() or node.id,
                    weight=clamp(node.weight),
                    parents=tuple(dict.fromkeys(node.parents)),
                    children=tuple(dict.fromkeys(node.children)),
                )
            )

        edges = []
        dropped = 0
        for edge in topology.edges:
            if edge.source not in seen_ids or edge.target not in seen_ids:
                dropped += 1
                continue
            edges.append(
                TopologyEdge(
                    source=edge.source,
                    target=edge.target,
                    latency_ms=max(1.0, edge.latency_ms),
                    risk_penalty=max(0.0, edge.risk_penalty),
                )
            )

        if dropped:
            logger.debug("Dropped %d edges referencing unknown nodes", dropped)
        return FusionTopology(nodes=tuple(nodes), edges=tuple(edges))

    @staticmethod
    def build_graph(topology: FusionTopology) -> nx.MultiDiGraph:
        """
        Build a directed multigraph from a normalized topology.

        A multigraph is used so that duplicate edges are counted.

        :param topology: Normalized topology
        :type topology: FusionTopology
        :return: Graph with node weights and edge latency/penalty attributes
        :rtype: nx.MultiDiGraph
        """
        graph = nx.MultiDiGraph()
        for node in topology.nodes:
            graph.add_node(node.id, label=node.label, weight=node.weight)
        for edge in topology.edges:
            graph.add_edge(
                edge.source,
                edge.target,
                latency_ms=edge.latency_ms,
                risk_penalty=edge.risk_penalty,
            )
        return graph

    @staticmethod
    def compute_density(graph: nx.MultiDiGraph) -> float:
        """
        Directed density ``|E| / (|V| * (|V| - 1))`` clamped to 1.

        Duplicate edges are counted, so the value can saturate before the
        graph is complete.

        :param graph: Topology graph
        :type graph: nx.MultiDiGraph
        :return: Density in [0, 1], 0.0 for fewer than two nodes
        :rtype: float
        """
        node_count = graph.number_of_nodes()
        if node_count < 2:
            return 0.0
        return clamp(graph.number_of_edges() / (node_count * (node_count - 1)))

    @staticmethod
    def compute_diameter(graph: nx.MultiDiGraph) -> int:
        """
        Longest finite shortest-path hop count over all ordered node pairs.

        Pairs without a path are excluded rather than treated as infinite.

        :param graph: Topology graph
        :type graph: nx.MultiDiGraph
        :return: Diameter in hops, 0 when no pair is connected
        :rtype: int
        """
        diameter = 0
        for node in graph.nodes:
            lengths = nx.single_source_shortest_path_length(graph, node)
            if lengths:
                diameter = max(diameter, max(lengths.values()))
        return diameter

    @staticmethod
    def centrality_hotspots(
        graph: nx.MultiDiGraph, count: int = HOTSPOT_COUNT
    ) -> tuple[str, ...]:
        """
        Most connected nodes by in-degree plus out-degree.

        Ties are broken by ascending node id.

        :param graph: Topology graph
        :type graph: nx.MultiDiGraph
        :param count: Number of hotspots to return
        :type count: int
        :return: Hotspot node ids
        :rtype: tuple[str, ...]
        """
        ranked = sorted(
            graph.nodes,
            key=lambda node: (-(graph.in_degree(node) + graph.out_degree(node)), node),
        )
        return tuple(ranked[:count])

    @staticmethod
    def average_latency(graph: nx.MultiDiGraph) -> float:
        """Mean edge latency in milliseconds."""
        return safe_mean(
            latency for _, _, latency in graph.edges(data="latency_ms", default=1.0)
        )

    @staticmethod
    def dependency_order(graph: nx.MultiDiGraph) -> tuple[str, ...]:
        """
        Best-effort dependency linearization.

        Phase one is Kahn's algorithm seeded with zero in-degree nodes in
        insertion order. Phase two appends every node phase one could not
        reach (members of cycles and anything downstream of them) in
        insertion order. Cyclic graphs therefore still yield a complete
        ordering, but it is not a valid topological order.

        :param graph: Topology graph
        :type graph: nx.MultiDiGraph
        :return: Every node id exactly once
        :rtype: tuple[str, ...]
        """
        remaining = {node: graph.in_degree(node) for node in graph.nodes}
        queue = deque(node for node in graph.nodes if remaining[node] == 0)
        ordered: list[str] = []
        visited: set[str] = set()

        while queue:
            node = queue.popleft()
            if node in visited:
                continue
            visited.add(node)
            ordered.append(node)
            for _, child in graph.out_edges(node):
                remaining[child] -= 1
                if remaining[child] == 0 and child not in visited:
                    queue.append(child)

        orphans = [node for node in graph.nodes if node not in visited]
        if orphans:
            logger.debug(
                "Appending %d nodes unreachable from zero in-degree seeds", len(orphans)
            )
        return tuple(ordered + orphans)

    @classmethod
    def analyze(cls, topology: FusionTopology) -> TopologySummary:
        """
        Normalize a topology and compute all of its metrics.

        :param topology: Raw topology
        :type topology: FusionTopology
        :return: Topology summary
        :rtype: TopologySummary
        """
        normalized = cls.normalize_topology(topology)
        graph = cls.build_graph(normalized)
        summary = TopologySummary(
            diameter=cls.compute_diameter(graph),
            density=cls.compute_density(graph),
            centrality_hotspots=cls.centrality_hotspots(graph),
            average_latency_ms=cls.average_latency(graph),
            dependency_order=cls.dependency_order(graph),
            node_count=graph.number_of_nodes(),
            edge_count=graph.number_of_edges(),
        )
        logger.debug(
            "Analyzed topology with %d nodes, %d edges, density %.3f",
            summary.node_count,
            summary.edge_count,
            summary.density,
        )
        return summary


def derive_topology(
    bundle: FusionBundle,
    catalog: CommandCatalog,
    dependencies: Sequence[WaveDependency] = (),
) -> FusionTopology:
    """
    Derive the workload topology of a bundle from its command catalog.

    Nodes are the bundle's waves plus one node per signal source. Each
    distinct (source, wave) pair in the catalog becomes a source-to-wave
    edge, and each wave dependency a wave-to-wave edge.

    :param bundle: Bundle being evaluated
    :type bundle: FusionBundle
    :param catalog: Command catalog of the bundle
    :type catalog: CommandCatalog
    :param dependencies: Chain dependencies between waves
    :type dependencies: Sequence[WaveDependency]
    :return: Raw (not yet normalized) topology
    :rtype: FusionTopology
    """
    wave_scores: dict[str, list[float]] = {str(wave.id): [] for wave in bundle.waves}
    pair_scores: dict[tuple[str, str], list[float]] = {}
    for entry in catalog.entries:
        wave_key = str(entry.wave_id)
        wave_scores.setdefault(wave_key, []).append(entry.action_score)
        pair_scores.setdefault((SOURCE_NODE_PREFIX + entry.source, wave_key), []).append(
            entry.action_score
        )

    parents: dict[str, list[str]] = {}
    children: dict[str, list[str]] = {}
    edges: list[TopologyEdge] = []
    durations = {str(wave.id): wave.duration_seconds for wave in bundle.waves}

    for (source_node, wave_key), scores in pair_scores.items():
        edges.append(
            TopologyEdge(
                source=source_node,
                target=wave_key,
                latency_ms=max(1.0, durations.get(wave_key, 0.0) * 1000 / len(scores)),
                risk_penalty=1 - safe_mean(scores),
            )
        )
        children.setdefault(source_node, []).append(wave_key)
        parents.setdefault(wave_key, []).append(source_node)

    for dependency in dependencies:
        upstream, downstream = str(dependency.source), str(dependency.target)
        edges.append(
            TopologyEdge(
                source=upstream,
                target=downstream,
                latency_ms=max(1.0, durations.get(upstream, 0.0) * 1000),
                risk_penalty=1 - dependency.criticality,
            )
        )
        children.setdefault(upstream, []).append(downstream)
        parents.setdefault(downstream, []).append(upstream)

    source_scores: dict[str, list[float]] = {}
    for (source_node, _), scores in pair_scores.items():
        source_scores.setdefault(source_node, []).extend(scores)

    nodes = [
        TopologyNode(
            id=source_node,
            label=source_node[len(SOURCE_NODE_PREFIX):],
            weight=safe_mean(scores),
            children=tuple(children.get(source_node, ())),
        )
        for source_node, scores in source_scores.items()
    ]
    nodes.extend(
        TopologyNode(
            id=wave_key,
            label=wave_key,
            weight=safe_mean(scores) if scores else 0.5,
            parents=tuple(parents.get(wave_key, ())),
            children=tuple(children.get(wave_key, ())),
        )
        for wave_key, scores in wave_scores.items()
    )
    return FusionTopology(nodes=tuple(nodes), edges=tuple(edges))
