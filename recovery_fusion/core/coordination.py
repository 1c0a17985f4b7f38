"""
Wave coordination and dependency inference.

Dependencies between waves are inferred from their position in the bundle
(each wave depends on the one before it); they are not derived from
declared data dependencies. Temporal relations come from the wave windows:
overlap is accumulated with a sweep line, and each wave's predecessors and
successors are the waves that end before it starts or start after it ends.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import BundleId, PlanId, RunId, WaveId
from recovery_fusion.domain.models import FusionBundle, FusionWave
from recovery_fusion.scoring.risk import calculate_risk_vector
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp

logger = get_logger(__name__)

MIN_CRITICALITY = 0.1
MIN_PLAN_CONFIDENCE = 0.1
STRONG_EVIDENCE_CONFIDENCE = 0.75
STRONG_EVIDENCE_REASON = "strong dependency evidence"
HEURISTIC_REASON = "heuristic ordering"


@dataclass(frozen=True)
class WaveWindow:
    """Execution window of one wave."""

    wave_id: WaveId
    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        """Window length in seconds."""
        return (self.end - self.start).total_seconds()

    @classmethod
    def from_wave(cls, wave: FusionWave) -> WaveWindow:
        """Window exactly as declared on the wave."""
        return cls(wave_id=wave.id, start=wave.window_start, end=wave.window_end)


@dataclass(frozen=True)
class WaveDependency:
    """
    Inferred dependency between two consecutive waves.

    Attributes:
        source: Wave that must run first
        target: Wave that depends on ``source``
        criticality: Mean score of both waves, clamped to [0.1, 1]
    """

    source: WaveId
    target: WaveId
    criticality: float


@dataclass(frozen=True)
class DependencyPlan:
    """
    Temporal dependency plan of one wave.

    Attributes:
        wave_id: Wave the plan belongs to
        required_before: Waves whose window ends before this one starts
        blocks: Waves whose window starts after this one ends
        confidence: Confidence in the plan in [0.1, 1]
        reason: ``strong dependency evidence`` or ``heuristic ordering``
    """

    wave_id: WaveId
    required_before: tuple[WaveId, ...]
    blocks: tuple[WaveId, ...]
    confidence: float
    reason: str


@dataclass(frozen=True)
class CoordinationWindow:
    """
    Coordination view of a bundle.

    Attributes:
        bundle_id: Bundle coordinated
        plan_id: Plan of the bundle
        run_id: Run of the bundle
        windows: Declared wave windows
        dependencies: Chain dependencies in wave order
        dependency_plans: Per-wave temporal plans in wave order
        overlap_seconds: Total overlapping window time
        is_ready: Whether the bundle may be coordinated as is
        blocking_wave_id: Critical path bottleneck, if any
    """

    bundle_id: BundleId
    plan_id: PlanId
    run_id: RunId
    windows: tuple[WaveWindow, ...]
    dependencies: tuple[WaveDependency, ...]
    dependency_plans: tuple[DependencyPlan, ...]
    overlap_seconds: float
    is_ready: bool
    blocking_wave_id: WaveId | None = None

    @property
    def overlap_minutes(self) -> float:
        """Total overlap in minutes."""
        return self.overlap_seconds / 60.0


def infer_dependencies(waves: Sequence[FusionWave]) -> tuple[WaveDependency, ...]:
    """
    Chain each wave to the wave before it.

    :param waves: Waves in bundle order
    :type waves: Sequence[FusionWave]
    :return: ``len(waves) - 1`` dependencies (none for fewer than two waves)
    :rtype: tuple[WaveDependency, ...]
    """
    dependencies = []
    for previous, current in zip(waves, waves[1:]):
        dependencies.append(
            WaveDependency(
                source=previous.id,
                target=current.id,
                criticality=clamp((current.score + previous.score) / 2, MIN_CRITICALITY, 1.0),
            )
        )
    return tuple(dependencies)


def compute_window_overlap(windows: Sequence[WaveWindow]) -> float:
    """
    Total overlapping seconds across windows.

    Windows are swept in start order while tracking the furthest end seen
    so far; each window contributes the part of it that lies before that
    running end.

    :param windows: Windows in any order
    :type windows: Sequence[WaveWindow]
    :return: Overlap in seconds
    :rtype: float

    Example:
        Windows [10:00, 10:30] and [10:15, 10:45] overlap by 900 seconds.
    """
    ordered = sorted(windows, key=lambda window: window.start)
    if not ordered:
        return 0.0

    overlap = 0.0
    max_end = ordered[0].end
    for window in ordered[1:]:
        if window.start < max_end:
            overlap += max(0.0, (min(window.end, max_end) - window.start).total_seconds())
        if window.end > max_end:
            max_end = window.end
    return overlap


def _signal_density(wave: FusionWave, bundle: FusionBundle) -> float:
    total = len(bundle.signals)
    if total == 0:
        return 0.0
    return clamp(len(wave.readiness_signals) / total)


def build_dependency_plans(
    bundle: FusionBundle, topology_density: float = 0.0
) -> tuple[DependencyPlan, ...]:
    """
    Build the temporal dependency plan of every wave.

    :param bundle: Bundle to plan
    :type bundle: FusionBundle
    :param topology_density: Topology density used for the wave risk index
    :type topology_density: float
    :return: One plan per wave in bundle order
    :rtype: tuple[DependencyPlan, ...]
    """
    plans = []
    for wave in bundle.waves:
        required_before = tuple(
            other.id
            for other in bundle.waves
            if other.id != wave.id and other.window_end < wave.window_start
        )
        blocks = tuple(
            other.id
            for other in bundle.waves
            if other.id != wave.id and other.window_start > wave.window_end
        )
        risk = calculate_risk_vector(wave.readiness_signals, topology_density).risk_index
        confidence = clamp(
            1
            - abs(_signal_density(wave, bundle) - 0.5) * 0.2
            + (1 - risk) * 0.5
            + wave.score * 0.2,
            MIN_PLAN_CONFIDENCE,
            1.0,
        )
        plans.append(
            DependencyPlan(
                wave_id=wave.id,
                required_before=required_before,
                blocks=blocks,
                confidence=confidence,
                reason=(
                    STRONG_EVIDENCE_REASON
                    if confidence > STRONG_EVIDENCE_CONFIDENCE
                    else HEURISTIC_REASON
                ),
            )
        )
    return tuple(plans)


def find_blocking_wave(plans: Sequence[DependencyPlan]) -> WaveId | None:
    """
    Find the critical path bottleneck.

    A wave is a bottleneck when more waves gate it than it gates, by a
    margin of more than one. Among several candidates the one with the
    widest margin wins, earlier waves winning ties.

    :param plans: Dependency plans in bundle order
    :type plans: Sequence[DependencyPlan]
    :return: Bottleneck wave id or None
    :rtype: WaveId | None
    """
    blocking: DependencyPlan | None = None
    for plan in plans:
        if len(plan.required_before) <= len(plan.blocks) + 1:
            continue
        margin = len(plan.required_before) - len(plan.blocks)
        if blocking is None or margin > len(blocking.required_before) - len(blocking.blocks):
            blocking = plan
    return blocking.wave_id if blocking else None


def build_coordination_window(
    bundle: FusionBundle, config: EngineConfig, topology_density: float = 0.0
) -> CoordinationWindow:
    """
    Build the coordination view of a bundle.

    The bundle is ready when every dependency is more critical than
    ``config.min_dependency_criticality``, total overlap stays below
    ``config.max_overlap_minutes`` and at least one signal exists.

    :param bundle: Bundle to coordinate
    :type bundle: FusionBundle
    :param config: Engine configuration
    :type config: EngineConfig
    :param topology_density: Topology density used for the wave risk index
    :type topology_density: float
    :return: Coordination window
    :rtype: CoordinationWindow
    """
    windows = tuple(WaveWindow.from_wave(wave) for wave in bundle.waves)
    dependencies = infer_dependencies(bundle.waves)
    plans = build_dependency_plans(bundle, topology_density)
    overlap = compute_window_overlap(windows)
    has_signals = bool(bundle.signals) or any(
        wave.readiness_signals for wave in bundle.waves
    )
    is_ready = (
        all(dep.criticality > config.min_dependency_criticality for dep in dependencies)
        and overlap < config.max_overlap_minutes * 60
        and has_signals
    )
    blocking = find_blocking_wave(plans)
    if blocking is not None:
        logger.warning("Wave %s is a critical path bottleneck", blocking)
    logger.debug(
        "Coordination for bundle %s: %d dependencies, %.0fs overlap, ready=%s",
        bundle.id,
        len(dependencies),
        overlap,
        is_ready,
    )
    return CoordinationWindow(
        bundle_id=bundle.id,
        plan_id=bundle.plan_id,
        run_id=bundle.run_id,
        windows=windows,
        dependencies=dependencies,
        dependency_plans=plans,
        overlap_seconds=overlap,
        is_ready=is_ready,
        blocking_wave_id=blocking,
    )
