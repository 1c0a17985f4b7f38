"""
Coordination entry point.

Accepts a raw plan request, builds its bundle and chains the catalog,
schedule, telemetry and evaluation stages into an accept/reject decision.
Every stage failure, returned or raised, ends the run with a rejection
carrying the error message; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from recovery_fusion.analysis.topology_analysis import (
    TopologyAnalyzer,
    TopologySummary,
    derive_topology,
)
from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.core.catalog import CommandCatalog, build_command_catalog
from recovery_fusion.core.coordination import (
    CoordinationWindow,
    build_coordination_window,
    infer_dependencies,
)
from recovery_fusion.core.evaluator import BundleEvaluation, evaluate_bundle
from recovery_fusion.core.planner import build_bundle, estimate_minutes
from recovery_fusion.core.schedule import ScheduleResult, schedule_bundle
from recovery_fusion.domain.errors import FusionError
from recovery_fusion.domain.identifiers import BundleId
from recovery_fusion.domain.models import FusionBundle, RiskBand
from recovery_fusion.domain.request import parse_plan_request
from recovery_fusion.domain.results import FusionPlanResult, Result, fail, ok
from recovery_fusion.interfaces.sinks import FusionSinks
from recovery_fusion.reporting.telemetry import (
    FusionMetric,
    FusionTelemetrySnapshot,
    build_telemetry_snapshot,
    metric,
)
from recovery_fusion.utils.logging_config import (
    LoggerAdapter,
    configure_run_logging,
    get_logger,
)

logger = get_logger(__name__)


class CoordinatorState(Enum):
    """Lifecycle state of one coordination run."""

    QUEUED = "queued"
    WARMING = "warming"
    RUNNING = "running"
    REVIEW = "review"
    FAILED = "failed"

    def can_transition_to(self, target: CoordinatorState) -> bool:
        """
        Check whether a transition is allowed.

        :param target: Desired next state
        :type target: CoordinatorState
        :return: True if the transition is valid
        :rtype: bool
        """
        return target in _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        """True for review and failed."""
        return not _TRANSITIONS[self]


_TRANSITIONS: dict[CoordinatorState, frozenset[CoordinatorState]] = {
    CoordinatorState.QUEUED: frozenset({CoordinatorState.WARMING, CoordinatorState.FAILED}),
    CoordinatorState.WARMING: frozenset(
        {CoordinatorState.RUNNING, CoordinatorState.REVIEW, CoordinatorState.FAILED}
    ),
    CoordinatorState.RUNNING: frozenset({CoordinatorState.REVIEW, CoordinatorState.FAILED}),
    CoordinatorState.REVIEW: frozenset(),
    CoordinatorState.FAILED: frozenset(),
}


class CoordinatorWorkspace:
    """
    Mutable state holder of a single coordination run.

    Only the coordinator writes to the workspace; the bundle and every
    stage output stay immutable.
    """

    def __init__(self) -> None:
        self.state = CoordinatorState.QUEUED
        self.history: list[CoordinatorState] = [CoordinatorState.QUEUED]
        self.metrics: list[FusionMetric] = []

    def transition(self, target: CoordinatorState) -> None:
        """
        Move to a new state.

        Transitions to the current state are ignored.

        :param target: Desired next state
        :type target: CoordinatorState
        :raises ValueError: If the transition is not allowed
        """
        if target == self.state:
            return
        if not self.state.can_transition_to(target):
            raise ValueError(
                f"Invalid coordinator transition {self.state.value} -> {target.value}"
            )
        self.state = target
        self.history.append(target)


@dataclass(frozen=True)
class PipelineOutput:
    """Outputs of every coordination stage for one bundle."""

    catalog: CommandCatalog
    schedule: ScheduleResult
    topology: TopologySummary
    coordination: CoordinationWindow
    evaluation: BundleEvaluation


@dataclass(frozen=True)
class CoordinationReport:
    """
    Decision and diagnostics of one coordination run.

    Attributes:
        result: Accept/reject decision
        state: Final coordinator state (review or failed)
        history: Every state the run went through, in order
        bundle: Bundle coordinated (None when the request was rejected)
        pipeline: Stage outputs (None when a stage failed)
        telemetry: Telemetry snapshot (None when the request was rejected)
        warnings: Non-fatal intake and readiness findings
    """

    result: FusionPlanResult
    state: CoordinatorState
    history: tuple[CoordinatorState, ...]
    bundle: FusionBundle | None = None
    pipeline: PipelineOutput | None = None
    telemetry: FusionTelemetrySnapshot | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def accepted(self) -> bool:
        """Whether the plan was accepted."""
        return self.result.accepted

    def to_dict(self) -> dict[str, Any]:
        """Summarize for audit output."""
        return {
            "result": self.result.to_dict(),
            "state": self.state.value,
            "history": [state.value for state in self.history],
            "warnings": list(self.warnings),
            "telemetry": self.telemetry.to_dict() if self.telemetry else None,
        }


def _run_pipeline(
    bundle: FusionBundle,
    config: EngineConfig,
    workspace: CoordinatorWorkspace,
    log: logging.LoggerAdapter,
) -> Result[PipelineOutput]:
    catalog = build_command_catalog(bundle)
    log.info("Catalog stage produced %s", catalog.describe())

    scheduled = schedule_bundle(bundle, config)
    if not scheduled.ok:
        return scheduled
    schedule = scheduled.unwrap()
    if schedule.critical_wave_ids:
        log.info(
            "Holding in warming for critical waves %s",
            ", ".join(str(wave_id) for wave_id in schedule.critical_wave_ids),
        )
    else:
        workspace.transition(CoordinatorState.RUNNING)

    dependencies = infer_dependencies(bundle.waves)
    topology = TopologyAnalyzer.analyze(derive_topology(bundle, catalog, dependencies))
    coordination = build_coordination_window(bundle, config, topology.density)
    workspace.metrics.extend(_collect_metrics(bundle, catalog, schedule, topology, coordination))
    log.info("Telemetry stage collected %d metrics", len(workspace.metrics))

    evaluated = evaluate_bundle(bundle, config, topology.density, schedule.priority_matrix)
    if not evaluated.ok:
        return evaluated
    evaluation = evaluated.unwrap()
    workspace.metrics.extend(
        [
            metric("evaluation.score", evaluation.score, bundle=bundle.id),
            metric("evaluation.risks", len(evaluation.risks), bundle=bundle.id),
            metric("slo.score", evaluation.slo.score, bundle=bundle.id),
        ]
    )
    return ok(
        PipelineOutput(
            catalog=catalog,
            schedule=schedule,
            topology=topology,
            coordination=coordination,
            evaluation=evaluation,
        )
    )


def _collect_metrics(
    bundle: FusionBundle,
    catalog: CommandCatalog,
    schedule: ScheduleResult,
    topology: TopologySummary,
    coordination: CoordinationWindow,
) -> list[FusionMetric]:
    metrics = [
        metric("wave.count", len(bundle.waves), bundle=bundle.id),
        metric("signal.count", len(bundle.signals), bundle=bundle.id),
        metric("catalog.entries", len(catalog.entries), bundle=bundle.id),
        metric("catalog.suppressed", catalog.duplicates_suppressed, bundle=bundle.id),
        metric("schedule.windows", len(schedule.windows), bundle=bundle.id),
        metric("schedule.command_density", schedule.command_density, bundle=bundle.id),
        metric("schedule.critical_waves", len(schedule.critical_wave_ids), bundle=bundle.id),
        metric("topology.density", topology.density, bundle=bundle.id),
        metric("topology.diameter", topology.diameter, bundle=bundle.id),
        metric("coordination.overlap_seconds", coordination.overlap_seconds, bundle=bundle.id),
    ]
    metrics.extend(
        metric(
            "window.duration_seconds",
            window.duration_seconds,
            bundle=bundle.id,
            wave=window.wave_id,
        )
        for window in schedule.windows
    )
    return metrics


def _decide(
    bundle: FusionBundle, output: PipelineOutput, config: EngineConfig
) -> FusionPlanResult:
    risks = output.evaluation.risks
    reasons = (*risks, output.topology.describe(), output.catalog.describe())
    return FusionPlanResult(
        accepted=len(reasons) > 0,
        bundle_id=bundle.id,
        wave_count=len(bundle.waves),
        estimated_minutes=estimate_minutes(len(bundle.waves), config),
        risk_band=RiskBand.RED if risks else RiskBand.GREEN,
        reasons=reasons,
    )


def _warnings(output: PipelineOutput | None) -> tuple[str, ...]:
    if output is None:
        return ()
    warnings = list(output.evaluation.slo.breaches)
    if output.coordination.blocking_wave_id is not None:
        warnings.append(f"blocking-wave:{output.coordination.blocking_wave_id}")
    if not output.coordination.is_ready:
        warnings.append("coordination-not-ready")
    return tuple(warnings)


async def _notify_sinks(
    sinks: FusionSinks,
    bundle: FusionBundle,
    result: FusionPlanResult,
    snapshot: FusionTelemetrySnapshot,
) -> None:
    if sinks.persistence is not None:
        await sinks.persistence.save(bundle, result)
    if sinks.audit is not None:
        await sinks.audit.record(result)
    if sinks.telemetry is not None:
        await sinks.telemetry.publish(snapshot)


async def coordinate_fusion_bundle(
    raw_request: dict[str, Any],
    config: EngineConfig | None = None,
    sinks: FusionSinks | None = None,
    now: datetime | None = None,
) -> CoordinationReport:
    """
    Coordinate a raw plan request into an accept/reject decision.

    The request is parsed and turned into a bundle, which then goes through
    the catalog, schedule, telemetry and evaluation stages. Sinks are
    invoked once the decision exists; a rejected request reaches no sink.

    :param raw_request: Raw plan request with camelCase keys
    :type raw_request: dict[str, Any]
    :param config: Engine configuration (defaults when None)
    :type config: EngineConfig | None
    :param sinks: External sinks to notify
    :type sinks: FusionSinks | None
    :param now: Reference time for bundle construction
    :type now: datetime | None
    :return: Decision and diagnostics
    :rtype: CoordinationReport

    Example:
        >>> report = asyncio.run(coordinate_fusion_bundle(raw_request))
        >>> report.state
        <CoordinatorState.REVIEW: 'review'>
    """
    config = config or EngineConfig()
    workspace = CoordinatorWorkspace()

    parsed = parse_plan_request(raw_request)
    if not parsed.ok:
        logger.warning("Rejected plan request: %s", parsed.message)
        workspace.transition(CoordinatorState.FAILED)
        return CoordinationReport(
            result=FusionPlanResult.rejected(BundleId(""), (parsed.message,)),
            state=workspace.state,
            history=tuple(workspace.history),
        )
    request = parsed.unwrap()

    bundle = build_bundle(request, config, now)
    base_logger = (
        configure_run_logging(str(request.run_id), config.log_level, config.run_log_dir)
        if config.run_log_dir
        else logger
    )
    log = LoggerAdapter(base_logger, {"run_id": request.run_id, "bundle_id": bundle.id})

    workspace.transition(CoordinatorState.WARMING)
    try:
        outcome = _run_pipeline(bundle, config, workspace, log)
    except FusionError as e:
        outcome = fail(e)

    if outcome.ok:
        output = outcome.unwrap()
        result = _decide(bundle, output, config)
    else:
        output = None
        log.warning("Coordination failed: %s", outcome.message)
        result = FusionPlanResult.rejected(
            bundle.id, (outcome.message,), wave_count=len(bundle.waves)
        )
    workspace.transition(
        CoordinatorState.REVIEW if result.accepted else CoordinatorState.FAILED
    )

    snapshot = build_telemetry_snapshot(bundle, result, workspace.metrics)
    if sinks is not None:
        await _notify_sinks(sinks, bundle, result, snapshot)

    log.info(
        "Decision: accepted=%s risk=%s state=%s",
        result.accepted,
        result.risk_band.value,
        workspace.state.value,
    )
    return CoordinationReport(
        result=result,
        state=workspace.state,
        history=tuple(workspace.history),
        bundle=bundle,
        pipeline=output,
        telemetry=snapshot,
        warnings=request.warnings + _warnings(output),
    )
