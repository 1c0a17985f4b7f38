"""
Bundle construction and quick planning.

Turns a validated plan request into an immutable ``FusionBundle`` and
provides the quick-plan path that ranks the request's signals without
running the full coordination pipeline.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import (
    BundleId,
    CommandId,
    SessionId,
    TicketId,
    WaveId,
)
from recovery_fusion.domain.models import (
    CommandAction,
    FusionBundle,
    FusionCommand,
    FusionSession,
    FusionWave,
    RiskBand,
    WaveState,
)
from recovery_fusion.domain.request import FusionPlanRequest
from recovery_fusion.domain.results import FusionPlanResult, Result, ok
from recovery_fusion.scoring.risk import determine_risk_band, rank_signals
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp
from recovery_fusion.utils.timeutil import utc_now

logger = get_logger(__name__)

PLANNER_ACTOR = "planner"
DEFAULT_OWNER_TEAM = "recovery-team"
DEFAULT_WAVE_SIGNALS = 2
HIGH_RANK_THRESHOLD = 0.7


def bundle_id_for(request: FusionPlanRequest) -> BundleId:
    """Bundle id derived from the request's run id."""
    return BundleId(f"{request.run_id}:bundle")


def build_default_wave(
    request: FusionPlanRequest, index: int, now: datetime | None = None
) -> FusionWave:
    """
    Synthesize a one-minute wave for a request that proposes none.

    The first wave starts warming, later waves idle. Even waves start work
    and odd waves verify it. Each wave carries one planner command and the
    first two request signals as readiness evidence.

    :param request: Validated plan request
    :type request: FusionPlanRequest
    :param index: Position of the wave in the bundle
    :type index: int
    :param now: Reference time (current time when None)
    :type now: datetime | None
    :return: Synthesized wave
    :rtype: FusionWave
    """
    now = now or utc_now()
    wave_id = WaveId(f"{request.plan_id}:wave:{index}")
    command = FusionCommand(
        id=CommandId(f"{wave_id}:command"),
        wave_id=wave_id,
        step_key=f"step-{index}",
        action=CommandAction.START if index % 2 == 0 else CommandAction.VERIFY,
        actor=PLANNER_ACTOR,
        requested_at=now,
        rationale=f"auto-wave-{index}",
    )
    return FusionWave(
        id=wave_id,
        plan_id=request.plan_id,
        run_id=request.run_id,
        state=WaveState.WARMING if index == 0 else WaveState.IDLE,
        window_start=now + timedelta(minutes=index),
        window_end=now + timedelta(minutes=index + 1),
        commands=(command,),
        readiness_signals=request.signals[:DEFAULT_WAVE_SIGNALS],
        budget=request.budget,
        risk_band=RiskBand.AMBER if request.budget.max_parallelism >= 2 else RiskBand.RED,
        score=clamp(0.65 - index * 0.08),
        metadata={
            "createdBy": PLANNER_ACTOR,
            "priority": 40 + index,
            "confidence": clamp(0.7 + index * 0.06),
            "ownerTeam": DEFAULT_OWNER_TEAM,
        },
    )


def build_bundle(
    request: FusionPlanRequest, config: EngineConfig, now: datetime | None = None
) -> FusionBundle:
    """
    Build the bundle evaluated for a plan request.

    :param request: Validated plan request
    :type request: FusionPlanRequest
    :param config: Engine configuration
    :type config: EngineConfig
    :param now: Reference time (current time when None)
    :type now: datetime | None
    :return: New bundle
    :rtype: FusionBundle
    """
    now = now or utc_now()
    waves = request.waves or tuple(
        build_default_wave(request, index, now)
        for index in range(config.default_wave_count)
    )
    session = FusionSession(
        id=SessionId(f"{request.run_id}:session"),
        run_id=request.run_id,
        ticket_id=TicketId(f"{request.run_id}:ticket"),
        plan_id=request.plan_id,
        status="queued",
        created_at=now,
        constraints=request.budget,
    )
    bundle = FusionBundle(
        id=bundle_id_for(request),
        tenant=request.tenant or config.default_tenant,
        run_id=request.run_id,
        session=session,
        plan_id=request.plan_id,
        waves=tuple(waves),
        signals=request.signals,
        created_at=now,
        expires_at=now + timedelta(minutes=config.bundle_ttl_minutes),
    )
    logger.debug(
        "Built bundle %s with %d waves (%d synthesized)",
        bundle.id,
        len(bundle.waves),
        0 if request.waves else len(bundle.waves),
    )
    return bundle


def estimate_minutes(wave_count: int, config: EngineConfig) -> int:
    """Rough execution estimate for a number of waves."""
    return max(config.min_estimated_minutes, wave_count * config.minutes_per_wave)


def plan_fusion_bundle(
    request: FusionPlanRequest, config: EngineConfig
) -> Result[FusionPlanResult]:
    """
    Quick-plan a request from its signals alone.

    :param request: Validated plan request
    :type request: FusionPlanRequest
    :param config: Engine configuration
    :type config: EngineConfig
    :return: Accepted plan result with ranking reasons
    :rtype: Result[FusionPlanResult]
    """
    bundle = build_bundle(request, config)
    rank = rank_signals(bundle.signals)
    if rank > HIGH_RANK_THRESHOLD:
        reasons = ["priority-high", "converging-risk"]
    else:
        reasons = ["safe-band"]
    reasons.extend([f"signal-count:{len(request.signals)}", f"rank:{rank:.2f}"])
    logger.info("Quick-planned bundle %s at rank %.2f", bundle.id, rank)
    return ok(
        FusionPlanResult(
            accepted=True,
            bundle_id=bundle.id,
            wave_count=len(bundle.waves),
            estimated_minutes=estimate_minutes(len(bundle.waves), config),
            risk_band=determine_risk_band(bundle.signals),
            reasons=tuple(reasons),
        )
    )
