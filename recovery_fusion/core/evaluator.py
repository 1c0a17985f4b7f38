"""
Bundle evaluation.

Assembles priority, readiness and SLO results into one evaluation per wave
and an aggregate bundle score. Waves that cannot be evaluated are reported
as risks instead of failing the bundle; only a bundle without waves fails.
"""

from __future__ import annotations

from dataclasses import dataclass

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.core.readiness import (
    ReadinessProfile,
    SloVerdict,
    build_readiness_profile,
    evaluate_slo,
)
from recovery_fusion.domain.identifiers import BundleId, SignalId, WaveId
from recovery_fusion.domain.models import FusionBundle, FusionWave
from recovery_fusion.domain.results import Result, fail, ok
from recovery_fusion.scoring.priority import (
    WavePriorityEntry,
    WavePriorityMatrix,
    build_priority_matrix,
)
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import safe_mean

logger = get_logger(__name__)

EMPTY_BUNDLE = "empty bundle"


@dataclass(frozen=True)
class FusionEvaluation:
    """
    Evaluation of one wave.

    Attributes:
        wave_id: Wave evaluated
        score: Priority score of the wave
        severity: Mean severity of its readiness signals
        confidence: Mean confidence of its readiness signals
        readiness_delta: Wave readiness minus the bundle average
        recommended: Top contributing signals, best first
    """

    wave_id: WaveId
    score: float
    severity: float
    confidence: float
    readiness_delta: float
    recommended: tuple[SignalId, ...] = ()


@dataclass(frozen=True)
class BundleEvaluation:
    """
    Aggregate evaluation of a bundle.

    Attributes:
        bundle_id: Bundle evaluated
        evaluations: Wave evaluations, highest score first
        score: Mean evaluation score, 0.0 when no wave could be evaluated
        top_wave_id: Highest scoring evaluated wave
        risks: ``wave:<id>`` and ``low-score:<id>:<score>`` entries
        readiness: Readiness profile of the bundle
        slo: SLO verdict of the readiness profile
    """

    bundle_id: BundleId
    evaluations: tuple[FusionEvaluation, ...]
    score: float
    top_wave_id: WaveId | None
    risks: tuple[str, ...]
    readiness: ReadinessProfile
    slo: SloVerdict


def evaluate_wave(
    wave: FusionWave, priority: WavePriorityEntry, profile: ReadinessProfile
) -> Result[FusionEvaluation]:
    """
    Evaluate a single wave.

    :param wave: Wave to evaluate
    :type wave: FusionWave
    :param priority: Priority entry of the wave
    :type priority: WavePriorityEntry
    :param profile: Readiness profile of the bundle
    :type profile: ReadinessProfile
    :return: Wave evaluation, or a failure for a wave without commands
    :rtype: Result[FusionEvaluation]
    """
    if not wave.has_commands:
        return fail(f"no commands in wave {wave.id}")

    readiness = profile.get(wave.id)
    if readiness is None:
        return fail(f"no readiness for wave {wave.id}")

    return ok(
        FusionEvaluation(
            wave_id=wave.id,
            score=priority.score,
            severity=readiness.risk.severity,
            confidence=readiness.risk.confidence,
            readiness_delta=readiness.readiness - profile.average,
            recommended=priority.recommended,
        )
    )


def evaluate_bundle(
    bundle: FusionBundle,
    config: EngineConfig,
    topology_density: float = 0.0,
    matrix: WavePriorityMatrix | None = None,
) -> Result[BundleEvaluation]:
    """
    Evaluate every wave of a bundle.

    Waves are processed in priority order. A wave without commands is
    recorded as ``wave:<id>`` and one scoring below
    ``config.low_score_threshold`` as ``low-score:<id>:<score>``.

    :param bundle: Bundle to evaluate
    :type bundle: FusionBundle
    :param config: Engine configuration
    :type config: EngineConfig
    :param topology_density: Topology density used for risk indices
    :type topology_density: float
    :param matrix: Precomputed priority matrix (built when None)
    :type matrix: WavePriorityMatrix | None
    :return: Bundle evaluation, or ``empty bundle`` for a bundle without waves
    :rtype: Result[BundleEvaluation]
    """
    if bundle.is_empty:
        return fail(EMPTY_BUNDLE)

    if matrix is None:
        matrix = build_priority_matrix(bundle.waves, config)
    profile = build_readiness_profile(
        bundle,
        config,
        topology_density,
        {entry.wave_id: entry.score for entry in matrix.entries},
    )
    verdict = evaluate_slo(profile, config)

    evaluations: list[FusionEvaluation] = []
    risks: list[str] = []
    for entry in matrix.entries:
        wave = bundle.get_wave(entry.wave_id)
        if wave is None:
            continue
        result = evaluate_wave(wave, entry, profile)
        if not result.ok:
            logger.debug("Skipping wave %s: %s", wave.id, result.error)
            risks.append(f"wave:{wave.id}")
            continue
        evaluation = result.unwrap()
        if evaluation.score < config.low_score_threshold:
            risks.append(f"low-score:{wave.id}:{evaluation.score:.2f}")
        evaluations.append(evaluation)

    score = safe_mean(evaluation.score for evaluation in evaluations)
    top_wave_id = evaluations[0].wave_id if evaluations else None
    logger.info(
        "Evaluated bundle %s: %d waves, score %.3f, %d risks",
        bundle.id,
        len(evaluations),
        score,
        len(risks),
    )
    return ok(
        BundleEvaluation(
            bundle_id=bundle.id,
            evaluations=tuple(evaluations),
            score=score,
            top_wave_id=top_wave_id,
            risks=tuple(risks),
            readiness=profile,
            slo=verdict,
        )
    )
