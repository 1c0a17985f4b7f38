"""
Readiness and SLO evaluation.

Per-wave stability is aggregated into a bundle readiness profile, which is
then checked against the configured SLO thresholds. Threshold violations
are reported as breach strings, never raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import BundleId, WaveId
from recovery_fusion.domain.models import FusionBundle, FusionWave
from recovery_fusion.scoring.risk import (
    RiskVector,
    calculate_risk_vector,
    normalize_signal_weight,
)
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp, safe_mean

logger = get_logger(__name__)

SEVERITY_DAMPING = 0.1
COMMAND_PRESSURE_WEIGHT = 0.2
SCORE_WEIGHT = 0.4


@dataclass(frozen=True)
class WaveReadiness:
    """
    Readiness of a single wave.

    Attributes:
        wave_id: Wave assessed
        readiness: Stability estimate in [0, 1]
        risk: Risk vector of the wave's readiness signals
        command_pressure: Command load in [0, 1]
    """

    wave_id: WaveId
    readiness: float
    risk: RiskVector
    command_pressure: float


@dataclass(frozen=True)
class ReadinessProfile:
    """
    Bundle-level aggregation of wave readiness.

    Attributes:
        bundle_id: Bundle assessed
        waves: Per-wave readiness in bundle order
        average: Mean readiness, 0.0 without waves
        minimum: Lowest readiness, 0.0 without waves
        maximum: Highest readiness, 0.0 without waves
        transition_stability: One minus the mean readiness jump between
            consecutive waves, 1.0 for fewer than two waves
        is_stable: Every wave and the average clear their floors
    """

    bundle_id: BundleId
    waves: tuple[WaveReadiness, ...]
    average: float
    minimum: float
    maximum: float
    transition_stability: float
    is_stable: bool

    def get(self, wave_id: WaveId) -> WaveReadiness | None:
        """Look up the readiness of a wave."""
        for wave in self.waves:
            if wave.wave_id == wave_id:
                return wave
        return None


@dataclass(frozen=True)
class SloVerdict:
    """Pass/fail judgment of a readiness profile."""

    passed: bool
    score: float
    breaches: tuple[str, ...] = ()


def command_pressure(wave: FusionWave, config: EngineConfig) -> float:
    """Command count relative to ``config.command_pressure_divisor``, clamped."""
    return clamp(len(wave.commands) / config.command_pressure_divisor)


def assess_wave(
    wave: FusionWave,
    config: EngineConfig,
    topology_density: float = 0.0,
    score: float | None = None,
) -> WaveReadiness:
    """
    Estimate how safe a wave is to execute now.

    :param wave: Wave to assess
    :type wave: FusionWave
    :param config: Engine configuration
    :type config: EngineConfig
    :param topology_density: Topology density used for the risk index
    :type topology_density: float
    :param score: Wave score to credit (the declared score when None)
    :type score: float | None
    :return: Wave readiness
    :rtype: WaveReadiness
    """
    risk = calculate_risk_vector(wave.readiness_signals, topology_density)
    pressure = command_pressure(wave, config)
    credited = wave.score if score is None else score
    readiness = clamp(
        1
        - risk.risk_index * normalize_signal_weight(risk.severity * SEVERITY_DAMPING)
        - pressure * COMMAND_PRESSURE_WEIGHT
        + credited * SCORE_WEIGHT
    )
    return WaveReadiness(
        wave_id=wave.id,
        readiness=readiness,
        risk=risk,
        command_pressure=pressure,
    )


def transition_stability(readiness: list[float]) -> float:
    """
    Smoothness of readiness across consecutive waves.

    :param readiness: Readiness values in wave order
    :type readiness: list[float]
    :return: ``1 - mean(|r_i - r_(i-1)|)``, 1.0 for fewer than two values
    :rtype: float
    """
    if len(readiness) < 2:
        return 1.0
    return clamp(1 - float(np.mean(np.abs(np.diff(readiness)))))


def build_readiness_profile(
    bundle: FusionBundle,
    config: EngineConfig,
    topology_density: float = 0.0,
    wave_scores: Mapping[WaveId, float] | None = None,
) -> ReadinessProfile:
    """
    Aggregate per-wave readiness into a bundle profile.

    :param bundle: Bundle to assess
    :type bundle: FusionBundle
    :param config: Engine configuration
    :type config: EngineConfig
    :param topology_density: Topology density used for the risk index
    :type topology_density: float
    :param wave_scores: Scores credited per wave, declared scores otherwise
    :type wave_scores: Mapping[WaveId, float] | None
    :return: Readiness profile
    :rtype: ReadinessProfile
    """
    scores = wave_scores or {}
    waves = tuple(
        assess_wave(wave, config, topology_density, scores.get(wave.id))
        for wave in bundle.waves
    )
    values = [wave.readiness for wave in waves]
    average = safe_mean(values)
    minimum = min(values, default=0.0)
    maximum = max(values, default=0.0)
    is_stable = (
        bool(waves)
        and all(value > config.min_wave_readiness for value in values)
        and average > config.min_average_readiness
    )
    profile = ReadinessProfile(
        bundle_id=bundle.id,
        waves=waves,
        average=average,
        minimum=minimum,
        maximum=maximum,
        transition_stability=transition_stability(values),
        is_stable=is_stable,
    )
    logger.debug(
        "Readiness of bundle %s: average %.3f, min %.3f, stable=%s",
        bundle.id,
        average,
        minimum,
        is_stable,
    )
    return profile


def evaluate_slo(profile: ReadinessProfile, config: EngineConfig) -> SloVerdict:
    """
    Check a readiness profile against the SLO thresholds.

    The composite score is the mean of average readiness, minimum readiness
    (utilization proxy), ``1 - maximum`` readiness (headroom) and transition
    stability. The verdict passes only without breaches and with a
    composite of at least ``config.min_slo_score``.

    :param profile: Readiness profile
    :type profile: ReadinessProfile
    :param config: Engine configuration
    :type config: EngineConfig
    :return: SLO verdict
    :rtype: SloVerdict
    """
    breaches: list[str] = []
    for wave in profile.waves:
        if wave.readiness <= config.min_wave_readiness:
            breaches.append(
                f"wave {wave.wave_id} readiness {wave.readiness:.2f} "
                f"at or below {config.min_wave_readiness:.2f}"
            )
        if wave.risk.risk_index > config.max_risk_index:
            breaches.append(
                f"wave {wave.wave_id} risk index {wave.risk.risk_index:.2f} "
                f"above {config.max_risk_index:.2f}"
            )
    if profile.average <= config.min_average_readiness:
        breaches.append(
            f"average readiness {profile.average:.2f} "
            f"at or below {config.min_average_readiness:.2f}"
        )
    if profile.transition_stability < config.min_transition_stability:
        breaches.append(
            f"transition stability {profile.transition_stability:.2f} "
            f"below {config.min_transition_stability:.2f}"
        )

    score = safe_mean(
        [
            profile.average,
            profile.minimum,
            1 - profile.maximum,
            profile.transition_stability,
        ]
    )
    passed = not breaches and score >= config.min_slo_score
    if breaches:
        logger.warning(
            "SLO breached for bundle %s: %s", profile.bundle_id, "; ".join(breaches)
        )
    return SloVerdict(passed=passed, score=score, breaches=tuple(breaches))
