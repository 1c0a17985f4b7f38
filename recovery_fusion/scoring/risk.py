"""
Risk vector calculation for fusion signals.

Provides the severity/confidence/risk-index triple used throughout the
engine, along with the signal ranking and risk banding used by the quick
planning path.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from recovery_fusion.domain.models import FusionSignal, RiskBand
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp, safe_mean

logger = get_logger(__name__)

# Relative weights of the signal ranking factors, normalized before use
DEFAULT_RISK_WEIGHTS: dict[str, float] = {
    "severity": 0.35,
    "confidence": 0.2,
    "temporal_urgency": 0.2,
    "blast_radius": 0.1,
    "dependency_depth": 0.1,
    "operator_slack": 0.05,
}

# Only the first signals are ranked
RANKED_SIGNAL_LIMIT = 24
# Tag count at which tag pressure bottoms out
TAG_PRESSURE_SATURATION = 12
# Dependency density assumed when banding raw signals
BANDING_DENSITY = 0.2

_BAND_THRESHOLDS: tuple[tuple[float, RiskBand], ...] = (
    (0.85, RiskBand.CRITICAL),
    (0.65, RiskBand.RED),
    (0.35, RiskBand.AMBER),
)


@dataclass(frozen=True)
class RiskVector:
    """
    Normalized risk triple for a set of signals.

    Attributes:
        severity: Mean signal severity in [0, 1]
        confidence: Mean signal confidence in [0, 1]
        risk_index: Coupling- and confidence-adjusted risk in [0, 1]
    """

    severity: float = 0.0
    confidence: float = 0.0
    risk_index: float = 0.0


def normalize_signal_weight(value: float) -> float:
    """Clamp a signal weight into [0, 1]."""
    return clamp(value)


def calculate_risk_vector(
    signals: Sequence[FusionSignal], dependency_density: float
) -> RiskVector:
    """
    Convert signals into a normalized risk vector.

    Risk scales up with topology coupling and down with confidence:
    ``severity * (0.65 + density * 0.35) * (1 + (1 - confidence) * 0.2)``.

    :param signals: Signals to summarize
    :type signals: Sequence[FusionSignal]
    :param dependency_density: Topology dependency density in [0, 1]
    :type dependency_density: float
    :return: Risk vector, all zeros for an empty signal list
    :rtype: RiskVector

    Example:
        >>> calculate_risk_vector([], 0.5)
        RiskVector(severity=0.0, confidence=0.0, risk_index=0.0)
    """
    if not signals:
        return RiskVector()

    severity = safe_mean(signal.severity for signal in signals)
    confidence = safe_mean(signal.confidence for signal in signals)
    density = clamp(dependency_density)
    risk_index = severity * (0.65 + density * 0.35) * (1 + (1 - confidence) * 0.2)
    logger.debug(
        "Risk index %.3f over %d signals at density %.3f",
        risk_index,
        len(signals),
        density,
    )

    return RiskVector(
        severity=clamp(severity),
        confidence=clamp(confidence),
        risk_index=clamp(risk_index),
    )


def _normalized_weights() -> dict[str, float]:
    total = sum(DEFAULT_RISK_WEIGHTS.values())
    if total == 0:
        return {key: 0.0 for key in DEFAULT_RISK_WEIGHTS}
    return {key: clamp(value / total) for key, value in DEFAULT_RISK_WEIGHTS.items()}


def rank_signals(signals: Sequence[FusionSignal]) -> float:
    """
    Rank a signal set by weighted severity, confidence and tag pressure.

    Signals carrying few tags are treated as less understood and press
    harder on the non-severity factors.

    :param signals: Signals to rank (only the first 24 are considered)
    :type signals: Sequence[FusionSignal]
    :return: Mean weighted rank, 0.0 for no signals
    :rtype: float
    """
    if not signals:
        return 0.0

    weights = _normalized_weights()
    pressure_weight = (
        weights["temporal_urgency"]
        + weights["blast_radius"]
        + weights["dependency_depth"]
        + weights["operator_slack"]
    )
    ranked = signals[:RANKED_SIGNAL_LIMIT]
    total = 0.0
    for signal in ranked:
        tags_pressure = max(0.0, 1 - clamp(len(signal.tags) / TAG_PRESSURE_SATURATION))
        total += (
            signal.severity * weights["severity"]
            + signal.confidence * weights["confidence"]
            + tags_pressure * pressure_weight
        )
    return total / len(ranked)


def determine_risk_band(signals: Sequence[FusionSignal]) -> RiskBand:
    """
    Classify a signal set into a coarse risk band.

    :param signals: Signals to classify
    :type signals: Sequence[FusionSignal]
    :return: Risk band derived from the risk index at baseline density
    :rtype: RiskBand
    """
    risk = calculate_risk_vector(signals, BANDING_DENSITY).risk_index
    for threshold, band in _BAND_THRESHOLDS:
        if risk >= threshold:
            return band
    return RiskBand.GREEN
