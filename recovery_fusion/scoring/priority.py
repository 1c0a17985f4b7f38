"""
Wave priority matrix.

Each wave's readiness signals are scored on four weighted factors plus an
owner weight derived from tags. The best signals become the wave's
recommendations and drive its overall priority score and band.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import SignalId, WaveId
from recovery_fusion.domain.models import FusionSignal, FusionWave, WaveState
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp, safe_mean, severity_level

logger = get_logger(__name__)

# Factor weights of a signal's priority score
BASELINE_WEIGHT = 0.34
URGENCY_WEIGHT = 0.24
STABILITY_WEIGHT = 0.2
OWNER_WEIGHT = 0.15
CONFIDENCE_WEIGHT = 0.07

# Blend of selected-signal mean and state urgency in the wave score
SELECTED_MEAN_WEIGHT = 0.75
WAVE_URGENCY_WEIGHT = 0.25

DEFAULT_STABILITY = 0.5
DEFAULT_OWNER_WEIGHT = 0.35

# Owning team tags, checked case-insensitively; the heaviest match wins
OWNER_TAG_WEIGHTS: dict[str, float] = {
    "security": 0.9,
    "platform": 0.75,
    "sre": 0.6,
}


class PriorityBand(Enum):
    """Discrete priority band of a wave."""

    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
    NOISE = "noise"


_BAND_THRESHOLDS: tuple[tuple[float, PriorityBand], ...] = (
    (0.86, PriorityBand.CRITICAL),
    (0.68, PriorityBand.HIGH),
    (0.48, PriorityBand.NORMAL),
    (0.3, PriorityBand.LOW),
)


@dataclass(frozen=True)
class SignalContribution:
    """Per-factor breakdown of one signal's priority score."""

    signal_id: SignalId
    baseline: float
    urgency: float
    stability: float
    owner_weight: float
    confidence: float
    score: float


@dataclass(frozen=True)
class WavePriorityEntry:
    """
    Priority matrix row for one wave.

    Attributes:
        wave_id: Wave being ranked
        band: Discrete band of the wave score
        score: Wave priority score in [0, 1]
        recommended: Ids of the top contributing signals, best first
        contributors: Breakdown of every ranked signal, best first
    """

    wave_id: WaveId
    band: PriorityBand
    score: float
    recommended: tuple[SignalId, ...] = ()
    contributors: tuple[SignalContribution, ...] = ()


@dataclass(frozen=True)
class WavePriorityMatrix:
    """Wave priority entries ordered by score, highest first."""

    entries: tuple[WavePriorityEntry, ...] = ()

    def get(self, wave_id: WaveId) -> WavePriorityEntry | None:
        """Look up the entry of a wave."""
        for entry in self.entries:
            if entry.wave_id == wave_id:
                return entry
        return None

    def ranked_wave_ids(self) -> tuple[WaveId, ...]:
        """Wave ids in ranking order."""
        return tuple(entry.wave_id for entry in self.entries)

    def top(self, count: int, evidenced_only: bool = False) -> tuple[WavePriorityEntry, ...]:
        """
        Highest ranked entries.

        :param count: Maximum number of entries to return
        :param evidenced_only: Skip waves without any recommended signal
        :return: Up to ``count`` entries in ranking order
        """
        entries = self.entries
        if evidenced_only:
            entries = tuple(entry for entry in entries if entry.recommended)
        return entries[: max(0, count)]


def severity_baseline(severity: float) -> float:
    """
    Baseline factor from the signal's severity level.

    Levels at 5 map to 1.0, 4 to 0.75, 2-3 to 0.5 and anything lower to 0.15.
    """
    level = severity_level(severity)
    if level >= 5:
        return 1.0
    if level >= 4:
        return 0.75
    if level >= 2:
        return 0.5
    return 0.15


def owner_weight(tags: Sequence[str]) -> float:
    """Owner weight of the heaviest owning-team tag, default 0.35."""
    weights = [
        OWNER_TAG_WEIGHTS[tag.lower()] for tag in tags if tag.lower() in OWNER_TAG_WEIGHTS
    ]
    return max(weights) if weights else DEFAULT_OWNER_WEIGHT


def _payload_stability(payload: dict[str, Any]) -> float:
    value = payload.get("stability")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return clamp(float(value))
    return DEFAULT_STABILITY


def score_signal(signal: FusionSignal, state: WaveState) -> SignalContribution:
    """
    Score one readiness signal in the context of its wave's state.

    :param signal: Readiness signal
    :type signal: FusionSignal
    :param state: State of the wave the signal belongs to
    :type state: WaveState
    :return: Factor breakdown and weighted score
    :rtype: SignalContribution
    """
    baseline = severity_baseline(signal.severity)
    urgency = state.pressure
    stability = _payload_stability(signal.payload)
    owner = owner_weight(signal.tags)
    confidence = signal.confidence
    score = (
        BASELINE_WEIGHT * baseline
        + URGENCY_WEIGHT * urgency
        + STABILITY_WEIGHT * stability
        + OWNER_WEIGHT * owner
        + CONFIDENCE_WEIGHT * confidence
    )
    return SignalContribution(
        signal_id=signal.id,
        baseline=baseline,
        urgency=urgency,
        stability=stability,
        owner_weight=owner,
        confidence=confidence,
        score=clamp(score),
    )


def classify_band(score: float) -> PriorityBand:
    """Map a wave score onto its priority band."""
    for threshold, band in _BAND_THRESHOLDS:
        if score >= threshold:
            return band
    return PriorityBand.NOISE


def build_wave_priority(wave: FusionWave, config: EngineConfig) -> WavePriorityEntry:
    """
    Build the priority entry of a single wave.

    Signals below ``config.min_signal_confidence`` are excluded. The rest
    are sorted by score with a stable sort, so signals with equal scores
    keep their input order across repeated evaluations.

    :param wave: Wave to rank
    :type wave: FusionWave
    :param config: Engine configuration
    :type config: EngineConfig
    :return: Priority entry for the wave
    :rtype: WavePriorityEntry
    """
    qualifying = [
        signal
        for signal in wave.readiness_signals
        if signal.confidence >= config.min_signal_confidence
    ]
    contributions = sorted(
        (score_signal(signal, wave.state) for signal in qualifying),
        key=lambda contribution: contribution.score,
        reverse=True,
    )
    selected = contributions[: config.top_signals]
    mean_selected = safe_mean(contribution.score for contribution in selected)

    score = clamp(
        max(
            config.min_wave_score,
            SELECTED_MEAN_WEIGHT * mean_selected + WAVE_URGENCY_WEIGHT * wave.state.pressure,
        )
    )
    return WavePriorityEntry(
        wave_id=wave.id,
        band=classify_band(score),
        score=score,
        recommended=tuple(contribution.signal_id for contribution in selected),
        contributors=tuple(contributions),
    )


def build_priority_matrix(
    waves: Sequence[FusionWave], config: EngineConfig
) -> WavePriorityMatrix:
    """
    Rank waves by priority score, highest first.

    Ties keep the input wave order.

    :param waves: Waves to rank
    :type waves: Sequence[FusionWave]
    :param config: Engine configuration
    :type config: EngineConfig
    :return: Priority matrix
    :rtype: WavePriorityMatrix
    """
    entries = sorted(
        (build_wave_priority(wave, config) for wave in waves),
        key=lambda entry: entry.score,
        reverse=True,
    )
    logger.debug("Ranked %d waves by priority", len(entries))
    return WavePriorityMatrix(entries=tuple(entries))
