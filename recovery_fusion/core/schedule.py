"""
Wave scheduling.

Healthy waves are turned into non-degenerate execution windows and ranked
through the priority matrix. A bundle without a single healthy wave cannot
be scheduled, which is the primary hard failure of the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import BundleId, WaveId
from recovery_fusion.domain.models import FusionBundle, FusionWave
from recovery_fusion.domain.results import Result, fail, ok
from recovery_fusion.scoring.priority import WavePriorityMatrix, build_priority_matrix
from recovery_fusion.utils.logging_config import get_logger

logger = get_logger(__name__)

NOT_SCHEDULABLE = "bundle-not-schedulable"
WINDOW_NOT_FOUND = "window-not-found"


@dataclass(frozen=True)
class ScheduleWindow:
    """
    Scheduled execution window of a healthy wave.

    Attributes:
        wave_id: Wave being scheduled
        start: Window start
        end: Window end, always after ``start``
        command_count: Commands the wave will run
        signal_count: Readiness signals backing the wave
        padded: Whether a degenerate window was padded
    """

    wave_id: WaveId
    start: datetime
    end: datetime
    command_count: int = 0
    signal_count: int = 0
    padded: bool = False

    @property
    def duration_seconds(self) -> float:
        """Window length in seconds."""
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class ScheduleResult:
    """
    Schedule of one bundle.

    Attributes:
        bundle_id: Bundle scheduled
        windows: Windows of the healthy waves in bundle order
        critical_wave_ids: Top-ranked waves carrying readiness evidence
        command_density: Bundle signals per scheduled window
        priority_matrix: Priority ranking of every input wave
    """

    bundle_id: BundleId
    windows: tuple[ScheduleWindow, ...]
    critical_wave_ids: tuple[WaveId, ...]
    command_density: float
    priority_matrix: WavePriorityMatrix

    def get_window(self, wave_id: WaveId) -> ScheduleWindow | None:
        """Look up the window of a wave."""
        for window in self.windows:
            if window.wave_id == wave_id:
                return window
        return None


def is_healthy(wave: FusionWave, config: EngineConfig) -> bool:
    """A wave is healthy when it has commands and a bounded signal set."""
    return wave.has_commands and len(wave.readiness_signals) <= config.max_readiness_signals


def build_window(wave: FusionWave, config: EngineConfig) -> ScheduleWindow:
    """
    Convert a wave into a schedule window.

    Degenerate windows (end at or before start) are padded to
    ``config.degenerate_window_minutes`` instead of being rejected.

    :param wave: Wave to convert
    :type wave: FusionWave
    :param config: Engine configuration
    :type config: EngineConfig
    :return: Non-degenerate window
    :rtype: ScheduleWindow
    """
    end = wave.window_end
    padded = end <= wave.window_start
    if padded:
        end = wave.window_start + timedelta(minutes=config.degenerate_window_minutes)
        logger.debug("Padded degenerate window of wave %s", wave.id)
    return ScheduleWindow(
        wave_id=wave.id,
        start=wave.window_start,
        end=end,
        command_count=len(wave.commands),
        signal_count=len(wave.readiness_signals),
        padded=padded,
    )


def schedule_bundle(bundle: FusionBundle, config: EngineConfig) -> Result[ScheduleResult]:
    """
    Schedule the healthy waves of a bundle.

    All input waves are ranked, healthy or not; the best ranked waves with
    readiness evidence become the critical waves. Unevidenced waves are left
    out because the coordinator only takes the running path when no wave is
    critical, which could never happen if every ranked wave counted.

    :param bundle: Bundle to schedule
    :type bundle: FusionBundle
    :param config: Engine configuration
    :type config: EngineConfig
    :return: Schedule, or ``bundle-not-schedulable`` when no wave is healthy
    :rtype: Result[ScheduleResult]
    """
    windows = tuple(
        build_window(wave, config) for wave in bundle.waves if is_healthy(wave, config)
    )
    if not windows:
        logger.warning(
            "Bundle %s has no healthy waves out of %d", bundle.id, len(bundle.waves)
        )
        return fail(NOT_SCHEDULABLE)

    matrix = build_priority_matrix(bundle.waves, config)
    critical = tuple(
        entry.wave_id
        for entry in matrix.top(config.critical_wave_count, evidenced_only=True)
    )
    density = len(bundle.signals) / len(windows)
    logger.info(
        "Scheduled bundle %s: %d windows, %d critical waves, density %.2f",
        bundle.id,
        len(windows),
        len(critical),
        density,
    )
    return ok(
        ScheduleResult(
            bundle_id=bundle.id,
            windows=windows,
            critical_wave_ids=critical,
            command_density=density,
            priority_matrix=matrix,
        )
    )


def reschedule_window(
    schedule: ScheduleResult, wave_id: WaveId, config: EngineConfig
) -> Result[ScheduleResult]:
    """
    Shift one window later.

    The start moves by ``config.reschedule_shift_minutes`` and the end is
    set ``config.reschedule_window_minutes`` after the new start. The input
    schedule is left untouched.

    :param schedule: Schedule holding the window
    :type schedule: ScheduleResult
    :param wave_id: Wave whose window is shifted
    :type wave_id: WaveId
    :param config: Engine configuration
    :type config: EngineConfig
    :return: New schedule, or ``window-not-found`` for an unknown wave
    :rtype: Result[ScheduleResult]
    """
    target = schedule.get_window(wave_id)
    if target is None:
        return fail(WINDOW_NOT_FOUND)

    start = target.start + timedelta(minutes=config.reschedule_shift_minutes)
    shifted = replace(
        target,
        start=start,
        end=start + timedelta(minutes=config.reschedule_window_minutes),
    )
    logger.debug("Rescheduled wave %s to %s", wave_id, start.isoformat())
    return ok(
        replace(
            schedule,
            windows=tuple(
                shifted if window.wave_id == wave_id else window
                for window in schedule.windows
            ),
        )
    )
