"""
Command catalog construction.

Readiness signals are clustered per (tenant, source) and turned into
actionable catalog entries: one per existing wave command, or a single
synthesized ``verify`` entry for waves without commands.

Entries are de-duplicated by (bundle, actor, action, rationale). This is
the only place duplicate suppression happens in the engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from recovery_fusion.domain.identifiers import BundleId, CommandId, SignalId, WaveId
from recovery_fusion.domain.models import (
    CommandAction,
    FusionBundle,
    FusionSignal,
    FusionWave,
)
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import SEVERITY_LEVELS, clamp, severity_level

logger = get_logger(__name__)

SYNTHESIZED_ACTOR = "catalog"
STATE_WEIGHT_FACTOR = 0.6
COMMAND_COUNT_FACTOR = 0.01

CatalogKey = tuple[BundleId, str, CommandAction, str]


@dataclass(frozen=True)
class CatalogEntry:
    """
    Actionable command entry derived from a readiness signal.

    Attributes:
        bundle_id: Bundle the entry belongs to
        wave_id: Wave whose signal produced the entry
        signal_id: Signal that produced the entry
        source: Source of that signal
        command_id: Wave command mapped into the entry (None when synthesized)
        actor: Actor expected to run the command
        action: Command action
        rationale: Why the command is proposed
        action_score: Urgency of acting on the entry in [0, 1]
    """

    bundle_id: BundleId
    wave_id: WaveId
    signal_id: SignalId
    source: str
    command_id: CommandId | None
    actor: str
    action: CommandAction
    rationale: str
    action_score: float

    @property
    def key(self) -> CatalogKey:
        """Composite de-duplication key."""
        return (self.bundle_id, self.actor, self.action, self.rationale)


@dataclass(frozen=True)
class SignalCluster:
    """Signals sharing one (tenant, source) pair."""

    tenant: str
    source: str
    signal_ids: tuple[SignalId, ...] = ()
    wave_ids: tuple[WaveId, ...] = ()


@dataclass(frozen=True)
class CommandCatalog:
    """
    Catalog of actionable commands for one bundle.

    Attributes:
        bundle_id: Bundle the catalog was built for
        clusters: Signal clusters in first-seen order
        entries: De-duplicated entries in first-seen order
        duplicates_suppressed: Number of entries dropped as duplicates
    """

    bundle_id: BundleId
    clusters: tuple[SignalCluster, ...] = ()
    entries: tuple[CatalogEntry, ...] = ()
    duplicates_suppressed: int = 0

    def keys(self) -> frozenset[CatalogKey]:
        """Composite keys of every entry."""
        return frozenset(entry.key for entry in self.entries)

    def entries_for_wave(self, wave_id: WaveId) -> tuple[CatalogEntry, ...]:
        """Entries produced by one wave."""
        return tuple(entry for entry in self.entries if entry.wave_id == wave_id)

    def describe(self) -> str:
        """One-line summary used in decision reasons."""
        return (
            f"catalog:entries={len(self.entries)},clusters={len(self.clusters)},"
            f"suppressed={self.duplicates_suppressed}"
        )


def compute_action_score(signal: FusionSignal, wave: FusionWave) -> float:
    """
    Urgency of acting on a signal within its wave.

    ``severity_level / 5 + state_pressure * 0.6 + command_count * 0.01``,
    clamped to [0, 1].

    :param signal: Readiness signal
    :type signal: FusionSignal
    :param wave: Wave the signal belongs to
    :type wave: FusionWave
    :return: Action score
    :rtype: float
    """
    return clamp(
        severity_level(signal.severity) / SEVERITY_LEVELS
        + wave.state.pressure * STATE_WEIGHT_FACTOR
        + len(wave.commands) * COMMAND_COUNT_FACTOR
    )


def _entries_for_signal(
    bundle_id: BundleId, wave: FusionWave, signal: FusionSignal
) -> list[CatalogEntry]:
    score = compute_action_score(signal, wave)
    if not wave.commands:
        return [
            CatalogEntry(
                bundle_id=bundle_id,
                wave_id=wave.id,
                signal_id=signal.id,
                source=signal.source,
                command_id=None,
                actor=SYNTHESIZED_ACTOR,
                action=CommandAction.VERIFY,
                rationale=f"verify:{signal.source}",
                action_score=score,
            )
        ]
    return [
        CatalogEntry(
            bundle_id=bundle_id,
            wave_id=wave.id,
            signal_id=signal.id,
            source=signal.source,
            command_id=command.id,
            actor=command.actor,
            action=command.action,
            rationale=command.rationale,
            action_score=score,
        )
        for command in wave.commands
    ]


def build_command_catalog(bundle: FusionBundle) -> CommandCatalog:
    """
    Cluster a bundle's signals and build its command catalog.

    Bundle-level signals that are not readiness evidence of any wave still
    join their cluster but produce no entries.

    :param bundle: Bundle to catalog
    :type bundle: FusionBundle
    :return: Command catalog
    :rtype: CommandCatalog
    """
    cluster_signals: dict[tuple[str, str], list[SignalId]] = {}
    cluster_waves: dict[tuple[str, str], list[WaveId]] = {}
    entries: dict[CatalogKey, CatalogEntry] = {}
    suppressed = 0

    def add_to_cluster(signal: FusionSignal, wave_id: WaveId | None) -> None:
        key = (bundle.tenant, signal.source)
        signal_ids = cluster_signals.setdefault(key, [])
        wave_ids = cluster_waves.setdefault(key, [])
        if signal.id not in signal_ids:
            signal_ids.append(signal.id)
        if wave_id is not None and wave_id not in wave_ids:
            wave_ids.append(wave_id)

    for wave in bundle.waves:
        for signal in wave.readiness_signals:
            add_to_cluster(signal, wave.id)
            for entry in _entries_for_signal(bundle.id, wave, signal):
                if entry.key in entries:
                    suppressed += 1
                    continue
                entries[entry.key] = entry

    for signal in bundle.signals:
        add_to_cluster(signal, None)

    clusters = tuple(
        SignalCluster(
            tenant=tenant,
            source=source,
            signal_ids=tuple(cluster_signals[(tenant, source)]),
            wave_ids=tuple(cluster_waves[(tenant, source)]),
        )
        for tenant, source in cluster_signals
    )
    logger.info(
        "Built catalog for bundle %s: %d entries, %d clusters, %d duplicates suppressed",
        bundle.id,
        len(entries),
        len(clusters),
        suppressed,
    )
    return CommandCatalog(
        bundle_id=bundle.id,
        clusters=clusters,
        entries=tuple(entries.values()),
        duplicates_suppressed=suppressed,
    )
