"""
Telemetry snapshots of coordination runs.

Metrics are collected while a bundle moves through the pipeline and frozen
into a snapshot once the decision is known. Snapshots can be exported as
``name value {tags-json}`` lines for line-oriented metric collectors.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from recovery_fusion.domain.identifiers import BundleId, RunId
from recovery_fusion.domain.models import FusionBundle, RiskBand
from recovery_fusion.domain.results import FusionPlanResult
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.timeutil import to_iso, utc_now

logger = get_logger(__name__)

METRIC_PREFIX = "fusion"


@dataclass(frozen=True)
class FusionMetric:
    """Single named measurement with string tags."""

    name: str
    value: float
    tags: dict[str, str] = field(default_factory=dict)

    def to_line(self) -> str:
        """Format as ``name value {tags-json}``."""
        return f"{self.name} {self.value} {json.dumps(self.tags, sort_keys=True)}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {"name": self.name, "value": self.value, "tags": dict(self.tags)}


@dataclass(frozen=True)
class FusionTelemetrySnapshot:
    """
    Telemetry of one coordination decision.

    Attributes:
        run_id: Run the bundle belongs to
        bundle_id: Bundle the decision was made for
        wave_count: Waves in the bundle
        decision_accepted: Whether the plan was accepted
        risk_band: Risk band of the decision
        metrics: Metrics collected during the run
        captured_at: When the snapshot was taken
    """

    run_id: RunId
    bundle_id: BundleId
    wave_count: int
    decision_accepted: bool
    risk_band: RiskBand
    metrics: tuple[FusionMetric, ...] = ()
    captured_at: datetime = field(default_factory=utc_now)

    def get_metric(self, name: str) -> FusionMetric | None:
        """First metric with the given name."""
        for metric in self.metrics:
            if metric.name == name:
                return metric
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "runId": str(self.run_id),
            "bundleId": str(self.bundle_id),
            "waveCount": self.wave_count,
            "decisionAccepted": self.decision_accepted,
            "riskBand": self.risk_band.value,
            "metrics": [metric.to_dict() for metric in self.metrics],
            "capturedAt": to_iso(self.captured_at),
        }

    def to_rows(self) -> list[dict[str, Any]]:
        """Flatten into one row per metric for tabular export."""
        rows = []
        for metric in self.metrics:
            rows.append(
                {
                    "run_id": str(self.run_id),
                    "bundle_id": str(self.bundle_id),
                    "metric": metric.name,
                    "value": metric.value,
                    "tags": json.dumps(metric.tags, sort_keys=True),
                    "decision_accepted": self.decision_accepted,
                    "risk_band": self.risk_band.value,
                    "captured_at": to_iso(self.captured_at),
                }
            )
        return rows


def metric(name: str, value: float, **tags: Any) -> FusionMetric:
    """Create a metric under the ``fusion.`` namespace."""
    return FusionMetric(
        name=f"{METRIC_PREFIX}.{name}",
        value=float(value),
        tags={key: str(tag) for key, tag in tags.items()},
    )


def build_telemetry_snapshot(
    bundle: FusionBundle,
    result: FusionPlanResult,
    metrics: Sequence[FusionMetric] = (),
) -> FusionTelemetrySnapshot:
    """
    Freeze the metrics of a run into a snapshot.

    Decision-level metrics (acceptance and reason count) are appended to
    the metrics collected during the run.

    :param bundle: Bundle coordinated
    :type bundle: FusionBundle
    :param result: Decision made for the bundle
    :type result: FusionPlanResult
    :param metrics: Metrics collected while coordinating
    :type metrics: Sequence[FusionMetric]
    :return: Telemetry snapshot
    :rtype: FusionTelemetrySnapshot
    """
    decision_metrics = (
        metric("decision.accepted", 1.0 if result.accepted else 0.0, bundle=bundle.id),
        metric("decision.reasons", len(result.reasons), bundle=bundle.id),
    )
    snapshot = FusionTelemetrySnapshot(
        run_id=bundle.run_id,
        bundle_id=bundle.id,
        wave_count=len(bundle.waves),
        decision_accepted=result.accepted,
        risk_band=result.risk_band,
        metrics=tuple(metrics) + decision_metrics,
    )
    logger.debug(
        "Captured %d metrics for bundle %s", len(snapshot.metrics), bundle.id
    )
    return snapshot


def export_metric_lines(snapshot: FusionTelemetrySnapshot) -> list[str]:
    """
    Export a snapshot as metric lines.

    :param snapshot: Snapshot to export
    :type snapshot: FusionTelemetrySnapshot
    :return: One ``name value {tags-json}`` line per metric
    :rtype: list[str]

    Example:
        >>> export_metric_lines(snapshot)[0]
        'fusion.wave.count 2.0 {"bundle": "run-1:bundle"}'
    """
    return [item.to_line() for item in snapshot.metrics]
