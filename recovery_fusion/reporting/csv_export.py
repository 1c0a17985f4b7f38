"""
CSV export utilities for coordination telemetry.

This module writes telemetry snapshots as one row per metric, for analysis
in spreadsheet tools and data processing.
"""

import csv
from collections.abc import Sequence
from pathlib import Path

from recovery_fusion.reporting.telemetry import FusionTelemetrySnapshot
from recovery_fusion.utils.logging_config import get_logger

logger = get_logger(__name__)

METRIC_COLUMNS = [
    "run_id",
    "bundle_id",
    "metric",
    "value",
    "tags",
    "decision_accepted",
    "risk_band",
    "captured_at",
]


def export_metrics_to_csv(
    snapshots: Sequence[FusionTelemetrySnapshot], output_path: str
) -> int:
    """
    Export the metrics of several snapshots to a CSV file.

    :param snapshots: Snapshots to export
    :type snapshots: Sequence[FusionTelemetrySnapshot]
    :param output_path: Output CSV path
    :type output_path: str
    :return: Number of rows written
    :rtype: int

    Example:
        >>> export_metrics_to_csv([report.telemetry], 'results/telemetry.csv')
        9
    """
    rows = [row for snapshot in snapshots for row in snapshot.to_rows()]
    if not rows:
        logger.warning("No metrics to export")
        return 0

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path_obj, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=METRIC_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)

    logger.info("Exported %d metrics to %s", len(rows), output_path)
    return len(rows)


def append_snapshot_to_csv(snapshot: FusionTelemetrySnapshot, output_path: str) -> int:
    """
    Append one snapshot's metrics to a CSV file.

    Useful for incremental logging across repeated coordination runs.

    :param snapshot: Snapshot to append
    :type snapshot: FusionTelemetrySnapshot
    :param output_path: Output CSV path
    :type output_path: str
    :return: Number of rows written
    :rtype: int
    """
    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    # Header only for a new file
    file_exists = output_path_obj.exists()
    rows = snapshot.to_rows()

    with open(output_path_obj, "a", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=METRIC_COLUMNS)
        if not file_exists:
            writer.writeheader()
        writer.writerows(rows)

    logger.debug("Appended %d metrics to %s", len(rows), output_path)
    return len(rows)
