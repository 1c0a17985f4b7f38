"""
Reporting module for recovery fusion coordination output.

This module provides telemetry snapshots and their export as metric lines
or CSV, separating presentation concerns from the evaluation itself.
"""

from recovery_fusion.reporting.csv_export import (
    append_snapshot_to_csv,
    export_metrics_to_csv,
)
from recovery_fusion.reporting.telemetry import (
    FusionMetric,
    FusionTelemetrySnapshot,
    build_telemetry_snapshot,
    export_metric_lines,
)

__all__ = [
    "FusionMetric",
    "FusionTelemetrySnapshot",
    "build_telemetry_snapshot",
    "export_metric_lines",
    "export_metrics_to_csv",
    "append_snapshot_to_csv",
]
