"""
Integration tests for the complete coordination pipeline.

This module tests the end-to-end workflow including:
- Envelope ingestion into plan request signals
- Coordination with persistence, audit and telemetry sinks
- Bundle storage and reload
- Telemetry export
"""

import asyncio
from typing import Any

import pytest

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.core.coordinator import CoordinatorState, coordinate_fusion_bundle
from recovery_fusion.core.planner import plan_fusion_bundle
from recovery_fusion.domain.models import FusionBundle
from recovery_fusion.domain.request import parse_plan_request
from recovery_fusion.domain.results import FusionPlanResult
from recovery_fusion.interfaces.sinks import FusionSinks
from recovery_fusion.io.codec import read_bundle, write_bundle
from recovery_fusion.io.ingest import ingest_signals
from recovery_fusion.reporting.csv_export import export_metrics_to_csv
from recovery_fusion.reporting.telemetry import FusionTelemetrySnapshot


class InMemoryPersistence:
    """Persistence sink keeping bundles in a dictionary."""

    def __init__(self) -> None:
        self.bundles: dict[str, tuple[FusionBundle, FusionPlanResult]] = {}

    async def save(self, bundle: FusionBundle, result: FusionPlanResult) -> None:
        self.bundles[str(bundle.id)] = (bundle, result)


class InMemoryAudit:
    """Audit sink keeping every decision."""

    def __init__(self) -> None:
        self.decisions: list[FusionPlanResult] = []

    async def record(self, result: FusionPlanResult) -> None:
        self.decisions.append(result)


class InMemoryTelemetry:
    """Telemetry sink keeping every snapshot."""

    def __init__(self) -> None:
        self.snapshots: list[FusionTelemetrySnapshot] = []

    async def publish(self, snapshot: FusionTelemetrySnapshot) -> None:
        self.snapshots.append(snapshot)


class TestCoordinationPipelineIntegration:
    """Integration tests for the coordination pipeline."""

    @pytest.fixture
    def persistence(self) -> InMemoryPersistence:
        """Create an empty persistence sink."""
        return InMemoryPersistence()

    @pytest.fixture
    def audit(self) -> InMemoryAudit:
        """Create an empty audit sink."""
        return InMemoryAudit()

    @pytest.fixture
    def telemetry(self) -> InMemoryTelemetry:
        """Create an empty telemetry sink."""
        return InMemoryTelemetry()

    @pytest.fixture
    def sinks(self, persistence, audit, telemetry) -> FusionSinks:
        """Bundle the in-memory sinks."""
        return FusionSinks(persistence=persistence, audit=audit, telemetry=telemetry)

    def test_accepted_run_reaches_every_sink(
        self, raw_request: dict[str, Any], sinks, persistence, audit, telemetry
    ) -> None:
        """Test that an accepted decision is persisted, audited and published."""
        # Act
        report = asyncio.run(coordinate_fusion_bundle(raw_request, sinks=sinks))

        # Assert
        assert report.state == CoordinatorState.REVIEW
        stored_bundle, stored_result = persistence.bundles["run-1:bundle"]
        assert stored_bundle is report.bundle
        assert stored_result == report.result
        assert audit.decisions == [report.result]
        assert telemetry.snapshots == [report.telemetry]

    def test_stage_failure_is_still_reported(
        self, raw_request: dict[str, Any], sinks, audit
    ) -> None:
        """Test that a bundle failing a stage still notifies the sinks."""
        # Arrange
        for wave in raw_request["waves"]:
            wave["commands"] = []

        # Act
        report = asyncio.run(coordinate_fusion_bundle(raw_request, sinks=sinks))

        # Assert
        assert report.state == CoordinatorState.FAILED
        assert [decision.accepted for decision in audit.decisions] == [False]

    def test_rejected_request_reaches_no_sink(
        self, raw_request: dict[str, Any], sinks, persistence, audit, telemetry
    ) -> None:
        """Test that an unparsable request produces no side effect."""
        # Arrange
        raw_request["budget"] = {"maxParallelism": -1}

        # Act
        report = asyncio.run(coordinate_fusion_bundle(raw_request, sinks=sinks))

        # Assert
        assert report.result.reasons == ("invalid budget values",)
        assert persistence.bundles == {}
        assert audit.decisions == []
        assert telemetry.snapshots == []

    def test_ingested_signals_drive_coordination(
        self, raw_request: dict[str, Any], sinks, telemetry
    ) -> None:
        """Test a request whose signals come from raw envelopes."""
        # Arrange
        envelopes = [
            {"signalId": "env-1", "runId": "run-1", "source": "monitor", "severity": 0.9},
            {"signalId": "env-2", "runId": "run-1", "source": "probe", "tags": ["sre"]},
            {"signalId": "env-3", "source": "probe"},
        ]
        signals = asyncio.run(ingest_signals(envelopes))
        raw_request["signals"] = [signal.to_dict() for signal in signals]

        # Act
        report = asyncio.run(coordinate_fusion_bundle(raw_request, sinks=sinks))

        # Assert
        assert report.accepted
        assert [str(signal.id) for signal in report.bundle.signals] == ["env-1", "env-2"]
        assert telemetry.snapshots[0].get_metric("fusion.signal.count").value == 2.0

    def test_stored_bundle_and_telemetry_export(
        self, raw_request: dict[str, Any], tmp_path
    ) -> None:
        """Test storing the coordinated bundle and exporting its telemetry."""
        # Arrange
        report = asyncio.run(coordinate_fusion_bundle(raw_request))

        # Act
        path = write_bundle(report.bundle, tmp_path / "bundles" / "run-1.json")
        reloaded = read_bundle(path).unwrap()
        rows = export_metrics_to_csv([report.telemetry], str(tmp_path / "metrics.csv"))

        # Assert
        assert reloaded.id == report.bundle.id
        assert [wave.id for wave in reloaded.waves] == [w.id for w in report.bundle.waves]
        assert rows == len(report.telemetry.metrics)

    def test_reloaded_bundle_schedules_like_the_original(
        self, raw_request: dict[str, Any], tmp_path
    ) -> None:
        """Test that a stored bundle keeps its windows and commands."""
        # Arrange
        report = asyncio.run(coordinate_fusion_bundle(raw_request))
        path = write_bundle(report.bundle, tmp_path / "run-1.json")

        # Act
        reloaded = read_bundle(path).unwrap()

        # Assert
        for original, restored in zip(report.bundle.waves, reloaded.waves):
            assert restored.window_start == original.window_start
            assert restored.window_end == original.window_end
            assert restored.commands == original.commands
            assert restored.readiness_signals == original.readiness_signals

    def test_quick_plan_and_coordination_agree_on_size(
        self, raw_request: dict[str, Any]
    ) -> None:
        """Test that both decision paths see the same bundle."""
        # Arrange
        config = EngineConfig()
        request = parse_plan_request(raw_request).unwrap()

        # Act
        quick = plan_fusion_bundle(request, config).unwrap()
        full = asyncio.run(coordinate_fusion_bundle(raw_request, config)).result

        # Assert
        assert quick.bundle_id == full.bundle_id
        assert quick.wave_count == full.wave_count
        assert quick.estimated_minutes == full.estimated_minutes
