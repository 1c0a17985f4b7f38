"""
Sink protocol definitions for coordination output.

This module defines typing.Protocol classes for the external collaborators
the coordinator hands its results to:
- PersistenceSink: Stores the coordinated bundle and its decision
- AuditSink: Records the decision for operators
- TelemetrySink: Publishes the run's telemetry snapshot

Design Principles:
- Protocols are type-only definitions (no runtime behavior)
- Every method is a coroutine; the coordinator awaits each one in turn
- Sinks are invoked only after the decision is produced
- The engine owns no sink implementation

Usage:
    class FileAuditSink:
        async def record(self, result: FusionPlanResult) -> None:
            ...

    sinks = FusionSinks(audit=FileAuditSink())
    report = await coordinate_fusion_bundle(raw_request, sinks=sinks)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from recovery_fusion.domain.models import FusionBundle
    from recovery_fusion.domain.results import FusionPlanResult
    from recovery_fusion.reporting.telemetry import FusionTelemetrySnapshot


@runtime_checkable
class PersistenceSink(Protocol):
    """
    Protocol for bundle persistence.

    Implementations store the bundle together with the decision made for
    it. The bundle is immutable and may be stored as is.
    """

    async def save(self, bundle: FusionBundle, result: FusionPlanResult) -> None:
        """
        Persist a coordinated bundle.

        :param bundle: Bundle that was coordinated
        :param result: Decision made for the bundle
        """
        ...


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for decision audit trails."""

    async def record(self, result: FusionPlanResult) -> None:
        """
        Record a decision.

        :param result: Decision to record
        """
        ...


@runtime_checkable
class TelemetrySink(Protocol):
    """Protocol for telemetry transport."""

    async def publish(self, snapshot: FusionTelemetrySnapshot) -> None:
        """
        Publish a telemetry snapshot.

        :param snapshot: Snapshot of the coordination run
        """
        ...


@dataclass(frozen=True)
class FusionSinks:
    """
    Sinks handed to the coordinator.

    Every sink is optional; missing sinks are skipped.
    """

    persistence: PersistenceSink | None = None
    audit: AuditSink | None = None
    telemetry: TelemetrySink | None = None
