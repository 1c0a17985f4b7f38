"""Unit tests for recovery_fusion.interfaces.sinks module."""

from recovery_fusion.interfaces.sinks import (
    AuditSink,
    FusionSinks,
    PersistenceSink,
    TelemetrySink,
)


class _AuditOnly:
    async def record(self, result) -> None:
        pass


class _Everything(_AuditOnly):
    async def save(self, bundle, result) -> None:
        pass

    async def publish(self, snapshot) -> None:
        pass


class TestSinkProtocols:
    """Tests for the runtime checkable sink protocols."""

    def test_structural_match(self) -> None:
        """Test that implementations match by method names alone."""
        sink = _Everything()

        assert isinstance(sink, PersistenceSink)
        assert isinstance(sink, AuditSink)
        assert isinstance(sink, TelemetrySink)

    def test_partial_implementation(self) -> None:
        """Test that a sink only matches the protocols it implements."""
        sink = _AuditOnly()

        assert isinstance(sink, AuditSink)
        assert not isinstance(sink, PersistenceSink)
        assert not isinstance(sink, TelemetrySink)


class TestFusionSinks:
    """Tests for FusionSinks class."""

    def test_defaults_are_empty(self) -> None:
        """Test that every sink is optional."""
        sinks = FusionSinks()

        assert sinks.persistence is None
        assert sinks.audit is None
        assert sinks.telemetry is None

    def test_partial_configuration(self) -> None:
        """Test configuring a single sink."""
        audit = _AuditOnly()

        sinks = FusionSinks(audit=audit)

        assert sinks.audit is audit
        assert sinks.persistence is None
