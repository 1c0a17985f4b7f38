"""Unit tests for recovery_fusion.core.schedule module."""

from datetime import timedelta

import pytest

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.core.schedule import (
    NOT_SCHEDULABLE,
    WINDOW_NOT_FOUND,
    build_window,
    is_healthy,
    reschedule_window,
    schedule_bundle,
)
from recovery_fusion.domain.errors import StructuralError
from recovery_fusion.domain.identifiers import WaveId


class TestIsHealthy:
    """Tests for is_healthy function."""

    def test_wave_without_commands_is_unhealthy(
        self, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test that command-less waves are filtered out."""
        assert not is_healthy(wave_factory(command_count=0), engine_config)

    def test_signal_bound(self, signal_factory, wave_factory) -> None:
        """Test the readiness signal ceiling."""
        config = EngineConfig(max_readiness_signals=1)
        one = wave_factory(signals=[signal_factory("a")])
        two = wave_factory(signals=[signal_factory("a"), signal_factory("b")])

        assert is_healthy(one, config)
        assert not is_healthy(two, config)


class TestBuildWindow:
    """Tests for build_window function."""

    def test_regular_window_kept(self, wave_factory, engine_config: EngineConfig) -> None:
        """Test that a valid window is copied as is."""
        wave = wave_factory(duration_minutes=30, command_count=2)

        window = build_window(wave, engine_config)

        assert window.start == wave.window_start
        assert window.end == wave.window_end
        assert window.command_count == 2
        assert not window.padded

    @pytest.mark.parametrize("duration", [0, -10])
    def test_degenerate_window_padded(
        self, wave_factory, engine_config: EngineConfig, duration: int
    ) -> None:
        """Test that windows ending at or before their start get five minutes."""
        wave = wave_factory(duration_minutes=duration)

        window = build_window(wave, engine_config)

        assert window.end == wave.window_start + timedelta(minutes=5)
        assert window.duration_seconds == 300
        assert window.padded


class TestScheduleBundle:
    """Tests for schedule_bundle function."""

    def test_only_unhealthy_wave_fails(
        self, wave_factory, bundle_factory, engine_config: EngineConfig
    ) -> None:
        """Test that a bundle without a healthy wave cannot be scheduled."""
        # Arrange
        bundle = bundle_factory([wave_factory(command_count=0, signals=[])])

        # Act
        result = schedule_bundle(bundle, engine_config)

        # Assert
        assert not result.ok
        assert isinstance(result.error, StructuralError)
        assert result.message == NOT_SCHEDULABLE

    def test_sample_bundle(self, sample_bundle, engine_config: EngineConfig) -> None:
        """Test windows, critical waves and density of a two-wave bundle."""
        # Act
        schedule = schedule_bundle(sample_bundle, engine_config).unwrap()

        # Assert
        assert [w.wave_id for w in schedule.windows] == [WaveId("wave-a"), WaveId("wave-b")]
        assert schedule.critical_wave_ids == (WaveId("wave-a"), WaveId("wave-b"))
        assert schedule.command_density == pytest.approx(1.5)
        assert schedule.bundle_id == sample_bundle.id

    def test_unhealthy_waves_are_ranked_but_not_scheduled(
        self, signal_factory, wave_factory, bundle_factory, engine_config: EngineConfig
    ) -> None:
        """Test that the priority matrix covers every input wave."""
        # Arrange
        bundle = bundle_factory(
            [
                wave_factory("healthy"),
                wave_factory("empty", command_count=0, signals=[signal_factory()]),
            ]
        )

        # Act
        schedule = schedule_bundle(bundle, engine_config).unwrap()

        # Assert
        assert [w.wave_id for w in schedule.windows] == [WaveId("healthy")]
        assert len(schedule.priority_matrix.entries) == 2
        assert schedule.critical_wave_ids == (WaveId("empty"),)

    def test_critical_waves_need_evidence(
        self, signal_factory, wave_factory, bundle_factory, engine_config: EngineConfig
    ) -> None:
        """Test that waves without readiness signals are never critical."""
        bundle = bundle_factory([wave_factory("a"), wave_factory("b")], signals=[])

        schedule = schedule_bundle(bundle, engine_config).unwrap()

        assert schedule.critical_wave_ids == ()
        assert schedule.command_density == 0.0

    def test_critical_wave_count(self, signal_factory, wave_factory, bundle_factory) -> None:
        """Test that the configured number of critical waves is honoured."""
        waves = [wave_factory(f"w{i}", signals=[signal_factory(f"s{i}")]) for i in range(4)]
        config = EngineConfig(critical_wave_count=2)

        schedule = schedule_bundle(bundle_factory(waves), config).unwrap()

        assert schedule.critical_wave_ids == (WaveId("w0"), WaveId("w1"))


class TestRescheduleWindow:
    """Tests for reschedule_window function."""

    def test_shift(self, sample_bundle, engine_config: EngineConfig) -> None:
        """Test that the start moves 15 minutes and the end follows 5 minutes later."""
        # Arrange
        schedule = schedule_bundle(sample_bundle, engine_config).unwrap()
        original = schedule.get_window(WaveId("wave-a"))

        # Act
        shifted = reschedule_window(schedule, WaveId("wave-a"), engine_config).unwrap()

        # Assert
        moved = shifted.get_window(WaveId("wave-a"))
        assert moved.start == original.start + timedelta(minutes=15)
        assert moved.end == moved.start + timedelta(minutes=5)
        assert shifted.get_window(WaveId("wave-b")) == schedule.get_window(WaveId("wave-b"))
        assert schedule.get_window(WaveId("wave-a")) == original

    def test_unknown_wave_fails(self, sample_bundle, engine_config: EngineConfig) -> None:
        """Test that rescheduling a missing wave fails."""
        schedule = schedule_bundle(sample_bundle, engine_config).unwrap()

        result = reschedule_window(schedule, WaveId("missing"), engine_config)

        assert not result.ok
        assert result.message == WINDOW_NOT_FOUND
