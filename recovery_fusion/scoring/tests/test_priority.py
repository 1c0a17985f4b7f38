"""Unit tests for recovery_fusion.scoring.priority module."""

import pytest

from recovery_fusion.configs.config import EngineConfig
from recovery_fusion.domain.identifiers import SignalId, WaveId
from recovery_fusion.domain.models import WaveState
from recovery_fusion.scoring.priority import (
    PriorityBand,
    build_priority_matrix,
    build_wave_priority,
    classify_band,
    owner_weight,
    score_signal,
    severity_baseline,
)


class TestScoreSignal:
    """Tests for score_signal function."""

    def test_severe_confident_signal_in_failed_wave(self, signal_factory) -> None:
        """Test the factor breakdown of a maximal signal with default tags."""
        # Arrange
        signal = signal_factory(severity=1.0, confidence=1.0)

        # Act
        contribution = score_signal(signal, WaveState.FAILED)

        # Assert
        assert contribution.baseline == 1.0
        assert contribution.urgency == 1.0
        assert contribution.stability == 0.5
        assert contribution.owner_weight == 0.35
        assert contribution.score == pytest.approx(0.8025)
        assert classify_band(contribution.score) == PriorityBand.HIGH

    def test_payload_stability_is_used(self, signal_factory) -> None:
        """Test that a numeric stability payload replaces the default."""
        signal = signal_factory(payload={"stability": 0.9})

        assert score_signal(signal, WaveState.IDLE).stability == 0.9

    def test_non_numeric_stability_falls_back(self, signal_factory) -> None:
        """Test that unusable stability payloads use the default."""
        signal = signal_factory(payload={"stability": "high"})

        assert score_signal(signal, WaveState.IDLE).stability == 0.5


class TestFactors:
    """Tests for the individual scoring factors."""

    @pytest.mark.parametrize(
        "severity,expected",
        [(1.0, 1.0), (0.8, 0.75), (0.5, 0.5), (0.35, 0.5), (0.2, 0.15), (0.0, 0.15)],
    )
    def test_severity_baseline(self, severity: float, expected: float) -> None:
        """Test baseline per severity level."""
        assert severity_baseline(severity) == expected

    @pytest.mark.parametrize(
        "tags,expected",
        [
            ((), 0.35),
            (("SRE",), 0.6),
            (("sre", "Security"), 0.9),
            (("platform", "misc"), 0.75),
            (("misc",), 0.35),
        ],
    )
    def test_owner_weight(self, tags: tuple, expected: float) -> None:
        """Test that the heaviest owning-team tag wins."""
        assert owner_weight(tags) == expected

    @pytest.mark.parametrize(
        "score,band",
        [
            (0.86, PriorityBand.CRITICAL),
            (0.85, PriorityBand.HIGH),
            (0.68, PriorityBand.HIGH),
            (0.5, PriorityBand.NORMAL),
            (0.3, PriorityBand.LOW),
            (0.29, PriorityBand.NOISE),
        ],
    )
    def test_classify_band(self, score: float, band: PriorityBand) -> None:
        """Test band thresholds."""
        assert classify_band(score) == band


class TestBuildWavePriority:
    """Tests for build_wave_priority function."""

    def test_wave_score_blends_selected_mean_and_urgency(
        self, signal_factory, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test the wave score of a single maximal signal in a failed wave."""
        # Arrange
        wave = wave_factory(
            state=WaveState.FAILED,
            signals=[signal_factory(severity=1.0, confidence=1.0)],
        )

        # Act
        entry = build_wave_priority(wave, engine_config)

        # Assert
        assert entry.score == pytest.approx(0.75 * 0.8025 + 0.25)
        assert entry.band == PriorityBand.HIGH
        assert entry.recommended == (SignalId("sig-1"),)

    def test_low_confidence_signals_are_excluded(
        self, signal_factory, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test that signals below the confidence floor do not contribute."""
        wave = wave_factory(
            signals=[
                signal_factory("weak", confidence=0.05),
                signal_factory("strong", confidence=0.9),
            ]
        )

        entry = build_wave_priority(wave, engine_config)

        assert entry.recommended == (SignalId("strong"),)
        assert len(entry.contributors) == 1

    def test_equal_scores_keep_input_order(
        self, signal_factory, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test the stable tie order of recommended signals."""
        wave = wave_factory(
            signals=[signal_factory(f"s{i}") for i in range(5)],
        )

        first = build_wave_priority(wave, engine_config)
        second = build_wave_priority(wave, engine_config)

        expected = (SignalId("s0"), SignalId("s1"), SignalId("s2"))
        assert first.recommended == expected
        assert second == first

    def test_wave_without_signals_uses_urgency_only(
        self, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test the score of a wave without evidence."""
        entry = build_wave_priority(wave_factory(state=WaveState.IDLE), engine_config)

        assert entry.score == pytest.approx(0.25 * 0.2)
        assert entry.recommended == ()
        assert entry.band == PriorityBand.NOISE

    def test_min_wave_score_floor(self, wave_factory) -> None:
        """Test that the configured floor applies."""
        config = EngineConfig(min_wave_score=0.4)

        entry = build_wave_priority(wave_factory(state=WaveState.IDLE), config)

        assert entry.score == 0.4


class TestBuildPriorityMatrix:
    """Tests for build_priority_matrix function."""

    def test_entries_ordered_by_score(
        self, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test ranking order and lookups."""
        # Arrange
        waves = [
            wave_factory("idle", state=WaveState.IDLE),
            wave_factory("failed", state=WaveState.FAILED),
            wave_factory("running", state=WaveState.RUNNING),
        ]

        # Act
        matrix = build_priority_matrix(waves, engine_config)

        # Assert
        assert matrix.ranked_wave_ids() == (
            WaveId("failed"),
            WaveId("running"),
            WaveId("idle"),
        )
        assert matrix.get(WaveId("idle")).score == pytest.approx(0.05)
        assert matrix.get(WaveId("missing")) is None

    def test_ties_keep_wave_order(self, wave_factory, engine_config: EngineConfig) -> None:
        """Test that equally scored waves keep their input order."""
        waves = [wave_factory(f"w{i}") for i in range(3)]

        matrix = build_priority_matrix(waves, engine_config)

        assert matrix.ranked_wave_ids() == (WaveId("w0"), WaveId("w1"), WaveId("w2"))

    def test_top_evidenced_only(
        self, signal_factory, wave_factory, engine_config: EngineConfig
    ) -> None:
        """Test that unevidenced waves can be skipped when taking the top."""
        waves = [
            wave_factory("bare", state=WaveState.FAILED),
            wave_factory("evidenced", signals=[signal_factory()]),
        ]
        matrix = build_priority_matrix(waves, engine_config)

        assert [e.wave_id for e in matrix.top(3)] == [WaveId("evidenced"), WaveId("bare")]
        assert [e.wave_id for e in matrix.top(3, evidenced_only=True)] == [
            WaveId("evidenced")
        ]
        assert matrix.top(0) == ()
