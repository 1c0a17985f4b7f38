"""Unit tests for recovery_fusion.scoring.risk module."""

import pytest

from recovery_fusion.domain.models import RiskBand
from recovery_fusion.scoring.risk import (
    RiskVector,
    calculate_risk_vector,
    determine_risk_band,
    normalize_signal_weight,
    rank_signals,
)


class TestCalculateRiskVector:
    """Tests for calculate_risk_vector function."""

    def test_empty_signals_yield_exact_zeros(self) -> None:
        """Test that no signals produce an all-zero vector."""
        result = calculate_risk_vector([], 0.7)

        assert result == RiskVector(severity=0.0, confidence=0.0, risk_index=0.0)

    def test_risk_index_formula(self, signal_factory) -> None:
        """Test coupling and confidence adjustments of the risk index."""
        # Arrange
        signals = [signal_factory(severity=0.5, confidence=0.8)]

        # Act
        result = calculate_risk_vector(signals, 0.5)

        # Assert
        assert result.severity == pytest.approx(0.5)
        assert result.confidence == pytest.approx(0.8)
        assert result.risk_index == pytest.approx(0.5 * 0.825 * 1.04)

    def test_means_over_signals(self, signal_factory) -> None:
        """Test that severity and confidence are averaged."""
        signals = [
            signal_factory("a", severity=0.2, confidence=0.4),
            signal_factory("b", severity=0.6, confidence=1.0),
        ]

        result = calculate_risk_vector(signals, 0.0)

        assert result.severity == pytest.approx(0.4)
        assert result.confidence == pytest.approx(0.7)

    @pytest.mark.parametrize("density", [-3.0, 0.0, 0.5, 1.0, 4.0])
    def test_components_stay_in_unit_range(self, signal_factory, density: float) -> None:
        """Test that every component is clamped into [0, 1]."""
        signals = [signal_factory(severity=1.0, confidence=0.0)]

        result = calculate_risk_vector(signals, density)

        for value in (result.severity, result.confidence, result.risk_index):
            assert 0.0 <= value <= 1.0

    def test_higher_density_raises_risk(self, signal_factory) -> None:
        """Test that tighter coupling increases risk."""
        signals = [signal_factory(severity=0.6, confidence=0.5)]

        loose = calculate_risk_vector(signals, 0.1).risk_index
        tight = calculate_risk_vector(signals, 0.9).risk_index

        assert tight > loose


class TestRankSignals:
    """Tests for rank_signals function."""

    def test_no_signals_rank_zero(self) -> None:
        """Test the empty ranking."""
        assert rank_signals([]) == 0.0

    def test_untagged_certain_signal_ranks_one(self, signal_factory) -> None:
        """Test the maximum rank of a fully severe, confident, untagged signal."""
        result = rank_signals([signal_factory(severity=1.0, confidence=1.0)])

        assert result == pytest.approx(1.0)

    def test_tags_reduce_pressure(self, signal_factory) -> None:
        """Test that well-tagged signals rank lower."""
        untagged = rank_signals([signal_factory(severity=0.5)])
        tagged = rank_signals(
            [signal_factory(severity=0.5, tags=[f"t{i}" for i in range(12)])]
        )

        assert tagged < untagged
        assert tagged == pytest.approx(0.5 * 0.35 + 0.8 * 0.2)

    def test_only_first_signals_are_ranked(self, signal_factory) -> None:
        """Test that signals past the ranking limit are ignored."""
        signals = [signal_factory(f"s{i}", severity=0.2) for i in range(24)]
        signals.append(signal_factory("late", severity=1.0))

        assert rank_signals(signals) == pytest.approx(rank_signals(signals[:24]))


class TestDetermineRiskBand:
    """Tests for determine_risk_band function."""

    @pytest.mark.parametrize(
        "severity,confidence,band",
        [
            (1.0, 0.0, RiskBand.CRITICAL),
            (1.0, 1.0, RiskBand.RED),
            (0.5, 1.0, RiskBand.AMBER),
            (0.1, 1.0, RiskBand.GREEN),
        ],
    )
    def test_bands(
        self, signal_factory, severity: float, confidence: float, band: RiskBand
    ) -> None:
        """Test banding at baseline density."""
        signals = [signal_factory(severity=severity, confidence=confidence)]

        assert determine_risk_band(signals) == band

    def test_no_signals_is_green(self) -> None:
        """Test that an empty signal set is green."""
        assert determine_risk_band([]) == RiskBand.GREEN


class TestNormalizeSignalWeight:
    """Tests for normalize_signal_weight function."""

    @pytest.mark.parametrize("value,expected", [(-1.0, 0.0), (0.4, 0.4), (7.0, 1.0)])
    def test_clamps(self, value: float, expected: float) -> None:
        """Test clamping into the unit range."""
        assert normalize_signal_weight(value) == expected
