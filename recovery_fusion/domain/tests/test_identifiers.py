"""Unit tests for recovery_fusion.domain.identifiers module."""

import pytest

from recovery_fusion.domain.identifiers import BundleId, SignalId, WaveId


class TestIdentifiers:
    """Tests for the opaque identifier types."""

    def test_same_kind_same_text_is_equal(self) -> None:
        """Test that equality is string equality within one kind."""
        assert WaveId("wave-1") == WaveId("wave-1")
        assert hash(WaveId("wave-1")) == hash(WaveId("wave-1"))

    def test_different_kinds_never_compare_equal(self) -> None:
        """Test that identifiers of different kinds are never equal."""
        assert WaveId("a") != SignalId("a")
        assert BundleId("a") != WaveId("a")

    def test_identifier_is_not_equal_to_plain_string(self) -> None:
        """Test that identifiers do not compare equal to raw strings."""
        assert WaveId("a") != "a"

    def test_str_returns_wrapped_value(self) -> None:
        """Test string conversion."""
        assert str(WaveId("wave-9")) == "wave-9"
        assert f"{BundleId('run-1:bundle')}" == "run-1:bundle"

    def test_identifiers_order_by_value(self) -> None:
        """Test that identifiers of one kind sort by text."""
        assert sorted([WaveId("b"), WaveId("a")]) == [WaveId("a"), WaveId("b")]

    def test_empty_identifier_is_falsy(self) -> None:
        """Test truthiness follows the wrapped text."""
        assert not BundleId("")
        assert BundleId("x")

    def test_non_string_value_raises(self) -> None:
        """Test that only strings can be wrapped."""
        with pytest.raises(TypeError, match="WaveId requires a str"):
            WaveId(42)  # type: ignore[arg-type]
