"""Unit tests for recovery_fusion.utils.timeutil module."""

from datetime import datetime, timedelta, timezone

from recovery_fusion.utils.timeutil import parse_timestamp, to_iso, utc_now


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    def test_parse_iso_with_z_suffix(self) -> None:
        """Test that a trailing Z is read as UTC."""
        # Act
        result = parse_timestamp("2026-03-01T10:15:00Z")

        # Assert
        assert result == datetime(2026, 3, 1, 10, 15, tzinfo=timezone.utc)

    def test_parse_iso_with_offset_converts_to_utc(self) -> None:
        """Test that offsets are normalized to UTC."""
        # Act
        result = parse_timestamp("2026-03-01T12:15:00+02:00")

        # Assert
        assert result == datetime(2026, 3, 1, 10, 15, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_parse_naive_datetime_assumes_utc(self) -> None:
        """Test that naive datetimes are treated as UTC."""
        # Act
        result = parse_timestamp(datetime(2026, 3, 1, 10, 0))

        # Assert
        assert result.tzinfo == timezone.utc

    def test_parse_epoch_milliseconds(self) -> None:
        """Test parsing epoch milliseconds."""
        # Act
        result = parse_timestamp(0)

        # Assert
        assert result == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_parse_malformed_returns_fallback(self) -> None:
        """Test that malformed text yields the fallback."""
        # Arrange
        fallback = datetime(2026, 1, 1, tzinfo=timezone.utc)

        # Act
        result = parse_timestamp("not a time", fallback=fallback)

        # Assert
        assert result == fallback

    def test_parse_missing_returns_now(self) -> None:
        """Test that a missing value falls back to the current time."""
        # Act
        result = parse_timestamp(None)

        # Assert
        assert abs(result - utc_now()) < timedelta(seconds=5)


class TestToIso:
    """Tests for to_iso function."""

    def test_to_iso_uses_z_suffix(self) -> None:
        """Test that UTC is rendered with a Z suffix."""
        # Act
        result = to_iso(datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc))

        # Assert
        assert result == "2026-03-01T10:00:00Z"
