"""Unit tests for recovery_fusion.configs.validate module."""

import json
from pathlib import Path

import pytest

from recovery_fusion.configs.errors import ConfigValidationError
from recovery_fusion.configs.validate import SchemaValidator


class TestSchemaValidator:
    """Tests for SchemaValidator class."""

    def test_bundled_main_schema_is_loaded(self) -> None:
        """Test that the packaged schema is found by default."""
        validator = SchemaValidator()

        assert "main" in validator.schemas

    def test_valid_config_passes(self) -> None:
        """Test that a conforming configuration raises nothing."""
        SchemaValidator().validate(
            {
                "schedule_settings": {"max_overlap_minutes": 30, "critical_wave_count": 2},
                "planner_settings": {"default_tenant": "tenant-02"},
            }
        )

    @pytest.mark.parametrize(
        "config,fragment",
        [
            ({"scoring_settings": {"top_signals": "three"}}, "Expected integer, got str"),
            ({"scoring_settings": {"top_signals": True}}, "Expected integer, got bool"),
            ({"scoring_settings": {"top_signals": 0}}, "below minimum"),
            ({"readiness_settings": {"max_risk_index": 2}}, "above maximum"),
            ({"general_settings": {"log_level": "LOUD"}}, "not in allowed values"),
            ({"planner_settings": {"tenant": "x"}}, "planner_settings.tenant: Unknown field"),
        ],
    )
    def test_violations_are_reported(self, config: dict, fragment: str) -> None:
        """Test each kind of schema violation."""
        with pytest.raises(ConfigValidationError) as exc_info:
            SchemaValidator().validate(config)

        assert fragment in str(exc_info.value)

    def test_multiple_violations_listed(self) -> None:
        """Test that every violation appears in the message."""
        with pytest.raises(ConfigValidationError) as exc_info:
            SchemaValidator().validate(
                {"scoring_settings": {"top_signals": 0, "min_wave_score": -1}}
            )

        message = str(exc_info.value)
        assert "scoring_settings.top_signals" in message
        assert "scoring_settings.min_wave_score" in message

    def test_missing_schema_skips_validation(self, tmp_path: Path) -> None:
        """Test that validation is skipped when no schema is available."""
        validator = SchemaValidator(str(tmp_path))

        validator.validate({"anything": "goes"})

        assert validator.schemas == {}

    def test_required_fields(self, tmp_path: Path) -> None:
        """Test required field checks from a custom schema."""
        # Arrange
        schema = {"type": "object", "required": ["planner_settings"]}
        (tmp_path / "main.json").write_text(json.dumps(schema), encoding="utf-8")

        # Act & Assert
        with pytest.raises(ConfigValidationError, match="Required field missing"):
            SchemaValidator(str(tmp_path)).validate({})

    def test_unreadable_schema_is_skipped(self, tmp_path: Path) -> None:
        """Test that broken schema files are ignored."""
        (tmp_path / "main.json").write_text("{broken", encoding="utf-8")

        validator = SchemaValidator(str(tmp_path))

        assert "main" not in validator.schemas
