"""Centralized configuration management for the recovery fusion engine."""

from __future__ import annotations

import configparser
import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Any

import yaml

from recovery_fusion.configs.constants import CONFIG_SECTIONS
from recovery_fusion.configs.errors import (
    ConfigFileNotFoundError,
    ConfigParseError,
)
from recovery_fusion.configs.validate import SchemaValidator
from recovery_fusion.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine configuration.

    Every threshold used by the scoring, scheduling and readiness modules
    lives here. Defaults reproduce the reference engine behaviour.

    Attributes:
        General:
            log_level: Level for per-run loggers
            run_log_dir: Directory for per-run log files (None disables them)

        Scoring:
            min_signal_confidence: Signals below this confidence are not ranked
            top_signals: Number of signals recommended per wave
            min_wave_score: Floor for a wave's priority score

        Schedule:
            degenerate_window_minutes: Padding applied to degenerate windows
            reschedule_shift_minutes: Shift applied by reschedule_window
            reschedule_window_minutes: Window length after a reschedule
            max_readiness_signals: Waves above this signal count are unhealthy
            critical_wave_count: Number of top-ranked waves reported as critical
            max_overlap_minutes: Total overlap a ready bundle must stay below
            min_dependency_criticality: Criticality every dependency must exceed

        Readiness:
            min_wave_readiness: Per-wave readiness floor
            min_average_readiness: Bundle average readiness floor
            min_slo_score: Composite score an SLO verdict must reach
            max_risk_index: Ceiling for any wave's risk index
            min_transition_stability: Floor for wave-to-wave readiness stability
            command_pressure_divisor: Command count at which pressure saturates
            low_score_threshold: Evaluation score below which a wave is flagged

        Planner:
            default_tenant: Tenant used when a request names none
            bundle_ttl_minutes: Bundle lifetime after creation
            minutes_per_wave: Execution estimate per wave
            min_estimated_minutes: Floor for the execution estimate
            default_wave_count: Waves synthesized for requests without waves
    """

    # General
    log_level: str = "INFO"
    run_log_dir: str | None = None

    # Scoring
    min_signal_confidence: float = 0.1
    top_signals: int = 3
    min_wave_score: float = 0.05

    # Schedule
    degenerate_window_minutes: int = 5
    reschedule_shift_minutes: int = 15
    reschedule_window_minutes: int = 5
    max_readiness_signals: int = 100
    critical_wave_count: int = 3
    max_overlap_minutes: float = 90.0
    min_dependency_criticality: float = 0.2

    # Readiness
    min_wave_readiness: float = 0.45
    min_average_readiness: float = 0.52
    min_slo_score: float = 0.6
    max_risk_index: float = 0.85
    min_transition_stability: float = 0.5
    command_pressure_divisor: int = 8
    low_score_threshold: float = 0.35

    # Planner
    default_tenant: str = "tenant-01"
    bundle_ttl_minutes: int = 120
    minutes_per_wave: int = 8
    min_estimated_minutes: int = 5
    default_wave_count: int = 2

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        if self.top_signals < 1:
            raise ValueError("top_signals must be at least 1")
        if self.command_pressure_divisor < 1:
            raise ValueError("command_pressure_divisor must be at least 1")
        if self.degenerate_window_minutes < 1:
            raise ValueError("degenerate_window_minutes must be at least 1")
        if not 0.0 <= self.min_wave_score <= 1.0:
            raise ValueError("min_wave_score must be within [0, 1]")

    @classmethod
    def from_dict(cls, sections: dict[str, Any]) -> EngineConfig:
        """
        Build from a sectioned configuration mapping.

        Keys may appear in any recognized section or at the top level;
        unknown keys are ignored with a debug log.

        :param sections: Mapping of section name to key/value pairs
        :type sections: dict[str, Any]
        :return: New EngineConfig instance
        :rtype: EngineConfig
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for name, section in sections.items():
            items = section.items() if isinstance(section, dict) else [(name, section)]
            for key, value in items:
                if key in known:
                    values[key] = value
                else:
                    logger.debug("Ignoring unknown configuration key %s", key)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Flatten to a plain dictionary."""
        return asdict(self)


# Section each EngineConfig field is written under
_FIELD_SECTIONS: dict[str, str] = {
    "log_level": "general_settings",
    "run_log_dir": "general_settings",
    "min_signal_confidence": "scoring_settings",
    "top_signals": "scoring_settings",
    "min_wave_score": "scoring_settings",
    "degenerate_window_minutes": "schedule_settings",
    "reschedule_shift_minutes": "schedule_settings",
    "reschedule_window_minutes": "schedule_settings",
    "max_readiness_signals": "schedule_settings",
    "critical_wave_count": "schedule_settings",
    "max_overlap_minutes": "schedule_settings",
    "min_dependency_criticality": "schedule_settings",
    "min_wave_readiness": "readiness_settings",
    "min_average_readiness": "readiness_settings",
    "min_slo_score": "readiness_settings",
    "max_risk_index": "readiness_settings",
    "min_transition_stability": "readiness_settings",
    "command_pressure_divisor": "readiness_settings",
    "low_score_threshold": "readiness_settings",
    "default_tenant": "planner_settings",
    "bundle_ttl_minutes": "planner_settings",
    "minutes_per_wave": "planner_settings",
    "min_estimated_minutes": "planner_settings",
    "default_wave_count": "planner_settings",
}


class ConfigManager:
    """Configuration manager with schema validation."""

    def __init__(self, config_path: str | None = None, schema_dir: str | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
            schema_dir: Directory containing schema files (bundled schemas by default)
        """
        self.config_path = config_path
        self.schema_validator = SchemaValidator(schema_dir)
        self._raw_config: dict[str, Any] = {}
        self._config = EngineConfig()

        if config_path:
            self.load_config(config_path)

    def load_config(self, path: str) -> EngineConfig:
        """Load and validate configuration from file.

        Args:
            path: Path to configuration file

        Returns:
            Validated configuration object

        Raises:
            ConfigFileNotFoundError: If configuration file doesn't exist
            ConfigParseError: If the file cannot be parsed
            ConfigValidationError: If the content violates the schema
        """
        if not os.path.exists(path):
            raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

        if path.endswith(".ini"):
            raw_config = self._load_ini(path)
        elif path.endswith(".json"):
            raw_config = self._load_json(path)
        elif path.endswith((".yaml", ".yml")):
            raw_config = self._load_yaml(path)
        else:
            raise ConfigParseError(f"Unsupported configuration file format: {path}")

        if not isinstance(raw_config, dict):
            raise ConfigParseError(f"Configuration root must be a mapping: {path}")

        self.schema_validator.validate(raw_config)

        self._raw_config = raw_config
        self._config = EngineConfig.from_dict(raw_config)
        logger.info("Loaded engine configuration from %s", path)
        return self._config

    def _load_ini(self, path: str) -> dict[str, Any]:
        """Load INI configuration file."""
        config = configparser.ConfigParser()
        try:
            config.read(path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigParseError(f"Could not parse {path}: {e}") from e

        result: dict[str, Any] = {}
        for section_name in config.sections():
            section: dict[str, Any] = {}
            for key, value in config[section_name].items():
                section[key] = self._coerce_ini_value(value)
            result[section_name] = section

        return result

    @staticmethod
    def _coerce_ini_value(value: str) -> Any:
        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            pass
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        if value.lower() == "none":
            return None
        return value

    def _load_json(self, path: str) -> dict[str, Any]:
        """Load JSON configuration file."""
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Could not parse {path}: {e}") from e

    def _load_yaml(self, path: str) -> dict[str, Any]:
        """Load YAML configuration file."""
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Could not parse {path}: {e}") from e

    def get_engine_config(self) -> EngineConfig:
        """Get the loaded configuration object (defaults when nothing was loaded)."""
        return self._config

    def update_config(self, key: str, value: Any) -> EngineConfig:
        """Update a single configuration value.

        Args:
            key: EngineConfig field name
            value: New value

        Returns:
            The rebuilt configuration
        """
        section = _FIELD_SECTIONS.get(key)
        if section is None:
            raise KeyError(f"Unknown configuration key: {key}")

        self._raw_config.setdefault(section, {})[key] = value
        self.schema_validator.validate(self._raw_config)
        self._config = EngineConfig.from_dict(self._raw_config)
        return self._config

    def save_config(self, path: str, format_type: str = "yaml") -> None:
        """Save the current configuration to file.

        Args:
            path: Output file path
            format_type: Output format ('ini', 'json', 'yaml')
        """
        sections: dict[str, dict[str, Any]] = {name: {} for name in CONFIG_SECTIONS}
        for key, value in self._config.to_dict().items():
            sections[_FIELD_SECTIONS[key]][key] = value

        if format_type == "ini":
            parser = configparser.ConfigParser()
            for section_name, section_data in sections.items():
                parser[section_name] = {
                    key: json.dumps(value) if not isinstance(value, str) else value
                    for key, value in section_data.items()
                }
            with open(path, "w", encoding="utf-8") as f:
                parser.write(f)
        elif format_type == "json":
            with open(path, "w", encoding="utf-8") as f:
                json.dump(sections, f, indent=2)
        elif format_type == "yaml":
            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(sections, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported format: {format_type}")
