"""Configuration constants for the recovery fusion engine."""

import os

# Bundled JSON schemas
SCHEMA_DIR_PATH: str = os.path.join(os.path.dirname(__file__), "schemas")
MAIN_SCHEMA_NAME: str = "main"

# Sections recognized in configuration files
CONFIG_SECTIONS: tuple[str, ...] = (
    "general_settings",
    "scoring_settings",
    "schedule_settings",
    "readiness_settings",
    "planner_settings",
)

SUPPORTED_CONFIG_EXTENSIONS: tuple[str, ...] = (".ini", ".json", ".yaml", ".yml")
