"""
Configuration management for the recovery fusion engine.

Main components:
- EngineConfig: Immutable thresholds used by every engine component
- ConfigManager: Loading (INI, JSON, YAML), validation and saving
- SchemaValidator: JSON schema-based validation
- Error classes: Specific configuration exceptions
"""

from .config import ConfigManager, EngineConfig
from .errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from .validate import SchemaValidator

__all__ = [
    'ConfigManager',
    'EngineConfig',
    'SchemaValidator',
    'ConfigError',
    'ConfigFileNotFoundError',
    'ConfigParseError',
    'ConfigValidationError',
]
