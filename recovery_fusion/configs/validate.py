"""Validation of engine settings against the bundled JSON schemas."""

import json
from pathlib import Path
from typing import Any

from recovery_fusion.configs.constants import MAIN_SCHEMA_NAME, SCHEMA_DIR_PATH
from recovery_fusion.configs.errors import ConfigValidationError
from recovery_fusion.utils.logging_config import get_logger

logger = get_logger(__name__)

# JSON schema type names and the Python values accepted for them
JSON_TYPES: dict[str, Any] = {
    "string": str,
    "number": (int, float),
    "integer": int,
    "boolean": bool,
    "object": dict,
    "null": type(None),
}


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class SchemaValidator:
    """
    Checks the sections of an engine settings file before an
    ``EngineConfig`` is built from them.

    Only the schema keywords the engine's schemas use are understood:
    ``type``, ``required``, ``properties``, ``additionalProperties``,
    ``minimum``, ``maximum`` and string ``enum``.
    """

    def __init__(self, schema_dir: str | None = None):
        """
        Load the schemas found in ``schema_dir``.

        :param schema_dir: Directory of ``*.json`` schemas, the packaged
            ``schemas/`` directory when None
        :type schema_dir: str | None
        """
        self.schema_dir = schema_dir or SCHEMA_DIR_PATH
        self.schemas: dict[str, dict[str, Any]] = {}
        self._load_schemas()

    def _load_schemas(self) -> None:
        """Index every readable schema by file stem; broken files are skipped."""
        directory = Path(self.schema_dir)
        if not directory.exists():
            logger.warning("Schema directory %s does not exist", self.schema_dir)
            return

        for schema_file in directory.glob("*.json"):
            try:
                with open(schema_file, encoding="utf-8") as f:
                    self.schemas[schema_file.stem] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Could not load schema %s: %s", schema_file, e)

    def validate(
        self, config: dict[str, Any], schema_name: str = MAIN_SCHEMA_NAME
    ) -> None:
        """
        Check loaded engine settings against a schema.

        Validation is skipped, with a warning, when the schema was not
        loaded. Every violation is collected before raising, one per line,
        each prefixed with the dotted path of the offending setting.

        :param config: Settings grouped by section
        :type config: dict[str, Any]
        :param schema_name: Schema file stem
        :type schema_name: str
        :raises ConfigValidationError: If any setting violates the schema
        """
        schema = self.schemas.get(schema_name)
        if schema is None:
            logger.warning("Schema '%s' not found, skipping validation", schema_name)
            return

        errors = self._validate_recursive(config, schema, "")
        if errors:
            raise ConfigValidationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            )

    def _validate_recursive(self, config: Any, schema: Any, path: str) -> list[str]:
        if not isinstance(schema, dict):
            return []

        errors: list[str] = []
        if "type" in schema:
            errors.extend(self._validate_type(config, schema, path))
        if not isinstance(config, dict):
            return errors

        if "required" in schema:
            errors.extend(self._validate_required_fields(config, schema["required"], path))

        properties = schema.get("properties")
        if properties is None:
            return errors
        for key, value in config.items():
            if key in properties:
                errors.extend(
                    self._validate_recursive(value, properties[key], _join(path, key))
                )
            elif schema.get("additionalProperties") is False:
                errors.append(f"{_join(path, key)}: Unknown field")
        return errors

    def _validate_type(self, value: Any, schema: dict[str, Any], path: str) -> list[str]:
        expected = schema["type"]
        numeric = expected in ("number", "integer")

        python_type = JSON_TYPES.get(expected)
        if python_type is not None:
            # bool is an int subclass but never a valid number setting
            if not isinstance(value, python_type) or (numeric and isinstance(value, bool)):
                return [f"{path}: Expected {expected}, got {type(value).__name__}"]

        errors: list[str] = []
        if numeric and "minimum" in schema and value < schema["minimum"]:
            errors.append(f"{path}: Value {value} is below minimum {schema['minimum']}")
        if numeric and "maximum" in schema and value > schema["maximum"]:
            errors.append(f"{path}: Value {value} is above maximum {schema['maximum']}")
        if expected == "string" and "enum" in schema and value not in schema["enum"]:
            errors.append(
                f"{path}: Value '{value}' not in allowed values: {schema['enum']}"
            )
        return errors

    def _validate_required_fields(
        self, config: dict[str, Any], required: list[str], path: str
    ) -> list[str]:
        return [
            f"{_join(path, name)}: Required field missing"
            for name in required
            if name not in config
        ]
