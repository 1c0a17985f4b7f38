"""Configuration-related exception classes for the recovery fusion engine."""


class ConfigError(Exception):
    """Base exception for configuration errors.

    All configuration-related exceptions inherit from this class,
    allowing for broad exception handling when needed.
    """


class ConfigFileNotFoundError(ConfigError):
    """Raised when a config file cannot be found."""


class ConfigParseError(ConfigError):
    """Raised when a config file cannot be parsed.

    This exception is raised when a configuration file exists but
    contains invalid syntax or uses an unsupported format.
    """


class ConfigValidationError(ConfigError):
    """Raised when configuration values violate the schema.

    The message lists every violation, one per line.
    """
