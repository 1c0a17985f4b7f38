"""Exception classes for fusion planning and evaluation failures."""


class FusionError(Exception):
    """Base exception for fusion engine errors.

    Every error carried by a failed ``Result`` is an instance of this class,
    so callers can report ``str(error)`` without inspecting the subtype.
    """


class RequestValidationError(FusionError):
    """Raised when a plan request is missing or carries invalid fields.

    Examples are ``planId required``, ``runId required`` and
    ``invalid budget values``. No bundle is built when this occurs.
    """


class StructuralError(FusionError):
    """Raised when a bundle cannot be processed as given.

    Covers ``empty bundle``, ``no commands in wave <id>``,
    ``bundle-not-schedulable`` and ``window-not-found``. Callers may retry
    with corrected input; nothing is retried automatically.
    """


class DecodeError(FusionError):
    """Raised when a stored bundle or result envelope cannot be decoded."""
