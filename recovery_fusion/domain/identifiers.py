"""
Opaque identifier types for fusion domain objects.

Each identifier kind wraps a plain string. Two identifiers are equal only
when they are of the same kind and carry the same string, so a ``WaveId``
never compares equal to a ``SignalId`` with identical text.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class _Identifier:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(
                f"{type(self).__name__} requires a str, got {type(self.value).__name__}"
            )

    def __str__(self) -> str:
        return self.value

    def __bool__(self) -> bool:
        return bool(self.value)


class PlanId(_Identifier):
    """Identifier of a recovery plan."""


class RunId(_Identifier):
    """Identifier of a drill run."""


class BundleId(_Identifier):
    """Identifier of a fusion bundle."""


class SessionId(_Identifier):
    """Identifier of a run session."""


class TicketId(_Identifier):
    """Identifier of the ticket a run session is filed under."""


class WaveId(_Identifier):
    """Identifier of an execution wave."""


class SignalId(_Identifier):
    """Identifier of a fusion signal."""


class CommandId(_Identifier):
    """Identifier of a wave command."""
