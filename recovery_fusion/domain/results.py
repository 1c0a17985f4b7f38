"""
Result objects for fusion planning and evaluation.

This module defines:
- Ok / Fail: The two arms of the ``Result`` union returned by every
  fallible engine operation
- FusionPlanResult: The canonical accept/reject decision artifact

Operations never raise across component boundaries; they return ``Fail``
holding a ``FusionError`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar, Union

from recovery_fusion.domain.errors import FusionError, StructuralError
from recovery_fusion.domain.identifiers import BundleId
from recovery_fusion.domain.models import RiskBand

T = TypeVar("T")


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class Ok(Generic[T]):
    """
    Successful outcome carrying a value.

    Example:
        >>> result = ok(3)
        >>> result.ok
        True
        >>> result.unwrap()
        3
    """

    value: T
    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        """Return the carried value."""
        return self.value


@dataclass(frozen=True)
class Fail:
    """
    Failed outcome carrying the error that stopped the operation.

    Example:
        >>> result = fail("empty bundle")
        >>> result.ok
        False
        >>> str(result.error)
        'empty bundle'
    """

    error: FusionError
    ok: ClassVar[bool] = False

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error

    @property
    def message(self) -> str:
        """Error message as reported to operators."""
        return str(self.error)


Result = Union[Ok[T], Fail]


def ok(value: T) -> Ok[T]:
    """Wrap a value in a successful result."""
    return Ok(value)


def fail(error: FusionError | str) -> Fail:
    """
    Wrap an error in a failed result.

    Plain strings are treated as structural errors.

    :param error: Error instance or message
    :type error: FusionError | str
    :return: Failed result
    :rtype: Fail
    """
    if isinstance(error, str):
        error = StructuralError(error)
    return Fail(error)


# =============================================================================
# FusionPlanResult
# =============================================================================


@dataclass(frozen=True)
class FusionPlanResult:
    """
    Accept/reject decision for one plan request.

    Attributes:
        accepted: Whether the plan may proceed
        bundle_id: Bundle the decision was made for (empty when intake failed)
        wave_count: Number of waves evaluated
        estimated_minutes: Rough execution estimate
        risk_band: Coarse risk classification
        reasons: Ordered human-readable reasons backing the decision
    """

    accepted: bool
    bundle_id: BundleId
    wave_count: int
    estimated_minutes: int
    risk_band: RiskBand
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def rejected(
        cls,
        bundle_id: BundleId,
        reasons: tuple[str, ...],
        wave_count: int = 0,
    ) -> FusionPlanResult:
        """Create a rejection with the given reasons."""
        return cls(
            accepted=False,
            bundle_id=bundle_id,
            wave_count=wave_count,
            estimated_minutes=0,
            risk_band=RiskBand.RED,
            reasons=reasons,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "accepted": self.accepted,
            "bundleId": str(self.bundle_id),
            "waveCount": self.wave_count,
            "estimatedMinutes": self.estimated_minutes,
            "riskBand": self.risk_band.value,
            "reasons": list(self.reasons),
        }
