"""Numeric helpers shared by the scoring and evaluation modules."""

import math
from collections.abc import Iterable

import numpy as np

# Signal severities are stored in [0, 1] and bucketed onto a 0-5 level scale
SEVERITY_LEVELS = 5


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """
    Clamp a value into ``[lower, upper]``.

    Non-finite input (NaN, inf) collapses to ``lower``.

    :param value: Value to clamp
    :type value: float
    :param lower: Lower bound
    :type lower: float
    :param upper: Upper bound
    :type upper: float
    :return: Clamped value
    :rtype: float
    """
    if not math.isfinite(value):
        return lower
    return float(max(lower, min(upper, value)))


def safe_mean(values: Iterable[float]) -> float:
    """
    Arithmetic mean that returns 0.0 for an empty input.

    :param values: Values to average
    :type values: Iterable[float]
    :return: Mean value or 0.0
    :rtype: float
    """
    values_list = list(values)
    if not values_list:
        return 0.0
    return float(np.mean(values_list))


def severity_level(severity: float) -> int:
    """
    Map a [0, 1] severity onto the 0-5 severity level scale (half up).

    :param severity: Normalized severity
    :type severity: float
    :return: Severity level between 0 and 5
    :rtype: int
    """
    return int(math.floor(clamp(severity) * SEVERITY_LEVELS + 0.5))
