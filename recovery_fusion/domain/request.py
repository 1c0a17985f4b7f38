"""
Plan request intake.

This module defines:
- FusionPlanRequest: Validated plan intake handed over by the drill layer
- parse_plan_request: Field-by-field validation of a raw request mapping
- sanitize_signal: Lenient conversion of a raw signal mapping

Validation failures are returned as ``Fail`` results and no partial bundle
is ever built from a rejected request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any

from recovery_fusion.domain.errors import RequestValidationError
from recovery_fusion.domain.identifiers import PlanId, RunId, SignalId
from recovery_fusion.domain.models import FusionSignal, FusionWave, PlanBudget
from recovery_fusion.domain.results import Result, fail, ok
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp
from recovery_fusion.utils.timeutil import parse_timestamp

logger = get_logger(__name__)

# Budget fields with the minimum value each may be clamped to
_BUDGET_FLOORS: dict[str, int] = {
    "maxParallelism": 1,
    "maxRetries": 0,
    "timeoutMinutes": 1,
}


@dataclass(frozen=True)
class FusionPlanRequest:
    """
    Validated plan request.

    Attributes:
        plan_id: Plan being executed
        run_id: Drill run the plan belongs to
        waves: Proposed execution waves (may be empty)
        signals: Sanitized signals observed for the run
        budget: Execution budget
        tenant: Tenant the drill runs for (None selects the configured default)
        warnings: Non-fatal intake findings such as out-of-range severities
    """

    plan_id: PlanId
    run_id: RunId
    waves: tuple[FusionWave, ...] = ()
    signals: tuple[FusionSignal, ...] = ()
    budget: PlanBudget = field(default_factory=PlanBudget)
    tenant: str | None = None
    warnings: tuple[str, ...] = ()


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_plan_signals(raw_signals: list[dict[str, Any]]) -> list[str]:
    """
    Report raw signals whose severity falls outside [0, 1].

    :param raw_signals: Raw signal mappings as received
    :type raw_signals: list[dict[str, Any]]
    :return: ``invalid-severity:<id>`` entries, one per offending signal
    :rtype: list[str]
    """
    findings = []
    for raw in raw_signals:
        severity = raw.get("severity")
        if _is_number(severity) and not 0.0 <= severity <= 1.0:
            findings.append(f"invalid-severity:{raw.get('id', '')}")
    return findings


def sanitize_signal(data: dict[str, Any], default_run_id: str = "") -> FusionSignal | None:
    """
    Convert a raw signal mapping, clamping instead of rejecting.

    Signals without an id or run id are dropped. Severity and confidence
    are clamped to [0, 1], tags are trimmed and deduplicated, and missing
    timestamps fall back to now.

    :param data: Raw signal mapping
    :type data: dict[str, Any]
    :param default_run_id: Run id used when the mapping carries none
    :type default_run_id: str
    :return: Sanitized signal or None when the signal is unusable
    :rtype: FusionSignal | None
    """
    signal_id = str(data.get("id") or "")
    run_id = str(data.get("runId") or default_run_id)
    if not signal_id or not run_id:
        logger.debug("Dropping signal without id or run id: %r", data.get("id"))
        return None

    severity = data.get("severity")
    confidence = data.get("confidence")
    tags: list[str] = []
    for tag in data.get("tags") or ():
        trimmed = str(tag).strip()
        if trimmed and trimmed not in tags:
            tags.append(trimmed)

    observed_at = parse_timestamp(data.get("observedAt"))
    return FusionSignal(
        id=SignalId(signal_id),
        run_id=RunId(run_id),
        source=str(data.get("source") or "unknown"),
        severity=clamp(float(severity)) if _is_number(severity) else 0.0,
        confidence=clamp(float(confidence)) if _is_number(confidence) else 0.0,
        detected_at=parse_timestamp(data.get("detectedAt"), fallback=observed_at),
        observed_at=observed_at,
        tags=tuple(tags),
        payload=dict(data.get("payload") or {}),
        details=dict(data.get("details") or {}),
    )


def _parse_budget(raw: Any) -> PlanBudget | None:
    if raw is None:
        return PlanBudget()
    if not isinstance(raw, dict):
        return None

    values: dict[str, Any] = {}
    for key, floor in _BUDGET_FLOORS.items():
        if key not in raw:
            continue
        value = raw[key]
        if not _is_number(value) or value < 0:
            return None
        values[key] = max(floor, int(value))
    values["operatorApprovalRequired"] = bool(raw.get("operatorApprovalRequired", False))
    return PlanBudget.from_dict(values)


def _parse_wave(
    raw: dict[str, Any], plan_id: str, run_id: str, budget: PlanBudget
) -> FusionWave:
    raw_signals = [
        item for item in raw.get("readinessSignals") or () if isinstance(item, dict)
    ]
    signals = tuple(
        signal
        for signal in (sanitize_signal(item, run_id) for item in raw_signals)
        if signal is not None
    )
    wave_data = {
        **raw,
        "planId": raw.get("planId") or plan_id,
        "runId": raw.get("runId") or run_id,
        "readinessSignals": [],
        "budget": raw.get("budget") or budget.to_dict(),
        "score": clamp(float(raw.get("score", 0.0))),
    }
    return replace(FusionWave.from_dict(wave_data), readiness_signals=signals)


def parse_plan_request(raw: dict[str, Any]) -> Result[FusionPlanRequest]:
    """
    Validate a raw plan request field by field.

    :param raw: Raw request mapping with camelCase keys
    :type raw: dict[str, Any]
    :return: Parsed request, or a failure naming the first invalid field
    :rtype: Result[FusionPlanRequest]

    Example:
        >>> result = parse_plan_request({"planId": "plan-1", "runId": "run-1"})
        >>> result.ok
        True
        >>> str(parse_plan_request({"runId": "run-1"}).error)
        'planId required'
    """
    if not isinstance(raw, dict):
        return fail(RequestValidationError("request must be an object"))
    plan_id = raw.get("planId")
    if not isinstance(plan_id, str) or not plan_id.strip():
        return fail(RequestValidationError("planId required"))
    run_id = raw.get("runId")
    if not isinstance(run_id, str) or not run_id.strip():
        return fail(RequestValidationError("runId required"))
    plan_id = plan_id.strip()
    run_id = run_id.strip()

    budget = _parse_budget(raw.get("budget"))
    if budget is None:
        return fail(RequestValidationError("invalid budget values"))

    raw_signals = raw.get("signals") or []
    if not isinstance(raw_signals, (list, tuple)):
        return fail(RequestValidationError("signals must be a list"))
    raw_signals = [item for item in raw_signals if isinstance(item, dict)]
    warnings = validate_plan_signals(raw_signals)
    signals = tuple(
        signal
        for signal in (sanitize_signal(item, run_id) for item in raw_signals)
        if signal is not None
    )

    waves: list[FusionWave] = []
    raw_waves = raw.get("waves") or []
    if not isinstance(raw_waves, (list, tuple)):
        return fail(RequestValidationError("waves must be a list"))
    for index, raw_wave in enumerate(raw_waves):
        if not isinstance(raw_wave, dict):
            return fail(
                RequestValidationError(f"invalid wave {index}: expected an object")
            )
        try:
            waves.append(_parse_wave(raw_wave, plan_id, run_id, budget))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            return fail(RequestValidationError(f"invalid wave {index}: {exc}"))

    tenant = raw.get("tenant")
    logger.debug(
        "Parsed plan request %s with %d waves and %d signals",
        plan_id,
        len(waves),
        len(signals),
    )
    return ok(
        FusionPlanRequest(
            plan_id=PlanId(plan_id),
            run_id=RunId(run_id),
            waves=tuple(waves),
            signals=signals,
            budget=budget,
            tenant=str(tenant) if tenant else None,
            warnings=tuple(warnings),
        )
    )
