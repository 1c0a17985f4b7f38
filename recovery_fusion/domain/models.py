"""
Fusion domain model.

This module defines:
- WaveState, CommandAction, RiskBand: Enumerations used across the engine
- FusionSignal: Immutable telemetry/incident observation
- FusionCommand: Remediation command owned by one wave
- PlanBudget: Descriptive execution budget passed through from the plan
- FusionWave: Time-boxed batch of commands with readiness evidence
- FusionSession: Run session the bundle was opened under
- FusionBundle: Aggregate root for one evaluation pass

All classes are frozen dataclasses. Every class supports conversion to and
from the camelCase wire shape via to_dict/from_dict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from recovery_fusion.domain.identifiers import (
    BundleId,
    CommandId,
    PlanId,
    RunId,
    SessionId,
    SignalId,
    TicketId,
    WaveId,
)
from recovery_fusion.utils.timeutil import parse_timestamp, to_iso

# =============================================================================
# Enumerations
# =============================================================================


class WaveState(Enum):
    """Lifecycle state of an execution wave."""

    IDLE = "idle"
    WARMING = "warming"
    RUNNING = "running"
    BLOCKED = "blocked"
    DEGRADED = "degraded"
    STABLE = "stable"
    FAILED = "failed"

    @property
    def pressure(self) -> float:
        """
        Operational pressure the state puts on scheduling.

        Failed waves press hardest, idle waves least.
        """
        return _STATE_PRESSURE[self]


_STATE_PRESSURE: dict[WaveState, float] = {
    WaveState.FAILED: 1.0,
    WaveState.BLOCKED: 0.9,
    WaveState.DEGRADED: 0.75,
    WaveState.RUNNING: 0.6,
    WaveState.WARMING: 0.5,
    WaveState.STABLE: 0.3,
    WaveState.IDLE: 0.2,
}


class CommandAction(Enum):
    """Action a wave command requests."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    ABORT = "abort"
    VERIFY = "verify"


class RiskBand(Enum):
    """Coarse risk classification of a wave or bundle."""

    GREEN = "green"
    AMBER = "amber"
    RED = "red"
    CRITICAL = "critical"


# =============================================================================
# FusionSignal
# =============================================================================


@dataclass(frozen=True)
class FusionSignal:
    """
    Observed telemetry or incident data point.

    Attributes:
        id: Signal identifier
        run_id: Run the signal was observed in
        source: Emitting source (monitor, probe, operator...)
        severity: Normalized severity in [0, 1]
        confidence: Normalized confidence in [0, 1]
        detected_at: When the condition was detected
        observed_at: When the signal was recorded
        tags: Deduplicated free-form tags
        payload: Source-specific measurements (may carry ``stability``)
        details: Free-form annotations

    Invariants:
        - 0 <= severity <= 1
        - 0 <= confidence <= 1
    """

    id: SignalId
    run_id: RunId
    source: str
    severity: float
    confidence: float
    detected_at: datetime
    observed_at: datetime
    tags: tuple[str, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate signal ranges after creation."""
        if not 0.0 <= self.severity <= 1.0:
            raise ValueError(f"severity must be within [0, 1], got {self.severity}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be within [0, 1], got {self.confidence}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FusionSignal:
        """
        Create from the wire shape.

        :param data: Signal dictionary with camelCase keys
        :type data: dict[str, Any]
        :return: New FusionSignal instance
        :rtype: FusionSignal
        :raises KeyError: If id, runId or source is missing
        :raises ValueError: If severity or confidence is out of range
        """
        observed_at = parse_timestamp(data.get("observedAt"))
        return cls(
            id=SignalId(str(data["id"])),
            run_id=RunId(str(data["runId"])),
            source=str(data["source"]),
            severity=float(data.get("severity", 0.0)),
            confidence=float(data.get("confidence", 0.0)),
            detected_at=parse_timestamp(data.get("detectedAt"), fallback=observed_at),
            observed_at=observed_at,
            tags=tuple(data.get("tags", ())),
            payload=dict(data.get("payload") or {}),
            details=dict(data.get("details") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "id": str(self.id),
            "runId": str(self.run_id),
            "source": self.source,
            "severity": self.severity,
            "confidence": self.confidence,
            "detectedAt": to_iso(self.detected_at),
            "observedAt": to_iso(self.observed_at),
            "tags": list(self.tags),
            "payload": dict(self.payload),
            "details": dict(self.details),
        }


# =============================================================================
# FusionCommand
# =============================================================================


@dataclass(frozen=True)
class FusionCommand:
    """Remediation command owned by exactly one wave."""

    id: CommandId
    wave_id: WaveId
    step_key: str
    action: CommandAction
    actor: str
    requested_at: datetime
    rationale: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FusionCommand:
        """Create from the wire shape."""
        return cls(
            id=CommandId(str(data["id"])),
            wave_id=WaveId(str(data["waveId"])),
            step_key=str(data.get("stepKey", "")),
            action=CommandAction(data.get("action", "verify")),
            actor=str(data.get("actor", "")),
            requested_at=parse_timestamp(data.get("requestedAt")),
            rationale=str(data.get("rationale", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "id": str(self.id),
            "waveId": str(self.wave_id),
            "stepKey": self.step_key,
            "action": self.action.value,
            "actor": self.actor,
            "requestedAt": to_iso(self.requested_at),
            "rationale": self.rationale,
        }


# =============================================================================
# PlanBudget
# =============================================================================


@dataclass(frozen=True)
class PlanBudget:
    """
    Execution budget attached to a plan.

    The fields are descriptive; the engine passes them through and does not
    enforce them as deadlines.
    """

    max_parallelism: int = 1
    max_retries: int = 0
    timeout_minutes: int = 30
    operator_approval_required: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlanBudget:
        """Create from the wire shape, clamping each field to its floor."""
        return cls(
            max_parallelism=max(1, int(data.get("maxParallelism", 1))),
            max_retries=max(0, int(data.get("maxRetries", 0))),
            timeout_minutes=max(1, int(data.get("timeoutMinutes", 30))),
            operator_approval_required=bool(
                data.get("operatorApprovalRequired", False)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "maxParallelism": self.max_parallelism,
            "maxRetries": self.max_retries,
            "timeoutMinutes": self.timeout_minutes,
            "operatorApprovalRequired": self.operator_approval_required,
        }


# =============================================================================
# FusionWave
# =============================================================================


@dataclass(frozen=True)
class FusionWave:
    """
    Time-boxed batch of recovery commands executed together.

    Attributes:
        id: Wave identifier
        plan_id: Owning plan
        run_id: Owning run
        state: Current lifecycle state
        window_start: Start of the execution window
        window_end: End of the execution window (may be degenerate)
        commands: Commands owned by this wave
        readiness_signals: Evidence used to score the wave
        budget: Budget inherited from the plan
        risk_band: Declared risk band
        score: Declared score in [0, 1]
        metadata: Free-form planner annotations
    """

    id: WaveId
    plan_id: PlanId
    run_id: RunId
    state: WaveState
    window_start: datetime
    window_end: datetime
    commands: tuple[FusionCommand, ...] = ()
    readiness_signals: tuple[FusionSignal, ...] = ()
    budget: PlanBudget = field(default_factory=PlanBudget)
    risk_band: RiskBand = RiskBand.GREEN
    score: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate wave score after creation."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within [0, 1], got {self.score}")

    @property
    def has_commands(self) -> bool:
        """True if the wave owns at least one command."""
        return len(self.commands) > 0

    @property
    def duration_seconds(self) -> float:
        """Window length in seconds (zero or negative for degenerate windows)."""
        return (self.window_end - self.window_start).total_seconds()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FusionWave:
        """
        Create from the wire shape.

        :param data: Wave dictionary with camelCase keys
        :type data: dict[str, Any]
        :return: New FusionWave instance
        :rtype: FusionWave
        :raises KeyError: If id, planId or runId is missing
        :raises ValueError: If an enum value or score is invalid
        """
        window_start = parse_timestamp(data.get("windowStart"))
        return cls(
            id=WaveId(str(data["id"])),
            plan_id=PlanId(str(data["planId"])),
            run_id=RunId(str(data["runId"])),
            state=WaveState(data.get("state", "idle")),
            window_start=window_start,
            window_end=parse_timestamp(data.get("windowEnd"), fallback=window_start),
            commands=tuple(
                FusionCommand.from_dict(command) for command in data.get("commands", ())
            ),
            readiness_signals=tuple(
                FusionSignal.from_dict(signal)
                for signal in data.get("readinessSignals", ())
            ),
            budget=PlanBudget.from_dict(data.get("budget") or {}),
            risk_band=RiskBand(data.get("riskBand", "green")),
            score=float(data.get("score", 0.0)),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "id": str(self.id),
            "planId": str(self.plan_id),
            "runId": str(self.run_id),
            "state": self.state.value,
            "windowStart": to_iso(self.window_start),
            "windowEnd": to_iso(self.window_end),
            "commands": [command.to_dict() for command in self.commands],
            "readinessSignals": [signal.to_dict() for signal in self.readiness_signals],
            "budget": self.budget.to_dict(),
            "riskBand": self.risk_band.value,
            "score": self.score,
            "metadata": dict(self.metadata),
        }


# =============================================================================
# FusionSession
# =============================================================================


@dataclass(frozen=True)
class FusionSession:
    """Run session a bundle is evaluated under."""

    id: SessionId
    run_id: RunId
    ticket_id: TicketId
    plan_id: PlanId
    status: str
    created_at: datetime
    constraints: PlanBudget = field(default_factory=PlanBudget)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FusionSession:
        """Create from the wire shape."""
        return cls(
            id=SessionId(str(data["id"])),
            run_id=RunId(str(data["runId"])),
            ticket_id=TicketId(str(data.get("ticketId", ""))),
            plan_id=PlanId(str(data["planId"])),
            status=str(data.get("status", "queued")),
            created_at=parse_timestamp(data.get("createdAt")),
            constraints=PlanBudget.from_dict(data.get("constraints") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "id": str(self.id),
            "runId": str(self.run_id),
            "ticketId": str(self.ticket_id),
            "planId": str(self.plan_id),
            "status": self.status,
            "createdAt": to_iso(self.created_at),
            "constraints": self.constraints.to_dict(),
        }


# =============================================================================
# FusionBundle
# =============================================================================


@dataclass(frozen=True)
class FusionBundle:
    """
    Aggregate root tying a plan, its waves and its signals together.

    A bundle is built once per plan request and never mutated; a new
    evaluation pass works on a new bundle.
    """

    id: BundleId
    tenant: str
    run_id: RunId
    session: FusionSession
    plan_id: PlanId
    waves: tuple[FusionWave, ...]
    signals: tuple[FusionSignal, ...]
    created_at: datetime
    expires_at: datetime

    @property
    def is_empty(self) -> bool:
        """True if the bundle carries no waves."""
        return len(self.waves) == 0

    def get_wave(self, wave_id: WaveId) -> FusionWave | None:
        """Look up a wave by id."""
        for wave in self.waves:
            if wave.id == wave_id:
                return wave
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FusionBundle:
        """
        Create from the wire shape.

        :param data: Bundle dictionary with camelCase keys
        :type data: dict[str, Any]
        :return: New FusionBundle instance
        :rtype: FusionBundle
        :raises KeyError: If a required key is missing
        :raises ValueError: If a nested value is invalid
        """
        run_id = RunId(str(data.get("runId", "")))
        plan_id = PlanId(str(data["planId"]))
        created_at = parse_timestamp(data.get("createdAt"))
        session_data = data.get("session")
        if session_data:
            session = FusionSession.from_dict(session_data)
        else:
            session = FusionSession(
                id=SessionId(f"{run_id}:session"),
                run_id=run_id,
                ticket_id=TicketId(f"{run_id}:ticket"),
                plan_id=plan_id,
                status="queued",
                created_at=created_at,
            )
        return cls(
            id=BundleId(str(data["id"])),
            tenant=str(data.get("tenant", "")),
            run_id=run_id,
            session=session,
            plan_id=plan_id,
            waves=tuple(FusionWave.from_dict(wave) for wave in data.get("waves", ())),
            signals=tuple(
                FusionSignal.from_dict(signal) for signal in data.get("signals", ())
            ),
            created_at=created_at,
            expires_at=parse_timestamp(data.get("expiresAt"), fallback=created_at),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape."""
        return {
            "id": str(self.id),
            "tenant": self.tenant,
            "runId": str(self.run_id),
            "session": self.session.to_dict(),
            "planId": str(self.plan_id),
            "waves": [wave.to_dict() for wave in self.waves],
            "signals": [signal.to_dict() for signal in self.signals],
            "createdAt": to_iso(self.created_at),
            "expiresAt": to_iso(self.expires_at),
        }
