"""Shared fixtures and builders for recovery fusion tests."""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from recovery_fusion.configs.config import EngineConfig
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
from recovery_fusion.domain.models import (
    CommandAction,
    FusionBundle,
    FusionCommand,
    FusionSession,
    FusionSignal,
    FusionWave,
    WaveState,
)

BASE_TIME = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


def make_signal(
    signal_id: str = "sig-1",
    severity: float = 0.5,
    confidence: float = 0.8,
    source: str = "monitor",
    tags: Sequence[str] = (),
    payload: dict[str, Any] | None = None,
    run_id: str = "run-1",
) -> FusionSignal:
    """Build a signal observed at the base time."""
    return FusionSignal(
        id=SignalId(signal_id),
        run_id=RunId(run_id),
        source=source,
        severity=severity,
        confidence=confidence,
        detected_at=BASE_TIME,
        observed_at=BASE_TIME,
        tags=tuple(tags),
        payload=payload or {},
    )


def make_wave(
    wave_id: str = "wave-1",
    state: WaveState = WaveState.RUNNING,
    start_minute: int = 0,
    duration_minutes: int = 30,
    command_count: int = 1,
    signals: Sequence[FusionSignal] = (),
    score: float = 0.5,
    action: CommandAction = CommandAction.START,
) -> FusionWave:
    """Build a wave whose window starts ``start_minute`` after the base time."""
    start = BASE_TIME + timedelta(minutes=start_minute)
    commands = tuple(
        FusionCommand(
            id=CommandId(f"{wave_id}:cmd-{index}"),
            wave_id=WaveId(wave_id),
            step_key=f"step-{index}",
            action=action,
            actor="operator",
            requested_at=start,
            rationale=f"{wave_id}:step-{index}",
        )
        for index in range(command_count)
    )
    return FusionWave(
        id=WaveId(wave_id),
        plan_id=PlanId("plan-1"),
        run_id=RunId("run-1"),
        state=state,
        window_start=start,
        window_end=start + timedelta(minutes=duration_minutes),
        commands=commands,
        readiness_signals=tuple(signals),
        score=score,
    )


def make_bundle(
    waves: Sequence[FusionWave],
    signals: Sequence[FusionSignal] | None = None,
    bundle_id: str = "run-1:bundle",
    tenant: str = "tenant-01",
) -> FusionBundle:
    """Build a bundle; signals default to every readiness signal, deduplicated."""
    if signals is None:
        seen: dict[SignalId, FusionSignal] = {}
        for wave in waves:
            for signal in wave.readiness_signals:
                seen.setdefault(signal.id, signal)
        signals = list(seen.values())
    session = FusionSession(
        id=SessionId("run-1:session"),
        run_id=RunId("run-1"),
        ticket_id=TicketId("run-1:ticket"),
        plan_id=PlanId("plan-1"),
        status="queued",
        created_at=BASE_TIME,
    )
    return FusionBundle(
        id=BundleId(bundle_id),
        tenant=tenant,
        run_id=RunId("run-1"),
        session=session,
        plan_id=PlanId("plan-1"),
        waves=tuple(waves),
        signals=tuple(signals),
        created_at=BASE_TIME,
        expires_at=BASE_TIME + timedelta(minutes=120),
    )


@pytest.fixture
def base_time() -> datetime:
    """Provide the reference time all builders start from."""
    return BASE_TIME


@pytest.fixture
def engine_config() -> EngineConfig:
    """Provide the default engine configuration."""
    return EngineConfig()


@pytest.fixture
def signal_factory() -> Callable[..., FusionSignal]:
    """Provide the signal builder."""
    return make_signal


@pytest.fixture
def wave_factory() -> Callable[..., FusionWave]:
    """Provide the wave builder."""
    return make_wave


@pytest.fixture
def bundle_factory() -> Callable[..., FusionBundle]:
    """Provide the bundle builder."""
    return make_bundle


@pytest.fixture
def sample_bundle() -> FusionBundle:
    """Provide a two-wave bundle with overlapping windows and evidence."""
    first = make_wave(
        "wave-a",
        state=WaveState.DEGRADED,
        start_minute=0,
        signals=[
            make_signal("sig-1", severity=0.9, confidence=0.9, tags=["sre"]),
            make_signal("sig-2", severity=0.4, confidence=0.7, source="probe"),
        ],
        score=0.7,
    )
    second = make_wave(
        "wave-b",
        state=WaveState.WARMING,
        start_minute=15,
        command_count=2,
        signals=[make_signal("sig-3", severity=0.6, confidence=0.6, tags=["platform"])],
        score=0.6,
    )
    return make_bundle([first, second])


@pytest.fixture
def raw_request() -> dict[str, Any]:
    """Provide a raw plan request with two waves and three signals."""
    signals = [
        {
            "id": "sig-1",
            "runId": "run-1",
            "source": "monitor",
            "severity": 0.8,
            "confidence": 0.9,
            "tags": ["sre"],
        },
        {
            "id": "sig-2",
            "runId": "run-1",
            "source": "probe",
            "severity": 0.5,
            "confidence": 0.6,
        },
        {
            "id": "sig-3",
            "runId": "run-1",
            "source": "monitor",
            "severity": 0.3,
            "confidence": 0.7,
            "tags": ["platform"],
        },
    ]
    return {
        "planId": "plan-1",
        "runId": "run-1",
        "tenant": "tenant-07",
        "budget": {"maxParallelism": 2, "maxRetries": 1, "timeoutMinutes": 45},
        "signals": signals,
        "waves": [
            {
                "id": "wave-a",
                "state": "degraded",
                "windowStart": "2026-03-01T10:00:00Z",
                "windowEnd": "2026-03-01T10:30:00Z",
                "score": 0.7,
                "commands": [
                    {
                        "id": "cmd-1",
                        "waveId": "wave-a",
                        "stepKey": "failover",
                        "action": "start",
                        "actor": "operator",
                        "rationale": "failover-primary",
                    }
                ],
                "readinessSignals": signals[:2],
            },
            {
                "id": "wave-b",
                "state": "warming",
                "windowStart": "2026-03-01T10:15:00Z",
                "windowEnd": "2026-03-01T10:45:00Z",
                "score": 0.6,
                "commands": [
                    {
                        "id": "cmd-2",
                        "waveId": "wave-b",
                        "stepKey": "verify",
                        "action": "verify",
                        "actor": "operator",
                        "rationale": "verify-replica",
                    }
                ],
                "readinessSignals": signals[2:],
            },
        ],
    }
