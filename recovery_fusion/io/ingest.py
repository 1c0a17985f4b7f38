"""
Signal envelope ingestion.

Raw envelopes arrive from a free-form ingestion boundary and are normalized
leniently: missing severity and confidence take defaults, malformed
timestamps fall back to the current time and missing signal ids are
generated. Only envelopes without a run id or source are dropped.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from collections.abc import Iterable
from typing import Any

from recovery_fusion.domain.identifiers import RunId, SignalId
from recovery_fusion.domain.models import FusionSignal
from recovery_fusion.utils.logging_config import get_logger
from recovery_fusion.utils.scoring import clamp
from recovery_fusion.utils.timeutil import parse_timestamp

logger = get_logger(__name__)

DEFAULT_SEVERITY = 0.4
DEFAULT_CONFIDENCE = 0.5
DEFAULT_BATCH_SIZE = 50


def _ratio(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return clamp(float(value))


def normalize_envelope(envelope: dict[str, Any]) -> FusionSignal | None:
    """
    Normalize one raw signal envelope.

    :param envelope: Raw envelope with camelCase keys
    :type envelope: dict[str, Any]
    :return: Normalized signal, or None when run id or source is missing
    :rtype: FusionSignal | None
    """
    run_id = str(envelope.get("runId") or "").strip()
    source = str(envelope.get("source") or "").strip()
    if not run_id or not source:
        return None

    signal_id = str(envelope.get("signalId") or envelope.get("id") or "").strip()
    if not signal_id:
        signal_id = f"{run_id}:{source}:{uuid.uuid4().hex[:12]}"

    tags: list[str] = []
    for tag in envelope.get("tags") or ():
        trimmed = str(tag).strip()
        if trimmed and trimmed not in tags:
            tags.append(trimmed)

    details: dict[str, Any] = {}
    if envelope.get("tenant"):
        details["tenant"] = str(envelope["tenant"])
    if envelope.get("commandId"):
        details["commandId"] = str(envelope["commandId"])

    payload = envelope.get("payload")
    observed_at = parse_timestamp(envelope.get("observedAt"))
    return FusionSignal(
        id=SignalId(signal_id),
        run_id=RunId(run_id),
        source=source,
        severity=_ratio(envelope.get("severity"), DEFAULT_SEVERITY),
        confidence=_ratio(envelope.get("confidence"), DEFAULT_CONFIDENCE),
        detected_at=parse_timestamp(envelope.get("detectedAt"), fallback=observed_at),
        observed_at=observed_at,
        tags=tuple(tags),
        payload=dict(payload) if isinstance(payload, dict) else {},
        details=details,
    )


async def ingest_signals(
    envelopes: Iterable[dict[str, Any]], batch_size: int = DEFAULT_BATCH_SIZE
) -> tuple[FusionSignal, ...]:
    """
    Normalize envelopes in batches.

    Control is yielded to the event loop between batches so that large
    ingests do not starve other tasks. Input order is preserved.

    :param envelopes: Raw envelopes
    :type envelopes: Iterable[dict[str, Any]]
    :param batch_size: Envelopes normalized per batch
    :type batch_size: int
    :return: Normalized signals
    :rtype: tuple[FusionSignal, ...]
    :raises ValueError: If batch_size is not positive
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    pending = list(envelopes)
    signals: list[FusionSignal] = []
    for start in range(0, len(pending), batch_size):
        if start:
            await asyncio.sleep(0)
        for envelope in pending[start : start + batch_size]:
            if not isinstance(envelope, dict):
                continue
            signal = normalize_envelope(envelope)
            if signal is not None:
                signals.append(signal)

    dropped = len(pending) - len(signals)
    if dropped:
        logger.warning("Dropped %d of %d signal envelopes", dropped, len(pending))
    logger.debug("Ingested %d signals", len(signals))
    return tuple(signals)
