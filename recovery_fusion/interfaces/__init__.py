"""
Interfaces module for the recovery fusion engine.

Sink Protocols (typing.Protocol):
    - PersistenceSink
    - AuditSink
    - TelemetrySink
"""

from .sinks import AuditSink, FusionSinks, PersistenceSink, TelemetrySink

__all__ = [
    "AuditSink",
    "FusionSinks",
    "PersistenceSink",
    "TelemetrySink",
]
