"""Signal ingestion and JSON encoding for the recovery fusion engine."""

from recovery_fusion.io.codec import (
    decode_stored_bundle,
    encode_bundle,
    encode_result,
    read_bundle,
    write_bundle,
)
from recovery_fusion.io.ingest import ingest_signals, normalize_envelope

__all__ = [
    "decode_stored_bundle",
    "encode_bundle",
    "encode_result",
    "ingest_signals",
    "normalize_envelope",
    "read_bundle",
    "write_bundle",
]
