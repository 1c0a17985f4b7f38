"""
JSON encoding of decisions and bundles.

Defines the on-wire and on-disk envelope shape: camelCase keys, ISO-8601
timestamps with a ``Z`` suffix and enum values as plain strings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from recovery_fusion.domain.errors import DecodeError
from recovery_fusion.domain.models import FusionBundle
from recovery_fusion.domain.results import FusionPlanResult, Result, fail, ok
from recovery_fusion.utils.logging_config import get_logger

logger = get_logger(__name__)


def encode_result(result: FusionPlanResult) -> str:
    """Encode a plan decision as JSON."""
    return json.dumps(result.to_dict(), sort_keys=True)


def encode_bundle(bundle: FusionBundle) -> str:
    """Encode a bundle as JSON."""
    return json.dumps(bundle.to_dict(), sort_keys=True, default=str)


def decode_stored_bundle(stored: str | bytes | dict[str, Any]) -> Result[FusionBundle]:
    """
    Decode a stored bundle envelope.

    The envelope must carry ``id`` and ``planId`` as strings; everything
    else is decoded leniently.

    :param stored: JSON text or an already parsed mapping
    :type stored: str | bytes | dict[str, Any]
    :return: Decoded bundle or a ``DecodeError`` failure
    :rtype: Result[FusionBundle]
    """
    if isinstance(stored, (str, bytes)):
        try:
            data = json.loads(stored)
        except json.JSONDecodeError as e:
            return fail(DecodeError(f"invalid bundle json: {e.msg}"))
    else:
        data = stored

    if not isinstance(data, dict):
        return fail(DecodeError("bundle envelope must be an object"))
    if not isinstance(data.get("id"), str) or not isinstance(data.get("planId"), str):
        return fail(DecodeError("bundle envelope requires string id and planId"))

    try:
        bundle = FusionBundle.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        return fail(DecodeError(f"invalid bundle envelope: {e}"))
    return ok(bundle)


def write_bundle(bundle: FusionBundle, output_path: str | Path) -> Path:
    """
    Write a bundle envelope to a JSON file.

    :param bundle: Bundle to store
    :type bundle: FusionBundle
    :param output_path: Destination file
    :type output_path: str | Path
    :return: Path written
    :rtype: Path
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(bundle.to_dict(), f, indent=2, sort_keys=True, default=str)
    logger.info("Wrote bundle %s to %s", bundle.id, path)
    return path


def read_bundle(input_path: str | Path) -> Result[FusionBundle]:
    """
    Read a bundle envelope from a JSON file.

    :param input_path: File to read
    :type input_path: str | Path
    :return: Decoded bundle or a ``DecodeError`` failure
    :rtype: Result[FusionBundle]
    """
    path = Path(input_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return fail(DecodeError(f"cannot read {path}: {e.strerror}"))
    return decode_stored_bundle(text)
