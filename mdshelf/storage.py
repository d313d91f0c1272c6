"""Small JSON record helpers shared by the session store and the recent ledger."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger


def read_json_record(path: Path) -> dict[str, Any] | None:
    """Return the JSON object stored at path, or None when absent or unusable."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Could not read {}: {}", path, exc)
        return None
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        logger.warning("Ignoring malformed record {}: {}", path, exc)
        return None
    if not isinstance(payload, dict):
        logger.warning("Ignoring record {}: expected a JSON object", path)
        return None
    return payload


def write_json_record(path: Path, payload: dict[str, Any]) -> None:
    """Write payload atomically: a temp file in the same directory replaces path.

    Raises OSError on failure; the previous file content is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, indent=2) + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
