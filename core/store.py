"""
Counter snapshot store.

Reads and writes the single JSON document holding "counters as of the last
run". Output is canonical (sorted keys, compact separators) so the file
diffs cleanly and a load/save cycle of a well-formed file is byte-stable.
"""
from __future__ import annotations
import json
import os
import tempfile
from typing import Any, Dict, Optional, Tuple

from core.errors import StoreReadError, StoreWriteError
from core.metrics import CANONICAL_METRICS, default_snapshot
from core.util import ensure_parent


def dumps_snapshot(snapshot: Dict[str, Any]) -> str:
    """Serialize a snapshot canonically, without a trailing newline."""
    return json.dumps(snapshot, sort_keys=True, separators=(",", ":"))


def is_timestamp(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_count(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def normalize(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Backfill fields a snapshot must always carry.

    Canonical metrics missing from older files default to 0; values that
    are not non-negative integers are coerced, negatives clamp to 0.
    Unknown keys are kept as they are.
    """
    for name in CANONICAL_METRICS:
        raw[name] = _as_count(raw.get(name, 0))
    raw.setdefault("timestamp", 0)
    if not isinstance(raw.get("last_errors"), list):
        raw["last_errors"] = []
    return raw


def parse_snapshot(text: str, source: str, require_timestamp: bool = False) -> Dict[str, Any]:
    """
    Parse one serialized snapshot.

    Args:
        text: Serialized snapshot
        source: Where the text came from, for error messages
        require_timestamp: Reject objects without a numeric timestamp
            instead of backfilling it (historical records)

    Raises:
        StoreReadError: code 1 when the text is not JSON, code 2 when it is
            JSON but not an object, or lacks a required timestamp
    """
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise StoreReadError(f"failed to parse {source}: {e}") from e
    if raw is None:
        raise StoreReadError(f"{source} holds null", code=2)
    if not isinstance(raw, dict):
        raise StoreReadError(f"{source} is not a JSON object", code=2)
    if require_timestamp and not is_timestamp(raw.get("timestamp")):
        raise StoreReadError(f"{source} has no usable timestamp", code=2)
    return normalize(raw)


def read_snapshot(path: str) -> Dict[str, Any]:
    """
    Read and parse a snapshot file.

    Raises:
        StoreReadError: file missing, unreadable or unusable
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise StoreReadError(f"failed to read {path}: {e}") from e
    return parse_snapshot(text, path)


def load(path: str) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Load the latest snapshot, never raising.

    Args:
        path: Latest snapshot file

    Returns:
        (snapshot, problem). On any failure the snapshot is a fresh
        zero-valued default and problem describes what went wrong; problem
        is None when the file loaded cleanly.
    """
    try:
        return read_snapshot(path), None
    except StoreReadError as e:
        return default_snapshot(), str(e)


def save(path: str, snapshot: Dict[str, Any]) -> None:
    """
    Overwrite the snapshot file atomically.

    Readers see either the old or the new document, never a partial one.

    Raises:
        StoreWriteError: the file could not be written
    """
    tmp_path = None
    try:
        ensure_parent(path)
        fd, tmp_path = tempfile.mkstemp(
            prefix=".", suffix=".tmp", dir=os.path.dirname(os.path.abspath(path))
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(dumps_snapshot(snapshot) + "\n")
        # pollers usually run as a different user
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StoreWriteError(f"failed to write {path}: {e}") from e
