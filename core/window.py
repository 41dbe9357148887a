"""
Windowed delta reader.

Answers "how much did each counter move over the last N seconds" for a
poller that runs on an interval with no state of its own. The newest
snapshot is compared with the most recent historical record at or before
``now - N``; today's log is scanned from its end so the whole file is
never held in memory.
"""
from __future__ import annotations
import logging
import os
from itertools import chain
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional

from core.aggregator import delta
from core.backwards import ReadBackwards
from core.errors import MalformedHistoricalRecord, StoreReadError
from core.metrics import CANONICAL_METRICS, default_snapshot, delta_key, zero_deltas
from core.store import is_timestamp, parse_snapshot, read_snapshot
from core.util import now_ts
from output.json_sink import HistoryLog

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = 300


@dataclass
class WindowResult:
    data: Dict[str, Any]
    error: int = 0
    error_string: str = ""


def _records(lines: Iterable[str], source: str) -> Iterator[Dict[str, Any]]:
    """Parse log lines newest first, skipping blanks."""
    for line in lines:
        if not line.strip():
            continue
        try:
            record = parse_snapshot(line, source, require_timestamp=True)
        except StoreReadError as e:
            raise MalformedHistoricalRecord(f"malformed record in {source}: {e}") from e
        yield record


def _find_baseline(records: Iterator[Dict[str, Any]], cutoff: float, source: str) -> Optional[Dict[str, Any]]:
    """
    First record, going backwards, taken at or before the cutoff.

    A malformed record ends the scan with no baseline.
    """
    try:
        for record in records:
            if record["timestamp"] <= cutoff:
                return record
    except MalformedHistoricalRecord as e:
        logger.warning("Stopping backward scan of %s: %s", source, e)
    return None


def windowed_delta(latest_path: str | os.PathLike, history_dir: str | os.PathLike,
                   lookback: int = DEFAULT_LOOKBACK, now: Optional[float] = None) -> WindowResult:
    """
    Compute each counter's delta over the trailing ``lookback`` seconds.

    Args:
        latest_path: Latest snapshot file
        history_dir: Directory of daily historical logs
        lookback: Window length in seconds
        now: Reference time, defaults to the current time

    Returns:
        WindowResult whose data is the newest snapshot with its ``X_delta``
        fields replaced by windowed deltas. Read failures are reported
        through ``error``/``error_string``; this never raises for data
        problems.
    """
    if now is None:
        now = now_ts()
    cutoff = now - lookback
    log_path = HistoryLog(history_dir).path_for(now)

    latest: Optional[Dict[str, Any]] = None
    latest_error: Optional[StoreReadError] = None
    try:
        latest = read_snapshot(latest_path)
    except StoreReadError as e:
        latest_error = e
    if latest is not None and not is_timestamp(latest["timestamp"]):
        latest_error = StoreReadError(f"{latest_path} has no usable timestamp", code=2)
        latest = None

    def fallback(error: Optional[StoreReadError] = None) -> WindowResult:
        # no window comparison possible, report the latest with zero deltas
        if latest is not None and error is None:
            return WindowResult(zero_deltas(latest))
        err = error or latest_error
        data = zero_deltas(latest if latest is not None else default_snapshot())
        return WindowResult(data, error=err.code, error_string=str(err))

    if not os.path.exists(log_path):
        return fallback()

    records = _records(ReadBackwards(log_path), log_path)
    try:
        tail = next(records, None)
    except MalformedHistoricalRecord as e:
        logger.warning("%s", e)
        return fallback(e)
    except OSError as e:
        return fallback(StoreReadError(f"failed to read {log_path}: {e}"))
    if tail is None:
        return fallback()

    # the latest file can be ahead of the log when an append failed
    if latest is not None and latest["timestamp"] > tail["timestamp"]:
        current = latest
        candidates: Iterator[Dict[str, Any]] = chain([tail], records)
    else:
        current = tail
        candidates = records

    if current["timestamp"] <= cutoff:
        return WindowResult(zero_deltas(current))

    try:
        baseline = _find_baseline(candidates, cutoff, log_path)
    except OSError as e:
        logger.warning("Failed reading %s: %s", log_path, e)
        baseline = None
    if baseline is None:
        return WindowResult(zero_deltas(current))

    for name in CANONICAL_METRICS:
        current[delta_key(name)] = delta(baseline[name], current[name])
    return WindowResult(current)

