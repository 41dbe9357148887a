"""Shared builders for snapshot and history fixtures."""
import json
import time

from core.metrics import default_snapshot
from output.json_sink import HistoryLog

# local noon, so a lookback of a few minutes never crosses midnight
NOON = int(time.mktime((2024, 5, 14, 12, 0, 0, 0, 0, -1)))


def make_snapshot(ts, **counts):
    snap = default_snapshot()
    snap.update(counts)
    snap["timestamp"] = ts
    return snap


def write_latest(path, snapshot):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, sort_keys=True)


def write_history(history_dir, day_ts, records, tail=""):
    """Write records to the log of the day containing day_ts; tail is appended raw."""
    log = HistoryLog(history_dir)
    log.ensure_directory()
    path = log.path_for(day_ts)
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record, sort_keys=True) + "\n")
        f.write(tail)
    return path
