from __future__ import annotations
import json
import logging
import os
from typing import Dict, Mapping, Optional

from core.metrics import RunCounters
from output.json_sink import JsonSink

logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"


def emit(spool_path: str | os.PathLike, counts: Mapping[str, int], error: Optional[str] = None) -> None:
    """
    Hand counts from the processing pipeline to the next batch run.

    Args:
        spool_path: Spool file shared with the agent
        counts: Metric name to increment, e.g. {"sub": 1, "sub_size": 4096}
        error: Optional error message to carry into the run's last_errors
    """
    record: Dict[str, object] = dict(counts)
    if error is not None:
        record["error"] = error
    JsonSink(spool_path).write(record)


class SpoolCollector:
    """
    Drains the NDJSON event spool into a RunCounters.

    Each line holds metric increments plus an optional "error" string. The
    spool is renamed aside before reading, so events appended while the
    run is in progress land in a fresh spool for the next run. The drained
    file is only removed by commit(), after the snapshot is persisted; a
    run that dies before that re-reads it next time (at-least-once).
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = os.fspath(path)
        self.processing_path = self.path + PROCESSING_SUFFIX
        self.failed = False

    def read(self) -> RunCounters:
        """
        Sum every pending event.

        Returns:
            RunCounters with the totals. Malformed lines and unknown metrics
            are recorded as run errors and otherwise skipped. If the spool
            can't be moved or read, the result holds only that error, the
            file stays where it is and commit() won't remove it.
        """
        if not os.path.exists(self.processing_path):
            try:
                os.rename(self.path, self.processing_path)
            except FileNotFoundError:
                return RunCounters()
            except OSError as e:
                return self._failure(f"failed to claim spool {self.path}: {e}")
        else:
            logger.warning("Draining leftover %s from an interrupted run", self.processing_path)

        try:
            return self._drain()
        except OSError as e:
            return self._failure(f"failed to read spool {self.processing_path}: {e}")

    def _failure(self, message: str) -> RunCounters:
        logger.error("%s", message)
        self.failed = True
        run = RunCounters()
        run.error(message)
        return run

    def _drain(self) -> RunCounters:
        run = RunCounters()
        with open(self.processing_path, "r", encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    run.error(f"malformed spool line {lineno}")
                    continue
                if not isinstance(event, dict):
                    run.error(f"malformed spool line {lineno}")
                    continue
                self._apply(run, event, lineno)
        return run

    @staticmethod
    def _apply(run: RunCounters, event: Dict[str, object], lineno: int) -> None:
        for key, value in event.items():
            if key == "error":
                run.error(str(value))
                continue
            try:
                run.add(key, value)  # type: ignore[arg-type]
            except ValueError as e:
                run.error(f"spool line {lineno}: {e}")

    def commit(self) -> None:
        """Remove the drained spool. Kept after a failed read."""
        if self.failed:
            return
        try:
            os.unlink(self.processing_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            # the next run drains it again
            logger.error("Failed to remove drained spool %s: %s", self.processing_path, e)
