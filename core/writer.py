from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.aggregator import Aggregator
from core.errors import StoreWriteError
from core.metrics import CANONICAL_METRICS, RunCounters, default_snapshot
from core.store import load, save
from core.util import now_ts
from output.json_sink import HistoryLog

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of one batch run's persistence step."""
    snapshot: Dict[str, Any]
    latest_saved: bool = False
    history_path: Optional[str] = None
    rolled_over: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SnapshotWriter:
    """
    Produces and persists the counter snapshot for one batch run.

    The new cumulative value of each metric is the previous latest value
    plus this run's count. Deltas are taken against the previous latest
    snapshot, oversized counters are rolled over, then the snapshot
    overwrites the latest file and is appended to today's history log.

    Callers must hold the single-instance lock.
    """

    def __init__(self, latest_path: str | os.PathLike, history_dir: str | os.PathLike) -> None:
        self.latest_path = latest_path
        self.history = HistoryLog(history_dir)

    def write(self, run: RunCounters, now: Optional[int] = None) -> WriteResult:
        """
        Finalize and persist a run.

        Args:
            run: Counts and errors gathered during the run
            now: Completion time, defaults to the current time

        Returns:
            WriteResult; persistence failures are listed in it rather
            than raised. Each failure also lands in last_errors of
            whichever copy is still written after it.

        Raises:
            HistoryDirError: the history directory can't be created. Raised
                before anything is written.
        """
        self.history.ensure_directory()

        previous, problem = load(self.latest_path)
        errors = list(run.errors)
        load_failed = False
        if problem is not None:
            if os.path.exists(self.latest_path):
                logger.warning("Unusable latest snapshot, starting from zero: %s", problem)
                errors.append(problem)
                load_failed = True
            else:
                logger.info("No latest snapshot yet at %s, starting from zero", self.latest_path)
            previous = None

        snapshot = self._build(previous, run)
        snapshot["last_errors"] = errors
        if load_failed:
            snapshot["errors"] += 1

        aggregator = Aggregator(previous)
        deltas = aggregator.update(snapshot)
        rolled = aggregator.rollover(snapshot, deltas)
        for name in rolled:
            logger.info("Rolled %s over to its period delta %d", name, deltas[name])

        snapshot["timestamp"] = now if now is not None else now_ts()
        result = WriteResult(snapshot=snapshot, rolled_over=rolled)

        # independent steps, a failure of one must not skip the other
        try:
            save(self.latest_path, snapshot)
            result.latest_saved = True
        except StoreWriteError as e:
            logger.error("%s", e)
            result.failures.append(str(e))
            snapshot["last_errors"].append(str(e))

        try:
            result.history_path = self.history.append(snapshot)
        except StoreWriteError as e:
            logger.error("%s", e)
            result.failures.append(str(e))
            snapshot["last_errors"].append(str(e))
            if result.latest_saved:
                # record the failed append in the latest snapshot
                try:
                    save(self.latest_path, snapshot)
                except StoreWriteError as e2:
                    logger.error("%s", e2)
                    result.failures.append(str(e2))

        return result

    @staticmethod
    def _build(previous: Optional[Dict[str, Any]], run: RunCounters) -> Dict[str, Any]:
        snapshot = default_snapshot()
        for name in CANONICAL_METRICS:
            base = previous.get(name, 0) if previous is not None else 0
            snapshot[name] = base + run[name]
        return snapshot
