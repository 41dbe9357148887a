from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from core.metrics import CANONICAL_METRICS, delta_key

# Persisted counters above this are rolled back to their latest period's delta.
ROLLOVER_LIMIT = 2_000_000_000


def delta(previous: Optional[int], current: int) -> int:
    """
    Change of a cumulative counter between two readings.

    A counter that went backwards is taken to have been reset (service
    restart, log rotation), so everything it holds now counts as new.

    Args:
        previous: Earlier reading, or None when there is none
        current: Later reading

    Returns:
        Non-negative delta
    """
    if previous is None:
        return current
    d = current - previous
    if d < 0:
        d = current  # reset/wrap
    return d


class Aggregator:
    """
    Calculates per-metric deltas of a snapshot against a baseline snapshot.
    """

    def __init__(self, baseline: Optional[Mapping[str, Any]] = None) -> None:
        """
        Initialize aggregator.

        Args:
            baseline: Snapshot to compare against. None means no baseline,
                so every delta equals the current value.
        """
        self._baseline = baseline

    def update(self, snapshot: Dict[str, Any]) -> Dict[str, int]:
        """
        Fill in the ``X_delta`` companion of every canonical metric.

        Args:
            snapshot: Current snapshot, modified in place

        Returns:
            Mapping of metric name to its delta
        """
        deltas: Dict[str, int] = {}
        for name in CANONICAL_METRICS:
            previous = None
            if self._baseline is not None:
                previous = self._baseline.get(name)
            d = delta(previous, snapshot.get(name, 0))
            snapshot[delta_key(name)] = d
            deltas[name] = d
        return deltas

    @staticmethod
    def rollover(snapshot: Dict[str, Any], deltas: Mapping[str, int]) -> List[str]:
        """
        Replace oversized cumulative counters with their period's delta.

        Only the stored value changes; ``X_delta`` is left as computed.

        Returns:
            Names of the metrics that were rolled over
        """
        rolled: List[str] = []
        for name in CANONICAL_METRICS:
            if snapshot.get(name, 0) > ROLLOVER_LIMIT:
                snapshot[name] = deltas[name]
                rolled.append(name)
        return rolled
