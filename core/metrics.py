from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping

# Fixed set of counters tracked per batch run. sub_size is a byte total,
# everything else counts events.
CANONICAL_METRICS = (
    "sub",
    "sub_fail",
    "sub_2xx",
    "sub_3xx",
    "sub_4xx",
    "sub_5xx",
    "sub_size",
    "zero_sized",
    "truncated",
    "errors",
    "ignored_ip_src",
    "ignored_ip_dest",
    "ignored_host",
    "ignored_ua",
    "ignored_url",
)

DELTA_SUFFIX = "_delta"


def delta_key(metric: str) -> str:
    return metric + DELTA_SUFFIX


def default_snapshot() -> Dict[str, Any]:
    """
    Build a zero-valued snapshot.

    A new dict (and a new ``last_errors`` list) is returned on every call so
    callers can mutate the result freely.
    """
    snapshot: Dict[str, Any] = {name: 0 for name in CANONICAL_METRICS}
    snapshot["timestamp"] = 0
    snapshot["last_errors"] = []
    return snapshot


def zero_deltas(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """Set every ``X_delta`` field of a snapshot to 0 and return it."""
    for name in CANONICAL_METRICS:
        snapshot[delta_key(name)] = 0
    return snapshot


class RunCounters:
    """
    Additive accumulator for one batch run.

    The classification/submission pipeline feeds counts in here as it
    works through items; the snapshot writer folds the totals into the
    cumulative counters at the end of the run.
    """

    def __init__(self) -> None:
        self.counts: Dict[str, int] = {name: 0 for name in CANONICAL_METRICS}
        self.errors: List[str] = []

    def add(self, metric: str, amount: int = 1) -> None:
        """
        Increment a canonical metric.

        Args:
            metric: One of CANONICAL_METRICS
            amount: Non-negative increment

        Raises:
            ValueError: Unknown metric name or negative amount
        """
        if metric not in self.counts:
            raise ValueError(f"unknown metric: {metric!r}")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"invalid increment for {metric}: {amount!r}")
        self.counts[metric] += amount

    def update(self, counts: Mapping[str, int]) -> None:
        for metric, amount in counts.items():
            self.add(metric, amount)

    def error(self, message: str) -> None:
        """Record an error for this run; also bumps the ``errors`` counter."""
        self.errors.append(message)
        self.counts["errors"] += 1

    def extend_errors(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.error(message)

    def merge(self, other: "RunCounters") -> None:
        for metric, amount in other.counts.items():
            self.counts[metric] += amount
        self.errors.extend(other.errors)

    def __getitem__(self, metric: str) -> int:
        return self.counts[metric]
