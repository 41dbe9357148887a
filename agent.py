from __future__ import annotations
import argparse
import logging
from typing import List, Optional, Tuple

from core.config import DEFAULT_CONFIG_PATH, StatsConfig, load_config
from core.errors import HistoryDirError, LockContention
from core.lock import SingleInstanceLock
from core.metrics import CANONICAL_METRICS, RunCounters
from core.writer import SnapshotWriter, WriteResult
from collectors.spool import SpoolCollector

logger = logging.getLogger(__name__)


def parse_increment(text: str) -> Tuple[str, int]:
    """
    Parse a METRIC=N command line increment.

    Raises:
        argparse.ArgumentTypeError: bad syntax, unknown metric or bad count
    """
    name, sep, amount = text.partition("=")
    name = name.strip()
    if not sep:
        raise argparse.ArgumentTypeError(f"expected METRIC=N, got {text!r}")
    if name not in CANONICAL_METRICS:
        raise argparse.ArgumentTypeError(f"unknown metric {name!r}")
    try:
        value = int(amount)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count {amount!r} for {name}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"negative count for {name}")
    return name, value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Record one batch run's counters into the snapshot store")
    p.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="YAML config file")
    p.add_argument("--add", action="append", default=[], type=parse_increment, metavar="METRIC=N",
                   help="add N to METRIC for this run (repeatable)")
    p.add_argument("--error", action="append", default=[], metavar="MSG",
                   help="record an error for this run (repeatable)")
    p.add_argument("--no-spool", action="store_true", help="don't drain the event spool")
    return p


def run_once(cfg: StatsConfig, extra: Optional[RunCounters] = None, use_spool: bool = True) -> WriteResult:
    """
    Gather this run's counts and persist the snapshot.

    The caller holds the writer lock.

    The drained spool is only removed once the latest snapshot is saved;
    otherwise the next run picks it up again.

    Raises:
        HistoryDirError: nothing could be persisted; the spool is kept
    """
    run = RunCounters()
    collector = None
    if use_spool and cfg.spool_path:
        collector = SpoolCollector(cfg.spool_path)
        run.merge(collector.read())
    if extra is not None:
        run.merge(extra)

    writer = SnapshotWriter(cfg.latest_path, cfg.history_dir)
    result = writer.write(run)

    if collector is not None:
        if result.latest_saved:
            collector.commit()
        else:
            logger.warning("Latest snapshot not saved, keeping %s for the next run", collector.processing_path)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """
    One batch run of the stats agent.

    Exits 0 without touching anything when a previous run still holds the
    lock. Exits 1 when the lock file can't be opened or the history
    directory can't be created.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)

    extra = RunCounters()
    for name, value in args.add:
        extra.add(name, value)
    extra.extend_errors(args.error)

    lock = SingleInstanceLock(cfg.lock_path)
    try:
        lock.acquire()
    except LockContention:
        logger.debug("Previous run still in flight, exiting")
        return 0
    except OSError as e:
        logger.error("Unable to open lock file %s: %s", cfg.lock_path, e)
        return 1

    try:
        result = run_once(cfg, extra, use_spool=not args.no_spool)
    except HistoryDirError as e:
        logger.error("%s", e)
        return 1
    finally:
        lock.release()

    logger.info("Snapshot written: sub=%d sub_delta=%d errors=%d",
                result.snapshot["sub"], result.snapshot["sub_delta"], result.snapshot["errors"])
    for failure in result.failures:
        logger.warning("Persistence failure: %s", failure)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
