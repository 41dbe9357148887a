"""
poll.py
Prints the counter envelope for a monitoring poller: each counter plus its
delta over the last N seconds, as one line of JSON (or gzip+base64 when
that is shorter).

Usage:
    python3 poll.py [-s SECONDS] [-l LATEST] [-d HISTORY_DIR] [-B]

Always exits 0; problems are reported in the envelope's error fields.
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from core.config import DEFAULT_CONFIG_PATH, load_config
from core.window import windowed_delta
from output.envelope import build_envelope, encode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Windowed counter deltas for monitoring")
    p.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="YAML config file")
    p.add_argument("-s", "--seconds", type=int, default=None, help="lookback window in seconds")
    p.add_argument("-l", "--latest", default=None, help="latest snapshot file")
    p.add_argument("-d", "--history-dir", default=None, help="directory of daily historical logs")
    p.add_argument("-B", "--no-compress", action="store_true", help="always print plain JSON")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    # stdout carries only the envelope
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)

    lookback = args.seconds if args.seconds is not None else cfg.lookback_sec
    latest = args.latest or cfg.latest_path
    history_dir = args.history_dir or cfg.history_dir
    compressed = cfg.compress and not args.no_compress

    result = windowed_delta(latest, history_dir, lookback=lookback)
    envelope = build_envelope(result.data, result.error, result.error_string)
    sys.stdout.write(encode(envelope, compressed=compressed) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
