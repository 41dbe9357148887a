from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml  # from pyyaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"


@dataclass(frozen=True)
class StatsConfig:
    """Paths and poller settings shared by the agent and the poller."""
    latest_path: str = "/var/cache/cape_stats/latest.json"
    history_dir: str = "/var/cache/cape_stats/history"
    spool_path: Optional[str] = "/var/cache/cape_stats/spool.ndjson"
    lock_path: str = "/var/run/cape_stats_agent.lock"
    lookback_sec: int = 300
    compress: bool = True


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Unable to load config file %s, using defaults: %s", path, e)
        return {}
    if not isinstance(config, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    return config


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name)
    return section if isinstance(section, dict) else {}


def load_config(path: str = DEFAULT_CONFIG_PATH) -> StatsConfig:
    """
    Load configuration from YAML file and override with environment variables.

    Environment variables override YAML values:
    - CAPE_STATS_LATEST: Latest snapshot file
    - CAPE_STATS_HISTORY_DIR: Directory holding the daily historical logs
    - CAPE_STATS_SPOOL: Event spool the pipeline appends counts to
    - CAPE_STATS_LOCK: Writer lock file
    - CAPE_STATS_LOOKBACK: Default poller window in seconds

    Args:
        path: Path to the YAML configuration file

    Returns:
        StatsConfig built from defaults, file, then environment
    """
    config = _read_yaml(path)
    stats = _section(config, "stats")
    poll = _section(config, "poll")

    values: Dict[str, Any] = {}
    for key in ("latest_path", "history_dir", "spool_path", "lock_path"):
        if key in stats:
            values[key] = None if stats[key] is None else str(stats[key])
    if "lookback_sec" in poll:
        try:
            values["lookback_sec"] = int(poll["lookback_sec"])
        except (TypeError, ValueError):
            logger.warning("Invalid poll.lookback_sec value: %r", poll["lookback_sec"])
    if "compress" in poll:
        values["compress"] = bool(poll["compress"])

    # environment wins over the file
    env_paths = {
        "CAPE_STATS_LATEST": "latest_path",
        "CAPE_STATS_HISTORY_DIR": "history_dir",
        "CAPE_STATS_SPOOL": "spool_path",
        "CAPE_STATS_LOCK": "lock_path",
    }
    for var, key in env_paths.items():
        if var in os.environ:
            values[key] = os.environ[var]

    if "CAPE_STATS_LOOKBACK" in os.environ:
        try:
            values["lookback_sec"] = int(os.environ["CAPE_STATS_LOOKBACK"])
        except ValueError:
            logger.warning("Invalid CAPE_STATS_LOOKBACK value: %s", os.environ["CAPE_STATS_LOOKBACK"])

    return StatsConfig(**values)
