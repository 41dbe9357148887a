from __future__ import annotations
import os, time, pathlib

def now_ts() -> int:
    """
    Get current Unix timestamp.
    
    Returns:
        Current time as whole seconds since epoch
    """
    return int(time.time())

def day_stamp(ts: float) -> str:
    """
    Calendar day (local time) a timestamp falls on.

    Args:
        ts: Seconds since epoch

    Returns:
        Date formatted as YYYY-MM-DD
    """
    return time.strftime("%Y-%m-%d", time.localtime(ts))

def ensure_parent(path: str | os.PathLike) -> None:
    """
    Create parent directories for a file path, if they don't exist.
    
    Args:
        path: File path whose parent directories should be created
    """
    pathlib.Path(path).parent.mkdir(parents=True, exist_ok=True)

def ensure_dir(path: str | os.PathLike) -> None:
    """Create a directory (and its parents) if it doesn't exist."""
    pathlib.Path(path).mkdir(parents=True, exist_ok=True)
