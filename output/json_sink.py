from __future__ import annotations
import json
import os
from typing import Any, Dict
from core.errors import HistoryDirError, StoreWriteError
from core.util import day_stamp, ensure_dir, ensure_parent

def dumps_record(obj: Dict[str, Any]) -> str:
    """Serialize one NDJSON record: sorted keys, compact, single line."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))

class JsonSink:
    """
    JSON output sink for writing structured data to NDJSON format.
    
    Appends each record as a separate JSON object line to the specified file.
    Creates parent directories if they don't exist.
    """
    
    def __init__(self, path: str | os.PathLike) -> None:
        """
        Initialize JSON sink with output file path.
        
        Args:
            path: File path for JSON output
        """
        self.path = path
        ensure_parent(self.path)

    def write(self, obj: Dict[str, Any]) -> None:
        """
        Write a single object as JSON line to the output file.

        The line goes out in one write call so concurrent readers see
        either nothing or a record without its newline, never a torn middle.
        
        Args:
            obj: Dictionary object to serialize and write

        Raises:
            StoreWriteError: the file could not be opened or written
        """
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(dumps_record(obj) + "\n")
        except OSError as e:
            raise StoreWriteError(f"failed to append to {self.path}: {e}") from e

class HistoryLog:
    """
    Append-only historical log of snapshots, one file per calendar day.

    Files are named YYYY-MM-DD inside the log directory. Records are never
    rewritten; the windowed reader scans them backwards.
    """

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = directory

    def path_for(self, ts: float) -> str:
        """Path of the log file for the day containing ``ts``."""
        return os.path.join(self.directory, day_stamp(ts))

    def ensure_directory(self) -> None:
        """
        Create the log directory if missing.

        Raises:
            HistoryDirError: the directory could not be created
        """
        try:
            ensure_dir(self.directory)
        except OSError as e:
            raise HistoryDirError(f"failed to create history dir {self.directory}: {e}") from e

    def append(self, snapshot: Dict[str, Any]) -> str:
        """
        Append a finalized snapshot to the file of its own day.

        Returns:
            Path of the file written to

        Raises:
            StoreWriteError: the append failed
        """
        path = self.path_for(snapshot.get("timestamp", 0))
        try:
            sink = JsonSink(path)
        except OSError as e:
            raise StoreWriteError(f"failed to open {path}: {e}") from e
        sink.write(snapshot)
        return path
