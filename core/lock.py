from __future__ import annotations
import fcntl
import logging
import os
from typing import Optional

from core.errors import LockContention
from core.util import ensure_parent

logger = logging.getLogger(__name__)


class SingleInstanceLock:
    """
    Advisory exclusive lock guaranteeing one snapshot writer at a time.

    Uses flock() on a lock file that also records the holder's pid. The
    kernel drops the lock when the process exits, however it exits, so a
    crashed run never leaves a stale lock behind.

        with SingleInstanceLock("/var/run/cape_stats_agent.lock"):
            ...
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = path
        self._fd: Optional[int] = None

    def acquire(self) -> None:
        """
        Take the lock without blocking.

        Raises:
            LockContention: another process holds it
            OSError: the lock file can't be created or opened
        """
        ensure_parent(self.path)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            os.close(fd)
            raise LockContention(f"{self.path} is held by another process") from e
        except OSError:
            os.close(fd)
            raise
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode("ascii"))
        self._fd = fd
        logger.debug("Acquired %s", self.path)

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> "SingleInstanceLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()
