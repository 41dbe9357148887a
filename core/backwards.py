from __future__ import annotations
import os
from typing import Iterator

DEFAULT_BLOCK_SIZE = 8192


class ReadBackwards:
    """
    Iterates over the lines of a text file from last to first.

    The file is read in fixed-size blocks starting at its end, so memory
    use is bounded by the block size plus the longest line rather than by
    the file size. Line terminators are stripped.

    A trailing segment without a terminating newline is a record still
    being appended by a writer; it is skipped unless ``skip_partial`` is
    False.
    """

    def __init__(self, path: str | os.PathLike, block_size: int = DEFAULT_BLOCK_SIZE,
                 encoding: str = "utf-8", skip_partial: bool = True) -> None:
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        self.path = path
        self.block_size = block_size
        self.encoding = encoding
        self.skip_partial = skip_partial

    def __iter__(self) -> Iterator[str]:
        with open(self.path, "rb") as f:
            f.seek(0, os.SEEK_END)
            pos = f.tell()
            pending = b""
            at_end = True
            while pos > 0:
                step = min(self.block_size, pos)
                pos -= step
                f.seek(pos)
                pending = f.read(step) + pending
                parts = pending.split(b"\n")
                # parts[0] may continue in the previous block
                pending = parts[0]
                for raw in reversed(parts[1:]):
                    if at_end:
                        at_end = False
                        if not self._keep_tail(raw):
                            continue
                    yield self._decode(raw)
            if at_end:
                # no newline anywhere, the whole file is one segment
                if pending and self._keep_tail(pending):
                    yield self._decode(pending)
            else:
                yield self._decode(pending)

    def _keep_tail(self, raw: bytes) -> bool:
        # empty when the file ends with a newline
        return bool(raw) and not self.skip_partial

    def _decode(self, raw: bytes) -> str:
        return raw.rstrip(b"\r").decode(self.encoding, errors="replace")
