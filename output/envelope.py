"""
Report encoder for the monitoring poller.

The envelope is ``{"version": 1, "error": 0|1|2, "errorString": "",
"data": {...}}``. With compression on, the JSON is gzipped and base64
encoded onto a single line, but only emitted that way when it comes out
shorter than the plain JSON.
"""
from __future__ import annotations
import base64
import gzip
import json
from typing import Any, Dict, Optional

ENVELOPE_VERSION = 1

ERROR_NONE = 0
ERROR_READ = 1
ERROR_UNUSABLE = 2


def build_envelope(data: Optional[Dict[str, Any]], error: int = ERROR_NONE,
                   error_string: str = "") -> Dict[str, Any]:
    return {
        "version": ENVELOPE_VERSION,
        "error": error,
        "errorString": error_string,
        "data": data,
    }


def to_json(envelope: Dict[str, Any]) -> str:
    return json.dumps(envelope, sort_keys=True)


def compress(text: str) -> str:
    """gzip + base64, no newlines. mtime is pinned so output is reproducible."""
    packed = gzip.compress(text.encode("utf-8"), compresslevel=9, mtime=0)
    return base64.b64encode(packed).decode("ascii")


def encode(envelope: Dict[str, Any], compressed: bool = True) -> str:
    """
    Render an envelope as one line of output.

    Args:
        envelope: Result of build_envelope
        compressed: Try the gzip+base64 form

    Returns:
        The shorter of the raw JSON and its compressed form
    """
    raw = to_json(envelope)
    if not compressed:
        return raw
    packed = compress(raw)
    if len(packed) < len(raw):
        return packed
    return raw
