"""Time utilities shared across tdsgrade components."""

from __future__ import annotations

import time


def epoch_ms() -> int:
    """Return wall-clock milliseconds since the epoch (profile revision stamps)."""
    return int(time.time() * 1000)
