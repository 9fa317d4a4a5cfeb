from __future__ import annotations

import time
from datetime import datetime, timezone

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def seconds_until(deadline: float) -> float:
    """Seconds left until a ``time.monotonic()`` deadline, never negative."""
    return max(0.0, deadline - time.monotonic())
