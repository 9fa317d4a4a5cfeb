from __future__ import annotations

from .break_even import (
    compute_all,
    entry_weighted_price_and_swap,
    filter_positions,
    net_volume,
    solve_break_even,
)
from .errors import BreakEvenError, NoExposureError, ValidationError
from .models import BreakEvenResult, InstrumentConstants, Position, Scope, TradeSide

__all__ = [
    "BreakEvenError",
    "BreakEvenResult",
    "InstrumentConstants",
    "NoExposureError",
    "Position",
    "Scope",
    "TradeSide",
    "ValidationError",
    "compute_all",
    "entry_weighted_price_and_swap",
    "filter_positions",
    "net_volume",
    "solve_break_even",
]
