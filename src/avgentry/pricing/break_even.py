from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

from avgentry.core.logger import get_logger
from avgentry.pricing.errors import NoExposureError, ValidationError
from avgentry.pricing.models import (
    BreakEvenResult,
    InstrumentConstants,
    Position,
    Scope,
    TradeSide,
)

log = get_logger("break_even")


def filter_positions(
    positions: Iterable[Position],
    symbol: str,
    side: Optional[TradeSide] = None,
) -> List[Position]:
    """Return the positions for ``symbol``, optionally restricted to one side."""
    return [
        p for p in positions
        if p.symbol == symbol and (side is None or p.side == side)
    ]


def _check_positions(positions: List[Position]) -> None:
    symbols = {p.symbol for p in positions}
    if len(symbols) > 1:
        raise ValidationError(f"Positions span multiple symbols: {sorted(symbols)}")
    for p in positions:
        p.validate()


def net_volume(positions: Iterable[Position]) -> float:
    """Buy volume minus sell volume, in units."""
    positions = list(positions)
    _check_positions(positions)
    return sum(p.signed_volume for p in positions)


def _aggregate(
    positions: List[Position],
    side: Optional[TradeSide],
) -> Tuple[float, float, float]:
    """Average entry, total swap and volume for one side, or for all positions.

    With a side, the volume is the side's total volume. Without one, every
    position contributes its signed volume and the volume is ``|net volume|``.
    """
    _check_positions(positions)
    selected = [p for p in positions if side is None or p.side == side]

    entry_vol = 0.0
    swap = 0.0
    for p in selected:
        entry_vol += p.entry_price * p.signed_volume
        swap += p.swap

    if side is None:
        volume = abs(sum(p.signed_volume for p in selected))
    else:
        volume = sum(p.volume_in_units for p in selected)

    # Exact zero only. A nearly hedged float sum yields a large finite Net level.
    if volume == 0:
        raise NoExposureError(
            f"no exposure ({side.value if side else 'net'}, {len(selected)} positions)"
        )

    price = abs(entry_vol / volume)
    if not (math.isfinite(price) and math.isfinite(swap) and math.isfinite(volume)):
        raise ValidationError(
            f"Aggregate overflow for {side.value if side else 'net'}: "
            f"price={price}, swap={swap}, volume={volume}"
        )
    return price, swap, volume


def entry_weighted_price_and_swap(
    positions: Iterable[Position],
    side: Optional[TradeSide] = None,
) -> Tuple[float, float]:
    """Volume-weighted entry price before swap, and the summed swap.

    ``side=None`` aggregates both sides using signed volumes and divides by
    the absolute net volume.

    Raises:
        NoExposureError: If the selected volume sums to zero.
        ValidationError: If the positions are malformed, mix symbols, or
            their sums overflow.
    """
    price, swap, _ = _aggregate(list(positions), side)
    return price, swap


def solve_break_even(
    scope: Scope,
    volume_for_constant: float,
    entry_price_before_swap: float,
    total_swap: float,
    constants: InstrumentConstants,
) -> BreakEvenResult:
    """Solve ``C * (P2 - P1) = |S|`` for the break-even price P2.

    ``C = volume * pip_value / pip_size``, ``P1`` is the average entry before
    swaps and ``S`` the total swap. Long and Short add the swap adjustment to
    ``P1``; Net subtracts it.

    The distance to ``last_price`` is negative when a Long break-even sits
    above the market or a Short one below it, positive otherwise.
    """
    constants.validate()
    if volume_for_constant < 0:
        raise ValidationError(f"volume_for_constant must be >= 0, got {volume_for_constant}")
    if volume_for_constant == 0:
        raise NoExposureError(f"no exposure ({scope.value})")

    constant = (volume_for_constant * constants.pip_value) / constants.pip_size
    if constant == 0:
        raise ValidationError(f"Pip constant underflows to zero for volume {volume_for_constant}")
    sign = -1 if scope is Scope.NET else 1
    break_even = abs(total_swap / constant) * sign + entry_price_before_swap

    last = constants.last_price
    tilts_adverse = (
        (scope is Scope.LONG and break_even > last)
        or (scope is Scope.SHORT and break_even < last)
    )
    multiplier = -1 if tilts_adverse else 1
    distance = multiplier * (abs(break_even - last) / constants.pip_size)
    if not (math.isfinite(break_even) and math.isfinite(distance)):
        raise ValidationError(
            f"Break-even overflow for {scope.value}: price={break_even}, distance={distance}"
        )

    return BreakEvenResult(scope=scope, break_even_price=break_even, distance_in_pips=distance)


def compute_all(
    positions: Iterable[Position],
    symbol: str,
    constants: InstrumentConstants,
) -> List[BreakEvenResult]:
    """Break-even results for ``symbol``, ordered Long, Short, Net.

    Scopes without exposure are omitted: no buys means no Long, no sells no
    Short, and a zero net volume (fully hedged) no Net. Positions for other
    symbols are ignored.

    Raises:
        ValidationError: On malformed positions or constants. Nothing is
            computed in that case.
    """
    constants.validate()
    selected = filter_positions(positions, symbol)
    _check_positions(selected)

    results: List[BreakEvenResult] = []
    if not selected:
        return results

    for scope in (Scope.LONG, Scope.SHORT):
        try:
            price, swap, volume = _aggregate(selected, scope.side)
        except NoExposureError:
            continue
        results.append(solve_break_even(scope, volume, price, swap, constants))

    try:
        price, swap, volume = _aggregate(selected, None)
    except NoExposureError:
        log.debug(f"{symbol}: net exposure is zero, skipping net break-even")
    else:
        results.append(solve_break_even(Scope.NET, volume, price, swap, constants))

    return results
