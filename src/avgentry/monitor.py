from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from avgentry.core.logger import get_logger, log_break_even, log_error_with_context, set_snapshot_id
from avgentry.core.timeutils import seconds_until
from avgentry.feed.base import FeedError, PositionFeed, ReferenceDataSource
from avgentry.pricing.break_even import compute_all
from avgentry.pricing.errors import ValidationError
from avgentry.pricing.models import BreakEvenResult
from avgentry.render.chart import Renderer

log = get_logger("monitor")


@dataclass
class BreakEvenMonitor:
    """Recomputes and redraws break-even levels for one symbol.

    Each ``refresh`` takes a fresh snapshot from the feed. Position or view
    change notifications clear the drawings and bump a generation counter;
    a refresh that was computing while the generation moved on is discarded
    rather than drawn.

    Usage:
        monitor = BreakEvenMonitor("EURUSD", feed, feed, ChartRenderer(canvas))
        monitor.refresh()
        monitor.run(interval=1.0, should_stop=lambda: stopped)
    """

    symbol: str
    feed: PositionFeed
    reference: ReferenceDataSource
    renderer: Renderer

    _generation: int = field(default=0, init=False)
    _last_results: List[BreakEvenResult] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def last_results(self) -> List[BreakEvenResult]:
        with self._lock:
            return list(self._last_results)

    def invalidate(self, reason: str = "") -> None:
        """Drop current drawings; the next refresh redraws from a new snapshot."""
        with self._lock:
            self._generation += 1
            self._last_results = []
            self.renderer.clear()
        log.debug(f"{self.symbol}: drawings invalidated ({reason or 'manual'})")

    def on_positions_changed(self) -> None:
        self.invalidate("positions changed")

    def on_view_changed(self) -> None:
        self.invalidate("view changed")

    def refresh(self, index: Optional[int] = None) -> List[BreakEvenResult]:
        """Snapshot, compute and render.

        Returns:
            The rendered results, or an empty list if the snapshot was
            superseded before it could be drawn.

        Raises:
            ValidationError: If the snapshot is malformed. Earlier drawings
                are removed and nothing new is drawn.
            FeedError: If the feed cannot provide a snapshot. Earlier
                drawings are removed.
        """
        set_snapshot_id()
        with self._lock:
            generation = self._generation

        try:
            positions = self.feed.get_open_positions(self.symbol)
            constants = self.reference.get_constants(self.symbol)
            results = compute_all(positions, self.symbol, constants)
        except (ValidationError, FeedError):
            # Levels from the previous snapshot no longer hold
            with self._lock:
                self._last_results = []
                self.renderer.clear()
            raise

        with self._lock:
            if generation != self._generation:
                log.debug(f"{self.symbol}: snapshot superseded, discarding {len(results)} results")
                return []
            changed = results != self._last_results
            self.renderer.clear()
            self.renderer.render(self.symbol, results, index)
            self._last_results = results

        if changed:
            if not results:
                log.info(f"[{self.symbol}] no open positions")
            for r in results:
                log_break_even(log, self.symbol, r)
        return results

    def run(
        self,
        interval: float,
        should_stop: Callable[[], bool],
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Refresh every ``interval`` seconds until ``should_stop()`` is true.

        Feed and validation errors are logged and the loop keeps going.

        Returns:
            Number of refresh cycles run.
        """
        cycles = 0
        while not should_stop():
            cycles += 1
            deadline = time.monotonic() + interval

            try:
                self.refresh()
            except ValidationError as e:
                log_error_with_context(log, "Invalid position snapshot", e, symbol=self.symbol)
            except FeedError as e:
                log.warning(f"Feed error for {self.symbol}: {e}")
            except Exception as e:
                log.exception(f"Unexpected refresh error: {e}")

            # Wake up regularly to check for shutdown
            remaining = seconds_until(deadline)
            while remaining > 0 and not should_stop():
                sleep(min(remaining, 0.5))
                remaining = seconds_until(deadline)

        return cycles
