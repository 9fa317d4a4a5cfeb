from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pandas as pd

from alpaca.trading.client import TradingClient
from alpaca.data.historical import StockHistoricalDataClient
from alpaca.data.requests import StockBarsRequest
from alpaca.data.timeframe import TimeFrame, TimeFrameUnit
from alpaca.common.exceptions import APIError

from avgentry.core.logger import get_logger
from avgentry.core.retry import with_retry
from avgentry.feed.base import FeedError, PositionFeed, ReferenceDataSource
from avgentry.pricing.break_even import filter_positions
from avgentry.pricing.models import InstrumentConstants, Position, TradeSide

log = get_logger("feed")


def _tf(tf: str) -> TimeFrame:
    """Convert timeframe string to Alpaca TimeFrame."""
    t = tf.lower()
    if t in ("1min", "1m", "1"):
        return TimeFrame.Minute
    if t in ("5min", "5m", "5"):
        return TimeFrame(5, TimeFrameUnit.Minute)
    if t in ("15min", "15m", "15"):
        return TimeFrame(15, TimeFrameUnit.Minute)
    if t in ("1hour", "1h", "60min", "60m"):
        return TimeFrame.Hour
    if t in ("1day", "1d", "d", "day"):
        return TimeFrame.Day
    return TimeFrame.Minute


def _side_value(side) -> str:
    return str(getattr(side, "value", side))


@dataclass
class AlpacaPositionFeed(PositionFeed):
    """Open positions from an Alpaca account.

    Alpaca nets each symbol into a single long or short position. Equity
    positions carry no financing charge, so swap is always 0.
    """

    api_key: str
    api_secret: str
    paper: bool = True

    def __post_init__(self) -> None:
        self.client = TradingClient(
            self.api_key,
            self.api_secret,
            paper=self.paper,
        )
        log.debug(f"Alpaca position feed initialized (paper={self.paper})")

    @with_retry(max_attempts=3, min_wait=1.0, max_wait=10.0)
    def get_open_positions(self, symbol: str) -> List[Position]:
        """Snapshot the open positions for ``symbol``.

        Raises:
            FeedError: If positions cannot be retrieved
        """
        try:
            raw = self.client.get_all_positions()
        except APIError as e:
            log.error(f"Failed to get positions: {e}")
            raise FeedError(f"Positions error: {e}") from e

        out: List[Position] = []
        for p in raw:
            out.append(
                Position(
                    symbol=p.symbol,
                    side=TradeSide.parse(_side_value(p.side)),
                    volume_in_units=abs(float(p.qty)),
                    entry_price=float(p.avg_entry_price),
                    swap=0.0,
                )
            )
        return filter_positions(out, symbol)


@dataclass
class AlpacaReferenceData(ReferenceDataSource):
    """Pip constants from settings and the last bar close from Alpaca market data."""

    api_key: str
    api_secret: str
    pip_size: float
    pip_value: float
    timeframe: str = "1Min"
    feed: str = "iex"

    def __post_init__(self) -> None:
        self.client = StockHistoricalDataClient(self.api_key, self.api_secret)

    @with_retry(max_attempts=3, min_wait=1.0, max_wait=10.0)
    def fetch_bars(self, symbol: str, limit: int = 5) -> pd.DataFrame:
        """Fetch the most recent bars for a symbol.

        Raises:
            FeedError: If the request is rejected
        """
        try:
            req = StockBarsRequest(
                symbol_or_symbols=symbol,
                timeframe=_tf(self.timeframe),
                limit=limit,
                feed=self.feed,
            )
            bars = self.client.get_stock_bars(req).df
        except APIError as e:
            log.error(f"Failed to get bars for {symbol}: {e}")
            raise FeedError(f"Bars error for {symbol}: {e}") from e

        if bars is None:
            return pd.DataFrame()
        if isinstance(bars.index, pd.MultiIndex):
            bars = bars.reset_index(level=0, drop=True)
        return bars.sort_index()

    def get_constants(self, symbol: str) -> InstrumentConstants:
        bars = self.fetch_bars(symbol)
        if bars.empty or "close" not in bars.columns:
            raise FeedError(f"No bars returned for {symbol}")
        return InstrumentConstants(
            pip_value=self.pip_value,
            pip_size=self.pip_size,
            last_price=float(bars["close"].iloc[-1]),
        )
