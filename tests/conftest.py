"""Pytest configuration and fixtures for break-even tests."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from avgentry.feed.snapshot import SnapshotFeed
from avgentry.pricing.models import InstrumentConstants, Position, TradeSide
from avgentry.render.chart import ChartRenderer, InMemoryCanvas

SYMBOL = "EURUSD"


def buy(volume: float, entry: float, swap: float = 0.0, symbol: str = SYMBOL) -> Position:
    return Position(symbol=symbol, side=TradeSide.BUY, volume_in_units=volume, entry_price=entry, swap=swap)


def sell(volume: float, entry: float, swap: float = 0.0, symbol: str = SYMBOL) -> Position:
    return Position(symbol=symbol, side=TradeSide.SELL, volume_in_units=volume, entry_price=entry, swap=swap)


@pytest.fixture
def fx_constants() -> InstrumentConstants:
    """EURUSD-like constants: 10 per pip per unit, pip = 0.0001."""
    return InstrumentConstants(pip_value=10.0, pip_size=0.0001, last_price=1.10500)


@pytest.fixture
def unit_constants() -> InstrumentConstants:
    """Constants with pip_value 1 so the swap adjustment is easy to read."""
    return InstrumentConstants(pip_value=1.0, pip_size=0.0001, last_price=1.15)


@pytest.fixture
def hedged_positions() -> list[Position]:
    """One buy and one sell of equal volume at different prices."""
    return [
        buy(1, 1.10, swap=-0.5),
        sell(1, 1.20, swap=-0.3),
    ]


@pytest.fixture
def feed(unit_constants: InstrumentConstants) -> SnapshotFeed:
    """Snapshot feed with long, short and net exposure on EURUSD."""
    return SnapshotFeed(
        positions=[buy(2, 1.10, swap=-1.0), sell(1, 1.20, swap=-1.0), buy(5, 1.30, symbol="GBPUSD")],
        constants={SYMBOL: unit_constants},
    )


@pytest.fixture
def canvas() -> InMemoryCanvas:
    return InMemoryCanvas()


@pytest.fixture
def chart_renderer(canvas: InMemoryCanvas) -> ChartRenderer:
    return ChartRenderer(canvas=canvas)


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    """A valid JSON snapshot with a single long position."""
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "symbol": SYMBOL,
                "positions": [
                    {"side": "buy", "volume": 100000, "entry_price": 1.1, "swap": -5.0},
                ],
                "constants": {"pip_value": 10, "pip_size": 0.0001, "last_price": 1.105},
            }
        )
    )
    return path
