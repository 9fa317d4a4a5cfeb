from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from avgentry.feed.base import PositionFeed, ReferenceDataSource
from avgentry.pricing.break_even import filter_positions
from avgentry.pricing.errors import ValidationError
from avgentry.pricing.models import InstrumentConstants, Position, TradeSide


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    if key not in data:
        if default is None:
            raise ValidationError(f"Missing field: {key}")
        return default
    try:
        return float(data[key])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Field {key} is not a number: {data[key]!r}") from e


def position_from_dict(data: Dict[str, Any], default_symbol: str = "") -> Position:
    """Build a Position from a snapshot record.

    ``volume`` and ``volume_in_units`` are both accepted; ``swap`` defaults
    to 0.
    """
    symbol = data.get("symbol", default_symbol)
    if not symbol:
        raise ValidationError(f"Position has no symbol: {data}")
    if "side" not in data:
        raise ValidationError(f"Missing field: side ({symbol})")
    volume_key = "volume_in_units" if "volume_in_units" in data else "volume"
    position = Position(
        symbol=symbol,
        side=TradeSide.parse(data["side"]),
        volume_in_units=_number(data, volume_key),
        entry_price=_number(data, "entry_price"),
        swap=_number(data, "swap", 0.0),
    )
    position.validate()
    return position


def constants_from_dict(data: Dict[str, Any]) -> InstrumentConstants:
    constants = InstrumentConstants(
        pip_value=_number(data, "pip_value"),
        pip_size=_number(data, "pip_size"),
        last_price=_number(data, "last_price"),
    )
    constants.validate()
    return constants


@dataclass
class SnapshotFeed(PositionFeed, ReferenceDataSource):
    """In-memory positions and reference data.

    Usage:
        feed = SnapshotFeed(positions=[...], constants={"EURUSD": consts})
        feed.get_open_positions("EURUSD")
    """

    positions: List[Position] = field(default_factory=list)
    constants: Dict[str, InstrumentConstants] = field(default_factory=dict)

    def get_open_positions(self, symbol: str) -> List[Position]:
        return filter_positions(self.positions, symbol)

    def get_constants(self, symbol: str) -> InstrumentConstants:
        try:
            return self.constants[symbol]
        except KeyError:
            raise ValidationError(f"No instrument constants for {symbol}") from None

    def set_positions(self, positions: List[Position]) -> None:
        self.positions = list(positions)

    def set_last_price(self, symbol: str, last_price: float) -> None:
        self.constants[symbol] = replace(self.get_constants(symbol), last_price=last_price)


def load_snapshot(path: Path) -> tuple[str, SnapshotFeed]:
    """Load a JSON snapshot file.

    Format::

        {
          "symbol": "EURUSD",
          "positions": [{"side": "buy", "volume": 100000, "entry_price": 1.1, "swap": -5.0}],
          "constants": {"pip_value": 10, "pip_size": 0.0001, "last_price": 1.105}
        }

    Returns:
        The snapshot's symbol and a SnapshotFeed serving it.

    Raises:
        ValidationError: If the file is not valid JSON or a record is malformed.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid snapshot JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Snapshot must be a JSON object: {path}")

    symbol = data.get("symbol", "")
    if not symbol:
        raise ValidationError(f"Snapshot has no symbol: {path}")
    if "constants" not in data:
        raise ValidationError(f"Snapshot has no constants: {path}")

    positions = [position_from_dict(p, default_symbol=symbol) for p in data.get("positions", [])]
    feed = SnapshotFeed(positions=positions, constants={symbol: constants_from_dict(data["constants"])})
    return symbol, feed
