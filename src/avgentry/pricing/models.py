from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from avgentry.pricing.errors import ValidationError


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def direction(self) -> int:
        return 1 if self is TradeSide.BUY else -1

    @classmethod
    def parse(cls, value: str) -> "TradeSide":
        v = str(value).strip().lower()
        if v in ("buy", "long"):
            return cls.BUY
        if v in ("sell", "short"):
            return cls.SELL
        raise ValidationError(f"Unknown trade side: {value!r}")


class Scope(Enum):
    LONG = "long"
    SHORT = "short"
    NET = "net"

    @property
    def label(self) -> str:
        if self is Scope.LONG:
            return "AVG L"
        if self is Scope.SHORT:
            return "AVG S"
        return "AVG"

    @property
    def side(self) -> Optional[TradeSide]:
        if self is Scope.LONG:
            return TradeSide.BUY
        if self is Scope.SHORT:
            return TradeSide.SELL
        return None


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class Position:
    symbol: str
    side: TradeSide
    volume_in_units: float  # always >= 0, direction comes from side
    entry_price: float
    swap: float = 0.0  # negative = cost

    @property
    def signed_volume(self) -> float:
        return self.volume_in_units * self.side.direction

    def validate(self) -> None:
        """Raise ValidationError if the position cannot be priced."""
        _require_finite("volume_in_units", self.volume_in_units)
        _require_finite("entry_price", self.entry_price)
        _require_finite("swap", self.swap)
        if self.volume_in_units < 0:
            raise ValidationError(
                f"volume_in_units must be >= 0, got {self.volume_in_units} ({self.symbol})"
            )
        if self.entry_price <= 0:
            raise ValidationError(
                f"entry_price must be > 0, got {self.entry_price} ({self.symbol})"
            )


@dataclass(frozen=True)
class InstrumentConstants:
    pip_value: float  # value of one pip per unit of volume
    pip_size: float  # one pip in price units
    last_price: float

    def validate(self) -> None:
        """Raise ValidationError unless both pip constants are finite and positive."""
        for name in ("pip_value", "pip_size", "last_price"):
            _require_finite(name, getattr(self, name))
        if self.pip_size <= 0:
            raise ValidationError(f"pip_size must be > 0, got {self.pip_size}")
        if self.pip_value <= 0:
            raise ValidationError(f"pip_value must be > 0, got {self.pip_value}")


@dataclass(frozen=True)
class BreakEvenResult:
    scope: Scope
    break_even_price: float
    distance_in_pips: float

    @property
    def label(self) -> str:
        return self.scope.label

    @property
    def text(self) -> str:
        return f"{self.label}: [{self.break_even_price:.5f} | {self.distance_in_pips:.2f} Pips]"

    def to_dict(self) -> dict:
        return {
            "scope": self.scope.value,
            "label": self.label,
            "break_even_price": self.break_even_price,
            "distance_in_pips": self.distance_in_pips,
        }
