from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from avgentry.pricing.models import InstrumentConstants, Position


class FeedError(Exception):
    """Raised when positions or reference data cannot be retrieved."""
    pass


class PositionFeed(ABC):
    @abstractmethod
    def get_open_positions(self, symbol: str) -> List[Position]:
        raise NotImplementedError


class ReferenceDataSource(ABC):
    @abstractmethod
    def get_constants(self, symbol: str) -> InstrumentConstants:
        raise NotImplementedError
