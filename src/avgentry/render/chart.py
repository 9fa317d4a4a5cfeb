from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from avgentry.core.logger import get_logger
from avgentry.pricing.models import BreakEvenResult, Scope

log = get_logger("render")

ObjectKind = Literal["line", "text"]

SCOPE_COLORS: Dict[Scope, str] = {
    Scope.NET: "yellow",
    Scope.LONG: "green",
    Scope.SHORT: "red",
}

# Bar offsets relative to the current index
LINE_START_OFFSET = -3
LINE_END_OFFSET = 10
TEXT_OFFSET = -2


@dataclass(frozen=True)
class ChartObject:
    name: str
    kind: ObjectKind
    price: float
    color: str
    start_index: int
    end_index: Optional[int] = None
    text: str = ""


class ChartCanvas(ABC):
    """Drawing surface the renderer writes to."""

    @abstractmethod
    def draw(self, obj: ChartObject) -> None:
        raise NotImplementedError

    @abstractmethod
    def object_names(self) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def remove(self, name: str) -> None:
        raise NotImplementedError


@dataclass
class InMemoryCanvas(ChartCanvas):
    """Canvas that keeps objects in a dict; drawing an existing name replaces it."""

    objects: Dict[str, ChartObject] = field(default_factory=dict)

    def draw(self, obj: ChartObject) -> None:
        self.objects[obj.name] = obj

    def object_names(self) -> List[str]:
        return list(self.objects)

    def remove(self, name: str) -> None:
        self.objects.pop(name, None)


class Renderer(ABC):
    @abstractmethod
    def render(self, symbol: str, results: List[BreakEvenResult], index: Optional[int] = None) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        """Remove anything previously drawn. No-op by default."""
        return None


def line_id(scope: Scope) -> str:
    """Object id for a scope's line: ``breakEvenPrice`` plus the label for Long/Short."""
    if scope is Scope.NET:
        return "breakEvenPrice"
    return "breakEvenPrice" + scope.label


@dataclass
class ChartRenderer(Renderer):
    """Draws one horizontal line and an optional label per result.

    Every object name starts with a per-renderer tag so that ``clear`` only
    removes this renderer's drawings.
    """

    canvas: ChartCanvas
    show_text: bool = True
    tag: str = field(default_factory=lambda: str(uuid.uuid4()) + "-AVG")

    def render(self, symbol: str, results: List[BreakEvenResult], index: Optional[int] = None) -> None:
        index = 0 if index is None else index
        for result in results:
            lid = line_id(result.scope)
            color = SCOPE_COLORS[result.scope]
            self.canvas.draw(
                ChartObject(
                    name=self.tag + lid,
                    kind="line",
                    price=result.break_even_price,
                    color=color,
                    start_index=index + LINE_START_OFFSET,
                    end_index=index + LINE_END_OFFSET,
                )
            )
            if not self.show_text:
                continue
            self.canvas.draw(
                ChartObject(
                    name=self.tag + lid + "Text",
                    kind="text",
                    price=result.break_even_price,
                    color=color,
                    start_index=index + TEXT_OFFSET,
                    text=result.text,
                )
            )

    def clear(self) -> None:
        names = [n for n in self.canvas.object_names() if n.startswith(self.tag)]
        for name in names:
            self.canvas.remove(name)
        if names:
            log.debug(f"Removed {len(names)} chart objects")
