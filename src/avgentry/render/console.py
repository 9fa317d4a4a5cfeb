from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from avgentry.pricing.models import BreakEvenResult
from avgentry.render.chart import SCOPE_COLORS, Renderer


def results_table(symbol: str, results: List[BreakEvenResult], show_text: bool = True) -> Table:
    table = Table(title=f"Break-even {symbol}")
    table.add_column("Scope")
    table.add_column("Break-even", justify="right")
    table.add_column("Distance (pips)", justify="right")
    if show_text:
        table.add_column("Label")
    for r in results:
        color = SCOPE_COLORS[r.scope]
        row = [
            f"[{color}]{r.label}[/{color}]",
            f"{r.break_even_price:.5f}",
            f"{r.distance_in_pips:.2f}",
        ]
        if show_text:
            row.append(r.text)
        table.add_row(*row)
    return table


@dataclass
class ConsoleRenderer(Renderer):
    """Prints results as a rich table, or one JSON object per line."""

    console: Console = field(default_factory=Console)
    json_output: bool = False
    show_text: bool = True

    def render(self, symbol: str, results: List[BreakEvenResult], index: Optional[int] = None) -> None:
        if self.json_output:
            for r in results:
                self.console.print(
                    json.dumps({"symbol": symbol, **r.to_dict()}),
                    markup=False,
                    highlight=False,
                    soft_wrap=True,
                )
            return
        if not results:
            self.console.print(f"{symbol}: no open positions")
            return
        self.console.print(results_table(symbol, results, show_text=self.show_text))
