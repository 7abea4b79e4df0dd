from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple


class RowSide(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


def panel_id(table_id: int, side: RowSide, position: int) -> str:
    """Display id used by the dashboards, e.g. ``T.2.TOP.P15``."""
    return f"T.{table_id}.{side.value.upper()}.P{position}"


@dataclass(frozen=True)
class TableTopology:
    """Static wiring of one table: a top and a bottom series string.

    Counts below zero are treated as an empty row; counts are validated by
    whoever creates the table.
    """
    table_id: int
    top_row_panels: int = 20
    bottom_row_panels: int = 20
    nominal_voltage: float = 20.0  # V per panel
    nominal_current: float = 10.0  # A per panel

    def __post_init__(self):
        object.__setattr__(self, "top_row_panels", max(0, int(self.top_row_panels)))
        object.__setattr__(self, "bottom_row_panels", max(0, int(self.bottom_row_panels)))

    @property
    def nominal_power(self) -> float:
        return self.nominal_voltage * self.nominal_current

    @property
    def total_panels(self) -> int:
        return self.top_row_panels + self.bottom_row_panels

    def panel_count(self, side: RowSide) -> int:
        if side == RowSide.TOP:
            return self.top_row_panels
        return self.bottom_row_panels

    def positions(self, side: RowSide) -> Tuple[int, ...]:
        """Ordered 1-based positions of a row, in electrical order."""
        return tuple(range(1, self.panel_count(side) + 1))

    def rows(self) -> Dict[RowSide, Tuple[int, ...]]:
        return {side: self.positions(side) for side in RowSide}

    def resized(self, top_row_panels: int, bottom_row_panels: int) -> "TableTopology":
        return TableTopology(
            table_id=self.table_id,
            top_row_panels=top_row_panels,
            bottom_row_panels=bottom_row_panels,
            nominal_voltage=self.nominal_voltage,
            nominal_current=self.nominal_current,
        )


def build_tables(
    table_configs: List[Dict],
    nominal_voltage: float,
    nominal_current: float,
) -> List[TableTopology]:
    """Build topologies from ``{tableNumber, panelsTop, panelsBottom}`` records."""
    tables = []
    for cfg in table_configs:
        tables.append(TableTopology(
            table_id=int(cfg["tableNumber"]),
            top_row_panels=cfg.get("panelsTop", 20),
            bottom_row_panels=cfg.get("panelsBottom", 20),
            nominal_voltage=nominal_voltage,
            nominal_current=nominal_current,
        ))
    return sorted(tables, key=lambda t: t.table_id)
