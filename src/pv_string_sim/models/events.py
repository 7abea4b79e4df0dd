from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class EventKind:
    FAULT_INJECTED = "fault_injected"
    REPAIR_STARTED = "repair_started"
    REPAIR_STAGE_CHANGED = "repair_stage_changed"
    REPAIR_COMPLETED = "repair_completed"
    ROW_REINITIALIZED = "row_reinitialized"


@dataclass
class SimulationEvent:
    kind: str
    table_id: int
    row: str
    elapsed_seconds: float
    cycle: int
    position: Optional[int] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        where = f"T.{self.table_id}.{self.row.upper()}"
        if self.position is not None:
            where += f".P{self.position}"
        return f"[cycle {self.cycle} @ {self.elapsed_seconds:.1f}s] {self.kind} {where}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind,
            "table": self.table_id,
            "row": self.row,
            "position": self.position,
            "elapsedSeconds": self.elapsed_seconds,
            "cycle": self.cycle,
            "detail": dict(self.detail),
        }
