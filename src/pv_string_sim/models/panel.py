from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .clock import ClockReading
from .events import SimulationEvent
from .topology import RowSide, panel_id


GOOD_HEALTH_MIN = 80.0
CLEANING_HEALTH_MIN = 20.0


class PanelState(str, Enum):
    GOOD = "good"
    CLEANING = "cleaning"
    FAULT = "fault"

    @property
    def degraded(self) -> bool:
        return self != PanelState.GOOD


class FaultClass(str, Enum):
    ELECTRICAL_FAULT = "electrical_fault"
    CLEANING_REQUIRED = "cleaning_required"

    @property
    def panel_state(self) -> PanelState:
        if self == FaultClass.ELECTRICAL_FAULT:
            return PanelState.FAULT
        return PanelState.CLEANING


class RepairStage(str, Enum):
    NOT_STARTED = "not_started"
    EARLY_STAGE = "early_stage"          # fault only
    MID_STAGE = "mid_stage"              # fault only
    MID_TO_COMPLETE = "mid_to_complete"  # cleaning only
    COMPLETE = "complete"


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def state_for_health(health: float) -> PanelState:
    """Boundary policy: good >= 80, fault < 20, cleaning in between."""
    if health >= GOOD_HEALTH_MIN:
        return PanelState.GOOD
    if health >= CLEANING_HEALTH_MIN:
        return PanelState.CLEANING
    return PanelState.FAULT


@dataclass
class Panel:
    table_id: int
    side: RowSide
    position: int
    health: float = 100.0
    state: PanelState = PanelState.GOOD
    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0
    temperature: float = 0.0
    efficiency: float = 0.0
    irradiance: float = 0.0
    expected_power: float = 0.0
    repair_stage: RepairStage = RepairStage.NOT_STARTED
    repair_progress: float = 0.0
    is_originating: bool = False
    affected_by_series_break: bool = False

    @property
    def id(self) -> str:
        return panel_id(self.table_id, self.side, self.position)

    @property
    def power_loss(self) -> float:
        return max(0.0, self.expected_power - self.power)

    @property
    def under_repair(self) -> bool:
        return self.repair_stage not in (RepairStage.NOT_STARTED, RepairStage.COMPLETE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "position": self.position,
            "voltage": self.voltage,
            "current": self.current,
            "power": self.power,
            "health": self.health,
            "state": self.state.value,
            "temperature": self.temperature,
            "efficiency": self.efficiency,
            "irradiance": self.irradiance,
            "repairStage": self.repair_stage.value,
            "repairProgress": self.repair_progress,
            "isOriginating": self.is_originating,
            "affectedBySeriesBreak": self.affected_by_series_break,
        }


@dataclass
class RepairRecord:
    """Fault/cleaning record of a row; followers read their stage from here."""
    originating_index: int
    fault_class: FaultClass
    stage: RepairStage = RepairStage.NOT_STARTED
    progress: float = 0.0
    injected_cycle: int = 0
    # Repair-window time worked on this record so far
    repair_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originatingIndex": self.originating_index,
            "faultClass": self.fault_class.value,
            "stage": self.stage.value,
            "progress": self.progress,
            "injectedCycle": self.injected_cycle,
            "repairSeconds": self.repair_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepairRecord":
        return cls(
            originating_index=int(data["originatingIndex"]),
            fault_class=FaultClass(data["faultClass"]),
            stage=RepairStage(data.get("stage", RepairStage.NOT_STARTED.value)),
            progress=float(data.get("progress", 0.0)),
            injected_cycle=int(data.get("injectedCycle", 0)),
            repair_seconds=float(data.get("repairSeconds", 0.0)),
        )


@dataclass
class RowSnapshot:
    table_id: int
    side: RowSide
    panels: List[Panel] = field(default_factory=list)
    repair: Optional[RepairRecord] = None
    series_health: float = 100.0
    series_state: PanelState = PanelState.GOOD
    originating_index: Optional[int] = None
    reinitialized: bool = False

    def __len__(self) -> int:
        return len(self.panels)

    @property
    def has_active_event(self) -> bool:
        return self.repair is not None or any(
            p.state.degraded for p in self.panels if not p.affected_by_series_break
        )

    @property
    def originating_panel(self) -> Optional[Panel]:
        if self.originating_index is None or not 0 <= self.originating_index < len(self.panels):
            return None
        return self.panels[self.originating_index]

    def to_dict(self) -> Dict[str, Any]:
        """Persisted row layout: parallel per-panel arrays plus the row roll-up."""
        return {
            "voltage": [p.voltage for p in self.panels],
            "current": [p.current for p in self.panels],
            "power": [p.power for p in self.panels],
            "health": [p.health for p in self.panels],
            "states": [p.state.value for p in self.panels],
            "repairStage": [p.repair_stage.value for p in self.panels],
            "repairProgress": [p.repair_progress for p in self.panels],
            "seriesState": self.series_state.value,
            "seriesHealth": self.series_health,
            "actualFaultyIndex": self.originating_index,
            "repairState": self.repair.to_dict() if self.repair else None,
        }

    @classmethod
    def from_dict(cls, table_id: int, side: RowSide, data: Dict[str, Any]) -> "RowSnapshot":
        # Stored states are display values (followers copy their originator);
        # the underlying state is always re-derived from health.
        health = [clamp(float(h)) for h in data.get("health") or []]
        voltage = list(data.get("voltage") or [])
        current = list(data.get("current") or [])
        power = list(data.get("power") or [])
        panels = []
        for i, h in enumerate(health):
            panels.append(Panel(
                table_id=table_id,
                side=side,
                position=i + 1,
                health=h,
                state=state_for_health(h),
                voltage=float(voltage[i]) if i < len(voltage) else 0.0,
                current=float(current[i]) if i < len(current) else 0.0,
                power=float(power[i]) if i < len(power) else 0.0,
            ))
        repair_data = data.get("repairState")
        repair = RepairRecord.from_dict(repair_data) if repair_data else None
        if repair is not None and not 0 <= repair.originating_index < len(panels):
            repair = None

        # References outside the stored row are dropped
        originating_index = data.get("actualFaultyIndex")
        if originating_index is not None:
            originating_index = int(originating_index)
            if not 0 <= originating_index < len(panels):
                originating_index = None

        return cls(
            table_id=table_id,
            side=side,
            panels=panels,
            repair=repair,
            series_health=float(data.get("seriesHealth", 100.0)),
            series_state=state_for_health(float(data.get("seriesHealth", 100.0))),
            originating_index=originating_index,
        )


@dataclass
class TableSnapshot:
    table_id: int
    clock: ClockReading
    rows: Dict[RowSide, RowSnapshot]
    events: List[SimulationEvent] = field(default_factory=list)

    def row(self, side: RowSide) -> RowSnapshot:
        return self.rows[side]

    @property
    def top(self) -> RowSnapshot:
        return self.rows[RowSide.TOP]

    @property
    def bottom(self) -> RowSnapshot:
        return self.rows[RowSide.BOTTOM]

    @property
    def panels(self) -> List[Panel]:
        return [p for side in RowSide for p in self.rows[side].panels]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableNumber": self.table_id,
            "clock": self.clock.to_dict(),
            "topPanels": self.top.to_dict(),
            "bottomPanels": self.bottom.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableSnapshot":
        table_id = int(data["tableNumber"])
        return cls(
            table_id=table_id,
            clock=ClockReading.from_dict(data.get("clock") or {}),
            rows={
                RowSide.TOP: RowSnapshot.from_dict(table_id, RowSide.TOP, data.get("topPanels") or {}),
                RowSide.BOTTOM: RowSnapshot.from_dict(table_id, RowSide.BOTTOM, data.get("bottomPanels") or {}),
            },
        )
