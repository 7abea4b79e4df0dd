"""Panel, string and table models."""

from .clock import Phase, CycleThresholds, ClockReading
from .events import EventKind, SimulationEvent
from .topology import RowSide, TableTopology, build_tables, panel_id
from .readings import ElectricalReadingModel, PanelReading, ReadingConfig, current_factor
from .panel import (
    Panel,
    PanelState,
    FaultClass,
    RepairStage,
    RepairRecord,
    RowSnapshot,
    TableSnapshot,
    state_for_health,
    clamp,
)

__all__ = [
    "Phase",
    "CycleThresholds",
    "ClockReading",
    "EventKind",
    "SimulationEvent",
    "RowSide",
    "TableTopology",
    "build_tables",
    "panel_id",
    "Panel",
    "PanelState",
    "FaultClass",
    "RepairStage",
    "RepairRecord",
    "RowSnapshot",
    "TableSnapshot",
    "state_for_health",
    "clamp",
    "ElectricalReadingModel",
    "PanelReading",
    "ReadingConfig",
    "current_factor",
]
