"""
PV String Simulator

Fault injection, series cascade and timed repair for photovoltaic tables
wired as two series strings.
"""

__version__ = "0.1.0"

# Core engine
from .simulators.orchestrator import StringSimulationOrchestrator

# Drivers
from .simulators.plant import PlantSimulator, PlantFrame, PlantRun
from .simulators.refresh import RefreshDriver

# Configuration
from .config import SimulationConfig

# Models
from .models import (
    ClockReading,
    CycleThresholds,
    Phase,
    Panel,
    PanelState,
    FaultClass,
    RepairStage,
    RowSide,
    RowSnapshot,
    TableSnapshot,
    TableTopology,
)

# Plants and reporting
from .scenarios import PlantLoader, load_plant, list_plants
from .report import PlantReport, panel_visual

__all__ = [
    # Engine
    "StringSimulationOrchestrator",
    # Drivers
    "PlantSimulator",
    "PlantFrame",
    "PlantRun",
    "RefreshDriver",
    # Config
    "SimulationConfig",
    # Models
    "ClockReading",
    "CycleThresholds",
    "Phase",
    "Panel",
    "PanelState",
    "FaultClass",
    "RepairStage",
    "RowSide",
    "RowSnapshot",
    "TableSnapshot",
    "TableTopology",
    # Plants and reporting
    "PlantLoader",
    "load_plant",
    "list_plants",
    "PlantReport",
    "panel_visual",
]
