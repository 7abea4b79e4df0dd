"""String simulation engine and its drivers."""

from .orchestrator import StringSimulationOrchestrator
from .plant import PlantSimulator, PlantFrame, PlantRun
from .refresh import RefreshDriver

__all__ = [
    "StringSimulationOrchestrator",
    "PlantSimulator",
    "PlantFrame",
    "PlantRun",
    "RefreshDriver",
]
