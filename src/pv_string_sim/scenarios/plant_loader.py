"""Plant definition loader.

A plant file describes the physical layout the simulator runs on:
- Per-panel nominal voltage and current
- Tables, each with a top and a bottom series string
- An optional ``simulation`` block overriding the default configuration
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..config import SimulationConfig
from ..models.topology import TableTopology, build_tables

logger = logging.getLogger(__name__)


@dataclass
class PlantDefinition:
    """A plant: its tables plus the configuration to simulate it with."""
    plant_id: str
    name: str
    voltage_per_panel: float
    current_per_panel: float
    tables: List[TableTopology] = field(default_factory=list)
    config: SimulationConfig = field(default_factory=SimulationConfig)
    description: str = ""

    @property
    def total_panels(self) -> int:
        return sum(t.total_panels for t in self.tables)

    @property
    def nominal_power(self) -> float:
        """Plant rating in W when every panel is healthy."""
        return self.total_panels * self.voltage_per_panel * self.current_per_panel

    def table(self, table_id: int) -> TableTopology:
        for topology in self.tables:
            if topology.table_id == table_id:
                return topology
        raise KeyError(f"Plant {self.plant_id} has no table {table_id}")


class PlantLoader:
    """Loads plant definitions from a directory of JSON files."""

    def __init__(self, plants_dir: Optional[Path] = None):
        if plants_dir is None:
            plants_dir = Path(__file__).parent
        self.plants_dir = Path(plants_dir)
        self._cache: Dict[str, PlantDefinition] = {}

    def list_available(self) -> List[str]:
        """List available plant files."""
        return sorted(f.stem for f in self.plants_dir.glob("*.json"))

    def load(self, plant_name: str) -> PlantDefinition:
        """Load a plant by file name (without ``.json``)."""
        if plant_name in self._cache:
            return self._cache[plant_name]

        path = self.plants_dir / f"{plant_name}.json"
        if not path.exists():
            raise FileNotFoundError(f"Plant not found: {plant_name}")

        with open(path) as f:
            data = json.load(f)

        plant = self.parse(data, default_id=plant_name)
        logger.info(
            "Loaded plant %s: %d tables, %d panels",
            plant.plant_id, len(plant.tables), plant.total_panels,
        )
        self._cache[plant_name] = plant
        return plant

    @staticmethod
    def parse(data: Dict, default_id: str = "plant") -> PlantDefinition:
        """Parse a plant from its JSON data."""
        voltage = float(data.get("voltagePerPanel", 20.0))
        current = float(data.get("currentPerPanel", 10.0))
        tables = build_tables(data.get("tables", []), voltage, current)

        ids = [t.table_id for t in tables]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate table numbers in plant {data.get('plantId', default_id)}")

        return PlantDefinition(
            plant_id=data.get("plantId", default_id),
            name=data.get("name", default_id),
            description=data.get("description", ""),
            voltage_per_panel=voltage,
            current_per_panel=current,
            tables=tables,
            config=SimulationConfig.from_dict(data.get("simulation") or {}),
        )


# Module-level convenience functions
_default_loader: Optional[PlantLoader] = None


def _get_loader() -> PlantLoader:
    global _default_loader
    if _default_loader is None:
        _default_loader = PlantLoader()
    return _default_loader


def load_plant(name: str) -> PlantDefinition:
    """Load a bundled plant by name."""
    return _get_loader().load(name)


def list_plants() -> List[str]:
    """List bundled plants."""
    return _get_loader().list_available()
