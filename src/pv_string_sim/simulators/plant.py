import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import SimulationConfig
from ..harness.time_control import SimulationClock, phase_for
from ..models.clock import ClockReading, Phase
from ..models.events import SimulationEvent
from ..models.panel import Panel, TableSnapshot
from ..models.topology import TableTopology
from .orchestrator import StringSimulationOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class PlantFrame:
    """All tables of the plant at one clock reading."""
    clock: ClockReading
    phase: Phase
    tables: Dict[int, TableSnapshot]

    @property
    def panels(self) -> List[Panel]:
        return [p for table_id in sorted(self.tables) for p in self.tables[table_id].panels]

    @property
    def events(self) -> List[SimulationEvent]:
        return [e for table_id in sorted(self.tables) for e in self.tables[table_id].events]


@dataclass
class PlantRun:
    start: ClockReading
    end: ClockReading
    frames: List[PlantFrame] = field(default_factory=list)
    phase_changes: List[Phase] = field(default_factory=list)
    peak_power: float = 0.0
    min_power: float = 0.0

    def __post_init__(self):
        if self.frames:
            totals = [sum(p.power for p in frame.panels) for frame in self.frames]
            self.peak_power = max(totals)
            self.min_power = min(totals)


class PlantSimulator:
    """Live driver: a fast local clock over stateless per-tick snapshots.

    Every step advances the cyclic clock by ``tick_seconds`` and recomputes
    each table from the elapsed time alone, so a restarted view picks up
    exactly where the clock says it is.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        tick_seconds: float = 0.1,
    ):
        self.config = config or SimulationConfig()
        self.orchestrator = StringSimulationOrchestrator(self.config)
        self.tick_seconds = tick_seconds
        self.tables: Dict[int, TableTopology] = {}
        self._phase_changes: List[Phase] = []
        self.clock = SimulationClock(
            thresholds=self.config.thresholds,
            on_phase_change=self._record_phase,
        )

    def add_table(
        self,
        table_id: int,
        top_row_panels: int = 20,
        bottom_row_panels: int = 20,
        nominal_voltage: float = 20.0,
        nominal_current: float = 10.0,
    ) -> TableTopology:
        """Add a table to the plant."""
        topology = TableTopology(
            table_id=table_id,
            top_row_panels=top_row_panels,
            bottom_row_panels=bottom_row_panels,
            nominal_voltage=nominal_voltage,
            nominal_current=nominal_current,
        )
        self.tables[table_id] = topology
        return topology

    def add_topology(self, topology: TableTopology) -> None:
        self.tables[topology.table_id] = topology

    def frame(self, reading: Optional[ClockReading] = None) -> PlantFrame:
        """Snapshot of every table at ``reading`` (default: the clock's current reading)."""
        reading = reading or self.clock.now()
        tables = {
            table_id: self.orchestrator.compute_at(topology, reading)
            for table_id, topology in self.tables.items()
        }
        return PlantFrame(
            clock=reading,
            phase=phase_for(reading.elapsed_seconds, self.config.thresholds),
            tables=tables,
        )

    def step(self) -> PlantFrame:
        return self.frame(self.clock.advance(self.tick_seconds))

    async def simulate_async(self, duration_seconds: float = 15.0) -> PlantRun:
        """Run the live simulation for ``duration_seconds`` of clock time."""
        self._phase_changes = []
        start = self.clock.now()
        frames = [self.frame(start)]
        steps = int(round(duration_seconds / self.tick_seconds))

        for _ in range(steps):
            frames.append(self.step())
            await asyncio.sleep(0)  # Yield control to event loop

        logger.info(
            "Simulated %d tables for %.1fs (%d frames, %d phase changes)",
            len(self.tables), duration_seconds, len(frames), len(self._phase_changes),
        )
        return PlantRun(
            start=start,
            end=self.clock.now(),
            frames=frames,
            phase_changes=list(self._phase_changes),
        )

    def simulate(self, duration_seconds: float = 15.0) -> PlantRun:
        """Synchronous wrapper for simulate_async."""
        return asyncio.run(self.simulate_async(duration_seconds))

    def _record_phase(self, phase: Phase, reading: ClockReading) -> None:
        logger.debug("Phase -> %s at cycle %d", phase.value, reading.cycle)
        self._phase_changes.append(phase)
