"""Server-side refresh driver.

Each ``refresh()`` stands for one periodic refresh request: the driver's
clock moves on by ``interval_seconds`` and every table's persisted snapshot
is advanced by exactly one stateful tick.

A refresh credits an open repair with the repair-window time that passed
since the previous refresh, but never more than ``repair_share_per_refresh``
of the window, so the crew is seen working through each stage instead of
finishing between two polls.

The driver keeps one snapshot per table and does no locking. Two refreshes
of the same plant running concurrently against the same storage will lose
one update (last write wins); callers that share storage must serialise
refreshes per plant.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from ..config import SimulationConfig
from ..harness.time_control import SimulationClock
from ..models.clock import ClockReading
from ..models.panel import TableSnapshot
from ..models.topology import TableTopology
from .orchestrator import StringSimulationOrchestrator

logger = logging.getLogger(__name__)


class RefreshDriver:
    def __init__(
        self,
        tables: List[TableTopology],
        config: Optional[SimulationConfig] = None,
        interval_seconds: float = 10.0,
        repair_share_per_refresh: Optional[float] = 0.3,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        if repair_share_per_refresh is not None and not 0.0 < repair_share_per_refresh <= 1.0:
            raise ValueError(
                f"repair_share_per_refresh must be within (0, 1], got {repair_share_per_refresh}"
            )
        self.config = config or SimulationConfig()
        self.orchestrator = StringSimulationOrchestrator(self.config)
        self.interval_seconds = interval_seconds
        self.repair_share_per_refresh = repair_share_per_refresh
        self.clock = SimulationClock(thresholds=self.config.thresholds)
        self.tables: Dict[int, TableTopology] = {t.table_id: t for t in tables}
        self.snapshots: Dict[int, TableSnapshot] = {}
        self._rng = random.Random(self.config.seed)

    @property
    def max_repair_seconds(self) -> Optional[float]:
        if self.repair_share_per_refresh is None:
            return None
        return self.repair_share_per_refresh * self.config.thresholds.repair_duration

    def refresh(self) -> Dict[int, TableSnapshot]:
        """Advance the clock one interval and every table one tick."""
        reading = self.clock.advance(self.interval_seconds)
        return self.refresh_at(reading)

    def refresh_at(self, reading: ClockReading) -> Dict[int, TableSnapshot]:
        for table_id, topology in sorted(self.tables.items()):
            prior = self.snapshots.get(table_id)
            self.snapshots[table_id] = self.orchestrator.tick(
                topology, prior, reading, rng=self._rng, max_repair_seconds=self.max_repair_seconds,
            )
        logger.debug(
            "Refreshed %d tables at cycle %d, %.1fs",
            len(self.tables), reading.cycle, reading.elapsed_seconds,
        )
        return dict(self.snapshots)

    def resize_table(self, table_id: int, top_row_panels: int, bottom_row_panels: int) -> TableTopology:
        """Change a table's panel counts; mismatching rows re-initialise on the next refresh."""
        topology = self.tables[table_id].resized(top_row_panels, bottom_row_panels)
        self.tables[table_id] = topology
        return topology

    def remove_table(self, table_id: int) -> None:
        self.tables.pop(table_id, None)
        self.snapshots.pop(table_id, None)

    def export_state(self) -> Dict[str, Any]:
        """Plain-dict form of the clock and all snapshots, ready for JSON."""
        return {
            "clock": self.clock.now().to_dict(),
            "tables": [self.snapshots[t].to_dict() for t in sorted(self.snapshots)],
        }

    def load_state(self, state: Dict[str, Any]) -> None:
        """Restore snapshots written by ``export_state``; unknown tables are ignored."""
        reading = ClockReading.from_dict(state.get("clock") or {})
        self.clock.jump_to(reading.elapsed_seconds, reading.cycle)
        self.snapshots = {}
        for data in state.get("tables", []):
            snapshot = TableSnapshot.from_dict(data)
            if snapshot.table_id in self.tables:
                self.snapshots[snapshot.table_id] = snapshot
