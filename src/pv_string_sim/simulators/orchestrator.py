"""Per-tick composition of the string simulation.

Two entry points share one row pipeline:

- ``tick(topology, prior, reading)`` advances a persisted snapshot by one
  step (server refresh).
- ``compute_at(topology, reading)`` rebuilds the table from the start of the
  cycle for a given clock reading (live view). Randomness is seeded per
  table and cycle, so every call inside a cycle sees the same event.

Row pipeline:
    carry forward (or initialise / re-initialise on a resize)
    -> advance the repair of the originating panel by the repair-window
       time since the prior snapshot, restoring the row when it completes
    -> inject a new event when the phase allows it, or when the refresh
       interval stepped over the fault window
    -> compute readings from each panel's own health
    -> propagate the series current limit
    -> mirror the repair stage onto followers and roll up the row
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Dict, List, Optional

from ..config import SimulationConfig
from ..faults.cascade import CascadePropagator
from ..faults.injection import FaultInjectionEngine, apply_fault_event
from ..faults.repair import RepairProgression
from ..harness.time_control import phase_for
from ..models.clock import ClockReading, Phase
from ..models.events import EventKind, SimulationEvent
from ..models.panel import (
    FaultClass,
    Panel,
    PanelState,
    RepairRecord,
    RepairStage,
    RowSnapshot,
    TableSnapshot,
    clamp,
    state_for_health,
)
from ..models.topology import RowSide, TableTopology
from ..models.readings import ElectricalReadingModel

logger = logging.getLogger(__name__)


class StringSimulationOrchestrator:
    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.readings = ElectricalReadingModel(self.config.readings)
        self.injector = FaultInjectionEngine(self.config.faults)
        self.cascade = CascadePropagator()
        self.repair = RepairProgression(self.config.thresholds)
        if self.config.seed is not None:
            self.seed = self.config.seed
        else:
            self.seed = random.randrange(2 ** 32)

    @property
    def thresholds(self):
        return self.config.thresholds

    def rng_for(self, table_id: int, reading: ClockReading, purpose: str = "tick") -> random.Random:
        """Deterministic generator for one table at one clock reading."""
        if purpose == "cycle":
            key = f"{self.seed}:{table_id}:{reading.cycle}:cycle"
        else:
            key = f"{self.seed}:{table_id}:{reading.cycle}:{reading.elapsed_seconds:.3f}"
        return random.Random(key)

    def compute_at(self, topology: TableTopology, reading: ClockReading) -> TableSnapshot:
        """Snapshot of ``topology`` at ``reading`` computed from elapsed time alone."""
        th = self.thresholds
        elapsed = max(0.0, reading.elapsed_seconds)
        reading = replace(reading, elapsed_seconds=elapsed)
        cycle_rng = self.rng_for(topology.table_id, reading, "cycle")

        if phase_for(elapsed, th) in (Phase.NORMAL, Phase.FAULT_DETECTED):
            return self.tick(topology, None, reading, rng=cycle_rng)

        # Replay the fault window, then jump to the requested time
        fault_reading = ClockReading(elapsed_seconds=th.fault_start, cycle=reading.cycle)
        at_fault = self.tick(topology, None, fault_reading, rng=cycle_rng)
        return self.tick(topology, at_fault, reading)

    def tick(
        self,
        topology: TableTopology,
        prior: Optional[TableSnapshot],
        reading: ClockReading,
        rng: Optional[random.Random] = None,
        max_repair_seconds: Optional[float] = None,
    ) -> TableSnapshot:
        """Advance ``prior`` to ``reading``; ``prior=None`` starts a fresh table.

        ``max_repair_seconds`` caps the repair work credited to an open record
        in this step.
        """
        rng = rng or self.rng_for(topology.table_id, reading)
        phase = phase_for(reading.elapsed_seconds, self.thresholds)
        events: List[SimulationEvent] = []
        rows: Dict[RowSide, RowSnapshot] = {}

        for side in RowSide:
            prior_row = prior.rows.get(side) if prior is not None else None
            prior_clock = prior.clock if prior is not None else None
            rows[side] = self._tick_row(
                topology, side, prior_row, prior_clock, reading, phase, rng, events, max_repair_seconds,
            )

        logger.debug(
            "Table %s ticked at cycle %d, %.1fs (%s): %d events",
            topology.table_id, reading.cycle, reading.elapsed_seconds, phase.value, len(events),
        )
        return TableSnapshot(table_id=topology.table_id, clock=reading, rows=rows, events=events)

    # ------------------------------------------------------------------
    # Row pipeline
    # ------------------------------------------------------------------

    def _tick_row(
        self,
        topology: TableTopology,
        side: RowSide,
        prior_row: Optional[RowSnapshot],
        prior_clock: Optional[ClockReading],
        reading: ClockReading,
        phase: Phase,
        rng: random.Random,
        events: List[SimulationEvent],
        max_repair_seconds: Optional[float] = None,
    ) -> RowSnapshot:
        row = self._carry_forward(topology, side, prior_row, reading, rng, events)
        finished: Optional[RepairRecord] = None

        if row.repair is not None and prior_clock is not None:
            finished = self._advance_repair(row, prior_clock, reading, max_repair_seconds, events)

        inject_phase = phase
        if self._fault_window_crossed(prior_clock, reading):
            # A coarse refresh interval can step over the whole fault window
            inject_phase = Phase.FAULT_DETECTED
        event = self.injector.maybe_inject_fault(row, inject_phase, rng)
        if event is not None:
            apply_fault_event(row, event)
            row.repair = RepairRecord(
                originating_index=event.index,
                fault_class=event.fault_class,
                injected_cycle=reading.cycle,
            )
            events.append(self._event(
                EventKind.FAULT_INJECTED, row, reading, event.position,
                fault_class=event.fault_class.value, health=round(event.health, 1),
            ))

        for panel in row.panels:
            panel.state = state_for_health(panel.health)
            r = self.readings.compute_reading(
                topology.nominal_voltage, topology.nominal_current, panel.health, rng,
            )
            panel.voltage = r.voltage
            panel.current = r.current
            panel.power = r.power
            panel.temperature = r.temperature
            panel.irradiance = r.irradiance
            panel.expected_power = topology.nominal_power

        row = self.cascade.propagate(row)
        for panel in row.panels:
            panel.efficiency = self.readings.efficiency(
                panel.power, topology.nominal_voltage, topology.nominal_current,
            )

        self._mirror_repair(row, row.repair or finished)
        self._roll_up(row)
        return row

    def _fault_window_crossed(self, prior_clock: Optional[ClockReading], reading: ClockReading) -> bool:
        """True if the clock passed ``fault_start`` since the prior snapshot."""
        if prior_clock is None:
            return False
        fault_start = self.thresholds.fault_start
        if reading.cycle > prior_clock.cycle:
            return reading.elapsed_seconds >= fault_start
        return prior_clock.elapsed_seconds < fault_start <= reading.elapsed_seconds

    def _carry_forward(
        self,
        topology: TableTopology,
        side: RowSide,
        prior_row: Optional[RowSnapshot],
        reading: ClockReading,
        rng: random.Random,
        events: List[SimulationEvent],
    ) -> RowSnapshot:
        count = topology.panel_count(side)
        if prior_row is None or len(prior_row.panels) != count:
            row = self._initial_row(topology, side, rng)
            if prior_row is not None:
                logger.warning(
                    "Table %s %s row: snapshot has %d panels, topology has %d; re-initialising",
                    topology.table_id, side.value, len(prior_row.panels), count,
                )
                row.reinitialized = True
                events.append(self._event(
                    EventKind.ROW_REINITIALIZED, row, reading, None,
                    snapshot_panels=len(prior_row.panels), topology_panels=count,
                ))
            return row

        record = prior_row.repair
        if record is not None and not 0 <= record.originating_index < count:
            record = None
        if record is None:
            record = self._recover_record(prior_row, reading)

        drift = self.config.healthy_drift
        panels = []
        for i, old in enumerate(prior_row.panels):
            health = clamp(old.health)
            is_origin = record is not None and i == record.originating_index
            if not is_origin and health >= 80.0 and drift > 0:
                health = clamp(health + rng.uniform(-drift, drift), 80.0, 100.0)
            panels.append(Panel(
                table_id=topology.table_id,
                side=side,
                position=i + 1,
                health=health,
                state=state_for_health(health),
                is_originating=is_origin,
            ))
        return RowSnapshot(
            table_id=topology.table_id,
            side=side,
            panels=panels,
            repair=replace(record) if record is not None else None,
        )

    @staticmethod
    def _recover_record(prior_row: RowSnapshot, reading: ClockReading) -> Optional[RepairRecord]:
        """Rebuild a missing repair record from a degraded panel in a stored row."""
        for i, panel in enumerate(prior_row.panels):
            state = state_for_health(panel.health)
            if state == PanelState.GOOD:
                continue
            fault_class = (
                FaultClass.ELECTRICAL_FAULT if state == PanelState.FAULT
                else FaultClass.CLEANING_REQUIRED
            )
            return RepairRecord(originating_index=i, fault_class=fault_class, injected_cycle=reading.cycle)
        return None

    def _initial_row(self, topology: TableTopology, side: RowSide, rng: random.Random) -> RowSnapshot:
        low, high = self.config.initial_health_range
        panels = [
            Panel(
                table_id=topology.table_id,
                side=side,
                position=position,
                health=rng.uniform(low, high),
            )
            for position in topology.positions(side)
        ]
        return RowSnapshot(table_id=topology.table_id, side=side, panels=panels)

    def _advance_repair(
        self,
        row: RowSnapshot,
        since: ClockReading,
        reading: ClockReading,
        max_seconds: Optional[float],
        events: List[SimulationEvent],
    ) -> Optional[RepairRecord]:
        before = row.repair
        record = self.repair.advance(before, reading, since=since, max_seconds=max_seconds)
        position = record.originating_index + 1

        if record.stage != before.stage:
            if record.stage == RepairStage.COMPLETE:
                return self._finish_repair(row, record, reading, events)
            kind = (
                EventKind.REPAIR_STARTED if before.stage == RepairStage.NOT_STARTED
                else EventKind.REPAIR_STAGE_CHANGED
            )
            events.append(self._event(
                kind, row, reading, position,
                stage=record.stage.value, progress=round(record.progress, 1),
            ))

        health = self.repair.health_for(record.stage, record.progress)
        if health is not None:
            origin = row.panels[record.originating_index]
            origin.health = max(origin.health, health)
        row.repair = record
        return None

    def _finish_repair(
        self,
        row: RowSnapshot,
        record: RepairRecord,
        reading: ClockReading,
        events: List[SimulationEvent],
    ) -> RepairRecord:
        # The crew leaves the whole string at full health, ready for a new event
        for panel in row.panels:
            panel.health = 100.0
            panel.state = PanelState.GOOD
            panel.is_originating = False
            panel.affected_by_series_break = False
            panel.repair_stage = RepairStage.NOT_STARTED
            panel.repair_progress = 0.0
        row.repair = None
        logger.info(
            "Repair of table %s %s row position %d complete (%s)",
            row.table_id, row.side.value, record.originating_index + 1, record.fault_class.value,
        )
        events.append(self._event(
            EventKind.REPAIR_COMPLETED, row, reading, record.originating_index + 1,
            fault_class=record.fault_class.value,
        ))
        return record

    @staticmethod
    def _mirror_repair(row: RowSnapshot, record: Optional[RepairRecord]) -> None:
        if record is None:
            return
        origin = record.originating_index
        for i, panel in enumerate(row.panels):
            if i < origin:
                continue
            panel.repair_stage = record.stage
            panel.repair_progress = record.progress
            if i == origin and row.repair is not None:
                panel.is_originating = True

    @staticmethod
    def _roll_up(row: RowSnapshot) -> None:
        if row.repair is not None:
            row.originating_index = row.repair.originating_index
        if row.originating_index is not None:
            origin = row.panels[row.originating_index]
            row.series_health = origin.health
            row.series_state = origin.state
        elif row.panels:
            row.series_health = min(p.health for p in row.panels)
            row.series_state = state_for_health(row.series_health)
        else:
            row.series_health = 100.0
            row.series_state = PanelState.GOOD

    @staticmethod
    def _event(kind: str, row: RowSnapshot, reading: ClockReading, position: Optional[int], **detail) -> SimulationEvent:
        return SimulationEvent(
            kind=kind,
            table_id=row.table_id,
            row=row.side.value,
            elapsed_seconds=reading.elapsed_seconds,
            cycle=reading.cycle,
            position=position,
            detail=detail,
        )
