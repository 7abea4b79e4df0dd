from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from ..models.clock import ClockReading, CycleThresholds, Phase


def phase_for(elapsed_seconds: float, thresholds: CycleThresholds) -> Phase:
    if elapsed_seconds < thresholds.fault_start:
        return Phase.NORMAL
    if elapsed_seconds < thresholds.repair_start:
        return Phase.FAULT_DETECTED
    if elapsed_seconds < thresholds.cycle_complete:
        return Phase.REPAIR_STARTED
    return Phase.CYCLE_COMPLETE


@dataclass
class SimulationClock:
    """Free-running cyclic clock.

    Elapsed time wraps back into ``[0, cycle_complete)`` when a cycle ends and
    the cycle counter moves on. Time the step overshoots the cycle end is
    carried into the next cycle, so a 10 s refresh interval and a 0.1 s UI
    tick read the same clock.
    """
    thresholds: CycleThresholds = field(default_factory=CycleThresholds)
    on_phase_change: Optional[Callable[[Phase, ClockReading], None]] = None
    _elapsed: float = 0.0
    _cycle: int = 0

    def now(self) -> ClockReading:
        return ClockReading(elapsed_seconds=self._elapsed, cycle=self._cycle)

    @property
    def phase(self) -> Phase:
        return phase_for(self._elapsed, self.thresholds)

    def advance(self, seconds: float) -> ClockReading:
        prev_phase = self.phase
        # Rounding keeps repeated 0.1 s steps on the phase boundaries
        elapsed = round(self._elapsed + max(0.0, seconds), 9)

        period = self.thresholds.cycle_complete
        if elapsed >= period:
            cycles, elapsed = divmod(elapsed, period)
            self._cycle += int(cycles)
            self._elapsed = round(elapsed, 9)
            self._notify(Phase.CYCLE_COMPLETE)
            if self.phase != Phase.NORMAL:
                self._notify(self.phase)
        else:
            self._elapsed = elapsed
            if self.phase != prev_phase:
                self._notify(self.phase)
        return self.now()

    def jump_to(self, elapsed_seconds: float, cycle: Optional[int] = None) -> ClockReading:
        self._elapsed = min(max(0.0, elapsed_seconds), self.thresholds.cycle_complete)
        if cycle is not None:
            self._cycle = max(0, cycle)
        return self.now()

    def reset(self) -> None:
        self._elapsed = 0.0
        self._cycle = 0

    def _notify(self, phase: Phase) -> None:
        if self.on_phase_change is not None:
            self.on_phase_change(phase, self.now())
