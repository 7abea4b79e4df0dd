"""Degradation, series propagation and repair for PV strings.

- injection: one new fault or cleaning event per string per cycle
- cascade: series current limiting from the first degraded panel onwards
- repair: timed multi-stage recovery of the originating panel

Each module is deterministic given its inputs and a ``random.Random``.
"""

from .injection import (
    FaultInjectionEngine,
    FaultInjectionConfig,
    FaultEvent,
    PositionPolicy,
    apply_fault_event,
)
from .cascade import CascadePropagator
from .repair import RepairProgression, stage_label

__all__ = [
    "FaultInjectionEngine",
    "FaultInjectionConfig",
    "FaultEvent",
    "PositionPolicy",
    "apply_fault_event",
    "CascadePropagator",
    "RepairProgression",
    "stage_label",
]
