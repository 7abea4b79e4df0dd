from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    NORMAL = "normal"
    FAULT_DETECTED = "fault_detected"
    REPAIR_STARTED = "repair_started"
    CYCLE_COMPLETE = "cycle_complete"


@dataclass(frozen=True)
class CycleThresholds:
    """Phase boundaries of one test cycle, in seconds since cycle start."""
    fault_start: float = 3.0
    repair_start: float = 5.0
    cycle_complete: float = 15.0

    def __post_init__(self):
        if not (0 <= self.fault_start < self.repair_start < self.cycle_complete):
            raise ValueError(
                "thresholds must satisfy 0 <= fault_start < repair_start < cycle_complete, "
                f"got {self.fault_start}/{self.repair_start}/{self.cycle_complete}"
            )

    @property
    def repair_duration(self) -> float:
        return self.cycle_complete - self.repair_start


@dataclass(frozen=True)
class ClockReading:
    """A point on the cyclic clock: seconds into the cycle plus the cycle counter."""
    elapsed_seconds: float = 0.0
    cycle: int = 0

    def to_dict(self) -> dict:
        return {"elapsedSeconds": self.elapsed_seconds, "cycle": self.cycle}

    @classmethod
    def from_dict(cls, data: dict) -> "ClockReading":
        return cls(
            elapsed_seconds=float(data.get("elapsedSeconds", 0.0)),
            cycle=int(data.get("cycle", 0)),
        )
