"""Timed multi-stage repair of a degraded string.

Repair runs inside the repair window of the cycle
(``repair_start .. cycle_complete``). Progress is a function of how much
repair-window time has been worked on a record: read straight off the clock
when a table is recomputed, or accumulated between persisted snapshots when
it is advanced refresh by refresh.

Electrical fault:
    early_stage  first 40 % of the window, progress 0 -> 50, health 30 -> 50
    mid_stage    remaining 60 %,           progress 50 -> 100, health 50 -> 100
    complete     health 100, panel good

Cleaning required:
    mid_to_complete  whole window, progress 0 -> 100, health 70 -> 100
    complete         health 100, panel good

Only the originating panel is repaired; followers mirror the stage and
progress of the row's ``RepairRecord``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from ..models.clock import ClockReading, CycleThresholds
from ..models.panel import FaultClass, RepairRecord, RepairStage, clamp

EARLY_STAGE_SHARE = 0.4
EARLY_STAGE_PROGRESS = 50.0


class RepairProgression:
    def __init__(self, thresholds: Optional[CycleThresholds] = None):
        self.thresholds = thresholds or CycleThresholds()

    def progress_at(self, fault_class: FaultClass, elapsed_seconds: float) -> Tuple[RepairStage, float]:
        """Stage and progress (0-100) at ``elapsed_seconds`` into the cycle."""
        repair_elapsed = elapsed_seconds - self.thresholds.repair_start
        if repair_elapsed < 0:
            return RepairStage.NOT_STARTED, 0.0
        return self.progress_for(fault_class, repair_elapsed)

    def progress_for(self, fault_class: FaultClass, repair_seconds: float) -> Tuple[RepairStage, float]:
        """Stage and progress after ``repair_seconds`` of work on a record."""
        fraction = min(1.0, max(0.0, repair_seconds) / self.thresholds.repair_duration)
        if fraction >= 1.0:
            return RepairStage.COMPLETE, 100.0

        if fault_class == FaultClass.CLEANING_REQUIRED:
            return RepairStage.MID_TO_COMPLETE, clamp(fraction * 100.0)

        if fraction < EARLY_STAGE_SHARE:
            progress = fraction / EARLY_STAGE_SHARE * EARLY_STAGE_PROGRESS
            return RepairStage.EARLY_STAGE, clamp(progress)
        progress = EARLY_STAGE_PROGRESS + (
            (fraction - EARLY_STAGE_SHARE) / (1.0 - EARLY_STAGE_SHARE)
        ) * (100.0 - EARLY_STAGE_PROGRESS)
        return RepairStage.MID_STAGE, clamp(progress)

    def window_seconds(self, since: ClockReading, until: ClockReading) -> float:
        """Repair-window time between two clock readings, across cycle boundaries."""
        th = self.thresholds

        def overlap(start: float, end: float) -> float:
            return max(0.0, min(end, th.cycle_complete) - max(start, th.repair_start))

        if until.cycle < since.cycle:
            return 0.0
        if until.cycle == since.cycle:
            return overlap(since.elapsed_seconds, until.elapsed_seconds)
        skipped = until.cycle - since.cycle - 1
        return (
            overlap(since.elapsed_seconds, th.cycle_complete)
            + skipped * th.repair_duration
            + overlap(0.0, until.elapsed_seconds)
        )

    def advance(
        self,
        record: RepairRecord,
        reading: ClockReading,
        since: Optional[ClockReading] = None,
        max_seconds: Optional[float] = None,
    ) -> RepairRecord:
        """Move a persisted record forward; progress never goes backwards.

        Without ``since`` the record jumps to what the clock implies for the
        current cycle. With ``since`` (the reading of the prior snapshot) it
        gains the repair-window time that passed in between, at most
        ``max_seconds`` of it.
        """
        if record.stage == RepairStage.COMPLETE:
            return record
        if since is None:
            worked = max(record.repair_seconds, reading.elapsed_seconds - self.thresholds.repair_start)
        else:
            gained = self.window_seconds(since, reading)
            if max_seconds is not None:
                gained = min(gained, max_seconds)
            worked = record.repair_seconds + gained
        if worked <= 0 and reading.elapsed_seconds < self.thresholds.repair_start:
            return record
        worked = max(0.0, worked)

        stage, progress = self.progress_for(record.fault_class, worked)
        if progress < record.progress:
            return replace(record, repair_seconds=worked)
        return replace(record, stage=stage, progress=progress, repair_seconds=worked)

    def complete(self, record: RepairRecord) -> RepairRecord:
        return replace(record, stage=RepairStage.COMPLETE, progress=100.0)

    @staticmethod
    def health_for(stage: RepairStage, progress: float) -> Optional[float]:
        """Originating panel health for a repair stage, ``None`` before repair starts."""
        progress = clamp(progress)
        if stage == RepairStage.EARLY_STAGE:
            return 30.0 + progress * 0.4
        if stage == RepairStage.MID_STAGE:
            return 50.0 + (progress - EARLY_STAGE_PROGRESS)
        if stage == RepairStage.MID_TO_COMPLETE:
            return 70.0 + progress * 0.3
        if stage == RepairStage.COMPLETE:
            return 100.0
        return None


def stage_label(stage: RepairStage) -> str:
    """Dashboard wording for a repair stage."""
    return {
        RepairStage.EARLY_STAGE: "Cleaning Debris & Diagnostics",
        RepairStage.MID_STAGE: "Testing & Calibration",
        RepairStage.MID_TO_COMPLETE: "Final Testing",
        RepairStage.COMPLETE: "Fully Repaired",
    }.get(stage, "Awaiting Repair")
