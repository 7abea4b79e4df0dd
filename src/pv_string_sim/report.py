"""Plant report built from table snapshots.

Answers the operator's questions for one moment of the simulation:
- How much power is the plant delivering against what it should?
- Which panels started a series break, and which are being repaired?
- What does each row look like at a glance?

Designed to feed a dashboard or a text summary; it only reads snapshots and
never changes them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .faults.repair import stage_label
from .models.panel import Panel, PanelState, RepairStage, RowSnapshot, TableSnapshot


IMAGE_GOOD = "image1"
IMAGE_WARNING = "image2"
IMAGE_CRITICAL = "image3"

# Tone -> (colour, lighter colour for cascade followers)
TONE_COLOURS: Dict[str, tuple] = {
    "blue": ("#3498db", "#85c1e9"),
    "orange": ("#f39c12", "#f8c471"),
    "red": ("#e74c3c", "#f1948a"),
}


@dataclass
class PanelVisual:
    """How a single panel is drawn."""
    image: str
    tone: str
    colour: str
    highlighted: bool = False  # originating panel glows
    affected: bool = False


def panel_visual(panel: Panel) -> PanelVisual:
    """Map a panel to its legacy image and colour.

    Priority: repair stage, then state. Followers of a series break get the
    lighter shade of their originator's tone.
    """
    if panel.under_repair or panel.repair_stage == RepairStage.COMPLETE:
        if panel.repair_stage == RepairStage.EARLY_STAGE:
            image, tone = IMAGE_CRITICAL, "red"
        elif panel.repair_stage == RepairStage.COMPLETE:
            image, tone = IMAGE_GOOD, "blue"
        else:
            image, tone = IMAGE_WARNING, "orange"
    elif panel.state == PanelState.FAULT:
        image, tone = IMAGE_CRITICAL, "red"
    elif panel.state == PanelState.CLEANING:
        image, tone = IMAGE_WARNING, "orange"
    else:
        image, tone = IMAGE_GOOD, "blue"

    colour, lighter = TONE_COLOURS[tone]
    affected = panel.affected_by_series_break
    return PanelVisual(
        image=image,
        tone=tone,
        colour=lighter if affected else colour,
        highlighted=panel.is_originating,
        affected=affected,
    )


@dataclass
class SystemMetrics:
    total_panels: int = 0
    faulty_count: int = 0
    total_power: float = 0.0
    total_expected_power: float = 0.0
    total_power_loss: float = 0.0
    average_temperature: float = 0.0
    average_efficiency: float = 0.0
    average_irradiance: float = 0.0
    system_efficiency: float = 0.0

    @classmethod
    def from_panels(cls, panels: List[Panel]) -> "SystemMetrics":
        if not panels:
            return cls()
        n = len(panels)
        total_power = sum(p.power for p in panels)
        total_expected = sum(p.expected_power for p in panels)
        return cls(
            total_panels=n,
            faulty_count=sum(1 for p in panels if p.state.degraded),
            total_power=total_power,
            total_expected_power=total_expected,
            total_power_loss=sum(p.power_loss for p in panels),
            average_temperature=round(sum(p.temperature for p in panels) / n, 1),
            average_efficiency=round(sum(p.efficiency for p in panels) / n, 2),
            average_irradiance=round(sum(p.irradiance for p in panels) / n),
            system_efficiency=round(total_power / total_expected * 100, 2) if total_expected > 0 else 0.0,
        )


@dataclass
class FaultEntry:
    panel_id: str
    state: str
    health: float
    followers: int  # panels dragged down behind it


@dataclass
class RepairEntry:
    panel_id: str
    stage: str
    label: str
    progress: float
    health: float


@dataclass
class RowBadge:
    table_id: int
    row: str
    series_state: str
    series_health: float
    originating_position: Optional[int] = None
    repair_label: Optional[str] = None
    reinitialized: bool = False


@dataclass
class PlantReport:
    metrics: SystemMetrics
    faults: List[FaultEntry] = field(default_factory=list)
    repairs: List[RepairEntry] = field(default_factory=list)
    rows: List[RowBadge] = field(default_factory=list)

    @classmethod
    def build(cls, snapshots: Iterable[TableSnapshot]) -> "PlantReport":
        tables = sorted(snapshots, key=lambda s: s.table_id)
        panels = [p for table in tables for p in table.panels]
        report = cls(metrics=SystemMetrics.from_panels(panels))

        for table in tables:
            for row in table.rows.values():
                report.rows.append(_row_badge(row))
                origin = row.originating_panel
                if origin is None:
                    continue
                if origin.state.degraded:
                    report.faults.append(FaultEntry(
                        panel_id=origin.id,
                        state=origin.state.value,
                        health=round(origin.health, 1),
                        followers=sum(1 for p in row.panels if p.affected_by_series_break),
                    ))
                if origin.under_repair:
                    report.repairs.append(RepairEntry(
                        panel_id=origin.id,
                        stage=origin.repair_stage.value,
                        label=stage_label(origin.repair_stage),
                        progress=round(origin.repair_progress, 1),
                        health=round(origin.health, 1),
                    ))
        return report

    def to_dict(self) -> Dict[str, Any]:
        m = self.metrics
        return {
            "metrics": {
                "totalPanels": m.total_panels,
                "faultyCount": m.faulty_count,
                "totalPower": round(m.total_power, 2),
                "totalExpectedPower": round(m.total_expected_power, 2),
                "totalPowerLoss": round(m.total_power_loss, 2),
                "averageTemperature": m.average_temperature,
                "averageEfficiency": m.average_efficiency,
                "averageIrradiance": m.average_irradiance,
                "systemEfficiency": m.system_efficiency,
            },
            "faults": [f.__dict__ for f in self.faults],
            "repairs": [r.__dict__ for r in self.repairs],
            "rows": [b.__dict__ for b in self.rows],
        }

    def format_report(self, format: str = "text") -> str:
        if format == "json":
            return json.dumps(self.to_dict(), indent=2)
        return self._format_text()

    def _format_text(self) -> str:
        m = self.metrics
        lines = [
            "=" * 60,
            "PLANT STATUS",
            "=" * 60,
            f"  Panels:            {m.total_panels} ({m.faulty_count} degraded)",
            f"  Power:             {m.total_power / 1000:.2f} kW of {m.total_expected_power / 1000:.2f} kW",
            f"  Power loss:        {m.total_power_loss / 1000:.2f} kW",
            f"  System efficiency: {m.system_efficiency:.2f}%",
            f"  Avg temperature:   {m.average_temperature:.1f} C",
            "",
            "-" * 60,
            "FAULTS",
            "-" * 60,
        ]
        if not self.faults:
            lines.append("  none")
        for f in self.faults:
            lines.append(f"  {f.panel_id:<18} {f.state:<9} {f.health:>5.1f}%  +{f.followers} affected")

        lines += ["", "-" * 60, "REPAIRS", "-" * 60]
        if not self.repairs:
            lines.append("  none")
        for r in self.repairs:
            lines.append(f"  {r.panel_id:<18} {r.label:<32} {r.progress:>5.1f}%")

        lines += ["", "-" * 60, "ROWS", "-" * 60]
        for b in self.rows:
            origin = f"P{b.originating_position}" if b.originating_position else "-"
            lines.append(
                f"  T{b.table_id} {b.row:<7} {b.series_state:<9} {b.series_health:>5.1f}%  {origin:<4} "
                f"{b.repair_label or ''}".rstrip()
            )
        lines.append("=" * 60)
        return "\n".join(lines)


def _row_badge(row: RowSnapshot) -> RowBadge:
    origin = row.originating_panel
    label = None
    if origin is not None and origin.repair_stage != RepairStage.NOT_STARTED:
        label = stage_label(origin.repair_stage)
    return RowBadge(
        table_id=row.table_id,
        row=row.side.value,
        series_state=row.series_state.value,
        series_health=round(row.series_health, 1),
        originating_position=origin.position if origin is not None else None,
        repair_label=label,
        reinitialized=row.reinitialized,
    )
