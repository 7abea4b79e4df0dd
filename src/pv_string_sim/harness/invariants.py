from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..models.panel import PanelState, RowSnapshot, TableSnapshot, state_for_health


@dataclass
class InvariantViolation(Exception):
    code: str
    message: str


@dataclass
class InvariantConfig:
    check_series_current: bool = True
    check_health_state: bool = True
    check_single_originator: bool = True
    check_ranges: bool = True


def _row_violations(row: RowSnapshot, cfg: InvariantConfig) -> List[InvariantViolation]:
    violations: List[InvariantViolation] = []
    where = f"table {row.table_id} {row.side.value} row"

    if cfg.check_ranges:
        for p in row.panels:
            if not 0.0 <= p.health <= 100.0:
                violations.append(InvariantViolation(
                    code="HEALTH-RANGE",
                    message=f"{p.id} health {p.health} outside [0, 100]",
                ))
            if not 0.0 <= p.repair_progress <= 100.0:
                violations.append(InvariantViolation(
                    code="PROGRESS-RANGE",
                    message=f"{p.id} repair progress {p.repair_progress} outside [0, 100]",
                ))

    if cfg.check_health_state:
        for p in row.panels:
            if p.affected_by_series_break:
                continue
            if p.state != state_for_health(p.health):
                violations.append(InvariantViolation(
                    code="HEALTH-STATE",
                    message=f"{p.id} is {p.state.value} at {p.health:.1f}% health",
                ))

    if cfg.check_single_originator:
        originators = [p for p in row.panels if p.is_originating]
        if len(originators) > 1:
            violations.append(InvariantViolation(
                code="SINGLE-ORIGINATOR",
                message=f"{where} has {len(originators)} originating panels",
            ))
        if row.repair is not None and row.panels:
            idx = row.repair.originating_index
            if not 0 <= idx < len(row.panels) or not row.panels[idx].is_originating:
                violations.append(InvariantViolation(
                    code="SINGLE-ORIGINATOR",
                    message=f"{where} repair record points at non-originating index {idx}",
                ))

    if cfg.check_series_current:
        first = next((i for i, p in enumerate(row.panels) if p.state != PanelState.GOOD), None)
        if first is not None:
            limit = row.panels[first].current
            for p in row.panels[first + 1:]:
                if p.current != limit:
                    violations.append(InvariantViolation(
                        code="SERIES-CURRENT",
                        message=f"{p.id} carries {p.current} A, string limited to {limit} A",
                    ))

    return violations


def evaluate_invariants(
    snapshot: TableSnapshot,
    cfg: Optional[InvariantConfig] = None,
) -> List[InvariantViolation]:
    cfg = cfg or InvariantConfig()
    violations: List[InvariantViolation] = []
    for row in snapshot.rows.values():
        violations.extend(_row_violations(row, cfg))
    return violations
