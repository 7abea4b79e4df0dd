"""Fault injection for series strings.

Introduces at most one new degradation event per string per cycle. The
event is either an electrical fault (health drops below 20 %) or a soiled
panel that needs cleaning (health between 20 % and 80 %).

The injected panel is the string's originating panel: every panel wired
after it is current-limited by it (see ``cascade``), and it is the panel the
repair crew works on (see ``repair``).

Position policies:
- FIXED_FRACTION: fault at 75 % of the row, cleaning at 60 % (the behaviour
  operators are used to seeing on the demo plant)
- UNIFORM: any position with equal probability
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.clock import Phase
from ..models.panel import CLEANING_HEALTH_MIN, GOOD_HEALTH_MIN, FaultClass, PanelState, RowSnapshot

logger = logging.getLogger(__name__)


class PositionPolicy(Enum):
    """How the originating panel of a new event is chosen."""
    FIXED_FRACTION = "fixed_fraction"
    UNIFORM = "uniform"


@dataclass
class FaultInjectionConfig:
    """Configuration for fault injection."""
    # Chance that a healthy string degrades on a tick inside the fault window
    injection_probability: float = 1.0

    # Chance that an event is an electrical fault rather than soiling
    fault_probability: float = 0.3

    position_policy: PositionPolicy = PositionPolicy.FIXED_FRACTION
    fault_position_fraction: float = 0.75
    cleaning_position_fraction: float = 0.60

    # Health ranges of the originating panel, [low, high)
    fault_health_range: tuple = (0.0, 20.0)
    cleaning_health_range: tuple = (20.0, 80.0)

    def __post_init__(self):
        for name in ("injection_probability", "fault_probability",
                     "fault_position_fraction", "cleaning_position_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if isinstance(self.position_policy, str):
            self.position_policy = PositionPolicy(self.position_policy)
        self.fault_health_range = tuple(self.fault_health_range)
        self.cleaning_health_range = tuple(self.cleaning_health_range)
        # Injected health must derive to the state of its event class
        self._check_range("fault_health_range", self.fault_health_range, 0.0, CLEANING_HEALTH_MIN)
        self._check_range("cleaning_health_range", self.cleaning_health_range,
                          CLEANING_HEALTH_MIN, GOOD_HEALTH_MIN)

    @staticmethod
    def _check_range(name: str, value: tuple, low: float, high: float) -> None:
        if len(value) != 2 or not low <= value[0] < value[1] <= high:
            raise ValueError(f"{name} must be an increasing pair within [{low:g}, {high:g}], got {value}")


@dataclass(frozen=True)
class FaultEvent:
    index: int  # 0-based position in the row
    fault_class: FaultClass
    health: float

    @property
    def position(self) -> int:
        return self.index + 1

    @property
    def state(self) -> PanelState:
        return self.fault_class.panel_state


class FaultInjectionEngine:
    """Injects degradation events into series strings.

    Usage:
        engine = FaultInjectionEngine(FaultInjectionConfig(fault_probability=1.0))
        event = engine.maybe_inject_fault(row, Phase.FAULT_DETECTED, rng)
        if event is not None:
            ...  # apply event.health / event.state to row.panels[event.index]
    """

    def __init__(self, config: Optional[FaultInjectionConfig] = None):
        self.config = config or FaultInjectionConfig()

    def maybe_inject_fault(
        self,
        row: RowSnapshot,
        phase: Phase,
        rng: Optional[random.Random] = None,
    ) -> Optional[FaultEvent]:
        if phase != Phase.FAULT_DETECTED:
            return None
        if not row.panels or row.has_active_event:
            return None

        rng = rng or random.Random()
        cfg = self.config
        if rng.random() >= cfg.injection_probability:
            return None

        if rng.random() < cfg.fault_probability:
            fault_class = FaultClass.ELECTRICAL_FAULT
            low, high = cfg.fault_health_range
        else:
            fault_class = FaultClass.CLEANING_REQUIRED
            low, high = cfg.cleaning_health_range

        index = self.select_index(len(row.panels), fault_class, rng)
        health = self._draw_health(low, high, rng)

        logger.info(
            "Injected %s on table %s %s row at position %d (health %.1f%%)",
            fault_class.value, row.table_id, row.side.value, index + 1, health,
        )
        return FaultEvent(index=index, fault_class=fault_class, health=health)

    def select_index(self, panel_count: int, fault_class: FaultClass, rng: random.Random) -> int:
        """0-based index of the panel that will originate the event."""
        if self.config.position_policy == PositionPolicy.UNIFORM:
            return rng.randrange(panel_count)

        if fault_class == FaultClass.ELECTRICAL_FAULT:
            fraction = self.config.fault_position_fraction
        else:
            fraction = self.config.cleaning_position_fraction
        position = min(max(1, math.ceil(panel_count * fraction)), panel_count)
        return position - 1

    @staticmethod
    def _draw_health(low: float, high: float, rng: random.Random) -> float:
        # Half-open range: never return ``high`` so the state boundary holds
        health = low + rng.random() * (high - low)
        if health >= high:
            health = math.nextafter(high, low)
        return health


def apply_fault_event(row: RowSnapshot, event: FaultEvent) -> None:
    """Write an injected event onto the originating panel of ``row``."""
    panel = row.panels[event.index]
    panel.health = event.health
    panel.state = event.state
    panel.is_originating = True
