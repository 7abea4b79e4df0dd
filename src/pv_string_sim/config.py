"""Simulation configuration.

Defaults reproduce the demo plant: a 15 s cycle with the fault window at
3-5 s, 20 V / 10 A panels and one event per string per cycle.
Environment overrides use the ``PV_SIM_`` prefix.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .faults.injection import FaultInjectionConfig, PositionPolicy
from .models.clock import CycleThresholds
from .models.readings import ReadingConfig


@dataclass
class SimulationConfig:
    thresholds: CycleThresholds = field(default_factory=CycleThresholds)
    faults: FaultInjectionConfig = field(default_factory=FaultInjectionConfig)
    readings: ReadingConfig = field(default_factory=ReadingConfig)

    # Health of a freshly initialised panel, [low, high]
    initial_health_range: Tuple[float, float] = (85.0, 100.0)

    # Max +/- health wander of good panels per persisted refresh
    healthy_drift: float = 1.0

    # Base seed; None gives a non-reproducible run
    seed: Optional[int] = None

    def __post_init__(self):
        low, high = self.initial_health_range
        if not 80.0 <= low <= high <= 100.0:
            raise ValueError(
                f"initial_health_range must lie within [80, 100], got {self.initial_health_range}"
            )
        self.initial_health_range = (float(low), float(high))
        if self.healthy_drift < 0:
            raise ValueError(f"healthy_drift must be >= 0, got {self.healthy_drift}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        """Build a config from a plain mapping (e.g. a plant file's ``simulation`` block)."""
        th = data.get("thresholds", {})
        thresholds = CycleThresholds(
            fault_start=float(th.get("faultStart", 3.0)),
            repair_start=float(th.get("repairStart", 5.0)),
            cycle_complete=float(th.get("cycleComplete", 15.0)),
        )

        fi = data.get("faults", {})
        faults = FaultInjectionConfig(
            injection_probability=float(fi.get("injectionProbability", 1.0)),
            fault_probability=float(fi.get("faultProbability", 0.3)),
            position_policy=PositionPolicy(fi.get("positionPolicy", PositionPolicy.FIXED_FRACTION.value)),
            fault_position_fraction=float(fi.get("faultPositionFraction", 0.75)),
            cleaning_position_fraction=float(fi.get("cleaningPositionFraction", 0.60)),
        )

        rd = data.get("readings", {})
        readings = ReadingConfig(voltage_jitter=float(rd.get("voltageJitter", 0.02)))

        seed = data.get("seed")
        return cls(
            thresholds=thresholds,
            faults=faults,
            readings=readings,
            initial_health_range=tuple(data.get("initialHealthRange", (85.0, 100.0))),
            healthy_drift=float(data.get("healthyDrift", 1.0)),
            seed=int(seed) if seed is not None else None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SimulationConfig":
        """Default config with ``PV_SIM_*`` overrides applied."""
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {
            "thresholds": {
                "faultStart": env.get("PV_SIM_FAULT_START", 3.0),
                "repairStart": env.get("PV_SIM_REPAIR_START", 5.0),
                "cycleComplete": env.get("PV_SIM_CYCLE_COMPLETE", 15.0),
            },
            "faults": {
                "injectionProbability": env.get("PV_SIM_INJECTION_PROBABILITY", 1.0),
                "faultProbability": env.get("PV_SIM_FAULT_PROBABILITY", 0.3),
                "positionPolicy": env.get("PV_SIM_POSITION_POLICY", PositionPolicy.FIXED_FRACTION.value),
            },
            "readings": {
                "voltageJitter": env.get("PV_SIM_VOLTAGE_JITTER", 0.02),
            },
        }
        if env.get("PV_SIM_SEED"):
            data["seed"] = env["PV_SIM_SEED"]
        return cls.from_dict(data)
