"""Electrical reading model for a single panel.

Maps a panel's health to the values shown on the dashboard:

- Voltage is nominal with a small per-panel jitter; a degraded panel in a
  series string barely moves the voltage.
- Current carries the health: ``nominal_current * current_factor(health)``.
- Power is always ``voltage * current``.
- Temperature, irradiance and efficiency are cosmetic.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .panel import clamp


@dataclass
class ReadingConfig:
    voltage_jitter: float = 0.02       # +/- fraction of nominal voltage
    base_temperature_c: float = 35.0
    temperature_spread_c: float = 10.0
    degraded_heating_c: float = 0.15   # extra degC per missing health point
    irradiance_min: float = 900.0      # W/m2
    irradiance_max: float = 1000.0

    def __post_init__(self):
        if not 0.0 <= self.voltage_jitter < 1.0:
            raise ValueError(f"voltage_jitter must be in [0, 1), got {self.voltage_jitter}")
        if self.irradiance_max < self.irradiance_min:
            raise ValueError("irradiance_max must be >= irradiance_min")


@dataclass
class PanelReading:
    voltage: float
    current: float
    power: float
    temperature: float
    efficiency: float
    irradiance: float


def current_factor(health: float) -> float:
    """Fraction of nominal current a panel delivers at ``health`` percent.

    Piecewise linear, continuous at 20 and 80:
    0.05 -> 0.20 over [0, 20), 0.20 -> 0.95 over [20, 80), 0.95 -> 1.00 over [80, 100].
    """
    h = clamp(health)
    if h >= 80.0:
        return 0.95 + (h - 80.0) / 20.0 * 0.05
    if h >= 20.0:
        return 0.20 + (h - 20.0) / 60.0 * 0.75
    return 0.05 + h / 20.0 * 0.15


class ElectricalReadingModel:
    def __init__(self, config: Optional[ReadingConfig] = None):
        self.config = config or ReadingConfig()

    def compute_reading(
        self,
        nominal_voltage: float,
        nominal_current: float,
        health: float,
        rng: Optional[random.Random] = None,
    ) -> PanelReading:
        rng = rng or random.Random()
        cfg = self.config
        health = clamp(health)

        jitter = rng.uniform(-cfg.voltage_jitter, cfg.voltage_jitter)
        voltage = nominal_voltage * (1.0 + jitter)
        current = nominal_current * current_factor(health)
        power = voltage * current

        return PanelReading(
            voltage=voltage,
            current=current,
            power=power,
            temperature=self.temperature(health, rng),
            efficiency=self.efficiency(power, nominal_voltage, nominal_current),
            irradiance=rng.uniform(cfg.irradiance_min, cfg.irradiance_max),
        )

    def temperature(self, health: float, rng: random.Random) -> float:
        cfg = self.config
        heating = (100.0 - clamp(health)) * cfg.degraded_heating_c
        return cfg.base_temperature_c + rng.random() * cfg.temperature_spread_c + heating

    @staticmethod
    def efficiency(power: float, nominal_voltage: float, nominal_current: float) -> float:
        rated = nominal_voltage * nominal_current
        if rated <= 0:
            return 0.0
        return round(power / rated * 100.0, 2)
