#!/usr/bin/env python3
"""
Basic live string simulation example.

This example loads the demo plant and runs one 15 s test cycle: a fault or
soiled panel appears in each string, limits every panel after it, and is
repaired before the cycle ends.
"""

import logging
import os
import sys

# Add the src directory to the path so we can import pv_string_sim
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pv_string_sim.models import ClockReading, Phase
from pv_string_sim.report import PlantReport
from pv_string_sim.scenarios import load_plant
from pv_string_sim.simulators import PlantSimulator


def main():
    """Run one live cycle over the demo plant."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("PV String Simulation Example")
    print("=" * 40)

    plant = load_plant("demo_plant")
    simulator = PlantSimulator(config=plant.config, tick_seconds=0.1)
    for topology in plant.tables:
        simulator.add_topology(topology)

    print(f"Plant: {plant.name}")
    print(f"Tables: {len(plant.tables)}, panels: {plant.total_panels}")
    print(f"Rated power: {plant.nominal_power / 1000:.1f} kW")
    print()

    # Run one full cycle
    print("Running one 15 s cycle...")
    run = simulator.simulate(duration_seconds=plant.config.thresholds.cycle_complete)

    print("\nSimulation Results:")
    print(f"Frames: {len(run.frames)}")
    print(f"Phases: {' -> '.join(p.value for p in run.phase_changes)}")
    print(f"Peak Power: {run.peak_power / 1000:.2f} kW")
    print(f"Min Power: {run.min_power / 1000:.2f} kW")

    # Each frame is recomputed from the clock, so only report events on phase entry
    print("\nEvents:")
    previous = None
    for frame in run.frames:
        if frame.phase != previous:
            for event in frame.events:
                print(f"  {event.describe()}")
        previous = frame.phase

    # Show sample frames
    print("\nSample Frames:")
    for frame in run.frames[::25]:
        total = sum(p.power for p in frame.panels)
        degraded = sum(1 for p in frame.panels if p.state.degraded)
        print(f"  {frame.clock.elapsed_seconds:5.1f}s {frame.phase.value:<15} "
              f"Power={total / 1000:.2f}kW Degraded={degraded}")

    # Report in the middle of the repair window
    frame = simulator.frame(ClockReading(elapsed_seconds=10.0))
    assert frame.phase == Phase.REPAIR_STARTED
    print()
    print(PlantReport.build(frame.tables.values()).format_report())


if __name__ == "__main__":
    main()
