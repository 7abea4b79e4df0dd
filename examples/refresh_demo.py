#!/usr/bin/env python3
"""
Server refresh example.

Advances persisted table snapshots on a 10 s refresh interval, resizes a
table mid-run, and shows the exported state a server would store.
"""

import json
import logging
import os
import sys

# Add the src directory to the path so we can import pv_string_sim
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pv_string_sim.report import PlantReport
from pv_string_sim.scenarios import load_plant
from pv_string_sim.simulators import RefreshDriver


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    plant = load_plant("demo_plant")
    driver = RefreshDriver(plant.tables, config=plant.config, interval_seconds=10.0)

    print("Refresh Driver Example")
    print("=" * 40)

    for i in range(6):
        if i == 3:
            print("  -- resizing table 3 to 10 + 10 panels --")
            driver.resize_table(3, top_row_panels=10, bottom_row_panels=10)

        snapshots = driver.refresh()
        clock = driver.clock.now()
        report = PlantReport.build(snapshots.values())
        print(f"  refresh {i + 1}: cycle {clock.cycle} @ {clock.elapsed_seconds:4.1f}s  "
              f"power={report.metrics.total_power / 1000:.2f}kW  "
              f"faults={len(report.faults)} repairs={len(report.repairs)}")
        for snapshot in snapshots.values():
            for event in snapshot.events:
                print(f"      {event.describe()}")

    state = driver.export_state()
    print("\nExported state (first table, top row health):")
    print(json.dumps(state["tables"][0]["topPanels"]["health"][:5]))


if __name__ == "__main__":
    main()
