"""Test Suite - Live and Refresh Drivers.

PURPOSE:
========
The live driver recomputes every table from a fast local clock; the
refresh driver advances persisted snapshots on a coarse interval. Both
must show the same kind of cycle: faults appear, are repaired, and the
plant returns to full health.
"""

import pytest

from pv_string_sim.harness import evaluate_invariants
from pv_string_sim.models import ClockReading, EventKind, PanelState, Phase, RepairStage
from pv_string_sim.report import PlantReport
from pv_string_sim.simulators import PlantSimulator, RefreshDriver
from pv_string_sim.test_constants import FAULT_POSITION, make_config, make_topology


@pytest.fixture
def plant():
    """Fixture: live simulator with two demo tables, 0.1 s ticks.

    Plant configuration:
    - Table 1: 20 + 20 panels
    - Table 2: 16 + 12 panels
    - Electrical fault injected every cycle
    """
    sim = PlantSimulator(config=make_config(fault_probability=1.0), tick_seconds=0.1)
    sim.add_table(1)
    sim.add_table(2, top_row_panels=16, bottom_row_panels=12)
    return sim


@pytest.fixture
def refresh_driver():
    """Fixture: refresh driver on one 20 + 20 table, 10 s interval."""
    return RefreshDriver([make_topology()], config=make_config(fault_probability=1.0), interval_seconds=10.0)


# =============================================================================
# Live driver
# =============================================================================

@pytest.mark.case("PV-DRV-001")
@pytest.mark.prio1
def test_live_simulation_covers_one_cycle(plant):
    """Test Case - Live Simulation Over One Cycle.

    Description:
    -----------------
    Run the live driver for one 15 s cycle and inspect the frames.

    Preconditions:
    -----------------
    1. Two tables registered (via fixture)

    Steps:
    ----------
    1. Execute simulate() for 15 s
    2. Inspect frame count, phases and power envelope

    Expected Results:
    ---------------------------
    1. 151 frames (start frame plus one per 0.1 s tick)
    2. Phase changes reported in cycle order
    3. Frames inside the fault window show the fault at position 15
    4. The last frame wrapped into cycle 1 with every panel GOOD
    5. Peak power exceeds minimum power (the fault costs output)
    """
    run = plant.simulate(duration_seconds=15.0)

    assert len(run.frames) == 151
    assert run.phase_changes == [Phase.FAULT_DETECTED, Phase.REPAIR_STARTED, Phase.CYCLE_COMPLETE]
    assert run.end == ClockReading(elapsed_seconds=0.0, cycle=1)

    in_window = [f for f in run.frames if f.phase == Phase.FAULT_DETECTED]
    assert in_window
    for frame in in_window:
        assert frame.tables[1].top.originating_index == FAULT_POSITION - 1

    last = run.frames[-1]
    assert all(p.state == PanelState.GOOD for p in last.panels)
    assert run.peak_power > run.min_power


@pytest.mark.case("PV-DRV-002")
@pytest.mark.prio1
@pytest.mark.asyncio
async def test_async_live_simulation(plant):
    """Test Case - Asynchronous Live Simulation.

    Description:
    -----------------
    The async interface yields to the event loop between ticks and
    produces the same frames as the synchronous one.

    Preconditions:
    -----------------
    1. Async event loop available (pytest-asyncio)

    Steps:
    ----------
    1. Await simulate_async() for 5 s

    Expected Results:
    ---------------------------
    1. 51 frames, clock at 5 s of cycle 0
    2. Every frame satisfies the snapshot invariants
    """
    run = await plant.simulate_async(duration_seconds=5.0)

    assert len(run.frames) == 51
    assert run.end == ClockReading(elapsed_seconds=5.0, cycle=0)
    for frame in run.frames:
        for snapshot in frame.tables.values():
            assert evaluate_invariants(snapshot) == []


@pytest.mark.case("PV-DRV-003")
@pytest.mark.prio2
def test_live_frame_at_explicit_reading(plant):
    """Test Case - Frame at an Explicit Reading.

    Expected Results:
    ---------------------------
    1. Frame at t=15 reports CYCLE_COMPLETE with repair_completed events
    """
    frame = plant.frame(ClockReading(elapsed_seconds=15.0))

    assert frame.phase == Phase.CYCLE_COMPLETE
    assert EventKind.REPAIR_COMPLETED in [e.kind for e in frame.events]
    assert len(frame.panels) == 40 + 28


# =============================================================================
# Refresh driver
# =============================================================================

@pytest.mark.case("PV-DRV-004")
@pytest.mark.prio1
def test_refresh_steps_over_fault_window(refresh_driver):
    """Test Case - Coarse Refresh Sees Faults and Staged Repair.

    Description:
    -----------------
    A 10 s refresh on a 15 s cycle lands at 10 s, 5 s, 0 s... and never
    inside the 3-5 s fault window. Faults are injected when the interval
    steps over the window. Each refresh credits at most 30 % of the repair
    window, so the crew is seen working through both repair stages.

    Steps:
    ----------
    1. Refresh seven times, following the top row

    Expected Results:
    ---------------------------
    1. 10 s of cycle 0: healthy, no events
    2. 5 s of cycle 1: fault injected at position 15
    3. 0 s of cycle 2: repair started, EARLY_STAGE with 0 < progress < 100
    4. 10 s of cycle 2: MID_STAGE, progress still below 100
    5. 5 s of cycle 3: MID_STAGE, record still open
    6. 0 s of cycle 4: repair completed, every panel GOOD
    7. 10 s of cycle 4: next fault injected
    """
    first = refresh_driver.refresh()[1]
    assert first.clock == ClockReading(elapsed_seconds=10.0, cycle=0)
    assert first.events == []

    second = refresh_driver.refresh()[1]
    assert second.clock == ClockReading(elapsed_seconds=5.0, cycle=1)
    assert EventKind.FAULT_INJECTED in [e.kind for e in second.events]
    assert second.top.originating_index == FAULT_POSITION - 1

    third = refresh_driver.refresh()[1]
    assert third.clock == ClockReading(elapsed_seconds=0.0, cycle=2)
    assert EventKind.REPAIR_STARTED in [e.kind for e in third.events]
    origin = third.top.originating_panel
    assert origin.repair_stage == RepairStage.EARLY_STAGE
    assert 0.0 < origin.repair_progress < 100.0

    fourth = refresh_driver.refresh()[1]
    assert fourth.clock == ClockReading(elapsed_seconds=10.0, cycle=2)
    assert fourth.top.repair.stage == RepairStage.MID_STAGE
    assert fourth.top.repair.progress < 100.0

    fifth = refresh_driver.refresh()[1]
    assert fifth.clock == ClockReading(elapsed_seconds=5.0, cycle=3)
    assert fifth.top.repair.stage == RepairStage.MID_STAGE
    assert EventKind.FAULT_INJECTED not in [e.kind for e in fifth.events]

    sixth = refresh_driver.refresh()[1]
    assert sixth.clock == ClockReading(elapsed_seconds=0.0, cycle=4)
    assert EventKind.REPAIR_COMPLETED in [e.kind for e in sixth.events]
    assert all(p.state == PanelState.GOOD for p in sixth.panels)
    assert sixth.top.repair is None

    seventh = refresh_driver.refresh()[1]
    assert seventh.clock == ClockReading(elapsed_seconds=10.0, cycle=4)
    assert [e.kind for e in seventh.events].count(EventKind.FAULT_INJECTED) == 2


@pytest.mark.case("PV-DRV-008")
@pytest.mark.prio2
def test_uncapped_refresh_completes_between_polls():
    """Test Case - Refresh Without a Repair Cap.

    Description:
    -----------------
    With no per-refresh cap the record is credited with all repair-window
    time since the previous refresh. A fault injected at 5 s is fully
    repaired by the next poll 10 s later.

    Expected Results:
    ---------------------------
    1. 0 s of cycle 2: repair completed, every panel GOOD
    """
    driver = RefreshDriver(
        [make_topology()],
        config=make_config(fault_probability=1.0),
        interval_seconds=10.0,
        repair_share_per_refresh=None,
    )
    driver.refresh()
    driver.refresh()

    snapshot = driver.refresh()[1]

    assert snapshot.clock == ClockReading(elapsed_seconds=0.0, cycle=2)
    assert EventKind.REPAIR_STARTED in [e.kind for e in snapshot.events]
    assert snapshot.top.repair.originating_index == FAULT_POSITION - 1
    assert snapshot.top.repair.stage == RepairStage.EARLY_STAGE
    assert all(p.state == PanelState.GOOD for p in snapshot.panels)


@pytest.mark.case("PV-DRV-005")
@pytest.mark.prio1
def test_resize_reinitialises_row(refresh_driver):
    """Test Case - Table Resized Between Refreshes.

    Expected Results:
    ---------------------------
    1. Resized row is rebuilt with the new count and flagged
    2. The untouched row is not flagged
    """
    refresh_driver.refresh()
    refresh_driver.resize_table(1, top_row_panels=12, bottom_row_panels=20)

    snapshot = refresh_driver.refresh()[1]

    assert len(snapshot.top.panels) == 12
    assert snapshot.top.reinitialized
    assert not snapshot.bottom.reinitialized
    assert EventKind.ROW_REINITIALIZED in [e.kind for e in snapshot.events]


@pytest.mark.case("PV-DRV-006")
@pytest.mark.prio2
def test_export_and_load_state(refresh_driver):
    """Test Case - Persist and Resume.

    Description:
    -----------------
    Exported state is plain data; a new driver loading it resumes the same
    clock and carries on with the open repair on its next refresh.

    Steps:
    ----------
    1. Refresh twice (fault open) and export
    2. Load into a fresh driver and refresh

    Expected Results:
    ---------------------------
    1. Export carries the clock and one table
    2. Resumed driver starts the repair at 0 s of cycle 2, same position
    """
    refresh_driver.refresh()
    refresh_driver.refresh()
    state = refresh_driver.export_state()

    assert state["clock"] == {"elapsedSeconds": 5.0, "cycle": 1}
    assert [t["tableNumber"] for t in state["tables"]] == [1]

    resumed = RefreshDriver([make_topology()], config=make_config(), interval_seconds=10.0)
    resumed.load_state(state)
    snapshot = resumed.refresh()[1]

    assert snapshot.clock == ClockReading(elapsed_seconds=0.0, cycle=2)
    assert EventKind.REPAIR_STARTED in [e.kind for e in snapshot.events]
    assert snapshot.top.repair.originating_index == FAULT_POSITION - 1
    assert snapshot.top.repair.stage == RepairStage.EARLY_STAGE


@pytest.mark.case("PV-DRV-007")
@pytest.mark.prio3
def test_invalid_interval_rejected():
    """Test Case - Refresh Driver Validation."""
    with pytest.raises(ValueError):
        RefreshDriver([make_topology()], interval_seconds=0)
    with pytest.raises(ValueError):
        RefreshDriver([make_topology()], repair_share_per_refresh=0.0)


@pytest.mark.case("PV-DRV-009")
@pytest.mark.prio2
def test_load_state_drops_out_of_row_references(refresh_driver):
    """Test Case - Stored Originating Index Outside the Row.

    Description:
    -----------------
    Stored state may point at a panel the row no longer has. Such
    references are dropped on load instead of failing later lookups.

    Steps:
    ----------
    1. Refresh twice (fault open) and export
    2. Point the top row's originating index and repair record past its end
    3. Load, build a report, then refresh

    Expected Results:
    ---------------------------
    1. Loaded top row has no originating panel and no repair record
    2. Report builds and lists only the bottom row's fault
    3. Next refresh recovers the top row's record from stored health
    """
    refresh_driver.refresh()
    refresh_driver.refresh()
    state = refresh_driver.export_state()
    top = state["tables"][0]["topPanels"]
    top["actualFaultyIndex"] = 25
    top["repairState"]["originatingIndex"] = 25

    refresh_driver.load_state(state)
    loaded = refresh_driver.snapshots[1]

    assert loaded.top.originating_index is None
    assert loaded.top.originating_panel is None
    assert loaded.top.repair is None

    report = PlantReport.build(refresh_driver.snapshots.values())
    assert [f.panel_id for f in report.faults] == ["T.1.BOTTOM.P15"]

    snapshot = refresh_driver.refresh()[1]
    assert snapshot.top.repair.originating_index == FAULT_POSITION - 1
