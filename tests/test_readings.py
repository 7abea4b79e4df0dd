"""Test Suite - Electrical Readings.

PURPOSE:
========
A panel's health drives its electrical output. Voltage stays near nominal
in a series string; current carries the damage. These tests pin the
current curve and the power law every later stage relies on.
"""

import random

import pytest

from pv_string_sim.models.readings import ElectricalReadingModel, ReadingConfig, current_factor


@pytest.mark.case("PV-RD-001")
@pytest.mark.prio1
@pytest.mark.parametrize("health,expected", [
    (0.0, 0.05),
    (20.0, 0.20),
    (50.0, 0.575),
    (80.0, 0.95),
    (100.0, 1.00),
])
def test_current_factor_anchor_points(health, expected):
    """Test Case - Current Factor Anchor Points.

    Description:
    -----------------
    The current factor is piecewise linear with anchors at 0, 20, 80 and
    100 % health and has no jump at the state boundaries.

    Steps:
    ----------
    1. Evaluate current_factor at each anchor

    Expected Results:
    ---------------------------
    1. Factor matches the anchor value
    """
    assert current_factor(health) == pytest.approx(expected)


@pytest.mark.case("PV-RD-002")
@pytest.mark.prio1
def test_current_factor_is_monotone_and_clamped():
    """Test Case - Current Factor Monotone and Clamped.

    Description:
    -----------------
    More health never means less current; out-of-range health is clamped.

    Steps:
    ----------
    1. Sweep health from 0 to 100 in 0.5 steps
    2. Evaluate below 0 and above 100

    Expected Results:
    ---------------------------
    1. Each factor >= the previous one
    2. Clamped values equal the 0 % and 100 % factors
    """
    previous = -1.0
    for i in range(201):
        factor = current_factor(i * 0.5)
        assert factor >= previous
        previous = factor

    assert current_factor(-10.0) == current_factor(0.0)
    assert current_factor(150.0) == current_factor(100.0)
    # Continuity just below the boundaries
    assert current_factor(19.999999) == pytest.approx(0.20, abs=1e-5)
    assert current_factor(79.999999) == pytest.approx(0.95, abs=1e-5)


@pytest.mark.case("PV-RD-003")
@pytest.mark.prio1
def test_reading_power_is_voltage_times_current(reading_model):
    """Test Case - Power Equals Voltage Times Current.

    Description:
    -----------------
    Every reading satisfies power = voltage * current, and voltage stays
    within the configured jitter of nominal.

    Preconditions:
    -----------------
    1. Default reading model (+/- 2 % voltage jitter)
    2. 20 V / 10 A panel

    Steps:
    ----------
    1. Compute readings for a range of health values with a seeded RNG

    Expected Results:
    ---------------------------
    1. power == voltage * current
    2. 19.6 <= voltage <= 20.4
    3. current == 10 * current_factor(health)
    """
    rng = random.Random(7)
    for health in (0.0, 5.0, 19.9, 20.0, 45.0, 79.9, 80.0, 95.0, 100.0):
        r = reading_model.compute_reading(20.0, 10.0, health, rng)
        assert r.power == pytest.approx(r.voltage * r.current)
        assert 19.6 <= r.voltage <= 20.4
        assert r.current == pytest.approx(10.0 * current_factor(health))


@pytest.mark.case("PV-RD-004")
@pytest.mark.prio2
def test_cosmetic_readings_in_range(reading_model):
    """Test Case - Cosmetic Readings Stay Plausible.

    Description:
    -----------------
    Temperature, irradiance and efficiency are cosmetic but must stay in
    believable ranges; degraded panels run hotter.

    Steps:
    ----------
    1. Compute a healthy and a faulty reading

    Expected Results:
    ---------------------------
    1. Irradiance within 900-1000 W/m2
    2. Healthy temperature within 35-45 C
    3. Faulty panel temperature exceeds the healthy base range
    4. Efficiency is power over nominal power, in percent
    """
    rng = random.Random(3)
    healthy = reading_model.compute_reading(20.0, 10.0, 100.0, rng)
    faulty = reading_model.compute_reading(20.0, 10.0, 0.0, rng)

    for r in (healthy, faulty):
        assert 900.0 <= r.irradiance <= 1000.0
    assert 35.0 <= healthy.temperature <= 45.0
    assert faulty.temperature > 45.0
    assert healthy.efficiency == pytest.approx(healthy.power / 200.0 * 100.0, abs=0.01)


@pytest.mark.case("PV-RD-005")
@pytest.mark.prio3
def test_zero_jitter_gives_nominal_voltage():
    """Test Case - Constant Voltage Without Jitter.

    Description:
    -----------------
    With jitter disabled the voltage is exactly nominal, so power depends
    on health alone.

    Expected Results:
    ---------------------------
    1. voltage == 20.0 and power == 20.0 * current
    """
    model = ElectricalReadingModel(ReadingConfig(voltage_jitter=0.0))
    r = model.compute_reading(20.0, 10.0, 50.0, random.Random(1))
    assert r.voltage == 20.0
    assert r.power == pytest.approx(20.0 * 10.0 * 0.575)


@pytest.mark.case("PV-RD-006")
@pytest.mark.prio3
def test_invalid_reading_config_rejected():
    """Test Case - Invalid Reading Config.

    Expected Results:
    ---------------------------
    1. Negative jitter raises ValueError
    """
    with pytest.raises(ValueError):
        ReadingConfig(voltage_jitter=-0.1)
