"""Pytest configuration and fixtures for the string simulator."""

import pytest

from pv_string_sim.faults import CascadePropagator, FaultInjectionEngine, RepairProgression
from pv_string_sim.models.readings import ElectricalReadingModel
from pv_string_sim.simulators import StringSimulationOrchestrator

# Import shared constants
from pv_string_sim.test_constants import (
    DEMO_THRESHOLDS,
    make_config,
    make_topology,
)


# =============================================================================
# Pytest configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "prio1: Priority 1 (critical) tests")
    config.addinivalue_line("markers", "prio2: Priority 2 (important) tests")
    config.addinivalue_line("markers", "prio3: Priority 3 (nice to have) tests")
    config.addinivalue_line("markers", "case(id): Test case identifier (e.g., PV-CAS-001)")


# =============================================================================
# Topology and timing fixtures
# =============================================================================

@pytest.fixture
def thresholds():
    """Demo plant cycle: fault window 3-5 s, repair 5-15 s."""
    return DEMO_THRESHOLDS


@pytest.fixture
def topology():
    """One table, 20 + 20 panels, 20 V / 10 A."""
    return make_topology()


# =============================================================================
# Engine fixtures
# =============================================================================

@pytest.fixture
def fault_config():
    """Config that injects an electrical fault every cycle."""
    return make_config(fault_probability=1.0)


@pytest.fixture
def cleaning_config():
    """Config that injects a cleaning event every cycle."""
    return make_config(fault_probability=0.0)


@pytest.fixture
def orchestrator(fault_config):
    return StringSimulationOrchestrator(fault_config)


@pytest.fixture
def cleaning_orchestrator(cleaning_config):
    return StringSimulationOrchestrator(cleaning_config)


@pytest.fixture
def reading_model():
    return ElectricalReadingModel()


@pytest.fixture
def injector(fault_config):
    return FaultInjectionEngine(fault_config.faults)


@pytest.fixture
def cascade():
    return CascadePropagator()


@pytest.fixture
def repair(thresholds):
    return RepairProgression(thresholds)
