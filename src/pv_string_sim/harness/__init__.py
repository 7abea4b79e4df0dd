from .time_control import SimulationClock, phase_for
from .invariants import InvariantViolation, evaluate_invariants, InvariantConfig
