"""Simulation module for the lunar lander descent.

Provides the step-driven plant: a vehicle state record, the physics update
and the thrust setter. The control loop owns the timing and calls in.

Example:
    >>> from lander.simulation import MissionParameters, VehicleSimulation
    >>>
    >>> sim = VehicleSimulation(MissionParameters(initial_altitude=100.0))
    >>> sim.set_thrust(50.0)
    >>> sim.tick(dt=1.0)
    >>> sim.status().altitude
"""

from lander.simulation.vehicle import (
    FUEL_RATE,
    GRAVITY,
    MAX_THRUST,
    THRUST_POWER,
    MissionParameters,
    Outcome,
    SimulationInvariantError,
    StatusSnapshot,
    VehicleSimulation,
    VehicleState,
    check_invariants,
    set_thrust,
    status,
    tick,
)

__all__ = [
    "FUEL_RATE",
    "GRAVITY",
    "MAX_THRUST",
    "THRUST_POWER",
    "MissionParameters",
    "Outcome",
    "SimulationInvariantError",
    "StatusSnapshot",
    "VehicleSimulation",
    "VehicleState",
    "check_invariants",
    "set_thrust",
    "status",
    "tick",
]
