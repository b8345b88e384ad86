"""Lander - Real-time lunar descent simulator.

This package provides a single-vehicle vertical descent simulation flown by
a pilot in real time: the vehicle falls under lunar gravity, the pilot sets
throttle between fixed ticks, and the mission ends in a landing, a crash or
an abort.

Example:
    >>> import asyncio
    >>> from lander import ControlLoop, LoopConfig, MissionParameters, VehicleSimulation
    >>>
    >>> sim = VehicleSimulation(MissionParameters(initial_altitude=500.0))
    >>> loop = ControlLoop(sim, commands, display, LoopConfig(tick_rate_ms=1000))
    >>> report = asyncio.run(loop.fly())
    >>> print(report.phase.name)
"""

__version__ = "0.1.0"

# Control loop and input validation
from lander.control import (
    ControlLoop,
    FlightReport,
    LoopConfig,
    MissionPhase,
    parameters_from_inputs,
    parse_thrust,
)

# Flight record
from lander.results import FlightRecord

# Vehicle physics
from lander.simulation import (
    FUEL_RATE,
    GRAVITY,
    THRUST_POWER,
    MissionParameters,
    Outcome,
    SimulationInvariantError,
    StatusSnapshot,
    VehicleSimulation,
    VehicleState,
)

__all__ = [
    "__version__",
    # Control
    "ControlLoop",
    "FlightReport",
    "LoopConfig",
    "MissionPhase",
    "parameters_from_inputs",
    "parse_thrust",
    # Results
    "FlightRecord",
    # Simulation
    "FUEL_RATE",
    "GRAVITY",
    "THRUST_POWER",
    "MissionParameters",
    "Outcome",
    "SimulationInvariantError",
    "StatusSnapshot",
    "VehicleSimulation",
    "VehicleState",
]
