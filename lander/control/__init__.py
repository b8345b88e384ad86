"""Control module: real-time mission loop and operator input validation.

The loop drives the simulation at a fixed tick while pilot commands arrive
asynchronously. It owns the mission phase and decides when the mission ends.

Example:
    >>> from lander.control import ControlLoop, LoopConfig
    >>> from lander.simulation import MissionParameters, VehicleSimulation
    >>>
    >>> loop = ControlLoop(VehicleSimulation(MissionParameters()), commands, display)
    >>> report = asyncio.run(loop.fly())
"""

from lander.control.intake import (
    DEFAULT_PARAMETERS,
    ThrustInput,
    parameters_from_inputs,
    parse_parameter,
    parse_thrust,
)
from lander.control.loop import (
    CommandSource,
    ControlLoop,
    Display,
    FlightReport,
    LoopConfig,
    MissionPhase,
)

__all__ = [
    "DEFAULT_PARAMETERS",
    "CommandSource",
    "ControlLoop",
    "Display",
    "FlightReport",
    "LoopConfig",
    "MissionPhase",
    "ThrustInput",
    "parameters_from_inputs",
    "parse_parameter",
    "parse_thrust",
]
