"""Vertical descent dynamics for a single lunar lander.

The vehicle is a point mass falling toward a flat surface under constant lunar
gravity, opposed by a throttleable engine that burns fuel in proportion to the
commanded thrust. Velocity is positive DOWNWARD (rate of altitude decrease).

Architecture:
    The control loop owns the loop and calls:
    - set_thrust(state, percent) -> store the pilot's throttle command
    - tick(state, dt) -> propagate physics by one fixed step
    - status(state) -> read-only snapshot for display

    VehicleSimulation wraps the same operations as methods for callers that
    prefer an object.

Example:
    >>> from lander.simulation import MissionParameters, VehicleSimulation
    >>>
    >>> sim = VehicleSimulation(MissionParameters(initial_altitude=500.0))
    >>> while not sim.is_terminal:
    ...     sim.set_thrust(60.0)
    ...     sim.tick(dt=1.0)
    >>> print(sim.status().outcome)
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import NamedTuple

from beartype import BeartypeConf, beartype
from numba import njit

logger = logging.getLogger(__name__)

# Accept int wherever a float is hinted (PEP 484 implicit numeric tower)
beartype_numeric = beartype(conf=BeartypeConf(is_pep484_tower=True))

# =============================================================================
# Constants
# =============================================================================

GRAVITY: float = 1.625  # Lunar surface gravity [m/s^2]
THRUST_POWER: float = 0.15  # Acceleration per thrust percentage point [m/s^2 / %]
FUEL_RATE: float = 0.1  # Fuel burn per thrust percentage point [kg / (% s)]
MAX_THRUST: float = 100.0  # Full throttle [%]


# =============================================================================
# Outcome and Errors
# =============================================================================


class Outcome(Enum):
    """Vehicle outcome. Leaves IN_FLIGHT exactly once, at touchdown."""

    IN_FLIGHT = auto()
    LANDED = auto()
    CRASHED = auto()


class SimulationInvariantError(RuntimeError):
    """Vehicle state broke a physical invariant.

    Never raised for bad pilot input (that is clamped); only for defects in
    the update logic itself.
    """


# =============================================================================
# Mission Parameters
# =============================================================================


@beartype_numeric
@dataclass(frozen=True)
class MissionParameters:
    """Initial conditions for one descent.

    Attributes:
        initial_altitude: Starting height above the surface [m], >= 0
        initial_velocity: Starting descent rate [m/s], positive downward
        initial_fuel: Starting fuel load [kg], >= 0
        safe_landing_speed: Highest impact speed that still counts as a landing [m/s], > 0
    """
    initial_altitude: float = 1000.0
    initial_velocity: float = 50.0
    initial_fuel: float = 1200.0
    safe_landing_speed: float = 5.0

    def __post_init__(self) -> None:
        """Coerce to float and validate ranges."""
        for name in ("initial_altitude", "initial_velocity", "initial_fuel", "safe_landing_speed"):
            object.__setattr__(self, name, float(getattr(self, name)))
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)!r}")
        if self.initial_altitude < 0.0:
            raise ValueError(f"initial_altitude must be >= 0, got {self.initial_altitude}")
        if self.initial_fuel < 0.0:
            raise ValueError(f"initial_fuel must be >= 0, got {self.initial_fuel}")
        if self.safe_landing_speed <= 0.0:
            raise ValueError(f"safe_landing_speed must be > 0, got {self.safe_landing_speed}")


# =============================================================================
# State
# =============================================================================


class StatusSnapshot(NamedTuple):
    """Read-only copy of the vehicle state, handed to displays and reports."""
    altitude: float              # Height above surface [m]
    velocity: float              # Descent rate [m/s], positive downward
    fuel: float                  # Remaining fuel [kg]
    thrust: float                # Commanded throttle [%]
    out_of_fuel: bool
    outcome: Outcome
    impact_velocity: float | None  # Descent rate at touchdown [m/s]
    time: float                  # Simulated time since start [s]


@beartype_numeric
@dataclass
class VehicleState:
    """Mutable vehicle state record.

    Attributes:
        altitude: Height above surface [m], never negative
        velocity: Descent rate [m/s], positive downward
        fuel: Remaining fuel [kg], never negative
        safe_landing_speed: Touchdown threshold copied from the mission [m/s]
        thrust: Commanded throttle [%], in [0, 100]
        out_of_fuel: Latched once fuel reaches zero
        outcome: IN_FLIGHT until touchdown
        impact_velocity: Descent rate at touchdown, None while in flight
        time: Simulated time since start [s]
    """
    altitude: float
    velocity: float
    fuel: float
    safe_landing_speed: float
    thrust: float = 0.0
    out_of_fuel: bool = False
    outcome: Outcome = Outcome.IN_FLIGHT
    impact_velocity: float | None = None
    time: float = 0.0

    def __post_init__(self) -> None:
        """Store numeric fields as float."""
        for name in ("altitude", "velocity", "fuel", "safe_landing_speed", "thrust", "time"):
            setattr(self, name, float(getattr(self, name)))
        if self.impact_velocity is not None:
            self.impact_velocity = float(self.impact_velocity)

    @classmethod
    def from_parameters(cls, parameters: MissionParameters) -> "VehicleState":
        """Create the state at mission start.

        A mission that starts with no fuel is out of fuel from the first tick.
        """
        return cls(
            altitude=parameters.initial_altitude,
            velocity=parameters.initial_velocity,
            fuel=parameters.initial_fuel,
            safe_landing_speed=parameters.safe_landing_speed,
            out_of_fuel=parameters.initial_fuel <= 0.0,
        )

    def copy(self) -> "VehicleState":
        """Create a copy of this state."""
        return VehicleState(
            altitude=self.altitude,
            velocity=self.velocity,
            fuel=self.fuel,
            safe_landing_speed=self.safe_landing_speed,
            thrust=self.thrust,
            out_of_fuel=self.out_of_fuel,
            outcome=self.outcome,
            impact_velocity=self.impact_velocity,
            time=self.time,
        )

    @property
    def is_terminal(self) -> bool:
        return self.outcome is not Outcome.IN_FLIGHT


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True)
def _descent_step_core(
    altitude: float,
    velocity: float,
    fuel: float,
    thrust: float,
    dt: float,
) -> tuple[float, float, float, float, bool]:
    """Explicit Euler step for burn, velocity and altitude.

    Returns (altitude, velocity, fuel, thrust, out_of_fuel). Altitude is NOT
    clamped here; touchdown is resolved by the caller.
    """
    out_of_fuel = False
    if fuel > 0.0:
        thrust_accel = thrust * THRUST_POWER
        fuel -= thrust * FUEL_RATE * dt
        if fuel <= 0.0:
            # Engine cuts now, but this step's acceleration still applies
            fuel = 0.0
            out_of_fuel = True
            thrust = 0.0
    else:
        out_of_fuel = True
        thrust = 0.0
        thrust_accel = 0.0

    velocity += (GRAVITY - thrust_accel) * dt
    altitude -= velocity * dt

    return altitude, velocity, fuel, thrust, out_of_fuel


# =============================================================================
# Operations
# =============================================================================


@beartype_numeric
def set_thrust(state: VehicleState, requested: float) -> None:
    """Store a throttle command.

    Clamps into [0, 100]. Forced to 0 once the vehicle is out of fuel or has
    touched down. Does not burn fuel; that happens in tick().

    Args:
        state: Vehicle state to update
        requested: Throttle [%]
    """
    requested = float(requested)
    if state.is_terminal or state.out_of_fuel or math.isnan(requested):
        state.thrust = 0.0
        return
    state.thrust = min(MAX_THRUST, max(0.0, requested))


@beartype_numeric
def tick(state: VehicleState, dt: float) -> None:
    """Propagate the vehicle by one time step.

    No-op once the outcome is terminal. If the step carries the vehicle below
    the surface, altitude is clamped to exactly 0 and the end-of-step velocity
    is taken as the impact velocity (no sub-stepping).

    Args:
        state: Vehicle state to update in place
        dt: Time step [s], > 0

    Raises:
        ValueError: If dt is not a positive finite number
        SimulationInvariantError: If the step produced an impossible state
    """
    dt = float(dt)
    if not (math.isfinite(dt) and dt > 0.0):
        raise ValueError(f"dt must be > 0, got {dt}")
    if state.is_terminal:
        return

    was_out_of_fuel = state.out_of_fuel
    altitude, velocity, fuel, thrust, out_of_fuel = _descent_step_core(
        state.altitude, state.velocity, state.fuel, state.thrust, dt,
    )

    state.altitude = altitude
    state.velocity = velocity
    state.fuel = fuel
    state.thrust = thrust
    state.out_of_fuel = was_out_of_fuel or out_of_fuel
    state.time += dt

    if state.out_of_fuel and not was_out_of_fuel:
        logger.info(f"Fuel exhausted at t={state.time:.1f}s, altitude={state.altitude:.1f}m")

    if state.altitude <= 0.0:
        _touch_down(state)

    check_invariants(state)


def _touch_down(state: VehicleState) -> None:
    """Resolve surface contact. Only called on the crossing tick."""
    state.altitude = 0.0
    state.impact_velocity = state.velocity
    if state.impact_velocity <= state.safe_landing_speed:
        state.outcome = Outcome.LANDED
    else:
        state.outcome = Outcome.CRASHED
    state.velocity = 0.0
    state.thrust = 0.0

    logger.info(
        f"Touchdown at t={state.time:.1f}s: {state.outcome.name} "
        f"(impact {state.impact_velocity:.2f} m/s, limit {state.safe_landing_speed:.2f} m/s)"
    )


@beartype_numeric
def status(state: VehicleState) -> StatusSnapshot:
    """Snapshot the state. Pure read."""
    return StatusSnapshot(
        altitude=state.altitude,
        velocity=state.velocity,
        fuel=state.fuel,
        thrust=state.thrust,
        out_of_fuel=state.out_of_fuel,
        outcome=state.outcome,
        impact_velocity=state.impact_velocity,
        time=state.time,
    )


@beartype_numeric
def check_invariants(state: VehicleState) -> None:
    """Raise SimulationInvariantError if the state is physically impossible."""
    if state.altitude < 0.0:
        raise SimulationInvariantError(f"Negative altitude: {state.altitude}")
    if state.fuel < 0.0:
        raise SimulationInvariantError(f"Negative fuel: {state.fuel}")
    if not 0.0 <= state.thrust <= MAX_THRUST:
        raise SimulationInvariantError(f"Thrust out of range: {state.thrust}")
    if state.thrust > 0.0 and (state.out_of_fuel or state.is_terminal):
        raise SimulationInvariantError(
            f"Thrust {state.thrust}% commanded with out_of_fuel={state.out_of_fuel}, "
            f"outcome={state.outcome.name}"
        )
    if state.is_terminal and state.impact_velocity is None:
        raise SimulationInvariantError(f"Outcome {state.outcome.name} without impact velocity")
    if not state.is_terminal and state.impact_velocity is not None:
        raise SimulationInvariantError("Impact velocity recorded while still in flight")


# =============================================================================
# Simulator
# =============================================================================


@beartype_numeric
@dataclass
class VehicleSimulation:
    """Step-driven descent simulator.

    Owns one VehicleState built from the mission parameters. The control loop
    drives it; nothing else mutates the state.

    Example:
        >>> sim = VehicleSimulation(MissionParameters())
        >>> sim.set_thrust(80.0)
        >>> sim.tick(1.0)
        >>> snapshot = sim.status()
    """
    parameters: MissionParameters = field(default_factory=MissionParameters)

    # Internal
    state: VehicleState = field(init=False)

    def __post_init__(self) -> None:
        """Build the initial state."""
        self.state = VehicleState.from_parameters(self.parameters)

    def set_thrust(self, requested: float) -> None:
        """Store a throttle command [%]."""
        set_thrust(self.state, requested)

    def tick(self, dt: float) -> None:
        """Propagate physics by one time step [s]."""
        tick(self.state, dt)

    def status(self) -> StatusSnapshot:
        """Get a read-only snapshot of the current state."""
        return status(self.state)

    @property
    def outcome(self) -> Outcome:
        return self.state.outcome

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal
