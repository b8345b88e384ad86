"""Validation of operator input: mission parameters and thrust commands.

Nothing here raises on bad input. Every parser returns the value to use plus
an optional notice for the operator, so the caller can show why a default
was substituted or a command was clamped.
"""

import math
from typing import NamedTuple

from lander.simulation.vehicle import MAX_THRUST, MissionParameters, beartype_numeric

DEFAULT_PARAMETERS = MissionParameters()


class ThrustInput(NamedTuple):
    """Result of parsing one line of pilot input.

    value is None when the pending command must stay unchanged (empty or
    invalid input).
    """
    value: float | None
    notice: str | None


def _parse_number(text: str | None) -> float | None:
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value):
        return None
    return value


@beartype_numeric
def parse_parameter(
    name: str,
    text: str | None,
    default: float,
    minimum: float | None = None,
    strictly_positive: bool = False,
) -> tuple[float, str | None]:
    """Parse one mission parameter, falling back to its default.

    Args:
        name: Human-readable parameter name for the notice
        text: Raw operator input, None if not supplied
        default: Value used when input is missing or invalid
        minimum: Inclusive lower bound, if any
        strictly_positive: Reject zero and below

    Returns:
        (value, notice). notice is None when the input was used as given or
        was simply absent.
    """
    if text is None or not text.strip():
        return default, None

    value = _parse_number(text)
    if value is None or not math.isfinite(value):
        return default, f"Invalid {name} {text.strip()!r}, using default {default:g}"
    if minimum is not None and value < minimum:
        return default, f"{name.capitalize()} must be >= {minimum:g}, using default {default:g}"
    if strictly_positive and value <= 0.0:
        return default, f"{name.capitalize()} must be > 0, using default {default:g}"
    return value, None


@beartype_numeric
def parameters_from_inputs(
    altitude: str | None = None,
    velocity: str | None = None,
    fuel: str | None = None,
    safe_speed: str | None = None,
) -> tuple[MissionParameters, list[str]]:
    """Build MissionParameters from raw operator strings.

    Returns:
        (parameters, notices) where notices lists every substituted default.
    """
    d = DEFAULT_PARAMETERS
    parsed = [
        parse_parameter("altitude", altitude, d.initial_altitude, minimum=0.0),
        parse_parameter("velocity", velocity, d.initial_velocity),
        parse_parameter("fuel", fuel, d.initial_fuel, minimum=0.0),
        parse_parameter("safe landing speed", safe_speed, d.safe_landing_speed, strictly_positive=True),
    ]

    parameters = MissionParameters(
        initial_altitude=parsed[0][0],
        initial_velocity=parsed[1][0],
        initial_fuel=parsed[2][0],
        safe_landing_speed=parsed[3][0],
    )
    notices = [notice for _, notice in parsed if notice is not None]
    return parameters, notices


@beartype_numeric
def parse_thrust(text: str) -> ThrustInput:
    """Parse a line of pilot input into a throttle command.

    Empty input is ignored silently. Non-numeric input is rejected with a
    notice. Numbers outside [0, 100] are clamped with a notice.
    """
    if not text.strip():
        return ThrustInput(None, None)

    value = _parse_number(text)
    if value is None:
        return ThrustInput(None, f"Invalid thrust {text.strip()!r}: enter a number from 0 to {MAX_THRUST:g}")

    clamped = min(MAX_THRUST, max(0.0, value))
    if clamped != value:
        return ThrustInput(clamped, f"Thrust {text.strip()} out of range, clamped to {clamped:g}%")
    return ThrustInput(value, None)
