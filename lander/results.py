"""Per-tick flight record for the final report.

Collects the status snapshot produced on every tick so the report can show
totals (flight time, fuel used, peak descent rate) and, when wanted, the whole
descent as a table. The record lives only as long as the run.

Example:
    >>> record = FlightRecord.starting_at(sim.status())
    >>> sim.tick(1.0)
    >>> record.append(sim.status())
    >>> record.summary()["fuel_used"]
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from lander.simulation.vehicle import StatusSnapshot, beartype_numeric


@beartype_numeric
@dataclass
class FlightRecord:
    """Ordered status snapshots, first entry is the state before any tick."""
    snapshots: list[StatusSnapshot] = field(default_factory=list)

    @classmethod
    def starting_at(cls, initial: StatusSnapshot) -> "FlightRecord":
        return cls(snapshots=[initial])

    def append(self, snapshot: StatusSnapshot) -> None:
        self.snapshots.append(snapshot)

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def ticks(self) -> int:
        """Number of physics steps recorded."""
        return max(0, len(self.snapshots) - 1)

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return np.array([s.time for s in self.snapshots], dtype=np.float64)

    @property
    def altitude(self) -> NDArray[np.float64]:
        """Altitude history [m]."""
        return np.array([s.altitude for s in self.snapshots], dtype=np.float64)

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Descent rate history [m/s]."""
        return np.array([s.velocity for s in self.snapshots], dtype=np.float64)

    @property
    def fuel(self) -> NDArray[np.float64]:
        """Fuel history [kg]."""
        return np.array([s.fuel for s in self.snapshots], dtype=np.float64)

    @property
    def thrust(self) -> NDArray[np.float64]:
        """Commanded throttle history [%]."""
        return np.array([s.thrust for s in self.snapshots], dtype=np.float64)

    def summary(self) -> dict[str, Any]:
        """Totals for the final report.

        Peak descent rate includes the impact velocity, since velocity is
        zeroed at touchdown.
        """
        if not self.snapshots:
            return {"ticks": 0, "flight_time": 0.0, "fuel_used": 0.0, "max_descent_rate": 0.0}

        velocity = self.velocity
        last = self.snapshots[-1]
        if last.impact_velocity is not None:
            velocity = np.append(velocity, last.impact_velocity)

        fuel = self.fuel
        return {
            "ticks": self.ticks,
            "flight_time": float(last.time - self.snapshots[0].time),
            "fuel_used": float(fuel[0] - fuel[-1]),
            "max_descent_rate": float(np.max(velocity)),
        }

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame({
            "time": self.time,
            "altitude": self.altitude,
            "velocity": self.velocity,
            "fuel": self.fuel,
            "thrust": self.thrust,
            "outcome": [s.outcome.name for s in self.snapshots],
        })
