"""Tests for the per-tick flight record."""

import polars as pl
from numpy.testing import assert_allclose

from lander.results import FlightRecord
from lander.simulation import MissionParameters, Outcome, VehicleSimulation


def fly_record(parameters, thrust=0.0, dt=1.0, max_ticks=100):
    sim = VehicleSimulation(parameters)
    record = FlightRecord.starting_at(sim.status())
    for _ in range(max_ticks):
        if sim.is_terminal:
            break
        sim.set_thrust(thrust)
        sim.tick(dt)
        record.append(sim.status())
    return record


class TestFlightRecord:
    """Test history arrays and the summary."""

    def test_arrays(self):
        record = fly_record(MissionParameters(initial_altitude=10.0, initial_velocity=0.0, initial_fuel=0.0))

        assert len(record) == 5
        assert record.ticks == 4
        assert_allclose(record.time, [0.0, 1.0, 2.0, 3.0, 4.0])
        assert_allclose(record.altitude, [10.0, 8.375, 5.125, 0.25, 0.0])
        assert_allclose(record.velocity, [0.0, 1.625, 3.25, 4.875, 0.0])
        assert_allclose(record.fuel, 0.0)

    def test_summary_includes_impact(self):
        """Peak descent rate counts the impact, even though velocity is zeroed."""
        record = fly_record(MissionParameters(initial_altitude=10.0, initial_velocity=0.0, initial_fuel=0.0))
        summary = record.summary()

        assert summary["ticks"] == 4
        assert summary["flight_time"] == 4.0
        assert summary["fuel_used"] == 0.0
        assert_allclose(summary["max_descent_rate"], 6.5)

    def test_summary_fuel_used(self):
        record = fly_record(MissionParameters(initial_fuel=500.0), thrust=50.0, max_ticks=3)
        assert_allclose(record.summary()["fuel_used"], 3 * 50.0 * 0.1)

    def test_empty_summary(self):
        assert FlightRecord().summary() == {
            "ticks": 0, "flight_time": 0.0, "fuel_used": 0.0, "max_descent_rate": 0.0,
        }

    def test_to_dataframe(self):
        record = fly_record(MissionParameters(initial_altitude=10.0, initial_velocity=0.0, initial_fuel=0.0))

        df = record.to_dataframe()
        assert isinstance(df, pl.DataFrame)
        assert df.columns == ["time", "altitude", "velocity", "fuel", "thrust", "outcome"]
        assert df.height == 5
        assert df["outcome"].to_list()[-1] == Outcome.CRASHED.name
