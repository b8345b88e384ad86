"""End-to-end tests for the command-line entry point."""

import asyncio
import io
import logging

import pytest

from lander.cli import build_parser, main
from lander.simulation import SimulationInvariantError, VehicleSimulation


class SilentPilot:
    """Never sends a command and never closes."""

    async def read_command(self):
        await asyncio.Event().wait()


class ClosedPilot:
    async def read_command(self):
        return None


FAST = ["--tick-rate", "10", "--countdown", "0", "--no-color"]


class TestMain:
    """Run whole missions through main()."""

    def test_crash_exit_zero(self):
        out = io.StringIO()
        code = main(["--altitude", "1", "--velocity", "20", "--fuel", "0", *FAST], commands=SilentPilot(), stream=out)

        text = out.getvalue()
        assert code == 0
        assert "CONTACT LIGHT!" in text
        assert "CRASH! TOO FAST!" in text

    def test_landing_exit_zero(self):
        out = io.StringIO()
        code = main(["--altitude", "0.05", "--velocity", "2", "--fuel", "0", *FAST], commands=SilentPilot(), stream=out)

        assert code == 0
        assert "SUCCESSFUL LANDING!" in out.getvalue()

    def test_closed_input_aborts(self):
        out = io.StringIO()
        code = main(FAST, commands=ClosedPilot(), stream=out)

        assert code == 0
        assert "MISSION ABORTED" in out.getvalue()

    def test_tick_limit_aborts(self):
        out = io.StringIO()
        code = main([*FAST, "--max-ticks", "2"], commands=SilentPilot(), stream=out)

        assert code == 0
        assert "MISSION ABORTED" in out.getvalue()
        assert "(2 ticks)" in out.getvalue()

    def test_invalid_parameters_use_defaults(self):
        out = io.StringIO()
        code = main(["--altitude", "-5", "--safe-speed", "zero", *FAST, "--max-ticks", "1"],
                    commands=SilentPilot(), stream=out)

        text = out.getvalue()
        assert code == 0
        assert "using default 1000" in text
        assert "using default 5" in text
        assert "Altitude:   1000 m" in text

    def test_internal_fault_exit_one(self, monkeypatch):
        """An invariant violation still prints a report, then exits 1."""
        def broken_tick(self, dt):
            raise SimulationInvariantError("negative fuel")

        monkeypatch.setattr(VehicleSimulation, "tick", broken_tick)
        out = io.StringIO()
        code = main(FAST, commands=SilentPilot(), stream=out)

        assert code == 1
        assert "MISSION ABORTED" in out.getvalue()

    def test_bad_tick_rate_is_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            main(["--tick-rate", "0"], commands=SilentPilot(), stream=io.StringIO())
        assert exc.value.code == 2

    def test_debug_logs_flight_record(self, caplog):
        """At DEBUG the whole descent is logged as a table."""
        caplog.set_level(logging.DEBUG, logger="lander.cli")
        code = main(["--altitude", "1", "--velocity", "20", "--fuel", "0", *FAST],
                    commands=SilentPilot(), stream=io.StringIO())

        assert code == 0
        record_logs = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Flight record")]
        assert len(record_logs) == 1
        for column in ("time", "altitude", "velocity", "fuel", "thrust", "outcome"):
            assert column in record_logs[0]
        assert "CRASHED" in record_logs[0]

    def test_no_flight_record_above_debug(self, caplog):
        caplog.set_level(logging.INFO, logger="lander.cli")
        main(["--altitude", "1", "--velocity", "20", "--fuel", "0", *FAST],
             commands=SilentPilot(), stream=io.StringIO())
        assert not any(r.getMessage().startswith("Flight record") for r in caplog.records)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.tick_rate == 1000
        assert args.countdown == 3
        assert args.altitude is None
        assert args.log_level == "WARNING"
