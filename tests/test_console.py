"""Tests for console formatting and the stdin command source."""

import asyncio
import io

from lander.console import (
    Console,
    ConsoleConfig,
    StdinCommandSource,
    ask_parameters,
    format_report,
    format_status,
)
from lander.control import FlightReport, MissionPhase
from lander.results import FlightRecord
from lander.simulation import MissionParameters, Outcome, StatusSnapshot


def snapshot(**overrides):
    values = dict(
        altitude=812.34,
        velocity=41.25,
        fuel=1100.4,
        thrust=35.0,
        out_of_fuel=False,
        outcome=Outcome.IN_FLIGHT,
        impact_velocity=None,
        time=3.0,
    )
    values.update(overrides)
    return StatusSnapshot(**values)


def report(phase, final):
    initial = snapshot(altitude=1000.0, velocity=50.0, fuel=1200.0, thrust=0.0, time=0.0)
    return FlightReport(phase=phase, final=final, record=FlightRecord([initial, final]))


def plain_console():
    stream = io.StringIO()
    return Console(ConsoleConfig(color=False, countdown_s=0), stream=stream), stream


# =============================================================================
# Formatting Tests
# =============================================================================


class TestFormatting:
    """Test text rendering."""

    def test_status(self):
        text = format_status(snapshot())
        assert text.splitlines() == [
            "ALTITUDE: 812.3 m",
            "VELOCITY: 41.2 m/s",
            "FUEL:     1100 kg",
            "THRUST:   35%",
        ]

    def test_landed_report(self):
        final = snapshot(altitude=0.0, velocity=0.0, fuel=250.0, thrust=0.0,
                         outcome=Outcome.LANDED, impact_velocity=3.2)
        text = format_report(report(MissionPhase.LANDED, final))
        assert "CONTACT LIGHT!" in text
        assert "SUCCESSFUL LANDING!" in text
        assert "250 kg fuel remaining" in text
        assert "Fuel used:      950.0 kg" in text

    def test_crashed_report(self):
        final = snapshot(altitude=0.0, velocity=0.0, outcome=Outcome.CRASHED, impact_velocity=22.75)
        text = format_report(report(MissionPhase.CRASHED, final))
        assert "CRASH! TOO FAST!" in text
        assert "22.75 m/s" in text
        assert "Peak descent:   50.0 m/s" in text

    def test_interrupted_report(self):
        text = format_report(report(MissionPhase.INTERRUPTED, snapshot()))
        assert text.splitlines()[0] == "MISSION ABORTED"
        assert "Last altitude: 812.3 m" in text
        assert "CONTACT LIGHT!" not in text


# =============================================================================
# Console Tests
# =============================================================================


class TestConsole:
    """Test the stream-writing display."""

    def test_fuel_out_warned_once(self):
        console, stream = plain_console()
        console.show_status(snapshot(fuel=0.0, out_of_fuel=True, thrust=0.0))
        console.show_status(snapshot(fuel=0.0, out_of_fuel=True, thrust=0.0))
        assert stream.getvalue().count("FUEL OUT!") == 1

    def test_no_color(self):
        console, stream = plain_console()
        console.show_notice("careful")
        assert stream.getvalue() == "careful\n"

    def test_color(self):
        stream = io.StringIO()
        console = Console(ConsoleConfig(color=True), stream=stream)
        console.show_notice("careful")
        assert stream.getvalue() == "\x1b[33mcareful\x1b[0m\n"

    def test_countdown(self):
        stream = io.StringIO()
        console = Console(ConsoleConfig(color=False, countdown_s=3, countdown_delay_s=0.0), stream=stream)
        asyncio.run(console.countdown())

        lines = [line for line in stream.getvalue().splitlines() if line]
        assert lines == [
            "INITIALIZING LAUNCH SEQUENCE",
            "3...",
            "2...",
            "1...",
            "IGNITION!!!",
            "LUNAR DESCENT INITIATED",
        ]

    def test_countdown_pauses(self, monkeypatch):
        """One delay per line, then the launch pause before control handover."""
        pauses = []

        async def record_sleep(seconds):
            pauses.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", record_sleep)
        console = Console(
            ConsoleConfig(color=False, countdown_s=3, countdown_delay_s=0.2, launch_pause_s=0.7),
            stream=io.StringIO(),
        )
        asyncio.run(console.countdown())

        assert pauses == [0.2, 0.2, 0.2, 0.2, 0.2, 0.7]

    def test_whole_second_delays(self):
        config = ConsoleConfig(countdown_delay_s=0, launch_pause_s=1)
        assert config.countdown_delay_s == 0
        assert config.launch_pause_s == 1

    def test_countdown_skipped(self):
        console, stream = plain_console()
        asyncio.run(console.countdown())
        assert stream.getvalue() == ""

    def test_briefing_and_handover(self):
        console, stream = plain_console()
        parameters = MissionParameters(safe_landing_speed=3.0)
        console.show_briefing(parameters)
        console.show_handover(parameters)
        text = stream.getvalue()
        assert "Altitude:   1000 m" in text
        assert "CONTROL TRANSFERRED TO PILOT" in text
        assert "GOAL: Land at 3 m/s or less" in text


# =============================================================================
# Input Tests
# =============================================================================


class TestAskParameters:
    """Test interactive parameter prompts."""

    def test_answers_keyed(self):
        answers = iter(["500", "", "x", "4"])
        raw = ask_parameters(lambda question: next(answers))
        assert raw == {"altitude": "500", "velocity": "", "fuel": "x", "safe_speed": "4"}

    def test_eof(self):
        def closed(question):
            raise EOFError

        raw = ask_parameters(closed)
        assert raw == {"altitude": None, "velocity": None, "fuel": None, "safe_speed": None}


class TestStdinCommandSource:
    """Test threaded line delivery."""

    def test_lines_then_close(self):
        out = io.StringIO()
        source = StdinCommandSource(stream=io.StringIO("40\n\nabc\n"), prompt="> ", out=out)

        async def read_all():
            lines = []
            while (line := await source.read_command()) is not None:
                lines.append(line)
            return lines

        assert asyncio.run(read_all()) == ["40", "", "abc"]
        assert out.getvalue() == "> " * 4
