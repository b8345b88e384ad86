"""Terminal front end: status display, countdown, final report, stdin commands.

Formatting lives in plain format_* functions so it can be tested without a
terminal. Console writes them to a stream with optional ANSI color.
StdinCommandSource reads pilot input on a daemon thread so the event loop
never blocks on the terminal.
"""

import asyncio
import logging
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from lander.control.loop import FlightReport, MissionPhase
from lander.simulation.vehicle import MissionParameters, StatusSnapshot, beartype_numeric

logger = logging.getLogger(__name__)

# ANSI escape codes
RESET = "\x1b[0m"
BOLD = "\x1b[1m"
RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"


# =============================================================================
# Configuration
# =============================================================================


@beartype_numeric
@dataclass
class ConsoleConfig:
    """Console presentation settings.

    Attributes:
        color: Emit ANSI color codes
        countdown_s: Countdown length [s]; 0 skips the launch sequence
        countdown_delay_s: Pause between countdown lines [s]
        launch_pause_s: Pause after the descent announcement [s]
    """
    color: bool = True
    countdown_s: int = 3
    countdown_delay_s: float = 1.0
    launch_pause_s: float = 0.5


# =============================================================================
# Formatting
# =============================================================================


def format_status(snapshot: StatusSnapshot) -> str:
    """Format the per-tick instrument readout."""
    lines = [
        f"ALTITUDE: {snapshot.altitude:.1f} m",
        f"VELOCITY: {snapshot.velocity:.1f} m/s",
        f"FUEL:     {round(snapshot.fuel)} kg",
        f"THRUST:   {snapshot.thrust:g}%",
    ]
    return "\n".join(lines)


def format_briefing(parameters: MissionParameters) -> str:
    """Format the pilot briefing shown before the countdown."""
    lines = [
        "Apollo Lunar Landing Simulation",
        "-" * 32,
        f"Altitude:   {parameters.initial_altitude:g} m",
        f"Velocity:   {parameters.initial_velocity:g} m/s",
        f"Fuel:       {parameters.initial_fuel:g} kg",
        f"Safe speed: {parameters.safe_landing_speed:g} m/s",
    ]
    return "\n".join(lines)


def format_report(report: FlightReport) -> str:
    """Format the final mission report.

    Returns:
        Multi-line string; the headline depends on the terminal phase.
    """
    final = report.final
    summary = report.record.summary()

    if report.phase is MissionPhase.LANDED:
        lines = [
            "CONTACT LIGHT!",
            "SUCCESSFUL LANDING!",
            f"Touchdown speed: {final.impact_velocity:.2f} m/s",
            f"{round(final.fuel)} kg fuel remaining",
        ]
    elif report.phase is MissionPhase.CRASHED:
        lines = [
            "CONTACT LIGHT!",
            "CRASH! TOO FAST!",
            f"Impact speed: {final.impact_velocity:.2f} m/s",
        ]
    else:
        lines = [
            "MISSION ABORTED",
            f"Last altitude: {final.altitude:.1f} m",
            f"Last velocity: {final.velocity:.1f} m/s",
            f"Fuel remaining: {round(final.fuel)} kg",
        ]

    lines += [
        "-" * 32,
        f"Flight time:    {summary['flight_time']:.1f} s ({summary['ticks']} ticks)",
        f"Fuel used:      {summary['fuel_used']:.1f} kg",
        f"Peak descent:   {summary['max_descent_rate']:.1f} m/s",
    ]
    return "\n".join(lines)


_PHASE_COLORS = {
    MissionPhase.LANDED: GREEN,
    MissionPhase.CRASHED: RED,
    MissionPhase.INTERRUPTED: YELLOW,
}


# =============================================================================
# Console
# =============================================================================


class Console:
    """Writes the game's text to a stream.

    Implements the control loop's Display protocol.
    """

    def __init__(self, config: ConsoleConfig | None = None, stream: TextIO | None = None) -> None:
        self.config = config or ConsoleConfig()
        self.stream = stream or sys.stdout
        self._warned_fuel_out = False

    def _paint(self, text: str, *codes: str) -> str:
        if not self.config.color or not codes:
            return text
        return "".join(codes) + text + RESET

    def write(self, text: str = "", *codes: str) -> None:
        print(self._paint(text, *codes), file=self.stream, flush=True)

    def show_briefing(self, parameters: MissionParameters) -> None:
        self.write(format_briefing(parameters))

    async def countdown(self) -> None:
        """Launch sequence theatrics. Skipped entirely when countdown_s is 0."""
        if self.config.countdown_s <= 0:
            return
        delay = self.config.countdown_delay_s

        self.write()
        self.write("INITIALIZING LAUNCH SEQUENCE", CYAN)
        await asyncio.sleep(delay)
        for i in range(self.config.countdown_s, 0, -1):
            self.write(f"{i}...", YELLOW)
            await asyncio.sleep(delay)
        self.write("IGNITION!!!", RED, BOLD)
        await asyncio.sleep(delay)
        self.write("LUNAR DESCENT INITIATED", GREEN)
        self.write()
        await asyncio.sleep(self.config.launch_pause_s)

    def show_handover(self, parameters: MissionParameters) -> None:
        self.write("CONTROL TRANSFERRED TO PILOT")
        self.write("INPUT THRUST PERCENTAGE (0-100)")
        self.write(f"GOAL: Land at {parameters.safe_landing_speed:g} m/s or less")
        self.write()

    def show_status(self, snapshot: StatusSnapshot) -> None:
        self.write()
        self.write(format_status(snapshot))
        if snapshot.out_of_fuel and not self._warned_fuel_out:
            self._warned_fuel_out = True
            self.write("FUEL OUT!", YELLOW)

    def show_notice(self, message: str) -> None:
        self.write(message, YELLOW)

    def show_report(self, report: FlightReport) -> None:
        color = _PHASE_COLORS.get(report.phase, YELLOW)
        headline = 1 if report.phase is MissionPhase.INTERRUPTED else 2
        self.write()
        for i, line in enumerate(format_report(report).splitlines()):
            if i < headline:
                self.write(line, color, BOLD)
            else:
                self.write(line)


# =============================================================================
# Input
# =============================================================================


def ask_parameters(
    ask: Callable[[str], str] = input,
) -> dict[str, str | None]:
    """Prompt for each mission parameter. Blank answers keep the default.

    Returns:
        Raw strings keyed by parameters_from_inputs() argument name; None if
        the input stream ended before the question was answered.
    """
    questions = [
        ("altitude", "Initial altitude [m] (default 1000): "),
        ("velocity", "Initial velocity [m/s] (default 50): "),
        ("fuel", "Fuel [kg] (default 1200): "),
        ("safe_speed", "Safe landing speed [m/s] (default 5): "),
    ]
    answers: dict[str, str | None] = {}
    for key, question in questions:
        try:
            answers[key] = ask(question)
        except EOFError:
            answers[key] = None
    return answers


class StdinCommandSource:
    """Pilot input from a text stream, one line per command.

    A daemon thread reads lines and hands them to the event loop through an
    asyncio.Queue. End of stream is delivered as None.

    Args:
        stream: Input stream (default sys.stdin)
        prompt: Printed before each wait for input
        out: Where the prompt is written (default sys.stdout)
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        prompt: str = "Enter thrust percentage: ",
        out: TextIO | None = None,
    ) -> None:
        self.stream = stream or sys.stdin
        self.prompt = prompt
        self.out = out or sys.stdout
        self._queue: asyncio.Queue[str | None] | None = None
        self._thread: threading.Thread | None = None

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._thread = threading.Thread(
            target=self._pump, args=(loop, self._queue), name="lander-stdin", daemon=True,
        )
        self._thread.start()

    def _pump(self, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[str | None]") -> None:
        for line in self.stream:
            if not self._deliver(loop, queue, line.rstrip("\r\n")):
                return
        self._deliver(loop, queue, None)

    @staticmethod
    def _deliver(loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[str | None]", item: str | None) -> bool:
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Event loop already closed: the mission is over
            logger.debug("Dropping pilot input after event loop shutdown")
            return False
        return True

    async def read_command(self) -> str | None:
        if self._queue is None:
            self._start()
        if self.prompt:
            print(self.prompt, end="", file=self.out, flush=True)
        return await self._queue.get()
