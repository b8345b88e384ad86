"""Real-time control loop: fixed-rate ticks plus asynchronous pilot input.

Two asyncio tasks share one event loop and never run at the same time:

    tick task     sleeps one period, applies the pending thrust command,
                  advances the simulation by dt, publishes the snapshot.
    command task  awaits one line of pilot input, validates it and overwrites
                  the pending command, then re-arms immediately.

A command therefore takes effect on the first tick after it is accepted.
Physics uses a FIXED nominal dt (the tick period), not measured wall-clock
time, so a run is reproducible for a given command sequence.

The mission ends when the vehicle touches down, when the cancellation token
is set (operator abort), or when the command source closes. In every case
both tasks are cancelled and awaited before the report is built.

Example:
    >>> sim = VehicleSimulation(MissionParameters())
    >>> loop = ControlLoop(sim, commands, display, LoopConfig(tick_rate_ms=1000))
    >>> report = asyncio.run(loop.fly())
    >>> report.phase
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from lander.control.intake import parse_thrust
from lander.results import FlightRecord
from lander.simulation.vehicle import Outcome, StatusSnapshot, VehicleSimulation, beartype_numeric

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@beartype_numeric
@dataclass
class LoopConfig:
    """Control loop configuration.

    Attributes:
        tick_rate_ms: Tick period [ms]; also the physics time step
        max_ticks: Abort the mission after this many ticks (None = no limit)
    """
    tick_rate_ms: int = 1000
    max_ticks: int | None = None

    def __post_init__(self) -> None:
        if self.tick_rate_ms <= 0:
            raise ValueError(f"tick_rate_ms must be > 0, got {self.tick_rate_ms}")
        if self.max_ticks is not None and self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be > 0, got {self.max_ticks}")

    @property
    def dt(self) -> float:
        """Physics time step [s]."""
        return self.tick_rate_ms / 1000.0


# =============================================================================
# Mission Phases
# =============================================================================


class MissionPhase(Enum):
    """Mission state machine: SETUP -> COUNTDOWN -> FLYING -> terminal."""

    SETUP = auto()
    COUNTDOWN = auto()
    FLYING = auto()
    LANDED = auto()
    CRASHED = auto()
    INTERRUPTED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (MissionPhase.LANDED, MissionPhase.CRASHED, MissionPhase.INTERRUPTED)


_TRANSITIONS: dict[MissionPhase, frozenset[MissionPhase]] = {
    MissionPhase.SETUP: frozenset({MissionPhase.COUNTDOWN, MissionPhase.FLYING, MissionPhase.INTERRUPTED}),
    MissionPhase.COUNTDOWN: frozenset({MissionPhase.FLYING, MissionPhase.INTERRUPTED}),
    MissionPhase.FLYING: frozenset({MissionPhase.LANDED, MissionPhase.CRASHED, MissionPhase.INTERRUPTED}),
    MissionPhase.LANDED: frozenset(),
    MissionPhase.CRASHED: frozenset(),
    MissionPhase.INTERRUPTED: frozenset(),
}

_OUTCOME_PHASE = {
    Outcome.LANDED: MissionPhase.LANDED,
    Outcome.CRASHED: MissionPhase.CRASHED,
}


# =============================================================================
# Collaborators
# =============================================================================


class CommandSource(Protocol):
    """Line-oriented pilot input."""

    async def read_command(self) -> str | None:
        """Wait for the next line. None means the source is closed."""
        ...


class Display(Protocol):
    """Receives snapshots and operator notices."""

    def show_status(self, snapshot: StatusSnapshot) -> None: ...

    def show_notice(self, message: str) -> None: ...


@dataclass
class FlightReport:
    """Final mission report.

    Attributes:
        phase: Terminal mission phase
        final: Vehicle snapshot at termination
        record: Every snapshot from mission start
    """
    phase: MissionPhase
    final: StatusSnapshot
    record: FlightRecord

    @property
    def ticks(self) -> int:
        return self.record.ticks

    @property
    def landed(self) -> bool:
        return self.phase is MissionPhase.LANDED


# =============================================================================
# Control Loop
# =============================================================================


class ControlLoop:
    """Drives a VehicleSimulation at a fixed cadence while accepting pilot input.

    Args:
        simulation: The vehicle to fly; the loop is its only mutator
        commands: Source of raw pilot input lines
        display: Receives a snapshot every tick and input notices
        config: Tick period and limits
        cancel: Cancellation token; setting it aborts the mission
    """

    def __init__(
        self,
        simulation: VehicleSimulation,
        commands: CommandSource,
        display: Display,
        config: LoopConfig | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        self.simulation = simulation
        self.commands = commands
        self.display = display
        self.config = config or LoopConfig()
        self.cancel = cancel or asyncio.Event()

        self.phase = MissionPhase.SETUP
        self.pending_thrust = 0.0
        self.record = FlightRecord.starting_at(simulation.status())

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _transition(self, phase: MissionPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Illegal mission transition {self.phase.name} -> {phase.name}")
        logger.debug(f"Mission phase {self.phase.name} -> {phase.name}")
        self.phase = phase

    def interrupt(self) -> None:
        """Request an abort. Safe to call from a signal handler."""
        self.cancel.set()

    async def countdown(self, sequence: Awaitable[None]) -> bool:
        """Run the pre-flight sequence unless the operator aborts first.

        Returns:
            True if the countdown completed, False if it was interrupted.
        """
        self._transition(MissionPhase.COUNTDOWN)
        if self.cancel.is_set():
            self._transition(MissionPhase.INTERRUPTED)
            return False

        countdown = asyncio.ensure_future(sequence)
        interrupt = asyncio.ensure_future(self.cancel.wait())
        try:
            await asyncio.wait({countdown, interrupt}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            countdown.cancel()
            interrupt.cancel()
            await asyncio.gather(countdown, interrupt, return_exceptions=True)

        if not countdown.cancelled() and countdown.exception() is not None:
            raise countdown.exception()
        if self.cancel.is_set():
            logger.info("Mission aborted during countdown")
            self._transition(MissionPhase.INTERRUPTED)
            return False
        return True

    # -------------------------------------------------------------------------
    # Per-event handlers
    # -------------------------------------------------------------------------

    def accept_input(self, text: str) -> bool:
        """Validate one line of pilot input and update the pending command.

        Returns:
            True if the pending command changed.
        """
        parsed = parse_thrust(text)
        if parsed.notice is not None:
            self.display.show_notice(parsed.notice)
        if parsed.value is None:
            if parsed.notice is not None:
                logger.debug(f"Rejected pilot input {text!r}")
            return False

        self.pending_thrust = parsed.value
        logger.debug(f"Pending thrust set to {self.pending_thrust:g}%")
        return True

    def step(self) -> StatusSnapshot:
        """Apply the pending command, advance one tick and publish the snapshot."""
        self.simulation.set_thrust(self.pending_thrust)
        self.simulation.tick(self.config.dt)
        snapshot = self.simulation.status()

        self.record.append(snapshot)
        logger.debug(
            f"Tick {self.record.ticks}: alt={snapshot.altitude:.2f}m vel={snapshot.velocity:.2f}m/s "
            f"fuel={snapshot.fuel:.1f}kg thrust={snapshot.thrust:g}%"
        )
        self.display.show_status(snapshot)
        return snapshot

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def _run_ticks(self) -> None:
        period = self.config.dt
        clock = asyncio.get_running_loop()
        # Ticks are scheduled against absolute deadlines so display and
        # command handling time does not accumulate as drift
        deadline = clock.time()
        while True:
            deadline += period
            await asyncio.sleep(max(0.0, deadline - clock.time()))
            snapshot = self.step()
            if snapshot.outcome is not Outcome.IN_FLIGHT:
                return
            if self.config.max_ticks is not None and self.record.ticks >= self.config.max_ticks:
                logger.warning(f"Tick limit {self.config.max_ticks} reached, aborting mission")
                return

    async def _accept_commands(self) -> None:
        while True:
            text = await self.commands.read_command()
            if text is None:
                logger.info("Command source closed during flight")
                return
            self.accept_input(text)

    async def fly(self) -> FlightReport:
        """Fly until touchdown or interruption.

        Returns:
            FlightReport with the terminal phase and final snapshot.

        Raises:
            SimulationInvariantError: If the physics step broke an invariant.
                self.report() still describes the last known state.
        """
        self._transition(MissionPhase.FLYING)
        logger.info(f"Flying: tick period {self.config.tick_rate_ms} ms, dt={self.config.dt:g}s")

        ticker = asyncio.create_task(self._run_ticks(), name="lander-ticks")
        listener = asyncio.create_task(self._accept_commands(), name="lander-commands")
        interrupt = asyncio.create_task(self.cancel.wait(), name="lander-interrupt")
        tasks = (ticker, listener, interrupt)

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            # Both producers must be stopped before anything reads the final state
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if ticker.done() and not ticker.cancelled() and ticker.exception() is not None:
            self._transition(MissionPhase.INTERRUPTED)
            raise ticker.exception()
        if listener.done() and not listener.cancelled() and listener.exception() is not None:
            logger.warning(f"Command source failed: {listener.exception()!r}")
            self.display.show_notice("Command link lost")

        outcome = self.simulation.outcome
        if outcome in _OUTCOME_PHASE:
            self._transition(_OUTCOME_PHASE[outcome])
        else:
            if self.cancel.is_set():
                logger.info("Mission aborted by operator")
            self._transition(MissionPhase.INTERRUPTED)

        logger.info(f"Mission ended: {self.phase.name} after {self.record.ticks} ticks")
        return self.report()

    def report(self) -> FlightReport:
        """Build a report from the last known state.

        Valid at any point; a mission that has not reached a terminal phase
        is reported as INTERRUPTED.
        """
        phase = self.phase if self.phase.is_terminal else MissionPhase.INTERRUPTED
        return FlightReport(phase=phase, final=self.simulation.status(), record=self.record)
