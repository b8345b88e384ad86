"""Command-line entry point for the lunar landing game.

Usage:
    lunar-lander                          # defaults: 1000 m, 50 m/s, 1200 kg, 5 m/s
    lunar-lander --altitude 500 --fuel 600
    lunar-lander --ask                    # prompt for each parameter
    lunar-lander --tick-rate 250 --log-level DEBUG

Ctrl-C aborts the descent; the last known state is still reported.
Exit status is 0 for any finished mission (landed, crashed or aborted) and 1
only for an internal fault.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import TextIO

from lander.console import Console, ConsoleConfig, StdinCommandSource, ask_parameters
from lander.control.intake import parameters_from_inputs
from lander.control.loop import CommandSource, ControlLoop, FlightReport, LoopConfig
from lander.simulation.vehicle import MissionParameters, VehicleSimulation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lunar-lander",
        description="Real-time lunar descent: set thrust each second and touch down softly.",
    )
    parser.add_argument("--altitude", metavar="M", help="Initial altitude [m] (default: 1000)")
    parser.add_argument("--velocity", metavar="M/S", help="Initial descent rate [m/s] (default: 50)")
    parser.add_argument("--fuel", metavar="KG", help="Initial fuel [kg] (default: 1200)")
    parser.add_argument("--safe-speed", metavar="M/S", help="Safe landing speed [m/s] (default: 5)")
    parser.add_argument(
        "--ask",
        action="store_true",
        help="Prompt for mission parameters instead of reading options",
    )
    parser.add_argument(
        "--tick-rate",
        type=int,
        default=1000,
        metavar="MS",
        help="Tick period and physics step [ms] (default: 1000)",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=None,
        help="Abort after this many ticks (default: no limit)",
    )
    parser.add_argument(
        "--countdown",
        type=int,
        default=3,
        metavar="S",
        help="Countdown length [s], 0 to skip (default: 3)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colors",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Diagnostic log level, written to stderr (default: WARNING)",
    )
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_mission(control: ControlLoop, console: Console, parameters: MissionParameters) -> FlightReport:
    """Countdown, then fly. SIGINT sets the loop's cancellation token."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, control.interrupt)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # No loop signal support (Windows); Ctrl-C surfaces as KeyboardInterrupt
        handler_installed = False

    try:
        console.show_briefing(parameters)
        if not await control.countdown(console.countdown()):
            return control.report()
        console.show_handover(parameters)
        console.show_status(control.simulation.status())
        return await control.fly()
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def main(
    argv: list[str] | None = None,
    commands: CommandSource | None = None,
    stream: TextIO | None = None,
) -> int:
    """Run one mission.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])
        commands: Pilot input source (default: stdin)
        stream: Output stream (default: stdout)

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        loop_config = LoopConfig(tick_rate_ms=args.tick_rate, max_ticks=args.max_ticks)
    except ValueError as e:
        parser.error(str(e))

    console = Console(
        ConsoleConfig(color=not args.no_color, countdown_s=max(0, args.countdown)),
        stream=stream,
    )

    if args.ask:
        raw = ask_parameters()
    else:
        raw = {
            "altitude": args.altitude,
            "velocity": args.velocity,
            "fuel": args.fuel,
            "safe_speed": args.safe_speed,
        }
    parameters, notices = parameters_from_inputs(**raw)
    for notice in notices:
        console.show_notice(notice)

    control = ControlLoop(
        VehicleSimulation(parameters),
        commands or StdinCommandSource(out=console.stream),
        console,
        loop_config,
    )

    try:
        report = asyncio.run(run_mission(control, console, parameters))
    except KeyboardInterrupt:
        logger.info("Interrupted by keyboard")
        report = control.report()
    except Exception:
        logger.exception("Internal fault during mission")
        console.show_report(control.report())
        return 1

    console.show_report(report)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Flight record:\n{report.record.to_dataframe()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
