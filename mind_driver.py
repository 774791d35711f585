#!/usr/bin/env python3
"""
mind_driver.py — Build a random network and run it tick by tick.

Constructs a randomised ``NetworkState``, validates it once, then calls
``step()`` in a loop until cancelled (Ctrl-C, a ``threading.Event``) or
until ``max_ticks`` is reached.  Progress is logged at most once per
``report_interval`` seconds; the cadence is advisory only.

Usage:
    python3 mind_driver.py [--neurons N] [--seed S] [--ticks T]
                           [--report-interval SEC] [--config PATH]
                           [--dtype float32|float64] [--dashboard]
    python3 mind_driver.py --set-home PATH
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from mind_config import MindConfig, load_mind_config
from mind_monitoring import MindLogger, MonitoringDashboard, SnapshotPublisher
from mind_paths import get_config_path, read_conf, write_conf
from mind_state import NetworkState, random_state
from mind_step import step
from mind_validator import ValidationError, validate

logger = logging.getLogger("mind.driver")


@dataclass
class ReportingState:
    """Wall-clock bookkeeping for progress lines, kept out of the state."""

    last_printed_tick: int = 0
    next_print_time: float = 0.0


def maybe_report(
    state: NetworkState,
    reporting: ReportingState,
    now: float,
    interval: float,
    event_logger: Optional[MindLogger] = None,
) -> bool:
    """Log a progress line if the report time has come.

    Read-only with respect to ``state``.

    Returns:
        True if a line was logged.
    """
    if now < reporting.next_print_time:
        return False
    delta = state.tick - reporting.last_printed_tick
    logger.info("TICK: %d, DELTA: %d", state.tick, delta)
    if event_logger is not None:
        event_logger.log_event(
            "report",
            {"tick": state.tick, "delta": delta, "fired": int(state.fired.sum())},
        )
    reporting.last_printed_tick = state.tick
    reporting.next_print_time = now + interval
    return True


def build_state(config: MindConfig) -> NetworkState:
    """Random initial state from ``config.network``, validated.

    Raises:
        ValidationError: if the constructed state breaks an invariant.
        TypeError: if the configured dtype is not floating point.
    """
    net = config.network
    rng = np.random.default_rng(net.seed)
    state = random_state(net.neurons, rng, dtype=net.dtype)
    validate(state)
    return state


def run(
    state: NetworkState,
    config: Optional[MindConfig] = None,
    stop_event: Optional[threading.Event] = None,
    publisher: Optional[SnapshotPublisher] = None,
    clock: Callable[[], float] = time.monotonic,
    event_logger: Optional[MindLogger] = None,
) -> int:
    """Validate ``state`` once, then step it until stopped.

    Args:
        state: Network to run; mutated in place.
        config: Driver settings (defaults if None).
        stop_event: Checked between ticks; set it to stop the loop.
        publisher: Receives a snapshot every ``snapshot_every`` ticks.
        clock: Monotonic time source used for report cadence.
        event_logger: Optional rotating JSON event log.

    Returns:
        Number of ticks executed by this call.

    Raises:
        ValidationError: if ``state`` is invalid before the first tick.
    """
    cfg = (config or MindConfig()).driver
    validate(state)

    logger.info(
        "NEURONS: %d. LINKS: %d", state.size, state.outputs_weights.size
    )
    if event_logger is not None:
        event_logger.log_event(
            "start", {"neurons": state.size, "tick": state.tick}
        )

    reporting = ReportingState(last_printed_tick=state.tick)
    snapshot_every = max(1, cfg.snapshot_every)
    ticks = 0
    while stop_event is None or not stop_event.is_set():
        if cfg.max_ticks is not None and ticks >= cfg.max_ticks:
            break
        step(state)
        ticks += 1
        if publisher is not None and ticks % snapshot_every == 0:
            publisher.publish(state)
        maybe_report(state, reporting, clock(), cfg.report_interval, event_logger)

    if publisher is not None:
        publisher.publish(state)
    if event_logger is not None:
        event_logger.log_event("stop", {"tick": state.tick, "ticks_run": ticks})
    logger.info("Stopped at tick %d after %d ticks", state.tick, ticks)
    return ticks


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a randomly initialised spiking network"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(get_config_path()),
        help="JSON configuration file (missing file is ignored)",
    )
    parser.add_argument("--neurons", type=int, help="Number of neurons")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument(
        "--ticks", type=int, help="Stop after this many ticks (default: run forever)"
    )
    parser.add_argument(
        "--report-interval", type=float, help="Seconds between progress lines"
    )
    parser.add_argument(
        "--dtype", choices=("float32", "float64"), help="Floating point precision"
    )
    parser.add_argument(
        "--dashboard", action="store_true", help="Serve /health and /stats over HTTP"
    )
    parser.add_argument(
        "--event-log", action="store_true", help="Write JSON-line events to the log dir"
    )
    parser.add_argument(
        "--set-home",
        metavar="PATH",
        help="Record PATH as the Mind home directory in ~/.mind.conf and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> MindConfig:
    network = {
        key: value
        for key, value in (
            ("neurons", args.neurons),
            ("seed", args.seed),
            ("dtype", args.dtype),
        )
        if value is not None
    }
    driver = {
        key: value
        for key, value in (
            ("max_ticks", args.ticks),
            ("report_interval", args.report_interval),
        )
        if value is not None
    }
    monitoring = {}
    if args.dashboard:
        monitoring["http_enabled"] = True
    if args.event_log:
        monitoring["event_log_enabled"] = True
    return load_mind_config(
        {"network": network, "driver": driver, "monitoring": monitoring},
        config_path=args.config,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    if args.set_home:
        conf_path = write_conf(args.set_home)
        logger.info("Mind home set to %s in %s", read_conf(str(conf_path)), conf_path)
        return 0

    config = _config_from_args(args)

    try:
        state = build_state(config)
    except (ValidationError, TypeError, ValueError) as exc:
        logger.error("Initial state is invalid: %s", exc)
        return 1

    publisher = SnapshotPublisher()
    dashboard = MonitoringDashboard(config, publisher)
    event_logger = MindLogger(config) if config.monitoring.event_log_enabled else None
    stop_event = threading.Event()

    dashboard.start()
    try:
        run(state, config, stop_event, publisher, event_logger=event_logger)
    except KeyboardInterrupt:
        stop_event.set()
        logger.info("Interrupted at tick %d", state.tick)
    finally:
        dashboard.stop()
        if event_logger is not None:
            event_logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
