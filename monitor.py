#!/usr/bin/env python3
"""
Whistle counting and cooking timer loops.

Wires the producer, session, visualizer and alarm together and drives them
from a single cooperative scheduler.
"""
from pathlib import Path
from typing import Optional

import config_loader
from logger import get_logger, log_startup_info
from whistle_core import (
    AlarmPlayer,
    CookingTimer,
    SessionListener,
    SessionStatus,
    SpectralFrameProducer,
    TerminalVisualizer,
    TickScheduler,
    WhistleCountSession,
    WhistleEvent,
)

log = get_logger(__name__)


class ConsoleListener(SessionListener):
    """Reports session progress on the console."""

    def whistle_detected(self, event: WhistleEvent, count: int, target: int) -> None:
        freq = f"{event.peak_frequency_hz:.0f} Hz" if event.peak_frequency_hz is not None else "n/a"
        log.info(f"WHISTLE {count}/{target} (peak {event.peak_value} at {freq})")

    def session_completed(self, count: int) -> None:
        log.info(f"DONE - {count} whistle(s) counted, turn off the stove!")

    def session_stopped(self) -> None:
        log.info("Stopped listening")


def build_session(config: dict, scheduler: TickScheduler, alarm: Optional[AlarmPlayer] = None,
                  visualize: bool = True) -> WhistleCountSession:
    """Create a session with its producer and sinks from configuration."""
    producer = SpectralFrameProducer(config, scheduler)
    sinks = []
    vis = config["visualization"]
    if visualize and vis["enabled"]:
        sinks.append(TerminalVisualizer(vis["width"], vis["height"]))

    return WhistleCountSession(
        producer,
        config_loader.detection_config_from(config),
        alarm=alarm if alarm is not None else AlarmPlayer(config),
        listeners=[ConsoleListener()],
        sinks=sinks,
    )


def run_listen(config_path: Optional[Path] = None, target: Optional[int] = None,
               visualize: bool = True) -> WhistleCountSession:
    """
    Listen until the target whistle count is reached or Ctrl+C.

    Args:
        config_path: Optional path to config.json (defaults to ./config.json)
        target: Whistles to count (defaults to session.target_count)
        visualize: Draw the live spectrum on stdout

    Raises:
        InvalidConfigError: bad configuration or target
        AcquisitionError: microphone unavailable
    """
    config = config_loader.load_config(config_path)
    if target is None:
        target = config["session"]["target_count"]

    scheduler = TickScheduler(config["scheduler"]["tick_interval_sec"])
    session = build_session(config, scheduler, visualize=visualize)
    log_startup_info(log, config, target)

    session.start_session(target)
    log.info("Press Ctrl+C to stop.")

    try:
        scheduler.run(lambda: session.status is SessionStatus.LISTENING)
    except KeyboardInterrupt:
        log.info("Stopping (Ctrl+C received)...")
    finally:
        completed = session.status is SessionStatus.COMPLETED
        if session.status is SessionStatus.LISTENING:
            session.stop_session()
        if not completed:
            log.info(f"Session ended before target ({target}) was reached")

    return session


def run_timer(config_path: Optional[Path] = None, minutes: Optional[int] = None,
              seconds: Optional[int] = None) -> CookingTimer:
    """
    Count down and sound the alarm at zero.

    Raises:
        InvalidConfigError: if the duration is not positive
    """
    config = config_loader.load_config(config_path)
    timer_config = config["timer"]
    if minutes is None:
        minutes = timer_config["default_minutes"]
    if seconds is None:
        seconds = timer_config["default_seconds"]

    timer = CookingTimer(alarm=AlarmPlayer(config))
    timer.start(minutes, seconds)
    scheduler = TickScheduler(tick_interval_sec=0.25)
    shown = {"value": None}

    def tick():
        timer.tick()
        text = timer.format_remaining()
        if text != shown["value"]:
            shown["value"] = text
            print(f"\r{text}", end="", flush=True)
        if timer.running:
            scheduler.request_tick(tick)

    scheduler.request_tick(tick)
    try:
        scheduler.run()
        print()
    except KeyboardInterrupt:
        print()
        timer.pause()
        log.info(f"Timer cancelled with {timer.format_remaining()} left")

    return timer
