#!/usr/bin/env python3

import argparse
import json
import sys
from pathlib import Path

import config_loader
import monitor
import sampler
from logger import get_logger, setup_logging
from whistle_core import AcquisitionError, InvalidConfigError, SessionStatus

log = get_logger(__name__)

MENU = """
Whistle Counter – Main Menu
1) Count whistles
2) Cooking timer
3) Live sample (tune threshold)
4) Show configuration
5) Exit
"""


def _report_acquisition_error(e: AcquisitionError) -> None:
    log.error(f"Failed to start audio capture: {e}")
    print("\nTroubleshooting:", file=sys.stderr)
    print("  1. Check audio device: arecord -l", file=sys.stderr)
    print("  2. Verify audio.device in config.json matches hardware", file=sys.stderr)
    print("  3. Check permissions: groups (should include 'audio')", file=sys.stderr)
    print("  4. Stop other processes using the microphone", file=sys.stderr)


def show_config(config_path: Path = None) -> None:
    config = config_loader.load_config(config_path)
    print(json.dumps(config, indent=2))


def run_mode(args) -> int:
    mode = args.mode.lower()
    try:
        if mode == "listen":
            session = monitor.run_listen(args.config, target=args.target,
                                         visualize=not args.no_visualize)
            return 0 if session.status is SessionStatus.COMPLETED else 1
        elif mode == "timer":
            timer = monitor.run_timer(args.config, args.minutes, args.seconds)
            return 0 if timer.finished else 1
        elif mode == "sample":
            sampler.live_sample(args.config)
            return 0
        elif mode == "show-config":
            show_config(args.config)
            return 0
        else:
            print(f"Unknown mode: {mode}")
            return 2
    except InvalidConfigError as e:
        log.error(str(e))
        return 2
    except AcquisitionError as e:
        _report_acquisition_error(e)
        return 1


def interactive_menu(args) -> int:
    while True:
        print(MENU)
        choice = input("Choose an option: ").strip()

        try:
            if choice == "1":
                raw = input("Target whistles [3]: ").strip()
                target = int(raw) if raw else None
                monitor.run_listen(args.config, target=target)
            elif choice == "2":
                minutes = int(input("Minutes [10]: ").strip() or 10)
                seconds = int(input("Seconds [0]: ").strip() or 0)
                monitor.run_timer(args.config, minutes, seconds)
            elif choice == "3":
                sampler.live_sample(args.config)
            elif choice == "4":
                show_config(args.config)
            elif choice == "5":
                print("Goodbye.")
                return 0
            else:
                print("Invalid option.\n")
        except ValueError as e:
            # InvalidConfigError is a ValueError too
            print(f"Invalid input: {e}\n")
        except AcquisitionError as e:
            _report_acquisition_error(e)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Whistle Counter - count pressure-cooker whistles and ring an alarm",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 whistle_counter.py listen --target 3     # Count 3 whistles then ring
  python3 whistle_counter.py timer --minutes 10    # 10 minute countdown
  python3 whistle_counter.py sample                # Watch in-band peaks to tune threshold
  python3 whistle_counter.py listen --debug        # Verbose logging
  python3 whistle_counter.py                       # Interactive menu
        """
    )
    parser.add_argument("mode", nargs="?", help="Mode: listen, timer, sample, show-config")
    parser.add_argument("--config", type=Path, help="Path to config.json file")
    parser.add_argument("--target", type=int, help="Whistles to count (listen mode)")
    parser.add_argument("--minutes", type=int, help="Timer minutes")
    parser.add_argument("--seconds", type=int, help="Timer seconds")
    parser.add_argument("--no-visualize", action="store_true", help="Do not draw the live spectrum")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode (verbose logging)")

    args = parser.parse_args(argv)
    setup_logging(log_file=args.log_file, debug=args.debug)

    # If a mode is given, skip the menu and run directly
    if args.mode:
        return run_mode(args)

    return interactive_menu(args)


if __name__ == "__main__":
    sys.exit(main())
