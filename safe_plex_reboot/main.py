#!/usr/bin/env python3

"""
Safe Plex Reboot - Main Entry Point
-----------------------------------

This module serves as the main entry point for the Safe Plex Reboot tool.
It handles command-line arguments, sets up logging, verifies the Plex server
and hands control to the RebootGuard.

Exit codes:
    0   reboot initiated (or simulated with --dry-run)
    1   configuration, connectivity or reboot failure
    130 interrupted by SIGINT/SIGTERM
"""

import sys
import signal
import logging
import argparse
from typing import List, Optional

from safe_plex_reboot.version import __version__
from safe_plex_reboot.config import ConfigurationManager, ConfigurationError
from safe_plex_reboot.logger import LogManager, setup_logging
from safe_plex_reboot.rebooter import create_rebooter
from safe_plex_reboot.reboot_guard import RebootGuard
from safe_plex_reboot.services import (
    ServiceCheckError,
    ServiceConnectionError,
    create_service_checker
)
from safe_plex_reboot.utils.process import (
    check_single_instance,
    is_root,
    prepare_cron_environment
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

logger = logging.getLogger(__name__)


class GuardInterrupted(BaseException):
    """Raised from the signal handler to abandon the current wait or poll."""

    def __init__(self, signo: int):
        super().__init__(signo)
        self.signo = signo


class GracefulExit:
    """Context manager that turns SIGINT/SIGTERM into GuardInterrupted."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self):
        self._previous = {}

    def _interrupt(self, signo: int, frame) -> None:
        raise GuardInterrupted(signo)

    def __enter__(self):
        for signo in self.SIGNALS:
            self._previous[signo] = signal.signal(signo, self._interrupt)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for signo, handler in self._previous.items():
            signal.signal(signo, handler)
        self._previous.clear()
        return False


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='safe-plex-reboot',
        description='Checks Plex for active streams before rebooting the host'
    )

    mode_group = parser.add_argument_group('Operation Modes')
    mode_group.add_argument(
        '--force',
        help='Skip stream check and reboot immediately',
        action='store_true'
    )
    mode_group.add_argument(
        '--dry-run',
        help='Show what would happen without rebooting',
        action='store_true'
    )
    mode_group.add_argument(
        '--check-only',
        help='Report the current stream count and exit without rebooting',
        action='store_true'
    )

    config_group = parser.add_argument_group('Configuration')
    config_group.add_argument(
        '-c', '--config',
        help='Extra configuration file, searched before the standard locations',
        type=str,
        default=None
    )

    debug_group = parser.add_argument_group('Debugging')
    debug_group.add_argument(
        '--debug',
        help='Enable detailed debug logging',
        action='store_true'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


def check_only(checker) -> int:
    """
    Poll once and report the stream count.

    Returns:
        Exit status
    """
    count = checker.poll()
    if count is None:
        logger.error(f"Failed to check Plex streams: {checker.last_error}")
        return EXIT_FAILURE
    logger.info(f"{count} active Plex stream(s)")
    return EXIT_OK


def run(args: argparse.Namespace) -> int:
    """
    Run the tool with parsed arguments.

    SIGINT/SIGTERM are handled for the whole run, configuration loading
    included.

    Returns:
        Exit status
    """
    try:
        with GracefulExit():
            return _run_guarded(args)

    except GuardInterrupted:
        logger.warning("Script terminated by user")
        return EXIT_INTERRUPTED
    except ServiceCheckError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except Exception:
        logger.exception("Unexpected error occurred")
        return EXIT_FAILURE


def _run_guarded(args: argparse.Namespace) -> int:
    manager = ConfigurationManager(args.config)
    try:
        config = manager.load_config(
            force=args.force,
            dry_run=args.dry_run,
            debug=args.debug
        )
    except ConfigurationError as e:
        # Log to wherever the partial configuration points
        LogManager(manager.config.get('LOGFILE'), args.debug).setup()
        logger.error(str(e))
        return EXIT_FAILURE

    setup_logging(config)
    logger.info("############### Safe Plex Reboot Started ###############")
    logger.debug(f"Configuration: {config!r}")
    if config.config_sources:
        logger.debug(f"Config files read: {', '.join(config.config_sources)}")

    if not check_single_instance():
        logger.error("Another safe-plex-reboot run is in progress. Exiting.")
        return EXIT_FAILURE

    if not is_root() and not config.dry_run:
        logger.warning("Not running as root. Reboot command may fail.")

    checker = create_service_checker(config)
    try:
        checker.test_connection()
    except ServiceConnectionError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    logger.info("Plex server connectivity verified")

    if args.check_only:
        return check_only(checker)

    guard = RebootGuard(config, checker, create_rebooter(config))
    if not guard.run():
        return EXIT_FAILURE

    logger.debug(f"Checker statistics: {checker.get_statistics()}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)
    prepare_cron_environment()
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
