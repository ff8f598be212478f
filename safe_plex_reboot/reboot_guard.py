"""
RebootGuard for Safe Plex Reboot.

This module holds the core decision logic:
- Polling the media server for active streams
- Waiting a fixed interval while streams are active or the check failed
- Forcing the reboot once the maximum wait time is reached
- Handing the final reboot to the configured rebooter
"""

import time
import logging
from enum import Enum
from typing import Callable, Optional

from safe_plex_reboot.config import GuardConfig
from safe_plex_reboot.rebooter import Rebooter
from safe_plex_reboot.services.base import ServiceChecker

logger = logging.getLogger(__name__)


class GuardOutcome(Enum):
    """Why the guard decided to reboot."""
    REBOOT = "reboot"
    TIMEOUT_REBOOT = "timeout_reboot"
    FORCED_REBOOT = "forced_reboot"


class RebootGuard:
    """Defers a reboot until the media server is idle or the wait ceiling is hit."""

    def __init__(
        self,
        config: GuardConfig,
        checker: ServiceChecker,
        rebooter: Rebooter,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the reboot guard.

        Args:
            config: Run configuration
            checker: Session checker for the media server
            rebooter: Capability used for the final reboot
            clock: Monotonic clock in seconds
            sleep: Function used to wait between polls
        """
        self.config = config
        self.checker = checker
        self.rebooter = rebooter
        self.clock = clock
        self.sleep = sleep

        self.check_interval = config.check_interval
        self.max_wait_time = config.max_wait_time

        self.outcome: Optional[GuardOutcome] = None
        self.polls = 0

    def wait_for_idle(self) -> GuardOutcome:
        """
        Poll until no streams are active or the maximum wait time is reached.

        A failed poll is treated like active streams. The wait ceiling is
        checked after every poll that did not report zero streams, so it
        always wins over a failing server.

        Returns:
            GuardOutcome.REBOOT or GuardOutcome.TIMEOUT_REBOOT
        """
        start_time = self.clock()

        while True:
            self.polls += 1
            active_streams = self.checker.poll()

            if active_streams is None:
                logger.warning(
                    f"Failed to check Plex streams ({self.checker.last_error}). Will retry..."
                )
            elif active_streams == 0:
                logger.info(
                    "No active Plex streams detected (count: 0). Proceeding with reboot."
                )
                return GuardOutcome.REBOOT
            else:
                logger.info(
                    f"{active_streams} active Plex stream(s) detected. Postponing reboot."
                )

            elapsed_time = self.clock() - start_time
            if elapsed_time >= self.max_wait_time:
                logger.warning(
                    f"Maximum wait time ({self.max_wait_time // 60} minutes) reached. "
                    "Proceeding with reboot."
                )
                return GuardOutcome.TIMEOUT_REBOOT

            logger.info(
                f"Waiting {self.check_interval // 60} minutes before next check... "
                f"(Total wait: {int(elapsed_time) // 60} min)"
            )
            self.sleep(self.check_interval)

    def run(self) -> bool:
        """
        Decide when to reboot, then reboot.

        With ``force`` set the stream check is skipped entirely.

        Returns:
            bool: Result of the rebooter
        """
        if self.config.force:
            logger.info("Force reboot requested, skipping stream check")
            self.outcome = GuardOutcome.FORCED_REBOOT
        else:
            self.outcome = self.wait_for_idle()

        logger.debug(f"Decision after {self.polls} poll(s): {self.outcome.value}")
        return self.rebooter.reboot()
