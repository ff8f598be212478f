"""
Reboot invocation for Safe Plex Reboot.

This module hides the platform reboot behind a single :class:`Rebooter`
capability:
- :class:`SystemRebooter` tries a ranked list of reboot commands in order
- :class:`DryRunRebooter` only logs what would happen
"""

import os
import shutil
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from safe_plex_reboot.config import GuardConfig

logger = logging.getLogger(__name__)


class RebootError(Exception):
    """Raised when a reboot command runs but does not succeed."""
    pass


class RebootStrategy:
    """
    One way of rebooting the host.

    Attributes:
        executable (str): Absolute path, or a bare command name looked up on PATH
        args (List[str]): Arguments passed to the executable
        timeout (int): Seconds to wait for the command to return
    """

    def __init__(self, executable: str, args: Sequence[str] = (), timeout: int = 60):
        self.executable = executable
        self.args = list(args)
        self.timeout = timeout

    def resolve(self) -> Optional[str]:
        """
        Locate the executable.

        Returns:
            Path to run, or None if the strategy is not available here
        """
        if os.path.isabs(self.executable):
            if os.path.isfile(self.executable) and os.access(self.executable, os.X_OK):
                return self.executable
            return None
        return shutil.which(self.executable)

    def is_available(self) -> bool:
        return self.resolve() is not None

    def execute(self) -> None:
        """
        Run the reboot command.

        Raises:
            RebootError: If the command is missing or exits unsuccessfully
        """
        path = self.resolve()
        if path is None:
            raise RebootError(f"{self.executable} not found")

        cmd = [path] + self.args
        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or '').strip() or f"exit status {e.returncode}"
            raise RebootError(f"{' '.join(cmd)} failed: {detail}")
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RebootError(f"{' '.join(cmd)} failed: {e}")

    def __str__(self) -> str:
        return ' '.join([self.executable] + self.args)

    def __repr__(self) -> str:
        return f"RebootStrategy({self.executable!r}, {self.args!r})"


# Ranked from most to least preferred
DEFAULT_STRATEGIES = (
    RebootStrategy('/usr/bin/systemctl', ['reboot']),
    RebootStrategy('/bin/systemctl', ['reboot']),
    RebootStrategy('systemctl', ['reboot']),
    RebootStrategy('/sbin/reboot'),
    RebootStrategy('/usr/sbin/reboot'),
)


class Rebooter(ABC):
    """Capability to reboot the host."""

    @abstractmethod
    def reboot(self) -> bool:
        """
        Reboot the host.

        Returns:
            bool: True if a reboot was initiated (or simulated)
        """
        pass


class DryRunRebooter(Rebooter):
    """Logs the reboot instead of performing it."""

    def reboot(self) -> bool:
        logger.info("DRY RUN: Would reboot system now")
        return True


class SystemRebooter(Rebooter):
    """Reboots the host with the first reboot strategy that works."""

    def __init__(
        self,
        strategies: Optional[Sequence[RebootStrategy]] = None,
        sync_filesystems: bool = True
    ):
        """
        Initialize the system rebooter.

        Args:
            strategies: Reboot strategies in order of preference
            sync_filesystems: Whether to run ``sync`` before rebooting
        """
        self.strategies: List[RebootStrategy] = list(
            DEFAULT_STRATEGIES if strategies is None else strategies
        )
        self.sync_filesystems = sync_filesystems

    def reboot(self) -> bool:
        """
        Try each available strategy in order until one succeeds.

        Returns:
            bool: True if a reboot command succeeded, False if none did
        """
        logger.info("Initiating system reboot...")
        if self.sync_filesystems:
            self._sync()

        attempted = 0
        for strategy in self.strategies:
            if not strategy.is_available():
                logger.debug(f"Reboot method not available: {strategy}")
                continue

            attempted += 1
            try:
                logger.debug(f"Trying reboot method: {strategy}")
                strategy.execute()
                logger.info(f"Reboot initiated via {strategy}")
                return True
            except RebootError as e:
                logger.warning(f"Reboot method failed: {e}")

        if attempted == 0:
            logger.error("No reboot command found")
        else:
            logger.error(f"All reboot methods failed ({attempted} tried)")
        return False

    def _sync(self) -> None:
        """Flush filesystem buffers; failures are only logged."""
        sync_cmd = shutil.which('sync')
        if not sync_cmd:
            return
        logger.debug("Syncing filesystems...")
        try:
            subprocess.run([sync_cmd], check=True, capture_output=True, timeout=120)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Filesystem sync failed: {e}")


def create_rebooter(config: GuardConfig) -> Rebooter:
    """
    Pick the rebooter for this run.

    Args:
        config: Run configuration

    Returns:
        DryRunRebooter under ``--dry-run``, otherwise SystemRebooter
    """
    if config.dry_run:
        return DryRunRebooter()
    return SystemRebooter()
