"""
Base service checker interface for Safe Plex Reboot.

This module defines the abstract base class for media-server session checkers.
It provides common functionality for polling, error handling and statistics
tracking.

A failed check is reported as ``None`` by :meth:`ServiceChecker.poll`, never as
a zero session count, so a network error can not authorize a reboot.

Example:
    class MyServerChecker(ServiceChecker):
        def test_connection(self):
            ...

        def check_activity(self):
            # Return the number of active playback sessions
            return 0
"""

from abc import ABC, abstractmethod
import logging
from datetime import datetime
from typing import Dict, Any, Optional

from safe_plex_reboot.config import GuardConfig


class ServiceCheckError(Exception):
    """Base exception class for service checker errors."""
    pass


class ServiceConnectionError(ServiceCheckError):
    """Raised when a service connection fails."""
    pass


class ServiceConfigError(ServiceCheckError):
    """Raised when service configuration is invalid."""
    pass


class ServiceResponseError(ServiceCheckError):
    """Raised when a service returns a response that can not be used."""
    pass


class ServiceChecker(ABC):
    """
    Abstract base class for session checkers.

    Attributes:
        config (GuardConfig): Run configuration
        logger (logging.Logger): Logger instance for this checker
        name (str): Service name derived from class name
        last_check (Optional[datetime]): Timestamp of last poll
        last_count (Optional[int]): Session count from the last successful poll
        total_checks (int): Total number of polls performed
        error_count (int): Number of failed polls
        last_error (Optional[Exception]): Most recent error encountered
        last_error_time (Optional[datetime]): Timestamp of most recent error
    """

    def __init__(self, config: GuardConfig):
        """
        Initialize service checker with configuration.

        Args:
            config: Run configuration

        Raises:
            ServiceConfigError: If required configuration is missing
        """
        self.config = config
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.name = self.__class__.__name__.replace('Checker', '')

        self.last_check: Optional[datetime] = None
        self.last_count: Optional[int] = None
        self.total_checks: int = 0
        self.error_count: int = 0
        self.last_error: Optional[Exception] = None
        self.last_error_time: Optional[datetime] = None

    @abstractmethod
    def test_connection(self) -> None:
        """
        Verify that the service is reachable with the configured credential.

        Raises:
            ServiceConnectionError: If the service can not be reached
        """
        pass

    @abstractmethod
    def check_activity(self) -> int:
        """
        Count active playback sessions.

        Returns:
            int: Number of active sessions (never negative)

        Raises:
            ServiceCheckError: If the check fails
        """
        pass

    def poll(self) -> Optional[int]:
        """
        Count sessions with error handling and statistics tracking.

        Returns:
            Optional[int]: Session count, or None if the check failed
        """
        self.total_checks += 1
        self.last_check = datetime.now()

        try:
            count = self.check_activity()
        except ServiceCheckError as e:
            self.error_count += 1
            self.last_error = e
            self.last_error_time = datetime.now()
            self.logger.debug(f"{self.name} check failed: {e}", exc_info=self.config.debug)
            return None

        self.last_count = count
        self.logger.debug(f"{self.name} reported {count} active session(s)")
        return count

    def validate_config(self) -> None:
        """
        Validate service configuration.

        Raises:
            ServiceConfigError: If the token or URL is missing
        """
        missing = [
            name for name, value in (('token', self.config.token), ('url', self.config.plex_url))
            if not value
        ]
        if missing:
            raise ServiceConfigError(
                f"Missing required configuration for {self.name}: {missing}"
            )

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get service checker statistics.

        Returns:
            Dict containing poll statistics
        """
        return {
            'name': self.name,
            'total_checks': self.total_checks,
            'error_count': self.error_count,
            'last_count': self.last_count,
            'last_check': self.last_check.isoformat() if self.last_check else None,
            'last_error': str(self.last_error) if self.last_error else None,
            'last_error_time': (
                self.last_error_time.isoformat()
                if self.last_error_time else None
            ),
        }

    def __str__(self) -> str:
        return f"{self.name} ServiceChecker"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"total_checks={self.total_checks}, "
            f"error_count={self.error_count})"
        )
