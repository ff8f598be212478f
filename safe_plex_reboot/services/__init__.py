"""
Safe Plex Reboot Services Package
---------------------------------

This package provides the media-server session checkers consulted before a
reboot. Checkers are looked up by name in a small registry so that other
servers can be plugged in.

Available service checkers:
- PlexChecker: Counts active Plex playback sessions
"""

import logging
from typing import Dict, Type, Optional

from safe_plex_reboot.config import GuardConfig
from safe_plex_reboot.services.base import (
    ServiceChecker,
    ServiceCheckError,
    ServiceConfigError,
    ServiceConnectionError,
    ServiceResponseError
)
from safe_plex_reboot.services.plex import PlexChecker, count_session_entries

logger = logging.getLogger(__name__)

# Registry of available service checkers
SERVICE_CHECKERS: Dict[str, Type[ServiceChecker]] = {
    'plex': PlexChecker,
}


def register_service_checker(name: str, checker_class: Type[ServiceChecker]) -> None:
    """
    Register a new service checker.

    Args:
        name: Service identifier
        checker_class: ServiceChecker subclass to register

    Raises:
        ValueError: If checker_class is not a ServiceChecker subclass
    """
    if not isinstance(checker_class, type) or not issubclass(checker_class, ServiceChecker):
        raise ValueError("Checker class must inherit from ServiceChecker")

    SERVICE_CHECKERS[name] = checker_class
    logger.debug(f"Registered service checker: {name}")


def get_service_checker(name: str) -> Optional[Type[ServiceChecker]]:
    """Get a service checker class by name, or None if unknown."""
    return SERVICE_CHECKERS.get(name)


def create_service_checker(config: GuardConfig, name: str = 'plex') -> ServiceChecker:
    """
    Create the session checker for the configured media server.

    Args:
        config: Run configuration
        name: Service identifier

    Returns:
        ServiceChecker instance

    Raises:
        ServiceConfigError: If the service is unknown or misconfigured
    """
    checker_class = get_service_checker(name)
    if checker_class is None:
        raise ServiceConfigError(f"Unknown service: {name}")
    return checker_class(config)


__all__ = [
    # Base classes and exceptions
    'ServiceChecker',
    'ServiceCheckError',
    'ServiceConfigError',
    'ServiceConnectionError',
    'ServiceResponseError',

    # Service checkers
    'PlexChecker',
    'count_session_entries',

    # Service management functions
    'create_service_checker',
    'register_service_checker',
    'get_service_checker',

    # Service registry
    'SERVICE_CHECKERS'
]
