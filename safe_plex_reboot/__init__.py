"""
Safe Plex Reboot
----------------

Reboots a host only once its Plex Media Server has no active streams, or once
a maximum wait time has passed.

Example:
    >>> from safe_plex_reboot import load_config, create_service_checker, create_rebooter, RebootGuard
    >>> config = load_config(dry_run=True)
    >>> checker = create_service_checker(config)
    >>> guard = RebootGuard(config, checker, create_rebooter(config))
    >>> guard.run()
"""

import logging

from safe_plex_reboot.version import __version__
from safe_plex_reboot.config import (
    load_config,
    ConfigurationError,
    ConfigValidationError,
    ConfigurationManager,
    GuardConfig,
    DEFAULT_CONFIG
)
from safe_plex_reboot.logger import setup_logging, LogManager
from safe_plex_reboot.services import (
    ServiceChecker,
    ServiceCheckError,
    ServiceConnectionError,
    PlexChecker,
    create_service_checker
)
from safe_plex_reboot.rebooter import (
    Rebooter,
    RebootStrategy,
    SystemRebooter,
    DryRunRebooter,
    create_rebooter
)
from safe_plex_reboot.reboot_guard import RebootGuard, GuardOutcome

# Package metadata
__title__ = "safe-plex-reboot"
__license__ = "MIT"

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = [
    # Core components
    "RebootGuard",
    "GuardOutcome",
    "load_config",
    "setup_logging",
    "ConfigurationManager",
    "ConfigurationError",
    "ConfigValidationError",
    "GuardConfig",
    "DEFAULT_CONFIG",
    "LogManager",

    # Service components
    "ServiceChecker",
    "ServiceCheckError",
    "ServiceConnectionError",
    "PlexChecker",
    "create_service_checker",

    # Reboot components
    "Rebooter",
    "RebootStrategy",
    "SystemRebooter",
    "DryRunRebooter",
    "create_rebooter",

    # Version and metadata
    "__version__",
    "__title__",
    "__license__",
]
