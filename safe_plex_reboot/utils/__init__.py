"""
Safe Plex Reboot Utilities Package
----------------------------------

Helpers for running from cron: environment preparation, privilege checks and
single instance enforcement.
"""

from .process import (
    CRON_PATH,
    prepare_cron_environment,
    is_root,
    find_other_instances,
    check_single_instance
)

__all__ = [
    'CRON_PATH',
    'prepare_cron_environment',
    'is_root',
    'find_other_instances',
    'check_single_instance',
]
