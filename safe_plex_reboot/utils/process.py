"""
Process utilities for Safe Plex Reboot.

This module provides the helpers a cron-launched run needs:
- A predictable PATH and HOME
- Privilege detection
- Single instance enforcement
"""

import os
import pwd
import logging
from pathlib import Path
from typing import List, MutableMapping, Optional

import psutil

logger = logging.getLogger(__name__)

CRON_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"

# Names the tool can be started under
PROCESS_NAMES = ("safe-plex-reboot", "safe_plex_reboot")


def prepare_cron_environment(environ: Optional[MutableMapping[str, str]] = None) -> None:
    """
    Give the process the environment an interactive shell would have.

    Sets PATH to the standard system directories and fills HOME from the
    password database when it is unset.

    Args:
        environ: Environment to update (defaults to ``os.environ``)
    """
    environ = os.environ if environ is None else environ
    environ["PATH"] = CRON_PATH

    if not environ.get("HOME"):
        try:
            environ["HOME"] = pwd.getpwuid(os.getuid()).pw_dir
        except KeyError:
            logger.warning("Could not determine HOME directory for current user")


def is_root() -> bool:
    """Check whether the process runs with root privileges."""
    return os.geteuid() == 0


def _is_tool(arg: str) -> bool:
    return Path(arg).name in PROCESS_NAMES


def _is_python(arg: str) -> bool:
    return Path(arg).name.startswith("python")


def _matches_tool(cmdline: List[str]) -> bool:
    """
    Check whether a command line runs the tool itself.

    Only the program being executed counts: the console script as argv[0],
    a Python interpreter running the script, or ``python -m safe_plex_reboot``.
    Editors or package managers that merely name the script do not.
    """
    if not cmdline:
        return False
    if _is_tool(cmdline[0]):
        return True
    if not _is_python(cmdline[0]):
        return False

    args = cmdline[1:]
    for i, arg in enumerate(args):
        if arg == "-m":
            return i + 1 < len(args) and args[i + 1].split(".")[0] in PROCESS_NAMES
        if arg.startswith("-m") and len(arg) > 2:
            return arg[2:].split(".")[0] in PROCESS_NAMES
        if arg.startswith("-"):
            continue
        return _is_tool(arg)
    return False


def find_other_instances() -> List[int]:
    """
    Find other running instances of the tool.

    The current process and its ancestors are excluded, so a wrapping shell
    started by cron is not mistaken for a second instance.

    Returns:
        List of PIDs
    """
    current = psutil.Process()
    excluded = {current.pid}
    try:
        excluded.update(parent.pid for parent in current.parents())
    except psutil.Error as e:
        logger.debug(f"Could not list parent processes: {e}")

    pids = []
    for proc in psutil.process_iter(['pid', 'cmdline']):
        try:
            pid = proc.info['pid']
            cmdline = proc.info['cmdline'] or []
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if pid not in excluded and _matches_tool(cmdline):
            pids.append(pid)
    return pids


def check_single_instance() -> bool:
    """
    Check if another instance of the tool is running.

    Returns:
        bool: True if this is the only instance, False otherwise
    """
    try:
        other_pids = find_other_instances()
    except psutil.Error as e:
        logger.warning(f"Error checking for other instances: {e}")
        return True

    if other_pids:
        logger.warning(
            f"Another instance is running (PIDs: {', '.join(map(str, other_pids))})"
        )
        return False

    return True
