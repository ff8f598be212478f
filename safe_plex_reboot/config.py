"""
Configuration management for Safe Plex Reboot.

This module handles loading, validation, and management of configuration settings
from multiple sources: built-in defaults, ``KEY=value`` configuration files,
environment variables and command-line overrides. The merged result is frozen
into a :class:`GuardConfig` value that is passed explicitly to every component.
"""

import os
import sys
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, List, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_CONFIG: Dict[str, str] = {
    "PLEX_SERVER": "http://127.0.0.1:32400",
    "LOGFILE": "/var/log/update-logs/update.log",
    "CHECK_INTERVAL": "300",   # 5 minutes
    "MAX_WAIT_TIME": "7200",   # 2 hours
    "DEBUG": "false",
    "CONNECT_TIMEOUT": "10",
    "REQUEST_TIMEOUT": "30",
}

# Keys recognised in config files and the environment
CONFIG_KEYS = ("PLEX_TOKEN",) + tuple(DEFAULT_CONFIG)

CONFIG_FILE_NAME = "plex-reboot.conf"

TOKEN_HELP = "Get token from: Plex Web > Settings > Account > Show Advanced"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


class ConfigurationError(Exception):
    """Base exception for configuration-related errors."""
    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""
    pass


@dataclass(frozen=True)
class GuardConfig:
    """
    Immutable run configuration.

    Built once at startup by :class:`ConfigurationManager` and never mutated.
    """

    token: str
    plex_url: str = DEFAULT_CONFIG["PLEX_SERVER"]
    check_interval: int = 300
    max_wait_time: int = 7200
    log_file: str = DEFAULT_CONFIG["LOGFILE"]
    force: bool = False
    dry_run: bool = False
    debug: bool = False
    connect_timeout: int = 10
    request_timeout: int = 30
    config_sources: Tuple[str, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        # Keep the credential out of debug logs
        return (
            f"GuardConfig(plex_url={self.plex_url!r}, "
            f"check_interval={self.check_interval}, "
            f"max_wait_time={self.max_wait_time}, "
            f"log_file={self.log_file!r}, force={self.force}, "
            f"dry_run={self.dry_run}, debug={self.debug})"
        )


def default_search_paths(home: Optional[Path] = None) -> List[Path]:
    """
    Get the ordered list of standard configuration file locations.

    Args:
        home: Home directory override (defaults to ``Path.home()``)

    Returns:
        List of candidate paths, highest priority first
    """
    home = home or Path.home()
    script_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path.cwd()
    return [
        home / ".config" / CONFIG_FILE_NAME,
        script_dir / CONFIG_FILE_NAME,
        Path("/etc") / CONFIG_FILE_NAME,
        home / f".{CONFIG_FILE_NAME}",
    ]


def parse_config_text(text: str) -> Dict[str, str]:
    """
    Parse ``KEY=value`` lines.

    Blank lines and ``#`` comments are ignored, a leading ``export`` is
    tolerated and quotes around the value are stripped. When a key appears
    twice in one file the first occurrence wins.

    Args:
        text: Raw file contents

    Returns:
        Dict of parsed keys and values
    """
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip("\"'").strip()
        if key and key not in values:
            values[key] = value
    return values


def read_config_file(path: Path) -> Optional[Dict[str, str]]:
    """
    Read one configuration file.

    Returns:
        Parsed values, or None if the file is missing or unreadable
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.debug(f"Skipping unreadable config file {path}: {e}")
        return None
    return parse_config_text(text)


def resolve_token(
    environ: Mapping[str, str],
    file_values: Sequence[Tuple[Path, Dict[str, str]]],
    searched: Sequence[Path],
) -> str:
    """
    Resolve the Plex token.

    The ``PLEX_TOKEN`` environment variable wins; otherwise the first config
    file holding a non-empty ``PLEX_TOKEN`` is used.

    Args:
        environ: Environment mapping
        file_values: Parsed config files in search order
        searched: Every location that was searched, for the error message

    Returns:
        Non-empty token string

    Raises:
        ConfigurationError: If no source provides a token
    """
    token = (environ.get("PLEX_TOKEN") or "").strip()
    if token:
        logger.debug("Using PLEX_TOKEN from environment")
        return token

    for path, values in file_values:
        token = values.get("PLEX_TOKEN", "")
        if token:
            logger.debug(f"Using PLEX_TOKEN from {path}")
            return token

    locations = ", ".join(str(p) for p in searched)
    raise ConfigurationError(
        "PLEX_TOKEN not found in environment or config files. "
        f"Checked locations: {locations}. {TOKEN_HELP}"
    )


class ConfigurationManager:
    """Manages loading and validation of configuration settings."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        search_paths: Optional[List[Path]] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional explicit configuration file, searched first
            environ: Environment mapping (defaults to ``os.environ``)
            search_paths: Standard locations (defaults to ``default_search_paths()``)
        """
        self.config_path = config_path
        self.environ = os.environ if environ is None else environ
        self._load_paths = list(search_paths) if search_paths is not None else default_search_paths()
        if config_path:
            self._load_paths.insert(0, Path(config_path))

        self.config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self.sources: List[str] = []

    def load_config(
        self,
        force: bool = False,
        dry_run: bool = False,
        debug: bool = False,
    ) -> GuardConfig:
        """
        Load and validate configuration from all sources.

        Args:
            force: ``--force`` flag
            dry_run: ``--dry-run`` flag
            debug: ``--debug`` flag, ORed with the ``DEBUG`` setting

        Returns:
            Frozen GuardConfig

        Raises:
            ConfigurationError: If configuration cannot be loaded or validated
        """
        if self.config_path and not Path(self.config_path).is_file():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        file_values = self._load_from_files()
        self._load_from_env()

        token = resolve_token(self.environ, file_values, self._load_paths)

        return GuardConfig(
            token=token,
            plex_url=self._validate_url(self.config["PLEX_SERVER"]),
            check_interval=self._validate_int("CHECK_INTERVAL", minimum=1),
            max_wait_time=self._validate_int("MAX_WAIT_TIME", minimum=0),
            log_file=self.config["LOGFILE"],
            force=force,
            dry_run=dry_run,
            debug=debug or self._validate_bool("DEBUG"),
            connect_timeout=self._validate_int("CONNECT_TIMEOUT", minimum=1),
            request_timeout=self._validate_int("REQUEST_TIMEOUT", minimum=1),
            config_sources=tuple(self.sources),
        )

    def _load_from_files(self) -> List[Tuple[Path, Dict[str, str]]]:
        """Apply config files in search order; the first file defining a key wins."""
        loaded = []
        seen: set = set()
        for path in self._load_paths:
            values = read_config_file(path)
            if values is None:
                continue

            loaded.append((path, values))
            self.sources.append(str(path))
            for key, value in values.items():
                if key in DEFAULT_CONFIG and key not in seen and value:
                    self.config[key] = value
                    seen.add(key)
        return loaded

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        for key in DEFAULT_CONFIG:
            value = self.environ.get(key)
            if value is not None and value.strip():
                self.config[key] = value.strip()

    def _validate_url(self, url: str) -> str:
        if not url.startswith(("http://", "https://")):
            raise ConfigValidationError(f"Invalid URL format for PLEX_SERVER: {url}")
        return url.rstrip("/")

    def _validate_int(self, key: str, minimum: int) -> int:
        value = self.config.get(key)
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{key} must be an integer, got {value!r}")
        if number < minimum:
            raise ConfigValidationError(f"{key} must be >= {minimum}")
        return number

    def _validate_bool(self, key: str) -> bool:
        value = str(self.config.get(key, "")).strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ConfigValidationError(f"{key} must be true or false, got {value!r}")


def load_config(
    config_path: Optional[str] = None,
    force: bool = False,
    dry_run: bool = False,
    debug: bool = False,
) -> GuardConfig:
    """
    Load configuration from the standard sources.

    Args:
        config_path: Optional path to an extra configuration file
        force: ``--force`` flag
        dry_run: ``--dry-run`` flag
        debug: ``--debug`` flag

    Returns:
        Frozen GuardConfig

    Raises:
        ConfigurationError: If configuration cannot be loaded
    """
    manager = ConfigurationManager(config_path)
    return manager.load_config(force=force, dry_run=dry_run, debug=debug)
