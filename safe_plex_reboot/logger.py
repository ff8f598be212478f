"""
Logging configuration for Safe Plex Reboot.

This module provides the logging setup used by the command-line tool:
- Timestamped console output on stdout with optional colors
- Append-only file logging that reopens the log file for every record
- Automatic creation of the log directory
"""

import copy
import sys
import logging
from pathlib import Path
from typing import Optional, TextIO

from safe_plex_reboot.config import GuardConfig

APP_LOGGER = "safe_plex_reboot"

LOG_FORMAT = '[%(asctime)s] %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# ANSI color codes for console output
COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[41m',  # Red background
    'RESET': '\033[0m'       # Reset
}


class ColoredFormatter(logging.Formatter):
    """Custom formatter for colored console output."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
        stream: Optional[TextIO] = None
    ):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string
            use_colors: Whether to enable colored output
            stream: Stream the output goes to; colors need a terminal
        """
        super().__init__(fmt, datefmt)
        stream = stream or sys.stdout
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with an optionally colored level name."""
        if self.use_colors and record.levelname in COLORS:
            # Work on a copy so the file handler never sees escape codes
            record = copy.copy(record)
            record.levelname = f"{COLORS[record.levelname]}{record.levelname}{COLORS['RESET']}"
        return super().format(record)


class AppendFileHandler(logging.Handler):
    """
    File handler that opens the log in append mode for every record.

    Nothing is held open between records, so other writers and log rotation
    can touch the file at any time.
    """

    def __init__(self, filename: str, encoding: str = 'utf-8'):
        super().__init__()
        self.baseFilename = str(Path(filename))
        self.encoding = encoding

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            with open(self.baseFilename, 'a', encoding=self.encoding) as f:
                f.write(msg + '\n')
        except Exception:
            self.handleError(record)


class LogManager:
    """Manages logging configuration and setup."""

    def __init__(
        self,
        log_file: Optional[str],
        debug: bool = False,
        app_name: str = APP_LOGGER,
        stream: Optional[TextIO] = None
    ):
        """
        Initialize the log manager.

        Args:
            log_file: Path of the append-only log file, or None for console only
            debug: Whether to log at DEBUG level
            app_name: Application logger name
            stream: Console stream (defaults to stdout)
        """
        self.app_name = app_name
        self.logger = logging.getLogger(app_name)
        self.stream = stream or sys.stdout

        self.log_level = logging.DEBUG if debug else logging.INFO
        self.log_file = log_file

    def setup(self) -> None:
        """Set up logging configuration with all configured handlers."""
        self.logger.setLevel(self.log_level)
        self.logger.propagate = False

        # Remove any existing handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)

        self._setup_console_handler()
        if self.log_file:
            self._setup_file_handler()

    def _setup_console_handler(self) -> None:
        """Set up console (stdout) logging handler."""
        console_handler = logging.StreamHandler(self.stream)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(ColoredFormatter(
            fmt=LOG_FORMAT,
            datefmt=DATE_FORMAT,
            stream=self.stream
        ))
        self.logger.addHandler(console_handler)

    def _setup_file_handler(self) -> None:
        """Set up append-only file logging, skipping it if the path is not writable."""
        log_path = Path(self.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(log_path, 'a', encoding='utf-8'):
                pass
        except OSError as e:
            sys.stderr.write(
                f"Warning: Cannot write log file {log_path}: {e}. "
                "Logging to console only.\n"
            )
            return

        file_handler = AppendFileHandler(str(log_path))
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        self.logger.addHandler(file_handler)

    def get_current_log_file(self) -> Optional[str]:
        """
        Get path of current log file.

        Returns:
            Path to current log file or None if no file handler
        """
        for handler in self.logger.handlers:
            if isinstance(handler, AppendFileHandler):
                return handler.baseFilename
        return None


def setup_logging(
    config: GuardConfig,
    app_name: str = APP_LOGGER,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        config: Run configuration
        app_name: Application name for logger
        stream: Console stream (defaults to stdout)

    Returns:
        Configured logger instance
    """
    manager = LogManager(config.log_file, config.debug, app_name, stream)
    manager.setup()
    return manager.logger
