"""
Logging for evmscope.

Everything is written to stderr: in `serve` mode stdout is the MCP stdio
transport, and in `trace` mode it carries the report. The level comes from
the resolved Settings (DEBUG=true) and the CLI flags; `--verbose` adds the
TRACE level, which dumps raw JSON-RPC responses.
"""

import logging
import sys
from typing import TYPE_CHECKING, Optional

from evmscope.utils.colors import Colors

if TYPE_CHECKING:
    from evmscope.config import Settings

TRACE = 5
logging.addLevelName(TRACE, 'TRACE')

ROOT_LOGGER = 'evmscope'

# Third-party loggers that are chatty at INFO (per-request lines from the
# MCP SDK and the HTTP clients underneath web3 and requests).
LIBRARY_LOGGERS = ('mcp', 'httpx', 'urllib3', 'web3')

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


class EvmscopeLogger(logging.Logger):
    """Logger with a `trace` method below DEBUG."""

    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)


logging.setLoggerClass(EvmscopeLogger)


class LevelColorFormatter(logging.Formatter):
    """Colors the level name only; the message is left untouched."""

    COLORS = {
        TRACE: Colors.DIM,
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.BRIGHT_CYAN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno)
        if not color:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{Colors.RESET}"
        return super().format(colored)


def resolve_level(settings: 'Settings', base_level: int = logging.WARNING, verbose: bool = False) -> int:
    """TRACE for --verbose, DEBUG when settings.debug is on, else `base_level`."""
    if verbose:
        return TRACE
    if settings.debug:
        return logging.DEBUG
    return base_level


def _console_handler(level: int, use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if use_colors and getattr(sys.stderr, 'isatty', lambda: False)():
        handler.setFormatter(LevelColorFormatter(CONSOLE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(path)
    handler.setLevel(TRACE)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logging(
    settings: 'Settings',
    base_level: int = logging.WARNING,
    quiet: bool = False,
    verbose: bool = False,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the `evmscope` logger for one CLI or server run.

    Args:
        settings: Resolved settings; `debug` and `log_file` are read from here
        base_level: Level used when neither debug nor verbose applies
        quiet: Drop the console handler (the log file, if any, is kept)
        verbose: Enable TRACE and let library loggers through at DEBUG
        use_colors: Color level names when stderr is a terminal

    Returns:
        The configured `evmscope` logger
    """
    level = resolve_level(settings, base_level, verbose)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = False

    if not quiet:
        logger.addHandler(_console_handler(level, use_colors))
    if settings.log_file:
        logger.addHandler(_file_handler(settings.log_file))
        # The file receives everything regardless of the console level.
        level = TRACE
    logger.setLevel(level)

    library_level = logging.DEBUG if verbose else logging.WARNING
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """`evmscope` logger, or its `evmscope.<name>` child."""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER}.{name}')
    return logging.getLogger(ROOT_LOGGER)


logger = get_logger()
