"""
Common utilities for CLI commands.
"""

import sys

from evmscope.config import Settings
from evmscope.utils.colors import info
from evmscope.utils.exceptions import ConfigurationError, format_error
from evmscope.utils.logging import logger


def settings_from_args(args) -> Settings:
    """
    Resolve settings from the environment, then apply command-line overrides.

    Args:
        args: Parsed command arguments

    Returns:
        Settings for this invocation

    Raises:
        ConfigurationError: An environment value or flag is out of range
    """
    max_lines = getattr(args, 'max_lines', None)
    if max_lines is not None and max_lines < 1:
        raise ConfigurationError(f"--max-lines must be positive, got {max_lines}", setting='--max-lines')

    settings = Settings.from_env()
    return settings.override(
        rpc_url=getattr(args, 'rpc_url', None),
        api_url=getattr(args, 'api_url', None),
        debug=True if getattr(args, 'debug', False) else None,
        trace_max_lines=max_lines,
        log_file=getattr(args, 'log_file', None),
    )


def handle_command_error(e: Exception, json_mode: bool = False, exit_code: int = 1) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    logger.debug(f"Command failed: {type(e).__name__}: {e}")
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code


def print_connection_info(rpc_url: str, json_mode: bool = False) -> None:
    """Print the RPC endpoint on stderr unless output is JSON."""
    if not json_mode:
        print(f"Connecting to RPC: {info(rpc_url)}", file=sys.stderr)
