"""
Utilities module for evmscope.

Provides exception handling, logging, colors, and helper functions.
"""

from .exceptions import (
    EvmscopeError,
    ConfigurationError,
    RPCConnectionError,
    RPCError,
    TransactionError,
    TransactionNotFoundError,
    DebugTraceUnavailableError,
    InvalidArgumentError,
    MetadataFetchError,
    format_error,
    format_error_json,
    format_exception_message,
)
from .logging import setup_logging, get_logger, logger
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    error, info,
)
from .helpers import (
    ZERO_ADDRESS,
    strip_0x,
    parse_quantity,
    is_zero_address,
    format_gas,
    truncate_hex,
    decode_revert_reason,
)

__all__ = [
    # Exceptions
    'EvmscopeError',
    'ConfigurationError',
    'RPCConnectionError',
    'RPCError',
    'TransactionError',
    'TransactionNotFoundError',
    'DebugTraceUnavailableError',
    'InvalidArgumentError',
    'MetadataFetchError',
    # Formatting
    'format_error',
    'format_error_json',
    'format_exception_message',
    # Logging
    'setup_logging',
    'get_logger',
    'logger',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'error', 'info',
    # Helpers
    'ZERO_ADDRESS',
    'strip_0x',
    'parse_quantity',
    'is_zero_address',
    'format_gas',
    'truncate_hex',
    'decode_revert_reason',
]
