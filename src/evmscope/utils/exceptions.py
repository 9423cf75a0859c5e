"""
Custom exceptions for evmscope.

This module provides a hierarchy of exceptions for the failure modes of
the RPC and tool layers, along with utilities for formatting errors
consistently. The trace decoding core does not raise these past its own
boundary; it degrades to raw selectors and hex instead.
"""

import json
from typing import Any, Dict, Optional


class EvmscopeError(Exception):
    """
    Base exception for all evmscope errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(EvmscopeError):
    """Raised when a setting is missing or malformed."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        details = {"setting": setting} if setting else {}
        details.update(kwargs)
        super().__init__(message, details, "ConfigurationError")


# ============================================================================
# Connection Errors
# ============================================================================

class RPCConnectionError(EvmscopeError):
    """Raised when RPC connection fails."""

    def __init__(self, message: str, rpc_url: Optional[str] = None, **kwargs):
        details = {"rpc_url": rpc_url} if rpc_url else {}
        details.update(kwargs)
        super().__init__(message, details, "RPCConnectionError")


class RPCError(EvmscopeError):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(
        self,
        method: str,
        message: str,
        code: Optional[int] = None,
        **kwargs
    ):
        details = {"method": method}
        if code is not None:
            details["code"] = code
        details.update(kwargs)
        super().__init__(f"{method} failed: {message}", details, "RPCError")
        self.rpc_message = message
        self.code = code


# ============================================================================
# Transaction Errors
# ============================================================================

class TransactionError(EvmscopeError):
    """Raised when transaction operations fail."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        details.update(kwargs)
        super().__init__(message, details, "TransactionError")


class TransactionNotFoundError(TransactionError):
    """Raised when transaction is not found."""

    def __init__(self, tx_hash: str, **kwargs):
        super().__init__(
            f"Transaction not found: {tx_hash}",
            tx_hash=tx_hash,
            **kwargs
        )
        self.error_code = "TransactionNotFoundError"


class DebugTraceUnavailableError(TransactionError):
    """Raised when debug trace is not available for a transaction."""

    def __init__(
        self,
        tx_hash: str,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"debug_traceTransaction unavailable for {tx_hash}"
        if reason:
            message += f": {reason}"
        super().__init__(message, tx_hash=tx_hash, **kwargs)
        self.error_code = "DebugTraceUnavailable"


# ============================================================================
# Tool Argument Errors
# ============================================================================

class InvalidArgumentError(EvmscopeError):
    """Raised when a tool argument is missing or malformed."""

    def __init__(
        self,
        argument: str,
        reason: str,
        value: Optional[Any] = None,
        **kwargs
    ):
        details = {"argument": argument}
        if value is not None:
            details["value"] = str(value)
        details.update(kwargs)
        super().__init__(f"Invalid argument '{argument}': {reason}", details, "InvalidArgumentError")


# ============================================================================
# Metadata Errors
# ============================================================================

class MetadataFetchError(EvmscopeError):
    """
    Raised inside the metadata resolver when a lookup cannot produce an ABI.

    Never escapes ContractMetadataResolver.fetch(); it only carries the
    reason to the debug log before the address is cached as unavailable.
    """

    def __init__(self, address: str, reason: str, **kwargs):
        details = {"address": address, "reason": reason}
        details.update(kwargs)
        super().__init__(f"Contract metadata unavailable for {address}: {reason}", details, "MetadataFetchError")


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from evmscope.utils.colors import error

    if isinstance(e, EvmscopeError):
        if json_mode:
            return e.to_json()
        return error(e.message)
    if json_mode:
        return json.dumps(format_error_json(format_exception_message(e), type(e).__name__), indent=2)
    return error(format_exception_message(e))


def format_error_json(
    message: str,
    error_type: str = "Error",
    **kwargs
) -> Dict[str, Any]:
    """
    Create a standardized error JSON structure.

    Args:
        message: Error message
        error_type: Error type/code
        **kwargs: Additional fields to include

    Returns:
        Dictionary suitable for JSON output
    """
    return {
        "error": True,
        "type": error_type,
        "message": message,
        **kwargs
    }


def format_exception_message(e: Exception) -> str:
    """
    Extract a clean, user-friendly error message from any exception.

    Args:
        e: Exception instance

    Returns:
        Clean error message string
    """
    if isinstance(e, EvmscopeError):
        return e.message

    # Web3RPCError and similar have args[0] as dict
    if hasattr(e, 'args') and e.args:
        first_arg = e.args[0]

        if isinstance(first_arg, dict):
            # RPC error format: {'code': -32003, 'message': '...'}
            return first_arg.get('message', str(e))
        elif isinstance(first_arg, str):
            return first_arg
        else:
            return str(first_arg)

    return str(e)
