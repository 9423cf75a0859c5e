"""
evmscope - EVM JSON-RPC and trace decoding MCP server
"""

__version__ = "0.1.0"

# Main entry point
from .cli.main import main

# Configuration
from .config import Settings

# Core components
from .core import (
    SignatureTable,
    ParameterCodec,
    ContractCache,
    ContractMetadataResolver,
    CallTreeDecoder,
    CallTraceFormatter,
    RawTraceFormatter,
    TraceSerializer,
    RPCClient,
    TraceSession,
)

# Utilities
from .utils import (
    EvmscopeError,
    InvalidArgumentError,
    RPCConnectionError,
    RPCError,
    setup_logging,
    get_logger,
)

__all__ = [
    # Version
    '__version__',
    # Main
    'main',
    # Configuration
    'Settings',
    # Core
    'SignatureTable',
    'ParameterCodec',
    'ContractCache',
    'ContractMetadataResolver',
    'CallTreeDecoder',
    'CallTraceFormatter',
    'RawTraceFormatter',
    'TraceSerializer',
    'RPCClient',
    'TraceSession',
    # Utils
    'EvmscopeError',
    'InvalidArgumentError',
    'RPCConnectionError',
    'RPCError',
    'setup_logging',
    'get_logger',
]
