"""
Serve command implementation.

Runs the MCP server on stdio. Logging goes to stderr so it never mixes
with protocol messages on stdout.
"""

from evmscope.config import Settings
from evmscope.server import run
from evmscope.utils.logging import logger


def serve_command(args, settings: Settings) -> int:
    logger.info(f"Starting MCP server on stdio (RPC: {settings.rpc_url})")
    run(settings)
    return 0
