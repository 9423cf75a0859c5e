"""
MCP server exposing read-only JSON-RPC methods and transaction tracing.

Each tool validates its arguments, forwards one request to the configured
node and returns the response envelope as pretty-printed JSON. The trace
tool returns a decoded report instead.
"""

import json
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from evmscope import __version__
from evmscope.config import Settings
from evmscope.core.session import TraceSession
from evmscope.utils.helpers import (
    require_address,
    require_block,
    require_hex_data,
    require_tx_hash,
)
from evmscope.utils.logging import get_logger

logger = get_logger('server')

SERVER_NAME = "evmscope"


def _dump(response: Dict[str, Any]) -> str:
    return json.dumps(response, indent=2)


class EvmTools:
    """Tool handlers bound to one TraceSession."""

    def __init__(self, session: TraceSession):
        self.session = session
        self.rpc = session.rpc

    def block_number(self) -> str:
        """Get current block number"""
        return _dump(self.rpc.block_number())

    def chain_id(self) -> str:
        """Get chain ID"""
        return _dump(self.rpc.chain_id())

    def get_balance(self, address: str, block: Optional[str] = None) -> str:
        """Get account balance"""
        return _dump(self.rpc.get_balance(
            require_address('address', address),
            require_block('block', block),
        ))

    def get_transaction_count(self, address: str, block: Optional[str] = None) -> str:
        """Get account nonce"""
        return _dump(self.rpc.get_transaction_count(
            require_address('address', address),
            require_block('block', block),
        ))

    def get_block_by_number(self, blockNumber: str) -> str:
        """Get block information"""
        return _dump(self.rpc.get_block_by_number(require_block('blockNumber', blockNumber)))

    def get_transaction_by_hash(self, txHash: str) -> str:
        """Get transaction information"""
        return _dump(self.rpc.get_transaction_by_hash(require_tx_hash('txHash', txHash)))

    def call(self, to: str, data: str, block: Optional[str] = None) -> str:
        """Make a contract call"""
        return _dump(self.rpc.eth_call(
            require_address('to', to),
            require_hex_data('data', data),
            require_block('block', block),
        ))

    def trace_transaction(self, txHash: str, format: str = 'text') -> str:
        """
        Trace a transaction and decode its calls, arguments, return values and events.

        format: 'text' for an indented call tree, 'json' for the same tree as
        JSON, 'raw' for the opcode-level execution log.
        """
        tx_hash = require_tx_hash('txHash', txHash)
        logger.debug(f"Tracing {tx_hash} as {format}")
        return self.session.trace(tx_hash, format)


def create_server(settings: Optional[Settings] = None, session: Optional[TraceSession] = None) -> FastMCP:
    """Build a FastMCP server with every tool registered against one session."""
    if session is None:
        session = TraceSession(settings or Settings.from_env())
    tools = EvmTools(session)

    server = FastMCP(SERVER_NAME)
    server.add_tool(tools.block_number, name='eth_blockNumber')
    server.add_tool(tools.chain_id, name='eth_chainId')
    server.add_tool(tools.get_balance, name='eth_getBalance')
    server.add_tool(tools.get_transaction_count, name='eth_getTransactionCount')
    server.add_tool(tools.get_block_by_number, name='eth_getBlockByNumber')
    server.add_tool(tools.get_transaction_by_hash, name='eth_getTransactionByHash')
    server.add_tool(tools.call, name='eth_call')
    server.add_tool(tools.trace_transaction, name='trace_transaction')

    logger.info(f"evmscope {__version__} serving {session.settings.rpc_url}")
    return server


def run(settings: Optional[Settings] = None) -> None:
    """Serve on stdio until the client disconnects."""
    create_server(settings).run()
