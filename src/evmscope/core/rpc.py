"""
JSON-RPC access to the configured node.

Read-only methods are forwarded as-is and return the node's response
envelope. Trace acquisition prefers callTracer and falls back to the
default struct logger when the node does not support it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from web3 import HTTPProvider

from evmscope.core.models import TransactionSummary
from evmscope.utils.exceptions import (
    DebugTraceUnavailableError,
    RPCConnectionError,
    RPCError,
    TransactionNotFoundError,
)
from evmscope.utils.logging import get_logger

logger = get_logger('rpc')

CALL_TRACE = 'call'
STRUCT_TRACE = 'struct'


@dataclass
class TraceResult:
    """A debug_traceTransaction result together with its transaction."""
    kind: str  # CALL_TRACE or STRUCT_TRACE
    transaction: TransactionSummary
    trace: Dict[str, Any]


class RPCClient:
    """Thin JSON-RPC client over web3's HTTP provider."""

    def __init__(self, rpc_url: str, timeout: float = 30, trace_timeout: str = "30s", provider=None):
        self.rpc_url = rpc_url
        self.trace_timeout = trace_timeout
        self.provider = provider or HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})

    def request(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """Send one request and return the raw response envelope."""
        logger.debug(f"{method} {params}")
        try:
            response = self.provider.make_request(method, params or [])
        except requests.RequestException as e:
            raise RPCConnectionError(f"Failed to reach RPC endpoint: {e}", rpc_url=self.rpc_url)
        logger.trace(f"{method} -> {response}")
        return dict(response)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send one request and return its `result`, raising RPCError on an error member."""
        response = self.request(method, params)
        error = response.get('error')
        if error:
            if isinstance(error, dict):
                raise RPCError(method, error.get('message', str(error)), code=error.get('code'))
            raise RPCError(method, str(error))
        return response.get('result')

    # ------------------------------------------------------------------
    # Pass-through methods
    # ------------------------------------------------------------------

    def block_number(self) -> Dict[str, Any]:
        return self.request('eth_blockNumber')

    def chain_id(self) -> Dict[str, Any]:
        return self.request('eth_chainId')

    def get_balance(self, address: str, block: str = 'latest') -> Dict[str, Any]:
        return self.request('eth_getBalance', [address, block])

    def get_transaction_count(self, address: str, block: str = 'latest') -> Dict[str, Any]:
        return self.request('eth_getTransactionCount', [address, block])

    def get_block_by_number(self, block: str, full_transactions: bool = True) -> Dict[str, Any]:
        return self.request('eth_getBlockByNumber', [block, full_transactions])

    def get_transaction_by_hash(self, tx_hash: str) -> Dict[str, Any]:
        return self.request('eth_getTransactionByHash', [tx_hash])

    def eth_call(self, to: str, data: str, block: str = 'latest') -> Dict[str, Any]:
        return self.request('eth_call', [{'to': to, 'data': data}, block])

    # ------------------------------------------------------------------
    # Tracing
    # ------------------------------------------------------------------

    def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        transaction = self.call('eth_getTransactionByHash', [tx_hash])
        if not transaction:
            raise TransactionNotFoundError(tx_hash, rpc_url=self.rpc_url)
        return transaction

    def trace_transaction(self, tx_hash: str, raw: bool = False) -> TraceResult:
        """
        Fetch a transaction and its execution trace.

        Args:
            tx_hash: Transaction hash
            raw: Skip callTracer and request the struct-log trace directly

        Raises:
            TransactionNotFoundError: The node does not know the transaction
            DebugTraceUnavailableError: Neither tracer produced a usable result
        """
        transaction = TransactionSummary.from_dict(self.get_transaction(tx_hash))

        if not raw:
            try:
                trace = self.call('debug_traceTransaction', [
                    tx_hash,
                    {'tracer': 'callTracer', 'tracerConfig': {'withLog': True}, 'timeout': self.trace_timeout},
                ])
                if isinstance(trace, dict) and trace.get('type'):
                    return TraceResult(CALL_TRACE, transaction, trace)
                logger.info("callTracer returned an unexpected shape, falling back to struct logs")
            except RPCError as e:
                logger.info(f"callTracer unavailable ({e.rpc_message}), falling back to struct logs")

        try:
            trace = self.call('debug_traceTransaction', [
                tx_hash,
                {'disableStorage': False, 'enableMemory': False, 'timeout': self.trace_timeout},
            ])
        except RPCError as e:
            raise DebugTraceUnavailableError(tx_hash, reason=e.rpc_message)

        if not isinstance(trace, dict) or 'structLogs' not in trace:
            raise DebugTraceUnavailableError(tx_hash, reason="unexpected trace format")
        return TraceResult(STRUCT_TRACE, transaction, trace)
