"""
Per-server trace session.

A TraceSession owns one signature table, one contract cache and the
decoders built around them, so metadata fetched for one trace is reused by
the next trace in the same session and never shared across sessions.
"""

from typing import Optional

import requests

from evmscope.config import Settings
from evmscope.core.call_tree import CallTreeDecoder, count_frames
from evmscope.core.codec import ParameterCodec
from evmscope.core.formatters import CallTraceFormatter, RawTraceFormatter
from evmscope.core.metadata import ContractCache, ContractMetadataResolver
from evmscope.core.models import CallFrame
from evmscope.core.rpc import CALL_TRACE, RPCClient, TraceResult
from evmscope.core.serializer import TraceSerializer
from evmscope.core.signatures import RemoteSignatureLookup, SignatureTable
from evmscope.utils.exceptions import InvalidArgumentError
from evmscope.utils.logging import get_logger

logger = get_logger('session')

OUTPUT_FORMATS = ('text', 'json', 'raw')


class TraceSession:
    """Wires the RPC client, resolver, decoder and renderers from one Settings."""

    def __init__(self, settings: Settings, rpc: Optional[RPCClient] = None,
                 http: Optional[requests.Session] = None):
        self.settings = settings
        self.http = http or requests.Session()
        self.rpc = rpc or RPCClient(
            settings.rpc_url,
            timeout=settings.rpc_timeout,
            trace_timeout=settings.trace_timeout,
        )

        remote = RemoteSignatureLookup(self.http) if settings.remote_signatures else None
        self.signatures = SignatureTable(remote=remote)
        self.codec = ParameterCodec(self.signatures)
        self.cache = ContractCache(settings.cache_capacity)
        self.resolver = ContractMetadataResolver(
            settings.api_url,
            codec=self.codec,
            cache=self.cache,
            session=self.http,
            timeout=settings.metadata_timeout,
        )
        self.decoder = CallTreeDecoder(self.resolver, self.codec, self.signatures)
        self.call_formatter = CallTraceFormatter(self.decoder, settings.trace_max_lines)
        self.raw_formatter = RawTraceFormatter(self.decoder, settings.trace_max_lines)
        self.serializer = TraceSerializer()

        if not settings.api_url:
            logger.info("API_URL not set, contract metadata lookups are disabled")

    def trace(self, tx_hash: str, output_format: str = 'text') -> str:
        """Trace a transaction and render it as a text report, JSON, or raw opcode log."""
        if output_format not in OUTPUT_FORMATS:
            raise InvalidArgumentError(
                'format', f"must be one of {', '.join(OUTPUT_FORMATS)}", value=output_format
            )
        result = self.rpc.trace_transaction(tx_hash, raw=(output_format == 'raw'))
        return self.render(result, output_format)

    def render(self, result: TraceResult, output_format: str = 'text') -> str:
        if result.kind != CALL_TRACE:
            if output_format != 'raw':
                logger.info("Node returned struct logs only, rendering the opcode trace")
            return self.raw_formatter.format(result.trace, result.transaction)

        if output_format == 'json':
            root = CallFrame.from_dict(result.trace)
            decoded = self.decoder.decode_tree(root, self.settings.trace_max_lines)
            return self.serializer.to_json(decoded, result.transaction, total_frames=count_frames(root))

        return self.call_formatter.format(result.trace, result.transaction)
