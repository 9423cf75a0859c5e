"""
Core trace decoding for evmscope.
"""

from .signatures import SignatureTable, RemoteSignatureLookup, WELL_KNOWN_SIGNATURES
from .codec import ParameterCodec
from .metadata import ContractCache, ContractMetadataResolver
from .call_tree import CallTreeDecoder, count_frames
from .formatters import CallTraceFormatter, RawTraceFormatter
from .serializer import TraceSerializer
from .rpc import RPCClient, TraceResult
from .session import TraceSession

__all__ = [
    'SignatureTable',
    'RemoteSignatureLookup',
    'WELL_KNOWN_SIGNATURES',
    'ParameterCodec',
    'ContractCache',
    'ContractMetadataResolver',
    'CallTreeDecoder',
    'count_frames',
    'CallTraceFormatter',
    'RawTraceFormatter',
    'TraceSerializer',
    'RPCClient',
    'TraceResult',
    'TraceSession',
]
