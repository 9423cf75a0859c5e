"""
Contract metadata resolution.

Fetches verified ABIs from a Blockscout-compatible metadata service
(`GET {API_URL}/v2/smart-contracts/{address}`), indexes them by selector and
topic, and caches the outcome per address, including failures, so a trace
never asks twice about the same contract.
"""

import json
from collections import OrderedDict
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests

from evmscope.core.codec import ParameterCodec
from evmscope.core.models import ContractMetadata
from evmscope.utils.exceptions import MetadataFetchError
from evmscope.utils.helpers import is_zero_address
from evmscope.utils.logging import get_logger

logger = get_logger('metadata')

UNVERIFIED_SENTINEL = 'Contract source code not verified'
DEFAULT_CONTRACT_NAME = 'Unknown Contract'

_MISSING = object()


class ContractCache:
    """
    Address -> ContractMetadata (or None) cache for one session.

    A stored None means "looked up, not available". With a capacity the
    least recently used address is evicted first; without one the cache
    grows for the lifetime of the session.

    Not thread-safe: lookups are read-then-write, which is fine for the
    sequential trace walk. Concurrent callers would need per-key locking
    or must accept duplicate fetches.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is not None and capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: "OrderedDict[str, Optional[ContractMetadata]]" = OrderedDict()

    def __contains__(self, address: str) -> bool:
        return address.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, address: str, default: Any = None) -> Optional[ContractMetadata]:
        key = address.lower()
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            return default
        self._entries.move_to_end(key)
        return value

    def set(self, address: str, metadata: Optional[ContractMetadata]) -> None:
        key = address.lower()
        self._entries[key] = metadata
        self._entries.move_to_end(key)
        if self.capacity is not None:
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted {evicted} from contract cache")

    def clear(self) -> None:
        self._entries.clear()


class ContractMetadataResolver:
    """
    Resolves contract names, ABIs and proxy implementations by address.

    fetch() never raises: network errors, HTTP errors, malformed JSON and
    unverified contracts all produce None, which is cached like a hit.
    """

    def __init__(
        self,
        api_url: Optional[str],
        codec: Optional[ParameterCodec] = None,
        cache: Optional[ContractCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.api_url = api_url
        self.base_url = self.build_base_url(api_url) if api_url else None
        self.codec = codec or ParameterCodec()
        self.cache = cache if cache is not None else ContractCache()
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def build_base_url(api_url: str) -> str:
        """Normalize `https://host`, `.../`, `.../v2` and `.../v2/` to `.../v2/`."""
        base = api_url.rstrip('/')
        if not base.endswith('/v2'):
            base += '/v2'
        return base + '/'

    def contract_url(self, address: str) -> str:
        return urljoin(self.base_url, f"smart-contracts/{address}")

    def fetch(self, address: Optional[str]) -> Optional[ContractMetadata]:
        """Return metadata for `address`, or None when unavailable."""
        if not address or is_zero_address(address):
            return None

        key = address.lower()
        if key in self.cache:
            return self.cache.get(key)

        metadata = None
        try:
            metadata = self._fetch_remote(key)
            logger.debug(
                f"Loaded {metadata.name} at {key}: "
                f"{len(metadata.functions_by_selector)} functions, {len(metadata.events_by_topic)} events"
            )
        except MetadataFetchError as e:
            logger.debug(e.message)

        self.cache.set(key, metadata)
        return metadata

    def resolve_implementation(self, proxy_address: Optional[str]) -> Optional[str]:
        """Implementation address behind a proxy, if the service reports one."""
        metadata = self.fetch(proxy_address)
        if metadata is None:
            return None
        return metadata.implementation_address

    def _fetch_remote(self, address: str) -> ContractMetadata:
        if not self.base_url:
            raise MetadataFetchError(address, "API_URL is not set")

        url = self.contract_url(address)
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(
                url, headers={'Accept': 'application/json'}, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise MetadataFetchError(address, f"request failed: {e}")

        if not response.ok:
            raise MetadataFetchError(address, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise MetadataFetchError(address, "response is not valid JSON")
        if not isinstance(data, dict):
            raise MetadataFetchError(address, "unexpected response shape")

        # Etherscan-style envelope: {"result": [{"ABI": "...", "ContractName": "..."}]}
        result = data.get('result')
        if isinstance(result, list) and result and isinstance(result[0], dict):
            data = result[0]

        abi = self._extract_abi(address, data)
        return self._build_metadata(data, abi)

    def _extract_abi(self, address: str, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        for key in ('abi', 'result', 'ABI', 'SourceCode'):
            raw = data.get(key)
            if raw is None or raw == '' or raw == UNVERIFIED_SENTINEL:
                continue
            if isinstance(raw, str):
                try:
                    raw = json.loads(raw)
                except ValueError:
                    continue
            if isinstance(raw, list):
                return [item for item in raw if isinstance(item, dict)]
        raise MetadataFetchError(address, "no verified ABI in response")

    def _build_metadata(self, data: Dict[str, Any], abi: List[Dict[str, Any]]) -> ContractMetadata:
        functions_by_selector = {}
        events_by_topic = {}
        for item in abi:
            if item.get('type') == 'function':
                functions_by_selector[self.codec.compute_selector(item)] = item
            elif item.get('type') == 'event':
                events_by_topic[self.codec.compute_topic(item)] = item

        return ContractMetadata(
            name=data.get('name') or data.get('ContractName') or DEFAULT_CONTRACT_NAME,
            abi=abi,
            functions_by_selector=functions_by_selector,
            events_by_topic=events_by_topic,
            implementation_address=self._first_implementation(data.get('implementations')),
        )

    @staticmethod
    def _first_implementation(implementations: Any) -> Optional[str]:
        if not isinstance(implementations, list) or not implementations:
            return None
        first = implementations[0]
        if isinstance(first, dict):
            first = first.get('address') or first.get('address_hash')
        if isinstance(first, str) and first:
            return first.lower()
        return None
