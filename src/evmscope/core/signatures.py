"""
Function signature table.

Maps 4-byte selectors to canonical signatures. Seeded with well-known token
standards and extended at runtime whenever a selector is computed from a
verified ABI, so later reports can name calls into contracts whose metadata
is not available.
"""

from typing import Dict, Iterator, Optional

import requests

from evmscope.utils.logging import get_logger

logger = get_logger('signatures')

WELL_KNOWN_SIGNATURES: Dict[str, str] = {
    # ERC-20
    '0x06fdde03': 'name()',
    '0x95d89b41': 'symbol()',
    '0x313ce567': 'decimals()',
    '0x18160ddd': 'totalSupply()',
    '0x70a08231': 'balanceOf(address)',
    '0xdd62ed3e': 'allowance(address,address)',
    '0xa9059cbb': 'transfer(address,uint256)',
    '0x23b872dd': 'transferFrom(address,address,uint256)',
    '0x095ea7b3': 'approve(address,uint256)',
    # ERC-721
    '0x6352211e': 'ownerOf(uint256)',
    '0x081812fc': 'getApproved(uint256)',
    '0xe985e9c5': 'isApprovedForAll(address,address)',
    '0xa22cb465': 'setApprovalForAll(address,bool)',
    '0x42842e0e': 'safeTransferFrom(address,address,uint256)',
    '0xb88d4fde': 'safeTransferFrom(address,address,uint256,bytes)',
}


class SignatureTable:
    """
    Selector -> signature mapping owned by one trace session.

    Selectors are stored lower-cased with their 0x prefix.
    """

    def __init__(self, seed: Optional[Dict[str, str]] = None,
                 remote: Optional["RemoteSignatureLookup"] = None):
        self._signatures: Dict[str, str] = {}
        self.remote = remote
        for selector, signature in (WELL_KNOWN_SIGNATURES if seed is None else seed).items():
            self.register(selector, signature)

    @staticmethod
    def _normalize(selector: str) -> str:
        selector = selector.lower()
        if not selector.startswith('0x'):
            selector = '0x' + selector
        return selector

    def register(self, selector: str, signature: str) -> None:
        self._signatures[self._normalize(selector)] = signature

    def lookup(self, selector: str) -> Optional[str]:
        """Return the known signature for a selector, asking the remote tier last."""
        selector = self._normalize(selector)
        signature = self._signatures.get(selector)
        if signature is None and self.remote is not None:
            signature = self.remote.lookup(selector)
            if signature:
                self.register(selector, signature)
        return signature

    def __contains__(self, selector: str) -> bool:
        return self._normalize(selector) in self._signatures

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[str]:
        return iter(self._signatures)


class RemoteSignatureLookup:
    """
    Looks up unknown selectors in public signature databases.

    OpenChain is asked first since it filters junk entries, then
    4byte.directory. Every selector is asked at most once per session.
    """

    OPENCHAIN_URL = "https://api.openchain.xyz/signature-database/v1/lookup"
    FOURBYTE_URL = "https://www.4byte.directory/api/v1/signatures/"

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self.session = session or requests.Session()
        self.timeout = timeout
        self._attempted: Dict[str, Optional[str]] = {}

    def lookup(self, selector: str) -> Optional[str]:
        if selector in self._attempted:
            return self._attempted[selector]
        signature = self._lookup_openchain(selector) or self._lookup_4byte(selector)
        self._attempted[selector] = signature
        return signature

    def _lookup_openchain(self, selector: str) -> Optional[str]:
        try:
            response = self.session.get(
                self.OPENCHAIN_URL, params={"function": selector}, timeout=self.timeout
            )
            if response.status_code == 200:
                data = response.json()
                matches = (data.get('result') or {}).get('function', {}).get(selector) or []
                if matches:
                    return matches[0]['name']
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.debug(f"OpenChain lookup failed for {selector}: {e}")
        return None

    def _lookup_4byte(self, selector: str) -> Optional[str]:
        try:
            response = self.session.get(
                self.FOURBYTE_URL, params={"hex_signature": selector}, timeout=self.timeout
            )
            if response.status_code == 200:
                results = response.json().get('results') or []
                if results:
                    # Lower id = older entry, the least likely to be a collision
                    oldest = sorted(results, key=lambda x: x.get('id', 0))[0]
                    return oldest['text_signature']
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.debug(f"4byte lookup failed for {selector}: {e}")
        return None
