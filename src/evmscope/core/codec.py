"""
Best-effort ABI parameter codec.

Decodes calldata, return data and event payloads word by word: every
top-level parameter occupies one 32-byte word in declaration order. Static
scalar types (address, integers, bool, fixed bytes) are decoded; other types
are shown as their raw word. Single-level dynamic arrays of static elements
can be followed through their offset word on request.

Tuples, nested dynamic arrays, multi-dimensional arrays and strings are not
decoded. A caller that needs those must use a standards-compliant decoder
(eth_abi) behind the same decode(data, params) contract.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_utils import keccak

from evmscope.core.models import AbiEntry, DecodedEvent, DecodedParameter, LogEntry
from evmscope.core.signatures import SignatureTable
from evmscope.utils.helpers import strip_0x

WORD_HEX_CHARS = 64

_INTEGER_RE = re.compile(r'^(u?)int(\d*)$')
_FIXED_BYTES_RE = re.compile(r'^bytes([1-9]|[12][0-9]|3[0-2])$')


class ParameterCodec:
    """Computes selectors/topics and decodes ABI-encoded parameters."""

    def __init__(self, signatures: Optional[SignatureTable] = None):
        self.signatures = signatures if signatures is not None else SignatureTable()

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def canonical_type(self, param: Dict[str, Any]) -> str:
        """Format an ABI type for signature hashing, expanding tuples."""
        param_type = param.get('type', '')
        if param_type.startswith('tuple'):
            components = param.get('components', [])
            inner = ','.join(self.canonical_type(comp) for comp in components)
            # Keep any array suffix: tuple[] -> (..)[], tuple[2] -> (..)[2]
            return f"({inner}){param_type[len('tuple'):]}"
        return param_type

    def signature(self, entry: AbiEntry) -> str:
        """Canonical `name(type1,type2,...)` over the entry's inputs."""
        types = ','.join(self.canonical_type(inp) for inp in entry.get('inputs') or [])
        return f"{entry.get('name', '')}({types})"

    def compute_selector(self, function_entry: AbiEntry) -> str:
        """
        First 4 bytes of keccak-256 of the function signature.

        The signature is also registered in the signature table so that
        calls into contracts without metadata can still be named later.
        """
        signature = self.signature(function_entry)
        selector = '0x' + keccak(text=signature)[:4].hex()
        self.signatures.register(selector, signature)
        return selector

    def compute_topic(self, event_entry: AbiEntry) -> str:
        """Full keccak-256 of the event signature."""
        return '0x' + keccak(text=self.signature(event_entry)).hex()

    @staticmethod
    def parse_signature(signature: str) -> Tuple[str, List[str]]:
        """
        Split `name(t1,(t2,t3)[],t4)` into its name and top-level types.
        """
        if '(' not in signature or not signature.endswith(')'):
            return signature, []
        name, _, rest = signature.partition('(')
        body = rest[:-1]
        types = []
        depth = 0
        current = ''
        for char in body:
            if char == ',' and depth == 0:
                types.append(current)
                current = ''
                continue
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
            current += char
        if current:
            types.append(current)
        return name, types

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, data: Optional[str], params: Sequence[Dict[str, Any]],
               resolve_arrays: bool = False) -> List[DecodedParameter]:
        """
        Decode `data` against a parameter list. Never raises.

        Args:
            data: Hex string, with or without 0x, selector already removed
            params: ABI inputs/outputs (`{name, type}` dicts)
            resolve_arrays: Follow `T[]` offset words into the data region
        """
        hex_data = strip_0x(data or '').lower()
        words = [hex_data[i:i + WORD_HEX_CHARS] for i in range(0, len(hex_data), WORD_HEX_CHARS)]

        decoded = []
        for index, param in enumerate(params):
            name = param.get('name') or f'param{index}'
            param_type = param.get('type', '')
            word = words[index] if index < len(words) else ''

            if resolve_arrays and param_type.endswith('[]'):
                value = self._decode_array(hex_data, word, param_type[:-2])
            else:
                value = self.decode_word(word, param_type)
            decoded.append(DecodedParameter(name=name, type=param_type, value=value))
        return decoded

    def decode_word(self, word: str, param_type: str) -> Any:
        """Interpret one 64-hex-char word as `param_type`."""
        if param_type == 'address':
            return '0x' + word[-40:]
        integer = _INTEGER_RE.match(param_type)
        if integer:
            return self._decode_integer(word, signed=not integer.group(1))
        if param_type == 'bool':
            return word[-1:] == '1'
        match = _FIXED_BYTES_RE.match(param_type)
        if match:
            return '0x' + word[:int(match.group(1)) * 2]
        return '0x' + word

    @staticmethod
    def _decode_integer(word: str, signed: bool) -> str:
        try:
            value = int(word, 16)
        except ValueError:
            return '0'
        if signed and value >= 2 ** 255:
            value -= 2 ** 256
        return str(value)

    def _decode_array(self, hex_data: str, offset_word: str, element_type: str) -> Any:
        """Follow an offset word to a length-prefixed run of static elements."""
        try:
            offset = int(offset_word, 16) * 2
        except ValueError:
            return '0x' + offset_word

        length_word = hex_data[offset:offset + WORD_HEX_CHARS]
        if len(length_word) < WORD_HEX_CHARS:
            return '0x' + offset_word
        try:
            count = int(length_word, 16)
        except ValueError:
            return '0x' + offset_word

        values = []
        for i in range(count):
            start = offset + WORD_HEX_CHARS * (i + 1)
            element = hex_data[start:start + WORD_HEX_CHARS]
            if len(element) < WORD_HEX_CHARS:
                break
            values.append(self.decode_word(element, element_type))
        return values

    def decode_event(self, log: LogEntry, entry: AbiEntry) -> DecodedEvent:
        """
        Decode a log against its event ABI entry.

        Indexed parameters come from topics[1:], the rest from the data
        words. Indexed dynamic values are keccak hashes and stay raw.
        """
        inputs = entry.get('inputs') or []
        from_data = iter(self.decode(log.data, [inp for inp in inputs if not inp.get('indexed')]))

        args = []
        topic_index = 1
        for position, inp in enumerate(inputs):
            if not inp.get('indexed'):
                args.append(next(from_data))
                continue
            topic = log.topics[topic_index] if topic_index < len(log.topics) else ''
            topic_index += 1
            args.append(DecodedParameter(
                name=inp.get('name') or f'param{position}',
                type=inp.get('type', ''),
                value=self.decode_word(strip_0x(topic), inp.get('type', '')),
            ))

        return DecodedEvent(
            address=log.address,
            name=entry.get('name', ''),
            signature=self.signature(entry),
            args=args,
            topic=log.topics[0] if log.topics else None,
        )
