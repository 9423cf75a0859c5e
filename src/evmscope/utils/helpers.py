"""
Miscellaneous helper functions for evmscope.
"""

import re
from typing import Any, Optional

from eth_abi.abi import decode
from eth_utils.address import is_address

from .exceptions import InvalidArgumentError

ZERO_ADDRESS = '0x' + '0' * 40

ERROR_STRING_SELECTOR = '0x08c379a0'  # Error(string)
PANIC_SELECTOR = '0x4e487b71'  # Panic(uint256)

HEX_DATA_RE = re.compile(r'^0x([0-9a-fA-F]{2})*$')
TX_HASH_RE = re.compile(r'^0x[0-9a-fA-F]{64}$')
BLOCK_TAGS = ('latest', 'earliest', 'pending', 'safe', 'finalized')

PANIC_REASONS = {
    0x01: 'assertion failed',
    0x11: 'arithmetic overflow or underflow',
    0x12: 'division or modulo by zero',
    0x21: 'invalid enum value',
    0x22: 'invalid storage byte array',
    0x31: 'pop on empty array',
    0x32: 'array index out of bounds',
    0x41: 'out of memory',
    0x51: 'call to uninitialized function',
}


def strip_0x(value: str) -> str:
    """Remove a leading 0x/0X prefix if present."""
    if value[:2] in ('0x', '0X'):
        return value[2:]
    return value


def parse_quantity(value: Any, default: int = 0) -> int:
    """
    Parse a JSON-RPC quantity into an int.

    Nodes return hex strings ('0x5208') in RPC payloads and plain ints in
    struct logs; decimal strings show up in some tracer outputs.
    """
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        if text[:2] in ('0x', '0X'):
            return int(text, 16) if len(text) > 2 else 0
        return int(text)
    except (TypeError, ValueError):
        return default


def is_zero_address(address: Optional[str]) -> bool:
    return bool(address) and address.lower() == ZERO_ADDRESS


def format_gas(gas: Any) -> str:
    """Format a gas quantity with thousands separators."""
    return f"{parse_quantity(gas):,} gas"


def truncate_hex(value: Optional[str], limit: int = 66) -> Optional[str]:
    """Truncate long hex payloads, keeping the first `limit` characters."""
    if isinstance(value, str) and len(value) > limit:
        return value[:limit] + '...'
    return value


def decode_revert_reason(output: Optional[str]) -> Optional[str]:
    """
    Decode a revert payload produced by `revert("...")` or a failed check.

    Returns None when the payload is neither Error(string) nor Panic(uint256)
    or is too short to decode.
    """
    if not output or not isinstance(output, str):
        return None
    data = output.lower()
    if not data.startswith('0x'):
        data = '0x' + data

    try:
        if data.startswith(ERROR_STRING_SELECTOR):
            (reason,) = decode(['string'], bytes.fromhex(data[10:]))
            return reason
        if data.startswith(PANIC_SELECTOR):
            (code,) = decode(['uint256'], bytes.fromhex(data[10:]))
            description = PANIC_REASONS.get(code, 'unknown panic')
            return f"Panic(0x{code:02x}): {description}"
    except Exception:
        return None
    return None


# ============================================================================
# Tool argument validation
# ============================================================================

def require_address(name: str, value: Any) -> str:
    """Validate an address argument and return it lower-cased."""
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(name, "an address is required", value)
    if not is_address(value):
        raise InvalidArgumentError(name, "not a valid 20-byte hex address", value)
    return value.lower()


def require_tx_hash(name: str, value: Any) -> str:
    """Validate a 32-byte transaction hash argument."""
    if not isinstance(value, str) or not TX_HASH_RE.match(value):
        raise InvalidArgumentError(name, "must be a 0x-prefixed 32-byte hex hash", value)
    return value.lower()


def require_hex_data(name: str, value: Any) -> str:
    """Validate a byte string argument such as calldata."""
    if not isinstance(value, str) or not HEX_DATA_RE.match(value):
        raise InvalidArgumentError(name, "must be 0x-prefixed hex with an even number of digits", value)
    return value.lower()


def require_block(name: str, value: Any, default: str = 'latest') -> str:
    """
    Validate a block reference: a tag, a hex quantity, or a decimal number.

    Decimal numbers are converted to hex quantities as the node expects.
    """
    if value is None or value == '':
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise InvalidArgumentError(name, "block number cannot be negative", value)
        return hex(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower() in BLOCK_TAGS:
            return text.lower()
        if re.match(r'^0x[0-9a-fA-F]+$', text):
            return hex(int(text, 16))
        if text.isdigit():
            return hex(int(text))
    raise InvalidArgumentError(
        name, f"must be a block number or one of {', '.join(BLOCK_TAGS)}", value
    )
