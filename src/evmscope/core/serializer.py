"""
JSON serialization of decoded call trees.

Produces the machine-readable counterpart of the CallTraceFormatter report
from the same DecodedFrame tree.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from evmscope.core.models import DecodedFrame, TransactionSummary
from evmscope.utils.helpers import truncate_hex

MAX_HEX_LENGTH = 66


class TraceSerializer:
    """Serializes decoded traces to JSON-compatible dictionaries."""

    def __init__(self, max_hex_length: int = MAX_HEX_LENGTH):
        self.max_hex_length = max_hex_length

    def _hex(self, value: Optional[str]) -> Optional[str]:
        return truncate_hex(value, self.max_hex_length)

    def serialize_transaction(self, tx: TransactionSummary) -> Dict[str, Any]:
        return {
            "hash": tx.hash,
            "from": tx.from_address,
            "to": tx.to_address,
            "value": str(tx.value),
            "gas": tx.gas,
            "gasPrice": str(tx.gas_price),
            "input": self._hex(tx.input),
        }

    def serialize_frame(self, node: DecodedFrame) -> Dict[str, Any]:
        """Convert one decoded frame, without its children."""
        frame = node.frame
        result = {
            "type": frame.type,
            "from": (frame.from_address or '').lower() or None,
            "to": (frame.to_address or '').lower() or None,
            "fromLabel": node.from_label,
            "toLabel": node.to_label,
            "value": str(frame.value) if frame.value is not None else None,
            "gas": frame.gas,
            "gasUsed": frame.gas_used,
            "input": self._hex(frame.input),
            "output": self._hex(frame.output),
            "function": node.call.to_dict(),
        }
        if frame.error:
            result["error"] = frame.error
        if node.revert_reason:
            result["revertReason"] = node.revert_reason
        if node.decoded_output is not None:
            result["decodedOutput"] = node.decoded_output
        if node.events:
            result["events"] = [event.to_dict() for event in node.events]
        result["calls"] = []
        return result

    def serialize_tree(self, root: Optional[DecodedFrame]) -> Optional[Dict[str, Any]]:
        """Convert a decoded tree, nesting children under `calls`."""
        if root is None:
            return None
        serialized_root = self.serialize_frame(root)
        pending: List[Tuple[DecodedFrame, Dict[str, Any]]] = [(root, serialized_root)]
        while pending:
            node, serialized = pending.pop()
            for child in node.children:
                serialized_child = self.serialize_frame(child)
                serialized["calls"].append(serialized_child)
                pending.append((child, serialized_child))
        return serialized_root

    def serialize(
        self,
        root: Optional[DecodedFrame],
        tx: TransactionSummary,
        total_frames: Optional[int] = None,
    ) -> Dict[str, Any]:
        result = {
            "transaction": self.serialize_transaction(tx),
            "trace": self.serialize_tree(root),
        }
        if total_frames is not None:
            shown = root.count() if root is not None else 0
            result["framesShown"] = shown
            result["framesTotal"] = total_frames
            result["truncated"] = shown < total_frames
        return result

    def to_json(self, root: Optional[DecodedFrame], tx: TransactionSummary,
                total_frames: Optional[int] = None, indent: int = 2) -> str:
        return json.dumps(self.serialize(root, tx, total_frames), indent=indent)
