"""
Call tree decoding.

Turns a callTracer result into a tree of DecodedFrame nodes: every frame gets
its contract labels, its decoded function call, decoded return data, revert
reason and events. The text and JSON renderers both consume this tree.
"""

from typing import Dict, List, Optional, Tuple

from evmscope.core.codec import ParameterCodec
from evmscope.core.metadata import ContractMetadataResolver
from evmscope.core.models import (
    CallFrame,
    ContractMetadata,
    DecodedCall,
    DecodedEvent,
    DecodedFrame,
    LogEntry,
)
from evmscope.core.signatures import SignatureTable
from evmscope.utils.helpers import decode_revert_reason
from evmscope.utils.logging import get_logger

logger = get_logger('call_tree')

ROOT_CALLER_LABEL = 'Caller'


def count_frames(root: CallFrame) -> int:
    """Number of frames in a call tree, counted without recursion."""
    total = 0
    stack = [root]
    while stack:
        frame = stack.pop()
        total += 1
        stack.extend(frame.calls)
    return total


class CallTreeDecoder:
    """Decodes call frames against contract metadata and known signatures."""

    def __init__(self, resolver: ContractMetadataResolver,
                 codec: Optional[ParameterCodec] = None,
                 signatures: Optional[SignatureTable] = None):
        self.resolver = resolver
        self.codec = codec or resolver.codec
        self.signatures = signatures or self.codec.signatures

    # ------------------------------------------------------------------
    # Single calls
    # ------------------------------------------------------------------

    def decode_call(self, call_data: Optional[str], address: Optional[str],
                    is_delegate: bool = False) -> DecodedCall:
        """
        Identify the function a call invokes and decode its arguments.

        Resolution order: the contract's verified ABI (the implementation's
        for delegate calls), then the signature table, then the bare
        selector.
        """
        if not call_data or len(call_data) < 10:
            return DecodedCall(name='unknown', signature='unknown()')

        selector = call_data[:10].lower()
        metadata = self._metadata_for_call(address, is_delegate)

        if metadata is not None and selector in metadata.functions_by_selector:
            entry = metadata.functions_by_selector[selector]
            return DecodedCall(
                name=entry.get('name', selector),
                signature=self.codec.signature(entry),
                args=self.codec.decode(call_data[10:], entry.get('inputs') or []),
                raw_selector=selector,
                contract_name=metadata.name,
                function=entry,
            )

        signature = self.signatures.lookup(selector)
        if signature:
            name, types = self.codec.parse_signature(signature)
            return DecodedCall(
                name=name,
                signature=signature,
                args=self.codec.decode(call_data[10:], [{'type': t} for t in types]),
                raw_selector=selector,
                contract_name=metadata.name if metadata else None,
            )

        logger.debug(f"No signature known for {selector} at {address}")
        return DecodedCall(name=selector, signature=selector, raw_selector=selector)

    def _metadata_for_call(self, address: Optional[str], is_delegate: bool) -> Optional[ContractMetadata]:
        metadata = self.resolver.fetch(address)
        if is_delegate:
            implementation = self.resolver.resolve_implementation(address)
            if implementation:
                implementation_metadata = self.resolver.fetch(implementation)
                if implementation_metadata is not None:
                    logger.debug(f"Decoding delegate call to {address} with {implementation} ABI")
                    return implementation_metadata
        return metadata

    def decode_output(self, output: Optional[str], call: DecodedCall) -> Optional[Dict[str, object]]:
        """Decode return data against the resolved function's outputs."""
        if not output or output == '0x' or call.function is None:
            return None
        outputs = call.function.get('outputs') or []
        if not outputs:
            return None
        decoded = self.codec.decode(output, outputs, resolve_arrays=True)
        return {param.name: param.value for param in decoded}

    def decode_event(self, log: LogEntry) -> DecodedEvent:
        """Decode a log using the emitting contract's (or its implementation's) events."""
        topic = log.topics[0] if log.topics else None
        entry = None
        if topic:
            metadata = self.resolver.fetch(log.address)
            if metadata is not None:
                entry = metadata.events_by_topic.get(topic)
                if entry is None and metadata.implementation_address:
                    implementation = self.resolver.fetch(metadata.implementation_address)
                    if implementation is not None:
                        entry = implementation.events_by_topic.get(topic)

        if entry is None:
            label = topic or 'anonymous'
            return DecodedEvent(address=log.address, name=label, signature=label, topic=topic)
        return self.codec.decode_event(log, entry)

    # ------------------------------------------------------------------
    # Frames and trees
    # ------------------------------------------------------------------

    def decode_frame(self, frame: CallFrame, depth: int) -> DecodedFrame:
        to_metadata = self.resolver.fetch(frame.to_address)
        from_metadata = self.resolver.fetch(frame.from_address) if frame.from_address else None

        if to_metadata is not None:
            to_label = to_metadata.name
        else:
            to_label = (frame.to_address or '0x').lower()

        if from_metadata is not None:
            from_label = from_metadata.name
        elif depth == 0:
            from_label = ROOT_CALLER_LABEL
        else:
            from_label = (frame.from_address or '0x').lower()

        call = self.decode_call(frame.input, frame.to_address, frame.type == 'DELEGATECALL')

        decoded_output = None
        if frame.output and frame.output != '0x' and not frame.error:
            decoded_output = self.decode_output(frame.output, call)

        revert_reason = None
        if frame.error:
            revert_reason = frame.revert_reason or decode_revert_reason(frame.output)

        return DecodedFrame(
            frame=frame,
            depth=depth,
            from_label=from_label,
            to_label=to_label,
            call=call,
            decoded_output=decoded_output,
            revert_reason=revert_reason,
            events=[self.decode_event(log) for log in frame.logs],
        )

    def decode_tree(self, root: CallFrame, max_frames: Optional[int] = None) -> DecodedFrame:
        """
        Decode frames in depth-first preorder using an explicit stack.

        Frames are handled one at a time so metadata lookups happen in the
        same order the report lists them. With `max_frames`, decoding stops
        after that many frames; the rest of the tree is left out.
        """
        decoded_root = None
        decoded = 0
        pending: List[Tuple[CallFrame, int, Optional[DecodedFrame]]] = [(root, 0, None)]

        while pending:
            if max_frames is not None and decoded >= max_frames:
                break
            frame, depth, parent = pending.pop()
            node = self.decode_frame(frame, depth)
            decoded += 1

            if parent is None:
                decoded_root = node
            else:
                parent.children.append(node)

            for child in reversed(frame.calls):
                pending.append((child, depth + 1, node))

        return decoded_root
