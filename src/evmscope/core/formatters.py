"""
Text reports for debug_traceTransaction results.

CallTraceFormatter renders callTracer output as an indented call tree;
RawTraceFormatter renders the default struct logger's opcode log. Both put
the same transaction header on top and cap the number of entries they list.
"""

import json
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from evmscope.core.call_tree import CallTreeDecoder, count_frames
from evmscope.core.models import (
    CallFrame,
    DecodedFrame,
    OpcodeLogEntry,
    TransactionSummary,
    display_value,
)
from evmscope.utils.helpers import decode_revert_reason, format_gas

DEFAULT_MAX_ENTRIES = 300
WEI_PER_ETH = Decimal(10) ** 18

# Opcodes listed even when the call depth does not change
INTERESTING_OPCODES = frozenset([
    'CALL', 'CALLCODE', 'STATICCALL', 'DELEGATECALL',
    'CREATE', 'CREATE2',
    'REVERT', 'RETURN', 'SELFDESTRUCT',
    'LOG0', 'LOG1', 'LOG2', 'LOG3', 'LOG4',
])

# Opcodes whose top stack words (call target, value, offsets) are shown
STACK_OPCODES = frozenset([
    'CALL', 'CALLCODE', 'STATICCALL', 'DELEGATECALL', 'CREATE', 'CREATE2', 'REVERT',
])

TxInput = Union[TransactionSummary, Dict[str, Any]]


def _as_transaction(tx: TxInput) -> TransactionSummary:
    if isinstance(tx, TransactionSummary):
        return tx
    return TransactionSummary.from_dict(tx)


def format_eth(value_wei: int) -> str:
    return format((Decimal(value_wei) / WEI_PER_ETH).normalize(), 'f')


def format_transaction_header(tx: TransactionSummary) -> List[str]:
    return [
        '',
        '🔍 TRANSACTION TRACE',
        '',
        f"Transaction: {tx.hash}",
        f"From: {tx.from_address}",
        f"To: {tx.to_address or 'Contract Creation'}",
        f"Value: {tx.value} wei ({format_eth(tx.value)} ETH)",
        f"Gas Limit: {tx.gas:,}",
        f"Gas Price: {tx.gas_price:,} wei",
        '',
    ]


class CallTraceFormatter:
    """Renders a callTracer tree as a depth-indented, decoded report."""

    def __init__(self, decoder: CallTreeDecoder, max_frames: Optional[int] = DEFAULT_MAX_ENTRIES):
        self.decoder = decoder
        self.max_frames = max_frames

    def format(self, trace: Union[CallFrame, Dict[str, Any]], tx: TxInput) -> str:
        root = trace if isinstance(trace, CallFrame) else CallFrame.from_dict(trace)
        tx = _as_transaction(tx)

        lines = format_transaction_header(tx)
        initial_call = self.decoder.decode_call(tx.input, tx.to_address)
        lines.append(f"Initial Call: {initial_call.display()}")
        lines.append('')
        lines.append('📋 EXECUTION TRACE:')
        lines.append('')

        decoded = self.decoder.decode_tree(root, self.max_frames)
        lines.extend(self.render(decoded))

        total = count_frames(root)
        if self.max_frames is not None and total > self.max_frames:
            lines.append('')
            lines.append(f"... trace truncated (showing {self.max_frames} of {total} calls) ...")

        return '\n'.join(lines) + '\n'

    def render(self, decoded: Optional[DecodedFrame]) -> List[str]:
        """Render an already decoded tree, one block per frame in preorder."""
        if decoded is None:
            return []
        lines = []
        for node in decoded.walk():
            lines.extend(self.render_frame(node))
        return lines

    def render_frame(self, node: DecodedFrame) -> List[str]:
        frame = node.frame
        indent = '  ' * node.depth

        line = f"{indent}{frame.type} from {node.from_label} to {node.to_label}"
        function_display = node.call.display()
        if function_display:
            line += f" [{function_display}]"
        gas_parts = [format_gas(gas) for gas in (frame.gas, frame.gas_used) if gas]
        if gas_parts:
            line += f" ({' → '.join(gas_parts)})"
        lines = [line]

        if frame.output and frame.output != '0x':
            if node.decoded_output is not None:
                lines.append(f"{indent}📤 Output: {json.dumps(node.decoded_output)}")
            else:
                lines.append(f"{indent}📤 Output: {frame.output.lower()}")

        if frame.error:
            error_line = f"{indent}❌ ERROR: {frame.error}"
            if node.revert_reason:
                error_line += f" (reason: {node.revert_reason})"
            lines.append(error_line)

        for event in node.events:
            lines.append(f"{indent}📝 Event: {event.display()}")

        return lines


class RawTraceFormatter:
    """Renders a struct-log trace, keeping only depth changes and notable opcodes."""

    def __init__(self, decoder: CallTreeDecoder, max_lines: int = DEFAULT_MAX_ENTRIES):
        self.decoder = decoder
        self.max_lines = max_lines

    def format(self, trace: Dict[str, Any], tx: TxInput) -> str:
        tx = _as_transaction(tx)
        lines = format_transaction_header(tx)

        # Only the top-level call: a struct log has no call tree to walk
        if tx.input and len(tx.input) >= 10:
            call = self.decoder.decode_call(tx.input, tx.to_address)
            lines.append(f"Function: {call.signature}")
            if call.args:
                lines.append('Parameters:')
                for arg in call.args:
                    lines.append(f"  {arg.name}: {display_value(arg.value)} ({arg.type})")
            lines.append('')

        lines.append('📋 VM EXECUTION TRACE:')
        lines.append('')

        struct_logs = trace.get('structLogs') if isinstance(trace, dict) else None
        if isinstance(struct_logs, list):
            lines.extend(self.render_logs(struct_logs))
        else:
            lines.append('Raw trace data not available or in unexpected format.')

        if isinstance(trace, dict):
            lines.extend(self._footer(trace))

        return '\n'.join(lines) + '\n'

    def render_logs(self, struct_logs: List[Union[OpcodeLogEntry, Dict[str, Any]]]) -> List[str]:
        lines = []
        last_depth = 0
        emitted = 0

        for raw in struct_logs:
            if emitted >= self.max_lines:
                lines.append('')
                lines.append(
                    f"... trace truncated (showing {self.max_lines} of {len(struct_logs)} operations) ..."
                )
                break

            entry = raw if isinstance(raw, OpcodeLogEntry) else OpcodeLogEntry.from_dict(raw)
            if entry.depth == last_depth and entry.op not in INTERESTING_OPCODES:
                continue

            indent = '  ' * entry.depth
            lines.append(f"{indent}[{entry.pc}] {entry.op} (gas: {entry.gas} → {entry.gas - entry.gas_cost})")
            if entry.op in STACK_OPCODES and entry.stack:
                lines.append(f"{indent}  Stack: {', '.join(entry.stack[-4:])}")
            if entry.storage:
                lines.append(f"{indent}  Storage: {json.dumps(entry.storage)}")

            last_depth = entry.depth
            emitted += 1

        return lines

    @staticmethod
    def _footer(trace: Dict[str, Any]) -> List[str]:
        lines = []
        if trace.get('gas') is not None:
            lines.append('')
            lines.append(f"Gas used: {trace['gas']}")
        if trace.get('failed'):
            lines.append('Status: FAILED')
        return_value = trace.get('returnValue')
        if return_value and return_value != '0x':
            if not return_value.startswith('0x'):
                return_value = '0x' + return_value
            lines.append(f"Return value: {return_value}")
            if trace.get('failed'):
                reason = decode_revert_reason(return_value)
                if reason:
                    lines.append(f"Revert reason: {reason}")
        return lines

