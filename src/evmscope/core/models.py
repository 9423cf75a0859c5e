"""
Data model for trace decoding.

Trace inputs (CallFrame, OpcodeLogEntry, TransactionSummary) are built from
the loosely-typed JSON a node returns; decoded outputs (DecodedParameter,
DecodedCall, DecodedEvent, DecodedFrame) are what the formatters render.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from evmscope.utils.helpers import parse_quantity

AbiEntry = Dict[str, Any]


@dataclass(frozen=True)
class ContractMetadata:
    """Verified contract interface fetched from the metadata service."""
    name: str
    abi: List[AbiEntry]
    functions_by_selector: Dict[str, AbiEntry]
    events_by_topic: Dict[str, AbiEntry]
    implementation_address: Optional[str] = None


@dataclass
class DecodedParameter:
    """A single decoded argument or return value."""
    name: str
    type: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DecodedCall:
    """Decoded identity of one call's input data."""
    name: str
    signature: str
    args: List[DecodedParameter] = field(default_factory=list)
    raw_selector: Optional[str] = None
    contract_name: Optional[str] = None
    function: Optional[AbiEntry] = None  # ABI entry used for decoding, if any

    def display(self) -> str:
        """Render as `name(arg: value, ...)`, or the bare signature when there are no args."""
        if not self.name:
            return ''
        if self.args:
            rendered = ', '.join(
                f"{arg.name}: {display_value(arg.value)}" if arg.name else display_value(arg.value)
                for arg in self.args
            )
            return f"{self.name}({rendered})"
        return self.signature or self.name

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "signature": self.signature,
            "args": [arg.to_dict() for arg in self.args],
        }
        if self.raw_selector:
            result["selector"] = self.raw_selector
        if self.contract_name:
            result["contractName"] = self.contract_name
        return result


@dataclass
class DecodedEvent:
    """A log entry decoded against the emitting contract's events."""
    address: str
    name: str
    signature: str
    args: List[DecodedParameter] = field(default_factory=list)
    topic: Optional[str] = None

    def display(self) -> str:
        if not self.args:
            return self.signature
        rendered = ', '.join(f"{arg.name}: {display_value(arg.value)}" for arg in self.args)
        return f"{self.name}({rendered})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "signature": self.signature,
            "args": [arg.to_dict() for arg in self.args],
            "topic": self.topic,
        }


def display_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, list):
        return '[' + ', '.join(display_value(v) for v in value) + ']'
    return str(value)


@dataclass
class LogEntry:
    """An event log attached to a call frame by callTracer's withLog option."""
    address: str
    topics: List[str]
    data: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        return cls(
            address=(data.get("address") or "").lower(),
            topics=[t.lower() for t in data.get("topics") or []],
            data=data.get("data") or "0x",
        )


@dataclass
class CallFrame:
    """
    One node of a callTracer result.

    A frame owns its children; the tree has no back-edges.
    """
    type: str
    from_address: Optional[str]
    to_address: Optional[str]
    input: str = "0x"
    output: Optional[str] = None
    error: Optional[str] = None
    revert_reason: Optional[str] = None
    gas: Optional[int] = None
    gas_used: Optional[int] = None
    value: Optional[int] = None
    calls: List["CallFrame"] = field(default_factory=list)
    logs: List[LogEntry] = field(default_factory=list)

    @classmethod
    def _from_single(cls, data: Dict[str, Any]) -> "CallFrame":
        def quantity(key):
            return parse_quantity(data[key]) if data.get(key) is not None else None

        return cls(
            type=(data.get("type") or "CALL").upper(),
            from_address=data.get("from"),
            to_address=data.get("to"),
            input=data.get("input") or "0x",
            output=data.get("output"),
            error=data.get("error"),
            revert_reason=data.get("revertReason"),
            gas=quantity("gas"),
            gas_used=quantity("gasUsed"),
            value=quantity("value"),
            logs=[LogEntry.from_dict(log) for log in data.get("logs") or []],
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallFrame":
        """Build a frame tree from raw tracer JSON without recursion."""
        root = cls._from_single(data)
        pending = [(data, root)]
        while pending:
            raw, frame = pending.pop()
            for child_raw in raw.get("calls") or []:
                child = cls._from_single(child_raw)
                frame.calls.append(child)
                pending.append((child_raw, child))
        return root


@dataclass
class OpcodeLogEntry:
    """One struct log entry of the default tracer."""
    pc: int
    op: str
    gas: int
    gas_cost: int
    depth: int
    stack: Optional[List[str]] = None
    storage: Optional[Dict[str, str]] = None
    memory: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OpcodeLogEntry":
        return cls(
            pc=parse_quantity(data.get("pc")),
            op=data.get("op", ""),
            gas=parse_quantity(data.get("gas")),
            gas_cost=parse_quantity(data.get("gasCost")),
            depth=parse_quantity(data.get("depth")),
            stack=data.get("stack"),
            storage=data.get("storage"),
            memory=data.get("memory"),
        )


@dataclass
class TransactionSummary:
    """The fields of eth_getTransactionByHash the reports need."""
    hash: str
    from_address: str
    to_address: Optional[str]
    value: int
    gas: int
    gas_price: int
    input: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionSummary":
        return cls(
            hash=data.get("hash", ""),
            from_address=(data.get("from") or "").lower(),
            to_address=data["to"].lower() if data.get("to") else None,
            value=parse_quantity(data.get("value")),
            gas=parse_quantity(data.get("gas")),
            gas_price=parse_quantity(data.get("gasPrice")),
            input=data.get("input") or "0x",
        )


@dataclass
class DecodedFrame:
    """A call frame decorated with everything the renderers need."""
    frame: CallFrame
    depth: int
    from_label: str
    to_label: str
    call: DecodedCall
    decoded_output: Optional[Dict[str, Any]] = None
    revert_reason: Optional[str] = None
    events: List[DecodedEvent] = field(default_factory=list)
    children: List["DecodedFrame"] = field(default_factory=list)

    def walk(self):
        """Yield this frame and its descendants in depth-first preorder."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def count(self) -> int:
        return sum(1 for _ in self.walk())
