"""
FlowScript Binary Module
========================

In-memory representation of a compiled FlowScript module, as produced by
the binary reader (or built directly by callers and tests).

A module consists of:
    - text: the ordered instruction slots
    - jump_labels: named instruction offsets for intra-procedure branches
    - procedure_labels: named instruction offsets for procedure entries
    - strings: string table keyed by string id
    - message_data: the embedded message script block, kept as raw bytes

Instruction Slots
-----------------
Each slot is 32 bits wide. Read as an instruction it holds a 16-bit opcode
and a 16-bit signed short operand. The slot following PUSHI/PUSHF is not an
instruction: its 32 bits are the operand, read as int32 or float32.

    Offset  Size    Description
    ------  ----    -----------
    0       2       Opcode
    2       2       Short operand (signed)
    0       4       Whole slot, as extended operand payload
"""

import struct
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Instruction:
    """
    One 32-bit instruction slot.

    Attributes:
        opcode: Opcode value (an Opcode member for known opcodes)
        operand_short: Signed 16-bit short operand
        payload: The whole slot as an unsigned 32-bit value
    """
    opcode: int
    operand_short: int = 0
    payload: int = 0

    @property
    def operand_int(self) -> int:
        """The payload reinterpreted as a signed 32-bit integer."""
        return struct.unpack("<i", struct.pack("<I", self.payload))[0]

    @property
    def operand_float(self) -> float:
        """The payload reinterpreted as an IEEE 754 single-precision float."""
        return struct.unpack("<f", struct.pack("<I", self.payload))[0]

    @classmethod
    def from_int(cls, value: int) -> "Instruction":
        """Build an operand slot carrying a signed 32-bit integer."""
        return cls(opcode=0, payload=value & 0xFFFFFFFF)

    @classmethod
    def from_float(cls, value: float) -> "Instruction":
        """Build an operand slot carrying a 32-bit float."""
        payload = struct.unpack("<I", struct.pack("<f", value))[0]
        return cls(opcode=0, payload=payload)


@dataclass(frozen=True)
class Label:
    """A named instruction offset."""
    name: str
    offset: int


@dataclass(frozen=True)
class FlowScriptBinary:
    """
    A decoded FlowScript module.

    The module is read-only for the duration of a disassembly run. Sequences
    are stored as tuples so a module can be shared between runs.
    """
    text: Tuple[Instruction, ...] = ()
    jump_labels: Tuple[Label, ...] = ()
    procedure_labels: Tuple[Label, ...] = ()
    strings: Dict[int, str] = field(default_factory=dict)
    message_data: bytes = b""

    def __post_init__(self):
        # Accept lists from callers, store tuples
        object.__setattr__(self, "text", tuple(self.text))
        object.__setattr__(self, "jump_labels", tuple(self.jump_labels))
        object.__setattr__(self, "procedure_labels", tuple(self.procedure_labels))
        object.__setattr__(self, "message_data", bytes(self.message_data))

    def __len__(self) -> int:
        """Number of instruction slots."""
        return len(self.text)

    def labels_by_offset(self) -> Dict[int, List[Label]]:
        """
        Index labels by instruction offset.

        Jump labels come first, then procedure labels, each in module order.
        """
        index: Dict[int, List[Label]] = {}
        for label in self.jump_labels + self.procedure_labels:
            index.setdefault(label.offset, []).append(label)
        return index
