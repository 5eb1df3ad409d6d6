"""
Operand Resolution
==================

Turns an instruction and its operand category into a concrete operand.

Each operand category has its own operand type carrying exactly the data
it needs, so a string reference can never be confused with a label
reference further down the pipeline:

    Category            Operand type                Data
    --------            ------------                ----
    NONE                NoOperand                   -
    SHORT               ShortOperand                inline int16
    EXTENDED_INT        IntOperand                  next slot as int32
    EXTENDED_FLOAT      FloatOperand                next slot as float32
    STRING              StringOperand               string id + string
    PROCEDURE_LABEL     ProcedureLabelOperand       index + Label
    JUMP_LABEL          JumpLabelOperand            index + Label
    COMM                CommOperand                 raw int16
"""

from dataclasses import dataclass
from typing import Sequence, Union

from flowscript.binary.module import FlowScriptBinary, Instruction, Label
from flowscript.binary.opcodes import OperandCategory
from flowscript.errors import MalformedInputError, ReferenceNotFoundError


# =============================================================================
# Operand Types
# =============================================================================

@dataclass(frozen=True)
class NoOperand:
    """Operand of an opcode that takes none."""
    unexpected: int = 0


@dataclass(frozen=True)
class ShortOperand:
    value: int


@dataclass(frozen=True)
class IntOperand:
    value: int


@dataclass(frozen=True)
class FloatOperand:
    value: float


@dataclass(frozen=True)
class StringOperand:
    string_id: int
    value: str


@dataclass(frozen=True)
class ProcedureLabelOperand:
    index: int
    label: Label


@dataclass(frozen=True)
class JumpLabelOperand:
    index: int
    label: Label


@dataclass(frozen=True)
class CommOperand:
    value: int


Operand = Union[
    NoOperand,
    ShortOperand,
    IntOperand,
    FloatOperand,
    StringOperand,
    ProcedureLabelOperand,
    JumpLabelOperand,
    CommOperand,
]


# =============================================================================
# Resolver
# =============================================================================

def _lookup_label(labels: Sequence[Label], reference: int, table: str, index: int) -> Label:
    if reference < 0 or reference >= len(labels):
        raise ReferenceNotFoundError(
            f"no label for label reference id {reference} in {table} "
            f"({len(labels)} entries)",
            reference,
            index,
        )
    return labels[reference]


def _extended_payload(module: FlowScriptBinary, index: int) -> Instruction:
    if index + 1 >= len(module.text):
        raise MalformedInputError(
            "extended operand opcode in last slot has no operand slot", index
        )
    return module.text[index + 1]


def resolve_operand(
    module: FlowScriptBinary,
    index: int,
    category: OperandCategory,
) -> Operand:
    """
    Resolve the operand of the instruction at `index`.

    Args:
        module: The module being disassembled
        index: Index of the instruction slot
        category: The instruction's operand category (from classify())

    Returns:
        The operand variant matching `category`

    Raises:
        MalformedInputError: If an extended operand has no following slot
        ReferenceNotFoundError: If a string id or label index has no entry
    """
    instruction = module.text[index]
    short = instruction.operand_short

    if category == OperandCategory.NONE:
        return NoOperand(unexpected=short)

    elif category == OperandCategory.SHORT:
        return ShortOperand(short)

    elif category == OperandCategory.EXTENDED_INT:
        return IntOperand(_extended_payload(module, index).operand_int)

    elif category == OperandCategory.EXTENDED_FLOAT:
        return FloatOperand(_extended_payload(module, index).operand_float)

    elif category == OperandCategory.STRING:
        if short not in module.strings:
            raise ReferenceNotFoundError(
                f"no string for string reference id {short} in string table",
                short,
                index,
            )
        return StringOperand(short, module.strings[short])

    elif category == OperandCategory.PROCEDURE_LABEL:
        label = _lookup_label(module.procedure_labels, short, "procedure labels", index)
        return ProcedureLabelOperand(short, label)

    elif category == OperandCategory.JUMP_LABEL:
        label = _lookup_label(module.jump_labels, short, "jump labels", index)
        return JumpLabelOperand(short, label)

    elif category == OperandCategory.COMM:
        return CommOperand(short)

    raise ValueError(f"Unhandled operand category: {category}")
