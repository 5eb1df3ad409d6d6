"""
FlowScript Opcodes
==================

Opcode definitions and operand classification for the FlowScript virtual
machine. FlowScript is a stack-based bytecode: every instruction occupies
one 32-bit slot holding a 16-bit opcode and a 16-bit signed short operand.

Operand Categories:
    Each opcode belongs to exactly one of eight operand categories, which
    decide how the short operand is interpreted and how many slots the
    instruction occupies:

    - NONE: opcode alone, short operand expected to be zero
    - SHORT: short operand is an inline int16
    - EXTENDED_INT: the next slot holds an int32 (two slots total)
    - EXTENDED_FLOAT: the next slot holds a float32 (two slots total)
    - STRING: short operand is a string table id
    - PROCEDURE_LABEL: short operand indexes the procedure label list
    - JUMP_LABEL: short operand indexes the jump label list
    - COMM: short operand is a raw communication function id

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from enum import Enum, IntEnum, auto
from typing import Dict, Optional

from flowscript.errors import UnknownOpcodeError


class Opcode(IntEnum):
    """FlowScript opcodes, valued by their encoding in the text section."""
    PUSHI = 0
    PUSHF = 1
    PUSHIX = 2
    PUSHIF = 3
    PUSHREG = 4
    POPIX = 5
    POPFX = 6
    PROC = 7
    COMM = 8
    END = 9
    JUMP = 10
    CALL = 11
    RUN = 12
    GOTO = 13
    ADD = 14
    SUB = 15
    MUL = 16
    DIV = 17
    MINUS = 18
    NOT = 19
    OR = 20
    AND = 21
    EQ = 22
    NEQ = 23
    S = 24
    L = 25
    SE = 26
    LE = 27
    IF = 28
    PUSHIS = 29
    PUSHLIX = 30
    PUSHLFX = 31
    POPLIX = 32
    POPLFX = 33
    PUSHSTR = 34


class OperandCategory(Enum):
    """How an opcode's operand is encoded."""
    NONE = auto()
    SHORT = auto()
    EXTENDED_INT = auto()
    EXTENDED_FLOAT = auto()
    STRING = auto()
    PROCEDURE_LABEL = auto()
    JUMP_LABEL = auto()
    COMM = auto()


# Opcode that terminates a procedure body
TERMINATE_PROCEDURE = Opcode.END

EXTENDED_CATEGORIES = (OperandCategory.EXTENDED_INT, OperandCategory.EXTENDED_FLOAT)


# =============================================================================
# Opcode Category Table
# =============================================================================
# Every Opcode member must appear here exactly once. classify() relies on
# this table being exhaustive over the enum.
# =============================================================================

OPCODE_CATEGORIES: Dict[Opcode, OperandCategory] = {
    # =========================================================================
    # Extended operands (payload in the following slot)
    # =========================================================================
    Opcode.PUSHI: OperandCategory.EXTENDED_INT,
    Opcode.PUSHF: OperandCategory.EXTENDED_FLOAT,

    # =========================================================================
    # Inline short operand (variable indices, function ids, small ints)
    # =========================================================================
    Opcode.PUSHIX: OperandCategory.SHORT,
    Opcode.PUSHIF: OperandCategory.SHORT,
    Opcode.POPIX: OperandCategory.SHORT,
    Opcode.POPFX: OperandCategory.SHORT,
    Opcode.RUN: OperandCategory.SHORT,
    Opcode.PUSHIS: OperandCategory.SHORT,
    Opcode.PUSHLIX: OperandCategory.SHORT,
    Opcode.PUSHLFX: OperandCategory.SHORT,
    Opcode.POPLIX: OperandCategory.SHORT,
    Opcode.POPLFX: OperandCategory.SHORT,

    # =========================================================================
    # Table references
    # =========================================================================
    Opcode.PUSHSTR: OperandCategory.STRING,
    Opcode.PROC: OperandCategory.PROCEDURE_LABEL,
    Opcode.CALL: OperandCategory.PROCEDURE_LABEL,
    Opcode.JUMP: OperandCategory.JUMP_LABEL,
    Opcode.GOTO: OperandCategory.JUMP_LABEL,
    Opcode.IF: OperandCategory.JUMP_LABEL,
    Opcode.COMM: OperandCategory.COMM,

    # =========================================================================
    # No operand (stack operators and procedure end)
    # =========================================================================
    Opcode.PUSHREG: OperandCategory.NONE,
    Opcode.ADD: OperandCategory.NONE,
    Opcode.SUB: OperandCategory.NONE,
    Opcode.MUL: OperandCategory.NONE,
    Opcode.DIV: OperandCategory.NONE,
    Opcode.MINUS: OperandCategory.NONE,
    Opcode.NOT: OperandCategory.NONE,
    Opcode.OR: OperandCategory.NONE,
    Opcode.AND: OperandCategory.NONE,
    Opcode.EQ: OperandCategory.NONE,
    Opcode.NEQ: OperandCategory.NONE,
    Opcode.S: OperandCategory.NONE,
    Opcode.L: OperandCategory.NONE,
    Opcode.SE: OperandCategory.NONE,
    Opcode.LE: OperandCategory.NONE,
    Opcode.END: OperandCategory.NONE,
}


# =============================================================================
# Lookup Functions
# =============================================================================

def to_opcode(value: int, index: Optional[int] = None) -> Opcode:
    """
    Convert a raw opcode value to an Opcode member.

    Args:
        value: Opcode value as stored in the text section
        index: Instruction index, for error reporting

    Returns:
        The matching Opcode

    Raises:
        UnknownOpcodeError: If the value is not a FlowScript opcode
    """
    try:
        return Opcode(value)
    except ValueError:
        raise UnknownOpcodeError(value, index) from None


def classify(opcode: int, index: Optional[int] = None) -> OperandCategory:
    """
    Classify an opcode into its operand category.

    Args:
        opcode: Opcode value (an Opcode member or a raw int)
        index: Instruction index, for error reporting

    Returns:
        The opcode's OperandCategory

    Raises:
        UnknownOpcodeError: If the opcode is outside the instruction set
    """
    return OPCODE_CATEGORIES[to_opcode(opcode, index)]


def uses_extended_operand(opcode: int) -> bool:
    """Return True if the opcode reads its operand from the next slot."""
    return classify(opcode) in EXTENDED_CATEGORIES


def instruction_width(opcode: int) -> int:
    """Number of slots the instruction occupies (2 for PUSHI/PUSHF, else 1)."""
    return 2 if uses_extended_operand(opcode) else 1
