"""
Instruction Formatting
======================

Renders one instruction and its resolved operand as one listing line.

Line formats:
    NONE                MNEMONIC
    SHORT, COMM         MNEMONIC -12
    EXTENDED_INT        MNEMONIC 100000
    EXTENDED_FLOAT      MNEMONIC 1.50f
    STRING              MNEMONIC "text"
    *_LABEL             MNEMONIC label_name

Numbers are always rendered with "." as decimal point, whatever the host
locale. Strings are inserted verbatim with no escaping.
"""

from typing import List, Optional
import logging
import math

from flowscript.binary.opcodes import to_opcode
from flowscript.disassembler.operands import (
    CommOperand,
    FloatOperand,
    IntOperand,
    JumpLabelOperand,
    NoOperand,
    Operand,
    ProcedureLabelOperand,
    ShortOperand,
    StringOperand,
)

# Logger for this module
logger = logging.getLogger(__name__)

MIN_FRACTION_DIGITS = 2
MAX_FRACTION_DIGITS = 7
SIGNIFICANT_DIGITS = 7


def format_float(value: float) -> str:
    """
    Format a single-precision float with 2 to 7 fractional digits.

    The value is first rounded to the 7 significant digits a float32 can
    hold, so widening noise never reaches the listing. Trailing zeros past
    the second fractional digit are dropped:

        >>> format_float(1.5)
        '1.50'
        >>> format_float(0.125)
        '0.125'
        >>> format_float(3.14159274)
        '3.141593'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    value = float(f"{value:.{SIGNIFICANT_DIGITS}g}")
    integer, fraction = f"{value:.{MAX_FRACTION_DIGITS}f}".split(".")
    fraction = fraction.rstrip("0").ljust(MIN_FRACTION_DIGITS, "0")
    return f"{integer}.{fraction}"


def format_label_declaration(name: str) -> str:
    """Format a label declaration line."""
    return f"{name}:"


def format_hex_dump(data: bytes) -> str:
    """Render bytes as concatenated two-digit uppercase hex pairs."""
    return "".join(f"{b:02X}" for b in data)


def format_instruction(
    opcode: int,
    operand: Operand,
    index: Optional[int] = None,
    warnings: Optional[List[str]] = None,
) -> str:
    """
    Format one instruction as a listing line.

    A no-operand opcode carrying a non-zero short operand is reported as a
    warning (logged, and appended to `warnings` when given); the line is
    still the bare mnemonic.

    Args:
        opcode: Opcode value of the instruction
        operand: The resolved operand
        index: Instruction index, for diagnostics
        warnings: Optional list collecting warning messages

    Returns:
        The formatted line, without newline
    """
    mnemonic = to_opcode(opcode, index).name

    if isinstance(operand, NoOperand):
        if operand.unexpected != 0:
            message = (
                f"instruction {index}: {mnemonic} should not have any operands "
                f"(found {operand.unexpected})"
            )
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
        return mnemonic

    if isinstance(operand, (ShortOperand, CommOperand, IntOperand)):
        return f"{mnemonic} {operand.value}"

    if isinstance(operand, FloatOperand):
        return f"{mnemonic} {format_float(operand.value)}f"

    if isinstance(operand, StringOperand):
        return f'{mnemonic} "{operand.value}"'

    if isinstance(operand, (ProcedureLabelOperand, JumpLabelOperand)):
        return f"{mnemonic} {operand.label.name}"

    raise TypeError(f"Unsupported operand type: {type(operand).__name__}")
