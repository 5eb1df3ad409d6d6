"""
FlowScript Binary Package
=========================

Definitions shared by every tool that looks at compiled FlowScript:

- **opcodes**: the instruction set and its operand categories
- **module**: the in-memory module (instructions, labels, strings, raw data)
- **reader**: parsing .bf container bytes into a module

Usage:
    from flowscript.binary import read_binary_file, Opcode, classify

    module = read_binary_file("field.bf")
    first = module.text[0]
    print(Opcode(first.opcode).name, classify(first.opcode))
"""

from flowscript.binary.opcodes import (
    Opcode,
    OperandCategory,
    OPCODE_CATEGORIES,
    TERMINATE_PROCEDURE,
    classify,
    instruction_width,
    to_opcode,
    uses_extended_operand,
)
from flowscript.binary.module import FlowScriptBinary, Instruction, Label
from flowscript.binary.reader import (
    BinaryHeader,
    SectionHeader,
    SectionType,
    read_binary,
    read_binary_file,
)

__all__ = [
    "Opcode",
    "OperandCategory",
    "OPCODE_CATEGORIES",
    "TERMINATE_PROCEDURE",
    "classify",
    "instruction_width",
    "to_opcode",
    "uses_extended_operand",
    "FlowScriptBinary",
    "Instruction",
    "Label",
    "BinaryHeader",
    "SectionHeader",
    "SectionType",
    "read_binary",
    "read_binary_file",
]
