"""
FlowScript Disassembler Package
===============================

Converts a decoded FlowScript module into a textual assembly listing.

Modules:
    operands: operand resolution against the module's side tables
    formatter: one-line rendering of instructions, labels and raw data
    output: listing sinks (stream, in-memory buffer)
    driver: the cursor-driven disassembler

Usage:
    from flowscript.binary import read_binary_file
    from flowscript.disassembler import FlowScriptDisassembler

    module = read_binary_file("field.bf")
    print(FlowScriptDisassembler().disassemble_to_text(module))
"""

from .driver import FlowScriptDisassembler, DisassemblyResult
from .output import TextOutput, StreamTextOutput, BufferTextOutput
from .operands import resolve_operand
from .formatter import format_instruction, format_float

__all__ = [
    "FlowScriptDisassembler",
    "DisassemblyResult",
    "TextOutput",
    "StreamTextOutput",
    "BufferTextOutput",
    "resolve_operand",
    "format_instruction",
    "format_float",
]
