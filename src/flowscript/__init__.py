"""
FlowScript Tools - Disassembler for Compiled FlowScript Modules
===============================================================

FlowScript is the stack-based bytecode executed by the scripting engine of
several Atlus games. Compiled scripts ship as .bf containers holding a text
section of 32-bit instruction slots, procedure and jump label tables, a
string table and an embedded message script block.

Main Components
---------------
- **binary**: instruction set, in-memory module and .bf reader
- **disassembler**: module to text listing (bfdisasm)
- **config**: configuration defaults and environment overrides

Quick Start
-----------
    >>> from flowscript import read_binary_file, FlowScriptDisassembler
    >>> module = read_binary_file("field.bf")
    >>> print(FlowScriptDisassembler().disassemble_to_text(module))

Or use the command-line tool:
    $ bfdisasm field.bf -o field.flowasm
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from flowscript.errors import (
    FlowScriptError,
    BinaryFormatError,
    DisassemblerError,
    ErrorKind,
    UnknownOpcodeError,
    MalformedInputError,
    ReferenceNotFoundError,
)
from flowscript.config import DisassemblerConfig, ReaderConfig
from flowscript.binary import (
    FlowScriptBinary,
    Instruction,
    Label,
    Opcode,
    OperandCategory,
    classify,
    read_binary,
    read_binary_file,
)
from flowscript.disassembler import (
    FlowScriptDisassembler,
    DisassemblyResult,
    BufferTextOutput,
    StreamTextOutput,
)

__all__ = [
    "__version__",
    "FlowScriptError",
    "BinaryFormatError",
    "DisassemblerError",
    "ErrorKind",
    "UnknownOpcodeError",
    "MalformedInputError",
    "ReferenceNotFoundError",
    "DisassemblerConfig",
    "ReaderConfig",
    "FlowScriptBinary",
    "Instruction",
    "Label",
    "Opcode",
    "OperandCategory",
    "classify",
    "read_binary",
    "read_binary_file",
    "FlowScriptDisassembler",
    "DisassemblyResult",
    "BufferTextOutput",
    "StreamTextOutput",
]
