"""
FlowScript Error Hierarchy
==========================

This module defines the exception hierarchy for the FlowScript tools.
All exceptions inherit from FlowScriptError, allowing callers to catch all
FlowScript-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
FlowScriptError (base)
├── BinaryFormatError - container bytes cannot be parsed into a module
└── DisassemblerError (disassembly-related, always fatal for the run)
    ├── UnknownOpcodeError - opcode value outside the instruction set
    ├── MalformedInputError - structurally inconsistent instruction stream
    └── ReferenceNotFoundError - string id or label index with no entry

Design Philosophy
-----------------
Disassembly errors capture the instruction index at which they were
detected, so messages point at the offending slot:

    instruction 12: no label for label reference id 4 in jump labels

Warnings (such as an unexpected operand on a no-operand opcode) are not
exceptions. They are logged and collected in the DisassemblyResult.
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class FlowScriptError(Exception):
    """
    Base exception for all FlowScript errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every FlowScript-related error with a single except clause:

        try:
            module = read_binary_file("field.bf")
        except FlowScriptError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Binary Reader Exceptions
# =============================================================================

class BinaryFormatError(FlowScriptError):
    """
    Invalid FlowScript container format.

    Raised when reading a binary that:
    - Is too short to hold the header or section table
    - Has an invalid magic number (expected "FLW0")
    - Declares a section that runs past the end of the data
    - Declares an element size that does not match its section type
    """
    pass


# =============================================================================
# Disassembler Exceptions
# =============================================================================

class ErrorKind(Enum):
    """Kinds of fatal disassembly outcomes reported in a DisassemblyResult."""
    UNKNOWN_OPCODE = "unknown opcode"
    MALFORMED_INPUT = "malformed input"
    REFERENCE_NOT_FOUND = "reference not found"


class DisassemblerError(FlowScriptError):
    """
    Base exception for fatal disassembly errors.

    Attributes:
        message: The error description
        index: Instruction index where the error was detected (optional)
    """

    kind: ErrorKind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str, index: Optional[int] = None):
        self.message = message
        self.index = index
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Prefix the message with the instruction index when known."""
        if self.index is None:
            return self.message
        return f"instruction {self.index}: {self.message}"


class UnknownOpcodeError(DisassemblerError):
    """
    Opcode value not covered by any operand category.

    The classifier is exhaustive over the defined instruction set, so this
    always means the input is not a FlowScript text section (or is from an
    unsupported engine revision).
    """

    kind = ErrorKind.UNKNOWN_OPCODE

    def __init__(self, opcode: int, index: Optional[int] = None):
        self.opcode = opcode
        super().__init__(f"unknown opcode {opcode}", index)


class MalformedInputError(DisassemblerError):
    """
    Structurally inconsistent instruction stream.

    Raised when:
    - An extended-operand opcode (PUSHI, PUSHF) occupies the last slot,
      leaving no slot for its 32-bit payload
    """

    kind = ErrorKind.MALFORMED_INPUT


class ReferenceNotFoundError(DisassemblerError):
    """
    Reference into a side table with no matching entry.

    Raised when a PUSHSTR string id is missing from the string table, or a
    label reference index is negative or past the end of its label list.
    """

    kind = ErrorKind.REFERENCE_NOT_FOUND

    def __init__(self, message: str, reference: int, index: Optional[int] = None):
        self.reference = reference
        super().__init__(message, index)
