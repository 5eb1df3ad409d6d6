"""
FlowScript Disassembler
=======================

Disassembles a FlowScriptBinary into a textual assembly listing:

    ; This file was generated by AtlusScriptLib

    .text
    main:
    PROC main
    PUSHI 5
    PUSHSTR "Hello"
    COMM 1
    END

    .msgdata raw
    4D534731...

The disassembler walks the text section with a cursor. At each position it
declares every label pointing there (jump labels first, then procedure
labels), classifies the opcode, resolves its operand and writes one line.
PUSHI and PUSHF take their operand from the following slot, so the cursor
advances by two after them. A blank line separates procedures: it follows
each END unless the next instruction is another END.

Fatal errors (unknown opcode, malformed input, missing reference) abort the
run immediately. Lines already written stay in the output, and the output
is closed on every path. The outcome is returned as a DisassemblyResult.

Usage:
    disasm = FlowScriptDisassembler()
    with open("field.flow", "w") as f:
        result = disasm.disassemble(module, StreamTextOutput(f))
    result.raise_for_error()

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from flowscript.binary.module import FlowScriptBinary
from flowscript.binary.opcodes import TERMINATE_PROCEDURE, classify, instruction_width
from flowscript.config import DisassemblerConfig
from flowscript.disassembler.formatter import (
    format_hex_dump,
    format_instruction,
    format_label_declaration,
)
from flowscript.disassembler.operands import resolve_operand
from flowscript.disassembler.output import BufferTextOutput, TextOutput
from flowscript.errors import DisassemblerError, ErrorKind

# Logger for this module
logger = logging.getLogger(__name__)


TEXT_SECTION_MARKER = ".text"
MESSAGE_SECTION_MARKER = ".msgdata raw"


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassemblyResult:
    """
    Outcome of one disassembly run.

    Attributes:
        instructions: Number of instruction lines written
        slots: Number of instruction slots consumed
        warnings: Non-fatal diagnostics, in the order they were raised
        error: The fatal error that aborted the run, or None
    """
    instructions: int = 0
    slots: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[DisassemblerError] = None

    @property
    def ok(self) -> bool:
        """True if the run completed."""
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        """Kind of the fatal error, or None if the run completed."""
        return self.error.kind if self.error is not None else None

    def raise_for_error(self) -> None:
        """Re-raise the fatal error, if any."""
        if self.error is not None:
            raise self.error


# =============================================================================
# FlowScript Disassembler
# =============================================================================

class FlowScriptDisassembler:
    """
    Disassembler for FlowScript modules.

    The disassembler holds only its immutable configuration; all run state
    (the cursor, the label index) lives inside disassemble(), so a single
    instance can be reused for any number of modules.

    Usage:
        disasm = FlowScriptDisassembler(header="generated by hand")
        text = disasm.disassemble_to_text(module)
    """

    def __init__(
        self,
        config: Optional[DisassemblerConfig] = None,
        header: Optional[str] = None,
    ):
        """
        Initialize the disassembler.

        Args:
            config: Disassembler configuration (default: DisassemblerConfig())
            header: Header comment text, overriding config.header
        """
        self.config = (config or DisassemblerConfig()).with_overrides(header=header)

    def disassemble(self, module: FlowScriptBinary, output: TextOutput) -> DisassemblyResult:
        """
        Disassemble a module into `output`.

        The output is closed when this returns, whether the run completed
        or aborted.

        Args:
            module: The module to disassemble
            output: Sink receiving the listing

        Returns:
            DisassemblyResult; check .ok or call .raise_for_error()
        """
        result = DisassemblyResult()
        try:
            self._put_header(output)
            self._put_text(module, output, result)
            self._put_message_data(module, output)
        except DisassemblerError as e:
            result.error = e
            logger.error(f"Disassembly aborted: {e}")
        finally:
            output.close()

        logger.debug(
            f"Disassembled {result.instructions} instructions "
            f"({result.slots}/{len(module.text)} slots, {len(result.warnings)} warnings)"
        )
        return result

    def disassemble_to_text(self, module: FlowScriptBinary) -> str:
        """
        Disassemble and return the listing as a string.

        Raises:
            DisassemblerError: If the run aborts
        """
        output = BufferTextOutput()
        self.disassemble(module, output).raise_for_error()
        return output.getvalue()

    def _put_header(self, output: TextOutput) -> None:
        output.write_comment_line(self.config.header)
        output.write_blank_line()

    def _put_text(
        self,
        module: FlowScriptBinary,
        output: TextOutput,
        result: DisassemblyResult,
    ) -> None:
        output.write_line(TEXT_SECTION_MARKER)

        labels = module.labels_by_offset()
        count = len(module.text)
        index = 0

        while index < count:
            for label in labels.get(index, ()):
                output.write_line(format_label_declaration(label.name))

            instruction = module.text[index]
            category = classify(instruction.opcode, index)
            operand = resolve_operand(module, index, category)
            output.write_line(
                format_instruction(instruction.opcode, operand, index, result.warnings)
            )
            result.instructions += 1

            index += instruction_width(instruction.opcode)
            result.slots = index

            # Separate procedures, but keep runs of END together
            if (instruction.opcode == TERMINATE_PROCEDURE
                    and index < count
                    and module.text[index].opcode != TERMINATE_PROCEDURE):
                output.write_blank_line()

        output.write_blank_line()

    def _put_message_data(self, module: FlowScriptBinary, output: TextOutput) -> None:
        output.write_line(MESSAGE_SECTION_MARKER)
        output.write_fragment(format_hex_dump(module.message_data))
