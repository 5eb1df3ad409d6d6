"""
Unit Tests for the Disassembler Module
======================================

This module contains tests for the FlowScript disassembler: operand
resolution, instruction formatting, listing sinks and the cursor-driven
driver.

Test coverage includes:
- Every operand category's line format
- Extended operands (PUSHI/PUSHF) and cursor advance
- Label declarations, including shared offsets
- END spacing between procedures
- Fatal errors (unknown opcode, malformed input, missing references)
- Warnings for unexpected operands
- Raw message data hex dump
"""

import io
import logging
import math

import pytest

from flowscript.binary import FlowScriptBinary, Instruction, Label, Opcode, OperandCategory
from flowscript.config import DEFAULT_HEADER, DisassemblerConfig
from flowscript.disassembler import (
    BufferTextOutput,
    DisassemblyResult,
    FlowScriptDisassembler,
    StreamTextOutput,
    format_float,
    format_instruction,
    resolve_operand,
)
from flowscript.disassembler.formatter import format_hex_dump
from flowscript.disassembler.operands import (
    CommOperand,
    FloatOperand,
    IntOperand,
    JumpLabelOperand,
    NoOperand,
    ProcedureLabelOperand,
    ShortOperand,
    StringOperand,
)
from flowscript.errors import (
    ErrorKind,
    MalformedInputError,
    ReferenceNotFoundError,
    UnknownOpcodeError,
)


HEADER_LINES = f"; {DEFAULT_HEADER}\n\n.text\n"


def listing(module: FlowScriptBinary, **kwargs) -> str:
    """Disassemble a module to text with a fresh disassembler."""
    return FlowScriptDisassembler(**kwargs).disassemble_to_text(module)


def body_lines(text: str) -> list:
    """Lines between .text and the trailing blank line."""
    lines = text.split("\n")
    start = lines.index(".text") + 1
    end = lines.index(".msgdata raw") - 1
    return lines[start:end]


# =============================================================================
# Operand Resolution Tests
# =============================================================================

class TestResolveOperand:
    """Tests for resolving operands against the module's side tables."""

    def setup_method(self):
        self.module = FlowScriptBinary(
            text=[
                Instruction(Opcode.ADD),
                Instruction(Opcode.PUSHIS, -12),
                Instruction(Opcode.PUSHI),
                Instruction.from_int(-70000),
                Instruction(Opcode.PUSHF),
                Instruction.from_float(2.5),
                Instruction(Opcode.PUSHSTR, 6),
                Instruction(Opcode.CALL, 1),
                Instruction(Opcode.GOTO, 0),
                Instruction(Opcode.COMM, 102),
            ],
            procedure_labels=[Label("main", 0), Label("helper", 7)],
            jump_labels=[Label("loop", 1)],
            strings={0: "Hello", 6: "World"},
        )

    def test_no_operand(self):
        """No-operand opcodes resolve to NoOperand."""
        operand = resolve_operand(self.module, 0, OperandCategory.NONE)
        assert operand == NoOperand(unexpected=0)

    def test_short_operand_is_signed(self):
        """Short operands keep their sign."""
        operand = resolve_operand(self.module, 1, OperandCategory.SHORT)
        assert operand == ShortOperand(-12)

    def test_extended_int_reads_next_slot(self):
        """PUSHI reads a signed int32 from the next slot."""
        operand = resolve_operand(self.module, 2, OperandCategory.EXTENDED_INT)
        assert operand == IntOperand(-70000)

    def test_extended_float_reads_next_slot(self):
        """PUSHF reads a float32 from the next slot."""
        operand = resolve_operand(self.module, 4, OperandCategory.EXTENDED_FLOAT)
        assert operand == FloatOperand(2.5)

    def test_string_reference(self):
        """PUSHSTR resolves its string id through the string table."""
        operand = resolve_operand(self.module, 6, OperandCategory.STRING)
        assert operand == StringOperand(6, "World")

    def test_procedure_label_reference(self):
        """CALL resolves an index into the procedure labels."""
        operand = resolve_operand(self.module, 7, OperandCategory.PROCEDURE_LABEL)
        assert operand == ProcedureLabelOperand(1, Label("helper", 7))

    def test_jump_label_reference(self):
        """GOTO resolves an index into the jump labels."""
        operand = resolve_operand(self.module, 8, OperandCategory.JUMP_LABEL)
        assert operand == JumpLabelOperand(0, Label("loop", 1))

    def test_comm_operand(self):
        """COMM keeps its raw function id."""
        operand = resolve_operand(self.module, 9, OperandCategory.COMM)
        assert operand == CommOperand(102)

    def test_missing_string(self):
        """A string id absent from the table is a ReferenceNotFoundError."""
        module = FlowScriptBinary(text=[Instruction(Opcode.PUSHSTR, 3)], strings={0: "x"})
        with pytest.raises(ReferenceNotFoundError) as exc_info:
            resolve_operand(module, 0, OperandCategory.STRING)
        assert exc_info.value.reference == 3
        assert exc_info.value.index == 0

    def test_label_index_past_end(self):
        """A label index equal to the list length is rejected."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.JUMP, 3)],
            jump_labels=[Label("a", 0), Label("b", 0), Label("c", 0)],
        )
        with pytest.raises(ReferenceNotFoundError):
            resolve_operand(module, 0, OperandCategory.JUMP_LABEL)

    def test_negative_label_index(self):
        """Negative label indices never wrap around."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.PROC, -1)],
            procedure_labels=[Label("main", 0)],
        )
        with pytest.raises(ReferenceNotFoundError):
            resolve_operand(module, 0, OperandCategory.PROCEDURE_LABEL)

    def test_extended_operand_in_last_slot(self):
        """PUSHI with no following slot is malformed."""
        module = FlowScriptBinary(text=[Instruction(Opcode.PUSHI)])
        with pytest.raises(MalformedInputError) as exc_info:
            resolve_operand(module, 0, OperandCategory.EXTENDED_INT)
        assert exc_info.value.kind == ErrorKind.MALFORMED_INPUT


# =============================================================================
# Formatter Tests
# =============================================================================

class TestFormatFloat:
    """Tests for float rendering (2 to 7 fractional digits)."""

    def test_minimum_two_digits(self):
        assert format_float(1.5) == "1.50"
        assert format_float(100.0) == "100.00"
        assert format_float(0.0) == "0.00"

    def test_trailing_zeros_trimmed(self):
        assert format_float(0.125) == "0.125"
        assert format_float(-2.25) == "-2.25"

    def test_seven_significant_digits(self):
        assert format_float(3.14159274) == "3.141593"
        assert format_float(0.001234567) == "0.0012346"

    def test_single_precision_value(self):
        """float32 0.1 rounds to 0.10 at seven digits."""
        value = Instruction.from_float(0.1).operand_float
        assert value != 0.1
        assert format_float(value) == "0.10"

    @pytest.mark.parametrize("value,expected", [
        (12.3, "12.30"),
        (12.345, "12.345"),
        (123456.7, "123456.70"),
    ])
    def test_widening_noise_hidden(self, value, expected):
        """A float32 widened to a double renders as its shortest value."""
        assert format_float(Instruction.from_float(value).operand_float) == expected

    def test_tiny_value_rounds_to_zero(self):
        assert format_float(1e-9) == "0.00"

    def test_non_finite(self):
        assert format_float(math.nan) == "NaN"
        assert format_float(math.inf) == "Infinity"
        assert format_float(-math.inf) == "-Infinity"


class TestFormatInstruction:
    """Tests for single-line instruction rendering."""

    def test_no_operand(self):
        assert format_instruction(Opcode.ADD, NoOperand()) == "ADD"

    def test_short_operand(self):
        assert format_instruction(Opcode.PUSHIS, ShortOperand(-12)) == "PUSHIS -12"

    def test_int_operand(self):
        assert format_instruction(Opcode.PUSHI, IntOperand(5)) == "PUSHI 5"

    def test_float_operand(self):
        assert format_instruction(Opcode.PUSHF, FloatOperand(1.5)) == "PUSHF 1.50f"

    def test_string_operand_verbatim(self):
        """Strings are quoted but never escaped."""
        line = format_instruction(Opcode.PUSHSTR, StringOperand(0, 'say "hi"\n'))
        assert line == 'PUSHSTR "say "hi"\n"'

    def test_label_operand(self):
        line = format_instruction(Opcode.IF, JumpLabelOperand(0, Label("else_1", 9)))
        assert line == "IF else_1"

    def test_comm_operand(self):
        assert format_instruction(Opcode.COMM, CommOperand(7)) == "COMM 7"

    def test_raw_opcode_value(self):
        """Raw int opcode values are accepted."""
        assert format_instruction(22, NoOperand()) == "EQ"

    def test_unknown_opcode(self):
        with pytest.raises(UnknownOpcodeError):
            format_instruction(500, NoOperand())

    def test_unexpected_operand_warning(self, caplog):
        """A no-operand opcode with data is logged and collected, not fatal."""
        warnings = []
        with caplog.at_level(logging.WARNING, logger="flowscript.disassembler.formatter"):
            line = format_instruction(Opcode.SUB, NoOperand(unexpected=4), 3, warnings)

        assert line == "SUB"
        assert len(warnings) == 1
        assert "SUB should not have any operands" in warnings[0]
        assert "SUB should not have any operands" in caplog.text

    def test_hex_dump(self):
        assert format_hex_dump(bytes([0x00, 0x0A, 0xFF, 0x4d])) == "000AFF4D"
        assert format_hex_dump(b"") == ""


# =============================================================================
# Output Sink Tests
# =============================================================================

class TestTextOutput:
    """Tests for the listing sinks."""

    def test_buffer_writes(self):
        output = BufferTextOutput()
        output.write_comment_line("hello")
        output.write_blank_line()
        output.write_line(".text")
        output.write_fragment("AB")
        assert output.getvalue() == "; hello\n\n.text\nAB"

    def test_close_is_idempotent(self):
        output = BufferTextOutput()
        output.close()
        output.close()
        assert output.closed

    def test_write_after_close(self):
        output = BufferTextOutput()
        output.close()
        with pytest.raises(ValueError):
            output.write_line("late")

    def test_context_manager_closes(self):
        with BufferTextOutput() as output:
            output.write_line("x")
        assert output.closed
        assert output.getvalue() == "x\n"

    def test_borrowed_stream_left_open(self):
        """A stream the sink does not own is flushed, not closed."""
        stream = io.StringIO()
        output = StreamTextOutput(stream)
        output.write_line("PUSHI 5")
        output.close()
        assert not stream.closed
        assert stream.getvalue() == "PUSHI 5\n"

    def test_owned_stream_closed(self, tmp_path):
        path = tmp_path / "out.flowasm"
        output = StreamTextOutput.from_path(path)
        output.write_line("END")
        output.close()
        assert output.stream.closed
        assert path.read_text(encoding="utf-8") == "END\n"


# =============================================================================
# Driver Tests
# =============================================================================

class TestFlowScriptDisassembler:
    """Tests for complete disassembly runs."""

    def test_empty_module(self):
        """An empty module produces only the skeleton."""
        text = listing(FlowScriptBinary())
        assert text == f"; {DEFAULT_HEADER}\n\n.text\n\n.msgdata raw\n"

    def test_full_listing(self):
        """A small procedure renders exactly."""
        module = FlowScriptBinary(
            text=[
                Instruction(Opcode.PROC, 0),
                Instruction(Opcode.PUSHI),
                Instruction.from_int(5),
                Instruction(Opcode.PUSHSTR, 0),
                Instruction(Opcode.COMM, 1),
                Instruction(Opcode.END),
            ],
            procedure_labels=[Label("main", 0)],
            strings={0: "Hello"},
            message_data=b"MSG1",
        )
        assert listing(module) == (
            HEADER_LINES
            + "main:\n"
            + "PROC main\n"
            + "PUSHI 5\n"
            + 'PUSHSTR "Hello"\n'
            + "COMM 1\n"
            + "END\n"
            + "\n"
            + ".msgdata raw\n"
            + "4D534731"
        )

    def test_custom_header(self):
        text = listing(FlowScriptBinary(), header="dumped by test")
        assert text.startswith("; dumped by test\n\n")

    def test_header_from_config(self):
        disasm = FlowScriptDisassembler(DisassemblerConfig(header="from config"))
        assert disasm.disassemble_to_text(FlowScriptBinary()).startswith("; from config\n")

    def test_pushi_advances_two_slots(self):
        """The payload slot of PUSHI is never disassembled as an instruction."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.PUSHI), Instruction.from_int(5)]
        )
        output = BufferTextOutput()
        result = FlowScriptDisassembler().disassemble(module, output)

        assert result.ok
        assert result.instructions == 1
        assert result.slots == 2
        assert body_lines(output.getvalue()) == ["PUSHI 5"]

    def test_pushf_in_last_two_slots(self):
        """The final slot is reachable as an extended operand."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.ADD), Instruction(Opcode.PUSHF), Instruction.from_float(1.5)]
        )
        assert body_lines(listing(module)) == ["ADD", "PUSHF 1.50f"]

    def test_pushf_single_precision(self):
        module = FlowScriptBinary(
            text=[Instruction(Opcode.PUSHF), Instruction.from_float(12.3)]
        )
        assert body_lines(listing(module)) == ["PUSHF 12.30f"]

    def test_slots_consumed(self):
        """Slots consumed is the sum of instruction widths."""
        module = FlowScriptBinary(
            text=[
                Instruction(Opcode.PUSHI), Instruction.from_int(1),
                Instruction(Opcode.PUSHF), Instruction.from_float(2.0),
                Instruction(Opcode.ADD),
                Instruction(Opcode.POPIX, 3),
            ]
        )
        result = FlowScriptDisassembler().disassemble(module, BufferTextOutput())
        assert result.instructions == 4
        assert result.slots == 6

    def test_jump_label_declared_before_instruction(self):
        module = FlowScriptBinary(
            text=[
                Instruction(Opcode.PUSHIS, 0),
                Instruction(Opcode.PUSHIS, 1),
                Instruction(Opcode.ADD),
                Instruction(Opcode.GOTO, 0),
                Instruction(Opcode.END),
            ],
            jump_labels=[Label("label_3", 3)],
        )
        lines = body_lines(listing(module))
        assert lines == ["PUSHIS 0", "PUSHIS 1", "ADD", "label_3:", "GOTO label_3", "END"]

    def test_shared_offset_label_order(self):
        """Jump labels precede procedure labels, each in module order."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.PROC, 1), Instruction(Opcode.END)],
            jump_labels=[Label("j_b", 0), Label("j_a", 0)],
            procedure_labels=[Label("other", 1), Label("main", 0)],
        )
        lines = body_lines(listing(module))
        assert lines == ["j_b:", "j_a:", "main:", "PROC main", "other:", "END"]

    def test_labels_outside_instruction_positions(self):
        """Labels on payload slots or past the end are never declared."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.PUSHI), Instruction.from_int(9), Instruction(Opcode.END)],
            jump_labels=[Label("in_payload", 1), Label("at_end", 3)],
        )
        text = listing(module)
        assert "in_payload:" not in text
        assert "at_end:" not in text

    def test_end_end_keeps_lines_together(self):
        """Back-to-back END opcodes get no blank line between them."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.END), Instruction(Opcode.END), Instruction(Opcode.ADD)]
        )
        assert body_lines(listing(module)) == ["END", "END", "", "ADD"]

    def test_end_separates_procedures(self):
        module = FlowScriptBinary(
            text=[
                Instruction(Opcode.PROC, 0),
                Instruction(Opcode.END),
                Instruction(Opcode.PROC, 1),
                Instruction(Opcode.END),
            ],
            procedure_labels=[Label("first", 0), Label("second", 2)],
        )
        lines = body_lines(listing(module))
        assert lines == ["first:", "PROC first", "END", "", "second:", "PROC second", "END"]

    def test_section_markers_once(self):
        module = FlowScriptBinary(
            text=[Instruction(Opcode.END)] * 3,
            message_data=bytes(range(16)),
        )
        text = listing(module)
        assert text.count(".text") == 1
        assert text.count(".msgdata raw") == 1
        assert text.index(".text") < text.index(".msgdata raw")

    def test_hex_dump_length(self):
        data = bytes(range(256))
        text = listing(FlowScriptBinary(message_data=data))
        dump = text.split(".msgdata raw\n", 1)[1]
        assert len(dump) == 2 * len(data)
        assert "\n" not in dump
        assert dump.startswith("000102")
        assert dump.endswith("FEFF")

    def test_reusable_instance(self):
        """Repeated runs with one instance produce identical output."""
        module = FlowScriptBinary(
            text=[Instruction(Opcode.JUMP, 0), Instruction(Opcode.END)],
            jump_labels=[Label("top", 0)],
        )
        disasm = FlowScriptDisassembler()
        assert disasm.disassemble_to_text(module) == disasm.disassemble_to_text(module)

    def test_warning_does_not_abort(self, caplog):
        module = FlowScriptBinary(
            text=[Instruction(Opcode.ADD, 3), Instruction(Opcode.END)]
        )
        output = BufferTextOutput()
        with caplog.at_level(logging.WARNING):
            result = FlowScriptDisassembler().disassemble(module, output)

        assert result.ok
        assert len(result.warnings) == 1
        assert body_lines(output.getvalue()) == ["ADD", "END"]

    # -------------------------------------------------------------------------
    # Fatal Errors
    # -------------------------------------------------------------------------

    def test_unknown_opcode_aborts(self):
        module = FlowScriptBinary(
            text=[Instruction(Opcode.ADD), Instruction(999), Instruction(Opcode.SUB)],
            message_data=b"\x01",
        )
        output = BufferTextOutput()
        result = FlowScriptDisassembler().disassemble(module, output)

        assert not result.ok
        assert result.error_kind == ErrorKind.UNKNOWN_OPCODE
        assert isinstance(result.error, UnknownOpcodeError)
        assert result.error.index == 1
        assert result.instructions == 1

        text = output.getvalue()
        assert text.endswith("ADD\n")
        assert "SUB" not in text
        assert ".msgdata raw" not in text
        assert output.closed

    def test_missing_jump_label_aborts(self):
        module = FlowScriptBinary(
            text=[Instruction(Opcode.JUMP, 4)],
            jump_labels=[Label("a", 0), Label("b", 0), Label("c", 0)],
        )
        result = FlowScriptDisassembler().disassemble(module, BufferTextOutput())
        assert result.error_kind == ErrorKind.REFERENCE_NOT_FOUND

    def test_truncated_extended_operand_aborts(self):
        module = FlowScriptBinary(text=[Instruction(Opcode.ADD), Instruction(Opcode.PUSHI)])
        result = FlowScriptDisassembler().disassemble(module, BufferTextOutput())
        assert result.error_kind == ErrorKind.MALFORMED_INPUT

    def test_raise_for_error(self):
        module = FlowScriptBinary(text=[Instruction(Opcode.PUSHSTR, 1)])
        with pytest.raises(ReferenceNotFoundError):
            listing(module)

    def test_result_defaults(self):
        result = DisassemblyResult()
        assert result.ok
        assert result.error_kind is None
        result.raise_for_error()
