"""
FlowScript Binary Reader
========================

Parses FlowScript container bytes (.bf files) into a FlowScriptBinary.

File Layout
-----------
    Offset  Size    Description
    ------  ----    -----------
    0       1       File type
    1       1       Compressed flag
    2       2       User id
    4       4       File size
    8       4       Magic "FLW0"
    12      4       Reserved
    16      4       Section count
    20      2       Local int variable count
    22      2       Local float variable count
    24      2       Endianness marker
    26      2       Reserved
    28      4       Padding
    32      16*n    Section headers

Each section header holds four 32-bit fields: section type, element size,
element count and the absolute address of the first element.

    Type    Section             Element
    ----    -------             -------
    0       Procedure labels    name (size - 8 bytes), offset u32, reserved u32
    1       Jump labels         name (size - 8 bytes), offset u32, reserved u32
    2       Text                opcode u16, short operand i16
    3       Message script      raw byte
    4       Strings             raw byte (NUL-terminated strings)

String ids are the byte offsets of each string within the string section.

Usage
-----
    >>> from flowscript.binary import read_binary_file
    >>> module = read_binary_file("field.bf")
    >>> print(f"{len(module)} slots, {len(module.procedure_labels)} procedures")
"""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import logging
import struct

from flowscript.binary.module import FlowScriptBinary, Instruction, Label
from flowscript.config import DEFAULT_ENCODING
from flowscript.errors import BinaryFormatError

# Logger for this module
logger = logging.getLogger(__name__)


MAGIC = b"FLW0"
HEADER_SIZE = 32
SECTION_HEADER_SIZE = 16
INSTRUCTION_SIZE = 4

# A container never holds more sections than this; used to detect byte order
MAX_SECTION_COUNT = 0xFF

_HEADER_FORMAT = "BBHI4sIIHHHHI"
_SECTION_FORMAT = "IIII"


class SectionType(IntEnum):
    """Section type identifiers."""
    PROCEDURE_LABELS = 0
    JUMP_LABELS = 1
    TEXT = 2
    MESSAGE_SCRIPT = 3
    STRINGS = 4


@dataclass(frozen=True)
class BinaryHeader:
    """Fixed 32-byte container header."""
    file_type: int
    is_compressed: bool
    user_id: int
    file_size: int
    section_count: int
    local_int_count: int
    local_float_count: int
    big_endian: bool


@dataclass(frozen=True)
class SectionHeader:
    """One entry of the section table."""
    section_type: int
    element_size: int
    element_count: int
    address: int

    @property
    def size(self) -> int:
        """Total section size in bytes."""
        return self.element_size * self.element_count


# =============================================================================
# Header Parsing
# =============================================================================

def detect_big_endian(data: bytes) -> bool:
    """
    Detect the container's byte order from its section count.

    Args:
        data: Container bytes (at least HEADER_SIZE long)

    Returns:
        True for big-endian, False for little-endian

    Raises:
        BinaryFormatError: If the section count is implausible either way
    """
    raw = data[16:20]
    if struct.unpack("<I", raw)[0] <= MAX_SECTION_COUNT:
        return False
    if struct.unpack(">I", raw)[0] <= MAX_SECTION_COUNT:
        return True
    raise BinaryFormatError(f"Cannot determine byte order: section count bytes {raw.hex()}")


def parse_header(data: bytes, big_endian: Optional[bool] = None) -> BinaryHeader:
    """
    Parse and validate the 32-byte container header.

    Raises:
        BinaryFormatError: If the data is too short or the magic is wrong
    """
    if len(data) < HEADER_SIZE:
        raise BinaryFormatError(f"File too small: {len(data)} bytes")

    if data[8:12] != MAGIC:
        raise BinaryFormatError(f"Invalid magic number: {data[8:12]!r}")

    if big_endian is None:
        big_endian = detect_big_endian(data)

    order = ">" if big_endian else "<"
    fields = struct.unpack(order + _HEADER_FORMAT, data[:HEADER_SIZE])
    (file_type, compressed, user_id, file_size, _magic, _reserved,
     section_count, local_int_count, local_float_count, _endianness,
     _reserved2, _padding) = fields

    if compressed:
        raise BinaryFormatError("Compressed FlowScript binaries are not supported")

    header = BinaryHeader(
        file_type=file_type,
        is_compressed=bool(compressed),
        user_id=user_id,
        file_size=file_size,
        section_count=section_count,
        local_int_count=local_int_count,
        local_float_count=local_float_count,
        big_endian=big_endian,
    )
    logger.debug(
        f"Header: {section_count} sections, "
        f"{'big' if big_endian else 'little'}-endian, size {file_size}"
    )
    return header


def parse_section_headers(data: bytes, header: BinaryHeader) -> List[SectionHeader]:
    """
    Parse the section table that follows the header.

    Raises:
        BinaryFormatError: If the table or any section runs past the data
    """
    order = ">" if header.big_endian else "<"
    table_end = HEADER_SIZE + header.section_count * SECTION_HEADER_SIZE
    if table_end > len(data):
        raise BinaryFormatError(
            f"Section table truncated: needs {table_end} bytes, have {len(data)}"
        )

    sections = []
    for i in range(header.section_count):
        start = HEADER_SIZE + i * SECTION_HEADER_SIZE
        section = SectionHeader(
            *struct.unpack(order + _SECTION_FORMAT, data[start:start + SECTION_HEADER_SIZE])
        )
        if section.address + section.size > len(data):
            raise BinaryFormatError(
                f"Section {i} (type {section.section_type}) runs past end of data: "
                f"0x{section.address:X}+{section.size} > {len(data)}"
            )
        sections.append(section)
    return sections


# =============================================================================
# Section Parsing
# =============================================================================

def _decode(raw: bytes, encoding: str, what: str) -> str:
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise BinaryFormatError(f"Cannot decode {what} as {encoding}: {e}") from e


def parse_labels(
    data: bytes,
    section: SectionHeader,
    big_endian: bool,
    encoding: str = DEFAULT_ENCODING,
) -> Tuple[Label, ...]:
    """Parse a procedure or jump label section."""
    name_size = section.element_size - 8
    if name_size <= 0:
        raise BinaryFormatError(f"Invalid label element size {section.element_size}")

    order = ">" if big_endian else "<"
    labels = []
    for i in range(section.element_count):
        start = section.address + i * section.element_size
        raw_name = data[start:start + name_size].split(b"\0", 1)[0]
        offset, _reserved = struct.unpack(
            order + "II", data[start + name_size:start + section.element_size]
        )
        labels.append(Label(_decode(raw_name, encoding, "label name"), offset))
    return tuple(labels)


def parse_text(data: bytes, section: SectionHeader, big_endian: bool) -> Tuple[Instruction, ...]:
    """Parse the text section into instruction slots."""
    if section.element_size != INSTRUCTION_SIZE:
        raise BinaryFormatError(f"Invalid instruction size {section.element_size}")

    order = ">" if big_endian else "<"
    instructions = []
    for i in range(section.element_count):
        start = section.address + i * INSTRUCTION_SIZE
        slot = data[start:start + INSTRUCTION_SIZE]
        opcode, operand_short = struct.unpack(order + "Hh", slot)
        payload = struct.unpack(order + "I", slot)[0]
        instructions.append(Instruction(opcode, operand_short, payload))
    return tuple(instructions)


def parse_strings(raw: bytes, encoding: str = DEFAULT_ENCODING) -> Dict[int, str]:
    """
    Split the string section into a table keyed by byte offset.

    Example:
        >>> parse_strings(b"Hi\\0there\\0", "ascii")
        {0: 'Hi', 3: 'there'}
    """
    strings: Dict[int, str] = {}
    offset = 0
    while offset < len(raw):
        end = raw.find(b"\0", offset)
        if end == -1:
            end = len(raw)
        strings[offset] = _decode(raw[offset:end], encoding, f"string at offset {offset}")
        offset = end + 1
    return strings


# =============================================================================
# Module Reading
# =============================================================================

def read_binary(
    data: bytes,
    encoding: str = DEFAULT_ENCODING,
    big_endian: Optional[bool] = None,
) -> FlowScriptBinary:
    """
    Parse container bytes into a FlowScriptBinary.

    Args:
        data: The raw bytes of a .bf file
        encoding: Codec for label names and strings
        big_endian: Force byte order; None detects it

    Returns:
        The decoded module

    Raises:
        BinaryFormatError: If the data is not a valid FlowScript binary
    """
    header = parse_header(data, big_endian)
    sections = parse_section_headers(data, header)

    parts: Dict[int, object] = {}
    for section in sections:
        if section.section_type in parts:
            raise BinaryFormatError(f"Duplicate section type {section.section_type}")

        if section.section_type in (SectionType.PROCEDURE_LABELS, SectionType.JUMP_LABELS):
            parts[section.section_type] = parse_labels(data, section, header.big_endian, encoding)
        elif section.section_type == SectionType.TEXT:
            parts[section.section_type] = parse_text(data, section, header.big_endian)
        elif section.section_type in (SectionType.MESSAGE_SCRIPT, SectionType.STRINGS):
            if section.element_size != 1:
                raise BinaryFormatError(
                    f"Invalid element size {section.element_size} for byte section "
                    f"type {section.section_type}"
                )
            raw = data[section.address:section.address + section.size]
            if section.section_type == SectionType.STRINGS:
                parts[section.section_type] = parse_strings(raw, encoding)
            else:
                parts[section.section_type] = raw
        else:
            logger.warning(
                f"Skipping unknown section type {section.section_type} at 0x{section.address:X}"
            )
            continue

        logger.debug(
            f"Parsed section type {section.section_type}: "
            f"{section.element_count} elements at 0x{section.address:X}"
        )

    return FlowScriptBinary(
        text=parts.get(SectionType.TEXT, ()),
        jump_labels=parts.get(SectionType.JUMP_LABELS, ()),
        procedure_labels=parts.get(SectionType.PROCEDURE_LABELS, ()),
        strings=parts.get(SectionType.STRINGS, {}),
        message_data=parts.get(SectionType.MESSAGE_SCRIPT, b""),
    )


def read_binary_file(
    path: Union[str, Path],
    encoding: str = DEFAULT_ENCODING,
    big_endian: Optional[bool] = None,
) -> FlowScriptBinary:
    """Read and parse a .bf file from disk."""
    path = Path(path)
    logger.debug(f"Reading {path}")
    return read_binary(path.read_bytes(), encoding=encoding, big_endian=big_endian)
