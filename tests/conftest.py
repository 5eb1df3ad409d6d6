"""
FlowScript Tests - Shared Fixtures
==================================

Provides a builder for synthetic .bf container bytes so the reader and the
CLI can be tested without shipping game files.
"""

import struct
from typing import List, Optional, Sequence, Tuple

import pytest

from flowscript.binary.reader import HEADER_SIZE, MAGIC, SECTION_HEADER_SIZE, SectionType


def build_binary(
    text: Sequence[Tuple[int, int]] = (),
    procedure_labels: Sequence[Tuple[str, int]] = (),
    jump_labels: Sequence[Tuple[str, int]] = (),
    strings: bytes = b"",
    message_data: bytes = b"",
    big_endian: bool = False,
    label_name_size: int = 24,
    extra_sections: Optional[List[Tuple[int, int, int, bytes]]] = None,
) -> bytes:
    """
    Build FlowScript container bytes.

    Args:
        text: Instruction slots as (opcode, short operand) pairs. Use
              raw_slot() to place a 32-bit payload slot.
        procedure_labels: (name, offset) pairs
        jump_labels: (name, offset) pairs
        strings: Raw string section bytes
        message_data: Raw message script bytes
        big_endian: Byte order of every multi-byte field
        label_name_size: Bytes reserved for each label name
        extra_sections: Additional (type, element size, count, payload) entries
    """
    order = ">" if big_endian else "<"

    def encode_labels(labels):
        payload = b""
        for name, offset in labels:
            payload += name.encode("ascii").ljust(label_name_size, b"\0")
            payload += struct.pack(order + "II", offset, 0)
        return payload

    text_payload = b""
    for slot in text:
        if isinstance(slot, bytes):
            text_payload += slot if not big_endian else slot[::-1]
        else:
            text_payload += struct.pack(order + "Hh", *slot)

    label_size = label_name_size + 8
    sections = [
        (SectionType.PROCEDURE_LABELS, label_size, len(procedure_labels),
         encode_labels(procedure_labels)),
        (SectionType.JUMP_LABELS, label_size, len(jump_labels), encode_labels(jump_labels)),
        (SectionType.TEXT, 4, len(text), text_payload),
        (SectionType.MESSAGE_SCRIPT, 1, len(message_data), message_data),
        (SectionType.STRINGS, 1, len(strings), strings),
    ]
    sections.extend(extra_sections or [])

    address = HEADER_SIZE + SECTION_HEADER_SIZE * len(sections)
    table = b""
    body = b""
    for section_type, element_size, count, payload in sections:
        table += struct.pack(order + "IIII", section_type, element_size, count, address + len(body))
        body += payload

    total = address + len(body)
    header = struct.pack(
        order + "BBHI4sIIHHHHI",
        0, 0, 0, total, MAGIC, 0, len(sections), 0, 0, 0, 0, 0,
    )
    return header + table + body


def raw_slot(fmt: str, value) -> bytes:
    """A little-endian 32-bit payload slot ("i" for int32, "f" for float32)."""
    return struct.pack("<" + fmt, value)


@pytest.fixture
def make_binary():
    """Fixture exposing build_binary()."""
    return build_binary


@pytest.fixture
def payload_slot():
    """Fixture exposing raw_slot()."""
    return raw_slot
