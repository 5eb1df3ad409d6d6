"""
Disassembler Text Output
========================

Sinks that receive the disassembly listing.

TextOutput defines the writes the disassembler performs. Two sinks are
provided:

- **StreamTextOutput**: writes to a text stream (stdout, an open file)
- **BufferTextOutput**: accumulates the listing in memory

A sink is closed exactly once; close() after the first call does nothing.
Both sinks are context managers:

    >>> with BufferTextOutput() as output:
    ...     output.write_line(".text")
    >>> output.getvalue()
    '.text\\n'
"""

from pathlib import Path
from typing import List, TextIO, Union


COMMENT_PREFIX = "; "


class TextOutput:
    """
    Base class for listing sinks.

    Subclasses implement _write() and optionally _release().
    """

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _write(self, text: str) -> None:
        raise NotImplementedError("Subclasses must implement _write()")

    def _release(self) -> None:
        """Flush or free underlying resources. Called once from close()."""
        pass

    def write_fragment(self, text: str) -> None:
        """Write text without a trailing newline."""
        if self._closed:
            raise ValueError("write to closed output")
        self._write(text)

    def write_line(self, text: str) -> None:
        """Write text followed by a newline."""
        self.write_fragment(text + "\n")

    def write_comment_line(self, text: str) -> None:
        """Write a comment line."""
        self.write_line(COMMENT_PREFIX + text)

    def write_blank_line(self) -> None:
        """Write an empty line."""
        self.write_line("")

    def close(self) -> None:
        """Release the sink. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def __enter__(self) -> "TextOutput":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StreamTextOutput(TextOutput):
    """
    Sink writing to a text stream.

    The stream is flushed on close, and closed only if this sink owns it
    (see from_path()).
    """

    def __init__(self, stream: TextIO, owns_stream: bool = False):
        super().__init__()
        self.stream = stream
        self.owns_stream = owns_stream

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "StreamTextOutput":
        """Open `path` for writing (UTF-8) and own the resulting stream."""
        stream = open(path, "w", encoding="utf-8", newline="\n")
        return cls(stream, owns_stream=True)

    def _write(self, text: str) -> None:
        self.stream.write(text)

    def _release(self) -> None:
        if self.owns_stream:
            self.stream.close()
        else:
            self.stream.flush()


class BufferTextOutput(TextOutput):
    """Sink accumulating the listing in memory."""

    def __init__(self):
        super().__init__()
        self._parts: List[str] = []

    def _write(self, text: str) -> None:
        self._parts.append(text)

    def getvalue(self) -> str:
        """Return everything written so far (also valid after close)."""
        return "".join(self._parts)
