"""
FlowScript Tools - Configuration
================================

Configuration for the disassembler and the binary reader. Configuration
can come from:
- Default values (defined here)
- Environment variables
- Command-line options (applied by the CLI on top of the above)

Environment variables (all optional):
    FLOWSCRIPT_HEADER: Header comment written at the top of each listing
    FLOWSCRIPT_ENCODING: Codec used for label names and the string table
    FLOWSCRIPT_ENDIANNESS: "little" or "big" to skip endianness detection

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, replace
from typing import Optional
import os


DEFAULT_HEADER = "This file was generated by AtlusScriptLib"
DEFAULT_ENCODING = "shift_jis"


@dataclass(frozen=True)
class DisassemblerConfig:
    """
    Configuration for a FlowScriptDisassembler.

    The configuration is immutable, so one disassembler instance can run
    any number of disassemblies.

    Attributes:
        header: Text of the comment line that opens every listing
    """
    header: str = DEFAULT_HEADER

    @classmethod
    def from_env(cls) -> "DisassemblerConfig":
        """Create a DisassemblerConfig from environment variables."""
        return cls(header=os.environ.get("FLOWSCRIPT_HEADER", DEFAULT_HEADER))

    def with_overrides(self, header: Optional[str] = None) -> "DisassemblerConfig":
        """Return a copy with any non-None values replaced."""
        if header is None:
            return self
        return replace(self, header=header)


@dataclass(frozen=True)
class ReaderConfig:
    """
    Configuration for the binary reader.

    Attributes:
        encoding: Codec for label names and strings (default: shift_jis)
        big_endian: Force byte order; None detects it from the header
    """
    encoding: str = DEFAULT_ENCODING
    big_endian: Optional[bool] = None

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        """
        Create a ReaderConfig from environment variables.

        Raises:
            ValueError: If FLOWSCRIPT_ENDIANNESS is not "little" or "big"
        """
        encoding = os.environ.get("FLOWSCRIPT_ENCODING", DEFAULT_ENCODING)

        big_endian = None
        endianness = os.environ.get("FLOWSCRIPT_ENDIANNESS")
        if endianness:
            endianness = endianness.strip().lower()
            if endianness not in ("little", "big"):
                raise ValueError(
                    f"FLOWSCRIPT_ENDIANNESS must be 'little' or 'big', got {endianness!r}"
                )
            big_endian = endianness == "big"

        return cls(encoding=encoding, big_endian=big_endian)

    def with_overrides(
        self,
        encoding: Optional[str] = None,
        big_endian: Optional[bool] = None,
    ) -> "ReaderConfig":
        """Return a copy with any non-None values replaced."""
        config = self
        if encoding is not None:
            config = replace(config, encoding=encoding)
        if big_endian is not None:
            config = replace(config, big_endian=big_endian)
        return config
