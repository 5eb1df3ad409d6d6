"""
bfdisasm - FlowScript Disassembler Command-Line Interface
=========================================================

This module implements the command-line interface for the FlowScript
disassembler. It reads a compiled .bf binary and writes its assembly
listing.

Usage Examples
--------------
Disassemble to stdout:
    $ bfdisasm field.bf

Output to file:
    $ bfdisasm field.bf -o field.flowasm

Custom header comment:
    $ bfdisasm field.bf --header "dumped from disc 1"

Force byte order and string encoding:
    $ bfdisasm field.bf --big-endian --encoding utf-8

Environment variables FLOWSCRIPT_HEADER, FLOWSCRIPT_ENCODING and
FLOWSCRIPT_ENDIANNESS provide defaults for the matching options.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import codecs
import logging
from pathlib import Path
from typing import Optional

import click

from flowscript import __version__
from flowscript.binary import read_binary_file
from flowscript.cli.errors import handle_cli_exception
from flowscript.config import DisassemblerConfig, ReaderConfig
from flowscript.disassembler import (
    BufferTextOutput,
    FlowScriptDisassembler,
    StreamTextOutput,
)


def _validate_encoding(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        codecs.lookup(value)
    except LookupError:
        raise click.BadParameter(f"unknown encoding '{value}'")
    return value


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "--header",
    type=str,
    default=None,
    help="Header comment text (default: FLOWSCRIPT_HEADER or the AtlusScriptLib banner)",
)
@click.option(
    "-e", "--encoding",
    type=str,
    default=None,
    callback=_validate_encoding,
    help="Encoding of label names and strings (default: shift_jis)",
)
@click.option(
    "--big-endian/--little-endian",
    default=None,
    help="Force byte order (default: detect from header)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="bfdisasm")
def main(
    input_file: Path,
    output: Optional[Path],
    header: Optional[str],
    encoding: Optional[str],
    big_endian: Optional[bool],
    verbose: bool,
) -> None:
    """
    Disassemble a compiled FlowScript binary.

    INPUT_FILE is the .bf file to disassemble.

    Examples:

        # Print the listing
        bfdisasm field.bf

        # Write the listing to a file
        bfdisasm field.bf -o field.flowasm
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    try:
        reader_config = ReaderConfig.from_env().with_overrides(
            encoding=encoding, big_endian=big_endian
        )
        config = DisassemblerConfig.from_env().with_overrides(header=header)

        module = read_binary_file(
            input_file,
            encoding=reader_config.encoding,
            big_endian=reader_config.big_endian,
        )

        if verbose:
            click.echo(f"Input file: {input_file}", err=True)
            click.echo(
                f"Slots: {len(module.text)}, procedures: {len(module.procedure_labels)}, "
                f"jump labels: {len(module.jump_labels)}, strings: {len(module.strings)}, "
                f"message data: {len(module.message_data)} bytes",
                err=True,
            )

        disasm = FlowScriptDisassembler(config)

        if output:
            result = disasm.disassemble(module, StreamTextOutput.from_path(output))
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            # Partial listings are still printed when the run aborts
            buffer = BufferTextOutput()
            result = disasm.disassemble(module, buffer)
            click.echo(buffer.getvalue(), nl=False)

        if verbose:
            click.echo(
                f"Instructions disassembled: {result.instructions} "
                f"({len(result.warnings)} warnings)",
                err=True,
            )

        result.raise_for_error()

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Disassembly")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
