"""
bpasm - BatPU-2 Assembler Command-Line Interface
================================================

This module implements the command-line interface for the BatPU-2
assembler.

Usage Examples
--------------
Basic assembly (writes program.mc):
    $ bpasm program.as

Text output (writes program.txt):
    $ bpasm -t program.as

Explicit output file and label table:
    $ bpasm program.as out.mc -s program.sym

Without the built-in I/O port names:
    $ bpasm -d program.as

Verbose mode:
    $ bpasm -v program.as
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from batpu_asm import __version__
from batpu_asm.assembler import Assembler, AssemblerConfig
from batpu_asm.cli.errors import ExitCode, handle_cli_exception


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-d", "--no-default-defines",
    is_flag=True,
    help="Do not pre-define the I/O port names (SCR_PIX_X, RNG, ...)",
)
@click.option(
    "-t", "--text-output",
    is_flag=True,
    help="Write one line of binary digits per instruction instead of raw bytes",
)
@click.option(
    "-p", "--no-print-info",
    is_flag=True,
    help="Do not print the assembly summary",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the label table (name address) to FILE",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="bpasm")
def main(
    input_file: Path,
    output_file: Optional[Path],
    no_default_defines: bool,
    text_output: bool,
    no_print_info: bool,
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble BatPU-2 source code.

    INPUT_FILE is the assembly source. OUTPUT_FILE defaults to INPUT_FILE
    with a .mc suffix (binary) or .txt suffix (text output).

    \b
    Examples:
        bpasm program.as             # Outputs program.mc
        bpasm -t program.as          # Outputs program.txt
        bpasm program.as out.mc      # Specify output file
        bpasm -d program.as          # No built-in port names
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )

    config = AssemblerConfig(
        default_defines=not no_default_defines,
        text_output=text_output,
        print_info=not no_print_info,
    )

    if output_file is None:
        output_file = input_file.with_suffix(config.output_format.suffix)

    if output_file.resolve() == input_file.resolve():
        click.echo("Error: output file would overwrite the input file", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    asm = Assembler(config)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        asm.assemble_file(input_file)
        asm.write_output(output_file)

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if config.print_info:
            click.echo(f"Assembled {input_file} -> {output_file}")
            click.echo(asm.get_usage_summary())

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
