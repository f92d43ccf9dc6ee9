"""
bpdisasm - BatPU-2 Disassembler Command-Line Interface
======================================================

Prints an assembled BatPU-2 image as assembly text, one instruction per
line.

Usage Examples
--------------
Disassemble a binary image:
    $ bpdisasm program.mc

Disassemble a text image:
    $ bpdisasm -t program.txt

Mnemonics only, written to a file:
    $ bpdisasm program.mc --no-words -o listing.as
"""

import logging
from pathlib import Path
from typing import Optional

import click

from batpu_asm import __version__
from batpu_asm.assembler.output import OutputFormat, read_program_file
from batpu_asm.disassembler import BatPUDisassembler
from batpu_asm.cli.errors import handle_cli_exception

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-t", "--text-input",
    is_flag=True,
    help="Input is a text image (lines of binary digits) instead of raw bytes",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "--no-words",
    is_flag=True,
    help="Omit the binary word column (show only mnemonic and operands)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="bpdisasm")
def main(
    input_file: Path,
    text_input: bool,
    output: Optional[Path],
    no_words: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a BatPU-2 machine-code image.

    INPUT_FILE is a .mc binary image, or a .txt text image with -t.

    \b
    Examples:
        bpdisasm program.mc
        bpdisasm -t program.txt --no-words
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )

    fmt = OutputFormat.TEXT if text_input else OutputFormat.BINARY

    try:
        words = read_program_file(input_file, fmt)
        logger.debug("read %d word(s) from %s", len(words), input_file)

        disasm = BatPUDisassembler()
        output_lines = [
            f"// Disassembly of {input_file.name}",
            f"// {len(words)} instruction(s)",
            "",
        ]
        output_lines.extend(
            instr.format(show_word=not no_words)
            for instr in disasm.disassemble(words)
        )
        result = "\n".join(output_lines) + "\n"

        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Disassembly")


if __name__ == "__main__":
    main()
