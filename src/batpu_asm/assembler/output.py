"""
Machine Code Output
===================

Serializes an EncodedProgram to one of the two image formats, and reads
images back into word values.

Formats
-------
**binary** (``.mc``): the words back to back, two bytes each, most
significant byte first. A program of N instructions is 2*N bytes.

**text** (``.txt``): one line of sixteen ``0``/``1`` characters per
instruction, most significant bit first, lines joined by ``\\n`` with no
trailing newline.

Example:
    >>> program = assemble("ldi r1 5\\nhlt")
    >>> to_text(program)
    '1000000100000101\\n0001000000000000'
    >>> to_binary(program)
    b'\\x81\\x05\\x10\\x00'
"""

import logging
import struct
from enum import Enum
from pathlib import Path
from typing import Iterable

from batpu_asm.assembler.codegen import EncodedProgram
from batpu_asm.assembler.symbols import SymbolTable
from batpu_asm.cpu.batpu2 import WORD_BITS, WORD_BYTES
from batpu_asm.errors import OutputFormatError

logger = logging.getLogger(__name__)


class OutputFormat(Enum):
    """Machine-code image format."""
    BINARY = "binary"
    TEXT = "text"

    @property
    def suffix(self) -> str:
        """Default file suffix for the format."""
        return ".mc" if self is OutputFormat.BINARY else ".txt"


# =============================================================================
# Writers
# =============================================================================

def to_binary(program: EncodedProgram) -> bytes:
    """Pack the program as big-endian 16-bit words."""
    return words_to_bytes(program.values())


def to_text(program: EncodedProgram) -> str:
    """Render the program as binary-digit lines."""
    return "\n".join(word.bits() for word in program)


def serialize(program: EncodedProgram, fmt: OutputFormat = OutputFormat.BINARY) -> bytes | str:
    """
    Serialize a program.

    Returns:
        bytes for OutputFormat.BINARY, str for OutputFormat.TEXT
    """
    if fmt is OutputFormat.TEXT:
        return to_text(program)
    return to_binary(program)


def write_program(
    program: EncodedProgram,
    filepath: str | Path,
    fmt: OutputFormat = OutputFormat.BINARY,
) -> None:
    """Write a program image to a file."""
    path = Path(filepath)
    data = serialize(program, fmt)
    if isinstance(data, str):
        path.write_text(data, encoding="ascii")
    else:
        path.write_bytes(data)
    logger.debug("wrote %d word(s) to %s (%s)", len(program), path, fmt.value)


def format_symbols(symbols: SymbolTable) -> str:
    """
    Format a label table as ``name address`` lines.

    Sorted by address, then by name.
    """
    return "\n".join(f"{symbol.name} {symbol.address}" for symbol in symbols.symbols())


# =============================================================================
# Readers
# =============================================================================

def read_binary(data: bytes) -> list[int]:
    """
    Unpack a binary image into word values.

    Raises:
        OutputFormatError: If the image length is not a whole number of words
    """
    if len(data) % WORD_BYTES:
        raise OutputFormatError(
            f"binary image has {len(data)} bytes, expected a multiple of {WORD_BYTES}"
        )
    return list(struct.unpack(f">{len(data) // WORD_BYTES}H", data))


def read_text(text: str) -> list[int]:
    """
    Parse a text image into word values.

    Blank lines (including a trailing newline) are ignored.

    Raises:
        OutputFormatError: If a line is not sixteen binary digits
    """
    words = []
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        if len(line) != WORD_BITS or any(c not in "01" for c in line):
            raise OutputFormatError(
                f"line {number}: expected {WORD_BITS} binary digits, got '{line}'"
            )
        words.append(int(line, 2))
    return words


def read_program_file(filepath: str | Path, fmt: OutputFormat = OutputFormat.BINARY) -> list[int]:
    """Read an image file of the given format into word values."""
    path = Path(filepath)
    if fmt is OutputFormat.TEXT:
        return read_text(path.read_text(encoding="ascii"))
    return read_binary(path.read_bytes())


def words_to_bytes(values: Iterable[int]) -> bytes:
    """Pack plain word values as a binary image."""
    values = list(values)
    return struct.pack(f">{len(values)}H", *values)
