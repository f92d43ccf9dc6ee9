"""
BatPU Assembler - Toolchain for the BatPU-2 CPU
===============================================

This package assembles programs for the BatPU-2, a small CPU with sixteen
8-bit registers and 1024 words of 16-bit instruction memory.

Main Components
---------------
- **assembler**: two-pass assembler (bpasm)
    Converts assembly source (.as) to a binary (.mc) or text (.txt) image

- **disassembler**: machine code back to assembly (bpdisasm)

- **cpu**: the BatPU-2 instruction table and bit-field layout

- **sdk**: the memory-mapped I/O port table used for built-in defines

Quick Start
-----------
Assemble a program:
    >>> from batpu_asm import assemble, to_binary
    >>> program = assemble("ldi r1 SCR_PIX_X\\nhlt")
    >>> to_binary(program)
    b'\\x81\\xf0\\x10\\x00'

Or use the command-line tools:
    $ bpasm program.as
    $ bpdisasm program.mc
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from batpu_asm.assembler import (
    Assembler,
    AssemblerConfig,
    EncodedProgram,
    InstructionWord,
    OutputFormat,
    SymbolTable,
    assemble,
    assemble_file,
    serialize,
    to_binary,
    to_text,
    read_binary,
    read_text,
)
from batpu_asm.disassembler import BatPUDisassembler, DisassembledInstruction
from batpu_asm.errors import (
    BatPUError,
    SourceLocation,
    AssemblerError,
    LexError,
    ParseError,
    UnknownMnemonicError,
    DuplicateLabelError,
    UndefinedLabelError,
    OperandRangeError,
    UnsupportedCharacterError,
    ProgramSizeError,
    AssemblyFailedError,
    TooManyErrors,
    OutputFormatError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "EncodedProgram",
    "InstructionWord",
    "OutputFormat",
    "SymbolTable",
    "assemble",
    "assemble_file",
    "serialize",
    "to_binary",
    "to_text",
    "read_binary",
    "read_text",
    # Disassembler
    "BatPUDisassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "BatPUError",
    "SourceLocation",
    "AssemblerError",
    "LexError",
    "ParseError",
    "UnknownMnemonicError",
    "DuplicateLabelError",
    "UndefinedLabelError",
    "OperandRangeError",
    "UnsupportedCharacterError",
    "ProgramSizeError",
    "AssemblyFailedError",
    "TooManyErrors",
    "OutputFormatError",
]
