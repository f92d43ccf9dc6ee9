"""
BatPU-2 Assembler - Main Interface
==================================

This module provides the Assembler class, the primary interface for
assembling BatPU-2 source. It runs the lexer, define resolver, parser and
both passes in order and keeps the results for output.

Example Usage
-------------
>>> from batpu_asm.assembler import Assembler, AssemblerConfig
>>>
>>> asm = Assembler(AssemblerConfig(text_output=True))
>>> asm.assemble_string('''
... main:
...     ldi r1 10
... loop:
...     dec r1
...     brh notzero loop
...     hlt
... ''')
>>> asm.get_usage_summary()
'4 out of 1024 instructions used (0.4%)'
>>> asm.write_output("countdown.txt")

Phases
------
1. lex + define resolution + parse (errors collected together)
2. first pass: symbol table
3. second pass: encoding

A phase runs only if the earlier ones reported no errors. Any error ends
in AssemblyFailedError carrying the full ordered error list; no program
is kept in that case.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from batpu_asm.assembler.codegen import CodeGenerator, EncodedProgram
from batpu_asm.assembler.defines import DefineResolver
from batpu_asm.assembler.lexer import Lexer
from batpu_asm.assembler.output import (
    OutputFormat,
    format_symbols,
    serialize,
    write_program,
)
from batpu_asm.assembler.parser import Parser
from batpu_asm.assembler.symbols import SymbolTable, SymbolTableBuilder
from batpu_asm.cpu.batpu2 import INSTRUCTION_MEMORY_SIZE
from batpu_asm.errors import (
    AssemblerError,
    AssemblyFailedError,
    ErrorCollector,
    TooManyErrors,
)
from batpu_asm.sdk.ports import builtin_defines

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class AssemblerConfig:
    """
    Per-invocation assembler settings.

    Attributes:
        default_defines: Pre-load the built-in I/O port defines
        text_output: Produce the text image instead of the binary one
        print_info: Report the instruction memory usage after assembly
        max_errors: Errors collected before a phase gives up
    """
    default_defines: bool = True
    text_output: bool = False
    print_info: bool = False
    max_errors: int = 100

    @property
    def output_format(self) -> OutputFormat:
        return OutputFormat.TEXT if self.text_output else OutputFormat.BINARY


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Main BatPU-2 assembler class.

    One instance may assemble several sources in turn; each call replaces
    the previous program and symbol table.

    Attributes:
        config: The AssemblerConfig in use
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        self.config = config if config is not None else AssemblerConfig()
        self._program: Optional[EncodedProgram] = None
        self._symbols: Optional[SymbolTable] = None

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> EncodedProgram:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The encoded program

        Raises:
            AssemblyFailedError: If any phase reports errors
        """
        self._program = None
        self._symbols = None

        errors = ErrorCollector(self.config.max_errors)
        lines = source.splitlines()
        defines = builtin_defines() if self.config.default_defines else {}

        logger.debug("assembling %s (%d line(s))", filename, len(lines))

        # Phase 1: lex, resolve defines, parse
        try:
            tokens = Lexer(source, filename, errors).tokenize()
            resolved = DefineResolver(defines, errors, lines).resolve(tokens)
            statements = Parser(resolved, filename, errors, lines).parse()
        except TooManyErrors:
            raise AssemblyFailedError(errors.sorted_errors())
        errors.raise_if_errors()

        # Phase 2: symbol table
        try:
            symbols = SymbolTableBuilder(errors, source_lines=lines).build(statements)
        except TooManyErrors:
            raise AssemblyFailedError(errors.sorted_errors())
        errors.raise_if_errors()

        # Phase 3: encoding
        try:
            program = CodeGenerator(symbols, errors, lines).generate(statements)
        except TooManyErrors:
            raise AssemblyFailedError(errors.sorted_errors())
        errors.raise_if_errors()

        self._program = program
        self._symbols = symbols
        logger.debug("%s: %d instruction(s)", filename, len(program))
        return program

    def assemble_file(self, filepath: str | Path) -> EncodedProgram:
        """
        Assemble source code from a file.

        Raises:
            AssemblyFailedError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.debug("reading %s", filepath)
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Results
    # =========================================================================

    def get_program(self) -> EncodedProgram:
        """
        Get the last assembled program.

        Raises:
            AssemblerError: If nothing has been assembled successfully
        """
        if self._program is None:
            raise AssemblerError("no program has been assembled")
        return self._program

    def get_symbols(self) -> SymbolTable:
        """Get the label table of the last assembled program."""
        if self._symbols is None:
            raise AssemblerError("no program has been assembled")
        return self._symbols

    def get_output(self) -> bytes | str:
        """Serialize the last program in the configured format."""
        return serialize(self.get_program(), self.config.output_format)

    def get_usage_summary(self) -> str:
        """Instruction memory usage, e.g. '4 out of 1024 instructions used (0.4%)'."""
        used = len(self.get_program())
        percent = used / INSTRUCTION_MEMORY_SIZE * 100
        return f"{used} out of {INSTRUCTION_MEMORY_SIZE} instructions used ({percent:.1f}%)"

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_output(self, filepath: str | Path) -> None:
        """Write the program image in the configured format."""
        write_program(self.get_program(), filepath, self.config.output_format)

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the label table as ``name address`` lines."""
        Path(filepath).write_text(format_symbols(self.get_symbols()), encoding="utf-8")
        logger.debug("wrote symbols to %s", filepath)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    source: str,
    config: Optional[AssemblerConfig] = None,
    filename: str = "<input>",
) -> EncodedProgram:
    """
    Assemble source text.

    Args:
        source: Assembly source code
        config: Assembler settings (defaults apply if omitted)
        filename: Virtual filename for errors

    Raises:
        AssemblyFailedError: With ``errors`` listing every problem found
    """
    return Assembler(config).assemble_string(source, filename)


def assemble_file(
    filepath: str | Path,
    config: Optional[AssemblerConfig] = None,
) -> EncodedProgram:
    """Assemble a source file."""
    return Assembler(config).assemble_file(filepath)
