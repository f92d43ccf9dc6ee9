"""
Symbol Table (First Pass)
=========================

The first pass walks the statement list with a running address counter
that starts at 0. A label binds to the current counter value, which is
the address of the next instruction; each instruction then advances the
counter by one. Labels do not take up space.

The resulting SymbolTable is read-only: the second pass looks addresses
up but never changes them.
"""

import difflib
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Sequence

from batpu_asm.assembler.parser import Instruction, LabelDef, Statement
from batpu_asm.cpu.batpu2 import INSTRUCTION_MEMORY_SIZE
from batpu_asm.errors import (
    DuplicateLabelError,
    ErrorCollector,
    ProgramSizeError,
    SourceLocation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Symbol:
    """
    A resolved label.

    Attributes:
        name: Label name
        address: Instruction address the label points at
        location: Where the label was declared
    """
    name: str
    address: int
    location: Optional[SourceLocation] = None


class SymbolTable(Mapping):
    """
    Immutable label -> address map.

    Behaves as a read-only ``Mapping[str, int]`` and keeps the full Symbol
    records for diagnostics.

    Attributes:
        instruction_count: Number of instructions in the program
    """

    def __init__(self, symbols: Iterable[Symbol] = (), instruction_count: int = 0):
        records = {symbol.name: symbol for symbol in symbols}
        self._symbols = MappingProxyType(records)
        self._addresses = MappingProxyType(
            {name: symbol.address for name, symbol in records.items()}
        )
        self.instruction_count = instruction_count

    def __getitem__(self, name: str) -> int:
        return self._addresses[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self) -> str:
        return f"SymbolTable({dict(self._addresses)!r}, instruction_count={self.instruction_count})"

    def get_symbol(self, name: str) -> Optional[Symbol]:
        """Return the Symbol record for a label, or None."""
        return self._symbols.get(name)

    def symbols(self) -> list[Symbol]:
        """All symbols sorted by address, then name."""
        return sorted(self._symbols.values(), key=lambda s: (s.address, s.name))

    def similar(self, name: str, count: int = 3) -> list[str]:
        """Return label names close to ``name``, for 'did you mean' hints."""
        return difflib.get_close_matches(name, list(self._addresses), n=count)


class SymbolTableBuilder:
    """
    Runs the first pass.

    Usage:
        builder = SymbolTableBuilder(errors)
        symbols = builder.build(statements)
    """

    def __init__(
        self,
        errors: Optional[ErrorCollector] = None,
        capacity: int = INSTRUCTION_MEMORY_SIZE,
        source_lines: Optional[Sequence[str]] = None,
    ):
        self.errors = errors if errors is not None else ErrorCollector()
        self.capacity = capacity
        self._source_lines = source_lines

    def build(self, statements: Iterable[Statement]) -> SymbolTable:
        """
        Assign addresses to labels.

        Duplicate labels and an oversized program are reported to
        ``self.errors``; the first declaration of a label wins.
        """
        symbols: dict[str, Symbol] = {}
        address = 0

        for stmt in statements:
            if isinstance(stmt, LabelDef):
                existing = symbols.get(stmt.name)
                if existing is not None:
                    self.errors.add(DuplicateLabelError(
                        stmt.name,
                        stmt.location,
                        original_location=existing.location,
                        source_line=self._source_line(stmt.location),
                    ))
                    continue
                symbols[stmt.name] = Symbol(stmt.name, address, stmt.location)
            elif isinstance(stmt, Instruction):
                address += 1

        if address > self.capacity:
            self.errors.add(ProgramSizeError(address, self.capacity))

        logger.debug("pass 1: %d label(s), %d instruction(s)", len(symbols), address)
        return SymbolTable(symbols.values(), instruction_count=address)

    def _source_line(self, location: SourceLocation) -> Optional[str]:
        if self._source_lines is not None and 0 < location.line <= len(self._source_lines):
            return self._source_lines[location.line - 1]
        return None


def build_symbol_table(statements: Iterable[Statement]) -> SymbolTable:
    """
    Run the first pass on its own.

    Raises:
        AssemblyFailedError: If a label is declared twice or the program
            is too large
    """
    errors = ErrorCollector()
    table = SymbolTableBuilder(errors).build(statements)
    errors.raise_if_errors()
    return table
