"""
BatPU-2 Code Generator (Second Pass)
====================================

This module encodes parsed instructions into 16-bit instruction words,
using the symbol table built by the first pass.

Encoding
--------
Each instruction is packed from its schema:

1. the opcode goes into bits 15-12,
2. fixed fields of pseudo-instructions are filled in (``cmp`` sets reg C
   to r0, ``inc`` sets the immediate to 1),
3. each operand is range-checked and written into its slot's field(s).

Location Operands
-----------------
Jump, branch and call targets are always emitted as absolute addresses:

| Source       | Address written                      |
|--------------|--------------------------------------|
| ``label``    | the label's address                  |
| ``+K``/``-K``| own address + K                      |
| ``N``        | N (absolute)                         |

Anything outside 0..1023 is an OperandRangeError.

Every instruction is encoded even after an earlier one fails, so all
encoding errors are reported together; any error rejects the program.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from batpu_asm.assembler.parser import (
    CharOperand,
    ConditionOperand,
    ImmediateOperand,
    Instruction,
    LabelRef,
    Operand,
    RegisterOperand,
    RelativeOffset,
    Statement,
)
from batpu_asm.assembler.symbols import SymbolTable
from batpu_asm.cpu.batpu2 import (
    ADDRESS,
    CHARACTER_SET,
    OPCODE_FIELD,
    WORD_BITS,
    OperandKind,
    OperandSlot,
    character_code,
    get_schema,
)
from batpu_asm.errors import (
    AssemblerError,
    ErrorCollector,
    OperandRangeError,
    ParseError,
    SourceLocation,
    UndefinedLabelError,
    UnsupportedCharacterError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Encoded Program
# =============================================================================

@dataclass(frozen=True)
class InstructionWord:
    """
    One encoded instruction.

    Attributes:
        address: Instruction address (its index in the program)
        value: The 16-bit word
        mnemonic: Source mnemonic (may be a pseudo-instruction)
        location: Source location of the instruction
    """
    address: int
    value: int
    mnemonic: str
    location: Optional[SourceLocation] = None

    def bits(self) -> str:
        """The word as sixteen binary digits, most significant bit first."""
        return format(self.value, f"0{WORD_BITS}b")


class EncodedProgram:
    """
    Ordered, immutable sequence of instruction words.

    ``program[i].address == i`` for every word.
    """

    def __init__(self, words: Iterable[InstructionWord] = ()):
        self._words = tuple(words)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[InstructionWord]:
        return iter(self._words)

    def __getitem__(self, index: int) -> InstructionWord:
        return self._words[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncodedProgram):
            return NotImplemented
        return self.values() == other.values()

    def __repr__(self) -> str:
        return f"EncodedProgram({len(self._words)} words)"

    @property
    def words(self) -> tuple[InstructionWord, ...]:
        return self._words

    def values(self) -> list[int]:
        """Plain integer word values in address order."""
        return [word.value for word in self._words]


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Encodes instructions into words.

    Usage:
        codegen = CodeGenerator(symbols, errors)
        program = codegen.generate(statements)
        errors.raise_if_errors()
    """

    def __init__(
        self,
        symbols: SymbolTable,
        errors: Optional[ErrorCollector] = None,
        source_lines: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the code generator.

        Args:
            symbols: Label addresses from the first pass
            errors: Error collector to report into
            source_lines: Source text lines for error context
        """
        self.symbols = symbols
        self.errors = errors if errors is not None else ErrorCollector()
        self._source_lines = source_lines

    def generate(self, statements: Iterable[Statement]) -> EncodedProgram:
        """
        Encode every instruction in order.

        Addresses are counted exactly as in the first pass. Errors are
        added to ``self.errors`` and the failing instruction is skipped.
        """
        words: list[InstructionWord] = []
        address = 0

        for stmt in statements:
            if not isinstance(stmt, Instruction):
                continue
            try:
                value = self.encode_instruction(stmt, address)
                words.append(InstructionWord(address, value, stmt.mnemonic, stmt.location))
            except AssemblerError as e:
                self.errors.add(e)
            address += 1

        logger.debug("pass 2: encoded %d of %d instruction(s)", len(words), address)
        return EncodedProgram(words)

    def encode_instruction(self, inst: Instruction, address: int) -> int:
        """
        Encode a single instruction located at ``address``.

        Raises:
            AssemblerError: For unresolvable or out-of-range operands
        """
        schema = get_schema(inst.mnemonic)
        if schema is None or len(inst.operands) != len(schema.slots):
            # Parser guarantees both; guard against hand-built statements
            raise ParseError(f"cannot encode '{inst}'", inst.location)

        word = OPCODE_FIELD.pack(schema.opcode)
        for fixed_field, value in schema.fixed:
            word |= fixed_field.pack(value)

        for operand, slot in zip(inst.operands, schema.slots):
            value = self._operand_value(operand, slot, address)
            for target in slot.fields:
                word |= target.pack(value)

        return word

    # =========================================================================
    # Operand Resolution
    # =========================================================================

    def _operand_value(self, operand: Operand, slot: OperandSlot, address: int) -> int:
        """Resolve and range-check one operand for its slot."""
        kind = slot.kind

        if kind == OperandKind.LOCATION:
            return self._location_value(operand, address)

        if isinstance(operand, ConditionOperand):
            value = operand.code
        elif isinstance(operand, RegisterOperand):
            value = operand.index
        elif isinstance(operand, CharOperand):
            value = character_code(operand.char)
            if value is None:
                raise UnsupportedCharacterError(
                    operand.char,
                    CHARACTER_SET,
                    operand.location,
                    source_line=self._source_line(operand.location),
                )
        elif isinstance(operand, ImmediateOperand):
            value = operand.value
        else:
            raise ParseError(
                f"operand '{operand}' cannot be used as {slot.name}",
                operand.location,
            )

        self._check_range(str(kind), value, slot, operand.location)
        return value

    def _location_value(self, operand: Operand, address: int) -> int:
        """Resolve a jump/branch/call target to an absolute address."""
        if isinstance(operand, LabelRef):
            if operand.name not in self.symbols:
                raise UndefinedLabelError(
                    operand.name,
                    operand.location,
                    source_line=self._source_line(operand.location),
                    similar_labels=self.symbols.similar(operand.name),
                )
            return self.symbols[operand.name]

        if isinstance(operand, RelativeOffset):
            target = address + operand.delta
            what = "jump target"
        elif isinstance(operand, ImmediateOperand):
            target = operand.value
            what = "address"
        else:
            raise ParseError(f"operand '{operand}' is not a location", operand.location)

        if not ADDRESS.accepts(target):
            raise OperandRangeError(
                what,
                target,
                ADDRESS.minimum,
                ADDRESS.maximum,
                operand.location,
                source_line=self._source_line(operand.location),
            )
        return target

    def _check_range(
        self,
        what: str,
        value: int,
        slot: OperandSlot,
        location: SourceLocation,
    ) -> None:
        field_ = slot.field
        if not field_.accepts(value):
            raise OperandRangeError(
                what,
                value,
                field_.minimum,
                field_.maximum,
                location,
                source_line=self._source_line(location),
            )

    def _source_line(self, location: Optional[SourceLocation]) -> Optional[str]:
        if (
            location is not None
            and self._source_lines is not None
            and 0 < location.line <= len(self._source_lines)
        ):
            return self._source_lines[location.line - 1]
        return None


def encode(statements: Sequence[Statement], symbols: SymbolTable) -> EncodedProgram:
    """
    Run the second pass on its own.

    Raises:
        AssemblyFailedError: If any instruction cannot be encoded
    """
    errors = ErrorCollector()
    program = CodeGenerator(symbols, errors).generate(statements)
    errors.raise_if_errors()
    return program
