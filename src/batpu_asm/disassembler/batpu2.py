"""
BatPU-2 Disassembler
====================

Decodes 16-bit instruction words back into assembly text. This is the
inverse of the assembler's second pass, and uses the same field table so
the two cannot drift apart.

Words are always shown as native instructions: ``cmp r1 r2`` comes back
as ``sub r1 r2 r0``. Operands are written so that the text re-assembles
to the identical word:

| Operand   | Shown as                      |
|-----------|-------------------------------|
| register  | ``rN``                        |
| immediate | unsigned value (0-255)        |
| offset    | signed value (-8..7)          |
| condition | ``zero``/``notzero``/...      |
| address   | absolute number (0-1023)      |

Usage:
    disasm = BatPUDisassembler(labels={0: "main"})
    for instr in disasm.disassemble(read_binary(image)):
        print(instr)
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from batpu_asm.assembler.output import read_binary
from batpu_asm.cpu.batpu2 import (
    CONDITION_NAMES,
    OPCODE_FIELD,
    WORD_BITS,
    WORD_MASK,
    OperandKind,
    get_native_schema,
)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single decoded instruction.

    Attributes:
        address: Instruction address
        word: The raw 16-bit word
        mnemonic: Native mnemonic
        operands: Formatted operands, in source order
        comment: Optional annotation (label name of a jump target)
    """
    address: int
    word: int
    mnemonic: str
    operands: list[str]
    comment: str = ""

    @property
    def operand_str(self) -> str:
        return " ".join(self.operands)

    @property
    def source(self) -> str:
        """The instruction as assembly text, without address or comment."""
        if self.operands:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def format(self, show_word: bool = True) -> str:
        """Format as a listing line: ADDRESS: [WORD] ASM [// COMMENT]."""
        line = f"{self.address:04d}: "
        if show_word:
            line += f"{self.word:0{WORD_BITS}b}  "
        if self.comment:
            return f"{line}{self.source:<20} // {self.comment}"
        return f"{line}{self.source}"

    def __str__(self) -> str:
        return self.format()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": self.address,
            "word": f"{self.word:0{WORD_BITS}b}",
            "opcode": OPCODE_FIELD.unpack(self.word),
            "mnemonic": self.mnemonic,
            "operands": list(self.operands),
            "comment": self.comment,
        }


# =============================================================================
# BatPU-2 Disassembler
# =============================================================================

class BatPUDisassembler:
    """
    Disassembler for BatPU-2 machine code.

    Attributes:
        labels: Address -> label name, used to annotate jump targets
    """

    def __init__(self, labels: Optional[Mapping[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            labels: Optional mapping of addresses to label names
        """
        self.labels: dict[int, str] = dict(labels or {})

    def disassemble_one(self, word: int, address: int = 0) -> DisassembledInstruction:
        """
        Decode a single instruction word.

        Args:
            word: 16-bit instruction word
            address: Address of the word (for the listing only)
        """
        word &= WORD_MASK
        schema = get_native_schema(OPCODE_FIELD.unpack(word))

        operands = []
        comment = ""
        for slot in schema.slots:
            value = slot.field.unpack(word)
            if slot.kind == OperandKind.REGISTER:
                operands.append(f"r{value}")
            elif slot.kind == OperandKind.CONDITION:
                operands.append(CONDITION_NAMES[value])
            else:
                operands.append(str(value))
                if slot.kind == OperandKind.LOCATION and value in self.labels:
                    comment = self.labels[value]

        return DisassembledInstruction(
            address=address,
            word=word,
            mnemonic=schema.mnemonic,
            operands=operands,
            comment=comment,
        )

    def disassemble(
        self,
        words: Iterable[int],
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> list[DisassembledInstruction]:
        """
        Decode a sequence of words.

        Args:
            words: Instruction words in address order
            start_address: Address of the first word
            count: Maximum number of instructions (None = all)
        """
        result = []
        for index, word in enumerate(words):
            if count is not None and index >= count:
                break
            result.append(self.disassemble_one(word, start_address + index))
        return result

    def disassemble_bytes(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> list[DisassembledInstruction]:
        """
        Decode a binary image.

        Raises:
            OutputFormatError: If the image has an odd number of bytes
        """
        return self.disassemble(read_binary(data), start_address, count)

    def disassemble_to_text(
        self,
        words: Iterable[int],
        show_words: bool = True,
    ) -> str:
        """Disassemble and return a complete listing."""
        return "\n".join(
            instr.format(show_words) for instr in self.disassemble(words)
        )
