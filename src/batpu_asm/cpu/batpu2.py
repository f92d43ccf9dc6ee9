"""
BatPU-2 Instruction Set Definition
==================================

This module defines the BatPU-2 instruction set: opcodes, bit-field
layouts, operand schemas, pseudo-instructions, branch conditions and the
display character set.

The BatPU-2 is a small word-addressed CPU with sixteen 8-bit registers
(r0 always reads as zero) and 1024 words of instruction memory. Every
instruction is exactly one 16-bit word; the opcode always sits in the top
four bits.

Word Layout
-----------
::

    15  12 11   8 7    4 3    0
    +------+------+------+------+
    |opcode| reg A| reg B| reg C|   register forms
    +------+------+------+------+
    |opcode| reg A|  immediate  |   ldi / adi
    +------+--+---+-------------+
    |opcode|cc|    address      |   jmp / brh / cal
    +------+--+------+------+---+
    |opcode| reg A| reg B|offset|   lod / str
    +------+------+------+------+

Pseudo-instructions
-------------------
Convenience mnemonics expand to exactly one native word, so they do not
disturb address counting::

    cmp A B   ->  sub A B r0
    mov A C   ->  add A r0 C
    lsh A C   ->  add A A C
    inc A     ->  adi A 1
    dec A     ->  adi A -1
    not A C   ->  nor A r0 C
    neg A C   ->  sub r0 A C
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Machine Constants
# =============================================================================

WORD_BITS = 16
WORD_BYTES = 2
WORD_MASK = (1 << WORD_BITS) - 1

# Instruction memory size in words; addresses run 0..1023
INSTRUCTION_MEMORY_SIZE = 1024

REGISTER_COUNT = 16

# Characters accepted in character immediates ('A'), in display-code order
CHARACTER_SET = " ABCDEFGHIJKLMNOPQRSTUVWXYZ.!?"


# =============================================================================
# Bit Fields
# =============================================================================

@dataclass(frozen=True)
class Field:
    """
    A bit field inside an instruction word.

    Attributes:
        name: Field name used in decoded output
        shift: Bit position of the least significant bit
        width: Number of bits
        minimum: Smallest source value accepted for this field
        maximum: Largest source value accepted for this field
        signed: True if the stored bits are read back as two's complement
    """
    name: str
    shift: int
    width: int
    minimum: int
    maximum: int
    signed: bool = False

    @property
    def mask(self) -> int:
        """Mask of the field bits before shifting."""
        return (1 << self.width) - 1

    def accepts(self, value: int) -> bool:
        """Return True if value may be encoded into this field."""
        return self.minimum <= value <= self.maximum

    def pack(self, value: int) -> int:
        """Place value into the field; negative values wrap to two's complement."""
        return (value & self.mask) << self.shift

    def unpack(self, word: int) -> int:
        """Extract the field from an instruction word."""
        raw = (word >> self.shift) & self.mask
        if self.signed and raw & (1 << (self.width - 1)):
            raw -= 1 << self.width
        return raw


OPCODE_FIELD = Field("opcode", 12, 4, 0, 15)
REG_A = Field("reg_a", 8, 4, 0, 15)
REG_B = Field("reg_b", 4, 4, 0, 15)
REG_C = Field("reg_c", 0, 4, 0, 15)
# Immediates accept signed or unsigned bytes; both share the same 8 bits
IMMEDIATE = Field("immediate", 0, 8, -128, 255)
ADDRESS = Field("address", 0, 10, 0, INSTRUCTION_MEMORY_SIZE - 1)
CONDITION = Field("condition", 10, 2, 0, 3)
OFFSET = Field("offset", 0, 4, -8, 7, signed=True)


# =============================================================================
# Operand Schemas
# =============================================================================

class OperandKind(Enum):
    """What kind of source operand an instruction slot takes."""
    REGISTER = auto()    # r0-r15
    IMMEDIATE = auto()   # number, signed number or character
    OFFSET = auto()      # signed memory offset
    LOCATION = auto()    # label, relative offset or absolute address
    CONDITION = auto()   # branch condition name

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class OperandSlot:
    """
    One operand position of an instruction.

    Attributes:
        name: Display name used in diagnostics ("RegA", "Immediate")
        kind: The kind of operand accepted
        fields: Fields the operand value is written into (usually one;
                ``lsh`` writes its first register into two)
    """
    name: str
    kind: OperandKind
    fields: tuple[Field, ...]

    @property
    def field(self) -> Field:
        """The primary field, used for range checks."""
        return self.fields[0]


@dataclass(frozen=True)
class OpcodeSchema:
    """
    Encoding information for one mnemonic.

    Attributes:
        mnemonic: Lowercase mnemonic
        opcode: 4-bit opcode value
        slots: Expected operands, in source order
        fixed: Field values supplied by the mnemonic itself (pseudo forms)
        description: Short human-readable description
    """
    mnemonic: str
    opcode: int
    slots: tuple[OperandSlot, ...] = ()
    fixed: tuple[tuple[Field, int], ...] = ()
    description: str = ""

    @property
    def is_pseudo(self) -> bool:
        """True for mnemonics that are not a native opcode name."""
        return OPCODE_NAMES[self.opcode] != self.mnemonic

    def describe_operands(self) -> str:
        """Describe expected operands, e.g. 'RegA, RegB and Offset (3 operands)'."""
        names = [slot.name for slot in self.slots]
        if not names:
            return "no operands"
        if len(names) == 1:
            joined = names[0]
        else:
            joined = f"{', '.join(names[:-1])} and {names[-1]}"
        plural = "" if len(names) == 1 else "s"
        return f"{joined} ({len(names)} operand{plural})"

    def __repr__(self) -> str:
        return f"OpcodeSchema({self.mnemonic!r}, opcode={self.opcode})"


def _reg(name: str, *fields: Field) -> OperandSlot:
    return OperandSlot(name, OperandKind.REGISTER, fields)


_IMM = OperandSlot("Immediate", OperandKind.IMMEDIATE, (IMMEDIATE,))
_OFF = OperandSlot("Offset", OperandKind.OFFSET, (OFFSET,))
_LOC = OperandSlot("Label/Address", OperandKind.LOCATION, (ADDRESS,))
_COND = OperandSlot("Condition", OperandKind.CONDITION, (CONDITION,))

_ABC = (_reg("RegA", REG_A), _reg("RegB", REG_B), _reg("RegC", REG_C))


# =============================================================================
# Instruction Table
# =============================================================================
# Native mnemonic for each opcode, indexed by opcode value.

OPCODE_NAMES: tuple[str, ...] = (
    "nop", "hlt", "add", "sub", "nor", "and", "xor", "rsh",
    "ldi", "adi", "jmp", "brh", "cal", "ret", "lod", "str",
)

INSTRUCTION_TABLE: dict[str, OpcodeSchema] = {
    schema.mnemonic: schema for schema in (
        # Native instructions
        OpcodeSchema("nop", 0, description="No operation"),
        OpcodeSchema("hlt", 1, description="Halt"),
        OpcodeSchema("add", 2, _ABC, description="C = A + B"),
        OpcodeSchema("sub", 3, _ABC, description="C = A - B"),
        OpcodeSchema("nor", 4, _ABC, description="C = !(A | B)"),
        OpcodeSchema("and", 5, _ABC, description="C = A & B"),
        OpcodeSchema("xor", 6, _ABC, description="C = A ^ B"),
        OpcodeSchema("rsh", 7, (_reg("RegA", REG_A), _reg("RegC", REG_C)),
                     description="C = A >> 1"),
        OpcodeSchema("ldi", 8, (_reg("RegA", REG_A), _IMM), description="A = immediate"),
        OpcodeSchema("adi", 9, (_reg("RegA", REG_A), _IMM), description="A = A + immediate"),
        OpcodeSchema("jmp", 10, (_LOC,), description="Jump"),
        OpcodeSchema("brh", 11, (_COND, _LOC), description="Branch if condition"),
        OpcodeSchema("cal", 12, (_LOC,), description="Call"),
        OpcodeSchema("ret", 13, description="Return"),
        OpcodeSchema("lod", 14, (_reg("RegA", REG_A), _reg("RegB", REG_B), _OFF),
                     description="B = mem[A + offset]"),
        OpcodeSchema("str", 15, (_reg("RegA", REG_A), _reg("RegB", REG_B), _OFF),
                     description="mem[A + offset] = B"),

        # Pseudo-instructions
        OpcodeSchema("cmp", 3, (_reg("RegA", REG_A), _reg("RegB", REG_B)),
                     fixed=((REG_C, 0),), description="sub A B r0"),
        OpcodeSchema("mov", 2, (_reg("RegA", REG_A), _reg("RegC", REG_C)),
                     fixed=((REG_B, 0),), description="add A r0 C"),
        OpcodeSchema("lsh", 2, (_reg("RegA", REG_A, REG_B), _reg("RegC", REG_C)),
                     description="add A A C"),
        OpcodeSchema("inc", 9, (_reg("RegA", REG_A),),
                     fixed=((IMMEDIATE, 1),), description="adi A 1"),
        OpcodeSchema("dec", 9, (_reg("RegA", REG_A),),
                     fixed=((IMMEDIATE, -1),), description="adi A -1"),
        OpcodeSchema("not", 4, (_reg("RegA", REG_A), _reg("RegC", REG_C)),
                     fixed=((REG_B, 0),), description="nor A r0 C"),
        OpcodeSchema("neg", 3, (_reg("RegA", REG_B), _reg("RegC", REG_C)),
                     fixed=((REG_A, 0),), description="sub r0 A C"),
    )
}

# Branch condition codes for brh
CONDITIONS: dict[str, int] = {
    "zero": 0,
    "notzero": 1,
    "carry": 2,
    "notcarry": 3,
}

CONDITION_NAMES: tuple[str, ...] = tuple(
    name for name, _ in sorted(CONDITIONS.items(), key=lambda item: item[1])
)

# Set of all valid mnemonics (for parser validation)
MNEMONICS: frozenset[str] = frozenset(INSTRUCTION_TABLE)

PSEUDO_INSTRUCTIONS: frozenset[str] = frozenset(
    name for name, schema in INSTRUCTION_TABLE.items() if schema.is_pseudo
)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_schema(mnemonic: str) -> Optional[OpcodeSchema]:
    """
    Look up the encoding schema for a mnemonic (case-insensitive).

    Returns:
        OpcodeSchema if found, None if the mnemonic is unknown
    """
    return INSTRUCTION_TABLE.get(mnemonic.lower())


def get_native_schema(opcode: int) -> OpcodeSchema:
    """Return the schema of the native instruction with this opcode."""
    return INSTRUCTION_TABLE[OPCODE_NAMES[opcode & OPCODE_FIELD.mask]]


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a valid BatPU-2 instruction or pseudo-instruction."""
    return mnemonic.lower() in MNEMONICS


def character_code(char: str) -> Optional[int]:
    """Return the display code of a character, or None if unsupported."""
    index = CHARACTER_SET.find(char)
    return index if index >= 0 else None


# =============================================================================
# Decoding
# =============================================================================

@dataclass(frozen=True)
class DecodedWord:
    """
    Field values read back from an instruction word.

    Attributes:
        word: The raw 16-bit word
        opcode: The 4-bit opcode
        mnemonic: Native mnemonic for the opcode
        fields: Operand field values in native operand order
    """
    word: int
    opcode: int
    mnemonic: str
    fields: dict[str, int] = field(default_factory=dict)


def decode_word(word: int) -> DecodedWord:
    """
    Split an instruction word into its opcode and operand fields.

    Only the fields named by the native schema are returned, in operand
    order. Unused bits are ignored.
    """
    word &= WORD_MASK
    opcode = OPCODE_FIELD.unpack(word)
    schema = get_native_schema(opcode)
    fields = {
        slot.field.name: slot.field.unpack(word)
        for slot in schema.slots
    }
    return DecodedWord(word=word, opcode=opcode, mnemonic=schema.mnemonic, fields=fields)
