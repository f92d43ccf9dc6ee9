"""
BatPU CPU Package
=================

CPU architecture definitions shared by the assembler and the
disassembler. Both sides use the same field layouts, which keeps encoding
and decoding consistent.

Modules:
    batpu2: BatPU-2 instruction table, bit fields, conditions, character
            set and word decoding.

Usage:
    from batpu_asm.cpu import INSTRUCTION_TABLE, get_schema, decode_word
"""

from batpu_asm.cpu.batpu2 import (
    # Machine constants
    WORD_BITS,
    WORD_BYTES,
    WORD_MASK,
    INSTRUCTION_MEMORY_SIZE,
    REGISTER_COUNT,
    CHARACTER_SET,
    # Core types
    Field,
    OperandKind,
    OperandSlot,
    OpcodeSchema,
    DecodedWord,
    # Fields
    OPCODE_FIELD,
    REG_A,
    REG_B,
    REG_C,
    IMMEDIATE,
    ADDRESS,
    CONDITION,
    OFFSET,
    # Tables
    INSTRUCTION_TABLE,
    OPCODE_NAMES,
    CONDITIONS,
    CONDITION_NAMES,
    MNEMONICS,
    PSEUDO_INSTRUCTIONS,
    # Lookup functions
    get_schema,
    get_native_schema,
    is_valid_instruction,
    character_code,
    decode_word,
)

__all__ = [
    "WORD_BITS",
    "WORD_BYTES",
    "WORD_MASK",
    "INSTRUCTION_MEMORY_SIZE",
    "REGISTER_COUNT",
    "CHARACTER_SET",
    "Field",
    "OperandKind",
    "OperandSlot",
    "OpcodeSchema",
    "DecodedWord",
    "OPCODE_FIELD",
    "REG_A",
    "REG_B",
    "REG_C",
    "IMMEDIATE",
    "ADDRESS",
    "CONDITION",
    "OFFSET",
    "INSTRUCTION_TABLE",
    "OPCODE_NAMES",
    "CONDITIONS",
    "CONDITION_NAMES",
    "MNEMONICS",
    "PSEUDO_INSTRUCTIONS",
    "get_schema",
    "get_native_schema",
    "is_valid_instruction",
    "character_code",
    "decode_word",
]
