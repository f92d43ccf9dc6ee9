"""
BatPU-2 Assembler
=================

Two-pass assembler for the BatPU-2 CPU. It turns assembly source into a
binary machine-code image (``.mc``) or its text form (``.txt``).

Main Components
---------------
- **Assembler**: runs the whole pipeline and keeps the results
- **Lexer**: tokenizes source text
- **DefineResolver**: applies ``#define`` and the built-in port names
- **Parser**: groups tokens into label and instruction statements
- **SymbolTableBuilder**: first pass, assigns label addresses
- **CodeGenerator**: second pass, encodes 16-bit words
- **output**: binary and text serializers and readers

Example Usage
-------------
>>> from batpu_asm.assembler import assemble, to_text
>>> program = assemble('''
... loop:
...     inc r1
...     jmp loop
... ''')
>>> print(to_text(program))
1001000100000001
1010000000000000
"""

from batpu_asm.assembler.assembler import (
    Assembler,
    AssemblerConfig,
    assemble,
    assemble_file,
)
from batpu_asm.assembler.lexer import Lexer, Token, TokenType, tokenize
from batpu_asm.assembler.defines import DefineResolver, resolve_defines
from batpu_asm.assembler.parser import (
    Parser,
    Statement,
    Instruction,
    LabelDef,
    RegisterOperand,
    ImmediateOperand,
    CharOperand,
    LabelRef,
    RelativeOffset,
    ConditionOperand,
    parse_source,
)
from batpu_asm.assembler.symbols import (
    Symbol,
    SymbolTable,
    SymbolTableBuilder,
    build_symbol_table,
)
from batpu_asm.assembler.codegen import (
    CodeGenerator,
    EncodedProgram,
    InstructionWord,
    encode,
)
from batpu_asm.assembler.output import (
    OutputFormat,
    to_binary,
    to_text,
    serialize,
    write_program,
    read_binary,
    read_text,
    read_program_file,
    format_symbols,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "AssemblerConfig",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Defines
    "DefineResolver",
    "resolve_defines",
    # Parser
    "Parser",
    "Statement",
    "Instruction",
    "LabelDef",
    "RegisterOperand",
    "ImmediateOperand",
    "CharOperand",
    "LabelRef",
    "RelativeOffset",
    "ConditionOperand",
    "parse_source",
    # Symbols
    "Symbol",
    "SymbolTable",
    "SymbolTableBuilder",
    "build_symbol_table",
    # Code generator
    "CodeGenerator",
    "EncodedProgram",
    "InstructionWord",
    "encode",
    # Output
    "OutputFormat",
    "to_binary",
    "to_text",
    "serialize",
    "write_program",
    "read_binary",
    "read_text",
    "read_program_file",
    "format_symbols",
]
