"""
BatPU-2 Assembly Language Parser
================================

This module turns the define-resolved token stream into statements the
two assembler passes work on.

Statement Types
---------------
1. **LabelDef**: label declaration
   ```asm
   main:
   ```

2. **Instruction**: mnemonic plus operands
   ```asm
   ldi r1 0x41
   str r1, r2, -1
   brh notzero loop
   ```

A label may share its line with an instruction (``loop: dec r1``); that
produces a LabelDef followed by an Instruction. Empty statements are
dropped.

Operand Classification
----------------------
The mnemonic's schema decides how each operand token is read:

| Slot kind  | Accepted tokens                                        |
|------------|--------------------------------------------------------|
| register   | ``rN``                                                 |
| immediate  | number, signed number, character literal               |
| offset     | number, signed number                                  |
| location   | label name, signed number (relative), number (absolute)|
| condition  | ``zero``, ``notzero``, ``carry``, ``notcarry``         |

Values are not range-checked here; the encoder does that once it knows
addresses.
"""

import difflib
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from batpu_asm.assembler.defines import DefineResolver
from batpu_asm.assembler.lexer import Lexer, Token, TokenType
from batpu_asm.cpu.batpu2 import (
    CONDITIONS,
    MNEMONICS,
    OperandKind,
    OperandSlot,
    get_schema,
)
from batpu_asm.errors import (
    AssemblerError,
    ErrorCollector,
    ParseError,
    SourceLocation,
    UnknownMnemonicError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Operand Data Classes
# =============================================================================

@dataclass(frozen=True)
class RegisterOperand:
    """Register operand, ``index`` is 0-15."""
    index: int
    location: SourceLocation

    def __str__(self) -> str:
        return f"r{self.index}"


@dataclass(frozen=True)
class ImmediateOperand:
    """
    Numeric operand.

    In a location slot this is an absolute address. The value is not
    validated until encoding.
    """
    value: int
    location: SourceLocation

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class CharOperand:
    """Character immediate ('A'), mapped to the display character set."""
    char: str
    location: SourceLocation

    def __str__(self) -> str:
        return f"'{self.char}'"


@dataclass(frozen=True)
class LabelRef:
    """Reference to a label, resolved in the second pass."""
    name: str
    location: SourceLocation

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RelativeOffset:
    """Jump target relative to the instruction's own address."""
    delta: int
    location: SourceLocation

    def __str__(self) -> str:
        return f"{self.delta:+d}"


@dataclass(frozen=True)
class ConditionOperand:
    """Branch condition; ``code`` is the 2-bit condition value."""
    name: str
    code: int
    location: SourceLocation

    def __str__(self) -> str:
        return self.name


Operand = Union[
    RegisterOperand,
    ImmediateOperand,
    CharOperand,
    LabelRef,
    RelativeOffset,
    ConditionOperand,
]


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass
class Statement:
    """
    Base class for parsed statements.

    Every statement has a source location for error reporting.
    """
    location: SourceLocation


@dataclass
class LabelDef(Statement):
    """
    Label declaration.

    Attributes:
        name: Label name without the colon
    """
    name: str


@dataclass
class Instruction(Statement):
    """
    Instruction statement.

    Attributes:
        mnemonic: Lowercase mnemonic (native or pseudo)
        operands: Classified operands in source order
    """
    mnemonic: str
    operands: list[Operand] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic} {' '.join(str(op) for op in self.operands)}"


# =============================================================================
# Parser
# =============================================================================

class Parser:
    """
    Parses BatPU-2 tokens into statements.

    Errors are reported per statement to ``self.errors``; the parser then
    moves on to the next statement, so one run reports every bad line.

    Usage:
        tokens = DefineResolver().resolve(Lexer(source, filename).tokenize())
        parser = Parser(tokens, filename)
        statements = parser.parse()
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        filename: str = "<input>",
        errors: Optional[ErrorCollector] = None,
        source_lines: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Define-resolved tokens
            filename: Source filename for error reporting
            errors: Error collector to report into
            source_lines: Source text lines for error context
        """
        self._tokens = list(tokens)
        self._filename = filename
        self._pos = 0
        self.errors = errors if errors is not None else ErrorCollector()
        self._source_lines = source_lines

    def parse(self) -> list[Statement]:
        """
        Parse all tokens into statements.

        Returns:
            Statements in source order; statements with errors are left out
        """
        statements: list[Statement] = []

        while not self._at_end():
            if self._current().is_terminator:
                self._advance()
                continue

            try:
                statements.extend(self._parse_statement())
            except AssemblerError as e:
                self.errors.add(e)
                self._skip_statement()

        logger.debug("%s: parsed %d statement(s)", self._filename, len(statements))
        return statements

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if at end of token stream."""
        return self._pos >= len(self._tokens) or self._current().type == TokenType.EOF

    def _current(self) -> Token:
        """Get current token (a synthetic EOF past the end)."""
        if self._pos >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else None
            return Token(
                TokenType.EOF, None,
                last.line if last else 1,
                last.column if last else 1,
                last.filename if last else self._filename,
            )
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        """Check if current token is one of the given types."""
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """Match and consume if current token is one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Expect specific token type, raise error if not found."""
        if not self._check(token_type):
            raise self._error(message, self._current())
        return self._advance()

    def _skip_statement(self) -> None:
        """Skip remaining tokens of the current statement."""
        while not self._current().is_terminator:
            self._advance()

    def _source_line(self, line: int) -> Optional[str]:
        if self._source_lines is not None and 0 < line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return None

    def _error(self, message: str, token: Token, hint: Optional[str] = None) -> ParseError:
        return ParseError(
            message,
            token.location,
            hint=hint,
            source_line=self._source_line(token.line),
        )

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> list[Statement]:
        """Parse one statement: labels, then an optional instruction."""
        statements: list[Statement] = []

        while (label := self._match(TokenType.LABEL)) is not None:
            statements.append(LabelDef(label.location, label.value))

        if not self._current().is_terminator:
            statements.append(self._parse_instruction())

        return statements

    def _parse_instruction(self) -> Instruction:
        mnemonic_token = self._expect(TokenType.IDENTIFIER, "expected an instruction")
        text = mnemonic_token.value
        schema = get_schema(text)
        if schema is None:
            raise UnknownMnemonicError(
                text,
                mnemonic_token.location,
                source_line=self._source_line(mnemonic_token.line),
                similar=difflib.get_close_matches(text.lower(), sorted(MNEMONICS), n=3),
            )

        operand_tokens: list[Token] = []
        while not self._current().is_terminator:
            token = self._advance()
            if token.type == TokenType.LABEL:
                raise self._error(
                    f"label '{token.value}' must start a statement",
                    token,
                )
            if token.type != TokenType.COMMA:
                operand_tokens.append(token)

        if len(operand_tokens) != len(schema.slots):
            # Point at the first surplus operand, or at the mnemonic
            culprit = mnemonic_token
            if len(operand_tokens) > len(schema.slots):
                culprit = operand_tokens[len(schema.slots)]
            raise self._error(
                f"expected {schema.describe_operands()}, got {len(operand_tokens)} instead",
                culprit,
                hint=f"{schema.mnemonic}: {schema.description}",
            )

        operands = [
            self._parse_operand(token, slot)
            for token, slot in zip(operand_tokens, schema.slots)
        ]
        return Instruction(mnemonic_token.location, schema.mnemonic, operands)

    def _parse_operand(self, token: Token, slot: OperandSlot) -> Operand:
        """Classify one operand token against its slot."""
        kind = slot.kind
        location = token.location

        if kind == OperandKind.REGISTER:
            if token.type == TokenType.REGISTER:
                return RegisterOperand(token.value, location)

        elif kind == OperandKind.IMMEDIATE:
            if token.type in (TokenType.NUMBER, TokenType.OFFSET):
                return ImmediateOperand(token.value, location)
            if token.type == TokenType.CHAR:
                return CharOperand(token.value, location)

        elif kind == OperandKind.OFFSET:
            if token.type in (TokenType.NUMBER, TokenType.OFFSET):
                return ImmediateOperand(token.value, location)

        elif kind == OperandKind.LOCATION:
            if token.type == TokenType.IDENTIFIER:
                return LabelRef(token.value, location)
            if token.type == TokenType.OFFSET:
                return RelativeOffset(token.value, location)
            if token.type == TokenType.NUMBER:
                return ImmediateOperand(token.value, location)

        elif kind == OperandKind.CONDITION:
            if token.type == TokenType.IDENTIFIER:
                name = token.value.lower()
                if name in CONDITIONS:
                    return ConditionOperand(name, CONDITIONS[name], location)
                similar = difflib.get_close_matches(name, list(CONDITIONS), n=1)
                hint = f"conditions are {', '.join(CONDITIONS)}"
                if similar:
                    hint = f"did you mean '{similar[0]}'?"
                raise self._error(f"unknown condition '{token.value}'", token, hint=hint)

        raise self._error(
            f"expected {slot.name} ({kind}), got {_describe(token)}",
            token,
        )


def _describe(token: Token) -> str:
    """Describe a token for operand-kind errors."""
    if token.type == TokenType.REGISTER:
        return f"register 'r{token.value}'"
    if token.type == TokenType.CHAR:
        return f"character '{token.value}'"
    if token.type == TokenType.OFFSET:
        return f"signed number '{token.value:+d}'"
    if token.type == TokenType.NUMBER:
        return f"number '{token.value}'"
    if token.type == TokenType.IDENTIFIER:
        return f"identifier '{token.value}'"
    return token.type.name.lower()


# =============================================================================
# Convenience Function
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    defines: Optional[dict[str, int]] = None,
) -> list[Statement]:
    """
    Lex, resolve defines and parse source in one call.

    Raises:
        AssemblyFailedError: If any stage reports errors
    """
    errors = ErrorCollector()
    lines = source.splitlines()
    tokens = Lexer(source, filename, errors).tokenize()
    resolved = DefineResolver(defines, errors, lines).resolve(tokens)
    statements = Parser(resolved, filename, errors, lines).parse()
    errors.raise_if_errors()
    return statements
