"""
BatPU-2 Assembly Language Lexer
===============================

This module implements the lexer (tokenizer) for BatPU-2 assembly source.
It converts source text into a stream of tokens that the define resolver
and the parser consume.

Token Types
-----------
- IDENTIFIER: mnemonics, label references, condition names, define names
- REGISTER: ``r0`` to ``r15`` (value is the register index)
- NUMBER: decimal, hex (0xFF) or binary (0b1010) literal
- OFFSET: signed literal written with an explicit sign (+3, -1)
- CHAR: single-quoted character ('A')
- LABEL: label declaration (``main:``), value is the name without colon
- DIRECTIVE: ``#define``
- COMMA: optional operand separator
- NEWLINE, SEMICOLON: statement terminators
- EOF: end of input

Number Formats
--------------
| Format      | Prefix | Example   | Value |
|-------------|--------|-----------|-------|
| Decimal     | (none) | 123       | 123   |
| Hexadecimal | 0x     | 0x7F      | 127   |
| Binary      | 0b     | 0b1010    | 10    |

Underscores may separate digits (``0b1010_0101``).

Comments
--------
``//`` starts a comment that runs to the end of the line.

Error Recovery
--------------
A lexical error does not stop tokenization. The error is recorded, the
tokens of the broken statement are dropped, and scanning resumes at the
next statement terminator, so one run reports every lexical error.

Example
-------
>>> from batpu_asm.assembler.lexer import Lexer
>>> for token in Lexer("main: ldi r1 0x41 // load", "example.as").tokenize():
...     print(token)
Token(LABEL, 'main', 1:1)
Token(IDENTIFIER, 'ldi', 1:7)
Token(REGISTER, 1, 1:11)
Token(NUMBER, 65, 1:14)
Token(EOF, 1:26)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from batpu_asm.cpu.batpu2 import REGISTER_COUNT
from batpu_asm.errors import ErrorCollector, LexError, SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for BatPU-2 assembly."""

    # Structural tokens
    NEWLINE = auto()     # End of line (statement terminator)
    SEMICOLON = auto()   # ; (statement terminator)
    EOF = auto()         # End of file

    # Values
    IDENTIFIER = auto()  # Mnemonics, labels, conditions, define names
    REGISTER = auto()    # r0-r15
    NUMBER = auto()      # Unsigned numeric literal (all formats)
    OFFSET = auto()      # Explicitly signed literal (+N / -N)
    CHAR = auto()        # Single-quoted character 'X'

    # Declarations
    LABEL = auto()       # name:
    DIRECTIVE = auto()   # #define

    # Punctuation
    COMMA = auto()       # ,


# Token types that end a statement
TERMINATORS = frozenset({TokenType.NEWLINE, TokenType.SEMICOLON, TokenType.EOF})


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Token value (str for names, int for numbers and registers)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def is_terminator(self) -> bool:
        """True for NEWLINE, SEMICOLON and EOF."""
        return self.type in TERMINATORS


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes BatPU-2 assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())
        if lexer.errors.has_errors():
            ...

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        errors: Collector receiving LexError instances
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_."

    # Digits accepted after each numeric prefix
    HEX_DIGITS = string.hexdigits
    BIN_DIGITS = "01"
    DEC_DIGITS = string.digits

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        errors: Optional[ErrorCollector] = None,
    ):
        """
        Initialize the lexer with source code.

        Args:
            source: The assembly source code to tokenize
            filename: Name of the source file (for error messages)
            errors: Error collector to report into (a new one if omitted)
        """
        self.source = source
        self.filename = filename
        self.errors = errors if errors is not None else ErrorCollector()

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Tokens are buffered per statement and released once the statement
        ends cleanly. Errors go to ``self.errors``.

        Yields:
            Token objects, always ending with EOF
        """
        pending: list[Token] = []

        while not self._at_end():
            if self._skip_whitespace() or self._skip_comment():
                continue

            try:
                token = self._scan_token()
            except LexError as e:
                self.errors.add(e)
                pending.clear()
                self._skip_to_terminator()
                continue

            pending.append(token)
            if token.is_terminator:
                yield from pending
                pending.clear()

        yield from pending
        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look ahead without advancing; empty string past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _match(self, expected: str) -> bool:
        """Consume next character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        """Create a token at the current or the given position."""
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end].rstrip("\r")

    def _error(
        self,
        message: str,
        column: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> LexError:
        """
        Create a LexError on the current line.

        Args:
            message: Error description
            column: Column to point at (defaults to the current column)
            hint: Optional suggestion
        """
        location = SourceLocation(self.filename, self._line, column or self._column)
        return LexError(
            message,
            location,
            hint=hint,
            source_line=self._current_line_text(),
        )

    # =========================================================================
    # Whitespace, Comments and Recovery
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """Skip spaces, tabs and carriage returns (not newlines)."""
        skipped = False
        while self._peek() and self._peek() in " \t\r":
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """Skip a // comment up to (not including) the newline."""
        if self._peek() == "/" and self._peek(1) == "/":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return True
        return False

    def _skip_to_terminator(self) -> None:
        """Discard input up to the next newline or semicolon."""
        while not self._at_end() and self._peek() not in "\n;":
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan one token starting at the current position."""
        start_line = self._line
        start_col = self._column
        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, start_line, start_col)

        if char == ";":
            self._advance()
            return self._make_token(TokenType.SEMICOLON, None, start_line, start_col)

        if char == ",":
            self._advance()
            return self._make_token(TokenType.COMMA, None, start_line, start_col)

        if char in "+-":
            return self._scan_offset(start_line, start_col)

        if char.isdigit():
            value = self._scan_number(start_col)
            return self._make_token(TokenType.NUMBER, value, start_line, start_col)

        if char == "'":
            return self._scan_char(start_line, start_col)

        if char == "#":
            return self._scan_directive(start_line, start_col)

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_col)

        if char == "/":
            raise self._error("unexpected '/'", start_col, hint="comments start with '//'")

        raise self._error(f"unexpected character '{char}'", start_col)

    def _scan_offset(self, start_line: int, start_col: int) -> Token:
        """Scan an explicitly signed literal (+N or -N)."""
        sign = self._advance()
        if not self._peek().isdigit():
            raise self._error(f"expected a number after '{sign}'", start_col)

        magnitude = self._scan_number(start_col)
        value = -magnitude if sign == "-" else magnitude
        return self._make_token(TokenType.OFFSET, value, start_line, start_col)

    def _scan_number(self, start_col: int) -> int:
        """
        Scan a numeric literal and return its value.

        Handles 0x hex, 0b binary and plain decimal, with '_' separators.
        A literal running straight into identifier characters (``12ab``)
        is an error rather than two tokens.
        """
        digits_allowed = self.DEC_DIGITS
        base = 10
        prefix = ""

        if self._peek() == "0" and self._peek(1) in ("x", "X"):
            prefix = self._advance() + self._advance()
            digits_allowed, base = self.HEX_DIGITS, 16
        elif self._peek() == "0" and self._peek(1) in ("b", "B"):
            prefix = self._advance() + self._advance()
            digits_allowed, base = self.BIN_DIGITS, 2

        raw = prefix
        text = []
        while self._peek() and (self._peek() in digits_allowed or self._peek() == "_"):
            char = self._advance()
            raw += char
            if char != "_":
                text.append(char)

        if self._peek() and self._peek() in self.IDENT_CHARS:
            while self._peek() and self._peek() in self.IDENT_CHARS:
                raw += self._advance()
            raise self._error(f"malformed number '{raw}'", start_col)

        if not text:
            raise self._error(f"expected digits after '{prefix}'", start_col)

        return int("".join(text), base)

    def _scan_char(self, start_line: int, start_col: int) -> Token:
        """Scan a character literal like 'A'."""
        self._advance()  # opening quote

        char = self._peek()
        if not char or char == "\n":
            raise self._error("unterminated character literal", start_col)
        self._advance()

        if not self._match("'"):
            raise self._error(
                "unterminated character literal",
                start_col,
                hint="character literals hold exactly one character",
            )

        return self._make_token(TokenType.CHAR, char, start_line, start_col)

    def _scan_directive(self, start_line: int, start_col: int) -> Token:
        """Scan a '#' directive keyword."""
        self._advance()  # '#'

        name = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            name.append(self._advance())
        directive = "".join(name)

        if directive.lower() != "define":
            raise self._error(
                f"unknown directive '#{directive}'",
                start_col,
                hint="the only directive is '#define NAME VALUE'",
            )

        return self._make_token(TokenType.DIRECTIVE, "define", start_line, start_col)

    def _scan_identifier(self, start_line: int, start_col: int) -> Token:
        """Scan an identifier, register or label declaration."""
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        text = "".join(chars)

        if self._match(":"):
            return self._make_token(TokenType.LABEL, text, start_line, start_col)

        if len(text) > 1 and text[0] == "r" and text[1:].isdigit():
            index = int(text[1:])
            if index >= REGISTER_COUNT:
                raise self._error(
                    f"register '{text}' out of range, expected r0 to r{REGISTER_COUNT - 1}",
                    start_col,
                )
            return self._make_token(TokenType.REGISTER, index, start_line, start_col)

        return self._make_token(TokenType.IDENTIFIER, text, start_line, start_col)


# =============================================================================
# Convenience Function
# =============================================================================

def tokenize(
    source: str,
    filename: str = "<input>",
    errors: Optional[ErrorCollector] = None,
) -> list[Token]:
    """
    Tokenize source into a list.

    If no collector is given, a LexError is raised for the first problem.
    """
    collector = errors if errors is not None else ErrorCollector()
    tokens = list(Lexer(source, filename, collector).tokenize())
    if errors is None and collector.has_errors():
        raise collector.sorted_errors()[0]
    logger.debug("%s: %d tokens", filename, len(tokens))
    return tokens
