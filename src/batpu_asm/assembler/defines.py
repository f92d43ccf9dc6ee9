"""
Define Resolver
===============

Applies ``#define NAME VALUE`` directives to the token stream.

The resolver keeps a flat name -> value-token table, seeded with the
built-in I/O port names unless they are disabled. It walks the tokens
once, front to back, one statement at a time:

- A ``#define`` statement updates the table and is removed from the
  stream (its terminator is kept so line structure survives).
- Every other IDENTIFIER whose text names a define is replaced by a copy
  of the value token, moved to the identifier's position.

Substitution is single pass: a replacement is never looked up again, so
``#define A B`` followed by ``#define B 5`` leaves ``A`` as the
identifier ``B``. A define only affects tokens after its directive.

Example:
    >>> from batpu_asm.assembler.lexer import tokenize
    >>> tokens = tokenize("#define LED 5\\nldi r1 LED")
    >>> resolved = DefineResolver({}).resolve(tokens)
    >>> [t.value for t in resolved if t.type == TokenType.NUMBER]
    [5]
"""

import dataclasses
import logging
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from batpu_asm.assembler.lexer import Token, TokenType
from batpu_asm.errors import ErrorCollector, ParseError, AssemblerError
from batpu_asm.sdk.ports import builtin_defines

logger = logging.getLogger(__name__)


# Token types that may appear as the VALUE of a define
VALUE_TYPES = frozenset({
    TokenType.NUMBER,
    TokenType.OFFSET,
    TokenType.CHAR,
    TokenType.REGISTER,
    TokenType.IDENTIFIER,
})


def split_statements(tokens: Iterable[Token]) -> Iterator[tuple[list[Token], Token]]:
    """
    Group tokens into statements.

    Yields:
        (body, terminator) pairs; the body excludes the terminator token.
        The final pair is terminated by EOF.
    """
    body: list[Token] = []
    for token in tokens:
        if token.is_terminator:
            yield body, token
            body = []
        else:
            body.append(token)
    if body:
        # Stream without EOF; close the last statement at its final token
        last = body[-1]
        yield body, Token(TokenType.EOF, None, last.line, last.column, last.filename)


class DefineResolver:
    """
    Substitutes define names in a token stream.

    Usage:
        resolver = DefineResolver(builtin_defines())
        tokens = resolver.resolve(tokens)

    Attributes:
        errors: Collector receiving ParseError for malformed directives
    """

    def __init__(
        self,
        defines: Optional[Mapping[str, int]] = None,
        errors: Optional[ErrorCollector] = None,
        source_lines: Optional[Sequence[str]] = None,
        filename: str = "<builtin>",
    ):
        """
        Initialize the resolver.

        Args:
            defines: Initial numeric defines; None means the built-in port
                     table, an empty mapping means no defines at all
            errors: Error collector to report into
            source_lines: Source text lines for error context
            filename: File name given to built-in value tokens
        """
        if defines is None:
            defines = builtin_defines()
        self._table: dict[str, Token] = {
            name: Token(TokenType.NUMBER, value, 0, 0, filename)
            for name, value in defines.items()
        }
        self.errors = errors if errors is not None else ErrorCollector()
        self._source_lines = source_lines

    @property
    def defines(self) -> dict[str, Token]:
        """A copy of the current define table."""
        return dict(self._table)

    def define(self, name: str, value: Token) -> None:
        """Insert or overwrite a define."""
        if name in self._table:
            logger.debug("redefining '%s' as %r", name, value.value)
        self._table[name] = value

    def lookup(self, name: str) -> Optional[Token]:
        """Return the value token of a define, or None."""
        return self._table.get(name)

    def resolve(self, tokens: Iterable[Token]) -> list[Token]:
        """
        Return a new token list with directives applied and removed.

        Malformed directives are reported to ``self.errors``; the statement
        is dropped and resolution continues.
        """
        output: list[Token] = []
        directives = 0

        for body, terminator in split_statements(tokens):
            if body and body[0].type == TokenType.DIRECTIVE:
                try:
                    self._apply_directive(body)
                    directives += 1
                except AssemblerError as e:
                    self.errors.add(e)
            else:
                output.extend(self._substitute(token) for token in body)
            output.append(terminator)

        logger.debug("applied %d define directive(s)", directives)
        return output

    # =========================================================================
    # Helpers
    # =========================================================================

    def _substitute(self, token: Token) -> Token:
        if token.type != TokenType.IDENTIFIER:
            return token
        value = self._table.get(token.value)
        if value is None:
            return token
        return dataclasses.replace(
            value,
            line=token.line,
            column=token.column,
            filename=token.filename,
        )

    def _apply_directive(self, body: list[Token]) -> None:
        directive = body[0]

        if len(body) < 2:
            raise self._error("#define needs a name and a value", directive)
        name = body[1]
        if name.type != TokenType.IDENTIFIER:
            raise self._error(
                "#define name must be an identifier",
                name,
                hint="names cannot be registers, numbers or labels",
            )
        if len(body) < 3:
            raise self._error(f"#define '{name.value}' is missing a value", directive)
        if len(body) > 3:
            raise self._error(
                f"unexpected token after #define '{name.value}' value",
                body[3],
                hint="a define takes exactly one value",
            )

        value = body[2]
        if value.type not in VALUE_TYPES:
            raise self._error(f"invalid value for #define '{name.value}'", value)

        # Values are resolved against earlier defines once, at definition time
        self.define(name.value, self._substitute(value))

    def _error(self, message: str, token: Token, hint: Optional[str] = None) -> ParseError:
        source_line = None
        if self._source_lines is not None and 0 < token.line <= len(self._source_lines):
            source_line = self._source_lines[token.line - 1]
        return ParseError(message, token.location, hint=hint, source_line=source_line)


def resolve_defines(
    tokens: Iterable[Token],
    defines: Optional[Mapping[str, int]] = None,
) -> list[Token]:
    """
    Resolve defines in a token list, raising the first error.

    Convenience wrapper around DefineResolver for callers that do not
    collect errors.
    """
    resolver = DefineResolver(defines)
    resolved = resolver.resolve(tokens)
    if resolver.errors.has_errors():
        raise resolver.errors.sorted_errors()[0]
    return resolved
