"""
BatPU Assembler Error Hierarchy
===============================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from BatPUError, allowing callers to catch every
assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
BatPUError (base)
├── AssemblerError (assembly-related)
│   ├── LexError - invalid characters or literals in source
│   ├── ParseError - bad statement or operand shape
│   │   └── UnknownMnemonicError - mnemonic not in the instruction table
│   ├── DuplicateLabelError - label declared more than once
│   ├── UndefinedLabelError - reference to an undeclared label
│   ├── OperandRangeError - operand does not fit its bit field
│   │   └── UnsupportedCharacterError - character outside the display set
│   ├── ProgramSizeError - program does not fit instruction memory
│   ├── AssemblyFailedError - one or more phase errors, carries the list
│   └── TooManyErrors - error limit reached
└── OutputFormatError - malformed machine-code image

Error Format
------------
Errors render the same way wherever they are printed:

    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class BatPUError(Exception):
    """
    Base exception for all package errors.

        try:
            program = assemble(source)
        except BatPUError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source code, used by tokens, statements and errors.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(BatPUError):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line of the error, or None when it has no location."""
        return self.location.line if self.location else None

    @property
    def column(self) -> Optional[int]:
        """Source column of the error, or None when it has no location."""
        return self.location.column if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            blink.as:4:5: error: undefined label 'mian'
                jmp mian
                    ^
            hint: did you mean 'main'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LexError(AssemblerError):
    """
    The lexer met text it cannot turn into a token.

    Examples:
        - Invalid character in source ('@', '$', a lone '/')
        - Malformed numeric literal (0x with no digits, 12ab)
        - Register index outside r0-r15
        - Unknown '#' directive
    """
    pass


class ParseError(AssemblerError):
    """
    A statement does not have a valid shape.

    Raised for operand-count mismatches, operands of the wrong kind for
    their slot, malformed #define directives and stray tokens.
    """
    pass


class UnknownMnemonicError(ParseError):
    """
    The first word of an instruction is not in the instruction table.

    The parser suggests close matches when it can, which catches most
    typos (``ldl`` for ``ldi``).
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.similar = similar or []

        hint = None
        if self.similar:
            suggestions = ", ".join(f"'{s}'" for s in self.similar[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown instruction '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLabelError(AssemblerError):
    """
    A label was declared more than once.

    Includes the location of the first declaration when available.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first declared at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedLabelError(AssemblerError):
    """
    Reference to a label that is never declared.

    Raised during the second pass when a jump, branch or call target
    cannot be found in the symbol table.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class OperandRangeError(AssemblerError):
    """
    An operand value does not fit the bit field it is encoded into.

    Example:
        ldi r1 300    ; immediates are limited to -128..255
    """

    def __init__(
        self,
        what: str,
        value: int,
        minimum: int,
        maximum: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.what = what
        self.value = value
        self.minimum = minimum
        self.maximum = maximum

        super().__init__(
            f"{what} {value} out of range, expected {minimum} to {maximum}",
            location=location,
            source_line=source_line,
        )


class UnsupportedCharacterError(OperandRangeError):
    """
    A character immediate is not in the display character set.

    The valid range is the set of display codes, 0 to len(supported) - 1.
    """

    def __init__(
        self,
        char: str,
        supported: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        self.what = "character"
        self.value = char
        self.minimum = 0
        self.maximum = len(supported) - 1

        AssemblerError.__init__(
            self,
            f"character '{char}' is not supported",
            location=location,
            hint=f"supported characters are \"{supported}\"",
            source_line=source_line,
        )


class ProgramSizeError(AssemblerError):
    """The program has more instructions than instruction memory holds."""

    def __init__(self, count: int, capacity: int):
        self.count = count
        self.capacity = capacity
        super().__init__(
            f"program has {count} instructions, maximum is {capacity}",
        )


class AssemblyFailedError(AssemblerError):
    """
    Assembly was rejected.

    Carries every error reported by the phase that stopped the pipeline,
    in source order, so callers can present a complete diagnostic set.

    Attributes:
        errors: The collected AssemblerError instances
    """

    def __init__(self, errors: list[AssemblerError]):
        self.errors = list(errors)
        count = len(self.errors)
        word = "error" if count == 1 else "errors"
        details = "\n\n".join(str(e) for e in self.errors)
        super().__init__(f"assembly failed with {count} {word}:\n\n{details}")


# =============================================================================
# Output Exceptions
# =============================================================================

class OutputFormatError(BatPUError):
    """
    A machine-code image cannot be read back.

    Raised when a binary image has an odd number of bytes or a text image
    contains a line that is not sixteen binary digits.
    """
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects errors so a phase can keep going after the first one.

    Example:
        collector = ErrorCollector(max_errors=100)
        try:
            for stmt in statements:
                try:
                    encode(stmt)
                except AssemblerError as e:
                    collector.add(e)
        except TooManyErrors:
            pass

        collector.raise_if_errors()
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"too many errors ({self.max_errors}), stopping")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def sorted_errors(self) -> list[AssemblerError]:
        """Return the errors ordered by source position (stable)."""
        return sorted(
            self.errors,
            key=lambda e: (e.location.line, e.location.column) if e.location else (0, 0),
        )

    def raise_if_errors(self) -> None:
        """Raise AssemblyFailedError carrying the errors, if there are any."""
        if self.errors:
            raise AssemblyFailedError(self.sorted_errors())


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    Stops a phase early when the source has fundamental problems.
    """

    def __init__(self, message: str = "too many errors"):
        super().__init__(message)
