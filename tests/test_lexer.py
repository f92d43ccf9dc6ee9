# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the BatPU-2 assembler lexer/tokenizer.
#
# Test coverage includes:
#   - Number formats: decimal, hexadecimal (0x), binary (0b), separators
#   - Registers, labels, identifiers, signed offsets, characters
#   - Statement terminators and // comments
#   - Error conditions and recovery to the next statement
# =============================================================================

import pytest
from batpu_asm.assembler.lexer import Lexer, TokenType, Token, tokenize
from batpu_asm.errors import ErrorCollector, LexError


# =============================================================================
# Helper Function
# =============================================================================

def lex(source: str) -> list:
    """Tokenize and drop the trailing EOF token."""
    return [t for t in tokenize(source, "<test>") if t.type != TokenType.EOF]


def types(source: str) -> list:
    return [t.type for t in lex(source)]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Spaces, tabs and carriage returns produce no tokens."""
        assert lex("   \t \r ") == []

    def test_identifier(self):
        """Mnemonics are identifiers."""
        tokens = lex("ldi")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "ldi"

    def test_identifier_with_dot_and_underscore(self):
        """Identifiers may contain '_' and '.'."""
        tokens = lex("_loop.inner")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "_loop.inner"

    def test_register(self):
        """rN is a register token holding the index."""
        tokens = lex("r0 r7 r15")
        assert [t.type for t in tokens] == [TokenType.REGISTER] * 3
        assert [t.value for t in tokens] == [0, 7, 15]

    def test_register_like_identifier(self):
        """'r' alone and 'r1x' are identifiers, not registers."""
        assert types("r r1x") == [TokenType.IDENTIFIER, TokenType.IDENTIFIER]

    def test_label_declaration(self):
        """name: is a label declaration without the colon."""
        tokens = lex("main:")
        assert tokens[0].type == TokenType.LABEL
        assert tokens[0].value == "main"

    def test_directive(self):
        """#define is a directive token."""
        tokens = lex("#define")
        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].value == "define"

    def test_comma(self):
        """Commas are kept as separators."""
        assert types("r1, r2") == [TokenType.REGISTER, TokenType.COMMA, TokenType.REGISTER]

    def test_char_literal(self):
        """'A' is a character token."""
        tokens = lex("'A'")
        assert tokens[0].type == TokenType.CHAR
        assert tokens[0].value == "A"

    def test_space_char_literal(self):
        """' ' is a valid character literal."""
        assert lex("' '")[0].value == " "


# =============================================================================
# Number Tests
# =============================================================================

class TestNumbers:
    """Test numeric literal formats."""

    def test_decimal(self):
        assert lex("123")[0].value == 123

    def test_hex(self):
        """0x prefix is hexadecimal, either case."""
        assert lex("0xFF")[0].value == 255
        assert lex("0Xff")[0].value == 255

    def test_binary(self):
        assert lex("0b1010")[0].value == 10

    def test_underscore_separators(self):
        """Underscores are ignored inside numbers."""
        assert lex("0b1010_0101")[0].value == 0b10100101
        assert lex("1_000")[0].value == 1000

    def test_zero(self):
        tokens = lex("0")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == 0

    def test_positive_offset(self):
        """A leading '+' makes a signed offset token."""
        tokens = lex("+3")
        assert tokens[0].type == TokenType.OFFSET
        assert tokens[0].value == 3

    def test_negative_offset(self):
        tokens = lex("-8")
        assert tokens[0].type == TokenType.OFFSET
        assert tokens[0].value == -8

    def test_negative_hex_offset(self):
        assert lex("-0x10")[0].value == -16


# =============================================================================
# Statement Structure Tests
# =============================================================================

class TestStatements:
    """Test terminators, comments and positions."""

    def test_newline_terminates(self):
        assert types("nop\nhlt") == [
            TokenType.IDENTIFIER, TokenType.NEWLINE, TokenType.IDENTIFIER,
        ]

    def test_semicolon_terminates(self):
        assert types("nop; hlt") == [
            TokenType.IDENTIFIER, TokenType.SEMICOLON, TokenType.IDENTIFIER,
        ]

    def test_comment_stripped(self):
        """// runs to end of line; the newline survives."""
        assert types("nop // halt here\nhlt") == [
            TokenType.IDENTIFIER, TokenType.NEWLINE, TokenType.IDENTIFIER,
        ]

    def test_comment_only_line(self):
        assert lex("// nothing to see") == []

    def test_full_instruction(self):
        """A complete instruction line."""
        tokens = lex("main: ldi r1 0x41 // load")
        assert [t.type for t in tokens] == [
            TokenType.LABEL, TokenType.IDENTIFIER, TokenType.REGISTER, TokenType.NUMBER,
        ]
        assert tokens[3].value == 0x41

    def test_positions(self):
        """Tokens record 1-indexed line and column of their first character."""
        tokens = lex("nop\n  ldi r1 5")
        ldi = tokens[2]
        assert (ldi.line, ldi.column) == (2, 3)
        assert (tokens[3].line, tokens[3].column) == (2, 7)

    def test_location_property(self):
        token = lex("hlt")[0]
        assert str(token.location) == "<test>:1:1"

    def test_crlf_line_endings(self):
        """Windows line endings lex like plain newlines."""
        assert types("nop\r\nhlt") == types("nop\nhlt")


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test lexical error detection and recovery."""

    def test_invalid_character(self):
        with pytest.raises(LexError, match="unexpected character '@'"):
            tokenize("ldi r1 @")

    def test_error_column(self):
        """Errors point at the start of the offending text."""
        with pytest.raises(LexError) as exc_info:
            tokenize("ldi r1 @")
        assert exc_info.value.column == 8
        assert exc_info.value.source_line == "ldi r1 @"

    def test_register_out_of_range(self):
        with pytest.raises(LexError, match="r16"):
            tokenize("add r16 r1 r2")

    def test_hex_prefix_without_digits(self):
        with pytest.raises(LexError, match="expected digits after '0x'"):
            tokenize("ldi r1 0x")

    def test_digits_followed_by_letters(self):
        with pytest.raises(LexError, match="malformed number '12ab'"):
            tokenize("ldi r1 12ab")

    def test_malformed_number_echoes_source_text(self):
        """The message quotes the literal as written, separators included."""
        with pytest.raises(LexError, match="malformed number '0x1_fg'"):
            tokenize("ldi r1 0x1_fg")
        with pytest.raises(LexError, match="malformed number '1_000x'"):
            tokenize("ldi r1 1_000x")

    def test_bad_binary_digit(self):
        with pytest.raises(LexError, match="malformed number"):
            tokenize("ldi r1 0b102")

    def test_sign_without_number(self):
        with pytest.raises(LexError, match="expected a number after '-'"):
            tokenize("jmp -")

    def test_unknown_directive(self):
        with pytest.raises(LexError, match="unknown directive '#include'"):
            tokenize("#include foo")

    def test_unterminated_char(self):
        with pytest.raises(LexError, match="unterminated character literal"):
            tokenize("ldi r1 'A")

    def test_single_slash(self):
        """A lone '/' hints at the comment syntax."""
        with pytest.raises(LexError) as exc_info:
            tokenize("nop / comment")
        assert "//" in exc_info.value.hint

    def test_recovery_collects_all_errors(self):
        """Each broken statement is reported, good statements survive."""
        errors = ErrorCollector()
        tokens = list(Lexer("ldi r1 @\nhlt\nadd r99 r1 r2", "<test>", errors).tokenize())

        assert errors.error_count() == 2
        assert [e.line for e in errors.sorted_errors()] == [1, 3]
        idents = [t.value for t in tokens if t.type == TokenType.IDENTIFIER]
        assert idents == ["hlt"]

    def test_recovery_at_semicolon(self):
        """Recovery resumes after the next ';' on the same line."""
        errors = ErrorCollector()
        tokens = list(Lexer("ldi r1 $; hlt", "<test>", errors).tokenize())

        assert errors.error_count() == 1
        assert [t.value for t in tokens if t.type == TokenType.IDENTIFIER] == ["hlt"]
