# =============================================================================
# test_codegen.py - Second Pass (Encoding) Tests
# =============================================================================
# Tests for instruction word encoding.
#
# Test coverage includes:
#   - Every native instruction and pseudo-instruction
#   - Immediate, offset, condition and address fields
#   - Label, relative and absolute jump targets
#   - Range errors and undefined labels
# =============================================================================

import pytest
from batpu_asm.assembler.codegen import CodeGenerator, EncodedProgram, InstructionWord, encode
from batpu_asm.assembler.parser import parse_source
from batpu_asm.assembler.symbols import build_symbol_table
from batpu_asm.errors import (
    AssemblerError,
    AssemblyFailedError,
    ErrorCollector,
    OperandRangeError,
    UndefinedLabelError,
    UnsupportedCharacterError,
)


def words(source: str) -> list[int]:
    """Assemble source through both passes and return the word values."""
    statements = parse_source(source)
    return encode(statements, build_symbol_table(statements)).values()


def word(source: str) -> int:
    result = words(source)
    assert len(result) == 1
    return result[0]


def encode_error(source: str) -> AssemblerError:
    with pytest.raises(AssemblyFailedError) as exc_info:
        words(source)
    return exc_info.value.errors[0]


# =============================================================================
# Native Instruction Tests
# =============================================================================

class TestNativeInstructions:
    """Test encoding of each native opcode."""

    @pytest.mark.parametrize("source,expected", [
        ("nop", 0x0000),
        ("hlt", 0x1000),
        ("add r1 r2 r3", 0x2123),
        ("sub r4 r5 r6", 0x3456),
        ("nor r7 r8 r9", 0x4789),
        ("and r10 r11 r12", 0x5ABC),
        ("xor r13 r14 r15", 0x6DEF),
        ("rsh r1 r2", 0x7102),
        ("ldi r1 5", 0x8105),
        ("adi r2 0x10", 0x9210),
        ("jmp 0", 0xA000),
        ("brh notzero 5", 0xB405),
        ("cal 1023", 0xC3FF),
        ("ret", 0xD000),
        ("lod r1 r2 3", 0xE123),
        ("str r1 r2 7", 0xF127),
    ])
    def test_encoding(self, source, expected):
        assert word(source) == expected

    def test_conditions(self):
        assert word("brh zero 0") == 0xB000
        assert word("brh carry 0") == 0xB800
        assert word("brh notcarry 0") == 0xBC00


# =============================================================================
# Pseudo-Instruction Tests
# =============================================================================

class TestPseudoInstructions:
    """Test that pseudo-instructions match their native expansion."""

    @pytest.mark.parametrize("pseudo,native", [
        ("cmp r1 r2", "sub r1 r2 r0"),
        ("mov r1 r3", "add r1 r0 r3"),
        ("lsh r2 r3", "add r2 r2 r3"),
        ("inc r1", "adi r1 1"),
        ("dec r1", "adi r1 -1"),
        ("not r1 r2", "nor r1 r0 r2"),
        ("neg r1 r2", "sub r0 r1 r2"),
    ])
    def test_expansion(self, pseudo, native):
        assert word(pseudo) == word(native)

    def test_pseudo_takes_one_word(self):
        assert len(words("cmp r1 r2\ninc r1\nlsh r1 r2")) == 3


# =============================================================================
# Immediate and Offset Tests
# =============================================================================

class TestImmediates:
    """Test immediate and offset fields."""

    def test_negative_immediate_twos_complement(self):
        assert word("ldi r1 -1") == 0x81FF
        assert word("ldi r1 -128") == 0x8180

    def test_immediate_limits(self):
        assert word("ldi r1 255") == 0x81FF
        assert word("ldi r1 0") == 0x8100

    def test_negative_offset(self):
        assert word("lod r1 r2 -1") == 0xE12F
        assert word("str r1 r2 -8") == 0xF128

    def test_char_immediate(self):
        """Characters map to their index in the display character set."""
        assert word("ldi r1 'A'") == 0x8101
        assert word("ldi r1 ' '") == 0x8100
        assert word("ldi r1 'Z'") == 0x811A
        assert word("ldi r1 '?'") == 0x811D

    def test_builtin_define_value(self):
        assert word("ldi r1 SCR_PIX_X") == 0x81F0

    def test_immediate_too_large(self):
        error = encode_error("ldi r1 256")
        assert isinstance(error, OperandRangeError)
        assert error.message == "immediate 256 out of range, expected -128 to 255"

    def test_immediate_too_small(self):
        error = encode_error("adi r1 -129")
        assert isinstance(error, OperandRangeError)

    def test_offset_out_of_range(self):
        error = encode_error("lod r1 r2 8")
        assert isinstance(error, OperandRangeError)
        assert error.what == "offset"
        assert (error.minimum, error.maximum) == (-8, 7)

    def test_unsupported_char(self):
        """Characters outside the display set are a range error."""
        error = encode_error("ldi r1 'a'")
        assert isinstance(error, UnsupportedCharacterError)
        assert isinstance(error, OperandRangeError)
        assert error.char == "a"
        assert error.what == "character"
        assert "character 'a' is not supported" in error.message


# =============================================================================
# Jump Target Tests
# =============================================================================

class TestJumpTargets:
    """Test label, relative and absolute location operands."""

    def test_backward_label(self):
        assert words("loop:\nnop\njmp loop") == [0x0000, 0xA000]

    def test_forward_label(self):
        assert words("jmp end\nnop\nend:\nhlt") == [0xA002, 0x0000, 0x1000]

    def test_forward_and_backward_resolve_identically(self):
        program = words("jmp mid\nnop\nmid:\nhlt\njmp mid")
        assert program[0] == program[3]

    def test_relative_forward(self):
        """jmp +K at address A targets A+K, like a label K instructions ahead."""
        relative = words("nop\njmp +2\nnop\ntarget:\nhlt")
        labelled = words("nop\njmp target\nnop\ntarget:\nhlt")
        assert relative == labelled
        assert relative[1] == 0xA003

    def test_relative_backward(self):
        assert words("nop\nnop\njmp -2")[2] == 0xA000

    def test_relative_zero(self):
        """jmp +0 loops on itself."""
        assert words("nop\njmp +0")[1] == 0xA001

    def test_branch_with_relative(self):
        assert words("nop\nbrh zero +1")[1] == 0xB002

    def test_relative_before_start(self):
        error = encode_error("jmp -1")
        assert isinstance(error, OperandRangeError)
        assert error.what == "jump target"
        assert error.value == -1

    def test_absolute_out_of_range(self):
        error = encode_error("jmp 1024")
        assert isinstance(error, OperandRangeError)
        assert error.what == "address"

    def test_undefined_label(self):
        error = encode_error("main:\nhlt\njmp man")
        assert isinstance(error, UndefinedLabelError)
        assert error.label == "man"
        assert error.similar_labels == ["main"]
        assert error.line == 3


# =============================================================================
# Program and Error Collection Tests
# =============================================================================

class TestProgram:
    """Test the EncodedProgram container and error collection."""

    def test_addresses_dense(self):
        statements = parse_source("a:\nnop\nb:\nhlt\nret")
        program = encode(statements, build_symbol_table(statements))
        assert [w.address for w in program] == [0, 1, 2]
        assert [w.mnemonic for w in program] == ["nop", "hlt", "ret"]

    def test_instruction_word_bits(self):
        assert InstructionWord(0, 0x8105, "ldi").bits() == "1000000100000101"

    def test_program_equality(self):
        assert EncodedProgram([InstructionWord(0, 1, "hlt")]) == \
            EncodedProgram([InstructionWord(0, 1, "hlt")])

    def test_all_errors_collected(self):
        """Every bad instruction is reported, not only the first."""
        statements = parse_source("ldi r1 300\njmp nowhere\nlod r1 r2 9")
        errors = ErrorCollector()
        CodeGenerator(build_symbol_table(statements), errors).generate(statements)
        assert errors.error_count() == 3

    def test_no_program_on_error(self):
        with pytest.raises(AssemblyFailedError):
            words("nop\nldi r1 300\nhlt")
