# =============================================================================
# test_output.py - Output Serializer Tests
# =============================================================================
# Tests for the binary and text image formats, readers and file writing.
# =============================================================================

import pytest
from batpu_asm.assembler import assemble
from batpu_asm.assembler.output import (
    OutputFormat,
    format_symbols,
    read_binary,
    read_program_file,
    read_text,
    serialize,
    to_binary,
    to_text,
    write_program,
)
from batpu_asm.assembler.assembler import Assembler
from batpu_asm.cpu.batpu2 import decode_word
from batpu_asm.errors import OutputFormatError


SOURCE = """
main:
    ldi r1 5
    hlt
"""


class TestWriters:
    """Test serialization of a program."""

    def test_binary_big_endian(self):
        assert to_binary(assemble(SOURCE)) == b"\x81\x05\x10\x00"

    def test_binary_length(self):
        program = assemble("nop\nnop\nnop")
        assert len(to_binary(program)) == 6

    def test_text_msb_first(self):
        assert to_text(assemble(SOURCE)) == "1000000100000101\n0001000000000000"

    def test_text_no_trailing_newline(self):
        assert not to_text(assemble("hlt")).endswith("\n")

    def test_empty_program(self):
        program = assemble("// nothing")
        assert to_binary(program) == b""
        assert to_text(program) == ""

    def test_serialize_dispatch(self):
        program = assemble(SOURCE)
        assert serialize(program, OutputFormat.BINARY) == to_binary(program)
        assert serialize(program, OutputFormat.TEXT) == to_text(program)

    def test_format_suffix(self):
        assert OutputFormat.BINARY.suffix == ".mc"
        assert OutputFormat.TEXT.suffix == ".txt"

    def test_deterministic(self):
        """Identical source gives byte-identical output."""
        source = "#define A 1\n#define B 2\nldi r1 A\nldi r2 B\nloop: jmp loop"
        assert to_binary(assemble(source)) == to_binary(assemble(source))


class TestReaders:
    """Test reading images back."""

    def test_read_binary(self):
        assert read_binary(b"\x81\x05\x10\x00") == [0x8105, 0x1000]

    def test_read_binary_odd_length(self):
        with pytest.raises(OutputFormatError, match="3 bytes"):
            read_binary(b"\x81\x05\x10")

    def test_read_text(self):
        assert read_text("1000000100000101\n0001000000000000") == [0x8105, 0x1000]

    def test_read_text_ignores_blank_lines(self):
        assert read_text("0001000000000000\n\n") == [0x1000]

    def test_read_text_wrong_width(self):
        with pytest.raises(OutputFormatError, match="line 1"):
            read_text("0101")

    def test_read_text_bad_digit(self):
        with pytest.raises(OutputFormatError, match="line 2"):
            read_text("0000000000000000\n000000000000000x")

    def test_binary_and_text_agree(self):
        """Decoding both formats yields the same fields for every word."""
        program = assemble("add r1 r2 r3\nldi r4 -3\nbrh carry 7\nstr r5 r6 -2\ncmp r1 r2")
        from_binary = [decode_word(w) for w in read_binary(to_binary(program))]
        from_text = [decode_word(w) for w in read_text(to_text(program))]
        assert from_binary == from_text
        assert [d.word for d in from_binary] == program.values()


class TestFiles:
    """Test writing and reading files."""

    def test_write_binary_file(self, tmp_path):
        path = tmp_path / "prog.mc"
        program = assemble(SOURCE)
        write_program(program, path)
        assert path.read_bytes() == b"\x81\x05\x10\x00"
        assert read_program_file(path) == [0x8105, 0x1000]

    def test_write_text_file(self, tmp_path):
        path = tmp_path / "prog.txt"
        write_program(assemble(SOURCE), path, OutputFormat.TEXT)
        assert path.read_text() == "1000000100000101\n0001000000000000"
        assert read_program_file(path, OutputFormat.TEXT) == [0x8105, 0x1000]

    def test_format_symbols(self):
        asm = Assembler()
        asm.assemble_string("start:\nnop\nloop:\nend:\nhlt")
        assert format_symbols(asm.get_symbols()) == "start 0\nend 1\nloop 1"
