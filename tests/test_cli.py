# =============================================================================
# test_cli.py - Command-Line Tool Tests
# =============================================================================
# Tests for the bpasm and bpdisasm entry points, driven through click's
# CliRunner against files in a temporary directory.
# =============================================================================

from batpu_asm import __version__
from batpu_asm.cli.bpasm import main as bpasm
from batpu_asm.cli.bpdisasm import main as bpdisasm


PROGRAM = """\
main:
    ldi r1 5
    hlt
"""


def write_source(tmp_path, text=PROGRAM, name="prog.as"):
    path = tmp_path / name
    path.write_text(text)
    return path


# =============================================================================
# bpasm Tests
# =============================================================================

class TestBpasm:
    """Test the assembler command."""

    def test_default_binary_output(self, tmp_path):
        """Without OUTPUT_FILE the image lands next to the source as .mc."""
        from click.testing import CliRunner

        source = write_source(tmp_path)
        result = CliRunner().invoke(bpasm, [str(source)])

        assert result.exit_code == 0
        assert (tmp_path / "prog.mc").read_bytes() == b"\x81\x05\x10\x00"
        assert "2 out of 1024 instructions used (0.2%)" in result.output

    def test_text_output(self, tmp_path):
        from click.testing import CliRunner

        source = write_source(tmp_path)
        result = CliRunner().invoke(bpasm, ["-t", str(source)])

        assert result.exit_code == 0
        assert (tmp_path / "prog.txt").read_text() == "1000000100000101\n0001000000000000"

    def test_explicit_output_file(self, tmp_path):
        from click.testing import CliRunner

        source = write_source(tmp_path)
        target = tmp_path / "out.bin"
        result = CliRunner().invoke(bpasm, [str(source), str(target)])

        assert result.exit_code == 0
        assert target.read_bytes() == b"\x81\x05\x10\x00"
        assert not (tmp_path / "prog.mc").exists()

    def test_no_print_info(self, tmp_path):
        from click.testing import CliRunner

        source = write_source(tmp_path)
        result = CliRunner().invoke(bpasm, ["-p", str(source)])

        assert result.exit_code == 0
        assert "instructions used" not in result.output

    def test_symbols_file(self, tmp_path):
        from click.testing import CliRunner

        source = write_source(tmp_path)
        sym = tmp_path / "prog.sym"
        result = CliRunner().invoke(bpasm, ["-s", str(sym), str(source)])

        assert result.exit_code == 0
        assert sym.read_text() == "main 0"

    def test_no_default_defines(self, tmp_path):
        """-d removes the port names."""
        from click.testing import CliRunner

        source = write_source(tmp_path, "ldi r1 RNG\n")
        assert CliRunner().invoke(bpasm, [str(source)]).exit_code == 0

        result = CliRunner().invoke(bpasm, ["-d", str(source)])
        assert result.exit_code == 1

    def test_assembly_errors(self, tmp_path):
        """Every error is printed and the exit code is 1."""
        from click.testing import CliRunner

        source = write_source(tmp_path, "jmp nowhere\nldi r1 300\n")
        result = CliRunner().invoke(bpasm, [str(source)])

        assert result.exit_code == 1
        assert "undefined label 'nowhere'" in result.output
        assert "immediate 300 out of range" in result.output
        assert "2 errors" in result.output
        assert not (tmp_path / "prog.mc").exists()

    def test_missing_input(self, tmp_path):
        from click.testing import CliRunner

        result = CliRunner().invoke(bpasm, [str(tmp_path / "missing.as")])
        assert result.exit_code == 2

    def test_refuses_to_overwrite_input(self, tmp_path):
        from click.testing import CliRunner

        source = write_source(tmp_path, name="prog.mc")
        result = CliRunner().invoke(bpasm, [str(source)])

        assert result.exit_code == 2
        assert source.read_text() == PROGRAM

    def test_version(self):
        from click.testing import CliRunner

        result = CliRunner().invoke(bpasm, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# bpdisasm Tests
# =============================================================================

class TestBpdisasm:
    """Test the disassembler command."""

    def test_binary_image(self, tmp_path):
        from click.testing import CliRunner

        image = tmp_path / "prog.mc"
        image.write_bytes(b"\x81\x05\x10\x00")
        result = CliRunner().invoke(bpdisasm, [str(image)])

        assert result.exit_code == 0
        assert "// Disassembly of prog.mc" in result.output
        assert "// 2 instruction(s)" in result.output
        assert "0000: 1000000100000101  ldi r1 5" in result.output
        assert "0001: 0001000000000000  hlt" in result.output

    def test_text_image(self, tmp_path):
        from click.testing import CliRunner

        image = tmp_path / "prog.txt"
        image.write_text("1000000100000101\n0001000000000000")
        result = CliRunner().invoke(bpdisasm, ["-t", "--no-words", str(image)])

        assert result.exit_code == 0
        assert "0000: ldi r1 5" in result.output
        assert "0001: hlt" in result.output

    def test_output_file(self, tmp_path):
        from click.testing import CliRunner

        image = tmp_path / "prog.mc"
        image.write_bytes(b"\x10\x00")
        listing = tmp_path / "prog.lst"
        result = CliRunner().invoke(bpdisasm, ["-o", str(listing), str(image)])

        assert result.exit_code == 0
        assert "0000: 0001000000000000  hlt" in listing.read_text()

    def test_odd_length_image(self, tmp_path):
        from click.testing import CliRunner

        image = tmp_path / "bad.mc"
        image.write_bytes(b"\x81\x05\x10")
        result = CliRunner().invoke(bpdisasm, [str(image)])

        assert result.exit_code == 1
        assert "3 bytes" in result.output

    def test_assemble_then_disassemble(self, tmp_path):
        """bpasm output feeds straight into bpdisasm."""
        from click.testing import CliRunner

        runner = CliRunner()
        source = write_source(tmp_path, "loop:\ninc r1\njmp loop\n")
        assert runner.invoke(bpasm, ["-p", str(source)]).exit_code == 0

        result = runner.invoke(bpdisasm, ["--no-words", str(tmp_path / "prog.mc")])
        assert "0000: adi r1 1" in result.output
        assert "0001: jmp 0" in result.output
