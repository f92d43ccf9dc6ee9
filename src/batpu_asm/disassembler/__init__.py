"""
BatPU Disassembler Module
=========================

Turns BatPU-2 machine code back into assembly text, for checking
assembled images and for the ``bpdisasm`` tool.

Usage:
    from batpu_asm.disassembler import BatPUDisassembler

    disasm = BatPUDisassembler()
    instructions = disasm.disassemble_bytes(image)
"""

from .batpu2 import BatPUDisassembler, DisassembledInstruction

__all__ = [
    "BatPUDisassembler",
    "DisassembledInstruction",
]
