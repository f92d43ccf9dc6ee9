"""
BatPU Assembler Command-Line Interface
======================================

This package provides the command-line tools:

- **bpasm**: BatPU-2 assembler
- **bpdisasm**: BatPU-2 disassembler

Each tool is a Click-based CLI application sharing the exit codes and
error reporting in ``errors.py``.
"""

__all__ = ["bpasm", "bpdisasm"]
