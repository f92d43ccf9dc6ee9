"""
BatPU-2 SDK Definitions
=======================

Static hardware data consumed by the assembler.

**ports.py**: memory-mapped I/O port table (addresses 240-255), used as
the assembler's built-in defines.
"""

from batpu_asm.sdk.ports import (
    IOPort,
    PortCategory,
    PORTS,
    get_port,
    get_ports_by_category,
    builtin_defines,
)

__all__ = [
    "IOPort",
    "PortCategory",
    "PORTS",
    "get_port",
    "get_ports_by_category",
    "builtin_defines",
]
