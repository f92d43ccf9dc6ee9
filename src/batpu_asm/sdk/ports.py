"""
BatPU-2 Memory-Mapped I/O Ports
===============================

Data memory addresses 240-255 are not RAM: loads and stores there talk to
the screen, the character and number displays, the random number
generator and the controller. The assembler exposes each port as a
built-in define so programs can address a port by name instead of by
number:

    ldi r1 SCR_PIX_X
    str r1 r2 0

Usage
-----
    >>> from batpu_asm.sdk.ports import get_port, builtin_defines
    >>> get_port("RNG").address
    254
    >>> builtin_defines()["SCR_PIX_X"]
    240

The table is read-only. ``builtin_defines()`` returns a fresh dictionary
on every call so each assembly run gets its own copy.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class PortCategory(Enum):
    """Device a port belongs to."""
    SCREEN = auto()
    CHAR_DISPLAY = auto()
    NUMBER_DISPLAY = auto()
    RNG = auto()
    CONTROLLER = auto()


@dataclass(frozen=True)
class IOPort:
    """
    One memory-mapped I/O port.

    Attributes:
        name: Define name used in source
        address: Data memory address
        category: Device the port belongs to
        description: What a load or store does
    """
    name: str
    address: int
    category: PortCategory
    description: str


PORTS: tuple[IOPort, ...] = (
    # Screen (32x32 pixels, double buffered)
    IOPort("SCR_PIX_X", 240, PortCategory.SCREEN, "Pixel X coordinate"),
    IOPort("SCR_PIX_Y", 241, PortCategory.SCREEN, "Pixel Y coordinate"),
    IOPort("SCR_DRAW_PIX", 242, PortCategory.SCREEN, "Draw pixel at X, Y to buffer"),
    IOPort("SCR_CLR_PIX", 243, PortCategory.SCREEN, "Clear pixel at X, Y in buffer"),
    IOPort("SCR_LOAD_PIX", 244, PortCategory.SCREEN, "Load pixel at X, Y"),
    IOPort("SCR_DRAW", 245, PortCategory.SCREEN, "Push buffer to screen"),
    IOPort("SCR_CLR", 246, PortCategory.SCREEN, "Clear screen buffer"),

    # Character display
    IOPort("CHAR_DISP_WRITE", 247, PortCategory.CHAR_DISPLAY, "Write character to buffer"),
    IOPort("CHAR_DISP_DRAW", 248, PortCategory.CHAR_DISPLAY, "Push buffer to display"),
    IOPort("CHAR_DISP_CLR", 249, PortCategory.CHAR_DISPLAY, "Clear buffer"),

    # Number display
    IOPort("NUM_DISP_SHOW", 250, PortCategory.NUMBER_DISPLAY, "Show number"),
    IOPort("NUM_DISP_CLR", 251, PortCategory.NUMBER_DISPLAY, "Clear number display"),
    IOPort("NUM_DISP_SIGNED", 252, PortCategory.NUMBER_DISPLAY, "Signed mode"),
    IOPort("NUM_DISP_UNSIGNED", 253, PortCategory.NUMBER_DISPLAY, "Unsigned mode"),

    # Random number generator
    IOPort("RNG", 254, PortCategory.RNG, "Load random byte"),

    # Controller
    IOPort("CONTROLLER", 255, PortCategory.CONTROLLER, "Load controller input"),
)

_PORTS_BY_NAME: dict[str, IOPort] = {port.name: port for port in PORTS}


def get_port(name: str) -> Optional[IOPort]:
    """Look up a port by define name (case-sensitive)."""
    return _PORTS_BY_NAME.get(name)


def get_ports_by_category(category: PortCategory) -> list[IOPort]:
    """Return the ports of one device, in address order."""
    return [port for port in PORTS if port.category == category]


def builtin_defines() -> dict[str, int]:
    """Return a new name -> address dictionary of all ports."""
    return {port.name: port.address for port in PORTS}
