"""
Virtual Memory Segments
=======================

Maps a (segment, index) pair to the Hack assembly that leaves the A
register pointing at the target cell.

Addressing Rules
----------------
| Segment  | Base                 | Effective address        |
|----------|----------------------|--------------------------|
| local    | RAM[LCL]             | RAM[LCL] + index         |
| argument | RAM[ARG]             | RAM[ARG] + index         |
| this     | RAM[THIS]            | RAM[THIS] + index        |
| that     | RAM[THAT]            | RAM[THAT] + index        |
| pointer  | 3 (THIS)             | 3 + index                |
| temp     | 5                    | 5 + index                |
| static   | assembler-assigned   | symbol '<module>.<index>'|
| constant | none                 | index is the value       |

The first four are indirect: the base cell holds a pointer. pointer
and temp are direct, so no dereference is needed. constant has no
address at all.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hack_vm.errors import VMCodeGenError


# Base of the temp segment (RAM[5..12])
TEMP_BASE = 5

# Cells in each fixed-size segment
POINTER_SIZE = 2
TEMP_SIZE = 8


class SegmentKind(Enum):
    """The eight VM memory segments, keyed by source spelling."""
    ARGUMENT = "argument"
    LOCAL = "local"
    THIS = "this"
    THAT = "that"
    POINTER = "pointer"
    TEMP = "temp"
    STATIC = "static"
    CONSTANT = "constant"


# Map segment spellings to their kinds
SEGMENT_NAMES: dict[str, SegmentKind] = {kind.value: kind for kind in SegmentKind}

# Indirect segments and the cell holding each base pointer
BASE_POINTERS: dict[SegmentKind, str] = {
    SegmentKind.LOCAL: "LCL",
    SegmentKind.ARGUMENT: "ARG",
    SegmentKind.THIS: "THIS",
    SegmentKind.THAT: "THAT",
}

# Symbols for the pointer segment: pointer 0 is THIS, pointer 1 is THAT
POINTER_SYMBOLS = ("THIS", "THAT")


@dataclass(frozen=True)
class Segment:
    """
    A VM memory segment.

    Attributes:
        kind: Which of the eight segments this is
        module: Owning compilation unit, set for static only
    """
    kind: SegmentKind
    module: Optional[str] = None

    @classmethod
    def from_name(cls, name: str, module: str) -> "Segment":
        """
        Build a segment from its source spelling.

        Raises:
            KeyError: If name is not a segment; callers check SEGMENT_NAMES first
        """
        kind = SEGMENT_NAMES[name]
        if kind is SegmentKind.STATIC:
            return cls(kind, module)
        return cls(kind)

    def __str__(self) -> str:
        return self.kind.value

    @property
    def is_writable(self) -> bool:
        return self.kind is not SegmentKind.CONSTANT

    @property
    def size(self) -> Optional[int]:
        """Number of cells for fixed-size segments, None when unbounded."""
        if self.kind is SegmentKind.POINTER:
            return POINTER_SIZE
        if self.kind is SegmentKind.TEMP:
            return TEMP_SIZE
        return None

    def resolve_address(self, index: int) -> list[str]:
        """
        Return assembly that sets A to the address of cell `index`.

        The indirect form with a non-zero index clobbers D.

        Raises:
            VMCodeGenError: For the constant segment, which has no address
        """
        kind = self.kind

        if kind is SegmentKind.CONSTANT:
            raise VMCodeGenError("constant segment has no address")

        if kind is SegmentKind.STATIC:
            return [f"@{self.module}.{index}"]

        if kind is SegmentKind.POINTER:
            return [f"@{POINTER_SYMBOLS[index]}"]

        if kind is SegmentKind.TEMP:
            return [f"@{TEMP_BASE + index}"]

        base = BASE_POINTERS[kind]
        if index == 0:
            return [f"@{base}", "A=M"]
        return [
            f"@{index}",
            "D=A",
            f"@{base}",
            "A=D+M",
        ]
