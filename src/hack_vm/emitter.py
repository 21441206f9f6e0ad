"""
Assembly Emitter
================

Append-only output buffer shared by every compilation unit in a run,
plus the counter that mints globally unique internal labels.

One emitter is created per run and handed to each unit's code
generator in turn, so generated labels never collide across files
and all units land in a single Hack address space.

Output Format
-------------
- Instructions are indented two spaces
- Label declarations ``(NAME)`` start in column 1
- Comments start with ``//`` and are optional
"""

from typing import TextIO


# Prefix for labels minted by the emitter; contains no '$' so it can
# never clash with a function-scoped user label
GENERATED_LABEL_PREFIX = "__VM_GENERATED_"

DEFAULT_STACK_BASE = 256

# Largest value an A-instruction can load
MAX_STACK_BASE = 0x7FFF


class AssemblyEmitter:
    """
    Accumulates Hack assembly text.

    The buffer starts with a preamble setting SP to the stack base.
    Nothing ever reads emitted lines back except getvalue()/write().

    Example:
        >>> emitter = AssemblyEmitter()
        >>> emitter.new_label()
        '__VM_GENERATED_1'
        >>> emitter.emit("@SP", "M=M+1")
    """

    def __init__(self, emit_comments: bool = True, stack_base: int = DEFAULT_STACK_BASE):
        if not 0 <= stack_base <= MAX_STACK_BASE:
            raise ValueError(f"stack base {stack_base} outside 0..{MAX_STACK_BASE}")

        self.emit_comments = emit_comments
        self.stack_base = stack_base

        self._lines: list[str] = []
        self._label_count: int = 0

        self._emit_preamble()

    def _emit_preamble(self) -> None:
        self.comment(f"initialize stack pointer to {self.stack_base}")
        self.emit(
            f"@{self.stack_base}",
            "D=A",
            "@SP",
            "M=D",
        )

    # =========================================================================
    # Writing
    # =========================================================================

    def emit(self, *instructions: str) -> None:
        """Append instructions in order."""
        self._lines.extend(f"  {instruction}" for instruction in instructions)

    def label(self, name: str) -> None:
        """Declare a label at the current position."""
        self._lines.append(f"({name})")

    def comment(self, text: str) -> None:
        """Append a comment line (dropped when comments are disabled)."""
        if self.emit_comments:
            self._lines.append(f"// {text}")

    def new_label(self) -> str:
        """Mint a label that is unique across the whole run."""
        self._label_count += 1
        return f"{GENERATED_LABEL_PREFIX}{self._label_count}"

    @property
    def label_count(self) -> int:
        return self._label_count

    # =========================================================================
    # Output
    # =========================================================================

    def getvalue(self) -> str:
        """Return the complete assembly text."""
        return "\n".join(self._lines) + "\n"

    def write(self, stream: TextIO) -> None:
        stream.write(self.getvalue())
