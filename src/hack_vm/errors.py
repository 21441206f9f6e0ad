"""
Hack VM Translator Error Hierarchy
==================================

This module defines the exception hierarchy for the VM translator.
All exceptions inherit from VMError, allowing callers to catch every
translator-related error with a single except clause.

Exception Hierarchy
-------------------
VMError (base)
├── VMSyntaxError - lexer and parser errors
├── VMTranslationError - an instruction failed validation
│   ├── ArityError - wrong number of arguments
│   ├── ArgumentKindError - identifier where an integer belongs (or vice versa)
│   ├── UnknownInstructionError - name outside the VM vocabulary
│   ├── UnknownSegmentError - segment name outside the fixed set
│   ├── ReadOnlySegmentError - pop into the constant segment
│   ├── SegmentIndexError - pointer/temp index past the end of the segment
│   └── UnscopedControlFlowError - label/goto/if-goto outside a function
├── VMCodeGenError - internal code generator misuse
├── HackAssemblyError - reference emulator could not assemble its input
└── ExecutionLimitError - reference emulator ran out of steps

Error Message Format
--------------------
Every error tied to source text follows this format:

    filename:line:column: error: description
    hint: suggestion for fixing (when available)

Example:
    Main.vm:12:6: error: unknown segment 'locl'
    hint: did you mean 'local'?

Translation errors name their compilation unit. When the filename does
not already do so (e.g. commands parsed from a string), the unit is
shown in brackets:

    <input>:3:1: error: [Main] unknown instruction 'mul'
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, List


# =============================================================================
# Base Exception Class
# =============================================================================

class VMError(Exception):
    """
    Base exception for all translator errors.

        try:
            translator.translate_file("Main.vm")
        except VMError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in VM source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Located Errors
# =============================================================================

class _LocatedError(VMError):
    """
    Shared formatting for errors that point at a source position.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        message = self._describe()

        if self.location:
            parts.append(f"{self.location}: error: {message}")
        else:
            parts.append(f"error: {message}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def _describe(self) -> str:
        return self.message


class VMSyntaxError(_LocatedError):
    """
    Syntax error in VM source text.

    Examples:
        - Invalid character in source
        - Integer literal too large for the target's immediate load
        - A line that starts with an integer instead of a command name
    """
    pass


# =============================================================================
# Translation Errors
# =============================================================================

class VMTranslationError(_LocatedError):
    """
    Base class for instruction validation failures.

    Raised synchronously while translating a single instruction. The
    translation run stops at the first one; no partial output is kept
    for the remainder.

    Attributes:
        module: Name of the compilation unit the instruction came from
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        module: Optional[str] = None,
    ):
        self.module = module
        super().__init__(message, location=location, hint=hint)

    def _describe(self) -> str:
        # The unit is already named when the file is '<module>.vm'
        if self.module is None:
            return self.message
        if self.location and PurePath(self.location.filename).stem == self.module:
            return self.message
        return f"[{self.module}] {self.message}"


class ArityError(VMTranslationError):
    """
    Instruction received the wrong number of arguments.

    Example:
        add 1        // 'add' takes no arguments
        push local   // 'push' takes a segment and an index
    """

    def __init__(
        self,
        instruction: str,
        expected: int,
        actual: int,
        location: Optional[SourceLocation] = None,
        module: Optional[str] = None,
    ):
        self.instruction = instruction
        self.expected = expected
        self.actual = actual

        word = "argument" if expected == 1 else "arguments"
        super().__init__(
            f"'{instruction}' expects {expected} {word}, got {actual}",
            location=location,
            module=module,
        )


class ArgumentKindError(VMTranslationError):
    """
    An argument token has the wrong type for its position.

    Example:
        push 3 local    // segment must be an identifier, index an integer
    """

    def __init__(
        self,
        instruction: str,
        position: int,
        expected_kind: str,
        location: Optional[SourceLocation] = None,
        module: Optional[str] = None,
    ):
        self.instruction = instruction
        self.position = position
        self.expected_kind = expected_kind
        super().__init__(
            f"argument {position + 1} of '{instruction}' must be an {expected_kind}",
            location=location,
            module=module,
        )


class UnknownInstructionError(VMTranslationError):
    """
    Command name is not part of the VM instruction vocabulary.

    The translator suggests similarly-spelled instructions when it can.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        similar_names: Optional[List[str]] = None,
        module: Optional[str] = None,
    ):
        self.name = name
        self.similar_names = similar_names or []

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown instruction '{name}'",
            location=location,
            hint=hint,
            module=module,
        )


class UnknownSegmentError(VMTranslationError):
    """Segment name is not one of the eight recognized segments."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        similar_names: Optional[List[str]] = None,
        module: Optional[str] = None,
    ):
        self.name = name
        self.similar_names = similar_names or []

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown segment '{name}'",
            location=location,
            hint=hint,
            module=module,
        )


class ReadOnlySegmentError(VMTranslationError):
    """
    Pop targets a segment that has no memory behind it.

    Example:
        pop constant 0
    """

    def __init__(
        self,
        segment: str,
        location: Optional[SourceLocation] = None,
        module: Optional[str] = None,
    ):
        self.segment = segment
        super().__init__(
            f"cannot pop into read-only segment '{segment}'",
            location=location,
            hint="constants can only be pushed",
            module=module,
        )


class SegmentIndexError(VMTranslationError):
    """
    Index falls outside a fixed-size segment.

    The pointer segment has 2 cells (THIS, THAT) and temp has 8.
    """

    def __init__(
        self,
        segment: str,
        index: int,
        limit: int,
        location: Optional[SourceLocation] = None,
        module: Optional[str] = None,
    ):
        self.segment = segment
        self.index = index
        self.limit = limit
        super().__init__(
            f"index {index} out of range for segment '{segment}'",
            location=location,
            hint=f"valid indices are 0..{limit - 1}",
            module=module,
        )


class UnscopedControlFlowError(VMTranslationError):
    """
    label, goto or if-goto used before any 'function' instruction.

    Program-flow labels are scoped to their enclosing function, so
    there is nothing to qualify them with at the top level.
    """

    def __init__(
        self,
        instruction: str,
        location: Optional[SourceLocation] = None,
        module: Optional[str] = None,
    ):
        self.instruction = instruction
        super().__init__(
            f"'{instruction}' used outside of a function",
            location=location,
            hint="declare the enclosing function with 'function <name> <nVars>' first",
            module=module,
        )


# =============================================================================
# Internal and Emulator Errors
# =============================================================================

class VMCodeGenError(VMError):
    """
    Internal code generation error.

    Indicates the code generator was driven with something the driver
    should have rejected, e.g. asking for the address of a constant.
    """
    pass


class HackAssemblyError(VMError):
    """The reference emulator could not assemble its input."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class ExecutionLimitError(VMError):
    """The reference emulator exhausted its step budget before halting."""

    def __init__(self, steps: int):
        self.steps = steps
        super().__init__(f"program did not halt within {steps} steps")
