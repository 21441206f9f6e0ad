"""
VM Instruction Definitions
==========================

Validated VM instructions, one frozen dataclass per instruction
category. The translator builds these from parsed commands after
checking arity and argument kinds; the code generator consumes each
one exactly once.

Instruction Hierarchy
---------------------
Instruction (base)
├── PushInstruction - push segment index
├── PopInstruction - pop segment index
├── ArithmeticInstruction - add sub neg eq gt lt and or not
├── LabelInstruction - label L
├── GotoInstruction - goto L
├── IfGotoInstruction - if-goto L
├── FunctionInstruction - function name nVars
├── CallInstruction - call name nArgs
└── ReturnInstruction - return
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from hack_vm.errors import SourceLocation, VMCodeGenError
from hack_vm.segments import Segment


# =============================================================================
# Vocabulary
# =============================================================================

class Opcode(Enum):
    """The fixed VM instruction vocabulary, keyed by source spelling."""
    PUSH = "push"
    POP = "pop"
    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"
    LABEL = "label"
    GOTO = "goto"
    IF_GOTO = "if-goto"
    FUNCTION = "function"
    CALL = "call"
    RETURN = "return"


class ArithmeticOperator(Enum):
    """Arithmetic, logical and comparison operators."""
    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"

    @property
    def is_unary(self) -> bool:
        return self in (ArithmeticOperator.NEG, ArithmeticOperator.NOT)

    @property
    def is_comparison(self) -> bool:
        return self in (ArithmeticOperator.EQ, ArithmeticOperator.GT, ArithmeticOperator.LT)


# =============================================================================
# Instruction Nodes
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    Base class for all validated instructions.

    Attributes:
        location: Source position of the instruction name
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"


@dataclass(frozen=True)
class PushInstruction(Instruction):
    segment: Segment
    index: int


@dataclass(frozen=True)
class PopInstruction(Instruction):
    segment: Segment
    index: int


@dataclass(frozen=True)
class ArithmeticInstruction(Instruction):
    operator: ArithmeticOperator


@dataclass(frozen=True)
class _ScopedJump(Instruction):
    """
    Shared shape of label, goto and if-goto.

    Attributes:
        function: Enclosing function the label is scoped to
        label: Label name as written in the source
    """
    function: str
    label: str

    @property
    def scoped_label(self) -> str:
        return f"{self.function}${self.label}"


@dataclass(frozen=True)
class LabelInstruction(_ScopedJump):
    pass


@dataclass(frozen=True)
class GotoInstruction(_ScopedJump):
    pass


@dataclass(frozen=True)
class IfGotoInstruction(_ScopedJump):
    pass


@dataclass(frozen=True)
class FunctionInstruction(Instruction):
    """
    Function entry point.

    Attributes:
        name: Fully qualified function name (e.g. 'Main.fibonacci')
        local_count: Number of zero-initialized local slots to allocate
    """
    name: str
    local_count: int


@dataclass(frozen=True)
class CallInstruction(Instruction):
    """
    Function call site.

    Attributes:
        name: Callee function name
        arg_count: Number of arguments already pushed by the caller
    """
    name: str
    arg_count: int


@dataclass(frozen=True)
class ReturnInstruction(Instruction):
    pass


# =============================================================================
# Visitor
# =============================================================================

class InstructionVisitor:
    """
    Base class for instruction visitors.

    Subclasses implement visit_<ClassName> for every instruction class.
    There is no silent fallback: an unhandled instruction class is a
    programming error.
    """

    def visit(self, instruction: Instruction) -> Any:
        method_name = f"visit_{instruction.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(instruction)

    def generic_visit(self, instruction: Instruction) -> Any:
        raise VMCodeGenError(
            f"{self.__class__.__name__} cannot handle {instruction.__class__.__name__}"
        )
