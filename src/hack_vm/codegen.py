"""
Hack Code Generator for VM Instructions
=======================================

This module turns validated VM instructions into Hack assembly. Each
instruction category maps to a fixed idiom; nothing is optimized and
nothing already emitted is read back.

Register Usage
--------------
| Cell     | Usage                                          |
|----------|------------------------------------------------|
| SP (0)   | Address one past the top of the operand stack  |
| LCL (1)  | Base of the current function's locals          |
| ARG (2)  | Base of the current function's arguments       |
| THIS (3) | this segment base / pointer 0                  |
| THAT (4) | that segment base / pointer 1                  |
| R5-R12   | temp segment                                   |
| R13      | Scratch: pop destination, return frame base    |
| R14      | Scratch: return address during 'return'        |
| D        | Value in flight                                |

Stack Frame Layout
------------------
After 'call f n' and 'function f k' the stack looks like:

    +----------------+ <- ARG
    | argument 0     |
    | ...            |
    | argument n-1   |
    +----------------+
    | return address |  frame - 5
    | saved LCL      |  frame - 4
    | saved ARG      |  frame - 3
    | saved THIS     |  frame - 2
    | saved THAT     |  frame - 1
    +----------------+ <- LCL (frame)
    | local 0        |
    | ...            |
    | local k-1      |
    +----------------+ <- SP
    | working stack  |

'return' addresses everything relative to LCL and ARG at the moment it
runs, so it works at any stack depth and under recursion.

Booleans
--------
Comparisons leave -1 (all bits set) for true and 0 for false.

Usage
-----
>>> from hack_vm.emitter import AssemblyEmitter
>>> from hack_vm.codegen import CodeGenerator
>>> emitter = AssemblyEmitter()
>>> gen = CodeGenerator(emitter)
>>> for instruction in instructions:
...     gen.visit(instruction)
>>> print(emitter.getvalue())
"""

from hack_vm.emitter import AssemblyEmitter
from hack_vm.errors import VMCodeGenError
from hack_vm.instructions import (
    InstructionVisitor,
    PushInstruction,
    PopInstruction,
    ArithmeticInstruction,
    ArithmeticOperator,
    LabelInstruction,
    GotoInstruction,
    IfGotoInstruction,
    FunctionInstruction,
    CallInstruction,
    ReturnInstruction,
)
from hack_vm.segments import SegmentKind


# Scratch cells
ADDRESS_REGISTER = "R13"
FRAME_REGISTER = "R13"
RETURN_REGISTER = "R14"

# Words pushed by 'call' ahead of the callee's locals
FRAME_SIZE = 5

# Caller state saved by 'call', in push order
SAVED_POINTERS = ("LCL", "ARG", "THIS", "THAT")

# Computation that combines D (top) with M (second from top)
BINARY_COMPUTATIONS = {
    ArithmeticOperator.ADD: "D+M",
    ArithmeticOperator.SUB: "M-D",
    ArithmeticOperator.AND: "D&M",
    ArithmeticOperator.OR: "D|M",
}

UNARY_COMPUTATIONS = {
    ArithmeticOperator.NEG: "-M",
    ArithmeticOperator.NOT: "!M",
}

# Jump taken when (second from top - top) makes the comparison true
COMPARISON_JUMPS = {
    ArithmeticOperator.EQ: "JEQ",
    ArithmeticOperator.GT: "JGT",
    ArithmeticOperator.LT: "JLT",
}


class CodeGenerator(InstructionVisitor):
    """
    Generates Hack assembly from VM instructions.

    All output goes through the shared emitter, which also supplies
    the unique labels used by comparisons and call sites.

    Attributes:
        emitter: Output buffer and label source shared across the run
    """

    def __init__(self, emitter: AssemblyEmitter):
        self.emitter = emitter

    # =========================================================================
    # Stack Primitives
    # =========================================================================

    def _push_d(self) -> None:
        """Push D onto the stack."""
        self.emitter.emit(
            "@SP",
            "A=M",
            "M=D",
            "@SP",
            "M=M+1",
        )

    def _pop_d(self) -> None:
        """Pop the top of the stack into D."""
        self.emitter.emit(
            "@SP",
            "AM=M-1",
            "D=M",
        )

    def _push_constant(self, value: int) -> None:
        self.emitter.emit(f"@{value}", "D=A")
        self._push_d()

    def _top(self) -> None:
        """Point A at the top-of-stack cell without popping."""
        self.emitter.emit("@SP", "A=M-1")

    # =========================================================================
    # Push / Pop
    # =========================================================================

    def visit_PushInstruction(self, instruction: PushInstruction) -> None:
        segment, index = instruction.segment, instruction.index
        self.emitter.comment(f"push {segment} {index}")

        if segment.kind is SegmentKind.CONSTANT:
            self._push_constant(index)
            return

        self.emitter.emit(*segment.resolve_address(index))
        self.emitter.emit("D=M")
        self._push_d()

    def visit_PopInstruction(self, instruction: PopInstruction) -> None:
        segment, index = instruction.segment, instruction.index
        if not segment.is_writable:
            raise VMCodeGenError(f"cannot pop into {segment}")

        self.emitter.comment(f"pop {segment} {index}")

        # Address first: computing it may need D
        self.emitter.emit(*segment.resolve_address(index))
        self.emitter.emit(
            "D=A",
            f"@{ADDRESS_REGISTER}",
            "M=D",
        )
        self._pop_d()
        self.emitter.emit(
            f"@{ADDRESS_REGISTER}",
            "A=M",
            "M=D",
        )

    # =========================================================================
    # Arithmetic, Logic and Comparison
    # =========================================================================

    def visit_ArithmeticInstruction(self, instruction: ArithmeticInstruction) -> None:
        operator = instruction.operator
        self.emitter.comment(operator.value)

        if operator.is_unary:
            self._top()
            self.emitter.emit(f"M={UNARY_COMPUTATIONS[operator]}")
        elif operator.is_comparison:
            self._comparison(operator)
        else:
            self._pop_d()
            self._top()
            self.emitter.emit(f"M={BINARY_COMPUTATIONS[operator]}")

    def _comparison(self, operator: ArithmeticOperator) -> None:
        """
        Replace the top two values with -1 if the comparison holds, else 0.

        Each call mints one label from the shared counter; the pair of
        branch targets is derived from it.
        """
        label = self.emitter.new_label()
        true_label = f"{label}_TRUE"
        end_label = f"{label}_END"

        self._pop_d()
        self._top()
        self.emitter.emit(
            "D=M-D",
            f"@{true_label}",
            f"D;{COMPARISON_JUMPS[operator]}",
        )
        self._top()
        self.emitter.emit(
            "M=0",
            f"@{end_label}",
            "0;JMP",
        )
        self.emitter.label(true_label)
        self._top()
        self.emitter.emit("M=-1")
        self.emitter.label(end_label)

    # =========================================================================
    # Program Flow
    # =========================================================================

    def visit_LabelInstruction(self, instruction: LabelInstruction) -> None:
        self.emitter.label(instruction.scoped_label)

    def visit_GotoInstruction(self, instruction: GotoInstruction) -> None:
        self.emitter.comment(f"goto {instruction.scoped_label}")
        self.emitter.emit(f"@{instruction.scoped_label}", "0;JMP")

    def visit_IfGotoInstruction(self, instruction: IfGotoInstruction) -> None:
        self.emitter.comment(f"if-goto {instruction.scoped_label}")
        # Consumed whether or not the branch is taken
        self._pop_d()
        self.emitter.emit(f"@{instruction.scoped_label}", "D;JNE")

    # =========================================================================
    # Functions
    # =========================================================================

    def visit_FunctionInstruction(self, instruction: FunctionInstruction) -> None:
        self.emitter.comment(f"function {instruction.name} {instruction.local_count}")
        self.emitter.label(instruction.name)
        for _ in range(instruction.local_count):
            self._push_constant(0)

    def visit_CallInstruction(self, instruction: CallInstruction) -> None:
        return_label = self.emitter.new_label()
        self.emitter.comment(f"call {instruction.name} {instruction.arg_count}")

        self.emitter.emit(f"@{return_label}", "D=A")
        self._push_d()

        for pointer in SAVED_POINTERS:
            self.emitter.emit(f"@{pointer}", "D=M")
            self._push_d()

        # ARG = SP - nArgs - 5
        self.emitter.emit(
            "@SP",
            "D=M",
            f"@{instruction.arg_count + FRAME_SIZE}",
            "D=D-A",
            "@ARG",
            "M=D",
        )

        # LCL = SP
        self.emitter.emit(
            "@SP",
            "D=M",
            "@LCL",
            "M=D",
        )

        self.emitter.emit(f"@{instruction.name}", "0;JMP")
        self.emitter.label(return_label)

    def visit_ReturnInstruction(self, instruction: ReturnInstruction) -> None:
        self.emitter.comment("return")

        # frame = LCL
        self.emitter.emit(
            "@LCL",
            "D=M",
            f"@{FRAME_REGISTER}",
            "M=D",
        )

        # Return address must be read before *ARG is overwritten: with
        # zero arguments ARG points at the same cell
        self.emitter.emit(
            f"@{FRAME_SIZE}",
            "A=D-A",
            "D=M",
            f"@{RETURN_REGISTER}",
            "M=D",
        )

        # *ARG = pop()
        self._pop_d()
        self.emitter.emit(
            "@ARG",
            "A=M",
            "M=D",
        )

        # SP = ARG + 1
        self.emitter.emit(
            "@ARG",
            "D=M+1",
            "@SP",
            "M=D",
        )

        # THAT, THIS, ARG, LCL = *(frame - 1..4); LCL last since frame came from it
        for offset, pointer in enumerate(reversed(SAVED_POINTERS), start=1):
            self.emitter.emit(
                f"@{FRAME_REGISTER}",
                "D=M",
                f"@{offset}",
                "A=D-A",
                "D=M",
                f"@{pointer}",
                "M=D",
            )

        self.emitter.emit(
            f"@{RETURN_REGISTER}",
            "A=M",
            "0;JMP",
        )
