# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the instruction-to-assembly rules.
#
# Test coverage includes:
#   - push/pop for every segment kind
#   - Binary, unary and comparison operators
#   - Scoped labels, goto and if-goto
#   - function, call and return sequences
#   - Label allocation from the shared counter
# =============================================================================

import pytest

from hack_vm.codegen import CodeGenerator
from hack_vm.emitter import AssemblyEmitter
from hack_vm.errors import SourceLocation, VMCodeGenError
from hack_vm.instructions import (
    Instruction,
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
from hack_vm.segments import Segment, SegmentKind


LOC = SourceLocation("Test.vm", 1, 1)

PUSH_D = ["@SP", "A=M", "M=D", "@SP", "M=M+1"]
POP_D = ["@SP", "AM=M-1", "D=M"]


# =============================================================================
# Helper Functions
# =============================================================================

def generate(*instructions: Instruction, emitter: AssemblyEmitter = None) -> list[str]:
    """
    Generate code for instructions and return only the new lines,
    stripped of indentation, with comments and preamble removed.
    """
    emitter = emitter or AssemblyEmitter(emit_comments=False)
    before = len(emitter.getvalue().splitlines())
    gen = CodeGenerator(emitter)
    for instruction in instructions:
        gen.visit(instruction)
    return [line.strip() for line in emitter.getvalue().splitlines()[before:]]


def seg(kind: SegmentKind, module: str = None) -> Segment:
    return Segment(kind, module)


# =============================================================================
# Push / Pop
# =============================================================================

class TestPush:
    """Tests for push code."""

    def test_push_constant(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.CONSTANT), 17))
        assert lines == ["@17", "D=A", *PUSH_D]

    def test_push_local_zero(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.LOCAL), 0))
        assert lines == ["@LCL", "A=M", "D=M", *PUSH_D]

    def test_push_argument_offset(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.ARGUMENT), 2))
        assert lines == ["@2", "D=A", "@ARG", "A=D+M", "D=M", *PUSH_D]

    def test_push_temp(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.TEMP), 6))
        assert lines == ["@11", "D=M", *PUSH_D]

    def test_push_pointer(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.POINTER), 1))
        assert lines == ["@THAT", "D=M", *PUSH_D]

    def test_push_static(self):
        lines = generate(PushInstruction(LOC, seg(SegmentKind.STATIC, "Foo"), 3))
        assert lines == ["@Foo.3", "D=M", *PUSH_D]


class TestPop:
    """Tests for pop code."""

    def test_pop_computes_address_before_popping(self):
        """The destination is parked in R13 before D receives the value."""
        lines = generate(PopInstruction(LOC, seg(SegmentKind.THAT), 5))
        assert lines == [
            "@5", "D=A", "@THAT", "A=D+M",
            "D=A", "@R13", "M=D",
            *POP_D,
            "@R13", "A=M", "M=D",
        ]

    def test_pop_static(self):
        lines = generate(PopInstruction(LOC, seg(SegmentKind.STATIC, "Bar"), 0))
        assert lines[0] == "@Bar.0"

    def test_pop_constant_rejected(self):
        with pytest.raises(VMCodeGenError):
            generate(PopInstruction(LOC, seg(SegmentKind.CONSTANT), 0))


# =============================================================================
# Arithmetic and Logic
# =============================================================================

class TestArithmetic:
    """Tests for arithmetic and logical operators."""

    @pytest.mark.parametrize("operator,computation", [
        (ArithmeticOperator.ADD, "M=D+M"),
        (ArithmeticOperator.SUB, "M=M-D"),
        (ArithmeticOperator.AND, "M=D&M"),
        (ArithmeticOperator.OR, "M=D|M"),
    ])
    def test_binary(self, operator, computation):
        """Binary ops pop y into D and update x in place."""
        lines = generate(ArithmeticInstruction(LOC, operator))
        assert lines == [*POP_D, "@SP", "A=M-1", computation]

    @pytest.mark.parametrize("operator,computation", [
        (ArithmeticOperator.NEG, "M=-M"),
        (ArithmeticOperator.NOT, "M=!M"),
    ])
    def test_unary(self, operator, computation):
        """Unary ops do not change stack depth."""
        lines = generate(ArithmeticInstruction(LOC, operator))
        assert lines == ["@SP", "A=M-1", computation]


class TestComparison:
    """Tests for eq/gt/lt."""

    @pytest.mark.parametrize("operator,jump", [
        (ArithmeticOperator.EQ, "D;JEQ"),
        (ArithmeticOperator.GT, "D;JGT"),
        (ArithmeticOperator.LT, "D;JLT"),
    ])
    def test_jump_condition(self, operator, jump):
        lines = generate(ArithmeticInstruction(LOC, operator))
        assert "D=M-D" in lines
        assert jump in lines
        assert "M=-1" in lines
        assert "M=0" in lines

    def test_one_label_per_comparison(self):
        emitter = AssemblyEmitter(emit_comments=False)
        generate(
            ArithmeticInstruction(LOC, ArithmeticOperator.EQ),
            ArithmeticInstruction(LOC, ArithmeticOperator.EQ),
            emitter=emitter,
        )
        assert emitter.label_count == 2

    def test_repeated_comparisons_use_distinct_labels(self):
        lines = generate(
            ArithmeticInstruction(LOC, ArithmeticOperator.LT),
            ArithmeticInstruction(LOC, ArithmeticOperator.LT),
        )
        declared = [line for line in lines if line.startswith("(")]
        assert len(declared) == 4
        assert len(set(declared)) == 4


# =============================================================================
# Program Flow
# =============================================================================

class TestProgramFlow:
    """Tests for label, goto and if-goto."""

    def test_label_is_scoped(self):
        lines = generate(LabelInstruction(LOC, "Main.loop", "TOP"))
        assert lines == ["(Main.loop$TOP)"]

    def test_goto(self):
        lines = generate(GotoInstruction(LOC, "Main.loop", "TOP"))
        assert lines == ["@Main.loop$TOP", "0;JMP"]

    def test_if_goto_pops_first(self):
        lines = generate(IfGotoInstruction(LOC, "Main.loop", "END"))
        assert lines == [*POP_D, "@Main.loop$END", "D;JNE"]


# =============================================================================
# Functions
# =============================================================================

class TestFunction:
    """Tests for function entry."""

    def test_entry_label_unscoped(self):
        lines = generate(FunctionInstruction(LOC, "Main.main", 0))
        assert lines == ["(Main.main)"]

    def test_locals_zeroed(self):
        lines = generate(FunctionInstruction(LOC, "Main.f", 3))
        assert lines[0] == "(Main.f)"
        assert lines[1:] == ["@0", "D=A", *PUSH_D] * 3


class TestCall:
    """Tests for call sites."""

    def test_call_sequence(self):
        emitter = AssemblyEmitter(emit_comments=False)
        lines = generate(CallInstruction(LOC, "Math.multiply", 2), emitter=emitter)
        ret = "__VM_GENERATED_1"
        assert lines == [
            f"@{ret}", "D=A", *PUSH_D,
            "@LCL", "D=M", *PUSH_D,
            "@ARG", "D=M", *PUSH_D,
            "@THIS", "D=M", *PUSH_D,
            "@THAT", "D=M", *PUSH_D,
            "@SP", "D=M", "@7", "D=D-A", "@ARG", "M=D",
            "@SP", "D=M", "@LCL", "M=D",
            "@Math.multiply", "0;JMP",
            f"({ret})",
        ]

    def test_nested_calls_get_distinct_return_labels(self):
        lines = generate(
            CallInstruction(LOC, "Main.f", 1),
            CallInstruction(LOC, "Main.f", 1),
        )
        returns = [line for line in lines if line.startswith("(")]
        assert returns == ["(__VM_GENERATED_1)", "(__VM_GENERATED_2)"]


class TestReturn:
    """Tests for the return sequence."""

    def test_return_sequence(self):
        lines = generate(ReturnInstruction(LOC))
        assert lines == [
            # frame = LCL
            "@LCL", "D=M", "@R13", "M=D",
            # ret = *(frame - 5)
            "@5", "A=D-A", "D=M", "@R14", "M=D",
            # *ARG = pop()
            *POP_D, "@ARG", "A=M", "M=D",
            # SP = ARG + 1
            "@ARG", "D=M+1", "@SP", "M=D",
            # restore caller pointers
            "@R13", "D=M", "@1", "A=D-A", "D=M", "@THAT", "M=D",
            "@R13", "D=M", "@2", "A=D-A", "D=M", "@THIS", "M=D",
            "@R13", "D=M", "@3", "A=D-A", "D=M", "@ARG", "M=D",
            "@R13", "D=M", "@4", "A=D-A", "D=M", "@LCL", "M=D",
            # goto ret
            "@R14", "A=M", "0;JMP",
        ]

    def test_lcl_restored_last(self):
        lines = generate(ReturnInstruction(LOC))
        restores = [line for line in lines if line in ("@THAT", "@THIS", "@ARG", "@LCL")]
        assert restores[-4:] == ["@THAT", "@THIS", "@ARG", "@LCL"]


class TestComments:
    """Tests for per-instruction comments."""

    def test_comment_names_instruction(self):
        emitter = AssemblyEmitter(emit_comments=True)
        CodeGenerator(emitter).visit(PushInstruction(LOC, seg(SegmentKind.LOCAL), 2))
        assert "// push local 2" in emitter.getvalue().splitlines()

    def test_unhandled_instruction_class(self):
        with pytest.raises(VMCodeGenError):
            CodeGenerator(AssemblyEmitter()).visit(Instruction(LOC))
