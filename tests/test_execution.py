"""
Execution Tests
===============

End-to-end checks: translate VM programs, assemble the output with the
reference emulator, run it, and inspect RAM.

Test Organization
-----------------
- TestPushPop: segment round-trips leave memory and SP unchanged
- TestArithmetic: operator results, including signed operands
- TestComparison: canonical booleans for eq/gt/lt
- TestProgramFlow: loops, if-goto consumption, label scoping
- TestCallReturn: frame save/restore, zero-argument calls, recursion
- TestMultipleUnits: static isolation and bootstrap
"""

import pytest

from hack_vm.emulator import run_assembly, HackCPU
from hack_vm.translator import Translator, TranslatorOptions


# Caller state seeded before each run
LCL, ARG, THIS, THAT = 300, 400, 3000, 3010
SEEDED_POINTERS = {1: LCL, 2: ARG, 3: THIS, 4: THAT}

STACK_BASE = 256


# =============================================================================
# Helper Functions
# =============================================================================

def run_vm(*units: tuple[str, str], ram: dict = None, bootstrap: bool = False) -> HackCPU:
    """
    Translate (module, source) units into one program and run it.

    RAM starts with LCL/ARG/THIS/THAT seeded, plus any extra cells given.
    """
    translator = Translator(TranslatorOptions(bootstrap=bootstrap))
    for module, source in units:
        translator.translate_source(source, module)

    initial = dict(SEEDED_POINTERS)
    initial.update(ram or {})
    return run_assembly(translator.getvalue(), max_steps=500_000, ram=initial)


def push_value(value: int) -> str:
    """VM code pushing a possibly negative value."""
    if value < 0:
        return f"push constant {-value}\nneg\n"
    return f"push constant {value}\n"


def pointers(cpu: HackCPU) -> tuple[int, int, int, int]:
    return cpu.ram[1], cpu.ram[2], cpu.ram[3], cpu.ram[4]


# =============================================================================
# Push / Pop
# =============================================================================

class TestPushPop:
    """Stack and segment memory behavior."""

    @pytest.mark.parametrize("segment,index,address", [
        ("local", 0, LCL),
        ("local", 2, LCL + 2),
        ("argument", 1, ARG + 1),
        ("this", 4, THIS + 4),
        ("that", 0, THAT),
        ("pointer", 0, 3),
        ("pointer", 1, 4),
        ("temp", 3, 8),
        ("static", 0, 16),
    ])
    def test_push_then_pop_is_noop(self, segment, index, address):
        """push s i; pop s i leaves the cell and SP as they were."""
        original = 42 if segment != "pointer" else SEEDED_POINTERS[address]
        cpu = run_vm(
            ("Main", f"push {segment} {index}\npop {segment} {index}\n"),
            ram={address: original},
        )
        assert cpu.ram[address] == original
        assert cpu.sp == STACK_BASE

    def test_push_constant(self):
        cpu = run_vm(("Main", "push constant 7\npush constant 32767\n"))
        assert cpu.stack() == [7, 32767]

    def test_pop_then_push_local(self):
        """push constant v; pop local 0; push local 0 leaves exactly v."""
        cpu = run_vm(("Main", "push constant 19\npop local 0\npush local 0\n"))
        assert cpu.stack() == [19]
        assert cpu.ram[LCL] == 19

    def test_pop_into_indexed_cells(self):
        source = (
            "push constant 10\npop this 6\n"
            "push constant 20\npop that 3\n"
            "push constant 30\npop temp 7\n"
            "push constant 40\npop argument 2\n"
        )
        cpu = run_vm(("Main", source))
        assert cpu.ram[THIS + 6] == 10
        assert cpu.ram[THAT + 3] == 20
        assert cpu.ram[12] == 30
        assert cpu.ram[ARG + 2] == 40
        assert cpu.sp == STACK_BASE

    def test_pointer_rebases_this(self):
        """Writing pointer 0 moves the this segment."""
        source = "push constant 5000\npop pointer 0\npush constant 9\npop this 2\n"
        cpu = run_vm(("Main", source))
        assert cpu.ram[3] == 5000
        assert cpu.ram[5002] == 9


# =============================================================================
# Arithmetic and Logic
# =============================================================================

SIGNED_PAIRS = [
    (0, 0),
    (3, 3),
    (3, 5),
    (5, 3),
    (-2, 3),
    (3, -2),
    (-4, -4),
    (-7, -8),
    (-8, -7),
    (32767, 0),
    (0, 32767),
]


class TestArithmetic:
    """Operator results on the top of the stack."""

    @pytest.mark.parametrize("a,b", SIGNED_PAIRS)
    def test_sub_respects_operand_order(self, a, b):
        """push a; push b; sub leaves a - b."""
        cpu = run_vm(("Main", push_value(a) + push_value(b) + "sub\n"))
        assert cpu.stack() == [a - b]

    @pytest.mark.parametrize("a,b", [(2, 3), (-5, 4), (100, -1)])
    def test_add(self, a, b):
        cpu = run_vm(("Main", push_value(a) + push_value(b) + "add\n"))
        assert cpu.stack() == [a + b]

    def test_neg(self):
        cpu = run_vm(("Main", "push constant 12\nneg\n"))
        assert cpu.stack() == [-12]

    def test_bitwise(self):
        source = (
            "push constant 12\npush constant 10\nand\n"
            "push constant 12\npush constant 10\nor\n"
            "push constant 0\nnot\n"
        )
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [8, 14, -1]

    def test_binary_shrinks_stack_by_one(self):
        cpu = run_vm(("Main", "push constant 1\npush constant 2\npush constant 3\nadd\n"))
        assert cpu.stack() == [1, 5]


# =============================================================================
# Comparisons
# =============================================================================

class TestComparison:
    """eq/gt/lt produce -1 for true and 0 for false."""

    @pytest.mark.parametrize("a,b", SIGNED_PAIRS)
    @pytest.mark.parametrize("operator,predicate", [
        ("eq", lambda a, b: a == b),
        ("gt", lambda a, b: a > b),
        ("lt", lambda a, b: a < b),
    ])
    def test_canonical_boolean(self, operator, predicate, a, b):
        cpu = run_vm(("Main", push_value(a) + push_value(b) + f"{operator}\n"))
        assert cpu.stack() == [-1 if predicate(a, b) else 0]

    def test_repeated_comparisons(self):
        """Many comparisons in one program each branch to their own labels."""
        source = "".join(
            f"push constant {i}\npush constant 3\neq\n" for i in range(6)
        )
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [0, 0, 0, -1, 0, 0]


# =============================================================================
# Program Flow
# =============================================================================

class TestProgramFlow:
    """Labels, goto and if-goto."""

    def test_countdown_loop(self):
        """Sum 1..5 with a loop driven by if-goto."""
        source = """
function Main.main 2
    push constant 5
    pop local 0
label LOOP
    push local 1
    push local 0
    add
    pop local 1
    push local 0
    push constant 1
    sub
    pop local 0
    push local 0
    if-goto LOOP
    push local 1
label END
    goto END
"""
        cpu = run_vm(("Main", source), ram={1: STACK_BASE})
        assert cpu.stack(STACK_BASE + 2) == [15]

    def test_if_goto_consumes_condition(self):
        """The condition is popped whether or not the jump is taken."""
        source = """
function Main.main 0
    push constant 7
    push constant 0
    if-goto SKIP
    push constant 8
    push constant 1
    if-goto SKIP
    push constant 9
label SKIP
label END
    goto END
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [7, 8]

    def test_same_label_in_two_functions(self):
        """Each goto L lands on the L inside its own function."""
        source = """
function Main.main 0
    call Main.a 0
    call Main.b 0
    add
label END
    goto END
function Main.a 0
    push constant 0
    goto L
    push constant 99
label L
    push constant 1
    add
    return
function Main.b 0
    push constant 10
    goto L
    push constant 77
label L
    push constant 2
    add
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [13]


# =============================================================================
# Call and Return
# =============================================================================

class TestCallReturn:
    """Frame save/restore."""

    def test_round_trip_restores_caller(self):
        """Caller pointers come back and the result replaces the arguments."""
        source = """
function Main.main 0
    push constant 8
    push constant 5
    call Main.diff 2
label END
    goto END
function Main.diff 1
    push argument 0
    push argument 1
    sub
    pop local 0
    push constant 4000
    pop pointer 0
    push constant 4010
    pop pointer 1
    push local 0
    return
"""
        cpu = run_vm(("Main", source))
        assert pointers(cpu) == (LCL, ARG, THIS, THAT)
        assert cpu.stack() == [3]
        assert cpu.sp == STACK_BASE + 1

    def test_callee_sees_arguments_and_zeroed_locals(self):
        source = """
function Main.main 0
    push constant 11
    push constant 22
    push constant 33
    call Main.probe 3
label END
    goto END
function Main.probe 2
    push local 0
    push local 1
    add
    push argument 2
    add
    push argument 0
    sub
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [22]

    def test_zero_argument_call(self):
        """With no arguments the return value lands on the saved return address."""
        source = """
function Main.main 0
    call Main.seven 0
    push constant 1
    add
label END
    goto END
function Main.seven 0
    push constant 7
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [8]
        assert pointers(cpu) == (LCL, ARG, THIS, THAT)

    def test_callee_stack_usage_discarded(self):
        source = """
function Main.main 0
    push constant 1
    call Main.messy 1
label END
    goto END
function Main.messy 3
    push constant 5
    push constant 6
    push constant 7
    push constant 8
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [8]

    def test_recursion(self):
        """sum(n) = n + sum(n - 1) nests calls to the same function."""
        source = """
function Main.main 0
    push constant 6
    call Main.sum 1
label END
    goto END
function Main.sum 0
    push argument 0
    push constant 0
    eq
    if-goto BASE
    push argument 0
    push argument 0
    push constant 1
    sub
    call Main.sum 1
    add
    return
label BASE
    push constant 0
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [21]
        assert pointers(cpu) == (LCL, ARG, THIS, THAT)

    def test_fibonacci(self):
        source = """
function Main.main 0
    push constant 10
    call Main.fib 1
label END
    goto END
function Main.fib 0
    push argument 0
    push constant 2
    lt
    if-goto SMALL
    push argument 0
    push constant 1
    sub
    call Main.fib 1
    push argument 0
    push constant 2
    sub
    call Main.fib 1
    add
    return
label SMALL
    push argument 0
    return
"""
        cpu = run_vm(("Main", source))
        assert cpu.stack() == [55]


# =============================================================================
# Multiple Units
# =============================================================================

class TestMultipleUnits:
    """Programs spread over several compilation units."""

    def test_static_variables_do_not_alias(self):
        main = """
function Main.main 0
    push constant 11
    call Foo.set 1
    pop temp 0
    push constant 22
    call Bar.set 1
    pop temp 0
    call Foo.get 0
    call Bar.get 0
label END
    goto END
"""
        accessor = """
function {m}.set 0
    push argument 0
    pop static 0
    push constant 0
    return
function {m}.get 0
    push static 0
    return
"""
        cpu = run_vm(
            ("Main", main),
            ("Foo", accessor.format(m="Foo")),
            ("Bar", accessor.format(m="Bar")),
        )
        assert cpu.stack() == [11, 22]

    def test_bootstrap_enters_sys_init(self):
        sys_vm = """
function Sys.init 0
    call Main.main 0
    pop temp 0
label HALT
    goto HALT
"""
        main_vm = """
function Main.main 0
    push constant 42
    return
"""
        cpu = run_vm(("Sys", sys_vm), ("Main", main_vm), bootstrap=True)
        assert cpu.ram[5] == 42
        # Sys.init's frame sits on the bootstrap stack
        assert cpu.sp == STACK_BASE + 5
