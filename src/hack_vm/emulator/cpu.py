"""
Hack CPU Emulator
=================

Executes Hack machine words against a 32K-word RAM.

Registers:
- A: address / data register
- D: data register
- PC: program counter

C-instructions drive the six-bit Hack ALU (zx nx zy ny f no) with D as
the x input and either A or RAM[A] as the y input. All arithmetic
wraps at 16 bits; jump conditions read the result as two's complement.

Halting
-------
The Hack machine has no halt instruction. run() stops when PC leaves
ROM, or when a jump lands on the A-instruction that loaded its own
address, which is the conventional end-of-program loop:

    (END)
    @END
    0;JMP
"""

from typing import Optional

from hack_vm.emitter import DEFAULT_STACK_BASE
from hack_vm.errors import ExecutionLimitError


WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000
RAM_SIZE = 0x8000

DEFAULT_MAX_STEPS = 1_000_000


def to_signed(value: int) -> int:
    """Interpret a 16-bit word as two's complement."""
    value &= WORD_MASK
    return value - 0x10000 if value & SIGN_BIT else value


class HackCPU:
    """
    Hack CPU with ROM, RAM and the A/D/PC registers.

    Example:
        >>> cpu = HackCPU(HackAssembler().assemble(asm_text))
        >>> cpu.run()
        >>> cpu.ram[0]   # SP

    Attributes:
        rom: Program words
        ram: Data memory, one unsigned 16-bit word per cell
        steps: Instructions executed so far
        halted: True once the program reached its end loop or left ROM
    """

    def __init__(self, rom: list[int]):
        self.rom = rom
        self.ram: list[int] = [0] * RAM_SIZE
        self.a = 0
        self.d = 0
        self.pc = 0
        self.steps = 0
        self.halted = False

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> None:
        """Execute one instruction."""
        if self.pc >= len(self.rom):
            self.halted = True
            return

        instruction = self.rom[self.pc]
        self.steps += 1

        if not instruction & SIGN_BIT:
            self.a = instruction
            self.pc += 1
            return

        address = self.a
        y = self.ram[address] if instruction & 0x1000 else self.a
        out = self._alu(self.d, y, (instruction >> 6) & 0x3F)

        dest = (instruction >> 3) & 0b111
        if dest & 0b001:
            self.ram[address] = out
        if dest & 0b100:
            self.a = out
        if dest & 0b010:
            self.d = out

        if self._jumps(out, instruction & 0b111):
            target = address
            if target == self.pc - 1 and self.rom[target] == target:
                self.halted = True
            self.pc = target
        else:
            self.pc += 1

    def run(self, max_steps: int = DEFAULT_MAX_STEPS) -> int:
        """
        Run until the program halts.

        Returns:
            Number of instructions executed

        Raises:
            ExecutionLimitError: If max_steps pass without halting
        """
        while not self.halted:
            if self.steps >= max_steps:
                raise ExecutionLimitError(max_steps)
            self.step()
        return self.steps

    @staticmethod
    def _alu(x: int, y: int, control: int) -> int:
        if control & 0b100000:
            x = 0
        if control & 0b010000:
            x = ~x & WORD_MASK
        if control & 0b001000:
            y = 0
        if control & 0b000100:
            y = ~y & WORD_MASK
        out = (x + y) & WORD_MASK if control & 0b000010 else x & y
        if control & 0b000001:
            out = ~out & WORD_MASK
        return out

    @staticmethod
    def _jumps(out: int, jump: int) -> bool:
        negative = bool(out & SIGN_BIT)
        zero = out == 0
        positive = not negative and not zero
        return bool(
            (jump & 0b100 and negative)
            or (jump & 0b010 and zero)
            or (jump & 0b001 and positive)
        )

    # =========================================================================
    # Inspection
    # =========================================================================

    def peek(self, address: int) -> int:
        """Read a RAM cell as a signed value."""
        return to_signed(self.ram[address])

    def poke(self, address: int, value: int) -> None:
        """Write a (possibly negative) value to a RAM cell."""
        self.ram[address] = value & WORD_MASK

    @property
    def sp(self) -> int:
        return self.ram[0]

    def stack(self, base: Optional[int] = None) -> list[int]:
        """Signed contents of the stack from base (default: the SP preamble value) up to SP."""
        start = DEFAULT_STACK_BASE if base is None else base
        return [self.peek(address) for address in range(start, self.sp)]
