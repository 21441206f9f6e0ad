"""
Hack Reference Emulator
=======================

Assembles and runs the translator's output so generated code can be
checked by behavior rather than by text.

Usage
-----
>>> from hack_vm.emulator import run_assembly
>>> cpu = run_assembly(asm_text)
>>> cpu.stack()
[7]
"""

from typing import Optional

from hack_vm.emulator.assembler import HackAssembler, PREDEFINED_SYMBOLS
from hack_vm.emulator.cpu import HackCPU, to_signed, DEFAULT_MAX_STEPS


def run_assembly(
    source: str,
    max_steps: int = DEFAULT_MAX_STEPS,
    ram: Optional[dict[int, int]] = None,
) -> HackCPU:
    """
    Assemble source, seed RAM, and run to completion.

    Args:
        source: Hack assembly text
        max_steps: Step budget before ExecutionLimitError
        ram: Initial RAM values by address (signed values allowed)

    Returns:
        The halted CPU, for inspection
    """
    cpu = HackCPU(HackAssembler().assemble(source))
    for address, value in (ram or {}).items():
        cpu.poke(address, value)
    cpu.run(max_steps)
    return cpu


__all__ = [
    "HackAssembler",
    "HackCPU",
    "PREDEFINED_SYMBOLS",
    "run_assembly",
    "to_signed",
]
