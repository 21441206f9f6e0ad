"""
Hack VM - Stack VM to Hack Assembly Translator
==============================================

This package translates programs for the stack-based virtual machine
into assembly for the 16-bit Hack computer, a machine with a single
data register (D), an address register (A, with M = RAM[A]) and a
memory-mapped calling convention.

Main Components
---------------
- **lexer / parser**: VM source text → commands
- **translator**: validates commands and drives code generation
- **codegen**: one fixed assembly idiom per VM instruction
- **segments**: virtual memory segment → address computation
- **emitter**: shared output buffer and unique label counter
- **emulator**: reference Hack assembler + CPU for checking output

Quick Start
-----------
>>> from hack_vm import Translator
>>> translator = Translator()
>>> translator.translate_file("Main.vm")
>>> translator.translate_file("Sys.vm")
>>> asm = translator.getvalue()

Or use the command-line tool:
    $ vmtranslate ProgramDir/
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from hack_vm.errors import (
    VMError,
    SourceLocation,
    VMSyntaxError,
    VMTranslationError,
    ArityError,
    ArgumentKindError,
    UnknownInstructionError,
    UnknownSegmentError,
    ReadOnlySegmentError,
    SegmentIndexError,
    UnscopedControlFlowError,
    VMCodeGenError,
)
from hack_vm.lexer import VMLexer, Token, TokenType
from hack_vm.parser import VMParser, Command, parse_source
from hack_vm.segments import Segment, SegmentKind
from hack_vm.emitter import AssemblyEmitter
from hack_vm.codegen import CodeGenerator
from hack_vm.translator import Translator, TranslatorOptions, translate

__all__ = [
    "__version__",
    # Main API
    "Translator",
    "TranslatorOptions",
    "translate",
    # Errors
    "VMError",
    "SourceLocation",
    "VMSyntaxError",
    "VMTranslationError",
    "ArityError",
    "ArgumentKindError",
    "UnknownInstructionError",
    "UnknownSegmentError",
    "ReadOnlySegmentError",
    "SegmentIndexError",
    "UnscopedControlFlowError",
    "VMCodeGenError",
    # Front end
    "VMLexer",
    "Token",
    "TokenType",
    "VMParser",
    "Command",
    "parse_source",
    # Back end
    "Segment",
    "SegmentKind",
    "AssemblyEmitter",
    "CodeGenerator",
]
