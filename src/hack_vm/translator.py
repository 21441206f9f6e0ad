"""
VM Translator Main Module
=========================

This module drives translation of one or more compilation units into
a single Hack assembly program:

    Source → Lex → Parse → Validate → Generate → Assembly

Usage
-----
Command line:
    $ vmtranslate Main.vm
    $ vmtranslate ProgramDir/

Programmatic:
    >>> from hack_vm import Translator
    >>> translator = Translator()
    >>> translator.translate_source("push constant 7\\n", "Main")
    >>> asm = translator.getvalue()

Multiple Units
--------------
One Translator owns one AssemblyEmitter for the whole run. Every unit
is translated into it in the order given, so generated labels stay
unique across files and each unit's static variables are namespaced
by its module name within the shared address space.

Error Handling
--------------
Each unit is validated completely before any of its code is emitted.
The first invalid instruction raises a VMTranslationError and nothing
from that unit reaches the output.
"""

import difflib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO

from hack_vm.codegen import CodeGenerator
from hack_vm.emitter import AssemblyEmitter, DEFAULT_STACK_BASE, MAX_STACK_BASE
from hack_vm.errors import (
    SourceLocation,
    ArityError,
    ArgumentKindError,
    UnknownInstructionError,
    UnknownSegmentError,
    ReadOnlySegmentError,
    SegmentIndexError,
    UnscopedControlFlowError,
)
from hack_vm.instructions import (
    Opcode,
    ArithmeticOperator,
    Instruction,
    PushInstruction,
    PopInstruction,
    ArithmeticInstruction,
    LabelInstruction,
    GotoInstruction,
    IfGotoInstruction,
    FunctionInstruction,
    CallInstruction,
    ReturnInstruction,
)
from hack_vm.lexer import Token, TokenType
from hack_vm.parser import Command, parse_source
from hack_vm.segments import Segment, SEGMENT_NAMES

logger = logging.getLogger(__name__)


# Entry point called by the optional bootstrap
BOOTSTRAP_FUNCTION = "Sys.init"

# Number of arguments each instruction takes
ARITY: dict[Opcode, int] = {
    Opcode.PUSH: 2,
    Opcode.POP: 2,
    Opcode.LABEL: 1,
    Opcode.GOTO: 1,
    Opcode.IF_GOTO: 1,
    Opcode.FUNCTION: 2,
    Opcode.CALL: 2,
}


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TranslatorOptions:
    """
    Translator configuration options.

    Attributes:
        emit_comments: Annotate the output with one comment per VM instruction
        bootstrap: After setting SP, also emit 'call Sys.init 0' so that a
                   multi-file program starts at its conventional entry point
        stack_base: Initial value of SP, 0..32767
    """
    emit_comments: bool = True
    bootstrap: bool = False
    stack_base: int = DEFAULT_STACK_BASE

    def __post_init__(self):
        if not 0 <= self.stack_base <= MAX_STACK_BASE:
            raise ValueError(f"stack_base must be in 0..{MAX_STACK_BASE}, got {self.stack_base}")

    @classmethod
    def from_env(cls) -> "TranslatorOptions":
        """
        Create options from environment variables.

        Environment variables (all optional):
            HACKVM_COMMENTS: "0"/"false" to drop comments
            HACKVM_BOOTSTRAP: "1"/"true" to emit the Sys.init bootstrap
            HACKVM_STACK_BASE: Initial stack pointer (integer)
        """
        options = cls()
        options.emit_comments = _env_flag("HACKVM_COMMENTS", options.emit_comments)
        options.bootstrap = _env_flag("HACKVM_BOOTSTRAP", options.bootstrap)

        if stack_base := os.environ.get("HACKVM_STACK_BASE"):
            try:
                value = int(stack_base)
            except ValueError:
                logger.warning(f"Ignoring non-integer HACKVM_STACK_BASE={stack_base!r}")
            else:
                if 0 <= value <= MAX_STACK_BASE:
                    options.stack_base = value
                else:
                    logger.warning(
                        f"Ignoring HACKVM_STACK_BASE={value} outside 0..{MAX_STACK_BASE}"
                    )

        return options


class Translator:
    """
    Translates VM compilation units into one Hack assembly program.

    Example:
        translator = Translator()
        translator.translate_file("Main.vm")
        translator.translate_file("Sys.vm")
        Path("Prog.asm").write_text(translator.getvalue())

    Attributes:
        options: Translator configuration
        emitter: The run's shared output buffer and label counter
        modules: Names of the units translated so far, in order
    """

    def __init__(self, options: Optional[TranslatorOptions] = None):
        self.options = options or TranslatorOptions()
        self.emitter = AssemblyEmitter(
            emit_comments=self.options.emit_comments,
            stack_base=self.options.stack_base,
        )
        self.modules: list[str] = []

        self._codegen = CodeGenerator(self.emitter)

        # Per-unit validation state
        self._module: str = ""
        self._current_function: Optional[str] = None

        self._builders: dict[Opcode, Callable[[Command, Opcode], Instruction]] = {
            Opcode.PUSH: self._build_push_pop,
            Opcode.POP: self._build_push_pop,
            Opcode.LABEL: self._build_flow,
            Opcode.GOTO: self._build_flow,
            Opcode.IF_GOTO: self._build_flow,
            Opcode.FUNCTION: self._build_function,
            Opcode.CALL: self._build_call,
            Opcode.RETURN: self._build_return,
        }

        if self.options.bootstrap:
            self._emit_bootstrap()

    def _emit_bootstrap(self) -> None:
        location = SourceLocation("<bootstrap>", 0, 0)
        self._codegen.visit(CallInstruction(location, BOOTSTRAP_FUNCTION, 0))

    # =========================================================================
    # Public Interface
    # =========================================================================

    def translate(self, commands: Iterable[Command], module: str) -> None:
        """
        Translate one compilation unit.

        Args:
            commands: The unit's commands in source order
            module: Unit name, used to namespace its static segment

        Raises:
            VMTranslationError: On the first invalid instruction; nothing
                from this unit is emitted in that case
        """
        instructions = self.validate(commands, module)

        logger.debug(f"Generating {len(instructions)} instructions for module {module}")
        for instruction in instructions:
            self._codegen.visit(instruction)

        self.modules.append(module)

    def validate(self, commands: Iterable[Command], module: str) -> list[Instruction]:
        """
        Check each command and convert it to an Instruction.

        Function context is tracked across the unit and starts empty.
        """
        self._module = module
        self._current_function = None
        return [self._build(command) for command in commands]

    def translate_source(self, source: str, module: str, filename: Optional[str] = None) -> None:
        """Lex, parse and translate VM source text as one unit."""
        commands = parse_source(source, module, filename)
        self.translate(commands, module)

    def translate_file(self, path: str | Path) -> None:
        """Translate a .vm file; its stem becomes the module name."""
        path = Path(path)
        logger.debug(f"Translating {path}")
        source = path.read_text(encoding="utf-8")
        self.translate_source(source, path.stem, str(path))

    def getvalue(self) -> str:
        return self.emitter.getvalue()

    def write(self, stream: TextIO) -> None:
        self.emitter.write(stream)

    # =========================================================================
    # Validation
    # =========================================================================

    def _build(self, command: Command) -> Instruction:
        name = command.name.value
        if command.name.type != TokenType.IDENTIFIER:
            raise UnknownInstructionError(str(name), command.location, module=self._module)

        try:
            opcode = Opcode(name)
        except ValueError:
            similar = difflib.get_close_matches(name, [op.value for op in Opcode])
            raise UnknownInstructionError(
                name, command.location, similar_names=similar, module=self._module
            ) from None

        self._expect_arity(command, ARITY.get(opcode, 0))

        builder = self._builders.get(opcode, self._build_arithmetic)
        return builder(command, opcode)

    def _expect_arity(self, command: Command, expected: int) -> None:
        if command.num_args != expected:
            raise ArityError(
                command.name.value,
                expected,
                command.num_args,
                location=command.location,
                module=self._module,
            )

    def _expect(self, command: Command, position: int, token_type: TokenType) -> Token:
        token = command.arg(position)
        if token.type != token_type:
            kind = "identifier" if token_type == TokenType.IDENTIFIER else "integer"
            raise ArgumentKindError(
                command.name.value,
                position,
                kind,
                location=token.location,
                module=self._module,
            )
        return token

    def _require_function(self, command: Command) -> str:
        if self._current_function is None:
            raise UnscopedControlFlowError(
                command.name.value, command.location, module=self._module
            )
        return self._current_function

    # =========================================================================
    # Instruction Builders
    # =========================================================================

    def _build_push_pop(self, command: Command, opcode: Opcode) -> Instruction:
        segment_token = self._expect(command, 0, TokenType.IDENTIFIER)
        index_token = self._expect(command, 1, TokenType.INTEGER)
        name, index = segment_token.value, index_token.value

        if name not in SEGMENT_NAMES:
            similar = difflib.get_close_matches(name, list(SEGMENT_NAMES))
            raise UnknownSegmentError(
                name, segment_token.location, similar_names=similar, module=self._module
            )

        segment = Segment.from_name(name, command.module)

        if opcode is Opcode.POP and not segment.is_writable:
            raise ReadOnlySegmentError(name, segment_token.location, module=self._module)

        if segment.size is not None and index >= segment.size:
            raise SegmentIndexError(
                name, index, segment.size, index_token.location, module=self._module
            )

        if opcode is Opcode.PUSH:
            return PushInstruction(command.location, segment, index)
        return PopInstruction(command.location, segment, index)

    def _build_arithmetic(self, command: Command, opcode: Opcode) -> Instruction:
        return ArithmeticInstruction(command.location, ArithmeticOperator(opcode.value))

    def _build_flow(self, command: Command, opcode: Opcode) -> Instruction:
        label = self._expect(command, 0, TokenType.IDENTIFIER).value
        function = self._require_function(command)

        if opcode is Opcode.LABEL:
            return LabelInstruction(command.location, function, label)
        if opcode is Opcode.GOTO:
            return GotoInstruction(command.location, function, label)
        return IfGotoInstruction(command.location, function, label)

    def _build_function(self, command: Command, opcode: Opcode) -> Instruction:
        name = self._expect(command, 0, TokenType.IDENTIFIER).value
        local_count = self._expect(command, 1, TokenType.INTEGER).value
        self._current_function = name
        return FunctionInstruction(command.location, name, local_count)

    def _build_call(self, command: Command, opcode: Opcode) -> Instruction:
        name = self._expect(command, 0, TokenType.IDENTIFIER).value
        arg_count = self._expect(command, 1, TokenType.INTEGER).value
        return CallInstruction(command.location, name, arg_count)

    def _build_return(self, command: Command, opcode: Opcode) -> Instruction:
        return ReturnInstruction(command.location)


def translate(sources: Iterable[tuple[str, str]], options: Optional[TranslatorOptions] = None) -> str:
    """
    Convenience function: translate (module, source) pairs into assembly.

    Example:
        >>> asm = translate([("Main", "push constant 1\\n")])
    """
    translator = Translator(options)
    for module, source in sources:
        translator.translate_source(source, module)
    logger.info(f"Translated {len(translator.modules)} module(s)")
    return translator.getvalue()
