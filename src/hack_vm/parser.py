"""
VM Parser
=========

Groups the lexer's token stream into commands: one command per
non-empty source line, made of a name token followed by zero or more
argument tokens.

The parser is deliberately shallow. It does not know the instruction
vocabulary or the arity of any instruction; those checks belong to
the translator, which reports them against the exact token positions
kept here.

Example:
    >>> from hack_vm.parser import parse_source
    >>> commands = parse_source("push constant 7\\nadd\\n", "Main")
    >>> [c.name.value for c in commands]
    ['push', 'add']
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from hack_vm.errors import SourceLocation, VMSyntaxError
from hack_vm.lexer import Token, TokenType, VMLexer


@dataclass
class Command:
    """
    One syntactic command.

    Attributes:
        name: Identifier token naming the instruction
        args: Argument tokens in source order
        module: Name of the compilation unit (used for static segment naming)
    """
    name: Token
    args: list[Token] = field(default_factory=list)
    module: str = "<input>"

    @property
    def location(self) -> SourceLocation:
        return self.name.location

    @property
    def num_args(self) -> int:
        return len(self.args)

    def arg(self, index: int) -> Token:
        return self.args[index]

    def __str__(self) -> str:
        return " ".join(str(t.value) for t in [self.name, *self.args])


class VMParser:
    """
    Builds a command list from tokens.

    Usage:
        parser = VMParser(tokens, module="Main")
        commands = parser.parse()
    """

    def __init__(self, tokens: Iterable[Token], module: str):
        self.tokens = tokens
        self.module = module

    def parse(self) -> list[Command]:
        """
        Parse all tokens into commands.

        Raises:
            VMSyntaxError: If a line begins with an integer
        """
        commands: list[Command] = []
        current: Optional[Command] = None

        for token in self.tokens:
            if token.type in (TokenType.NEWLINE, TokenType.EOF):
                if current is not None:
                    commands.append(current)
                    current = None
                continue

            if current is not None:
                current.args.append(token)
            elif token.type == TokenType.IDENTIFIER:
                current = Command(name=token, module=self.module)
            else:
                raise VMSyntaxError(
                    f"unexpected integer {token.value}",
                    location=token.location,
                    hint="each line must start with an instruction name",
                )

        if current is not None:
            commands.append(current)

        return commands


def parse_source(source: str, module: str, filename: Optional[str] = None) -> list[Command]:
    """
    Tokenize and parse one compilation unit.

    Args:
        source: VM source text
        module: Compilation unit name (normally the file stem)
        filename: Name used in diagnostics (defaults to '<module>.vm')
    """
    lexer = VMLexer(source, filename or f"{module}.vm")
    return VMParser(lexer.tokenize(), module).parse()
