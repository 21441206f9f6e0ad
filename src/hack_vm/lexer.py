"""
VM Lexer (Tokenizer)
====================

This module converts VM source text into a stream of position-tagged
tokens for the parser.

Token Categories
----------------
- Identifiers: command names, segment names, labels, function names
  (``push``, ``if-goto``, ``Main.main``, ``WHILE_END0``)
- Integers: unsigned decimal literals (0..32767)
- Newlines: end of a command line
- EOF: end of input

Comments
--------
- Single-line: // comment

Example Usage
-------------
>>> from hack_vm.lexer import VMLexer
>>> for token in VMLexer("push constant 7", "Main.vm").tokenize():
...     print(token)
Token(IDENTIFIER, 'push', 1:1)
Token(IDENTIFIER, 'constant', 1:6)
Token(INTEGER, 7, 1:15)
Token(EOF, 1:16)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from hack_vm.errors import SourceLocation, VMSyntaxError


# Largest value an A-instruction can load (15-bit immediate)
MAX_INTEGER = 32767


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for VM source."""
    EOF = auto()
    NEWLINE = auto()
    IDENTIFIER = auto()
    INTEGER = auto()


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from VM source code.

    Attributes:
        type: The TokenType classification
        value: The identifier text, the integer value, or None
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    __str__ = __repr__

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class VMLexer:
    """
    Tokenizes VM source code.

    Usage:
        lexer = VMLexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_-:."

    # Characters that can continue an identifier
    IDENT_CHARS = IDENT_START + string.digits

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects, always ending with a single EOF token

        Raises:
            VMSyntaxError: On an unexpected character or oversized integer
        """
        while not self._at_end():
            self._skip_whitespace_and_comments()
            if self._at_end():
                break

            char = self._peek()
            if char == "\n":
                yield self._make_token(TokenType.NEWLINE, None)
                self._advance()
            elif char in string.digits:
                yield self._scan_integer()
            elif char in self.IDENT_START:
                yield self._scan_identifier()
            else:
                raise self._error(
                    f"unexpected character {char!r}",
                    hint="comments start with '//'" if char == "/" else None,
                )

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _skip_whitespace_and_comments(self) -> None:
        """Skip blanks and '//' comments, stopping at (not past) a newline."""
        while not self._at_end():
            char = self._peek()
            if char in " \t\r":
                self._advance()
            elif char == "/" and self._peek(1) == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
            else:
                break

    # =========================================================================
    # Token Scanners
    # =========================================================================

    def _scan_integer(self) -> Token:
        line, column = self._line, self._column
        digits = []
        while self._peek() and self._peek() in string.digits:
            digits.append(self._advance())

        value = int("".join(digits))
        if value > MAX_INTEGER:
            raise VMSyntaxError(
                f"integer literal {value} out of range",
                location=SourceLocation(self.filename, line, column),
                hint=f"integers must be between 0 and {MAX_INTEGER}",
            )
        return self._make_token(TokenType.INTEGER, value, line, column)

    def _scan_identifier(self) -> Token:
        line, column = self._line, self._column
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return self._make_token(TokenType.IDENTIFIER, "".join(chars), line, column)

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _error(self, message: str, hint: Optional[str] = None) -> VMSyntaxError:
        return VMSyntaxError(
            message,
            location=SourceLocation(self.filename, self._line, self._column),
            hint=hint,
        )


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Convenience function: tokenize source into a list."""
    return list(VMLexer(source, filename).tokenize())
