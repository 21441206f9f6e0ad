"""
Hack Assembler
==============

Two-pass assembler turning the translator's symbolic output into
16-bit Hack machine words for the reference CPU.

Pass 1 records the ROM address of every ``(LABEL)`` declaration.
Pass 2 encodes instructions, resolving symbols against the predefined
table, then the label table, and finally allocating a fresh RAM cell
(from address 16 upward) for any remaining name.

Instruction Encoding
--------------------
A-instruction:  0vvv vvvv vvvv vvvv          (15-bit value)
C-instruction:  111a cccc ccdd djjj          (comp, dest, jump)
"""

from hack_vm.errors import HackAssemblyError


MAX_ADDRESS = 0x7FFF

# First RAM cell handed out to variables
VARIABLE_BASE = 16

PREDEFINED_SYMBOLS: dict[str, int] = {
    "SP": 0,
    "LCL": 1,
    "ARG": 2,
    "THIS": 3,
    "THAT": 4,
    **{f"R{i}": i for i in range(16)},
    "SCREEN": 0x4000,
    "KBD": 0x6000,
}

# comp mnemonic -> (a bit, c1..c6)
COMP_CODES: dict[str, tuple[int, int]] = {
    "0": (0, 0b101010),
    "1": (0, 0b111111),
    "-1": (0, 0b111010),
    "D": (0, 0b001100),
    "A": (0, 0b110000),
    "!D": (0, 0b001101),
    "!A": (0, 0b110001),
    "-D": (0, 0b001111),
    "-A": (0, 0b110011),
    "D+1": (0, 0b011111),
    "A+1": (0, 0b110111),
    "D-1": (0, 0b001110),
    "A-1": (0, 0b110010),
    "D+A": (0, 0b000010),
    "D-A": (0, 0b010011),
    "A-D": (0, 0b000111),
    "D&A": (0, 0b000000),
    "D|A": (0, 0b010101),
    "M": (1, 0b110000),
    "!M": (1, 0b110001),
    "-M": (1, 0b110011),
    "M+1": (1, 0b110111),
    "M-1": (1, 0b110010),
    "D+M": (1, 0b000010),
    "D-M": (1, 0b010011),
    "M-D": (1, 0b000111),
    "D&M": (1, 0b000000),
    "D|M": (1, 0b010101),
}

# Commutative spellings accepted by the standard assembler
COMP_ALIASES: dict[str, str] = {
    "A+D": "D+A",
    "M+D": "D+M",
    "A&D": "D&A",
    "M&D": "D&M",
    "A|D": "D|A",
    "M|D": "D|M",
}

DEST_BITS = {"A": 0b100, "D": 0b010, "M": 0b001}

JUMP_CODES: dict[str, int] = {
    "": 0b000,
    "JGT": 0b001,
    "JEQ": 0b010,
    "JGE": 0b011,
    "JLT": 0b100,
    "JNE": 0b101,
    "JLE": 0b110,
    "JMP": 0b111,
}


class HackAssembler:
    """
    Assembles Hack symbolic assembly.

    Example:
        >>> words = HackAssembler().assemble("@2\\nD=A\\n@3\\nD=D+A\\n")
        >>> words[0]
        2

    Attributes:
        symbols: Symbol table after the last assemble() call
    """

    def __init__(self):
        self.symbols: dict[str, int] = {}
        self._next_variable = VARIABLE_BASE

    def assemble(self, source: str) -> list[int]:
        """
        Assemble source text into machine words.

        Raises:
            HackAssemblyError: On malformed lines or duplicate labels
        """
        self.symbols = dict(PREDEFINED_SYMBOLS)
        self._next_variable = VARIABLE_BASE

        lines = self._clean(source)
        self._collect_labels(lines)
        return [
            self._encode(text, line_number)
            for line_number, text in lines
            if not text.startswith("(")
        ]

    @staticmethod
    def _clean(source: str) -> list[tuple[int, str]]:
        """Strip comments and blanks, keeping source line numbers."""
        lines = []
        for line_number, raw in enumerate(source.splitlines(), start=1):
            text = raw.split("//", 1)[0].replace(" ", "").replace("\t", "")
            if text:
                lines.append((line_number, text))
        return lines

    def _collect_labels(self, lines: list[tuple[int, str]]) -> None:
        address = 0
        labels: set[str] = set()
        for line_number, text in lines:
            if text.startswith("("):
                if not text.endswith(")") or len(text) < 3:
                    raise HackAssemblyError(f"malformed label {text!r}", line_number)
                name = text[1:-1]
                if name in labels:
                    raise HackAssemblyError(f"duplicate label {name!r}", line_number)
                labels.add(name)
                self.symbols[name] = address
            else:
                address += 1

    def _encode(self, text: str, line_number: int) -> int:
        if text.startswith("@"):
            return self._encode_address(text[1:], line_number)
        return self._encode_compute(text, line_number)

    def _encode_address(self, operand: str, line_number: int) -> int:
        if not operand:
            raise HackAssemblyError("missing operand after '@'", line_number)

        if operand.isdigit():
            value = int(operand)
            if value > MAX_ADDRESS:
                raise HackAssemblyError(f"constant {value} out of range", line_number)
            return value

        if operand[0].isdigit() or operand[0] == "-":
            raise HackAssemblyError(f"invalid symbol {operand!r}", line_number)

        if operand not in self.symbols:
            self.symbols[operand] = self._next_variable
            self._next_variable += 1
        return self.symbols[operand]

    def _encode_compute(self, text: str, line_number: int) -> int:
        dest, _, rest = text.rpartition("=")
        comp, _, jump = rest.partition(";")

        comp = COMP_ALIASES.get(comp, comp)
        if comp not in COMP_CODES:
            raise HackAssemblyError(f"unknown computation {comp!r}", line_number)
        if jump not in JUMP_CODES:
            raise HackAssemblyError(f"unknown jump {jump!r}", line_number)

        dest_bits = 0
        for register in dest:
            if register not in DEST_BITS:
                raise HackAssemblyError(f"unknown destination {dest!r}", line_number)
            dest_bits |= DEST_BITS[register]

        a_bit, comp_bits = COMP_CODES[comp]
        return 0xE000 | (a_bit << 12) | (comp_bits << 6) | (dest_bits << 3) | JUMP_CODES[jump]
