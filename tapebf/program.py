from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

logger = logging.getLogger(__name__)


class BrainfuckError(RuntimeError):
    """Base class for every error reported by the interpreter."""


class UnmatchedBracketError(BrainfuckError, ValueError):
    """Raised when a program's loop brackets are not properly nested."""

    def __init__(self, bracket: str, position: int) -> None:
        self.bracket = bracket
        self.position = position
        super().__init__(f"Unmatched '{bracket}' at position {position}")


class Opcode(Enum):
    MOVE_RIGHT = ">"
    MOVE_LEFT = "<"
    INCREMENT = "+"
    DECREMENT = "-"
    OUTPUT = "."
    INPUT = ","
    LOOP_OPEN = "["
    LOOP_CLOSE = "]"


CHAR_TO_OPCODE: Mapping[str, Opcode] = MappingProxyType(
    {opcode.value: opcode for opcode in Opcode}
)
OPCODE_TO_CHAR: Mapping[Opcode, str] = MappingProxyType(
    {opcode: char for char, opcode in CHAR_TO_OPCODE.items()}
)


@dataclass(frozen=True)
class JumpTable:
    open_to_close: Mapping[int, int]
    close_to_open: Mapping[int, int]

    def __len__(self) -> int:
        return len(self.open_to_close)


@dataclass(frozen=True)
class Program:
    """A validated opcode sequence together with its bracket jump table.

    Positions in ``opcodes`` are the instruction pointer values used by the
    interpreter, so the jump table only makes sense for this exact program.
    """

    opcodes: Tuple[Opcode, ...]
    jumps: JumpTable = field(repr=False)

    @classmethod
    def from_source(cls, source: str) -> "Program":
        return compile_program(source)

    def __len__(self) -> int:
        return len(self.opcodes)

    def to_source(self) -> str:
        return "".join(OPCODE_TO_CHAR[opcode] for opcode in self.opcodes)


def tokenize(source: str) -> Tuple[Opcode, ...]:
    """Filter ``source`` down to its opcodes; everything else is a comment."""
    return tuple(CHAR_TO_OPCODE[char] for char in source if char in CHAR_TO_OPCODE)


def build_jump_table(opcodes: Iterable[Opcode]) -> JumpTable:
    open_to_close: Dict[int, int] = {}
    close_to_open: Dict[int, int] = {}
    stack: List[int] = []
    for index, opcode in enumerate(opcodes):
        if opcode is Opcode.LOOP_OPEN:
            stack.append(index)
        elif opcode is Opcode.LOOP_CLOSE:
            if not stack:
                raise UnmatchedBracketError("]", index)
            start = stack.pop()
            open_to_close[start] = index
            close_to_open[index] = start
    if stack:
        # Report the outermost unmatched open.
        raise UnmatchedBracketError("[", stack[0])
    return JumpTable(
        open_to_close=MappingProxyType(open_to_close),
        close_to_open=MappingProxyType(close_to_open),
    )


def compile_program(source: str) -> Program:
    opcodes = tokenize(source)
    jumps = build_jump_table(opcodes)
    logger.debug("Compiled %d opcodes with %d loops", len(opcodes), len(jumps))
    return Program(opcodes=opcodes, jumps=jumps)


__all__ = [
    "BrainfuckError",
    "CHAR_TO_OPCODE",
    "JumpTable",
    "OPCODE_TO_CHAR",
    "Opcode",
    "Program",
    "UnmatchedBracketError",
    "build_jump_table",
    "compile_program",
    "tokenize",
]
