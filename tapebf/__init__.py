from .bf_interpreter import (
    BrainfuckInterpreter,
    EofPolicy,
    ExecutionError,
    ExecutionResult,
    InputExhausted,
    PointerOutOfRange,
    StepLimitExceeded,
    run,
)
from .program import (
    BrainfuckError,
    Opcode,
    Program,
    UnmatchedBracketError,
    compile_program,
    tokenize,
)

__all__ = [
    "BrainfuckError",
    "BrainfuckInterpreter",
    "EofPolicy",
    "ExecutionError",
    "ExecutionResult",
    "InputExhausted",
    "Opcode",
    "PointerOutOfRange",
    "Program",
    "StepLimitExceeded",
    "UnmatchedBracketError",
    "compile_program",
    "run",
    "tokenize",
]
