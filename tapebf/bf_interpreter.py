from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterable, Optional, TextIO, Union

from .program import BrainfuckError, Opcode, Program, compile_program

logger = logging.getLogger(__name__)

DEFAULT_TAPE_LENGTH = 30000
EOF_SENTINEL = 255

InputData = Union[None, str, bytes, bytearray, memoryview, Iterable[int], BinaryIO, TextIO]


class ExecutionError(BrainfuckError):
    """Raised when a running program fails; carries the machine position."""

    def __init__(self, message: str, *, pc: int, pointer: int, output: bytes = b"") -> None:
        self.pc = pc
        self.pointer = pointer
        self.output = output
        super().__init__(message)


class PointerOutOfRange(ExecutionError, IndexError):
    """Raised when the data pointer leaves the tape."""


class InputExhausted(ExecutionError):
    """Raised on a read past the end of input under ``EofPolicy.ERROR``."""


class StepLimitExceeded(ExecutionError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


class EofPolicy(str, Enum):
    SENTINEL = "sentinel"
    ZERO = "zero"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionResult:
    output: bytes
    steps: int


@dataclass
class MachineState:
    tape: bytearray
    pointer: int = 0
    pc: int = 0
    input_cursor: int = 0
    steps: int = 0

    @classmethod
    def fresh(cls, tape_length: int) -> "MachineState":
        return cls(tape=bytearray(tape_length))


class InputReader:
    """Byte-at-a-time view over a finite buffer or a readable stream."""

    def __init__(self, input_data: InputData = None) -> None:
        self._stream = None
        self._pending = bytearray()
        if input_data is None:
            self._buffer = b""
        elif isinstance(input_data, str):
            self._buffer = input_data.encode("utf-8")
        elif isinstance(input_data, (bytes, bytearray, memoryview)):
            self._buffer = bytes(input_data)
        elif hasattr(input_data, "read"):
            self._stream = input_data
            self._buffer = b""
        else:
            self._buffer = bytes(list(input_data))
        self._offset = 0

    def read_byte(self) -> Optional[int]:
        if self._stream is None:
            if self._offset >= len(self._buffer):
                return None
            value = self._buffer[self._offset]
            self._offset += 1
            return value

        if not self._pending:
            chunk = self._stream.read(1)
            if not chunk:
                return None
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            self._pending.extend(chunk)
        return self._pending.pop(0)


@dataclass
class BrainfuckInterpreter:
    tape_length: int = DEFAULT_TAPE_LENGTH
    eof_policy: EofPolicy = EofPolicy.SENTINEL
    max_steps: Optional[int] = None

    def __post_init__(self) -> None:
        if self.tape_length < 1:
            raise ValueError("tape_length must be positive")
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError("max_steps must be positive")
        self.eof_policy = EofPolicy(self.eof_policy)

    def run(
        self,
        code: Union[str, Program],
        input_data: InputData = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        return self.execute(code, input_data=input_data, max_steps=max_steps).output

    def execute(
        self,
        code: Union[str, Program],
        input_data: InputData = None,
        max_steps: Optional[int] = None,
    ) -> ExecutionResult:
        """Like ``run``, but also report how many instructions were executed."""
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be positive")
        program = code if isinstance(code, Program) else compile_program(code)
        limit = self.max_steps if max_steps is None else max_steps
        state = MachineState.fresh(self.tape_length)
        reader = InputReader(input_data)
        output = bytearray()
        code_length = len(program)

        logger.debug("Running %d opcodes (eof policy: %s)", code_length, self.eof_policy.value)
        while state.pc < code_length:
            if limit is not None and state.steps >= limit:
                raise StepLimitExceeded(
                    f"Brainfuck program exceeded allowed step count ({limit}) at pc {state.pc}",
                    pc=state.pc,
                    pointer=state.pointer,
                    output=bytes(output),
                )
            try:
                emitted = self._execute_instruction(program, state, reader)
            except ExecutionError as exc:
                exc.output = bytes(output)
                raise
            state.steps += 1
            if emitted is not None:
                output.append(emitted)

        logger.debug("Program halted after %d steps with %d output bytes", state.steps, len(output))
        return ExecutionResult(output=bytes(output), steps=state.steps)

    def _execute_instruction(
        self,
        program: Program,
        state: MachineState,
        reader: InputReader,
    ) -> Optional[int]:
        """Apply the opcode at ``state.pc``; return a byte to emit, if any."""
        opcode = program.opcodes[state.pc]
        emitted: Optional[int] = None
        tape = state.tape

        if opcode is Opcode.MOVE_RIGHT:
            state.pointer += 1
            if state.pointer >= self.tape_length:
                raise PointerOutOfRange(
                    f"Pointer moved beyond the tape length at pc {state.pc}",
                    pc=state.pc,
                    pointer=state.pointer,
                )
        elif opcode is Opcode.MOVE_LEFT:
            state.pointer -= 1
            if state.pointer < 0:
                raise PointerOutOfRange(
                    f"Pointer moved before start of tape at pc {state.pc}",
                    pc=state.pc,
                    pointer=state.pointer,
                )
        elif opcode is Opcode.INCREMENT:
            tape[state.pointer] = (tape[state.pointer] + 1) % 256
        elif opcode is Opcode.DECREMENT:
            tape[state.pointer] = (tape[state.pointer] - 1) % 256
        elif opcode is Opcode.OUTPUT:
            emitted = tape[state.pointer]
        elif opcode is Opcode.INPUT:
            tape[state.pointer] = self._read_input(state, reader)
        elif opcode is Opcode.LOOP_OPEN:
            if tape[state.pointer] == 0:
                state.pc = program.jumps.open_to_close[state.pc]
        elif opcode is Opcode.LOOP_CLOSE:
            if tape[state.pointer] != 0:
                state.pc = program.jumps.close_to_open[state.pc]
        else:  # pragma: no cover - Opcode is closed
            raise AssertionError(f"Unknown opcode {opcode!r}")

        state.pc += 1
        return emitted

    def _read_input(self, state: MachineState, reader: InputReader) -> int:
        value = reader.read_byte()
        if value is not None:
            state.input_cursor += 1
            return value
        if self.eof_policy is EofPolicy.ERROR:
            raise InputExhausted(
                f"Input exhausted after {state.input_cursor} bytes at pc {state.pc}",
                pc=state.pc,
                pointer=state.pointer,
            )
        if self.eof_policy is EofPolicy.ZERO:
            return 0
        return EOF_SENTINEL


def run(
    source: Union[str, Program],
    input_data: InputData = None,
    *,
    eof_policy: EofPolicy = EofPolicy.SENTINEL,
    max_steps: Optional[int] = None,
    tape_length: int = DEFAULT_TAPE_LENGTH,
) -> bytes:
    """Compile and execute ``source``, returning everything it printed."""
    interpreter = BrainfuckInterpreter(
        tape_length=tape_length,
        eof_policy=eof_policy,
        max_steps=max_steps,
    )
    return interpreter.run(source, input_data=input_data)


__all__ = [
    "BrainfuckInterpreter",
    "DEFAULT_TAPE_LENGTH",
    "EOF_SENTINEL",
    "EofPolicy",
    "ExecutionError",
    "ExecutionResult",
    "InputExhausted",
    "InputReader",
    "MachineState",
    "PointerOutOfRange",
    "StepLimitExceeded",
    "run",
]
