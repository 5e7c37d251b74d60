from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .bf_interpreter import DEFAULT_TAPE_LENGTH, BrainfuckInterpreter, EofPolicy, ExecutionError
from .program import UnmatchedBracketError, compile_program

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(data: bytes) -> None:
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is not None:
        buffer.write(data)
        buffer.flush()
    else:
        sys.stdout.write(data.decode("latin-1"))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="tapebf Brainfuck interpreter")
    parser.add_argument("source", nargs="?", help="Path to a Brainfuck source file")
    parser.add_argument("-e", "--eval", dest="code", help="Run the given code instead of a file")
    input_group = parser.add_mutually_exclusive_group()
    input_group.add_argument(
        "--input",
        help="Input string supplied to the program (default: read standard input)",
    )
    input_group.add_argument("--input-file", help="File whose bytes are supplied as input")
    parser.add_argument(
        "--eof",
        choices=[policy.value for policy in EofPolicy],
        default=EofPolicy.SENTINEL.value,
        help="Behaviour of ',' once input is exhausted (default: sentinel, stores 255)",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        help="Abort after this many instructions (must be positive)",
    )
    parser.add_argument(
        "--tape-length",
        type=int,
        default=DEFAULT_TAPE_LENGTH,
        help=f"Number of tape cells (default: {DEFAULT_TAPE_LENGTH})",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate loop brackets, do not execute",
    )
    parser.add_argument(
        "--canonical",
        action="store_true",
        help="Print the program with comments stripped instead of running it",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.code is None and args.source is None:
        parser.error("either a source file or -e/--eval is required")
    if args.code is not None and args.source is not None:
        parser.error("a source file and -e/--eval cannot be combined")

    try:
        source_text = args.code if args.code is not None else _read_source(args.source)
        logger.debug("Loaded %d characters of source", len(source_text))
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    try:
        program = compile_program(source_text)
    except UnmatchedBracketError as exc:
        print(f"Syntax error: {exc}", file=sys.stderr)
        return 1

    if args.check:
        return 0
    if args.canonical:
        sys.stdout.write(program.to_source() + "\n")
        return 0

    if args.input is not None:
        input_data = args.input
    elif args.input_file is not None:
        try:
            input_data = Path(args.input_file).read_bytes()
        except OSError as exc:
            print(f"Cannot read input file: {exc}", file=sys.stderr)
            return 1
    else:
        input_data = getattr(sys.stdin, "buffer", sys.stdin)

    try:
        interpreter = BrainfuckInterpreter(
            tape_length=args.tape_length,
            eof_policy=EofPolicy(args.eof),
            max_steps=args.max_steps,
        )
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    try:
        output = interpreter.run(program, input_data=input_data)
    except ExecutionError as exc:
        _write_output(exc.output)
        print(f"Runtime error: {exc}", file=sys.stderr)
        return 1

    _write_output(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
