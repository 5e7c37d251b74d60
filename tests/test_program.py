import unittest

from tapebf import Opcode, Program, UnmatchedBracketError, compile_program, tokenize
from tapebf.program import CHAR_TO_OPCODE, OPCODE_TO_CHAR, build_jump_table


class TokenizeTests(unittest.TestCase):
    def test_keeps_only_recognized_characters(self) -> None:
        opcodes = tokenize("a+b-c>d<e.f,g[h]i")
        self.assertEqual(
            opcodes,
            (
                Opcode.INCREMENT,
                Opcode.DECREMENT,
                Opcode.MOVE_RIGHT,
                Opcode.MOVE_LEFT,
                Opcode.OUTPUT,
                Opcode.INPUT,
                Opcode.LOOP_OPEN,
                Opcode.LOOP_CLOSE,
            ),
        )

    def test_empty_and_prose_only_sources(self) -> None:
        self.assertEqual(tokenize(""), ())
        self.assertEqual(tokenize("just some prose\n\twith whitespace"), ())

    def test_mapping_is_bidirectional_and_read_only(self) -> None:
        self.assertEqual(len(CHAR_TO_OPCODE), 8)
        for char, opcode in CHAR_TO_OPCODE.items():
            self.assertEqual(OPCODE_TO_CHAR[opcode], char)
        with self.assertRaises(TypeError):
            CHAR_TO_OPCODE["x"] = Opcode.OUTPUT  # type: ignore[index]


class JumpTableTests(unittest.TestCase):
    def test_nested_brackets_pair_by_nesting(self) -> None:
        jumps = build_jump_table(tokenize("[[]]"))
        self.assertEqual(dict(jumps.open_to_close), {0: 3, 1: 2})
        self.assertEqual(dict(jumps.close_to_open), {3: 0, 2: 1})

    def test_positions_ignore_comments(self) -> None:
        jumps = build_jump_table(tokenize("+ loop [ - ] done"))
        self.assertEqual(dict(jumps.open_to_close), {1: 3})

    def test_sequential_loops(self) -> None:
        jumps = build_jump_table(tokenize("[][-]"))
        self.assertEqual(dict(jumps.open_to_close), {0: 1, 2: 4})
        self.assertEqual(len(jumps), 2)

    def test_unmatched_open(self) -> None:
        with self.assertRaises(UnmatchedBracketError) as ctx:
            compile_program("[")
        self.assertEqual(ctx.exception.bracket, "[")
        self.assertEqual(ctx.exception.position, 0)

    def test_unmatched_close(self) -> None:
        with self.assertRaises(UnmatchedBracketError) as ctx:
            compile_program("]")
        self.assertEqual(ctx.exception.bracket, "]")
        self.assertEqual(ctx.exception.position, 0)

    def test_extra_close_reports_its_position(self) -> None:
        with self.assertRaises(UnmatchedBracketError) as ctx:
            compile_program("[]]")
        self.assertEqual(ctx.exception.position, 2)

    def test_unmatched_open_reports_outermost(self) -> None:
        with self.assertRaises(UnmatchedBracketError) as ctx:
            compile_program("+[[[]")
        self.assertEqual(ctx.exception.bracket, "[")
        self.assertEqual(ctx.exception.position, 1)

    def test_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            compile_program("]")


class ProgramTests(unittest.TestCase):
    def test_to_source_strips_comments(self) -> None:
        program = Program.from_source("++ add two\n[ loop -]")
        self.assertEqual(program.to_source(), "++[-]")
        self.assertEqual(len(program), 5)

    def test_program_is_frozen(self) -> None:
        program = compile_program("+")
        with self.assertRaises(AttributeError):
            program.opcodes = ()  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
