# tests/test_driver.py
"""
Tests for the puzzle driver and the ``alu`` command line.
"""

import pytest

from alu_analysis.driver import Answers, check_answer, load_lines, solve
from alu_analysis.errors import (
    AluError,
    AnswerMismatchError,
    InvariantViolation,
    NoSolutionError,
)
from alu_analysis.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import (
    ADD_SCENARIO,
    EXPECTED_LARGEST,
    EXPECTED_SMALLEST,
    PUZZLE_LINES,
    UNSOLVABLE_LINES,
)


@pytest.fixture
def puzzle_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text("\n".join(PUZZLE_LINES) + "\n\n", encoding="utf-8")
    return path


class TestDriver:

    def test_load_lines_strips_blank_lines(self, tmp_path):
        path = tmp_path / "p.txt"
        path.write_text("  inp w \n\nadd x 1\n   \n", encoding="utf-8")
        assert load_lines(path) == ["inp w", "add x 1"]

    def test_solve(self, puzzle_file):
        assert solve(load_lines(puzzle_file)) == Answers(EXPECTED_LARGEST, EXPECTED_SMALLEST)

    def test_solve_requires_fourteen_inputs(self):
        with pytest.raises(InvariantViolation):
            solve(ADD_SCENARIO)

    def test_solve_unsolvable(self):
        with pytest.raises(NoSolutionError):
            solve(UNSOLVABLE_LINES)

    def test_check_answer(self):
        check_answer("largest", 5, 5)
        check_answer("largest", 5, None)
        with pytest.raises(AnswerMismatchError) as info:
            check_answer("largest", 5, 6)
        assert info.value.code == "ALU-4002"
        assert (info.value.actual, info.value.expected) == (5, 6)
        assert not isinstance(info.value, NoSolutionError)
        assert isinstance(info.value, AluError)


class TestCli:

    def test_solve(self, puzzle_file, capsys):
        assert main(["solve", str(puzzle_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert str(EXPECTED_LARGEST) in out
        assert str(EXPECTED_SMALLEST) in out

    def test_solve_with_expectations(self, puzzle_file, capsys):
        code = main([
            "solve", str(puzzle_file),
            "--expect-max", str(EXPECTED_LARGEST),
            "--expect-min", str(EXPECTED_SMALLEST),
        ])
        assert code == EXIT_OK
        assert "MISMATCH" not in capsys.readouterr().out

    def test_solve_mismatch(self, puzzle_file, capsys):
        code = main(["solve", str(puzzle_file), "--expect-max", "1"])
        assert code == EXIT_ERROR
        assert "MISMATCH" in capsys.readouterr().out

    def test_unsolvable(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("\n".join(UNSOLVABLE_LINES), encoding="utf-8")
        assert main(["solve", str(path)]) == EXIT_ERROR

    def test_missing_file(self, tmp_path):
        assert main(["solve", str(tmp_path / "nope.txt")]) == EXIT_INFRA

    def test_parse_error(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("inp w\nsub x 1\n", encoding="utf-8")
        assert main(["limits", str(path)]) == EXIT_INFRA

    def test_simplify(self, tmp_path, capsys):
        path = tmp_path / "add.txt"
        path.write_text("\n".join(ADD_SCENARIO), encoding="utf-8")
        assert main(["simplify", str(path), "--register", "w"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "i1 + 7"
        assert main(["simplify", str(path), "-r", "w", "--format", "sexp"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "(+ i1 7)"

    def test_limits(self, puzzle_file, capsys):
        assert main(["limits", str(puzzle_file)]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1 + len(PUZZLE_LINES)
        assert "inp w" in lines[1]

    def test_run(self, puzzle_file, capsys):
        assert main(["run", str(puzzle_file), str(EXPECTED_LARGEST)]) == EXIT_OK
        assert capsys.readouterr().out.strip().endswith("z=0")
        assert main(["run", str(puzzle_file), str(EXPECTED_LARGEST - 1)]) == EXIT_ERROR

    @pytest.mark.parametrize("digits", ["123", "10000000000000", "1234567890123x"])
    def test_run_rejects_bad_digits(self, puzzle_file, digits):
        assert main(["run", str(puzzle_file), digits]) == EXIT_INFRA

    def test_no_command(self):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        assert main(["--version"]) == EXIT_OK
        assert "alu" in capsys.readouterr().out
