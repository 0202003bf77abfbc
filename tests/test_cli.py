"""Tests for the command-line demo."""

import pytest

from semaphore_spec.cli import _parse_path_bits, main


@pytest.mark.parametrize("text,depth,expected", [
    (None, 3, [0, 0, 0]),
    ("101", 3, [1, 0, 1]),
    ("1,0,1", 3, [1, 0, 1]),
    ("1 1", 2, [1, 1]),
])
def test_parse_path_bits(text, depth: int, expected: list[int]) -> None:
    assert _parse_path_bits(text, depth) == expected


def test_invalid_path_bits(capsys) -> None:
    assert main(["--depth", "2", "--path-bits", "12"]) == 2
    assert "ERROR:" in capsys.readouterr().err


def test_k_too_small(capsys) -> None:
    assert main(["--depth", "2", "--k", "5"]) == 2
    assert "needs k >= 8" in capsys.readouterr().err


@pytest.mark.slow
def test_end_to_end(capsys) -> None:
    assert main(["--depth", "1", "--leaf", "9", "--path-bits", "1", "--seed", "3"]) == 0
    out = capsys.readouterr().out
    assert "Native verification: PASSED" in out
    assert "EVM verification: PASSED" in out
