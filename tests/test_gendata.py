import random

import pytest

from pivotsolve.fileio import read_reference, read_system
from pivotsolve.gendata import generate, main, mat_vec_mul, write_data


def test_mat_vec_mul_identity():
    identity = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    assert mat_vec_mul(identity, [4.0, -5.0, 6.0]) == [4.0, -5.0, 6.0]


def test_mat_vec_mul_linear():
    matrix = [[1.0, 2.0], [3.0, 4.0]]
    x, y = [1.0, 2.0], [3.0, -1.0]
    combined = mat_vec_mul(matrix, [a + b for a, b in zip(x, y)])
    separate = [a + b for a, b in zip(mat_vec_mul(matrix, x), mat_vec_mul(matrix, y))]
    assert combined == separate


def test_generate_entries_in_range():
    system, solution = generate(5, random.Random(1))
    values = [v for row in system.matrix for v in row] + solution
    assert all(1.0 <= v <= 10.0 and v == int(v) for v in values)
    assert system.n == 5
    assert len(solution) == 5


def test_generate_rhs_matches_solution():
    system, solution = generate(6, random.Random(7))
    assert system.rhs == mat_vec_mul(system.matrix, solution)


def test_generate_is_deterministic_with_seed():
    first = generate(4, random.Random(42))
    second = generate(4, random.Random(42))
    assert first[0].matrix == second[0].matrix
    assert first[1] == second[1]


def test_generate_rejects_negative_size():
    with pytest.raises(ValueError):
        generate(-1)


def test_write_data_round_trip(tmp_path):
    sys_file, ref_file = write_data(4, tmp_path, random.Random(3))
    expected, solution = generate(4, random.Random(3))
    assert sys_file.name == "Axb_4.txt"
    assert ref_file.name == "Ref_4.txt"
    system = read_system(sys_file)
    assert system.matrix == expected.matrix
    assert system.rhs == expected.rhs
    assert read_reference(ref_file) == solution


def test_main_writes_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main(["3"]) == 0
    system = read_system(tmp_path / "data" / "Axb_3.txt")
    solution = read_reference(tmp_path / "data" / "Ref_3.txt")
    assert system.n == 3
    assert system.rhs == pytest.approx(mat_vec_mul(system.matrix, solution))


def test_main_usage(capsys):
    assert main([]) == 0
    assert "Usage" in capsys.readouterr().out


def test_main_rejects_non_integer(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["abc"]) == 1
    assert "Usage" in capsys.readouterr().out
    assert not (tmp_path / "data").exists()