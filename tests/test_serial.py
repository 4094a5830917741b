import pytest

from pivotsolve.fileio import reference_path, write_reference, write_system
from pivotsolve.serial import (
    SingularMatrixError,
    back_substitution,
    find_max,
    forward_substitution,
    gauss_elimination,
    main,
    solve,
)

MATRIX = [
    [2.0, 1.0, 1.0, 3.0],
    [4.0, -6.0, 0.0, 1.0],
    [-2.0, 7.0, 2.0, 5.0],
    [1.0, 2.0, 9.0, -1.0],
]
SOLUTION = [1.0, -2.0, 3.0, 0.5]


def _mat_vec(matrix, x):
    return [sum(a * b for a, b in zip(row, x)) for row in matrix]


def _split_lu(lu):
    n = len(lu)
    lower = [[lu[i][j] if j < i else (1.0 if i == j else 0.0) for j in range(n)] for i in range(n)]
    upper = [[lu[i][j] if j >= i else 0.0 for j in range(n)] for i in range(n)]
    return lower, upper


def _mat_mul(a, b):
    return [[sum(x * y for x, y in zip(row, col)) for col in zip(*b)] for row in a]


def test_find_max_picks_largest_magnitude():
    assert find_max(MATRIX, 0) == 1
    assert find_max([[1.0, 0.0], [-3.0, 2.0]], 0) == 1


def test_find_max_keeps_first_on_tie():
    assert find_max([[2.0], [-2.0], [2.0]], 0) == 0


def test_find_max_ignores_rows_above():
    matrix = [[0.0, 100.0], [0.0, 1.0]]
    assert find_max(matrix, 1) == 1


def test_factorisation_reconstructs_permuted_matrix():
    n = len(MATRIX)
    lu, perm = gauss_elimination(MATRIX, [float(i) for i in range(n)])
    lower, upper = _split_lu(lu)
    product = _mat_mul(lower, upper)
    permuted = [MATRIX[int(i)] for i in perm]
    for got_row, want_row in zip(product, permuted):
        assert got_row == pytest.approx(want_row)
    assert sorted(perm) == [float(i) for i in range(n)]


def test_multipliers_bounded_by_one():
    lu, _ = gauss_elimination(MATRIX, [0.0] * 4)
    for i, row in enumerate(lu):
        assert all(abs(value) <= 1.0 for value in row[:i])


def test_gauss_elimination_does_not_modify_input():
    matrix = [row[:] for row in MATRIX]
    gauss_elimination(matrix, [1.0, 2.0, 3.0, 4.0])
    assert matrix == MATRIX


def test_solve_recovers_solution():
    rhs = _mat_vec(MATRIX, SOLUTION)
    assert solve(MATRIX, rhs) == pytest.approx(SOLUTION)


def test_solve_needs_pivoting():
    assert solve([[0.0, 1.0], [1.0, 0.0]], [2.0, 3.0]) == pytest.approx([3.0, 2.0])


def test_substitutions_invert_triangular_factors():
    lu, permuted = gauss_elimination(MATRIX, _mat_vec(MATRIX, SOLUTION))
    y = forward_substitution(lu, permuted)
    lower, upper = _split_lu(lu)
    assert _mat_vec(lower, y) == pytest.approx(permuted)
    x = back_substitution(lu, y)
    assert _mat_vec(upper, x) == pytest.approx(y)


def test_singular_matrix_raises():
    with pytest.raises(SingularMatrixError):
        solve([[1.0, 2.0], [2.0, 4.0]], [1.0, 2.0])


def test_zero_last_pivot_raises():
    with pytest.raises(SingularMatrixError):
        back_substitution([[1.0, 1.0], [0.0, 0.0]], [1.0, 1.0])


def test_mismatched_rhs_rejected():
    with pytest.raises(ValueError):
        gauss_elimination([[1.0, 0.0], [0.0, 1.0]], [1.0])


def test_main_usage_message(capsys):
    assert main([]) == 0
    assert "Usage" in capsys.readouterr().out


def _prepare(tmp_path, reference):
    data = tmp_path / "data"
    data.mkdir()
    path = data / "Axb_4.txt"
    write_system(path, MATRIX, _mat_vec(MATRIX, SOLUTION))
    write_reference(reference_path(4, data), reference)
    return path


def test_main_reports_right_answer(tmp_path, monkeypatch, capsys):
    path = _prepare(tmp_path, SOLUTION)
    monkeypatch.chdir(tmp_path)
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "N = 4" in out
    assert "The answer is right!" in out


def test_main_reports_wrong_answer(tmp_path, monkeypatch, capsys):
    path = _prepare(tmp_path, [value + 1.0 for value in SOLUTION])
    monkeypatch.chdir(tmp_path)
    assert main([str(path)]) == 0
    assert "The answer is wrong!" in capsys.readouterr().out


def test_main_singular_system(tmp_path, monkeypatch, capsys):
    path = tmp_path / "sys.txt"
    write_system(path, [[1.0, 2.0], [2.0, 4.0]], [1.0, 2.0])
    monkeypatch.chdir(tmp_path)
    assert main([str(path)]) == 1
    assert "A is singular! exit now!" in capsys.readouterr().out