"""Gaussian elimination with partial (column) pivoting."""

from __future__ import annotations

import sys
import time
from typing import Sequence

from pivotsolve.fileio import DEFAULT_THRESHOLD, check, read_system

SINGULAR_TOLERANCE = 1e-6


class SingularMatrixError(ArithmeticError):
    """Raised when a pivot is too close to zero."""


def find_max(matrix: Sequence[Sequence[float]], j: int) -> int:
    """Row index at or below ``j`` with the largest magnitude in column ``j``."""
    return max(range(j, len(matrix)), key=lambda i: abs(matrix[i][j]))


def gauss_elimination(
    matrix: Sequence[Sequence[float]], rhs: Sequence[float]
) -> tuple[list[list[float]], list[float]]:
    """Factor ``P A = L U`` in place of a copy of ``matrix``.

    Returns the combined factors (unit ``L`` strictly below the diagonal,
    ``U`` on and above it) and ``rhs`` with the same row permutation applied.
    """
    a = [[float(value) for value in row] for row in matrix]
    b = [float(value) for value in rhs]
    n = len(a)
    if any(len(row) != n for row in a):
        raise ValueError("matrix must be square")
    if len(b) != n:
        raise ValueError(f"right-hand side has {len(b)} entries, expected {n}")

    for j in range(n - 1):
        p = find_max(a, j)
        if p != j:
            a[p], a[j] = a[j], a[p]
            b[p], b[j] = b[j], b[p]
        pivot_row = a[j]
        pivot = pivot_row[j]
        if abs(pivot) < SINGULAR_TOLERANCE:
            raise SingularMatrixError("A is singular")
        tail = pivot_row[j + 1 :]
        for row in a[j + 1 :]:
            factor = row[j] / pivot
            row[j] = factor
            row[j + 1 :] = [v - factor * u for v, u in zip(row[j + 1 :], tail)]
    return a, b


def forward_substitution(
    lu: Sequence[Sequence[float]], rhs: Sequence[float]
) -> list[float]:
    """Solve ``L y = rhs`` where ``L`` is unit lower triangular."""
    y: list[float] = []
    for row, value in zip(lu, rhs):
        y.append(value - sum(l * v for l, v in zip(row, y)))
    return y


def back_substitution(
    lu: Sequence[Sequence[float]], y: Sequence[float]
) -> list[float]:
    """Solve ``U x = y`` where ``U`` is upper triangular."""
    n = len(lu)
    x = [0.0] * n
    for i in reversed(range(n)):
        row = lu[i]
        if row[i] == 0:
            raise SingularMatrixError("A is singular")
        known = sum(u * v for u, v in zip(row[i + 1 :], x[i + 1 :]))
        x[i] = (y[i] - known) / row[i]
    return x


def solve(matrix: Sequence[Sequence[float]], rhs: Sequence[float]) -> list[float]:
    """Solve ``matrix @ x = rhs``."""
    lu, permuted = gauss_elimination(matrix, rhs)
    return back_substitution(lu, forward_substitution(lu, permuted))


def main(argv: Sequence[str] | None = None) -> int:
    """Solve the system in a file and compare with its stored reference."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: pivotsolve-serial file")
        return 0

    system = read_system(args[0])
    n = system.n
    print(f"N = {n}")

    start = time.perf_counter()
    try:
        x = solve(system.matrix, system.rhs)
    except SingularMatrixError:
        print("A is singular! exit now!")
        return 1
    elapsed = time.perf_counter() - start

    flops = 2.0 * n**3 / 3.0 + 4.0 * n / 3.0
    gflops = flops / elapsed / 1e9 if elapsed > 0 else float("inf")
    print(f"Elapsed time is {elapsed * 1e6:f} us, {gflops:f} GFLOPS")

    if check(x, n, DEFAULT_THRESHOLD):
        print("The answer is right!")
    else:
        print("The answer is wrong!")
    return 0


if __name__ == "__main__":
    sys.exit(main())