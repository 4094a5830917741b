"""Generation of random test systems with known solutions."""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Sequence

from pivotsolve.fileio import (
    DEFAULT_DIRECTORY,
    LinearSystem,
    PathLike,
    reference_path,
    system_path,
    write_reference,
    write_system,
)


def mat_vec_mul(matrix: Sequence[Sequence[float]], x: Sequence[float]) -> list[float]:
    """Return ``matrix @ x``."""
    return [sum(a * b for a, b in zip(row, x)) for row in matrix]


def generate(
    n: int, rng: random.Random | None = None
) -> tuple[LinearSystem, list[float]]:
    """Random system of size ``n`` with integer entries in 1..10, and its solution."""
    if n < 0:
        raise ValueError(f"size must be non-negative, got {n}")
    rng = rng or random.Random()
    columns = [[float(rng.randint(1, 10)) for _ in range(n)] for _ in range(n)]
    matrix = [list(row) for row in zip(*columns)]
    solution = [float(rng.randint(1, 10)) for _ in range(n)]
    return LinearSystem(matrix, mat_vec_mul(matrix, solution)), solution


def write_data(
    n: int,
    directory: PathLike = DEFAULT_DIRECTORY,
    rng: random.Random | None = None,
) -> tuple[Path, Path]:
    """Write a generated system and its solution; return both paths."""
    system, solution = generate(n, rng)
    Path(directory).mkdir(parents=True, exist_ok=True)
    sys_file, ref_file = system_path(n, directory), reference_path(n, directory)
    write_system(sys_file, system.matrix, system.rhs)
    write_reference(ref_file, solution)
    return sys_file, ref_file


def main(argv: Sequence[str] | None = None) -> int:
    """Write ``data/Axb_<N>.txt`` and ``data/Ref_<N>.txt``."""
    args = list(sys.argv[1:] if argv is None else argv)
    usage = "Usage: pivotsolve-gendata N"
    if len(args) != 1:
        print(usage)
        return 0
    try:
        write_data(int(args[0]))
    except ValueError as exc:
        print(f"{usage}: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())