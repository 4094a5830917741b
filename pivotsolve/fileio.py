"""Reading and writing linear systems and reference solutions."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

PathLike = Union[str, Path]

DEFAULT_DIRECTORY = Path("data")
DEFAULT_THRESHOLD = 1e-1

_HEADER = re.compile(r"\s*N\s*=\s*(\d+)")


@dataclass
class LinearSystem:
    """A square system ``matrix @ x = rhs`` held as a list of rows."""

    matrix: list[list[float]]
    rhs: list[float]

    def __post_init__(self) -> None:
        n = len(self.matrix)
        if any(len(row) != n for row in self.matrix) or len(self.rhs) != n:
            raise ValueError("system must be square with a matching right-hand side")

    @property
    def n(self) -> int:
        return len(self.matrix)


def _floats(text: str, path: PathLike) -> list[float]:
    try:
        return [float(token) for token in text.split()]
    except ValueError as exc:
        raise ValueError(f"{path}: invalid number") from exc


def read_system(path: PathLike) -> LinearSystem:
    """Read an ``N = <n>`` header, the matrix by columns, then the rhs."""
    text = Path(path).read_text()
    match = _HEADER.match(text)
    if match is None:
        raise ValueError(f"{path}: missing 'N = <size>' header")
    n = int(match.group(1))
    values = _floats(text[match.end():], path)
    if len(values) < n * n + n:
        raise ValueError(f"{path}: expected {n * n + n} numbers, found {len(values)}")
    matrix = [values[i : n * n : n] for i in range(n)]
    return LinearSystem(matrix, values[n * n : n * n + n])


def read_reference(path: PathLike) -> list[float]:
    """Read a whitespace-separated list of solution values."""
    return _floats(Path(path).read_text(), path)


def write_system(
    path: PathLike, matrix: Sequence[Sequence[float]], rhs: Sequence[float]
) -> None:
    """Write a system in the format read by :func:`read_system`."""
    system = LinearSystem([list(row) for row in matrix], list(rhs))
    values = [v for column in zip(*system.matrix) for v in column] + system.rhs
    Path(path).write_text(f"N = {system.n}\n" + "".join(f"{v:f}\n" for v in values))


def write_reference(path: PathLike, solution: Sequence[float]) -> None:
    """Write one solution value per line."""
    Path(path).write_text("".join(f"{value:f}\n" for value in solution))


def reference_path(n: int, directory: PathLike = DEFAULT_DIRECTORY) -> Path:
    """Location of the reference solution for a system of size ``n``."""
    return Path(directory) / f"Ref_{n}.txt"


def system_path(n: int, directory: PathLike = DEFAULT_DIRECTORY) -> Path:
    """Location of the system file for size ``n``."""
    return Path(directory) / f"Axb_{n}.txt"


def compare(
    answer: Sequence[float],
    reference: Sequence[float],
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    """Report entries that differ by more than ``threshold``; True if none do."""
    if len(reference) < len(answer):
        raise ValueError("reference is shorter than the answer")
    errors = 0
    for index, (ans, ref) in enumerate(zip(answer, reference)):
        if math.isnan(ans):
            print(f"check error: ans[{index}] is nan!")
            return False
        if abs(ans - ref) > threshold:
            print(f"Error on index {index}, ans = {ans:f} and ref = {ref:f}")
            errors += 1
            if errors == 3:
                print("...")
                break
    return errors == 0


def check(
    answer: Sequence[float],
    n: int,
    threshold: float = DEFAULT_THRESHOLD,
    directory: PathLike = DEFAULT_DIRECTORY,
) -> bool:
    """Compare ``answer`` with the stored reference solution of size ``n``."""
    reference = read_reference(reference_path(n, directory))
    if len(reference) < n or len(answer) < n:
        raise ValueError(f"answer and reference need {n} values")
    return compare(list(answer)[:n], reference[:n], threshold)