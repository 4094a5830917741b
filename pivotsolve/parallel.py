"""Column-cyclic Gaussian elimination with partial pivoting on a ring of workers.

Each rank owns the columns ``c`` with ``c % nprocs == rank``. Pivot rows and
multipliers travel around the ring during elimination. The triangular solves
are pipelined: a short vector of pending contributions is passed from rank to
rank.
"""

from __future__ import annotations

import sys
import threading
import time
from collections import defaultdict, deque
from typing import Any, Optional, Sequence

from pivotsolve.fileio import DEFAULT_THRESHOLD, check, read_system
from pivotsolve.serial import SINGULAR_TOLERANCE, SingularMatrixError

PIVOT_TAG = 2323
MULTIPLIER_TAG = 8848
FORWARD_TAG = 777
BACKWARD_TAG = 888
GATHER_Y_TAG = 1001
GATHER_X_TAG = 1002


class _CommunicationAborted(RuntimeError):
    """Raised in a waiting rank when another rank has failed."""


class Ring:
    """Point-to-point message passing between ``size`` ranks.

    Messages on the same ``(src, dst, tag)`` channel are delivered in the
    order they were sent.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"ring needs at least one rank, got {size}")
        self.size = size
        self._channels: dict[tuple[int, int, int], deque[Any]] = defaultdict(deque)
        self._cond = threading.Condition()
        self._error: Optional[BaseException] = None

    def _check_rank(self, rank: int) -> None:
        if not 0 <= rank < self.size:
            raise ValueError(f"rank {rank} outside 0..{self.size - 1}")

    def send(self, src: int, dst: int, tag: int, payload: Any) -> None:
        """Queue ``payload`` from ``src`` to ``dst`` under ``tag``."""
        self._check_rank(src)
        self._check_rank(dst)
        with self._cond:
            self._channels[(src, dst, tag)].append(payload)
            self._cond.notify_all()

    def recv(self, src: int, dst: int, tag: int) -> Any:
        """Wait for and return the next message from ``src`` to ``dst`` under ``tag``."""
        self._check_rank(src)
        self._check_rank(dst)
        key = (src, dst, tag)
        with self._cond:
            self._cond.wait_for(
                lambda: bool(self._channels[key]) or self._error is not None
            )
            if self._channels[key]:
                return self._channels[key].popleft()
            raise _CommunicationAborted("another rank failed")

    def _abort(self, error: BaseException) -> None:
        with self._cond:
            if self._error is None:
                self._error = error
            self._cond.notify_all()


def _check_divisible(n: int, nprocs: int) -> None:
    if nprocs < 1:
        raise ValueError(f"number of ranks must be positive, got {nprocs}")
    if n % nprocs:
        raise ValueError(f"size {n} is not a multiple of the number of ranks {nprocs}")


def distribute_columns(
    matrix: Sequence[Sequence[float]], nprocs: int
) -> list[list[list[float]]]:
    """Split the columns of ``matrix`` cyclically: rank ``r`` gets ``r, r+p, ...``."""
    n = len(matrix)
    if any(len(row) != n for row in matrix):
        raise ValueError("matrix must be square")
    _check_divisible(n, nprocs)
    columns = [[float(value) for value in column] for column in zip(*matrix)]
    return [columns[rank::nprocs] for rank in range(nprocs)]


def gather_columns(blocks: Sequence[Sequence[Sequence[float]]], n: int) -> list[list[float]]:
    """Reassemble a row-major matrix from cyclically distributed columns."""
    p = len(blocks)
    if n == 0:
        return []
    if p == 0:
        raise ValueError("no column blocks given")
    columns = [blocks[c % p][c // p] for c in range(n)]
    if any(len(column) != n for column in columns):
        raise ValueError(f"every column must have {n} entries")
    return [list(row) for row in zip(*columns)]


def gather_vector(parts: Sequence[Sequence[float]]) -> list[float]:
    """Interleave cyclic parts: entry ``k`` of part ``r`` goes to ``k * p + r``."""
    if not parts:
        return []
    if len({len(part) for part in parts}) != 1:
        raise ValueError("all parts must have the same length")
    return [value for group in zip(*parts) for value in group]


def _swap_rows(columns: list[list[float]], a: int, b: int) -> None:
    if a != b:
        for column in columns:
            column[a], column[b] = column[b], column[a]


def _gather(
    ring: Ring, rank: int, local: Sequence[float], root: int, tag: int
) -> Optional[list[float]]:
    if rank != root:
        ring.send(rank, root, tag, list(local))
        return None
    parts = [
        list(local) if r == root else ring.recv(r, root, tag) for r in range(ring.size)
    ]
    return gather_vector(parts)


def _eliminate(
    ring: Ring,
    rank: int,
    n: int,
    columns: list[list[float]],
    rhs: Optional[list[float]],
) -> Optional[list[float]]:
    p = ring.size
    nxt, prv = (rank + 1) % p, (rank - 1) % p
    pivots = [0] * n
    multipliers = [0.0] * n
    icol = 0

    for j in range(n - 1):
        owner = j % p
        if rank == owner:
            column = columns[icol]
            pivot_row = max(range(j, n), key=lambda i: abs(column[i]))
            _swap_rows(columns, pivot_row, j)
            pivot = column[j]
            if abs(pivot) < SINGULAR_TOLERANCE:
                raise SingularMatrixError("A is singular")
            column[j + 1 :] = [value / pivot for value in column[j + 1 :]]
            multipliers[j + 1 :] = column[j + 1 :]
            icol += 1
            if p > 1:
                ring.send(rank, nxt, PIVOT_TAG, pivot_row)
                ring.send(rank, nxt, MULTIPLIER_TAG, multipliers[j + 1 :])
        else:
            pivot_row = ring.recv(prv, rank, PIVOT_TAG)
            multipliers[j + 1 :] = ring.recv(prv, rank, MULTIPLIER_TAG)
            if nxt != owner:
                ring.send(rank, nxt, PIVOT_TAG, pivot_row)
                ring.send(rank, nxt, MULTIPLIER_TAG, multipliers[j + 1 :])
            _swap_rows(columns, pivot_row, j)
        pivots[j] = pivot_row

        tail = multipliers[j + 1 :]
        for column in columns[icol:]:
            head = column[j]
            column[j + 1 :] = [v - f * head for v, f in zip(column[j + 1 :], tail)]

    if rhs is None:
        return None
    b = list(rhs)
    for i, row in enumerate(pivots[: max(n - 1, 0)]):
        b[i], b[row] = b[row], b[i]
    return b


def _forward(
    ring: Ring,
    rank: int,
    n: int,
    columns: list[list[float]],
    rhs: Optional[list[float]],
) -> list[float]:
    """Pipelined solve of ``L y = rhs``; returns this rank's entries of ``y``."""
    p = ring.size
    u = list(rhs) if rhs is not None else [0.0] * n
    v = [0.0] * (p - 1)
    y: list[float] = []

    for k, i in enumerate(range(rank, n, p)):
        column = columns[k]
        if i > 0 and p > 1:
            v = ring.recv((i - 1) % p, rank, FORWARD_TAG)
        yk = u[i] + (v[0] if v else 0.0)
        y.append(yk)

        carried = [0.0] * (p - 1)
        for j in range(p - 2):
            row = i + 1 + j
            if row < n:
                carried[j] = v[j + 1] + u[row] - column[row] * yk
        if p > 1 and i + p - 1 < n:
            carried[p - 2] = u[i + p - 1] - column[i + p - 1] * yk
        v = carried

        if p > 1 and i < n - 1:
            ring.send(rank, (i + 1) % p, FORWARD_TAG, v)

        for row in range(i + p, n):
            u[row] -= column[row] * yk
    return y


def _backward(
    ring: Ring, rank: int, n: int, columns: list[list[float]], y: list[float]
) -> list[float]:
    """Pipelined solve of ``U x = y``; returns this rank's entries of ``x``."""
    p = ring.size
    root = p - 1
    full = _gather(ring, rank, y, root, GATHER_Y_TAG)
    u = full if full is not None else [0.0] * n
    m = n // p
    x = [0.0] * m
    v = [0.0] * (p - 1)

    for k, i in zip(reversed(range(m)), range(n - p + rank, -1, -p)):
        column = columns[k]
        if i < n - 1 and p > 1:
            v = ring.recv((i + 1) % p, rank, BACKWARD_TAG)
        diagonal = column[i]
        if diagonal == 0:
            raise SingularMatrixError("A is singular")
        xk = (u[i] + (v[0] if v else 0.0)) / diagonal
        x[k] = xk

        carried = [0.0] * (p - 1)
        for j in range(p - 2):
            row = i - 1 - j
            if row >= 0:
                carried[j] = v[j + 1] + u[row] - column[row] * xk
        if p > 1 and i - p + 1 >= 0:
            carried[p - 2] = u[i - p + 1] - column[i - p + 1] * xk
        v = carried

        if i > 0 and p > 1:
            ring.send(rank, (i - 1) % p, BACKWARD_TAG, v)

        for row in range(i - p, -1, -1):
            u[row] -= column[row] * xk
    return x


def _run_rank(
    ring: Ring,
    rank: int,
    n: int,
    columns: list[list[float]],
    rhs: Optional[list[float]],
) -> Optional[list[float]]:
    permuted = _eliminate(ring, rank, n, columns, rhs)
    y = _forward(ring, rank, n, columns, permuted)
    x = _backward(ring, rank, n, columns, y)
    return _gather(ring, rank, x, 0, GATHER_X_TAG)


def parallel_solve(
    matrix: Sequence[Sequence[float]], rhs: Sequence[float], nprocs: int
) -> list[float]:
    """Solve ``matrix @ x = rhs`` using ``nprocs`` ranks, each in its own thread."""
    n = len(matrix)
    if any(len(row) != n for row in matrix):
        raise ValueError("matrix must be square")
    if len(rhs) != n:
        raise ValueError(f"right-hand side has {len(rhs)} entries, expected {n}")
    blocks = distribute_columns(matrix, nprocs)
    b = [float(value) for value in rhs]
    ring = Ring(nprocs)
    results: list[Optional[list[float]]] = [None] * nprocs

    def worker(rank: int) -> None:
        try:
            results[rank] = _run_rank(
                ring, rank, n, blocks[rank], b if rank == 0 else None
            )
        except BaseException as exc:  # noqa: BLE001 - reported to the caller
            ring._abort(exc)

    threads = [
        threading.Thread(target=worker, args=(rank,), daemon=True)
        for rank in range(nprocs)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    if ring._error is not None:
        raise ring._error
    solution = results[0]
    return solution if solution is not None else []


def main(argv: Sequence[str] | None = None) -> int:
    """Solve the system in a file on a ring of ranks and check the answer."""
    args = list(sys.argv[1:] if argv is None else argv)
    usage = "Usage: pivotsolve-parallel file [nprocs]"
    if len(args) not in (1, 2):
        print(usage)
        return 0
    try:
        nprocs = int(args[1]) if len(args) == 2 else 1
    except ValueError:
        print(usage)
        return 1

    system = read_system(args[0])
    n = system.n
    print(f"N = {n}")

    start = time.perf_counter()
    try:
        x = parallel_solve(system.matrix, system.rhs, nprocs)
    except SingularMatrixError:
        print("A is singular! exit now!")
        return 1
    except ValueError as exc:
        print(f"{usage}: {exc}")
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