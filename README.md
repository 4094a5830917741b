# pivotsolve

Solve dense linear systems `A x = b` by Gaussian elimination with partial
(column) pivoting, followed by forward and back substitution. Pure Python,
no dependencies.

Two solvers are provided:

- a serial solver (`pivotsolve.serial`), and
- a column-cyclic solver (`pivotsolve.parallel`) that deals the columns of
  `A` out to a number of ranks. Each rank runs in its own thread and the
  ranks exchange pivot rows, multipliers and partial sums through a `Ring`
  of message channels. The triangular solves are pipelined around the ring.

A generator (`pivotsolve.gendata`) writes random test systems with a known
solution.

## Installation

```
pip install .
```

## Data files

A system of size `N` is stored in `data/Axb_N.txt`:

```
N = 4
<N*N matrix entries, one per line, column by column>
<N right-hand-side entries, one per line>
```

Its reference solution is stored in `data/Ref_N.txt`, one value per line.
Values are written with six decimal places.

## Command line

Generate a random system of size 128 whose matrix and solution entries are
integers in 1..10. It is written to `data/Axb_128.txt` and
`data/Ref_128.txt` under the current directory, which is created if needed:

```
pivotsolve-gendata 128
```

Solve it serially:

```
pivotsolve-serial data/Axb_128.txt
```

Solve it with the ring solver, optionally giving the number of ranks
(default 1; `N` must be a multiple of it):

```
pivotsolve-parallel data/Axb_128.txt 4
```

Both solvers print `N`, the elapsed time in microseconds and an estimated
GFLOPS figure, then read `data/Ref_N.txt` from the current directory and
report whether every entry of the answer is within 0.1 of the reference.
Up to three mismatching entries are listed. A singular matrix is reported
as `A is singular! exit now!` with exit status 1. Run without arguments,
each command prints its usage line.

## Library use

```python
from pivotsolve.serial import solve, SingularMatrixError
from pivotsolve.parallel import parallel_solve

matrix = [[2.0, 1.0], [1.0, 3.0]]
rhs = [3.0, 5.0]

x = solve(matrix, rhs)
x_ring = parallel_solve(matrix, rhs, 2)
```

Matrices are lists of rows.

- `pivotsolve.serial`: `solve`, and its steps `gauss_elimination` (returns
  the combined `L`/`U` factors and the permuted right-hand side),
  `forward_substitution`, `back_substitution` and `find_max`. A pivot
  smaller than `1e-6` in magnitude raises `SingularMatrixError`.
- `pivotsolve.parallel`: `parallel_solve(matrix, rhs, nprocs)`, the `Ring`
  message channels, and the helpers `distribute_columns`, `gather_columns`
  and `gather_vector` for the cyclic column layout. A size that is not a
  multiple of `nprocs` raises `ValueError`.
- `pivotsolve.fileio`: `LinearSystem`, `read_system`, `write_system`,
  `read_reference`, `write_reference`, `system_path`, `reference_path`,
  `compare` and `check`.
- `pivotsolve.gendata`: `generate`, `write_data` and `mat_vec_mul`.

## What it does not do

The ring solver runs all its ranks as threads inside one Python process.
It does not start separate processes or spread work across machines, and
it gives no speed-up over the serial solver; it shows how the distributed
algorithm moves data.