"""Dense linear system solving by Gaussian elimination with partial pivoting.

Serial and ring-of-ranks solvers, data file reading and writing, and random
test system generation.
"""

__version__ = "0.1.0"