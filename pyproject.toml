[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pivotsolve"
version = "0.1.0"
description = "Dense linear system solver using LU factorisation with partial (column) pivoting, serial and on a ring of threaded ranks"
requires-python = ">=3.10"
dependencies = []
keywords = ["linear algebra", "gaussian elimination", "lu", "pivoting", "linear systems"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pivotsolve-serial = "pivotsolve.serial:main"
pivotsolve-parallel = "pivotsolve.parallel:main"
pivotsolve-gendata = "pivotsolve.gendata:main"

[tool.hatch.build.targets.wheel]
packages = ["pivotsolve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
