[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "arapdeform"
version = "0.1.0"
description = "As-rigid-as-possible mesh deformation with full and reduced subspace local/global solvers"
requires-python = ">=3.10"
keywords = [
    "arap",
    "asap",
    "mesh",
    "deformation",
    "geometry processing",
    "laplacian",
    "subspace",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["arapdeform"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
