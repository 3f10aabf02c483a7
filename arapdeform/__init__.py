"""As-rigid-as-possible mesh deformation with full and reduced local/global solvers."""

__version__ = "0.1.0"

__all__ = [
    "algebra",
    "energy",
    "geometry",
    "image",
    "loader",
    "mesh",
    "output",
    "reduced",
]