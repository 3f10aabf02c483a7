"""Half-edge records, enumerations and numeric constants shared by the solver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import numpy as np

BETA = 50000
EPS = 1e-6
NEWTON_STEP_SIZE = 0.5
MAX_NEWTON_ITRS = 200
INF_FOR_BFR = 1e20


@dataclass
class HalfEdge:
    """A directed edge of a triangle mesh.

    ``edge_vec`` is the vector from the second endpoint to the first one,
    in 3D after loading and in 2D after an isometric projection.
    ``inverse_idx`` is the index of the opposite half-edge, or -1 on the boundary.
    """

    endpoints: tuple[int, int]
    edge_vec: np.ndarray
    opposite_point: int
    belong_facet: int
    inverse_idx: int = -1


class WeightType(IntEnum):
    """Kinds of edge weights."""

    UNIFORM = 0
    WACHSPRESS = 1
    DH = 2
    MEAN_VALUE = 3
    COTANGENT_1 = 4
    COTANGENT_2 = 5


class Method(IntEnum):
    """Local-step variants."""

    ARAP = 0
    ASAP = 1
    HYBRID = 2


class Task(IntEnum):
    """What the solver is used for."""

    PARAM = 0
    DEFORM = 1


def half_edge_key(edge: HalfEdge) -> tuple[int, int]:
    """Sort key ordering half-edges by first, then second endpoint."""
    return int(edge.endpoints[0]), int(edge.endpoints[1])