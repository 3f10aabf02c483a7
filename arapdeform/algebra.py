"""Small linear-algebra helpers for the local step."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np

from .mesh import EPS, INF_FOR_BFR, MAX_NEWTON_ITRS, NEWTON_STEP_SIZE, HalfEdge


def binary_find_root(fun: Callable[[float], float]) -> float:
    """Find a root of a monotone increasing function by bisection from 0."""
    x = 0.0
    y = fun(x)
    if y < -EPS:
        left, right = x, INF_FOR_BFR
    elif y > EPS:
        left, right = -INF_FOR_BFR, x
    else:
        return x
    while right - left > EPS:
        x = (left + right) / 2
        if x in (left, right):
            break
        y = fun(x)
        if y < -EPS:
            left = x
        elif y > EPS:
            right = x
        else:
            break
    return x


def newton_optimizer(
    x: Sequence[float],
    compute_j: Callable[[np.ndarray], np.ndarray],
    compute_h: Callable[[np.ndarray], np.ndarray],
) -> np.ndarray:
    """Damped Newton iteration; returns the optimised point."""
    x = np.array(x, dtype=float)
    prev = np.zeros_like(x)
    for _ in range(MAX_NEWTON_ITRS):
        diff = np.linalg.norm(x - prev)
        prev_norm = np.linalg.norm(prev)
        if prev_norm == 0.0:
            if diff == 0.0:
                break
        elif diff / prev_norm <= EPS:
            break
        jac = np.asarray(compute_j(x), dtype=float)
        hess = np.asarray(compute_h(x), dtype=float)
        prev = x.copy()
        if np.linalg.matrix_rank(hess) < hess.shape[0]:
            raise np.linalg.LinAlgError("Hessian is singular")
        x = x - NEWTON_STEP_SIZE * np.linalg.solve(hess, jac)
    return x


def covariance_3x3(
    neighbors: Sequence[int],
    verts: np.ndarray,
    res: np.ndarray,
    weights: np.ndarray,
    cur: int,
) -> np.ndarray:
    """Weighted covariance of deformed against rest edges around vertex ``cur``."""
    s = np.zeros((3, 3))
    for nb in neighbors:
        s += weights[cur, nb] * np.outer(res[cur] - res[nb], verts[cur] - verts[nb])
    return s


def jacobian_2x2(half_edges: Sequence[HalfEdge], res: np.ndarray, cur: int) -> np.ndarray:
    """Jacobian of the map from the 2D rest triangle ``cur`` to its image."""
    first, second = half_edges[cur * 3], half_edges[cur * 3 + 1]
    a, b = first.endpoints
    c, d = second.endpoints
    origin = np.vstack([first.edge_vec[:2], second.edge_vec[:2]])
    rhs = np.vstack([res[a, :2] - res[b, :2], res[c, :2] - res[d, :2]])
    jt, *_ = np.linalg.lstsq(origin, rhs, rcond=None)
    return jt.T


def covariance_2x2(
    half_edges: Sequence[HalfEdge],
    res: np.ndarray,
    weights: np.ndarray,
    cur: int,
) -> np.ndarray:
    """Weighted covariance of the three edges of triangle ``cur``."""
    s = np.zeros((2, 2))
    for i in range(cur * 3, cur * 3 + 3):
        edge = half_edges[i]
        a, b = edge.endpoints
        u = res[a, :2] - res[b, :2]
        s += weights[i] * np.outer(u, edge.edge_vec[:2])
    return s


class RJacobian:
    """Gradient of the hybrid local energy in the two rotation parameters."""

    def __init__(self, lam: float, c1: float, c2: float, c3: float) -> None:
        self.lam = lam
        self.c1 = c1
        self.c2 = c2
        self.c3 = c3

    def __call__(self, x: np.ndarray) -> np.ndarray:
        x0, x1 = float(x[0]), float(x[1])
        r = x0 * x0 + x1 * x1 - 1
        return np.array(
            [
                4 * self.lam * x0 * r + 2 * self.c1 * x0 - 2 * self.c2,
                4 * self.lam * x1 * r + 2 * self.c1 * x1 - 2 * self.c3,
            ]
        )


class RHessian:
    """Hessian of the hybrid local energy in the two rotation parameters."""

    def __init__(self, lam: float, c1: float) -> None:
        self.lam = lam
        self.c1 = c1

    def __call__(self, x: np.ndarray) -> np.ndarray:
        x0, x1 = float(x[0]), float(x[1])
        off = 8 * self.lam * x0 * x1
        return np.array(
            [
                [4 * self.lam * (3 * x0 * x0 + x1 * x1 - 1) + 2 * self.c1, off],
                [off, 4 * self.lam * (3 * x1 * x1 + x0 * x0 - 1) + 2 * self.c1],
            ]
        )