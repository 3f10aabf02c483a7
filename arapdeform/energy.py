"""Local/global as-rigid-as-possible deformation energy with optional gravity."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import splu

from .algebra import binary_find_root, covariance_3x3, jacobian_2x2
from .geometry import get_neighbors, get_weights
from .loader import read_obj
from .mesh import Method, WeightType, half_edge_key


class LocalGlobalEnergy:
    """Deformable mesh solved by alternating local rotation fits and a global solve.

    Anchored vertices are pinned to ``anchor_points``; the rest follow the
    energy. When ``g`` is non-zero an implicit-Euler gravity term is added.
    """

    def __init__(
        self,
        input_mesh,
        method: Method = Method.ARAP,
        lam: float = 0.0,
        mass: float = 1e-4,
        g: float = 5.0,
        dt: float = 0.1,
        offset: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        self.method = Method(method)
        self.lam = float(lam)
        self.mass = float(mass)
        self.g = float(g)
        self.dt = float(dt)

        mesh = read_obj(input_mesh)
        self.faces = mesh.faces
        self.edges = mesh.edges
        self.area = mesh.area
        self.verts = mesh.verts + np.asarray(offset, dtype=float)
        self.half_edges = mesh.half_edges

        n = len(self.verts)
        self.res = self.verts.copy()
        self.prev_res = self.verts.copy()
        self.local_rotations = np.tile(np.eye(3), (n, 1, 1))
        self.weights = get_weights(self.half_edges, self.verts, WeightType.COTANGENT_2)
        self.half_edges.sort(key=half_edge_key)
        self.neighbors = get_neighbors(self.half_edges, n)

        self.anchors: list[int] = []
        self.anchor_points: list[np.ndarray] = []
        self._anchor_set: set[int] = set()
        self._anchor_in_batch: list[bool] = []

        self.laplacian: sp.csc_matrix | None = None
        self._solver = None

    # ------------------------------------------------------------------ energy

    def __call__(self, res: np.ndarray) -> float:
        """Energy of the configuration ``res`` (one vertex per row)."""
        res = np.asarray(res, dtype=float)
        flat_weights = self.weights.ravel()
        energy = 0.0
        for i in range(len(self.half_edges) // 3):
            jac = jacobian_2x2(self.half_edges, res, i)
            diff = jac - self._local_target(jac, res, i, flat_weights)
            energy += self.area[i] * float(np.sum(diff * diff))
        if self.g != 0.0:
            pred = 2 * res - self.prev_res
            pred[:, 1] -= self.g * self.dt * self.dt
            d = res - pred
            energy += float(np.sum(d * d)) / self.dt / self.dt / 2
        return energy

    def _local_target(
        self, jac: np.ndarray, res: np.ndarray, face: int, flat_weights: np.ndarray
    ) -> np.ndarray:
        if self.method is Method.HYBRID:
            c1 = c2 = c3 = 0.0
            for k in range(face * 3, face * 3 + 3):
                edge = self.half_edges[k]
                a, b = edge.endpoints
                v = edge.edge_vec[:2]
                u = res[a, :2] - res[b, :2]
                w = flat_weights[k]
                c1 += w * (v[0] * v[0] + v[1] * v[1])
                c2 += w * (u[0] * v[0] + u[1] * v[1])
                c3 += w * (u[0] * v[1] - u[1] * v[0])
            ratio = c3 / c2
            coe3 = 2 * self.lam * (1 + ratio * ratio)
            coe1 = c1 - 2 * self.lam
            coe0 = -c2
            entry = binary_find_root(lambda x: coe3 * x * x * x + coe1 * x + coe0)
            return np.array([[entry, entry * ratio], [-entry * ratio, entry]])

        u, s, vt = np.linalg.svd(jac)
        if self.method is Method.ARAP:
            target = u @ vt
        else:
            target = 0.5 * (s[0] + s[1]) * (u @ vt)
        if np.linalg.det(target) < 0:
            flipped = vt.copy()
            flipped[1] = -flipped[1]
            if self.method is Method.ARAP:
                target = u @ flipped
            else:
                target = 0.5 * (s[0] - s[1]) * (u @ flipped)
        return target

    # ------------------------------------------------------------------ queries

    def vert_size(self) -> int:
        """Number of vertices."""
        return len(self.verts)

    def anchor_in_region(self, i: int) -> bool:
        """Whether anchor ``i`` was added by a region selection."""
        return bool(self._anchor_in_batch[i])

    # ------------------------------------------------------------------ anchors

    def add_anchor(self, idx: int, point: Sequence[float], batch_op: bool = False) -> None:
        """Pin vertex ``idx`` to ``point``; a vertex already anchored is left alone."""
        idx = int(idx)
        if idx in self._anchor_set:
            return
        self._anchor_set.add(idx)
        self.anchors.append(idx)
        self.anchor_points.append(np.array(point, dtype=float).reshape(3))
        self._anchor_in_batch.append(bool(batch_op))

    def clear_anchors(self) -> None:
        """Remove all anchors."""
        self.anchors.clear()
        self._anchor_set.clear()
        self.anchor_points.clear()
        self._anchor_in_batch.clear()

    def restore_rest_pose(self) -> None:
        """Move every anchor back to its rest position."""
        self.anchor_points = [self.verts[idx].copy() for idx in self.anchors]

    # ------------------------------------------------------------------ solve

    def local_global_solve(self) -> None:
        """One local/global iteration."""
        self.local_phase()
        self.res = self.global_phase()

    def compute_laplacian(self) -> None:
        """Assemble the system matrix with anchor rows replaced by identity rows."""
        n = self.vert_size()
        rows: list[int] = []
        cols: list[int] = []
        vals: list[float] = []
        row_sum = np.zeros(n)
        for edge in self.half_edges:
            a, b = edge.endpoints
            w = self.weights[a, b]
            a_free = a not in self._anchor_set
            b_free = b not in self._anchor_set
            if a_free:
                row_sum[a] += w
            if a_free and b_free:
                rows.append(a)
                cols.append(b)
                vals.append(-w)
            if edge.inverse_idx == -1:
                if b_free:
                    row_sum[b] += w
                if a_free and b_free:
                    rows.append(b)
                    cols.append(a)
                    vals.append(-w)
        if self.g != 0.0:
            row_sum += self.mass / self.dt / self.dt
        if self.anchors:
            row_sum[self.anchors] = 1.0
        rows.extend(range(n))
        cols.extend(range(n))
        vals.extend(row_sum.tolist())
        self.laplacian = sp.coo_matrix((vals, (rows, cols)), shape=(n, n)).tocsc()

    def solver_compute(self) -> None:
        """Factorise the system matrix."""
        if self.laplacian is None:
            raise RuntimeError("compute_laplacian must be called before solver_compute")
        self._solver = splu(self.laplacian)

    def global_phase(self) -> np.ndarray:
        """Solve for new vertex positions given the current rotations."""
        if self._solver is None:
            raise RuntimeError("solver_compute must be called before solving")
        return self._solver.solve(self.compute_rhs())

    def compute_rhs(self) -> np.ndarray:
        """Right-hand side of the global step; also records the previous shape."""
        n = self.vert_size()
        rhs = np.zeros((n, 3))
        for idx, point in zip(self.anchors, self.anchor_points):
            rhs[idx] = point
        rot = self.local_rotations
        for edge in self.half_edges:
            a, b = edge.endpoints
            w = self.weights[a, b]
            a_free = a not in self._anchor_set
            b_free = b not in self._anchor_set
            rotated = 0.5 * w * (rot[a] + rot[b]) @ edge.edge_vec
            if a_free:
                rhs[a] += rotated
                if not b_free:
                    rhs[a] += w * rhs[b]
            if edge.inverse_idx == -1 and b_free:
                rhs[b] -= rotated
                if not a_free:
                    rhs[b] += w * rhs[a]
        if self.g != 0.0:
            pred = (2 * self.res - self.prev_res) * self.mass / self.dt / self.dt
            pred[:, 1] -= self.mass * self.g
            if self.anchors:
                pred[self.anchors] = 0.0
            rhs += pred
        self.prev_res = self.res.copy()
        return rhs

    def local_phase(self) -> None:
        """Fit a rotation (ARAP) or similarity (ASAP) to each vertex's one-ring."""
        for i in range(self.vert_size()):
            cov = covariance_3x3(self.neighbors[i], self.verts, self.res, self.weights, i)
            u, sv, vt = np.linalg.svd(cov)
            if self.method is Method.ARAP:
                rot = u @ vt
            elif self.method is Method.ASAP:
                rot = sv.sum() / 3.0 * (u @ vt)
            else:
                continue
            if np.linalg.det(rot) < 0:
                k = int(np.argmin(sv))
                flipped = vt.copy()
                flipped[k] = -flipped[k]
                if self.method is Method.ARAP:
                    rot = u @ flipped
                else:
                    rot = (sv.sum() - 2 * sv[k]) * (u @ flipped)
            self.local_rotations[i] = rot