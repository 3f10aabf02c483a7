"""Local/global energy solved in a sampled harmonic subspace."""

from __future__ import annotations

import random
from collections.abc import Sequence

import numpy as np
import scipy.sparse as sp
from scipy.linalg import lu_factor, lu_solve
from scipy.sparse.linalg import splu

from .energy import LocalGlobalEnergy
from .mesh import Method


def _selector(indices: Sequence[int], n: int) -> sp.csr_matrix:
    count = len(indices)
    return sp.csr_matrix(
        (np.ones(count), (np.arange(count), np.asarray(indices, dtype=int))), shape=(count, n)
    )


class ReducedLocalGlobalEnergy(LocalGlobalEnergy):
    """Energy whose global step is restricted to a subspace spanned by sampled vertices.

    The remaining vertices are expressed as smooth (bi-Laplacian) combinations
    of the sampled ones; anchors are re-pinned after every solve.
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
        subspace_res: float = 1.0,
        restore_rest_pose: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(input_mesh, method, lam, mass, g, dt, offset)
        self.linearly_precise = bool(restore_rest_pose)
        self.subspace_dim = int(subspace_res * self.vert_size())
        self.rng = rng if rng is not None else random.Random()
        self.subspace_indices: set[int] = set()
        self.subspace: np.ndarray | None = None
        self._reduced = None
        self.q = self.compute_q()

    def local_global_solve(self) -> None:
        """One reduced iteration; anchors are then set to their targets."""
        self.local_phase()
        self.res = self.subspace @ self.global_phase()
        for idx, point in zip(self.anchors, self.anchor_points):
            self.res[idx] = point

    def solver_compute(self) -> None:
        """Sample a new subspace and factorise the reduced system."""
        if self.laplacian is None:
            raise RuntimeError("compute_laplacian must be called before solver_compute")
        self.compute_subspace()
        reduced = self.subspace.T @ (self.laplacian @ self.subspace)
        self._reduced = lu_factor(reduced)

    def global_phase(self) -> np.ndarray:
        """Solve the reduced global step; returns subspace coordinates."""
        if self._reduced is None:
            raise RuntimeError("solver_compute must be called before solving")
        return lu_solve(self._reduced, self.subspace.T @ self.compute_rhs())

    def compute_subspace(self) -> np.ndarray:
        """Build the n x h basis from a fresh sample of subspace vertices."""
        self.sample_subspace()
        n = self.vert_size()
        selected = sorted(self.subspace_indices)
        others = [i for i in range(n) if i not in self.subspace_indices]
        s_mat = _selector(selected, n)
        t_mat = _selector(others, n)
        basis = s_mat.T.toarray()
        if others and selected:
            qtt = (t_mat @ self.q @ t_mat.T).tocsc()
            qts = (t_mat @ self.q @ s_mat.T).toarray()
            x = splu(qtt).solve(qts)
            basis = basis - np.asarray(t_mat.T @ x)
        if self.anchors:
            basis[self.anchors] = 0.0
        self.subspace = basis
        return basis

    def sample_subspace(self) -> set[int]:
        """Pick random non-anchor vertices to span the subspace."""
        n = self.vert_size()
        self.subspace_indices = set()
        max_size = min(self.subspace_dim, n - len(self.anchors))
        while len(self.subspace_indices) < max_size:
            idx = self.rng.randrange(n)
            if idx not in self._anchor_set:
                self.subspace_indices.add(idx)
        return self.subspace_indices

    def compute_q(self) -> sp.csc_matrix:
        """Smoothness matrix used to extend the sampled vertices to the mesh."""
        n = self.vert_size()
        rows: list[int] = []
        cols: list[int] = []
        vals: list[float] = []
        row_sum = np.zeros(n)
        for edge in self.half_edges:
            a, b = edge.endpoints
            w = self.weights[a, b]
            row_sum[a] += w
            rows.append(a)
            cols.append(b)
            vals.append(-w)
            if edge.inverse_idx == -1:
                row_sum[b] += w
                rows.append(b)
                cols.append(a)
                vals.append(-w)
        rows.extend(range(n))
        cols.extend(range(n))
        vals.extend(row_sum.tolist())
        lap = sp.coo_matrix((vals, (rows, cols)), shape=(n, n)).tocsr()

        if self.linearly_precise:
            rows, cols, vals = [], [], []
            for edge in self.half_edges:
                if edge.inverse_idx != -1:
                    continue
                a, b = edge.endpoints
                c = edge.opposite_point
                w_bc = self.weights[b, c]
                w_ca = self.weights[c, a]
                for r, col, v in (
                    (a, a, w_ca),
                    (b, b, w_bc),
                    (a, b, w_bc),
                    (b, a, w_ca),
                    (a, c, -w_ca - w_bc),
                ):
                    rows.append(r)
                    cols.append(col)
                    vals.append(v)
            normal = sp.coo_matrix((vals, (rows, cols)), shape=(n, n)).tocsr()
            lap = lap + normal
        self.q = (lap.T @ lap).tocsc()
        return self.q