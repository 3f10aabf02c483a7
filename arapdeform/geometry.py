"""Mesh geometry helpers: neighbourhoods, edge weights, boundaries, projections."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .mesh import HalfEdge, WeightType


class NotDiskLikeError(ValueError):
    """Raised when a mesh has no usable single boundary loop."""


def _unit(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v)
    return v / norm if norm > 0 else v


def get_neighbors(half_edges: Sequence[HalfEdge], vert_count: int) -> list[list[int]]:
    """One-ring neighbour lists of every vertex."""
    neighbors: list[list[int]] = [[] for _ in range(vert_count)]
    for edge in half_edges:
        a, b = int(edge.endpoints[0]), int(edge.endpoints[1])
        neighbors[a].append(b)
        if edge.inverse_idx == -1:
            neighbors[b].append(a)
    return neighbors


def get_weights(
    half_edges: Sequence[HalfEdge], verts: np.ndarray, weight_type: WeightType
) -> np.ndarray:
    """Edge weights.

    UNIFORM and COTANGENT_2 give an (n, n) matrix indexed by vertex pair;
    COTANGENT_1 and MEAN_VALUE give one weight per half-edge.
    """
    verts = np.asarray(verts, dtype=float)
    n = len(verts)
    weight_type = WeightType(weight_type)

    if weight_type is WeightType.UNIFORM:
        return np.ones((n, n))

    if weight_type is WeightType.COTANGENT_1:
        weights = np.zeros(len(half_edges))
        with np.errstate(divide="ignore", invalid="ignore"):
            for i, edge in enumerate(half_edges):
                a, b = edge.endpoints
                c = edge.opposite_point
                cos_theta = np.dot(_unit(verts[c] - verts[a]), _unit(verts[c] - verts[b]))
                weights[i] = cos_theta / np.sqrt(1 - cos_theta * cos_theta)
        return weights

    if weight_type is WeightType.COTANGENT_2:
        weights = np.zeros((n, n))

        def half_cot(c: int, a: int, b: int) -> float:
            cos_theta = abs(np.dot(_unit(verts[c] - verts[a]), _unit(verts[c] - verts[b])))
            return 0.5 * cos_theta / np.sqrt(1 - cos_theta * cos_theta)

        with np.errstate(divide="ignore", invalid="ignore"):
            for edge in half_edges:
                a, b = edge.endpoints
                weights[a, b] = half_cot(edge.opposite_point, a, b)
                if edge.inverse_idx != -1:
                    opposite = half_edges[edge.inverse_idx].opposite_point
                    weights[a, b] += half_cot(opposite, a, b)
                else:
                    weights[b, a] = weights[a, b]
        return weights

    if weight_type is WeightType.MEAN_VALUE:
        weights = np.zeros(len(half_edges))
        with np.errstate(divide="ignore", invalid="ignore"):
            for i, edge in enumerate(half_edges):
                a, b = edge.endpoints
                length = np.linalg.norm(edge.edge_vec)
                v0 = _unit(verts[a] - verts[b])
                opposites = [edge.opposite_point]
                if edge.inverse_idx != -1:
                    opposites.append(half_edges[edge.inverse_idx].opposite_point)
                for c in opposites:
                    v1 = _unit(verts[a] - verts[c])
                    alpha = math.acos(float(np.clip(np.dot(v0, v1), -1.0, 1.0)))
                    weights[i] += np.tan(alpha * 0.5) / length
        return weights

    raise ValueError(f"unsupported weight type: {weight_type.name}")


def map_to_2d_boundary(
    verts: np.ndarray, boundary_points: Sequence[int], alpha: float
) -> np.ndarray:
    """Place boundary vertices on a circle of unit area by arc-length parameter."""
    verts = np.asarray(verts, dtype=float)
    k = len(boundary_points)
    cumulative = np.zeros(k)
    total = 0.0
    for i, p in enumerate(boundary_points):
        q = boundary_points[(i + 1) % k]
        total += np.linalg.norm(verts[p] - verts[q]) ** alpha
        cumulative[i] = total
    angles = 2.0 * np.pi * cumulative / total
    radius = 1.0 / np.sqrt(np.pi)
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


def isometric_proj(half_edges: list[HalfEdge]) -> None:
    """Replace each triangle's edge vectors by an isometric 2D embedding, in place."""
    for i in range(0, len(half_edges), 3):
        e0, e1, e2 = half_edges[i], half_edges[i + 1], half_edges[i + 2]
        a, b = e0.endpoints
        c, c1 = e1.endpoints
        flag = False
        if c in (a, b):
            c, c1 = c1, c
            flag = True
        dist_ab = np.linalg.norm(e0.edge_vec)
        if c1 == a:
            dist_ac = np.linalg.norm(e1.edge_vec)
            cos = np.dot(e0.edge_vec, e1.edge_vec) / dist_ab / dist_ac
            if not flag:
                cos = -cos
            sin = math.sqrt(max(0.0, 1 - cos * cos))
            e0.edge_vec = np.array([-dist_ab, 0.0])
            e1.edge_vec = np.array([-dist_ac * cos, -dist_ac * sin])
            if not flag:
                e1.edge_vec = -e1.edge_vec
            e2.edge_vec = np.array([dist_ac * cos - dist_ab, dist_ac * sin])
            if e2.endpoints[1] == c:
                e2.edge_vec = -e2.edge_vec
        elif c1 == b:
            dist_ac = np.linalg.norm(e2.edge_vec)
            p, q = e2.endpoints
            cos = np.dot(e0.edge_vec, e2.edge_vec) / dist_ab / dist_ac
            if p == c:
                cos = -cos
            sin = math.sqrt(max(0.0, 1 - cos * cos))
            e0.edge_vec = np.array([-dist_ab, 0.0])
            e2.edge_vec = np.array([dist_ac * cos, dist_ac * sin])
            if q == c:
                e2.edge_vec = -e2.edge_vec
            e1.edge_vec = np.array([dist_ac * cos - dist_ab, dist_ac * sin])
            if flag:
                e1.edge_vec = -e1.edge_vec


def find_boundary(half_edges: Sequence[HalfEdge], edges: np.ndarray) -> list[int]:
    """Walk the boundary loop starting from the first boundary half-edge."""
    present = np.asarray(edges) != 0
    n = present.shape[1]
    fix: list[int] = []
    begin = cur = prev = -1
    for edge in half_edges:
        if edge.inverse_idx == -1:
            a, b = int(edge.endpoints[0]), int(edge.endpoints[1])
            fix = [a, b]
            begin, prev, cur = a, a, b
            break
    while cur != begin:
        candidates = np.flatnonzero(present[cur, :] ^ present[:, cur])
        following = next((int(i) for i in candidates if i != prev), None)
        if following is None:
            raise NotDiskLikeError("Model is not disk-like!")
        prev, cur = cur, following
        fix.append(cur)
        if len(fix) >= n:
            raise NotDiskLikeError("Model is not disk-like!")
    if len(fix) < 3:
        raise NotDiskLikeError("Model is not disk-like!")
    return fix[:-1]


def normalize_to_one_2d(res: np.ndarray) -> np.ndarray:
    """Scale 2D coordinates into the unit square, centring the shorter side."""
    xy = np.asarray(res, dtype=float)[:, :2]
    lo = xy.min(axis=0)
    hi = xy.max(axis=0)
    dx, dy = hi - lo
    span = max(dx, dy)
    scale = 1.0 / span
    out = (xy - lo) * scale
    if span == dx:
        out[:, 1] += 0.5 * (1.0 - scale * dy)
    else:
        out[:, 0] += 0.5 * (1.0 - scale * dx)
    return out