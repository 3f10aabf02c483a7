import numpy as np
import pytest

from arapdeform.geometry import (
    NotDiskLikeError,
    find_boundary,
    get_neighbors,
    get_weights,
    isometric_proj,
    map_to_2d_boundary,
    normalize_to_one_2d,
)
from arapdeform.mesh import HalfEdge, WeightType

RIGHT_TRIANGLE = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])


def _half_edges(points, triples):
    p = np.asarray(points, dtype=float)
    return [
        HalfEdge(endpoints=(a, b), edge_vec=p[a] - p[b], opposite_point=c, belong_facet=0)
        for a, b, c in triples
    ]


def _triangle(points):
    return _half_edges(points, [(0, 1, 2), (2, 0, 1), (1, 2, 0)])


def test_neighbors_of_boundary_triangle_are_symmetric():
    neighbors = get_neighbors(_triangle(RIGHT_TRIANGLE), 3)
    for v, ring in enumerate(neighbors):
        assert sorted(ring) == sorted({0, 1, 2} - {v})


def test_uniform_weights_are_ones():
    w = get_weights(_triangle(RIGHT_TRIANGLE), RIGHT_TRIANGLE, WeightType.UNIFORM)
    assert w.shape == (3, 3)
    assert np.all(w == 1)


def test_cotangent_2_weights():
    w = get_weights(_triangle(RIGHT_TRIANGLE), RIGHT_TRIANGLE, WeightType.COTANGENT_2)
    assert np.allclose(w, w.T)
    assert w[0, 1] == pytest.approx(0.5)
    assert w[1, 2] == pytest.approx(0.0, abs=1e-12)


def test_cotangent_1_right_angle_gives_zero():
    w = get_weights(_triangle(RIGHT_TRIANGLE), RIGHT_TRIANGLE, WeightType.COTANGENT_1)
    assert len(w) == 3
    assert w[2] == pytest.approx(0.0, abs=1e-12)
    assert w[0] == pytest.approx(w[1])


def test_mean_value_weights_positive():
    w = get_weights(_triangle(RIGHT_TRIANGLE), RIGHT_TRIANGLE, WeightType.MEAN_VALUE)
    assert len(w) == 3
    assert np.all(w > 0)


def test_unsupported_weight_type_raises():
    with pytest.raises(ValueError):
        get_weights(_triangle(RIGHT_TRIANGLE), RIGHT_TRIANGLE, WeightType.DH)


def test_boundary_map_lies_on_circle():
    verts = np.array([[0.0, 0, 0], [2.0, 0, 0], [2.0, 1.0, 0], [0.0, 1.0, 0]])
    mapped = map_to_2d_boundary(verts, [0, 1, 2, 3], 1)
    radii = np.linalg.norm(mapped, axis=1)
    assert np.allclose(radii, 1 / np.sqrt(np.pi))
    assert np.allclose(mapped[-1], [1 / np.sqrt(np.pi), 0.0])


@pytest.mark.parametrize(
    "triples",
    [
        [(0, 1, 2), (2, 0, 1), (1, 2, 0)],
        [(0, 1, 2), (1, 2, 0), (2, 0, 1)],
    ],
)
def test_isometric_projection_preserves_shape(triples):
    points = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 1.0], [0.5, 1.5, 0.3]])
    half_edges = _half_edges(points, triples)
    lengths = [np.linalg.norm(e.edge_vec) for e in half_edges]
    isometric_proj(half_edges)
    assert all(e.edge_vec.shape == (2,) for e in half_edges)
    assert np.allclose([np.linalg.norm(e.edge_vec) for e in half_edges], lengths)
    assert np.allclose(sum(e.edge_vec for e in half_edges), 0.0)


def _loop_edges(n):
    edges = np.zeros((n, n), dtype=int)
    for a, b in [(0, 1), (1, 2), (2, 3), (3, 0)]:
        edges[a, b] = 1
    first = HalfEdge(endpoints=(0, 1), edge_vec=np.zeros(3), opposite_point=2, belong_facet=0)
    return [first], edges


def test_find_boundary_walks_loop():
    half_edges, edges = _loop_edges(6)
    assert find_boundary(half_edges, edges) == [0, 1, 2, 3]


def test_find_boundary_too_long_loop_raises():
    half_edges, edges = _loop_edges(5)
    with pytest.raises(NotDiskLikeError):
        find_boundary(half_edges, edges)


def test_find_boundary_without_boundary_raises():
    with pytest.raises(NotDiskLikeError):
        find_boundary([], np.zeros((4, 4)))


def test_normalize_to_unit_square():
    res = np.array([[1.0, 2.0, 9.0], [5.0, 3.0, 0.0], [3.0, 2.5, 1.0]])
    out = normalize_to_one_2d(res)
    assert out.shape == (3, 2)
    assert out[:, 0].min() == pytest.approx(0.0)
    assert out[:, 0].max() == pytest.approx(1.0)
    assert out[:, 1].min() + out[:, 1].max() == pytest.approx(1.0)