import numpy as np
import pytest

from arapdeform.energy import LocalGlobalEnergy
from arapdeform.loader import MeshFormatError
from arapdeform.mesh import Method

ANCHORS = (0, 2, 6, 8)


def _grid_obj(path):
    lines = [f"v {x} {y} 0" for y in range(3) for x in range(3)]
    for j in range(2):
        for i in range(2):
            v00 = j * 3 + i + 1
            v10, v01, v11 = v00 + 1, v00 + 3, v00 + 4
            lines.append(f"f {v00} {v10} {v11}")
            lines.append(f"f {v00} {v11} {v01}")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def mesh_path(tmp_path):
    return _grid_obj(tmp_path / "grid.obj")


def _energy(path, g=0.0, offset=(0.0, 0.0, 0.0), method=Method.ARAP):
    return LocalGlobalEnergy(path, method, 0.0, 1e-4, g, 0.1, offset)


def _anchor_corners(energy, shift=(0.0, 0.0, 0.0)):
    for idx in ANCHORS:
        energy.add_anchor(idx, energy.verts[idx] + np.asarray(shift))


def test_offset_shifts_every_vertex(mesh_path):
    base = _energy(mesh_path)
    moved = _energy(mesh_path, offset=(1.0, 0.0, 0.0))
    assert base.vert_size() == 9
    assert np.allclose(moved.res - base.res, [1.0, 0.0, 0.0])


def test_add_anchor_ignores_duplicates(mesh_path):
    energy = _energy(mesh_path)
    energy.add_anchor(3, (0.0, 1.0, 0.0))
    energy.add_anchor(3, (5.0, 5.0, 5.0))
    energy.add_anchor(4, (1.0, 1.0, 0.0), True)
    assert energy.anchors == [3, 4]
    assert np.allclose(energy.anchor_points[0], [0.0, 1.0, 0.0])
    assert energy.anchor_in_region(1) is True
    assert energy.anchor_in_region(0) is False


def test_clear_anchors(mesh_path):
    energy = _energy(mesh_path)
    _anchor_corners(energy)
    energy.clear_anchors()
    assert energy.anchors == []
    assert energy.anchor_points == []
    energy.add_anchor(0, energy.verts[0])
    assert energy.anchors == [0]


def test_restore_rest_pose(mesh_path):
    energy = _energy(mesh_path)
    _anchor_corners(energy, shift=(0.3, -0.2, 0.1))
    energy.restore_rest_pose()
    for idx, point in zip(energy.anchors, energy.anchor_points):
        assert np.allclose(point, energy.verts[idx])


def test_laplacian_without_anchors_is_symmetric_with_zero_row_sums(mesh_path):
    energy = _energy(mesh_path)
    energy.compute_laplacian()
    dense = energy.laplacian.toarray()
    assert np.allclose(dense, dense.T)
    assert np.allclose(dense.sum(axis=1), 0.0)
    assert np.all(np.diag(dense) > 0)


def test_laplacian_anchor_rows_are_identity(mesh_path):
    energy = _energy(mesh_path)
    _anchor_corners(energy)
    energy.compute_laplacian()
    dense = energy.laplacian.toarray()
    for idx in ANCHORS:
        expected = np.zeros(9)
        expected[idx] = 1.0
        assert np.allclose(dense[idx], expected)
        free = [i for i in range(9) if i not in ANCHORS]
        assert np.allclose(dense[free, idx], 0.0)


def test_local_phase_at_rest_gives_identity(mesh_path):
    energy = _energy(mesh_path)
    energy.local_phase()
    for rot in energy.local_rotations:
        assert np.allclose(rot, np.eye(3), atol=1e-9)


def test_rest_pose_is_fixed_point(mesh_path):
    energy = _energy(mesh_path)
    _anchor_corners(energy)
    energy.compute_laplacian()
    energy.solver_compute()
    rest = energy.res.copy()
    energy.local_global_solve()
    assert np.allclose(energy.res, rest, atol=1e-9)


def test_translated_anchors_translate_mesh(mesh_path):
    energy = _energy(mesh_path)
    shift = np.array([0.25, -0.5, 0.75])
    _anchor_corners(energy, shift=shift)
    energy.compute_laplacian()
    energy.solver_compute()
    rest = energy.res.copy()
    energy.local_global_solve()
    assert np.allclose(energy.res, rest + shift, atol=1e-9)


def test_gravity_step_without_anchors_falls_uniformly(mesh_path):
    g, dt = 5.0, 0.1
    energy = LocalGlobalEnergy(mesh_path, Method.ARAP, 0.0, 1e-4, g, dt, (0.0, 0.0, 0.0))
    energy.compute_laplacian()
    energy.solver_compute()
    rest = energy.res.copy()
    energy.local_global_solve()
    assert np.allclose(energy.res, rest - np.array([0.0, g * dt * dt, 0.0]), atol=1e-8)
    assert np.allclose(energy.prev_res, rest)


def test_compute_rhs_records_previous_shape(mesh_path):
    energy = _energy(mesh_path)
    energy.res = energy.res + 1.0
    energy.compute_rhs()
    assert np.allclose(energy.prev_res, energy.res)


def test_solving_before_factorisation_raises(mesh_path):
    energy = _energy(mesh_path)
    with pytest.raises(RuntimeError):
        energy.solver_compute()
    with pytest.raises(RuntimeError):
        energy.global_phase()


def test_energy_invariant_under_rigid_motion_in_plane(mesh_path):
    energy = _energy(mesh_path)
    rng = np.random.default_rng(7)
    res = energy.res + rng.normal(scale=0.05, size=energy.res.shape)
    theta = 0.7
    rot = np.array(
        [
            [np.cos(theta), -np.sin(theta), 0.0],
            [np.sin(theta), np.cos(theta), 0.0],
            [0.0, 0.0, 1.0],
        ]
    )
    base = energy(res)
    assert base >= 0.0
    assert energy(res + np.array([2.0, -1.0, 0.5])) == pytest.approx(base, rel=1e-9, abs=1e-12)
    assert energy(res @ rot.T) == pytest.approx(base, rel=1e-7, abs=1e-12)


def test_non_triangle_mesh_rejected(tmp_path):
    path = tmp_path / "quad.obj"
    path.write_text("v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3 4\n")
    with pytest.raises(MeshFormatError):
        LocalGlobalEnergy(path, Method.ARAP, 0.0, 1e-4, 0.0, 0.1, (0.0, 0.0, 0.0))