# arapdeform

Shape deformation of triangle meshes with the as-rigid-as-possible (ARAP)
and as-similar-as-possible (ASAP) energies, solved by alternating local and
global steps. Next to the full solver there is a reduced solver. It
restricts the global step to a subspace spanned by a random sample of
vertices, which makes each step much cheaper on larger meshes.

## What is inside

- `arapdeform.mesh` holds the half-edge record (`HalfEdge`), the
  enumerations `WeightType`, `Method` and `Task`, and the sort key
  `half_edge_key`.
- `arapdeform.loader` reads meshes and options:
  - `read_obj` reads a triangle-only Wavefront OBJ file into a `MeshData`
    and scales it to unit total area. Malformed or non-manifold input raises
    `MeshFormatError`.
  - `parse_args` turns command-line style options such as `-input`,
    `-iterations`, `-method` and `-print_pic` into `Options`. Unrecognised
    arguments are collected in `Options.unknown`. The method is always set
    to `Method.ARAP` in the end, because the deformation solver only runs
    the ARAP local step.
  - `output_name` derives the base name for output files.
- `arapdeform.geometry` covers the mesh geometry:
  - `get_neighbors` builds vertex neighbourhoods.
  - `get_weights` computes edge weights: uniform, cotangent (two variants)
    and mean-value.
  - `find_boundary` extracts the boundary loop and raises
    `NotDiskLikeError` when there is no usable loop.
  - `map_to_2d_boundary` maps the boundary to a circle.
  - `isometric_proj` flattens each triangle isometrically, in place.
  - `normalize_to_one_2d` scales coordinates into the unit square.
- `arapdeform.algebra` holds the small dense kernels: the 3×3 and 2×2
  covariance matrices (`covariance_3x3`, `covariance_2x2`), the per-triangle
  Jacobian `jacobian_2x2`, the bisection root finder `binary_find_root`, and
  a damped Newton optimiser `newton_optimizer` with the `RJacobian` and
  `RHessian` helpers.
- `arapdeform.energy` provides `LocalGlobalEnergy`, the full-space solver.
- `arapdeform.reduced` provides `ReducedLocalGlobalEnergy`, the subspace
  solver.
- `arapdeform.image` provides a small RGB `Image` class. It reads and writes
  uncompressed TGA and binary PPM, loads other formats through Pillow, and
  builds per-pixel difference images with `Image.compare`.
- `arapdeform.output` has the writers:
  - `write_vtk` writes VTK polydata with per-face scalars.
  - `write_image` renders a wireframe TGA with the boundary edges in red.
    It uses `draw_line` for the edges.
  - `write_frame` writes per-iteration outputs and reports.
  - `write_obj_model` writes OBJ snapshots named `<name>_<num>.obj`.

## Deforming a mesh

```python
import numpy as np

from arapdeform.energy import LocalGlobalEnergy
from arapdeform.mesh import Method

energy = LocalGlobalEnergy(
    "bar.obj", Method.ARAP, 0.0, 1e-4, 5.0, 0.1, np.zeros(3)
)

# Pin two vertices: one keeps its place, the other is moved.
energy.add_anchor(0, energy.verts[0], False)
energy.add_anchor(42, np.array([0.3, 0.1, 0.0]), False)

# Build and factor the system once the anchors are known...
energy.compute_laplacian()
energy.solver_compute()

# ...then iterate the local/global steps.
for _ in range(10):
    energy.local_global_solve()

print(energy.res)       # current vertex positions, one per row
print(energy(energy.res))  # energy of that configuration
```

The mesh is scaled to unit total area when loaded. `offset` is then added
to every vertex. Edge weights are cotangent weights.

Anchors added with `batch_op=True` form a region, and `anchor_in_region(i)`
reports whether anchor `i` belongs to it. Adding a vertex that is already
anchored does nothing. `clear_anchors` removes every anchor, and
`restore_rest_pose` moves the anchor targets back to their rest positions.
Call `compute_laplacian` and `solver_compute` again after the set of
anchors changes. Calling `solver_compute` before `compute_laplacian`, or
solving before `solver_compute`, raises `RuntimeError`.

A non-zero gravity `g` adds an inertial term with time step `dt` and
vertex mass `mass`, so each solve advances the mesh by one time step.

## Reduced solver

`ReducedLocalGlobalEnergy` takes the same arguments plus three more:

- `subspace_res` (default `1.0`) is the fraction of vertices that span the
  subspace.
- `restore_rest_pose` (default `True`) selects the linearly precise
  smoothness matrix, which adds boundary normal-derivative terms.
- `rng` is an optional `random.Random` used for sampling the vertices.

Each `solver_compute` call samples new subspace vertices and refactors the
reduced system. After each reduced solve the anchors are pinned back to
their targets exactly.

## Images

```python
from arapdeform.image import Image

img = Image(64, 32)
img.set_all_pixels((1.0, 1.0, 1.0))
img.set_pixel(3, 4, (1.0, 0.0, 0.0))
img.save_tga("out.tga")
same = Image.load_tga("out.tga")
diff = Image.compare(img, same)
```

Colour components are floats in `[0, 1]`. They are truncated and clamped
to bytes when written. TGA and PPM files are written and read with row `0`
as the bottom row of the picture. `Image.load_image` keeps the file's own
row order, so row `0` is the top row. File names for TGA and PPM must end
in `.tga` and `.ppm`. Pixel access outside the image raises `IndexError`.

## What this package does not do

The package has no interactive viewer and no command-line program. It
does not pick anchors with the mouse, drag them, or draw the mesh on
screen. Anchors are placed and moved by calling the solver methods
directly. `parse_args` only parses options into an `Options` value and
does not run anything.