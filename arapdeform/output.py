"""Writing meshes, distortion data and wireframe pictures to files."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

import numpy as np

from .geometry import normalize_to_one_2d
from .image import Image
from .mesh import HalfEdge


def _fmt(value) -> str:
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return "%g" % float(value)


def _row(values) -> str:
    """Format a row with every entry right-aligned to the widest one."""
    texts = [_fmt(v) for v in values]
    width = max((len(t) for t in texts), default=0)
    return " ".join(t.rjust(width) for t in texts)


def write_vtk(
    half_edges: Sequence[HalfEdge],
    faces: np.ndarray,
    distortion: Sequence[float],
    aread: Sequence[float],
    angled: Sequence[float],
    res: np.ndarray,
    output_name: str,
) -> Path:
    """Write a legacy ASCII VTK polydata file with three per-face scalars."""
    output_name = f"{output_name}.vtk"
    faces = np.asarray(faces)
    res = np.asarray(res)
    n_faces = len(faces)
    lines = [
        "# vtk DataFile Version 3.0",
        output_name,
        "ASCII",
        "DATASET POLYDATA",
        f"POINTS {len(res)} double",
    ]
    lines += [f"{_row(row)} 0" for row in res]
    lines.append("")
    lines.append(f"POLYGONS {n_faces} {4 * n_faces}")
    lines += [f"3 {_row(row)}" for row in faces]
    lines.append("")
    lines.append(f"CELL_DATA {n_faces}")
    for name, values in (("distortion", distortion), ("aread", aread), ("angled", angled)):
        lines.append(f"SCALARS {name} double 1")
        lines.append(f"LOOKUP_TABLE {name}_table")
        lines += [_fmt(v) for v in list(values)[:n_faces]]
        lines.append("")
    path = Path(output_name)
    path.write_text("\n".join(lines) + "\n")
    return path


def draw_line(a: Sequence[float], b: Sequence[float], pic: Image, r: float) -> None:
    """Rasterise segment a-b with a DDA in colour (r, 0, 0)."""
    ax, ay = float(a[0]), float(a[1])
    dx, dy = float(b[0]) - ax, float(b[1]) - ay
    steps = int(max(abs(dx), abs(dy)))
    xinc = dx / steps if steps else 0.0
    yinc = dy / steps if steps else 0.0
    x, y = ax, ay
    for _ in range(steps + 1):
        pic.set_pixel(int(x), int(y), (r, 0.0, 0.0))
        x += xinc
        y += yinc


def write_image(
    half_edges: Sequence[HalfEdge],
    res: np.ndarray,
    output_name: str,
    width: int = 4000,
    height: int = 4000,
) -> Path:
    """Draw the 2D mesh as a wireframe, boundary in red, and save it as TGA."""
    pic = Image(width, height)
    pic.set_all_pixels((1.0, 1.0, 1.0))
    screen_size = min(width, height)
    points = normalize_to_one_2d(res) * (screen_size - 1.0)
    if screen_size == height:
        points[:, 0] += 0.5 * (width - screen_size)
    else:
        points[:, 1] += 0.5 * (height - screen_size)

    visited = [False] * len(half_edges)
    for i, edge in enumerate(half_edges):
        if visited[i]:
            continue
        a, b = edge.endpoints
        boundary = edge.inverse_idx == -1
        draw_line(points[a], points[b], pic, 1 if boundary else 0)
        visited[i] = True
        if not boundary:
            visited[edge.inverse_idx] = True

    path = Path(f"{output_name}.tga")
    pic.save_tga(path)
    return path


def write_frame(
    print_pic: bool,
    print_vtkfile: bool,
    print_txtfile: bool,
    print_each_frame: bool,
    now_itr: int,
    distortion: float,
    aread: float,
    angled: float,
    output_name: str,
    distortion_per_unit: Sequence[float],
    aread_per_unit: Sequence[float],
    angled_per_unit: Sequence[float],
    half_edges: Sequence[HalfEdge],
    faces: np.ndarray,
    res: np.ndarray,
    distortion_file: TextIO,
) -> None:
    """Write the outputs requested for one iteration."""
    frame_name = f"{output_name}_{now_itr}"
    if print_pic and print_each_frame:
        write_image(half_edges, res, frame_name)
    if print_vtkfile and print_each_frame:
        write_vtk(
            half_edges, faces, distortion_per_unit, aread_per_unit, angled_per_unit, res, frame_name
        )
    if print_txtfile:
        distortion_file.write(
            f"After the {now_itr}th iterations\n"
            f"Total Energy: {_fmt(distortion)}\n"
            f"Total Area Distortion: {_fmt(aread)}\n"
            f"Total Angle Distortion: {_fmt(angled)}\n\n"
        )


def write_obj_model(res: np.ndarray, faces: np.ndarray, output_name: str, num: int) -> Path:
    """Save the current shape as ``<output_name>_<num>.obj``."""
    lines = [f"v {_row(row)}" for row in np.asarray(res)]
    lines += [f"f {_row(row)}" for row in np.asarray(faces) + 1]
    path = Path(f"{output_name}_{num}.obj")
    path.write_text("\n".join(lines) + "\n")
    return path