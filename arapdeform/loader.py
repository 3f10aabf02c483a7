"""Reading triangle meshes from OBJ files and parsing command-line options."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .mesh import HalfEdge, Method


class MeshFormatError(ValueError):
    """Raised when an OBJ file cannot be used as a triangle manifold mesh."""


@dataclass
class MeshData:
    """A loaded mesh, scaled so that its total surface area is one.

    ``verts`` holds one vertex per row, ``faces`` one triangle per row and
    ``edges[a, b]`` is one plus the index of half-edge (a, b), or zero.
    ``area`` holds each face's share of the total area.
    """

    faces: np.ndarray
    edges: np.ndarray
    verts: np.ndarray
    half_edges: list[HalfEdge]
    area: np.ndarray

    @property
    def vert_count(self) -> int:
        return len(self.verts)


@dataclass
class Options:
    """Settings taken from the command line."""

    input_name: str = ""
    itrs: int = 4
    method: Method = Method.ARAP
    flip_avoid: bool = False
    print_txtfile: bool = True
    print_vtkfile: bool = False
    print_pic: bool = False
    print_each_frame: bool = False
    pause: bool = False
    inf_itr: bool = False
    show_texture: bool = False
    texture_name: str = ""
    lam: float = 0.0
    slamda: str = "0"
    unknown: list[str] = field(default_factory=list)


def _parse_index(token: str, vert_count: int) -> int:
    try:
        idx = int(token.split("/", 1)[0]) - 1
    except ValueError as exc:
        raise MeshFormatError(f"bad face index: {token!r}") from exc
    if not 0 <= idx < vert_count:
        raise MeshFormatError(f"face index out of range: {token!r}")
    return idx


def _add_edge(
    half_edges: list[HalfEdge],
    edges: np.ndarray,
    verts: np.ndarray,
    x: int,
    y: int,
    opposite: int,
    facet: int,
) -> None:
    if not edges[x, y]:
        half_edges.append(HalfEdge((x, y), verts[x] - verts[y], opposite, facet))
        edges[x, y] = len(half_edges)
        if edges[y, x]:
            half_edges[edges[x, y] - 1].inverse_idx = int(edges[y, x] - 1)
            half_edges[edges[y, x] - 1].inverse_idx = int(edges[x, y] - 1)
    elif not edges[y, x]:
        half_edges.append(
            HalfEdge((y, x), verts[y] - verts[x], opposite, facet, int(edges[x, y] - 1))
        )
        edges[y, x] = len(half_edges)
        half_edges[edges[x, y] - 1].inverse_idx = int(edges[y, x] - 1)
    else:
        raise MeshFormatError("Input is not a manifold!")


def read_obj(path) -> MeshData:
    """Load a triangle mesh and build its half-edge structure."""
    vertex_rows: list[list[float]] = []
    face_tokens: list[list[str]] = []
    with open(path, encoding="utf-8") as fh:
        for line in fh:
            tokens = line.split()
            if not tokens:
                continue
            if tokens[0] == "v":
                try:
                    vertex_rows.append([float(t) for t in tokens[1:4]])
                except ValueError as exc:
                    raise MeshFormatError(f"bad vertex line: {line.strip()!r}") from exc
                if len(vertex_rows[-1]) != 3:
                    raise MeshFormatError(f"bad vertex line: {line.strip()!r}")
            elif tokens[0] == "f":
                if len(tokens) != 4:
                    raise MeshFormatError("Only triangle mesh are supported!")
                face_tokens.append(tokens[1:])

    vert_count = len(vertex_rows)
    verts = np.array(vertex_rows, dtype=float).reshape(vert_count, 3)
    edges = np.zeros((vert_count, vert_count), dtype=int)
    faces = np.zeros((len(face_tokens), 3), dtype=int)
    area = np.zeros(len(face_tokens))
    half_edges: list[HalfEdge] = []

    for facet, tokens in enumerate(face_tokens):
        a, b, c = (_parse_index(t, vert_count) for t in tokens)
        faces[facet] = (a, b, c)
        area[facet] = abs(0.5 * np.linalg.norm(np.cross(verts[a] - verts[b], verts[a] - verts[c])))
        _add_edge(half_edges, edges, verts, a, b, c, facet)
        _add_edge(half_edges, edges, verts, c, a, b, facet)
        _add_edge(half_edges, edges, verts, b, c, a, facet)

    total_area = float(area.sum())
    if total_area <= 0.0:
        raise MeshFormatError("mesh has no surface area")
    reg_param = np.sqrt(total_area)
    area /= total_area
    for edge in half_edges:
        edge.edge_vec = edge.edge_vec / reg_param
    verts /= reg_param
    return MeshData(faces, edges, verts, half_edges, area)


def _atoi(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    return int(match.group()) if match else 0


def _atof(text: str) -> float:
    match = re.match(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", text)
    return float(match.group()) if match else 0.0


def parse_args(argv: Sequence[str]) -> Options:
    """Parse the program arguments (without the program name)."""
    opts = Options()
    args = iter(argv)

    def value(flag: str) -> str:
        try:
            return next(args)
        except StopIteration:
            raise ValueError(f"missing value after {flag}") from None

    for arg in args:
        if arg == "-input":
            opts.input_name = value(arg)
        elif arg == "-iterations":
            opts.itrs = _atoi(value(arg))
        elif arg == "-method":
            name = value(arg)
            if name == "ARAP":
                opts.method = Method.ARAP
            elif name == "ASAP":
                opts.method = Method.ASAP
            elif name == "Hybrid":
                opts.method = Method.HYBRID
                opts.slamda = value(name)
                opts.lam = _atof(opts.slamda)
                if opts.lam < 0:
                    raise ValueError("Lambda of the Hybrid method must be positive!")
            else:
                raise ValueError("Invalid method specified!")
        elif arg == "-flip_avoid":
            opts.flip_avoid = True
        elif arg == "-print_pic":
            opts.print_pic = True
        elif arg == "-no_txtfile":
            opts.print_txtfile = False
        elif arg == "-print_vtkfile":
            opts.print_vtkfile = True
        elif arg == "-print_each_frame":
            opts.print_each_frame = True
        elif arg == "-pause":
            opts.pause = True
        elif arg == "-inf_itr":
            opts.inf_itr = True
        elif arg == "-show_texture":
            opts.show_texture = True
            opts.texture_name = value(arg)
        else:
            opts.unknown.append(arg)
            print("Invalid input arguments specified!", file=sys.stderr)
    # The deformation solver only runs the ARAP local step.
    opts.method = Method.ARAP
    return opts


def output_name(input_name: str, method: Method, slamda: str, flip_avoid: bool) -> str:
    """Base name for output files derived from the input mesh and the method."""
    cut = input_name.find(".obj")
    name = input_name if cut == -1 else input_name[:cut]
    if method == Method.ARAP:
        name += "_ARAP"
    elif method == Method.ASAP:
        name += "_ASAP"
    elif method == Method.HYBRID:
        name += "_Hybrid_" + slamda
    if flip_avoid:
        name += "_noflip"
    return name


def _stem(path) -> str:
    return Path(path).stem