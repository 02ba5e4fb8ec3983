"""
SVG export of a finished crystal.

Grid coordinates are turned into a hexagonal layout with a polar transform
about the seed: the angle is rotated by 45 degrees and the y axis is
compressed by 1/sqrt(3), so the skewed square lattice draws with six-fold
symmetry.
"""

from __future__ import annotations

import io
import math
import os
from typing import IO, Tuple, Union

import numpy as np

from .topology import center_of

SCALE = 1000.0
Y_SCALE = 1.0 / math.sqrt(3.0)
DOT_SCALE = 0.25


def hex_project(rows: np.ndarray, cols: np.ndarray, size: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map grid indices to hexagonal-plane coordinates in lattice units.

    The result is centered on the seed (the seed maps to (0, 0)) and has not
    yet had the y compression applied.
    """
    center = center_of(size)
    x0 = np.asarray(rows, dtype=np.float64) - center
    y0 = np.asarray(cols, dtype=np.float64) - center
    d = np.hypot(x0, y0)
    a = np.arctan2(y0, x0) + math.pi / 4
    return d * np.cos(a), d * np.sin(a)


def render_svg(
    attached: np.ndarray, crystal_mass: np.ndarray, scale: float = SCALE
) -> str:
    """Return an SVG document with one circle per attached cell."""
    attached = np.asarray(attached, dtype=bool)
    size = attached.shape[0]
    center = center_of(size)
    dscale = scale / size
    dotscale = DOT_SCALE * dscale

    out = io.StringIO()
    out.write(
        '<?xml version="1.0"?>\n'
        f'<svg width="{scale:f}" height="{scale * Y_SCALE:f}"\n'
        'version="1.1"\n'
        'xmlns="http://www.w3.org/2000/svg">\n'
    )
    rows, cols = np.nonzero(attached)
    xs, ys = hex_project(rows, cols, size)
    for r, c, x, y in zip(rows, cols, xs, ys):
        cx = (x + center) * dscale
        cy = (y + center) * dscale * Y_SCALE
        radius = crystal_mass[r, c] * dotscale
        out.write(f'  <circle cx="{cx:f}" cy="{cy:f}" r="{radius:f}"/>\n')
    out.write("</svg>\n")
    return out.getvalue()


def write_svg(
    target: Union[str, os.PathLike, IO[str]],
    attached: np.ndarray,
    crystal_mass: np.ndarray,
    scale: float = SCALE,
) -> None:
    """Write the SVG to a path or an open text stream."""
    text = render_svg(attached, crystal_mass, scale=scale)
    if hasattr(target, "write"):
        target.write(text)
        return
    path = os.fspath(target)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
