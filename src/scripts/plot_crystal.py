# src/scripts/plot_crystal.py
import argparse
import os
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from numba import njit

from snowfake import analysis, utils


@njit(cache=True)
def render_grid_numba(x_coords, y_coords, values, grid, scale, pad_x, pad_y, radius):
    """
    Numba-accelerated rasterizer that paints circles onto a grid.

    Args:
        x_coords: Array of x coordinates (float)
        y_coords: Array of y coordinates (float)
        values: Per-cell value painted into the grid (crystal mass)
        grid: 2D array to write to (modified in place, NaN = empty)
        scale: Scale factor to convert lattice units to pixels
        pad_x: X offset to center data in grid
        pad_y: Y offset to center data in grid
        radius: Disc radius in lattice units
    """
    H, W = grid.shape
    r_px = radius * scale
    r_px_sq = r_px * r_px
    r_int = int(np.ceil(r_px)) + 1

    for i in range(len(x_coords)):
        px_center = (x_coords[i] - pad_x) * scale
        py_center = (y_coords[i] - pad_y) * scale

        px_min = max(0, int(np.floor(px_center - r_int)))
        px_max = min(W, int(np.ceil(px_center + r_int)) + 1)
        py_min = max(0, int(np.floor(py_center - r_int)))
        py_max = min(H, int(np.ceil(py_center + r_int)) + 1)

        for py in range(py_min, py_max):
            for px in range(px_min, px_max):
                dx = px - px_center
                dy = py - py_center
                if dx * dx + dy * dy <= r_px_sq:
                    current = grid[py, px]
                    if np.isnan(current) or values[i] > current:
                        grid[py, px] = values[i]


def rasterize(result, res=1024):
    """Paint the attached cells of a CrystalResult onto a res x res float grid."""
    pos = analysis.projected_positions(result.attached)
    if len(pos) == 0:
        raise ValueError("No attached cells to render")
    rows, cols = np.nonzero(result.attached)
    values = result.crystal_mass[rows, cols].astype(np.float64)

    x = pos[:, 0]
    y = pos[:, 1]
    max_dim = max(x.max() - x.min(), y.max() - y.min(), 1.0)

    # fit to width with 5% padding
    padding_factor = 1.05
    scale = res / (max_dim * padding_factor)
    pad_x = (x.min() + x.max()) / 2.0 - (max_dim * padding_factor) / 2.0
    pad_y = (y.min() + y.max()) / 2.0 - (max_dim * padding_factor) / 2.0

    grid = np.full((res, res), np.nan, dtype=np.float64)
    render_grid_numba(x, y, values, grid, scale, pad_x, pad_y, 0.5)
    return grid


def format_title(meta):
    if not meta:
        return None
    parts = [
        f"N={meta.get('size', '?')}",
        f"ticks={meta.get('ticks', '?')}",
        f"stop={meta.get('stop_reason', '?')}",
    ]
    for key in ("rho", "beta", "kappa"):
        if key in meta:
            parts.append(f"{key}={meta[key]:g}")
    return " | ".join(parts)


def render(result, output=None, cmap="Blues", dpi=300, res=1024, show=False):
    grid = rasterize(result, res=res)
    num_occupied = int(np.sum(~np.isnan(grid)))
    print(f"Rendered {num_occupied:,} pixels ({100.0 * num_occupied / grid.size:.2f}% fill)")

    fig, ax = plt.subplots(figsize=(6, 6))
    fig.patch.set_facecolor("white")
    ax.set_facecolor("white")
    ax.imshow(grid, interpolation="nearest", origin="lower", cmap=cmap)
    ax.set_aspect("equal")
    ax.axis("off")

    title = format_title(result.meta)
    if title:
        ax.set_title(title, pad=10, fontsize=8)

    if output:
        os.makedirs(os.path.dirname(output) or ".", exist_ok=True)
        plt.savefig(output, dpi=dpi, bbox_inches="tight", pad_inches=0.1, facecolor="white")
        print(f"Saved figure to {output}")
    if show:
        plt.show()
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(
        description="Plot a saved snowfake .npz as a PNG"
    )
    parser.add_argument("file", help="Path to .npz crystal file")
    parser.add_argument("--out", default=None, help="Output PNG (default: <file>_<cmap>.png)")
    parser.add_argument("--cmap", default="Blues", help="Matplotlib colormap (default: Blues)")
    parser.add_argument("--res", type=int, default=1024, help="Image width in pixels")
    parser.add_argument("--dpi", type=int, default=300, help="DPI for output file")
    parser.add_argument("--show", action="store_true", help="Show plot interactively")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Error: file not found: {args.file}")
        return 1

    if args.out is None:
        input_path = Path(args.file)
        args.out = str(input_path.parent / f"{input_path.stem}_{args.cmap}.png")

    result = utils.load_crystal(args.file)
    render(result, output=args.out, cmap=args.cmap, dpi=args.dpi, res=args.res, show=args.show)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
