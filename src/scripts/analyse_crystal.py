"""
Shape analysis for saved snowfakes.

Prints connectivity, radii and the sandbox (mass-radius) dimension of the
attached region, and saves a log-log plot of M(<R) against R.
"""
from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt

from snowfake import analysis, utils
from snowfake.topology import center_of


def analyze_crystal(
    npz_path: str | Path,
    output_path: str | Path | None = None,
    show_plot: bool = False,
) -> dict:
    npz_path = Path(npz_path)
    print(f"Loading {npz_path}...")
    result = utils.load_crystal(npz_path)
    if result.attached is None:
        raise ValueError(f"{npz_path} holds no attached grid")

    attached = result.attached
    center = center_of(result.size)
    cells = int(attached.sum())
    print(f"Attached cells: {cells:,}")

    stats = {
        "attached_cells": cells,
        "connected": analysis.is_connected(attached, (center, center)),
        "r_gyration": analysis.radius_of_gyration(attached),
        "r_max": analysis.max_radius(attached),
    }
    dimension, r_squared, log_r, log_m = analysis.sandbox_dimension(attached)
    stats["sandbox_dimension"] = dimension
    stats["r_squared"] = r_squared

    print("=" * 60)
    print(f"Connected to seed:   {stats['connected']}")
    print(f"Radius of gyration:  {stats['r_gyration']:.3f}")
    print(f"Max radius:          {stats['r_max']:.3f}")
    print(f"Sandbox dimension:   {dimension:.5f} (R² = {r_squared:.6f})")
    print("=" * 60)

    fig, ax = plt.subplots(figsize=(7, 6))
    ax.scatter(log_r, log_m, color="blue", alpha=0.6, s=8, label="Crystal")
    intercept = np.mean(log_m) - dimension * np.mean(log_r)
    ax.plot(log_r, dimension * log_r + intercept, color="red", linestyle="--",
            linewidth=2, label=f"Fit: $D = {dimension:.3f}$")
    ax.set_xlabel(r"$\log(R)$")
    ax.set_ylabel(r"$\log(M(<R))$")
    ax.set_title(f"Sandbox Method: $M(<R) \\sim R^{{D}}$ (R² = {r_squared:.4f})")
    ax.legend()
    ax.grid(True, which="both", linestyle="--", alpha=0.4)
    plt.tight_layout()

    if output_path is None:
        output_path = npz_path.with_name(npz_path.stem + "_analysis.png")
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"Figure saved to: {output_path}")

    if show_plot:
        plt.show()
    else:
        plt.close(fig)
    return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Analyse the shape of a saved snowfake.")
    parser.add_argument("file", help="Path to the .npz file")
    parser.add_argument("--out", type=str, help="Output path for the figure")
    parser.add_argument("--show", action="store_true", help="Display plot interactively")
    args = parser.parse_args()

    analyze_crystal(args.file, output_path=args.out, show_plot=args.show)


if __name__ == "__main__":
    main()
