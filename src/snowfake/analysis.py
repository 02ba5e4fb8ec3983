"""
Shape statistics for finished crystals.

Distances are measured in the hexagonal plane (see render.hex_project with
the 1/sqrt(3) y compression), so they respect the six-fold geometry rather
than the square array layout.
"""

from __future__ import annotations

from collections import deque
from typing import Tuple

import numpy as np
from scipy.stats import linregress

from .render import Y_SCALE, hex_project
from .topology import neighbors


def is_connected(attached: np.ndarray, start: Tuple[int, int]) -> bool:
    """True when every attached cell is reachable from start via six-neighbor steps."""
    attached = np.asarray(attached, dtype=bool)
    size = attached.shape[0]
    r0, c0 = start
    if not attached[r0, c0]:
        return False
    seen = np.zeros_like(attached)
    seen[r0, c0] = True
    queue = deque([(r0, c0)])
    reached = 1
    while queue:
        r, c = queue.popleft()
        # the offset table is symmetric, so this walks an undirected graph
        for rr, cc in neighbors(size, r, c):
            if attached[rr, cc] and not seen[rr, cc]:
                seen[rr, cc] = True
                reached += 1
                queue.append((rr, cc))
    return reached == int(attached.sum())


def projected_positions(attached: np.ndarray) -> np.ndarray:
    """(M, 2) array of attached-cell positions in the hexagonal plane."""
    attached = np.asarray(attached, dtype=bool)
    rows, cols = np.nonzero(attached)
    x, y = hex_project(rows, cols, attached.shape[0])
    return np.column_stack((x, y * Y_SCALE))


def radius_of_gyration(attached: np.ndarray) -> float:
    pos = projected_positions(attached)
    if len(pos) == 0:
        raise ValueError("no attached cells")
    centered = pos - pos.mean(axis=0)
    return float(np.sqrt((centered ** 2).sum(axis=1).mean()))


def max_radius(attached: np.ndarray) -> float:
    pos = projected_positions(attached)
    if len(pos) == 0:
        raise ValueError("no attached cells")
    return float(np.hypot(pos[:, 0], pos[:, 1]).max())


def sandbox_dimension(
    attached: np.ndarray, r_min: float = 2.0, n_radii: int = 30
) -> Tuple[float, float, np.ndarray, np.ndarray]:
    """
    Mass-radius dimension about the seed: M(<R) ~ R^D.

    Returns (D, r_squared, log_r, log_m).
    """
    pos = projected_positions(attached)
    distances = np.hypot(pos[:, 0], pos[:, 1])
    if len(distances) < 10:
        raise ValueError(f"Too few attached cells ({len(distances)}) for sandbox analysis.")
    r_max = distances.max()
    if r_max <= r_min:
        raise ValueError(
            f"Crystal radius ({r_max:.2f}) is too small; need more than {r_min}."
        )
    radii = np.logspace(np.log10(r_min), np.log10(r_max), n_radii)
    masses = np.array([np.sum(distances <= radius) for radius in radii])
    valid = masses > 0
    log_r = np.log(radii[valid])
    log_m = np.log(masses[valid])
    if len(log_r) < 3:
        raise ValueError("Too few valid radii for sandbox analysis.")
    fit = linregress(log_r, log_m)
    return float(fit.slope), float(fit.rvalue ** 2), log_r, log_m
