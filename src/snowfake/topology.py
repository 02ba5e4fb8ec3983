"""
Six-neighbor hexagonal topology embedded in a square array.

The skewed offset set below (rather than an 8-neighborhood) is what gives
the crystal its six-fold symmetry. Offsets that leave the grid have no
neighbor; callers skip them.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

import numpy as np
from numba import njit

NEIGHBOR_OFFSETS = np.array(
    [
        [-1, -1],
        [-1, 0],
        [0, -1],
        [0, 1],
        [1, 0],
        [1, 1],
    ],
    dtype=np.int64,
)

N_NEIGHBORS = NEIGHBOR_OFFSETS.shape[0]


@njit(cache=True)
def _neighbor(size: int, r: int, c: int, i: int) -> Tuple[int, int]:
    """Return the i-th neighbor of (r, c), or (-1, -1) when it is off the grid."""
    rr = r + NEIGHBOR_OFFSETS[i, 0]
    cc = c + NEIGHBOR_OFFSETS[i, 1]
    if rr < 0 or rr >= size or cc < 0 or cc >= size:
        return -1, -1
    return rr, cc


def center_of(size: int) -> int:
    """Row (and column) index of the seed cell."""
    return size // 2 + 1


def neighbor_at(size: int, row: int, col: int, i: int) -> Optional[Tuple[int, int]]:
    rr, cc = _neighbor(size, row, col, i)
    if rr < 0:
        return None
    return int(rr), int(cc)


def neighbors(size: int, row: int, col: int) -> Iterator[Tuple[int, int]]:
    """Yield the in-bounds neighbors of (row, col) in offset-table order."""
    for i in range(N_NEIGHBORS):
        found = neighbor_at(size, row, col, i)
        if found is not None:
            yield found


@njit(cache=True)
def count_attached_neighbors(attached: np.ndarray) -> np.ndarray:
    """Recount attached neighbors for every cell from scratch."""
    size = attached.shape[0]
    counts = np.zeros((size, size), dtype=np.int8)
    for r in range(size):
        for c in range(size):
            k = 0
            for i in range(N_NEIGHBORS):
                rr, cc = _neighbor(size, r, c, i)
                if rr >= 0 and attached[rr, cc]:
                    k += 1
            counts[r, c] = k
    return counts
