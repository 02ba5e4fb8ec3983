"""
Numba kernels for the five Gravner-Griffeath update phases.

Buffer discipline for one tick (src = current state, dst = the other buffer):

1.  **Diffusion** reads src and writes every field of dst.
2.  **Freezing** updates dst in place; each cell only touches itself.
3.  **Attachment** decides every cell from dst as left by freezing, then
    applies all attachments, so the visiting order cannot change the result.
4.  **Melting** updates dst in place; each cell only touches itself.
5.  **Noise** (sigma != 0) updates dst in place from a precomputed coin field.

No kernel reads and writes the same field of the same buffer across cells.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit

from .topology import N_NEIGHBORS, _neighbor


@njit(cache=True)
def pin_border(attached: np.ndarray, diffusive: np.ndarray, rho: float) -> None:
    """Reset the outer ring to ambient vapor density (fixed-source boundary)."""
    n = diffusive.shape[0]
    last = n - 1
    for k in range(n):
        if not attached[0, k]:
            diffusive[0, k] = rho
        if not attached[last, k]:
            diffusive[last, k] = rho
        if not attached[k, 0]:
            diffusive[k, 0] = rho
        if not attached[k, last]:
            diffusive[k, last] = rho


@njit(cache=True)
def diffusion(
    src_attached: np.ndarray,
    src_neighbors: np.ndarray,
    src_boundary: np.ndarray,
    src_crystal: np.ndarray,
    src_diffusive: np.ndarray,
    dst_attached: np.ndarray,
    dst_neighbors: np.ndarray,
    dst_boundary: np.ndarray,
    dst_crystal: np.ndarray,
    dst_diffusive: np.ndarray,
) -> None:
    """
    Average diffusive mass over each cell and its six neighbors.

    Attached neighbors reflect: the cell's own mass stands in for theirs.
    Off-grid neighbors contribute nothing. Attached cells hold no vapor.
    """
    n = src_diffusive.shape[0]
    for r in range(n):
        for c in range(n):
            dst_attached[r, c] = src_attached[r, c]
            dst_neighbors[r, c] = src_neighbors[r, c]
            dst_boundary[r, c] = src_boundary[r, c]
            dst_crystal[r, c] = src_crystal[r, c]
            if src_attached[r, c]:
                dst_diffusive[r, c] = 0.0
                continue
            own = src_diffusive[r, c]
            total = own
            for i in range(N_NEIGHBORS):
                rr, cc = _neighbor(n, r, c, i)
                if rr < 0:
                    continue
                if src_attached[rr, cc]:
                    total += own
                else:
                    total += src_diffusive[rr, cc]
            dst_diffusive[r, c] = total / 7.0


@njit(cache=True)
def freezing(
    attached: np.ndarray,
    neighbors: np.ndarray,
    boundary: np.ndarray,
    crystal: np.ndarray,
    diffusive: np.ndarray,
    kappa: float,
) -> None:
    n = diffusive.shape[0]
    for r in range(n):
        for c in range(n):
            if attached[r, c] or neighbors[r, c] == 0:
                continue
            d0 = diffusive[r, c]
            diffusive[r, c] = 0.0
            crystal[r, c] += kappa * d0
            boundary[r, c] += (1.0 - kappa) * d0


@njit(cache=True)
def _joins(
    r: int,
    c: int,
    neighbors: np.ndarray,
    boundary: np.ndarray,
    diffusive: np.ndarray,
    beta: float,
    alpha: float,
    theta: float,
) -> bool:
    k = neighbors[r, c]
    if k == 0:
        # not on the crystal boundary
        return False
    b = boundary[r, c]
    if k <= 2:
        # tip or edge
        return b >= beta
    if k == 3:
        # concavity
        if b >= 1.0:
            return True
        if b < alpha:
            return False
        n = diffusive.shape[0]
        local = diffusive[r, c]
        for i in range(N_NEIGHBORS):
            rr, cc = _neighbor(n, r, c, i)
            if rr >= 0:
                local += diffusive[rr, cc]
        return local < theta
    # hole
    return True


@njit(cache=True)
def attachment_mask(
    attached: np.ndarray,
    neighbors: np.ndarray,
    boundary: np.ndarray,
    diffusive: np.ndarray,
    beta: float,
    alpha: float,
    theta: float,
) -> np.ndarray:
    """Cells that join the crystal this tick, judged on the unmodified buffer."""
    n = diffusive.shape[0]
    joins = np.zeros((n, n), dtype=np.bool_)
    for r in range(n):
        for c in range(n):
            if attached[r, c]:
                continue
            joins[r, c] = _joins(r, c, neighbors, boundary, diffusive, beta, alpha, theta)
    return joins


@njit(cache=True)
def attachment(
    attached: np.ndarray,
    neighbors: np.ndarray,
    boundary: np.ndarray,
    crystal: np.ndarray,
    diffusive: np.ndarray,
    beta: float,
    alpha: float,
    theta: float,
) -> Tuple[bool, int]:
    """
    Attach every qualifying boundary cell.

    Returns (edge_reached, newly_attached). The edge is reached when a cell
    attaching this tick lies in the outer third of the grid.
    """
    n = diffusive.shape[0]
    joins = attachment_mask(attached, neighbors, boundary, diffusive, beta, alpha, theta)
    margin = n // 3
    stop = False
    count = 0
    for r in range(n):
        for c in range(n):
            if not joins[r, c]:
                continue
            attached[r, c] = True
            crystal[r, c] += boundary[r, c]
            boundary[r, c] = 0.0
            diffusive[r, c] = 0.0
            count += 1
            for i in range(N_NEIGHBORS):
                rr, cc = _neighbor(n, r, c, i)
                if rr >= 0:
                    neighbors[rr, cc] += 1
            if r < margin or r >= n - margin or c < margin or c >= n - margin:
                stop = True
    return stop, count


@njit(cache=True)
def melting(
    attached: np.ndarray,
    neighbors: np.ndarray,
    boundary: np.ndarray,
    crystal: np.ndarray,
    diffusive: np.ndarray,
    mu: float,
    gamma: float,
) -> None:
    n = diffusive.shape[0]
    for r in range(n):
        for c in range(n):
            if attached[r, c] or neighbors[r, c] == 0:
                continue
            b0 = boundary[r, c]
            c0 = crystal[r, c]
            boundary[r, c] = (1.0 - mu) * b0
            crystal[r, c] = (1.0 - gamma) * c0
            diffusive[r, c] += mu * b0 + gamma * c0


@njit(cache=True)
def noise(
    attached: np.ndarray,
    diffusive: np.ndarray,
    coins: np.ndarray,
    sigma: float,
) -> None:
    """Scale interior vapor by (1 + sigma) or (1 - sigma) per cell; coins holds 0/1."""
    n = diffusive.shape[0]
    for r in range(1, n - 1):
        for c in range(1, n - 1):
            if attached[r, c]:
                continue
            if coins[r, c] == 0:
                diffusive[r, c] *= 1.0 - sigma
            else:
                diffusive[r, c] *= 1.0 + sigma
