from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from .params import AllocationError, validate_size
from .topology import center_of, neighbors


class Buffer(NamedTuple):
    """One full set of per-cell fields. Each array is an N x N view."""
    attached: np.ndarray
    attached_neighbors: np.ndarray
    boundary_mass: np.ndarray
    crystal_mass: np.ndarray
    diffusive_mass: np.ndarray


@dataclass(frozen=True)
class Cell:
    """Snapshot of a single site, for inspection and tests."""
    attached: bool
    attached_neighbors: int
    boundary_mass: float
    crystal_mass: float
    diffusive_mass: float


class LatticeStore:
    """
    Two same-shaped grids of cell state.

    Every field is stored as a (2, N, N) array so each buffer is a contiguous
    arena indexed row * N + col. `active` names the buffer holding the
    current state; phases read it and write the other one, then `swap()`
    flips the roles without copying.
    """

    def __init__(self, size: int, rho: float) -> None:
        self.size = validate_size(size)
        self.rho = float(rho)
        shape = (2, self.size, self.size)
        try:
            self._attached = np.zeros(shape, dtype=np.bool_)
            self._attached_neighbors = np.zeros(shape, dtype=np.int8)
            self._boundary_mass = np.zeros(shape, dtype=np.float64)
            self._crystal_mass = np.zeros(shape, dtype=np.float64)
            self._diffusive_mass = np.zeros(shape, dtype=np.float64)
        except MemoryError as exc:
            raise AllocationError(
                f"cannot allocate two {self.size}x{self.size} lattice buffers"
            ) from exc
        self.active = 0
        self.center = center_of(self.size)
        self.reset()

    def reset(self) -> None:
        """Put both buffers in the initial state: vapor everywhere, one seed."""
        self._attached[:] = False
        self._attached_neighbors[:] = 0
        self._boundary_mass[:] = 0.0
        self._crystal_mass[:] = 0.0
        self._diffusive_mass[:] = self.rho

        c = self.center
        self._attached[:, c, c] = True
        self._crystal_mass[:, c, c] = 1.0
        self._diffusive_mass[:, c, c] = 0.0
        for rr, cc in neighbors(self.size, c, c):
            self._attached_neighbors[:, rr, cc] = 1
        self.active = 0

    def _buffer(self, index: int) -> Buffer:
        return Buffer(
            self._attached[index],
            self._attached_neighbors[index],
            self._boundary_mass[index],
            self._crystal_mass[index],
            self._diffusive_mass[index],
        )

    @property
    def current(self) -> Buffer:
        return self._buffer(self.active)

    @property
    def next(self) -> Buffer:
        return self._buffer(1 - self.active)

    def swap(self) -> None:
        self.active = 1 - self.active

    def cell(self, row: int, col: int) -> Cell:
        buf = self.current
        return Cell(
            attached=bool(buf.attached[row, col]),
            attached_neighbors=int(buf.attached_neighbors[row, col]),
            boundary_mass=float(buf.boundary_mass[row, col]),
            crystal_mass=float(buf.crystal_mass[row, col]),
            diffusive_mass=float(buf.diffusive_mass[row, col]),
        )

    def total_mass(self) -> float:
        buf = self.current
        return float(
            buf.diffusive_mass.sum() + buf.boundary_mass.sum() + buf.crystal_mass.sum()
        )
