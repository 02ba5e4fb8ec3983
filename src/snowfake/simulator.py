"""
Snowfake growth driver.

Runs the Gravner-Griffeath phases tick by tick over a double-buffered
lattice until the crystal reaches the outer third of the grid or the
optional tick cap is hit.

Each tick:
    Diffusion -> Freezing -> Attachment -> Melting -> Noise (sigma != 0)
Melting and noise are skipped on the tick whose attachment reaches the edge.
"""

from __future__ import annotations

import enum
import sys
from typing import Optional

import numpy as np

from . import phases, utils
from .lattice import Cell, LatticeStore
from .params import SnowfakeConfig


class RunState(enum.Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    STOPPED = "stopped"


class StopReason(enum.Enum):
    EDGE_REACHED = "edge-reached"
    TICK_LIMIT = "tick-limit"


class SnowfakeSimulator:
    """
    The Manager Class.

    Responsibilities:
    1. Own the lattice buffers and the noise RNG.
    2. Call the phase kernels in order with the right buffer roles.
    3. Track the run state and stop reason.
    """

    def __init__(self, config: SnowfakeConfig) -> None:
        self.config = config
        self.params = config.params
        self.size = config.size
        self.lattice = LatticeStore(self.size, self.params.rho)
        self.rng = np.random.default_rng(config.seed)
        self.state = RunState.INITIALIZED
        self.stop_reason: Optional[StopReason] = None
        self.tick = 0
        self.last_attached = 0

    @property
    def stopped(self) -> bool:
        return self.state is RunState.STOPPED

    def _progress(self, mark: str) -> None:
        if self.config.verbose:
            print(mark, end="", file=sys.stderr, flush=True)

    def _halt(self, reason: StopReason) -> StopReason:
        self.state = RunState.STOPPED
        self.stop_reason = reason
        if reason is StopReason.TICK_LIMIT:
            self._progress("!")
        self._progress("\n")
        return reason

    # ------------------------------------------------------------------ phases
    def diffuse(self) -> None:
        """Diffusion from the current buffer into the next one."""
        src = self.lattice.current
        dst = self.lattice.next
        phases.pin_border(src.attached, src.diffusive_mass, self.params.rho)
        phases.diffusion(*src, *dst)

    def freeze(self) -> None:
        dst = self.lattice.next
        phases.freezing(*dst, self.params.kappa)

    def attach(self) -> bool:
        dst = self.lattice.next
        p = self.params
        edge_reached, count = phases.attachment(*dst, p.beta, p.alpha, p.theta)
        self.last_attached = int(count)
        return bool(edge_reached)

    def melt(self) -> None:
        dst = self.lattice.next
        phases.melting(*dst, self.params.mu, self.params.gamma)

    def perturb(self) -> None:
        sigma = self.params.sigma
        if sigma == 0.0:
            return
        dst = self.lattice.next
        coins = self.rng.integers(0, 2, size=(self.size, self.size), dtype=np.int8)
        phases.noise(dst.attached, dst.diffusive_mass, coins, sigma)

    # ------------------------------------------------------------------ public
    def step(self) -> Optional[StopReason]:
        """Advance one tick. Returns the stop reason once the run has stopped."""
        if self.stopped:
            raise RuntimeError("Simulation has stopped. Create a new simulator to rerun.")
        max_ticks = self.config.max_ticks
        if max_ticks is not None and self.tick >= max_ticks:
            return self._halt(StopReason.TICK_LIMIT)

        self.state = RunState.RUNNING
        self.diffuse()
        self.freeze()
        edge_reached = self.attach()
        if not edge_reached:
            self.melt()
            self.perturb()
        self.lattice.swap()
        self.tick += 1

        if self.tick % self.config.progress_every == 0:
            self._progress(".")
        if edge_reached:
            return self._halt(StopReason.EDGE_REACHED)
        return None

    def run(self) -> StopReason:
        """Run until the crystal nears the edge or the tick cap is reached."""
        while True:
            reason = self.step()
            if reason is not None:
                return reason

    def cell(self, row: int, col: int) -> Cell:
        return self.lattice.cell(row, col)

    @property
    def attached(self) -> np.ndarray:
        return self.lattice.current.attached

    @property
    def crystal_mass(self) -> np.ndarray:
        return self.lattice.current.crystal_mass

    def result(self) -> utils.CrystalResult:
        """Copy the final attached mask and crystal mass out of the lattice."""
        meta = {
            "model": "gravner-griffeath",
            "size": self.size,
            "ticks": self.tick,
            "state": self.state.value,
            "stop_reason": None if self.stop_reason is None else self.stop_reason.value,
            "seed": self.config.seed,
            "max_ticks": self.config.max_ticks,
            "attached_cells": int(self.attached.sum()),
        }
        meta.update(self.params.to_dict())
        return utils.CrystalResult(
            attached=self.attached.copy(),
            crystal_mass=self.crystal_mass.copy(),
            meta=meta,
        )


__all__ = ["RunState", "SnowfakeSimulator", "StopReason"]
