"""
Unit tests for the phase kernels, driven on hand-built buffers.
"""

import numpy as np
import pytest

from snowfake import LatticeStore, phases
from snowfake.topology import count_attached_neighbors, neighbors

RHO = 0.42


def blank(size=9, diffusive=0.0):
    """Fresh field arrays: (attached, neighbors, boundary, crystal, diffusive)."""
    return (
        np.zeros((size, size), dtype=np.bool_),
        np.zeros((size, size), dtype=np.int8),
        np.zeros((size, size), dtype=np.float64),
        np.zeros((size, size), dtype=np.float64),
        np.full((size, size), diffusive, dtype=np.float64),
    )


def attach_args(fields):
    return (*fields, 1.9, 0.08, 0.025)


def diffuse_once(store):
    src = store.current
    dst = store.next
    phases.pin_border(src.attached, src.diffusive_mass, store.rho)
    phases.diffusion(*src, *dst)
    return dst


def test_diffusion_minimal_grid():
    """N=5 after one pass: only the grid edge removes vapor, ice reflects it."""
    store = LatticeStore(5, RHO)
    dst = diffuse_once(store)
    c = store.center

    assert dst.diffusive_mass[c, c] == 0.0
    for r in range(5):
        for col in range(5):
            if (r, col) == (c, c):
                continue
            in_grid = len(list(neighbors(5, r, col)))
            assert dst.diffusive_mass[r, col] == pytest.approx(RHO * (1 + in_grid) / 7.0)

    # corners are never neighbors of the seed, so only the edge shapes them
    assert dst.diffusive_mass[0, 0] == pytest.approx(4 * RHO / 7)
    assert dst.diffusive_mass[4, 0] == pytest.approx(3 * RHO / 7)
    assert dst.diffusive_mass[0, 4] == pytest.approx(3 * RHO / 7)
    assert dst.diffusive_mass[4, 4] == pytest.approx(4 * RHO / 7)

    # seed neighbors that see the edge lose mass; the others keep rho exactly
    assert dst.diffusive_mass[2, 2] == pytest.approx(RHO)
    assert dst.diffusive_mass[3, 4] < RHO
    assert dst.diffusive_mass[4, 3] < RHO


def test_diffusion_reflects_off_crystal():
    """Away from the edge, seed neighbors keep exactly rho after diffusion."""
    store = LatticeStore(11, RHO)
    dst = diffuse_once(store)
    c = store.center
    for rr, cc in neighbors(11, c, c):
        assert dst.diffusive_mass[rr, cc] == pytest.approx(RHO)


def test_diffusion_copies_other_fields():
    store = LatticeStore(9, RHO)
    store.current.boundary_mass[2, 3] = 0.7
    store.current.crystal_mass[2, 3] = 0.2
    dst = diffuse_once(store)
    assert dst.boundary_mass[2, 3] == 0.7
    assert dst.crystal_mass[2, 3] == 0.2
    assert np.array_equal(dst.attached, store.current.attached)
    assert np.array_equal(dst.attached_neighbors, store.current.attached_neighbors)


def test_diffusion_leaves_source_untouched():
    store = LatticeStore(9, RHO)
    store.current.diffusive_mass[4, 4] = 1.0
    before = store.current.diffusive_mass.copy()
    diffuse_once(store)
    assert np.array_equal(store.current.diffusive_mass, before)


def test_pin_border_resets_edge_only():
    attached, _, _, _, diffusive = blank(7, diffusive=0.1)
    phases.pin_border(attached, diffusive, 0.5)
    assert np.all(diffusive[0, :] == 0.5)
    assert np.all(diffusive[-1, :] == 0.5)
    assert np.all(diffusive[:, 0] == 0.5)
    assert np.all(diffusive[:, -1] == 0.5)
    assert np.all(diffusive[1:-1, 1:-1] == 0.1)


def test_freezing_splits_vapor():
    attached, nbr, boundary, crystal, diffusive = blank(diffusive=0.4)
    nbr[4, 4] = 2
    boundary[4, 4] = 0.1
    kappa = 0.01
    phases.freezing(attached, nbr, boundary, crystal, diffusive, kappa)
    assert diffusive[4, 4] == 0.0
    assert crystal[4, 4] == pytest.approx(kappa * 0.4)
    assert boundary[4, 4] == pytest.approx(0.1 + (1 - kappa) * 0.4)
    # cells without attached neighbors are untouched
    assert diffusive[0, 0] == 0.4
    assert crystal[0, 0] == 0.0


def test_freezing_skips_attached():
    attached, nbr, boundary, crystal, diffusive = blank(diffusive=0.4)
    attached[4, 4] = True
    nbr[4, 4] = 3
    crystal[4, 4] = 1.0
    phases.freezing(attached, nbr, boundary, crystal, diffusive, 0.5)
    assert crystal[4, 4] == 1.0
    assert diffusive[4, 4] == 0.4


def test_concavity_attaches_with_heavy_boundary():
    """Three attached neighbors and boundary >= 1 joins whatever the vapor."""
    fields = blank(diffusive=1.0)
    attached, nbr, boundary, crystal, diffusive = fields
    nbr[4, 4] = 3
    boundary[4, 4] = 1.5
    stop, count = phases.attachment(*attach_args(fields))
    assert attached[4, 4]
    assert count == 1
    assert not stop
    assert crystal[4, 4] == pytest.approx(1.5)
    assert boundary[4, 4] == 0.0
    for rr, cc in neighbors(9, 4, 4):
        assert nbr[rr, cc] == 1


def test_concavity_needs_low_vapor():
    fields = blank(diffusive=1.0)
    attached, nbr, boundary, _, diffusive = fields
    nbr[4, 4] = 3
    boundary[4, 4] = 0.5
    phases.attachment(*attach_args(fields))
    assert not attached[4, 4]

    diffusive[:] = 0.001
    phases.attachment(*attach_args(fields))
    assert attached[4, 4]


def test_concavity_needs_alpha():
    fields = blank(diffusive=0.0)
    attached, nbr, boundary, _, _ = fields
    nbr[4, 4] = 3
    boundary[4, 4] = 0.05
    phases.attachment(*attach_args(fields))
    assert not attached[4, 4]


def test_hole_attaches_unconditionally():
    fields = blank(diffusive=5.0)
    attached, nbr, boundary, crystal, _ = fields
    nbr[4, 4] = 5
    phases.attachment(*attach_args(fields))
    assert attached[4, 4]
    assert crystal[4, 4] == 0.0


@pytest.mark.parametrize("k", [1, 2])
def test_tip_and_edge_use_beta(k):
    fields = blank()
    attached, nbr, boundary, _, _ = fields
    nbr[4, 4] = k
    boundary[4, 4] = 1.89
    phases.attachment(*attach_args(fields))
    assert not attached[4, 4]
    boundary[4, 4] = 1.9
    phases.attachment(*attach_args(fields))
    assert attached[4, 4]


def test_no_attached_neighbors_never_joins():
    fields = blank()
    attached, _, boundary, _, _ = fields
    boundary[4, 4] = 100.0
    _, count = phases.attachment(*attach_args(fields))
    assert count == 0
    assert not attached.any()


def test_attachment_independent_of_scan_order():
    """
    A cell whose count rises this tick is still judged on its old count.

    (4, 5) has two attached neighbors and boundary 1.0. Its neighbor (4, 4)
    fills a hole and attaches; judged on the raised count of 3, (4, 5) would
    join too. It must not.
    """
    fields = blank()
    attached, nbr, boundary, _, _ = fields
    nbr[4, 4] = 4
    nbr[4, 5] = 2
    boundary[4, 5] = 1.0
    phases.attachment(*attach_args(fields))
    assert attached[4, 4]
    assert not attached[4, 5]
    assert nbr[4, 5] == 3

    # mirrored layout, visited in the opposite order, gives the mirrored result
    fields = blank()
    attached, nbr, boundary, _, _ = fields
    nbr[4, 4] = 4
    nbr[4, 3] = 2
    boundary[4, 3] = 1.0
    phases.attachment(*attach_args(fields))
    assert attached[4, 4]
    assert not attached[4, 3]


def test_attachment_mask_is_read_only():
    fields = blank()
    attached, nbr, boundary, _, diffusive = fields
    nbr[4, 4] = 6
    joins = phases.attachment_mask(attached, nbr, boundary, diffusive, 1.9, 0.08, 0.025)
    assert joins[4, 4]
    assert not attached[4, 4]


def test_stop_rule_outer_third():
    fields = blank()
    attached, nbr, _, _, _ = fields
    nbr[1, 4] = 5
    stop, _ = phases.attachment(*attach_args(fields))
    assert attached[1, 4]
    assert stop

    fields = blank()
    _, nbr, _, _, _ = fields
    nbr[3, 5] = 5  # margin is 9 // 3 = 3, so rows/cols 3..5 are safe
    stop, _ = phases.attachment(*attach_args(fields))
    assert not stop


def test_attachment_keeps_neighbor_counts_exact():
    fields = blank()
    attached, nbr, _, _, _ = fields
    attached[4, 4] = True
    nbr[:] = count_attached_neighbors(attached)
    nbr[3, 3] = 6  # force (3, 3) to attach despite its real count
    phases.attachment(*attach_args(fields))
    recount = count_attached_neighbors(attached)
    # (3, 3) contributes to its neighbors; the forced count itself is stale
    mask = np.ones_like(attached)
    mask[3, 3] = False
    assert np.array_equal(nbr[mask], recount[mask])


def test_melting_returns_mass_to_vapor():
    attached, nbr, boundary, crystal, diffusive = blank()
    nbr[4, 4] = 1
    boundary[4, 4] = 1.0
    crystal[4, 4] = 0.5
    mu, gamma = 0.06, 0.006
    total = boundary[4, 4] + crystal[4, 4] + diffusive[4, 4]
    phases.melting(attached, nbr, boundary, crystal, diffusive, mu, gamma)
    assert boundary[4, 4] == pytest.approx(1.0 - mu)
    assert crystal[4, 4] == pytest.approx(0.5 * (1.0 - gamma))
    assert diffusive[4, 4] == pytest.approx(mu * 1.0 + gamma * 0.5)
    assert boundary[4, 4] + crystal[4, 4] + diffusive[4, 4] == pytest.approx(total)


def test_melting_skips_attached_and_interior():
    attached, nbr, boundary, crystal, diffusive = blank()
    attached[4, 4] = True
    nbr[4, 4] = 2
    crystal[4, 4] = 1.0
    boundary[2, 2] = 1.0  # no attached neighbors
    phases.melting(attached, nbr, boundary, crystal, diffusive, 0.5, 0.5)
    assert crystal[4, 4] == 1.0
    assert boundary[2, 2] == 1.0
    assert not diffusive.any()


def test_noise_scales_interior_only():
    attached, _, _, _, diffusive = blank(diffusive=1.0)
    attached[4, 4] = True
    diffusive[4, 4] = 0.0
    coins = np.ones((9, 9), dtype=np.int8)
    coins[2, 2] = 0
    phases.noise(attached, diffusive, coins, 0.1)
    assert diffusive[3, 3] == pytest.approx(1.1)
    assert diffusive[2, 2] == pytest.approx(0.9)
    assert diffusive[0, 3] == 1.0
    assert diffusive[8, 8] == 1.0
    assert diffusive[4, 4] == 0.0


def test_diffusion_conserves_mass_away_from_edge():
    """A vapor blob that never reaches the border keeps its total mass."""
    store = LatticeStore(21, 0.0)
    src = store.current
    c = store.center
    src.diffusive_mass[c - 3:c + 4, c - 3:c + 4] = 0.5
    src.diffusive_mass[c, c] = 0.0
    total = src.diffusive_mass.sum()
    dst = diffuse_once(store)
    assert dst.diffusive_mass[c, c] == 0.0
    assert dst.diffusive_mass.sum() == pytest.approx(total, rel=1e-12)
    assert not np.array_equal(dst.diffusive_mass, src.diffusive_mass)


def test_freeze_and_attach_conserve_mass():
    fields = blank(diffusive=0.3)
    attached, nbr, boundary, crystal, diffusive = fields
    attached[4, 4] = True
    crystal[4, 4] = 1.0
    diffusive[4, 4] = 0.0
    nbr[:] = count_attached_neighbors(attached)
    boundary[4, 5] = 1.8  # tip cell that crosses beta after freezing
    nbr[3, 4] = 4  # forced hole
    total = boundary.sum() + crystal.sum() + diffusive.sum()

    phases.freezing(attached, nbr, boundary, crystal, diffusive, 0.01)
    _, count = phases.attachment(*attach_args(fields))
    assert count == 2
    assert boundary.sum() + crystal.sum() + diffusive.sum() == pytest.approx(total, rel=1e-12)
