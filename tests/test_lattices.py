from __future__ import annotations

import numpy as np
import pytest

from discmc.lattices import hex_positions, make_configuration, random_positions, square_positions


@pytest.mark.parametrize("fn", [square_positions, hex_positions])
def test_lattice_sites_inside_cell(fn):
    pos = fn(30, 12.0, 6.0)
    assert pos.shape == (30, 2)
    assert np.all(pos >= 0.0)
    assert np.all(pos[:, 0] < 12.0) and np.all(pos[:, 1] < 6.0)
    assert len({tuple(p) for p in pos.round(9).tolist()}) == 30


def test_square_lattice_spacing():
    pos = square_positions(4, 4.0, 4.0)
    assert pos == pytest.approx(np.array([[1.0, 1.0], [3.0, 1.0], [1.0, 3.0], [3.0, 3.0]]))


def test_random_positions_deterministic():
    a = random_positions(10, 5.0, 3.0, seed=4)
    b = random_positions(10, 5.0, 3.0, seed=4)
    assert np.array_equal(a, b)
    assert np.all(a[:, 1] < 3.0)


def test_make_configuration():
    config = make_configuration("hex", 7, 9.0, 9.0, object_type=2, periodic=False, seed=1)
    assert config.n_objects == 7
    assert not config.periodic
    assert config.types.tolist() == [2] * 7
    assert np.all((config.orientations >= 0.0) & (config.orientations < 2 * np.pi))


def test_make_configuration_errors():
    with pytest.raises(ValueError, match="unknown lattice kind"):
        make_configuration("bcc", 4, 5.0, 5.0)
    with pytest.raises(ValueError):
        make_configuration("square", -1, 5.0, 5.0)


def test_make_configuration_empty():
    assert make_configuration("random", 0, 5.0, 5.0).n_objects == 0
