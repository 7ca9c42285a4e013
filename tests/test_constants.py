from __future__ import annotations

import sys

from discmc.constants import (
    DEFAULT_BIG_ENERGY,
    MAX_FINITE_ENERGY,
    NUMERICAL_ZERO,
    OVERLAP_ENERGY_FRACTION,
    RELAX_ATTEMPTS_PER_OBJECT,
)


def test_numerical_zero_is_positive_and_tiny():
    assert NUMERICAL_ZERO > 0.0
    assert NUMERICAL_ZERO < 1e-20, "NUMERICAL_ZERO must be far below any physical scale"


def test_big_energy_fits_many_objects():
    """The default sentinel summed over every pair of 10^4 objects stays finite."""
    n = 10_000
    assert 2.0 * n * n * DEFAULT_BIG_ENERGY < MAX_FINITE_ENERGY
    assert MAX_FINITE_ENERGY < sys.float_info.max


def test_overlap_fraction_catches_a_single_wall_crossing():
    # one wall crossing adds half a sentinel to the halved total
    assert 0.0 < OVERLAP_ENERGY_FRACTION < 0.5


def test_relaxation_budget_matches_policy():
    assert RELAX_ATTEMPTS_PER_OBJECT == 2000
