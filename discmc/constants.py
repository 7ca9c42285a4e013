"""Named numeric constants for discmc.

Any change to these values is a behaviour change of the sampler and
must be checked against the energy and integrator test suites.

Categories
----------
NUMERICAL_ZERO
    Tiny positive guard added before division in the Morse well and
    the step controller.

DEFAULT_BIG_ENERGY
    Finite stand-in for an infinite overlap energy.  Summing it over all
    object pairs must stay far below ``MAX_FINITE_ENERGY``; see
    ``ForceField.check_capacity``.

MAX_FINITE_ENERGY
    Upper bound for any accumulated energy.  Kept six orders of magnitude
    below ``sys.float_info.max`` so halving and differencing stay
    well defined.

OVERLAP_ENERGY_FRACTION
    A configuration whose total energy reaches this fraction of the
    sentinel holds at least one overlap.  One wall crossing contributes
    half a sentinel to the halved total, so the fraction sits below 0.5.

RELAX_ATTEMPTS_PER_OBJECT
    Budget of relaxation moves per object before the initial
    configuration is declared unusable.
"""

from __future__ import annotations

import sys

# ---------------------------------------------------------------------------
# Division guard
# ---------------------------------------------------------------------------
NUMERICAL_ZERO: float = 1e-30

# ---------------------------------------------------------------------------
# Energy sentinel and its capacity
# ---------------------------------------------------------------------------
DEFAULT_BIG_ENERGY: float = 1.0e10
MAX_FINITE_ENERGY: float = sys.float_info.max * 1e-6

# ---------------------------------------------------------------------------
# Relaxation policy
# ---------------------------------------------------------------------------
OVERLAP_ENERGY_FRACTION: float = 0.25
RELAX_ATTEMPTS_PER_OBJECT: int = 2000
