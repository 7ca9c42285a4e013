from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .configuration import Configuration, MoveCheckpoint
from .constants import NUMERICAL_ZERO
from .force_field import ForceField
from .state import in_cell, sample_disc


@dataclass(frozen=True)
class StepControl:
    """Move-amplitude policy.

    Every ``adapt_every`` proposals the acceptance ratio of that batch is
    compared with ``target_acceptance +- tolerance``; ``dl_max`` is
    multiplied by ``grow`` above the band and by ``shrink`` below it, then
    clamped to ``[dl_min, min(width, height) / 2]``.  ``adapt_every=0``
    freezes the amplitude.
    """

    dl_min: float = 1e-4
    theta_max: float = 2.0 * math.pi
    adapt_every: int = 100
    target_acceptance: float = 0.5
    tolerance: float = 0.1
    grow: float = 1.1
    shrink: float = 0.9

    def __post_init__(self):
        if not (math.isfinite(self.dl_min) and self.dl_min > 0.0):
            raise ValueError("dl_min must be positive and finite")
        if not (math.isfinite(self.theta_max) and self.theta_max >= 0.0):
            raise ValueError("theta_max must be non-negative and finite")
        if int(self.adapt_every) < 0:
            raise ValueError("adapt_every must be >= 0")
        if not (0.0 < self.target_acceptance < 1.0):
            raise ValueError("target_acceptance must lie in (0, 1)")
        if not (0.0 <= self.tolerance < 1.0):
            raise ValueError("tolerance must lie in [0, 1)")
        if not (self.grow >= 1.0 and math.isfinite(self.grow)):
            raise ValueError("grow must be >= 1")
        if not (0.0 < self.shrink <= 1.0):
            raise ValueError("shrink must lie in (0, 1]")

    def ceiling(self, config: Configuration) -> float:
        return max(float(self.dl_min), min(config.width, config.height) / 2.0)

    def clamp(self, dl_max: float, config: Configuration) -> float:
        return float(min(max(float(dl_max), float(self.dl_min)), self.ceiling(config)))

    def adjust(self, dl_max: float, ratio: float, config: Configuration) -> float:
        lo = self.target_acceptance - self.tolerance
        hi = self.target_acceptance + self.tolerance
        if ratio > hi:
            dl_max = dl_max * self.grow
        elif ratio < lo:
            dl_max = dl_max * self.shrink
        return self.clamp(dl_max, config)


def step_control_from_params(params: dict[str, Any] | None) -> StepControl:
    p = dict(params or {})
    allowed = {"dl_min", "theta_max", "adapt_every", "target_acceptance", "tolerance", "grow", "shrink"}
    unknown = sorted(set(p.keys()) - allowed)
    if unknown:
        raise ValueError(f"integrator contains unsupported keys: {unknown}")
    base = StepControl()
    return StepControl(
        dl_min=float(p.get("dl_min", base.dl_min)),
        theta_max=float(p.get("theta_max", base.theta_max)),
        adapt_every=int(p.get("adapt_every", base.adapt_every)),
        target_acceptance=float(p.get("target_acceptance", base.target_acceptance)),
        tolerance=float(p.get("tolerance", base.tolerance)),
        grow=float(p.get("grow", base.grow)),
        shrink=float(p.get("shrink", base.shrink)),
    )


def metropolis_accept(delta_e: float, beta: float, u: float) -> bool:
    """Metropolis criterion for one uniform draw ``u`` in [0, 1)."""
    if delta_e <= 0.0:
        return True
    x = float(beta) * float(delta_e)
    if x <= 0.0:
        return True
    return float(u) < math.exp(-x)


@dataclass(frozen=True)
class Proposal:
    index: int
    checkpoint: MoveCheckpoint
    e_old: float
    e_new: float

    @property
    def delta_e(self) -> float:
        return self.e_new - self.e_old


class Integrator:
    """Metropolis Monte Carlo over single-object moves.

    Every move translates one random object uniformly inside a disc of
    radius ``dl_max`` and rotates it by up to ``theta_max / 2`` either way.
    ``n_good``/``n_bad`` accumulate over all ``run`` calls on the same
    instance; ``dl_max`` adapts according to ``control``.
    """

    def __init__(
        self,
        force_field: ForceField,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        dl_max: float = 1.0,
        control: Optional[StepControl] = None,
    ):
        if rng is not None and seed is not None:
            raise ValueError("pass either rng or seed, not both")
        self.force_field = force_field
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.control = control if control is not None else StepControl()
        dl = float(dl_max)
        if not (math.isfinite(dl) and dl > 0.0):
            raise ValueError("dl_max must be positive and finite")
        self.dl_max = dl
        self.n_good = 0
        self.n_bad = 0
        self._batch_good = 0
        self._batch_total = 0

    @property
    def n_moves(self) -> int:
        return self.n_good + self.n_bad

    @property
    def acceptance_ratio(self) -> float:
        return self.n_good / max(1, self.n_moves)

    def propose(self, config: Configuration, index: int) -> Optional[Proposal]:
        """Move object ``index`` and evaluate the new energy.

        Returns None (configuration untouched) when a non-periodic move
        would leave the cell.
        """
        i = int(index)
        e_old = config.energy(self.force_field)
        shift = sample_disc(self.rng, self.dl_max)
        dtheta = self.control.theta_max * (self.rng.random() - 0.5)
        new_pos = config.positions[i] + shift
        if not config.periodic and not in_cell(new_pos, config.box):
            return None
        cp = config.checkpoint(i)
        reach = config.interaction_range(self.force_field)
        config.move_object(i, new_pos, config.orientations[i] + dtheta, reach)
        e_new = config.energy(self.force_field)
        return Proposal(index=i, checkpoint=cp, e_old=e_old, e_new=e_new)

    def step(self, config: Configuration, beta: float) -> bool:
        """One full move: select, propose, accept or reject."""
        if config.n_objects == 0:
            raise ValueError("configuration has no objects to move")
        i = int(self.rng.integers(config.n_objects))
        prop = self.propose(config, i)
        if prop is None:
            accepted = False
        else:
            accepted = metropolis_accept(prop.delta_e, beta, self.rng.random())
            if not accepted:
                config.restore(prop.checkpoint)
        if accepted:
            self.n_good += 1
            self._batch_good += 1
        else:
            self.n_bad += 1
        self._batch_total += 1
        every = int(self.control.adapt_every)
        if every and self._batch_total >= every:
            self._adapt(config)
        return accepted

    def _adapt(self, config: Configuration) -> None:
        ratio = self._batch_good / max(NUMERICAL_ZERO, float(self._batch_total))
        self.dl_max = self.control.adjust(self.dl_max, ratio, config)
        self._batch_good = 0
        self._batch_total = 0

    def run(self, config: Configuration, beta: float, pressure: float, n_steps: int) -> None:
        """Advance ``config`` by ``n_steps`` moves.

        ``pressure`` is accepted for interface parity with volume-changing
        ensembles and is not used.
        """
        del pressure
        if not math.isfinite(float(beta)):
            raise ValueError("beta must be finite")
        if config.n_objects == 0:
            return
        self.dl_max = self.control.clamp(self.dl_max, config)
        for _ in range(max(0, int(n_steps))):
            self.step(config, beta)
