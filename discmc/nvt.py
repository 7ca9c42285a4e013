from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .configuration import Configuration
from .constants import OVERLAP_ENERGY_FRACTION, RELAX_ATTEMPTS_PER_OBJECT
from .force_field import ForceField
from .integrator import Integrator, StepControl

Log = Callable[[str], None]


class RelaxationError(RuntimeError):
    def __init__(self, attempts: int):
        self.attempts = int(attempts)
        super().__init__(f"Unable to adjust initial configuration in {self.attempts} steps")


@dataclass(frozen=True)
class NVTResult:
    energy: float
    n_good: int
    n_bad: int
    dl_max: float
    relax_steps: int
    steps: int


def _print_log(msg: str) -> None:
    print(msg, flush=True)


def is_overlapping(energy: float, force_field: ForceField) -> bool:
    return float(energy) >= OVERLAP_ENERGY_FRACTION * float(force_field.big_energy)


def format_state(config: Configuration, energy: float, beta: float, pressure: float) -> list[str]:
    n = config.n_objects
    area = config.area()
    return [
        f"N objects = {n:9d} Pressure = {pressure:9g}   Beta = {beta:9g}",
        f"Area      = {area:9g}  Density = {n / area:9g} Energy = {energy:9g}",
    ]


def relax(
    config: Configuration,
    force_field: ForceField,
    beta: float,
    pressure: float,
    *,
    rng: np.random.Generator,
    dl_max: float,
    control: Optional[StepControl] = None,
    max_attempts: Optional[int] = None,
) -> tuple[float, int]:
    """Jiggle objects until no overlap remains.

    Runs bursts of 2N moves, carrying the move amplitude from one burst
    to the next.  Returns ``(dl_max, moves_used)``; raises
    ``RelaxationError`` once ``max_attempts`` (default 2000 N) moves have
    not removed every overlap.

    The target is stricter than "below the sentinel": relaxation goes on
    while the total is at least ``OVERLAP_ENERGY_FRACTION * big_energy``
    (a quarter of the sentinel), so a single wall crossing, which adds
    half a sentinel to the halved total, still counts as an overlap.
    """
    n = config.n_objects
    budget = RELAX_ATTEMPTS_PER_OBJECT * n if max_attempts is None else int(max_attempts)
    attempts = 0
    energy = config.energy(force_field)
    while is_overlapping(energy, force_field):
        if n == 0 or attempts > budget:
            raise RelaxationError(attempts)
        integ = Integrator(force_field, rng=rng, dl_max=dl_max, control=control)
        integ.run(config, beta, pressure, 2 * n)
        dl_max = integ.dl_max
        attempts += 2 * n
        energy = config.energy(force_field)
    return dl_max, attempts


def run_nvt(
    config: Configuration,
    force_field: ForceField,
    *,
    n_steps: int,
    print_frequency: int,
    beta: float,
    pressure: float,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    control: Optional[StepControl] = None,
    metrics=None,
    log: Log = _print_log,
) -> NVTResult:
    """Relax ``config`` then run ``n_steps`` NVT moves, reporting as it goes."""
    n_steps = int(n_steps)
    if n_steps < 1:
        raise ValueError(f"Too few iterations: {n_steps}")
    if rng is None:
        rng = np.random.default_rng(seed)
    elif seed is not None:
        raise ValueError("pass either rng or seed, not both")
    if control is None:
        control = StepControl()

    energy = config.energy(force_field)
    log("Configuration loaded")
    for line in format_state(config, energy, beta, pressure):
        log(line)

    dl_max = control.ceiling(config)
    dl_max, relax_steps = relax(
        config, force_field, beta, pressure, rng=rng, dl_max=dl_max, control=control
    )
    if relax_steps:
        energy = config.energy(force_field)
        log("After initial adjustments:")
        for line in format_state(config, energy, beta, pressure):
            log(line)

    step = n_steps if int(print_frequency) < 1 else min(int(print_frequency), n_steps)
    integ = Integrator(force_field, rng=rng, dl_max=dl_max, control=control)
    done = 0
    while done < n_steps:
        chunk = min(step, n_steps - done)
        integ.run(config, beta, pressure, chunk)
        done += chunk
        energy = config.energy(force_field)
        n = config.n_objects
        area = config.area()
        log(f"After {done} steps N = {n}, P = {pressure:g}, beta = {beta:g}")
        log(f"Area = {area:g}, Density = {n / area:g} Energy = {energy:g}")
        log(f"Moves {integ.n_good} in {integ.n_moves}, Dist_max = {integ.dl_max:g}")
        if metrics is not None:
            metrics.write(
                done,
                config,
                energy=energy,
                n_good=integ.n_good,
                n_moves=integ.n_moves,
                dl_max=integ.dl_max,
            )

    return NVTResult(
        energy=float(energy),
        n_good=int(integ.n_good),
        n_bad=int(integ.n_bad),
        dl_max=float(integ.dl_max),
        relax_steps=int(relax_steps),
        steps=done,
    )
