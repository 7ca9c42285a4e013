from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .constants import DEFAULT_BIG_ENERGY, MAX_FINITE_ENERGY, NUMERICAL_ZERO


def canonical_force_field_kind(kind: str) -> str:
    k = str(kind).strip().lower().replace("-", "_")
    if k in ("square", "sw", "square_well"):
        return "square_well"
    if k in ("morse", "morse_well"):
        return "morse"
    return k


def _parse_pair_key(key: str) -> tuple[int, int]:
    txt = str(key).strip()
    for sep in ("-", ",", ":"):
        if sep in txt:
            parts = [p.strip() for p in txt.split(sep)]
            if len(parts) != 2:
                break
            try:
                i = int(parts[0])
                j = int(parts[1])
            except (ValueError, TypeError) as exc:
                raise ValueError(f"invalid well_depths key '{key}'") from exc
            if i < 0 or j < 0:
                raise ValueError(f"well_depths key '{key}' must use non-negative atom types")
            return (min(i, j), max(i, j))
    raise ValueError(f"invalid well_depths key '{key}'; expected 'i-j' with non-negative ints")


def parse_well_depths(params: dict[str, Any]) -> dict[tuple[int, int], float]:
    raw = params.get("well_depths")
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("force_field.params.well_depths must be a mapping")
    out: dict[tuple[int, int], float] = {}
    for k, v in raw.items():
        pair = _parse_pair_key(str(k))
        try:
            val = float(v)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"well_depths[{k!r}] must be a number") from exc
        if not np.isfinite(val):
            raise ValueError(f"well_depths[{k!r}] must be finite")
        prev = out.get(pair)
        if prev is not None and prev != val:
            raise ValueError(f"duplicate well_depths for {pair} with conflicting values")
        out[pair] = val
    return out


@dataclass(frozen=True)
class ForceField:
    """Atom radii/colours, pair well depths, hard cutoff and overlap sentinel.

    Subclasses supply the shape of the attractive well between contact
    (sum of the two radii) and the cutoff.  Closer than contact the
    energy is ``big_energy``; at or beyond the cutoff it is exactly zero.
    """

    radii: tuple[float, ...]
    colors: tuple[str, ...]
    well_depths: dict[tuple[int, int], float] = field(default_factory=dict)
    default_depth: float = 0.0
    cutoff: float = 2.0
    length: float = 0.5
    big_energy: float = DEFAULT_BIG_ENERGY
    wall_depth: float = 0.0
    _radius: np.ndarray = field(init=False, repr=False, compare=False)
    _depth: np.ndarray = field(init=False, repr=False, compare=False)

    kind = "base"

    def __post_init__(self):
        n = len(self.radii)
        if n == 0:
            raise ValueError("force field must define at least one atom type")
        if len(self.colors) != n:
            raise ValueError("force field colors must match radii (one per atom type)")
        radius = np.asarray(self.radii, dtype=float)
        if np.any(~np.isfinite(radius)) or np.any(radius < 0.0):
            raise ValueError("atom radii must be finite and non-negative")
        if not (np.isfinite(self.cutoff) and self.cutoff > 0.0):
            raise ValueError("cutoff must be positive and finite")
        if not (np.isfinite(self.length) and self.length > 0.0):
            raise ValueError("length must be positive and finite")
        if not (np.isfinite(self.big_energy) and self.big_energy > 0.0):
            raise ValueError("big_energy must be positive and finite")
        if self.big_energy > MAX_FINITE_ENERGY:
            raise ValueError("big_energy exceeds the finite energy capacity")
        depth = np.full((n, n), float(self.default_depth), dtype=float)
        for (a, b), val in self.well_depths.items():
            if a >= n or b >= n:
                raise ValueError(f"well_depths pair {(a, b)} refers to unknown atom type (n_types={n})")
            depth[a, b] = float(val)
            depth[b, a] = float(val)
        object.__setattr__(self, "_radius", radius)
        object.__setattr__(self, "_depth", depth)

    @property
    def n_atom_types(self) -> int:
        return len(self.radii)

    @property
    def max_radius(self) -> float:
        return float(self._radius.max())

    @property
    def reach(self) -> float:
        """Largest atom-atom distance with a non-zero energy."""
        return max(float(self.cutoff), 2.0 * self.max_radius)

    def atom_radius(self, atom_type: int) -> float:
        return float(self._radius[int(atom_type)])

    def atom_color(self, atom_type: int) -> str:
        return self.colors[int(atom_type)]

    def well_depth(self, type_a: int, type_b: int) -> float:
        return float(self._depth[int(type_a), int(type_b)])

    def _well(self, r: np.ndarray, contact: np.ndarray, depth: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def pair_energy(self, type_a: int, types_b: np.ndarray, r: np.ndarray) -> np.ndarray:
        """Energies of atom ``type_a`` with atoms ``types_b`` at distances ``r``."""
        tb = np.asarray(types_b, dtype=np.int32)
        rr = np.asarray(r, dtype=float)
        contact = self._radius[int(type_a)] + self._radius[tb]
        depth = self._depth[int(type_a), tb]
        inside = rr < self.cutoff
        U = np.where(inside, self._well(rr, contact, depth), 0.0)
        return np.where(rr < contact, self.big_energy, U)

    def interaction_energy(self, type_a: int, type_b: int, r: float) -> float:
        e = self.pair_energy(int(type_a), np.array([int(type_b)]), np.array([float(r)]))
        return float(e[0])

    def wall_energy(self, atom_types: np.ndarray, distances: np.ndarray) -> float:
        """Energy of atoms against the four cell walls.

        ``distances`` has shape (n_atoms, 4): distance of each atom centre
        to the left, right, bottom and top wall.  An atom closer to a wall
        than its radius gives the sentinel.
        """
        t = np.asarray(atom_types, dtype=np.int32)
        d = np.asarray(distances, dtype=float).reshape(t.shape[0], 4)
        if np.any(d < self._radius[t][:, None]):
            return float(self.big_energy)
        if self.wall_depth == 0.0:
            return 0.0
        return float(self.wall_depth) * float(np.count_nonzero(d < self.cutoff))

    def check_capacity(self, n_objects: int) -> None:
        """Every object pair adds at most one sentinel (plus one for walls)."""
        n = max(1, int(n_objects))
        worst = 2.0 * float(n) * float(n) * float(self.big_energy)
        if not worst < MAX_FINITE_ENERGY:
            raise ValueError(
                f"big_energy={self.big_energy:g} is too large for {n} objects; "
                "the worst-case energy sum would not stay finite"
            )


@dataclass(frozen=True)
class SquareWellForceField(ForceField):
    kind = "square_well"

    def _well(self, r, contact, depth):
        return np.broadcast_to(depth, np.shape(r)).astype(float)


@dataclass(frozen=True)
class MorseWellForceField(ForceField):
    """Morse-shaped well: ``depth`` at contact, decaying over ``length``."""

    kind = "morse"

    def _well(self, r, contact, depth):
        x = (r - contact) / (self.length + NUMERICAL_ZERO)
        exp1 = np.exp(-np.maximum(x, 0.0))
        return depth * (1.0 - (1.0 - exp1) ** 2)


_DEFAULT_RADII = (0.5, 0.5, 0.5)
_DEFAULT_COLORS = ("0.8 0.1 0.1", "0.1 0.4 0.8", "0.1 0.7 0.2")
_DEFAULT_WELLS = {
    (0, 0): -1.0,
    (1, 1): -0.5,
    (2, 2): -1.5,
    (0, 1): -0.25,
    (0, 2): -0.25,
    (1, 2): -0.75,
}


def _parse_atom_types(params: dict[str, Any]) -> tuple[tuple[float, ...], tuple[str, ...]]:
    raw = params.get("atom_types")
    if raw is None:
        return _DEFAULT_RADII, _DEFAULT_COLORS
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValueError("force_field.params.atom_types must be a non-empty list")
    radii: list[float] = []
    colors: list[str] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"atom_types[{i}] must be a mapping with 'radius' and 'color'")
        if "radius" not in entry:
            raise ValueError(f"atom_types[{i}] missing required key 'radius'")
        unknown = sorted(set(entry.keys()) - {"radius", "color"})
        if unknown:
            raise ValueError(f"atom_types[{i}] has unsupported keys: {unknown}")
        radii.append(float(entry["radius"]))
        colors.append(str(entry.get("color", "0 0 0")))
    return tuple(radii), tuple(colors)


def make_force_field(kind: str = "square_well", params: dict | None = None) -> ForceField:
    params = dict(params or {})
    kind = canonical_force_field_kind(kind)
    radii, colors = _parse_atom_types(params)
    if "atom_types" in params or "well_depths" in params:
        wells = parse_well_depths(params)
    else:
        wells = dict(_DEFAULT_WELLS)
    common = dict(
        radii=radii,
        colors=colors,
        well_depths=wells,
        default_depth=float(params.get("default_depth", 0.0)),
        cutoff=float(params.get("cutoff", 2.0)),
        length=float(params.get("length", 0.5)),
        big_energy=float(params.get("big_energy", DEFAULT_BIG_ENERGY)),
        wall_depth=float(params.get("wall_depth", 0.0)),
    )
    if kind == "square_well":
        return SquareWellForceField(**common)
    if kind == "morse":
        return MorseWellForceField(**common)
    raise ValueError(f"unsupported force field kind: {kind!r}; allowed: ['morse', 'square_well']")
