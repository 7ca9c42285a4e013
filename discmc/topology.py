from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import numpy as np


@dataclass(frozen=True)
class AtomSite:
    """One atom of an object type, offset from the object centre at orientation 0."""

    atom_type: int
    x: float
    y: float


@dataclass(frozen=True)
class Topology:
    """Object type -> atom geometry.  Read-only; configurations share it."""

    sites: dict[int, tuple[AtomSite, ...]]
    _offsets: dict[int, np.ndarray] = field(init=False, repr=False, compare=False)
    _types: dict[int, np.ndarray] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.sites:
            raise ValueError("topology must define at least one object type")
        offsets: dict[int, np.ndarray] = {}
        types: dict[int, np.ndarray] = {}
        for otype, atoms in self.sites.items():
            if int(otype) < 0:
                raise ValueError(f"object type {otype} must be non-negative")
            if not atoms:
                raise ValueError(f"object type {otype} has no atoms")
            offsets[int(otype)] = np.array([[a.x, a.y] for a in atoms], dtype=float)
            types[int(otype)] = np.array([a.atom_type for a in atoms], dtype=np.int32)
        object.__setattr__(self, "_offsets", offsets)
        object.__setattr__(self, "_types", types)

    def _check_type(self, object_type: int) -> int:
        t = int(object_type)
        if t not in self.sites:
            raise ValueError(f"unknown object type {object_type}; known: {sorted(self.sites)}")
        return t

    def atom_count(self, object_type: int) -> int:
        return len(self.sites[self._check_type(object_type)])

    def atom(self, object_type: int, index: int) -> AtomSite:
        return self.sites[self._check_type(object_type)][int(index)]

    @property
    def object_types(self) -> list[int]:
        return sorted(self.sites)

    @property
    def atom_types(self) -> list[int]:
        return sorted({a.atom_type for atoms in self.sites.values() for a in atoms})

    def extent(self, object_type: int | None = None) -> float:
        """Largest distance from an object centre to one of its atoms."""
        keys = self.object_types if object_type is None else [self._check_type(object_type)]
        return max(float(np.sqrt((self._offsets[k] ** 2).sum(axis=1)).max()) for k in keys)

    def expand(self, object_types: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Flatten objects into atoms.

        Returns: (owner object index, atom type, body-frame offset) per atom.
        """
        ot = np.asarray(object_types, dtype=np.int32)
        if ot.size == 0:
            return (
                np.zeros((0,), dtype=np.int32),
                np.zeros((0,), dtype=np.int32),
                np.zeros((0, 2), dtype=float),
            )
        owners = []
        types = []
        offsets = []
        for i, t in enumerate(ot.tolist()):
            k = self._check_type(t)
            n = self._types[k].shape[0]
            owners.append(np.full((n,), i, dtype=np.int32))
            types.append(self._types[k])
            offsets.append(self._offsets[k])
        return np.concatenate(owners), np.concatenate(types), np.concatenate(offsets, axis=0)


def default_topology() -> Topology:
    """Built-in object types: a disc, a dimer and a triangle."""
    return Topology(
        sites={
            0: (AtomSite(0, 0.0, 0.0),),
            1: (AtomSite(1, -0.5, 0.0), AtomSite(1, 0.5, 0.0)),
            2: (
                AtomSite(2, 0.0, 0.57735),
                AtomSite(2, -0.5, -0.288675),
                AtomSite(2, 0.5, -0.288675),
            ),
        }
    )


def parse_topology(raw: Any) -> Topology:
    """Build a Topology from ``{object_type: [[atom_type, x, y], ...]}``."""
    if not isinstance(raw, Mapping):
        raise ValueError("topology must be a mapping of object type -> atom list")
    sites: dict[int, tuple[AtomSite, ...]] = {}
    for key, atoms in raw.items():
        try:
            otype = int(key)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"invalid topology object type {key!r}") from exc
        if not isinstance(atoms, (list, tuple)) or not atoms:
            raise ValueError(f"topology[{key!r}] must be a non-empty list")
        out: list[AtomSite] = []
        for j, row in enumerate(atoms):
            if not isinstance(row, (list, tuple)) or len(row) != 3:
                raise ValueError(f"topology[{key!r}][{j}] must be [atom_type, x, y]")
            try:
                out.append(AtomSite(int(row[0]), float(row[1]), float(row[2])))
            except (ValueError, TypeError) as exc:
                raise ValueError(f"topology[{key!r}][{j}] has non-numeric fields") from exc
        if otype in sites:
            raise ValueError(f"duplicate topology object type {otype}")
        sites[otype] = tuple(out)
    return Topology(sites=sites)
