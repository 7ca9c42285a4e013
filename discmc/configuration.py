from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .force_field import ForceField
from .state import in_cell, minimum_image, pbc_wrap, rotate_offsets
from .topology import Topology


@dataclass(frozen=True)
class RigidObject:
    type: int
    x: float
    y: float
    orientation: float = 0.0

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class MoveCheckpoint:
    """Everything a single-object move can change, captured before the move."""

    index: int
    position: np.ndarray
    orientation: float
    energies: np.ndarray
    dirty: np.ndarray
    saved_energy: float
    unchanged: bool


class Configuration:
    """Rigid objects in a rectangular, optionally periodic, cell.

    Per-object state is held in parallel arrays indexed by object number;
    the index of an object never changes once it is added.  Energies are
    cached at two levels: each object keeps the energy of its
    interactions (``energies``/``dirty``) and the configuration keeps the
    halved total (``saved_energy``/``unchanged``).
    """

    def __init__(
        self,
        width: float = 1.0,
        height: float = 1.0,
        *,
        periodic: bool = False,
        topology: Optional[Topology] = None,
        objects: Iterable[RigidObject] = (),
    ):
        w = float(width)
        h = float(height)
        if not (np.isfinite(w) and np.isfinite(h) and w > 0.0 and h > 0.0):
            raise ValueError("cell width and height must be positive and finite")
        self.width = w
        self.height = h
        self.periodic = bool(periodic)
        self.topology = topology
        self.types = np.zeros((0,), dtype=np.int32)
        self.positions = np.zeros((0, 2), dtype=float)
        self.orientations = np.zeros((0,), dtype=float)
        self.energies = np.zeros((0,), dtype=float)
        self.dirty = np.zeros((0,), dtype=bool)
        self.saved_energy = 0.0
        self.unchanged = True
        objs = list(objects)
        if objs:
            self._append(
                np.array([o.type for o in objs], dtype=np.int32),
                np.array([[o.x, o.y] for o in objs], dtype=float),
                np.array([o.orientation for o in objs], dtype=float),
            )

    # ------------------------------------------------------------------
    # container
    # ------------------------------------------------------------------
    @property
    def box(self) -> tuple[float, float]:
        return (self.width, self.height)

    @property
    def n_objects(self) -> int:
        return int(self.types.shape[0])

    def __len__(self) -> int:
        return self.n_objects

    def _append(self, types: np.ndarray, pos: np.ndarray, theta: np.ndarray) -> None:
        if np.any(types < 0):
            raise ValueError("object types must be non-negative")
        if self.periodic:
            pos = pbc_wrap(pos, self.box)
        else:
            for p in pos:
                self._check_in_cell(p)
        n = int(types.shape[0])
        self.types = np.concatenate([self.types, types])
        self.positions = np.concatenate([self.positions, pos], axis=0)
        self.orientations = np.concatenate([self.orientations, theta])
        self.energies = np.concatenate([self.energies, np.zeros((n,), dtype=float)])
        # every existing object may now see a new neighbour
        self.dirty = np.ones((self.n_objects,), dtype=bool)
        self.unchanged = False

    def _check_in_cell(self, pos: np.ndarray) -> None:
        if not in_cell(pos, self.box):
            raise ValueError(
                f"position ({float(pos[0]):g}, {float(pos[1]):g}) lies outside the "
                f"{self.width:g} x {self.height:g} cell"
            )

    def add_object(self, obj: RigidObject) -> int:
        """Append an object; returns its (stable) index."""
        self._append(
            np.array([int(obj.type)], dtype=np.int32),
            np.array([[float(obj.x), float(obj.y)]], dtype=float),
            np.array([float(obj.orientation)], dtype=float),
        )
        return self.n_objects - 1

    def object(self, index: int) -> RigidObject:
        i = int(index)
        return RigidObject(
            type=int(self.types[i]),
            x=float(self.positions[i, 0]),
            y=float(self.positions[i, 1]),
            orientation=float(self.orientations[i]),
        )

    def objects(self) -> list[RigidObject]:
        return [self.object(i) for i in range(self.n_objects)]

    def object_types(self) -> int:
        """Highest object type present (-1 when empty)."""
        if self.n_objects == 0:
            return -1
        return int(self.types.max())

    def set_topology(self, topology: Topology) -> None:
        """Attach a topology, dropping any previous one."""
        self.topology = topology
        self.invalidate_all()

    def copy(self) -> "Configuration":
        out = Configuration(self.width, self.height, periodic=self.periodic, topology=self.topology)
        out.types = self.types.copy()
        out.positions = self.positions.copy()
        out.orientations = self.orientations.copy()
        out.energies = self.energies.copy()
        out.dirty = self.dirty.copy()
        out.saved_energy = self.saved_energy
        out.unchanged = self.unchanged
        return out

    def area(self) -> float:
        return self.width * self.height

    # ------------------------------------------------------------------
    # geometry
    # ------------------------------------------------------------------
    def separation(self, i: int, j: int) -> np.ndarray:
        """Displacement from object i to object j (minimum image if periodic)."""
        d = self.positions[int(j)] - self.positions[int(i)]
        if self.periodic:
            d = minimum_image(d, self.box)
        return d

    def distance(self, i: int, j: int) -> float:
        d = self.separation(i, j)
        return float(np.sqrt((d * d).sum()))

    def _distances_from(self, index: int) -> np.ndarray:
        d = self.positions - self.positions[int(index)]
        if self.periodic:
            d = minimum_image(d, self.box)
        return np.sqrt((d * d).sum(axis=1))

    def _atoms(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        if self.topology is None:
            raise ValueError("configuration has no topology; call set_topology() first")
        owners, atom_types, offsets = self.topology.expand(self.types)
        rot = rotate_offsets(offsets, self.orientations[owners])
        return owners, atom_types, rot

    def atom_positions(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Returns: (owner index, atom type, absolute position) per atom.

        Positions are not wrapped; atoms of an object near a periodic
        edge may lie outside the cell.
        """
        owners, atom_types, rot = self._atoms()
        return owners, atom_types, self.positions[owners] + rot

    def interaction_range(self, force_field: ForceField) -> float:
        """Centre distance beyond which two objects cannot interact."""
        if self.topology is None:
            raise ValueError("configuration has no topology; call set_topology() first")
        return force_field.reach + 2.0 * self.topology.extent()

    def rms(self, ref: "Configuration") -> float:
        """Root mean square atom displacement between two configurations."""
        if ref.n_objects != self.n_objects or not np.array_equal(ref.types, self.types):
            raise ValueError("rms requires configurations with the same objects")
        if self.n_objects == 0:
            return 0.0
        _o, _t, a = self.atom_positions()
        _o, _t, b = ref.atom_positions()
        d = a - b
        if self.periodic:
            d = minimum_image(d, self.box)
        return float(np.sqrt((d * d).sum(axis=1).mean()))

    # ------------------------------------------------------------------
    # invalidation and mutation
    # ------------------------------------------------------------------
    def invalidate_all(self) -> None:
        self.dirty[:] = True
        self.unchanged = False

    def invalidate_within(self, distance: float, index: int) -> None:
        """Mark dirty every other object closer than ``distance`` to ``index``.

        Neither the reference object nor the configuration flag is touched.
        """
        near = self._distances_from(index) < float(distance)
        near[int(index)] = False
        self.dirty |= near

    def move_object(self, index: int, position, orientation: float, reach: float) -> None:
        """Place object ``index`` at a new position/orientation.

        Objects within ``reach`` of the old and of the new position are
        marked dirty, as is the object itself and the configuration.
        A non-periodic cell raises ValueError for a position outside it.
        """
        i = int(index)
        pos = np.asarray(position, dtype=float).reshape(2)
        if self.periodic:
            pos = pbc_wrap(pos, self.box)
        else:
            self._check_in_cell(pos)
        self.invalidate_within(reach, i)
        self.positions[i] = pos
        self.orientations[i] = float(orientation)
        self.invalidate_within(reach, i)
        self.dirty[i] = True
        self.unchanged = False

    def expand(self, factor: float) -> None:
        """Isometric expansion of the cell and of object positions."""
        dl = float(factor)
        if not (np.isfinite(dl) and dl > 0.0):
            raise ValueError("expansion factor must be positive and finite")
        self.width *= dl
        self.height *= dl
        self.positions *= dl
        self.invalidate_all()

    def checkpoint(self, index: int) -> MoveCheckpoint:
        i = int(index)
        return MoveCheckpoint(
            index=i,
            position=self.positions[i].copy(),
            orientation=float(self.orientations[i]),
            energies=self.energies.copy(),
            dirty=self.dirty.copy(),
            saved_energy=float(self.saved_energy),
            unchanged=bool(self.unchanged),
        )

    def restore(self, cp: MoveCheckpoint) -> None:
        """Undo a move exactly, caches included."""
        self.positions[cp.index] = cp.position
        self.orientations[cp.index] = cp.orientation
        self.energies[:] = cp.energies
        self.dirty[:] = cp.dirty
        self.saved_energy = cp.saved_energy
        self.unchanged = cp.unchanged

    # ------------------------------------------------------------------
    # energy
    # ------------------------------------------------------------------
    def _object_energy(
        self,
        index: int,
        force_field: ForceField,
        owners: np.ndarray,
        atom_types: np.ndarray,
        rot: np.ndarray,
    ) -> float:
        n = self.n_objects
        i = int(index)
        mine = owners == i
        other = ~mine
        value = 0.0
        if n > 1:
            d = self.positions - self.positions[i]
            if self.periodic:
                d = minimum_image(d, self.box)
            o_owner = owners[other]
            o_type = atom_types[other]
            rel = d[o_owner] + rot[other]
            pair_e = np.zeros((n,), dtype=float)
            overlap = np.zeros((n,), dtype=bool)
            for off, ta in zip(rot[mine], atom_types[mine]):
                dr = rel - off
                r = np.sqrt((dr * dr).sum(axis=1))
                e = force_field.pair_energy(int(ta), o_type, r)
                hit = e >= force_field.big_energy
                pair_e += np.bincount(o_owner, weights=np.where(hit, 0.0, e), minlength=n)
                overlap |= np.bincount(o_owner, weights=hit.astype(float), minlength=n) > 0.0
            # an overlapping object pair counts one sentinel, however many atoms touch
            pair_e = np.where(overlap, force_field.big_energy, pair_e)
            pair_e[i] = 0.0
            value += float(pair_e.sum())
        if not self.periodic:
            atoms = self.positions[i] + rot[mine]
            walls = np.column_stack(
                [atoms[:, 0], self.width - atoms[:, 0], atoms[:, 1], self.height - atoms[:, 1]]
            )
            value += force_field.wall_energy(atom_types[mine], walls)
        return value

    def energy(self, force_field: ForceField) -> float:
        """Total interaction energy, recomputing only dirty objects.

        Each pair is counted from both sides, so the stored per-object
        energies sum to twice the returned total.
        """
        if not self.unchanged:
            force_field.check_capacity(self.n_objects)
            idx = np.flatnonzero(self.dirty)
            if idx.size:
                owners, atom_types, rot = self._atoms()
                for i in idx.tolist():
                    self.energies[i] = self._object_energy(i, force_field, owners, atom_types, rot)
                self.dirty[idx] = False
            self.saved_energy = float(self.energies.sum()) / 2.0
            self.unchanged = True
        return self.saved_energy

    def raw_energy_sum(self) -> float:
        """Sum of cached per-object energies (twice the total when clean)."""
        return float(self.energies.sum())

    def recompute_energy(self, force_field: ForceField) -> float:
        self.invalidate_all()
        return self.energy(force_field)

    def __repr__(self) -> str:
        return (
            f"Configuration(width={self.width:g}, height={self.height:g}, "
            f"periodic={self.periodic}, n_objects={self.n_objects})"
        )
