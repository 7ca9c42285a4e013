from __future__ import annotations
import math
import numpy as np

from .configuration import Configuration, RigidObject
from .topology import Topology

LATTICE_KINDS = ("square", "hex", "random")

def square_positions(n_objects: int, width: float, height: float) -> np.ndarray:
    # smallest grid with at least n sites, same aspect ratio as the cell
    nx = max(1, int(math.ceil(math.sqrt(n_objects * width / height))))
    ny = max(1, int(math.ceil(n_objects / nx)))
    ax = width / nx
    ay = height / ny
    pts = []
    for j in range(ny):
        for i in range(nx):
            pts.append(((i + 0.5) * ax, (j + 0.5) * ay))
    return np.array(pts[:n_objects], dtype=float).reshape(-1, 2)

def hex_positions(n_objects: int, width: float, height: float) -> np.ndarray:
    nx = max(1, int(math.ceil(math.sqrt(n_objects * width / (height * math.sqrt(3.0) / 2.0)))))
    ny = max(1, int(math.ceil(n_objects / nx)))
    ax = width / nx
    ay = height / ny
    pts = []
    for j in range(ny):
        shift = 0.25 * ax if j % 2 == 0 else 0.75 * ax
        for i in range(nx):
            pts.append((i * ax + shift, (j + 0.5) * ay))
    return np.array(pts[:n_objects], dtype=float).reshape(-1, 2)

def random_positions(n_objects: int, width: float, height: float, seed: int) -> np.ndarray:
    rng = np.random.default_rng(int(seed))
    return rng.random((n_objects, 2)) * np.array([width, height], dtype=float)

def make_configuration(
    kind: str,
    n_objects: int,
    width: float,
    height: float,
    *,
    object_type: int = 0,
    periodic: bool = True,
    topology: Topology | None = None,
    seed: int = 123,
) -> Configuration:
    n = int(n_objects)
    if n < 0:
        raise ValueError("n_objects must be >= 0")
    k = str(kind).strip().lower()
    if k == "square":
        pos = square_positions(n, width, height)
    elif k == "hex":
        pos = hex_positions(n, width, height)
    elif k == "random":
        pos = random_positions(n, width, height, seed)
    else:
        raise ValueError(f"unknown lattice kind {kind!r}; allowed: {list(LATTICE_KINDS)}")
    rng = np.random.default_rng(int(seed) + 999)
    theta = rng.random(n) * 2.0 * np.pi
    objs = [RigidObject(int(object_type), float(p[0]), float(p[1]), float(t)) for p, t in zip(pos, theta)]
    return Configuration(width, height, periodic=periodic, topology=topology, objects=objs)
