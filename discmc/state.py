from __future__ import annotations
from typing import Tuple
import numpy as np

Box = Tuple[float, float]

def pbc_wrap(r: np.ndarray, box: Box) -> np.ndarray:
    L = np.asarray(box, dtype=float)
    out = r - L * np.floor(r / L)
    # floor can round a tiny negative coordinate up to exactly L
    return np.where(out >= L, out - L, out)

def minimum_image(dr: np.ndarray, box: Box) -> np.ndarray:
    L = np.asarray(box, dtype=float)
    return dr - L * np.round(dr / L)

def in_cell(r: np.ndarray, box: Box) -> bool:
    x, y = float(r[0]), float(r[1])
    return (0.0 <= x < float(box[0])) and (0.0 <= y < float(box[1]))

def rotate_offsets(offsets: np.ndarray, theta: np.ndarray | float) -> np.ndarray:
    """Rotate body-frame offsets (M, 2) by per-row (or scalar) angles."""
    c = np.cos(theta)
    s = np.sin(theta)
    x = offsets[:, 0]
    y = offsets[:, 1]
    return np.column_stack([x * c - y * s, x * s + y * c])

def sample_disc(rng: np.random.Generator, radius: float) -> np.ndarray:
    """Uniform point in a disc of the given radius (two draws)."""
    rho = float(radius) * np.sqrt(rng.random())
    phi = 2.0 * np.pi * rng.random()
    return np.array([rho * np.cos(phi), rho * np.sin(phi)], dtype=float)
