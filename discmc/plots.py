from __future__ import annotations
import os, csv
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Rectangle
import numpy as np

from .configuration import Configuration
from .force_field import ForceField
from .state import pbc_wrap

def _rgb(token: str):
    try:
        vals = [float(x) for x in str(token).split()]
    except ValueError:
        return str(token)  # named matplotlib colour
    if len(vals) != 3:
        return "k"
    return tuple(min(1.0, max(0.0, v)) for v in vals)

def plot_configuration(config: Configuration, force_field: ForceField, out_path: str, *, dpi: int = 150) -> str:
    fig, ax = plt.subplots(figsize=(6, 6 * config.height / config.width))
    ax.add_patch(Rectangle((0.0, 0.0), config.width, config.height, fill=False, lw=1.0))
    if config.n_objects:
        _owners, atom_types, pos = config.atom_positions()
        if config.periodic:
            pos = pbc_wrap(pos, config.box)
        shifts = [(0.0, 0.0)]
        if config.periodic:
            shifts = [(sx * config.width, sy * config.height) for sx in (-1, 0, 1) for sy in (-1, 0, 1)]
        for (x, y), t in zip(pos, atom_types.tolist()):
            r = force_field.atom_radius(t)
            c = _rgb(force_field.atom_color(t))
            for sx, sy in shifts:
                ax.add_patch(Circle((x + sx, y + sy), r, color=c, lw=0.0))
    ax.set_xlim(0.0, config.width)
    ax.set_ylim(0.0, config.height)
    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    fig.tight_layout()
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
    return out_path

def _read_csv(path: str):
    with open(path, "r", encoding="utf-8") as f:
        r = csv.DictReader(f)
        rows = [row for row in r]
    return rows

def plot_metrics_csv(csv_path: str, out_dir: str) -> list[str]:
    rows = _read_csv(csv_path)
    if not rows:
        return []
    os.makedirs(out_dir, exist_ok=True)
    x = np.array([float(r["step"]) for r in rows])
    written = []
    for m in ("energy", "acceptance", "dl_max", "density"):
        y = np.array([float(r[m]) for r in rows])
        plt.figure()
        plt.plot(x, y, marker="o", ms=3)
        plt.xlabel("step")
        plt.ylabel(m)
        plt.tight_layout()
        path = os.path.join(out_dir, f"{m}.png")
        plt.savefig(path)
        plt.close()
        written.append(path)
    return written
