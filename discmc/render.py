"""Postscript output of a configuration.

Every atom is drawn as a filled disc with its force-field colour.  In a
periodic cell an atom that crosses an edge is drawn again on the
opposite side (up to four copies in a corner).
"""

from __future__ import annotations

import os

import numpy as np

from .configuration import Configuration
from .force_field import ForceField
from .state import pbc_wrap

PS_PROLOG = (
    "/fcircle { setrgbcolor 0 360 arc fill } def",
)


def _fmt(x: float) -> str:
    return f"{float(x):g}"


def ps_atoms(config: Configuration, force_field: ForceField) -> list[str]:
    """One ``newpath x y r R G B fcircle`` line per drawn disc."""
    if config.n_objects == 0:
        return []
    _owners, atom_types, pos = config.atom_positions()
    if config.periodic:
        pos = pbc_wrap(pos, config.box)
    w, h = config.width, config.height
    out: list[str] = []
    for (x, y), t in zip(pos, atom_types.tolist()):
        r = force_field.atom_radius(t)
        color = force_field.atom_color(t)
        copies = [(x, y)]
        if config.periodic:
            lr = -1 if x < r else (1 if x > w - r else 0)
            tb = -1 if y < r else (1 if y > h - r else 0)
            if lr:
                copies.append((x - lr * w, y))
            if tb:
                copies.append((x, y - tb * h))
            if lr and tb:
                copies.append((x - lr * w, y - tb * h))
        for cx, cy in copies:
            out.append(f"newpath {_fmt(cx)} {_fmt(cy)} {_fmt(r)} {color} fcircle")
    return out


def format_postscript(config: Configuration, force_field: ForceField, *, page_size: float = 500.0) -> str:
    scale = float(page_size) / max(config.width, config.height)
    margin = 50.0
    bbox = (
        int(margin),
        int(margin),
        int(np.ceil(margin + config.width * scale)),
        int(np.ceil(margin + config.height * scale)),
    )
    lines = [
        "%!PS-Adobe-3.0 EPSF-3.0",
        f"%%BoundingBox: {bbox[0]} {bbox[1]} {bbox[2]} {bbox[3]}",
        *PS_PROLOG,
        "gsave",
        f"{_fmt(margin)} {_fmt(margin)} translate",
        f"{_fmt(scale)} {_fmt(scale)} scale",
        f"newpath 0 0 moveto {_fmt(config.width)} 0 lineto {_fmt(config.width)} "
        f"{_fmt(config.height)} lineto 0 {_fmt(config.height)} lineto closepath clip",
        *ps_atoms(config, force_field),
        "grestore",
        "showpage",
    ]
    return "\n".join(lines) + "\n"


def write_postscript(config: Configuration, force_field: ForceField, path: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_postscript(config, force_field))
    return path
