"""Plain-text configuration files.

Layout::

    width height
    n_objects
    type x y orientation      (one line per object)

Periodicity is not stored in the file; readers choose it (periodic by
default).  Blank lines and ``#`` comments are ignored.  An object line
without orientation reads as orientation 0.
"""

from __future__ import annotations

import os
from typing import Iterable, Optional, TextIO, Union

import numpy as np

from ..configuration import Configuration, RigidObject
from ..topology import Topology

PathOrFile = Union[str, "os.PathLike[str]", TextIO]


class ConfigurationFormatError(ValueError):
    pass


def _data_lines(lines: Iterable[str]) -> list[tuple[int, list[str]]]:
    out: list[tuple[int, list[str]]] = []
    for lineno, raw in enumerate(lines, start=1):
        txt = raw.split("#", 1)[0].strip()
        if txt:
            out.append((lineno, txt.split()))
    return out


def _float(tok: str, what: str, lineno: int) -> float:
    try:
        val = float(tok)
    except (ValueError, TypeError) as exc:
        raise ConfigurationFormatError(f"line {lineno}: invalid {what} {tok!r}") from exc
    if not np.isfinite(val):
        raise ConfigurationFormatError(f"line {lineno}: {what} must be finite")
    return val


def _int(tok: str, what: str, lineno: int) -> int:
    try:
        return int(tok)
    except (ValueError, TypeError) as exc:
        raise ConfigurationFormatError(f"line {lineno}: invalid {what} {tok!r}") from exc


def parse_configuration(
    lines: Iterable[str],
    *,
    periodic: bool = True,
    topology: Optional[Topology] = None,
) -> Configuration:
    rows = _data_lines(lines)
    if len(rows) < 2:
        raise ConfigurationFormatError("configuration needs a size line and an object count line")

    lineno, hdr = rows[0]
    if len(hdr) != 2:
        raise ConfigurationFormatError(f"line {lineno}: expected 'width height', got {' '.join(hdr)!r}")
    width = _float(hdr[0], "width", lineno)
    height = _float(hdr[1], "height", lineno)
    if width <= 0.0 or height <= 0.0:
        raise ConfigurationFormatError(f"line {lineno}: width and height must be positive")

    lineno, cnt = rows[1]
    if len(cnt) != 1:
        raise ConfigurationFormatError(f"line {lineno}: expected the object count alone")
    n_obj = _int(cnt[0], "object count", lineno)
    if n_obj < 0:
        raise ConfigurationFormatError(f"line {lineno}: object count must be >= 0")

    body = rows[2:]
    if len(body) != n_obj:
        raise ConfigurationFormatError(
            f"object count mismatch: header says {n_obj}, found {len(body)} object lines"
        )

    objs: list[RigidObject] = []
    for lineno, toks in body:
        if len(toks) not in (3, 4):
            raise ConfigurationFormatError(
                f"line {lineno}: expected 'type x y [orientation]', got {len(toks)} fields"
            )
        otype = _int(toks[0], "object type", lineno)
        if otype < 0:
            raise ConfigurationFormatError(f"line {lineno}: object type must be >= 0")
        x = _float(toks[1], "x", lineno)
        y = _float(toks[2], "y", lineno)
        theta = _float(toks[3], "orientation", lineno) if len(toks) == 4 else 0.0
        if not periodic and not (0.0 <= x < width and 0.0 <= y < height):
            raise ConfigurationFormatError(
                f"line {lineno}: object at ({x:g}, {y:g}) lies outside the {width:g} x {height:g} cell"
            )
        if topology is not None and otype not in topology.sites:
            raise ConfigurationFormatError(f"line {lineno}: object type {otype} is not in the topology")
        objs.append(RigidObject(type=otype, x=x, y=y, orientation=theta))

    return Configuration(width, height, periodic=periodic, topology=topology, objects=objs)


def read_configuration(
    src: PathOrFile,
    *,
    periodic: bool = True,
    topology: Optional[Topology] = None,
) -> Configuration:
    if hasattr(src, "read"):
        return parse_configuration(src, periodic=periodic, topology=topology)
    with open(src, "r", encoding="utf-8") as f:
        return parse_configuration(f, periodic=periodic, topology=topology)


def format_configuration(config: Configuration) -> str:
    lines = [f"{config.width:.17g} {config.height:.17g}", f"{config.n_objects:d}"]
    for i in range(config.n_objects):
        x, y = config.positions[i]
        lines.append(
            f"{int(config.types[i]):d} {float(x):.17g} {float(y):.17g} {float(config.orientations[i]):.17g}"
        )
    return "\n".join(lines) + "\n"


def write_configuration(config: Configuration, dest: PathOrFile) -> None:
    text = format_configuration(config)
    if hasattr(dest, "write"):
        dest.write(text)
        return
    os.makedirs(os.path.dirname(os.fspath(dest)) or ".", exist_ok=True)
    with open(dest, "w", encoding="utf-8") as f:
        f.write(text)
