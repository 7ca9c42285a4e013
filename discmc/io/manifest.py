"""JSON sidecars describing files written by a run.

A sidecar sits next to its data file as ``<data>.manifest.json`` and
records the schema of the data plus the run parameters needed to read it
back (cell, periodicity, ensemble, force field).
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any

from ..configuration import Configuration

MANIFEST_SUFFIX = ".manifest.json"


def manifest_path(data_path: str) -> str:
    return f"{data_path}{MANIFEST_SUFFIX}"


def write_manifest(data_path: str, payload: dict[str, Any]) -> str:
    out = manifest_path(data_path)
    os.makedirs(os.path.dirname(out) or ".", exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
        f.write("\n")
    return out


def metrics_manifest_payload(
    data_path: str,
    *,
    schema: tuple[str, int],
    columns: list[str],
    config: Configuration,
    beta: float,
    pressure: float,
    force_field_kind: str,
) -> dict[str, Any]:
    name, version = schema
    stamp = datetime.now(timezone.utc).replace(microsecond=0)
    return {
        "kind": "metrics",
        "schema": {"name": str(name), "version": int(version)},
        "created_at_utc": stamp.isoformat(),
        "path": os.fspath(data_path),
        "columns": [str(c) for c in columns],
        "n_objects": config.n_objects,
        "box": [float(config.width), float(config.height)],
        "periodic": bool(config.periodic),
        "ensemble": {"kind": "nvt", "beta": float(beta), "pressure": float(pressure)},
        "force_field": str(force_field_kind),
    }
