from __future__ import annotations
import csv
import os
import warnings

from ..configuration import Configuration
from .manifest import metrics_manifest_payload, write_manifest

class MetricsWriter:
    """One CSV row per progress report of an NVT run."""

    SCHEMA_NAME = "discmc.metrics.csv"
    SCHEMA_VERSION = 1
    COLUMNS = ("step", "N", "area", "density", "energy", "accepted", "attempted", "acceptance", "dl_max")

    def __init__(
        self,
        path: str,
        *,
        config: Configuration,
        beta: float,
        pressure: float,
        force_field_kind: str = "",
        write_output_manifest: bool = True,
    ):
        self.path = os.fspath(path)
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._f = open(self.path, "w", newline="", encoding="utf-8")
        self._rows = csv.writer(self._f)
        self._rows.writerow(self.COLUMNS)
        self._f.flush()
        self.manifest = None
        if write_output_manifest:
            self.manifest = write_manifest(
                self.path,
                metrics_manifest_payload(
                    self.path,
                    schema=(self.SCHEMA_NAME, self.SCHEMA_VERSION),
                    columns=list(self.COLUMNS),
                    config=config,
                    beta=beta,
                    pressure=pressure,
                    force_field_kind=force_field_kind,
                ),
            )

    def write(self, step: int, config: Configuration, *, energy: float, n_good: int, n_moves: int, dl_max: float):
        n = config.n_objects
        area = config.area()
        acceptance = float(n_good) / max(1, int(n_moves))
        self._rows.writerow(
            (int(step), n, float(area), n / area, float(energy), int(n_good), int(n_moves), acceptance, float(dl_max))
        )
        self._f.flush()

    def close(self):
        try:
            self._f.close()
        except OSError as exc:
            warnings.warn(f"could not close metrics file {self.path!r}: {exc!r}", RuntimeWarning)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
