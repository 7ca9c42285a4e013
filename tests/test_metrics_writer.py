from __future__ import annotations

import json
import warnings

from discmc.configuration import Configuration, RigidObject
from discmc.io import MetricsWriter


def _config() -> Configuration:
    return Configuration(5.0, 4.0, periodic=True, objects=[RigidObject(0, 1.0, 1.0), RigidObject(0, 3.0, 3.0)])


def test_metrics_rows_and_manifest(tmp_path):
    path = tmp_path / "metrics.csv"
    mw = MetricsWriter(str(path), config=_config(), beta=2.0, pressure=0.5, force_field_kind="morse")
    mw.write(10, _config(), energy=-1.5, n_good=4, n_moves=10, dl_max=0.8)
    mw.write(20, _config(), energy=-2.0, n_good=9, n_moves=20, dl_max=0.7)
    mw.close()
    assert mw.manifest == f"{path}.manifest.json"
    rows = path.read_text(encoding="utf-8").strip().splitlines()
    assert rows[0] == ",".join(MetricsWriter.COLUMNS)
    first = rows[1].split(",")
    assert first[:3] == ["10", "2", "20.0"]
    assert float(first[3]) == 0.1
    assert float(first[7]) == 0.4
    manifest = json.loads((tmp_path / "metrics.csv.manifest.json").read_text(encoding="utf-8"))
    assert manifest["schema"] == {"name": MetricsWriter.SCHEMA_NAME, "version": MetricsWriter.SCHEMA_VERSION}
    assert manifest["columns"] == list(MetricsWriter.COLUMNS)
    assert manifest["box"] == [5.0, 4.0]
    assert manifest["periodic"] is True
    assert manifest["ensemble"] == {"kind": "nvt", "beta": 2.0, "pressure": 0.5}


def test_manifest_can_be_disabled(tmp_path):
    path = tmp_path / "metrics.csv"
    with MetricsWriter(str(path), config=_config(), beta=1.0, pressure=0.0, write_output_manifest=False) as mw:
        assert mw.manifest is None
    assert path.exists()
    assert not (tmp_path / "metrics.csv.manifest.json").exists()


def test_close_failure_warns(tmp_path):
    class _BadFile:
        def close(self):
            raise OSError("disk full")

    mw = MetricsWriter(str(tmp_path / "m.csv"), config=_config(), beta=1.0, pressure=0.0)
    mw._f.close()
    mw._f = _BadFile()
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        mw.close()
    assert any(issubclass(w.category, RuntimeWarning) for w in caught)
