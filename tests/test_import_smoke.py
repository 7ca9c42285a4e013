from __future__ import annotations

import importlib
import py_compile
from pathlib import Path


def test_import_smoke():
    importlib.import_module("discmc.configuration")
    importlib.import_module("discmc.integrator")
    importlib.import_module("discmc.main")


def test_py_compile_smoke(tmp_path: Path):
    root = Path(__file__).resolve().parents[1]
    targets = [
        root / "discmc" / "configuration.py",
        root / "discmc" / "integrator.py",
        root / "discmc" / "main.py",
    ]
    for src in targets:
        py_compile.compile(str(src), cfile=str(tmp_path / f"{src.name}c"), doraise=True)


def test_version_is_read():
    import discmc

    assert isinstance(discmc.__version__, str)
    assert discmc.__version__
