from __future__ import annotations

import csv

import pytest

from discmc.configuration import Configuration, RigidObject
from discmc.force_field import make_force_field
from discmc.plots import plot_configuration, plot_metrics_csv
from discmc.render import format_postscript, ps_atoms, write_postscript
from discmc.topology import default_topology


def _one(x, y, *, periodic=True, otype=0) -> Configuration:
    return Configuration(
        10.0, 10.0, periodic=periodic, topology=default_topology(), objects=[RigidObject(otype, x, y)]
    )


def test_ps_atom_line_format():
    lines = ps_atoms(_one(5.0, 5.0), make_force_field())
    assert lines == ["newpath 5 5 0.5 0.8 0.1 0.1 fcircle"]


def test_edge_atom_is_drawn_twice():
    lines = ps_atoms(_one(0.2, 5.0), make_force_field())
    assert len(lines) == 2
    assert lines[1].split()[1] == "10.2"


def test_corner_atom_is_drawn_four_times():
    lines = ps_atoms(_one(9.9, 0.2), make_force_field())
    xs = sorted(float(line.split()[1]) for line in lines)
    ys = sorted(float(line.split()[2]) for line in lines)
    assert len(lines) == 4
    assert xs == pytest.approx([-0.1, -0.1, 9.9, 9.9])
    assert ys == pytest.approx([0.2, 0.2, 10.2, 10.2])


def test_no_copies_without_periodicity():
    assert len(ps_atoms(_one(0.2, 0.2, periodic=False), make_force_field())) == 1


def test_multi_atom_object_draws_every_atom():
    lines = ps_atoms(_one(5.0, 5.0, otype=2), make_force_field())
    assert len(lines) == 3
    assert all(line.endswith("0.1 0.7 0.2 fcircle") for line in lines)


def test_postscript_document(tmp_path):
    config = _one(5.0, 5.0)
    text = format_postscript(config, make_force_field())
    assert text.startswith("%!PS-Adobe")
    assert "%%BoundingBox: 50 50 550 550" in text
    assert "/fcircle" in text
    assert text.rstrip().endswith("showpage")
    path = write_postscript(config, make_force_field(), str(tmp_path / "a" / "c.eps"))
    assert (tmp_path / "a" / "c.eps").read_text(encoding="utf-8") == text
    assert path.endswith("c.eps")


def test_empty_configuration_draws_nothing():
    config = Configuration(4.0, 4.0, periodic=True, topology=default_topology())
    assert ps_atoms(config, make_force_field()) == []


def test_plot_configuration_png(tmp_path):
    config = Configuration(
        6.0,
        4.0,
        periodic=True,
        topology=default_topology(),
        objects=[RigidObject(0, 1.0, 1.0), RigidObject(1, 3.0, 2.0, 0.4), RigidObject(2, 5.8, 3.8)],
    )
    out = plot_configuration(config, make_force_field(), str(tmp_path / "img" / "c.png"))
    assert (tmp_path / "img" / "c.png").stat().st_size > 0
    assert out.endswith("c.png")


def test_plot_metrics_csv(tmp_path):
    path = tmp_path / "m.csv"
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["step", "N", "area", "density", "energy", "accepted", "attempted", "acceptance", "dl_max"])
        w.writerow([10, 4, 100.0, 0.04, -1.0, 6, 10, 0.6, 1.0])
        w.writerow([20, 4, 100.0, 0.04, -2.0, 11, 20, 0.55, 1.1])
    written = plot_metrics_csv(str(path), str(tmp_path / "plots"))
    assert len(written) == 4
    for p in written:
        assert (tmp_path / "plots" / p.split("/")[-1]).exists()


def test_plot_metrics_csv_empty(tmp_path):
    path = tmp_path / "m.csv"
    path.write_text("step,N,area,density,energy,accepted,attempted,acceptance,dl_max\n", encoding="utf-8")
    assert plot_metrics_csv(str(path), str(tmp_path / "plots")) == []
