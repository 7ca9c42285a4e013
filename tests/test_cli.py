from __future__ import annotations

from pathlib import Path

import pytest

import discmc.main as discmc_main
from discmc.io import read_configuration

ROOT = Path(__file__).resolve().parents[1]


def _write(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_nvt_writes_final_configuration(tmp_path, capsys):
    src = _write(tmp_path / "in.conf", "10 10\n2\n0 5.0 5.0 0.0\n0 6.0 5.0 0.0\n")
    dest = tmp_path / "out.conf"
    discmc_main.main(["nvt", "200", "100", "1.0", "0.0", src, str(dest), "--seed", "3"])
    out = capsys.readouterr().out
    assert "Configuration loaded" in out
    assert "After 200 steps" in out
    assert "...Done..." in out
    back = read_configuration(str(dest))
    assert back.n_objects == 2
    assert back.box == (10.0, 10.0)


def test_nvt_wrong_argument_count_exits_with_usage(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "100", "10", "1.0", "0.0", str(tmp_path / "in.conf")])
    assert excinfo.value.code == 2


def test_nvt_unreadable_input(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "10", "5", "1.0", "0.0", str(tmp_path / "missing.conf"), str(tmp_path / "o")])
    assert excinfo.value.code not in (0, None)
    assert "Unable to open" in str(excinfo.value.code)
    assert not (tmp_path / "o").exists()


def test_nvt_unwritable_output(tmp_path):
    src = _write(tmp_path / "in.conf", "10 10\n1\n0 5.0 5.0\n")
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "10", "5", "1.0", "0.0", src, str(tmp_path / "no_dir" / "out.conf")])
    assert "for writing" in str(excinfo.value.code)


def test_nvt_too_few_iterations(tmp_path):
    src = _write(tmp_path / "in.conf", "10 10\n1\n0 5.0 5.0\n")
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "0", "5", "1.0", "0.0", src, str(tmp_path / "out.conf")])
    assert "Too few iterations" in str(excinfo.value.code)


def test_nvt_malformed_input(tmp_path):
    src = _write(tmp_path / "in.conf", "10 10\n3\n0 5.0 5.0\n")
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "10", "5", "1.0", "0.0", src, str(tmp_path / "out.conf")])
    assert "object count mismatch" in str(excinfo.value.code)


def test_nvt_relaxation_failure_exits_nonzero(tmp_path):
    src = _write(tmp_path / "in.conf", "1 1\n2\n0 0.2 0.2\n0 0.7 0.7\n")
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["nvt", "10", "5", "1.0", "0.0", src, str(tmp_path / "out.conf"), "--seed", "1"])
    assert "Unable to adjust initial configuration" in str(excinfo.value.code)


def test_nvt_passes_run_configuration(monkeypatch, tmp_path):
    captured: dict[str, object] = {}

    def _fake_run_nvt(config, force_field, **kwargs):
        captured["config"] = config
        captured["force_field"] = force_field
        captured.update(kwargs)
        return None

    monkeypatch.setattr(discmc_main, "run_nvt", _fake_run_nvt)
    src = str(ROOT / "examples" / "two_discs.conf")
    discmc_main.main(
        [
            "nvt",
            "50",
            "10",
            "2.5",
            "0.75",
            src,
            str(tmp_path / "out.conf"),
            "--config",
            str(ROOT / "examples" / "nvt_square_well.yaml"),
            "--non-periodic",
        ]
    )
    assert captured["n_steps"] == 50
    assert captured["print_frequency"] == 10
    assert captured["beta"] == pytest.approx(2.5)
    assert captured["pressure"] == pytest.approx(0.75)
    assert captured["seed"] == 1
    assert captured["config"].periodic is False
    assert captured["force_field"].n_atom_types == 2
    assert captured["control"].adapt_every == 100
    assert (tmp_path / "out.conf").exists()


def test_nvt_metrics_output(tmp_path):
    src = str(ROOT / "examples" / "two_discs.conf")
    metrics = tmp_path / "m.csv"
    discmc_main.main(
        ["nvt", "40", "20", "1.0", "0.0", src, str(tmp_path / "out.conf"), "--seed", "2", "--metrics", str(metrics)]
    )
    assert len(metrics.read_text(encoding="utf-8").strip().splitlines()) == 3
    assert (tmp_path / "m.csv.manifest.json").exists()


def test_energy_command(capsys):
    discmc_main.main(["energy", str(ROOT / "examples" / "two_discs.conf"), "--non-periodic"])
    out = capsys.readouterr().out
    assert "periodic=False" in out
    assert float(out.split("Energy =")[1].split()[0]) == pytest.approx(-1.0)


def test_init_then_render(tmp_path):
    conf = tmp_path / "lattice.conf"
    discmc_main.main(["init", "hex", "12", "8", "8", str(conf), "--type", "1"])
    config = read_configuration(str(conf))
    assert config.n_objects == 12
    assert set(config.types.tolist()) == {1}

    ps = tmp_path / "lattice.ps"
    discmc_main.main(["render", str(conf), str(ps)])
    assert "fcircle" in ps.read_text(encoding="utf-8")

    png = tmp_path / "lattice.png"
    discmc_main.main(["render", str(conf), str(png)])
    assert png.stat().st_size > 0


def test_init_rejects_unknown_kind(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["init", "fcc", "4", "5", "5", str(tmp_path / "x.conf")])
    assert excinfo.value.code == 2


def test_plot_command(tmp_path):
    csv_path = tmp_path / "m.csv"
    discmc_main.main(
        ["nvt", "30", "10", "1.0", "0.0", str(ROOT / "examples" / "two_discs.conf"), str(tmp_path / "o.conf"),
         "--metrics", str(csv_path), "--seed", "4"]
    )
    discmc_main.main(["plot", str(csv_path), str(tmp_path / "plots")])
    for name in ("energy", "acceptance", "dl_max", "density"):
        assert (tmp_path / "plots" / f"{name}.png").exists()


def test_malformed_yaml_exits_with_message(tmp_path):
    src = str(ROOT / "examples" / "two_discs.conf")
    bad = _write(tmp_path / "bad.yaml", "force_field: {kind: square_well\nperiodic: [true\n")
    with pytest.raises(SystemExit) as excinfo:
        discmc_main.main(["energy", src, "--config", bad])
    assert "invalid YAML in run configuration" in str(excinfo.value.code)
