from __future__ import annotations

import sys
from typing import Optional, Sequence

import yaml

from .cli_parser import build_parser
from .config import ConfigValidationError, SimulationConfig, load_config
from .io import ConfigurationFormatError, MetricsWriter, read_configuration, write_configuration
from .lattices import make_configuration
from .nvt import RelaxationError, format_state, run_nvt


def _load_sim_config(path: str) -> SimulationConfig:
    if not path:
        return SimulationConfig()
    try:
        return load_config(path)
    except OSError as exc:
        raise SystemExit(f"Unable to open {path} for reading: {exc.strerror}") from exc
    except ConfigValidationError as exc:
        raise SystemExit(f"invalid run configuration {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SystemExit(f"invalid YAML in run configuration {path}: {exc}") from exc


def _load_configuration(path: str, cfg: SimulationConfig, *, non_periodic: bool):
    topo = cfg.make_topology()
    periodic = bool(cfg.periodic) and not non_periodic
    try:
        return read_configuration(path, periodic=periodic, topology=topo)
    except OSError as exc:
        raise SystemExit(f"Unable to open {path} for reading: {exc.strerror}") from exc
    except ConfigurationFormatError as exc:
        raise SystemExit(f"invalid configuration {path}: {exc}") from exc


def _cmd_nvt(args) -> None:
    if int(args.n_steps) < 1:
        raise SystemExit(f"Too few iterations: {args.n_steps}")
    cfg = _load_sim_config(args.config)
    ff = cfg.make_force_field()
    config = _load_configuration(args.initial_config, cfg, non_periodic=bool(args.non_periodic))
    try:
        dest = open(args.final_config, "w", encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Unable to open {args.final_config} for writing: {exc.strerror}") from exc

    seed = args.seed if args.seed is not None else cfg.seed
    metrics = None
    try:
        if args.metrics:
            metrics = MetricsWriter(
                args.metrics,
                config=config,
                beta=float(args.beta),
                pressure=float(args.pressure),
                force_field_kind=ff.kind,
                write_output_manifest=not bool(args.no_output_manifest),
            )
        try:
            run_nvt(
                config,
                ff,
                n_steps=int(args.n_steps),
                print_frequency=int(args.print_frequency),
                beta=float(args.beta),
                pressure=float(args.pressure),
                seed=seed,
                control=cfg.integrator,
                metrics=metrics,
            )
        except RelaxationError as exc:
            raise SystemExit(f"[nvt] {exc}") from exc
        write_configuration(config, dest)
    finally:
        dest.close()
        if metrics is not None:
            metrics.close()
    print("\n...Done...", flush=True)


def _cmd_energy(args) -> None:
    cfg = _load_sim_config(args.config)
    ff = cfg.make_force_field()
    config = _load_configuration(args.config_file, cfg, non_periodic=bool(args.non_periodic))
    energy = config.energy(ff)
    print(f"[energy] {args.config_file} periodic={config.periodic}", flush=True)
    for line in format_state(config, energy, beta=1.0, pressure=0.0):
        print(line, flush=True)


def _cmd_render(args) -> None:
    cfg = _load_sim_config(args.config)
    ff = cfg.make_force_field()
    config = _load_configuration(args.config_file, cfg, non_periodic=bool(args.non_periodic))
    out = str(args.out)
    if out.lower().endswith((".ps", ".eps")):
        from .render import write_postscript

        write_postscript(config, ff, out)
    else:
        from .plots import plot_configuration

        plot_configuration(config, ff, out)
    print(f"[render] {args.config_file} -> {out}", flush=True)


def _cmd_init(args) -> None:
    try:
        config = make_configuration(
            args.kind,
            int(args.n_objects),
            float(args.width),
            float(args.height),
            object_type=int(args.object_type),
            seed=int(args.seed),
        )
    except ValueError as exc:
        raise SystemExit(f"[init] {exc}") from exc
    try:
        write_configuration(config, args.out)
    except OSError as exc:
        raise SystemExit(f"Unable to open {args.out} for writing: {exc.strerror}") from exc
    print(f"[init] wrote {config.n_objects} objects ({args.kind}) -> {args.out}", flush=True)


def _cmd_plot(args) -> None:
    from .plots import plot_metrics_csv

    paths = plot_metrics_csv(args.metrics_csv, args.out_dir)
    print(f"[plot] {len(paths)} plots -> {args.out_dir}", flush=True)


def _build_parser():
    return build_parser(
        cmd_nvt=_cmd_nvt,
        cmd_energy=_cmd_energy,
        cmd_render=_cmd_render,
        cmd_init=_cmd_init,
        cmd_plot=_cmd_plot,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    p = _build_parser()
    args = p.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        raise SystemExit(f"unsupported cmd: {getattr(args, 'cmd', None)}")
    func(args)


if __name__ == "__main__":
    main(sys.argv[1:])
