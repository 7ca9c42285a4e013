from __future__ import annotations

import argparse
from typing import Callable


def build_parser(
    *,
    cmd_nvt: Callable,
    cmd_energy: Callable,
    cmd_render: Callable,
    cmd_init: Callable,
    cmd_plot: Callable,
) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="discmc")
    sub = p.add_subparsers(dest="cmd", required=True)

    pn = sub.add_parser("nvt", help="Run an NVT Monte Carlo trajectory")
    pn.add_argument("n_steps", type=int, help="Number of Monte Carlo moves")
    pn.add_argument("print_frequency", type=int, help="Moves between progress reports")
    pn.add_argument("beta", type=float, help="Inverse temperature 1/(kB T)")
    pn.add_argument("pressure", type=float, help="Pressure (unused in NVT)")
    pn.add_argument("initial_config", help="Configuration file to start from")
    pn.add_argument("final_config", help="Configuration file to write at the end")
    pn.add_argument("--config", default="", help="YAML run configuration (force field, topology, integrator)")
    pn.add_argument("--seed", type=int, default=None, help="RNG seed override")
    pn.add_argument("--non-periodic", action="store_true", help="Use hard walls instead of periodic boundaries")
    pn.add_argument("--metrics", default="", help="Metrics CSV output path (one row per report)")
    pn.add_argument(
        "--no-output-manifest",
        action="store_true",
        help="Disable the metrics schema sidecar manifest",
    )
    pn.set_defaults(func=cmd_nvt)

    pe = sub.add_parser("energy", help="Print the energy of a configuration")
    pe.add_argument("config_file")
    pe.add_argument("--config", default="", help="YAML run configuration")
    pe.add_argument("--non-periodic", action="store_true")
    pe.set_defaults(func=cmd_energy)

    pr = sub.add_parser("render", help="Draw a configuration (.ps/.eps or any matplotlib format)")
    pr.add_argument("config_file")
    pr.add_argument("out")
    pr.add_argument("--config", default="", help="YAML run configuration")
    pr.add_argument("--non-periodic", action="store_true")
    pr.set_defaults(func=cmd_render)

    pi = sub.add_parser("init", help="Write a starting configuration")
    pi.add_argument("kind", choices=["square", "hex", "random"])
    pi.add_argument("n_objects", type=int)
    pi.add_argument("width", type=float)
    pi.add_argument("height", type=float)
    pi.add_argument("out")
    pi.add_argument("--type", type=int, default=0, dest="object_type")
    pi.add_argument("--seed", type=int, default=123)
    pi.set_defaults(func=cmd_init)

    pp = sub.add_parser("plot", help="Plot a metrics CSV written by 'nvt --metrics'")
    pp.add_argument("metrics_csv")
    pp.add_argument("out_dir")
    pp.set_defaults(func=cmd_plot)

    return p
