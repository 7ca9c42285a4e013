from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import yaml

from .force_field import ForceField, canonical_force_field_kind, make_force_field
from .integrator import StepControl, step_control_from_params
from .topology import Topology, default_topology, parse_topology

_FORCE_FIELD_KINDS = {"square_well", "morse"}
_TOP_LEVEL_KEYS = {"force_field", "topology", "integrator", "periodic", "seed"}


class ConfigValidationError(ValueError):
    pass


@dataclass
class ForceFieldConfig:
    kind: str = "square_well"
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass
class SimulationConfig:
    force_field: ForceFieldConfig = field(default_factory=ForceFieldConfig)
    topology: Optional[Dict[Any, Any]] = None
    integrator: StepControl = field(default_factory=StepControl)
    periodic: bool = True
    seed: Optional[int] = None

    def make_force_field(self) -> ForceField:
        return make_force_field(self.force_field.kind, self.force_field.params)

    def make_topology(self) -> Topology:
        if self.topology is None:
            return default_topology()
        return parse_topology(self.topology)


def _parse_force_field(section: Any) -> ForceFieldConfig:
    if section is None:
        return ForceFieldConfig()
    if not isinstance(section, dict):
        raise ConfigValidationError("force_field must be a mapping")
    extra = sorted(set(section.keys()) - {"kind", "params"})
    if extra:
        raise ConfigValidationError(f"force_field contains unsupported keys: {extra}")
    kind = canonical_force_field_kind(section.get("kind", "square_well"))
    if kind not in _FORCE_FIELD_KINDS:
        raise ConfigValidationError(f"force_field.kind must be one of {sorted(_FORCE_FIELD_KINDS)}")
    params = section.get("params", {})
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ConfigValidationError("force_field.params must be a mapping")
    return ForceFieldConfig(kind=kind, params=dict(params))


def parse_config(d: Any) -> SimulationConfig:
    if d is None:
        d = {}
    if not isinstance(d, dict):
        raise ConfigValidationError("config root must be a mapping")
    extra = sorted(set(d.keys()) - _TOP_LEVEL_KEYS)
    if extra:
        raise ConfigValidationError(f"config contains unsupported keys: {extra}")

    topo = d.get("topology", None)
    if topo is not None and not isinstance(topo, dict):
        raise ConfigValidationError("topology must be a mapping of object type -> atom list")

    integ = d.get("integrator", None)
    if integ is not None and not isinstance(integ, dict):
        raise ConfigValidationError("integrator must be a mapping")

    seed = d.get("seed", None)
    try:
        cfg = SimulationConfig(
            force_field=_parse_force_field(d.get("force_field", None)),
            topology=(dict(topo) if topo is not None else None),
            integrator=step_control_from_params(integ),
            periodic=bool(d.get("periodic", True)),
            seed=(int(seed) if seed is not None else None),
        )
        # build once so bad parameters fail at load time
        cfg.make_force_field()
        cfg.make_topology()
    except ConfigValidationError:
        raise
    except (ValueError, TypeError) as exc:
        raise ConfigValidationError(str(exc)) from exc
    return cfg

def load_config(path: str) -> SimulationConfig:
    with open(path,"r",encoding="utf-8") as f:
        d = yaml.safe_load(f)
    return parse_config(d)
