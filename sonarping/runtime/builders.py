from __future__ import annotations

from typing import List

import numpy as np

from ..config import ScenarioConfig
from ..config.schema import LinearArrayConfig, SingleTransducerConfig, TransducerConfig
from ..core.exporter import LasWriter, NpzWriter
from ..core.intersector import Triangle
from ..core.mesh import Mesh
from ..core.scene import Scene
from ..core.simulation import SimulationConfig
from ..core.vector import Vec3, unit
from ..examples.synthetic import generate_triangles
from ..sensors.transducer import Transducer


def build_mesh(cfg: ScenarioConfig) -> Mesh:
    """Inline triangles first, then presets, in the order given."""
    mesh = Mesh()
    for p1, p2, p3 in cfg.mesh.triangles:
        mesh.add_triangle(Triangle(Vec3.of(p1), Vec3.of(p2), Vec3.of(p3)))
    for preset_cfg in cfg.mesh.presets:
        mesh.extend(generate_triangles(
            preset_cfg.preset,
            size=preset_cfg.size,
            distance=preset_cfg.distance,
            divisions=preset_cfg.divisions,
        ))
    return mesh


def linear_array(
    origin: Vec3,
    axis: Vec3,
    spacing_m: float,
    count: int,
    direction: Vec3,
    name: str | None = None,
) -> List[Transducer]:
    """``count`` co-pointed transducers spaced along ``axis``, centred on ``origin``."""
    if count <= 0:
        raise ValueError("count must be positive.")
    offsets = (np.arange(count, dtype=np.float64) - (count - 1) / 2.0) * spacing_m
    step = unit(axis) if count > 1 else Vec3.zero()
    prefix = name or "element"
    return [
        Transducer(point=origin + step * float(off), direction=direction, name=f"{prefix}-{i}")
        for i, off in enumerate(offsets)
    ]


def build_transducer_group(tcfg: TransducerConfig) -> List[Transducer]:
    if isinstance(tcfg, SingleTransducerConfig):
        return [Transducer(point=Vec3.of(tcfg.point), direction=Vec3.of(tcfg.direction), name=tcfg.name)]
    if isinstance(tcfg, LinearArrayConfig):
        return linear_array(
            origin=Vec3.of(tcfg.origin),
            axis=Vec3.of(tcfg.axis),
            spacing_m=tcfg.spacing_m,
            count=tcfg.count,
            direction=Vec3.of(tcfg.direction),
            name=tcfg.name,
        )
    raise ValueError(f"Unsupported transducer kind: {tcfg.kind}")


def build_transducers(cfg: ScenarioConfig) -> List[Transducer]:
    transducers: List[Transducer] = []
    for tcfg in cfg.transducers:
        transducers.extend(build_transducer_group(tcfg))
    return transducers


def build_scene(cfg: ScenarioConfig) -> Scene:
    return Scene(mesh=build_mesh(cfg), transducers=build_transducers(cfg))


def build_simulation_config(cfg: ScenarioConfig) -> SimulationConfig:
    sim = cfg.simulation
    return SimulationConfig(
        speed_of_sound=sim.speed_of_sound,
        attenuation_db_per_m=sim.attenuation_db_per_m,
        source_intensity=sim.source_intensity,
        epsilon=sim.epsilon,
        collision_mode=sim.collision_mode,
        allow_behind_origin=sim.allow_behind_origin,
    )


def build_writer(cfg: ScenarioConfig):
    out_cfg = cfg.output
    if out_cfg is None:
        return None
    format_lower = out_cfg.format.lower()
    if format_lower in {"las", "laz"}:
        return LasWriter(str(out_cfg.path), compress=format_lower == "laz")
    if format_lower == "npz":
        return NpzWriter(str(out_cfg.path))
    raise ValueError(f"Unsupported output format: {out_cfg.format}")
