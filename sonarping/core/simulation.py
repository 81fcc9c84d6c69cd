from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import numpy as np

from .acoustics import (
    ATTENUATION_DB_PER_M, SOURCE_INTENSITY, SPEED_OF_SOUND,
    attenuation_factor, compute_echo,
)
from .intersector import EPSILON, Ray
from .mesh import CollisionMode
from .pointcloud import PointBatch
from .scene import Scene
from .vector import Vec3, DegenerateVectorError, distance_to
from .utils import get_logger

_log = get_logger()

@dataclass
class SimulationConfig:
    speed_of_sound: float = SPEED_OF_SOUND
    attenuation_db_per_m: float = ATTENUATION_DB_PER_M
    source_intensity: float = SOURCE_INTENSITY
    epsilon: float = EPSILON
    collision_mode: CollisionMode = "first"
    allow_behind_origin: bool = True

    def __post_init__(self) -> None:
        if self.speed_of_sound <= 0.0:
            raise ValueError("speed_of_sound must be positive.")
        if self.epsilon < 0.0:
            raise ValueError("epsilon must be >= 0.")
        if self.collision_mode not in ("first", "nearest"):
            raise ValueError(f"Unknown collision mode '{self.collision_mode}'")


@dataclass(frozen=True)
class RayHit:
    emitter_index: int
    ray: Ray
    point: Vec3
    intensity: float           # relative beam intensity of the ray
    triangle_index: int
    t: float


@dataclass
class SimulationResult:
    hits: List[RayHit] = field(default_factory=list)
    rays: int = 0
    echoes: int = 0

    def stats(self) -> Dict[str, int]:
        return {"rays": self.rays, "hits": len(self.hits), "echoes": self.echoes}

    def hit_batch(self, cfg: SimulationConfig | None = None) -> PointBatch:
        """Hit points with range, ids and the monostatic echo level."""
        cfg = cfg or SimulationConfig()
        if not self.hits:
            return PointBatch(xyz=np.zeros((0, 3), dtype=np.float32))
        xyz = np.asarray([tuple(h.point) for h in self.hits], dtype=np.float64)
        ranges = np.asarray([distance_to(h.point, h.ray.point) for h in self.hits], dtype=np.float64)
        level = np.asarray(
            [cfg.source_intensity * h.intensity * attenuation_factor(r, cfg.attenuation_db_per_m)
             for h, r in zip(self.hits, ranges)],
            dtype=np.float64,
        )
        return PointBatch(
            xyz=xyz,
            attrs={
                "range_m": ranges.astype(np.float32),
                "emitter_id": np.asarray([h.emitter_index for h in self.hits], dtype=np.uint16),
                "triangle_id": np.asarray([h.triangle_index for h in self.hits], dtype=np.uint32),
                "intensity01": np.clip(level, 0.0, 1.0).astype(np.float32),
            },
        )


class Simulation:
    """Ping driver.

    Geometry and acoustics are separate stages: :meth:`trace` casts every
    transducer's beam into the mesh, :meth:`receive` turns each hit into an
    echo on every transducer (all receivers hear all emissions).
    """
    def __init__(self, scene: Scene, cfg: SimulationConfig | None = None) -> None:
        self.scene = scene
        self.cfg = cfg or SimulationConfig()

    def trace(self) -> Tuple[List[RayHit], int]:
        mesh = self.scene.mesh
        hits: List[RayHit] = []
        n_rays = 0
        for idx, transducer in enumerate(self.scene.transducers):
            try:
                samples = transducer.beam()
            except DegenerateVectorError as exc:
                _log.warning("Transducer %d skipped: degenerate beam (%s)", idx, exc)
                continue
            for sample in samples:
                n_rays += 1
                hit = mesh.find_hit(
                    sample.ray,
                    mode=self.cfg.collision_mode,
                    epsilon=self.cfg.epsilon,
                    allow_behind_origin=self.cfg.allow_behind_origin,
                )
                if hit is None:
                    _log.debug("Transducer %d: ray %s missed", idx, sample.ray)
                    continue
                _log.debug("Transducer %d: hit triangle %d at %s", idx, hit.triangle_index, hit.point)
                hits.append(RayHit(
                    emitter_index=idx,
                    ray=sample.ray,
                    point=hit.point,
                    intensity=sample.intensity,
                    triangle_index=hit.triangle_index,
                    t=hit.t,
                ))
        return hits, n_rays

    def receive(self, hits: List[RayHit]) -> int:
        transducers = self.scene.transducers
        count = 0
        for hit in hits:
            emitter_point = transducers[hit.emitter_index].point
            for receiver in transducers:
                echo = compute_echo(
                    hit.point,
                    emitter_point,
                    receiver.point,
                    speed_of_sound=self.cfg.speed_of_sound,
                    attenuation_db_per_m=self.cfg.attenuation_db_per_m,
                    source_intensity=self.cfg.source_intensity * hit.intensity,
                )
                receiver.add_return_signal(echo.time, echo.magnitude)
                count += 1
        return count

    def run(self) -> SimulationResult:
        """Trace, then record echoes. Echoes accumulate on the transducers."""
        hits, n_rays = self.trace()
        n_echoes = self.receive(hits)
        _log.info("Simulation finished: %d rays → %d hits → %d echoes", n_rays, len(hits), n_echoes)
        return SimulationResult(hits=hits, rays=n_rays, echoes=n_echoes)
