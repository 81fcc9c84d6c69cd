from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Literal, Optional
import numpy as np
from .intersector import EPSILON, Ray, Triangle
from .vector import Vec3
from .utils import get_logger

_log = get_logger()

CollisionMode = Literal["first", "nearest"]


@dataclass(frozen=True)
class MeshHit:
    point: Vec3
    t: float
    triangle_index: int


@dataclass
class Mesh:
    """Ordered collection of triangles queried by linear scan.

    In ``"first"`` mode the scan stops at the first triangle (insertion order)
    the ray intersects, which is not necessarily the closest one. ``"nearest"``
    scans every triangle and keeps the hit with the smallest ``|t|``.
    """
    triangles: List[Triangle] = field(default_factory=list)

    def add_triangle(self, triangle: Triangle) -> None:
        self.triangles.append(triangle)

    def extend(self, triangles: Iterable[Triangle]) -> None:
        for tri in triangles:
            self.add_triangle(tri)

    def __len__(self) -> int:
        return len(self.triangles)

    def __iter__(self) -> Iterator[Triangle]:
        return iter(self.triangles)

    def find_hit(
        self,
        ray: Ray,
        mode: CollisionMode = "first",
        epsilon: float = EPSILON,
        allow_behind_origin: bool = True,
    ) -> Optional[MeshHit]:
        if mode not in ("first", "nearest"):
            raise ValueError(f"Unknown collision mode '{mode}'")
        best: Optional[MeshHit] = None
        for idx, tri in enumerate(self.triangles):
            t = tri.ray_parameter(ray, epsilon=epsilon, allow_behind_origin=allow_behind_origin)
            if t is None:
                continue
            hit = MeshHit(point=ray.at(t), t=t, triangle_index=idx)
            if mode == "first":
                return hit
            if best is None or abs(t) < abs(best.t):
                best = hit
        return best

    def get_collision(
        self,
        ray: Ray,
        mode: CollisionMode = "first",
        epsilon: float = EPSILON,
        allow_behind_origin: bool = True,
    ) -> Optional[Vec3]:
        hit = self.find_hit(ray, mode=mode, epsilon=epsilon, allow_behind_origin=allow_behind_origin)
        return hit.point if hit is not None else None

    # -- numpy views --
    def triangle_array(self) -> np.ndarray:
        """Vertices as a ``(N, 3, 3)`` float64 array."""
        if not self.triangles:
            return np.zeros((0, 3, 3), dtype=np.float64)
        return np.asarray(
            [[tuple(t.p1), tuple(t.p2), tuple(t.p3)] for t in self.triangles],
            dtype=np.float64,
        )

    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if not self.triangles:
            raise ValueError("Mesh has no triangles.")
        pts = self.triangle_array().reshape(-1, 3)
        mn = pts.min(axis=0)
        mx = pts.max(axis=0)
        return (float(mn[0]), float(mx[0]), float(mn[1]), float(mx[1]), float(mn[2]), float(mx[2]))

    @staticmethod
    def from_arrays(vertices: np.ndarray, faces: np.ndarray) -> "Mesh":
        """Build from an indexed vertex/face pair, preserving face order."""
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = np.asarray(faces, dtype=np.int64)
        mesh = Mesh()
        for a, b, c in faces:
            mesh.add_triangle(Triangle(Vec3.of(vertices[a]), Vec3.of(vertices[b]), Vec3.of(vertices[c])))
        _log.debug("Mesh built from arrays: %d triangles", len(mesh))
        return mesh
