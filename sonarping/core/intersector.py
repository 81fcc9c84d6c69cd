from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from .vector import Vec3, cross, dot, subtract, unit

EPSILON = 1e-6


@dataclass(frozen=True)
class Ray:
    point: Vec3                  # origin
    direction: Vec3              # not required to be unit; scales t

    def at(self, t: float) -> Vec3:
        return Vec3(
            self.point.x + t * self.direction.x,
            self.point.y + t * self.direction.y,
            self.point.z + t * self.direction.z,
        )


@dataclass(frozen=True)
class Triangle:
    """Triangle with vertices in winding order.

    The winding fixes the sign of :meth:`normal` and which side is the front
    face: a ray is front-facing when its direction points against the normal.
    """
    p1: Vec3
    p2: Vec3
    p3: Vec3

    def edges(self) -> tuple[Vec3, Vec3]:
        return subtract(self.p2, self.p1), subtract(self.p3, self.p1)

    def normal(self) -> Vec3:
        edge1, edge2 = self.edges()
        return cross(edge1, edge2)

    def unit_normal(self) -> Vec3:
        return unit(self.normal())

    def centroid(self) -> Vec3:
        return (self.p1 + self.p2 + self.p3) / 3.0

    def ray_parameter(
        self,
        ray: Ray,
        epsilon: float = EPSILON,
        allow_behind_origin: bool = True,
    ) -> Optional[float]:
        """Möller–Trumbore test returning the ray parameter ``t`` of the hit.

        Single-sided: ``det < epsilon`` rejects near-parallel rays and back
        faces alike. Bounds are checked on the det-scaled barycentrics, so no
        division happens before a hit is certain. Hits behind the ray origin
        (``t < 0``) are kept unless ``allow_behind_origin`` is False.
        """
        edge1, edge2 = self.edges()
        pvec = cross(ray.direction, edge2)
        det = dot(edge1, pvec)
        if det < epsilon:
            return None
        tvec = subtract(ray.point, self.p1)
        u = dot(tvec, pvec)
        if u < 0.0 or u > det:
            return None
        qvec = cross(tvec, edge1)
        v = dot(ray.direction, qvec)
        if v < 0.0 or u + v > det:
            return None
        t = dot(edge2, qvec) / det
        if t < 0.0 and not allow_behind_origin:
            return None
        return t

    def ray_intersect(
        self,
        ray: Ray,
        epsilon: float = EPSILON,
        allow_behind_origin: bool = True,
    ) -> Optional[Vec3]:
        """World-space collision point, or None when the ray misses."""
        t = self.ray_parameter(ray, epsilon=epsilon, allow_behind_origin=allow_behind_origin)
        if t is None:
            return None
        return ray.at(t)
