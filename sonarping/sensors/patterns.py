from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..core.intersector import Ray
from ..core.vector import Vec3


@dataclass(frozen=True)
class BeamSample:
    """One probing ray of a beam and its intensity relative to the centreline."""

    ray: Ray
    intensity: float = 1.0


class BeamPattern:
    """Base class for turning a transducer pose into probing rays."""

    def sample(self, point: Vec3, direction: Vec3) -> Sequence[BeamSample]:
        raise NotImplementedError


class SingleRayPattern(BeamPattern):
    """Centreline-only beam: one ray along the transducer direction."""

    def sample(self, point: Vec3, direction: Vec3) -> Sequence[BeamSample]:
        return [BeamSample(ray=Ray(point, direction), intensity=1.0)]
