from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.acoustics import EchoRecord
from ..core.intersector import Ray
from ..core.vector import Vec3
from .patterns import BeamPattern, BeamSample, SingleRayPattern


@dataclass
class Transducer:
    """Emitter/receiver with an append-only echo history."""

    point: Vec3
    direction: Vec3
    pattern: BeamPattern = field(default_factory=SingleRayPattern)
    name: Optional[str] = None
    echoes: List[EchoRecord] = field(default_factory=list)

    def beam(self) -> List[BeamSample]:
        return list(self.pattern.sample(self.point, self.direction))

    def cast_rays(self) -> List[Ray]:
        return [s.ray for s in self.beam()]

    def add_return_signal(self, time: float, magnitude: float) -> EchoRecord:
        record = EchoRecord(time=float(time), magnitude=float(magnitude))
        self.echoes.append(record)
        return record

    def clear_echoes(self) -> None:
        self.echoes.clear()
