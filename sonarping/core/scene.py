from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List
from .mesh import Mesh
from ..sensors.transducer import Transducer


@dataclass
class Scene:
    """The mesh being ensonified and the transducer array pinging it.

    Neither side owns the other; the simulation correlates them per ray.
    """
    mesh: Mesh = field(default_factory=Mesh)
    transducers: List[Transducer] = field(default_factory=list)

    def add_transducer(self, transducer: Transducer) -> None:
        self.transducers.append(transducer)

    def add_transducers(self, transducers: Iterable[Transducer]) -> None:
        for t in transducers:
            self.add_transducer(t)

    def clear_echoes(self) -> None:
        for t in self.transducers:
            t.clear_echoes()
