"""Sonarping – active sonar ping simulator over triangle meshes.

This package contains:
- Vec3 vector algebra (core.vector)
- Ray / Triangle with Möller–Trumbore intersection (core.intersector)
- Mesh with first-hit and nearest-hit scans (core.mesh)
- Attenuation and round-trip echo model (core.acoustics)
- Transducer and beam patterns (sensors)
- Scene + Simulation driver (core.scene, core.simulation)
- NPZ / LAS writers for hits and echoes (core.exporter)
"""

from .core.vector import (Vec3, DegenerateVectorError, subtract, dot, cross,
                          magnitude, distance_to, unit)
from .core.intersector import Ray, Triangle, EPSILON
from .core.mesh import Mesh, MeshHit
from .core.acoustics import (EchoRecord, attenuation_factor, round_trip_time, compute_echo,
                             SPEED_OF_SOUND, ATTENUATION_DB_PER_M, SOURCE_INTENSITY)
from .core.scene import Scene
from .core.simulation import Simulation, SimulationConfig, SimulationResult, RayHit
from .core.pointcloud import PointBatch, EchoTable
from .core.exporter import LasWriter, NpzWriter
from .sensors.patterns import BeamPattern, BeamSample, SingleRayPattern
from .sensors.transducer import Transducer
