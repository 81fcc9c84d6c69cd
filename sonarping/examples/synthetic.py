from __future__ import annotations

from typing import Iterable, List, Tuple

import numpy as np

from ..core.intersector import Triangle
from ..core.mesh import Mesh

PRESETS = ("reference", "wall", "seabed", "demo")


def _grid(corner: np.ndarray, a: np.ndarray, b: np.ndarray, divisions: int) -> Tuple[np.ndarray, np.ndarray]:
    """Quad grid spanned by edge vectors ``a`` and ``b``; faces wind so the normal is ``a × b``."""
    steps = np.linspace(0.0, 1.0, divisions + 1, dtype=np.float64)
    su, sv = np.meshgrid(steps, steps, indexing="ij")
    vertices = corner + su.reshape(-1, 1) * a + sv.reshape(-1, 1) * b

    faces = []
    for i in range(divisions):
        for j in range(divisions):
            idx0 = i * (divisions + 1) + j          # corner
            idx1 = idx0 + (divisions + 1)           # +a
            idx2 = idx1 + 1                         # +a +b
            idx3 = idx0 + 1                         # +b
            faces.append([idx0, idx1, idx2])
            faces.append([idx0, idx2, idx3])
    return vertices, np.asarray(faces, dtype=np.int64)


def _reference() -> Tuple[np.ndarray, np.ndarray]:
    vertices = np.array([
        [10.0, -10.0, 0.0],
        [10.0, 10.0, 0.0],
        [10.0, 0.0, -10.0],
    ], dtype=np.float64)
    return vertices, np.array([[0, 1, 2]], dtype=np.int64)


def _wall(size: float, distance: float, divisions: int) -> Tuple[np.ndarray, np.ndarray]:
    # Plane x = distance, facing -x (towards the origin).
    h = size / 2.0
    corner = np.array([distance, -h, -h])
    a = np.array([0.0, 0.0, size])
    b = np.array([0.0, size, 0.0])
    return _grid(corner, a, b, divisions)


def _seabed(size: float, distance: float, divisions: int) -> Tuple[np.ndarray, np.ndarray]:
    # Plane z = -distance, facing +z (towards the surface).
    h = size / 2.0
    corner = np.array([-h, -h, -distance])
    a = np.array([size, 0.0, 0.0])
    b = np.array([0.0, size, 0.0])
    return _grid(corner, a, b, divisions)


def _merge_parts(parts: Iterable[Tuple[np.ndarray, np.ndarray]]) -> Tuple[np.ndarray, np.ndarray]:
    vertices: list[np.ndarray] = []
    faces: list[np.ndarray] = []
    offset = 0
    for verts, tri in parts:
        vertices.append(verts)
        faces.append(tri + offset)
        offset += verts.shape[0]
    return np.vstack(vertices), np.vstack(faces)


def generate_arrays(preset: str, size: float = 20.0, distance: float = 10.0, divisions: int = 2) -> Tuple[np.ndarray, np.ndarray]:
    """Indexed vertices/faces for a named preset. Face order is scan order."""
    preset = preset.lower()
    if size <= 0.0:
        raise ValueError("size must be positive.")
    if divisions <= 0:
        raise ValueError("divisions must be positive.")
    if preset == "reference":
        return _reference()
    if preset == "wall":
        return _wall(size, distance, divisions)
    if preset == "seabed":
        return _seabed(size, distance, divisions)
    if preset == "demo":
        return _merge_parts([
            _seabed(size * 2.0, distance, divisions * 2),
            _wall(size, distance, divisions),
        ])
    raise ValueError(f"Unknown synthetic scene preset '{preset}'.")


def generate_triangles(preset: str, size: float = 20.0, distance: float = 10.0, divisions: int = 2) -> List[Triangle]:
    vertices, faces = generate_arrays(preset, size=size, distance=distance, divisions=divisions)
    return list(Mesh.from_arrays(vertices, faces))


def triangles_to_lists(triangles: Iterable[Triangle]) -> List[List[List[float]]]:
    """Plain nested lists, suitable for the ``mesh.triangles`` config field."""
    return [[list(tri.p1), list(tri.p2), list(tri.p3)] for tri in triangles]
