from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Sequence
import math
import numpy as np


class DegenerateVectorError(ValueError):
    """Raised when a zero-length vector is normalised."""


@dataclass(frozen=True)
class Vec3:
    """Immutable 3D vector. Used both for points and for directions."""
    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "z", float(self.z))

    @staticmethod
    def of(values: Sequence[float] | np.ndarray) -> "Vec3":
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape[0] != 3:
            raise ValueError(f"Vec3 needs exactly 3 components, got {arr.shape[0]}")
        return Vec3(arr[0], arr[1], arr[2])

    @staticmethod
    def zero() -> "Vec3":
        return Vec3(0.0, 0.0, 0.0)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    # -- operators --
    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return subtract(self, other)

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, k: float) -> "Vec3":
        return Vec3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vec3":
        return Vec3(self.x / k, self.y / k, self.z / k)

    # -- method forms of the free functions --
    def dot(self, other: "Vec3") -> float:
        return dot(self, other)

    def cross(self, other: "Vec3") -> "Vec3":
        return cross(self, other)

    def magnitude(self) -> float:
        return magnitude(self)

    def distance_to(self, other: "Vec3") -> float:
        return distance_to(self, other)

    def unit(self) -> "Vec3":
        return unit(self)


def subtract(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a.x - b.x, a.y - b.y, a.z - b.z)


def dot(a: Vec3, b: Vec3) -> float:
    return a.x * b.x + a.y * b.y + a.z * b.z


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Right-handed cross product ``a × b``."""
    return Vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


def magnitude(v: Vec3) -> float:
    return math.hypot(v.x, v.y, v.z)


def distance_to(a: Vec3, b: Vec3) -> float:
    return magnitude(subtract(a, b))


def unit(v: Vec3) -> Vec3:
    m = magnitude(v)
    if m == 0.0:
        raise DegenerateVectorError(f"Cannot normalise zero-length vector {v!r}")
    return Vec3(v.x / m, v.y / m, v.z / m)
