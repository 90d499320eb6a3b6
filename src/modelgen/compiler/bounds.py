"""Axis-aligned bounding volumes."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

__all__ = ["BoundingVolume", "union_all", "mesh_bounds"]

Vec3 = Tuple[float, float, float]


def _vec3(values) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True, slots=True)
class BoundingVolume:
    center: Vec3
    extents: Vec3

    @classmethod
    def from_min_max(cls, minimum, maximum) -> "BoundingVolume":
        lo = np.asarray(minimum, dtype=np.float64)
        hi = np.asarray(maximum, dtype=np.float64)
        center = (lo + hi) / 2.0
        return cls(_vec3(center), _vec3(hi - center))

    @classmethod
    def from_positions(cls, positions: np.ndarray) -> "BoundingVolume":
        pts = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        if pts.shape[0] == 0:
            raise ValueError("Cannot bound an empty position set")
        return cls.from_min_max(pts.min(axis=0), pts.max(axis=0))

    @property
    def minimum(self) -> Vec3:
        return _vec3(np.subtract(self.center, self.extents))

    @property
    def maximum(self) -> Vec3:
        return _vec3(np.add(self.center, self.extents))

    @property
    def size(self) -> Vec3:
        return _vec3(np.multiply(self.extents, 2.0))

    def union(self, other: "BoundingVolume") -> "BoundingVolume":
        return BoundingVolume.from_min_max(
            np.minimum(self.minimum, other.minimum),
            np.maximum(self.maximum, other.maximum),
        )


def union_all(volumes: Iterable[BoundingVolume]) -> BoundingVolume:
    result: Optional[BoundingVolume] = None
    for vol in volumes:
        result = vol if result is None else result.union(vol)
    if result is None:
        raise ValueError("union_all() needs at least one bounding volume")
    return result


def mesh_bounds(positions: Optional[np.ndarray]) -> Optional[BoundingVolume]:
    """Bounds of a mesh, or None when it has no positions to scan."""
    if positions is None or len(positions) == 0:
        return None
    return BoundingVolume.from_positions(positions)
