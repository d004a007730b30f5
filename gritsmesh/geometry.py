"""Spherical coordinate and projection helpers."""

from __future__ import annotations

import math
from collections.abc import Sequence

EARTH_R = 6371000.0

Vec3 = tuple[float, float, float]


def lle2xyz(lat: float, lon: float, elev: float) -> Vec3:
    """Convert latitude, longitude (degrees) and elevation (m) to model xyz."""
    rad = EARTH_R + elev
    azim = math.radians(lon)
    incl = math.radians(90.0 - lat)
    x = rad * math.sin(azim) * math.sin(incl)
    y = rad * math.cos(incl)
    z = rad * math.cos(azim) * math.sin(incl)
    return (x, y, z)


def cross3(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> Vec3:
    """Cross product of (a - b) and (c - b)."""
    v1 = (a[0] - b[0], a[1] - b[1], a[2] - b[2])
    v2 = (c[0] - b[0], c[1] - b[1], c[2] - b[2])
    return (
        v1[1] * v2[2] - v1[2] * v2[1],
        v1[2] * v2[0] - v1[0] * v2[2],
        v1[0] * v2[1] - v1[1] * v2[0],
    )


def normalize(vec: Sequence[float]) -> Vec3:
    """Return ``vec`` scaled to unit length."""
    length = math.sqrt(sum(v * v for v in vec))
    if length == 0:
        raise ValueError("cannot normalize a zero-length vector")
    return (vec[0] / length, vec[1] / length, vec[2] / length)


def lon_avg(lon1: float, lon2: float) -> float:
    """Average two longitudes, taking the short way around the date line."""
    avg = (lon1 + lon2) / 2
    if abs(lon1 - lon2) > 180:
        avg = avg - 180 if avg >= 0 else avg + 180
    return avg


def _mat_vec(m: Sequence[float], v: Sequence[float]) -> list[float]:
    # Column-major 4x4 matrix times a 4-vector.
    return [sum(m[j * 4 + i] * v[j] for j in range(4)) for i in range(4)]


def project(
    x: float,
    y: float,
    z: float,
    model: Sequence[float],
    proj: Sequence[float],
    viewport: Sequence[int],
) -> Vec3:
    """Map model coordinates to window coordinates.

    ``model`` and ``proj`` are column-major 4x4 matrices; ``viewport`` is
    ``(x, y, width, height)``. Raises ValueError when the point projects to
    infinity.
    """
    if len(model) != 16 or len(proj) != 16 or len(viewport) != 4:
        raise ValueError("expected two 16-element matrices and a 4-element viewport")
    clip = _mat_vec(proj, _mat_vec(model, (x, y, z, 1.0)))
    w = clip[3]
    if w == 0:
        raise ValueError("point projects to infinity")
    nx, ny, nz = (clip[i] / w * 0.5 + 0.5 for i in range(3))
    return (
        nx * viewport[2] + viewport[0],
        ny * viewport[3] + viewport[1],
        nz,
    )