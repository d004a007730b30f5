"""Building blocks of the ROAM sphere mesh: views, points, triangles and diamonds.

The mesh is a spherical Realtime Optimally-Adapting Mesh built on an
octahedron. Points are shared between triangles. Triangles carry a
screen-space error used to decide where to split, and diamonds track pairs
of split triangles so that they can be merged again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from gritsmesh.geometry import Vec3, cross3, lle2xyz, lon_avg, normalize, project

HeightFunc = Callable[[float, float], float]

_BACKFACE_PREFERENCE = 50


@dataclass
class RoamView:
    """Projection state: model and projection matrices, viewport and version.

    The matrices are column-major 4x4; the viewport is ``(x, y, width, height)``.
    The version is bumped whenever the view changes so cached projections can
    be invalidated.
    """

    model: list[float] = field(default_factory=lambda: [0.0] * 16)
    proj: list[float] = field(default_factory=lambda: [0.0] * 16)
    viewport: list[int] = field(default_factory=lambda: [0] * 4)
    version: int = 0


@dataclass
class Edges:
    """A latitude-longitude bounding box."""

    n: float
    s: float
    e: float
    w: float


class RoamPoint:
    """A mesh vertex, shared among several triangles.

    It caches its model coordinates, its screen projection and a vertex
    normal averaged over the triangles it belongs to.
    """

    def __init__(
        self,
        lat: float,
        lon: float,
        elev: float = 0.0,
        height_func: HeightFunc | None = None,
    ) -> None:
        self.lat = lat
        self.lon = lon
        self.elev = elev
        self.height_func = height_func
        self.x, self.y, self.z = lle2xyz(lat, lon, elev)
        self.px = self.py = self.pz = 0.0
        self.pversion = 0
        self.tris = 0
        self.norm: list[float] = [0.0, 0.0, 0.0]

    @property
    def xyz(self) -> Vec3:
        """Model coordinates of the point."""
        return (self.x, self.y, self.z)

    def add_triangle(self, triangle: RoamTriangle) -> None:
        """Associate a triangle with the point and update the vertex normal."""
        tris = self.tris
        summed = [n * tris + t for n, t in zip(self.norm, triangle.norm)]
        self.tris = tris + 1
        self.norm = [v / self.tris for v in summed]

    def remove_triangle(self, triangle: RoamTriangle) -> None:
        """Dissociate a triangle from the point and update the vertex normal."""
        tris = self.tris
        summed = [n * tris - t for n, t in zip(self.norm, triangle.norm)]
        self.tris = tris - 1
        self.norm = [v / self.tris for v in summed] if self.tris else summed

    def update_height(self) -> None:
        """Recompute model coordinates from the height function, if any."""
        if self.height_func is not None:
            elev = self.height_func(self.lat, self.lon)
            self.x, self.y, self.z = lle2xyz(self.lat, self.lon, elev)

    def update_projection(self, view: RoamView) -> None:
        """Refresh the cached screen projection if the view has changed."""
        if self.pversion != view.version:
            self.px, self.py, self.pz = project(
                self.x, self.y, self.z, view.model, view.proj, view.viewport
            )
            self.pversion = view.version

    def __repr__(self) -> str:
        return f"RoamPoint(lat={self.lat!r}, lon={self.lon!r}, elev={self.elev!r})"


def _screen_area(l: RoamPoint, m: RoamPoint, r: RoamPoint) -> float:
    # Signed projected area; negative means the triangle faces away.
    return -(
        l.px * (m.py - r.py) + m.px * (r.py - l.py) + r.px * (l.py - m.py)
    ) / 2.0


class RoamTriangle:
    """A surface triangle with its left, middle and right vertices.

    It knows its left, base and right neighbours, the point at which it is
    split, the diamond it was created by, and its two children once split.
    """

    def __init__(
        self,
        l: RoamPoint,
        m: RoamPoint,
        r: RoamPoint,
        parent: RoamDiamond | None = None,
    ) -> None:
        self.l = l
        self.m = m
        self.r = r
        self.parent = parent
        self.left: RoamTriangle | None = None
        self.base: RoamTriangle | None = None
        self.right: RoamTriangle | None = None
        self.kids: list[RoamTriangle | None] = [None, None]
        self.error = 0.0
        self.handle: Any = None

        if abs(l.lat) == 90:
            split_lon = r.lon
        elif abs(r.lat) == 90:
            split_lon = l.lon
        else:
            split_lon = lon_avg(l.lon, r.lon)
        self.split = RoamPoint(
            (l.lat + r.lat) / 2,
            split_lon,
            (l.elev + r.elev) / 2,
            height_func=m.height_func,
        )
        self.split.update_height()

        self.norm: Vec3 = normalize(cross3(l.xyz, m.xyz, r.xyz))
        self.edge = self._bounding_box()

    def _bounding_box(self) -> Edges:
        edge = Edges(n=-90, s=90, e=-180, w=180)
        maxed = False
        for point in (self.l, self.m, self.r):
            edge.n = max(edge.n, point.lat)
            edge.s = min(edge.s, point.lat)
            if point.lat in (90, -90):
                continue
            if point.lon == 180:
                maxed = True
                continue
            edge.e = max(edge.e, point.lon)
            edge.w = min(edge.w, point.lon)
        if maxed:
            if edge.e < 0:
                edge.w = -180
            else:
                edge.e = 180
        return edge

    @property
    def points(self) -> tuple[RoamPoint, RoamPoint, RoamPoint]:
        """The left, middle and right vertices."""
        return (self.l, self.m, self.r)

    @property
    def neighbors(self) -> tuple[RoamTriangle | None, ...]:
        """The left, base and right neighbours."""
        return (self.left, self.base, self.right)

    @property
    def has_kids(self) -> bool:
        """True once the triangle has been split into two children."""
        return self.kids[0] is not None and self.kids[1] is not None

    def is_visible(self, view: RoamView) -> bool:
        """True if the projected triangle overlaps the viewport and depth range."""
        l, m, r = self.points
        min_x = min(l.px, m.px, r.px)
        max_x = max(l.px, m.px, r.px)
        min_y = min(l.py, m.py, r.py)
        max_y = max(l.py, m.py, r.py)
        vp = view.viewport
        outside = max_x < vp[0] or min_x > vp[2] or max_y < vp[1] or min_y > vp[3]
        return not outside and all(0 < p.pz < 1 for p in (l, m, r))

    def is_backface(self, view: RoamView) -> bool:
        """True if the triangle faces away from the viewer."""
        for point in self.points:
            point.update_projection(view)
        return _screen_area(self.l, self.m, self.r) < 0

    def update_errors(self, view: RoamView) -> None:
        """Recompute the screen-space error of the triangle for ``view``."""
        for point in self.points:
            point.update_projection(view)

        if not self.is_visible(view):
            self.error = -1
            return

        self.split.update_projection(view)
        l, r, split = self.l, self.r, self.split
        pxdist = (l.px + r.px) / 2 - split.px
        pydist = (l.py + r.py) / 2 - split.py
        error = (pxdist * pxdist + pydist * pydist) ** 0.5
        error *= _screen_area(l, self.m, r)

        # Give some preference to faces on the visible edge.
        if any(n is not None and n.is_backface(view) for n in self.neighbors):
            error *= _BACKFACE_PREFERENCE
        self.error = error

    def sync_neighbor(self, old: RoamTriangle, new: RoamTriangle) -> None:
        """Replace the first neighbour link pointing at ``old`` with ``new``."""
        if self.left is old:
            self.left = new
        elif self.base is old:
            self.base = new
        elif self.right is old:
            self.right = new

    def __repr__(self) -> str:
        return f"RoamTriangle({self.l!r}, {self.m!r}, {self.r!r})"


class RoamDiamond:
    """Two adjacent triangles that have been split together.

    When its error is low enough the diamond is merged: the four children are
    removed and the two parents put back into the mesh.
    """

    def __init__(self, parent0: RoamTriangle, parent1: RoamTriangle) -> None:
        self.parents: tuple[RoamTriangle, RoamTriangle] = (parent0, parent1)
        self.error = 0.0
        self.active = False
        self.handle: Any = None

    def update_errors(self, view: RoamView) -> None:
        """Recompute both parents' errors and take the larger."""
        for parent in self.parents:
            parent.update_errors(view)
        self.error = max(parent.error for parent in self.parents)

    def __repr__(self) -> str:
        return f"RoamDiamond(error={self.error!r}, active={self.active!r})"