"""The ROAM sphere: an adaptive triangle mesh covering the whole planet.

The sphere starts as an octahedron of eight triangles. Triangles with the
largest screen-space error are split and diamonds with the smallest error
are merged, so the mesh keeps roughly a target polygon count while putting
detail where the viewer sees it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gritsmesh.mesh import HeightFunc, RoamDiamond, RoamPoint, RoamTriangle, RoamView
from gritsmesh.pqueue import PriorityQueue

log = logging.getLogger(__name__)

TARGET_POLYS = 2000
MAX_ITERS = 500
_SLACK = 100

# Latitude and longitude of the six octahedron vertices.
_VERTICES = (
    (90.0, 0.0),  # North
    (-90.0, 0.0),  # South
    (0.0, 0.0),  # Europe/Africa
    (0.0, 90.0),  # Asia, east
    (0.0, 180.0),  # Pacific
    (0.0, -90.0),  # Americas, west
)

# (left, middle, right) vertices and (left, base, right) neighbours.
_TRIANGLES = (
    ((2, 0, 3), (3, 4, 1)),
    ((3, 0, 4), (0, 5, 2)),
    ((4, 0, 5), (1, 6, 3)),
    ((5, 0, 2), (2, 7, 0)),
    ((3, 1, 2), (5, 0, 7)),
    ((4, 1, 3), (6, 1, 4)),
    ((5, 1, 4), (7, 2, 5)),
    ((2, 1, 5), (4, 3, 6)),
)


class RoamSphere:
    """The triangles and diamonds making up the planet's surface mesh."""

    def __init__(self, height_func: HeightFunc | None = None) -> None:
        self.polys = 8
        # Triangles come out largest error first, diamonds smallest first.
        self._triangles = PriorityQueue(key=lambda tri: -tri.error)
        self._diamonds = PriorityQueue(key=lambda dia: dia.error)
        self.view = RoamView()
        self._errors_version = 0

        vertices = [
            RoamPoint(lat, lon, 0.0, height_func=height_func) for lat, lon in _VERTICES
        ]
        for vertex in vertices:
            vertex.update_height()

        self.roots: list[RoamTriangle] = [
            RoamTriangle(*(vertices[i] for i in corners)) for corners, _ in _TRIANGLES
        ]
        for root, (_, neighbors) in zip(self.roots, _TRIANGLES):
            self.add_triangle(root, *(self.roots[i] for i in neighbors))

        for root in self.roots:
            log.debug("RoamSphere: new - %r edge=%r", root, root.edge)

    def triangles(self) -> list[RoamTriangle]:
        """The triangles currently making up the surface."""
        return self._triangles.items()

    def add_triangle(
        self,
        triangle: RoamTriangle,
        left: RoamTriangle,
        base: RoamTriangle,
        right: RoamTriangle,
    ) -> None:
        """Insert a triangle into the mesh with the given neighbours."""
        triangle.left = left
        triangle.base = base
        triangle.right = right
        for point in triangle.points:
            point.add_triangle(triangle)
        triangle.update_errors(self.view)
        triangle.handle = self._triangles.push(triangle)

    def remove_triangle(self, triangle: RoamTriangle) -> None:
        """Take a triangle out of the mesh."""
        for point in triangle.points:
            point.remove_triangle(triangle)
        self._triangles.remove(triangle.handle)

    def add_diamond(self, diamond: RoamDiamond) -> None:
        """Make a diamond a candidate for merging."""
        diamond.active = True
        diamond.error = max(parent.error for parent in diamond.parents)
        diamond.handle = self._diamonds.push(diamond)

    def remove_diamond(self, diamond: RoamDiamond | None) -> None:
        """Withdraw a diamond from merging; does nothing if it is not active."""
        if diamond is not None and diamond.active:
            diamond.active = False
            self._diamonds.remove(diamond.handle)

    def split(self, triangle: RoamTriangle) -> None:
        """Split a triangle and its base neighbour into four children."""
        self.polys += 2

        if triangle.base.base is not triangle:
            self.split(triangle.base)
        if triangle.base.base is not triangle:
            raise RuntimeError("mesh is inconsistent: base neighbours do not match")

        s = triangle
        b = triangle.base
        dia = RoamDiamond(s, b)

        mid = s.split
        sl = RoamTriangle(s.m, mid, s.l, dia)
        sr = RoamTriangle(s.r, mid, s.m, dia)
        bl = RoamTriangle(b.m, mid, b.l, dia)
        br = RoamTriangle(b.r, mid, b.m, dia)
        s.kids = [sl, sr]
        b.kids = [bl, br]

        self.add_triangle(sl, sr, s.left, br)
        self.add_triangle(sr, bl, s.right, sl)
        self.add_triangle(bl, br, b.left, sr)
        self.add_triangle(br, sl, b.right, bl)

        s.left.sync_neighbor(s, sl)
        s.right.sync_neighbor(s, sr)
        b.left.sync_neighbor(b, bl)
        b.right.sync_neighbor(b, br)

        self.remove_triangle(s)
        self.remove_triangle(b)

        dia.update_errors(self.view)
        self.add_diamond(dia)
        self.remove_diamond(s.parent)
        self.remove_diamond(b.parent)

    def merge(self, diamond: RoamDiamond) -> None:
        """Replace a diamond's four children with its two parent triangles."""
        self.polys -= 2

        s, b = diamond.parents
        sl, sr = s.kids
        bl, br = b.kids
        s.kids = [None, None]
        b.kids = [None, None]

        s.left.sync_neighbor(sl, s)
        s.right.sync_neighbor(sr, s)
        b.left.sync_neighbor(bl, b)
        b.right.sync_neighbor(br, b)

        self.add_triangle(s, sl.base, b, sr.base)
        self.add_triangle(b, bl.base, s, br.base)

        sl.base.sync_neighbor(sl, s)
        sr.base.sync_neighbor(sr, s)
        bl.base.sync_neighbor(bl, b)
        br.base.sync_neighbor(br, b)

        for kid in (sl, sr, bl, br):
            self.remove_triangle(kid)

        for parent in (s, b):
            if (
                parent.left.left is parent.right.right
                and parent.left.left is not parent
                and parent.parent is not None
            ):
                parent.parent.update_errors(self.view)
                self.add_diamond(parent.parent)

        self.remove_diamond(diamond)
        if not (sl.m is sr.m is bl.m is br.m):
            raise RuntimeError("mesh is inconsistent: children do not share a centre")
        if sl.m.tris != 0:
            raise RuntimeError("mesh is inconsistent: centre point still in use")

    def set_view(
        self,
        model: Sequence[float],
        proj: Sequence[float],
        viewport: Sequence[int],
    ) -> None:
        """Replace the view matrices and invalidate cached projections."""
        self.view.model = list(model)
        self.view.proj = list(proj)
        self.view.viewport = list(viewport)
        self.view.version += 1

    def update_errors(self) -> None:
        """Recompute triangle and diamond errors if the view has changed."""
        log.debug("RoamSphere: update_errors - polys=%d", self.polys)
        if self._errors_version == self.view.version:
            return
        self._errors_version = self.view.version

        for triangle in self._triangles.items():
            triangle.update_errors(self.view)
            self._triangles.priority_changed(triangle.handle)

        for diamond in self._diamonds.items():
            diamond.update_errors(self.view)
            self._diamonds.priority_changed(diamond.handle)

    def split_one(self) -> None:
        """Split the triangle with the greatest error."""
        triangle = self._triangles.peek()
        if triangle is not None:
            self.split(triangle)

    def merge_one(self) -> None:
        """Merge the diamond with the lowest error."""
        diamond = self._diamonds.peek()
        if diamond is not None:
            self.merge(diamond)

    def split_merge(self) -> int:
        """Split and merge toward the target polygon count.

        Returns the number of iterations spent, at most a little over
        the iteration limit.
        """
        iters = 0

        def tick() -> bool:
            nonlocal iters
            iters += 1
            return iters - 1 < MAX_ITERS

        if TARGET_POLYS - self.polys > _SLACK:
            while self.polys < TARGET_POLYS and tick():
                self.split_one()

        if self.polys - TARGET_POLYS > _SLACK:
            while self.polys > TARGET_POLYS and tick():
                self.merge_one()

        while True:
            worst = self._triangles.peek()
            best = self._diamonds.peek()
            if worst is None or best is None or worst.error <= best.error:
                break
            if not tick():
                break
            self.merge_one()
            self.split_one()

        return iters

    def get_intersect(
        self, n: float, s: float, e: float, w: float, all: bool = False
    ) -> list[RoamTriangle]:
        """Triangles intersecting a lat-lon box.

        With ``all`` set, split (non-leaf) triangles are included as well.
        The list refers to live triangles and goes stale once the mesh is
        split or merged.
        """
        found: list[RoamTriangle] = []
        for root in self.roots:
            _intersect(root, found, all, n, s, e, w)
        found.reverse()
        return found


def _leaves(triangle: RoamTriangle, found: list[RoamTriangle], include_all: bool) -> None:
    if triangle.has_kids:
        if include_all:
            found.append(triangle)
        for kid in triangle.kids:
            _leaves(kid, found, include_all)
    else:
        found.append(triangle)


def _intersect(
    triangle: RoamTriangle,
    found: list[RoamTriangle],
    include_all: bool,
    n: float,
    s: float,
    e: float,
    w: float,
) -> None:
    edge = triangle.edge
    if edge.n <= s or edge.s >= n or edge.e <= w or edge.w >= e:
        return
    if edge.n <= n and edge.s >= s and edge.e <= e and edge.w >= w:
        if include_all:
            found.append(triangle)
        _leaves(triangle, found, include_all)
    elif triangle.has_kids:
        if include_all:
            found.append(triangle)
        for kid in triangle.kids:
            _intersect(kid, found, include_all, n, s, e, w)
    else:
        found.append(triangle)