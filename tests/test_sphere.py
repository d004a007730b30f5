import math

import pytest

from gritsmesh.geometry import EARTH_R
from gritsmesh.mesh import Edges
from gritsmesh.sphere import MAX_ITERS, TARGET_POLYS, RoamSphere

_K = 1 / (2 * EARTH_R)
MODEL = [_K, 0, 0, 0, 0, _K, 0, 0, 0, 0, _K, 0, 0, 0, 0, 1]
IDENTITY = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]
VIEWPORT = [0, 0, 100, 100]


def _assert_consistent(sphere):
    leaves = sphere.triangles()
    assert sphere.polys == len(leaves)
    counts = {}
    points = {}
    for tri in leaves:
        for nb in tri.neighbors:
            assert nb is not None
            assert any(back is tri for back in nb.neighbors)
        for point in tri.points:
            counts[id(point)] = counts.get(id(point), 0) + 1
            points[id(point)] = point
    for key, point in points.items():
        assert point.tris == counts[key]


def _viewed_sphere():
    sphere = RoamSphere()
    sphere.set_view(MODEL, IDENTITY, VIEWPORT)
    sphere.update_errors()
    return sphere


def test_new_sphere_is_octahedron():
    sphere = RoamSphere()
    assert sphere.polys == 8
    assert len(sphere.triangles()) == 8
    assert set(map(id, sphere.triangles())) == set(map(id, sphere.roots))
    assert all(not root.has_kids for root in sphere.roots)
    assert all(p.tris == 4 for root in sphere.roots for p in root.points)
    _assert_consistent(sphere)


def test_root_bounding_boxes():
    sphere = RoamSphere()
    assert sphere.roots[0].edge == Edges(n=90, s=0, e=90, w=0)
    # A vertex on the date line stretches the box to the western limit.
    assert sphere.roots[2].edge == Edges(n=90, s=0, e=-90, w=-180)


def test_errors_without_view_are_negative():
    sphere = RoamSphere()
    assert all(tri.error == -1 for tri in sphere.triangles())


def test_height_func_lifts_vertices():
    sphere = RoamSphere(height_func=lambda lat, lon: 1000.0)
    for root in sphere.roots:
        for point in root.points:
            assert math.dist((0, 0, 0), point.xyz) == pytest.approx(EARTH_R + 1000.0)
    sphere.split_one()
    mid = sphere.roots[0].kids[0].m
    assert math.dist((0, 0, 0), mid.xyz) == pytest.approx(EARTH_R + 1000.0)


def test_split_one_splits_pair():
    sphere = RoamSphere()
    sphere.split_one()
    assert sphere.polys == 10
    assert sphere.roots[0].has_kids
    assert sphere.roots[4].has_kids
    kids = sphere.roots[0].kids + sphere.roots[4].kids
    assert all(kid.m is kids[0].m for kid in kids)
    assert all(kid.parent is kids[0].parent for kid in kids)
    _assert_consistent(sphere)


def test_split_then_merge_restores_octahedron():
    sphere = RoamSphere()
    before = [tuple(map(id, root.neighbors)) for root in sphere.roots]
    sphere.split_one()
    sphere.merge_one()
    assert sphere.polys == 8
    assert set(map(id, sphere.triangles())) == set(map(id, sphere.roots))
    assert [tuple(map(id, root.neighbors)) for root in sphere.roots] == before
    assert all(not root.has_kids for root in sphere.roots)
    _assert_consistent(sphere)


def test_merge_one_on_fresh_sphere_does_nothing():
    sphere = RoamSphere()
    sphere.merge_one()
    assert sphere.polys == 8
    assert len(sphere.triangles()) == 8


def test_many_splits_keep_mesh_consistent():
    sphere = RoamSphere()
    for _ in range(40):
        sphere.split_one()
    assert sphere.polys > 8
    _assert_consistent(sphere)


def test_merging_everything_returns_to_roots():
    sphere = RoamSphere()
    for _ in range(15):
        sphere.split_one()
    for _ in range(1000):
        if sphere.polys == 8:
            break
        sphere.merge_one()
    assert sphere.polys == 8
    assert set(map(id, sphere.triangles())) == set(map(id, sphere.roots))
    _assert_consistent(sphere)


def test_remove_and_add_triangle_round_trip():
    sphere = RoamSphere()
    root = sphere.roots[0]
    left, base, right = root.neighbors
    sphere.remove_triangle(root)
    assert len(sphere.triangles()) == 7
    assert all(p.tris == 3 for p in root.points)
    sphere.add_triangle(root, left, base, right)
    assert len(sphere.triangles()) == 8
    assert all(p.tris == 4 for p in root.points)
    assert root.neighbors == (left, base, right)


def test_remove_diamond_ignores_none_and_inactive():
    sphere = RoamSphere()
    sphere.remove_diamond(None)
    sphere.split_one()
    dia = sphere.roots[0].kids[0].parent
    sphere.remove_diamond(dia)
    assert dia.active is False
    sphere.remove_diamond(dia)
    assert dia.active is False
    sphere.merge_one()
    assert sphere.polys == 10


def test_set_view_bumps_version():
    sphere = RoamSphere()
    sphere.set_view(MODEL, IDENTITY, VIEWPORT)
    assert sphere.view.version == 1
    assert sphere.view.model == MODEL
    assert sphere.view.viewport == VIEWPORT
    sphere.set_view(MODEL, IDENTITY, VIEWPORT)
    assert sphere.view.version == 2


def test_update_errors_uses_view():
    sphere = _viewed_sphere()
    errors = [tri.error for tri in sphere.triangles()]
    assert any(err != -1 for err in errors)
    assert any(err > 0 for err in errors)


def test_update_errors_skips_unchanged_view():
    sphere = _viewed_sphere()
    tri = sphere.triangles()[0]
    tri.error = 123.0
    sphere.update_errors()
    assert tri.error == 123.0


def test_split_one_picks_largest_error():
    sphere = _viewed_sphere()
    worst = max(sphere.triangles(), key=lambda t: t.error)
    sphere.split_one()
    assert worst.has_kids
    _assert_consistent(sphere)


def test_viewed_splits_keep_mesh_consistent():
    sphere = _viewed_sphere()
    for _ in range(20):
        sphere.split_one()
    _assert_consistent(sphere)


def test_split_merge_respects_limits():
    sphere = RoamSphere()
    iters = sphere.split_merge()
    assert 1 <= iters <= MAX_ITERS + 1
    assert sphere.polys > 8
    if sphere.polys < TARGET_POLYS:
        assert iters == MAX_ITERS + 1
    _assert_consistent(sphere)


def test_get_intersect_whole_globe_returns_leaves():
    sphere = RoamSphere()
    for _ in range(10):
        sphere.split_one()
    found = sphere.get_intersect(90, -90, 180, -180)
    assert set(map(id, found)) == set(map(id, sphere.triangles()))


def test_get_intersect_small_box_hits_one_root():
    sphere = RoamSphere()
    found = sphere.get_intersect(45, 10, 45, 10)
    assert found == [sphere.roots[0]]


def test_get_intersect_all_includes_split_parents():
    sphere = RoamSphere()
    sphere.split_one()
    root = sphere.roots[0]
    found = sphere.get_intersect(45, 10, 45, 10, all=True)
    ids = set(map(id, found))
    assert id(root) in ids
    assert ids & {id(kid) for kid in root.kids}
    leaves_only = sphere.get_intersect(45, 10, 45, 10)
    assert id(root) not in set(map(id, leaves_only))