# gritsmesh

A spherical implementation of the Realtime Optimally-Adapting Meshes (ROAM)
algorithm. It keeps a continuous level-of-detail triangle mesh of a planet,
starting from an octahedron of eight triangles and splitting or merging
triangles according to their screen-space error.

It also reads BIL elevation tiles and interpolates heights from them, so the
mesh can follow terrain.

## Installation

```
pip install gritsmesh
```

The package has no dependencies outside the standard library.

## Modules

- `gritsmesh.sphere` — `RoamSphere`, the mesh itself: adding and removing
  triangles and diamonds, `split`, `merge`, `split_one`, `merge_one`,
  `split_merge`, `set_view`, `update_errors`, `triangles` and
  `get_intersect` for latitude/longitude box queries.
- `gritsmesh.mesh` — the building blocks: `RoamView`, `RoamPoint`,
  `RoamTriangle`, `RoamDiamond` and `Edges`.
- `gritsmesh.pqueue` — `PriorityQueue` with removable, re-prioritisable
  `Handle`s, used to pick the triangle to split and the diamond to merge.
- `gritsmesh.geometry` — coordinate helpers: `lle2xyz`, `cross3`,
  `normalize`, `lon_avg` and `project` (a model-to-window projection with
  column-major 4×4 matrices). `EARTH_R` is the planet radius in metres.
- `gritsmesh.elevation` — `ElevationTile`, `load_bil` and `bil_to_pixels`
  for 1024×512 signed 16-bit BIL elevation tiles.

## Usage

```python
from gritsmesh.geometry import EARTH_R
from gritsmesh.sphere import RoamSphere

sphere = RoamSphere(height_func=None)

# Column-major 4x4 matrices and a viewport (x, y, width, height).
k = 1 / (2 * EARTH_R)
model = [k, 0, 0, 0, 0, k, 0, 0, 0, 0, k, 0, 0, 0, 0, 1.0]
proj = [1.0, 0, 0, 0, 0, 1.0, 0, 0, 0, 0, 1.0, 0, 0, 0, 0, 1.0]
sphere.set_view(model, proj, (0, 0, 800, 600))
sphere.update_errors()

# Refine the mesh toward its target polygon count (2000).
iterations = sphere.split_merge()
print(sphere.polys, len(sphere.triangles()))

# Leaf triangles overlapping a latitude/longitude box (north, south, east, west).
for triangle in sphere.get_intersect(90, 45, -90, -180, all=False):
    print(triangle.edge)
```

`split_merge` does at most 500 iterations per call; call it again after each
view change to keep refining. The list returned by `get_intersect` refers to
live triangles and goes stale once the mesh is split or merged.

To drape the mesh over terrain, pass a height function that takes a
latitude and a longitude and returns an elevation in metres:

```python
from gritsmesh.elevation import ElevationTile, load_bil

tile = ElevationTile(n=90, s=0, e=0, w=-180, data=load_bil("tile.bil"))
sphere = RoamSphere(height_func=tile.height)
```

`ElevationTile.height` interpolates bilinearly between samples and returns 0
when the tile has no data; `ElevationTile.contains` tells whether a point
lies inside the tile's edges. `load_bil` raises `ValueError` for files that
are not exactly one 1024×512 tile of 16-bit samples, and `bil_to_pixels`
turns elevation samples into greyscale RGBA bytes, scaled so that 8848 m
maps to 255.

## What it does not do

The package computes the mesh only. It does not draw anything, has no
window or OpenGL context of its own, and does not download elevation or
imagery tiles: view matrices come from the caller through `set_view`, and
BIL files must already be on disk.