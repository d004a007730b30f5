"""Ground elevation tiles in BIL format and their height lookup."""

from __future__ import annotations

import os
from array import array
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

MAX_RESOLUTION = 50
TILE_WIDTH = 1024
TILE_HEIGHT = 512
TILE_CHANNELS = 4
TILE_SIZE = TILE_WIDTH * TILE_HEIGHT * 2

_HIGHEST_PEAK = 8848


def _clamp(index: int, size: int) -> int:
    # Indices are unsigned upstream: negatives wrap high and clamp to the end.
    return index if 0 <= index < size else size - 1


@dataclass
class ElevationTile:
    """A lat-lon box holding a grid of signed 16-bit elevation samples."""

    n: float
    s: float
    e: float
    w: float
    data: Sequence[int] | None = None
    cols: int = TILE_WIDTH
    rows: int = TILE_HEIGHT

    def __post_init__(self) -> None:
        if self.data is not None and len(self.data) != self.cols * self.rows:
            raise ValueError(
                f"expected {self.cols * self.rows} samples, got {len(self.data)}"
            )

    def contains(self, lat: float, lon: float) -> bool:
        """True if the point lies within the tile's edges."""
        return self.s <= lat <= self.n and self.w <= lon <= self.e

    def height(self, lat: float, lon: float) -> float:
        """Bilinearly interpolated elevation at a point; 0 without data."""
        data = self.data
        if data is None:
            return 0.0
        cols, rows = self.cols, self.rows
        x = (lon - self.w) / (self.e - self.w) * cols
        y = (1 - (lat - self.s) / (self.n - self.s)) * rows
        x_flr, y_flr = int(x), int(y)
        x_rem, y_rem = x - x_flr, y - y_flr

        def sample(r: int, c: int) -> int:
            return data[_clamp(r, rows) * cols + _clamp(c, cols)]

        px00 = sample(y_flr, x_flr)
        px10 = sample(y_flr, x_flr + 1)
        px01 = sample(y_flr + 1, x_flr)
        px11 = sample(y_flr + 1, x_flr + 1)
        return (
            px00 * (1 - x_rem) * (1 - y_rem)
            + px10 * x_rem * (1 - y_rem)
            + px01 * (1 - x_rem) * y_rem
            + px11 * x_rem * y_rem
        )


def load_bil(path: str | os.PathLike[str]) -> array:
    """Read a full-size BIL tile as native-order signed 16-bit samples."""
    raw = Path(path).read_bytes()
    if len(raw) != TILE_SIZE:
        raise ValueError(f"unexpected tile size {len(raw)}, != {TILE_SIZE}")
    bil = array("h")
    bil.frombytes(raw)
    return bil


def bil_to_pixels(bil: Iterable[int]) -> bytes:
    """Render elevation samples as greyscale RGBA pixels."""
    pixels = bytearray()
    for value in bil:
        color = int(value / _HIGHEST_PEAK * 255) & 0xFF
        pixels += bytes((color, color, color, 0xFF))
    return bytes(pixels)