"""Tile grid storage for a generation run."""

from dataclasses import dataclass, field
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from ..exceptions import InvalidDimensionsError
from ..terrain_types import FeatureType, TerrainType

# 4-connected and 8-connected neighbor offsets as (dx, dz)
NEIGHBORS_4: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
NEIGHBORS_8: tuple[tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


@dataclass
class TerrainTile:
    """A decided grid cell."""

    height: float
    type: TerrainType
    moisture: float
    temperature: float
    features: set[FeatureType] = field(default_factory=set)


class TerrainGrid:
    """Fixed-size arena of tiles indexed by ``z * width + x``.

    A cell holds None while undecided. Once decided it is never reset.
    """

    def __init__(self, width: int, depth: int):
        if width <= 0 or depth <= 0:
            raise InvalidDimensionsError(width, depth)
        self.width = width
        self.depth = depth
        self._cells: list[TerrainTile | None] = [None] * (width * depth)

    def __len__(self) -> int:
        return len(self._cells)

    def index(self, x: int, z: int) -> int:
        return z * self.width + x

    def coords(self, index: int) -> tuple[int, int]:
        """Convert a flat index to (x, z)."""
        z, x = divmod(index, self.width)
        return x, z

    def in_bounds(self, x: int, z: int) -> bool:
        return 0 <= x < self.width and 0 <= z < self.depth

    def get(self, x: int, z: int) -> TerrainTile | None:
        return self._cells[z * self.width + x]

    def at(self, index: int) -> TerrainTile | None:
        return self._cells[index]

    def tile(self, x: int, z: int) -> TerrainTile:
        """Return the decided tile at (x, z).

        Raises:
            KeyError: If the cell is still undecided.
        """
        tile = self._cells[z * self.width + x]
        if tile is None:
            raise KeyError(f"Cell ({x}, {z}) is undecided")
        return tile

    def decide(self, index: int, tile: TerrainTile) -> None:
        """Store a tile in an undecided cell.

        Raises:
            ValueError: If the cell was already decided.
        """
        if self._cells[index] is not None:
            x, z = self.coords(index)
            raise ValueError(f"Cell ({x}, {z}) is already decided")
        self._cells[index] = tile

    def is_decided(self, index: int) -> bool:
        return self._cells[index] is not None

    def neighbors(
        self,
        index: int,
        offsets: tuple[tuple[int, int], ...] = NEIGHBORS_4,
    ) -> Iterator[int]:
        """Yield flat indices of in-bounds neighbors of a cell."""
        x, z = self.coords(index)
        for dx, dz in offsets:
            nx, nz = x + dx, z + dz
            if 0 <= nx < self.width and 0 <= nz < self.depth:
                yield nz * self.width + nx

    def decided_neighbors(self, index: int) -> list[TerrainTile]:
        """Decided 4-connected neighbor tiles of a cell."""
        tiles = [self._cells[n] for n in self.neighbors(index)]
        return [tile for tile in tiles if tile is not None]

    def undecided_indices(self) -> list[int]:
        return [i for i, tile in enumerate(self._cells) if tile is None]

    def undecided_count(self) -> int:
        return sum(1 for tile in self._cells if tile is None)

    def is_complete(self) -> bool:
        return all(tile is not None for tile in self._cells)

    def tiles(self) -> Iterator[tuple[int, int, TerrainTile]]:
        """Yield (x, z, tile) for every decided cell in row-major order."""
        for index, tile in enumerate(self._cells):
            if tile is not None:
                x, z = self.coords(index)
                yield x, z, tile

    def heights(self) -> NDArray[np.float32]:
        """Heights as a (depth, width) array; undecided cells are NaN."""
        return self._field(lambda t: t.height)

    def moisture(self) -> NDArray[np.float32]:
        return self._field(lambda t: t.moisture)

    def temperature(self) -> NDArray[np.float32]:
        return self._field(lambda t: t.temperature)

    def type_codes(self) -> NDArray[np.uint8]:
        """Terrain type codes as a (depth, width) uint8 array.

        Raises:
            ValueError: If any cell is undecided.
        """
        if not self.is_complete():
            raise ValueError("Cannot export type codes from an incomplete grid")
        codes = [tile.type.code for tile in self._cells]  # type: ignore[union-attr]
        return np.array(codes, dtype=np.uint8).reshape(self.depth, self.width)

    def _field(self, getter) -> NDArray[np.float32]:
        values = [np.nan if t is None else getter(t) for t in self._cells]
        return np.array(values, dtype=np.float32).reshape(self.depth, self.width)
