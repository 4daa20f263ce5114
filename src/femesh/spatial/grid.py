"""
Uniform grid over point coordinates.

The grid partitions the axis-aligned bounding box of a point set into cells
and stores the indices of the points falling into each cell. It answers
"which points might lie in this cube" queries; callers filter the returned
candidates by exact distance.
"""
from __future__ import annotations

import itertools
import logging
import math
from typing import TYPE_CHECKING, Sequence

import numpy as np

from femesh.config import DEFAULT_GRID_RESOLUTION

if TYPE_CHECKING:
    import numpy.typing as npt
    from femesh.mesh.node import Node

logger = logging.getLogger(__name__)

CellIndex = tuple[int, int, int]


class Grid:
    """
    Uniform spatial grid storing point indices per cell.

    The longest side of the bounding box is divided into ``resolution``
    cells, the other sides into proportionally many (at least one). Only
    occupied cells are stored.
    """
    def __init__(
        self,
        points: npt.ArrayLike,
        resolution: int = DEFAULT_GRID_RESOLUTION,
    ) -> None:
        """
        Build the grid.

        Args:
            points: Point coordinates, shape (n_points, 3).
            resolution: Number of cells along the dominant axis.

        Raises:
            ValueError: If the resolution is not positive or the points are not 3D.
        """
        if resolution < 1:
            raise ValueError(f"Grid resolution must be positive, got {resolution}.")

        points = np.asarray(points, dtype=np.float64)
        if points.size == 0:
            points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Expected points of shape (n, 3), got {points.shape}.")

        self.n_points = points.shape[0]
        if self.n_points == 0:
            self._min = np.zeros(3)
            extent = np.zeros(3)
        else:
            self._min = points.min(axis=0)
            extent = points.max(axis=0) - self._min

        max_extent = float(extent.max())
        if max_extent > 0.0:
            self.n_steps = np.array(
                [max(1, math.ceil(resolution * e / max_extent)) for e in extent], dtype=np.int64
            )
        else:
            self.n_steps = np.ones(3, dtype=np.int64)
        self._cell_size = np.where(extent > 0.0, extent / self.n_steps, 1.0)

        self._cells: dict[CellIndex, list[int]] = {}
        for i, cell in enumerate(self._cell_indices(points)):
            self._cells.setdefault(cell, []).append(i)

        logger.debug(
            f"Grid with {self.n_points} points: {tuple(int(n) for n in self.n_steps)} cells, "
            f"{len(self._cells)} occupied."
        )

    @classmethod
    def from_nodes(cls, nodes: Sequence[Node], resolution: int = DEFAULT_GRID_RESOLUTION) -> Grid:
        """Build a grid over the coordinates of mesh nodes; indices refer to list positions."""
        points = np.array([node.coords for node in nodes], dtype=np.float64).reshape(-1, 3)
        return cls(points, resolution)

    @property
    def n_occupied_cells(self) -> int:
        return len(self._cells)

    def _cell_indices(self, points: npt.NDArray[np.float64]) -> list[CellIndex]:
        idx = np.floor((points - self._min) / self._cell_size).astype(np.int64)
        idx = np.clip(idx, 0, self.n_steps - 1)
        return [tuple(int(v) for v in row) for row in idx]

    def get_cell_index(self, point: npt.ArrayLike) -> CellIndex:
        """Cell containing a point; points outside the bounding box map to the nearest border cell."""
        return self._cell_indices(np.asarray(point, dtype=np.float64).reshape(1, 3))[0]

    def nodes_near(self, point: npt.ArrayLike, half_width: float) -> list[list[int]]:
        """
        Collect the point buckets of all cells intersecting a cube.

        Args:
            point: Centre of the cube.
            half_width: Half the edge length of the cube.

        Returns:
            Lists of point indices, one per occupied cell, in ascending cell order.
            The buckets may contain points outside the cube.
        """
        point = np.asarray(point, dtype=np.float64)
        lo = self.get_cell_index(point - half_width)
        hi = self.get_cell_index(point + half_width)

        n_query_cells = math.prod(h - l + 1 for l, h in zip(lo, hi))
        if n_query_cells > len(self._cells):
            keys = sorted(
                key for key in self._cells
                if all(l <= k <= h for k, l, h in zip(key, lo, hi))
            )
        else:
            keys = [
                key for key in itertools.product(*(range(l, h + 1) for l, h in zip(lo, hi)))
                if key in self._cells
            ]
        return [self._cells[key] for key in keys]
