from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class Node:
    """
    Represents a mesh node: a fixed point in 3D space with an identity.
    """
    def __init__(
        self,
        index: int,
        coords: list[float] | tuple[float, ...] | npt.NDArray[np.float64],
    ) -> None:
        """
        Initialize the node with coordinates.

        Args:
            index: Position of the node in its owning mesh.
            coords: Coordinates of the node in the global system [X, Y, Z].
                Planar input [X, Y] is placed at Z = 0.
        """
        coords = np.array(coords, dtype=np.float64).ravel()
        if coords.size == 2:
            coords = np.append(coords, 0.0)
        if coords.size != 3:
            raise ValueError(f"Node coordinates must have 2 or 3 components, got {coords.size}.")
        coords.setflags(write=False)
        self.coords: npt.NDArray[np.float64] = coords
        self.uid = index

    def __repr__(self) -> str:
        """String representation of the node."""
        return f"{self.__class__.__name__}(id={self.uid}, coords={self.coords})"

    def __getitem__(self, item: int) -> float:
        return float(self.coords[item])

    @property
    def x(self) -> float:
        """X-coordinate of the node."""
        return float(self.coords[0])

    @property
    def y(self) -> float:
        """Y-coordinate of the node."""
        return float(self.coords[1])

    @property
    def z(self) -> float:
        """Z-coordinate of the node."""
        return float(self.coords[2])
