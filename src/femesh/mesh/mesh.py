from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt
    from femesh.mesh.node import Node
    from femesh.mesh.elements import Element, MeshElemType

logger = logging.getLogger(__name__)


class Mesh:
    """
    A named collection of nodes and the elements built on them.

    The mesh owns its node and element lists. Node ids equal their position
    in the node list, element indices their position in the element list.
    """
    def __init__(
        self,
        name: str,
        nodes: list[Node],
        elements: list[Element],
    ) -> None:
        """
        Initialize the Mesh class.

        Args:
            name: Name of the mesh.
            nodes: Nodes of the mesh, renumbered to their list position.
            elements: Elements referencing nodes of ``nodes`` only.

        Raises:
            ValueError: If an element references a node outside of ``nodes``.
        """
        self.name = name
        self.nodes = nodes
        self.elements = elements

        for i, node in enumerate(self.nodes):
            node.uid = i

        for i, element in enumerate(self.elements):
            element.index = i
            for node in element.nodes:
                if node.uid >= len(self.nodes) or self.nodes[node.uid] is not node:
                    raise ValueError(
                        f"Element {i} of mesh '{name}' references a node that is not part of the mesh."
                    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', n_nodes={self.n_nodes}, n_elements={self.n_elements})"

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_elements(self) -> int:
        return len(self.elements)

    @property
    def dimension(self) -> int:
        """Highest element dimension in the mesh (0 for a mesh without elements)."""
        if not self.elements:
            return 0
        return max(element.dimension for element in self.elements)

    @property
    def coords(self) -> npt.NDArray[np.float64]:
        """Node coordinates as an (n_nodes, 3) array."""
        if not self.nodes:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([node.coords for node in self.nodes], dtype=np.float64)

    def element_type_counts(self) -> dict[MeshElemType, int]:
        """Number of elements per element type."""
        return dict(Counter(element.geom_type for element in self.elements))

    def bounding_box(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Axis-aligned bounding box of the mesh nodes.

        Returns:
            Tuple of the minimum and maximum corner.

        Raises:
            ValueError: If the mesh has no nodes.
        """
        if not self.nodes:
            raise ValueError(f"Mesh '{self.name}' has no nodes.")
        coords = self.coords
        return coords.min(axis=0), coords.max(axis=0)

    def summary(self) -> str:
        """Human readable overview of the mesh."""
        lines = [
            f"Mesh '{self.name}'",
            f"  nodes:     {self.n_nodes}",
            f"  elements:  {self.n_elements}",
            f"  dimension: {self.dimension}",
        ]
        for geom_type, count in sorted(self.element_type_counts().items()):
            lines.append(f"    {geom_type}: {count}")
        return "\n".join(lines)
