from __future__ import annotations

from typing import TYPE_CHECKING

from femesh.mesh.elements.element import Cell, MeshElemType
from femesh.mesh.elements.quad import Quad
from femesh.mesh.geometry import tetrahedron_volume

if TYPE_CHECKING:
    from femesh.mesh.node import Node


class Hex(Cell):
    """
    Represents an eight-node hexahedron.

             7-----------6
            /|          /|
           / |         / |
          4-----------5  |
          |  |        |  |
          |  3--------|--2
          | /         | /
          |/          |/
          0-----------1
    """
    N_NODES = 8
    GEOM_TYPE = MeshElemType.HEXAHEDRON
    REVERSED_NODE_ORDER = (0, 3, 2, 1, 4, 7, 6, 5)
    EDGE_NODES = (
        (0, 1), (1, 2), (2, 3), (0, 3),
        (4, 5), (5, 6), (6, 7), (4, 7),
        (0, 4), (1, 5), (2, 6), (3, 7),
    )
    FACE_NODES = (
        (0, 3, 2, 1),
        (0, 1, 5, 4),
        (1, 2, 6, 5),
        (2, 3, 7, 6),
        (3, 0, 4, 7),
        (4, 5, 6, 7),
    )

    def compute_content(self) -> float:
        """Volume as the sum of six tetrahedra."""
        p = [node.coords for node in self.nodes]
        return (
            tetrahedron_volume(p[4], p[7], p[5], p[0])
            + tetrahedron_volume(p[5], p[3], p[1], p[0])
            + tetrahedron_volume(p[5], p[7], p[3], p[0])
            + tetrahedron_volume(p[5], p[7], p[6], p[2])
            + tetrahedron_volume(p[1], p[3], p[5], p[2])
            + tetrahedron_volume(p[3], p[7], p[5], p[2])
        )

    def _face_element(self, nodes: list[Node]) -> Quad:
        return Quad(nodes)
