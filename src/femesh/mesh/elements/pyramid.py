from __future__ import annotations

from typing import TYPE_CHECKING

from femesh.mesh.elements.element import Cell, Element, MeshElemType
from femesh.mesh.elements.quad import Quad
from femesh.mesh.elements.tri import Tri
from femesh.mesh.geometry import tetrahedron_volume

if TYPE_CHECKING:
    from femesh.mesh.node import Node


class Pyramid(Cell):
    """
    Represents a five-node pyramid with the quadrilateral base 0-1-2-3 and apex 4.
    """
    N_NODES = 5
    GEOM_TYPE = MeshElemType.PYRAMID
    REVERSED_NODE_ORDER = (0, 3, 2, 1, 4)
    EDGE_NODES = (
        (0, 1), (1, 2), (2, 3), (0, 3),
        (0, 4), (1, 4), (2, 4), (3, 4),
    )
    FACE_NODES = (
        (0, 1, 4),
        (1, 2, 4),
        (2, 3, 4),
        (3, 0, 4),
        (0, 3, 2, 1),
    )

    def compute_content(self) -> float:
        p = [node.coords for node in self.nodes]
        return tetrahedron_volume(p[0], p[1], p[2], p[4]) + tetrahedron_volume(p[2], p[3], p[0], p[4])

    def _face_element(self, nodes: list[Node]) -> Element:
        if len(nodes) == 4:
            return Quad(nodes)
        return Tri(nodes)
