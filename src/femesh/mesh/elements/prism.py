from __future__ import annotations

from typing import TYPE_CHECKING

from femesh.mesh.elements.element import Cell, Element, MeshElemType
from femesh.mesh.elements.quad import Quad
from femesh.mesh.elements.tri import Tri
from femesh.mesh.geometry import tetrahedron_volume

if TYPE_CHECKING:
    from femesh.mesh.node import Node


class Prism(Cell):
    """
    Represents a six-node prism (wedge).

    Nodes 0-1-2 form the bottom triangle, nodes 3-4-5 the top triangle;
    node ``i + 3`` lies above node ``i``.
    """
    N_NODES = 6
    GEOM_TYPE = MeshElemType.PRISM
    REVERSED_NODE_ORDER = (0, 2, 1, 3, 5, 4)
    EDGE_NODES = (
        (0, 1), (1, 2), (0, 2),
        (0, 3), (1, 4), (2, 5),
        (3, 4), (4, 5), (3, 5),
    )
    FACE_NODES = (
        (0, 2, 1),
        (0, 1, 4, 3),
        (1, 2, 5, 4),
        (2, 0, 3, 5),
        (3, 4, 5),
    )

    def compute_content(self) -> float:
        p = [node.coords for node in self.nodes]
        return (
            tetrahedron_volume(p[0], p[1], p[2], p[3])
            + tetrahedron_volume(p[1], p[4], p[2], p[3])
            + tetrahedron_volume(p[2], p[4], p[5], p[3])
        )

    def _face_element(self, nodes: list[Node]) -> Element:
        if len(nodes) == 4:
            return Quad(nodes)
        return Tri(nodes)
