from __future__ import annotations

from typing import TYPE_CHECKING

from femesh.mesh.elements.element import Cell, MeshElemType
from femesh.mesh.elements.tri import Tri
from femesh.mesh.geometry import tetrahedron_volume

if TYPE_CHECKING:
    from femesh.mesh.node import Node


class Tet(Cell):
    """
    Represents a four-node tetrahedron.

              3
             /|\\
            / | \\
           /  |  \\
          0...|...2
           \\  |  /
            \\ | /
             \\|/
              1
    """
    N_NODES = 4
    GEOM_TYPE = MeshElemType.TETRAHEDRON
    REVERSED_NODE_ORDER = (0, 2, 1, 3)
    EDGE_NODES = ((0, 1), (1, 2), (0, 2), (0, 3), (1, 3), (2, 3))
    FACE_NODES = (
        (0, 2, 1),
        (0, 1, 3),
        (1, 2, 3),
        (2, 0, 3),
    )

    def compute_content(self) -> float:
        p = [node.coords for node in self.nodes]
        return tetrahedron_volume(p[0], p[1], p[2], p[3])

    def _face_element(self, nodes: list[Node]) -> Tri:
        return Tri(nodes)
