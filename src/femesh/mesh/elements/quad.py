from __future__ import annotations

import numpy as np

from femesh.mesh.elements.element import ElementErrorFlag, Face, MeshElemType
from femesh.mesh.geometry import divided_by_plane, is_coplanar, triangle_area


class Quad(Face):
    """
    Represents a four-node quadrilateral.

              2
        3-----------2
        |           |
       3|           |1
        |           |
        0-----------1
              0
    """
    N_NODES = 4
    GEOM_TYPE = MeshElemType.QUAD
    EDGE_NODES = ((0, 1), (1, 2), (2, 3), (0, 3))

    def compute_content(self) -> float:
        """Area of the quad as the sum of triangles (0, 1, 2) and (0, 2, 3)."""
        p = [node.coords for node in self.nodes]
        return triangle_area(p[0], p[1], p[2]) + triangle_area(p[0], p[2], p[3])

    def is_convex(self) -> bool:
        """True if each diagonal separates the two remaining corners."""
        p = [node.coords for node in self.nodes]
        return divided_by_plane(p[0], p[2], p[1], p[3]) and divided_by_plane(p[1], p[3], p[0], p[2])

    def test_element_node_order(self) -> bool:
        """False if the quad folds over itself, i.e. both triangles face opposite ways."""
        p = [node.coords for node in self.nodes]
        n1 = np.cross(p[1] - p[0], p[2] - p[0])
        n2 = np.cross(p[2] - p[0], p[3] - p[0])
        return bool(np.dot(n1, n2) >= 0)

    def validate(self) -> ElementErrorFlag:
        error_code = ElementErrorFlag.NONE
        p = [node.coords for node in self.nodes]

        if self.has_zero_volume():
            error_code |= ElementErrorFlag.ZERO_VOLUME
        if not is_coplanar(p[0], p[1], p[2], p[3]):
            error_code |= ElementErrorFlag.NON_COPLANAR
        # a quad collapsed onto a line would always look non-convex
        if not error_code & ElementErrorFlag.ZERO_VOLUME and not self.is_convex():
            error_code |= ElementErrorFlag.NON_CONVEX
        if not self.test_element_node_order():
            error_code |= ElementErrorFlag.NODE_ORDER
        return error_code
