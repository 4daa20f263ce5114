from __future__ import annotations

from femesh.mesh.elements.element import ElementErrorFlag, Face, MeshElemType
from femesh.mesh.geometry import triangle_area


class Tri(Face):
    """
    Represents a three-node triangle.

              2
              o
             / \\
           2/   \\1
           /     \\
          0-------1
              0
    """
    N_NODES = 3
    GEOM_TYPE = MeshElemType.TRIANGLE
    EDGE_NODES = ((0, 1), (1, 2), (2, 0))

    def compute_content(self) -> float:
        """Area of the triangle."""
        return triangle_area(self.nodes[0].coords, self.nodes[1].coords, self.nodes[2].coords)

    def validate(self) -> ElementErrorFlag:
        if self.has_zero_volume():
            return ElementErrorFlag.ZERO_VOLUME
        return ElementErrorFlag.NONE
