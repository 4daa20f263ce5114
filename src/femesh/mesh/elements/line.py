from __future__ import annotations

import numpy as np

from femesh.mesh.elements.element import Element, ElementErrorFlag, MeshElemType


class Line(Element):
    """
    Represents a two-node line element.

        0-----------1
    """
    N_NODES = 2
    DIMENSION = 1
    GEOM_TYPE = MeshElemType.LINE
    EDGE_NODES = ((0, 1),)

    def compute_content(self) -> float:
        """Length of the line."""
        return float(np.linalg.norm(self.nodes[1].coords - self.nodes[0].coords))

    def validate(self) -> ElementErrorFlag:
        if self.has_zero_volume():
            return ElementErrorFlag.ZERO_VOLUME
        return ElementErrorFlag.NONE
