from femesh.mesh.elements.element import Cell, Element, ElementErrorFlag, Face, MeshElemType
from femesh.mesh.elements.line import Line
from femesh.mesh.elements.tri import Tri
from femesh.mesh.elements.quad import Quad
from femesh.mesh.elements.tet import Tet
from femesh.mesh.elements.hex import Hex
from femesh.mesh.elements.pyramid import Pyramid
from femesh.mesh.elements.prism import Prism

ELEMENT_CLASSES: dict[MeshElemType, type[Element]] = {
    cls.GEOM_TYPE: cls for cls in (Line, Tri, Quad, Tet, Hex, Pyramid, Prism)
}

__all__ = [
    "Cell",
    "Element",
    "ElementErrorFlag",
    "Face",
    "MeshElemType",
    "Line",
    "Tri",
    "Quad",
    "Tet",
    "Hex",
    "Pyramid",
    "Prism",
    "ELEMENT_CLASSES",
]
