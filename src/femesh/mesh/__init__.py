from femesh.mesh.node import Node
from femesh.mesh.mesh import Mesh
from femesh.mesh.elements import (
    ELEMENT_CLASSES,
    Element,
    ElementErrorFlag,
    Hex,
    Line,
    MeshElemType,
    Prism,
    Pyramid,
    Quad,
    Tet,
    Tri,
)

__all__ = [
    "Node",
    "Mesh",
    "ELEMENT_CLASSES",
    "Element",
    "ElementErrorFlag",
    "MeshElemType",
    "Line",
    "Tri",
    "Quad",
    "Tet",
    "Hex",
    "Pyramid",
    "Prism",
]
