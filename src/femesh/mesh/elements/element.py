from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntFlag, StrEnum
from typing import TYPE_CHECKING, ClassVar, Sequence

import numpy as np

from femesh.config import ZERO_VOLUME_TOLERANCE
from femesh.mesh.geometry import surface_normal

if TYPE_CHECKING:
    import numpy.typing as npt
    from femesh.mesh.node import Node


class MeshElemType(StrEnum):
    LINE = "line"
    TRIANGLE = "triangle"
    QUAD = "quad"
    TETRAHEDRON = "tetrahedron"
    HEXAHEDRON = "hexahedron"
    PYRAMID = "pyramid"
    PRISM = "prism"


class ElementErrorFlag(IntFlag):
    """Bit-set of geometric defects reported by ``Element.validate``."""
    NONE = 0
    ZERO_VOLUME = 1
    NON_COPLANAR = 2
    NON_CONVEX = 4
    NODE_ORDER = 8


class Element(ABC):
    """
    Abstract base class for mesh elements.

    An element references the nodes of its mesh but does not own them.
    Topology (edges, faces) is described by class-level tables of local node
    indices.
    """
    N_NODES: ClassVar[int]
    DIMENSION: ClassVar[int]
    GEOM_TYPE: ClassVar[MeshElemType]
    EDGE_NODES: ClassVar[tuple[tuple[int, int], ...]]
    FACE_NODES: ClassVar[tuple[tuple[int, ...], ...]] = ()

    def __init__(
        self,
        nodes: Sequence[Node],
        value: int = 0,
        index: int = -1,
    ) -> None:
        """
        Initialize the element.

        Args:
            nodes: Ordered list of corner nodes.
            value: Material / region identifier.
            index: Position of the element in its owning mesh.
        """
        if len(nodes) != self.N_NODES:
            raise ValueError(
                f"{self.__class__.__name__} requires {self.N_NODES} nodes, got {len(nodes)}."
            )
        self.nodes: list[Node] = list(nodes)
        self.value = value
        self.index = index
        self.content = self.compute_content()

    def __repr__(self) -> str:
        """String representation of the element."""
        return (
            f"{self.__class__.__name__}(id={self.index}, value={self.value}, "
            f"nodes={[node.uid for node in self.nodes]})"
        )

    @property
    def n_nodes(self) -> int:
        """Number of nodes of the element."""
        return self.N_NODES

    @property
    def dimension(self) -> int:
        return self.DIMENSION

    @property
    def geom_type(self) -> MeshElemType:
        return self.GEOM_TYPE

    @property
    def n_edges(self) -> int:
        return len(self.EDGE_NODES)

    @property
    def n_faces(self) -> int:
        return len(self.FACE_NODES)

    @property
    def coords(self) -> npt.NDArray[np.float64]:
        """Node coordinates as an (n_nodes, 3) array."""
        return np.array([node.coords for node in self.nodes], dtype=np.float64)

    @property
    def node_ids(self) -> list[int]:
        return [node.uid for node in self.nodes]

    @property
    def center_of_gravity(self) -> npt.NDArray[np.float64]:
        """Arithmetic mean of the node coordinates."""
        return self.coords.mean(axis=0)

    def is_edge(self, idx1: int, idx2: int) -> bool:
        """Returns True if the two local node indices form an edge of the element."""
        return (idx1, idx2) in self.EDGE_NODES or (idx2, idx1) in self.EDGE_NODES

    def get_node_index(self, node: Node) -> int | None:
        """
        Local index of a node within the element.

        Returns:
            The local index or None if the node is not part of the element.
        """
        for i, element_node in enumerate(self.nodes):
            if element_node is node:
                return i
        return None

    def get_face(self, i: int) -> Element:
        """
        Return face ``i`` as a new 2D element sharing this element's nodes.

        Raises:
            IndexError: If the element has no face with that index.
        """
        if not 0 <= i < self.n_faces:
            raise IndexError(f"{self.__class__.__name__} has no face {i}.")
        face_nodes = [self.nodes[j] for j in self.FACE_NODES[i]]
        return self._face_element(face_nodes)

    def _face_element(self, nodes: list[Node]) -> Element:
        raise IndexError(f"{self.__class__.__name__} has no faces.")

    def has_zero_volume(self) -> bool:
        """True if the length / area / volume of the element vanishes."""
        return self.content < ZERO_VOLUME_TOLERANCE

    @abstractmethod
    def compute_content(self) -> float:
        """Calculate the length, area or volume of the element."""
        pass

    @abstractmethod
    def validate(self) -> ElementErrorFlag:
        """Check the element for geometric defects."""
        pass


class Face(Element):
    """Base class for 2D elements."""
    DIMENSION = 2

    def surface_normal(self) -> npt.NDArray[np.float64]:
        """Normal vector of the face spanned by its first three nodes."""
        return surface_normal(self.nodes[0].coords, self.nodes[1].coords, self.nodes[2].coords)


class Cell(Element):
    """Base class for 3D elements."""
    DIMENSION = 3
    # local node order describing the same cell with opposite orientation
    REVERSED_NODE_ORDER: ClassVar[tuple[int, ...]]

    def with_reversed_node_order(self) -> Cell:
        """Copy of the element on the same nodes with every face normal flipped."""
        return self.__class__([self.nodes[i] for i in self.REVERSED_NODE_ORDER], value=self.value)

    def test_element_node_order(self) -> bool:
        """
        Check that every face normal points towards the element interior.

        Returns:
            True if the node order is consistent, False otherwise.
        """
        center = self.center_of_gravity
        for i in range(self.n_faces):
            face = self.get_face(i)
            cx = face.nodes[1].coords - center
            if np.dot(face.surface_normal(), cx) >= 0:
                return False
        return True

    def validate(self) -> ElementErrorFlag:
        """
        Check the element for geometric defects.

        Defects of the quadrilateral faces are included. The node order
        flag is determined for the element as a whole.
        """
        error_code = ElementErrorFlag.NONE
        if self.has_zero_volume():
            error_code |= ElementErrorFlag.ZERO_VOLUME

        for i in range(self.n_faces):
            if len(self.FACE_NODES[i]) == 4:
                error_code |= self.get_face(i).validate()

        error_code &= ~ElementErrorFlag.NODE_ORDER
        if not self.test_element_node_order():
            error_code |= ElementErrorFlag.NODE_ORDER
        return error_code
