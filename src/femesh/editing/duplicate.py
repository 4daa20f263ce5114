"""
Functions for creating copies of mesh components.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from femesh.mesh.elements import ELEMENT_CLASSES
from femesh.mesh.node import Node

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt
    from femesh.mesh.elements import Element

logger = logging.getLogger(__name__)


def copy_node_vector(nodes: Sequence[Node]) -> list[Node]:
    """
    Create fresh nodes with the same coordinates.

    Returns:
        New nodes numbered by their list position.
    """
    return [Node(index=i, coords=node.coords) for i, node in enumerate(nodes)]


def copy_element(
    element: Element,
    nodes: Sequence[Node],
    id_map: npt.NDArray[np.int64] | Sequence[int] | None = None,
) -> Element | None:
    """
    Create an element of the same type on a different node list.

    Args:
        element: The element to copy.
        nodes: Node list of the target mesh.
        id_map: Maps the id of each of the element's nodes to a position in
            ``nodes``. The node id itself is used if omitted.

    Returns:
        The new element or None if the element type is unknown.
    """
    element_class = ELEMENT_CLASSES.get(element.geom_type)
    if element_class is None:
        logger.error(f"Unknown element type '{element.geom_type}'.")
        return None

    if id_map is None:
        new_nodes = [nodes[node.uid] for node in element.nodes]
    else:
        new_nodes = [nodes[int(id_map[node.uid])] for node in element.nodes]
    return element_class(new_nodes, value=element.value)


def copy_element_vector(
    elements: Sequence[Element],
    nodes: Sequence[Node],
    id_map: npt.NDArray[np.int64] | Sequence[int] | None = None,
) -> list[Element]:
    """Copy all elements onto ``nodes``; elements of unknown type are skipped."""
    new_elements = []
    for element in elements:
        new_element = copy_element(element, nodes, id_map)
        if new_element is not None:
            new_elements.append(new_element)
    return new_elements
