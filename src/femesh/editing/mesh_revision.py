"""
Mesh Revision Engine
====================
Derives new, topologically consistent meshes from an existing one.

Operations:
    collapse_nodes: Merge coincident nodes, keep every element as it is.
    simplify_mesh: Merge coincident nodes, then reduce degenerate elements
        to lower order element types and subdivide non-planar ones.
    subdivide_mesh: Split elements with non-planar faces into simplices.

The source mesh is only read. Every result is built from freshly allocated
nodes and elements.

Elements which cannot be processed are skipped and reported through the
module logger with their index in the source mesh.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar

import numpy as np

from femesh.config import (
    DEFAULT_GRID_RESOLUTION,
    DEFAULT_MIN_ELEM_DIM,
    VALID_MIN_ELEM_DIMS,
    ZERO_VOLUME_TOLERANCE,
)
from femesh.editing.collapse import collapse_node_indices, construct_new_nodes_array
from femesh.editing.duplicate import copy_element, copy_node_vector
from femesh.editing.lookup_tables import (
    hex_back_nodes,
    hex_cutting_quad_nodes,
    hex_diametral_node,
    prism_third_node,
)
from femesh.mesh.elements import (
    Cell,
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
from femesh.mesh.geometry import is_coplanar, signed_tetrahedron_volume
from femesh.mesh.mesh import Mesh

if TYPE_CHECKING:
    import numpy.typing as npt
    from femesh.mesh.node import Node

logger = logging.getLogger(__name__)


@dataclass
class _NodeMapping:
    """New node list plus the new id of every source node."""
    nodes: list[Node]
    ids: npt.NDArray[np.int64]

    def new_id(self, node: Node) -> int:
        return int(self.ids[node.uid])

    def new_node(self, node: Node) -> Node:
        return self.nodes[self.new_id(node)]


class MeshRevision:
    """
    Revision operations on a source mesh.

    Example:
        >>> revision = MeshRevision(mesh)
        >>> simplified = revision.simplify_mesh("simplified", eps=1e-6, min_elem_dim=3)
    """
    def __init__(self, mesh: Mesh, grid_resolution: int = DEFAULT_GRID_RESOLUTION) -> None:
        """
        Args:
            mesh: The source mesh. It is never modified.
            grid_resolution: Partitions of the proximity grid along its dominant axis.
        """
        self._mesh = mesh
        self.grid_resolution = grid_resolution

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def collapse_node_indices(self, eps: float) -> npt.NDArray[np.int64]:
        """Node-identity map of the source mesh for tolerance ``eps``."""
        return collapse_node_indices(self._mesh.nodes, eps, self.grid_resolution)

    def count_collapsible_nodes(self, eps: float) -> int:
        """Number of nodes that would be merged into another node."""
        id_map = self.collapse_node_indices(eps)
        return int(np.count_nonzero(id_map != np.arange(id_map.size)))

    def collapse_nodes(self, new_mesh_name: str, eps: float) -> Mesh:
        """
        Merge all nodes closer than ``eps`` and copy every element onto the merged nodes.

        Elements are not reduced, so they may reference the same node more than once.

        Returns:
            The new mesh.
        """
        mapping = self._collapse(eps)
        new_elements = []
        for k, element in enumerate(self._mesh.elements):
            new_element = copy_element(element, mapping.nodes, mapping.ids)
            if new_element is None:
                logger.error(f"Element {k} has unknown element type.")
                continue
            new_elements.append(new_element)

        logger.info(
            f"Collapsed {self._mesh.n_nodes - len(mapping.nodes)} nodes of mesh '{self._mesh.name}'."
        )
        return Mesh(new_mesh_name, mapping.nodes, new_elements)

    def simplify_mesh(
        self,
        new_mesh_name: str,
        eps: float,
        min_elem_dim: int = DEFAULT_MIN_ELEM_DIM,
    ) -> Mesh | None:
        """
        Merge coincident nodes and rebuild a valid mesh from the result.

        Elements keeping all their nodes are copied, or subdivided if one of
        their faces is not planar. Elements which lost nodes are reduced to
        lower order elements. Elements of a dimension smaller than
        ``min_elem_dim`` are dropped.

        Args:
            new_mesh_name: Name of the resulting mesh.
            eps: Coincidence tolerance.
            min_elem_dim: Minimum dimension of the elements in the result (1, 2 or 3).

        Returns:
            The new mesh, or None if no element is left.

        Raises:
            ValueError: If ``eps`` is negative or ``min_elem_dim`` is invalid.
        """
        _check_min_elem_dim(min_elem_dim)
        if not self._mesh.elements:
            logger.warning(f"Mesh '{self._mesh.name}' has no elements.")
            return None

        mapping = self._collapse(eps)
        new_elements: list[Element] = []

        for k, element in enumerate(self._mesh.elements):
            n_unique_nodes = self._count_unique_nodes(element, mapping)

            if n_unique_nodes == element.n_nodes:
                if element.dimension < min_elem_dim:
                    continue
                produced = self._copy_or_subdivide(element, mapping)
                if not produced:
                    logger.error(f"Element {k} has unknown element type.")
                new_elements.extend(produced)

            elif 1 < n_unique_nodes < element.n_nodes:
                reduction = self._REDUCTIONS.get((element.geom_type, n_unique_nodes))
                if reduction is None:
                    logger.error(f"Element {k} has unknown element type.")
                    continue
                produced = reduction(self, element, mapping, min_elem_dim)
                if produced is None:
                    logger.error(f"Element {k}: unexpected error during {element.geom_type} reduction.")
                    continue
                new_elements.extend(self._orient(new_element) for new_element in produced)

            elif n_unique_nodes == 1:
                logger.debug(f"Element {k} collapsed to a single node.")

            else:
                logger.error(f"Element {k}: invalid number of unique nodes ({n_unique_nodes}).")

        return self._new_mesh(new_mesh_name, mapping.nodes, new_elements)

    def subdivide_mesh(self, new_mesh_name: str) -> Mesh | None:
        """
        Subdivide all elements with non-planar faces into triangles / tetrahedra.

        Returns:
            The new mesh, or None if no element is left.
        """
        if not self._mesh.elements:
            logger.warning(f"Mesh '{self._mesh.name}' has no elements.")
            return None

        new_nodes = copy_node_vector(self._mesh.nodes)
        mapping = _NodeMapping(new_nodes, np.arange(len(new_nodes), dtype=np.int64))
        new_elements: list[Element] = []

        for k, element in enumerate(self._mesh.elements):
            produced = self._copy_or_subdivide(element, mapping)
            if not produced:
                logger.error(f"Element {k} has unknown element type.")
            new_elements.extend(produced)

        return self._new_mesh(new_mesh_name, new_nodes, new_elements)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _collapse(self, eps: float) -> _NodeMapping:
        id_map = self.collapse_node_indices(eps)
        new_nodes, new_ids = construct_new_nodes_array(self._mesh.nodes, id_map)
        return _NodeMapping(new_nodes, new_ids)

    def _new_mesh(self, name: str, nodes: list[Node], elements: list[Element]) -> Mesh | None:
        if not elements:
            logger.warning(f"No elements left after revision of mesh '{self._mesh.name}'.")
            return None
        mesh = Mesh(name, nodes, elements)
        logger.info(
            f"Revised mesh '{self._mesh.name}' ({self._mesh.n_nodes} nodes, {self._mesh.n_elements} elements) "
            f"into '{name}' ({mesh.n_nodes} nodes, {mesh.n_elements} elements)."
        )
        return mesh

    @staticmethod
    def _count_unique_nodes(element: Element, mapping: _NodeMapping) -> int:
        return len({mapping.new_id(node) for node in element.nodes})

    @staticmethod
    def _orient(element: Element) -> Element:
        """Flip a reduced cell whose faces point outwards; anything else is returned as is."""
        if not isinstance(element, Cell) or element.test_element_node_order():
            return element
        flipped = element.with_reversed_node_order()
        return flipped if flipped.test_element_node_order() else element

    def _copy_or_subdivide(self, element: Element, mapping: _NodeMapping) -> list[Element]:
        if element.validate() & ElementErrorFlag.NON_COPLANAR:
            return self._subdivide_element(element, mapping)
        new_element = copy_element(element, mapping.nodes, mapping.ids)
        return [new_element] if new_element is not None else []

    # ------------------------------------------------------------------
    # Subdivision of non-planar elements
    # ------------------------------------------------------------------

    def _subdivide_element(self, element: Element, mapping: _NodeMapping) -> list[Element]:
        subdivide = self._SUBDIVISIONS.get(element.geom_type)
        if subdivide is None:
            return []
        return subdivide(self, element, mapping)

    def _subdivide_quad(self, quad: Element, mapping: _NodeMapping) -> list[Element]:
        n = [mapping.new_node(node) for node in quad.nodes]
        return [
            Tri([n[0], n[1], n[2]], quad.value),
            Tri([n[0], n[2], n[3]], quad.value),
        ]

    def _subdivide_hex(self, hex_elem: Element, mapping: _NodeMapping) -> list[Element]:
        s = hex_elem.nodes
        prism1 = Prism([s[0], s[2], s[1], s[4], s[6], s[5]], hex_elem.value)
        prism2 = Prism([s[4], s[6], s[7], s[0], s[2], s[3]], hex_elem.value)
        return self._subdivide_prism(prism1, mapping) + self._subdivide_prism(prism2, mapping)

    def _subdivide_pyramid(self, pyramid: Element, mapping: _NodeMapping) -> list[Element]:
        n = [mapping.new_node(node) for node in pyramid.nodes]
        return [
            Tet([n[0], n[1], n[2], n[4]], pyramid.value),
            Tet([n[0], n[2], n[3], n[4]], pyramid.value),
        ]

    def _subdivide_prism(self, prism: Element, mapping: _NodeMapping) -> list[Element]:
        n = [mapping.new_node(node) for node in prism.nodes]
        return [
            Tet([n[0], n[1], n[2], n[3]], prism.value),
            Tet([n[3], n[2], n[4], n[5]], prism.value),
            Tet([n[2], n[1], n[3], n[4]], prism.value),
        ]

    # ------------------------------------------------------------------
    # Reduction of degenerate elements
    #
    # Every reduction returns the list of new elements (empty if the result
    # falls below min_elem_dim) or None if the element could not be resolved.
    # ------------------------------------------------------------------

    def _reduce_to_line(self, element: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        if min_elem_dim > 1:
            return []
        line = self._construct_line(element, mapping)
        return [line] if line is not None else None

    def _reduce_to_tri(self, element: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        if min_elem_dim > 2:
            return []
        tri = self._construct_tri(element, mapping)
        return [tri] if tri is not None else None

    def _reduce_to_four_nodes(self, element: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        nodes = self._unique_new_nodes(element, mapping, 4)
        if len(nodes) < 4:
            return None
        if min_elem_dim > 2 and is_coplanar(*(node.coords for node in nodes)):
            return []
        new_element = self._construct_four_node_element(nodes, element.value)
        return [new_element] if new_element is not None else None

    def _reduce_hex_to_pyramid_and_prism(self, hex_elem: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        """Seven unique nodes: the collapsed edge becomes the pyramid apex."""
        s = hex_elem.nodes
        n = [mapping.new_node(node) for node in s]
        for i in range(7):
            for j in range(i + 1, 8):
                if mapping.new_id(s[i]) != mapping.new_id(s[j]):
                    continue
                base = hex_cutting_quad_nodes(i, j)
                if base is None:
                    return None
                pyramid = Pyramid([n[base[0]], n[base[1]], n[base[2]], n[base[3]], n[i]], hex_elem.value)
                prism = Prism(
                    [n[base[0]], n[base[3]], n[hex_diametral_node(j)],
                     n[base[1]], n[base[2]], n[hex_diametral_node(i)]],
                    hex_elem.value,
                )
                return [pyramid, prism]
        return None

    def _reduce_hex_six(self, hex_elem: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        """Six unique nodes: one prism if a face collapsed to a line, four tetrahedra otherwise."""
        s = hex_elem.nodes
        ids = [mapping.new_id(node) for node in s]
        n = [mapping.new_node(node) for node in s]
        d = hex_diametral_node

        for f0, f1, f2, f3 in Hex.FACE_NODES:
            if ids[f0] == ids[f1] and ids[f2] == ids[f3]:
                return [Prism([n[d(f0)], n[d(f1)], n[f2], n[d(f3)], n[d(f2)], n[f0]], hex_elem.value)]
            if ids[f0] == ids[f3] and ids[f1] == ids[f2]:
                return [Prism([n[d(f0)], n[d(f3)], n[f2], n[d(f1)], n[d(f2)], n[f0]], hex_elem.value)]

        # two collapsed edges: split into two prisms with one collapsed edge each
        for i in range(7):
            for j in range(i + 1, 8):
                if ids[i] != ids[j] or not hex_elem.is_edge(i, j):
                    continue
                for k in range(i, 7):
                    for l in range(k + 1, 8):
                        if (i, j) == (k, l) or ids[k] != ids[l] or not hex_elem.is_edge(k, l):
                            continue
                        back = hex_back_nodes(i, j, k, l)
                        if back is None:
                            return None
                        cut = hex_cutting_quad_nodes(back[0], back[1])
                        if cut is None:
                            return None

                        prism1 = Prism(
                            [s[back[0]], s[cut[0]], s[cut[3]], s[back[1]], s[cut[1]], s[cut[2]]],
                            hex_elem.value,
                        )
                        prism2 = Prism(
                            [s[d(back[0])], s[cut[0]], s[cut[3]], s[d(back[1])], s[cut[1]], s[cut[2]]],
                            hex_elem.value,
                        )
                        new_elements: list[Element] = []
                        for prism in (prism1, prism2):
                            reduced = self._reduce_sub_element(prism, mapping, min_elem_dim)
                            if reduced is None:
                                return None
                            new_elements.extend(reduced)
                        return new_elements
        return None

    def _reduce_hex_five(self, hex_elem: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        """
        Five unique nodes: two tetrahedra sharing the node outside the first four.

        If the first four nodes are coplanar, their quad is split along the
        diagonal 0-2 and both halves are joined with the fifth node. Otherwise
        the fifth node is joined with the first face of the first tetrahedron
        which separates it from the opposite node of that tetrahedron.
        """
        nodes = self._unique_new_nodes(hex_elem, mapping, 4)
        if len(nodes) < 4:
            return None
        first = self._construct_four_node_element(nodes, hex_elem.value)
        if first is None:
            return None
        base_ids = [node.uid for node in first.nodes]
        top = self._find_pyramid_top_node(hex_elem, mapping, base_ids)
        if top is None:
            return None

        b = first.nodes
        apex = mapping.new_node(hex_elem.nodes[top])
        if first.geom_type == MeshElemType.QUAD:
            return [
                Tet([b[0], b[1], b[2], apex], hex_elem.value),
                Tet([b[0], b[2], b[3], apex], hex_elem.value),
            ]

        for i in range(4):
            face = b[:i] + b[i + 1:]
            p = [node.coords for node in face]
            apex_side = signed_tetrahedron_volume(p[0], p[1], p[2], apex.coords)
            opposite_side = signed_tetrahedron_volume(p[0], p[1], p[2], b[i].coords)
            if abs(apex_side) < ZERO_VOLUME_TOLERANCE or apex_side * opposite_side >= 0:
                continue
            return [first, Tet(face + [apex], hex_elem.value)]
        return None

    def _reduce_prism_five(self, prism: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        """Five unique nodes: two tetrahedra, built depending on which prism edge collapsed."""
        s = prism.nodes
        n = [mapping.new_node(node) for node in s]
        for i in range(5):
            for j in range(i + 1, 6):
                if mapping.new_id(s[i]) != mapping.new_id(s[j]):
                    continue

                # lateral edge collapsed
                if i % 3 == j % 3:
                    return [
                        Tet([n[(i + 1) % 3], n[(i + 2) % 3], n[i], n[(i + 1) % 3 + 3]], prism.value),
                        Tet([n[(i + 1) % 3 + 3], n[(i + 2) % 3], n[i], n[(i + 2) % 3 + 3]], prism.value),
                    ]

                # triangle edge collapsed
                offset = -3 if i > 2 else 3
                k = prism_third_node(i, j)
                if k is None:
                    return None
                tet1 = Tet([n[i + offset], n[j + offset], n[k + offset], n[i]], prism.value)
                if is_coplanar(s[i + offset].coords, s[k + offset].coords, s[i].coords, s[k].coords):
                    m = j
                else:
                    m = i
                tet2 = Tet([n[m + offset], n[k + offset], n[i], n[k]], prism.value)
                return [tet1, tet2]
        return None

    def _reduce_sub_element(self, element: Element, mapping: _NodeMapping, min_elem_dim: int) -> list[Element] | None:
        """Reduce an intermediate element built during another reduction."""
        n_unique_nodes = self._count_unique_nodes(element, mapping)
        if n_unique_nodes == element.n_nodes:
            if element.dimension < min_elem_dim:
                return []
            new_element = copy_element(element, mapping.nodes, mapping.ids)
            return [new_element] if new_element is not None else None
        if n_unique_nodes <= 1:
            return []
        reduction = self._REDUCTIONS.get((element.geom_type, n_unique_nodes))
        if reduction is None:
            return None
        return reduction(self, element, mapping, min_elem_dim)

    # ------------------------------------------------------------------
    # Construction of lower order elements
    # ------------------------------------------------------------------

    @staticmethod
    def _construct_line(element: Element, mapping: _NodeMapping) -> Line | None:
        """Line from the first node and the first node differing from it."""
        first = mapping.new_id(element.nodes[0])
        for node in element.nodes[1:]:
            if mapping.new_id(node) != first:
                return Line([mapping.nodes[first], mapping.new_node(node)], element.value)
        return None

    @staticmethod
    def _construct_tri(element: Element, mapping: _NodeMapping) -> Tri | None:
        """Triangle from the first three distinct nodes in local order."""
        unique_ids: list[int] = []
        for node in element.nodes:
            new_id = mapping.new_id(node)
            if new_id not in unique_ids:
                unique_ids.append(new_id)
                if len(unique_ids) == 3:
                    return Tri([mapping.nodes[i] for i in unique_ids], element.value)
        return None

    @staticmethod
    def _unique_new_nodes(element: Element, mapping: _NodeMapping, max_nodes: int) -> list[Node]:
        """Up to ``max_nodes`` distinct new nodes in local order."""
        new_nodes: list[Node] = []
        for node in element.nodes:
            candidate = mapping.new_node(node)
            if all(candidate is not other for other in new_nodes):
                new_nodes.append(candidate)
                if len(new_nodes) == max_nodes:
                    break
        return new_nodes

    @staticmethod
    def _construct_four_node_element(nodes: list[Node], value: int) -> Element | None:
        """
        Quad or tetrahedron from four distinct nodes.

        A quad is built if the nodes are coplanar. Its node order is permuted
        until it is valid, trying at most three orders.

        Returns:
            The new element, or None if no order gives a valid quad.
        """
        new_nodes = list(nodes)
        p = [node.coords for node in new_nodes]
        if not is_coplanar(p[0], p[1], p[2], p[3]):
            return Tet(new_nodes, value)

        quad = Quad(new_nodes, value)
        for i in (1, 2):
            if not quad.validate():
                return quad
            # change node order if not convex
            new_nodes[i], new_nodes[i + 1] = new_nodes[i + 1], new_nodes[i]
            quad = Quad(new_nodes, value)
        return quad if not quad.validate() else None

    @staticmethod
    def _find_pyramid_top_node(element: Element, mapping: _NodeMapping, base_ids: list[int]) -> int | None:
        """Local index of the first node not among the base nodes."""
        for i, node in enumerate(element.nodes):
            if mapping.new_id(node) not in base_ids:
                return i
        return None

    _SUBDIVISIONS: ClassVar[dict[MeshElemType, Callable[..., list[Element]]]] = {
        MeshElemType.QUAD: _subdivide_quad,
        MeshElemType.HEXAHEDRON: _subdivide_hex,
        MeshElemType.PYRAMID: _subdivide_pyramid,
        MeshElemType.PRISM: _subdivide_prism,
    }

    # (element type, number of unique nodes) -> reduction
    _REDUCTIONS: ClassVar[dict[tuple[MeshElemType, int], Callable[..., list[Element] | None]]] = {
        (MeshElemType.TRIANGLE, 2): _reduce_to_line,
        (MeshElemType.QUAD, 3): _reduce_to_tri,
        (MeshElemType.QUAD, 2): _reduce_to_line,
        (MeshElemType.TETRAHEDRON, 3): _reduce_to_tri,
        (MeshElemType.TETRAHEDRON, 2): _reduce_to_line,
        (MeshElemType.PYRAMID, 4): _reduce_to_four_nodes,
        (MeshElemType.PYRAMID, 3): _reduce_to_tri,
        (MeshElemType.PYRAMID, 2): _reduce_to_line,
        (MeshElemType.PRISM, 5): _reduce_prism_five,
        (MeshElemType.PRISM, 4): _reduce_to_four_nodes,
        (MeshElemType.PRISM, 3): _reduce_to_tri,
        (MeshElemType.PRISM, 2): _reduce_to_line,
        (MeshElemType.HEXAHEDRON, 7): _reduce_hex_to_pyramid_and_prism,
        (MeshElemType.HEXAHEDRON, 6): _reduce_hex_six,
        (MeshElemType.HEXAHEDRON, 5): _reduce_hex_five,
        (MeshElemType.HEXAHEDRON, 4): _reduce_to_four_nodes,
        (MeshElemType.HEXAHEDRON, 3): _reduce_to_tri,
        (MeshElemType.HEXAHEDRON, 2): _reduce_to_line,
    }


def _check_min_elem_dim(min_elem_dim: int) -> None:
    if min_elem_dim not in VALID_MIN_ELEM_DIMS:
        raise ValueError(f"min_elem_dim must be one of {VALID_MIN_ELEM_DIMS}, got {min_elem_dim}.")
