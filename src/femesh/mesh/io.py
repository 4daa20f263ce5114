"""
Mesh Input / Output
===================
Loading and saving of ``Mesh`` objects.

Supported formats:
    .msh: Gmsh mesh files, read and written through the ``gmsh`` API.
        The element value is stored as the physical group tag.
    .vtu: VTK unstructured grids, read and written through ``pyvista``.
        The element value is stored in the cell array "MaterialIDs".
"""
from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

import gmsh
import numpy as np
import pyvista as pv

from femesh.mesh.elements import ELEMENT_CLASSES, MeshElemType
from femesh.mesh.mesh import Mesh
from femesh.mesh.node import Node

if TYPE_CHECKING:
    from femesh.mesh.elements import Element

logger = logging.getLogger(__name__)

MATERIAL_ID_ARRAY = "MaterialIDs"

GMSH_ELEMENT_TYPE_MAP: dict[int, MeshElemType] = {
    1: MeshElemType.LINE,  # 2-node line
    2: MeshElemType.TRIANGLE,  # 3-node triangle
    3: MeshElemType.QUAD,  # 4-node quadrangle
    4: MeshElemType.TETRAHEDRON,  # 4-node tetrahedron
    5: MeshElemType.HEXAHEDRON,  # 8-node hexahedron
    6: MeshElemType.PRISM,  # 6-node prism
    7: MeshElemType.PYRAMID,  # 5-node pyramid
}
GMSH_ELEMENT_TYPE_IDS = {elem_type: gmsh_id for gmsh_id, elem_type in GMSH_ELEMENT_TYPE_MAP.items()}

VTK_CELL_TYPE_MAP: dict[int, MeshElemType] = {
    int(pv.CellType.LINE): MeshElemType.LINE,
    int(pv.CellType.TRIANGLE): MeshElemType.TRIANGLE,
    int(pv.CellType.QUAD): MeshElemType.QUAD,
    int(pv.CellType.TETRA): MeshElemType.TETRAHEDRON,
    int(pv.CellType.HEXAHEDRON): MeshElemType.HEXAHEDRON,
    int(pv.CellType.WEDGE): MeshElemType.PRISM,
    int(pv.CellType.PYRAMID): MeshElemType.PYRAMID,
}
VTK_CELL_TYPE_IDS = {elem_type: vtk_id for vtk_id, elem_type in VTK_CELL_TYPE_MAP.items()}

# VTK wedges have the opposite orientation; swapping both triangles is its own inverse
VTK_WEDGE_ORDER = (3, 4, 5, 0, 1, 2)


def read_mesh(path: str | Path) -> Mesh:
    """
    Load a mesh from a file; the mesh is named after the file stem.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file suffix is not supported.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".msh":
        mesh = _read_msh(path)
    elif suffix == ".vtu":
        mesh = _read_vtu(path)
    else:
        raise ValueError(f"Unsupported mesh format '{suffix}'.")

    logger.info(f"Loaded mesh '{mesh.name}' from {path}: {mesh.n_nodes} nodes, {mesh.n_elements} elements.")
    return mesh


def write_mesh(mesh: Mesh, path: str | Path) -> None:
    """
    Save a mesh; the format is chosen by the file suffix.

    Raises:
        ValueError: If the file suffix is not supported.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".msh":
        _write_msh(mesh, path)
    elif suffix == ".vtu":
        _write_vtu(mesh, path)
    else:
        raise ValueError(f"Unsupported mesh format '{suffix}'.")

    logger.info(f"Mesh '{mesh.name}' written to {path}.")


# ----------------------------------------------------------------------
# Gmsh
# ----------------------------------------------------------------------

def _read_msh(path: Path) -> Mesh:
    gmsh.initialize()
    try:
        gmsh.option.set_number("General.Terminal", 0)
        gmsh.open(str(path))

        # 1) Read all nodes once
        node_tags, flat_coords, _ = gmsh.model.mesh.get_nodes()
        coords = np.asarray(flat_coords).reshape(-1, 3)
        order = np.argsort(node_tags)
        nodes = []
        nodes_lookup: dict[int, Node] = {}
        for i, k in enumerate(order):
            node = Node(index=i, coords=coords[k])
            nodes.append(node)
            nodes_lookup[int(node_tags[k])] = node

        # 2) Loop all entities, the first physical group is the element value
        tagged_elements: list[tuple[int, Element]] = []
        for dim, entity_tag in gmsh.model.get_entities():
            physical_tags = gmsh.model.get_physical_groups_for_entity(dim, entity_tag)
            value = int(physical_tags[0]) if len(physical_tags) > 0 else 0

            element_types, element_tags_list, node_tags_list = gmsh.model.mesh.get_elements(dim, entity_tag)
            for element_type, element_tags, flat_node_tags in zip(element_types, element_tags_list, node_tags_list):
                if element_type not in GMSH_ELEMENT_TYPE_MAP:
                    # Skip points and higher order elements
                    logger.debug(f"Skipping unsupported gmsh element type {element_type}.")
                    continue

                element_class = ELEMENT_CLASSES[GMSH_ELEMENT_TYPE_MAP[element_type]]
                connectivity = np.asarray(flat_node_tags).reshape(-1, element_class.N_NODES)
                for element_tag, node_tags_for_element in zip(element_tags, connectivity):
                    element_nodes = [nodes_lookup[int(tag)] for tag in node_tags_for_element]
                    tagged_elements.append((int(element_tag), element_class(element_nodes, value=value)))
    finally:
        gmsh.finalize()

    tagged_elements.sort(key=lambda item: item[0])
    return Mesh(path.stem, nodes, [element for _, element in tagged_elements])


def _write_msh(mesh: Mesh, path: Path) -> None:
    # Elements grouped by entity (dimension, value), then by gmsh element type
    groups: dict[tuple[int, int], dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
    for element in mesh.elements:
        groups[(element.dimension, element.value)][GMSH_ELEMENT_TYPE_IDS[element.geom_type]].append(element.index)

    gmsh.initialize()
    try:
        gmsh.option.set_number("General.Terminal", 0)
        gmsh.option.set_number("Mesh.SaveAll", 1)
        gmsh.model.add(mesh.name)

        # Nodes are stored on a single entity of the mesh dimension
        node_dim = max(mesh.dimension, 1)
        node_entity = gmsh.model.add_discrete_entity(node_dim)
        gmsh.model.mesh.add_nodes(
            node_dim,
            node_entity,
            list(range(1, mesh.n_nodes + 1)),
            mesh.coords.ravel().tolist(),
        )

        for (dim, value), elements_by_type in sorted(groups.items()):
            entity = gmsh.model.add_discrete_entity(dim)
            for gmsh_type, indices in elements_by_type.items():
                element_tags = [i + 1 for i in indices]
                element_node_tags = [node.uid + 1 for i in indices for node in mesh.elements[i].nodes]
                gmsh.model.mesh.add_elements_by_type(entity, gmsh_type, element_tags, element_node_tags)
            if value > 0:
                gmsh.model.add_physical_group(dim, [entity], tag=value)

        gmsh.write(str(path))
    finally:
        gmsh.finalize()


# ----------------------------------------------------------------------
# VTK
# ----------------------------------------------------------------------

def _read_vtu(path: Path) -> Mesh:
    grid = pv.read(path)
    if not isinstance(grid, pv.UnstructuredGrid):
        grid = grid.cast_to_unstructured_grid()

    nodes = [Node(index=i, coords=point) for i, point in enumerate(np.asarray(grid.points))]

    if MATERIAL_ID_ARRAY in grid.cell_data:
        values = np.asarray(grid.cell_data[MATERIAL_ID_ARRAY]).astype(int)
    else:
        values = np.zeros(grid.n_cells, dtype=int)

    connectivity = np.asarray(grid.cell_connectivity)
    offsets = np.asarray(grid.offset)
    elements = []
    for i, cell_type in enumerate(np.asarray(grid.celltypes)):
        elem_type = VTK_CELL_TYPE_MAP.get(int(cell_type))
        if elem_type is None:
            logger.warning(f"Skipping cell {i} of unsupported VTK cell type {int(cell_type)}.")
            continue
        point_ids = connectivity[offsets[i]:offsets[i + 1]]
        if elem_type == MeshElemType.PRISM:
            point_ids = point_ids[list(VTK_WEDGE_ORDER)]
        element_nodes = [nodes[int(j)] for j in point_ids]
        elements.append(ELEMENT_CLASSES[elem_type](element_nodes, value=int(values[i])))

    return Mesh(path.stem, nodes, elements)


def _write_vtu(mesh: Mesh, path: Path) -> None:
    cells = []
    cell_types = []
    for element in mesh.elements:
        node_ids = element.node_ids
        if element.geom_type == MeshElemType.PRISM:
            node_ids = [node_ids[i] for i in VTK_WEDGE_ORDER]
        cells.append(element.n_nodes)
        cells.extend(node_ids)
        cell_types.append(VTK_CELL_TYPE_IDS[element.geom_type])

    grid = pv.UnstructuredGrid(
        np.asarray(cells, dtype=np.int64),
        np.asarray(cell_types, dtype=np.uint8),
        mesh.coords,
    )
    grid.cell_data[MATERIAL_ID_ARRAY] = np.asarray([element.value for element in mesh.elements], dtype=np.int32)
    grid.save(path)
