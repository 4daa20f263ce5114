"""Shared fixtures for the femesh tests.

Meshes are built from plain coordinate arrays and connectivity lists so every
test states the exact geometry it works on.
"""
from __future__ import annotations

import logging

import numpy as np
import pytest

from femesh.mesh import Hex, Mesh, Node

UNIT_CUBE = np.array(
    [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        [1.0, 0.0, 1.0],
        [1.0, 1.0, 1.0],
        [0.0, 1.0, 1.0],
    ]
)

UNIT_PRISM = np.array(
    [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        [1.0, 0.0, 1.0],
        [0.0, 1.0, 1.0],
    ]
)


def build_mesh(coords, cells, name: str = "mesh") -> Mesh:
    """
    Build a mesh from coordinates and ``(element_class, node_ids[, value])`` tuples.
    """
    nodes = [Node(index=i, coords=c) for i, c in enumerate(coords)]
    elements = []
    for cell in cells:
        element_class, node_ids = cell[0], cell[1]
        value = cell[2] if len(cell) > 2 else 0
        elements.append(element_class([nodes[i] for i in node_ids], value=value))
    return Mesh(name, nodes, elements)


### Fixtures ###


@pytest.fixture
def mesh_builder():
    """Factory building meshes from coordinates and connectivity."""
    return build_mesh


@pytest.fixture
def unit_cube() -> np.ndarray:
    """Corners of the unit cube in hexahedron node order."""
    return UNIT_CUBE.copy()


@pytest.fixture
def unit_prism() -> np.ndarray:
    """Corners of a right prism over the unit right triangle."""
    return UNIT_PRISM.copy()


@pytest.fixture
def hex_mesh(unit_cube) -> Mesh:
    """Single unit cube hexahedron with material id 1."""
    return build_mesh(unit_cube, [(Hex, range(8), 1)], name="hex")


@pytest.fixture(autouse=True)
def reset_femesh_logger():
    """Drop handlers installed by ``setup_logging`` once a test is done."""
    yield
    logger = logging.getLogger("femesh")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
