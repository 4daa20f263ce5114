"""
Topological lookup tables for the reduction of degenerate hexahedra and prisms.

All indices are local corner indices following the node numbering of
``Hex`` and ``Prism``. The lookups return None where the arguments admit no
valid configuration.
"""
from __future__ import annotations

# Corner diagonally opposite each hex corner
HEX_DIAMETRAL_NODES: tuple[int, ...] = (6, 7, 4, 5, 2, 3, 0, 1)

# For each ordered hex edge (i, j): the quad obtained by cutting the hex
# perpendicular to that edge
HEX_CUTTING_QUAD_NODES: dict[tuple[int, int], tuple[int, int, int, int]] = {
    (0, 1): (3, 2, 5, 4),
    (1, 2): (0, 3, 6, 5),
    (2, 3): (1, 0, 7, 6),
    (3, 0): (2, 1, 4, 7),
    (4, 5): (0, 1, 6, 7),
    (5, 6): (1, 2, 7, 4),
    (6, 7): (2, 3, 4, 5),
    (7, 4): (3, 0, 5, 6),
    (0, 4): (3, 7, 5, 1),
    (1, 5): (0, 4, 6, 2),
    (2, 6): (1, 5, 7, 3),
    (3, 7): (2, 6, 4, 0),

    (1, 0): (2, 3, 4, 5),
    (2, 1): (3, 0, 5, 6),
    (3, 2): (0, 1, 6, 7),
    (0, 3): (1, 2, 7, 4),
    (5, 4): (1, 0, 7, 6),
    (6, 5): (2, 1, 4, 7),
    (7, 6): (3, 2, 5, 4),
    (4, 7): (0, 3, 6, 5),
    (4, 0): (7, 3, 1, 5),
    (5, 1): (4, 0, 2, 6),
    (6, 2): (5, 1, 3, 7),
    (7, 3): (6, 2, 0, 4),
}

# Third corner of the prism triangle containing corners i and j
PRISM_THIRD_NODES: dict[tuple[int, int], int] = {
    (0, 1): 2, (1, 0): 2,
    (1, 2): 0, (2, 1): 0,
    (0, 2): 1, (2, 0): 1,
    (3, 4): 5, (4, 3): 5,
    (4, 5): 3, (5, 4): 3,
    (3, 5): 4, (5, 3): 4,
}


def hex_diametral_node(i: int) -> int:
    """Hex corner diagonally opposite corner ``i``."""
    return HEX_DIAMETRAL_NODES[i]


def hex_cutting_quad_nodes(i: int, j: int) -> tuple[int, int, int, int] | None:
    """
    Quad perpendicular to the hex edge (i, j).

    Returns:
        The four corners of the cutting quad in loop order, or None if
        (i, j) is not a hex edge.
    """
    return HEX_CUTTING_QUAD_NODES.get((i, j))


def hex_back_nodes(i: int, j: int, k: int, l: int) -> tuple[int, int] | None:
    """
    Corners "behind" two collapsed hex edges (i, j) and (k, l).

    Returns:
        The corner pair spanning the edge used to split the hex into two
        prisms, or None if the edges admit no such configuration.
    """
    # collapsed edges are not connected
    if hex_diametral_node(i) == k:
        return i, hex_diametral_node(l)
    if hex_diametral_node(i) == l:
        return i, hex_diametral_node(k)
    if hex_diametral_node(j) == k:
        return j, hex_diametral_node(l)
    if hex_diametral_node(j) == l:
        return j, hex_diametral_node(k)
    # collapsed edges share a corner
    if i == k:
        return hex_diametral_node(l), j
    if i == l:
        return hex_diametral_node(k), j
    if j == k:
        return hex_diametral_node(l), i
    if j == l:
        return hex_diametral_node(k), i
    return None


def prism_third_node(i: int, j: int) -> int | None:
    """Third corner of the prism triangle containing corners ``i`` and ``j``, if any."""
    return PRISM_THIRD_NODES.get((i, j))
