"""
Node Collapse Resolver
======================
Finds geometrically coincident nodes and compacts the node numbering.

Two steps:
1. ``collapse_node_indices`` scans the nodes in ascending order and records,
   for every node, the node it is merged into (``id_map``). The result is a
   forest: a merged node may point to a node which is itself merged.
2. ``construct_new_nodes_array`` resolves every node to the root of its tree,
   copies one node per tree and returns the dense new id of every original
   node.

The source nodes are never modified.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np

from femesh.config import DEFAULT_GRID_RESOLUTION
from femesh.mesh.geometry import sqr_dist
from femesh.mesh.node import Node
from femesh.spatial.grid import Grid

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def collapse_node_indices(
    nodes: Sequence[Node],
    eps: float,
    grid_resolution: int = DEFAULT_GRID_RESOLUTION,
) -> npt.NDArray[np.int64]:
    """
    Build the node-identity map for a coincidence tolerance.

    Nodes are processed in ascending order. A node claims every still
    canonical node of another cluster whose distance is strictly below
    ``eps``.

    Args:
        nodes: Nodes in mesh order.
        eps: Coincidence tolerance.
        grid_resolution: Partitions of the proximity grid along its dominant axis.

    Returns:
        Array with ``id_map[k] == k`` for canonical nodes and the index of
        the claiming node otherwise.

    Raises:
        ValueError: If ``eps`` is negative.
    """
    if eps < 0:
        raise ValueError(f"Collapse tolerance must not be negative, got {eps}.")

    n_nodes = len(nodes)
    id_map = np.arange(n_nodes, dtype=np.int64)
    if n_nodes < 2 or eps == 0:
        return id_map

    sqr_eps = eps * eps
    grid = Grid.from_nodes(nodes, grid_resolution)

    for k in range(n_nodes):
        node = nodes[k]
        for bucket in grid.nodes_near(node.coords, eps):
            for t in bucket:
                # already in the same cluster
                if id_map[k] == id_map[t]:
                    continue
                # t has been claimed by another node
                if id_map[t] != t:
                    continue
                if sqr_dist(node.coords, nodes[t].coords) < sqr_eps:
                    id_map[t] = k

    logger.debug(f"{int(np.count_nonzero(id_map != np.arange(n_nodes)))} of {n_nodes} nodes collapsible at eps={eps}.")
    return id_map


def resolve_representatives(id_map: npt.ArrayLike) -> npt.NDArray[np.int64]:
    """
    Follow every entry of ``id_map`` to the root of its merge tree.

    Uses iterative path compression, so chains of any length and
    direction are resolved.

    Returns:
        Array with the representative (root) index of every node.

    Raises:
        ValueError: If the pointers do not converge.
    """
    parent = np.array(id_map, dtype=np.int64, copy=True)
    n = parent.size
    for _ in range(max(1, int(np.ceil(np.log2(max(n, 2)))) + 1)):
        grandparent = parent[parent]
        if np.array_equal(grandparent, parent):
            break
        parent = grandparent
    else:
        if not np.array_equal(parent[parent], parent):
            raise ValueError("Node identity map did not converge to a forest.")
    return parent


def construct_new_nodes_array(
    nodes: Sequence[Node],
    id_map: npt.ArrayLike,
) -> tuple[list[Node], npt.NDArray[np.int64]]:
    """
    Copy one node per cluster and compute the compacted node ids.

    Clusters are numbered in ascending order of their representative's
    original index. The new node takes the coordinates of the representative.

    Args:
        nodes: Original nodes.
        id_map: Node-identity map from ``collapse_node_indices``.

    Returns:
        Tuple of the new node list and an array holding, for every
        original node, the index of its new node.
    """
    representatives = resolve_representatives(id_map)
    is_canonical = representatives == np.arange(len(nodes))

    compact_ids = np.cumsum(is_canonical, dtype=np.int64) - 1
    new_ids = compact_ids[representatives]

    new_nodes = [
        Node(index=int(compact_ids[k]), coords=nodes[k].coords)
        for k in np.flatnonzero(is_canonical)
    ]
    return new_nodes, new_ids
