from femesh.editing.mesh_revision import MeshRevision
from femesh.editing.collapse import collapse_node_indices, construct_new_nodes_array
from femesh.editing.duplicate import copy_element, copy_element_vector, copy_node_vector

__all__ = [
    "MeshRevision",
    "collapse_node_indices",
    "construct_new_nodes_array",
    "copy_element",
    "copy_element_vector",
    "copy_node_vector",
]
