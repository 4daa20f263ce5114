"""Mesh revision toolkit for finite element meshes."""
from femesh.editing import MeshRevision
from femesh.mesh import Mesh, Node

__version__ = "0.1.0"

__all__ = ["MeshRevision", "Mesh", "Node", "__version__"]
