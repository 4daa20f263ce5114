from femesh.spatial.grid import Grid

__all__ = ["Grid"]
