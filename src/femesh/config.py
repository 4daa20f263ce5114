"""
Configuration & Global Constants
================================
This module serves as the central registry for the numerical constants used
by the mesh revision engine.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (grid resolution, tolerances)
   scattered throughout the code.
2. Consistency: The geometry predicates and the revision engine must agree on
   the same tolerances, otherwise an element considered planar by one part of
   the code would be subdivided by another.

Exports:
    DEFAULT_GRID_RESOLUTION (int): Grid partitions along the dominant axis.
    COPLANARITY_TOLERANCE (float): Threshold of the normalised scalar triple product.
    ZERO_VOLUME_TOLERANCE (float): Length/area/volume below which an element is degenerate.
    DEFAULT_MIN_ELEM_DIM (int): Default minimum dimension of surviving elements.
    DEFAULT_COLLAPSE_EPS (float): Default node coincidence tolerance of the CLI.
"""
import numpy as np


# Spatial proximity index
DEFAULT_GRID_RESOLUTION: int = 64

# Geometry predicates
COPLANARITY_TOLERANCE: float = 1e-11
ZERO_VOLUME_TOLERANCE: float = float(np.finfo(np.float64).eps)

# Revision engine
DEFAULT_MIN_ELEM_DIM: int = 1
VALID_MIN_ELEM_DIMS: tuple[int, ...] = (1, 2, 3)
DEFAULT_COLLAPSE_EPS: float = 1e-6
