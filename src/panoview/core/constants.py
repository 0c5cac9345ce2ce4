"""
===============================================================================
PANOVIEW - Mathematical Constants and Tolerances
===============================================================================
Central repository for the constants shared by the rotation algebra and the
sphere partition. Angles are in radians throughout.

Spherical convention used everywhere in the package:
    theta : azimuth measured from +X in the XY-plane, in (-pi, pi]
    phi   : polar angle measured from +Z, in [0, pi]
===============================================================================
"""

import numpy as np


# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
DEG2RAD = PI / 180.0

# =============================================================================
# NUMERICAL TOLERANCES
# =============================================================================
# Below this magnitude a vector part is treated as zero by the quaternion
# exponential and logarithm maps (the axis is undefined there).
ZERO_NORM_EPSILON = 1e-15

# Accepted deviation of |q| from 1 for operations that require a unit
# quaternion.
UNIT_TOLERANCE = 1e-8

# =============================================================================
# REFERENCE DIRECTION
# =============================================================================
# Viewing axis of the viewer frame. Orientations are compared through the
# image of this direction.
REFERENCE_DIRECTION = (1.0, 0.0, 0.0)
