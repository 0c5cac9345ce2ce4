"""
===============================================================================
PANOVIEW - Core Module
===============================================================================
Geometry primitives shared by the rest of the package.

Submodules:
    constants  -- Mathematical constants and numerical tolerances
    vector     -- Immutable 3D vector
    quaternion -- Quaternion algebra, interpolation and angular velocity
    frames     -- Rotation matrices, spherical coordinates, point rotation
===============================================================================
"""
