"""
===============================================================================
PANOVIEW - Viewport-Aware Sphere Processing for 360-Degree Content
===============================================================================
Rotation algebra for viewer orientations and a sphere partition that answers
which regions of the content are inside the viewer's field of view.

Subpackages:
    core          -- Vector, Quaternion, rotation matrices and coordinates
    preprocessing -- Sphere partition (AreaSet) and visibility queries
===============================================================================
"""

from panoview.core.frames import Coord3dSpherical, RotMat, rotation
from panoview.core.quaternion import NotUnitQuaternionError, Quaternion
from panoview.core.vector import Vector
from panoview.preprocessing.area_set import Area, AreaSet

__version__ = "0.1.0"

__all__ = [
    "Area",
    "AreaSet",
    "Coord3dSpherical",
    "NotUnitQuaternionError",
    "Quaternion",
    "RotMat",
    "Vector",
    "rotation",
]
