"""
===============================================================================
PANOVIEW - Viewer Frame Transformations
===============================================================================
Rotation matrices and coordinate families used to move sphere points between
the world frame of the 360-degree content and the local frame of the viewer.

The viewer frame looks along +X, with +Y to the left and +Z up. A viewer
orientation is a rotation matrix R mapping viewer-frame directions to world
directions, so a world point p is seen in the viewer frame at R^T p.

Coordinate families
-------------------
    Cartesian  : :class:`~panoview.core.vector.Vector`
    Spherical  : :class:`Coord3dSpherical` (radius, theta, phi), theta the
                 azimuth from +X, phi the polar angle from +Z

:func:`rotation` applies a :class:`RotMat` to either family and returns a
point of the same family.

All matrices are active rotations (they rotate vectors, not frames).
===============================================================================
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from panoview.core.constants import PI
from panoview.core.quaternion import Quaternion
from panoview.core.vector import Vector


__all__ = [
    "PI",
    "Rx",
    "Ry",
    "Rz",
    "RotMat",
    "Coord3dSpherical",
    "rotation",
    "norm",
]


# =============================================================================
# ELEMENTARY ROTATION MATRICES
# =============================================================================

def Rx(angle: float) -> np.ndarray:
    """
    Active rotation by *angle* radians about the X-axis:

        Rx(a) = | 1    0        0     |
                | 0   cos(a)  -sin(a) |
                | 0   sin(a)   cos(a) |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [1.0,  0.0,  0.0],
        [0.0,    c,   -s],
        [0.0,    s,    c],
    ], dtype=np.float64)


def Ry(angle: float) -> np.ndarray:
    """
    Active rotation by *angle* radians about the Y-axis:

        Ry(a) = |  cos(a)  0  sin(a) |
                |    0     1    0    |
                | -sin(a)  0  cos(a) |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [  c,  0.0,    s],
        [0.0,  1.0,  0.0],
        [ -s,  0.0,    c],
    ], dtype=np.float64)


def Rz(angle: float) -> np.ndarray:
    """
    Active rotation by *angle* radians about the Z-axis:

        Rz(a) = | cos(a)  -sin(a)  0 |
                | sin(a)   cos(a)  0 |
                |   0        0     1 |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [  c,   -s,  0.0],
        [  s,    c,  0.0],
        [0.0,  0.0,  1.0],
    ], dtype=np.float64)


# =============================================================================
# ROTATION MATRIX
# =============================================================================

class RotMat:
    """
    Viewer orientation as a 3x3 proper orthogonal matrix.

    Parameters
    ----------
    matrix : array-like
        3x3 rotation matrix (R^T R = I, det R = +1).

    Raises
    ------
    ValueError
        If *matrix* is not 3x3, not orthogonal, or a reflection.
    """

    _ORTHOGONALITY_TOLERANCE = 1e-6

    __slots__ = ('_m',)

    __array_ufunc__ = None

    def __init__(self, matrix) -> None:
        m = np.array(matrix, dtype=np.float64)

        if m.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3x3, got shape {m.shape}")

        orthogonality_error = np.linalg.norm(m.T @ m - np.eye(3))
        if not orthogonality_error <= self._ORTHOGONALITY_TOLERANCE:
            raise ValueError(
                f"Input matrix is not orthogonal (error = {orthogonality_error:.2e}). "
                "Ensure the matrix satisfies R^T R = I."
            )

        determinant = np.linalg.det(m)
        if not determinant > 0.0:
            raise ValueError(
                f"Input matrix is a reflection, not a rotation (det = {determinant:.6g})."
            )

        m.flags.writeable = False
        self._m = m

    @property
    def matrix(self) -> np.ndarray:
        """Copy of the underlying 3x3 array."""
        return self._m.copy()

    @staticmethod
    def identity() -> 'RotMat':
        return RotMat(np.eye(3))

    @staticmethod
    def from_euler(yaw: float, pitch: float, roll: float) -> 'RotMat':
        """
        Orientation from 3-2-1 (ZYX) Euler angles: R = Rz(yaw) Ry(pitch) Rx(roll).

        Matches :meth:`Quaternion.from_euler` with the same arguments.
        """
        return RotMat(Rz(yaw) @ Ry(pitch) @ Rx(roll))

    @staticmethod
    def from_quaternion(q: Quaternion) -> 'RotMat':
        """
        Rotation matrix of the (normalized) quaternion q.

            R = | 1-2(y^2+z^2)    2(xy-wz)      2(xz+wy)   |
                | 2(xy+wz)      1-2(x^2+z^2)    2(yz-wx)   |
                | 2(xz-wy)      2(yz+wx)      1-2(x^2+y^2) |
        """
        w, x, y, z = q.normalize().components

        xx = x * x
        yy = y * y
        zz = z * z
        xy = x * y
        xz = x * z
        yz = y * z
        wx = w * x
        wy = w * y
        wz = w * z

        return RotMat([
            [1.0 - 2.0 * (yy + zz),  2.0 * (xy - wz),        2.0 * (xz + wy)],
            [2.0 * (xy + wz),         1.0 - 2.0 * (xx + zz),  2.0 * (yz - wx)],
            [2.0 * (xz - wy),         2.0 * (yz + wx),         1.0 - 2.0 * (xx + yy)],
        ])

    def inv(self) -> 'RotMat':
        """Inverse rotation; the transpose of an orthogonal matrix."""
        return RotMat(self._m.T)

    def apply(self, v: Vector) -> Vector:
        """Rotate the cartesian point *v*."""
        return Vector.from_array(self._m @ v.components)

    def __matmul__(self, other):
        if isinstance(other, RotMat):
            return RotMat(self._m @ other._m)
        if isinstance(other, Vector):
            return self.apply(other)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RotMat):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:
        return f"RotMat({self._m.tolist()!r})"


# =============================================================================
# SPHERICAL COORDINATES
# =============================================================================

@dataclass(frozen=True)
class Coord3dSpherical:
    """
    Point in spherical coordinates.

    Attributes:
        radius: Distance from the origin.
        theta: Azimuth from +X in the XY-plane (rad).
        phi: Polar angle from +Z (rad).
    """
    radius: float
    theta: float
    phi: float

    def to_cartesian(self) -> Vector:
        return self.radius * Vector.from_spherical(self.theta, self.phi)

    @staticmethod
    def from_cartesian(v: Vector) -> 'Coord3dSpherical':
        theta, phi = v.to_spherical()
        return Coord3dSpherical(v.norm(), theta, phi)


Point = Union[Vector, Coord3dSpherical]


def rotation(point: Point, rot_mat: RotMat) -> Point:
    """
    Apply *rot_mat* to *point*, returning a point of the same family.

    Parameters
    ----------
    point : Vector or Coord3dSpherical
        Point to rotate.
    rot_mat : RotMat
        Rotation to apply.

    Raises
    ------
    TypeError
        If *point* is neither a Vector nor a Coord3dSpherical.
    """
    if isinstance(point, Vector):
        return rot_mat.apply(point)
    if isinstance(point, Coord3dSpherical):
        return Coord3dSpherical.from_cartesian(rot_mat.apply(point.to_cartesian()))
    raise TypeError(f"Cannot rotate object of type {type(point).__name__}")


def norm(point: Point) -> float:
    """Euclidean norm of a point of either family."""
    if isinstance(point, Coord3dSpherical):
        return abs(float(point.radius))
    return point.norm()
