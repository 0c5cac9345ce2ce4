"""
===============================================================================
PANOVIEW - Euclidean Vector Value Type
===============================================================================

Immutable 3D vector used both as a point/direction on the viewing sphere and
as the imaginary part of a quaternion.

Operators are thin sugar over the named methods:

    a + b, a - b, -a          add / subtract / negate
    s * a, a * s, a / s       scale
    a * b                     dot product (both operands vectors)
    a ^ b                     cross product

Degenerate inputs are not intercepted: dividing by zero or taking the
spherical coordinates of the null vector yields inf/NaN exactly as IEEE-754
arithmetic does, so downstream numeric pipelines see the same values as the
underlying float64 computation.
===============================================================================
"""

from typing import Iterator, Tuple, Union

import numpy as np


Scalar = Union[int, float, np.number]


class Vector:
    """
    Immutable 3-vector of float64 components.

    Equality is exact component-wise comparison; use
    ``numpy.testing.assert_allclose`` on :attr:`components` for tolerant
    comparisons.

    Examples
    --------
    >>> Vector(1.0, 0.0, 0.0) ^ Vector(0.0, 1.0, 0.0)
    Vector(x=0.0, y=0.0, z=1.0)
    """

    __slots__ = ('_v',)

    # numpy scalars defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> None:
        v = np.array([x, y, z], dtype=np.float64)
        v.flags.writeable = False
        self._v = v

    @classmethod
    def from_array(cls, values) -> 'Vector':
        """Build a vector from any 3-element array-like."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (3,):
            raise ValueError(f"Expected shape (3,), got {values.shape}")
        return cls(values[0], values[1], values[2])

    @staticmethod
    def zero() -> 'Vector':
        return Vector(0.0, 0.0, 0.0)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def x(self) -> float:
        return float(self._v[0])

    @property
    def y(self) -> float:
        return float(self._v[1])

    @property
    def z(self) -> float:
        return float(self._v[2])

    @property
    def components(self) -> np.ndarray:
        """Copy of the components as a writable array [x, y, z]."""
        return self._v.copy()

    # =========================================================================
    # ALGEBRA
    # =========================================================================

    def add(self, other: 'Vector') -> 'Vector':
        return Vector.from_array(self._v + other._v)

    def subtract(self, other: 'Vector') -> 'Vector':
        return Vector.from_array(self._v - other._v)

    def negate(self) -> 'Vector':
        return Vector.from_array(-self._v)

    def scale(self, s: Scalar) -> 'Vector':
        return Vector.from_array(self._v * np.float64(s))

    def divide(self, s: Scalar) -> 'Vector':
        """Divide every component by *s*; a zero divisor gives inf/NaN."""
        with np.errstate(divide='ignore', invalid='ignore'):
            return Vector.from_array(self._v / np.float64(s))

    def dot(self, other: 'Vector') -> float:
        """Scalar product x1*x2 + y1*y2 + z1*z2."""
        return float(np.dot(self._v, other._v))

    def cross(self, other: 'Vector') -> 'Vector':
        """
        Vector product self x other.

            (y1*z2 - z1*y2, z1*x2 - x1*z2, x1*y2 - y1*x2)
        """
        x1, y1, z1 = self._v
        x2, y2, z2 = other._v
        return Vector(y1 * z2 - z1 * y2,
                      z1 * x2 - x1 * z2,
                      x1 * y2 - y1 * x2)

    def norm(self) -> float:
        """Euclidean length sqrt(v . v)."""
        return float(np.sqrt(self.dot(self)))

    # =========================================================================
    # SPHERICAL CONVERSIONS
    # =========================================================================

    def to_spherical(self) -> Tuple[float, float]:
        """
        Convert to spherical angles.

        Returns
        -------
        tuple of (float, float)
            (theta, phi) with theta = atan2(y, x) in (-pi, pi] and
            phi = acos(z / |v|) in [0, pi]. Both are NaN-propagating: the
            null vector gives phi = NaN.
        """
        theta = np.arctan2(self._v[1], self._v[0])
        with np.errstate(divide='ignore', invalid='ignore'):
            phi = np.arccos(np.clip(self._v[2] / np.float64(self.norm()), -1.0, 1.0))
        return float(theta), float(phi)

    @staticmethod
    def from_spherical(theta: float, phi: float) -> 'Vector':
        """
        Unit vector pointing at spherical angles (theta, phi).

            (sin(phi) cos(theta), sin(phi) sin(theta), cos(phi))
        """
        sin_p = np.sin(phi)
        return Vector(sin_p * np.cos(theta), sin_p * np.sin(theta), np.cos(phi))

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    def _promote(self):
        """Pure quaternion (0, self); imported lazily to avoid a module cycle."""
        from panoview.core.quaternion import Quaternion
        return Quaternion(self)

    def __add__(self, other):
        """Vector + Vector -> Vector; Vector + scalar -> Quaternion (s, v)."""
        if isinstance(other, Vector):
            return self.add(other)
        if isinstance(other, (int, float, np.number)):
            return self._promote() + other
        return NotImplemented

    def __radd__(self, other):
        if isinstance(other, (int, float, np.number)):
            return other + self._promote()
        return NotImplemented

    def __sub__(self, other):
        """Vector - Vector -> Vector; Vector - scalar -> Quaternion (-s, v)."""
        if isinstance(other, Vector):
            return self.subtract(other)
        if isinstance(other, (int, float, np.number)):
            return self._promote() - other
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, (int, float, np.number)):
            return other - self._promote()
        return NotImplemented

    def __neg__(self) -> 'Vector':
        return self.negate()

    def __mul__(self, other):
        """Vector * Vector -> dot product; Vector * scalar -> scaled vector."""
        if isinstance(other, Vector):
            return self.dot(other)
        if isinstance(other, (int, float, np.number)):
            return self.scale(other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, (int, float, np.number)):
            return self.scale(other)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, (int, float, np.number)):
            return self.divide(other)
        return NotImplemented

    def __xor__(self, other):
        if isinstance(other, Vector):
            return self.cross(other)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return bool(np.all(self._v == other._v))

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.z))

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))

    def __repr__(self) -> str:
        return f"Vector(x={self.x!r}, y={self.y!r}, z={self.z!r})"

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"
