"""
===============================================================================
PANOVIEW - Quaternion Mathematics Library
===============================================================================

Quaternion algebra for viewer orientation tracking in 360-degree content.
A head-mounted display reports the viewer's orientation as a rotation; the
viewport machinery interpolates between orientation samples, measures how
far apart two orientations look, and estimates how fast the head turns.

Convention
----------
Scalar-first, Hamilton product:

    q = w + v = w + x*i + y*j + z*k

A rotation by angle theta about the unit axis u is

    q = (cos(theta/2), sin(theta/2) * u)

and a vector v is rotated with the sandwich product

    v' = q * v * q_conjugate

where v is embedded as the pure quaternion (0, v).

Unit quaternion policy
----------------------
Values are immutable. ``normalize()`` returns a new quaternion that carries
an ``is_normalized`` tag; normalizing a tagged value returns it unchanged.
The tag lets ``inverse()`` use the conjugate directly. It is not part of
equality.

    rotate_vector, average_angular_velocity   normalize a local copy
    slerp                                     raises NotUnitQuaternionError
    inverse, exp, log, power                  general algebra, no precondition

Numeric degeneracies (zero norms) are not intercepted and surface as
inf/NaN in the result.

Euler Angle Convention
----------------------
Aerospace 3-2-1 (ZYX) sequence: yaw about Z, then pitch about the new Y,
then roll about the new X.

References
----------
    [1] Shoemake, "Animating Rotation with Quaternion Curves", SIGGRAPH 1985.
    [2] Dam, Koch & Lillholm, "Quaternions, Interpolation and Animation",
        DIKU-TR-98/5, 1998.
    [3] Kuipers, "Quaternions and Rotation Sequences", Princeton, 1999.

===============================================================================
"""

from typing import Optional, Union

import numpy as np

from panoview.core.constants import (
    REFERENCE_DIRECTION,
    UNIT_TOLERANCE,
    ZERO_NORM_EPSILON,
)
from panoview.core.vector import Vector


Scalar = Union[int, float, np.number]
_SCALAR_TYPES = (int, float, np.number)


class NotUnitQuaternionError(ValueError):
    """Raised when an operation that requires a unit quaternion gets another."""

    def __init__(self, message: str = "Rotation require unit quaternion") -> None:
        super().__init__(message)


class Quaternion:
    """
    Immutable quaternion q = w + v.

    Parameters
    ----------
    w : float or Vector, optional
        Scalar part. Passing a :class:`Vector` as the only argument builds the
        pure quaternion (0, v).
    v : Vector or array-like, optional
        Vector (imaginary) part, defaults to the null vector.

    Examples
    --------
    >>> q = Quaternion.from_axis_angle(Vector(0.0, 0.0, 1.0), np.pi / 2)
    >>> q.rotate_vector(Vector(1.0, 0.0, 0.0))   # ~ Vector(0, 1, 0)
    """

    __slots__ = ('_w', '_v', '_is_normalized')

    __array_ufunc__ = None

    def __init__(self, w: Union[Scalar, Vector] = 0.0,
                 v: Optional[Vector] = None) -> None:
        if isinstance(w, Vector):
            if v is not None:
                raise TypeError("Quaternion(v) takes a single vector argument")
            w, v = 0.0, w
        if v is None:
            v = Vector.zero()
        elif not isinstance(v, Vector):
            v = Vector.from_array(v)

        self._w = np.float64(w)
        self._v = v
        self._is_normalized = False

    @classmethod
    def _tagged_unit(cls, w, v: Vector) -> 'Quaternion':
        q = cls(w, v)
        q._is_normalized = True
        return q

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def w(self) -> float:
        """Scalar (real) part."""
        return float(self._w)

    @property
    def v(self) -> Vector:
        """Vector (imaginary) part."""
        return self._v

    @property
    def x(self) -> float:
        return self._v.x

    @property
    def y(self) -> float:
        return self._v.y

    @property
    def z(self) -> float:
        return self._v.z

    @property
    def components(self) -> np.ndarray:
        """Quaternion as a 4-element array [w, x, y, z]."""
        return np.array([self._w, self._v.x, self._v.y, self._v.z],
                        dtype=np.float64)

    @property
    def is_normalized(self) -> bool:
        """True when this value was produced by :meth:`normalize`."""
        return self._is_normalized

    # =========================================================================
    # STATIC FACTORY METHODS
    # =========================================================================

    @staticmethod
    def identity() -> 'Quaternion':
        """The identity rotation (1, 0)."""
        return Quaternion._tagged_unit(1.0, Vector.zero())

    @staticmethod
    def from_euler(yaw: float, pitch: float, roll: float) -> 'Quaternion':
        """
        Create a quaternion from 3-2-1 (ZYX) Euler angles.

        The result is the product of the three single-axis rotations

            q = q_z(yaw) * q_y(pitch) * q_x(roll)

        expanded in closed form with half-angle sines and cosines.

        Parameters
        ----------
        yaw : float
            Rotation about Z (radians).
        pitch : float
            Rotation about the rotated Y axis (radians).
        roll : float
            Rotation about the twice-rotated X axis (radians).

        Returns
        -------
        Quaternion
            Unit quaternion (not tagged as normalized).
        """
        c_yaw = np.cos(yaw * 0.5)
        s_yaw = np.sin(yaw * 0.5)
        c_roll = np.cos(roll * 0.5)
        s_roll = np.sin(roll * 0.5)
        c_pitch = np.cos(pitch * 0.5)
        s_pitch = np.sin(pitch * 0.5)

        w = c_yaw * c_roll * c_pitch + s_yaw * s_roll * s_pitch
        x = c_yaw * s_roll * c_pitch - s_yaw * c_roll * s_pitch
        y = c_yaw * c_roll * s_pitch + s_yaw * s_roll * c_pitch
        z = s_yaw * c_roll * c_pitch - c_yaw * s_roll * s_pitch

        return Quaternion(w, Vector(x, y, z))

    @staticmethod
    def from_axis_angle(axis: Union[Vector, np.ndarray], angle: float) -> 'Quaternion':
        """
        Create a quaternion from an axis-angle representation.

            q = (cos(angle/2), sin(angle/2) * axis / |axis|)

        Parameters
        ----------
        axis : Vector or array-like
            Rotation axis, normalized internally. A null axis yields NaN
            components.
        angle : float
            Rotation angle in radians.
        """
        if not isinstance(axis, Vector):
            axis = Vector.from_array(axis)
        half_angle = angle / 2.0
        return Quaternion(np.cos(half_angle),
                          np.sin(half_angle) * (axis / axis.norm()))

    # =========================================================================
    # QUATERNION ARITHMETIC
    # =========================================================================

    def add(self, other: 'Quaternion') -> 'Quaternion':
        return Quaternion(self._w + other._w, self._v + other._v)

    def subtract(self, other: 'Quaternion') -> 'Quaternion':
        return Quaternion(self._w - other._w, self._v - other._v)

    def negate(self) -> 'Quaternion':
        return Quaternion(-self._w, -self._v)

    def scale(self, s: Scalar) -> 'Quaternion':
        return Quaternion(self._w * np.float64(s), self._v * s)

    def divide(self, s: Scalar) -> 'Quaternion':
        """Divide both parts by *s*; a zero divisor gives inf/NaN."""
        with np.errstate(divide='ignore', invalid='ignore'):
            w = self._w / np.float64(s)
        return Quaternion(w, self._v / s)

    def multiply(self, other: 'Quaternion') -> 'Quaternion':
        """
        Hamilton product self * other.

            w = w1*w2 - v1 . v2
            v = w1*v2 + w2*v1 + v1 x v2

        The product is not commutative; it rotates first by *other* and then
        by *self*.
        """
        w = self._w * other._w - self._v.dot(other._v)
        v = (self._w * other._v) + (other._w * self._v) + (self._v ^ other._v)
        return Quaternion(w, v)

    def dot(self, other: 'Quaternion') -> float:
        """4D inner product w1*w2 + v1 . v2."""
        return float(self._w * other._w + self._v.dot(other._v))

    def norm(self) -> float:
        """Euclidean norm sqrt(w^2 + |v|^2)."""
        return float(np.sqrt(self.dot(self)))

    def conjugate(self) -> 'Quaternion':
        """
        Return (w, -v).

        For a unit quaternion the conjugate is also the inverse and
        represents the reverse rotation, so the normalized tag is kept.
        """
        if self._is_normalized:
            return Quaternion._tagged_unit(self._w, -self._v)
        return Quaternion(self._w, -self._v)

    def inverse(self) -> 'Quaternion':
        """
        Multiplicative inverse.

        Tagged unit quaternions return the conjugate directly; any other
        value uses q^{-1} = q* / |q|^2. The zero quaternion gives NaN.
        """
        if self._is_normalized:
            return self.conjugate()
        return self.conjugate().divide(self.norm() ** 2)

    def normalize(self) -> 'Quaternion':
        """
        Return a unit-magnitude copy tagged as normalized.

        A value that already carries the tag is returned as is, so calling
        this repeatedly costs nothing and yields the same value. The zero
        quaternion normalizes to NaN components.
        """
        if self._is_normalized:
            return self
        n = np.float64(self.norm())
        with np.errstate(divide='ignore', invalid='ignore'):
            w = self._w / n
        return Quaternion._tagged_unit(w, self._v / n)

    def is_pure(self) -> bool:
        """True when the scalar part is exactly zero."""
        return bool(self._w == 0.0)

    def is_unit(self, tolerance: float = UNIT_TOLERANCE) -> bool:
        """True if |q| is within *tolerance* of 1."""
        return bool(abs(self.norm() - 1.0) < tolerance)

    # =========================================================================
    # ROTATION OPERATIONS
    # =========================================================================

    def rotate_vector(self, v: Vector) -> Vector:
        """
        Rotate *v* by this quaternion.

        Applies the sandwich product q * (0, v) * q_conjugate on a normalized
        copy of the receiver and returns the vector part. The receiver itself
        is left untouched.
        """
        q = self.normalize()
        return q.multiply(Quaternion(v)).multiply(q.conjugate()).v

    # =========================================================================
    # EXPONENTIAL / LOGARITHM MAPS
    # =========================================================================

    @staticmethod
    def exp(q: 'Quaternion') -> 'Quaternion':
        """
        Quaternion exponential.

            exp(q) = e^w * (cos|v|, sin|v| * v / |v|)

        When |v| is below ``ZERO_NORM_EPSILON`` the axis is undefined and the
        vector part is passed through unchanged.
        """
        exp_w = np.exp(q._w)
        norm_v = q._v.norm()
        if norm_v > ZERO_NORM_EPSILON:
            v = (exp_w * np.sin(norm_v)) * (q._v / norm_v)
        else:
            v = q._v
        return Quaternion(exp_w * np.cos(norm_v), v)

    @staticmethod
    def log(q: 'Quaternion') -> 'Quaternion':
        """
        Quaternion logarithm.

            log(q) = (ln|q|, acos(w / |q|) * v / |v|)

        The vector part is passed through unchanged when |v| or |q| is below
        ``ZERO_NORM_EPSILON``. ln(0) = -inf is not intercepted.
        """
        norm_q = q.norm()
        norm_v = q._v.norm()
        with np.errstate(divide='ignore'):
            w = np.log(np.float64(norm_q))
        if norm_v > ZERO_NORM_EPSILON and norm_q > ZERO_NORM_EPSILON:
            # Clamp to [-1, 1] to protect against floating-point overshoot in arccos
            angle = np.arccos(np.clip(q._w / norm_q, -1.0, 1.0))
            v = angle * (q._v / norm_v)
        else:
            v = q._v
        return Quaternion(w, v)

    @staticmethod
    def power(q: 'Quaternion', k: float) -> 'Quaternion':
        """Generalized power q^k = exp(k * log(q))."""
        return Quaternion.exp(Quaternion.log(q).scale(k))

    # =========================================================================
    # INTERPOLATION AND DISTANCES
    # =========================================================================

    @staticmethod
    def slerp(q1: 'Quaternion', q2: 'Quaternion', k: float) -> 'Quaternion':
        """
        Spherical Linear Interpolation along the shortest arc.

            slerp(q1, q2, k) = q1 * (q1^{-1} * q2)^k

        q and -q encode the same rotation, so q2 is negated when q1 . q2 < 0
        to stay on the short arc.

        Parameters
        ----------
        q1, q2 : Quaternion
            Unit quaternions (within ``UNIT_TOLERANCE``).
        k : float
            Interpolation parameter. 0 gives q1, 1 gives q2; values outside
            [0, 1] extrapolate and are not clamped.

        Raises
        ------
        NotUnitQuaternionError
            If q1 or q2 is not a unit quaternion.
        """
        if not q1.is_unit() or not q2.is_unit():
            raise NotUnitQuaternionError(
                f"SLERP requires unit quaternions (|q1| = {q1.norm():.6g}, "
                f"|q2| = {q2.norm():.6g})"
            )
        if q1.dot(q2) < 0.0:
            q2 = -q2
        return q1.multiply(Quaternion.power(q1.inverse().multiply(q2), k))

    @staticmethod
    def distance(q1: 'Quaternion', q2: 'Quaternion') -> float:
        """Chordal distance |q2 - q1| in R^4."""
        return q2.subtract(q1).norm()

    @staticmethod
    def orthodromic_distance(q1: 'Quaternion', q2: 'Quaternion') -> float:
        """
        Great-circle angle between the viewing directions of two orientations.

        Both rotations are applied to the reference direction (1, 0, 0). For
        two pure quaternions p1, p2 the product is p1 * p2 = (-p1.p2, p1 x p2),
        so

            angle = atan2(|p.v|, -p.w)

        which stays accurate over the whole [0, pi] range, unlike acos(dot).
        """
        origin = Vector(*REFERENCE_DIRECTION)
        p1 = Quaternion(q1.rotate_vector(origin))
        p2 = Quaternion(q2.rotate_vector(origin))
        p = p1.multiply(p2)
        return float(np.arctan2(p.v.norm(), -p._w))

    @staticmethod
    def average_angular_velocity(q1: 'Quaternion', q2: 'Quaternion',
                                 delta_t: float) -> Vector:
        """
        Finite-difference angular velocity between two orientation samples.

        q2 is sign-aligned with q1 (short arc). Any input that is not already
        a pure quaternion is normalized and replaced by its image of the
        reference direction (1, 0, 0), then

            W = (q2 - q1) * (2 / delta_t) * q1^{-1}

        Parameters
        ----------
        q1, q2 : Quaternion
            Orientation samples, or pure quaternions holding viewing
            directions.
        delta_t : float
            Time between samples. Valid for small delta_t only.

        Returns
        -------
        Vector
            Vector part of W.
        """
        if q1.dot(q2) < 0.0:
            q2 = -q2
        origin = Vector(*REFERENCE_DIRECTION)
        if not q1.is_pure():
            q1 = Quaternion(q1.normalize().rotate_vector(origin))
        if not q2.is_pure():
            q2 = Quaternion(q2.normalize().rotate_vector(origin))
        with np.errstate(divide='ignore'):
            rate = np.float64(2.0) / np.float64(delta_t)
        w = q2.subtract(q1).scale(rate).multiply(q1.inverse())
        return w.v

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    @staticmethod
    def _coerce(value) -> Optional['Quaternion']:
        """Promote a Vector or scalar operand to a quaternion."""
        if isinstance(value, Quaternion):
            return value
        if isinstance(value, Vector):
            return Quaternion(value)
        if isinstance(value, _SCALAR_TYPES):
            return Quaternion(value)
        return None

    def __add__(self, other):
        other = Quaternion._coerce(other)
        if other is None:
            return NotImplemented
        return self.add(other)

    def __radd__(self, other):
        other = Quaternion._coerce(other)
        if other is None:
            return NotImplemented
        return other.add(self)

    def __sub__(self, other):
        other = Quaternion._coerce(other)
        if other is None:
            return NotImplemented
        return self.subtract(other)

    def __rsub__(self, other):
        other = Quaternion._coerce(other)
        if other is None:
            return NotImplemented
        return other.subtract(self)

    def __neg__(self) -> 'Quaternion':
        return self.negate()

    def __mul__(self, other):
        """
        - Quaternion * Quaternion -> Hamilton product
        - Quaternion * Vector     -> Hamilton product with (0, v)
        - Quaternion * scalar     -> component-wise scaling
        """
        if isinstance(other, _SCALAR_TYPES):
            return self.scale(other)
        other = Quaternion._coerce(other)
        if other is None:
            return NotImplemented
        return self.multiply(other)

    def __rmul__(self, other):
        if isinstance(other, _SCALAR_TYPES):
            return self.scale(other)
        if isinstance(other, Vector):
            return Quaternion(other).multiply(self)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, _SCALAR_TYPES):
            return self.divide(other)
        return NotImplemented

    def __pow__(self, k):
        if isinstance(k, _SCALAR_TYPES):
            return Quaternion.power(self, k)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        """Exact comparison of w and v; the normalized tag is ignored."""
        if not isinstance(other, Quaternion):
            return NotImplemented
        return bool(self._w == other._w) and self._v == other._v

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash((self.w, self._v))

    def __repr__(self) -> str:
        return (f"Quaternion(w={self.w:+.8f}, x={self.x:+.8f}, "
                f"y={self.y:+.8f}, z={self.z:+.8f})")

    def __str__(self) -> str:
        return f"{self.w} + {self.x} i + {self.y} j + {self.z} k"
