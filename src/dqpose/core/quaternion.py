"""
===============================================================================
DQPOSE - Quaternion Algebra
===============================================================================

Quaternion kernel and its invariant-qualified specializations.

Convention
----------
Scalar-first storage:

    q = [w, x, y, z] = w + x*i + y*j + z*k

with the Hamilton product (i^2 = j^2 = k^2 = ijk = -1). Components live in a
numpy array whose dtype is the scalar field (float32, float64, ...).

Invariant kinds
---------------
    Quat           no invariant; any 4-tuple is valid
    PureQuat       w == 0                (a 3-vector embedded in H)
    UnitQuat       |q| == 1              (double cover of SO(3))
    UnitPureQuat   w == 0 and |q| == 1   (a point on the unit 2-sphere)

Each specialization derives directly from Quat and re-establishes its
invariant at the end of every constructor, assign() and permitted in-place
operator through the _establish() hook. Operators the invariant is not closed
under raise TypeError when used in place. Non-mutating operators always return
a general Quat.

References
----------
    [1] Kuipers, "Quaternions and Rotation Sequences", Princeton, 1999.
    [2] Adorno, "Robot Kinematic Modeling and Control Based on Dual
        Quaternion Algebra", 2017 (Hamilton operators, Sec. 2.3).
===============================================================================
"""

from __future__ import annotations

import enum
import logging
import numbers
from typing import Any, Optional, Sequence, Union

import numpy as np

from dqpose.core.config import get_config
from dqpose.core.errors import InvariantViolation, SingularQuaternionError
from dqpose.core.scalar import (
    as_components,
    resolve_dtype,
    stable_norm,
    tolerance_for,
    zero_norm_limit,
)

logger = logging.getLogger(__name__)

Scalar = Union[float, int, np.floating]


class Invariant(enum.Flag):
    """Invariant tags carried by each quaternion kind."""
    NONE = 0
    PURE = enum.auto()
    UNIT = enum.auto()


def _is_scalar(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


class Quat:
    """
    General quaternion q = w + x*i + y*j + z*k.

    Construction
    ------------
    Quat()                      zero quaternion
    Quat(w, x=0, y=0, z=0)      scalar list
    Quat([w, x, y, z])          4-element array
    Quat([x, y, z])             3-element array (vector part, w = 0)
    Quat(other)                 copy of any quaternion kind

    The keyword ``dtype`` selects the scalar field explicitly; otherwise the
    source quaternion's dtype or the configured default is used.

    Examples
    --------
    >>> Quat(1, 0, 0, 0) * Quat(0, 1, 2, 3) == Quat(0, 1, 2, 3)
    True
    """

    INVARIANT = Invariant.NONE
    _DEFAULT = (0.0, 0.0, 0.0, 0.0)
    _VECTOR_ARGS = False

    # numpy scalars on the left defer to __rmul__ instead of broadcasting
    __array_ufunc__ = None

    def __init__(self, *args: Any, dtype: Optional[Any] = None) -> None:
        source = args[0] if len(args) == 1 and isinstance(args[0], Quat) else None
        self._dtype = resolve_dtype(dtype, source)
        self._q = self._parse(args, self._dtype)
        self._establish()

    # =========================================================================
    # CONSTRUCTION HELPERS
    # =========================================================================

    @classmethod
    def _parse(cls, args: Sequence[Any], dtype: np.dtype) -> np.ndarray:
        if not args:
            return as_components(cls._DEFAULT, dtype)

        if len(args) == 1 and isinstance(args[0], Quat):
            return as_components(args[0]._q, dtype)

        if len(args) == 1 and not _is_scalar(args[0]):
            arr = np.asarray(args[0])
            if arr.ndim != 1 or arr.shape[0] not in (3, 4):
                raise ValueError(
                    f"{cls.__name__} expects a 3- or 4-element array, "
                    f"got shape {arr.shape}"
                )
            if arr.shape[0] == 3:
                return as_components((0, arr[0], arr[1], arr[2]), dtype)
            return as_components(arr, dtype)

        n_args = 3 if cls._VECTOR_ARGS else 4
        if len(args) > n_args:
            raise TypeError(
                f"{cls.__name__} takes at most {n_args} components, got {len(args)}"
            )
        for value in args:
            if not _is_scalar(value):
                raise TypeError(
                    f"{cls.__name__} components must be real scalars, "
                    f"got {type(value).__name__}"
                )
        values = list(args) + [0] * (n_args - len(args))
        if cls._VECTOR_ARGS:
            values = [0] + values
        return as_components(values, dtype)

    @classmethod
    def _wrap(cls, components: Any, dtype: np.dtype,
              establish: bool = True) -> "Quat":
        """Build an instance from raw components, bypassing argument parsing."""
        obj = cls.__new__(cls)
        obj._dtype = np.dtype(dtype)
        obj._q = as_components(components, obj._dtype)
        if obj._q.shape != (4,):
            raise ValueError(f"Quaternion needs 4 components, got {obj._q.shape[0]}")
        if establish:
            obj._establish()
        return obj

    def _establish(self) -> None:
        """Bring the components onto this kind's invariant (none for Quat)."""

    def _cast(self, other: "Quat") -> np.ndarray:
        """Components of ``other`` in this value's scalar field."""
        return other._q.astype(self._dtype, copy=False)

    def _forbid(self, operation: str, other: Any = None) -> None:
        operand = f" with {type(other).__name__}" if other is not None else ""
        raise TypeError(
            f"{type(self).__name__} does not support '{operation}'{operand}: "
            "the result would break its invariant"
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def w(self) -> np.floating:
        """Scalar (real) part."""
        return self._q[0]

    @property
    def x(self) -> np.floating:
        """First imaginary component (i-axis)."""
        return self._q[1]

    @property
    def y(self) -> np.floating:
        """Second imaginary component (j-axis)."""
        return self._q[2]

    @property
    def z(self) -> np.floating:
        """Third imaginary component (k-axis)."""
        return self._q[3]

    @property
    def dtype(self) -> np.dtype:
        """Scalar field of the components."""
        return self._dtype

    @property
    def vector(self) -> np.ndarray:
        """Vector (imaginary) part [x, y, z] as a new array."""
        return self._q[1:4].copy()

    @property
    def components(self) -> np.ndarray:
        """Full quaternion [w, x, y, z] as a new array."""
        return self._q.copy()

    def array(self) -> np.ndarray:
        """Components [w, x, y, z] as a new array."""
        return self._q.copy()

    def vrep_array(self) -> np.ndarray:
        """Components in scalar-last order [x, y, z, w]."""
        return np.array([self.x, self.y, self.z, self.w], dtype=self._dtype)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def norm(self) -> np.floating:
        """Euclidean norm sqrt(w^2 + x^2 + y^2 + z^2)."""
        return stable_norm(self._q)

    def dot(self, other: "Quat") -> np.floating:
        """Four-dimensional inner product w*w' + x*x' + y*y' + z*z'."""
        return np.dot(self._q, self._cast(other))

    def is_unit(self, tolerance: Optional[float] = None) -> bool:
        """True if |q| is within tolerance of 1."""
        return bool(abs(self.norm() - 1) <= tolerance_for(self._dtype, tolerance))

    def is_pure(self, tolerance: Optional[float] = None) -> bool:
        """True if the scalar part is within tolerance of 0."""
        return bool(abs(self.w) <= tolerance_for(self._dtype, tolerance))

    def isclose(self, other: "Quat", atol: Optional[float] = None) -> bool:
        """Component-wise comparison within an absolute tolerance."""
        if not isinstance(other, Quat):
            return False
        tol = tolerance_for(self._dtype, atol)
        return bool(np.allclose(self._q, self._cast(other), rtol=0.0, atol=tol))

    # =========================================================================
    # IN-PLACE INVARIANT OPERATIONS
    # =========================================================================

    def _normalize_in_place(self) -> None:
        """
        Divide the components by the norm.

        Raises
        ------
        InvariantViolation
            If the norm is zero (or not finite); the components are untouched.
        """
        n = self.norm()
        if not np.isfinite(n) or n <= zero_norm_limit():
            logger.debug("Refusing to normalize %r (norm = %s)", self, n)
            raise InvariantViolation(
                f"Cannot normalize a quaternion with norm {float(n):.3e}"
            )
        self._q /= n

    def normalize(self) -> "Quat":
        """Scale to unit norm in place and return self."""
        self._normalize_in_place()
        return self

    def purify(self) -> "Quat":
        """Zero the scalar part in place and return self."""
        self._q[0] = 0
        return self

    def assign(self, other: "Quat") -> "Quat":
        """
        Overwrite the components with those of ``other`` (cast to this dtype).

        The receiver's invariant is re-established afterwards. If that fails
        the receiver keeps its previous value.
        """
        if not isinstance(other, Quat):
            raise TypeError(f"Cannot assign {type(other).__name__} to {type(self).__name__}")
        previous = self._q.copy()
        self._q = as_components(other._q, self._dtype)
        try:
            self._establish()
        except InvariantViolation:
            self._q = previous
            raise
        return self

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================

    def copied(self) -> "Quat":
        """Independent copy of the same kind and dtype."""
        return type(self)._wrap(self._q, self._dtype, establish=False)

    copy = copied

    def astype(self, dtype: Any) -> "Quat":
        """
        Explicit conversion to another scalar field.

        Returns a value of the same kind whose invariant is re-established in
        the new field.
        """
        return type(self)._wrap(self._q, resolve_dtype(dtype))

    def normalized(self) -> "UnitQuat":
        """Unit quaternion in the direction of this one."""
        return UnitQuat(self)

    def purified(self) -> "PureQuat":
        """Pure quaternion with this vector part."""
        return PureQuat(self)

    def conj(self) -> "Quat":
        """Conjugate (w, -x, -y, -z)."""
        return Quat._wrap((self.w, -self.x, -self.y, -self.z), self._dtype)

    conjugate = conj

    def inv(self) -> "Quat":
        """
        Multiplicative inverse conj(q) / |q|^2.

        Raises
        ------
        SingularQuaternionError
            If |q| = 0.
        """
        n = self.norm()
        if not np.isfinite(n) or n <= zero_norm_limit():
            logger.debug("Refusing to invert %r", self)
            raise SingularQuaternionError("Cannot invert a zero quaternion")
        conj = np.array([self.w, -self.x, -self.y, -self.z], dtype=self._dtype)
        # divide twice so |q|^2 is never formed
        return Quat._wrap(conj / n / n, self._dtype)

    inverse = inv

    def log(self) -> "Quat":
        """
        Quaternion logarithm.

        For q = |q| (cos(theta) + sin(theta) n):

            log(q) = ln|q| + theta * n,   theta = acos(w / |q|)

        A real quaternion maps to (ln w, 0, 0, 0). A negative real quaternion
        uses the principal value (ln|w|, pi, 0, 0).

        Raises
        ------
        SingularQuaternionError
            If q is the zero quaternion.
        """
        vec = self._q[1:4]
        vec_norm = stable_norm(vec)
        q_norm = self.norm()

        if q_norm <= zero_norm_limit():
            raise SingularQuaternionError("Logarithm of a zero quaternion is undefined")

        if vec_norm == 0:
            if self.w > 0:
                return Quat._wrap((np.log(self.w), 0, 0, 0), self._dtype)
            return Quat._wrap((np.log(-self.w), np.pi, 0, 0), self._dtype)

        # Clamp to [-1, 1] against floating-point overshoot in arccos
        theta = np.arccos(np.clip(self.w / q_norm, -1.0, 1.0))
        result = np.empty(4, dtype=self._dtype)
        result[0] = np.log(q_norm)
        result[1:4] = theta * vec / vec_norm
        return Quat._wrap(result, self._dtype)

    def exp(self) -> "Quat":
        """
        Quaternion exponential.

            exp(q) = e^w (cos(theta) + sin(theta) v / theta),   theta = |v|
        """
        vec = self._q[1:4]
        vec_norm = stable_norm(vec)
        exp_w = np.exp(self.w)

        if vec_norm == 0:
            return Quat._wrap((exp_w, 0, 0, 0), self._dtype)

        result = np.empty(4, dtype=self._dtype)
        result[0] = exp_w * np.cos(vec_norm)
        result[1:4] = exp_w * np.sin(vec_norm) * vec / vec_norm
        return Quat._wrap(result, self._dtype)

    def pow(self, exponent: Scalar) -> "Quat":
        """Real power q^p = exp(p * log(q))."""
        return (self.log() * exponent).exp()

    # =========================================================================
    # HAMILTON OPERATORS
    # =========================================================================

    def hamiplus(self) -> np.ndarray:
        """
        Left Hamilton operator H+(q).

        For any quaternion p:  vec(q * p) = H+(q) @ vec(p)

                | w  -x  -y  -z |
            H+ = | x   w  -z   y |
                | y   z   w  -x |
                | z  -y   x   w |
        """
        w, x, y, z = self._q
        return np.array([
            [w, -x, -y, -z],
            [x,  w, -z,  y],
            [y,  z,  w, -x],
            [z, -y,  x,  w],
        ], dtype=self._dtype)

    def haminus(self) -> np.ndarray:
        """
        Right Hamilton operator H-(q).

        For any quaternion p:  vec(p * q) = H-(q) @ vec(p)

                | w  -x  -y  -z |
            H- = | x   w   z  -y |
                | y  -z   w   x |
                | z   y  -x   w |
        """
        w, x, y, z = self._q
        return np.array([
            [w, -x, -y, -z],
            [x,  w,  z, -y],
            [y, -z,  w,  x],
            [z,  y, -x,  w],
        ], dtype=self._dtype)

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def _hamilton(self, other: "Quat") -> np.ndarray:
        """Hamilton product self * other as a raw component array."""
        w1, x1, y1, z1 = self._q
        w2, x2, y2, z2 = self._cast(other)

        return np.array([
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            x1 * w2 + w1 * x2 - z1 * y2 + y1 * z2,
            y1 * w2 + z1 * x2 + w1 * y2 - x1 * z2,
            z1 * w2 - y1 * x2 + x1 * y2 + w1 * z2,
        ], dtype=self._dtype)

    def multiply(self, other: "Quat") -> "Quat":
        """Hamilton product self * other (non-commutative)."""
        return Quat._wrap(self._hamilton(other), self._dtype)

    def __add__(self, other: "Quat") -> "Quat":
        if isinstance(other, Quat):
            return Quat._wrap(self._q + self._cast(other), self._dtype)
        return NotImplemented

    def __sub__(self, other: "Quat") -> "Quat":
        if isinstance(other, Quat):
            return Quat._wrap(self._q - self._cast(other), self._dtype)
        return NotImplemented

    def __mul__(self, other: Union["Quat", Scalar]) -> "Quat":
        """
        Quat * Quat -> Hamilton product
        Quat * scalar -> component-wise scaling
        """
        if isinstance(other, Quat):
            return self.multiply(other)
        if _is_scalar(other):
            return Quat._wrap(self._q * other, self._dtype)
        return NotImplemented

    def __rmul__(self, other: Scalar) -> "Quat":
        if _is_scalar(other):
            return Quat._wrap(self._q * other, self._dtype)
        return NotImplemented

    def __truediv__(self, other: Scalar) -> "Quat":
        if _is_scalar(other):
            if other == 0:
                raise ZeroDivisionError("Quaternion division by zero")
            return Quat._wrap(self._q / other, self._dtype)
        return NotImplemented

    def __neg__(self) -> "Quat":
        return Quat._wrap(-self._q, self._dtype)

    # In-place operators mutate the receiver only.

    def __iadd__(self, other: "Quat") -> "Quat":
        if not isinstance(other, Quat):
            return NotImplemented
        self._q += self._cast(other)
        return self

    def __isub__(self, other: "Quat") -> "Quat":
        if not isinstance(other, Quat):
            return NotImplemented
        self._q -= self._cast(other)
        return self

    def __imul__(self, other: Union["Quat", Scalar]) -> "Quat":
        if isinstance(other, Quat):
            self._q = self._hamilton(other)
            return self
        if _is_scalar(other):
            self._q *= other
            return self
        return NotImplemented

    # =========================================================================
    # COMPARISON & TEXT
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        """Component-wise equality within the dtype-aware tolerance."""
        if not isinstance(other, Quat):
            return NotImplemented
        return self.isclose(other)

    __hash__ = None  # mutable value type

    def to_string(self) -> str:
        """Fixed-point rendering 'w + x î + y ĵ + z k̂'."""
        p = get_config().print_precision
        return (f"{self.w:.{p}f} + {self.x:.{p}f} î + "
                f"{self.y:.{p}f} ĵ + {self.z:.{p}f} k̂")

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(w={self.w:+.8f}, x={self.x:+.8f}, "
                f"y={self.y:+.8f}, z={self.z:+.8f}, dtype={self._dtype.name})")


class PureQuat(Quat):
    """
    Pure quaternion (w = 0): a 3-vector embedded in quaternion space.

    PureQuat(x, y=0, z=0) takes the vector part only. Building from any other
    quaternion zeroes its scalar part.

    In place: += and -= with pure operands, *= scalar. Multiplying two pure
    quaternions is generally not pure, so *= quaternion is refused.
    """

    INVARIANT = Invariant.PURE
    _VECTOR_ARGS = True

    def _establish(self) -> None:
        self._q[0] = 0

    def normalized(self) -> "UnitPureQuat":
        return UnitPureQuat(self)

    def __iadd__(self, other: "Quat") -> "PureQuat":
        if not isinstance(other, Quat):
            return NotImplemented
        if Invariant.PURE not in other.INVARIANT:
            self._forbid("+=", other)
        self._q += self._cast(other)
        self._establish()
        return self

    def __isub__(self, other: "Quat") -> "PureQuat":
        if not isinstance(other, Quat):
            return NotImplemented
        if Invariant.PURE not in other.INVARIANT:
            self._forbid("-=", other)
        self._q -= self._cast(other)
        self._establish()
        return self

    def __imul__(self, other: Scalar) -> "PureQuat":
        if isinstance(other, Quat):
            self._forbid("*=", other)
        if not _is_scalar(other):
            return NotImplemented
        self._q *= other
        self._establish()
        return self


class UnitQuat(Quat):
    """
    Unit quaternion (|q| = 1), the multiplicative group double-covering SO(3).

    Every construction path normalizes; a zero-norm source raises
    InvariantViolation. In place only *= with another unit quaternion is
    allowed (the product is renormalized against rounding drift).

    Examples
    --------
    >>> UnitQuat(Quat(1, 2, 3, 4)).components   # (1, 2, 3, 4) / sqrt(30)
    array([0.18257419, 0.36514837, 0.54772256, 0.73029674])
    """

    INVARIANT = Invariant.UNIT
    _DEFAULT = (1.0, 0.0, 0.0, 0.0)

    def _establish(self) -> None:
        self._normalize_in_place()

    def purify(self) -> "UnitQuat":
        self._forbid("purify")

    def purified(self) -> "UnitPureQuat":
        return UnitPureQuat(self)

    def normalized(self) -> "UnitQuat":
        return self.copied()

    def __iadd__(self, other: Any) -> "UnitQuat":
        self._forbid("+=", other)

    def __isub__(self, other: Any) -> "UnitQuat":
        self._forbid("-=", other)

    def __imul__(self, other: Any) -> "UnitQuat":
        if not isinstance(other, Quat) or Invariant.UNIT not in other.INVARIANT:
            self._forbid("*=", other)
        self._q = self._hamilton(other)
        self._establish()
        return self


class UnitPureQuat(Quat):
    """
    Unit pure quaternion: a unit 3-axis on the 2-sphere.

    UnitPureQuat(x, y=0, z=0) takes the vector part; any source is purified and
    then normalized. The set is not closed under addition, scaling or the
    Hamilton product, so every compound operator is refused; use assign() or
    construct a new value.
    """

    INVARIANT = Invariant.PURE | Invariant.UNIT
    _DEFAULT = (0.0, 1.0, 0.0, 0.0)
    _VECTOR_ARGS = True

    def _establish(self) -> None:
        self._q[0] = 0
        self._normalize_in_place()

    def normalized(self) -> "UnitPureQuat":
        return self.copied()

    def purified(self) -> "UnitPureQuat":
        return self.copied()

    def __iadd__(self, other: Any) -> "UnitPureQuat":
        self._forbid("+=", other)

    def __isub__(self, other: Any) -> "UnitPureQuat":
        self._forbid("-=", other)

    def __imul__(self, other: Any) -> "UnitPureQuat":
        self._forbid("*=", other)
