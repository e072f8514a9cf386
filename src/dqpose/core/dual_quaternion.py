"""
===============================================================================
DQPOSE - Dual Quaternion Algebra
===============================================================================

A dual quaternion is a pair of quaternions

    dq = r + e*d,     e^2 = 0

where r is the real (primary) part and d the dual part. Unit dual quaternions
of the form r + e*(t*r/2) encode a rotation r followed by a translation t, and
their products compose rigid-body motions (screw motions).

Products follow from e^2 = 0:

    (a + e*b)(c + e*d) = a*c + e*(a*d + b*c)

Invariant kinds
---------------
    DualQuat           no invariant
    PureDualQuat       both parts pure
    UnitDualQuat       |r| == 1
    UnitPureDualQuat   both parts pure and |r| == 1

UnitDualQuat only normalizes the real part's norm; it does not enforce the
orthogonality condition r . d == 0 required of a rigid transform. Use
is_rigid() to test that condition.
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from dqpose.core.config import get_config
from dqpose.core.errors import InvariantViolation
from dqpose.core.quaternion import Invariant, Quat, Scalar, _is_scalar
from dqpose.core.scalar import (
    as_components,
    resolve_dtype,
    tolerance_for,
    zero_norm_limit,
)

logger = logging.getLogger(__name__)


class DualQuat:
    """
    General dual quaternion r + e*d.

    Construction
    ------------
    DualQuat()                                  zero
    DualQuat(w1, x1, y1, z1, w2, x2, y2, z2)    up to 8 scalars (missing = 0)
    DualQuat([w1, ..., z2])                     8-element array
    DualQuat(real)                              real part only, dual = 0
    DualQuat(real, dual)                        from two quaternions
    DualQuat(other)                             copy of any dual quaternion kind

    The keyword ``dtype`` selects the scalar field explicitly.
    """

    INVARIANT = Invariant.NONE
    _DEFAULT = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    _VECTOR_ARGS = False

    # numpy scalars on the left defer to __rmul__ instead of broadcasting
    __array_ufunc__ = None

    def __init__(self, *args: Any, dtype: Optional[Any] = None) -> None:
        source = args[0] if args and isinstance(args[0], (DualQuat, Quat)) else None
        self._dtype = resolve_dtype(dtype, source)
        real, dual = self._parse(args, self._dtype)
        self._real = Quat._wrap(real, self._dtype)
        self._dual = Quat._wrap(dual, self._dtype)
        self._establish()

    # =========================================================================
    # CONSTRUCTION HELPERS
    # =========================================================================

    @classmethod
    def _parse(cls, args: Sequence[Any],
               dtype: np.dtype) -> Tuple[np.ndarray, np.ndarray]:
        if not args:
            data = as_components(cls._DEFAULT, dtype)
            return data[:4], data[4:]

        if len(args) == 1 and isinstance(args[0], DualQuat):
            return (as_components(args[0]._real._q, dtype),
                    as_components(args[0]._dual._q, dtype))

        if isinstance(args[0], Quat):
            if len(args) > 2 or not all(isinstance(a, Quat) for a in args):
                raise TypeError(
                    f"{cls.__name__} takes (real) or (real, dual) quaternions"
                )
            real = as_components(args[0]._q, dtype)
            if len(args) == 2:
                return real, as_components(args[1]._q, dtype)
            return real, np.zeros(4, dtype=dtype)

        if len(args) == 1 and not _is_scalar(args[0]):
            arr = np.asarray(args[0])
            if arr.ndim == 1 and arr.shape[0] == 8:
                data = as_components(arr, dtype)
                return data[:4], data[4:]
            if arr.ndim == 1 and arr.shape[0] == 6:
                data = as_components((0, arr[0], arr[1], arr[2],
                                      0, arr[3], arr[4], arr[5]), dtype)
                return data[:4], data[4:]
            raise ValueError(
                f"{cls.__name__} expects a 6- or 8-element array, got shape {arr.shape}"
            )

        n_args = 6 if cls._VECTOR_ARGS else 8
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
            values = [0] + values[:3] + [0] + values[3:]
        data = as_components(values, dtype)
        return data[:4], data[4:]

    @classmethod
    def _wrap(cls, real: Any, dual: Any, dtype: np.dtype,
              establish: bool = True) -> "DualQuat":
        """Build an instance from raw part components, bypassing parsing."""
        obj = cls.__new__(cls)
        obj._dtype = np.dtype(dtype)
        obj._real = Quat._wrap(real, obj._dtype)
        obj._dual = Quat._wrap(dual, obj._dtype)
        if establish:
            obj._establish()
        return obj

    @classmethod
    def _from_parts(cls, real: Quat, dual: Quat) -> "DualQuat":
        return cls._wrap(real._q, dual._q, real.dtype)

    def _establish(self) -> None:
        """Bring the parts onto this kind's invariant (none for DualQuat)."""

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
    def real(self) -> Quat:
        """Real (primary) part, as an independent Quat."""
        return self._real.copied()

    @property
    def dual(self) -> Quat:
        """Dual part, as an independent Quat."""
        return self._dual.copied()

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def components(self) -> np.ndarray:
        """All eight components [w1, x1, y1, z1, w2, x2, y2, z2]."""
        return np.concatenate((self._real._q, self._dual._q))

    def array(self) -> np.ndarray:
        return self.components

    # =========================================================================
    # QUERIES
    # =========================================================================

    def norm(self) -> "DualQuat":
        """
        Dual norm |dq| = |r| + e * (r . d) / |r|.

        Returned as a dual quaternion whose parts are real scalars. A zero real
        part gives the zero dual quaternion.
        """
        real_norm = self._real.norm()
        if real_norm == 0:
            return DualQuat._wrap(np.zeros(4), np.zeros(4), self._dtype)
        dual_norm = self._real.dot(self._dual) / real_norm
        return DualQuat._wrap((real_norm, 0, 0, 0), (dual_norm, 0, 0, 0), self._dtype)

    def is_rigid(self, atol: Optional[float] = None) -> bool:
        """
        True if |r| = 1 and r . d = 0 within tolerance.

        These two conditions make the value a rigid-body transform (rotation
        plus translation) rather than a scaled screw.
        """
        tol = tolerance_for(self._dtype, atol)
        return bool(abs(self._real.norm() - 1) <= tol
                    and abs(self._real.dot(self._dual)) <= tol)

    def isclose(self, other: "DualQuat", atol: Optional[float] = None) -> bool:
        """Component-wise comparison of both parts within a tolerance."""
        if not isinstance(other, DualQuat):
            return False
        return self._real.isclose(other._real, atol) and self._dual.isclose(other._dual, atol)

    # =========================================================================
    # IN-PLACE INVARIANT OPERATIONS
    # =========================================================================

    def _normalize_in_place(self) -> None:
        """
        Divide both parts by |r|.

        Raises
        ------
        InvariantViolation
            If the real part has zero norm; the value is left untouched.
        """
        n = self._real.norm()
        if not np.isfinite(n) or n <= zero_norm_limit():
            logger.debug("Refusing to normalize %r (real norm = %s)", self, n)
            raise InvariantViolation(
                f"Cannot normalize a dual quaternion whose real part has norm {float(n):.3e}"
            )
        self._real._q /= n
        self._dual._q /= n

    def _purify_in_place(self) -> None:
        self._real._q[0] = 0
        self._dual._q[0] = 0

    def normalize(self) -> "DualQuat":
        """Divide both parts by the real part's norm, in place; return self."""
        self._normalize_in_place()
        return self

    def purify(self) -> "DualQuat":
        """Zero the scalar part of both parts, in place; return self."""
        self._purify_in_place()
        return self

    def assign(self, other: "DualQuat") -> "DualQuat":
        """
        Overwrite with the parts of ``other`` (cast to this dtype).

        The invariant is re-established; on failure the previous value is kept.
        """
        if not isinstance(other, DualQuat):
            raise TypeError(f"Cannot assign {type(other).__name__} to {type(self).__name__}")
        previous = (self._real, self._dual)
        self._real = Quat._wrap(other._real._q, self._dtype)
        self._dual = Quat._wrap(other._dual._q, self._dtype)
        try:
            self._establish()
        except InvariantViolation:
            self._real, self._dual = previous
            raise
        return self

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================

    def copied(self) -> "DualQuat":
        return type(self)._wrap(self._real._q, self._dual._q, self._dtype, establish=False)

    copy = copied

    def astype(self, dtype: Any) -> "DualQuat":
        """Explicit conversion to another scalar field (invariant re-established)."""
        return type(self)._wrap(self._real._q, self._dual._q, resolve_dtype(dtype))

    def normalized(self) -> "UnitDualQuat":
        return UnitDualQuat(self)

    def purified(self) -> "PureDualQuat":
        return PureDualQuat(self)

    def conj(self) -> "DualQuat":
        """Quaternion conjugate of both parts: conj(r) + e*conj(d)."""
        return DualQuat._from_parts(self._real.conj(), self._dual.conj())

    conjugate = conj

    def inv(self) -> "DualQuat":
        """
        Inverse r^-1 - e * r^-1 d r^-1.

        Raises
        ------
        SingularQuaternionError
            If the real part is zero.
        """
        real_inv = self._real.inv()
        return DualQuat._from_parts(real_inv, -(real_inv * self._dual * real_inv))

    inverse = inv

    def log(self) -> "DualQuat":
        """Logarithm log(r) + e * r^-1 d."""
        return DualQuat._from_parts(self._real.log(), self._real.inv() * self._dual)

    def exp(self) -> "DualQuat":
        """Exponential exp(r) + e * exp(r) r^-1 d."""
        real_exp = self._real.exp()
        return DualQuat._from_parts(real_exp, real_exp * self._real.inv() * self._dual)

    def pow(self, exponent: Scalar) -> "DualQuat":
        """Real power dq^p = exp(p * log(dq))."""
        return (self.log() * exponent).exp()

    # =========================================================================
    # HAMILTON OPERATORS
    # =========================================================================

    def hamiplus(self) -> np.ndarray:
        """
        8x8 left Hamilton operator.

            H+(dq) = | H+(r)    0    |
                     | H+(d)  H+(r)  |

        so that components(dq * p) = H+(dq) @ components(p).
        """
        real_hami = self._real.hamiplus()
        return np.block([
            [real_hami, np.zeros((4, 4), dtype=self._dtype)],
            [self._dual.hamiplus(), real_hami],
        ])

    def haminus(self) -> np.ndarray:
        """
        8x8 right Hamilton operator.

            H-(dq) = | H-(r)    0    |
                     | H-(d)  H-(r)  |

        so that components(p * dq) = H-(dq) @ components(p).
        """
        real_hami = self._real.haminus()
        return np.block([
            [real_hami, np.zeros((4, 4), dtype=self._dtype)],
            [self._dual.haminus(), real_hami],
        ])

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def _product(self, other: "DualQuat") -> Tuple[Quat, Quat]:
        real = self._real * other._real
        dual = self._real * other._dual + self._dual * other._real
        return real, dual

    def __add__(self, other: "DualQuat") -> "DualQuat":
        if isinstance(other, DualQuat):
            return DualQuat._from_parts(self._real + other._real, self._dual + other._dual)
        return NotImplemented

    def __sub__(self, other: "DualQuat") -> "DualQuat":
        if isinstance(other, DualQuat):
            return DualQuat._from_parts(self._real - other._real, self._dual - other._dual)
        return NotImplemented

    def __mul__(self, other: Union["DualQuat", Quat, Scalar]) -> "DualQuat":
        """
        DualQuat * DualQuat -> a*c + e*(a*d + b*c)
        DualQuat * Quat     -> r*q + e*(d*q)
        DualQuat * scalar   -> both parts scaled
        """
        if isinstance(other, DualQuat):
            return DualQuat._from_parts(*self._product(other))
        if isinstance(other, Quat):
            return DualQuat._from_parts(self._real * other, self._dual * other)
        if _is_scalar(other):
            return DualQuat._from_parts(self._real * other, self._dual * other)
        return NotImplemented

    def __rmul__(self, other: Union[Quat, Scalar]) -> "DualQuat":
        """Quat * DualQuat -> q*r + e*(q*d); scalar * DualQuat."""
        if isinstance(other, Quat):
            real = Quat(other, dtype=self._dtype) * self._real
            dual = Quat(other, dtype=self._dtype) * self._dual
            return DualQuat._from_parts(real, dual)
        if _is_scalar(other):
            return DualQuat._from_parts(self._real * other, self._dual * other)
        return NotImplemented

    def __truediv__(self, other: Scalar) -> "DualQuat":
        if _is_scalar(other):
            return DualQuat._from_parts(self._real / other, self._dual / other)
        return NotImplemented

    def __neg__(self) -> "DualQuat":
        return DualQuat._from_parts(-self._real, -self._dual)

    def __iadd__(self, other: "DualQuat") -> "DualQuat":
        if not isinstance(other, DualQuat):
            return NotImplemented
        self._real += other._real
        self._dual += other._dual
        return self

    def __isub__(self, other: "DualQuat") -> "DualQuat":
        if not isinstance(other, DualQuat):
            return NotImplemented
        self._real -= other._real
        self._dual -= other._dual
        return self

    def __imul__(self, other: Union["DualQuat", Scalar]) -> "DualQuat":
        if isinstance(other, DualQuat):
            self._real, self._dual = self._product(other)
            return self
        if _is_scalar(other):
            self._real *= other
            self._dual *= other
            return self
        return NotImplemented

    # =========================================================================
    # COMPARISON & TEXT
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DualQuat):
            return NotImplemented
        return self.isclose(other)

    __hash__ = None

    def to_string(self) -> str:
        """Rendering 'real + ε(dual)'."""
        return f"{self._real.to_string()} + ε({self._dual.to_string()})"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        p = get_config().print_precision
        real = ", ".join(f"{v:.{p}g}" for v in self._real._q)
        dual = ", ".join(f"{v:.{p}g}" for v in self._dual._q)
        return f"{type(self).__name__}(real=[{real}], dual=[{dual}], dtype={self._dtype.name})"


class PureDualQuat(DualQuat):
    """
    Dual quaternion whose real and dual parts are both pure.

    PureDualQuat(x1, y1, z1, x2, y2, z2) takes the two vector parts. In place:
    += and -= with pure operands, *= scalar.
    """

    INVARIANT = Invariant.PURE
    _VECTOR_ARGS = True

    def _establish(self) -> None:
        self._purify_in_place()

    def normalized(self) -> "UnitPureDualQuat":
        return UnitPureDualQuat(self)

    def __iadd__(self, other: "DualQuat") -> "PureDualQuat":
        if not isinstance(other, DualQuat):
            return NotImplemented
        if Invariant.PURE not in other.INVARIANT:
            self._forbid("+=", other)
        self._real += other._real
        self._dual += other._dual
        self._establish()
        return self

    def __isub__(self, other: "DualQuat") -> "PureDualQuat":
        if not isinstance(other, DualQuat):
            return NotImplemented
        if Invariant.PURE not in other.INVARIANT:
            self._forbid("-=", other)
        self._real -= other._real
        self._dual -= other._dual
        self._establish()
        return self

    def __imul__(self, other: Scalar) -> "PureDualQuat":
        if isinstance(other, (DualQuat, Quat)):
            self._forbid("*=", other)
        if not _is_scalar(other):
            return NotImplemented
        self._real *= other
        self._dual *= other
        self._establish()
        return self


class UnitDualQuat(DualQuat):
    """
    Dual quaternion with a unit real part, |r| = 1.

    Every construction path divides both parts by |r| and fails with
    InvariantViolation when r = 0. The orthogonality condition r . d = 0 is
    not enforced. In place, only *= with another unit dual quaternion is
    allowed (renormalized afterwards).

    Examples
    --------
    >>> udq = UnitDualQuat(2, 0, 0, 0, 4, 0, 0, 0)   # real (1,0,0,0), dual (2,0,0,0)
    """

    INVARIANT = Invariant.UNIT
    _DEFAULT = (1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    def _establish(self) -> None:
        self._normalize_in_place()

    def purify(self) -> "UnitDualQuat":
        self._forbid("purify")

    def purified(self) -> "UnitPureDualQuat":
        return UnitPureDualQuat(self)

    def normalized(self) -> "UnitDualQuat":
        return self.copied()

    def __iadd__(self, other: Any) -> "UnitDualQuat":
        self._forbid("+=", other)

    def __isub__(self, other: Any) -> "UnitDualQuat":
        self._forbid("-=", other)

    def __imul__(self, other: Any) -> "UnitDualQuat":
        if not isinstance(other, DualQuat) or Invariant.UNIT not in other.INVARIANT:
            self._forbid("*=", other)
        self._real, self._dual = self._product(other)
        self._establish()
        return self


class UnitPureDualQuat(DualQuat):
    """
    Dual quaternion with pure parts and a unit real part.

    Built by purifying then normalizing. No compound operator preserves both
    invariants, so all of them are refused; use assign() or a new value.
    """

    INVARIANT = Invariant.PURE | Invariant.UNIT
    _DEFAULT = (0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    _VECTOR_ARGS = True

    def _establish(self) -> None:
        self._purify_in_place()
        self._normalize_in_place()

    def normalized(self) -> "UnitPureDualQuat":
        return self.copied()

    def purified(self) -> "UnitPureDualQuat":
        return self.copied()

    def __iadd__(self, other: Any) -> "UnitPureDualQuat":
        self._forbid("+=", other)

    def __isub__(self, other: Any) -> "UnitPureDualQuat":
        self._forbid("-=", other)

    def __imul__(self, other: Any) -> "UnitPureDualQuat":
        self._forbid("*=", other)
