"""
===============================================================================
DQPOSE - Rigid-Body Pose Layer
===============================================================================

Domain-named quaternion kinds:

    Rotation      unit quaternion      q = [cos(theta/2), sin(theta/2) * n]
    Translation   pure quaternion      t = [0, tx, ty, tz]
    UnitAxis      unit pure quaternion n = [0, nx, ny, nz], |n| = 1
    Pose          unit dual quaternion p = r + e * (t * r / 2)

Rotating a vector v by r:

    active   v' = r * v * conj(r)    (rotate the vector)
    passive  v' = conj(r) * v * r    (re-express v in the rotated frame)

A Pose stores rotation r and translation t as r + e*(t*r/2); the translation
is recovered as t = 2 * d * conj(r). Poses compose by dual quaternion
multiplication: p2 * p1 applies p1 first, then p2.
===============================================================================
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Optional, Union

import numpy as np

from dqpose.core import constants
from dqpose.core.dual_quaternion import UnitDualQuat
from dqpose.core.quaternion import PureQuat, Quat, Scalar, UnitPureQuat, UnitQuat, _is_scalar
from dqpose.core.scalar import stable_norm

logger = logging.getLogger(__name__)


def _check_rotation(rotation: Any) -> None:
    if not isinstance(rotation, Quat):
        raise TypeError(f"Expected a rotation quaternion, got {type(rotation).__name__}")


class Rotation(UnitQuat):
    """
    Rotation by ``angle`` radians about a unit axis.

    Construction
    ------------
    Rotation()                              identity
    Rotation(axis=(0, 0, 1), angle=pi / 3)  axis-angle (axis normalized first)
    Rotation(UnitAxis.k(), pi / 3)          axis-angle, positional
    Rotation((0, 0, 1), angle=pi / 3)       axis-angle, positional axis
    Rotation(w, x, y, z) / Rotation(quat)   any nonzero quaternion, normalized

    Examples
    --------
    >>> r = Rotation(axis=(0, 0, 1), angle=np.pi / 2)
    >>> t = Translation(1, 0, 0).active_rotated(r)     # ~ (0, 1, 0)
    """

    def __init__(self, *args: Any, axis: Optional[Any] = None,
                 angle: Optional[Scalar] = None, dtype: Optional[Any] = None) -> None:
        if axis is None and args and not _is_scalar(args[0]):
            if angle is None and len(args) == 2:
                axis, angle = args
                args = ()
            elif angle is not None and len(args) == 1:
                axis = args[0]
                args = ()

        if axis is not None or angle is not None:
            if args:
                raise TypeError("Rotation takes either components or axis/angle, not both")
            if axis is None or angle is None:
                raise TypeError("Axis-angle construction needs both axis and angle")
            args = (self._axis_angle_components(axis, angle, dtype),)
            if dtype is None and isinstance(axis, Quat):
                dtype = axis.dtype

        super().__init__(*args, dtype=dtype)

    @staticmethod
    def _axis_angle_components(axis: Any, angle: Scalar,
                               dtype: Optional[Any]) -> np.ndarray:
        """[cos(angle/2), sin(angle/2) * n] with n the normalized axis."""
        unit = axis if isinstance(axis, UnitAxis) and dtype is None else UnitAxis(axis, dtype=dtype)
        half_angle = 0.5 * angle
        sin_half = np.sin(half_angle)
        return np.array([
            np.cos(half_angle),
            sin_half * unit.x,
            sin_half * unit.y,
            sin_half * unit.z,
        ], dtype=unit.dtype)

    @classmethod
    def from_axis_angle(cls, axis: Any, angle: Scalar,
                        dtype: Optional[Any] = None) -> "Rotation":
        """
        Rotation by ``angle`` radians about ``axis``.

        Raises
        ------
        InvariantViolation
            If the axis has zero length.
        """
        return cls(axis=axis, angle=angle, dtype=dtype)

    @classmethod
    def from_rotation_vector(cls, rot_vec: Any,
                             dtype: Optional[Any] = None) -> "Rotation":
        """
        Rotation from a rotation vector theta * n, via exp([0, theta * n / 2]).

        The zero vector gives the identity.
        """
        half = PureQuat(np.asarray(rot_vec), dtype=dtype) * 0.5
        return cls(half.exp())

    def rotation_axis(self) -> "UnitAxis":
        """
        Unit rotation axis (normalized vector part).

        The axis of the identity rotation is undefined; (0, 0, 1) is returned
        by convention.
        """
        vec = self._q[1:4]
        vec_norm = stable_norm(vec)
        if vec_norm == 0:
            logger.debug("Rotation axis undefined for %r, using %s",
                         self, constants.DEFAULT_ROTATION_AXIS)
            return UnitAxis(*constants.DEFAULT_ROTATION_AXIS, dtype=self._dtype)
        return UnitAxis(vec / vec_norm, dtype=self._dtype)

    def rotation_angle(self) -> np.floating:
        """Rotation angle 2 * acos(w / |q|), in [0, 2*pi]."""
        # Clamp against floating-point overshoot in arccos
        return 2 * np.arccos(np.clip(self.w / self.norm(), -1.0, 1.0))

    def to_matrix(self) -> np.ndarray:
        """
        3x3 rotation matrix R with R @ v == active rotation of v.

            R = | 1-2(y^2+z^2)    2(xy-wz)      2(xz+wy)   |
                | 2(xy+wz)      1-2(x^2+z^2)    2(yz-wx)   |
                | 2(xz-wy)      2(yz+wx)      1-2(x^2+y^2) |
        """
        w, x, y, z = self._q

        xx, yy, zz = x * x, y * y, z * z
        xy, xz, yz = x * y, x * z, y * z
        wx, wy, wz = w * x, w * y, w * z

        return np.array([
            [1 - 2 * (yy + zz), 2 * (xy - wz),     2 * (xz + wy)],
            [2 * (xy + wz),     1 - 2 * (xx + zz), 2 * (yz - wx)],
            [2 * (xz - wy),     2 * (yz + wx),     1 - 2 * (xx + yy)],
        ], dtype=self._dtype)


class Translation(PureQuat):
    """
    Translation (or free vector) t = [0, tx, ty, tz].

    Translation(x, y=0, z=0), Translation([x, y, z]) or Translation(quat),
    which drops the scalar part.
    """

    def active_rotate(self, rotation: Quat) -> "Translation":
        """Rotate in place: t <- r * t * conj(r). Returns self."""
        _check_rotation(rotation)
        return self.assign(rotation * self * rotation.conj())

    def passive_rotate(self, rotation: Quat) -> "Translation":
        """Re-express in place in the rotated frame: t <- conj(r) * t * r."""
        _check_rotation(rotation)
        return self.assign(rotation.conj() * self * rotation)

    def active_rotated(self, rotation: Quat) -> "Translation":
        """New translation r * t * conj(r)."""
        return self.copied().active_rotate(rotation)

    def passive_rotated(self, rotation: Quat) -> "Translation":
        """New translation conj(r) * t * r."""
        return self.copied().passive_rotate(rotation)

    def perpendicular(self, other: Quat) -> "UnitAxis":
        """
        Unit axis along the cross product self x other.

        Raises
        ------
        InvariantViolation
            If the vectors are parallel (or one of them is zero).
        """
        cross = np.cross(self._q[1:4], self._cast(other)[1:4])
        return UnitAxis(cross, dtype=self._dtype)

    def angle(self, other: Quat) -> np.floating:
        """Angle between the two directions, acos(n1 . n2), in [0, pi]."""
        cos_angle = self.normalized().dot(other.normalized())
        return np.arccos(np.clip(cos_angle, -1.0, 1.0))


class UnitAxis(UnitPureQuat):
    """
    Unit 3-axis n = [0, nx, ny, nz].

    UnitAxis(x, y, z) normalizes its input; zero-length input raises
    InvariantViolation. UnitAxis.i(), .j(), .k() give the coordinate axes.
    """

    @classmethod
    def i(cls, dtype: Optional[Any] = None) -> "UnitAxis":
        return cls(1, 0, 0, dtype=dtype)

    @classmethod
    def j(cls, dtype: Optional[Any] = None) -> "UnitAxis":
        return cls(0, 1, 0, dtype=dtype)

    @classmethod
    def k(cls, dtype: Optional[Any] = None) -> "UnitAxis":
        return cls(0, 0, 1, dtype=dtype)

    def active_rotate(self, rotation: Quat) -> "UnitAxis":
        """Rotate in place: n <- r * n * conj(r). Returns self."""
        _check_rotation(rotation)
        return self.assign(rotation * self * rotation.conj())

    def passive_rotate(self, rotation: Quat) -> "UnitAxis":
        """Re-express in place in the rotated frame: n <- conj(r) * n * r."""
        _check_rotation(rotation)
        return self.assign(rotation.conj() * self * rotation)

    def active_rotated(self, rotation: Quat) -> "UnitAxis":
        return self.copied().active_rotate(rotation)

    def passive_rotated(self, rotation: Quat) -> "UnitAxis":
        return self.copied().passive_rotate(rotation)

    def perpendicular(self, other: Quat) -> "UnitAxis":
        """Unit axis along self x other; parallel axes raise InvariantViolation."""
        cross = np.cross(self._q[1:4], self._cast(other)[1:4])
        return UnitAxis(cross, dtype=self._dtype)

    def angle(self, other: Quat) -> np.floating:
        """Angle acos(self . other) between two unit axes, in [0, pi]."""
        return np.arccos(np.clip(self.dot(other), -1.0, 1.0))

    def rotation_to(self, other: Quat) -> Rotation:
        """
        Rotation taking this axis onto ``other``.

        The rotation axis is perpendicular(other) and the angle is
        angle(other), so rotation_to(other) active-rotates self onto other.
        Parallel or antiparallel axes have no unique perpendicular and raise
        InvariantViolation.
        """
        return Rotation(axis=self.perpendicular(other), angle=self.angle(other))


PoseComponent = Union[Rotation, Translation, "Pose"]


class Pose(UnitDualQuat):
    """
    Rigid-body pose: rotation r followed by translation t, p = r + e*(t*r/2).

    Construction
    ------------
    Pose()                          identity
    Pose(rotation, translation)     r + e*(t*r/2); any two quaternions are read as
                                    Rotation(rotation) and Translation(translation)
    Pose(rotation)                  r + e*0
    Pose(translation)               1 + e*(t/2)
    Pose(w1, ..., z2) / Pose(dq)    any dual quaternion with nonzero real part,
                                    divided by |real|

    A raw (real, dual) pair is given as Pose(DualQuat(real, dual)).
    """

    def __init__(self, *args: Any, dtype: Optional[Any] = None) -> None:
        if len(args) == 2:
            rotation, translation = args
            if not isinstance(rotation, Rotation):
                rotation = Rotation(rotation, dtype=dtype)
            if not isinstance(translation, Translation):
                translation = Translation(translation, dtype=dtype)
            args = (rotation, translation * rotation * 0.5)
        elif len(args) == 1 and isinstance(args[0], Translation):
            translation = args[0]
            args = (Quat(1, dtype=translation.dtype), translation * 0.5)
        super().__init__(*args, dtype=dtype)

    def rotation(self) -> Rotation:
        """Rotation part r."""
        return Rotation(self._real)

    def translation(self) -> Translation:
        """Translation part t = 2 * d * conj(r)."""
        return Translation(self._dual * self._real.conj() * 2)

    @classmethod
    def _as_pose(cls, component: Any) -> "Pose":
        if isinstance(component, (Pose, Rotation, Translation)):
            return cls(component)
        raise TypeError(
            f"Pose.build_from accepts Rotation, Translation or Pose, "
            f"got {type(component).__name__}"
        )

    @classmethod
    def build_from(cls, *components: PoseComponent) -> "Pose":
        """
        Compose Rotation, Translation and Pose values into one Pose.

        Components are applied in argument order: each one acts after all the
        ones before it, so build_from(a, b, c) == c * b * a. In particular
        build_from(r, t) is the pose rotating by r, then translating by t:

            Pose.build_from(r, t).rotation()    == r
            Pose.build_from(r, t).translation() == t

        No components give the identity pose.
        """
        poses = [cls._as_pose(component) for component in components]
        if not poses:
            return cls()
        return functools.reduce(lambda applied, nxt: cls(nxt * applied), poses)
