"""
===============================================================================
DQPOSE - Error Taxonomy
===============================================================================
Exceptions raised by the quaternion kernels.

    QuaternionError            base class (a ValueError)
    InvariantViolation         a value cannot satisfy its invariant, e.g.
                               normalizing a zero-norm quaternion
    SingularQuaternionError    inverse (or log) of a zero quaternion

Operations that an invariant-qualified type forbids raise TypeError, the same
way Python reports an unsupported operand.
===============================================================================
"""


class QuaternionError(ValueError):
    """Base class for quaternion algebra errors."""


class InvariantViolation(QuaternionError):
    """
    Raised when a value cannot be brought onto its invariant.

    Normalizing a quaternion (or the real part of a dual quaternion) with zero
    norm has no answer, so construction or mutation fails instead of producing
    NaN components.
    """


class SingularQuaternionError(InvariantViolation, ZeroDivisionError):
    """Raised when inverting (or taking the logarithm of) a zero quaternion."""
