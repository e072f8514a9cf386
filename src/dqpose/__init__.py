"""
===============================================================================
DQPOSE - Quaternion and Dual Quaternion Pose Library
===============================================================================
Value types for 3-D rotations, translations and rigid-body poses built on
quaternion and dual quaternion algebra.

Subpackages:
    core      -- quaternion / dual quaternion kernels, invariant kinds,
                 numeric configuration and error types
    geometry  -- Rotation, Translation, UnitAxis and Pose
===============================================================================
"""

from dqpose.core.config import (
    NumericConfig,
    configure,
    get_config,
    load_config,
    numeric_config,
    set_config,
)
from dqpose.core.dual_quaternion import (
    DualQuat,
    PureDualQuat,
    UnitDualQuat,
    UnitPureDualQuat,
)
from dqpose.core.errors import (
    InvariantViolation,
    QuaternionError,
    SingularQuaternionError,
)
from dqpose.core.quaternion import Invariant, PureQuat, Quat, UnitPureQuat, UnitQuat
from dqpose.geometry.pose import Pose, Rotation, Translation, UnitAxis

__version__ = "1.0.0"

__all__ = [
    "Quat", "PureQuat", "UnitQuat", "UnitPureQuat", "Invariant",
    "DualQuat", "PureDualQuat", "UnitDualQuat", "UnitPureDualQuat",
    "Rotation", "Translation", "UnitAxis", "Pose",
    "QuaternionError", "InvariantViolation", "SingularQuaternionError",
    "NumericConfig", "get_config", "set_config", "configure",
    "numeric_config", "load_config",
]
