"""
===============================================================================
DQPOSE - Core Algebra
===============================================================================
Numeric kernels and their invariant-qualified kinds.

Modules:
    constants         -- numeric defaults (tolerances, dtype, precision)
    config            -- NumericConfig, YAML loading, scoped overrides
    errors            -- exception taxonomy
    scalar            -- scalar-field (dtype) resolution
    quaternion        -- Quat, PureQuat, UnitQuat, UnitPureQuat
    dual_quaternion   -- DualQuat, PureDualQuat, UnitDualQuat, UnitPureDualQuat
===============================================================================
"""
