"""
===============================================================================
DQPOSE - Geometry
===============================================================================
Rigid-body pose layer over the quaternion kernels.

Modules:
    pose  -- Rotation, Translation, UnitAxis, Pose
===============================================================================
"""
