"""
===============================================================================
DQPOSE - Numeric Constants
===============================================================================
Central repository for the numeric defaults used by the quaternion and dual
quaternion kernels. These values seed the process-wide NumericConfig (see
core.config) and can be overridden there at runtime or from a YAML file.
===============================================================================
"""

import numpy as np


# =============================================================================
# SCALAR FIELD
# =============================================================================
# Floating types that supply + - * / sqrt sin cos acos log exp.
SUPPORTED_DTYPES = (np.float16, np.float32, np.float64, np.longdouble)
DEFAULT_DTYPE = np.float64

# =============================================================================
# TOLERANCES
# =============================================================================
# Component-wise equality tolerance. The effective tolerance never drops below
# EPSILON_SCALE machine epsilons of the operand dtype.
COMPARISON_TOLERANCE = 1e-9
EPSILON_SCALE = 100.0

# Norms at or below this value cannot be normalized or inverted.
ZERO_NORM_TOLERANCE = 0.0

# =============================================================================
# TEXT RENDERING
# =============================================================================
PRINT_PRECISION = 12                   # fixed-point fractional digits

# =============================================================================
# GEOMETRY
# =============================================================================
DEFAULT_ROTATION_AXIS = (0.0, 0.0, 1.0)  # used when a rotation axis is undefined
