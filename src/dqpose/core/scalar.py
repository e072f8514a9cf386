"""
===============================================================================
DQPOSE - Scalar Field Helpers
===============================================================================
Every quaternion stores its components in a numpy array whose dtype is the
scalar field. These helpers resolve which dtype a new value uses and perform
the explicit casts between fields.
===============================================================================
"""

from typing import Any, Optional

import numpy as np

from dqpose.core import constants
from dqpose.core.config import get_config


_SUPPORTED = tuple(np.dtype(d) for d in constants.SUPPORTED_DTYPES)


def resolve_dtype(dtype: Optional[Any] = None, source: Optional[Any] = None) -> np.dtype:
    """
    Pick the scalar field for a new value.

    Priority: explicit ``dtype`` > dtype of ``source`` > configured default.

    Raises
    ------
    TypeError
        If the resulting dtype is not one of constants.SUPPORTED_DTYPES.
    """
    if dtype is None:
        source_dtype = getattr(source, "dtype", None)
        if source_dtype is not None and np.issubdtype(source_dtype, np.floating):
            dtype = source_dtype
        else:
            dtype = get_config().dtype

    resolved = np.dtype(dtype)
    if resolved not in _SUPPORTED:
        supported = ", ".join(d.name for d in _SUPPORTED)
        raise TypeError(
            f"Scalar field must be one of {supported}, got {resolved.name}"
        )
    return resolved


def as_components(values: Any, dtype: np.dtype) -> np.ndarray:
    """Copy ``values`` into a fresh 1-D array of the given dtype."""
    return np.array(values, dtype=dtype).reshape(-1)


def tolerance_for(dtype: np.dtype, atol: Optional[float] = None) -> float:
    """
    Absolute comparison tolerance for values of ``dtype``.

    An explicit ``atol`` wins; otherwise the configured comparison tolerance
    is used, floored at a small multiple of the dtype's machine epsilon so that
    single-precision values compare sensibly.
    """
    if atol is not None:
        return float(atol)
    eps = float(np.finfo(dtype).eps)
    return max(get_config().comparison_tolerance, constants.EPSILON_SCALE * eps)


def zero_norm_limit() -> float:
    """Norms at or below this limit are treated as zero."""
    return get_config().zero_norm_tolerance


def stable_norm(values: np.ndarray) -> np.floating:
    """
    Euclidean norm of ``values`` without intermediate under- or overflow.

    The components are divided by the largest magnitude before squaring, so
    tiny and huge vectors keep a finite, nonzero norm whenever the result is
    representable in the dtype.
    """
    scale = np.max(np.abs(values))
    if scale == 0 or not np.isfinite(scale):
        return scale
    scaled = values / scale
    return scale * np.sqrt(np.dot(scaled, scaled))
