"""
===============================================================================
DQPOSE - Numeric Configuration
===============================================================================
Process-wide numeric settings for the quaternion kernels: default scalar
field (numpy dtype), comparison and zero-norm tolerances, and text precision.

Settings start from the values in core.constants and can be replaced in code
or loaded from a YAML file:

    numeric:
      dtype: float32
      comparison_tolerance: 1.0e-6
      zero_norm_tolerance: 0.0
      print_precision: 8

Usage
-----
    cfg = load_config("config/numeric_config.yaml")
    set_config(cfg)

    with numeric_config(dtype="float32"):
        q = Quat(1, 2, 3, 4)        # float32 components
===============================================================================
"""

from __future__ import annotations

import contextlib
import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Union

import numpy as np
import yaml

from dqpose.core import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NumericConfig:
    """
    Numeric settings shared by every quaternion value.

    Attributes
    ----------
    dtype : np.dtype
        Scalar field used when a value is built from plain numbers.
    comparison_tolerance : float
        Absolute tolerance for component-wise equality.
    zero_norm_tolerance : float
        Norms at or below this value cannot be normalized or inverted.
    print_precision : int
        Fractional digits used by the fixed-point text rendering.
    """
    dtype: Any = field(default=constants.DEFAULT_DTYPE)
    comparison_tolerance: float = constants.COMPARISON_TOLERANCE
    zero_norm_tolerance: float = constants.ZERO_NORM_TOLERANCE
    print_precision: int = constants.PRINT_PRECISION

    def __post_init__(self) -> None:
        try:
            resolved = np.dtype(self.dtype)
        except TypeError as exc:
            raise ValueError(f"Unknown dtype {self.dtype!r}") from exc
        if resolved not in [np.dtype(d) for d in constants.SUPPORTED_DTYPES]:
            raise ValueError(
                f"dtype must be a supported floating type, got {resolved.name}"
            )
        # frozen dataclass: bypass __setattr__ to store the normalized dtype
        object.__setattr__(self, "dtype", resolved)

        if self.comparison_tolerance < 0.0:
            raise ValueError("comparison_tolerance must be non-negative")
        if self.zero_norm_tolerance < 0.0:
            raise ValueError("zero_norm_tolerance must be non-negative")
        if int(self.print_precision) < 0:
            raise ValueError("print_precision must be non-negative")
        object.__setattr__(self, "print_precision", int(self.print_precision))

    def replace(self, **overrides: Any) -> "NumericConfig":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **overrides)

    def as_dict(self) -> Dict[str, Any]:
        """Plain mapping suitable for YAML serialization."""
        return {
            "dtype": self.dtype.name,
            "comparison_tolerance": self.comparison_tolerance,
            "zero_norm_tolerance": self.zero_norm_tolerance,
            "print_precision": self.print_precision,
        }


_FIELD_NAMES = tuple(f.name for f in dataclasses.fields(NumericConfig))

_active_config = NumericConfig()


def get_config() -> NumericConfig:
    """Return the active numeric configuration."""
    return _active_config


def set_config(config: NumericConfig) -> None:
    """Replace the active numeric configuration."""
    global _active_config

    if not isinstance(config, NumericConfig):
        raise TypeError(
            f"Expected NumericConfig, got {type(config).__name__}"
        )
    _active_config = config
    logger.debug("Numeric configuration set: %s", config.as_dict())


def configure(**overrides: Any) -> NumericConfig:
    """Update selected fields of the active configuration and return it."""
    set_config(_active_config.replace(**overrides))
    return _active_config


@contextlib.contextmanager
def numeric_config(**overrides: Any) -> Iterator[NumericConfig]:
    """
    Temporarily override numeric settings.

    The previous configuration is restored on exit, even if the body raises.
    """
    previous = _active_config
    try:
        yield configure(**overrides)
    finally:
        set_config(previous)


def config_from_mapping(data: Dict[str, Any]) -> NumericConfig:
    """
    Build a NumericConfig from a mapping.

    Accepts either a flat mapping of field names or a mapping with a single
    ``numeric`` section. Unknown keys are rejected.
    """
    if not isinstance(data, dict):
        raise ValueError(
            f"Numeric configuration must be a mapping, got {type(data).__name__}"
        )
    if "numeric" in data:
        data = data["numeric"] or {}
        if not isinstance(data, dict):
            raise ValueError("'numeric' section must be a mapping")

    unknown = sorted(set(data) - set(_FIELD_NAMES))
    if unknown:
        raise ValueError(f"Unknown numeric configuration keys: {unknown}")

    return NumericConfig(**data)


def load_config(config_path: Union[str, Path]) -> NumericConfig:
    """
    Load numeric settings from a YAML file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        The parsed NumericConfig (not activated; pass it to set_config).
    """
    config_path = Path(config_path)
    logger.info("Loading numeric configuration from: %s", config_path)

    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return NumericConfig()
    return config_from_mapping(data)
