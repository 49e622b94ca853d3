"""Stabilization configuration -- every tunable constant in one place.

The pipeline was calibrated for a single fixed camera framing (border
padding, morphology radii, scoreboard rectangle, grass colour band).
Rather than scattering those numbers across modules, they live in the
frozen dataclasses below so that footage from a different framing only
needs a different YAML file.

Design notes
------------
- All dataclasses are **frozen**: a config is built once and shared by
  every stage without risk of mutation mid-video.
- :meth:`StabilizationConfig.from_dict` rejects unknown keys so that a
  typo in a YAML file fails loudly instead of silently using a default.
- :func:`load_config` returns a plain dict (the whole YAML document);
  the ``stabilization`` section is then handed to ``from_dict``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HsvRange:
    """Inclusive HSV corner points for ``cv2.inRange`` (OpenCV hue scale 0-180)."""

    lower: tuple[int, int, int] = (35, 50, 100)
    upper: tuple[int, int, int] = (70, 255, 200)


@dataclass(frozen=True)
class OverlayRegion:
    """Fixed scoreboard rectangle, in unbordered frame pixels."""

    left: int = 80
    top: int = 40
    width: int = 290
    height: int = 40


@dataclass(frozen=True)
class EstimatorConfig:
    """Feature tracking and RANSAC parameters for rigid-transform estimation.

    Attributes
    ----------
    max_features : int
        Maximum number of Shi-Tomasi corners detected on the previous frame.
    quality_level : float
        Relative corner quality cut-off passed to ``goodFeaturesToTrack``.
    min_distance : int
        Minimum pixel distance between detected corners.
    block_size : int
        Neighbourhood size for the corner response.
    min_tracked_features : int
        Fewer successfully tracked points than this is reported as
        "no transform found".
    ransac_threshold : float
        Maximum reprojection error (px) for a point to count as an inlier.
    """

    max_features: int = 400
    quality_level: float = 0.01
    min_distance: int = 7
    block_size: int = 7
    min_tracked_features: int = 8
    ransac_threshold: float = 3.0


@dataclass(frozen=True)
class StabilizationConfig:
    """Complete parameter set for mask building, conditioning and estimation."""

    border_width: int = 60
    border_height: int = 60
    field_dilation: int = 1
    field_erosion: int = 5
    public_erosion: int = 5
    public_dilation: int = 20
    singularity_border: int = 80
    conditioning_blur: int = 30
    grass_hsv: HsvRange = field(default_factory=HsvRange)
    overlay: OverlayRegion = field(default_factory=OverlayRegion)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)

    def __post_init__(self) -> None:
        if self.border_width < 0 or self.border_height < 0:
            raise ValueError(
                f"border size must be >= 0, got {self.border_width}x{self.border_height}"
            )
        if self.conditioning_blur < 1:
            raise ValueError(f"conditioning_blur must be >= 1, got {self.conditioning_blur}")

    @property
    def border_offset(self) -> tuple[int, int]:
        """``(x, y)`` position of the original frame inside a bordered frame."""
        return self.border_width // 2, self.border_height // 2

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> StabilizationConfig:
        """Build a config from a (possibly partial) nested mapping.

        Missing keys keep their defaults.  Unknown keys raise ``ValueError``.
        """
        if not data:
            return cls()

        nested_types: dict[str, type] = {
            "grass_hsv": HsvRange,
            "overlay": OverlayRegion,
            "estimator": EstimatorConfig,
        }
        kwargs: dict[str, Any] = {}
        for key, value in _checked_items(cls, data):
            if key in nested_types:
                kwargs[key] = _build_nested(nested_types[key], value)
            else:
                kwargs[key] = value
        return cls(**kwargs)


def _checked_items(target: type, data: Mapping[str, Any]) -> list[tuple[str, Any]]:
    known = {dataclass_field.name for dataclass_field in fields(target)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {target.__name__} keys: {', '.join(unknown)}")
    return list(data.items())


def _build_nested(target: type, value: Any) -> Any:
    if isinstance(value, target):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"{target.__name__} section must be a mapping, got {type(value).__name__}")
    kwargs: dict[str, Any] = {}
    for key, item in _checked_items(target, value):
        # YAML gives lists; the HSV corners are compared as tuples.
        kwargs[key] = tuple(item) if isinstance(item, list) else item
    return target(**kwargs)


def load_config(config_path: str | Path) -> dict[str, Any]:
    """Load a YAML config file and return its contents as a dict.

    A missing file is not an error: a warning is logged and ``{}`` is
    returned so that built-in defaults apply.
    """
    config_path = Path(config_path)
    if config_path.exists():
        with open(config_path) as config_file:
            contents = yaml.safe_load(config_file) or {}
        if not isinstance(contents, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")
        return contents
    logger.warning("Config file not found: %s -- using built-in defaults.", config_path)
    return {}
