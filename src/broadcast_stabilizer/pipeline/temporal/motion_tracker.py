"""Camera-shake statistics from the per-frame rigid transforms.

Every successfully estimated transform describes how far the camera
moved between two consecutive frames, i.e. how much correction the
stabilizer applied.  The tracker records:

- the translation magnitude ``hypot(tx, ty)`` in pixels,
- the rotation angle ``atan2(a10, a00)`` in degrees,
- the number of frame pairs for which no transform was found.

The tracker is purely observational -- it does not modify any frames
or transforms.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np


@dataclass
class MotionSummary:
    """Summary statistics for the estimated camera motion."""

    mean_translation_px: float
    p95_translation_px: float
    max_translation_px: float
    mean_abs_rotation_deg: float
    num_frames_measured: int
    num_failures: int

    def to_log_string(self) -> str:
        """Format as a single-line log message."""
        return (
            f"mean_shift={self.mean_translation_px:.2f}px  "
            f"p95_shift={self.p95_translation_px:.2f}px  "
            f"max_shift={self.max_translation_px:.2f}px  "
            f"mean_rot={self.mean_abs_rotation_deg:.3f}deg  "
            f"({self.num_frames_measured} frames, {self.num_failures} failures)"
        )


@dataclass
class MotionTracker:
    """Accumulate per-frame camera motion.

    Usage::

        tracker = MotionTracker()
        for previous, current in frame_pairs:
            result = stabilizer.stabilize(previous, current)
            tracker.update(result["transform"])
        summary = tracker.get_summary()
    """

    _translations: list[float] = field(default_factory=list, init=False, repr=False)
    _rotations: list[float] = field(default_factory=list, init=False, repr=False)
    _failures: int = field(default=0, init=False, repr=False)

    def update(self, transform: np.ndarray | None) -> None:
        """Record one frame pair's ``(2, 3)`` transform, or ``None`` for a failure."""
        if transform is None:
            self._failures += 1
            return
        self._translations.append(float(math.hypot(transform[0, 2], transform[1, 2])))
        self._rotations.append(math.degrees(math.atan2(transform[1, 0], transform[0, 0])))

    @property
    def num_failures(self) -> int:
        return self._failures

    def get_summary(self) -> MotionSummary | None:
        """Return summary statistics, or ``None`` if no transform was recorded."""
        if not self._translations:
            return None

        translations = np.array(self._translations)
        rotations = np.abs(np.array(self._rotations))
        return MotionSummary(
            mean_translation_px=float(np.mean(translations)),
            p95_translation_px=float(np.percentile(translations, 95)),
            max_translation_px=float(np.max(translations)),
            mean_abs_rotation_deg=float(np.mean(rotations)),
            num_frames_measured=len(translations),
            num_failures=self._failures,
        )

    def reset(self) -> None:
        """Clear all tracking state."""
        self._translations.clear()
        self._rotations.clear()
        self._failures = 0
