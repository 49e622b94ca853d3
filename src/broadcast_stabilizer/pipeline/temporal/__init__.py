"""Temporal processing -- camera-motion statistics across frame pairs."""

from broadcast_stabilizer.pipeline.temporal.motion_tracker import MotionSummary, MotionTracker

__all__ = ["MotionSummary", "MotionTracker"]
